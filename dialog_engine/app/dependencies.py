"""
Dependency Injection Wiring (Composition Root).

Builds the bot's singletons once per process (Storage, the property store and
its accessors, the dialog registry and the bot itself) and wires them together
with @lru_cache. Tests override get_bot / get_storage through FastAPI's
dependency_overrides.
"""

from functools import lru_cache

from fastapi import Depends

from ..config import settings
from ..dialogs import build_dialog_registry
from ..execution.dialogs import DialogRegistry
from ..repositories.storage import InMemoryStorage, SqlStorage, Storage
from ..services.bot import DemoBot
from ..state.accessors import BotAccessors
from ..state.property_store import StatePropertyStore


# Storage (Singleton)
# Note: in-memory storage must be a singleton so state survives between requests!
@lru_cache()
def get_storage() -> Storage:
    if settings.STORAGE_BACKEND == "sql":
        return SqlStorage()
    return InMemoryStorage()


@lru_cache()
def get_state_store(storage: Storage = Depends(get_storage)) -> StatePropertyStore:
    return StatePropertyStore(storage)


@lru_cache()
def get_accessors(store: StatePropertyStore = Depends(get_state_store)) -> BotAccessors:
    return BotAccessors.create(store)


@lru_cache()
def get_dialog_registry(accessors: BotAccessors = Depends(get_accessors)) -> DialogRegistry:
    return build_dialog_registry(accessors)


# The Bot (Singleton Service)
# The conversation locks live on the bot, so it must be a singleton too.
@lru_cache()
def get_bot(
    accessors: BotAccessors = Depends(get_accessors),
    registry: DialogRegistry = Depends(get_dialog_registry),
) -> DemoBot:
    return DemoBot(
        accessors=accessors,
        registry=registry,
        welcome_message=settings.WELCOME_MESSAGE,
        error_message=settings.ERROR_MESSAGE,
        serialize_turns=settings.SERIALIZE_TURNS,
        bot_id=settings.BOT_ID,
    )
