"""Shared test fixtures for the dialog engine."""
from datetime import datetime

import pytest

from dialog_engine.dialogs import build_dialog_registry
from dialog_engine.domain.models import Activity, ActivityType, ChannelAccount, ConversationAccount
from dialog_engine.execution.context import TurnContext
from dialog_engine.repositories.storage import InMemoryStorage
from dialog_engine.services.bot import DemoBot
from dialog_engine.state.accessors import BotAccessors
from dialog_engine.state.property_store import StatePropertyStore

CHANNEL_ID = "test"
USER_ID = "user-1"
BOT_ID = "bot"

# The reservation dialog's clock: noon on 1 June 2024
FIXED_NOW = datetime(2024, 6, 1, 12, 0)


@pytest.fixture
def make_activity():
    """Builds activities addressed from the test user to the bot."""
    counter = {"n": 0}

    def _make(
        text=None,
        *,
        type=ActivityType.MESSAGE,
        value=None,
        conversation_id="conv-1",
        user_id=USER_ID,
        members_added=None,
    ) -> Activity:
        counter["n"] += 1
        return Activity(
            type=type,
            id=f"activity-{counter['n']}",
            channel_id=CHANNEL_ID,
            conversation=ConversationAccount(id=conversation_id) if conversation_id else None,
            from_property=ChannelAccount(id=user_id, name="Ada"),
            recipient=ChannelAccount(id=BOT_ID, name="Demo Bot"),
            text=text,
            value=value,
            members_added=members_added,
        )

    return _make


@pytest.fixture
def make_context(make_activity):
    def _make(text=None, **kwargs) -> TurnContext:
        return TurnContext(make_activity(text, **kwargs))

    return _make


@pytest.fixture
def storage() -> InMemoryStorage:
    return InMemoryStorage()


@pytest.fixture
def store(storage) -> StatePropertyStore:
    return StatePropertyStore(storage)


@pytest.fixture
def accessors(store) -> BotAccessors:
    return BotAccessors.create(store)


@pytest.fixture
def registry(accessors):
    return build_dialog_registry(accessors, clock=lambda: FIXED_NOW)


@pytest.fixture
def bot(accessors, registry) -> DemoBot:
    return DemoBot(
        accessors=accessors,
        registry=registry,
        welcome_message="Welcome!",
        error_message="Sorry, it looks like something went wrong.",
        serialize_turns=True,
        bot_id=BOT_ID,
    )


@pytest.fixture
def say(bot, make_activity):
    """Sends a message to the bot and returns the activities it replied with."""
    async def _say(text, **kwargs):
        return await bot.handle_turn(make_activity(text, **kwargs))

    return _say
