"""
State Layer - Property Store

The StatePropertyStore is the turn-scoped view over durable Storage. State is
split into two partitions (scopes):

- CONVERSATION: keyed on (channel id, conversation id). Holds the DialogStack
  and per-conversation app data.
- USER: keyed on (channel id, user id). Holds per-user app data.

Each scope is one JSON document in Storage. The first access in a turn loads
the document into a per-turn cache on the TurnContext; get/set work on that
cache (read-your-writes), and nothing is durable until save(). The cache is a
deep copy, so objects are never shared between turns.
"""

import copy
import json
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Generic, Iterable, Optional, Type, TypeVar

from pydantic import BaseModel
from pydantic_core import to_jsonable_python

from ..exceptions import PropertyNotFoundError, ScopeIdentityUnavailableError
from ..execution.context import TurnContext
from ..repositories.storage import Storage

logger = logging.getLogger(__name__)

T = TypeVar("T")


class StateScope(str, Enum):
    CONVERSATION = "conversation"
    USER = "user"


@dataclass
class CachedState:
    """One scope document loaded for the current turn."""
    storage_key: str
    document: Dict[str, Any]
    # JSON of the document as last loaded/saved, for change detection.
    snapshot: str

    def serialize(self) -> Dict[str, Any]:
        return to_jsonable_python(self.document)

    def has_changed(self) -> bool:
        return _fingerprint(self.serialize()) != self.snapshot


def _fingerprint(document: Dict[str, Any]) -> str:
    return json.dumps(document, sort_keys=True)


class StatePropertyStore:
    def __init__(self, storage: Storage):
        self.storage = storage

    # ==========================================================================
    # Identity
    # ==========================================================================

    def storage_key(self, context: TurnContext, scope: StateScope) -> str:
        """
        Derives the storage key for a scope from the incoming activity.
        Raises ScopeIdentityUnavailableError when the channel left out an id.
        """
        activity = context.activity
        if not activity.channel_id:
            raise ScopeIdentityUnavailableError(scope.value, "channel id")

        if scope == StateScope.CONVERSATION:
            if not activity.conversation or not activity.conversation.id:
                raise ScopeIdentityUnavailableError(scope.value, "conversation id")
            return f"{activity.channel_id}/conversations/{activity.conversation.id}"

        if not activity.from_property or not activity.from_property.id:
            raise ScopeIdentityUnavailableError(scope.value, "user id")
        return f"{activity.channel_id}/users/{activity.from_property.id}"

    # ==========================================================================
    # Load & Save
    # ==========================================================================

    def load(self, context: TurnContext, scope: StateScope, force: bool = False) -> CachedState:
        """Loads the scope document into the turn cache (once per turn unless forced)."""
        cache_key = self._cache_key(scope)
        cached = context.turn_state.get(cache_key)
        if cached is not None and not force:
            return cached

        storage_key = self.storage_key(context, scope)
        items = self.storage.read([storage_key])
        document = copy.deepcopy(items.get(storage_key, {}))

        cached = CachedState(
            storage_key=storage_key,
            document=document,
            snapshot=_fingerprint(document),
        )
        context.turn_state[cache_key] = cached
        logger.debug(f"Loaded {scope.value} state '{storage_key}' ({len(document)} properties)")
        return cached

    def save(self, context: TurnContext, scope: StateScope, force: bool = False):
        """Persists every staged property of the scope. See save_all()."""
        self.save_all(context, [scope], force=force)

    def save_all(self, context: TurnContext, scopes: Iterable[StateScope], force: bool = False):
        """
        Persists the changed documents of several scopes in a single
        Storage.write, so either all of them become durable or none does.
        Scopes that did not change are skipped, unless forced.
        """
        pending = []
        for scope in scopes:
            cached = context.turn_state.get(self._cache_key(scope))
            if cached is None:
                if not force:
                    continue
                cached = self.load(context, scope)

            if not force and not cached.has_changed():
                continue
            pending.append((scope, cached, cached.serialize()))

        if not pending:
            return

        self.storage.write({cached.storage_key: document for _, cached, document in pending})
        for scope, cached, document in pending:
            cached.snapshot = _fingerprint(document)
            logger.debug(f"Saved {scope.value} state '{cached.storage_key}'")

    def clear(self, context: TurnContext, scope: StateScope):
        """Stages an empty document for the scope. Applied on the next save()."""
        self.load(context, scope).document.clear()

    # ==========================================================================
    # Properties
    # ==========================================================================

    def get(
        self,
        context: TurnContext,
        key: str,
        scope: StateScope,
        factory: Optional[Callable[[], Any]] = None,
    ) -> Any:
        """
        Returns the property. When absent, stages factory() as the default;
        without a factory, raises PropertyNotFoundError.
        """
        document = self.load(context, scope).document
        if key in document:
            return document[key]

        if factory is None:
            raise PropertyNotFoundError(key, scope.value)

        value = factory()
        document[key] = value
        return value

    def set(self, context: TurnContext, key: str, scope: StateScope, value: Any):
        self.load(context, scope).document[key] = value

    def delete(self, context: TurnContext, key: str, scope: StateScope):
        self.load(context, scope).document.pop(key, None)

    def create_property(
        self,
        name: str,
        scope: StateScope,
        model: Optional[Type[BaseModel]] = None,
    ) -> "StatePropertyAccessor":
        return StatePropertyAccessor(self, name, scope, model)

    @staticmethod
    def _cache_key(scope: StateScope) -> str:
        return f"state:{scope.value}"


class StatePropertyAccessor(Generic[T]):
    """
    A typed handle on one named property.

    With a pydantic 'model', the stored JSON dict is validated back into a
    model instance on first access and the instance replaces the dict in the
    turn cache, so in-place mutations are saved too.
    """

    def __init__(
        self,
        store: StatePropertyStore,
        name: str,
        scope: StateScope,
        model: Optional[Type[BaseModel]] = None,
    ):
        self.store = store
        self.name = name
        self.scope = scope
        self.model = model

    def get(self, context: TurnContext, factory: Optional[Callable[[], T]] = None) -> T:
        value = self.store.get(context, self.name, self.scope, factory)
        if self.model is not None and not isinstance(value, self.model):
            value = self.model.model_validate(value)
            self.store.set(context, self.name, self.scope, value)
        return value

    def set(self, context: TurnContext, value: T):
        self.store.set(context, self.name, self.scope, value)

    def delete(self, context: TurnContext):
        self.store.delete(context, self.name, self.scope)
