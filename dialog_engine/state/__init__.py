"""
State Layer - Runtime Data Models and Persistence

Defines the persisted dialog call stack, the application records kept per
user and per conversation, and the turn-scoped property store over Storage.
"""

from dialog_engine.state.models import (
    ConversationData,
    DialogStack,
    Frame,
    GuestInfo,
    Reservation,
    UserInfo,
)
from dialog_engine.state.property_store import (
    StatePropertyAccessor,
    StatePropertyStore,
    StateScope,
)
from dialog_engine.state.accessors import BotAccessors

__all__ = [
    "BotAccessors",
    "ConversationData",
    "DialogStack",
    "Frame",
    "GuestInfo",
    "Reservation",
    "StatePropertyAccessor",
    "StatePropertyStore",
    "StateScope",
    "UserInfo",
]
