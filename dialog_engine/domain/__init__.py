"""
Domain Layer - Activity Models

Defines the opaque messages exchanged between a channel and the bot.
"""

from dialog_engine.domain.models import (
    Activity,
    ActivityType,
    Attachment,
    ChannelAccount,
    ConversationAccount,
    MessageFactory,
)

__all__ = [
    "Activity",
    "ActivityType",
    "Attachment",
    "ChannelAccount",
    "ConversationAccount",
    "MessageFactory",
]
