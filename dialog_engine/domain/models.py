"""
Domain Layer - Activity Models

This module defines the messages exchanged with a channel. An Activity is
opaque to the engine: it only hands `text`/`value` to the active step as a raw
result, and sends whatever activities the steps build.

The models use camelCase aliases so they accept and emit Bot Framework
style JSON (`channelId`, `membersAdded`, `from`, ...).
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ActivityType(str, Enum):
    """
    The kinds of activity the bot acts on. Any other type is accepted and ignored.

    MESSAGE: User text or a card postback.
    CONVERSATION_UPDATE: Members joined or left the conversation.
    """
    MESSAGE = "message"
    CONVERSATION_UPDATE = "conversationUpdate"
    TYPING = "typing"
    EVENT = "event"
    END_OF_CONVERSATION = "endOfConversation"


class WireModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )


class ChannelAccount(WireModel):
    """A participant (user or bot) in a conversation."""
    id: str
    name: Optional[str] = None


class ConversationAccount(WireModel):
    id: str
    name: Optional[str] = None


class Attachment(WireModel):
    """
    A rich attachment (card, media) carried by a message.

    Attributes:
        content_type: MIME-like type, e.g. "application/vnd.microsoft.card.hero".
        content: The card payload. The engine never looks inside it.
    """
    content_type: str
    content: Any = None
    name: Optional[str] = None


class Activity(WireModel):
    # Channels send types beyond ActivityType (installationUpdate, invoke, ...);
    # those are kept as plain strings.
    type: Union[ActivityType, str] = Field(default=ActivityType.MESSAGE, union_mode="left_to_right")
    id: Optional[str] = None
    timestamp: Optional[datetime] = None
    channel_id: Optional[str] = None
    conversation: Optional[ConversationAccount] = None
    from_property: Optional[ChannelAccount] = Field(default=None, alias="from")
    recipient: Optional[ChannelAccount] = None
    text: Optional[str] = None
    value: Optional[Any] = None
    attachments: List[Attachment] = Field(default_factory=list)
    # "list" (default) or "carousel"
    attachment_layout: Optional[str] = None
    members_added: Optional[List[ChannelAccount]] = None
    reply_to_id: Optional[str] = None

    @property
    def type_name(self) -> str:
        return self.type.value if isinstance(self.type, ActivityType) else self.type

    def create_reply(self, text: Optional[str] = None) -> "Activity":
        """Builds a message addressed back to the sender of this activity."""
        return Activity(
            type=ActivityType.MESSAGE,
            timestamp=datetime.now(timezone.utc),
            channel_id=self.channel_id,
            conversation=self.conversation,
            from_property=self.recipient,
            recipient=self.from_property,
            reply_to_id=self.id,
            text=text,
        )


class MessageFactory:
    """Shortcuts for building outgoing message activities."""

    @staticmethod
    def text(text: str) -> Activity:
        return Activity(type=ActivityType.MESSAGE, text=text)

    @staticmethod
    def attachment(attachment: Attachment, text: Optional[str] = None) -> Activity:
        return Activity(type=ActivityType.MESSAGE, text=text, attachments=[attachment])

    @staticmethod
    def carousel(attachments: List[Attachment], text: Optional[str] = None) -> Activity:
        return Activity(
            type=ActivityType.MESSAGE,
            text=text,
            attachments=list(attachments),
            attachment_layout="carousel",
        )
