"""
State Layer - Runtime Data Models

This module defines the persisted runtime state. The DialogStack implements
a Call Stack pattern: each Frame records which dialog is running, which of its
steps the conversation is suspended on, and that dialog's local data.
Composite dialogs keep their own sub-stack on their frame, so the stack is a
small tree that round-trips through JSON.

It also defines the application records the demo dialogs keep in user and
conversation state. The engine never looks at those.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class Frame(BaseModel):
    """
    Represents a single item on the call stack.
    """
    dialog_id: str
    # Index of the step the frame last ran, i.e. the one it is suspended on.
    step_index: int = Field(default=0, ge=0)
    values: Dict[str, Any] = Field(default_factory=dict)
    options: Any = None

    # The options a Prompt frame is waiting on
    pending_prompt_options: Optional[Dict[str, Any]] = None

    # Sub-stack of a CompositeDialog frame
    inner_stack: Optional["DialogStack"] = None


class DialogStack(BaseModel):
    """
    The dialog call stack for one conversation. frames[0] is the root dialog.
    """
    frames: List[Frame] = Field(default_factory=list)

    @property
    def active_frame(self) -> Optional[Frame]:
        if not self.frames:
            return None
        return self.frames[-1]

    @property
    def depth(self) -> int:
        return len(self.frames)

    def __bool__(self) -> bool:
        return bool(self.frames)


Frame.model_rebuild()


# ==============================================================================
# Application State (owned by the dialogs, opaque to the engine)
# ==============================================================================

class GuestInfo(BaseModel):
    name: Optional[str] = None
    rating: Optional[str] = None


class Reservation(BaseModel):
    """A table reservation collected by the reservation dialog."""
    size: int
    date: str
    location: Optional[str] = None


class UserInfo(BaseModel):
    """
    Everything the bot remembers about a user, across conversations.
    """
    guest: GuestInfo = Field(default_factory=GuestInfo)
    table: Optional[Reservation] = None


class ConversationData(BaseModel):
    channel_id: Optional[str] = None
    turn_count: int = 0
    last_activity_at: Optional[datetime] = None
