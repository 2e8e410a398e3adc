"""
Turn Context - Per-Invocation Handle

A TurnContext lives for exactly one turn. It carries the incoming activity,
collects the activities the bot sends back, remembers whether anything was
sent, and holds a per-turn cache (turn_state) the state layer uses so that
every get() in a turn sees the same working copy.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union

from ..domain.models import Activity, ActivityType
from ..exceptions import TurnCancelledError

logger = logging.getLogger(__name__)

SendHandler = Callable[[Activity], Awaitable[None]]

_ADDRESS_FIELDS = (
    "timestamp",
    "channel_id",
    "conversation",
    "from_property",
    "recipient",
    "reply_to_id",
)


class TurnContext:
    def __init__(
        self,
        activity: Activity,
        on_send: Optional[SendHandler] = None,
        cancellation: Optional[asyncio.Event] = None,
    ):
        self.activity = activity
        self.on_send = on_send
        self.cancellation = cancellation
        self.sent_activities: List[Activity] = []
        self.turn_state: Dict[str, Any] = {}

    @property
    def responded(self) -> bool:
        """True once any activity has been sent during this turn."""
        return bool(self.sent_activities)

    @property
    def incoming_result(self) -> Any:
        """
        The raw input handed to the active step: the message text, or the
        structured value of a card postback when there is no text.
        """
        if self.activity.text is not None:
            return self.activity.text
        return self.activity.value

    @property
    def is_message(self) -> bool:
        return self.activity.type == ActivityType.MESSAGE

    async def send_activity(self, activity_or_text: Union[Activity, str]) -> Activity:
        """
        Sends a reply. Plain strings become message activities. The reply is
        addressed back to the sender of the incoming activity.
        """
        self.raise_if_cancelled()
        if isinstance(activity_or_text, str):
            outgoing = self.activity.create_reply(activity_or_text)
        else:
            outgoing = activity_or_text.model_copy(deep=True)
            reply = self.activity.create_reply()
            for field in _ADDRESS_FIELDS:
                if getattr(outgoing, field) is None:
                    setattr(outgoing, field, getattr(reply, field))

        self.sent_activities.append(outgoing)
        if self.on_send:
            await self.on_send(outgoing)
        logger.debug(f"Sent activity: {outgoing.text!r} ({len(outgoing.attachments)} attachment(s))")
        return outgoing

    def raise_if_cancelled(self):
        if self.cancellation is not None and self.cancellation.is_set():
            raise TurnCancelledError("Turn was cancelled.")
