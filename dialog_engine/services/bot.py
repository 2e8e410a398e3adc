"""
Bot Service - Turn Orchestration Layer

The DemoBot is the entry point for every incoming activity. It loads the
conversation's state, hands the turn to the DialogEngine, decides what to
start when nothing is running, and saves state once the turn has finished.

A turn is all-or-nothing: if it fails or is cancelled, nothing it staged is
saved, so the next turn resumes from the last good state.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import List, Optional
from weakref import WeakValueDictionary

from ..config import settings
from ..dialogs.ids import GREETING_DIALOG, MAIN_DIALOG
from ..domain.models import Activity, ActivityType
from ..exceptions import ScopeIdentityUnavailableError, TurnCancelledError
from ..execution.context import TurnContext
from ..execution.dialogs import DialogRegistry
from ..execution.engine import DialogContext, DialogEngine
from ..execution.schemas.state_machine import TurnStatus
from ..state.accessors import BotAccessors
from ..state.models import ConversationData, DialogStack, GuestInfo, UserInfo
from ..state.property_store import StateScope

logger = logging.getLogger(__name__)


class ConversationLocks:
    """
    One asyncio.Lock per conversation, so turns of the same conversation run
    one at a time within this process. Locks nobody holds are dropped.
    """

    def __init__(self):
        self._locks: "WeakValueDictionary[str, asyncio.Lock]" = WeakValueDictionary()

    def for_conversation(self, key: str) -> asyncio.Lock:
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        return lock

    def __len__(self) -> int:
        return len(self._locks)


class DemoBot:
    def __init__(
        self,
        accessors: BotAccessors,
        registry: DialogRegistry,
        welcome_message: str = settings.WELCOME_MESSAGE,
        error_message: str = settings.ERROR_MESSAGE,
        serialize_turns: bool = settings.SERIALIZE_TURNS,
        bot_id: str = settings.BOT_ID,
    ):
        self.accessors = accessors
        self.engine = DialogEngine(registry)
        self.welcome_message = welcome_message
        self.error_message = error_message
        self.bot_id = bot_id
        self.locks = ConversationLocks() if serialize_turns else None

    async def handle_turn(
        self, activity: Activity, cancellation: Optional[asyncio.Event] = None
    ) -> List[Activity]:
        """Runs one turn and returns the activities the bot sent during it."""
        context = TurnContext(activity, cancellation=cancellation)
        await self.on_turn(context)
        return context.sent_activities

    async def on_turn(self, context: TurnContext):
        lock_key = self._lock_key(context)
        if self.locks is None or lock_key is None:
            await self._run_turn(context)
            return

        async with self.locks.for_conversation(lock_key):
            await self._run_turn(context)

    async def _run_turn(self, context: TurnContext):
        activity = context.activity
        logger.info(f"Turn start: {activity.type_name} in {activity.channel_id}/{self._conversation_id(activity)}")
        try:
            await self._process(context)
        except TurnCancelledError:
            logger.warning(f"Turn cancelled in conversation {self._conversation_id(activity)}; state not saved")
        except Exception:
            logger.exception(f"Turn failed in conversation {self._conversation_id(activity)}; state not saved")
            await context.send_activity(self.error_message)

    async def _process(self, context: TurnContext):
        """
        The Core Loop:
        1. Load state (staging defaults for first-time conversations and users)
        2. Route the activity to the dialogs
        3. Save both scopes in one write
        """
        activity = context.activity

        # 1. Load state
        conversation_data = self.accessors.conversation_data.get(context, ConversationData)
        conversation_data.channel_id = activity.channel_id
        conversation_data.turn_count += 1
        conversation_data.last_activity_at = activity.timestamp or datetime.now(timezone.utc)

        self.accessors.user_info.get(context, UserInfo)
        stack = self.accessors.dialog_state.get(context, DialogStack)
        dc = self.engine.create_context(stack, context)

        # 2. Route
        match activity.type:
            case ActivityType.MESSAGE:
                await self._on_message(dc)
            case ActivityType.CONVERSATION_UPDATE:
                await self._on_members_added(dc)
            case _:
                logger.debug(f"Ignoring {activity.type_name} activity")

        # 3. Save
        context.raise_if_cancelled()
        self.accessors.store.save_all(context, [StateScope.CONVERSATION, StateScope.USER])

    async def _on_message(self, dc: DialogContext):
        context = dc.context
        result = await dc.continue_dialog()

        if result.status == TurnStatus.COMPLETE and isinstance(result.value, GuestInfo):
            user_info = self.accessors.user_info.get(context)
            user_info.guest = result.value
            self.accessors.user_info.set(context, user_info)
            logger.info(f"Greeted {result.value.name}; starting the main menu")
            await dc.begin_dialog(MAIN_DIALOG)
        elif not context.responded:
            # Nothing was running (or it finished silently)
            await dc.begin_dialog(MAIN_DIALOG)

    async def _on_members_added(self, dc: DialogContext):
        context = dc.context
        activity = context.activity
        bot_id = activity.recipient.id if activity.recipient else self.bot_id

        for member in activity.members_added or []:
            if member.id == bot_id:
                continue
            await context.send_activity(f"Hi there - {member.name}. {self.welcome_message}")
            # One greeting per conversation, however many members join at once
            if not dc.stack:
                await dc.begin_dialog(GREETING_DIALOG)

    def _lock_key(self, context: TurnContext) -> Optional[str]:
        try:
            return self.accessors.store.storage_key(context, StateScope.CONVERSATION)
        except ScopeIdentityUnavailableError:
            # The turn itself reports the missing identity
            return None

    @staticmethod
    def _conversation_id(activity: Activity) -> Optional[str]:
        return activity.conversation.id if activity.conversation else None
