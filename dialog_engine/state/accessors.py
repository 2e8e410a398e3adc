"""
State Accessors

The named, typed handles the bot and its dialogs use to reach persisted state.
Built once, fully formed, from a StatePropertyStore and then shared read-only.
"""

from dataclasses import dataclass

from .models import ConversationData, DialogStack, UserInfo
from .property_store import StatePropertyAccessor, StatePropertyStore, StateScope

DIALOG_STATE = "DialogState"
CONVERSATION_DATA = "ConversationData"
USER_INFO = "UserInfo"


@dataclass(frozen=True)
class BotAccessors:
    store: StatePropertyStore
    dialog_state: StatePropertyAccessor[DialogStack]
    conversation_data: StatePropertyAccessor[ConversationData]
    user_info: StatePropertyAccessor[UserInfo]

    @classmethod
    def create(cls, store: StatePropertyStore) -> "BotAccessors":
        return cls(
            store=store,
            dialog_state=store.create_property(DIALOG_STATE, StateScope.CONVERSATION, DialogStack),
            conversation_data=store.create_property(CONVERSATION_DATA, StateScope.CONVERSATION, ConversationData),
            user_info=store.create_property(USER_INFO, StateScope.USER, UserInfo),
        )
