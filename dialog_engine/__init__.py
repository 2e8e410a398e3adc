"""
Dialog Engine

A multi-turn dialog orchestration engine. Conversations are driven by a
persisted call stack of dialogs: step sequences, typed prompts and composite
sub-flows, resumed one turn at a time from durable state.
"""

from dialog_engine.domain import (
    Activity,
    ActivityType,
    Attachment,
    ChannelAccount,
    ConversationAccount,
    MessageFactory,
)
from dialog_engine.state import (
    BotAccessors,
    DialogStack,
    Frame,
    StatePropertyStore,
    StateScope,
)
from dialog_engine.execution.schemas.state_machine import StepKind, StepResult, TurnResult, TurnStatus
from dialog_engine.execution import (
    CompositeDialog,
    DialogContext,
    DialogEngine,
    DialogRegistry,
    StepContext,
    StepSequenceDialog,
    TurnContext,
)

__all__ = [
    # Domain Layer
    "Activity",
    "ActivityType",
    "Attachment",
    "ChannelAccount",
    "ConversationAccount",
    "MessageFactory",
    # State Layer
    "BotAccessors",
    "DialogStack",
    "Frame",
    "StatePropertyStore",
    "StateScope",
    # Schemas
    "StepKind",
    "StepResult",
    "TurnResult",
    "TurnStatus",
    # Execution Layer
    "CompositeDialog",
    "DialogContext",
    "DialogEngine",
    "DialogRegistry",
    "StepContext",
    "StepSequenceDialog",
    "TurnContext",
]
