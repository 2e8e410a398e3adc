"""
Execution Layer - Dialog Orchestration and Step Execution

Defines the DialogEngine (deterministic stack machine), the dialog variants
it dispatches on, and the per-turn TurnContext.
"""

from dialog_engine.execution.context import TurnContext
from dialog_engine.execution.dialogs import (
    CompositeDialog,
    Dialog,
    DialogKind,
    DialogRegistry,
    StepContext,
    StepSequenceDialog,
)
from dialog_engine.execution.engine import DialogContext, DialogEngine
from dialog_engine.execution.schemas.state_machine import (
    StepKind,
    StepResult,
    TurnResult,
    TurnStatus,
)


__all__ = [
    "CompositeDialog",
    "Dialog",
    "DialogContext",
    "DialogEngine",
    "DialogKind",
    "DialogRegistry",
    "StepContext",
    "StepKind",
    "StepResult",
    "StepSequenceDialog",
    "TurnContext",
    "TurnResult",
    "TurnStatus",
]
