"""
Step & Turn Results - Stack Machine Signals

Type definitions for what a step tells the engine to do next (StepResult) and
what the engine reports back after a turn (TurnResult).
"""

from dataclasses import dataclass
from enum import Enum, auto
from typing import Any, Optional

from ...schemas.prompts import PromptOptions


class StepKind(Enum):
    """
    The tagged union of step outcomes.

    END_OF_TURN and PROMPT suspend the turn. Everything else is resolved
    within the same turn, so a chain of BEGIN_DIALOG/CONTINUE results can
    cascade through several dialogs' first steps.
    """

    END_OF_TURN = auto()  # Suspend; wait for the next activity.
    PROMPT = auto()  # Suspend awaiting recognized input (or begin a prompt dialog).
    CONTINUE = auto()  # Run the next step right away.
    END_DIALOG = auto()  # Pop the frame, return 'result' to the parent.
    BEGIN_DIALOG = auto()  # Push a child dialog.
    REPLACE_DIALOG = auto()  # Pop the frame and push another in its place.


@dataclass(frozen=True)
class StepResult:
    kind: StepKind
    result: Any = None
    dialog_id: Optional[str] = None
    options: Any = None

    @classmethod
    def end_of_turn(cls) -> "StepResult":
        return cls(StepKind.END_OF_TURN)

    @classmethod
    def prompt(cls, dialog_id: Optional[str], options: PromptOptions) -> "StepResult":
        """
        With a dialog_id, begins that prompt dialog. Without one, the running
        prompt dialog suspends waiting on 'options'.
        """
        return cls(StepKind.PROMPT, dialog_id=dialog_id, options=options)

    @classmethod
    def next(cls, result: Any = None) -> "StepResult":
        return cls(StepKind.CONTINUE, result=result)

    @classmethod
    def end_dialog(cls, result: Any = None) -> "StepResult":
        return cls(StepKind.END_DIALOG, result=result)

    @classmethod
    def begin_dialog(cls, dialog_id: str, options: Any = None) -> "StepResult":
        return cls(StepKind.BEGIN_DIALOG, dialog_id=dialog_id, options=options)

    @classmethod
    def replace_dialog(cls, dialog_id: str, options: Any = None) -> "StepResult":
        return cls(StepKind.REPLACE_DIALOG, dialog_id=dialog_id, options=options)


class TurnStatus(Enum):
    WAITING = auto()  # The only dialog on the stack is suspended.
    ACTIVE_AND_WAITING = auto()  # A child is suspended; its parents wait for its result.
    COMPLETE = auto()  # The root dialog ended (or nothing was active).
    CANCELLED = auto()  # The stack was cleared by cancel_all_dialogs().


@dataclass
class TurnResult:
    status: TurnStatus
    value: Any = None

    @property
    def is_waiting(self) -> bool:
        return self.status in (TurnStatus.WAITING, TurnStatus.ACTIVE_AND_WAITING)
