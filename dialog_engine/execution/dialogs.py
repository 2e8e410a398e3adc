"""
Dialogs - Units of Conversational Behavior

A Dialog is a closed tagged variant: every dialog declares a DialogKind and
the engine dispatches on it in one place (see engine.py). There are three
kinds:

- STEP_SEQUENCE: a linear script of async steps ("waterfall"). Each step
  receives a StepContext and returns a StepResult telling the engine what to
  do next.
- PROMPT: a single-step dialog that collects and validates one typed value
  (see prompts/).
- COMPOSITE: a namespacing container with its own DialogRegistry and its own
  sub-stack. On begin it immediately begins its initial dialog.

Dialogs are built once at startup and registered in a DialogRegistry.
They hold no per-conversation state: all of that lives on the Frame.
"""

import logging
from abc import ABC
from enum import Enum
from typing import TYPE_CHECKING, Any, Awaitable, Callable, ClassVar, Dict, Iterator, List, Optional, Sequence, Union

from ..domain.models import Activity
from ..schemas.prompts import PromptOptions
from ..state.models import Frame
from .context import TurnContext
from .schemas.state_machine import StepResult

if TYPE_CHECKING:
    from .engine import DialogContext

logger = logging.getLogger(__name__)


class DialogKind(str, Enum):
    PROMPT = "prompt"
    STEP_SEQUENCE = "step_sequence"
    COMPOSITE = "composite"


class Dialog(ABC):
    kind: ClassVar[DialogKind]

    def __init__(self, dialog_id: str):
        if not dialog_id:
            raise ValueError("Dialog id must be a non-empty string.")
        self._id = dialog_id

    @property
    def id(self) -> str:
        return self._id

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._id!r})"


class DialogRegistry:
    """
    Maps dialog ids to dialogs. Filled once at startup; read-only afterwards,
    so it is safe to share between concurrent turns.
    """

    def __init__(self, dialogs: Sequence[Dialog] = ()):
        self._dialogs: Dict[str, Dialog] = {}
        for dialog in dialogs:
            self.add(dialog)

    def add(self, dialog: Dialog) -> "DialogRegistry":
        if dialog.id in self._dialogs:
            raise ValueError(f"Dialog '{dialog.id}' is already registered.")
        self._dialogs[dialog.id] = dialog
        return self

    def find(self, dialog_id: str) -> Optional[Dialog]:
        return self._dialogs.get(dialog_id)

    def __contains__(self, dialog_id: str) -> bool:
        return dialog_id in self._dialogs

    def __len__(self) -> int:
        return len(self._dialogs)

    def __iter__(self) -> Iterator[Dialog]:
        return iter(self._dialogs.values())


# ==============================================================================
# Step Sequences
# ==============================================================================

class StepContext:
    """
    What a step gets to work with: the turn, the previous step's result, and
    its own frame's values and begin options.

    Steps may mutate 'values'. Everything else about the frame belongs to
    the engine.
    """

    def __init__(self, dc: "DialogContext", frame: Frame, index: int, result: Any):
        self.dc = dc
        self.context: TurnContext = dc.context
        self.index = index
        self.result = result
        self._frame = frame

    @property
    def dialog_id(self) -> str:
        return self._frame.dialog_id

    @property
    def values(self) -> Dict[str, Any]:
        return self._frame.values

    @property
    def options(self) -> Any:
        return self._frame.options

    async def send(self, activity_or_text: Union[Activity, str]) -> Activity:
        return await self.context.send_activity(activity_or_text)

    # Outcome shortcuts, so steps read like "return step.next()".

    def end_of_turn(self) -> StepResult:
        return StepResult.end_of_turn()

    def prompt(self, dialog_id: str, options: PromptOptions) -> StepResult:
        return StepResult.prompt(dialog_id, options)

    def next(self, result: Any = None) -> StepResult:
        return StepResult.next(result)

    def end_dialog(self, result: Any = None) -> StepResult:
        return StepResult.end_dialog(result)

    def begin_dialog(self, dialog_id: str, options: Any = None) -> StepResult:
        return StepResult.begin_dialog(dialog_id, options)

    def replace_dialog(self, dialog_id: str, options: Any = None) -> StepResult:
        return StepResult.replace_dialog(dialog_id, options)


Step = Callable[[StepContext], Awaitable[StepResult]]


class StepSequenceDialog(Dialog):
    kind = DialogKind.STEP_SEQUENCE

    def __init__(self, dialog_id: str, steps: Sequence[Step]):
        super().__init__(dialog_id)
        if not steps:
            raise ValueError(f"Dialog '{dialog_id}' needs at least one step.")
        self.steps: List[Step] = list(steps)

    async def execute_step(
        self, dc: "DialogContext", frame: Frame, index: int, previous_result: Any
    ) -> StepResult:
        """
        Runs step 'index'. Running past the last step ends the dialog with
        the last result.
        """
        if index >= len(self.steps):
            return StepResult.end_dialog(previous_result)

        step = self.steps[index]
        logger.debug(f"Dialog '{self.id}' running step {index} ({getattr(step, '__name__', step)})")
        outcome = await step(StepContext(dc, frame, index, previous_result))
        if not isinstance(outcome, StepResult):
            raise TypeError(
                f"Step {index} of dialog '{self.id}' returned {type(outcome).__name__}, expected StepResult."
            )
        return outcome


# ==============================================================================
# Composites
# ==============================================================================

class CompositeDialog(Dialog):
    """
    A reusable sub-flow: owns its dialogs and runs them on a sub-stack kept on
    its own frame. Its own step_index is never used.
    """
    kind = DialogKind.COMPOSITE

    def __init__(self, dialog_id: str, initial_dialog_id: Optional[str] = None):
        super().__init__(dialog_id)
        self.initial_dialog_id = initial_dialog_id or dialog_id
        self.registry = DialogRegistry()

    def add_dialog(self, dialog: Dialog) -> "CompositeDialog":
        self.registry.add(dialog)
        return self
