"""
Engine - Dialog Orchestration Layer

The DialogEngine is the deterministic stack machine that resumes a
conversation from its persisted DialogStack, routes the incoming activity to
the active step, and applies whatever the step asks for.
-----------------------------------------------

The engine is stateless between turns. Every turn:
1. The application loads the DialogStack and creates a DialogContext.
2. continue_dialog()/begin_dialog() run exactly one step of the top frame.
3. The step's StepResult is applied. Results that do not suspend
   (CONTINUE, BEGIN_DIALOG, END_DIALOG, REPLACE_DIALOG) are resolved within
   the same turn, so one turn can cascade through several dialogs.
4. The engine stops at the first END_OF_TURN or PROMPT (a suspension point),
   or when the root dialog ends, and returns a TurnResult.
5. The application saves the (mutated) stack.

Call/return contract: when a child dialog ends with a value, the parent
resumes at step_index + 1 with that value as its step input.

Composite dialogs run their children on a sub-stack stored on their own
frame, through a child DialogContext whose registry chain falls back to the
parent's registry.
"""

import logging
from typing import Any, Optional

from pydantic_core import to_jsonable_python

from ..exceptions import DialogNotFoundError
from ..schemas.prompts import PromptOptions
from ..state.models import DialogStack, Frame
from .context import TurnContext
from .dialogs import CompositeDialog, Dialog, DialogKind, DialogRegistry, StepSequenceDialog
from .schemas.state_machine import StepKind, StepResult, TurnResult, TurnStatus

logger = logging.getLogger(__name__)


class DialogEngine:
    """
    Built once per bot around its root DialogRegistry. Holds no per-turn
    state, so one engine serves every conversation.
    """

    def __init__(self, registry: DialogRegistry):
        self.registry = registry

    def create_context(self, stack: DialogStack, context: TurnContext) -> "DialogContext":
        return DialogContext(self.registry, stack, context)


class DialogContext:
    def __init__(
        self,
        registry: DialogRegistry,
        stack: DialogStack,
        context: TurnContext,
        parent: Optional["DialogContext"] = None,
    ):
        self.registry = registry
        self.stack = stack
        self.context = context
        self.parent = parent

    @property
    def active_frame(self) -> Optional[Frame]:
        return self.stack.active_frame

    @property
    def depth(self) -> int:
        return self.stack.depth

    def find_dialog(self, dialog_id: str) -> Optional[Dialog]:
        """Looks the id up in this context's registry, then in the parents'."""
        dialog = self.registry.find(dialog_id)
        if dialog is None and self.parent is not None:
            return self.parent.find_dialog(dialog_id)
        return dialog

    # ==========================================================================
    # Stack Operations
    # ==========================================================================

    async def continue_dialog(self) -> TurnResult:
        """Resumes the top frame with this turn's activity."""
        frame = self.active_frame
        if frame is None:
            return TurnResult(TurnStatus.COMPLETE)

        self.context.raise_if_cancelled()
        dialog = self._require_dialog(frame.dialog_id)
        logger.debug(f"Continuing '{dialog.id}' at step {frame.step_index} (depth {self.depth})")

        match dialog.kind:
            case DialogKind.PROMPT:
                outcome = await dialog.continue_prompt(self, frame)
            case DialogKind.STEP_SEQUENCE:
                outcome = await self._run_step(
                    dialog, frame, frame.step_index + 1, self.context.incoming_result
                )
            case DialogKind.COMPOSITE:
                child = self._child_context(dialog, frame)
                outcome = self._composite_outcome(await child.continue_dialog())

        return await self._apply(outcome)

    async def begin_dialog(self, dialog_id: str, options: Any = None) -> TurnResult:
        """Pushes a new frame for 'dialog_id' and runs its first step."""
        self.context.raise_if_cancelled()
        dialog = self._require_dialog(dialog_id)

        frame = Frame(dialog_id=dialog_id, options=_to_storable(options))
        self.stack.frames.append(frame)
        logger.debug(f"Began '{dialog_id}' (depth {self.depth})")

        match dialog.kind:
            case DialogKind.PROMPT:
                outcome = await dialog.begin(self, frame, options)
            case DialogKind.STEP_SEQUENCE:
                outcome = await self._run_step(dialog, frame, 0, None)
            case DialogKind.COMPOSITE:
                frame.inner_stack = DialogStack()
                child = self._child_context(dialog, frame)
                outcome = self._composite_outcome(
                    await child.begin_dialog(dialog.initial_dialog_id, frame.options)
                )

        return await self._apply(outcome)

    async def replace_dialog(self, dialog_id: str, options: Any = None) -> TurnResult:
        """
        Pops the current frame and begins 'dialog_id' in its place. The stack
        depth is unchanged and the new frame starts with empty values.
        """
        self._require_dialog(dialog_id)
        if self.stack.frames:
            popped = self.stack.frames.pop()
            logger.debug(f"Replacing '{popped.dialog_id}' with '{dialog_id}'")
        return await self.begin_dialog(dialog_id, options)

    async def end_dialog(self, result: Any = None) -> TurnResult:
        """
        Pops the current frame. If a parent remains, it resumes at its next step
        with 'result' as input. Otherwise the conversation's root ended.
        """
        if self.stack.frames:
            ended = self.stack.frames.pop()
            logger.debug(f"Ended '{ended.dialog_id}' (depth {self.depth})")

        parent = self.active_frame
        if parent is None:
            return TurnResult(TurnStatus.COMPLETE, result)

        self.context.raise_if_cancelled()
        dialog = self._require_dialog(parent.dialog_id)

        match dialog.kind:
            case DialogKind.STEP_SEQUENCE:
                outcome = await self._run_step(dialog, parent, parent.step_index + 1, result)
            case _:
                # Prompts and composites never have a child on this stack;
                # a frame left under one is finished as well.
                logger.warning(f"'{dialog.id}' resumed by a child on its own stack; ending it")
                outcome = StepResult.end_dialog(result)

        return await self._apply(outcome)

    async def cancel_all_dialogs(self) -> TurnResult:
        """Interrupts the conversation: drops every frame, nested ones included."""
        if not self.stack.frames:
            return TurnResult(TurnStatus.COMPLETE)

        logger.info(f"Cancelling {self.depth} active dialog(s)")
        self.stack.frames.clear()
        return TurnResult(TurnStatus.CANCELLED)

    # ==========================================================================
    # Step Outcome Resolution
    # ==========================================================================

    async def _apply(self, outcome: StepResult) -> TurnResult:
        """Translates a step's outcome into stack mutations."""
        match outcome.kind:
            case StepKind.END_OF_TURN:
                return self._suspended()

            case StepKind.PROMPT if outcome.dialog_id:
                return await self.begin_dialog(outcome.dialog_id, outcome.options)

            case StepKind.PROMPT:
                self.active_frame.pending_prompt_options = _prompt_options_to_storable(outcome.options)
                return self._suspended()

            case StepKind.CONTINUE:
                frame = self.active_frame
                dialog = self._require_dialog(frame.dialog_id)
                if dialog.kind != DialogKind.STEP_SEQUENCE:
                    raise TypeError(f"CONTINUE is only valid inside a step sequence, not '{dialog.id}'.")
                self.context.raise_if_cancelled()
                next_outcome = await self._run_step(dialog, frame, frame.step_index + 1, outcome.result)
                return await self._apply(next_outcome)

            case StepKind.END_DIALOG:
                return await self.end_dialog(outcome.result)

            case StepKind.BEGIN_DIALOG:
                return await self.begin_dialog(outcome.dialog_id, outcome.options)

            case StepKind.REPLACE_DIALOG:
                return await self.replace_dialog(outcome.dialog_id, outcome.options)

        raise ValueError(f"Unknown step outcome: {outcome.kind}")

    def _suspended(self) -> TurnResult:
        if self.depth > 1:
            return TurnResult(TurnStatus.ACTIVE_AND_WAITING)
        return TurnResult(TurnStatus.WAITING)

    # ==========================================================================
    # Standard Helpers
    # ==========================================================================

    def _require_dialog(self, dialog_id: str) -> Dialog:
        dialog = self.find_dialog(dialog_id)
        if dialog is None:
            raise DialogNotFoundError(dialog_id)
        return dialog

    async def _run_step(
        self, dialog: StepSequenceDialog, frame: Frame, index: int, previous_result: Any
    ) -> StepResult:
        # step_index only moves forward within a frame
        if index < len(dialog.steps):
            frame.step_index = index
        return await dialog.execute_step(self, frame, index, previous_result)

    def _child_context(self, dialog: CompositeDialog, frame: Frame) -> "DialogContext":
        if frame.inner_stack is None:
            frame.inner_stack = DialogStack()
        return DialogContext(dialog.registry, frame.inner_stack, self.context, parent=self)

    @staticmethod
    def _composite_outcome(inner: TurnResult) -> StepResult:
        # The composite ends with its sub-stack; otherwise it waits with it.
        if inner.status in (TurnStatus.COMPLETE, TurnStatus.CANCELLED):
            return StepResult.end_dialog(inner.value)
        return StepResult.end_of_turn()


def _to_storable(options: Any) -> Any:
    """Frames are persisted as JSON, so model options are stored as plain data."""
    if options is None:
        return None
    return to_jsonable_python(options)


def _prompt_options_to_storable(options: Any) -> Optional[dict]:
    if options is None:
        return None
    if isinstance(options, PromptOptions):
        return options.model_dump(mode="json", exclude_none=True)
    return PromptOptions.model_validate(options).model_dump(mode="json", exclude_none=True)
