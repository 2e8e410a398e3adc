"""
Prompt - Collect and Validate One Typed Value

Protocol:
1. begin: send the prompt text and suspend. The input of the current turn
   is NOT consumed.
2. continue (next turn): recognize the activity, then run the validator.
   - valid: end the dialog, returning the typed value to the parent step.
   - invalid: re-send (the validator's own message, or the retry prompt) and
     suspend again with the same options. There is no retry ceiling.
     The stack shape, step_index and options stay as they were; only the
     frame's values["attempt_count"] moves, so validators see it next turn.

Recognition failures never raise: they are reported through
PromptRecognizerResult.succeeded and handled here.
"""

import inspect
import logging
from abc import abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Generic, Optional, TypeVar, Union

from ...domain.models import Activity
from ...schemas.prompts import PromptOptions
from ...state.models import Frame
from ..context import TurnContext
from ..dialogs import Dialog, DialogKind
from ..schemas.state_machine import StepResult

if TYPE_CHECKING:
    from ..engine import DialogContext

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class PromptRecognizerResult(Generic[T]):
    succeeded: bool = False
    value: Optional[T] = None


@dataclass
class PromptValidatorContext(Generic[T]):
    """
    Everything a validator needs to accept or reject an answer.

    Attributes:
        context: The current turn. Validators may send their own retry message.
        recognized: What the prompt's recognizer made of the input.
        options: The options the prompt was started with.
        attempt_count: How many answers (including this one) the prompt has seen.
    """
    context: TurnContext
    recognized: PromptRecognizerResult[T]
    options: PromptOptions
    attempt_count: int


PromptValidator = Callable[[PromptValidatorContext], Union[bool, Awaitable[bool]]]


class Prompt(Dialog, Generic[T]):
    kind = DialogKind.PROMPT

    ATTEMPT_COUNT = "attempt_count"

    def __init__(self, dialog_id: str, validator: Optional[PromptValidator] = None):
        super().__init__(dialog_id)
        self.validator = validator

    async def begin(self, dc: "DialogContext", frame: Frame, options: Any) -> StepResult:
        options = _coerce_options(options)
        frame.values[self.ATTEMPT_COUNT] = 0
        await self.on_prompt(dc.context, options, is_retry=False)
        return StepResult.prompt(None, options)

    async def continue_prompt(self, dc: "DialogContext", frame: Frame) -> StepResult:
        context = dc.context
        options = _coerce_options(frame.pending_prompt_options)

        # Only messages can answer a prompt. Anything else leaves it waiting.
        if not context.is_message:
            return StepResult.prompt(None, options)

        attempt_count = frame.values.get(self.ATTEMPT_COUNT, 0) + 1
        frame.values[self.ATTEMPT_COUNT] = attempt_count

        recognized = self.recognize(context.activity, options)
        sent_before = len(context.sent_activities)

        if await self._validate(context, recognized, options, attempt_count):
            logger.debug(f"Prompt '{self.id}' accepted input on attempt {attempt_count}")
            return StepResult.end_dialog(recognized.value)

        logger.debug(f"Prompt '{self.id}' rejected input on attempt {attempt_count}")
        if len(context.sent_activities) == sent_before:
            await self.on_prompt(context, options, is_retry=True)
        return StepResult.prompt(None, options)

    async def on_prompt(self, context: TurnContext, options: PromptOptions, is_retry: bool):
        activity = options.prompt
        if is_retry and options.retry_prompt is not None:
            activity = options.retry_prompt
        if activity is not None:
            await context.send_activity(self.decorate_prompt(activity, options))

    def decorate_prompt(self, activity: Activity, options: PromptOptions) -> Activity:
        """Hook for prompts that add to the prompt text (e.g. a list of choices)."""
        return activity

    @abstractmethod
    def recognize(self, activity: Activity, options: PromptOptions) -> PromptRecognizerResult[T]:
        pass

    async def _validate(
        self,
        context: TurnContext,
        recognized: PromptRecognizerResult[T],
        options: PromptOptions,
        attempt_count: int,
    ) -> bool:
        if self.validator is None:
            return recognized.succeeded

        verdict = self.validator(
            PromptValidatorContext(
                context=context,
                recognized=recognized,
                options=options,
                attempt_count=attempt_count,
            )
        )
        if inspect.isawaitable(verdict):
            verdict = await verdict
        return bool(verdict)


def _coerce_options(options: Any) -> PromptOptions:
    if options is None:
        return PromptOptions()
    if isinstance(options, PromptOptions):
        return options
    return PromptOptions.model_validate(options)
