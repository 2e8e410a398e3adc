"""
Conversation & User State Example

Shows that user state outlives the conversation: the name is only asked once,
and the previous rating is remembered.
"""

from ..domain.models import MessageFactory
from ..execution.dialogs import CompositeDialog, StepContext, StepSequenceDialog
from ..execution.prompts import ChoicePrompt, TextPrompt
from ..execution.schemas.state_machine import StepResult
from ..schemas.prompts import Choice, PromptOptions
from ..state.accessors import BotAccessors
from ..state.models import UserInfo
from .ids import USER_STATE_EXAMPLE_DIALOG

RATINGS = ["1", "2", "3", "4", "5"]


class UserStateExampleDialog(CompositeDialog):
    NAME_PROMPT = "namePrompt"
    RATING_PROMPT = "ratingPrompt"

    def __init__(self, accessors: BotAccessors, dialog_id: str = USER_STATE_EXAMPLE_DIALOG):
        super().__init__(dialog_id)
        self.accessors = accessors
        self.add_dialog(TextPrompt(self.NAME_PROMPT))
        self.add_dialog(ChoicePrompt(self.RATING_PROMPT))
        self.add_dialog(
            StepSequenceDialog(dialog_id, [self.name_step, self.rating_step, self.final_step])
        )

    def _user_info(self, step: StepContext) -> UserInfo:
        return self.accessors.user_info.get(step.context, UserInfo)

    async def name_step(self, step: StepContext) -> StepResult:
        user_info = self._user_info(step)
        if user_info.guest.name:
            await step.send(
                f"Great, we already have your name {user_info.guest.name}! Just one more question."
            )
            return step.next()

        return step.prompt(
            self.NAME_PROMPT,
            PromptOptions(prompt=MessageFactory.text("What is your name?")),
        )

    async def rating_step(self, step: StepContext) -> StepResult:
        user_info = self._user_info(step)
        if not user_info.guest.name and isinstance(step.result, str):
            user_info.guest.name = step.result
            self.accessors.user_info.set(step.context, user_info)

        message = "How would you rate this Bot?"
        if user_info.guest.rating is not None:
            message += f" You gave it a {user_info.guest.rating} last time FYI."

        return step.prompt(
            self.RATING_PROMPT,
            PromptOptions(
                prompt=MessageFactory.text(message),
                choices=[Choice(value=rating) for rating in RATINGS],
            ),
        )

    async def final_step(self, step: StepContext) -> StepResult:
        user_info = self._user_info(step)
        user_info.guest.rating = step.result.value
        self.accessors.user_info.set(step.context, user_info)

        await step.send(
            f"Thanks {user_info.guest.name} for your feedback and rating of {user_info.guest.rating}."
        )
        return step.end_dialog()
