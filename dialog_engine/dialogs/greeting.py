from ..domain.models import MessageFactory
from ..execution.dialogs import CompositeDialog, StepContext, StepSequenceDialog
from ..execution.prompts import TextPrompt
from ..execution.schemas.state_machine import StepResult
from ..schemas.prompts import PromptOptions
from ..state.models import GuestInfo
from .ids import GREETING_DIALOG


class GreetingDialog(CompositeDialog):
    """Asks for the user's name and returns it as a GuestInfo."""

    TEXT_PROMPT = "textPrompt"
    GUEST_KEY = "guest"

    def __init__(self, dialog_id: str = GREETING_DIALOG):
        super().__init__(dialog_id)
        self.add_dialog(TextPrompt(self.TEXT_PROMPT))
        self.add_dialog(StepSequenceDialog(dialog_id, [self.name_step, self.final_step]))

    async def name_step(self, step: StepContext) -> StepResult:
        step.values[self.GUEST_KEY] = GuestInfo().model_dump()
        return step.prompt(
            self.TEXT_PROMPT,
            PromptOptions(prompt=MessageFactory.text("What is your name?")),
        )

    async def final_step(self, step: StepContext) -> StepResult:
        name = step.result
        guest = GuestInfo.model_validate(step.values[self.GUEST_KEY])
        guest.name = name

        await step.send(f"Thank you {name}, lets get started!")

        # The bot stores the returned guest in user state
        return step.end_dialog(guest)
