"""
Main Menu

The root dialog of the bot. It shows the menu, starts the chosen example as
a child dialog, and loops back to the menu when the child ends, storing
whatever the child returned in user state.
"""

import logging

from ..cards import Template, render_attachment
from ..domain.models import MessageFactory
from ..execution.dialogs import StepContext, StepSequenceDialog
from ..execution.schemas.state_machine import StepResult
from ..state.accessors import BotAccessors
from ..state.models import Reservation
from .ids import CARDS_EXAMPLE_DIALOG, MAIN_DIALOG, USER_STATE_EXAMPLE_DIALOG, WATERFALL_EXAMPLE_DIALOG

logger = logging.getLogger(__name__)

SORRY_MESSAGE = "Sorry, I don't understand that command. Please choose an option from the list."

MENU_CARD = {
    "text": "Welcome to the Demo bot!",
    "subtitle": "Select an option below to get started:",
    "buttons": [
        {"title": "1. Cards Example", "value": "1"},
        {"title": "2. Conversation & User State Example", "value": "2"},
        {"title": "3. Waterfall Dialog Example", "value": "3"},
    ],
}


class MainMenuDialog(StepSequenceDialog):
    def __init__(self, accessors: BotAccessors, dialog_id: str = MAIN_DIALOG):
        super().__init__(dialog_id, [self.menu_step, self.handle_choice, self.loop_back])
        self.accessors = accessors

    async def menu_step(self, step: StepContext) -> StepResult:
        card = render_attachment(Template.HERO, MENU_CARD)
        await step.send(MessageFactory.attachment(card))
        return step.end_of_turn()

    async def handle_choice(self, step: StepContext) -> StepResult:
        # The bot stages a UserInfo at the start of every turn
        user_info = self.accessors.user_info.get(step.context)
        choice = step.result.strip().lower() if isinstance(step.result, str) else None

        match choice:
            case "1" | "cards example":
                return step.begin_dialog(CARDS_EXAMPLE_DIALOG, user_info.guest)
            case "2" | "conversation & user state example":
                return step.begin_dialog(USER_STATE_EXAMPLE_DIALOG)
            case "3" | "waterfall dialog example":
                return step.begin_dialog(WATERFALL_EXAMPLE_DIALOG)
            case _:
                logger.info(f"Unrecognized main menu choice: {step.result!r}")
                await step.send(SORRY_MESSAGE)
                return step.replace_dialog(self.id)

    async def loop_back(self, step: StepContext) -> StepResult:
        if isinstance(step.result, Reservation):
            user_info = self.accessors.user_info.get(step.context)
            user_info.table = step.result
            self.accessors.user_info.set(step.context, user_info)
            logger.info(f"Stored reservation for {step.context.activity.from_property.id}")

        return step.replace_dialog(self.id)
