"""
Cards Example

A menu of rich cards. Picking one shows it; the next message loops back to
the menu. "Go back" returns to the caller.
"""

import logging

from ..cards import Template, render_attachment
from ..domain.models import MessageFactory
from ..execution.dialogs import CompositeDialog, StepContext, StepSequenceDialog
from ..execution.schemas.state_machine import StepResult
from .ids import CARDS_EXAMPLE_DIALOG

logger = logging.getLogger(__name__)

SORRY_MESSAGE = "Sorry, I don't understand that command. Please choose an option from the list."

BOT_IMAGE = "https://dev.botframework.com/Client/Images/ChatBot-BotFramework.png"
ICONS = "https://dev.botframework.com/Client/Images/learn-more-icons"

MENU_CARD = {
    "title": "This is the title of the hero card.",
    "subtitle": "This is the subtitle of the hero card.",
    "text": "This is an example of a Hero Card. Select an option to view other card options.",
    "images": [{"url": BOT_IMAGE, "alt": "Example Image"}],
    "buttons": [
        {"title": "1. Adaptive Card", "value": "1"},
        {"title": "2. Hero Card", "value": "2"},
        {"title": "3. Thumbnail Card", "value": "3"},
        {"title": "4. Carousel Card", "value": "4"},
        {"title": "5. Go Back", "value": "5"},
    ],
}

LOCATIONS_CARD = {
    "title": "Locations",
    "text": "Pick the restaurant closest to you.",
    "buttons": [
        {"title": "Redmond", "value": {"location": "Redmond"}},
        {"title": "Bellevue", "value": {"location": "Bellevue"}},
        {"title": "Seattle", "value": {"location": "Seattle"}},
    ],
}

THUMBNAIL_CARD = {
    "title": "Thumbnail Card Title",
    "subtitle": "Subtitle",
    "text": "Learn more about how to build dialogs with your bot.",
    "images": [{"url": f"{ICONS}/luis.png", "alt": "Dialogs"}],
    "buttons": [{"title": "Learn More", "value": "learn more"}],
}


class CardsExampleDialog(CompositeDialog):
    def __init__(self, dialog_id: str = CARDS_EXAMPLE_DIALOG):
        super().__init__(dialog_id)
        self.add_dialog(
            StepSequenceDialog(dialog_id, [self.menu_step, self.handle_choice, self.loop_back])
        )

    async def menu_step(self, step: StepContext) -> StepResult:
        card = render_attachment(Template.HERO, MENU_CARD)
        await step.send(MessageFactory.attachment(card))
        return step.end_of_turn()

    async def handle_choice(self, step: StepContext) -> StepResult:
        choice = step.result.strip().lower() if isinstance(step.result, str) else None

        match choice:
            case "1" | "adaptive card":
                await step.send(
                    "This is an example of an Adaptive Card. Adaptive cards can be "
                    "customized. View more at https://adaptivecards.io"
                )
                card = render_attachment(Template.ADAPTIVE, LOCATIONS_CARD)
                await step.send(MessageFactory.attachment(card))
            case "2" | "hero card":
                card = render_attachment(Template.HERO, self._hero_card(step))
                await step.send(MessageFactory.attachment(card))
            case "3" | "thumbnail card":
                card = render_attachment(Template.THUMBNAIL, THUMBNAIL_CARD)
                await step.send(MessageFactory.attachment(card))
            case "4" | "carousel card":
                slides = [
                    render_attachment(Template.HERO, {
                        "title": f"Title {n}",
                        "text": f"Text {n}",
                        "images": [{"url": url}],
                    })
                    for n, url in enumerate([f"{ICONS}/bing_speech_api.png", f"{ICONS}/luis.png"], start=1)
                ]
                await step.send(MessageFactory.carousel(slides))
            case "5" | "go back":
                return step.end_dialog()
            case _:
                logger.info(f"Unrecognized cards menu choice: {step.result!r}")
                await step.send(SORRY_MESSAGE)
                return step.replace_dialog(self.id, step.options)

        return step.end_of_turn()

    async def loop_back(self, step: StepContext) -> StepResult:
        if step.context.activity.value is not None:
            await step.send(f"You Entered: {step.context.activity.value}")
        await step.send("Try another example")
        return step.replace_dialog(self.id, step.options)

    @staticmethod
    def _hero_card(step: StepContext) -> dict:
        # Options carry the guest profile the main menu began us with
        guest = step.options or {}
        name = guest.get("name") if isinstance(guest, dict) else None
        return {
            "title": f"Hello {name}!" if name else "This is the title of the hero card.",
            "subtitle": "This is the subtitle of the hero card.",
            "text": "Hero cards have a single large image and a few buttons.",
            "images": [{"url": BOT_IMAGE, "alt": "Example Image"}],
            "buttons": [
                {"title": "Call", "value": "+11234567890"},
                {"title": "Open Url", "value": "https://dev.botframework.com"},
            ],
        }
