"""
Waterfall Example - Dinner Reservation

A composite dialog that collects a party size, a location and a date through
three validated prompts and returns a Reservation to its caller.
"""

import logging
from datetime import date, datetime, time, timedelta
from typing import Callable, Optional

from ..domain.models import MessageFactory
from ..execution.dialogs import CompositeDialog, StepContext, StepSequenceDialog
from ..execution.prompts import ChoicePrompt, DateTimePrompt, NumberPrompt, PromptValidatorContext
from ..execution.schemas.state_machine import StepResult
from ..schemas.prompts import Choice, DateTimeResolution, PromptOptions
from ..state.models import Reservation
from .ids import WATERFALL_EXAMPLE_DIALOG

logger = logging.getLogger(__name__)

MIN_PARTY_SIZE = 6
MAX_PARTY_SIZE = 20
LOCATIONS = ["Redmond", "Bellevue", "Seattle"]
MIN_LEAD_TIME = timedelta(hours=1)


class ReservationDialog(CompositeDialog):
    PARTY_SIZE_PROMPT = "partyPrompt"
    LOCATION_PROMPT = "locationPrompt"
    DATE_PROMPT = "reservationDatePrompt"

    def __init__(
        self,
        dialog_id: str = WATERFALL_EXAMPLE_DIALOG,
        clock: Callable[[], datetime] = datetime.now,
    ):
        super().__init__(dialog_id)
        self.clock = clock
        self.add_dialog(NumberPrompt(self.PARTY_SIZE_PROMPT, self.validate_party_size, number_type=int))
        self.add_dialog(ChoicePrompt(self.LOCATION_PROMPT))
        self.add_dialog(DateTimePrompt(self.DATE_PROMPT, self.validate_date))
        self.add_dialog(
            StepSequenceDialog(
                dialog_id,
                [self.party_size_step, self.location_step, self.date_step, self.acknowledge_step],
            )
        )

    # ==========================================================================
    # Steps
    # ==========================================================================

    async def party_size_step(self, step: StepContext) -> StepResult:
        await step.send("Welcome to the Waterfall Dialog Example!")
        await step.send("Let's go through an example of making a dinner reservation...")
        return step.prompt(
            self.PARTY_SIZE_PROMPT,
            PromptOptions(
                prompt=MessageFactory.text("How many people is the reservation for?"),
                retry_prompt=MessageFactory.text("How large is your party?"),
            ),
        )

    async def location_step(self, step: StepContext) -> StepResult:
        step.values["size"] = step.result
        return step.prompt(
            self.LOCATION_PROMPT,
            PromptOptions(
                prompt=MessageFactory.text("Please choose a location."),
                retry_prompt=MessageFactory.text("Sorry, please choose a location from the list."),
                choices=[Choice(value=location) for location in LOCATIONS],
            ),
        )

    async def date_step(self, step: StepContext) -> StepResult:
        step.values["location"] = step.result.value
        return step.prompt(
            self.DATE_PROMPT,
            PromptOptions(
                prompt=MessageFactory.text("Great. When will the reservation be for?"),
                retry_prompt=MessageFactory.text("What time should we make your reservation for?"),
            ),
        )

    async def acknowledge_step(self, step: StepContext) -> StepResult:
        resolution: DateTimeResolution = step.result[0]
        await step.send("Thank you. We will confirm your reservation shortly.")

        reservation = Reservation(
            size=step.values["size"],
            date=resolution.value,
            location=step.values.get("location"),
        )
        logger.info(f"Reservation collected: {reservation.size} people at {reservation.location} on {reservation.date}")
        return step.end_dialog(reservation)

    # ==========================================================================
    # Validators
    # ==========================================================================

    async def validate_party_size(self, prompt: PromptValidatorContext) -> bool:
        if not prompt.recognized.succeeded:
            await prompt.context.send_activity(
                "I'm sorry, I do not understand. Please enter the number of people in your party."
            )
            return False

        if not MIN_PARTY_SIZE <= prompt.recognized.value <= MAX_PARTY_SIZE:
            await prompt.context.send_activity(
                f"Sorry, we can only take reservations for parties of {MIN_PARTY_SIZE} to {MAX_PARTY_SIZE}."
            )
            return False
        return True

    async def validate_date(self, prompt: PromptValidatorContext) -> bool:
        """Accepts the first resolution at least an hour from now, and keeps only that one."""
        if not prompt.recognized.succeeded:
            await prompt.context.send_activity(
                "I'm sorry, I do not understand. Please enter the date or time for your reservation."
            )
            return False

        now = self.clock()
        earliest = now + MIN_LEAD_TIME
        for resolution in prompt.recognized.value:
            moment = _resolution_moment(resolution, now)
            if moment is not None and moment >= earliest:
                prompt.recognized.value = [resolution]
                return True

        await prompt.context.send_activity(
            "I'm sorry, we can't take reservations earlier than an hour from now."
        )
        return False


def _resolution_moment(resolution: DateTimeResolution, now: datetime) -> Optional[datetime]:
    """The point in time a resolution names. Clock times are taken as today."""
    try:
        match resolution.timex:
            case "datetime":
                return datetime.fromisoformat(resolution.value)
            case "date":
                return datetime.combine(date.fromisoformat(resolution.value), time.min)
            case "time":
                return datetime.combine(now.date(), time.fromisoformat(resolution.value))
    except ValueError:
        logger.warning(f"Unparseable date resolution: {resolution}")
    return None

