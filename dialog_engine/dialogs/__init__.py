"""
Demo Dialogs

The dialogs of the demo bot. build_dialog_registry() wires them into the root
registry the DialogEngine is built around.
"""

from datetime import datetime
from typing import Callable

from ..execution.dialogs import DialogRegistry
from ..state.accessors import BotAccessors
from .cards import CardsExampleDialog
from .greeting import GreetingDialog
from .ids import (
    CARDS_EXAMPLE_DIALOG,
    GREETING_DIALOG,
    MAIN_DIALOG,
    USER_STATE_EXAMPLE_DIALOG,
    WATERFALL_EXAMPLE_DIALOG,
)
from .main_menu import MainMenuDialog
from .reservation import ReservationDialog
from .user_state import UserStateExampleDialog


def build_dialog_registry(
    accessors: BotAccessors,
    clock: Callable[[], datetime] = datetime.now,
) -> DialogRegistry:
    return (
        DialogRegistry()
        .add(MainMenuDialog(accessors))
        .add(GreetingDialog())
        .add(CardsExampleDialog())
        .add(UserStateExampleDialog(accessors))
        .add(ReservationDialog(clock=clock))
    )


__all__ = [
    "CARDS_EXAMPLE_DIALOG",
    "GREETING_DIALOG",
    "MAIN_DIALOG",
    "USER_STATE_EXAMPLE_DIALOG",
    "WATERFALL_EXAMPLE_DIALOG",
    "CardsExampleDialog",
    "GreetingDialog",
    "MainMenuDialog",
    "ReservationDialog",
    "UserStateExampleDialog",
    "build_dialog_registry",
]
