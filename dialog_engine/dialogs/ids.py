"""Dialog ids shared between the bot and the dialogs that start each other."""

MAIN_DIALOG = "mainDialog"
GREETING_DIALOG = "greetingDialog"
CARDS_EXAMPLE_DIALOG = "cardsExampleDialog"
USER_STATE_EXAMPLE_DIALOG = "conversationUserStateExampleDialog"
WATERFALL_EXAMPLE_DIALOG = "waterfallDialogExample"
