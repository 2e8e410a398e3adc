"""
Schemas - Prompt Option and Recognition Models

Defines the Pydantic models exchanged between steps and Prompt dialogs.
"""

from dialog_engine.schemas.prompts import (
    Choice,
    DateTimeResolution,
    FoundChoice,
    PromptOptions,
)

__all__ = [
    "Choice",
    "DateTimeResolution",
    "FoundChoice",
    "PromptOptions",
]
