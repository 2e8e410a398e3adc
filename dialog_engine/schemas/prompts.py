"""
Schemas - Prompt Option and Recognition Models

This module defines the Pydantic models a step hands to a Prompt dialog
(PromptOptions) and the typed values prompts hand back (FoundChoice,
DateTimeResolution). PromptOptions are persisted on the prompt's frame while
it waits for input, so everything here must round-trip through JSON.
"""
from typing import List, Optional

from pydantic import BaseModel, Field

from ..domain.models import Activity


class Choice(BaseModel):
    """
    One selectable option of a ChoicePrompt.

    Attributes:
        value: The canonical value returned when this choice is picked.
        synonyms: Other spellings the user may type for this choice.
    """
    value: str
    synonyms: List[str] = Field(default_factory=list)


class PromptOptions(BaseModel):
    """
    What a prompt should say, and how to say it again after a bad answer.
    """
    prompt: Optional[Activity] = Field(
        None,
        description="The activity sent when the prompt starts."
    )
    retry_prompt: Optional[Activity] = Field(
        None,
        description="Sent after input is rejected. Falls back to 'prompt' when missing."
    )
    choices: List[Choice] = Field(
        default_factory=list,
        description="Options for ChoicePrompt. Ignored by other prompts."
    )


class FoundChoice(BaseModel):
    """The result of a ChoicePrompt."""
    value: str
    index: int
    score: float = 1.0
    synonym: Optional[str] = None


class DateTimeResolution(BaseModel):
    """
    One interpretation of a date/time answer.

    value holds an ISO-8601 string; timex classifies it as "datetime",
    "date" or "time".
    """
    value: str
    timex: str
