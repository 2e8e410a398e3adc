"""
Concrete Prompts

Deterministic recognizers for the input types the demo dialogs ask for.
There is no natural-language understanding here: numbers are digits,
choices are matched by value, synonym or position, and dates are ISO-8601.
"""

import re
from datetime import date, datetime, time
from typing import List, Optional, Type

from pydantic import TypeAdapter, ValidationError

from ...domain.models import Activity
from ...schemas.prompts import Choice, DateTimeResolution, FoundChoice, PromptOptions
from .base import Prompt, PromptRecognizerResult, PromptValidator

_NUMBER = re.compile(r"[-+]?\d+(?:\.\d+)?")
_ISO_DATETIME = re.compile(r"\b\d{4}-\d{2}-\d{2}(?:[T ]\d{1,2}:\d{2}(?::\d{2})?)?")
_CLOCK_TIME = re.compile(r"\b(\d{1,2}):(\d{2})(?::(\d{2}))?\b")

_YES = {"yes", "y", "yep", "yeah", "sure", "ok", "okay", "true"}
_NO = {"no", "n", "nope", "nah", "false"}

_datetime_adapter = TypeAdapter(datetime)
_date_adapter = TypeAdapter(date)
_time_adapter = TypeAdapter(time)


def _message_text(activity: Activity) -> str:
    if activity.text is not None:
        return activity.text.strip()
    # Card postbacks may carry the answer in 'value' instead of 'text'
    if isinstance(activity.value, (str, int, float)):
        return str(activity.value).strip()
    return ""


class TextPrompt(Prompt[str]):
    def recognize(self, activity: Activity, options: PromptOptions) -> PromptRecognizerResult[str]:
        text = _message_text(activity)
        if not text:
            return PromptRecognizerResult()
        return PromptRecognizerResult(succeeded=True, value=text)


class NumberPrompt(Prompt[float]):
    """Recognizes the first number in the message. With number_type=int, fractions are rejected."""

    def __init__(
        self,
        dialog_id: str,
        validator: Optional[PromptValidator] = None,
        number_type: Type = float,
    ):
        super().__init__(dialog_id, validator)
        if number_type not in (int, float):
            raise ValueError("number_type must be int or float.")
        self.number_type = number_type

    def recognize(self, activity: Activity, options: PromptOptions) -> PromptRecognizerResult:
        match = _NUMBER.search(_message_text(activity))
        if not match:
            return PromptRecognizerResult()

        number = float(match.group())
        if self.number_type is int:
            if not number.is_integer():
                return PromptRecognizerResult()
            return PromptRecognizerResult(succeeded=True, value=int(number))
        return PromptRecognizerResult(succeeded=True, value=number)


class ChoicePrompt(Prompt[FoundChoice]):
    """
    Picks one of options.choices. Matches, in order: exact value, synonym,
    1-based position ("2"), then a choice value appearing as a word in the text.
    The prompt text is followed by an inline list of the choices.
    """

    def __init__(
        self,
        dialog_id: str,
        validator: Optional[PromptValidator] = None,
        inline_choices: bool = True,
    ):
        super().__init__(dialog_id, validator)
        self.inline_choices = inline_choices

    def recognize(self, activity: Activity, options: PromptOptions) -> PromptRecognizerResult[FoundChoice]:
        text = _message_text(activity).lower()
        if not text or not options.choices:
            return PromptRecognizerResult()

        found = _match_choice(text, options.choices)
        if found is None:
            return PromptRecognizerResult()
        return PromptRecognizerResult(succeeded=True, value=found)

    def decorate_prompt(self, activity: Activity, options: PromptOptions) -> Activity:
        if not self.inline_choices or not options.choices:
            return activity
        listing = _inline_list([c.value for c in options.choices])
        text = f"{activity.text} {listing}" if activity.text else listing
        return activity.model_copy(update={"text": text})


class ConfirmPrompt(Prompt[bool]):
    def recognize(self, activity: Activity, options: PromptOptions) -> PromptRecognizerResult[bool]:
        words = set(re.findall(r"[a-z]+", _message_text(activity).lower()))
        said_yes = bool(words & _YES)
        said_no = bool(words & _NO)
        if said_yes == said_no:
            return PromptRecognizerResult()
        return PromptRecognizerResult(succeeded=True, value=said_yes)

    def decorate_prompt(self, activity: Activity, options: PromptOptions) -> Activity:
        text = f"{activity.text} (yes or no)" if activity.text else "(yes or no)"
        return activity.model_copy(update={"text": text})


class DateTimePrompt(Prompt[List[DateTimeResolution]]):
    """
    Recognizes ISO-8601 dates ("2024-01-01"), datetimes ("2024-01-01T19:00",
    "2024-01-01 19:00") and clock times ("19:00"). Every match in the message
    becomes one DateTimeResolution.
    """

    def recognize(self, activity: Activity, options: PromptOptions) -> PromptRecognizerResult:
        text = _message_text(activity)
        resolutions = []

        for token in _ISO_DATETIME.findall(text):
            resolution = _resolve_datetime(token)
            if resolution:
                resolutions.append(resolution)

        # Clock times that are not part of a full datetime
        remainder = _ISO_DATETIME.sub(" ", text)
        for hours, minutes, seconds in _CLOCK_TIME.findall(remainder):
            resolution = _resolve_time(hours, minutes, seconds)
            if resolution:
                resolutions.append(resolution)

        if not resolutions:
            return PromptRecognizerResult()
        return PromptRecognizerResult(succeeded=True, value=resolutions)


# ==============================================================================
# Helpers
# ==============================================================================

def _match_choice(text: str, choices: List[Choice]) -> Optional[FoundChoice]:
    for index, choice in enumerate(choices):
        if text == choice.value.lower():
            return FoundChoice(value=choice.value, index=index)
        for synonym in choice.synonyms:
            if text == synonym.lower():
                return FoundChoice(value=choice.value, index=index, synonym=synonym)

    if text.isdigit() and 1 <= int(text) <= len(choices):
        index = int(text) - 1
        return FoundChoice(value=choices[index].value, index=index, synonym=text)

    for index, choice in enumerate(choices):
        if re.search(rf"\b{re.escape(choice.value.lower())}\b", text):
            return FoundChoice(value=choice.value, index=index, score=0.8)
    return None


def _inline_list(values: List[str]) -> str:
    items = [f"({i}) {value}" for i, value in enumerate(values, start=1)]
    if len(items) == 1:
        return items[0]
    if len(items) == 2:
        return f"{items[0]} or {items[1]}"
    return ", ".join(items[:-1]) + f", or {items[-1]}"


def _resolve_datetime(token: str) -> Optional[DateTimeResolution]:
    try:
        if len(token) == 10:
            parsed_date = _date_adapter.validate_python(token)
            return DateTimeResolution(value=parsed_date.isoformat(), timex="date")

        date_part, _, time_part = token.replace("T", " ").partition(" ")
        hours, _, rest = time_part.partition(":")
        parsed = _datetime_adapter.validate_python(f"{date_part}T{hours.zfill(2)}:{rest}")
    except ValidationError:
        return None
    return DateTimeResolution(value=_format_datetime(parsed), timex="datetime")


def _resolve_time(hours: str, minutes: str, seconds: str) -> Optional[DateTimeResolution]:
    clock = f"{hours.zfill(2)}:{minutes}" + (f":{seconds}" if seconds else "")
    try:
        parsed = _time_adapter.validate_python(clock)
    except ValidationError:
        return None
    timespec = "seconds" if parsed.second else "minutes"
    return DateTimeResolution(value=parsed.isoformat(timespec=timespec), timex="time")


def _format_datetime(value: datetime) -> str:
    if value.second or value.microsecond:
        return value.isoformat()
    return value.isoformat(timespec="minutes")
