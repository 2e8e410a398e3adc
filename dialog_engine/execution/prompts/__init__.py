from .base import Prompt, PromptRecognizerResult, PromptValidator, PromptValidatorContext
from .recognizers import ChoicePrompt, ConfirmPrompt, DateTimePrompt, NumberPrompt, TextPrompt

__all__ = [
    "Prompt",
    "PromptRecognizerResult",
    "PromptValidator",
    "PromptValidatorContext",
    "ChoicePrompt",
    "ConfirmPrompt",
    "DateTimePrompt",
    "NumberPrompt",
    "TextPrompt",
]
