"""ClassificationResult: closed union of the four user-facing outcomes.

Consumers dispatch with ``match`` and finish with ``assert_never`` so a new
variant cannot slip through unhandled.
"""
from dataclasses import dataclass
from typing import Tuple, Union

from intent.models import IntentType, ParsedIntent, RoutingTarget

MAX_SUGGESTIONS = 3

EMPTY_INPUT_MESSAGE = "say or type something"
CLASSIFICATION_FAILED_MESSAGE = "classification failed"


@dataclass(frozen=True)
class IntentSuggestion:
    intent_type: IntentType
    label: str
    description: str = ""


def _check_clarification(message: str, suggestions: Tuple[IntentSuggestion, ...]) -> None:
    if not message or not message.strip():
        raise ValueError("clarification message cannot be blank")
    if not (1 <= len(suggestions) <= MAX_SUGGESTIONS):
        raise ValueError(
            f"clarification needs 1-{MAX_SUGGESTIONS} suggestions, got {len(suggestions)}"
        )


@dataclass(frozen=True)
class Route:
    intent: ParsedIntent
    target: RoutingTarget


@dataclass(frozen=True)
class Confirm:
    intent: ParsedIntent
    message: str

    def __post_init__(self):
        if not self.message or not self.message.strip():
            raise ValueError("confirmation message cannot be blank")


@dataclass(frozen=True)
class Clarify:
    original_input: str
    message: str
    suggestions: Tuple[IntentSuggestion, ...]
    parsed_intent: ParsedIntent | None = None

    def __post_init__(self):
        object.__setattr__(self, "suggestions", tuple(self.suggestions))
        _check_clarification(self.message, self.suggestions)


@dataclass(frozen=True)
class Error:
    message: str
    error_code: str = "CLASSIFICATION_FAILED"
    recoverable: bool = True


ClassificationResult = Union[Route, Confirm, Clarify, Error]
