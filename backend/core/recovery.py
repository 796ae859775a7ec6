"""Recovery strategies: persona-voiced messages and next actions per error code."""
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Tuple

from intent.models import IntentType


class RecoveryAction(str, Enum):
    RETRY = "RETRY"
    USE_TEXT_INPUT = "USE_TEXT_INPUT"
    SHOW_SUGGESTIONS = "SHOW_SUGGESTIONS"
    START_ROUND = "START_ROUND"
    SHOW_HELP = "SHOW_HELP"
    DISMISS = "DISMISS"


@dataclass(frozen=True)
class RecoveryStrategy:
    user_message: str
    actions: Tuple[RecoveryAction, ...]
    suggested_intents: Tuple[IntentType, ...] = field(default_factory=tuple)
    recoverable: bool = True


# Offered when the model cannot be reached; all resolvable without it
_OFFLINE_SUGGESTIONS = (IntentType.SCORE_ENTRY, IntentType.STATS_LOOKUP, IntentType.HELP_REQUEST)

_STRATEGIES: Dict[str, RecoveryStrategy] = {
    "INPUT_EMPTY": RecoveryStrategy(
        "I didn't catch that. Say or type something and I'll take it from there.",
        (RecoveryAction.USE_TEXT_INPUT, RecoveryAction.SHOW_HELP),
        recoverable=False,
    ),
    "CLASSIFICATION_TIMEOUT": RecoveryStrategy(
        "That's taking longer than expected. Want to try that again?",
        (RecoveryAction.RETRY, RecoveryAction.SHOW_SUGGESTIONS),
        _OFFLINE_SUGGESTIONS,
    ),
    "CLASSIFICATION_NETWORK_FAILURE": RecoveryStrategy(
        "I'm having trouble connecting right now. Give it another go, or pick one of these.",
        (RecoveryAction.RETRY, RecoveryAction.SHOW_SUGGESTIONS),
        _OFFLINE_SUGGESTIONS,
    ),
    "SERVICE_UNAVAILABLE": RecoveryStrategy(
        "My caddy brain is taking a breather. Try again in a moment.",
        (RecoveryAction.RETRY, RecoveryAction.SHOW_SUGGESTIONS),
        _OFFLINE_SUGGESTIONS,
    ),
    "INVALID_MODEL_RESPONSE": RecoveryStrategy(
        "I didn't quite get that one. Mind saying it another way?",
        (RecoveryAction.RETRY, RecoveryAction.USE_TEXT_INPUT),
    ),
    "NO_ACTIVE_SESSION": RecoveryStrategy(
        "We'll need a round going for that. Want to start one?",
        (RecoveryAction.START_ROUND, RecoveryAction.DISMISS),
        (IntentType.ROUND_START,),
    ),
}

_UNKNOWN = RecoveryStrategy(
    "Something went sideways on my end. Let's try that again.",
    (RecoveryAction.RETRY, RecoveryAction.DISMISS),
)


def get_recovery_strategy(error_code: str) -> RecoveryStrategy:
    return _STRATEGIES.get(error_code, _UNKNOWN)
