"""Clarification Generator: ranked intent suggestions for low-confidence input.

Suggestions come from a fixed cue table (lexical cue -> candidate intents).
A parsed intent that was close (>= CLARIFY_INCLUSION_THRESHOLD) is front-loaded.
Always yields between 1 and MAX_SUGGESTIONS suggestions.
"""
import logging
import re
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from intent.models import CLARIFY_INCLUSION_THRESHOLD, IntentType, ParsedIntent
from intent.registry import get_schema
from intent.results import MAX_SUGGESTIONS, IntentSuggestion, _check_clarification

logger = logging.getLogger(__name__)

SHORT_INPUT_WORDS = 3


@dataclass(frozen=True)
class CueGroup:
    key: str
    cues: frozenset
    intents: Tuple[IntentType, ...]


# Ordered by priority; ties between groups resolve to the earlier one
CUE_TABLE: Tuple[CueGroup, ...] = (
    CueGroup(
        "physical",
        frozenset({"feel", "feels", "feeling", "pain", "sore", "tired", "hurt", "hurts",
                   "ready", "stiff", "body", "back", "energy"}),
        (IntentType.RECOVERY_CHECK, IntentType.PATTERN_QUERY, IntentType.STATS_LOOKUP),
    ),
    CueGroup(
        "problem",
        frozenset({"off", "wrong", "bad", "problem", "issue", "fix", "miss", "missing",
                   "slice", "hook", "push", "pull", "struggling"}),
        (IntentType.CLUB_ADJUSTMENT, IntentType.PATTERN_QUERY, IntentType.DRILL_REQUEST),
    ),
    CueGroup(
        "equipment",
        frozenset({"club", "clubs", "bag", "equipment", "distance", "distances", "yardage",
                   "driver", "iron", "wood", "hybrid", "wedge", "putter", "long", "short"}),
        (IntentType.CLUB_ADJUSTMENT, IntentType.EQUIPMENT_INFO, IntentType.STATS_LOOKUP),
    ),
    CueGroup(
        "scoring",
        frozenset({"score", "scores", "round", "play", "playing", "game", "hole", "par",
                   "birdie", "bogey", "eagle"}),
        (IntentType.SCORE_ENTRY, IntentType.ROUND_START, IntentType.STATS_LOOKUP),
    ),
    CueGroup(
        "advice",
        frozenset({"what", "should", "help", "advice", "recommend", "how", "play", "shot"}),
        (IntentType.SHOT_RECOMMENDATION, IntentType.HELP_REQUEST, IntentType.DRILL_REQUEST),
    ),
    CueGroup(
        "conditions",
        frozenset({"wind", "windy", "rain", "raining", "weather", "cold", "hot", "forecast"}),
        (IntentType.WEATHER_CHECK, IntentType.SHOT_RECOMMENDATION, IntentType.COURSE_INFO),
    ),
)

DEFAULT_SUGGESTIONS: Tuple[IntentType, ...] = (
    IntentType.SHOT_RECOMMENDATION, IntentType.HELP_REQUEST, IntentType.STATS_LOOKUP,
)

_MESSAGES: Dict[str, str] = {
    "short": "I'm not quite sure what you need. Did you mean one of these?",
    "physical": "I'm not sure what you're feeling. Which of these did you mean?",
    "problem": "I'm not sure what's off. Did you mean one of these?",
    "equipment": "I'm not sure what you want to do with your clubs. Which of these did you mean?",
    "scoring": "I'm not quite sure what you want to do with your round. Did you mean one of these?",
    "advice": "I'm not sure what kind of help you need. Which of these did you mean?",
    "conditions": "I'm not sure what you want to know about the conditions. Did you mean one of these?",
    "default": "I'm not quite sure what you're asking. Did you mean one of these?",
}

_TOKEN_RE = re.compile(r"[a-z]+")


@dataclass(frozen=True)
class ClarificationResponse:
    message: str
    suggestions: Tuple[IntentSuggestion, ...]

    def __post_init__(self):
        object.__setattr__(self, "suggestions", tuple(self.suggestions))
        _check_clarification(self.message, self.suggestions)


def suggestion_for(intent_type: IntentType) -> IntentSuggestion:
    schema = get_schema(intent_type)
    return IntentSuggestion(intent_type, schema.chip_label, schema.description)


class ClarificationGenerator:
    """Deterministic suggestion ranking over the cue table."""

    def __init__(self, cue_table: Tuple[CueGroup, ...] = CUE_TABLE):
        self.cue_table = cue_table

    def generate(self, original_input: str, parsed: Optional[ParsedIntent] = None) -> ClarificationResponse:
        tokens = _TOKEN_RE.findall((original_input or "").lower())
        token_set = set(tokens)

        scores: Dict[IntentType, int] = {}
        first_seen: Dict[IntentType, int] = {}
        best_group, best_hits = None, 0
        for group in self.cue_table:
            hits = len(group.cues & token_set)
            if not hits:
                continue
            if hits > best_hits:
                best_group, best_hits = group, hits
            for rank, intent in enumerate(group.intents):
                scores[intent] = scores.get(intent, 0) + hits * (len(group.intents) - rank)
                first_seen.setdefault(intent, len(first_seen))

        ranked = sorted(scores, key=lambda t: (-scores[t], first_seen[t]))

        ordered: List[IntentType] = []
        if parsed is not None and parsed.confidence >= CLARIFY_INCLUSION_THRESHOLD:
            ordered.append(parsed.intent_type)
        for intent in list(ranked) + list(DEFAULT_SUGGESTIONS):
            if len(ordered) >= MAX_SUGGESTIONS:
                break
            if intent not in ordered:
                ordered.append(intent)

        if len(tokens) <= SHORT_INPUT_WORDS:
            message = _MESSAGES["short"]
        elif best_group is not None:
            message = _MESSAGES[best_group.key]
        else:
            message = _MESSAGES["default"]

        logger.debug(
            "[CLARIFY] cue=%s suggestions=%s",
            best_group.key if best_group else "none",
            ",".join(t.value for t in ordered),
        )
        return ClarificationResponse(message, tuple(suggestion_for(t) for t in ordered))
