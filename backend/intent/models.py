"""Intent domain models: intent types, entities, routing targets, miss patterns.

ParsedIntent rejects an out-of-range confidence at construction.
ExtractedEntities never rejects: out-of-range values are clamped or dropped.
"""
import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, Optional

# ---- Confidence thresholds (process-wide) ----
ROUTE_THRESHOLD = 0.75
CONFIRM_THRESHOLD = 0.50
# Parsed intents at or above this are front-loaded into clarification suggestions
CLARIFY_INCLUSION_THRESHOLD = 0.30

if not ROUTE_THRESHOLD > CONFIRM_THRESHOLD > CLARIFY_INCLUSION_THRESHOLD:
    raise RuntimeError("Confidence thresholds must satisfy ROUTE > CONFIRM > CLARIFY_INCLUSION")

FATIGUE_MIN = 1
FATIGUE_MAX = 10
HOLE_MIN = 1
HOLE_MAX = 18

PATTERN_HALF_LIFE_DAYS = 14.0


class IntentType(str, Enum):
    CLUB_ADJUSTMENT = "CLUB_ADJUSTMENT"
    RECOVERY_CHECK = "RECOVERY_CHECK"
    SHOT_RECOMMENDATION = "SHOT_RECOMMENDATION"
    SCORE_ENTRY = "SCORE_ENTRY"
    PATTERN_QUERY = "PATTERN_QUERY"
    DRILL_REQUEST = "DRILL_REQUEST"
    WEATHER_CHECK = "WEATHER_CHECK"
    STATS_LOOKUP = "STATS_LOOKUP"
    ROUND_START = "ROUND_START"
    ROUND_END = "ROUND_END"
    EQUIPMENT_INFO = "EQUIPMENT_INFO"
    COURSE_INFO = "COURSE_INFO"
    SETTINGS_CHANGE = "SETTINGS_CHANGE"
    HELP_REQUEST = "HELP_REQUEST"
    FEEDBACK = "FEEDBACK"


class Module(str, Enum):
    CADDY = "CADDY"
    COACH = "COACH"
    RECOVERY = "RECOVERY"
    SETTINGS = "SETTINGS"


class InputType(str, Enum):
    TEXT = "TEXT"
    VOICE = "VOICE"


class Lie(str, Enum):
    TEE = "TEE"
    FAIRWAY = "FAIRWAY"
    ROUGH = "ROUGH"
    BUNKER = "BUNKER"
    GREEN = "GREEN"
    FRINGE = "FRINGE"
    HAZARD = "HAZARD"


class ClubType(str, Enum):
    DRIVER = "DRIVER"
    WOOD = "WOOD"
    HYBRID = "HYBRID"
    IRON = "IRON"
    WEDGE = "WEDGE"
    PUTTER = "PUTTER"


class MissDirection(str, Enum):
    PUSH = "PUSH"
    PULL = "PULL"
    SLICE = "SLICE"
    HOOK = "HOOK"
    FAT = "FAT"
    THIN = "THIN"
    STRAIGHT = "STRAIGHT"


@dataclass(frozen=True)
class Club:
    name: str  # canonical display name, e.g. "7-Iron"
    club_type: ClubType
    loft: Optional[float] = None
    estimated_carry: Optional[int] = None  # yards


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


@dataclass(frozen=True)
class ExtractedEntities:
    """Entities pulled from an utterance.

    Construction is tolerant: a non-positive yardage or an out-of-range hole
    becomes None, fatigue is clamped into [1, 10].
    """
    club: Optional[Club] = None
    yardage: Optional[int] = None
    lie: Optional[Lie] = None
    wind: Optional[str] = None
    fatigue: Optional[int] = None
    pain: bool = False
    score_context: Optional[str] = None
    hole_number: Optional[int] = None

    def __post_init__(self):
        yardage = self.yardage
        if not _is_number(yardage) or yardage <= 0:
            yardage = None
        else:
            yardage = int(yardage)
        object.__setattr__(self, "yardage", yardage)

        fatigue = self.fatigue
        if _is_number(fatigue) and not (isinstance(fatigue, float) and math.isnan(fatigue)):
            fatigue = int(min(max(fatigue, FATIGUE_MIN), FATIGUE_MAX))
        else:
            fatigue = None
        object.__setattr__(self, "fatigue", fatigue)

        hole = self.hole_number
        if not _is_number(hole) or not (HOLE_MIN <= hole <= HOLE_MAX) or int(hole) != hole:
            hole = None
        else:
            hole = int(hole)
        object.__setattr__(self, "hole_number", hole)

        for name in ("wind", "score_context"):
            value = getattr(self, name)
            if value is not None and (not isinstance(value, str) or not value.strip()):
                object.__setattr__(self, name, None)

        object.__setattr__(self, "pain", bool(self.pain))

    @property
    def is_empty(self) -> bool:
        return (
            self.club is None and self.yardage is None and self.lie is None
            and self.wind is None and self.fatigue is None and not self.pain
            and self.score_context is None and self.hole_number is None
        )


@dataclass(frozen=True)
class RoutingTarget:
    module: Module
    screen: str
    parameters: Dict[str, str] = field(default_factory=dict)

    def __post_init__(self):
        if not self.screen or not self.screen.strip():
            raise ValueError("RoutingTarget.screen cannot be blank")
        object.__setattr__(
            self, "parameters", {str(k): str(v) for k, v in self.parameters.items()},
        )


@dataclass(frozen=True)
class ParsedIntent:
    intent_type: IntentType
    confidence: float
    entities: ExtractedEntities = field(default_factory=ExtractedEntities)
    user_goal: Optional[str] = None
    routing_target: Optional[RoutingTarget] = None

    def __post_init__(self):
        c = self.confidence
        if not _is_number(c) or math.isnan(c) or not (0.0 <= c <= 1.0):
            raise ValueError(f"confidence must be within [0, 1], got {c!r}")
        if not isinstance(self.intent_type, IntentType):
            raise ValueError(f"unknown intent type {self.intent_type!r}")


@dataclass(frozen=True)
class PressureContext:
    is_user_tagged: bool = False
    is_inferred: bool = False
    scoring_context: Optional[str] = None

    @property
    def has_pressure(self) -> bool:
        return self.is_user_tagged or self.is_inferred or bool(self.scoring_context)


@dataclass(frozen=True)
class MissPattern:
    """Historical shot deviation. Read-only input to response formatting."""
    direction: MissDirection
    frequency: int
    confidence: float
    last_occurrence: datetime
    club: Optional[Club] = None
    pressure_context: Optional[PressureContext] = None

    def __post_init__(self):
        if not isinstance(self.frequency, int) or self.frequency <= 0:
            raise ValueError(f"frequency must be positive, got {self.frequency!r}")
        if not _is_number(self.confidence) or not (0.0 <= self.confidence <= 1.0):
            raise ValueError(f"confidence must be within [0, 1], got {self.confidence!r}")

    def decayed_confidence(self, now: Optional[datetime] = None) -> float:
        """Confidence halved every PATTERN_HALF_LIFE_DAYS since last occurrence."""
        now = now or datetime.now(timezone.utc)
        last = self.last_occurrence
        if last.tzinfo is None:
            last = last.replace(tzinfo=timezone.utc)
        age_days = max((now - last).total_seconds(), 0.0) / 86400.0
        return self.confidence * math.pow(0.5, age_days / PATTERN_HALF_LIFE_DAYS)
