"""Intent domain models: thresholds, ParsedIntent validation, tolerant entities, patterns."""
from pathlib import Path
import sys

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from datetime import datetime, timedelta, timezone

import pytest

from intent import models
from intent.models import (
    Club,
    ClubType,
    ExtractedEntities,
    IntentType,
    MissDirection,
    MissPattern,
    Module,
    ParsedIntent,
    PressureContext,
    RoutingTarget,
)


def test_thresholds_are_ordered():
    assert models.ROUTE_THRESHOLD == 0.75
    assert models.CONFIRM_THRESHOLD == 0.50
    assert models.ROUTE_THRESHOLD > models.CONFIRM_THRESHOLD > models.CLARIFY_INCLUSION_THRESHOLD


# ══════════════════════════════════════════════════════════════════════════
#  ParsedIntent
# ══════════════════════════════════════════════════════════════════════════
class TestParsedIntent:

    @pytest.mark.parametrize("confidence", [0.0, 0.5, 1.0])
    def test_accepts_bounds(self, confidence):
        assert ParsedIntent(IntentType.HELP_REQUEST, confidence).confidence == confidence

    @pytest.mark.parametrize("confidence", [-0.01, 1.01, float("nan"), True, "0.9", None])
    def test_rejects_invalid_confidence(self, confidence):
        with pytest.raises(ValueError, match="confidence"):
            ParsedIntent(IntentType.HELP_REQUEST, confidence)

    def test_rejects_unknown_intent(self):
        with pytest.raises(ValueError, match="intent type"):
            ParsedIntent("NOT_AN_INTENT", 0.9)

    def test_defaults(self):
        intent = ParsedIntent(IntentType.STATS_LOOKUP, 0.8)
        assert intent.entities.is_empty
        assert intent.user_goal is None
        assert intent.routing_target is None


# ══════════════════════════════════════════════════════════════════════════
#  ExtractedEntities
# ══════════════════════════════════════════════════════════════════════════
class TestExtractedEntities:

    @pytest.mark.parametrize("yardage", [0, -20, "150", True])
    def test_invalid_yardage_dropped(self, yardage):
        assert ExtractedEntities(yardage=yardage).yardage is None

    def test_yardage_kept(self):
        assert ExtractedEntities(yardage=150).yardage == 150

    @pytest.mark.parametrize("fatigue,expected", [(0, 1), (-3, 1), (5, 5), (15, 10), (7.6, 7)])
    def test_fatigue_clamped(self, fatigue, expected):
        assert ExtractedEntities(fatigue=fatigue).fatigue == expected

    def test_fatigue_nan_dropped(self):
        assert ExtractedEntities(fatigue=float("nan")).fatigue is None

    @pytest.mark.parametrize("hole", [0, 19, 7.5, "7"])
    def test_invalid_hole_dropped(self, hole):
        assert ExtractedEntities(hole_number=hole).hole_number is None

    @pytest.mark.parametrize("hole", [1, 18, 7.0])
    def test_hole_kept(self, hole):
        assert ExtractedEntities(hole_number=hole).hole_number == int(hole)

    def test_blank_text_fields_dropped(self):
        entities = ExtractedEntities(wind="  ", score_context="")
        assert entities.wind is None
        assert entities.score_context is None

    def test_is_empty(self):
        assert ExtractedEntities().is_empty
        assert not ExtractedEntities(pain=True).is_empty
        assert not ExtractedEntities(club=Club("Driver", ClubType.DRIVER)).is_empty


# ══════════════════════════════════════════════════════════════════════════
#  RoutingTarget
# ══════════════════════════════════════════════════════════════════════════
class TestRoutingTarget:

    def test_blank_screen_rejected(self):
        with pytest.raises(ValueError, match="screen"):
            RoutingTarget(Module.CADDY, " ")

    def test_parameters_stringified(self):
        target = RoutingTarget(Module.CADDY, "LiveCaddyScreen", {"yardage": 150})
        assert target.parameters == {"yardage": "150"}


# ══════════════════════════════════════════════════════════════════════════
#  Miss patterns
# ══════════════════════════════════════════════════════════════════════════
class TestMissPattern:

    def _pattern(self, **overrides):
        fields = {
            "direction": MissDirection.SLICE,
            "frequency": 6,
            "confidence": 0.8,
            "last_occurrence": datetime(2024, 6, 1, tzinfo=timezone.utc),
        }
        fields.update(overrides)
        return MissPattern(**fields)

    @pytest.mark.parametrize("frequency", [0, -1])
    def test_frequency_must_be_positive(self, frequency):
        with pytest.raises(ValueError, match="frequency"):
            self._pattern(frequency=frequency)

    def test_confidence_range(self):
        with pytest.raises(ValueError, match="confidence"):
            self._pattern(confidence=1.5)

    def test_half_life_decay(self):
        pattern = self._pattern()
        now = pattern.last_occurrence + timedelta(days=14)
        assert pattern.decayed_confidence(now) == pytest.approx(0.4)

    def test_no_decay_for_future_occurrence(self):
        pattern = self._pattern()
        assert pattern.decayed_confidence(pattern.last_occurrence - timedelta(days=1)) == pytest.approx(0.8)

    def test_naive_timestamp_treated_as_utc(self):
        pattern = self._pattern(last_occurrence=datetime(2024, 6, 1))
        now = datetime(2024, 6, 29, tzinfo=timezone.utc)
        assert pattern.decayed_confidence(now) == pytest.approx(0.2)

    def test_pressure_context(self):
        assert not PressureContext().has_pressure
        assert PressureContext(is_inferred=True).has_pressure
        assert PressureContext(scoring_context="match play").has_pressure
