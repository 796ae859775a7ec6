"""Conversation pipeline: dispatch per result variant, confirmations, suggestions, latest-wins."""
from pathlib import Path
import sys

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

import asyncio
import json
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest

from core.exceptions import NoPendingConfirmationError
from core.recovery import get_recovery_strategy
from gateway.actions import HELP_TEXT, NO_ROUND_HINT, LoggingNavigator, NavigationActionExecutor
from gateway.pipeline import ConversationPipeline
from guardrails.formatter import PATTERN_HEADING
from guardrails.persona import DisclaimerType
from intent.classifier import IntentClassifier
from intent.models import IntentType, MissDirection, MissPattern, Module
from intent.results import Clarify, Confirm, Error, Route
from observability.analytics import AnalyticsEmitter
from prompting.llm.interface import LLMClient, LLMRequest, LLMResponse
from schemas.analytics import AnalyticsEventType
from session.context_store import SessionContextStore


def _reply(intent_type, confidence, **entities):
    payload = {"intent_type": intent_type, "confidence": confidence, "entities": entities}
    return LLMResponse(text=json.dumps(payload), latency_ms=8.0, model="test")


class ScriptedLLM(LLMClient):
    """Replies keyed by a word of the user input; inputs with a slow word stall."""

    def __init__(self, replies, slow=()):
        self.replies = replies
        self.slow = set(slow)
        self.started = asyncio.Event()

    async def complete(self, request: LLMRequest) -> LLMResponse:
        words = request.user_input.lower().split()
        if self.slow.intersection(words):
            self.started.set()
            await asyncio.sleep(5)
        return next(reply for word, reply in self.replies.items() if word in words)

    async def is_healthy(self) -> bool:
        return True


class SlowNavigator(LoggingNavigator):
    """Navigation that suspends long enough for a newer turn to arrive."""

    def __init__(self):
        super().__init__()
        self.entered = asyncio.Event()

    async def navigate(self, target):
        self.entered.set()
        await asyncio.sleep(0.2)
        await super().navigate(target)


def _pipeline(llm, pattern_provider=None, navigator=None):
    analytics = AnalyticsEmitter()
    navigator = navigator or LoggingNavigator()
    pipeline = ConversationPipeline(
        session_id="p-1",
        store=SessionContextStore("p-1"),
        classifier=IntentClassifier(llm, analytics=analytics, timeout_s=1.0, session_id="p-1"),
        executor=NavigationActionExecutor(navigator),
        analytics=analytics,
        pattern_provider=pattern_provider,
    )
    return pipeline, navigator, analytics


def _mock_llm(*responses):
    llm = MagicMock(spec=LLMClient)
    llm.complete = AsyncMock(side_effect=list(responses))
    return llm


def _kinds(analytics):
    return [e.event_type for e in analytics.recent()]


# ══════════════════════════════════════════════════════════════════════════
#  Route
# ══════════════════════════════════════════════════════════════════════════
class TestRoute:

    @pytest.mark.asyncio
    async def test_shot_recommendation_with_round(self):
        pipeline, navigator, analytics = _pipeline(
            _mock_llm(_reply("SHOT_RECOMMENDATION", 0.9, club="7-iron", yardage=150)),
        )
        pipeline.store.update_round("r-1", "Pebble Beach")

        outcome = await pipeline.submit("seven iron from one fifty")

        assert isinstance(outcome.result, Route)
        assert outcome.assistant_text == "Here's my read on this shot (7-Iron, 150 yards)."
        assert outcome.navigated_to.screen == "LiveCaddyScreen"
        assert navigator.history == [outcome.navigated_to]

        context = pipeline.store.snapshot()
        assert [t.content for t in context.conversation_history] == [
            "seven iron from one fifty", outcome.assistant_text,
        ]
        assert context.last_recommendation == outcome.assistant_text
        assert _kinds(analytics) == [
            AnalyticsEventType.INPUT_RECEIVED,
            AnalyticsEventType.INTENT_CLASSIFIED,
            AnalyticsEventType.ROUTE_EXECUTED,
        ]
        route_event = analytics.recent()[-1]
        assert route_event.module is Module.CADDY
        assert route_event.parameter_keys == ["club", "expandStrategy", "yardage"]

    @pytest.mark.asyncio
    async def test_shot_recommendation_without_round_hints(self):
        pipeline, _, _ = _pipeline(_mock_llm(_reply("SHOT_RECOMMENDATION", 0.9)))
        outcome = await pipeline.submit("what should I hit")
        assert isinstance(outcome.result, Route)
        assert NO_ROUND_HINT in outcome.assistant_text

    @pytest.mark.asyncio
    async def test_missing_round_blocks_score_entry(self):
        pipeline, navigator, analytics = _pipeline(_mock_llm(_reply("SCORE_ENTRY", 0.9)))

        outcome = await pipeline.submit("I made a 5")

        assert isinstance(outcome.result, Error)
        assert outcome.result.error_code == "NO_ACTIVE_SESSION"
        assert outcome.assistant_text == get_recovery_strategy("NO_ACTIVE_SESSION").user_message
        assert outcome.recovery.suggested_intents == (IntentType.ROUND_START,)
        assert navigator.history == []
        assert pipeline.store.snapshot().conversation_history == ()
        assert _kinds(analytics)[-1] is AnalyticsEventType.ERROR_OCCURRED

    @pytest.mark.asyncio
    async def test_pattern_query_answers_inline_with_patterns(self):
        pattern = MissPattern(
            direction=MissDirection.SLICE,
            frequency=8,
            confidence=0.8,
            last_occurrence=datetime.now(timezone.utc),
        )
        provider = MagicMock(return_value=[pattern])
        pipeline, navigator, _ = _pipeline(
            _mock_llm(_reply("PATTERN_QUERY", 0.9, club="7-iron")), pattern_provider=provider,
        )

        outcome = await pipeline.submit("what are my misses with the 7i")

        assert outcome.navigated_to is None
        assert navigator.history == []
        assert outcome.assistant_text.startswith("Here's what your recent shots with the 7-Iron say.")
        assert PATTERN_HEADING in outcome.assistant_text
        assert outcome.formatted.pattern_references_count == 1
        provider.assert_called_once_with(IntentType.PATTERN_QUERY)

    @pytest.mark.asyncio
    async def test_pain_forces_medical_disclaimer(self):
        pipeline, _, _ = _pipeline(_mock_llm(_reply("RECOVERY_CHECK", 0.9, pain=True)))
        outcome = await pipeline.submit("my back hurts, am I ready to play")
        assert outcome.formatted.disclaimer_type is DisclaimerType.MEDICAL
        assert outcome.assistant_text.endswith("physical therapist.*")

    @pytest.mark.asyncio
    async def test_round_end_clears_context(self):
        pipeline, navigator, _ = _pipeline(_mock_llm(_reply("ROUND_END", 0.95)))
        pipeline.store.update_round("r-1", "Pebble Beach")

        outcome = await pipeline.submit("I'm done playing")

        assert isinstance(outcome.result, Route)
        assert navigator.history[0].screen == "RoundSummaryScreen"
        assert pipeline.store.snapshot().is_empty


# ══════════════════════════════════════════════════════════════════════════
#  Confirm / Clarify / Error
# ══════════════════════════════════════════════════════════════════════════
class TestConversation:

    @pytest.mark.asyncio
    async def test_confirm_accepted_routes(self):
        llm = _mock_llm(_reply("CLUB_ADJUSTMENT", 0.6, club="7-iron"))
        pipeline, navigator, _ = _pipeline(llm)

        first = await pipeline.submit("my 7 iron feels long")
        assert isinstance(first.result, Confirm)
        assert pipeline.has_pending_confirmation
        assert navigator.history == []

        second = await pipeline.confirm(True)
        assert isinstance(second.result, Route)
        assert second.assistant_text == "Let's dial in your 7-Iron distances."
        assert navigator.history[0].parameters == {"club": "7-Iron"}
        assert not pipeline.has_pending_confirmation
        llm.complete.assert_awaited_once()

        history = pipeline.store.snapshot().conversation_history
        assert [t.content for t in history][2:] == ["Yes", second.assistant_text]

    @pytest.mark.asyncio
    async def test_confirm_declined_clarifies_without_declined_intent(self):
        pipeline, navigator, analytics = _pipeline(_mock_llm(_reply("CLUB_ADJUSTMENT", 0.6, club="7-iron")))
        await pipeline.submit("my 7 iron feels long")

        outcome = await pipeline.confirm(False)

        assert isinstance(outcome.result, Clarify)
        types = [s.intent_type for s in outcome.result.suggestions]
        assert IntentType.CLUB_ADJUSTMENT not in types
        assert 1 <= len(types) <= 3
        assert navigator.history == []
        assert _kinds(analytics)[-1] is AnalyticsEventType.CLARIFICATION_REQUESTED
        assert pipeline.store.snapshot().conversation_history[2].content == "No"

    @pytest.mark.asyncio
    async def test_confirm_without_pending_raises(self):
        pipeline, _, _ = _pipeline(_mock_llm())
        with pytest.raises(NoPendingConfirmationError):
            await pipeline.confirm(True)

    @pytest.mark.asyncio
    async def test_clarify_then_suggestion(self):
        pipeline, navigator, analytics = _pipeline(_mock_llm(_reply("RECOVERY_CHECK", 0.3)))

        first = await pipeline.submit("it feels off today")
        assert isinstance(first.result, Clarify)
        assert _kinds(analytics)[-1] is AnalyticsEventType.CLARIFICATION_REQUESTED

        second = await pipeline.select_suggestion(IntentType.RECOVERY_CHECK, 0)
        assert isinstance(second.result, Route)
        assert second.result.intent.confidence == 1.0
        assert navigator.history[0].screen == "RecoveryOverviewScreen"
        selected = [e for e in analytics.recent() if e.event_type is AnalyticsEventType.SUGGESTION_SELECTED]
        assert selected[0].intent is IntentType.RECOVERY_CHECK
        assert selected[0].suggestion_index == 0
        assert pipeline.store.snapshot().conversation_history[2].content == "Check Recovery"

    @pytest.mark.asyncio
    async def test_empty_input_recovers_without_history(self):
        llm = _mock_llm()
        pipeline, _, analytics = _pipeline(llm)

        outcome = await pipeline.submit("   ")

        assert isinstance(outcome.result, Error)
        assert outcome.result.error_code == "INPUT_EMPTY"
        assert outcome.assistant_text == get_recovery_strategy("INPUT_EMPTY").user_message
        assert pipeline.store.snapshot().conversation_history == ()
        llm.complete.assert_not_awaited()
        assert _kinds(analytics) == [
            AnalyticsEventType.INPUT_RECEIVED,
            AnalyticsEventType.ERROR_OCCURRED,
        ]


# ══════════════════════════════════════════════════════════════════════════
#  Latest input wins
# ══════════════════════════════════════════════════════════════════════════
class TestSupersede:

    @pytest.mark.asyncio
    async def test_newer_input_cancels_in_flight_turn(self):
        llm = ScriptedLLM(
            {
                "club": _reply("SHOT_RECOMMENDATION", 0.9),
                "stats": _reply("STATS_LOOKUP", 0.9),
            },
            slow={"club"},
        )
        pipeline, navigator, _ = _pipeline(llm)

        stale = asyncio.create_task(pipeline.submit("what club should I hit"))
        await llm.started.wait()
        fresh = await pipeline.submit("show my stats")

        assert await stale is None
        assert isinstance(fresh.result, Route)
        assert fresh.result.intent.intent_type is IntentType.STATS_LOOKUP
        assert [t.screen for t in navigator.history] == ["StatsScreen"]
        history = pipeline.store.snapshot().conversation_history
        assert [t.content for t in history] == ["show my stats", fresh.assistant_text]

    @pytest.mark.asyncio
    async def test_newer_input_supersedes_turn_waiting_on_navigation(self):
        llm = ScriptedLLM({
            "stats": _reply("STATS_LOOKUP", 0.9),
            "help": _reply("HELP_REQUEST", 0.9),
        })
        navigator = SlowNavigator()
        pipeline, _, analytics = _pipeline(llm, navigator=navigator)

        stale = asyncio.create_task(pipeline.submit("show my stats"))
        await navigator.entered.wait()
        fresh = await pipeline.submit("I need help")

        assert await stale is None
        assert fresh.assistant_text == HELP_TEXT
        history = pipeline.store.snapshot().conversation_history
        assert [t.content for t in history] == ["I need help", HELP_TEXT]
        routed = [e for e in analytics.recent() if e.event_type is AnalyticsEventType.ROUTE_EXECUTED]
        assert len(routed) == 1

    @pytest.mark.asyncio
    async def test_accepted_confirmation_superseded_during_navigation(self):
        llm = ScriptedLLM({
            "long": _reply("CLUB_ADJUSTMENT", 0.6, club="7-iron"),
            "help": _reply("HELP_REQUEST", 0.9),
        })
        navigator = SlowNavigator()
        pipeline, _, _ = _pipeline(llm, navigator=navigator)
        await pipeline.submit("my 7 iron feels long")

        stale = asyncio.create_task(pipeline.confirm(True))
        await navigator.entered.wait()
        await pipeline.submit("I need help")

        assert await stale is None
        contents = [t.content for t in pipeline.store.snapshot().conversation_history]
        assert contents[2:] == ["I need help", HELP_TEXT]
        assert "Yes" not in contents
