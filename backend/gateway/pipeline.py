"""Conversation pipeline: one user turn from raw text to the caddy's reply.

  submit -> classify (cancellable) -> dispatch on the result variant
    Route    -> prerequisites -> action -> guardrail formatting -> history
    Confirm  -> remember the pending intent -> history
    Clarify  -> ranked suggestions -> history
    Error    -> recovery strategy (history untouched)

Latest input wins: every turn (submit, confirm, suggestion) holds a
cancellation token until its history write. A newer turn cancels it, and the
superseded turn returns None without touching the store, whether it was still
classifying or already waiting on navigation.
"""
import logging
import time
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence, assert_never

from core.cancellation import CancellationToken
from core.exceptions import (
    ClassificationCancelledError,
    NoActiveSessionError,
    NoPendingConfirmationError,
)
from core.recovery import RecoveryStrategy, get_recovery_strategy
from gateway.actions import ActionExecutor, NavigationActionExecutor
from guardrails.formatter import FormatOptions, FormattedResponse, ResponseFormatter
from intent.classifier import IntentClassifier
from intent.clarification import ClarificationGenerator
from intent.models import (
    ExtractedEntities,
    InputType,
    IntentType,
    MissPattern,
    ParsedIntent,
    RoutingTarget,
)
from intent.prerequisites import missing_prerequisites
from intent.registry import build_routing_target, get_schema
from intent.results import ClassificationResult, Clarify, Confirm, Error, Route
from observability.analytics import AnalyticsEmitter
from schemas.analytics import (
    AnalyticsEvent,
    ClarificationRequestedEvent,
    ErrorOccurredEvent,
    InputReceivedEvent,
    RouteExecutedEvent,
    SuggestionSelectedEvent,
)
from session.context_store import SessionContextStore

logger = logging.getLogger(__name__)

PatternProvider = Callable[[IntentType], Sequence[MissPattern]]

# Intents whose replies reference the golfer's miss patterns
PATTERN_INTENTS = frozenset({
    IntentType.SHOT_RECOMMENDATION,
    IntentType.PATTERN_QUERY,
    IntentType.DRILL_REQUEST,
})

ACCEPT_TEXT = "Yes"
DECLINE_TEXT = "No"


@dataclass(frozen=True)
class TurnOutcome:
    result: ClassificationResult
    assistant_text: str
    navigated_to: Optional[RoutingTarget] = None
    formatted: Optional[FormattedResponse] = None
    recovery: Optional[RecoveryStrategy] = None


class ConversationPipeline:

    def __init__(
        self,
        session_id: str,
        store: SessionContextStore,
        classifier: IntentClassifier,
        executor: Optional[ActionExecutor] = None,
        analytics: Optional[AnalyticsEmitter] = None,
        formatter: Optional[ResponseFormatter] = None,
        pattern_provider: Optional[PatternProvider] = None,
    ):
        self.session_id = session_id
        self.store = store
        self.classifier = classifier
        self.executor = executor or NavigationActionExecutor()
        self.analytics = analytics
        self.formatter = formatter or ResponseFormatter()
        self.pattern_provider = pattern_provider
        self.clarifier = ClarificationGenerator()

        self._active_token: Optional[CancellationToken] = None
        self._pending: Optional[Confirm] = None
        self._pending_input = ""
        self._last_clarify: Optional[Clarify] = None

    @property
    def has_pending_confirmation(self) -> bool:
        return self._pending is not None

    # ---- Entry points ----

    async def submit(self, raw_input: str, input_type: InputType = InputType.TEXT) -> Optional[TurnOutcome]:
        self._emit(InputReceivedEvent(
            session_id=self.session_id,
            input_type=input_type,
            input_length=len(raw_input or ""),
        ))
        token = self._begin_turn()
        try:
            result = await self.classifier.classify(raw_input, self.store.snapshot(), token)
            user_text = (raw_input or "").strip()
            match result:
                case Route():
                    self._pending = None
                    return await self._execute_route(user_text, result, token)
                case Confirm():
                    token.raise_if_cancelled()
                    self._pending = result
                    self._pending_input = user_text
                    self.store.append_turn(user_text, result.message)
                    return TurnOutcome(result=result, assistant_text=result.message)
                case Clarify():
                    self._pending = None
                    return self._clarify(user_text, result, token)
                case Error():
                    # The classifier has already emitted the error event
                    return self._recover(result)
                case _:
                    assert_never(result)
        except ClassificationCancelledError:
            return self._superseded()
        finally:
            self._end_turn(token)

    async def confirm(self, accepted: bool) -> Optional[TurnOutcome]:
        pending = self._pending
        if pending is None:
            raise NoPendingConfirmationError()
        self._pending = None
        intent = pending.intent

        token = self._begin_turn()
        try:
            if accepted:
                target = intent.routing_target or build_routing_target(intent.intent_type, intent.entities)
                return await self._execute_route(ACCEPT_TEXT, Route(intent=intent, target=target), token)

            clarification = self.clarifier.generate(self._pending_input)
            suggestions = tuple(s for s in clarification.suggestions if s.intent_type is not intent.intent_type)
            declined = Clarify(
                original_input=self._pending_input,
                message=clarification.message,
                suggestions=suggestions,
                parsed_intent=intent,
            )
            return self._clarify(DECLINE_TEXT, declined, token)
        except ClassificationCancelledError:
            return self._superseded()
        finally:
            self._end_turn(token)

    async def select_suggestion(self, intent_type: IntentType, index: int = 0) -> Optional[TurnOutcome]:
        self._emit(SuggestionSelectedEvent(
            session_id=self.session_id,
            intent=intent_type,
            suggestion_index=index,
        ))
        entities = ExtractedEntities()
        if self._last_clarify is not None and self._last_clarify.parsed_intent is not None:
            entities = self._last_clarify.parsed_intent.entities
        self._last_clarify = None
        self._pending = None

        intent = ParsedIntent(intent_type=intent_type, confidence=1.0, entities=entities)
        target = build_routing_target(intent_type, entities)
        token = self._begin_turn()
        try:
            return await self._execute_route(
                get_schema(intent_type).chip_label, Route(intent=intent, target=target), token,
            )
        except ClassificationCancelledError:
            return self._superseded()
        finally:
            self._end_turn(token)

    # ---- Turn ordering ----

    def _begin_turn(self) -> CancellationToken:
        """Supersede the turn in flight, if any, and open a new one."""
        if self._active_token is not None:
            self._active_token.cancel("superseded")
        token = CancellationToken()
        self._active_token = token
        return token

    def _end_turn(self, token: CancellationToken) -> None:
        if self._active_token is token:
            self._active_token = None

    def _superseded(self) -> None:
        logger.info("[PIPELINE] session=%s turn superseded", self.session_id)
        return None

    # ---- Variant handling ----

    async def _execute_route(self, user_text: str, route: Route, token: CancellationToken) -> TurnOutcome:
        """Raises ClassificationCancelledError if a newer turn arrives before the history write."""
        token.raise_if_cancelled()
        start = time.monotonic()
        intent = route.intent
        context = self.store.snapshot()

        missing = missing_prerequisites(intent.intent_type, context)
        if missing:
            err = NoActiveSessionError(
                f"{intent.intent_type.value} needs {', '.join(p.value for p in missing)}"
            )
            logger.info("[PIPELINE] session=%s blocked intent=%s: %s",
                        self.session_id, intent.intent_type.value, err.message)
            self._emit(ErrorOccurredEvent(
                session_id=self.session_id,
                error_code=err.code,
                message=err.message,
                recoverable=err.recoverable,
            ))
            return self._recover(Error(message=err.message, error_code=err.code, recoverable=err.recoverable))

        action = await self.executor.execute(intent, route.target, context)
        # Navigation may suspend; a newer turn may have started meanwhile
        token.raise_if_cancelled()
        formatted = self.formatter.format(
            action.response_text,
            self._patterns_for(intent.intent_type),
            FormatOptions(sensitive_input=intent.entities.pain),
        )
        latency_ms = (time.monotonic() - start) * 1000

        self._emit(RouteExecutedEvent(
            session_id=self.session_id,
            module=route.target.module,
            screen=route.target.screen,
            latency_ms=latency_ms,
            parameter_keys=sorted(route.target.parameters),
        ))
        self.store.append_turn(user_text, formatted.text)
        if intent.intent_type is IntentType.SHOT_RECOMMENDATION:
            self.store.record_recommendation(action.response_text)
        if intent.intent_type is IntentType.ROUND_END:
            self.store.clear()

        logger.info(
            "[PIPELINE] session=%s routed intent=%s screen=%s latency=%.0fms",
            self.session_id, intent.intent_type.value, route.target.screen, latency_ms,
        )
        return TurnOutcome(
            result=route,
            assistant_text=formatted.text,
            navigated_to=action.navigated_to,
            formatted=formatted,
        )

    def _clarify(self, user_text: str, clarify: Clarify, token: CancellationToken) -> TurnOutcome:
        token.raise_if_cancelled()
        self._last_clarify = clarify
        self._emit(ClarificationRequestedEvent(
            session_id=self.session_id,
            input_length=len(clarify.original_input),
            confidence=clarify.parsed_intent.confidence if clarify.parsed_intent else None,
            suggestions_count=len(clarify.suggestions),
        ))
        self.store.append_turn(user_text, clarify.message)
        return TurnOutcome(result=clarify, assistant_text=clarify.message)

    def _recover(self, error: Error) -> TurnOutcome:
        strategy = get_recovery_strategy(error.error_code)
        logger.info("[PIPELINE] session=%s recovery code=%s actions=%s",
                    self.session_id, error.error_code, ",".join(a.value for a in strategy.actions))
        return TurnOutcome(result=error, assistant_text=strategy.user_message, recovery=strategy)

    # ---- Helpers ----

    def _patterns_for(self, intent_type: IntentType) -> List[MissPattern]:
        if self.pattern_provider is None or intent_type not in PATTERN_INTENTS:
            return []
        return list(self.pattern_provider(intent_type))

    def _emit(self, event: AnalyticsEvent) -> None:
        if self.analytics is not None:
            self.analytics.emit(event)
