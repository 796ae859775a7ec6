"""Intent Classifier: normalize -> model call (with context) -> parse -> route.

Exactly one ClassificationResult per call:
  - blank input        -> Error(EMPTY_INPUT_MESSAGE), no model call
  - timeout / network  -> Error(CLASSIFICATION_FAILED_MESSAGE), recoverable
  - malformed reply    -> Error(CLASSIFICATION_FAILED_MESSAGE), recoverable
  - otherwise          -> ConfidenceRouter decides Route / Confirm / Clarify

The model call is the only suspension point. It is bounded by a timeout and
raced against an optional CancellationToken; a cancelled call raises
ClassificationCancelledError and produces no result.
"""
import asyncio
import logging
import time
from typing import Optional

from config.settings import get_settings
from core.cancellation import CancellationToken
from core.exceptions import (
    CaddyError,
    ClassificationCancelledError,
    ClassificationTimeoutError,
    InputEmptyError,
)
from guardrails.sanitizer import sanitize_user_input
from intent.entities import build_entities
from intent.models import ParsedIntent
from intent.normalizer import normalize
from intent.results import (
    CLASSIFICATION_FAILED_MESSAGE,
    EMPTY_INPUT_MESSAGE,
    ClassificationResult,
    Error,
)
from intent.router import ConfidenceRouter
from observability.analytics import AnalyticsEmitter
from prompting.llm.interface import LLMClient, LLMRequest, LLMResponse
from prompting.personality import build_classification_prompt
from schemas.analytics import ErrorOccurredEvent, IntentClassifiedEvent
from schemas.llm import parse_model_reply
from session.context_injector import build_prompt
from session.models import SessionContext

logger = logging.getLogger(__name__)


class IntentClassifier:

    def __init__(
        self,
        llm: LLMClient,
        router: Optional[ConfidenceRouter] = None,
        analytics: Optional[AnalyticsEmitter] = None,
        timeout_s: Optional[float] = None,
        session_id: str = "",
    ):
        self.llm = llm
        self.router = router or ConfidenceRouter()
        self.analytics = analytics
        self.timeout_s = timeout_s if timeout_s is not None else get_settings().LLM_TIMEOUT_S
        self.session_id = session_id
        self.system_prompt = build_classification_prompt()

    async def classify(
        self,
        raw_input: str,
        context: Optional[SessionContext] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> ClassificationResult:
        if raw_input is None or not raw_input.strip():
            err = InputEmptyError(EMPTY_INPUT_MESSAGE)
            logger.info("[CLASSIFIER] session=%s empty input rejected", self.session_id)
            return self._error(EMPTY_INPUT_MESSAGE, err)

        normalized = normalize(raw_input)
        request = LLMRequest(
            system_prompt=self.system_prompt,
            context_block=build_prompt(context),
            user_input=sanitize_user_input(normalized, self.session_id),
        )
        logger.debug("[CLASSIFIER] session=%s normalized=%r", self.session_id, normalized)

        start = time.monotonic()
        try:
            response = await self._call_model(request, cancel_token)
            reply = parse_model_reply(response.text)
        except ClassificationCancelledError:
            logger.info("[CLASSIFIER] session=%s cancelled (superseded)", self.session_id)
            raise
        except CaddyError as e:
            latency_ms = (time.monotonic() - start) * 1000
            logger.warning(
                "[CLASSIFIER] session=%s failed code=%s latency=%.0fms: %s",
                self.session_id, e.code, latency_ms, e.message,
            )
            self._emit_classified(None, latency_ms, success=False)
            return self._error(CLASSIFICATION_FAILED_MESSAGE, e)

        # Cancelled after the reply landed: still no result
        if cancel_token is not None:
            cancel_token.raise_if_cancelled()

        latency_ms = (time.monotonic() - start) * 1000
        parsed = ParsedIntent(
            intent_type=reply.intent_type,
            confidence=reply.confidence,
            entities=build_entities(reply.entities),
            user_goal=reply.user_goal,
        )
        logger.info(
            "[CLASSIFIER] session=%s intent=%s conf=%.2f latency=%.0fms",
            self.session_id, parsed.intent_type.value, parsed.confidence, latency_ms,
        )
        self._emit_classified(parsed, latency_ms, success=True)
        return self.router.route(parsed, normalized, raw_input.strip())

    async def _call_model(
        self,
        request: LLMRequest,
        cancel_token: Optional[CancellationToken],
    ) -> LLMResponse:
        """Run the model call bounded by timeout and raced against cancellation."""
        if cancel_token is not None:
            cancel_token.raise_if_cancelled()

        call = asyncio.ensure_future(self.llm.complete(request))
        waiters = {call}
        cancel_wait = None
        if cancel_token is not None:
            cancel_wait = asyncio.ensure_future(cancel_token.wait())
            waiters.add(cancel_wait)

        try:
            done, _ = await asyncio.wait(waiters, timeout=self.timeout_s, return_when=asyncio.FIRST_COMPLETED)
        finally:
            pending = [w for w in waiters if not w.done()]
            for w in pending:
                w.cancel()
            if pending:
                await asyncio.gather(*pending, return_exceptions=True)

        if cancel_wait is not None and cancel_wait in done:
            raise ClassificationCancelledError(f"Classification cancelled: {cancel_token.reason}")
        if call not in done:
            raise ClassificationTimeoutError(f"Model call exceeded {self.timeout_s:.1f}s")
        return call.result()

    # ---- Helpers ----

    def _error(self, message: str, cause: CaddyError) -> Error:
        if self.analytics is not None:
            self.analytics.emit(ErrorOccurredEvent(
                session_id=self.session_id,
                error_code=cause.code,
                message=cause.message,
                recoverable=cause.recoverable,
            ))
        return Error(message=message, error_code=cause.code, recoverable=cause.recoverable)

    def _emit_classified(self, parsed: Optional[ParsedIntent], latency_ms: float, success: bool) -> None:
        if self.analytics is None:
            return
        self.analytics.emit(IntentClassifiedEvent(
            session_id=self.session_id,
            intent=parsed.intent_type if parsed else None,
            confidence=parsed.confidence if parsed else None,
            latency_ms=max(latency_ms, 0.0),
            was_successful=success,
        ))
