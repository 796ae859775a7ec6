"""Session registry: one conversation pipeline per active session id."""
import logging
from typing import Dict, Optional

from config.settings import get_settings
from gateway.actions import NavigationActionExecutor, Navigator
from gateway.pipeline import ConversationPipeline, PatternProvider
from intent.classifier import IntentClassifier
from observability.analytics import AnalyticsEmitter
from prompting.llm.interface import LLMClient
from prompting.llm_gateway import get_llm_client
from session.context_store import SessionContextStore

logger = logging.getLogger(__name__)

_pipelines: Dict[str, ConversationPipeline] = {}
_analytics: Optional[AnalyticsEmitter] = None


def get_analytics() -> AnalyticsEmitter:
    global _analytics
    if _analytics is None:
        _analytics = AnalyticsEmitter(buffer_size=get_settings().ANALYTICS_BUFFER_SIZE)
    return _analytics


def get_pipeline(session_id: str) -> Optional[ConversationPipeline]:
    return _pipelines.get(session_id)


def get_or_create_pipeline(
    session_id: str,
    llm: Optional[LLMClient] = None,
    navigator: Optional[Navigator] = None,
    pattern_provider: Optional[PatternProvider] = None,
) -> ConversationPipeline:
    pipeline = _pipelines.get(session_id)
    if pipeline is not None:
        return pipeline

    analytics = get_analytics()
    pipeline = ConversationPipeline(
        session_id=session_id,
        store=SessionContextStore(session_id=session_id),
        classifier=IntentClassifier(
            llm or get_llm_client(),
            analytics=analytics,
            session_id=session_id,
        ),
        executor=NavigationActionExecutor(navigator),
        analytics=analytics,
        pattern_provider=pattern_provider,
    )
    _pipelines[session_id] = pipeline
    logger.info("[SESSIONS] created session=%s active=%d", session_id, len(_pipelines))
    return pipeline


def end_session(session_id: str) -> bool:
    """Drop the session's pipeline and context. False if it was unknown."""
    pipeline = _pipelines.pop(session_id, None)
    if pipeline is None:
        return False
    pipeline.store.clear()
    logger.info("[SESSIONS] ended session=%s active=%d", session_id, len(_pipelines))
    return True


def active_session_count() -> int:
    return len(_pipelines)


def reset_sessions() -> None:
    global _analytics
    _pipelines.clear()
    _analytics = None
