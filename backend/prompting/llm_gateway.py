"""LLM Gateway: the one place that decides which model client is live."""
import logging
from typing import Optional

from config.feature_flags import is_mock_llm
from prompting.llm.interface import LLMClient
from prompting.llm.mock import MockLLMClient

logger = logging.getLogger(__name__)


def _get_client() -> LLMClient:
    """Build the configured LLM client."""
    if is_mock_llm():
        logger.info("[LLM:GATEWAY] Client=MockLLMClient (MOCK_LLM=true)")
        return MockLLMClient()
    from prompting.llm.gemini import GeminiLLMClient
    logger.info("[LLM:GATEWAY] Client=GeminiLLMClient (MOCK_LLM=false)")
    return GeminiLLMClient()


# Singleton client
_client: Optional[LLMClient] = None


def get_llm_client() -> LLMClient:
    global _client
    if _client is None:
        _client = _get_client()
    return _client


def reset_llm_client() -> None:
    global _client
    _client = None
