"""Feature flags: controls which collaborators are live."""
from config.settings import get_settings


def is_mock_llm() -> bool:
    return get_settings().MOCK_LLM
