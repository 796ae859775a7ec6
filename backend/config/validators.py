"""Startup configuration validation guardrails."""

import logging


logger = logging.getLogger(__name__)


def _require_positive_timeout(settings) -> None:
    """Fail closed if the model call would be unbounded."""
    if settings.LLM_TIMEOUT_S is None or settings.LLM_TIMEOUT_S <= 0:
        raise RuntimeError(
            "STARTUP FAILED: LLM_TIMEOUT_S must be a positive number of seconds. "
            "Set LLM_TIMEOUT_S in backend/.env or container environment and restart the server."
        )


def validate_startup_config(settings) -> None:
    """Centralized startup guardrails for required and warning-level config."""
    _require_positive_timeout(settings)

    if settings.ENV == "prod" and settings.MOCK_LLM:
        raise RuntimeError(
            "STARTUP FAILED: MOCK_LLM must be False in production."
        )

    required_vars = {}
    if not settings.MOCK_LLM:
        required_vars["GEMINI_API_KEY"] = settings.GEMINI_API_KEY

    missing = [k for k, v in required_vars.items() if not v or not v.strip()]
    if missing:
        raise RuntimeError(
            f"STARTUP FAILED: missing required env vars: {', '.join(missing)}\n"
            "Set them in .env or container environment and restart the server."
        )

    if not getattr(settings, "LOG_REDACTION_ENABLED", True):
        logger.warning("CONFIG WARNING: LOG_REDACTION_ENABLED is off; user text may reach the logs")
