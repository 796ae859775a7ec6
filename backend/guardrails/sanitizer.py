"""Input sanitizer: neutralizes prompt-injection markers in user text.

Applied after normalization, before the text is embedded in a model request.
Covers instruction override, role hijacking, prompt extraction and attempts
to smuggle a pre-baked classification reply into the input.
"""
import logging
import re

from observability.redaction import contains_pii

logger = logging.getLogger(__name__)

FILTERED = "[filtered]"
MAX_INPUT_CHARS = 1000

_INJECTION_PATTERNS = [
    re.compile(r"ignore\s+(all\s+)?(previous|prior|above)\s+instructions?", re.IGNORECASE),
    re.compile(r"forget\s+(all\s+)?(previous|prior)\s+(instructions?|context)", re.IGNORECASE),
    re.compile(r"you\s+are\s+no\s+longer\s+", re.IGNORECASE),
    re.compile(r"new\s+instructions?\s*:", re.IGNORECASE),
    re.compile(r"\bsystem\s*:\s*", re.IGNORECASE),
    re.compile(r"<\s*/?\s*system\s*>", re.IGNORECASE),
    re.compile(r"\[/?INST\]", re.IGNORECASE),
    re.compile(r"###\s*(system|instruction|prompt)", re.IGNORECASE),
    re.compile(r"pretend\s+(you\s+are|to\s+be)", re.IGNORECASE),
    re.compile(r"(reveal|output|print)\s+(your|the)\s+(system\s+)?prompt", re.IGNORECASE),
    # Pre-baked reply: {"intent_type": ..., "confidence": 1.0}
    re.compile(r"\{\s*\"?(intent_type|confidence)\"?\s*:", re.IGNORECASE),
]


def sanitize_user_input(text: str, session_id: str = "") -> str:
    """Filter injection markers and cap length. Never raises."""
    if not text:
        return text

    hits = 0
    for pattern in _INJECTION_PATTERNS:
        text, n = pattern.subn(FILTERED, text)
        hits += n

    if contains_pii(text):
        # The model still sees it; logs and analytics are scrubbed downstream
        logger.info("[SANITIZER] session=%s pii_detected", session_id)

    truncated = len(text) > MAX_INPUT_CHARS
    if truncated:
        text = text[:MAX_INPUT_CHARS]

    if hits or truncated:
        logger.warning(
            "[SANITIZER] session=%s injection_markers=%d truncated=%s",
            session_id, hits, truncated,
        )
    return text
