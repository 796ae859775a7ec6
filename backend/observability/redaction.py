"""PII and secret scrubbing for everything that leaves the process.

Applied to every log line (core.logging_config) and every analytics event
(observability.analytics). Golf talk ("7-iron from 150 on hole 7") must pass
through untouched, so numeric patterns require the shape of a card, SSN or
phone number rather than any run of digits.
"""
import re
from typing import Any, FrozenSet, Optional, Tuple

REDACTED = "[REDACTED]"

_ADDRESS_SUFFIX = r"(?:Street|St|Avenue|Ave|Road|Rd|Lane|Ln|Drive|Dr|Boulevard|Blvd|Court|Ct|Way)"

# Applied in order: cards and SSNs before phones
_RULES: Tuple[Tuple[str, re.Pattern], ...] = (
    ("EMAIL", re.compile(r"[\w.+-]+@[A-Za-z0-9-]+\.[A-Za-z0-9.-]+")),
    ("CARD", re.compile(r"\b(?:\d[ -]?){12,15}\d\b")),
    ("SSN", re.compile(r"\b\d{3}-\d{2}-\d{4}\b")),
    ("PHONE", re.compile(r"\+?\d[\d\-\s().]{8,15}\d")),
    ("ADDRESS", re.compile(rf"\b\d{{1,5}}\s+(?:[A-Z][a-z]+\s+){{1,3}}{_ADDRESS_SUFFIX}\b\.?")),
    ("SECRET", re.compile(r"(?:api[_-]?key|token|secret|password)[\s:=]+[\"']?[\w.-]{20,}[\"']?", re.IGNORECASE)),
    ("SECRET", re.compile(r"\bAIza[\w-]{35}\b")),
    ("JWT", re.compile(r"eyJ[\w-]+\.eyJ[\w-]+\.[\w-]+")),
    ("BEARER", re.compile(r"Bearer\s+[\w.-]+", re.IGNORECASE)),
)

SENSITIVE_KEYS: FrozenSet[str] = frozenset({
    "api_key", "gemini_api_key", "authorization", "password", "secret", "token",
})


def redact(text: str) -> str:
    for label, pattern in _RULES:
        text = pattern.sub(f"[REDACTED_{label}]", text)
    return text


def contains_pii(text: str) -> bool:
    return any(pattern.search(text) for _, pattern in _RULES)


def _redact_value(value: Any, keys: FrozenSet[str]) -> Any:
    if isinstance(value, dict):
        return redact_dict(value, keys)
    if isinstance(value, str):
        return redact(value)
    if isinstance(value, (list, tuple)):
        return type(value)(_redact_value(v, keys) for v in value)
    return value


def redact_dict(data: dict, sensitive_keys: Optional[FrozenSet[str]] = None) -> dict:
    """Copy of `data` with sensitive keys blanked and free text scrubbed."""
    keys = SENSITIVE_KEYS if sensitive_keys is None else frozenset(k.lower() for k in sensitive_keys)
    return {
        k: REDACTED if k.lower() in keys else _redact_value(v, keys)
        for k, v in data.items()
    }
