"""Persona guardrails: detection table, disclaimers, guarantee softening.

GUARDRAIL_RULES is an ordered list compiled at import. The disclaimer
attached to a response is chosen by first match in table order:
  MEDICAL -> SWING_TECHNIQUE -> BETTING -> SAFETY (absolute guarantees)
"""
import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)


class DisclaimerType(str, Enum):
    MEDICAL = "MEDICAL"
    SWING_TECHNIQUE = "SWING_TECHNIQUE"
    BETTING = "BETTING"
    SAFETY = "SAFETY"


@dataclass(frozen=True)
class GuardrailResult:
    needs_disclaimer: bool
    disclaimer_type: Optional[DisclaimerType] = None
    violated_rule: Optional[str] = None


PASS = GuardrailResult(needs_disclaimer=False)


@dataclass(frozen=True)
class GuardrailRule:
    disclaimer_type: DisclaimerType
    violated_rule: str
    patterns: Tuple[re.Pattern, ...]

    def matches(self, text: str) -> bool:
        return any(p.search(text) for p in self.patterns)


def _compile(*patterns: str) -> Tuple[re.Pattern, ...]:
    return tuple(re.compile(p, re.IGNORECASE) for p in patterns)


GUARDRAIL_RULES: Tuple[GuardrailRule, ...] = (
    GuardrailRule(
        DisclaimerType.MEDICAL,
        "Response discusses medical or physical health topics",
        _compile(
            r"\b(pain|injury|injuries|hurt|strain|sprain|tear|inflammation)\b",
            r"\b(doctor|physician|physical therapy|physio|medical)\b",
            r"\b(diagnose|diagnosis|treatment|heal|recovery time)\b",
            r"\b(tendonitis|arthritis|nerve|muscle damage)\b",
        ),
    ),
    GuardrailRule(
        DisclaimerType.SWING_TECHNIQUE,
        "Response provides swing technique advice",
        _compile(
            r"\b(swing path|swing plane|club ?face|impact position)\b",
            r"\b(grip pressure|grip change|stance width|ball position)\b",
            r"\b(weight shift|hip rotation|shoulder turn|backswing)\b",
            r"\b(wrist hinge|release point|follow[- ]through)\b",
        ),
    ),
    GuardrailRule(
        DisclaimerType.BETTING,
        "Response discusses betting or gambling",
        _compile(
            r"\b(bet|bets|wager|gamble|odds|spread)\b",
            r"\b(gambling|betting line|over under|over/under)\b",
            r"\bmoney on\b",
        ),
    ),
    GuardrailRule(
        DisclaimerType.SAFETY,
        "Response contains absolute guarantees",
        _compile(
            r"\bwill (fix|cure|eliminate|stop|prevent)\b",
            r"\b(guaranteed|definitely|certainly) (fix|improve|solve)\b",
            r"\bguarantee[sd]?\b",
            r"\bthis will\b",
            r"\byou['’]ll never\b",
        ),
    ),
)

DISCLAIMERS: Dict[DisclaimerType, str] = {
    DisclaimerType.MEDICAL: (
        "*Note: This is general information only. For pain, injury concerns, or persistent "
        "physical issues, please consult with a qualified medical professional or physical therapist.*"
    ),
    DisclaimerType.SWING_TECHNIQUE: (
        "*Note: This is general guidance. For personalized swing instruction, "
        "consider working with a certified golf professional.*"
    ),
    DisclaimerType.BETTING: (
        "*Note: CaddyPro does not provide betting or gambling advice. "
        "Please bet responsibly and within your means.*"
    ),
    DisclaimerType.SAFETY: (
        "*Note: Results may vary. These are suggestions based on patterns, not guaranteed outcomes.*"
    ),
}

# Absolute-guarantee phrasing -> hedged phrasing, applied in order
GUARANTEE_SOFTENING: Tuple[Tuple[re.Pattern, str], ...] = (
    (re.compile(r"\s*\b(?:100%\s+|absolutely\s+)?guaranteed\b(?!\s+(?:fix|improve|solve)\b)", re.IGNORECASE), ""),
    (re.compile(r"\bI guarantee(?: that)?\s*", re.IGNORECASE), ""),
    (re.compile(r"\b(?:will\s+)?(?:guaranteed|definitely|certainly|absolutely) (fix|improve|solve)\b", re.IGNORECASE), r"may help \1"),
    (re.compile(r"\bwill fix\b", re.IGNORECASE), "may help fix"),
    (re.compile(r"\bwill cure\b", re.IGNORECASE), "may help with"),
    (re.compile(r"\bwill (?:eliminate|stop)\b", re.IGNORECASE), "may help reduce"),
    (re.compile(r"\bwill prevent\b", re.IGNORECASE), "may help prevent"),
    (re.compile(r"\byou['’]ll never\b", re.IGNORECASE), "you're less likely to"),
)

FORBIDDEN_PHRASES: Tuple[str, ...] = (
    "as an ai",
    "as a language model",
    "i cannot diagnose",
    "i am not a doctor",
    "bet on",
    "place a wager",
)


def check_response(text: str) -> GuardrailResult:
    """First-match-priority guardrail verdict for a response."""
    for rule in GUARDRAIL_RULES:
        if rule.matches(text):
            logger.info("[GUARDRAIL] rule=%s", rule.disclaimer_type.value)
            return GuardrailResult(True, rule.disclaimer_type, rule.violated_rule)
    return PASS


def get_disclaimer(disclaimer_type: DisclaimerType) -> str:
    return DISCLAIMERS[disclaimer_type]


def _hedge(replacement: str):
    def substitute(m: re.Match) -> str:
        text = m.expand(replacement)
        if m.group(0)[:1].isupper() and text[:1].islower():
            return text[:1].upper() + text[1:]
        return text
    return substitute


def soften_guarantees(text: str) -> str:
    for pattern, replacement in GUARANTEE_SOFTENING:
        text = pattern.sub(_hedge(replacement), text)
    return text


def forbidden_phrases(text: str) -> List[str]:
    lowered = text.lower()
    return [p for p in FORBIDDEN_PHRASES if p in lowered]
