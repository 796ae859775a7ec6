"""Response formatter: the last step before generated text reaches the golfer.

Steps, in order:
  1. guardrail verdict on the raw text (or forced for sensitive input)
  2. strip generic filler phrases
  3. formal -> natural voice replacements
  4. soften absolute guarantees
  5. flag forbidden phrases that survived the rewrites (logged, not removed)
  6. append pattern references (top 2, decayed confidence >= 0.6)
  7. append the single disclaimer block

Deterministic: same input and options give byte-identical output.
"""
import logging
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Optional, Sequence, Tuple

from guardrails.persona import (
    PASS,
    DisclaimerType,
    GuardrailResult,
    check_response,
    forbidden_phrases,
    get_disclaimer,
    soften_guarantees,
)
from intent.models import MissPattern

logger = logging.getLogger(__name__)

PATTERN_MIN_CONFIDENCE = 0.6
MAX_PATTERN_REFERENCES = 2
PATTERN_HEADING = "**Based on your recent patterns:**"

FILLER_PHRASES: Tuple[re.Pattern, ...] = tuple(
    re.compile(p, re.IGNORECASE) for p in (
        r"\bAs an AI assistant,\s*",
        r"\bAs a language model,\s*",
        r"\bI'm here to help you\s*",
        r"\bFeel free to ask me\s*",
        r"\s*\bLet me know if you need anything else[.!]?",
        r"\s*\bIs there anything else I can help you with\?",
    )
)

VOICE_REPLACEMENTS: Tuple[Tuple[re.Pattern, str], ...] = tuple(
    (re.compile(rf"\b{p}\b", re.IGNORECASE), r) for p, r in (
        ("it is recommended that you", "I'd recommend you"),
        ("it would be beneficial to", "it'll help to"),
        ("you should consider", "consider"),
        ("in order to", "to"),
        ("utilizes", "uses"),
        ("utilize", "use"),
        ("approximately", "about"),
        ("additionally", "also"),
        ("subsequently", "then"),
    )
)

_SPACES_RE = re.compile(r"[ \t]{2,}")


@dataclass(frozen=True)
class FormatOptions:
    include_pattern_references: bool = True
    # Preceding user input mentioned pain or similar; disclaimer is mandatory
    sensitive_input: bool = False
    forced_disclaimer: DisclaimerType = DisclaimerType.MEDICAL
    # Reference time for pattern decay; defaults to the current UTC time
    now: Optional[datetime] = None


@dataclass(frozen=True)
class FormattedResponse:
    text: str
    disclaimer_added: bool
    disclaimer_type: Optional[DisclaimerType]
    pattern_references_count: int
    guardrail: GuardrailResult = PASS
    forbidden: Tuple[str, ...] = ()


def _keep_case(replacement: str, matched: str) -> str:
    if matched[:1].isupper() and replacement[:1].islower():
        return replacement[:1].upper() + replacement[1:]
    return replacement


def strip_filler(text: str) -> str:
    for pattern in FILLER_PHRASES:
        text = pattern.sub("", text)
    text = _SPACES_RE.sub(" ", text).strip()
    if text[:1].islower():
        text = text[:1].upper() + text[1:]
    return text


def polish_voice(text: str) -> str:
    for pattern, replacement in VOICE_REPLACEMENTS:
        text = pattern.sub(lambda m, r=replacement: _keep_case(r, m.group(0)), text)
    return text


def frequency_word(frequency: int) -> str:
    if frequency >= 10:
        return "frequently"
    if frequency >= 5:
        return "occasionally"
    return "sometimes"


def select_patterns(patterns: Sequence[MissPattern], now: Optional[datetime] = None) -> List[MissPattern]:
    """Top patterns by confidence after time decay."""
    scored = [(p.decayed_confidence(now), p) for p in patterns]
    eligible = [(c, p) for c, p in scored if c >= PATTERN_MIN_CONFIDENCE]
    # Stable sort keeps caller order among equal confidences
    eligible.sort(key=lambda item: item[0], reverse=True)
    return [p for _, p in eligible[:MAX_PATTERN_REFERENCES]]


def describe_pattern(pattern: MissPattern, now: Optional[datetime] = None) -> str:
    detail = frequency_word(pattern.frequency)
    if pattern.club is not None:
        detail += f" with {pattern.club.name}"
    if pattern.pressure_context is not None and pattern.pressure_context.has_pressure:
        detail += " under pressure"
    percent = round(pattern.decayed_confidence(now) * 100)
    return f"- {pattern.direction.value.lower()} ({detail}, {percent}% confidence)"


def format_pattern_references(
    patterns: Sequence[MissPattern], now: Optional[datetime] = None,
) -> Tuple[str, int]:
    selected = select_patterns(patterns, now)
    if not selected:
        return "", 0
    lines = [PATTERN_HEADING] + [describe_pattern(p, now) for p in selected]
    return "\n".join(lines), len(selected)


class ResponseFormatter:

    def format(
        self,
        raw_response: str,
        relevant_patterns: Sequence[MissPattern] = (),
        options: FormatOptions = FormatOptions(),
    ) -> FormattedResponse:
        guardrail = check_response(raw_response)
        disclaimer_type = guardrail.disclaimer_type
        if disclaimer_type is None and options.sensitive_input:
            disclaimer_type = options.forced_disclaimer

        text = strip_filler(raw_response)
        text = polish_voice(text)
        text = soften_guarantees(text)
        text = _SPACES_RE.sub(" ", text).strip()

        forbidden = tuple(forbidden_phrases(text))
        if forbidden:
            logger.warning("[FORMATTER] forbidden=%s", ",".join(forbidden))

        blocks = [text] if text else []
        pattern_count = 0
        if options.include_pattern_references and relevant_patterns:
            references, pattern_count = format_pattern_references(
                relevant_patterns, options.now or datetime.now(timezone.utc),
            )
            if references:
                blocks.append(references)
        if disclaimer_type is not None:
            blocks.append(get_disclaimer(disclaimer_type))

        if disclaimer_type is not None or pattern_count:
            logger.info(
                "[FORMATTER] disclaimer=%s patterns=%d",
                disclaimer_type.value if disclaimer_type else "none", pattern_count,
            )
        return FormattedResponse(
            text="\n\n".join(blocks),
            disclaimer_added=disclaimer_type is not None,
            disclaimer_type=disclaimer_type,
            pattern_references_count=pattern_count,
            guardrail=guardrail,
            forbidden=forbidden,
        )
