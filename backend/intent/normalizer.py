"""Input Normalizer: rewrites raw utterances into canonical form.

Applied as an ordered list of (pattern, action) rules compiled at import:
  1. whitespace collapse
  2. profanity mask (fixed-length placeholder)
  3. club number phrases    "seven iron" / "7 iron" -> "7-iron"
  4. compound distances     "one fifty" -> "150"
  5. abbreviations + slang  "7i" -> "7-iron", "pw" -> "pitching wedge"
  6. single number words    "twelve" -> "12"
  7. whitespace collapse

Every rule's output is a fixed point of every rule, so normalize() is
idempotent. Pure; no side effects besides debug logging.
"""
import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List, Tuple, Union

logger = logging.getLogger(__name__)

PROFANITY_MASK = "****"


class ModificationType(str, Enum):
    WHITESPACE = "WHITESPACE"
    PROFANITY = "PROFANITY"
    NUMBER = "NUMBER"
    ABBREVIATION = "ABBREVIATION"


@dataclass
class NormalizationResult:
    original: str
    normalized: str
    modifications: List[Tuple[ModificationType, str, str]] = field(default_factory=list)

    @property
    def was_modified(self) -> bool:
        return self.original != self.normalized


_ONES = {
    "one": 1, "two": 2, "three": 3, "four": 4, "five": 5,
    "six": 6, "seven": 7, "eight": 8, "nine": 9,
}
_TEENS = {
    "ten": 10, "eleven": 11, "twelve": 12, "thirteen": 13, "fourteen": 14,
    "fifteen": 15, "sixteen": 16, "seventeen": 17, "eighteen": 18, "nineteen": 19,
}
_TENS = {
    "twenty": 20, "thirty": 30, "forty": 40, "fifty": 50,
    "sixty": 60, "seventy": 70, "eighty": 80, "ninety": 90,
}
_SINGLES = {"zero": 0, **_ONES, **_TEENS, **_TENS, "hundred": 100}

_ONES_RE = "|".join(_ONES)
_TEENS_TENS_RE = "|".join(list(_TEENS) + list(_TENS))
_TENS_RE = "|".join(_TENS)

# Standalone token: not glued to letters, digits, apostrophes or hyphens ("I'd", "D-day")
_L = r"(?<![\w'-])"
_R = r"(?![\w'-])"

Replacement = Union[str, Callable[[re.Match], str]]


def _num(word: str) -> int:
    return _SINGLES[word.lower()]


def _club_number(m: re.Match) -> str:
    token = m.group(1).lower()
    number = token if token.isdigit() else str(_ONES[token])
    return f"{number}-{m.group(2).lower()}"


def _hundreds(m: re.Match) -> str:
    lead = m.group(1).lower()
    value = 100 if lead == "a" else _num(lead) * 100
    if m.group(2):
        value += _num(m.group(2))
    if m.group(3):
        value += _num(m.group(3))
    return str(value)


def _spoken_distance(m: re.Match) -> str:
    value = _num(m.group(1)) * 100 + _num(m.group(2))
    if m.group(3):
        value += _num(m.group(3))
    return str(value)


def _oh_distance(m: re.Match) -> str:
    return str(_num(m.group(1)) * 100 + _num(m.group(2)))


def _tens_ones(m: re.Match) -> str:
    return str(_num(m.group(1)) + _num(m.group(2)))


def _single(m: re.Match) -> str:
    return str(_num(m.group(0)))


def _rule(pattern: str, replacement: Replacement, kind: ModificationType):
    return re.compile(pattern, re.IGNORECASE), replacement, kind


_WHITESPACE_RULE = _rule(r"\s+", " ", ModificationType.WHITESPACE)

_PROFANITY_RULES = [
    _rule(
        r"\b(?:fuck(?:ing|ed|er|s)?|shit(?:ty|s)?|damn(?:ed|it)?|hell|ass|asshole|"
        r"bitch(?:es)?|crap(?:py)?|piss(?:ed)?|bastard|cock|dick)\b",
        PROFANITY_MASK, ModificationType.PROFANITY,
    ),
]

_NUMBER_PHRASE_RULES = [
    _rule(rf"\b({_ONES_RE}|[2-9])[ -]?(iron|wood|hybrid)s?\b", _club_number, ModificationType.NUMBER),
    _rule(
        rf"\b(a|{_ONES_RE}) hundred(?: and)?(?: ({_TEENS_TENS_RE}))?(?: ({_ONES_RE}))?\b",
        _hundreds, ModificationType.NUMBER,
    ),
    _rule(rf"\b(one|two) ({_TEENS_TENS_RE})(?: ({_ONES_RE}))?\b", _spoken_distance, ModificationType.NUMBER),
    _rule(rf"\b(one|two) oh ({_ONES_RE})\b", _oh_distance, ModificationType.NUMBER),
    _rule(rf"\b({_TENS_RE})[ -]({_ONES_RE})\b", _tens_ones, ModificationType.NUMBER),
]

# Longest phrases first so "flat stick" wins over "stick"
_ABBREVIATIONS: List[Tuple[str, str]] = [
    ("big stick", "driver"),
    ("big dog", "driver"),
    ("flat stick", "putter"),
    ("flatstick", "putter"),
    ("dance floor", "green"),
    ("short grass", "fairway"),
    ("sticks", "clubs"),
    ("stick", "club"),
    ("pw", "pitching wedge"),
    ("gw", "gap wedge"),
    ("aw", "approach wedge"),
    ("sw", "sand wedge"),
    ("lw", "lob wedge"),
    ("1w", "driver"),
    ("d", "driver"),
]

_ABBREVIATION_RULES = [
    _rule(r"\b([3-9])i\b", r"\1-iron", ModificationType.ABBREVIATION),
    _rule(r"\b([357])w\b", r"\1-wood", ModificationType.ABBREVIATION),
    _rule(r"\b([2-5])h\b", r"\1-hybrid", ModificationType.ABBREVIATION),
] + [
    _rule(_L + re.escape(short).replace(r"\ ", r"\s") + _R, full, ModificationType.ABBREVIATION)
    for short, full in sorted(_ABBREVIATIONS, key=lambda p: len(p[0]), reverse=True)
]

_SINGLE_NUMBER_RULES = [
    _rule(r"\b(?:" + "|".join(_SINGLES) + r")\b", _single, ModificationType.NUMBER),
]

RULES = (
    [_WHITESPACE_RULE]
    + _PROFANITY_RULES
    + _NUMBER_PHRASE_RULES
    + _ABBREVIATION_RULES
    + _SINGLE_NUMBER_RULES
    + [_WHITESPACE_RULE]
)


def normalize_with_report(raw: str) -> NormalizationResult:
    """Apply every rule in order and record which ones changed the text."""
    text = raw or ""
    result = NormalizationResult(original=text, normalized=text)
    for pattern, replacement, kind in RULES:
        updated = pattern.sub(replacement, text)
        if kind is ModificationType.WHITESPACE:
            updated = updated.strip()
        if updated != text:
            result.modifications.append((kind, text, updated))
            text = updated
    result.normalized = text
    if result.modifications:
        logger.debug(
            "[NORMALIZER] %d modification(s): %s",
            len(result.modifications),
            ",".join(sorted({m[0].value for m in result.modifications})),
        )
    return result


def normalize(raw: str) -> str:
    return normalize_with_report(raw).normalized
