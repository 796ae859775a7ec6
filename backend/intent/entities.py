"""Entity parsing: club and lie vocabularies, tolerant entity construction.

Model replies carry loosely-typed entity values. Anything that cannot be
understood is dropped to None; a bad entity never fails a classification.
"""
import logging
import re
from typing import Any, Dict, List, Optional, Tuple

from intent.models import Club, ClubType, ExtractedEntities, Lie

logger = logging.getLogger(__name__)

# Canonical clubs: name -> (type, loft, estimated carry yards)
CLUB_CATALOGUE: Dict[str, Club] = {
    c.name: c for c in (
        Club("Driver", ClubType.DRIVER, 10.5, 230),
        Club("3-Wood", ClubType.WOOD, 15.0, 210),
        Club("5-Wood", ClubType.WOOD, 18.0, 195),
        Club("7-Wood", ClubType.WOOD, 21.0, 185),
        Club("2-Hybrid", ClubType.HYBRID, 17.0, 195),
        Club("3-Hybrid", ClubType.HYBRID, 19.0, 185),
        Club("4-Hybrid", ClubType.HYBRID, 22.0, 175),
        Club("5-Hybrid", ClubType.HYBRID, 25.0, 165),
        Club("3-Iron", ClubType.IRON, 20.0, 180),
        Club("4-Iron", ClubType.IRON, 23.0, 170),
        Club("5-Iron", ClubType.IRON, 26.0, 160),
        Club("6-Iron", ClubType.IRON, 29.0, 150),
        Club("7-Iron", ClubType.IRON, 33.0, 140),
        Club("8-Iron", ClubType.IRON, 37.0, 130),
        Club("9-Iron", ClubType.IRON, 41.0, 120),
        Club("Pitching Wedge", ClubType.WEDGE, 46.0, 110),
        Club("Gap Wedge", ClubType.WEDGE, 50.0, 100),
        Club("Approach Wedge", ClubType.WEDGE, 50.0, 100),
        Club("Sand Wedge", ClubType.WEDGE, 54.0, 85),
        Club("Lob Wedge", ClubType.WEDGE, 60.0, 70),
        Club("Putter", ClubType.PUTTER, 3.0, None),
    )
}

_NUMBER_WORDS = {
    "two": "2", "three": "3", "four": "4", "five": "5",
    "six": "6", "seven": "7", "eight": "8", "nine": "9",
}

# Ordered: first full match wins. Input is lowercased with whitespace collapsed.
_CLUB_PATTERNS: List[Tuple[re.Pattern, Any]] = [
    (re.compile(r"^(?:driver|d|1w|1-wood|1 wood|big stick|big dog)$"), "Driver"),
    (re.compile(r"^([357])\s*-?\s*(?:w|wood|woods|fairway wood)$"), lambda m: f"{m.group(1)}-Wood"),
    (re.compile(r"^([2-5])\s*-?\s*(?:h|hy|hyb|hybrid|rescue)$"), lambda m: f"{m.group(1)}-Hybrid"),
    (re.compile(r"^([3-9])\s*-?\s*(?:i|iron|irons)$"), lambda m: f"{m.group(1)}-Iron"),
    (re.compile(r"^(?:pw|p|pitching wedge|pitching|pitch wedge)$"), "Pitching Wedge"),
    (re.compile(r"^(?:gw|gap wedge|gap)$"), "Gap Wedge"),
    (re.compile(r"^(?:aw|approach wedge|approach)$"), "Approach Wedge"),
    (re.compile(r"^(?:sw|sand wedge|sand)$"), "Sand Wedge"),
    (re.compile(r"^(?:lw|lob wedge|lob)$"), "Lob Wedge"),
    (re.compile(r"^(?:putter|flat stick|flatstick)$"), "Putter"),
]

_LIE_KEYWORDS: List[Tuple[Tuple[str, ...], Lie]] = [
    (("tee", "tee box"), Lie.TEE),
    (("fairway", "short grass"), Lie.FAIRWAY),
    (("rough", "long grass", "thick stuff"), Lie.ROUGH),
    (("bunker", "sand", "trap", "sand trap"), Lie.BUNKER),
    (("green", "putting surface", "dance floor"), Lie.GREEN),
    (("fringe", "apron", "collar"), Lie.FRINGE),
    (("hazard", "water", "penalty area"), Lie.HAZARD),
]


def parse_club(value: Any) -> Optional[Club]:
    """Map free-form club text ('7i', 'seven iron', 'PW') to a catalogue club."""
    if not isinstance(value, str):
        return None
    text = " ".join(value.lower().replace("_", " ").split())
    if not text:
        return None
    for word, digit in _NUMBER_WORDS.items():
        text = re.sub(rf"\b{word}\b", digit, text)
    for pattern, target in _CLUB_PATTERNS:
        m = pattern.match(text)
        if m:
            name = target(m) if callable(target) else target
            return CLUB_CATALOGUE.get(name)
    # Already canonical ("7-Iron", "Sand Wedge")
    for name, club in CLUB_CATALOGUE.items():
        if name.lower() == text:
            return club
    return None


def parse_lie(value: Any) -> Optional[Lie]:
    if not isinstance(value, str):
        return None
    text = " ".join(value.lower().split())
    if not text:
        return None
    try:
        return Lie(text.upper())
    except ValueError:
        pass
    for keywords, lie in _LIE_KEYWORDS:
        if text in keywords:
            return lie
    for keywords, lie in _LIE_KEYWORDS:
        if any(re.search(rf"\b{re.escape(k)}\b", text) for k in keywords):
            return lie
    return None


def _as_int(value: Any) -> Optional[int]:
    """Coerce ints, integral floats and numeric strings; anything else is None."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value == value and value.is_integer() else None
    if isinstance(value, str):
        m = re.fullmatch(r"\s*(-?\d+)\s*(?:yards?|yds?)?\s*", value.lower())
        return int(m.group(1)) if m else None
    return None


def _as_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() in ("true", "yes", "y", "1")
    return False


def _as_text(value: Any) -> Optional[str]:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def build_entities(raw: Optional[Dict[str, Any]]) -> ExtractedEntities:
    """Construct ExtractedEntities from a model reply's entities object.

    Unknown keys are ignored; offending values become None and range rules
    are applied by ExtractedEntities itself.
    """
    if not isinstance(raw, dict):
        return ExtractedEntities()

    dropped = []
    club = parse_club(raw.get("club"))
    if raw.get("club") is not None and club is None:
        dropped.append("club")
    lie = parse_lie(raw.get("lie"))
    if raw.get("lie") is not None and lie is None:
        dropped.append("lie")

    hole_raw = raw.get("hole_number", raw.get("hole"))
    entities = ExtractedEntities(
        club=club,
        yardage=_as_int(raw.get("yardage")),
        lie=lie,
        wind=_as_text(raw.get("wind")),
        fatigue=_as_int(raw.get("fatigue")),
        pain=_as_bool(raw.get("pain")),
        score_context=_as_text(raw.get("score_context")),
        hole_number=_as_int(hole_raw),
    )
    if raw.get("yardage") is not None and entities.yardage is None:
        dropped.append("yardage")
    if hole_raw is not None and entities.hole_number is None:
        dropped.append("hole_number")
    if dropped:
        logger.debug("[ENTITIES] dropped unparseable entities: %s", ", ".join(dropped))
    return entities
