"""Mock LLM client: deterministic local classification for dev and tests.

Scores the input against each intent's example phrases and emits a reply in
the same JSON schema the real model is instructed to produce.
"""
import asyncio
import json
import logging
import re
import time
from typing import Dict, Optional, Set

from intent.registry import all_schemas
from prompting.llm.interface import LLMClient, LLMRequest, LLMResponse

logger = logging.getLogger(__name__)

_WORD_RE = re.compile(r"[a-z0-9][a-z0-9'-]*")
_CLUB_RE = re.compile(
    r"\b([3-9]-iron|[357]-wood|[2-5]-hybrid|driver|putter|(?:pitching|gap|approach|sand|lob) wedge)\b"
)
_YARDAGE_RE = re.compile(r"\b(\d{2,3})(?![\d-])(?:\s*(?:yards?|yds?))?")
_HOLE_RE = re.compile(r"\bhole\s+(\d{1,2})\b")
_LIE_RE = re.compile(r"\b(fairway|rough|bunker|sand trap|green|tee box|fringe)\b")
_WIND_RE = re.compile(r"\b(into the wind|downwind|crosswind|head ?wind|tail ?wind|windy)\b")
_PAIN_WORDS = {"pain", "hurt", "hurts", "sore", "injury", "injured"}


def _tokens(text: str) -> Set[str]:
    return {w.strip("'") for w in _WORD_RE.findall(text.lower())}


# Per-intent vocabulary built once from the registry's example phrases
_VOCABULARY: Dict[str, Set[str]] = {
    schema.intent_type.value: {
        w for phrase in schema.example_phrases for w in _tokens(phrase) if len(w) > 3
    }
    for schema in all_schemas()
}


def _extract_entities(text: str) -> dict:
    lowered = text.lower()
    entities: dict = {}
    club = _CLUB_RE.search(lowered)
    if club:
        entities["club"] = club.group(1)

    hole = _HOLE_RE.search(lowered)
    hole_span = None
    if hole:
        entities["hole_number"] = int(hole.group(1))
        hole_span = hole.span(1)
    for m in _YARDAGE_RE.finditer(lowered):
        if m.span(1) != hole_span:
            entities["yardage"] = int(m.group(1))
            break

    lie = _LIE_RE.search(lowered)
    if lie:
        entities["lie"] = lie.group(1)
    wind = _WIND_RE.search(lowered)
    if wind:
        entities["wind"] = wind.group(1)
    if _tokens(lowered) & _PAIN_WORDS:
        entities["pain"] = True
    return entities


def mock_classify(text: str) -> dict:
    """Keyword-overlap classification; confidence grows with overlap."""
    tokens = _tokens(text)
    best_intent: Optional[str] = None
    best_score = 0
    for intent, vocabulary in _VOCABULARY.items():
        score = len(tokens & vocabulary)
        if score > best_score:
            best_intent, best_score = intent, score

    if best_intent is None:
        return {"intent_type": "HELP_REQUEST", "confidence": 0.3, "entities": _extract_entities(text)}
    return {
        "intent_type": best_intent,
        "confidence": round(min(0.95, 0.45 + 0.15 * best_score), 2),
        "entities": _extract_entities(text),
        "user_goal": None,
    }


class MockLLMClient(LLMClient):
    """Deterministic LLM stand-in. Only used when MOCK_LLM=true."""

    def __init__(self, latency_ms: float = 0.0):
        self.latency_ms = latency_ms

    async def complete(self, request: LLMRequest) -> LLMResponse:
        start = time.monotonic()
        if self.latency_ms:
            await asyncio.sleep(self.latency_ms / 1000)
        reply = mock_classify(request.user_input)
        logger.debug("[LLM:MOCK] intent=%s conf=%.2f", reply["intent_type"], reply["confidence"])
        return LLMResponse(
            text=json.dumps(reply),
            latency_ms=(time.monotonic() - start) * 1000,
            model="mock",
        )

    async def is_healthy(self) -> bool:
        return True
