"""Confidence Router: maps a ParsedIntent onto a ClassificationResult.

Tiers (lower bound inclusive):
  c >= ROUTE_THRESHOLD     -> Route    (navigate silently)
  c >= CONFIRM_THRESHOLD   -> Confirm  (yes/no naming the salient entity)
  otherwise                -> Clarify  (ranked suggestions)

Pure: no I/O, no context mutation.
"""
import logging
from enum import Enum
from typing import List, Optional

from intent.clarification import ClarificationGenerator
from intent.models import CONFIRM_THRESHOLD, ROUTE_THRESHOLD, ExtractedEntities, ParsedIntent
from intent.registry import build_routing_target, get_schema
from intent.results import ClassificationResult, Clarify, Confirm, Route

logger = logging.getLogger(__name__)


class ConfidenceTier(str, Enum):
    ROUTE = "ROUTE"
    CONFIRM = "CONFIRM"
    CLARIFY = "CLARIFY"


def tier_for(confidence: float) -> ConfidenceTier:
    if confidence >= ROUTE_THRESHOLD:
        return ConfidenceTier.ROUTE
    if confidence >= CONFIRM_THRESHOLD:
        return ConfidenceTier.CONFIRM
    return ConfidenceTier.CLARIFY


def salient_details(entities: ExtractedEntities) -> List[str]:
    """Entity phrases most worth reading back, most salient first."""
    details = []
    if entities.club is not None:
        details.append(entities.club.name)
    if entities.yardage is not None:
        details.append(f"{entities.yardage} yards")
    if entities.hole_number is not None:
        details.append(f"hole {entities.hole_number}")
    if entities.lie is not None:
        details.append(f"from the {entities.lie.value.lower()}")
    return details


def build_confirmation_message(intent: ParsedIntent) -> str:
    schema = get_schema(intent.intent_type)
    details = salient_details(intent.entities)
    if details:
        return f"Did you want to {schema.action_phrase} ({', '.join(details)})?"
    return f"Did you want to {schema.action_phrase}?"


class ConfidenceRouter:

    def __init__(self, clarifier: Optional[ClarificationGenerator] = None):
        self.clarifier = clarifier or ClarificationGenerator()

    def route(
        self,
        intent: ParsedIntent,
        normalized_input: str,
        original_input: Optional[str] = None,
    ) -> ClassificationResult:
        """`normalized_input` ranks suggestions; `original_input` is echoed back on Clarify."""
        tier = tier_for(intent.confidence)
        logger.info(
            "[ROUTER] intent=%s conf=%.2f tier=%s",
            intent.intent_type.value, intent.confidence, tier.value,
        )
        if tier is ConfidenceTier.ROUTE:
            target = intent.routing_target or build_routing_target(intent.intent_type, intent.entities)
            return Route(intent=intent, target=target)
        if tier is ConfidenceTier.CONFIRM:
            return Confirm(intent=intent, message=build_confirmation_message(intent))
        clarification = self.clarifier.generate(normalized_input, intent)
        return Clarify(
            original_input=normalized_input if original_input is None else original_input,
            message=clarification.message,
            suggestions=clarification.suggestions,
            parsed_intent=intent,
        )
