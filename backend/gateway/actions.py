"""Downstream actions for routed intents.

The pipeline hands every Route to an ActionExecutor. The default executor
asks the Navigator collaborator to switch screens (for intents that navigate)
and produces the caddy's reply text. Intents without navigation are answered
inline in the conversation.
"""
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional

from intent.models import IntentType, ParsedIntent, RoutingTarget
from intent.prerequisites import missing_advisories
from intent.registry import get_schema
from intent.router import salient_details
from session.models import SessionContext

logger = logging.getLogger(__name__)

HELP_TEXT = (
    "I can help with club selection, shot strategy, your miss patterns, "
    "recovery and scoring. Just ask what you need."
)
NO_ROUND_HINT = "Start a round and I can factor in the hole you're on."


@dataclass(frozen=True)
class ActionOutcome:
    response_text: str
    navigated_to: Optional[RoutingTarget] = None


class Navigator(ABC):
    """Screen switching on the host (app shell, web client)."""

    @abstractmethod
    async def navigate(self, target: RoutingTarget) -> None:
        ...


class LoggingNavigator(Navigator):
    """Records navigation requests; used when no host navigator is attached."""

    def __init__(self):
        self.history: List[RoutingTarget] = []

    async def navigate(self, target: RoutingTarget) -> None:
        self.history.append(target)
        logger.info(
            "[NAV] module=%s screen=%s params=%s",
            target.module.value, target.screen, sorted(target.parameters),
        )


class ActionExecutor(ABC):

    @abstractmethod
    async def execute(
        self,
        intent: ParsedIntent,
        target: RoutingTarget,
        context: SessionContext,
    ) -> ActionOutcome:
        ...


def _detail_suffix(intent: ParsedIntent) -> str:
    details = salient_details(intent.entities)
    return f" ({', '.join(details)})" if details else ""


def _hole_suffix(intent: ParsedIntent, context: SessionContext) -> str:
    hole = intent.entities.hole_number or context.current_hole
    return f" for hole {hole}" if hole else ""


def reply_for(intent: ParsedIntent, context: SessionContext) -> str:
    """Caddy reply for a routed intent, before guardrail formatting."""
    kind = intent.intent_type
    entities = intent.entities

    if kind is IntentType.CLUB_ADJUSTMENT:
        club = entities.club.name if entities.club else "club"
        return f"Let's dial in your {club} distances."
    if kind is IntentType.RECOVERY_CHECK:
        return "Here's how your recovery is looking today."
    if kind is IntentType.SHOT_RECOMMENDATION:
        text = f"Here's my read on this shot{_detail_suffix(intent)}."
        if missing_advisories(kind, context):
            text += f" {NO_ROUND_HINT}"
        return text
    if kind is IntentType.SCORE_ENTRY:
        return f"Let's get that score down{_hole_suffix(intent, context)}."
    if kind is IntentType.PATTERN_QUERY:
        if entities.club is not None:
            return f"Here's what your recent shots with the {entities.club.name} say."
        return "Here's what your recent shots say."
    if kind is IntentType.DRILL_REQUEST:
        return "Here's a drill to work on next time you practice."
    if kind is IntentType.WEATHER_CHECK:
        return "Here's the latest on the conditions."
    if kind is IntentType.STATS_LOOKUP:
        return "Pulling up your stats."
    if kind is IntentType.ROUND_START:
        return "Let's get your round set up."
    if kind is IntentType.ROUND_END:
        return "Nice work out there. Here's your round summary."
    if kind is IntentType.EQUIPMENT_INFO:
        return "Here's what's in your bag."
    if kind is IntentType.COURSE_INFO:
        return f"Here's the layout{_hole_suffix(intent, context)}."
    if kind is IntentType.SETTINGS_CHANGE:
        return "Opening your settings."
    if kind is IntentType.HELP_REQUEST:
        return HELP_TEXT
    if kind is IntentType.FEEDBACK:
        return "Thanks, I'm all ears. Tell me what's on your mind."
    return f"On it: {get_schema(kind).display_name}."


class NavigationActionExecutor(ActionExecutor):

    def __init__(self, navigator: Optional[Navigator] = None):
        self.navigator = navigator or LoggingNavigator()

    async def execute(
        self,
        intent: ParsedIntent,
        target: RoutingTarget,
        context: SessionContext,
    ) -> ActionOutcome:
        schema = get_schema(intent.intent_type)
        navigated_to = None
        if schema.requires_navigation:
            await self.navigator.navigate(target)
            navigated_to = target
        else:
            logger.debug("[ACTION] intent=%s answered inline", intent.intent_type.value)
        return ActionOutcome(response_text=reply_for(intent, context), navigated_to=navigated_to)
