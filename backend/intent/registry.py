"""Intent registry: per-intent display data, default routing and example phrases.

Single source of truth for:
  - where a high-confidence intent navigates (module + screen + defaults)
  - chip labels shown for clarification suggestions
  - the intent catalogue embedded in the classification system prompt
"""
from dataclasses import dataclass, field
from typing import Dict, List, Tuple

from intent.models import ExtractedEntities, IntentType, Module, RoutingTarget


@dataclass(frozen=True)
class IntentSchema:
    intent_type: IntentType
    display_name: str
    description: str
    chip_label: str
    action_phrase: str  # completes "Did you want to ..."
    module: Module
    screen: str
    default_params: Dict[str, str] = field(default_factory=dict)
    requires_navigation: bool = True
    example_phrases: Tuple[str, ...] = ()


_SCHEMAS: Dict[IntentType, IntentSchema] = {
    s.intent_type: s for s in (
        IntentSchema(
            IntentType.CLUB_ADJUSTMENT, "Club Adjustment",
            "Adjust club distances or yardage expectations",
            "Adjust Club", "adjust your club distances",
            Module.CADDY, "ClubAdjustmentScreen",
            example_phrases=(
                "My 7-iron feels long today",
                "I need to adjust my driver distance",
                "Update my pitching wedge to 120 yards",
                "Change 5-iron yardage",
                "Recalibrate my 3-wood",
            ),
        ),
        IntentSchema(
            IntentType.RECOVERY_CHECK, "Recovery Check",
            "Check recovery status and readiness",
            "Check Recovery", "check your recovery status",
            Module.RECOVERY, "RecoveryOverviewScreen",
            example_phrases=(
                "How's my recovery looking?",
                "Am I ready to play today?",
                "Check my recovery status",
                "What's my readiness score?",
                "How am I feeling today?",
            ),
        ),
        IntentSchema(
            IntentType.SHOT_RECOMMENDATION, "Shot Recommendation",
            "Get shot advice based on current situation",
            "Get Shot Advice", "get advice on this shot",
            Module.CADDY, "LiveCaddyScreen", {"expandStrategy": "true"},
            example_phrases=(
                "What club should I hit?",
                "150 yards into the wind, what's the play?",
                "Big tee shot, what should I do?",
                "Recommend a shot from the rough",
                "Help me with this approach shot",
            ),
        ),
        IntentSchema(
            IntentType.SCORE_ENTRY, "Score Entry",
            "Enter or update score for a hole",
            "Enter Score", "enter a score",
            Module.CADDY, "ScoreEntryScreen",
            example_phrases=(
                "I got a birdie on this hole",
                "Mark down a par",
                "Enter score for hole 7",
                "I made a 5 on the last hole",
                "Update my score",
            ),
        ),
        IntentSchema(
            IntentType.PATTERN_QUERY, "Pattern Query",
            "Ask about historical miss patterns or tendencies",
            "View Patterns", "look at your miss patterns",
            Module.COACH, "MissPatternsScreen", requires_navigation=False,
            example_phrases=(
                "What are my miss patterns with 7-iron?",
                "Do I slice when I'm under pressure?",
                "Show my tendencies off the tee",
                "What's my common miss with wedges?",
                "Am I pushing my irons lately?",
            ),
        ),
        IntentSchema(
            IntentType.DRILL_REQUEST, "Drill Request",
            "Request a practice drill or training exercise",
            "Get Drill", "get a practice drill",
            Module.COACH, "DrillScreen",
            example_phrases=(
                "Give me a drill for my slice",
                "I need putting practice",
                "What drill can fix my push?",
                "Recommend a chipping drill",
                "Show me some driver drills",
            ),
        ),
        IntentSchema(
            IntentType.WEATHER_CHECK, "Weather Check",
            "Check current or forecast weather conditions",
            "Check Weather", "check the weather",
            Module.CADDY, "LiveCaddyScreen", {"expandWeather": "true"},
            example_phrases=(
                "What's the weather looking like?",
                "How's the wind today?",
                "Check the forecast",
                "Is it going to rain?",
                "Show me the weather",
            ),
        ),
        IntentSchema(
            IntentType.STATS_LOOKUP, "Stats Lookup",
            "Look up statistics and performance data",
            "View Stats", "look up your stats",
            Module.COACH, "StatsScreen",
            example_phrases=(
                "Show my stats",
                "What's my average score?",
                "How am I doing with my driver?",
                "Show my fairways hit percentage",
                "What are my putting stats?",
            ),
        ),
        IntentSchema(
            IntentType.ROUND_START, "Round Start",
            "Start a new round of golf",
            "Start Round", "start a new round",
            Module.CADDY, "RoundSetupScreen",
            example_phrases=(
                "Start a new round",
                "I'm playing at Pebble Beach today",
                "Begin round",
                "Let's tee off",
                "Starting a round at my home course",
            ),
        ),
        IntentSchema(
            IntentType.ROUND_END, "Round End",
            "End the current round and view summary",
            "End Round", "end this round",
            Module.CADDY, "RoundSummaryScreen",
            example_phrases=(
                "Finish this round",
                "End round",
                "I'm done playing",
                "Show me the round summary",
                "Complete this round",
            ),
        ),
        IntentSchema(
            IntentType.EQUIPMENT_INFO, "Equipment Info",
            "Get information about equipment and bag contents",
            "View Equipment", "look at your equipment",
            Module.SETTINGS, "EquipmentScreen",
            example_phrases=(
                "What's in my bag?",
                "Show my club specs",
                "Tell me about my driver",
                "What equipment am I using?",
                "Show my club distances",
            ),
        ),
        IntentSchema(
            IntentType.COURSE_INFO, "Course Info",
            "Get course information and hole details",
            "Course Info", "see course information",
            Module.CADDY, "CourseInfoScreen",
            example_phrases=(
                "Tell me about this hole",
                "What's the yardage on hole 7?",
                "Show the course layout",
                "Course information",
                "What's the layout of this hole?",
            ),
        ),
        IntentSchema(
            IntentType.SETTINGS_CHANGE, "Settings Change",
            "Change app settings or preferences",
            "Settings", "change your settings",
            Module.SETTINGS, "SettingsScreen",
            example_phrases=(
                "Change my settings",
                "Update my preferences",
                "Turn on notifications",
                "Change units to metric",
                "Open settings",
            ),
        ),
        IntentSchema(
            IntentType.HELP_REQUEST, "Help Request",
            "Get help or instructions about the app",
            "Get Help", "get some help",
            Module.SETTINGS, "HelpScreen", requires_navigation=False,
            example_phrases=(
                "Help me",
                "How do I use this?",
                "What can you do?",
                "I need help",
                "Show me what you can do",
            ),
        ),
        IntentSchema(
            IntentType.FEEDBACK, "Feedback",
            "Provide feedback about the app",
            "Send Feedback", "send feedback",
            Module.SETTINGS, "FeedbackScreen", requires_navigation=False,
            example_phrases=(
                "I have feedback",
                "Report a problem",
                "Send feedback",
                "I found a bug",
                "Suggestion for improvement",
            ),
        ),
    )
}

if set(_SCHEMAS) != set(IntentType):
    raise RuntimeError("Intent registry must cover every IntentType")


def get_schema(intent_type: IntentType) -> IntentSchema:
    return _SCHEMAS[intent_type]


def all_schemas() -> List[IntentSchema]:
    return [_SCHEMAS[t] for t in IntentType]


def entity_parameters(entities: ExtractedEntities) -> Dict[str, str]:
    """Entity values forwarded to the destination screen."""
    params: Dict[str, str] = {}
    if entities.club is not None:
        params["club"] = entities.club.name
    if entities.yardage is not None:
        params["yardage"] = str(entities.yardage)
    if entities.lie is not None:
        params["lie"] = entities.lie.value
    if entities.hole_number is not None:
        params["hole"] = str(entities.hole_number)
    if entities.wind is not None:
        params["wind"] = entities.wind
    return params


def build_routing_target(intent_type: IntentType, entities: ExtractedEntities) -> RoutingTarget:
    schema = _SCHEMAS[intent_type]
    params = dict(schema.default_params)
    params.update(entity_parameters(entities))
    return RoutingTarget(module=schema.module, screen=schema.screen, parameters=params)


def render_intent_catalogue() -> str:
    """Intent list for the classification system prompt."""
    lines = []
    for schema in all_schemas():
        examples = "; ".join(f'"{p}"' for p in schema.example_phrases[:3])
        lines.append(f"- {schema.intent_type.value}: {schema.description}. Examples: {examples}")
    return "\n".join(lines)
