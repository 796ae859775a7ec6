"""Context Injector: renders a SessionContext for model requests.

Three renderings:
  build_prompt            ordered labeled sections, empty string for empty context
  build_summary           one line for logs and status surfaces
  build_follow_up_context last user/assistant pair only
"""
from typing import List, Optional

from session.models import MAX_HISTORY_SIZE, ConversationTurn, Role, SessionContext

NO_ACTIVE_SESSION = "No active session"

_ROLE_LABELS = {Role.USER: "User", Role.ASSISTANT: "Assistant"}


def _round_section(context: SessionContext) -> Optional[List[str]]:
    if context.current_round is None:
        return None
    return [
        "**Round Information:**",
        f"- Course: {context.current_round.course_name}",
        f"- Round ID: {context.current_round.round_id}",
    ]


def _position_section(context: SessionContext) -> Optional[List[str]]:
    if context.current_hole is None:
        return None
    lines = ["**Current Position:**", f"- Hole: {context.current_hole}"]
    if context.current_par is not None:
        lines.append(f"- Par: {context.current_par}")
    return lines


def _shot_section(context: SessionContext) -> Optional[List[str]]:
    shot = context.last_shot
    if shot is None:
        return None
    lines = [
        "**Last Shot:**",
        f"- Club: {shot.club.name}",
        f"- Lie: {shot.lie.value.lower()}",
    ]
    if shot.miss_direction is not None:
        lines.append(f"- Miss: {shot.miss_direction.value.lower()}")
    if shot.pressure_context is not None and shot.pressure_context.has_pressure:
        lines.append("- Pressure: yes")
    if shot.notes:
        lines.append(f"- Notes: {shot.notes}")
    return lines


def _recommendation_section(context: SessionContext) -> Optional[List[str]]:
    if not context.last_recommendation:
        return None
    return ["**Last Recommendation:**", context.last_recommendation]


def _conversation_section(context: SessionContext) -> Optional[List[str]]:
    turns = context.conversation_history[-MAX_HISTORY_SIZE:]
    if not turns:
        return None
    return ["**Recent Conversation:**"] + [format_turn(t) for t in turns]


# Rendered in this order; absent sections are skipped
_SECTIONS = (
    _round_section,
    _position_section,
    _shot_section,
    _recommendation_section,
    _conversation_section,
)


def format_turn(turn: ConversationTurn) -> str:
    return f"{_ROLE_LABELS[turn.role]}: {turn.content}"


def build_prompt(context: Optional[SessionContext]) -> str:
    """Render labeled context sections; '' when nothing is known."""
    if context is None:
        return ""
    blocks = [section(context) for section in _SECTIONS]
    blocks = [b for b in blocks if b]
    if not blocks:
        return ""
    lines = ["## Current Context", ""]
    for block in blocks:
        lines.extend(block)
        lines.append("")
    return "\n".join(lines).strip()


def build_summary(context: Optional[SessionContext]) -> str:
    if context is None:
        return NO_ACTIVE_SESSION
    parts = []
    if context.current_round is not None:
        parts.append(context.current_round.course_name)
    if context.current_hole is not None:
        parts.append(f"Hole {context.current_hole}")
    if context.last_shot is not None:
        parts.append(f"Last: {context.last_shot.club.name}")
    if not parts:
        return NO_ACTIVE_SESSION
    return " • ".join(parts)


def build_follow_up_context(context: Optional[SessionContext]) -> str:
    """Most recent user/assistant pair, or '' when either side is missing."""
    if context is None or not context.conversation_history:
        return ""
    history = context.conversation_history
    last_user = next((t for t in reversed(history) if t.role is Role.USER), None)
    last_assistant = next((t for t in reversed(history) if t.role is Role.ASSISTANT), None)
    if last_user is None or last_assistant is None:
        return ""
    return f"Last exchange:\nUser: {last_user.content}\nAssistant: {last_assistant.content}"
