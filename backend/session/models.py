"""Session context data: round reference, position, last shot, conversation turns."""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional, Tuple

from intent.models import Club, Lie, MissDirection, PressureContext

MAX_HISTORY_SIZE = 10


class Role(str, Enum):
    USER = "USER"
    ASSISTANT = "ASSISTANT"


@dataclass(frozen=True)
class ConversationTurn:
    role: Role
    content: str
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def __post_init__(self):
        if not self.content or not self.content.strip():
            raise ValueError("ConversationTurn.content cannot be blank")


@dataclass(frozen=True)
class RoundInfo:
    """Reference to a round owned by the persistence collaborator."""
    round_id: str
    course_name: str
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass(frozen=True)
class Shot:
    club: Club
    lie: Lie
    miss_direction: Optional[MissDirection] = None
    pressure_context: Optional[PressureContext] = None
    notes: Optional[str] = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass(frozen=True)
class SessionContext:
    """Immutable snapshot of the session store."""
    current_round: Optional[RoundInfo] = None
    current_hole: Optional[int] = None
    current_par: Optional[int] = None
    last_shot: Optional[Shot] = None
    last_recommendation: Optional[str] = None
    conversation_history: Tuple[ConversationTurn, ...] = ()

    @property
    def has_active_round(self) -> bool:
        return self.current_round is not None

    @property
    def is_empty(self) -> bool:
        return (
            self.current_round is None
            and self.current_hole is None
            and self.last_shot is None
            and self.last_recommendation is None
            and not self.conversation_history
        )
