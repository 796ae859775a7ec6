"""Session Context Store: per-round conversational state.

Owned by exactly one pipeline per active round. The current state is held as
an immutable SessionContext; every mutation builds a replacement under a lock,
so reads never block and concurrent writers cannot lose a history update.
"""
import logging
import threading
from dataclasses import replace
from datetime import datetime, timedelta, timezone

from session.models import (
    MAX_HISTORY_SIZE,
    ConversationTurn,
    Role,
    RoundInfo,
    SessionContext,
    Shot,
)

logger = logging.getLogger(__name__)

PAR_MIN = 3
PAR_MAX = 5


def _require_text(value: str, name: str) -> str:
    if value is None or not value.strip():
        raise ValueError(f"{name} cannot be blank")
    return value.strip()


def _require_hole(hole: int, par: int) -> None:
    if not isinstance(hole, int) or not (1 <= hole <= 18):
        raise ValueError(f"hole must be within [1, 18], got {hole!r}")
    if not isinstance(par, int) or not (PAR_MIN <= par <= PAR_MAX):
        raise ValueError(f"par must be within [{PAR_MIN}, {PAR_MAX}], got {par!r}")


class SessionContextStore:
    """Single-writer store; created at round start, cleared at round end."""

    def __init__(self, session_id: str = "", max_history: int = MAX_HISTORY_SIZE):
        if max_history < 2:
            raise ValueError("max_history must hold at least one exchange")
        self.session_id = session_id
        self.max_history = max_history
        self._lock = threading.Lock()
        self._context = SessionContext()

    # ---- Reads ----

    def snapshot(self) -> SessionContext:
        return self._context

    # ---- Mutations ----

    def append_turn(self, user_input: str, assistant_response: str) -> None:
        """Record one user/assistant exchange as two consecutive turns."""
        user_text = _require_text(user_input, "user_input")
        assistant_text = _require_text(assistant_response, "assistant_response")
        now = datetime.now(timezone.utc)
        turns = (
            ConversationTurn(Role.USER, user_text, now),
            ConversationTurn(Role.ASSISTANT, assistant_text, now + timedelta(milliseconds=1)),
        )
        with self._lock:
            self._context = self._with_history(self._context.conversation_history + turns)
        logger.debug("[CONTEXT] session=%s exchange appended history=%d",
                     self.session_id, len(self._context.conversation_history))

    def update_round(
        self,
        round_id: str,
        course_name: str,
        starting_hole: int = 1,
        par: int = 4,
    ) -> None:
        _require_hole(starting_hole, par)
        info = RoundInfo(
            round_id=_require_text(round_id, "round_id"),
            course_name=_require_text(course_name, "course_name"),
        )
        with self._lock:
            self._context = replace(
                self._context,
                current_round=info,
                current_hole=starting_hole,
                current_par=par,
            )
        logger.info("[CONTEXT] session=%s round=%s hole=%d", self.session_id, info.round_id, starting_hole)

    def update_hole(self, hole: int, par: int = 4) -> None:
        _require_hole(hole, par)
        with self._lock:
            self._context = replace(self._context, current_hole=hole, current_par=par)

    def record_shot(self, shot: Shot) -> None:
        with self._lock:
            self._context = replace(self._context, last_shot=shot)

    def record_recommendation(self, text: str) -> None:
        recommendation = _require_text(text, "recommendation")
        with self._lock:
            self._context = replace(self._context, last_recommendation=recommendation)

    def clear_history(self) -> None:
        with self._lock:
            self._context = replace(self._context, conversation_history=())

    def clear(self) -> None:
        with self._lock:
            self._context = SessionContext()
        logger.info("[CONTEXT] session=%s cleared", self.session_id)

    # ---- Internals ----

    def _with_history(self, history) -> SessionContext:
        if len(history) > self.max_history:
            history = history[-self.max_history:]
        return replace(self._context, conversation_history=tuple(history))
