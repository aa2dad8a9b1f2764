from __future__ import annotations

import logging

from studydeck.errors import NotFoundError
from studydeck.services.quiz_session import QuizSession

logger = logging.getLogger(__name__)

MAX_SESSIONS = 100

_sessions: dict[str, QuizSession] = {}


def register_session(session: QuizSession) -> QuizSession:
    """Keep a session in memory by its id, evicting the oldest beyond MAX_SESSIONS."""
    _sessions[session.id] = session
    while len(_sessions) > MAX_SESSIONS:
        oldest = next(iter(_sessions))
        logger.info("Evicting quiz session %s", oldest)
        _sessions.pop(oldest)
    return session


def get_session(session_id: str) -> QuizSession:
    session = _sessions.get(session_id)
    if session is None:
        raise NotFoundError(f"Session {session_id} not found")
    return session


def close_session(session_id: str) -> None:
    if _sessions.pop(session_id, None) is None:
        raise NotFoundError(f"Session {session_id} not found")


def clear_sessions() -> None:
    _sessions.clear()
