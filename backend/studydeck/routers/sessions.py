"""
Quiz session router.

Endpoints:
  POST   /api/sessions                 — start a session {mode, categoryIds?}
  GET    /api/sessions/{id}            — current presentation
  POST   /api/sessions/{id}/reveal     — flip to the answer side
  POST   /api/sessions/{id}/judgment   — {correct}; reviews the card(s) shown, then advances
  DELETE /api/sessions/{id}            — discard the session
"""
from __future__ import annotations

from datetime import datetime

import aiosqlite
from fastapi import APIRouter, Depends

from studydeck.config import settings
from studydeck.db.sqlite import get_db
from studydeck.dependencies import get_now
from studydeck.models.session import JudgmentRequest, SessionStart, SessionView
from studydeck.services.quiz_session import load_session, record_judgment
from studydeck.services.session_registry import close_session, get_session, register_session

router = APIRouter()


@router.post("", response_model=SessionView, status_code=201)
async def start_session(
    body: SessionStart,
    now: datetime = Depends(get_now),
    db: aiosqlite.Connection = Depends(get_db),
) -> SessionView:
    session = await load_session(
        db,
        body.mode,
        now,
        category_ids=body.category_ids,
        grammar_category_name=settings.grammar_category_name,
    )
    return register_session(session).view()


@router.get("/{session_id}", response_model=SessionView)
async def show_session(session_id: str) -> SessionView:
    return get_session(session_id).view()


@router.post("/{session_id}/reveal", response_model=SessionView)
async def reveal_answer(session_id: str) -> SessionView:
    session = get_session(session_id)
    session.reveal()
    return session.view()


@router.post("/{session_id}/judgment", response_model=SessionView)
async def judge_card(
    session_id: str,
    body: JudgmentRequest,
    now: datetime = Depends(get_now),
    db: aiosqlite.Connection = Depends(get_db),
) -> SessionView:
    session = get_session(session_id)
    await record_judgment(
        db, session, body.correct, now, max_interval=settings.max_interval_hours
    )
    return session.view()


@router.delete("/{session_id}", status_code=204)
async def discard_session(session_id: str) -> None:
    close_session(session_id)
