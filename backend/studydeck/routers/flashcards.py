"""
Flashcard router.

Endpoints:
  GET  /api/flashcards?categoryId=1,2   — all cards, or those in any listed category
  GET  /api/flashcards/due              — cards due for review now
  GET  /api/flashcards/{id}             — single card
  POST /api/flashcards                  — create a card
  POST /api/flashcards/{id}/progress    — record a correct/incorrect review
"""
from __future__ import annotations

from datetime import datetime

import aiosqlite
from fastapi import APIRouter, Depends, HTTPException, Query

from studydeck.config import settings
from studydeck.db.sqlite import (
    apply_review_outcome,
    create_flashcard,
    get_db,
    get_flashcard,
    list_due_flashcards,
    list_flashcards,
)
from studydeck.dependencies import get_now
from studydeck.models.flashcard import Flashcard, FlashcardCreate, ProgressRequest

router = APIRouter()


def parse_category_ids(raw: str | None) -> list[int] | None:
    """Parse a comma-separated ``categoryId`` query value."""
    if raw is None or not raw.strip():
        return None
    try:
        return [int(part) for part in raw.split(",") if part.strip()]
    except ValueError:
        raise HTTPException(status_code=400, detail="categoryId must be a list of integers")


@router.get("", response_model=list[Flashcard])
async def list_cards(
    category_id: str | None = Query(default=None, alias="categoryId"),
    db: aiosqlite.Connection = Depends(get_db),
) -> list[Flashcard]:
    return await list_flashcards(db, parse_category_ids(category_id))


@router.get("/due", response_model=list[Flashcard])
async def list_due(
    category_id: str | None = Query(default=None, alias="categoryId"),
    now: datetime = Depends(get_now),
    db: aiosqlite.Connection = Depends(get_db),
) -> list[Flashcard]:
    """Cards never reviewed or whose review time has arrived, most overdue first."""
    return await list_due_flashcards(db, now, parse_category_ids(category_id))


@router.get("/{card_id}", response_model=Flashcard)
async def get_card(card_id: int, db: aiosqlite.Connection = Depends(get_db)) -> Flashcard:
    return await get_flashcard(db, card_id)


@router.post("", response_model=Flashcard)
async def create_card(
    body: FlashcardCreate, db: aiosqlite.Connection = Depends(get_db)
) -> Flashcard:
    return await create_flashcard(db, body)


@router.post("/{card_id}/progress", response_model=Flashcard)
async def record_progress(
    card_id: int,
    body: ProgressRequest,
    now: datetime = Depends(get_now),
    db: aiosqlite.Connection = Depends(get_db),
) -> Flashcard:
    return await apply_review_outcome(
        db, card_id, body.correct, now, max_interval=settings.max_interval_hours
    )
