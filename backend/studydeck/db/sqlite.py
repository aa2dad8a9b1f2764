import json
import logging
from collections.abc import Collection
from datetime import datetime
from pathlib import Path
from typing import AsyncIterator

import aiosqlite

from studydeck.config import settings
from studydeck.errors import NotFoundError, ValidationError
from studydeck.models.category import Category, CategoryCreate
from studydeck.models.flashcard import Flashcard, FlashcardCreate
from studydeck.services.scheduler import ReviewState, apply_review, normalize_timestamp

logger = logging.getLogger(__name__)

_db_path: Path | None = None

SCHEMA_SQL = """
PRAGMA journal_mode=WAL;
PRAGMA foreign_keys=ON;

CREATE TABLE IF NOT EXISTS categories (
    id          INTEGER PRIMARY KEY AUTOINCREMENT,
    name        TEXT NOT NULL,
    description TEXT
);

CREATE TABLE IF NOT EXISTS flashcards (
    id               INTEGER PRIMARY KEY AUTOINCREMENT,
    front            TEXT NOT NULL,
    back             TEXT NOT NULL,
    category_id      INTEGER NOT NULL REFERENCES categories(id),
    context_tags     TEXT NOT NULL DEFAULT '[]',
    times_reviewed   INTEGER NOT NULL DEFAULT 0,
    correct_reviews  INTEGER NOT NULL DEFAULT 0,
    last_reviewed_at TEXT,
    next_review_at   TEXT,
    current_interval INTEGER NOT NULL DEFAULT 1,
    CHECK (current_interval >= 1),
    CHECK (correct_reviews <= times_reviewed)
);
CREATE INDEX IF NOT EXISTS idx_flashcards_category ON flashcards(category_id);
CREATE INDEX IF NOT EXISTS idx_flashcards_review ON flashcards(next_review_at);

CREATE TABLE IF NOT EXISTS schema_version (
    version    INTEGER PRIMARY KEY,
    applied_at TEXT NOT NULL DEFAULT (datetime('now'))
);
INSERT OR IGNORE INTO schema_version(version) VALUES (1);
"""


async def init_sqlite(data_dir: Path) -> None:
    global _db_path
    _db_path = data_dir / settings.sqlite_filename
    async with aiosqlite.connect(_db_path) as db:
        await db.executescript(SCHEMA_SQL)
        await db.commit()
    logger.info("SQLite store ready at %s", _db_path)


async def get_db() -> AsyncIterator[aiosqlite.Connection]:
    assert _db_path is not None, "SQLite not initialized"
    async with aiosqlite.connect(_db_path) as db:
        db.row_factory = aiosqlite.Row
        await db.execute("PRAGMA foreign_keys=ON")
        yield db


def _ts(value: datetime) -> str:
    # Fixed-width UTC text so that SQL string comparison is chronological
    return normalize_timestamp(value).isoformat(timespec="seconds")


def _in_clause(values: Collection[int]) -> str:
    return ", ".join("?" for _ in values)


# --- Categories ---


def _row_to_category(row: aiosqlite.Row) -> Category:
    return Category(**dict(row))


async def list_categories(db: aiosqlite.Connection) -> list[Category]:
    cursor = await db.execute("SELECT * FROM categories ORDER BY id ASC")
    rows = await cursor.fetchall()
    return [_row_to_category(r) for r in rows]


async def get_category(db: aiosqlite.Connection, category_id: int) -> Category:
    cursor = await db.execute("SELECT * FROM categories WHERE id = ?", (category_id,))
    row = await cursor.fetchone()
    if row is None:
        raise NotFoundError(f"Category {category_id} not found")
    return _row_to_category(row)


async def create_category(db: aiosqlite.Connection, body: CategoryCreate) -> Category:
    cursor = await db.execute(
        "INSERT INTO categories (name, description) VALUES (?, ?)",
        (body.name, body.description),
    )
    await db.commit()
    return await get_category(db, cursor.lastrowid)


# --- Flashcards ---


def _row_to_flashcard(row: aiosqlite.Row) -> Flashcard:
    d = dict(row)
    d["context_tags"] = json.loads(d["context_tags"] or "[]")
    return Flashcard(**d)


async def get_flashcard(db: aiosqlite.Connection, card_id: int) -> Flashcard:
    cursor = await db.execute("SELECT * FROM flashcards WHERE id = ?", (card_id,))
    row = await cursor.fetchone()
    if row is None:
        raise NotFoundError(f"Flashcard {card_id} not found")
    return _row_to_flashcard(row)


async def list_flashcards(
    db: aiosqlite.Connection,
    category_ids: Collection[int] | None = None,
) -> list[Flashcard]:
    """All flashcards, or those in any of ``category_ids`` when given."""
    if category_ids:
        ids = sorted(set(category_ids))
        cursor = await db.execute(
            f"SELECT * FROM flashcards WHERE category_id IN ({_in_clause(ids)}) "  # noqa: S608
            "ORDER BY id ASC",
            ids,
        )
    else:
        cursor = await db.execute("SELECT * FROM flashcards ORDER BY id ASC")
    rows = await cursor.fetchall()
    return [_row_to_flashcard(r) for r in rows]


async def list_due_flashcards(
    db: aiosqlite.Connection,
    now: datetime,
    category_ids: Collection[int] | None = None,
) -> list[Flashcard]:
    """Return cards due at ``now`` (next_review_at <= now or NULL).

    Never-scheduled cards come first, then the most overdue, then by id.
    """
    sql = "SELECT * FROM flashcards WHERE (next_review_at IS NULL OR next_review_at <= ?)"
    params: list = [_ts(now)]
    if category_ids:
        ids = sorted(set(category_ids))
        sql += f" AND category_id IN ({_in_clause(ids)})"
        params.extend(ids)
    sql += " ORDER BY next_review_at IS NOT NULL, next_review_at ASC, id ASC"
    cursor = await db.execute(sql, params)
    rows = await cursor.fetchall()
    return [_row_to_flashcard(r) for r in rows]


async def create_flashcard(db: aiosqlite.Connection, body: FlashcardCreate) -> Flashcard:
    cursor = await db.execute(
        "SELECT 1 FROM categories WHERE id = ?", (body.category_id,)
    )
    if await cursor.fetchone() is None:
        raise ValidationError(f"Unknown category {body.category_id}")

    cursor = await db.execute(
        """INSERT INTO flashcards
           (front, back, category_id, context_tags,
            times_reviewed, correct_reviews, current_interval)
           VALUES (?, ?, ?, ?, 0, 0, 1)""",
        (
            body.front,
            body.back,
            body.category_id,
            json.dumps(body.context_tags or [], ensure_ascii=False),
        ),
    )
    await db.commit()
    return await get_flashcard(db, cursor.lastrowid)


async def apply_review_outcome(
    db: aiosqlite.Connection,
    card_id: int,
    correct: bool,
    now: datetime,
    max_interval: int | None = None,
) -> Flashcard:
    """Run the scheduler for one card and persist all five fields in one transaction.

    BEGIN IMMEDIATE takes the write lock before the read, so two racing
    reviews of the same card are serialized instead of losing an update.
    """
    await db.execute("BEGIN IMMEDIATE")
    try:
        cursor = await db.execute(
            "SELECT times_reviewed, correct_reviews, current_interval "
            "FROM flashcards WHERE id = ?",
            (card_id,),
        )
        row = await cursor.fetchone()
        if row is None:
            raise NotFoundError(f"Flashcard {card_id} not found")

        updated = apply_review(
            ReviewState(
                times_reviewed=row["times_reviewed"],
                correct_reviews=row["correct_reviews"],
                current_interval=row["current_interval"],
            ),
            correct,
            now,
            max_interval=max_interval,
        )
        await db.execute(
            """UPDATE flashcards
               SET times_reviewed = ?, correct_reviews = ?, current_interval = ?,
                   last_reviewed_at = ?, next_review_at = ?
               WHERE id = ?""",
            (
                updated.times_reviewed,
                updated.correct_reviews,
                updated.current_interval,
                _ts(updated.last_reviewed_at),
                _ts(updated.next_review_at),
                card_id,
            ),
        )
        await db.commit()
    except BaseException:
        await db.rollback()
        raise

    logger.info(
        "Card %s reviewed (%s): interval %sh, next review %s",
        card_id,
        "correct" if correct else "incorrect",
        updated.current_interval,
        updated.next_review_at.isoformat(),
    )
    return await get_flashcard(db, card_id)
