"""
Quiz session sequencing.

A session walks a fixed candidate set cyclically and never ends on its own:

  simple / spaced    step i shows cards[i mod N]
  grammar-context    step i pairs grammar[(i // V) mod G] with vocab[i mod V]
                     (V = vocabulary count, G = grammar count)

so a grammar-context session cycles through all G * V pairs before repeating.
Each step starts in prompt state (front shown); a judgment is accepted only
after reveal, and moves the session to the next step in prompt state.
"""
from __future__ import annotations

import logging
import uuid
from collections.abc import Collection, Iterable
from datetime import datetime

import aiosqlite

from studydeck.db.sqlite import (
    apply_review_outcome,
    list_categories,
    list_due_flashcards,
    list_flashcards,
)
from studydeck.errors import SessionConfigError, SessionStateError
from studydeck.models.category import Category
from studydeck.models.flashcard import Flashcard
from studydeck.models.session import CardFace, CardRole, QuizMode, SessionView

logger = logging.getLogger(__name__)


def is_grammar_category(category: Category | None, grammar_name: str) -> bool:
    return category is not None and category.name.lower() == grammar_name.lower()


class QuizSession:
    def __init__(
        self,
        mode: QuizMode,
        cards: Iterable[Flashcard],
        categories: Iterable[Category],
        grammar_category_name: str = "grammar",
        session_id: str | None = None,
    ) -> None:
        self.id = session_id or uuid.uuid4().hex
        self.mode = mode
        self.step = 0
        self.revealed = False
        self._categories = {c.id: c for c in categories}

        cards = list(cards)
        if mode is QuizMode.GRAMMAR_CONTEXT:
            self.grammar_cards = [
                c for c in cards
                if is_grammar_category(self._categories.get(c.category_id), grammar_category_name)
            ]
            grammar_ids = {c.id for c in self.grammar_cards}
            self.vocab_cards = [c for c in cards if c.id not in grammar_ids]
            if not self.grammar_cards or not self.vocab_cards:
                raise SessionConfigError(
                    "Grammar-context study needs both grammar pattern and vocabulary cards"
                )
            self.cards: list[Flashcard] = []
        else:
            if not cards:
                if mode is QuizMode.SPACED:
                    raise SessionConfigError("No cards due for review")
                raise SessionConfigError("No flashcards found for the selected categories")
            self.cards = cards
            self.grammar_cards = []
            self.vocab_cards = []

    @property
    def total(self) -> int:
        if self.mode is QuizMode.GRAMMAR_CONTEXT:
            return len(self.grammar_cards) * len(self.vocab_cards)
        return len(self.cards)

    @property
    def position(self) -> int:
        return self.step % self.total + 1

    def current(self) -> list[tuple[CardRole, Flashcard]]:
        if self.mode is QuizMode.GRAMMAR_CONTEXT:
            vocab_count = len(self.vocab_cards)
            grammar = self.grammar_cards[(self.step // vocab_count) % len(self.grammar_cards)]
            vocab = self.vocab_cards[self.step % vocab_count]
            return [(CardRole.GRAMMAR, grammar), (CardRole.VOCABULARY, vocab)]
        return [(CardRole.CARD, self.cards[self.step % len(self.cards)])]

    def reveal(self) -> None:
        self.revealed = True

    def judgment_targets(self) -> list[int]:
        """Claim the revealed step and return the ids the judgment applies to.

        The reveal is consumed here, before any store write is awaited, so a
        second judgment racing on the same reveal is refused.
        """
        if not self.revealed:
            raise SessionStateError("Reveal the answer before judging the card")
        self.revealed = False
        return [card.id for _, card in self.current()]

    def advance(self, updated: Iterable[Flashcard] = ()) -> None:
        """Move to the next step, refreshing any card snapshots in ``updated``."""
        for card in updated:
            self._refresh(card)
        self.step += 1
        self.revealed = False

    def _refresh(self, card: Flashcard) -> None:
        for seq in (self.cards, self.grammar_cards, self.vocab_cards):
            for i, existing in enumerate(seq):
                if existing.id == card.id:
                    seq[i] = card

    def view(self) -> SessionView:
        faces = []
        for role, card in self.current():
            category = self._categories.get(card.category_id)
            faces.append(
                CardFace(
                    card_id=card.id,
                    role=role,
                    category_name=category.name if category else "Unknown",
                    context_tags=card.context_tags,
                    text=card.back if self.revealed else card.front,
                )
            )
        return SessionView(
            id=self.id,
            mode=self.mode,
            revealed=self.revealed,
            position=self.position,
            total=self.total,
            cards=faces,
        )


async def load_session(
    db: aiosqlite.Connection,
    mode: QuizMode,
    now: datetime,
    category_ids: Collection[int] | None = None,
    grammar_category_name: str = "grammar",
) -> QuizSession:
    """Fetch the candidate set for ``mode`` and build a session over it."""
    categories = await list_categories(db)
    ids = set(category_ids or ())

    if mode is QuizMode.SPACED:
        cards = await list_due_flashcards(db, now, ids or None)
    elif mode is QuizMode.GRAMMAR_CONTEXT and ids:
        # The grammar patterns always join the selected vocabulary categories
        ids |= {c.id for c in categories if is_grammar_category(c, grammar_category_name)}
        cards = await list_flashcards(db, ids)
    else:
        cards = await list_flashcards(db, ids or None)

    session = QuizSession(mode, cards, categories, grammar_category_name)
    logger.info(
        "Started %s session %s over %d cards", mode.value, session.id, session.total
    )
    return session


async def record_judgment(
    db: aiosqlite.Connection,
    session: QuizSession,
    correct: bool,
    now: datetime,
    max_interval: int | None = None,
) -> list[Flashcard]:
    """Apply one judgment to every card on screen, then advance the session."""
    targets = session.judgment_targets()
    updated = [
        await apply_review_outcome(db, card_id, correct, now, max_interval=max_interval)
        for card_id in targets
    ]
    session.advance(updated)
    return updated
