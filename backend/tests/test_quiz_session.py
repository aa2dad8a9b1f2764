import asyncio
import contextlib
from datetime import timedelta

import pytest

from studydeck.db.sqlite import (
    apply_review_outcome,
    create_category,
    create_flashcard,
    get_db,
    get_flashcard,
)
from studydeck.errors import SessionConfigError, SessionStateError
from studydeck.models.category import Category, CategoryCreate
from studydeck.models.flashcard import Flashcard, FlashcardCreate
from studydeck.models.session import CardRole, QuizMode
from studydeck.services.quiz_session import QuizSession, load_session, record_judgment

from conftest import T0

GRAMMAR = Category(id=1, name="Grammar")
VOCAB = Category(id=2, name="Vocabulary")
CATEGORIES = [GRAMMAR, VOCAB]


def card(card_id: int, category: Category) -> Flashcard:
    return Flashcard(
        id=card_id,
        front=f"front {card_id}",
        back=f"back {card_id}",
        category_id=category.id,
    )


def shown_ids(session: QuizSession) -> list[int]:
    return [c.id for _, c in session.current()]


def judge(session: QuizSession) -> list[int]:
    session.reveal()
    targets = session.judgment_targets()
    session.advance()
    return targets


def test_simple_session_cycles_through_cards():
    session = QuizSession(QuizMode.SIMPLE, [card(i, VOCAB) for i in (10, 11, 12)], CATEGORIES)

    seen = []
    for _ in range(7):
        seen.append(shown_ids(session)[0])
        judge(session)

    assert seen == [10, 11, 12, 10, 11, 12, 10]
    assert session.total == 3
    assert session.position == 2


def test_judgment_targets_only_the_shown_card():
    session = QuizSession(QuizMode.SPACED, [card(5, VOCAB), card(6, VOCAB)], CATEGORIES)
    assert judge(session) == [5]
    assert judge(session) == [6]


def test_judgment_requires_reveal():
    session = QuizSession(QuizMode.SIMPLE, [card(1, VOCAB)], CATEGORIES)
    with pytest.raises(SessionStateError):
        session.judgment_targets()


def test_one_reveal_admits_one_judgment():
    session = QuizSession(QuizMode.SIMPLE, [card(1, VOCAB), card(2, VOCAB)], CATEGORIES)
    session.reveal()

    assert session.judgment_targets() == [1]
    with pytest.raises(SessionStateError):
        session.judgment_targets()


def test_card_flips_from_front_to_back_and_resets_on_advance():
    session = QuizSession(QuizMode.SIMPLE, [card(1, VOCAB), card(2, VOCAB)], CATEGORIES)

    assert session.view().cards[0].text == "front 1"
    session.reveal()
    assert session.view().revealed
    assert session.view().cards[0].text == "back 1"

    session.advance()
    view = session.view()
    assert not view.revealed
    assert view.cards[0].text == "front 2"
    assert view.cards[0].category_name == "Vocabulary"
    assert view.cards[0].role is CardRole.CARD


@pytest.mark.parametrize("mode", [QuizMode.SIMPLE, QuizMode.SPACED])
def test_empty_card_set_is_refused(mode):
    with pytest.raises(SessionConfigError):
        QuizSession(mode, [], CATEGORIES)


def test_grammar_context_pairs_one_pattern_with_each_word():
    grammar = [card(1, GRAMMAR)]
    vocab = [card(i, VOCAB) for i in (20, 21, 22)]
    session = QuizSession(QuizMode.GRAMMAR_CONTEXT, vocab + grammar, CATEGORIES)

    pairs = []
    for _ in range(4):
        pairs.append(shown_ids(session))
        judge(session)

    assert pairs == [[1, 20], [1, 21], [1, 22], [1, 20]]
    assert session.total == 3


def test_grammar_context_rotates_patterns_after_each_vocabulary_pass():
    grammar = [card(1, GRAMMAR), card(2, GRAMMAR)]
    vocab = [card(20, VOCAB), card(21, VOCAB)]
    session = QuizSession(QuizMode.GRAMMAR_CONTEXT, grammar + vocab, CATEGORIES)

    pairs = []
    for _ in range(5):
        pairs.append(shown_ids(session))
        judge(session)

    assert pairs == [[1, 20], [1, 21], [2, 20], [2, 21], [1, 20]]
    assert session.total == 4


def test_grammar_context_judgment_targets_both_cards():
    session = QuizSession(
        QuizMode.GRAMMAR_CONTEXT, [card(1, GRAMMAR), card(20, VOCAB)], CATEGORIES
    )
    assert judge(session) == [1, 20]


def test_grammar_category_matched_case_insensitively():
    categories = [Category(id=1, name="GRAMMAR"), VOCAB]
    session = QuizSession(
        QuizMode.GRAMMAR_CONTEXT, [card(1, GRAMMAR), card(20, VOCAB)], categories
    )
    roles = [role for role, _ in session.current()]
    assert roles == [CardRole.GRAMMAR, CardRole.VOCABULARY]


@pytest.mark.parametrize(
    "cards",
    [
        [card(1, GRAMMAR), card(2, GRAMMAR)],
        [card(20, VOCAB), card(21, VOCAB)],
        [],
    ],
)
def test_grammar_context_needs_both_sequences(cards):
    with pytest.raises(SessionConfigError):
        QuizSession(QuizMode.GRAMMAR_CONTEXT, cards, CATEGORIES)


async def _seed(db):
    grammar = await create_category(db, CategoryCreate(name="Grammar"))
    vocab = await create_category(db, CategoryCreate(name="Vocabulary"))
    kanji = await create_category(db, CategoryCreate(name="Kanji"))
    pattern = await create_flashcard(
        db, FlashcardCreate(front="〜たい", back="want to", category_id=grammar.id)
    )
    word = await create_flashcard(
        db, FlashcardCreate(front="食べる", back="to eat", category_id=vocab.id)
    )
    glyph = await create_flashcard(
        db, FlashcardCreate(front="山", back="mountain", category_id=kanji.id)
    )
    return grammar, vocab, kanji, pattern, word, glyph


@pytest.mark.asyncio
async def test_record_judgment_reviews_both_grammar_context_cards(db):
    _, vocab, _, pattern, word, _ = await _seed(db)
    session = await load_session(db, QuizMode.GRAMMAR_CONTEXT, T0, category_ids=[vocab.id])
    assert shown_ids(session) == [pattern.id, word.id]

    session.reveal()
    updated = await record_judgment(db, session, True, T0)

    assert [c.id for c in updated] == [pattern.id, word.id]
    for card_id in (pattern.id, word.id):
        stored = await get_flashcard(db, card_id)
        assert stored.current_interval == 2
        assert stored.times_reviewed == 1
    assert session.step == 1
    assert not session.revealed


@pytest.mark.asyncio
async def test_record_judgment_before_reveal_changes_nothing(db):
    _, _, _, pattern, _, _ = await _seed(db)
    session = await load_session(db, QuizMode.SIMPLE, T0)

    with pytest.raises(SessionStateError):
        await record_judgment(db, session, True, T0)

    assert (await get_flashcard(db, pattern.id)).times_reviewed == 0
    assert session.step == 0


@pytest.mark.asyncio
async def test_racing_judgments_on_one_reveal_review_once(db):
    _, _, _, pattern, word, _ = await _seed(db)
    session = await load_session(db, QuizMode.SIMPLE, T0)
    session.reveal()

    async def judge_on_own_connection():
        async with contextlib.aclosing(get_db()) as conns:
            async for conn in conns:
                return await record_judgment(conn, session, True, T0)

    results = await asyncio.gather(
        judge_on_own_connection(), judge_on_own_connection(), return_exceptions=True
    )

    errors = [r for r in results if isinstance(r, Exception)]
    assert len(errors) == 1
    assert isinstance(errors[0], SessionStateError)
    assert (await get_flashcard(db, pattern.id)).times_reviewed == 1
    assert (await get_flashcard(db, word.id)).times_reviewed == 0
    assert session.step == 1
    assert shown_ids(session) == [word.id]


@pytest.mark.asyncio
async def test_spaced_session_only_contains_due_cards(db):
    _, _, _, pattern, word, glyph = await _seed(db)
    await apply_review_outcome(db, word.id, True, T0)  # due again at T0 + 2h

    session = await load_session(db, QuizMode.SPACED, T0 + timedelta(hours=1))

    assert [c.id for c in session.cards] == [pattern.id, glyph.id]


@pytest.mark.asyncio
async def test_simple_session_filtered_by_category(db):
    _, _, kanji, _, _, glyph = await _seed(db)
    session = await load_session(db, QuizMode.SIMPLE, T0, category_ids=[kanji.id])
    assert [c.id for c in session.cards] == [glyph.id]


@pytest.mark.asyncio
async def test_spaced_session_with_nothing_due_is_refused(db):
    _, _, _, pattern, word, glyph = await _seed(db)
    for c in (pattern, word, glyph):
        await apply_review_outcome(db, c.id, True, T0)

    with pytest.raises(SessionConfigError):
        await load_session(db, QuizMode.SPACED, T0)
