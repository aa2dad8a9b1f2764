from enum import Enum

from pydantic import StrictBool, StrictInt

from studydeck.models.base import ApiModel


class QuizMode(str, Enum):
    SIMPLE = "simple"
    GRAMMAR_CONTEXT = "grammar-context"
    SPACED = "spaced"


class CardRole(str, Enum):
    CARD = "card"
    GRAMMAR = "grammar"
    VOCABULARY = "vocabulary"


class SessionStart(ApiModel):
    mode: QuizMode = QuizMode.SPACED
    category_ids: list[StrictInt] | None = None


class JudgmentRequest(ApiModel):
    correct: StrictBool


class CardFace(ApiModel):
    card_id: int
    role: CardRole
    category_name: str
    context_tags: list[str]
    text: str  # front while prompting, back once revealed


class SessionView(ApiModel):
    id: str
    mode: QuizMode
    revealed: bool
    position: int  # 1-based, within the current cycle
    total: int
    cards: list[CardFace]
