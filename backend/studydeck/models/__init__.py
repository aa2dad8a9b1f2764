from studydeck.models.category import Category, CategoryCreate
from studydeck.models.flashcard import Flashcard, FlashcardCreate, ProgressRequest
from studydeck.models.sentence import SentenceCheckRequest, SentenceValidation
from studydeck.models.session import (
    CardFace,
    CardRole,
    JudgmentRequest,
    QuizMode,
    SessionStart,
    SessionView,
)

__all__ = [
    "CardFace",
    "CardRole",
    "Category",
    "CategoryCreate",
    "Flashcard",
    "FlashcardCreate",
    "JudgmentRequest",
    "ProgressRequest",
    "QuizMode",
    "SentenceCheckRequest",
    "SentenceValidation",
    "SessionStart",
    "SessionView",
]
