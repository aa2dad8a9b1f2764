from __future__ import annotations

from datetime import datetime

from pydantic import Field, StrictBool, StrictInt, computed_field

from studydeck.models.base import ApiModel


class Flashcard(ApiModel):
    id: int
    front: str
    back: str
    category_id: int
    context_tags: list[str] = []
    times_reviewed: int = 0
    correct_reviews: int = 0             # always <= times_reviewed
    last_reviewed_at: datetime | None = None
    next_review_at: datetime | None = None  # None = due immediately
    current_interval: int = 1            # hours until next review

    @computed_field
    @property
    def accuracy(self) -> float:
        if not self.times_reviewed:
            return 0.0
        return self.correct_reviews / self.times_reviewed * 100


class FlashcardCreate(ApiModel):
    front: str = Field(min_length=1)
    back: str = Field(min_length=1)
    category_id: StrictInt
    context_tags: list[str] | None = None


class ProgressRequest(ApiModel):
    correct: StrictBool
