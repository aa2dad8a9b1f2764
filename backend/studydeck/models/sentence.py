from pydantic import Field

from studydeck.models.base import ApiModel


class SentenceCheckRequest(ApiModel):
    # Older clients also send grammarPattern and vocabulary; unknown keys are ignored
    sentence: str = Field(min_length=1)


class SentenceValidation(ApiModel):
    is_correct: bool | None  # None = could not be validated
    feedback: str
    suggestion: str | None = None
    original_translation: str | None = None
    suggested_sentence: str | None = Field(default=None, alias="suggestedJapanese")
