from fastapi import APIRouter

from studydeck.models.sentence import SentenceCheckRequest, SentenceValidation
from studydeck.services.sentence_checker import check_sentence

router = APIRouter()


@router.post("/validate-sentence", response_model=SentenceValidation)
async def validate_sentence(body: SentenceCheckRequest) -> SentenceValidation:
    """Check a practice sentence; degrades to is_correct=null if translation is down."""
    return await check_sentence(body.sentence)
