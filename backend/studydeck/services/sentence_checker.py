"""
Sentence check via a translation round trip.

The learner's sentence is translated to the pivot language and back with a
Lingva Translate instance (GET {base}/{source}/{target}/{text} -> {"translation"}).
If the round trip reproduces the sentence exactly it is accepted; otherwise the
back-translation is offered as a suggestion. This is a heuristic only.

Failures of the translation service never propagate: they produce a neutral
result (is_correct=None) so the study flow keeps going.

Usage:
    result = await check_sentence("私は学生です。")
"""
from __future__ import annotations

import logging
from urllib.parse import quote

import httpx

from studydeck.config import settings
from studydeck.errors import TransientDependencyError
from studydeck.models.sentence import SentenceValidation

logger = logging.getLogger(__name__)

UNAVAILABLE_FEEDBACK = "Unable to validate sentence at this time. Please try again later."


async def _translate(
    client: httpx.AsyncClient, text: str, source: str, target: str
) -> str:
    url = f"{settings.translation_base_url.rstrip('/')}/{source}/{target}/{quote(text, safe='')}"
    try:
        res = await client.get(url, timeout=settings.translation_timeout_seconds)
    except httpx.HTTPError as e:
        raise TransientDependencyError(f"Translation request failed: {e}") from e
    if res.status_code != 200:
        raise TransientDependencyError(
            f"Translation {source}->{target} answered {res.status_code}"
        )
    try:
        translation = res.json()["translation"]
    except (ValueError, KeyError, TypeError) as e:
        raise TransientDependencyError("Malformed translation response") from e
    if not isinstance(translation, str):
        raise TransientDependencyError("Malformed translation response")
    return translation


def _feedback(sentence: str, english: str, back: str, is_correct: bool) -> str:
    if is_correct:
        return (
            f'Your sentence "{sentence}" is grammatically correct.\n\n'
            f'English meaning: "{english}"\n\n'
            "The sentence structure and grammar are natural and well-formed."
        )
    return (
        f'Your sentence "{sentence}" might need some adjustments.\n\n'
        f'English meaning: "{english}"\n\n'
        f'A more natural way to express this would be: "{back}"\n\n'
        "Try comparing your sentence with the suggested version to see the "
        "differences in structure."
    )


async def check_sentence(
    sentence: str,
    client: httpx.AsyncClient | None = None,
) -> SentenceValidation:
    """Round-trip ``sentence`` through the pivot language and compare."""
    source = settings.translation_source_lang
    pivot = settings.translation_pivot_lang

    async def _round_trip(c: httpx.AsyncClient) -> tuple[str, str]:
        english = await _translate(c, sentence, source, pivot)
        back = await _translate(c, english, pivot, source)
        return english, back

    try:
        if client is not None:
            english, back = await _round_trip(client)
        else:
            async with httpx.AsyncClient() as c:
                english, back = await _round_trip(c)
    except TransientDependencyError as e:
        logger.warning("Sentence check unavailable: %s", e)
        return SentenceValidation(is_correct=None, feedback=UNAVAILABLE_FEEDBACK)

    is_correct = sentence == back
    return SentenceValidation(
        is_correct=is_correct,
        feedback=_feedback(sentence, english, back, is_correct),
        suggestion=None if is_correct else back,
        original_translation=english,
        suggested_sentence=back,
    )
