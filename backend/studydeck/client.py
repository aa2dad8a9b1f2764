"""
Async HTTP client for the StudyDeck API.

Reads go through a QueryCache keyed by path and query parameters; every
mutation drops the cached queries under the paths it affects, so a read after
a write always reaches the server.

Usage:
    async with StudyDeckClient("http://127.0.0.1:8000") as api:
        due = await api.list_due_flashcards()
        await api.record_progress(due[0].id, correct=True)
"""
from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any

import httpx

from studydeck.errors import NotFoundError, SessionStateError, StudyDeckError, ValidationError
from studydeck.models.category import Category
from studydeck.models.flashcard import Flashcard
from studydeck.models.sentence import SentenceValidation
from studydeck.models.session import QuizMode, SessionView

logger = logging.getLogger(__name__)

_STATUS_ERRORS: dict[int, type[StudyDeckError]] = {
    400: ValidationError,
    404: NotFoundError,
    409: SessionStateError,
}

CacheKey = tuple[str, tuple[tuple[str, str], ...]]


class QueryCache:
    def __init__(self) -> None:
        self._entries: dict[CacheKey, Any] = {}

    @staticmethod
    def key(path: str, params: dict[str, Any] | None = None) -> CacheKey:
        items = tuple(sorted((k, str(v)) for k, v in (params or {}).items()))
        return path, items

    def __contains__(self, key: CacheKey) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, key: CacheKey) -> Any:
        return self._entries.get(key)

    def set(self, key: CacheKey, value: Any) -> None:
        self._entries[key] = value

    def invalidate(self, path_prefix: str) -> int:
        """Drop every entry whose path starts with ``path_prefix``; returns the count."""
        stale = [k for k in self._entries if k[0].startswith(path_prefix)]
        for k in stale:
            del self._entries[k]
        return len(stale)

    def clear(self) -> None:
        self._entries.clear()


class StudyDeckClient:
    def __init__(
        self,
        base_url: str = "http://127.0.0.1:8000",
        *,
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: float = 10.0,
    ) -> None:
        self._http = httpx.AsyncClient(base_url=base_url, transport=transport, timeout=timeout)
        self.cache = QueryCache()

    async def __aenter__(self) -> StudyDeckClient:
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    # --- transport ---

    @staticmethod
    def _check(res: httpx.Response) -> None:
        if res.is_success:
            return
        error_cls = _STATUS_ERRORS.get(res.status_code)
        if error_cls is None:
            res.raise_for_status()
        try:
            message = res.json().get("error", res.text)
        except ValueError:
            message = res.text
        raise error_cls(message)

    async def _get(self, path: str, params: dict[str, Any] | None = None) -> Any:
        key = self.cache.key(path, params)
        if key in self.cache:
            return self.cache.get(key)
        res = await self._http.get(path, params=params)
        self._check(res)
        data = res.json()
        self.cache.set(key, data)
        return data

    async def _send(
        self,
        method: str,
        path: str,
        json: Any = None,
        invalidates: Iterable[str] = (),
    ) -> Any:
        res = await self._http.request(method, path, json=json)
        self._check(res)
        for prefix in invalidates:
            dropped = self.cache.invalidate(prefix)
            logger.debug("Invalidated %d cached queries under %s", dropped, prefix)
        return res.json() if res.content else None

    # --- categories ---

    async def list_categories(self) -> list[Category]:
        return [Category.model_validate(c) for c in await self._get("/api/categories")]

    async def create_category(self, name: str, description: str | None = None) -> Category:
        data = await self._send(
            "POST",
            "/api/categories",
            json={"name": name, "description": description},
            invalidates=["/api/categories"],
        )
        return Category.model_validate(data)

    # --- flashcards ---

    async def list_flashcards(self, category_ids: Iterable[int] | None = None) -> list[Flashcard]:
        params = None
        if category_ids:
            params = {"categoryId": ",".join(str(i) for i in sorted(set(category_ids)))}
        return [Flashcard.model_validate(c) for c in await self._get("/api/flashcards", params)]

    async def list_due_flashcards(self) -> list[Flashcard]:
        return [Flashcard.model_validate(c) for c in await self._get("/api/flashcards/due")]

    async def get_flashcard(self, card_id: int) -> Flashcard:
        return Flashcard.model_validate(await self._get(f"/api/flashcards/{card_id}"))

    async def create_flashcard(
        self,
        front: str,
        back: str,
        category_id: int,
        context_tags: list[str] | None = None,
    ) -> Flashcard:
        data = await self._send(
            "POST",
            "/api/flashcards",
            json={
                "front": front,
                "back": back,
                "categoryId": category_id,
                "contextTags": context_tags,
            },
            invalidates=["/api/flashcards"],
        )
        return Flashcard.model_validate(data)

    async def record_progress(self, card_id: int, correct: bool) -> Flashcard:
        data = await self._send(
            "POST",
            f"/api/flashcards/{card_id}/progress",
            json={"correct": correct},
            invalidates=["/api/flashcards"],
        )
        return Flashcard.model_validate(data)

    # --- sessions ---

    async def start_session(
        self, mode: QuizMode, category_ids: Iterable[int] | None = None
    ) -> SessionView:
        body: dict[str, Any] = {"mode": QuizMode(mode).value}
        if category_ids is not None:
            body["categoryIds"] = list(category_ids)
        return SessionView.model_validate(await self._send("POST", "/api/sessions", json=body))

    async def reveal(self, session_id: str) -> SessionView:
        return SessionView.model_validate(
            await self._send("POST", f"/api/sessions/{session_id}/reveal")
        )

    async def judge(self, session_id: str, correct: bool) -> SessionView:
        data = await self._send(
            "POST",
            f"/api/sessions/{session_id}/judgment",
            json={"correct": correct},
            invalidates=["/api/flashcards"],
        )
        return SessionView.model_validate(data)

    async def close_session(self, session_id: str) -> None:
        await self._send("DELETE", f"/api/sessions/{session_id}")

    # --- sentence check ---

    async def validate_sentence(self, sentence: str) -> SentenceValidation:
        data = await self._send("POST", "/api/validate-sentence", json={"sentence": sentence})
        return SentenceValidation.model_validate(data)
