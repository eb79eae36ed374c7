"""Verse text lookup with a raw-reference fallback."""

from __future__ import annotations

import logging
import re
from typing import Any
from urllib.parse import quote

import httpx

logger = logging.getLogger(__name__)

DEFAULT_LOOKUP_BASE_URL = "https://bible-api.com"
DEFAULT_TRANSLATION = "kjv"

_WHITESPACE = re.compile(r"\s+")


class UnresolvableReference(ValueError):
    """The lookup answered with something we cannot read."""


def _collapse(text: str) -> str:
    return _WHITESPACE.sub(" ", text).strip()


def extract_text(payload: Any) -> str:
    """Pull display text out of a bible-api.com style response.

    Accepts a single ``text`` field or a ``verses`` list of ``{"text": ...}``
    segments joined with single spaces.
    """
    if not isinstance(payload, dict):
        raise UnresolvableReference("response is not an object")

    text = payload.get("text")
    if isinstance(text, str) and text.strip():
        return _collapse(text)

    verses = payload.get("verses")
    if isinstance(verses, list):
        segments = [
            verse["text"].strip()
            for verse in verses
            if isinstance(verse, dict) and isinstance(verse.get("text"), str)
        ]
        joined = _collapse(" ".join(segments))
        if joined:
            return joined

    raise UnresolvableReference("response has no text or verses")


class ContentResolver:
    """Resolves a canonical reference to the text to display and speak."""

    def __init__(
        self,
        base_url: str = DEFAULT_LOOKUP_BASE_URL,
        *,
        translation: str = DEFAULT_TRANSLATION,
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._base_url = str(base_url).rstrip("/")
        self._translation = translation
        self._timeout = timeout
        self._client = client

    def url_for(self, reference: str) -> str:
        return f"{self._base_url}/{quote(reference)}"

    async def _fetch(self, reference: str) -> Any:
        params = {"translation": self._translation}
        if self._client is not None:
            response = await self._client.get(self.url_for(reference), params=params)
            response.raise_for_status()
            return response.json()

        async with httpx.AsyncClient(timeout=self._timeout) as client:
            response = await client.get(self.url_for(reference), params=params)
            response.raise_for_status()
            return response.json()

    async def resolve(self, reference: str) -> str:
        """Return the verse text, or *reference* itself if the lookup fails."""
        try:
            return extract_text(await self._fetch(reference))
        except Exception as exc:
            logger.warning("Lookup failed for %s, reading the reference: %s", reference, exc)
            return reference


__all__ = ["ContentResolver", "UnresolvableReference", "extract_text"]
