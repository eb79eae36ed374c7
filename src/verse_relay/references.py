"""Detection and normalization of scripture references in chat text.

A reference is a book word followed by `chapter:verse`, optionally with an
end verse: ``John 3:16``, ``1john 3:16-18``, ``psalm   23:1``.
"""

from __future__ import annotations

import re

REFERENCE_PATTERN = re.compile(r"\b[0-9a-zA-Z]+\s+\d{1,3}:\d{1,3}(?:-\d{1,3})?\b")

_LETTER_THEN_DIGIT = re.compile(r"([a-zA-Z])(\d)")
_RANGE = re.compile(r"^(.*?:)(\d+)-(\d+)$")
_WHITESPACE = re.compile(r"\s+")


def detect(text: str | None) -> bool:
    """Return True if *text* contains something shaped like a reference."""

    return REFERENCE_PATTERN.search(text or "") is not None


def extract(text: str | None) -> str | None:
    """Return the first reference-shaped substring of *text*, if any."""

    match = REFERENCE_PATTERN.search(text or "")
    return match.group(0) if match else None


def normalize_spacing(text: str | None) -> str:
    """Split a compressed book/chapter pair: ``john3:16`` -> ``john 3:16``."""

    return _LETTER_THEN_DIGIT.sub(r"\1 \2", text or "", count=1)


def _title_word(word: str) -> str:
    return word[:1].upper() + word[1:].lower()


def canonicalize(ref: str | None) -> str:
    """Collapse whitespace and title-case each word.

    ``canonicalize("  jOhn   3:16 ") == "John 3:16"``; applying it twice
    gives the same result as applying it once.
    """

    collapsed = _WHITESPACE.sub(" ", (ref or "").lower()).strip()
    return " ".join(_title_word(word) for word in collapsed.split(" ") if word)


def clamp_range(ref: str, max_span: int) -> str:
    """Shorten ``prefix:A-B`` so that it covers at most *max_span* extra verses."""

    match = _RANGE.match(ref or "")
    if not match:
        return ref
    prefix, start, end = match.groups()
    first, last = int(start), int(end)
    if last - first > max_span:
        return f"{prefix}{first}-{first + max_span}"
    return ref


__all__ = [
    "REFERENCE_PATTERN",
    "canonicalize",
    "clamp_range",
    "detect",
    "extract",
    "normalize_spacing",
]
