import pytest

from verse_relay.references import (
    canonicalize,
    clamp_range,
    detect,
    extract,
    normalize_spacing,
)


@pytest.mark.parametrize(
    "text",
    [
        "John 3:16",
        "please read john 3:16 thanks",
        "Psalm 23:1-6",
        "1 Corinthians 13:4",
        "Gen   1:1",
    ],
)
def test_detect_accepts_reference_shapes(text: str) -> None:
    assert detect(text) is True


@pytest.mark.parametrize(
    "text",
    [
        "",
        None,
        "hello everyone",
        "john3:16",
        "John 3",
        "John 1234:1",
        "meet at ten:30",
    ],
)
def test_detect_rejects_non_references(text: str | None) -> None:
    assert detect(text) is False


def test_extract_returns_first_match() -> None:
    assert extract("read Psalm 23:1 and John 3:16 pls") == "Psalm 23:1"
    assert extract("no verse here") is None


def test_normalize_spacing_splits_compressed_reference() -> None:
    assert normalize_spacing("john3:16") == "john 3:16"
    assert normalize_spacing("John 3:16") == "John 3:16"


def test_canonicalize_collapses_and_title_cases() -> None:
    assert canonicalize("  jOhn   3:16 ") == "John 3:16"
    assert canonicalize("1 JOHN 4:8") == "1 John 4:8"
    assert canonicalize("song\tof  SOLOMON 2:1") == "Song Of Solomon 2:1"


@pytest.mark.parametrize("raw", ["  jOhn   3:16 ", "PSALM 23:1-3", "a b  c", ""])
def test_canonicalize_is_idempotent(raw: str) -> None:
    once = canonicalize(raw)
    assert canonicalize(once) == once


def test_clamp_range_limits_span() -> None:
    assert clamp_range("John 3:1-99", 5) == "John 3:1-6"
    assert clamp_range("John 3:1-6", 5) == "John 3:1-6"


def test_clamp_range_passes_through_non_ranges() -> None:
    assert clamp_range("John 3:16", 5) == "John 3:16"
    assert clamp_range("John 3:x-y", 5) == "John 3:x-y"
    assert clamp_range("", 5) == ""
