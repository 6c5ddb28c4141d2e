"""Tests for contree.content_filter."""

from __future__ import annotations

from pathlib import Path

import pytest

from contree.config import ConfigError
from contree.content_filter import (
    ContentFilter,
    LiteralPattern,
    MatchStatus,
    RegexPattern,
    is_binary,
    parse_filter_pattern,
)


def _write(path: Path, content: str) -> Path:
    path.write_text(content, encoding="utf-8")
    return path


def test_parse_filter_pattern_distinguishes_literal_and_regex() -> None:
    assert parse_filter_pattern(None) is None
    assert parse_filter_pattern("   ") is None
    assert parse_filter_pattern("transaction") == LiteralPattern("transaction")
    # A lone slash is not a delimited regex.
    assert parse_filter_pattern("/") == LiteralPattern("/")

    regex = parse_filter_pattern("/^foo/")
    assert isinstance(regex, RegexPattern)
    assert regex.regex.pattern == "^foo"


def test_invalid_regex_is_a_configuration_error() -> None:
    with pytest.raises(ConfigError) as excinfo:
        parse_filter_pattern("/fo(o/")
    assert "fo(o" in str(excinfo.value)


def test_no_pattern_matches_every_text_file(tmp_path: Path) -> None:
    path = _write(tmp_path / "a.rs", "fn main() {}\n")

    assert ContentFilter().matches(path) is MatchStatus.MATCHED


def test_literal_match_is_case_sensitive_substring(tmp_path: Path) -> None:
    hit = _write(tmp_path / "hit.rs", "let food = 1;\n")
    miss = _write(tmp_path / "miss.rs", "let FOO = 1;\n")
    content_filter = ContentFilter(parse_filter_pattern("foo"))

    assert content_filter.matches(hit) is MatchStatus.MATCHED
    assert content_filter.matches(miss) is MatchStatus.UNMATCHED


def test_regex_searches_whole_content(tmp_path: Path) -> None:
    anchored = _write(tmp_path / "anchored.rs", "foo at start\n")
    later = _write(tmp_path / "later.rs", "first line\nfoo on second\n")
    content_filter = ContentFilter(parse_filter_pattern("/^foo/"))

    assert content_filter.matches(anchored) is MatchStatus.MATCHED
    # ^ anchors to the start of the text without re.MULTILINE.
    assert content_filter.matches(later) is MatchStatus.UNMATCHED

    multiline = ContentFilter(parse_filter_pattern("/(?m)^foo/"))
    assert multiline.matches(later) is MatchStatus.MATCHED


def test_nul_byte_marks_file_binary_even_when_pattern_misses(tmp_path: Path) -> None:
    path = tmp_path / "blob.bin"
    path.write_bytes(b"header\x00\x01\x02")

    assert is_binary(path)
    assert ContentFilter(parse_filter_pattern("absent")).matches(path) is MatchStatus.BINARY


def test_invalid_utf8_in_probe_marks_file_binary(tmp_path: Path) -> None:
    path = tmp_path / "latin1.txt"
    path.write_bytes("café!".encode("latin-1"))

    assert ContentFilter().matches(path) is MatchStatus.BINARY


def test_multibyte_character_split_at_probe_boundary_is_text(tmp_path: Path) -> None:
    path = tmp_path / "accent.txt"
    path.write_bytes(b"a" + "é".encode("utf-8"))

    assert not is_binary(path, probe_bytes=2)


def test_invalid_encoding_beyond_probe_is_unmatched_with_warning(tmp_path: Path) -> None:
    path = tmp_path / "late.txt"
    path.write_bytes(b"foo " * 8 + b"\xff")
    content_filter = ContentFilter(parse_filter_pattern("foo"), probe_bytes=8)

    assert content_filter.matches(path) is MatchStatus.UNMATCHED
    assert len(content_filter.warnings) == 1


def test_missing_file_is_unmatched_with_warning(tmp_path: Path) -> None:
    content_filter = ContentFilter(parse_filter_pattern("foo"))

    assert content_filter.matches(tmp_path / "vanished.rs") is MatchStatus.UNMATCHED
    assert "vanished.rs" in content_filter.warnings[0]


def test_load_returns_text_or_binary_marker(tmp_path: Path) -> None:
    text = _write(tmp_path / "a.txt", "hello\n")
    blob = tmp_path / "b.bin"
    blob.write_bytes(b"\x00\x00")
    content_filter = ContentFilter()

    assert content_filter.load(text) == (True, "hello\n")
    assert content_filter.load(blob) == (True, None)
    assert content_filter.load(tmp_path / "gone.txt") == (False, None)
