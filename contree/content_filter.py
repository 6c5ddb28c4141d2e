"""Content pattern matching and binary detection for candidate files."""

from __future__ import annotations

import codecs
import re
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import List, Optional, Pattern, Tuple, Union

from .config import DEFAULT_PROBE_BYTES, ConfigError
from .logging import get_logger

BINARY_PLACEHOLDER = "[binary file]"


class MatchStatus(str, Enum):
    MATCHED = "matched"
    UNMATCHED = "unmatched"
    BINARY = "binary"


@dataclass(frozen=True)
class LiteralPattern:
    """Case-sensitive substring pattern."""

    text: str

    def search(self, content: str) -> bool:
        return self.text in content


@dataclass(frozen=True)
class RegexPattern:
    """Compiled regular expression matched anywhere in the content."""

    regex: Pattern[str]

    def search(self, content: str) -> bool:
        return self.regex.search(content) is not None


FilterPattern = Union[LiteralPattern, RegexPattern]


def parse_filter_pattern(raw: Optional[str]) -> Optional[FilterPattern]:
    """Parse a ``--grep`` value; ``/.../`` is a regex, anything else a literal."""
    if raw is None:
        return None
    trimmed = raw.strip()
    if not trimmed:
        return None
    if len(trimmed) >= 2 and trimmed.startswith("/") and trimmed.endswith("/"):
        expression = trimmed[1:-1]
        try:
            return RegexPattern(re.compile(expression))
        except re.error as exc:
            raise ConfigError(f"Invalid regex pattern {trimmed!r}: {exc}") from exc
    return LiteralPattern(trimmed)


def is_binary(path: Path, probe_bytes: int = DEFAULT_PROBE_BYTES) -> bool:
    """Return True when the leading bytes of ``path`` are not UTF-8 text.

    Raises ``OSError`` when the file cannot be opened.
    """
    with path.open("rb") as handle:
        sample = handle.read(probe_bytes)
    if b"\x00" in sample:
        return True
    # An incremental decoder tolerates a multi-byte sequence cut at the probe boundary.
    decoder = codecs.getincrementaldecoder("utf-8")()
    try:
        decoder.decode(sample, final=False)
    except UnicodeDecodeError:
        return True
    return False


class ContentFilter:
    """Classifies files as matched, unmatched or binary for an optional pattern."""

    def __init__(
        self,
        pattern: Optional[FilterPattern] = None,
        probe_bytes: int = DEFAULT_PROBE_BYTES,
    ) -> None:
        self.pattern = pattern
        self.probe_bytes = probe_bytes
        self.warnings: List[str] = []
        self.logger = get_logger("content_filter")

    def matches(self, path: Path) -> MatchStatus:
        try:
            if is_binary(path, self.probe_bytes):
                return MatchStatus.BINARY
        except OSError as exc:
            self._warn(f"Skipping unreadable file {path}: {exc.strerror or exc}")
            return MatchStatus.UNMATCHED

        if self.pattern is None:
            return MatchStatus.MATCHED

        content = self.read_text(path)
        if content is None:
            return MatchStatus.UNMATCHED
        return MatchStatus.MATCHED if self.pattern.search(content) else MatchStatus.UNMATCHED

    def load(self, path: Path) -> Tuple[bool, Optional[str]]:
        """Return ``(True, text)``, ``(True, None)`` for binary files, or ``(False, None)``.

        Binary files are only probed, never read in full.
        """
        try:
            if is_binary(path, self.probe_bytes):
                return True, None
        except OSError as exc:
            self._warn(f"Skipping unreadable file {path}: {exc.strerror or exc}")
            return False, None
        content = self.read_text(path)
        return content is not None, content

    def read_text(self, path: Path) -> Optional[str]:
        """Return the full UTF-8 text of ``path`` or None after recording a warning."""
        try:
            return path.read_text(encoding="utf-8")
        except UnicodeDecodeError:
            self._warn(f"Skipping {path}: content is not valid UTF-8")
        except OSError as exc:
            self._warn(f"Skipping unreadable file {path}: {exc.strerror or exc}")
        return None

    def _warn(self, message: str) -> None:
        self.logger.warning(message)
        self.warnings.append(message)


__all__ = [
    "BINARY_PLACEHOLDER",
    "ContentFilter",
    "FilterPattern",
    "LiteralPattern",
    "MatchStatus",
    "RegexPattern",
    "is_binary",
    "parse_filter_pattern",
]
