"""Ignore rules composed from .gitignore, .contreeignore and .contree.yml."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Sequence, Tuple

import pathspec

from .logging import get_logger

GITIGNORE_FILENAME = ".gitignore"
CUSTOM_IGNORE_FILENAME = ".contreeignore"

# Version-control metadata is never part of a context document.
_BUILTIN_PATTERNS: Tuple[str, ...] = (".git/", ".hg/", ".svn/")

logger = get_logger("ignore")


@dataclass(frozen=True)
class IgnoreRule:
    """A single ignore pattern and the source it was loaded from."""

    pattern: str
    source: str


class IgnoreRuleSet:
    """Ordered rules evaluated with gitignore semantics; the last match wins."""

    def __init__(self, rules: Sequence[IgnoreRule] = ()) -> None:
        self._rules: Tuple[IgnoreRule, ...] = tuple(rules)
        self._spec = pathspec.GitIgnoreSpec.from_lines(rule.pattern for rule in self._rules)

    @property
    def rules(self) -> Tuple[IgnoreRule, ...]:
        return self._rules

    def is_ignored(self, rel_path: str, is_dir: bool) -> bool:
        if not self._rules or not rel_path:
            return False
        target = rel_path.strip("/")
        if is_dir:
            # Trailing slash lets directory-only patterns ("build/") apply.
            target = f"{target}/"
        return bool(self._spec.match_file(target))


def _parse_ignore_lines(lines: Iterable[str], source: str) -> List[IgnoreRule]:
    rules: List[IgnoreRule] = []
    for raw_line in lines:
        line = raw_line.rstrip("\r\n")
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue
        # Trailing whitespace is insignificant in ignore files.
        rules.append(IgnoreRule(pattern=line.rstrip(), source=source))
    return rules


def _parse_ignore_file(path: Path, source: str, warnings: List[str] | None) -> List[IgnoreRule]:
    if not path.is_file():
        return []
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        message = f"Skipping unreadable ignore file {path}: {exc}"
        logger.warning(message)
        if warnings is not None:
            warnings.append(message)
        return []
    return _parse_ignore_lines(text.splitlines(), source)


def load_ignore_rules(
    root: Path,
    extra_patterns: Sequence[str] = (),
    *,
    warnings: List[str] | None = None,
) -> IgnoreRuleSet:
    """Build the rule set for ``root``.

    Load order is built-in rules, ``.gitignore``, ``.contreeignore`` and then
    ``extra_patterns`` (the ``exclude_paths`` of ``.contree.yml``). Missing
    files contribute nothing.
    """
    rules = [IgnoreRule(pattern=pattern, source="builtin") for pattern in _BUILTIN_PATTERNS]
    rules.extend(_parse_ignore_file(root / GITIGNORE_FILENAME, "gitignore", warnings))
    rules.extend(_parse_ignore_file(root / CUSTOM_IGNORE_FILENAME, "contreeignore", warnings))
    rules.extend(_parse_ignore_lines(extra_patterns, "config"))
    logger.debug("Loaded %d ignore rules for %s", len(rules), root)
    return IgnoreRuleSet(rules)


__all__ = [
    "CUSTOM_IGNORE_FILENAME",
    "GITIGNORE_FILENAME",
    "IgnoreRule",
    "IgnoreRuleSet",
    "load_ignore_rules",
]
