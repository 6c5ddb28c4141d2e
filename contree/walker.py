"""Ignore-aware directory traversal."""

from __future__ import annotations

import os
from pathlib import Path
from typing import FrozenSet, Iterable, Iterator, List, Optional, Tuple

from .config import ConfigError
from .ignore import IgnoreRuleSet
from .logging import get_logger


class DirectoryWalker:
    """Yields project files below ``root`` in a reproducible order.

    Entries are visited lexicographically; the files of a directory are
    yielded before its subdirectories are descended. Ignored directories are
    pruned, so nothing beneath them is ever listed. ``max_depth`` counts
    directory levels below the root: ``0`` yields only files directly in the
    root and ``None`` means unlimited.
    """

    def __init__(
        self,
        root: Path,
        rules: IgnoreRuleSet | None = None,
        max_depth: Optional[int] = None,
        *,
        skip: Iterable[Path] = (),
    ) -> None:
        if max_depth is not None and max_depth < 0:
            raise ConfigError(f"max depth must be a non-negative integer, got {max_depth}")
        self.root = Path(root)
        self.rules = rules if rules is not None else IgnoreRuleSet()
        self.max_depth = max_depth
        self.warnings: List[str] = []
        self._skip: FrozenSet[str] = frozenset(os.path.realpath(path) for path in skip)
        self.logger = get_logger("walker")

    def walk(self) -> Iterator[str]:
        """Yield POSIX paths relative to the root."""
        root_real = os.path.realpath(self.root)
        yield from self._walk_dir(self.root, "", 0, (root_real,))

    def __iter__(self) -> Iterator[str]:
        return self.walk()

    # ------------------------------------------------------------------
    # Internals

    def _walk_dir(
        self, directory: Path, rel_dir: str, depth: int, ancestry: Tuple[str, ...]
    ) -> Iterator[str]:
        entries = self._list_dir(directory)
        if entries is None:
            return

        subdirs: List[Tuple[str, os.DirEntry[str]]] = []
        for entry in entries:
            rel_path = f"{rel_dir}/{entry.name}" if rel_dir else entry.name
            is_dir = _is_dir(entry)
            if is_dir is None:
                self.logger.debug("Skipping broken or unreadable entry %s", rel_path)
                continue
            if self.rules.is_ignored(rel_path, is_dir):
                continue
            if is_dir:
                subdirs.append((rel_path, entry))
                continue
            if not _is_file(entry):
                continue
            if self._skip and os.path.realpath(entry.path) in self._skip:
                continue
            yield rel_path

        if self.max_depth is not None and depth >= self.max_depth:
            return

        for rel_path, entry in subdirs:
            real = os.path.realpath(entry.path)
            if real in ancestry:
                self.logger.debug("Skipping symlink cycle at %s", rel_path)
                continue
            yield from self._walk_dir(Path(entry.path), rel_path, depth + 1, ancestry + (real,))

    def _list_dir(self, directory: Path) -> Optional[List[os.DirEntry[str]]]:
        try:
            with os.scandir(directory) as iterator:
                return sorted(iterator, key=lambda entry: entry.name)
        except OSError as exc:
            self._warn(f"Skipping unreadable directory {directory}: {exc.strerror or exc}")
            return None

    def _warn(self, message: str) -> None:
        self.logger.warning(message)
        self.warnings.append(message)


def _is_dir(entry: os.DirEntry[str]) -> Optional[bool]:
    try:
        if entry.is_dir(follow_symlinks=True):
            return True
        if entry.is_symlink() and not os.path.exists(entry.path):
            return None
        return False
    except OSError:
        return None


def _is_file(entry: os.DirEntry[str]) -> bool:
    try:
        return entry.is_file(follow_symlinks=True)
    except OSError:
        return False


__all__ = ["DirectoryWalker"]
