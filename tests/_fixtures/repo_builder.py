"""Helper utilities for constructing temporary project trees in tests."""

from __future__ import annotations

import textwrap
from pathlib import Path
from typing import List, Mapping, Optional

from contree.ignore import load_ignore_rules
from contree.walker import DirectoryWalker


class RepoBuilder:
    """Utility for writing files into a throwaway project and walking it."""

    def __init__(self, tmp_path: Path) -> None:
        self.root = tmp_path / "repo"
        self.root.mkdir()

    def write(self, files: Mapping[str, str]) -> None:
        """Write `path -> contents` entries into the project."""
        for relative, content in files.items():
            path = self.root / relative
            path.parent.mkdir(parents=True, exist_ok=True)
            normalised = textwrap.dedent(content).lstrip("\n")
            path.write_text(normalised, encoding="utf-8")

    def write_bytes(self, relative: str, payload: bytes) -> Path:
        path = self.root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(payload)
        return path

    def walk(self, max_depth: Optional[int] = None) -> List[str]:
        """Return the walker output for the project using its ignore files."""
        rules = load_ignore_rules(self.root)
        return list(DirectoryWalker(self.root, rules, max_depth).walk())

    def path(self) -> Path:
        """Return the project root path."""
        return self.root


__all__ = ["RepoBuilder"]
