"""Core data models shared across contree components."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, Iterator, List, Mapping, Optional, Tuple


class Origin(str, Enum):
    """Why a file ended up in the context document."""

    EXPLICIT = "explicit"
    SCANNED = "scanned"
    DEPENDENCY = "dependency"


class ReferenceKind(str, Enum):
    """Classification of an identifier pulled out of diagnostic text."""

    TYPE = "type"
    MACRO = "macro"
    CRATE = "crate"
    PATH = "path"
    FILE = "file"


@dataclass(frozen=True)
class CandidateFile:
    """A file selected for the document.

    ``path`` is the display path: relative to the scan root for scanned and
    explicit files that live under it, absolute otherwise. ``location`` is the
    absolute path used for reading and de-duplication.
    """

    path: str
    origin: Origin
    location: Path


@dataclass(frozen=True)
class DiagnosticReference:
    """Bare identifier extracted from diagnostic text, not yet resolved."""

    token: str
    kind: ReferenceKind

    @property
    def segments(self) -> Tuple[str, ...]:
        if self.kind is ReferenceKind.FILE:
            return (self.token,)
        return tuple(part for part in self.token.replace("::", ".").split(".") if part)


@dataclass(frozen=True)
class CrateInfo:
    """Location of a single crate's sources in the local dependency cache."""

    name: str
    version: str
    manifest_path: Path
    source_root: Path


def normalize_crate_name(name: str) -> str:
    return name.replace("-", "_")


class DependencyGraphSnapshot(Mapping[str, CrateInfo]):
    """Read-only crate name -> CrateInfo mapping for one invocation.

    Lookups treat ``-`` and ``_`` as equivalent, matching how crate names are
    spelled in manifests versus source code.
    """

    def __init__(self, crates: Mapping[str, CrateInfo] | None = None) -> None:
        self._crates: Dict[str, CrateInfo] = {}
        for info in (crates or {}).values():
            self._crates[normalize_crate_name(info.name)] = info

    def __getitem__(self, name: str) -> CrateInfo:
        return self._crates[normalize_crate_name(name)]

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and normalize_crate_name(name) in self._crates

    def __iter__(self) -> Iterator[str]:
        return iter(sorted(self._crates))

    def __len__(self) -> int:
        return len(self._crates)

    def crates(self) -> List[CrateInfo]:
        """Return crate entries ordered by name."""
        return [self._crates[name] for name in sorted(self._crates)]


@dataclass(frozen=True)
class ResolvedDependencyFile:
    """Dependency-cache file matched to one or more diagnostic references."""

    crate_name: str
    version: str
    path: Path
    reasons: Tuple[str, ...] = ()


@dataclass(frozen=True)
class DocumentEntry:
    """One rendered block of the context document."""

    file: CandidateFile
    content: Optional[str]
    reasons: Tuple[str, ...] = ()

    @property
    def binary(self) -> bool:
        return self.content is None


@dataclass
class OutputDocument:
    """Ordered, de-duplicated document plus non-fatal warnings raised while building it."""

    entries: List[DocumentEntry] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    def paths(self, origin: Origin | None = None) -> List[str]:
        return [
            entry.file.path
            for entry in self.entries
            if origin is None or entry.file.origin is origin
        ]
