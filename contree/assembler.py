"""Merges explicit, scanned and dependency files into one ordered document."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, List, Sequence, Set, Tuple

from .content_filter import ContentFilter
from .logging import get_logger
from .models import (
    CandidateFile,
    DocumentEntry,
    Origin,
    OutputDocument,
    ResolvedDependencyFile,
)


def dependency_candidates(
    resolved: Iterable[ResolvedDependencyFile],
) -> List[Tuple[CandidateFile, Tuple[str, ...]]]:
    """Wrap resolver output as dependency-origin candidates with their reasons."""
    return [
        (
            CandidateFile(path=str(item.path), origin=Origin.DEPENDENCY, location=item.path),
            item.reasons,
        )
        for item in resolved
    ]


class DocumentAssembler:
    """Builds the OutputDocument, applying Explicit > Scanned > Dependency precedence.

    Within each origin the caller's order is preserved. A path reachable via
    several origins is emitted once, under the highest-precedence origin.
    """

    def __init__(self, content_filter: ContentFilter | None = None) -> None:
        self.content_filter = content_filter or ContentFilter()
        self.logger = get_logger("assembler")

    def assemble(
        self,
        explicit: Sequence[CandidateFile] = (),
        scanned: Sequence[CandidateFile] = (),
        dependencies: Sequence[ResolvedDependencyFile] = (),
    ) -> OutputDocument:
        document = OutputDocument()
        seen: Set[Path] = set()
        groups: List[Sequence[Tuple[CandidateFile, Tuple[str, ...]]]] = [
            [(candidate, ()) for candidate in explicit],
            [(candidate, ()) for candidate in scanned],
            dependency_candidates(dependencies),
        ]
        warnings_before = len(self.content_filter.warnings)

        for group in groups:
            for candidate, reasons in group:
                key = candidate.location.resolve()
                if key in seen:
                    self.logger.debug(
                        "Skipping %s (%s); already included", candidate.path, candidate.origin.value
                    )
                    continue
                loaded, content = self.content_filter.load(candidate.location)
                if not loaded:
                    continue
                seen.add(key)
                document.entries.append(DocumentEntry(file=candidate, content=content, reasons=reasons))

        document.warnings.extend(self.content_filter.warnings[warnings_before:])
        self.logger.debug("Assembled %d document entries", len(document.entries))
        return document


__all__ = ["DocumentAssembler", "dependency_candidates"]
