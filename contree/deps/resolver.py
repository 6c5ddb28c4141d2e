"""Maps diagnostic references onto files in the local dependency cache."""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Sequence, Tuple

from ..logging import get_logger
from ..models import (
    CrateInfo,
    DependencyGraphSnapshot,
    DiagnosticReference,
    ReferenceKind,
    ResolvedDependencyFile,
)
from .graph import DependencyGraphProvider, GraphError, find_manifest
from .references import extract_references

_ENTRY_FILES: Tuple[str, ...] = ("src/lib.rs", "src/main.rs")
_DEFINITION_KEYWORDS = r"(?:struct|enum|trait|type|union)"
_SKIPPED_DIRS = {"target", ".git"}


class _Collector:
    """Ordered, path-keyed accumulator that merges reasons for repeated hits."""

    def __init__(self) -> None:
        self._entries: Dict[Path, Tuple[CrateInfo | None, List[str]]] = {}

    def add(self, path: Path, crate: CrateInfo | None, reason: str) -> None:
        key = path.resolve()
        if key not in self._entries:
            self._entries[key] = (crate, [reason])
            return
        reasons = self._entries[key][1]
        if reason not in reasons:
            reasons.append(reason)

    def results(self) -> List[ResolvedDependencyFile]:
        resolved: List[ResolvedDependencyFile] = []
        for path, (crate, reasons) in self._entries.items():
            crate_name, version = _crate_identity(path, crate)
            resolved.append(
                ResolvedDependencyFile(
                    crate_name=crate_name,
                    version=version,
                    path=path,
                    reasons=tuple(reasons),
                )
            )
        return resolved


class DependencyResolver:
    """Resolves identifiers found in build or test output to dependency sources.

    Resolution is best-effort: a missing manifest, a failed introspection call
    or unreadable sources add a warning and shrink the result, but never raise.
    """

    def __init__(
        self,
        provider: DependencyGraphProvider,
        *,
        registry_root: Path | None = None,
    ) -> None:
        self.provider = provider
        self.registry_root = registry_root
        self.warnings: List[str] = []
        self.logger = get_logger("deps.resolver")

    def resolve(self, root: Path, diagnostic_text: Optional[str]) -> List[ResolvedDependencyFile]:
        manifest = find_manifest(root)
        if manifest is None:
            self._warn(f"No Cargo.toml found at or above {root}; dependency inclusion skipped")
            return []
        if not diagnostic_text or not diagnostic_text.strip():
            self.logger.debug("No diagnostic text supplied; nothing to resolve")
            return []

        references = extract_references(diagnostic_text)
        self.logger.debug("Extracted %d candidate references", len(references))
        if not references:
            return []

        try:
            snapshot = self.provider.resolve_project_dependencies(manifest.parent)
        except GraphError as exc:
            self._warn(f"Dependency graph unavailable; no dependency files included: {exc}")
            return []

        resolved = self.match(references, snapshot)
        if not resolved:
            self.logger.info("No dependency files matched the diagnostic text")
        return resolved

    def match(
        self,
        references: Sequence[DiagnosticReference],
        snapshot: DependencyGraphSnapshot,
    ) -> List[ResolvedDependencyFile]:
        """Join ``references`` against ``snapshot`` without running any subprocess."""
        collector = _Collector()
        type_names: List[str] = []
        macro_names: List[str] = []

        for reference in references:
            if reference.kind is ReferenceKind.FILE:
                self._match_direct_file(reference.token, snapshot, collector)
            elif reference.kind is ReferenceKind.CRATE:
                if reference.token in snapshot:
                    crate = snapshot[reference.token]
                    entry = self._entry_file(crate)
                    if entry is not None:
                        collector.add(entry, crate, f"crate {crate.name}")
            elif reference.kind is ReferenceKind.PATH:
                self._match_path(reference, snapshot, collector)
            elif reference.kind is ReferenceKind.TYPE:
                type_names.append(reference.token)
            elif reference.kind is ReferenceKind.MACRO:
                macro_names.append(reference.token)

        if type_names or macro_names:
            for path, crate, reason in self._find_definitions(snapshot.crates(), type_names, macro_names):
                collector.add(path, crate, reason)
        return collector.results()

    # ------------------------------------------------------------------
    # Matching strategies

    def _match_direct_file(
        self, raw_path: str, snapshot: DependencyGraphSnapshot, collector: _Collector
    ) -> None:
        path = Path(raw_path)
        if not path.is_file():
            return
        for crate in snapshot.crates():
            if _is_within(path, crate.source_root):
                collector.add(path, crate, "directly referenced")
                return
        if self.registry_root is not None and _is_within(path, self.registry_root):
            collector.add(path, None, "directly referenced")

    def _match_path(
        self,
        reference: DiagnosticReference,
        snapshot: DependencyGraphSnapshot,
        collector: _Collector,
    ) -> None:
        segments = reference.segments
        if not segments or segments[0] not in snapshot:
            return
        crate = snapshot[segments[0]]
        rest = segments[1:]
        modules: List[str] = []
        for segment in rest:
            if segment[:1].isupper():
                break
            modules.append(segment)
        trailing_type = rest[len(modules)] if len(modules) < len(rest) else None

        if trailing_type is not None:
            definitions = self._find_definitions([crate], [trailing_type], [])
            if definitions:
                for path, _, _ in definitions:
                    collector.add(path, crate, f"path {reference.token}")
                return

        module_file = self._module_file(crate, modules)
        if module_file is None:
            module_file = self._entry_file(crate)
        if module_file is not None:
            collector.add(module_file, crate, f"path {reference.token}")

    def _module_file(self, crate: CrateInfo, modules: Sequence[str]) -> Optional[Path]:
        """Return the file for the longest resolvable prefix of ``modules``."""
        entry = self._entry_file(crate)
        base = entry.parent if entry is not None else crate.source_root / "src"
        for length in range(len(modules), 0, -1):
            parts = modules[:length]
            directory = base.joinpath(*parts[:-1])
            for candidate in (directory / f"{parts[-1]}.rs", directory / parts[-1] / "mod.rs"):
                if candidate.is_file():
                    return candidate
        return None

    def _entry_file(self, crate: CrateInfo) -> Optional[Path]:
        for relative in _ENTRY_FILES:
            candidate = crate.source_root / relative
            if candidate.is_file():
                return candidate
        return next(_iter_rust_files(crate.source_root), None)

    def _find_definitions(
        self,
        crates: Sequence[CrateInfo],
        type_names: Sequence[str],
        macro_names: Sequence[str],
    ) -> List[Tuple[Path, CrateInfo, str]]:
        patterns: List[Tuple[re.Pattern[str], str]] = []
        if type_names:
            alternatives = "|".join(re.escape(name) for name in dict.fromkeys(type_names))
            patterns.append(
                (re.compile(rf"\b{_DEFINITION_KEYWORDS}\s+({alternatives})\b"), "type")
            )
        if macro_names:
            alternatives = "|".join(re.escape(name) for name in dict.fromkeys(macro_names))
            patterns.append((re.compile(rf"\bmacro_rules!\s*({alternatives})\b"), "macro"))

        found: List[Tuple[Path, CrateInfo, str]] = []
        for crate in crates:
            for path in _iter_rust_files(crate.source_root):
                content = self._read_source(path)
                if content is None:
                    continue
                for pattern, label in patterns:
                    for name in dict.fromkeys(match.group(1) for match in pattern.finditer(content)):
                        found.append((path, crate, f"{label} {name}"))
        return found

    def _read_source(self, path: Path) -> Optional[str]:
        try:
            return path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            self._warn(f"Skipping unreadable dependency source {path}: {exc}")
            return None

    def _warn(self, message: str) -> None:
        self.logger.warning(message)
        self.warnings.append(message)


def _iter_rust_files(root: Path) -> Iterator[Path]:
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = sorted(name for name in dirnames if name not in _SKIPPED_DIRS)
        for filename in sorted(filenames):
            if filename.endswith(".rs"):
                yield Path(dirpath) / filename


def _is_within(path: Path, root: Path) -> bool:
    try:
        path.resolve().relative_to(root.resolve())
    except ValueError:
        return False
    return True


def _crate_identity(path: Path, crate: CrateInfo | None) -> Tuple[str, str]:
    if crate is not None:
        return crate.name, crate.version
    # Registry layout: registry/src/<index>/<name>-<version>/...
    for part in reversed(path.parts[:-1]):
        match = re.match(r"^(?P<name>.+?)-(?P<version>\d+\.\d+\.\d+\S*)$", part)
        if match:
            return match.group("name"), match.group("version")
    return "unknown", ""


__all__ = ["DependencyResolver"]
