"""Pipeline orchestration for a single contree invocation."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Sequence

from .assembler import DocumentAssembler
from .config import ConfigError, ContreeConfig, load_config
from .content_filter import ContentFilter, MatchStatus, parse_filter_pattern
from .deps import DependencyGraphProvider, DependencyResolver, build_provider
from .ignore import load_ignore_rules
from .logging import get_logger
from .models import CandidateFile, Origin, OutputDocument, ResolvedDependencyFile
from .walker import DirectoryWalker


@dataclass
class RunOptions:
    """Already-parsed parameters for one run."""

    root: Path
    max_depth: Optional[int] = None
    grep: Optional[str] = None
    include: Sequence[str] = field(default_factory=list)
    include_deps: bool = False
    diagnostic_text: Optional[str] = None
    skip: Sequence[Path] = field(default_factory=list)


class Orchestrator:
    """Coordinates the walker, content filter, resolver and assembler."""

    def __init__(self, provider: DependencyGraphProvider | None = None) -> None:
        self._provider_override = provider
        self.logger = get_logger("orchestrator")

    def run(self, options: RunOptions) -> OutputDocument:
        """Build the context document; configuration errors raise before any traversal."""
        root = self._validate_root(options.root)
        config = load_config(root)
        pattern = parse_filter_pattern(options.grep)
        if options.max_depth is not None and options.max_depth < 0:
            raise ConfigError(f"max depth must be a non-negative integer, got {options.max_depth}")
        explicit = self._resolve_explicit(root, options.include)

        warnings: List[str] = []
        content_filter = ContentFilter(pattern, probe_bytes=config.binary_probe_bytes)
        scanned = self._scan(root, config, options, content_filter, warnings)
        warnings.extend(content_filter.warnings)

        dependencies: List[ResolvedDependencyFile] = []
        if options.include_deps:
            resolver = self._build_resolver(config)
            dependencies = resolver.resolve(root, options.diagnostic_text)
            warnings.extend(resolver.warnings)
            self.logger.debug("Resolved %d dependency files", len(dependencies))

        document = DocumentAssembler(content_filter).assemble(explicit, scanned, dependencies)
        document.warnings[:0] = warnings
        return document

    # ------------------------------------------------------------------
    # Internals

    def _validate_root(self, root: Path) -> Path:
        root_path = Path(root).expanduser()
        if not root_path.exists():
            raise ConfigError(f"Directory not found: {root}")
        if not root_path.is_dir():
            raise ConfigError(f"Not a directory: {root}")
        return root_path.resolve()

    def _resolve_explicit(self, root: Path, include: Sequence[str]) -> List[CandidateFile]:
        """Resolve ``--include`` entries against the scan root, then the working directory."""
        candidates: List[CandidateFile] = []
        missing: List[str] = []
        for raw in include:
            name = raw.strip()
            if not name:
                continue
            location = _locate_include(root, Path(name).expanduser())
            if location is None:
                missing.append(name)
                continue
            candidates.append(
                CandidateFile(path=_display_path(root, location), origin=Origin.EXPLICIT, location=location)
            )
        if missing:
            raise ConfigError(f"Included file(s) not found: {', '.join(missing)}")
        return candidates

    def _scan(
        self,
        root: Path,
        config: ContreeConfig,
        options: RunOptions,
        content_filter: ContentFilter,
        warnings: List[str],
    ) -> List[CandidateFile]:
        rules = load_ignore_rules(root, config.exclude_paths, warnings=warnings)
        walker = DirectoryWalker(root, rules, options.max_depth, skip=options.skip)
        scanned: List[CandidateFile] = []
        for rel_path in walker.walk():
            location = root / rel_path
            status = content_filter.matches(location)
            if status is MatchStatus.UNMATCHED:
                continue
            scanned.append(CandidateFile(path=rel_path, origin=Origin.SCANNED, location=location))
        warnings.extend(walker.warnings)
        self.logger.debug("Walker selected %d files under %s", len(scanned), root)
        return scanned

    def _build_resolver(self, config: ContreeConfig) -> DependencyResolver:
        provider = self._provider_override or build_provider(config.dependencies)
        registry_root = config.dependencies.resolved_cargo_home() / "registry"
        return DependencyResolver(provider, registry_root=registry_root)


def _locate_include(root: Path, path: Path) -> Optional[Path]:
    candidates = [path] if path.is_absolute() else [root / path, Path.cwd() / path]
    for candidate in candidates:
        if candidate.is_file():
            return candidate.resolve()
    return None


def _display_path(root: Path, location: Path) -> str:
    try:
        return location.relative_to(root).as_posix()
    except ValueError:
        return str(location)


__all__ = ["Orchestrator", "RunOptions"]
