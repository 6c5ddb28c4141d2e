"""Dependency-graph introspection for Cargo projects."""

from __future__ import annotations

import json
import re
import subprocess
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Protocol, Sequence, Tuple

from ..config import DependencyConfig
from ..logging import get_logger
from ..models import CrateInfo, DependencyGraphSnapshot

MANIFEST_FILENAME = "Cargo.toml"

Runner = Callable[..., str]

# "├── serde v1.0.197" / "│   └── itoa v1.0.10 (*)" / "serde_derive v1.0.197 (proc-macro)"
_TREE_LINE = re.compile(r"(?:[├└]──|[|`]--)\s+(?P<name>[A-Za-z0-9_\-]+)\s+v(?P<version>\d+\.\d+\.\d+\S*)")

logger = get_logger("deps.graph")


class GraphError(RuntimeError):
    """Raised when dependency metadata cannot be obtained or parsed."""


class DependencyGraphProvider(Protocol):
    """Pluggable source of the crate name -> source location mapping."""

    def resolve_project_dependencies(self, root: Path) -> DependencyGraphSnapshot:
        ...


def find_manifest(start: Path) -> Optional[Path]:
    """Return the nearest Cargo.toml at or above ``start``."""
    current = start.resolve()
    for directory in (current, *current.parents):
        candidate = directory / MANIFEST_FILENAME
        if candidate.is_file():
            return candidate
    return None


def registry_source_dirs(cargo_home: Path) -> List[Path]:
    """Return the per-index source directories under ``$CARGO_HOME/registry/src``."""
    registry = cargo_home / "registry" / "src"
    try:
        return sorted(path for path in registry.iterdir() if path.is_dir())
    except OSError:
        return []


def version_key(version: str) -> Tuple[Tuple[int, ...], Tuple[Tuple[int, int, str], ...]]:
    """Sort key following semver precedence; build metadata is ignored."""
    core, _, suffix = version.partition("+")[0].partition("-")
    numbers = tuple(int(part) for part in re.findall(r"\d+", core))
    if not suffix:
        # A release sorts after its pre-releases.
        return numbers, ((2, 0, ""),)
    # Numeric identifiers compare as numbers and sort before alphanumeric ones.
    identifiers = tuple(
        (0, int(part), "") if part.isdigit() else (1, 0, part) for part in suffix.split(".")
    )
    return numbers, identifiers


def _highest_versions(crates: Iterable[CrateInfo]) -> Dict[str, CrateInfo]:
    selected: Dict[str, CrateInfo] = {}
    for info in crates:
        current = selected.get(info.name)
        if current is None or version_key(info.version) > version_key(current.version):
            selected[info.name] = info
    return selected


def _default_runner(
    args: Iterable[str],
    *,
    cwd: Path,
    timeout: Optional[float] = None,
) -> str:
    command = list(args)
    completed = subprocess.run(
        command,
        cwd=str(cwd),
        capture_output=True,
        timeout=timeout,
    )
    # Cargo output may carry non-UTF-8 bytes from build scripts or paths.
    stdout = completed.stdout.decode("utf-8", errors="replace")
    if completed.returncode != 0:
        stderr = completed.stderr.decode("utf-8", errors="replace")
        raise subprocess.CalledProcessError(completed.returncode, command, output=stdout, stderr=stderr)
    return stdout


class _CargoProvider:
    """Shared subprocess handling; every failure surfaces as ``GraphError``."""

    def __init__(
        self,
        runner: Runner | None = None,
        *,
        timeout: Optional[float] = None,
    ) -> None:
        self._runner = runner or _default_runner
        self.timeout = timeout

    def _run(self, args: Sequence[str], *, cwd: Path) -> str:
        try:
            return self._runner(args, cwd=cwd, timeout=self.timeout)
        except FileNotFoundError as exc:
            raise GraphError(f"{args[0]} executable not found") from exc
        except subprocess.CalledProcessError as exc:
            stderr = (exc.stderr or "").strip().splitlines()
            detail = stderr[-1] if stderr else f"exit status {exc.returncode}"
            raise GraphError(f"`{' '.join(args)}` failed: {detail}") from exc
        except subprocess.TimeoutExpired as exc:
            raise GraphError(f"`{' '.join(args)}` timed out after {exc.timeout}s") from exc
        except UnicodeDecodeError as exc:
            raise GraphError(f"`{' '.join(args)}` produced undecodable output: {exc}") from exc
        except OSError as exc:
            raise GraphError(f"`{' '.join(args)}` could not be run: {exc}") from exc


class CargoMetadataProvider(_CargoProvider):
    """Builds the snapshot from ``cargo metadata`` JSON output."""

    def resolve_project_dependencies(self, root: Path) -> DependencyGraphSnapshot:
        output = self._run(["cargo", "metadata", "--format-version", "1"], cwd=root)
        try:
            payload = json.loads(output)
        except json.JSONDecodeError as exc:
            raise GraphError(f"cargo metadata output is not valid JSON: {exc}") from exc
        if not isinstance(payload, dict) or not isinstance(payload.get("packages"), list):
            raise GraphError("cargo metadata output has no package list")

        members = set(payload.get("workspace_members") or [])
        crates: List[CrateInfo] = []
        for package in payload["packages"]:
            if not isinstance(package, dict) or package.get("id") in members:
                continue
            name = package.get("name")
            version = package.get("version")
            manifest = package.get("manifest_path")
            if not (isinstance(name, str) and isinstance(version, str) and isinstance(manifest, str)):
                continue
            manifest_path = Path(manifest)
            crates.append(
                CrateInfo(
                    name=name,
                    version=version,
                    manifest_path=manifest_path,
                    source_root=manifest_path.parent,
                )
            )
        logger.debug("cargo metadata reported %d dependency packages", len(crates))
        return DependencyGraphSnapshot(_highest_versions(crates))


class CargoTreeProvider(_CargoProvider):
    """Builds the snapshot from ``cargo tree`` and the local registry layout."""

    def __init__(
        self,
        runner: Runner | None = None,
        *,
        cargo_home: Path,
        timeout: Optional[float] = None,
    ) -> None:
        super().__init__(runner, timeout=timeout)
        self.cargo_home = cargo_home

    def resolve_project_dependencies(self, root: Path) -> DependencyGraphSnapshot:
        output = self._run(["cargo", "tree"], cwd=root)
        pairs: Dict[Tuple[str, str], None] = {}
        for line in output.splitlines():
            match = _TREE_LINE.search(line)
            if match:
                pairs.setdefault((match.group("name"), match.group("version")), None)

        index_dirs = registry_source_dirs(self.cargo_home)
        crates: List[CrateInfo] = []
        for name, version in pairs:
            source_root = _locate_in_registry(index_dirs, f"{name}-{version}")
            if source_root is None:
                logger.debug("No registry sources for %s %s", name, version)
                continue
            crates.append(
                CrateInfo(
                    name=name,
                    version=version,
                    manifest_path=source_root / MANIFEST_FILENAME,
                    source_root=source_root,
                )
            )
        return DependencyGraphSnapshot(_highest_versions(crates))


def _locate_in_registry(index_dirs: Sequence[Path], dirname: str) -> Optional[Path]:
    for index_dir in index_dirs:
        candidate = index_dir / dirname
        if candidate.is_dir():
            return candidate
    return None


def build_provider(config: DependencyConfig, runner: Runner | None = None) -> DependencyGraphProvider:
    """Return the provider named by ``dependencies.provider``."""
    if config.provider == "tree":
        return CargoTreeProvider(
            runner,
            cargo_home=config.resolved_cargo_home(),
            timeout=config.timeout,
        )
    return CargoMetadataProvider(runner, timeout=config.timeout)


__all__ = [
    "CargoMetadataProvider",
    "CargoTreeProvider",
    "DependencyGraphProvider",
    "GraphError",
    "MANIFEST_FILENAME",
    "build_provider",
    "find_manifest",
    "registry_source_dirs",
]
