"""Configuration loading for contree (.contree.yml)."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import yaml

CONFIG_FILENAME = ".contree.yml"
DEFAULT_PROBE_BYTES = 8192
PROVIDERS = ("metadata", "tree")


class ConfigError(RuntimeError):
    """Raised for invalid invocation parameters or an unparseable config file."""


@dataclass
class DependencyConfig:
    """Settings for dependency-file resolution."""

    provider: str = "metadata"
    cargo_home: Optional[Path] = None
    timeout: Optional[float] = None

    def resolved_cargo_home(self) -> Path:
        """Return the Cargo home directory, honoring ``$CARGO_HOME``."""
        if self.cargo_home is not None:
            return self.cargo_home
        env_home = os.environ.get("CARGO_HOME")
        if env_home:
            return Path(env_home).expanduser()
        return Path.home() / ".cargo"


@dataclass
class ContreeConfig:
    """Represents the settings defined in .contree.yml."""

    root: Path
    exclude_paths: List[str] = field(default_factory=list)
    binary_probe_bytes: int = DEFAULT_PROBE_BYTES
    dependencies: DependencyConfig = field(default_factory=DependencyConfig)


def load_config(config_path: Path) -> ContreeConfig:
    """Load configuration from disk; a missing file yields defaults."""
    config_file = _resolve_config_path(config_path)
    root = config_file.parent.resolve()

    if not config_file.exists():
        return ContreeConfig(root=root)

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root")

    probe = data.get("binary_probe_bytes")
    probe_bytes = DEFAULT_PROBE_BYTES
    if probe is not None:
        parsed = _as_int(probe)
        if parsed is None or parsed <= 0:
            raise ConfigError("binary_probe_bytes must be a positive integer")
        probe_bytes = parsed

    deps_data = _as_dict(data.get("dependencies"))
    dependencies = DependencyConfig()
    if deps_data:
        provider = _as_str(deps_data.get("provider"))
        if provider is not None:
            provider = provider.strip().lower()
            if provider not in PROVIDERS:
                raise ConfigError(
                    f"dependencies.provider must be one of {', '.join(PROVIDERS)}; got {provider!r}"
                )
            dependencies.provider = provider
        cargo_home = _as_str(deps_data.get("cargo_home"))
        if cargo_home:
            dependencies.cargo_home = Path(cargo_home).expanduser()
        timeout = deps_data.get("timeout")
        if timeout is not None:
            dependencies.timeout = _as_float(timeout)
            if dependencies.timeout is None or dependencies.timeout <= 0:
                raise ConfigError("dependencies.timeout must be a positive number of seconds")

    return ContreeConfig(
        root=root,
        exclude_paths=_as_str_list(data.get("exclude_paths")),
        binary_probe_bytes=probe_bytes,
        dependencies=dependencies,
    )


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    if config_path.name != CONFIG_FILENAME:
        return (config_path.parent / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Dict[str, Any]:
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigError(f"Failed to read {path.name}: {exc}") from exc
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded if loaded is not None else {}


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float, bool)) else None


def _as_float(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return None
    return None


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return None
    return None


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float, bool))]
    return []
