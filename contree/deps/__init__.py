"""Resolution of diagnostic references to third-party dependency sources."""

from .graph import (
    CargoMetadataProvider,
    CargoTreeProvider,
    DependencyGraphProvider,
    GraphError,
    build_provider,
    find_manifest,
)
from .references import extract_references, strip_ansi
from .resolver import DependencyResolver

__all__ = [
    "CargoMetadataProvider",
    "CargoTreeProvider",
    "DependencyGraphProvider",
    "DependencyResolver",
    "GraphError",
    "build_provider",
    "extract_references",
    "find_manifest",
    "strip_ansi",
]
