"""Text framing for the context document."""

from __future__ import annotations

from typing import List, TextIO

from .content_filter import BINARY_PLACEHOLDER
from .models import DocumentEntry, Origin, OutputDocument

PROJECT_HEADER = "=== Project Context ==="
DEPENDENCY_HEADER = "=== Relevant Dependency Files ==="
FENCE = "```"


def render_entry(entry: DocumentEntry) -> str:
    lines: List[str] = [f"File: {entry.file.path}"]
    for reason in entry.reasons:
        lines.append(f"  - {reason}")
    lines.append(FENCE)
    body = BINARY_PLACEHOLDER if entry.binary else (entry.content or "")
    lines.append(body.rstrip("\n"))
    lines.append(FENCE)
    return "\n".join(lines) + "\n"


def render_document(document: OutputDocument) -> str:
    """Return the full document text: project files first, then dependency files."""
    project = [entry for entry in document.entries if entry.file.origin is not Origin.DEPENDENCY]
    dependencies = [entry for entry in document.entries if entry.file.origin is Origin.DEPENDENCY]

    parts: List[str] = [f"\n{PROJECT_HEADER}\n"]
    parts.extend(render_entry(entry) for entry in project)
    if dependencies:
        parts.append(f"\n{DEPENDENCY_HEADER}\n")
        parts.extend(render_entry(entry) for entry in dependencies)
    return "\n".join(parts)


def write_document(document: OutputDocument, stream: TextIO) -> None:
    stream.write(render_document(document))
    stream.flush()


__all__ = ["render_document", "render_entry", "write_document"]
