"""Heuristic extraction of code identifiers from compiler and test output."""

from __future__ import annotations

import re
from typing import Dict, List

from ..models import DiagnosticReference, ReferenceKind

_ANSI_ESCAPE = re.compile(r"\x1b\[[0-9;?]*[ -/]*[@-~]")

# Compiler arrows quote the source location: "--> /path/to/file.rs:12:5".
_DIRECT_FILE = re.compile(r"-->\s*((?:[A-Za-z]:)?[/\\][^\s:]*?\.rs):\d+(?::\d+)?")

_IDENT = r"[A-Za-z_][A-Za-z0-9_]*"
_TOKEN = re.compile(rf"(?<![A-Za-z0-9_]){_IDENT}(?:(?:::|\.){_IDENT})*(?P<bang>!)?")

# Capitalised words that cargo and test harnesses print on nearly every run.
_NOISE_WORDS = frozenset(
    {
        "Blocking",
        "Building",
        "Checking",
        "Compiling",
        "Doc",
        "Downloaded",
        "Downloading",
        "Err",
        "Executable",
        "Finished",
        "Fresh",
        "Locking",
        "None",
        "Ok",
        "Running",
        "Self",
        "Some",
        "Updating",
        "Warning",
    }
)

# Standard library and prelude names, which most crates also define or alias.
_STD_NAMES = frozenset(
    {
        "Arc",
        "BTreeMap",
        "BTreeSet",
        "Box",
        "Clone",
        "Copy",
        "Cow",
        "Debug",
        "Default",
        "Display",
        "Duration",
        "Eq",
        "Error",
        "Fn",
        "FnMut",
        "FnOnce",
        "From",
        "Hash",
        "HashMap",
        "HashSet",
        "Into",
        "IntoIterator",
        "Iterator",
        "Option",
        "Ord",
        "PartialEq",
        "PartialOrd",
        "Path",
        "PathBuf",
        "Rc",
        "RefCell",
        "Result",
        "Send",
        "Sized",
        "String",
        "Sync",
        "Vec",
        "VecDeque",
    }
)

# rustc error codes such as E0308.
_ERROR_CODE = re.compile(r"^E\d{4}$")

# Identifiers shorter than this are too ambiguous to search crate sources for.
_MIN_TOKEN_LENGTH = 2


def strip_ansi(text: str) -> str:
    return _ANSI_ESCAPE.sub("", text)


def extract_references(text: str) -> List[DiagnosticReference]:
    """Return references in order of first appearance, without duplicates.

    Tokens are drawn from a restricted grammar (identifier characters joined
    by ``::`` or ``.``). Trailing ``!`` marks a macro, joined segments a
    path, a leading capital a type and any other bare word a crate name.
    False positives are expected; resolution against the dependency graph
    discards them.
    """
    if not text:
        return []
    cleaned = strip_ansi(text)
    found: Dict[DiagnosticReference, None] = {}

    for match in _DIRECT_FILE.finditer(cleaned):
        found.setdefault(DiagnosticReference(match.group(1), ReferenceKind.FILE), None)
    # Components of an already-located file are not identifiers.
    cleaned = _DIRECT_FILE.sub(" ", cleaned)

    for match in _TOKEN.finditer(cleaned):
        reference = _classify(match.group(0), bool(match.group("bang")))
        if reference is not None:
            found.setdefault(reference, None)
    return list(found)


def _classify(raw: str, is_macro: bool) -> DiagnosticReference | None:
    token = raw[:-1] if is_macro else raw
    if len(token) < _MIN_TOKEN_LENGTH:
        return None
    if is_macro:
        # Qualified macro calls (e.g. "tokio::select!") are looked up by their last segment.
        name = re.split(r"::|\.", token)[-1]
        return DiagnosticReference(name, ReferenceKind.MACRO)
    if "::" in token or "." in token:
        return DiagnosticReference(token, ReferenceKind.PATH)
    if token in _NOISE_WORDS or token in _STD_NAMES or _ERROR_CODE.match(token):
        return None
    if token[0].isupper():
        return DiagnosticReference(token, ReferenceKind.TYPE)
    return DiagnosticReference(token, ReferenceKind.CRATE)


__all__ = ["extract_references", "strip_ansi"]
