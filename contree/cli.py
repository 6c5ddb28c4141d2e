"""CLI entrypoint for contree."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import List, Optional, TextIO

from .config import ConfigError
from .logging import configure_logging
from .orchestrator import Orchestrator, RunOptions
from .render import write_document


def _non_negative_int(value: str) -> int:
    try:
        parsed = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid depth: {value!r}") from exc
    if parsed < 0:
        raise argparse.ArgumentTypeError(f"depth must be non-negative, got {parsed}")
    return parsed


def _comma_separated(value: str) -> List[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="contree",
        description=(
            "Print project files as a single context document, optionally with the "
            "dependency sources referenced by piped build or test output."
        ),
    )
    parser.add_argument(
        "-d",
        "--dir",
        type=Path,
        default=None,
        help="Directory to scan (defaults to the current working directory).",
    )
    parser.add_argument(
        "-D",
        "--include-deps",
        action="store_true",
        help="Include dependency files referenced in piped errors (Rust projects only).",
    )
    parser.add_argument(
        "-o",
        "--output",
        type=Path,
        default=None,
        help="Write the document to this file instead of stdout.",
    )
    parser.add_argument(
        "-g",
        "--grep",
        default=None,
        help="Only include files containing this text, or matching '/regex/'.",
    )
    parser.add_argument(
        "-i",
        "--include",
        type=_comma_separated,
        action="extend",
        default=None,
        help="Comma-separated files to include even if ignored or filtered out.",
    )
    parser.add_argument(
        "--max-depth",
        type=_non_negative_int,
        default=None,
        help="Maximum directory depth below --dir to scan (unlimited by default).",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=False,
        help="Increase log verbosity for troubleshooting.",
    )
    return parser


def _read_piped_input(stdin: TextIO, echo: TextIO) -> Optional[str]:
    """Read piped diagnostic text to EOF and pass it through to ``echo``.

    Bytes are echoed unchanged; undecodable sequences are replaced in the
    returned text.
    """
    if stdin is None or stdin.isatty():
        return None
    echo.flush()
    chunks: List[bytes] = []
    for line in stdin.buffer:
        echo.buffer.write(line)
        echo.buffer.flush()
        chunks.append(line)
    return b"".join(chunks).decode("utf-8", errors="replace")


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for contree."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(verbose=bool(args.verbose))

    root = args.dir if args.dir is not None else Path.cwd()
    diagnostic_text = _read_piped_input(sys.stdin, sys.stdout)
    options = RunOptions(
        root=root,
        max_depth=args.max_depth,
        grep=args.grep,
        include=args.include or [],
        include_deps=bool(args.include_deps),
        diagnostic_text=diagnostic_text,
        skip=[args.output] if args.output is not None else [],
    )

    try:
        document = Orchestrator().run(options)
    except ConfigError as exc:
        parser.exit(1, f"contree: {exc}\n")

    if args.output is None:
        write_document(document, sys.stdout)
        return
    try:
        with args.output.open("w", encoding="utf-8") as handle:
            write_document(document, handle)
    except OSError as exc:
        parser.exit(1, f"contree: failed to write {args.output}: {exc}\n")


if __name__ == "__main__":
    main(sys.argv[1:])
