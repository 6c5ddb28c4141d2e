"""Tests for contree.walker."""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from contree import walker as walker_module
from contree.config import ConfigError
from contree.ignore import load_ignore_rules
from contree.walker import DirectoryWalker
from tests._fixtures.repo_builder import RepoBuilder


def test_walk_is_lexicographic_with_files_before_subdirectories(repo_builder: RepoBuilder) -> None:
    repo_builder.write(
        {
            "b.txt": "b\n",
            "a.txt": "a\n",
            "src/z.rs": "fn z() {}\n",
            "src/a/inner.rs": "fn inner() {}\n",
            "c.txt": "c\n",
        }
    )

    assert repo_builder.walk() == [
        "a.txt",
        "b.txt",
        "c.txt",
        "src/z.rs",
        "src/a/inner.rs",
    ]


def test_walk_is_idempotent(repo_builder: RepoBuilder) -> None:
    repo_builder.write({"x.rs": "", "d/y.rs": "", "d/e/z.rs": ""})

    assert repo_builder.walk() == repo_builder.walk()


def test_max_depth_bounds_traversal(repo_builder: RepoBuilder) -> None:
    repo_builder.write(
        {
            "top.txt": "0\n",
            "one/mid.txt": "1\n",
            "one/two/deep.txt": "2\n",
        }
    )

    assert repo_builder.walk(max_depth=0) == ["top.txt"]
    assert repo_builder.walk(max_depth=1) == ["top.txt", "one/mid.txt"]
    assert repo_builder.walk() == ["top.txt", "one/mid.txt", "one/two/deep.txt"]


def test_negative_depth_is_a_configuration_error(tmp_path: Path) -> None:
    with pytest.raises(ConfigError):
        DirectoryWalker(tmp_path, max_depth=-1)


def test_ignored_directories_are_pruned_not_filtered(
    repo_builder: RepoBuilder, monkeypatch: pytest.MonkeyPatch
) -> None:
    repo_builder.write(
        {
            ".gitignore": "target/\n!target/keep.rs\n",
            "src/lib.rs": "pub fn lib() {}\n",
            "target/keep.rs": "// would be re-included by a post-filter\n",
            "target/debug/build.log": "noise\n",
        }
    )
    listed: list[str] = []
    original = DirectoryWalker._list_dir

    def _spy(self: DirectoryWalker, directory: Path):  # type: ignore[no-untyped-def]
        listed.append(Path(directory).name)
        return original(self, directory)

    monkeypatch.setattr(DirectoryWalker, "_list_dir", _spy)

    paths = repo_builder.walk()

    assert paths == [".gitignore", "src/lib.rs"]
    assert "target" not in listed
    assert "debug" not in listed


def test_git_directory_is_always_skipped(repo_builder: RepoBuilder) -> None:
    repo_builder.write({".git/HEAD": "ref: refs/heads/main\n", ".env.example": "A=1\n"})

    assert repo_builder.walk() == [".env.example"]


def test_contreeignore_applies_alongside_gitignore(repo_builder: RepoBuilder) -> None:
    repo_builder.write(
        {
            ".gitignore": "*.log\n",
            ".contreeignore": "fixtures/\n",
            "app.log": "x\n",
            "fixtures/data.json": "{}\n",
            "main.rs": "fn main() {}\n",
        }
    )

    assert repo_builder.walk() == [".contreeignore", ".gitignore", "main.rs"]


def test_symlink_cycle_does_not_recurse_forever(repo_builder: RepoBuilder) -> None:
    repo_builder.write({"pkg/mod.rs": "mod x;\n"})
    try:
        os.symlink(repo_builder.root, repo_builder.root / "pkg" / "loop", target_is_directory=True)
    except (OSError, NotImplementedError):
        pytest.skip("symlinks are not supported on this platform")

    walker = DirectoryWalker(repo_builder.root, load_ignore_rules(repo_builder.root))

    assert list(walker.walk()) == ["pkg/mod.rs"]
    assert walker.warnings == []


def test_symlinked_directory_outside_cycle_is_followed(repo_builder: RepoBuilder, tmp_path: Path) -> None:
    shared = tmp_path / "shared"
    shared.mkdir()
    (shared / "util.rs").write_text("pub fn util() {}\n", encoding="utf-8")
    try:
        os.symlink(shared, repo_builder.root / "shared", target_is_directory=True)
    except (OSError, NotImplementedError):
        pytest.skip("symlinks are not supported on this platform")

    assert repo_builder.walk() == ["shared/util.rs"]


def test_permission_denied_directory_is_skipped_with_warning(
    repo_builder: RepoBuilder, monkeypatch: pytest.MonkeyPatch
) -> None:
    repo_builder.write({"open/a.rs": "", "locked/b.rs": "", "z.rs": ""})
    locked = str(repo_builder.root / "locked")
    real_scandir = os.scandir

    def _scandir(path):  # type: ignore[no-untyped-def]
        if str(path) == locked:
            raise PermissionError(13, "Permission denied", locked)
        return real_scandir(path)

    monkeypatch.setattr(walker_module.os, "scandir", _scandir)
    walker = DirectoryWalker(repo_builder.root)

    assert list(walker.walk()) == ["z.rs", "open/a.rs"]
    assert len(walker.warnings) == 1
    assert "locked" in walker.warnings[0]


def test_skip_excludes_specific_files(repo_builder: RepoBuilder) -> None:
    repo_builder.write({"context.txt": "old output\n", "main.rs": "fn main() {}\n"})

    walker = DirectoryWalker(repo_builder.root, skip=[repo_builder.root / "context.txt"])

    assert list(walker.walk()) == ["main.rs"]
