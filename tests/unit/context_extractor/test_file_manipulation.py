from __future__ import annotations

import os
from pathlib import Path
from typing import TYPE_CHECKING

import pytest

from context_extractor import file_manipulation
from context_extractor.config import FILTER_PLACEHOLDER, READ_ERROR_PREFIX, FileEntry, FileStatus
from context_extractor.file_manipulation import build_structure_listing, collect_file_entries, relpath

if TYPE_CHECKING:
    from pytest_mock import MockerFixture

    from tests.conftest import TreeFactory


@pytest.mark.unit
def test_relpath_uses_posix_separators(tmp_path: Path) -> None:
    assert relpath(tmp_path / "src" / "app.py", tmp_path) == "src/app.py"
    assert relpath(Path("/elsewhere/x.py"), tmp_path) == str(Path("/elsewhere/x.py"))


@pytest.mark.unit
def test_structure_listing_indents_and_marks_directories(make_tree: TreeFactory) -> None:
    root = make_tree({"src/lib/util.js": "", "src/index.js": ""})

    lines = build_structure_listing(root)

    assert lines[0] == "-- src/"
    assert sorted(lines[1:]) == sorted(["  -- lib/", "    -- util.js", "  -- index.js"])
    assert lines.index("    -- util.js") == lines.index("  -- lib/") + 1


@pytest.mark.unit
def test_structure_listing_skips_static_exclusions_transitively(make_tree: TreeFactory) -> None:
    root = make_tree(
        {
            "a.js": "x",
            ".git/config": "[core]",
            "node_modules/pkg/index.js": "module.exports = 1;",
            "web/node_modules/dep/lib.js": "",
            "yarn.lock": "",
        },
    )

    lines = build_structure_listing(root)
    joined = "\n".join(lines)

    assert "-- a.js" in lines
    assert ".git" not in joined
    assert "node_modules" not in joined
    assert "pkg" not in joined
    assert "yarn.lock" not in joined
    assert "-- web/" in lines


@pytest.mark.unit
def test_structure_listing_of_empty_root_is_empty(tmp_path: Path) -> None:
    assert build_structure_listing(tmp_path) == []


@pytest.mark.unit
def test_collect_file_entries_reads_files_in_listing_order(make_tree: TreeFactory) -> None:
    root = make_tree({"src/app.py": "print('hi')\n", "src/pkg/mod.py": "x = 1\n", "README.md": "# Demo\n"})

    entries = collect_file_entries(root)
    files = [line.strip().removeprefix("-- ") for line in build_structure_listing(root) if not line.endswith("/")]

    assert [Path(e.rel).name for e in entries] == files
    by_rel = {e.rel: e for e in entries}
    assert by_rel["src/app.py"].status is FileStatus.INCLUDED
    assert by_rel["src/app.py"].content == "print('hi')\n"
    assert by_rel["src/pkg/mod.py"].language == "py"


@pytest.mark.unit
def test_collect_file_entries_applies_comment_stripping(make_tree: TreeFactory) -> None:
    root = make_tree({"a.js": "// c\nconsole.log(1);"})

    entries = collect_file_entries(root, remove_comments=True)

    assert [(e.rel, e.content) for e in entries] == [("a.js", "console.log(1);")]


@pytest.mark.unit
def test_dynamic_exclusion_yields_placeholder_without_reading(
    make_tree: TreeFactory,
    mocker: MockerFixture,
) -> None:
    root = make_tree({"src/keep.js": "keep()", "src/drop.js": "drop()"})
    read_spy = mocker.spy(file_manipulation, "read_file_entry")

    entries = collect_file_entries(root, dynamic_rules=frozenset({"src/drop.js"}))

    by_rel = {e.rel: e for e in entries}
    assert len(entries) == 2
    assert by_rel["src/drop.js"].status is FileStatus.EXCLUDED_BY_FILTER
    assert by_rel["src/drop.js"].content == FILTER_PLACEHOLDER
    assert by_rel["src/keep.js"].content == "keep()"
    read_paths = [c.args[1] for c in read_spy.call_args_list]
    assert read_paths == ["src/keep.js"]


@pytest.mark.unit
def test_dynamic_rules_never_remove_directories(make_tree: TreeFactory) -> None:
    root = make_tree({"legacy/old.js": "old()"})

    entries = collect_file_entries(root, dynamic_rules=frozenset({"legacy"}))

    assert [(e.rel, e.status) for e in entries] == [("legacy/old.js", FileStatus.INCLUDED)]


@pytest.mark.unit
def test_static_exclusions_never_reach_the_content_walk(make_tree: TreeFactory) -> None:
    root = make_tree({"a.js": "a", ".git/config": "c", "node_modules/pkg/index.js": "i", "package-lock.json": "{}"})

    entries = collect_file_entries(root, dynamic_rules=frozenset({"node_modules/pkg/index.js"}))

    assert [e.rel for e in entries] == ["a.js"]


@pytest.mark.unit
def test_undecodable_file_becomes_read_error_entry(make_tree: TreeFactory) -> None:
    root = make_tree({"ok.txt": "fine"})
    (root / "image.png").write_bytes(b"\x89PNG\r\n\x1a\n\xff\xfe\x00")

    entries = {e.rel: e for e in collect_file_entries(root)}

    assert entries["ok.txt"].status is FileStatus.INCLUDED
    assert entries["image.png"].status is FileStatus.READ_ERROR
    assert entries["image.png"].content.startswith(READ_ERROR_PREFIX)


@pytest.mark.unit
def test_read_failure_does_not_abort_the_walk(make_tree: TreeFactory, mocker: MockerFixture) -> None:
    root = make_tree({"a.txt": "a", "b.txt": "b"})
    real_read_text = Path.read_text

    def flaky_read_text(self: Path, *args: object, **kwargs: object) -> str:
        if self.name == "a.txt":
            msg = "Permission denied"
            raise PermissionError(msg)
        return real_read_text(self, *args, **kwargs)

    mocker.patch.object(Path, "read_text", flaky_read_text)

    entries = {e.rel: e for e in collect_file_entries(root)}

    assert entries["a.txt"].status is FileStatus.READ_ERROR
    assert entries["a.txt"].content == f"{READ_ERROR_PREFIX}Permission denied"
    assert entries["b.txt"].content == "b"


@pytest.mark.unit
def test_unreadable_directory_is_treated_as_empty(make_tree: TreeFactory, mocker: MockerFixture) -> None:
    root = make_tree({"locked/secret.txt": "s", "open.txt": "o"})
    real_scandir = os.scandir

    def guarded_scandir(path: object) -> object:
        if Path(str(path)).name == "locked":
            msg = "Permission denied"
            raise PermissionError(msg)
        return real_scandir(path)

    mocker.patch.object(file_manipulation.os, "scandir", guarded_scandir)

    lines = build_structure_listing(root)
    entries = collect_file_entries(root)

    assert "-- locked/" in lines
    assert "secret.txt" not in "\n".join(lines)
    assert [e.rel for e in entries] == ["open.txt"]


@pytest.mark.unit
def test_symlinked_directory_is_listed_but_not_walked(make_tree: TreeFactory) -> None:
    root = make_tree({"real/inner.txt": "inner"})
    try:
        (root / "link").symlink_to(root / "real", target_is_directory=True)
    except OSError:
        pytest.skip("symlinks are not supported here")

    lines = build_structure_listing(root)
    entries = collect_file_entries(root)

    assert "-- link/" in lines
    assert lines.count("  -- inner.txt") == 1
    assert [e.rel for e in entries] == ["real/inner.txt"]
    assert all(e.status is FileStatus.INCLUDED for e in entries)


@pytest.mark.unit
def test_file_entry_language_defaults_to_text() -> None:
    entry = FileEntry(rel="Makefile", content="all:")

    assert entry.language == "text"
    assert FileEntry(rel="src/App.TSX").language == "tsx"
