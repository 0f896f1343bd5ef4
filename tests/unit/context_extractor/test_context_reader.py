from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import pytest

from context_extractor.context_reader import read_auxiliary_context, read_context_file

if TYPE_CHECKING:
    from pytest_mock import MockerFixture

    from tests.conftest import TreeFactory


@pytest.mark.unit
def test_reads_readme_memory_bank_and_other_markdown(make_tree: TreeFactory) -> None:
    root = make_tree(
        {
            "README.md": "  # Demo\n\nA demo project.\n\n",
            "memory-bank/productContext.md": "Why it exists.\n",
            "memory-bank/.DS_Store": "junk",
            "ARCHITECTURE.md": "Layers.",
            "notes.MD": "Upper-case suffix.",
            "src/deep.md": "not at the root",
            "main.py": "print()",
        },
    )

    context = read_auxiliary_context(root)

    assert context.readme == "# Demo\n\nA demo project."
    assert [(f.name, f.rel, f.content) for f in context.memory_bank] == [
        ("productContext.md", "memory-bank/productContext.md", "Why it exists."),
    ]
    assert sorted(f.rel for f in context.markdown_files) == ["ARCHITECTURE.md", "notes.MD"]
    assert not context.is_empty


@pytest.mark.unit
def test_missing_sources_give_empty_context(make_tree: TreeFactory) -> None:
    root = make_tree({"main.py": "print()"})

    context = read_auxiliary_context(root)

    assert context.readme is None
    assert context.memory_bank == ()
    assert context.markdown_files == ()
    assert context.is_empty


@pytest.mark.unit
def test_readme_is_not_repeated_in_markdown_files(make_tree: TreeFactory) -> None:
    root = make_tree({"README.md": "readme", "CHANGELOG.md": "changes"})

    context = read_auxiliary_context(root)

    assert [f.name for f in context.markdown_files] == ["CHANGELOG.md"]


@pytest.mark.unit
def test_unreadable_context_file_is_skipped(make_tree: TreeFactory, mocker: MockerFixture) -> None:
    root = make_tree({"README.md": "readme", "GUIDE.md": "guide"})
    real_read_text = Path.read_text

    def flaky_read_text(self: Path, *args: object, **kwargs: object) -> str:
        if self.name == "GUIDE.md":
            msg = "Permission denied"
            raise PermissionError(msg)
        return real_read_text(self, *args, **kwargs)

    mocker.patch.object(Path, "read_text", flaky_read_text)

    context = read_auxiliary_context(root)

    assert context.readme == "readme"
    assert context.markdown_files == ()


@pytest.mark.unit
def test_read_context_file_returns_none_for_missing_file(tmp_path: Path) -> None:
    assert read_context_file(tmp_path / "nope.md", tmp_path) is None
