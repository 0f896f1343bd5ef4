from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from types import SimpleNamespace

import pytest

TreeFactory = Callable[[dict[str, str]], Path]
ResponseFactory = Callable[[str | None], SimpleNamespace]


@pytest.fixture
def make_tree(tmp_path: Path) -> TreeFactory:
    """Create files under ``tmp_path / "project"`` from a ``{relative path: content}`` mapping."""

    def factory(files: dict[str, str]) -> Path:
        root = tmp_path / "project"
        root.mkdir(exist_ok=True)
        for rel, content in files.items():
            path = root / rel
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding="utf-8")
        return root

    return factory


@pytest.fixture
def chat_response() -> ResponseFactory:
    """Build objects shaped like an OpenAI chat completion response."""

    def factory(content: str | None) -> SimpleNamespace:
        return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])

    return factory
