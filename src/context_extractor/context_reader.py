from __future__ import annotations

import os
from pathlib import Path
from typing import TYPE_CHECKING

from context_extractor.config import (
    MARKDOWN_SUFFIX,
    MEMORY_BANK_DIR,
    README_NAME,
    STATIC_EXCLUDES,
    AuxiliaryContext,
    ContextFile,
)
from context_extractor.file_manipulation import relpath
from context_extractor.logging import logger

if TYPE_CHECKING:
    from collections.abc import Iterable


def read_context_file(path: Path, root: Path) -> ContextFile | None:
    """Read a documentation file, returning None when it cannot be used.

    A missing file is expected and silent; any other failure is logged.

    Args:
        path (Path): the file to read
        root (Path): the project root, used for the relative path

    Returns:
        ContextFile | None: the trimmed file content, or None
    """
    try:
        content = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return None
    except (OSError, UnicodeDecodeError) as e:
        logger.warning("Could not read context file %s: %s", path, e)
        return None
    return ContextFile(name=path.name, rel=relpath(path, root), content=content.strip())


def _list_files(directory: Path) -> list[Path]:
    try:
        with os.scandir(directory) as it:
            return [Path(e.path) for e in it if e.is_file()]
    except FileNotFoundError:
        return []
    except OSError as e:
        logger.warning("Could not read context directory %s: %s", directory, e)
        return []


def _has_excluded_part(name: str, static_rules: Iterable[str]) -> bool:
    return any(rule in name for rule in static_rules)


def read_auxiliary_context(
    root: Path,
    *,
    static_rules: Iterable[str] = STATIC_EXCLUDES,
) -> AuxiliaryContext:
    """Collect the README, the memory bank and the other root markdown files.

    Each source is optional and read independently of the others.

    Args:
        root (Path): the project root
        static_rules (Iterable[str]): names containing any of these are skipped

    Returns:
        AuxiliaryContext: whatever documentation could be read
    """
    rules = tuple(static_rules)

    readme = read_context_file(root / README_NAME, root)

    memory_bank: list[ContextFile] = []
    for path in _list_files(root / MEMORY_BANK_DIR):
        if _has_excluded_part(path.name, rules):
            continue
        record = read_context_file(path, root)
        if record is not None:
            memory_bank.append(record)

    markdown_files: list[ContextFile] = []
    for path in _list_files(root):
        name_low = path.name.lower()
        if not name_low.endswith(MARKDOWN_SUFFIX) or name_low == README_NAME.lower():
            continue
        if _has_excluded_part(path.name, rules):
            continue
        record = read_context_file(path, root)
        if record is not None:
            markdown_files.append(record)

    return AuxiliaryContext(
        readme=readme.content if readme else None,
        memory_bank=tuple(memory_bank),
        markdown_files=tuple(markdown_files),
    )
