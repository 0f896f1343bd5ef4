from __future__ import annotations

import os
from pathlib import Path
from typing import TYPE_CHECKING

from context_extractor.comments import strip_comments
from context_extractor.config import (
    FILTER_PLACEHOLDER,
    READ_ERROR_PREFIX,
    STATIC_EXCLUDES,
    FileEntry,
    FileStatus,
)
from context_extractor.exclusions import is_excluded, normalize_rel_path
from context_extractor.logging import logger

if TYPE_CHECKING:
    from collections.abc import Collection, Iterable

INDENT = "  "


def relpath(path: Path, root: Path) -> str:
    """Send the relative path of path from root.

    Args:
        path (Path): the path to "relativise"
        root (Path): the root to relativise from

    Returns:
        str: the relative path from root to path, with POSIX separators.
            If path is not under root, returns the original path as a string.
    """
    try:
        return str(path.relative_to(root)).replace("\\", "/")
    except ValueError:
        return str(path)


def list_directory(directory: Path) -> list[os.DirEntry[str]]:
    """List a directory in the order the OS returns it.

    Unreadable directories are logged and treated as empty.

    Args:
        directory (Path): the directory to list

    Returns:
        list[os.DirEntry[str]]: the directory entries, unsorted
    """
    try:
        with os.scandir(directory) as it:
            return list(it)
    except OSError as e:
        logger.warning("Could not read directory %s: %s", directory, e)
        return []


def is_directory(entry: os.DirEntry[str]) -> bool:
    """Check if a directory entry is a directory, following symlinks.

    Args:
        entry (os.DirEntry[str]): the entry to test

    Returns:
        bool: True if the entry is a directory or a link to one, False otherwise or on stat failure
    """
    try:
        return entry.is_dir()
    except OSError:
        return False


def is_linked(entry: os.DirEntry[str]) -> bool:
    try:
        return entry.is_symlink()
    except OSError:
        return False


def build_structure_listing(
    root: Path,
    *,
    static_rules: Iterable[str] = STATIC_EXCLUDES,
) -> list[str]:
    """Build the indented listing of every entry kept by the static rules.

    One line per entry, depth-first in directory listing order, two spaces per
    level, directories marked with a trailing ``/``. Symlinked directories are
    listed but not descended into. No file is read.

    Args:
        root (Path): the project root
        static_rules (Iterable[str]): the static exclusion rules

    Returns:
        list[str]: the listing lines
    """
    rules = tuple(static_rules)

    def walk(directory: Path, depth: int) -> list[str]:
        lines: list[str] = []
        for entry in list_directory(directory):
            path = Path(entry.path)
            is_dir = is_directory(entry)
            if is_excluded(relpath(path, root), entry.name, is_dir=is_dir, static_rules=rules):
                continue
            lines.append(f"{INDENT * depth}-- {entry.name}{'/' if is_dir else ''}")
            if is_dir and not is_linked(entry):
                lines.extend(walk(path, depth + 1))
        return lines

    return walk(root, 0)


def read_file_entry(path: Path, rel: str, *, remove_comments: bool) -> FileEntry:
    """Read one file into an entry; a read failure becomes a ``read-error`` entry.

    Args:
        path (Path): the file to read
        rel (str): its path relative to the root
        remove_comments (bool): whether to run the comment stripper on the text

    Returns:
        FileEntry: an ``included`` entry, or a ``read-error`` entry carrying the error
    """
    try:
        content = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        logger.warning("Could not read file %s: %s", path, e)
        return FileEntry(rel=rel, status=FileStatus.READ_ERROR, content=f"{READ_ERROR_PREFIX}{e}")
    if remove_comments:
        content = strip_comments(content)
    return FileEntry(rel=rel, status=FileStatus.INCLUDED, content=content)


def collect_file_entries(
    root: Path,
    *,
    remove_comments: bool = False,
    dynamic_rules: Collection[str] = frozenset(),
    static_rules: Iterable[str] = STATIC_EXCLUDES,
) -> list[FileEntry]:
    """Walk the tree again and produce one entry per file kept by the static rules.

    Files whose normalized path is in ``dynamic_rules`` are not read and get the
    filter placeholder instead. Symlinked directories produce no entry. Traversal
    order matches ``build_structure_listing``.

    Args:
        root (Path): the project root
        remove_comments (bool): whether to strip comments from read files
        dynamic_rules (Collection[str]): normalized file paths suggested by the model
        static_rules (Iterable[str]): the static exclusion rules

    Returns:
        list[FileEntry]: the entries in traversal order
    """
    rules = tuple(static_rules)
    dynamic = frozenset(dynamic_rules)

    def walk(directory: Path) -> list[FileEntry]:
        entries: list[FileEntry] = []
        for entry in list_directory(directory):
            path = Path(entry.path)
            rel = normalize_rel_path(relpath(path, root))
            is_dir = is_directory(entry)
            if is_excluded(rel, entry.name, is_dir=is_dir, static_rules=rules):
                continue
            if is_dir:
                if not is_linked(entry):
                    entries.extend(walk(path))
            elif is_excluded(rel, entry.name, is_dir=False, static_rules=(), dynamic_rules=dynamic):
                entries.append(FileEntry(rel=rel, status=FileStatus.EXCLUDED_BY_FILTER, content=FILTER_PLACEHOLDER))
            else:
                entries.append(read_file_entry(path, rel, remove_comments=remove_comments))
        return entries

    return walk(root)
