from __future__ import annotations

import io
import re
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from context_extractor.config import FileStatus

if TYPE_CHECKING:
    from collections.abc import Sequence
    from pathlib import Path

    from context_extractor.config import FileEntry, FilterSuggestion

DOCUMENT_TITLE = "# Project Analysis Prompt"
DEFAULT_NAME_PART = "analysis"
MAX_NAME_PART_LENGTH = 50

_WHITESPACE = re.compile(r"\s+")
_UNSAFE_NAME_CHARS = re.compile(r"[^\w\-]", re.ASCII)


def _write_focus(out: io.StringIO, focus: str) -> None:
    out.write("## User-Defined Analysis Focus\n\n")
    out.write("**The primary goal of this analysis is:**\n")
    out.write(f"> {focus}\n\n")
    out.write("Please pay special attention to aspects related to this focus in your file analysis.\n\n")


def _write_filter_summary(out: io.StringIO, suggestion: FilterSuggestion, filter_level: int) -> None:
    out.write(f"**LLM-based file filtering applied (Aggressiveness Level: {filter_level})**\n")
    if suggestion.excluded_files:
        out.write(
            "The following files were filtered out (not included in detailed code analysis) "
            "based on LLM recommendation:\n",
        )
        for path in suggestion.excluded_files:
            out.write(f"  - `{path}`\n")
    else:
        out.write(
            "The LLM filter did not identify additional files for exclusion at this level "
            "(or all potential candidates were already in the static exclusion list).\n",
        )
    out.write("\n")


def _write_entry(out: io.StringIO, entry: FileEntry) -> None:
    out.write(f"### File: {entry.rel}\n\n")
    if entry.status is FileStatus.EXCLUDED_BY_FILTER:
        out.write(f"{entry.content}\n\n")
    elif entry.status is FileStatus.READ_ERROR:
        out.write(f"```text\n{entry.content}\n```\n\n")
    else:
        out.write(f"```{entry.language}\n{entry.content.strip()}\n```\n\n")


def build_markdown(
    structure: Sequence[str],
    entries: Sequence[FileEntry],
    suggestion: FilterSuggestion,
    *,
    focus: str = "",
    filter_level: int = 0,
) -> str:
    """Assemble the final Markdown prompt.

    Sections, in order: title, user focus (when given), filtering summary (when
    ``filter_level > 0``), directory structure, then one subsection per file entry
    in traversal order.

    Args:
        structure (Sequence[str]): the structure listing lines
        entries (Sequence[FileEntry]): the file entries from the content walk
        suggestion (FilterSuggestion): the model's suggestion, possibly empty
        focus (str): the analysis focus
        filter_level (int): the filtering level used for this run

    Returns:
        str: the Markdown document
    """
    out = io.StringIO()
    out.write(f"{DOCUMENT_TITLE}\n\n")

    focus = focus.strip()
    if focus:
        _write_focus(out, focus)

    if filter_level > 0:
        _write_filter_summary(out, suggestion, filter_level)

    listing = "\n".join(structure) or "Could not generate directory structure."
    out.write("## Project Directory Structure (after static exclusions)\n\n")
    out.write(f"```text\n{listing}\n```\n\n")

    out.write("## File Contents (after filtering)\n\n")
    if not entries:
        out.write(
            "No files found for inclusion in the analysis "
            "(perhaps all files were filtered, or the directory is empty/inaccessible).\n\n",
        )
    for entry in entries:
        _write_entry(out, entry)

    return out.getvalue()


def sanitize_name_part(name: str) -> str:
    """Make a name safe for use in a file name.

    Whitespace runs become ``_``, characters other than ASCII letters, digits,
    ``_`` and ``-`` are dropped, and the result is capped at 50 characters.

    Args:
        name (str): the raw name

    Returns:
        str: the sanitized name, or "analysis" if nothing is left
    """
    cleaned = _UNSAFE_NAME_CHARS.sub("", _WHITESPACE.sub("_", name))[:MAX_NAME_PART_LENGTH]
    return cleaned or DEFAULT_NAME_PART


def now_local() -> datetime:
    """Return the current local date and time, timezone-aware.

    Returns:
        datetime: the current local time
    """
    return datetime.now(UTC).astimezone()


def output_file_name(root: Path, suggested_name: str | None, *, now: datetime) -> str:
    """Build ``YYYYMMDD_HHMMSS_<name>.md`` from the suggested or the root directory name.

    Args:
        root (Path): the project root
        suggested_name (str | None): the model's project name, if any
        now (datetime): the timestamp to embed

    Returns:
        str: the output file name
    """
    name_part = sanitize_name_part(suggested_name or root.resolve().name or DEFAULT_NAME_PART)
    return f"{now:%Y%m%d}_{now:%H%M%S}_{name_part}.md"


def save_document(
    content: str,
    root: Path,
    suggested_name: str | None,
    *,
    output_dir: Path,
    now: datetime | None = None,
) -> Path:
    """Write the document into ``output_dir`` under a generated name.

    Args:
        content (str): the Markdown document
        root (Path): the project root, used for the fallback name
        suggested_name (str | None): the model's project name, if any
        output_dir (Path): the directory to write into; created when missing
        now (datetime | None): timestamp for the name; the current local time by default

    Returns:
        Path: the written file
    """
    output_dir.mkdir(parents=True, exist_ok=True)
    path = output_dir / output_file_name(root, suggested_name, now=now or now_local())
    path.write_text(content, encoding="utf-8")
    return path
