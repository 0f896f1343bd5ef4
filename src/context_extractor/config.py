from __future__ import annotations

from enum import StrEnum
from pathlib import PurePosixPath

from pydantic import BaseModel, ConfigDict, Field, computed_field

OUTPUT_DIR_NAME = "prompts"
README_NAME = "README.md"
MEMORY_BANK_DIR = "memory-bank"
MARKDOWN_SUFFIX = ".md"
DEFAULT_ROOT = "files_to_extract"
DEFAULT_FILTER_LEVEL = 2
MAX_FILTER_LEVEL = 5

# Built-in exclusions applied on every run, before any model suggestion.
STATIC_EXCLUDES: tuple[str, ...] = (
    ".git",
    ".gitignore",
    "node_modules",
    ".venv",
    "__pycache__",
    "package-lock.json",
    "yarn.lock",
    "pnpm-lock.yaml",
    ".prettierrc",
    ".DS_Store",
    "Thumbs.db",
    OUTPUT_DIR_NAME,
)

FILTER_PLACEHOLDER = (
    "**File excluded by LLM filter. "
    "The system considers it unnecessary for the current analysis focus.**"
)

READ_ERROR_PREFIX = "Could not read file content: "


class FileStatus(StrEnum):
    """Outcome of visiting one file during the content walk."""

    INCLUDED = "included"
    EXCLUDED_BY_FILTER = "excluded-by-filter"
    READ_ERROR = "read-error"


class FileEntry(BaseModel):
    """One file of the exported tree, in traversal order.

    Attributes:
        rel: Path relative to the project root, with POSIX separators.
        status: Whether the file was read, dropped by the model filter, or unreadable.
        content: File text (possibly comment-stripped), the filter placeholder,
            or the read error description.
    """

    model_config = ConfigDict(frozen=True)

    rel: str = Field(..., description="File path relative to the project root")
    status: FileStatus = Field(default=FileStatus.INCLUDED, description="Walk outcome")
    content: str = Field(default="", description="Rendered file body")

    @computed_field
    @property
    def language(self) -> str:
        """Code fence language: the lower-cased extension, or ``text`` when there is none."""
        suffix = PurePosixPath(self.rel).suffix
        return suffix[1:].lower() if suffix else "text"


class FilterSuggestion(BaseModel):
    """Files the model recommends dropping, plus an optional project name."""

    model_config = ConfigDict(frozen=True)

    excluded_files: tuple[str, ...] = Field(default=(), description="Normalized relative file paths")
    suggested_name: str | None = Field(default=None, description="Short project name")

    @property
    def excluded_set(self) -> frozenset[str]:
        return frozenset(self.excluded_files)


class ContextFile(BaseModel):
    """A human-authored document gathered as project background."""

    model_config = ConfigDict(frozen=True)

    name: str
    rel: str
    content: str


class AuxiliaryContext(BaseModel):
    """Documentation read from the root to give the model project context."""

    model_config = ConfigDict(frozen=True)

    readme: str | None = None
    memory_bank: tuple[ContextFile, ...] = ()
    markdown_files: tuple[ContextFile, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.readme and not self.memory_bank and not self.markdown_files
