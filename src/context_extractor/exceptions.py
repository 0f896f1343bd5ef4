from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class ContextExtractorError(Exception):
    """Base exception for fatal errors in the context_extractor package."""


@dataclass(frozen=True)
class RootNotFoundError(ContextExtractorError):
    """Raised when the project root to extract does not exist."""

    root: Path
    message: str = "The project root does not exist."

    def __str__(self) -> str:
        return f"{self.message} ({self.root})"


@dataclass(frozen=True)
class RootNotADirectoryError(ContextExtractorError):
    """Raised when the project root to extract is not a directory."""

    root: Path
    message: str = "The project root is not a directory."

    def __str__(self) -> str:
        return f"{self.message} ({self.root})"


@dataclass(frozen=True)
class InvalidFilterLevelError(ContextExtractorError):
    """Raised when the filter level is outside the 0-5 range."""

    level: int
    message: str = "Filter level must be between 0 and 5."

    def __str__(self) -> str:
        return f"{self.message} (got {self.level})"


@dataclass(frozen=True)
class ConfigFileError(ContextExtractorError):
    """Raised when a YAML configuration file cannot be read or parsed."""

    path: Path
    reason: str
    message: str = "Invalid configuration file."

    def __str__(self) -> str:
        return f"{self.message} ({self.path}: {self.reason})"


@dataclass(frozen=True)
class InvalidSettingsError(ContextExtractorError):
    """Raised when an option value, from the command line or a config file, has the wrong type."""

    reason: str
    message: str = "Invalid settings."

    def __str__(self) -> str:
        return f"{self.message} ({self.reason})"
