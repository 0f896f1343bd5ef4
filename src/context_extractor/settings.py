from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml
from dotenv import find_dotenv, load_dotenv
from pydantic import BaseModel, ConfigDict, Field

from context_extractor.config import DEFAULT_FILTER_LEVEL, DEFAULT_ROOT, OUTPUT_DIR_NAME
from context_extractor.exceptions import ConfigFileError
from context_extractor.logging import logger

ENV_FILE = find_dotenv(usecwd=True)

API_KEY_ENV = "OPENAI_API_KEY"
MODEL_ENV = "OPENAI_MODEL"
BASE_URL_ENV = "OPENAI_BASE_URL"
DEFAULT_MODEL = "gpt-4o"
API_KEY_PLACEHOLDER = "YOUR_OPENAI_API_KEY_PLACEHOLDER"
MIN_API_KEY_LENGTH = 10


class Settings(BaseModel):
    """Configuration settings for one extraction run."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    root: Path = Field(default=Path(DEFAULT_ROOT), description="Project root to extract.")
    delete_comments: bool = Field(default=False, description="Remove comments from code.")
    filter_level: int = Field(
        default=DEFAULT_FILTER_LEVEL,
        description="LLM filtering aggressiveness (0 = off, 1-5 = minimal to very aggressive).",
    )
    focus: str = Field(default="", description="Analysis focus for the LLM filter and the prompt.")
    output_dir: Path = Field(
        default_factory=lambda: Path.cwd() / OUTPUT_DIR_NAME,
        description="Directory receiving the generated prompt.",
    )
    model: str = Field(default="", description="Model override for the LLM filter.")
    config: str = Field(default="", description="YAML file with default settings.")
    log_file: str = Field(default="", description="Log file path.")


class LLMSettings(BaseModel):
    """Credential and model used by the LLM filter.

    Resolved once at start-up and handed to the filter; nothing downstream
    reads the environment.
    """

    model_config = ConfigDict(frozen=True)

    api_key: str = Field(default="", description="OpenAI API key.")
    model: str = Field(default=DEFAULT_MODEL, description="Chat completion model.")
    base_url: str | None = Field(default=None, description="Alternative API endpoint.")
    temperature: float = Field(default=0.2, ge=0.0, le=2.0, description="Sampling temperature.")

    @property
    def has_usable_key(self) -> bool:
        """Whether the key looks real: set, not the placeholder, and long enough."""
        key = self.api_key.strip()
        return bool(key) and key != API_KEY_PLACEHOLDER and len(key) >= MIN_API_KEY_LENGTH


def load_llm_settings(model: str = "") -> LLMSettings:
    """Resolve the LLM settings from the environment and the nearest ``.env`` file.

    Args:
        model (str): model name taking precedence over ``OPENAI_MODEL``

    Returns:
        LLMSettings: the resolved settings; the key is empty when not configured
    """
    if ENV_FILE:
        load_dotenv(ENV_FILE, override=False)
    return LLMSettings(
        api_key=os.environ.get(API_KEY_ENV, ""),
        model=model or os.environ.get(MODEL_ENV) or DEFAULT_MODEL,
        base_url=os.environ.get(BASE_URL_ENV) or None,
    )


def load_config_file(path: Path) -> dict[str, Any]:
    """Load default settings from a YAML mapping.

    Keys use the ``Settings`` field names; unknown keys are logged and dropped.

    Args:
        path (Path): the YAML file

    Raises:
        ConfigFileError: if the file cannot be read, is not valid YAML, or is not a mapping

    Returns:
        dict[str, Any]: the known settings found in the file
    """
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except OSError as e:
        raise ConfigFileError(path=path, reason=str(e)) from e
    except yaml.YAMLError as e:
        raise ConfigFileError(path=path, reason=f"invalid YAML: {e}") from e
    if not isinstance(data, dict):
        raise ConfigFileError(path=path, reason="top level must be a mapping")

    known = set(Settings.model_fields) - {"config"}
    out: dict[str, Any] = {}
    for key, value in data.items():
        name = str(key).replace("-", "_")
        if name not in known:
            logger.warning("Ignoring unknown config key %s in %s", key, path)
            continue
        out[name] = value
    return out
