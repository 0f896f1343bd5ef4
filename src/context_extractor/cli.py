"""
context_extractor: prepare a project directory for an LLM.

Overview
--------
Walks a project tree and writes a single Markdown prompt containing:

- the directory structure (after the built-in exclusions),
- the content of every remaining file in fenced code blocks,
- optionally, the user's analysis focus and a summary of the files an LLM
  suggested dropping.

With ``--filter-level`` 1-5 and an ``OPENAI_API_KEY`` available (environment or
``.env``), the structure and the project documentation (README.md,
``memory-bank/``, other root ``.md`` files) are sent to an OpenAI model which
answers with files to exclude and a short project name used in the output
file name. Level 0, or a missing key, skips the call.

Usage
-----
    context-extractor --root ./my-project -d -f 3 -o "auth flow"
    context-extractor --config extractor.yaml --log-file run.log

The document is written to ``prompts/YYYYMMDD_HHMMSS_<name>.md`` under the
current directory unless ``--output-dir`` says otherwise.
"""

from __future__ import annotations

import argparse
from pathlib import Path
from typing import TYPE_CHECKING

from pydantic import ValidationError

from context_extractor import __version__
from context_extractor.config import DEFAULT_FILTER_LEVEL, DEFAULT_ROOT, MAX_FILTER_LEVEL
from context_extractor.exceptions import (
    ContextExtractorError,
    InvalidFilterLevelError,
    InvalidSettingsError,
    RootNotADirectoryError,
    RootNotFoundError,
)
from context_extractor.llm_filter import ExclusionAdvisor
from context_extractor.logging import logger, setup_logging
from context_extractor.output_construction import sanitize_name_part, save_document
from context_extractor.pipeline import ExtractionPipeline
from context_extractor.settings import Settings, load_config_file, load_llm_settings

if TYPE_CHECKING:
    from collections.abc import Sequence


def build_parser() -> argparse.ArgumentParser:
    """Build the command line parser.

    Returns:
        argparse.ArgumentParser: Configured parser.
    """
    p = argparse.ArgumentParser(
        prog="context-extractor",
        description="Export a project as a single Markdown prompt for LLM analysis.",
    )
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    p.add_argument(
        "--root",
        type=Path,
        default=Path(DEFAULT_ROOT),
        help="Project directory to extract.",
    )
    p.add_argument(
        "-d",
        "--delete-comments",
        action="store_true",
        help="Remove comments from code before analysis.",
    )
    p.add_argument(
        "-f",
        "--filter-level",
        type=int,
        default=DEFAULT_FILTER_LEVEL,
        help="LLM file filtering aggressiveness (0 = off, 1-5 = minimal to very aggressive).",
    )
    p.add_argument(
        "-o",
        "--focus",
        type=str,
        default="",
        help='Analysis focus, e.g. "wallet-service and related authentication logic".',
    )
    p.add_argument(
        "--output-dir",
        type=Path,
        default=None,
        help="Directory for the generated prompt (default: ./prompts).",
    )
    p.add_argument("--model", type=str, default="", help="OpenAI model for the LLM filter.")
    p.add_argument("--config", type=str, default="", help="YAML file with default settings.")
    p.add_argument("--log-file", type=str, default="", help="Log file path.")
    return p


def parse_args(argv: Sequence[str] | None = None) -> Settings:
    """Parse the command line, using an optional YAML file for defaults.

    Explicit flags take precedence over the values of ``--config``.

    Args:
        argv (Sequence[str] | None): arguments, ``sys.argv[1:]`` when None

    Returns:
        Settings: the run settings

    Raises:
        ConfigFileError: if the config file cannot be read or is not a mapping
        InvalidSettingsError: if a value does not fit its option, e.g. ``root: 5`` in the config file
    """
    parser = build_parser()
    known, _ = parser.parse_known_args(argv)
    if known.config:
        parser.set_defaults(**load_config_file(Path(known.config)))
    args = parser.parse_args(argv)
    try:
        return Settings(**{k: v for k, v in vars(args).items() if v is not None})
    except ValidationError as e:
        reason = "; ".join(f"{'.'.join(map(str, err['loc']))}: {err['msg']}" for err in e.errors())
        raise InvalidSettingsError(reason=reason) from e


def check_settings(settings: Settings) -> None:
    """Reject settings that make the run impossible.

    Args:
        settings (Settings): the run settings

    Raises:
        RootNotFoundError: if the root does not exist
        RootNotADirectoryError: if the root is not a directory
        InvalidFilterLevelError: if the filter level is outside 0-5
    """
    root = settings.root.resolve()
    if not root.exists():
        raise RootNotFoundError(root=root)
    if not root.is_dir():
        raise RootNotADirectoryError(root=root)
    if not 0 <= settings.filter_level <= MAX_FILTER_LEVEL:
        raise InvalidFilterLevelError(level=settings.filter_level)


def main(argv: Sequence[str] | None = None) -> int:
    try:
        settings = parse_args(argv)
    except ContextExtractorError as e:
        logger.error("Invalid configuration: %s", e)
        return 1
    if settings.log_file:
        setup_logging(settings.log_file)

    try:
        check_settings(settings)
    except ContextExtractorError as e:
        logger.error("Cannot start extraction: %s", e)
        return 1

    advisor = ExclusionAdvisor(load_llm_settings(settings.model))
    if settings.filter_level > 0 and not advisor.enabled:
        logger.warning(
            "LLM filtering requested (level %s) but OPENAI_API_KEY is not configured; "
            "LLM file filtering will not be performed.",
            settings.filter_level,
        )

    result = ExtractionPipeline(advisor).run(settings)

    suggested = result.suggestion.suggested_name
    try:
        path = save_document(result.content, settings.root, suggested, output_dir=settings.output_dir)
    except OSError as e:
        logger.error("Error saving prompt file: %s", e)
        return 1

    print(f"Wrote {path} files={len(result.entries)}")
    if suggested:
        print(f'Filename includes LLM suggestion "{suggested}" (sanitized to "{sanitize_name_part(suggested)}")')
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
