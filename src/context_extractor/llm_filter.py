"""Ask a hosted model which files can be dropped from the export.

The model sees the structure listing and the project documentation, and
answers with a JSON object listing root-relative file paths to exclude and a
short project name. The answer is only a hint: every failure (no key, network
or API error, malformed payload) degrades to an empty suggestion.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Any

import openai
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from context_extractor.config import STATIC_EXCLUDES, AuxiliaryContext, FilterSuggestion
from context_extractor.exclusions import normalize_rel_path
from context_extractor.logging import logger

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from context_extractor.settings import LLMSettings

FILTER_LEVEL_DESCRIPTIONS: dict[int, str] = {
    1: (
        "Minimal: exclude only files that are obviously useless for analysis: lock files "
        "(package-lock.json, yarn.lock), system files (.DS_Store), version control files "
        "(contents of .git), IDE settings (.vscode, .idea). Do not exclude code files or "
        "important project configuration."
    ),
    2: (
        "Light: previous level plus build and formatting configuration that is not core logic "
        "(typical .prettierrc, .eslintrc.js, babel.config.js, webpack.config.js, tsconfig.json), "
        "unless it is unusually complex or essential to understand the project."
    ),
    3: (
        "Medium: previous level plus documentation files (except a small main README.md), "
        "files holding large static data (mock JSON not needed to show the logic), and "
        "secondary tests (unit tests of trivial helpers; keep integration and key end-to-end tests)."
    ),
    4: (
        "Aggressive: previous level plus minor modules and helpers that are not central to the "
        "main functionality, style sheets (CSS, SCSS) and minor UI components when the focus is "
        "backend or business logic, and usage examples or demo scripts that are not part of the product."
    ),
    5: (
        "Very aggressive: previous level plus every file that is not strictly required to "
        "understand the core business logic and architecture. Keep only the core, while "
        "remembering that dropping some files can hide relationships between the remaining ones."
    ),
}

_FALLBACK_LEVEL_DESCRIPTION = "Apply general principles for this aggressiveness level"
_NO_CONTEXT_NOTE = (
    "(Additional context: README.md, memory-bank files, and other .md files were not found or are empty)"
)
_WHITESPACE = re.compile(r"\s+")


class ModelSuggestionPayload(BaseModel):
    """JSON object expected back from the model."""

    model_config = ConfigDict(extra="ignore")

    excluded_files: list[str] = Field(default_factory=list, alias="excludedFiles")
    suggested_file_name: str | None = Field(default=None, alias="suggestedFileName")

    @field_validator("excluded_files", mode="before")
    @classmethod
    def _keep_text_paths(cls, value: Any) -> list[str]:  # noqa: ANN401
        if not isinstance(value, list):
            return []
        out: list[str] = []
        for item in value:
            if not isinstance(item, str):
                continue
            path = normalize_rel_path(item)
            if path and path not in out:
                out.append(path)
        return out

    @field_validator("suggested_file_name", mode="before")
    @classmethod
    def _join_words(cls, value: Any) -> str | None:  # noqa: ANN401
        if not isinstance(value, str):
            return None
        return _WHITESPACE.sub("_", value.strip()) or None


def parse_suggestion(payload: str | None) -> FilterSuggestion:
    """Turn the model's text answer into a suggestion.

    Args:
        payload (str | None): the raw message content returned by the model

    Returns:
        FilterSuggestion: the parsed suggestion, or an empty one if the payload is not a JSON object
    """
    if not payload:
        return FilterSuggestion()
    try:
        parsed = ModelSuggestionPayload.model_validate_json(payload)
    except ValidationError as e:
        logger.error("Could not parse LLM filter response: %s", e)
        logger.error("Problematic LLM payload: %s", payload)
        return FilterSuggestion()
    return FilterSuggestion(
        excluded_files=tuple(parsed.excluded_files),
        suggested_name=parsed.suggested_file_name,
    )


def _fenced(title: str, content: str) -> str:
    return f"\n#### {title}\n```markdown\n{content}\n```\n"


def build_context_section(context: AuxiliaryContext) -> str:
    """Render the documentation gathered from the project for the prompt.

    Args:
        context (AuxiliaryContext): README, memory bank and other markdown files

    Returns:
        str: the context section, or a one-line note when nothing was found
    """
    if context.is_empty:
        return f"\n\n{_NO_CONTEXT_NOTE}\n\n"
    parts = ["\n\n## ADDITIONAL PROJECT CONTEXT\n\n"]
    if context.readme:
        parts.append(f"### README.md\n```markdown\n{context.readme}\n```\n\n")
    if context.memory_bank:
        parts.append("### Files from Memory Bank\n")
        parts.extend(_fenced(f.rel, f.content) for f in context.memory_bank)
        parts.append("\n")
    if context.markdown_files:
        parts.append("### Other .md Files\n")
        parts.extend(_fenced(f.rel, f.content) for f in context.markdown_files)
        parts.append("\n")
    return "".join(parts)


def build_focus_instruction(focus: str) -> str:
    """Render the retention instruction for a user-provided focus.

    Args:
        focus (str): the analysis focus, possibly blank

    Returns:
        str: the instruction, or "" when the focus is blank
    """
    focus = focus.strip()
    if not focus:
        return ""
    return (
        f'\n\nIMPORTANT: The subsequent code analysis will focus on: "{focus}". '
        "Take this focus into account when selecting files for exclusion. Files directly related "
        "to this focus, or needed to understand it (dependencies, related configuration), must be "
        "RETAINED, even if you would normally exclude them at this aggressiveness level."
    )


def build_prompt(
    structure: Sequence[str],
    filter_level: int,
    context: AuxiliaryContext,
    focus: str = "",
    *,
    project_name: str = "",
    static_rules: Iterable[str] = STATIC_EXCLUDES,
) -> str:
    """Build the prompt asking the model for files to exclude.

    Args:
        structure (Sequence[str]): the structure listing lines
        filter_level (int): the aggressiveness level, 1 to 5
        context (AuxiliaryContext): project documentation
        focus (str): optional analysis focus; related files must be kept
        project_name (str): the root directory name the paths are relative to
        static_rules (Iterable[str]): rules already applied, listed so the model skips them

    Returns:
        str: the prompt text
    """
    level_description = FILTER_LEVEL_DESCRIPTIONS.get(filter_level, _FALLBACK_LEVEL_DESCRIPTION)
    listing = "\n".join(structure)
    static_list = ", ".join(static_rules)
    return f"""
You are a code analysis assistant. I need to prepare project files for analysis by another LLM.
To reduce the number of tokens, I want to filter out some files.

Here is the project structure (paths relative to the project root "{project_name}"):
```text
{listing}
```{build_context_section(context)}

Filtering level: {filter_level} ({level_description}).{build_focus_instruction(focus)}

Your task:
1. Analyze the file structure and work out the main purpose of the project, using the additional context from README.md, the memory bank and the other .md files.
2. Apply the requested filtering level.
3. If an "IMPORTANT" analysis focus is given, pay special attention to it.
4. The static exclusion list ({static_list}) is already applied separately; do not repeat those entries unless they appear in the structure above.
5. From the structure, the context and the project's purpose, come up with a short descriptive project name (2-4 words, English, no spaces, camelCase or kebab-case).

Return a JSON object with the following structure:
{{
  "excludedFiles": ["path1/to/file.js", "path2/to/anotherFile.ts"],
  "suggestedFileName": "project-name-idea"
}}

- excludedFiles: RELATIVE PATHS of the files (relative to "{project_name}") you recommend excluding, written exactly as they appear in the structure. Only files, never directories.
- suggestedFileName: a short descriptive project name (e.g. "apiGateway", "userAuthService", "ecommerceBackend").

If, given the level and the focus, no file from the structure should be excluded, return an empty array for excludedFiles.
Make sure the response is a valid JSON object.
"""


class ExclusionAdvisor:
    """Model-assisted filter producing per-run file exclusions.

    Args:
        llm (LLMSettings): credential and model, resolved by the caller
        client (openai.OpenAI | None): client to use; created lazily from ``llm`` when omitted
    """

    def __init__(self, llm: LLMSettings, client: openai.OpenAI | None = None) -> None:
        self.llm = llm
        self._client = client

    @property
    def enabled(self) -> bool:
        """Whether a usable credential is configured."""
        return self.llm.has_usable_key

    def client(self) -> openai.OpenAI:
        if self._client is None:
            self._client = openai.OpenAI(api_key=self.llm.api_key, base_url=self.llm.base_url)
        return self._client

    def request(self, prompt: str) -> str | None:
        """Send one chat completion request, returning the message text or None on failure.

        Args:
            prompt (str): the user prompt

        Returns:
            str | None: the message content, or None when the call failed or returned nothing
        """
        try:
            response = self.client().chat.completions.create(
                model=self.llm.model,
                messages=[{"role": "user", "content": prompt}],
                response_format={"type": "json_object"},
                temperature=self.llm.temperature,
            )
        except openai.OpenAIError as e:
            logger.error("LLM filter request failed: %s", e)
            return None
        if not response.choices:
            logger.error("LLM filter response has no choices")
            return None
        return response.choices[0].message.content

    def suggest_exclusions(
        self,
        structure: Sequence[str],
        filter_level: int,
        context: AuxiliaryContext,
        focus: str = "",
        *,
        project_name: str = "",
    ) -> FilterSuggestion:
        """Ask the model which files to drop; never raises.

        Args:
            structure (Sequence[str]): the structure listing lines
            filter_level (int): 0 disables the call, 1-5 select the aggressiveness
            context (AuxiliaryContext): project documentation for the prompt
            focus (str): optional analysis focus
            project_name (str): the root directory name

        Returns:
            FilterSuggestion: the model's suggestion, or an empty one
        """
        if filter_level <= 0:
            logger.info("LLM filtering is disabled (level 0).")
            return FilterSuggestion()
        if not self.enabled:
            logger.warning("OpenAI API key is not configured or is a placeholder; LLM filtering skipped.")
            return FilterSuggestion()

        prompt = build_prompt(structure, filter_level, context, focus, project_name=project_name)
        logger.info(
            "Sending LLM filter request (level=%s, focus=%s, model=%s)",
            filter_level,
            focus.strip() or "none",
            self.llm.model,
        )
        suggestion = parse_suggestion(self.request(prompt))
        logger.info("Files suggested by LLM for exclusion: %s", list(suggestion.excluded_files))
        logger.info("Project name suggested by LLM: %s", suggestion.suggested_name)
        return suggestion
