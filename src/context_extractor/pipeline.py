from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict

from context_extractor.config import AuxiliaryContext, FileEntry, FilterSuggestion
from context_extractor.context_reader import read_auxiliary_context
from context_extractor.file_manipulation import build_structure_listing, collect_file_entries
from context_extractor.logging import logger
from context_extractor.output_construction import build_markdown

if TYPE_CHECKING:
    from context_extractor.llm_filter import ExclusionAdvisor
    from context_extractor.settings import Settings


class ExtractionResult(BaseModel):
    """Everything produced by one run, before it is written to disk."""

    model_config = ConfigDict(frozen=True)

    content: str
    structure: tuple[str, ...] = ()
    entries: tuple[FileEntry, ...] = ()
    suggestion: FilterSuggestion = FilterSuggestion()


class ExtractionPipeline:
    """Listing, model filter, content walk, then Markdown assembly."""

    def __init__(self, advisor: ExclusionAdvisor) -> None:
        self.advisor = advisor

    def run(self, settings: Settings) -> ExtractionResult:
        root = settings.root.resolve()
        logger.info(
            "Generating Markdown prompt (root=%s, delete_comments=%s, filter_level=%s, focus=%s)",
            root,
            settings.delete_comments,
            settings.filter_level,
            settings.focus.strip() or "none",
        )

        structure = build_structure_listing(root)

        context = AuxiliaryContext()
        if settings.filter_level > 0 and self.advisor.enabled:
            logger.info("Reading additional context for LLM (README.md, memory-bank/*, .md files)")
            context = read_auxiliary_context(root)
        suggestion = self.advisor.suggest_exclusions(
            structure,
            settings.filter_level,
            context,
            settings.focus,
            project_name=root.name,
        )

        entries = collect_file_entries(
            root,
            remove_comments=settings.delete_comments,
            dynamic_rules=suggestion.excluded_set,
        )
        content = build_markdown(
            structure,
            entries,
            suggestion,
            focus=settings.focus,
            filter_level=settings.filter_level,
        )
        return ExtractionResult(
            content=content,
            structure=tuple(structure),
            entries=tuple(entries),
            suggestion=suggestion,
        )
