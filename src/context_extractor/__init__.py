"""Export a source tree as a single Markdown prompt for an LLM."""

__version__ = "1.0.0"
