"""Decide which walked entries are skipped.

Static rules match an entry by name, by exact relative path, or by being nested
under a rule's relative path. Dynamic rules come from the model filter for a
single run and only ever match files by exact relative path.
"""

from __future__ import annotations

import posixpath
from typing import TYPE_CHECKING

from context_extractor.config import STATIC_EXCLUDES

if TYPE_CHECKING:
    from collections.abc import Collection, Iterable


def normalize_rel_path(path: str) -> str:
    """Normalize a root-relative path for comparison.

    Backslashes become forward slashes, ``.`` segments and duplicate or trailing
    separators are collapsed, and leading separators are dropped. Case is kept.

    Args:
        path (str): the relative path as written by the walker, a rule or the model

    Returns:
        str: the normalized path, or "" for an empty or root-only path
    """
    cleaned = (path or "").strip().replace("\\", "/")
    if not cleaned:
        return ""
    normalized = posixpath.normpath(cleaned).lstrip("/")
    return "" if normalized == "." else normalized


def matches_static(rel: str, name: str, static_rules: Iterable[str] = STATIC_EXCLUDES) -> bool:
    """Check an entry against the static rules.

    Args:
        rel (str): the entry path relative to the root
        name (str): the entry's own name
        static_rules (Iterable[str]): the static rules to apply

    Returns:
        bool: True if the entry name or path equals a rule, or sits under one
    """
    rel_n = normalize_rel_path(rel)
    for rule in static_rules:
        rule_n = normalize_rel_path(rule)
        if not rule_n:
            continue
        if name == rule_n or rel_n == rule_n or rel_n.startswith(rule_n + "/"):
            return True
    return False


def is_excluded(
    rel: str,
    name: str,
    *,
    is_dir: bool,
    static_rules: Iterable[str] = STATIC_EXCLUDES,
    dynamic_rules: Collection[str] = frozenset(),
) -> bool:
    """Tell whether a walked entry must be skipped.

    Args:
        rel (str): the entry path relative to the root
        name (str): the entry's own name
        is_dir (bool): whether the entry is a directory; directories ignore dynamic rules
        static_rules (Iterable[str]): built-in rules, always applied
        dynamic_rules (Collection[str]): normalized file paths suggested for this run

    Returns:
        bool: True if the entry is excluded
    """
    if matches_static(rel, name, static_rules):
        return True
    if is_dir or not dynamic_rules:
        return False
    return normalize_rel_path(rel) in dynamic_rules
