"""Line-oriented comment removal used to shrink exported files.

This is a heuristic over raw text, not a lexer. Known imprecisions:

* ``//`` inside a string literal is stripped unless preceded by ``:`` (so
  ``http://`` survives but ``"a // b"`` does not);
* ``#`` is stripped everywhere, including inside string literals and colour
  codes;
* block comments do not nest; the first ``*/`` closes the comment.
"""

from __future__ import annotations

import re

_BLOCK_COMMENT = re.compile(r"/\*[\s\S]*?\*/")
_SLASH_COMMENT = re.compile(r"(?<!:)//.*$", re.MULTILINE)
_HASH_COMMENT = re.compile(r"#.*$", re.MULTILINE)
_BLANK_LINES = re.compile(r"^\s*[\r\n]", re.MULTILINE)


def strip_comments(text: str) -> str:
    """Remove block, ``//`` and ``#`` comments, then the blank lines left behind.

    Block comments go first so that ``//`` inside them is never handled on its own.

    Args:
        text (str): source text

    Returns:
        str: the text without comments and without empty lines
    """
    text = _BLOCK_COMMENT.sub("", text)
    text = _SLASH_COMMENT.sub("", text)
    text = _HASH_COMMENT.sub("", text)
    return _BLANK_LINES.sub("", text)
