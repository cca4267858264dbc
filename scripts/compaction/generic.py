"""Language-agnostic compaction: comment and blank-line removal.

Comment detection is purely textual. A comment marker inside a string literal
is treated as a real comment; there is no lexer here.
"""
from __future__ import annotations

import re
from typing import Dict, Pattern, Tuple

from .constants import (
    BLOCK_COMMENT_PATTERNS,
    DEFAULT_BLOCK_COMMENT_PATTERN,
    DEFAULT_LINE_COMMENT_MARKERS,
    LINE_COMMENT_MARKERS,
)

BLANK_RUN_RE = re.compile(r"\n(?:[ \t]*\n){2,}")
LEADING_BLANK_LINES_RE = re.compile(r"\A(?:[ \t]*\n)+")

_BLOCK_RE_CACHE: Dict[str, Pattern[str]] = {}


def line_comment_markers(ext: str) -> Tuple[str, ...]:
    return LINE_COMMENT_MARKERS.get(ext.lower(), DEFAULT_LINE_COMMENT_MARKERS)


def block_comment_re(ext: str) -> Pattern[str]:
    pattern = BLOCK_COMMENT_PATTERNS.get(ext.lower(), DEFAULT_BLOCK_COMMENT_PATTERN)
    compiled = _BLOCK_RE_CACHE.get(pattern)
    if compiled is None:
        compiled = re.compile(pattern)
        _BLOCK_RE_CACHE[pattern] = compiled
    return compiled


def strip_block_comments(text: str, pattern: Pattern[str]) -> str:
    # Removing one span can splice a new delimiter pair together ("//* a */* b */").
    while True:
        stripped = pattern.sub("", text)
        if stripped == text:
            return stripped
        text = stripped


def collapse_blank_lines(text: str) -> str:
    return BLANK_RUN_RE.sub("\n\n", text)


def trim_text(text: str, whitespace_sensitive: bool) -> str:
    if not whitespace_sensitive:
        return text.strip()
    return LEADING_BLANK_LINES_RE.sub("", text).rstrip()


def compact_generic(
    text: str,
    *,
    aggressive: bool,
    whitespace_sensitive: bool = False,
    ext: str = "",
) -> str:
    """Compact arbitrary text.

    Non-aggressive mode only collapses runs of blank lines and trims the ends.
    Aggressive mode also drops block comments, comment-only lines and blank
    lines, and strips indentation unless the language needs it.
    """
    if not aggressive:
        return trim_text(collapse_blank_lines(text), whitespace_sensitive)

    text = strip_block_comments(text, block_comment_re(ext))
    markers = line_comment_markers(ext)
    kept = []
    for line in text.split("\n"):
        trimmed = line.strip()
        if not trimmed or trimmed.startswith(markers):
            continue
        kept.append(line.rstrip() if whitespace_sensitive else trimmed)
    return "\n".join(kept)
