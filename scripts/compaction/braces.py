from __future__ import annotations

import re
from typing import List, Optional, Tuple

from .constants import (
    BRACE_COMMENT_MARKERS,
    BRACE_COMMENT_MARKERS_BY_EXT,
    BRACE_OPEN_TOKEN,
    DEFAULT_BLOCK_COMMENT_PATTERN,
)
from .generic import strip_block_comments

BLOCK_COMMENT_RE = re.compile(DEFAULT_BLOCK_COMMENT_PATTERN)


def brace_comment_markers(ext: str) -> Tuple[str, ...]:
    return BRACE_COMMENT_MARKERS_BY_EXT.get(ext.lower(), BRACE_COMMENT_MARKERS)


def opens_comment(line: str, markers: Tuple[str, ...] = BRACE_COMMENT_MARKERS) -> bool:
    """True if text appended to ``line`` would land inside a comment."""
    if any(marker in line for marker in markers):
        return True
    start = line.rfind("/*")
    return start != -1 and "*/" not in line[start + 2 :]


def compact_braces(text: str, *, strip_comments: bool = False, ext: str = "") -> str:
    """Pull lone opening braces up onto the statement before them.

    Lines are trimmed and blank lines dropped. A brace is only merged when the
    previous emitted line would not swallow it into a comment; otherwise it
    stays on its own line.
    """
    markers = brace_comment_markers(ext)
    if strip_comments:
        text = strip_block_comments(text, BLOCK_COMMENT_RE)

    out: List[str] = []
    previous: Optional[str] = None
    for raw in text.split("\n"):
        line = raw.strip()
        if not line:
            continue
        if strip_comments and line.startswith(markers):
            continue
        if line == BRACE_OPEN_TOKEN and previous is not None and not opens_comment(previous, markers):
            previous = f"{previous} {BRACE_OPEN_TOKEN}"
            out[-1] = previous
            continue
        out.append(line)
        previous = line
    return "\n".join(out)
