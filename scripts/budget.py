from __future__ import annotations

import re
from typing import List, Optional

import tiktoken

_TOKENIZER = None
_USE_PRECISE_TOKENS = False
_TOKEN_SPLIT_RE = re.compile(r"[A-Za-z0-9_]+|[^\s]")

ENCODING_NAME = "cl100k_base"


def configure_tokenizer(precise: bool, warnings: Optional[List[str]] = None) -> bool:
    """Switch token estimates between the regex approximation and tiktoken.

    Returns whether precise counting is active afterwards. Loading the encoding
    can fail offline; that is reported through ``warnings``.
    """
    global _TOKENIZER, _USE_PRECISE_TOKENS
    if not precise:
        _USE_PRECISE_TOKENS = False
        return False
    if _TOKENIZER is None:
        try:
            _TOKENIZER = tiktoken.get_encoding(ENCODING_NAME)
        except (OSError, ValueError) as exc:
            if warnings is not None:
                warnings.append(f"Precise token counts unavailable ({ENCODING_NAME}): {exc}")
            _USE_PRECISE_TOKENS = False
            return False
    _USE_PRECISE_TOKENS = True
    return True


def estimate_tokens(text: str) -> int:
    if not text:
        return 0
    if _USE_PRECISE_TOKENS and _TOKENIZER is not None:
        return len(_TOKENIZER.encode(text, disallowed_special=()))
    return len(_TOKEN_SPLIT_RE.findall(text))


def reduction_percent(before: int, after: int) -> float:
    if before <= 0:
        return 0.0
    return round(100.0 * (before - after) / before, 1)
