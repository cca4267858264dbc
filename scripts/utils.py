from __future__ import annotations

import sys
from typing import Iterable, List


def progress(message: str, done: bool = False) -> None:
    """Print a progress message to stderr (doesn't interfere with stdout output)."""
    if done:
        print(f"  [done] {message}", file=sys.stderr)
    else:
        print(f"  [....] {message}", file=sys.stderr)


def split_csv(value: str) -> List[str]:
    return [part.strip() for part in value.split(",") if part.strip()]


def dedupe(items: Iterable[str]) -> List[str]:
    seen = set()
    result: List[str] = []
    for item in items:
        if item in seen:
            continue
        seen.add(item)
        result.append(item)
    return result
