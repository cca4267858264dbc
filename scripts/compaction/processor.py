from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Union

from .levels import CompactionPolicy, CompactionRequest, CompressionLevel
from .selector import Strategy, select


class MissingFileError(FileNotFoundError):
    """Source file could not be read when processing started."""

    def __init__(self, path: Union[str, Path], reason: str = "") -> None:
        message = f"File not found: {path}"
        if reason:
            message += f" ({reason})"
        super().__init__(message)
        self.path = str(path)


@dataclass
class ProcessedContent:
    path: str
    text: str
    strategy: Strategy
    error: Optional[str] = None

    @property
    def fell_back(self) -> bool:
        return self.error is not None


def normalize_newlines(text: str) -> str:
    return text.replace("\r\n", "\n").replace("\r", "\n")


def read_source(path: Union[str, Path]) -> str:
    try:
        return Path(path).read_text(encoding="utf-8-sig", errors="replace")
    except OSError as exc:
        raise MissingFileError(path, exc.strerror or exc.__class__.__name__) from exc


def compact_text(
    text: str,
    path: Union[str, Path],
    level: Union[str, CompressionLevel],
    policy: Optional[CompactionPolicy] = None,
) -> str:
    """Compact in-memory text as if it had been read from ``path``.

    Strategy errors propagate; use ``ContentProcessor`` for the fallback.
    """
    request = CompactionRequest.build(path, normalize_newlines(text), level)
    return select(request.level, request.path, policy).apply(request.text)


class ContentProcessor:
    def __init__(
        self,
        level: Union[str, CompressionLevel],
        policy: Optional[CompactionPolicy] = None,
        warnings: Optional[List[str]] = None,
    ) -> None:
        self.level = CompressionLevel.parse(level)
        self.policy = policy or CompactionPolicy()
        self.warnings = warnings if warnings is not None else []

    def process(self, path: Union[str, Path], text: str) -> ProcessedContent:
        request = CompactionRequest.build(path, normalize_newlines(text), self.level)
        strategy = select(request.level, request.path, self.policy)
        try:
            compacted = strategy.apply(request.text)
        except Exception as exc:
            message = f"Compaction failed for {request.path} ({strategy.describe()}): {exc}"
            self.warnings.append(message)
            return ProcessedContent(request.path, request.text, strategy, error=message)
        return ProcessedContent(request.path, compacted, strategy)

    def process_file(self, path: Union[str, Path]) -> ProcessedContent:
        return self.process(path, read_source(path))

    def read_and_process(self, path: Union[str, Path]) -> str:
        return self.process_file(path).text


def read_and_process(
    path: Union[str, Path],
    level: Union[str, CompressionLevel],
    *,
    policy: Optional[CompactionPolicy] = None,
    warnings: Optional[List[str]] = None,
) -> str:
    return ContentProcessor(level, policy=policy, warnings=warnings).read_and_process(path)
