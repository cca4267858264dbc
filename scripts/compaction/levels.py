from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import PurePath
from typing import Optional, Union

from .constants import BRACE_EXTS, PLAIN_TEXT_EXTS, WHITESPACE_SENSITIVE_EXTS
from .formats import scene_format_for_ext
from .scene_graph import SceneFormat


class CompressionLevel(Enum):
    NONE = "none"
    SMART = "smart"
    MAXIMUM = "maximum"

    @classmethod
    def parse(cls, value: Union[str, "CompressionLevel"]) -> "CompressionLevel":
        if isinstance(value, cls):
            return value
        token = str(value).strip().lower()
        if token == "max":
            token = "maximum"
        for level in cls:
            if level.value == token:
                return level
        choices = ", ".join(level.value for level in cls)
        raise ValueError(f"Unknown compression level {value!r} (expected one of: {choices})")


@dataclass(frozen=True)
class CompactionPolicy:
    # Drop comments before merging braces instead of guarding the merge.
    strip_brace_comments: bool = False


@dataclass(frozen=True)
class FileClass:
    ext: str
    kind: str  # "scene" | "braces" | "text" | "code"
    whitespace_sensitive: bool = False
    scene_format: Optional[SceneFormat] = None


def file_ext(path: Union[str, PurePath]) -> str:
    return PurePath(str(path)).suffix.lower()


def classify(path: Union[str, PurePath]) -> FileClass:
    ext = file_ext(path)
    sensitive = ext in WHITESPACE_SENSITIVE_EXTS
    scene_format = scene_format_for_ext(ext)
    if scene_format is not None:
        return FileClass(ext=ext, kind="scene", scene_format=scene_format)
    if ext in BRACE_EXTS:
        return FileClass(ext=ext, kind="braces")
    if ext in PLAIN_TEXT_EXTS:
        return FileClass(ext=ext, kind="text")
    return FileClass(ext=ext, kind="code", whitespace_sensitive=sensitive)


@dataclass(frozen=True)
class CompactionRequest:
    path: str
    text: str
    level: CompressionLevel
    file_class: FileClass

    @classmethod
    def build(cls, path: Union[str, PurePath], text: str, level: Union[str, CompressionLevel]) -> "CompactionRequest":
        return cls(
            path=str(path),
            text=text,
            level=CompressionLevel.parse(level),
            file_class=classify(path),
        )
