from __future__ import annotations

from dataclasses import dataclass
from pathlib import PurePath
from typing import Optional, Union

from .braces import compact_braces
from .generic import compact_generic
from .levels import CompactionPolicy, CompressionLevel, classify
from .scene_graph import SceneFormat, compact_scene

IDENTITY = "identity"
GENERIC = "generic"
BRACES = "braces"
SCENE = "scene"


@dataclass(frozen=True)
class Strategy:
    kind: str
    aggressive: bool = False
    whitespace_sensitive: bool = False
    ext: str = ""
    strip_comments: bool = False
    scene_format: Optional[SceneFormat] = None

    def apply(self, content: str) -> str:
        if self.kind == IDENTITY:
            return content
        if self.kind == SCENE and self.scene_format is not None:
            return compact_scene(content, self.scene_format)
        if self.kind == BRACES:
            return compact_braces(content, strip_comments=self.strip_comments, ext=self.ext)
        return compact_generic(
            content,
            aggressive=self.aggressive,
            whitespace_sensitive=self.whitespace_sensitive,
            ext=self.ext,
        )

    def describe(self) -> str:
        if self.kind == SCENE and self.scene_format is not None:
            return f"{SCENE}:{self.scene_format.name}"
        if self.kind == GENERIC:
            return f"{GENERIC}:{'aggressive' if self.aggressive else 'smart'}"
        return self.kind


def select(
    level: Union[str, CompressionLevel],
    path: Union[str, PurePath],
    policy: Optional[CompactionPolicy] = None,
) -> Strategy:
    level = CompressionLevel.parse(level)
    policy = policy or CompactionPolicy()
    file_class = classify(path)

    if level is CompressionLevel.NONE:
        return Strategy(kind=IDENTITY)

    smart = Strategy(
        kind=GENERIC,
        aggressive=False,
        whitespace_sensitive=file_class.whitespace_sensitive,
        ext=file_class.ext,
    )
    if level is CompressionLevel.SMART:
        return smart

    if file_class.kind == "scene":
        return Strategy(kind=SCENE, ext=file_class.ext, scene_format=file_class.scene_format)
    if file_class.kind == "braces":
        return Strategy(kind=BRACES, ext=file_class.ext, strip_comments=policy.strip_brace_comments)
    if file_class.kind == "text":
        return smart
    return Strategy(
        kind=GENERIC,
        aggressive=True,
        whitespace_sensitive=file_class.whitespace_sensitive,
        ext=file_class.ext,
    )
