from __future__ import annotations

from typing import Dict, FrozenSet, Tuple

UNITY_SCENE_EXTS: FrozenSet[str] = frozenset({".unity", ".prefab"})
GODOT_SCENE_EXTS: FrozenSet[str] = frozenset({".tscn", ".tres"})

BRACE_EXTS: FrozenSet[str] = frozenset(
    {
        ".cs",
        ".java",
        ".c",
        ".h",
        ".cc",
        ".cpp",
        ".hpp",
        ".js",
        ".mjs",
        ".jsx",
        ".ts",
        ".tsx",
        ".go",
        ".rs",
        ".kt",
        ".swift",
        ".dart",
        ".scala",
        ".php",
        ".shader",
        ".cginc",
        ".hlsl",
        ".glsl",
        ".gdshader",
    }
)

# Comments in these files are content, not noise.
PLAIN_TEXT_EXTS: FrozenSet[str] = frozenset({".md", ".txt", ".rst"})

WHITESPACE_SENSITIVE_EXTS: FrozenSet[str] = frozenset({".gd", ".py", ".yaml", ".yml"})

DEFAULT_LINE_COMMENT_MARKERS: Tuple[str, ...] = ("//", "#")
LINE_COMMENT_MARKERS: Dict[str, Tuple[str, ...]] = {
    ".sql": ("--",),
    ".lua": ("--",),
    ".ini": (";", "#"),
}

DEFAULT_BLOCK_COMMENT_PATTERN = r"/\*[\s\S]*?\*/"
MARKUP_BLOCK_COMMENT_PATTERN = r"<!--[\s\S]*?-->"
BLOCK_COMMENT_PATTERNS: Dict[str, str] = {
    ".html": MARKUP_BLOCK_COMMENT_PATTERN,
    ".htm": MARKUP_BLOCK_COMMENT_PATTERN,
    ".xml": MARKUP_BLOCK_COMMENT_PATTERN,
    ".xaml": MARKUP_BLOCK_COMMENT_PATTERN,
    ".vue": MARKUP_BLOCK_COMMENT_PATTERN,
    ".svelte": MARKUP_BLOCK_COMMENT_PATTERN,
    ".csproj": MARKUP_BLOCK_COMMENT_PATTERN,
}

BRACE_OPEN_TOKEN = "{"
BRACE_COMMENT_MARKERS: Tuple[str, ...] = ("//",)
BRACE_COMMENT_MARKERS_BY_EXT: Dict[str, Tuple[str, ...]] = {
    ".php": ("//", "#"),
}

PROPERTY_VALUE_MAX_LEN = 20

OUTPUT_DIR_NAME = "_ConvertedToTxt"
MERGED_FILE_SUFFIX = "_Full_Source_code.txt"
STRUCTURE_FILE_NAME = "_FileStructure.md"
# Build artifacts left out of the structure report.
STRUCTURE_SKIP_SUFFIXES: Tuple[str, ...] = (".import", ".tmp", ".uid")
CONFIG_FILE_NAMES: Tuple[str, ...] = (".compactor.json", "compactor.json")
