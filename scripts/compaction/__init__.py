from .constants import (
    BRACE_EXTS,
    CONFIG_FILE_NAMES,
    MERGED_FILE_SUFFIX,
    OUTPUT_DIR_NAME,
    PLAIN_TEXT_EXTS,
    STRUCTURE_FILE_NAME,
    STRUCTURE_SKIP_SUFFIXES,
    WHITESPACE_SENSITIVE_EXTS,
)
from .levels import (
    CompactionPolicy,
    CompactionRequest,
    CompressionLevel,
    FileClass,
    classify,
    file_ext,
)
from .generic import (
    collapse_blank_lines,
    compact_generic,
    line_comment_markers,
    strip_block_comments,
)
from .braces import brace_comment_markers, compact_braces, opens_comment
from .scene_graph import (
    SceneFormat,
    SceneRecord,
    build_hierarchy,
    compact_scene,
    parse_records,
    render_hierarchy,
    shorten_value,
)
from .formats import GODOT_TEXT, SCENE_FORMATS, UNITY_YAML, scene_format_for_ext
from .selector import BRACES, GENERIC, IDENTITY, SCENE, Strategy, select
from .processor import (
    ContentProcessor,
    MissingFileError,
    ProcessedContent,
    compact_text,
    normalize_newlines,
    read_and_process,
    read_source,
)
