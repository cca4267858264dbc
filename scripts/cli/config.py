from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from compaction import CONFIG_FILE_NAMES, OUTPUT_DIR_NAME, CompressionLevel
from utils import split_csv

from .presets import PRESETS


@dataclass
class RunConfig:
    level: CompressionLevel = CompressionLevel.MAXIMUM
    extensions: List[str] = field(default_factory=list)
    ignored_dirs: List[str] = field(default_factory=list)
    strip_brace_comments: bool = False
    workers: Optional[int] = None
    merged: bool = True
    structure: bool = True
    preset: Optional[str] = None


def normalize_str_list(value: Any) -> List[str]:
    if isinstance(value, str) and value.strip():
        return split_csv(value)
    if isinstance(value, list):
        return [item.strip() for item in value if isinstance(item, str) and item.strip()]
    return []


def parse_level(value: str) -> CompressionLevel:
    return CompressionLevel.parse(value)


def load_project_config(root: Path, warnings: List[str]) -> Tuple[Dict[str, Any], Optional[str]]:
    """Read the first config file found at ``root``.

    Unreadable or ill-typed entries are reported through ``warnings`` and
    dropped; the returned dict only holds keys that passed validation.
    """
    for filename in CONFIG_FILE_NAMES:
        path = root / filename
        if not path.exists():
            continue
        try:
            payload = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            warnings.append(f"Failed to parse {filename}: {exc}")
            return {}, filename
        if not isinstance(payload, dict):
            warnings.append(f"Invalid {filename}: expected a JSON object")
            return {}, filename

        config: Dict[str, Any] = {}
        if "level" in payload:
            try:
                config["level"] = parse_level(str(payload["level"]))
            except ValueError as exc:
                warnings.append(f"Invalid {filename} level: {exc}")
        for key in ("extensions", "ignored_dirs"):
            if key in payload:
                config[key] = normalize_str_list(payload[key])
        for key in ("strip_brace_comments", "merged", "structure"):
            if isinstance(payload.get(key), bool):
                config[key] = payload[key]
        workers = payload.get("workers")
        if isinstance(workers, int) and not isinstance(workers, bool) and workers > 0:
            config["workers"] = workers
        preset = payload.get("preset")
        if isinstance(preset, str):
            if preset in PRESETS:
                config["preset"] = preset
            else:
                warnings.append(f"Unknown preset in {filename}: {preset}")
        return config, filename
    return {}, None


def resolve_out_dir(root: Path, out_arg: Optional[str]) -> Path:
    if out_arg:
        out_path = Path(out_arg)
        if out_path.is_absolute():
            return out_path
        return (Path.cwd() / out_path).resolve()
    return (root / OUTPUT_DIR_NAME).resolve()
