"""Filesystem pattern helpers.

Rules:
- write every artifact under the chosen output directory
- only ever clear a directory that carries this tool's marker file
- flatten relative paths into file names so outputs never collide
"""
from __future__ import annotations

import shutil
from pathlib import Path

OUTPUT_MARKER = ".compactor-output"


class OutputDirError(ValueError):
    """Output directory would overwrite or delete sources."""


def check_output_dir(root: Path, out_dir: Path) -> None:
    root = root.resolve()
    out_dir = out_dir.resolve()
    if out_dir == root or out_dir in root.parents:
        raise OutputDirError(f"Output directory {out_dir} contains the scanned directory {root}")


def is_within(path: Path, parent: Path) -> bool:
    return parent.resolve() in path.resolve().parents


def prepare_output_dir(path: Path) -> Path:
    """Empty ``path`` (or create it) and stamp it with the output marker.

    An existing non-empty directory without the marker is left untouched and
    ``OutputDirError`` is raised instead.
    """
    marker = path / OUTPUT_MARKER
    if path.exists():
        if not path.is_dir():
            raise OutputDirError(f"Output path is not a directory: {path}")
        if any(path.iterdir()) and not marker.is_file():
            raise OutputDirError(
                f"Refusing to clear {path}: it was not created by this tool ({OUTPUT_MARKER} missing)"
            )
        for child in path.iterdir():
            if child.is_dir() and not child.is_symlink():
                shutil.rmtree(child)
            else:
                child.unlink()
    else:
        path.mkdir(parents=True, exist_ok=True)
    marker.write_text("", encoding="utf-8")
    return path


def destination_name(rel_path: str) -> str:
    flat = rel_path.replace("\\", "/").strip("/").replace("/", "__")
    if flat.lower().endswith(".md"):
        return flat
    return flat + ".txt"


def write_text(path: Path, text: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


def format_size(size: int) -> str:
    if size < 1024:
        return f"{size} B"
    return f"{size // 1024} KB"
