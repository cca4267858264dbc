from __future__ import annotations

import os
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Set, Tuple

from _fs import check_output_dir, destination_name, format_size, prepare_output_dir, write_text
from budget import estimate_tokens, reduction_percent
from compaction import (
    MERGED_FILE_SUFFIX,
    OUTPUT_DIR_NAME,
    STRUCTURE_FILE_NAME,
    STRUCTURE_SKIP_SUFFIXES,
    CompactionPolicy,
    CompressionLevel,
    ContentProcessor,
    MissingFileError,
    normalize_newlines,
    read_source,
)
from utils import progress

DEFAULT_WORKERS = 8

STATUS_OK = "ok"
STATUS_FALLBACK = "fallback"
STATUS_MISSING = "missing"
STATUS_FAILED = "failed"

# Unprocessed files in one directory are listed individually up to this count.
COLLAPSE_THRESHOLD = 5


@dataclass
class BatchOptions:
    level: CompressionLevel
    policy: CompactionPolicy = field(default_factory=CompactionPolicy)
    workers: int = DEFAULT_WORKERS
    merged: bool = True
    structure: bool = True
    ignored_dirs: List[str] = field(default_factory=list)
    project_name: Optional[str] = None


@dataclass
class FileResult:
    path: str
    status: str
    strategy: str = ""
    destination: Optional[str] = None
    original_chars: int = 0
    compacted_chars: int = 0
    original_tokens: int = 0
    compacted_tokens: int = 0
    message: str = ""


@dataclass
class BatchReport:
    root: Path
    out_dir: Path
    level: CompressionLevel
    results: List[FileResult]
    merged_path: Optional[Path] = None
    structure_path: Optional[Path] = None
    warnings: List[str] = field(default_factory=list)


def normalize_extensions(extensions: Iterable[str]) -> Set[str]:
    return {ext.strip().lstrip(".").lower() for ext in extensions if ext.strip().lstrip(".")}


def normalize_ignored(ignored_dirs: Iterable[str]) -> Set[str]:
    ignored = {name.strip().lower() for name in ignored_dirs if name.strip()}
    ignored.add(OUTPUT_DIR_NAME.lower())
    return ignored


def file_matches(name: str, extensions: Set[str]) -> bool:
    lower = name.lower()
    if lower.endswith(".md"):
        return True
    if not extensions:
        return True
    if lower in extensions:
        return True
    return Path(lower).suffix.lstrip(".") in extensions


def scan_files(
    root: Path,
    extensions: Iterable[str],
    ignored_dirs: Iterable[str],
    exclude: Iterable[Path] = (),
) -> List[str]:
    """List files under ``root`` worth compacting, as sorted POSIX paths.

    An empty extension set selects every file. Markdown is always included.
    Directories in ``exclude`` (typically the output directory) are skipped
    wherever they sit below ``root``.
    """
    progress("Scanning files...")
    exts = normalize_extensions(extensions)
    ignored = normalize_ignored(ignored_dirs)
    excluded = {path.resolve() for path in exclude}
    files: List[str] = []
    skipped_symlinks = 0

    for current, dirs, filenames in os.walk(root):
        dirs[:] = sorted(
            d for d in dirs
            if d.lower() not in ignored
            and not d.startswith(".")
            and (Path(current) / d).resolve() not in excluded
        )
        for filename in filenames:
            full = Path(current) / filename
            if full.is_symlink():
                skipped_symlinks += 1
                continue
            if not file_matches(filename, exts):
                continue
            try:
                files.append(full.relative_to(root).as_posix())
            except ValueError:
                continue

    if skipped_symlinks:
        progress(f"Found {len(files)} files (skipped {skipped_symlinks} symlinks)", done=True)
    else:
        progress(f"Found {len(files)} files", done=True)
    return sorted(set(files))


def process_one(root: Path, rel_path: str, out_dir: Path, processor: ContentProcessor) -> FileResult:
    source = root / rel_path
    try:
        original = normalize_newlines(read_source(source))
    except MissingFileError as exc:
        processor.warnings.append(str(exc))
        return FileResult(path=rel_path, status=STATUS_MISSING, message=str(exc))

    processed = processor.process(source, original)
    result = FileResult(
        path=rel_path,
        status=STATUS_FALLBACK if processed.fell_back else STATUS_OK,
        strategy=processed.strategy.describe(),
        original_chars=len(original),
        compacted_chars=len(processed.text),
        original_tokens=estimate_tokens(original),
        compacted_tokens=estimate_tokens(processed.text),
        message=processed.error or "",
    )
    dest = out_dir / destination_name(rel_path)
    try:
        write_text(dest, processed.text)
    except OSError as exc:
        result.status = STATUS_FAILED
        result.message = f"Failed to write output for {rel_path}: {exc.strerror or exc}"
        processor.warnings.append(result.message)
        return result
    result.destination = dest.name
    return result


def run_batch(
    root: Path,
    files: Sequence[str],
    out_dir: Path,
    options: BatchOptions,
    warnings: Optional[List[str]] = None,
) -> BatchReport:
    """Compact ``files`` into ``out_dir``.

    Per-file problems become results and warnings; only an unusable output
    directory (``OutputDirError``) stops the run, and it does so before any
    file is touched.
    """
    warnings = warnings if warnings is not None else []
    check_output_dir(root, out_dir)
    processor = ContentProcessor(options.level, policy=options.policy, warnings=warnings)
    prepare_output_dir(out_dir)

    progress(f"Compacting {len(files)} files ({options.level.value})...")
    results: Dict[str, FileResult] = {}
    max_workers = max(1, int(options.workers or 1))
    if max_workers > 1 and len(files) > 1:
        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            futures = {
                executor.submit(process_one, root, rel, out_dir, processor): rel for rel in files
            }
            for future in as_completed(futures):
                result = future.result()
                results[result.path] = result
    else:
        for rel in files:
            result = process_one(root, rel, out_dir, processor)
            results[result.path] = result
    ordered = [results[rel] for rel in sorted(results)]
    progress(f"Compacted {len(ordered)} files", done=True)

    report = BatchReport(root=root, out_dir=out_dir, level=options.level, results=ordered, warnings=warnings)
    if options.merged and ordered:
        name = options.project_name or root.resolve().name
        try:
            report.merged_path = write_merged_file(out_dir / f"_{name}{MERGED_FILE_SUFFIX}", name, report)
            progress(f"Merged file: {report.merged_path.name}", done=True)
        except OSError as exc:
            warnings.append(f"Failed to write merged file: {exc}")
    if options.structure:
        lines = structure_lines(
            root,
            ordered,
            options.level,
            ignored_dirs=options.ignored_dirs,
            exclude=[out_dir],
            merged=report.merged_path is not None,
        )
        try:
            report.structure_path = write_text(out_dir / STRUCTURE_FILE_NAME, "\n".join(lines) + "\n")
            progress(f"Structure report: {STRUCTURE_FILE_NAME}", done=True)
        except OSError as exc:
            warnings.append(f"Failed to write structure report: {exc}")
    return report


def merged_text(project_name: str, report: BatchReport) -> str:
    parts: List[str] = [f"# Project: {project_name}", f"# Compression: {report.level.value}", ""]
    for result in report.results:
        parts.append(f">>> {result.path}")
        if result.destination is None:
            parts.append(f"!!! Error: {result.message}")
            parts.append("")
            continue
        try:
            content = (report.out_dir / result.destination).read_text(encoding="utf-8")
        except OSError as exc:
            parts.append(f"!!! Error: {exc}")
            parts.append("")
            continue
        parts.append(content)
        parts.append("")
    return "\n".join(parts)


def write_merged_file(path: Path, project_name: str, report: BatchReport) -> Path:
    return write_text(path, merged_text(project_name, report))


def _skip_in_structure(entry: Path, ignored: Set[str], excluded: Set[Path]) -> bool:
    name = entry.name
    if name == OUTPUT_DIR_NAME or name.endswith(STRUCTURE_SKIP_SUFFIXES):
        return True
    if name.startswith(".") and name != ".gitignore":
        return True
    if entry.is_symlink():
        return True
    if entry.is_dir():
        return name.lower() in ignored or entry.resolve() in excluded
    return False


def _list_dir(directory: Path, ignored: Set[str], excluded: Set[Path]) -> Tuple[List[Path], List[Path]]:
    try:
        entries = sorted(directory.iterdir(), key=lambda p: p.name)
    except OSError:
        return [], []
    dirs: List[Path] = []
    files: List[Path] = []
    for entry in entries:
        if _skip_in_structure(entry, ignored, excluded):
            continue
        (dirs if entry.is_dir() else files).append(entry)
    return dirs, files


def _extension_stats(files: Sequence[Path]) -> str:
    counts: Dict[str, int] = {}
    for path in files:
        counts[path.suffix] = counts.get(path.suffix, 0) + 1
    top = sorted(counts.items(), key=lambda item: (-item[1], item[0]))[:3]
    return ", ".join(f"{ext}({count})" for ext, count in top)


def structure_lines(
    root: Path,
    results: Sequence[FileResult],
    level: CompressionLevel,
    ignored_dirs: Iterable[str] = (),
    exclude: Iterable[Path] = (),
    merged: bool = False,
) -> List[str]:
    """Describe the scanned tree, marking which files made it into the output.

    MAXIMUM gives a flat path list with ``[ignore]`` on skipped files, SMART a
    compact indented tree, NONE a detailed tree with sizes and status marks.
    Directories holding more than a handful of skipped files get a one-line
    per-extension tally instead of a listing.
    """
    ignored = normalize_ignored(ignored_dirs)
    excluded = {path.resolve() for path in exclude}
    processed = {r.path for r in results if r.destination is not None}
    lines: List[str] = ["# File Structure", ""]

    def rel(path: Path) -> str:
        return path.relative_to(root).as_posix()

    if level is CompressionLevel.MAXIMUM:
        lines.append("(Flat Structure Mode)")
        pending = [root]
        paths: List[str] = []
        while pending:
            dirs, files = _list_dir(pending.pop(), ignored, excluded)
            pending.extend(dirs)
            paths.extend(rel(f) for f in files)
        for path in sorted(paths):
            lines.append(path if path in processed else f"{path} [ignore]")
        return lines

    detailed = level is CompressionLevel.NONE
    if detailed:
        lines.extend(
            [
                "Legend:",
                "- `[ M ]` full content in the merged file",
                "- `[ S ]` converted, separate file only",
                "- `[ - ]` not converted",
                "",
                "```text",
            ]
        )
    else:
        lines.append("(Compact Tree Mode)")
        lines.append(f"{root.resolve().name}/")

    def walk(directory: Path, prefix: str) -> None:
        dirs, files = _list_dir(directory, ignored, excluded)
        shown = [f for f in files if rel(f) in processed]
        collapsed = [f for f in files if rel(f) not in processed]
        if len(collapsed) <= COLLAPSE_THRESHOLD:
            shown = sorted(shown + collapsed, key=lambda p: p.name)
            collapsed = []
        nodes = dirs + shown
        total = len(nodes) + (1 if collapsed else 0)

        for index, node in enumerate(nodes):
            if not detailed:
                indent = prefix + "  "
                if node.is_dir():
                    lines.append(f"{indent}{node.name}/")
                    walk(node, indent)
                else:
                    lines.append(f"{indent}{node.name}")
                continue
            last = index == total - 1
            connector = "└── " if last else "├── "
            if node.is_dir():
                lines.append(f"{prefix}{connector}[DIR] {node.name}")
                walk(node, prefix + ("    " if last else "│   "))
            else:
                if rel(node) not in processed:
                    status = "[ - ]"
                else:
                    status = "[ M ]" if merged else "[ S ]"
                size = format_size(node.stat().st_size)
                lines.append(f"{prefix}{connector}[FILE] {node.name} ({size}) {status}")

        if collapsed:
            stats = _extension_stats(collapsed)
            if detailed:
                lines.append(f"{prefix}└── [ ... {len(collapsed)} ignored: {stats} ... ]")
            else:
                lines.append(f"{prefix}  ... ({len(collapsed)}: {stats})")

    walk(root, "")
    if detailed:
        lines.append("```")
    return lines


def summary_lines(report: BatchReport, max_sample: int = 30) -> List[str]:
    lines: List[str] = []
    counts: Dict[str, int] = {}
    for result in report.results:
        counts[result.status] = counts.get(result.status, 0) + 1
    before = sum(r.original_tokens for r in report.results)
    after = sum(r.compacted_tokens for r in report.results)

    lines.append(f"FILE_COUNT: {len(report.results)}")
    lines.append(f"LEVEL: {report.level.value}")
    lines.append("STATUS:")
    for status in (STATUS_OK, STATUS_FALLBACK, STATUS_MISSING, STATUS_FAILED):
        lines.append(f"  {status}: {counts.get(status, 0)}")
    lines.append(f"TOKENS: {before} -> {after} ({reduction_percent(before, after)}% saved)")

    strategies: Dict[str, int] = {}
    for result in report.results:
        if result.strategy:
            strategies[result.strategy] = strategies.get(result.strategy, 0) + 1
    if strategies:
        lines.append("STRATEGIES:")
        for name, count in sorted(strategies.items(), key=lambda item: (-item[1], item[0])):
            lines.append(f"  {name}: {count}")

    largest = sorted(report.results, key=lambda r: r.compacted_tokens, reverse=True)[:max_sample]
    if largest:
        lines.append("LARGEST:")
        for result in largest:
            lines.append(f"  {result.compacted_tokens:>7} {result.path}")

    lines.append(f"OUTPUT: {report.out_dir}")
    if report.merged_path is not None:
        lines.append(f"MERGED: {report.merged_path.name}")
    if report.structure_path is not None:
        lines.append(f"STRUCTURE: {report.structure_path.name}")
    if report.warnings:
        lines.append("WARNINGS:")
        for warning in report.warnings[:max_sample]:
            lines.append(f"  {warning}")
    return lines
