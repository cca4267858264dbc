#!/usr/bin/env python3
"""Compactor CLI: shrink single files or whole trees into LLM-friendly text."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from _fs import OutputDirError, check_output_dir, is_within
from batch import BatchOptions, DEFAULT_WORKERS, run_batch, scan_files, summary_lines
from budget import configure_tokenizer
from compaction import CompactionPolicy, ContentProcessor, MissingFileError
from utils import dedupe, progress, split_csv
from .config import RunConfig, load_project_config, parse_level, resolve_out_dir
from .presets import PRESETS, detect_preset, preset_names, preset_settings


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description=__doc__)
    sub = parser.add_subparsers(dest="command")

    file_parser = sub.add_parser("file", help="Compact one file and print the result")
    file_parser.add_argument("path", help="File to compact")
    file_parser.add_argument(
        "--level", default="maximum", help="Compression level: none, smart, maximum (default: maximum)"
    )
    file_parser.add_argument(
        "--strip-brace-comments",
        action="store_true",
        help="Drop comments in brace-delimited sources before merging braces",
    )

    run_parser = sub.add_parser("run", help="Compact every matching file under a directory")
    run_parser.add_argument("--repo", default=".", help="Directory to scan (default: .)")
    run_parser.add_argument("--level", default=None, help="Compression level (default: maximum)")
    run_parser.add_argument("--out", default=None, help="Output directory (default: <repo>/_ConvertedToTxt)")
    run_parser.add_argument(
        "--preset", choices=preset_names(), default=None, help="Project preset (default: auto-detect)"
    )
    run_parser.add_argument("--extensions", default=None, help="Comma-separated extensions to include")
    run_parser.add_argument("--ignore", default=None, help="Comma-separated directory names to skip")
    run_parser.add_argument("--workers", type=int, default=None, help=f"Worker threads (default: {DEFAULT_WORKERS})")
    run_parser.add_argument("--no-merged", action="store_true", help="Skip the merged single-file output")
    run_parser.add_argument("--no-structure", action="store_true", help="Skip the _FileStructure.md report")
    run_parser.add_argument(
        "--precise-tokens", action="store_true", help="Count tokens with tiktoken instead of estimating"
    )
    run_parser.add_argument(
        "--strip-brace-comments",
        action="store_true",
        help="Drop comments in brace-delimited sources before merging braces",
    )

    sub.add_parser("presets", help="List project presets")
    return parser


def resolve_run_config(args: argparse.Namespace, root: Path, warnings: List[str]) -> RunConfig:
    """Layer settings: preset, then the project config file, then CLI flags."""
    config = RunConfig()
    file_config, filename = load_project_config(root, warnings)
    if filename:
        progress(f"Loaded {filename}", done=True)

    preset = args.preset or file_config.get("preset") or detect_preset(root)
    if preset:
        config.preset = preset
        config.extensions, config.ignored_dirs = preset_settings(preset)

    if "level" in file_config:
        config.level = file_config["level"]
    if "extensions" in file_config:
        config.extensions = file_config["extensions"]
    if "ignored_dirs" in file_config:
        config.ignored_dirs = dedupe(config.ignored_dirs + file_config["ignored_dirs"])
    for key in ("strip_brace_comments", "merged", "structure", "workers"):
        if key in file_config:
            setattr(config, key, file_config[key])

    if args.level:
        config.level = parse_level(args.level)
    if args.extensions:
        config.extensions = split_csv(args.extensions)
    if args.ignore:
        config.ignored_dirs = dedupe(config.ignored_dirs + split_csv(args.ignore))
    if args.workers:
        config.workers = args.workers
    if args.no_merged:
        config.merged = False
    if args.no_structure:
        config.structure = False
    if args.strip_brace_comments:
        config.strip_brace_comments = True
    return config


def run_file(args: argparse.Namespace) -> int:
    warnings: List[str] = []
    try:
        level = parse_level(args.level)
    except ValueError as exc:
        print(str(exc), file=sys.stderr)
        return 2
    processor = ContentProcessor(
        level,
        policy=CompactionPolicy(strip_brace_comments=args.strip_brace_comments),
        warnings=warnings,
    )
    try:
        text = processor.read_and_process(args.path)
    except MissingFileError as exc:
        print(str(exc), file=sys.stderr)
        return 2
    for warning in warnings:
        print(f"warning: {warning}", file=sys.stderr)
    sys.stdout.write(text)
    if text and not text.endswith("\n"):
        sys.stdout.write("\n")
    return 0


def run_tree(args: argparse.Namespace) -> int:
    root = Path(args.repo).resolve()
    if not root.is_dir():
        print(f"Not a directory: {root}", file=sys.stderr)
        return 2
    warnings: List[str] = []
    try:
        config = resolve_run_config(args, root, warnings)
    except ValueError as exc:
        print(str(exc), file=sys.stderr)
        return 2

    out_dir = resolve_out_dir(root, args.out)
    try:
        check_output_dir(root, out_dir)
    except OutputDirError as exc:
        print(str(exc), file=sys.stderr)
        return 2
    exclude = [out_dir] if is_within(out_dir, root) else []

    files = scan_files(root, config.extensions, config.ignored_dirs, exclude=exclude)
    if not files:
        print("No matching files.", file=sys.stderr)
        return 0

    configure_tokenizer(args.precise_tokens, warnings)
    options = BatchOptions(
        level=config.level,
        policy=CompactionPolicy(strip_brace_comments=config.strip_brace_comments),
        workers=config.workers or DEFAULT_WORKERS,
        merged=config.merged,
        structure=config.structure,
        ignored_dirs=list(config.ignored_dirs),
    )
    try:
        report = run_batch(root, files, out_dir, options, warnings=warnings)
    except OutputDirError as exc:
        print(str(exc), file=sys.stderr)
        return 2
    lines = summary_lines(report)
    if config.preset:
        lines.insert(1, f"PRESET: {config.preset}")
    print("\n".join(lines))
    return 0


def run_presets() -> int:
    for name in preset_names():
        extensions, _ = PRESETS[name]
        print(f"{name}: {extensions}")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(sys.argv[1:] if argv is None else argv)

    if args.command == "file":
        return run_file(args)
    if args.command == "run":
        return run_tree(args)
    if args.command == "presets":
        return run_presets()

    parser.print_help()
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
