#!/usr/bin/env python3
"""
File Reading Benchmark

Compares whole-file reads through a buffered stream against memory-mapped
reads, over a sweep of file counts at a fixed total size and thread pools of
1, 2, 4 and 8 workers.

Usage:
    readbench                                # Run the full matrix with defaults
    readbench run --size 1G --max-files 6400
    readbench run --results results         # Also save JSON and plots

    readbench generate --output /tmp/files --files 1000 --size 64K
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from readbench.config import (
    DEFAULT_RESULTS_DIR,
    FILES_PER_DIR,
    MAX_FILES,
    MIN_FILES,
    TOTAL_BYTES,
    BenchmarkConfig,
)
from readbench.generator import GenerationError, generate_file_set, parse_size
from readbench.plotting import plot_results, print_header, print_row, save_results
from readbench.runner import run_matrix_benchmark


def cmd_run(args) -> int:
    """Run the full benchmark matrix."""
    config = BenchmarkConfig().with_overrides(
        total_bytes=parse_size(args.size) if args.size else None,
        min_files=args.min_files,
        max_files=args.max_files,
        shard_size=args.shard_size,
        tmpdir=Path(args.tmpdir) if args.tmpdir else None,
        drop_caches=args.drop_caches or None,
    )

    print_header(config.concurrency_levels)
    results = run_matrix_benchmark(
        config, on_result=lambda r: print_row(r, config.concurrency_levels)
    )
    print("\nFinished.")

    if args.results:
        results_dir = Path(args.results)
        save_results(results, results_dir / "read_benchmark.json")
        plot_results(results, results_dir, config.concurrency_levels)

    return 1 if any(r.error for r in results) else 0


def cmd_generate(args) -> int:
    """Generate a file set and leave it on disk."""
    output_dir = Path(args.output)
    file_size = parse_size(args.size)

    print("Generating file set:")
    print(f"  Parent: {output_dir}")
    print(f"  Files: {args.files}")
    print(f"  Size: {file_size} bytes each")

    output_dir.mkdir(parents=True, exist_ok=True)
    try:
        file_set = generate_file_set(
            args.files, file_size, shard_size=args.shard_size, parent=output_dir
        )
    except GenerationError as e:
        print(f"Generation failed: {e}", file=sys.stderr)
        e.file_set.cleanup()
        return 1

    print(f"\nCreated {len(file_set.files)} files ({file_set.total_bytes / 1024**2:.1f} MB) in {file_set.root}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="File Reading Benchmark")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Run subcommand
    run_parser = subparsers.add_parser("run", help="Run the full benchmark matrix")
    run_parser.add_argument(
        "--size",
        "-s",
        default=None,
        help=f"Total bytes per experiment point (e.g. 100M, 1G; default {TOTAL_BYTES})",
    )
    run_parser.add_argument(
        "--min-files", type=int, default=None, help=f"Smallest file count (default {MIN_FILES})"
    )
    run_parser.add_argument(
        "--max-files", type=int, default=None, help=f"Largest file count (default {MAX_FILES})"
    )
    run_parser.add_argument(
        "--shard-size",
        type=int,
        default=None,
        help=f"Max files per subdirectory (default {FILES_PER_DIR})",
    )
    run_parser.add_argument("--tmpdir", default=None, help="Where to create temporary files")
    run_parser.add_argument(
        "--drop-caches",
        action="store_true",
        help="Drop the page cache before each timing (Linux, root only)",
    )
    run_parser.add_argument(
        "--results",
        nargs="?",
        const=str(DEFAULT_RESULTS_DIR),
        default=None,
        help="Save JSON results and plots to this directory",
    )

    # Generate subcommand
    gen_parser = subparsers.add_parser(
        "generate", help="Generate a file set without running benchmarks"
    )
    gen_parser.add_argument(
        "--output", "-o", required=True, help="Parent directory for the generated files"
    )
    gen_parser.add_argument("--files", "-n", type=int, default=MIN_FILES, help="Number of files")
    gen_parser.add_argument("--size", "-s", default="1M", help="Size of each file (e.g. 64K, 1M)")
    gen_parser.add_argument(
        "--shard-size", type=int, default=FILES_PER_DIR, help="Max files per subdirectory"
    )

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        args = parser.parse_args(["run"])

    if args.command == "run":
        return cmd_run(args)
    return cmd_generate(args)


if __name__ == "__main__":
    sys.exit(main())
