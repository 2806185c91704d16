from __future__ import annotations

import json
import warnings
from collections.abc import Sequence
from pathlib import Path
from typing import TYPE_CHECKING, TextIO

import matplotlib.pyplot as plt
import numpy as np

from readbench.config import CONCURRENCY_LEVELS
from readbench.strategies import ALL_STRATEGIES

if TYPE_CHECKING:
    from readbench.runner import PointResult

STRATEGY_LABELS = {cls.name: cls.label for cls in ALL_STRATEGIES}


def _columns(levels: Sequence[int]) -> list[tuple[str, int]]:
    return [(name, n) for name in STRATEGY_LABELS for n in levels]


def format_header(levels: Sequence[int] = CONCURRENCY_LEVELS) -> str:
    groups = [
        "\t".join(f"{label}{n}" for n in levels) for label in STRATEGY_LABELS.values()
    ]
    return "Filesize\tNumFiles\t|\t" + "\t|\t".join(groups)


def format_row(result: PointResult, levels: Sequence[int] = CONCURRENCY_LEVELS) -> str:
    row = f"{result.point.file_size}\t{result.point.file_count}\t|"
    for i, name in enumerate(STRATEGY_LABELS):
        if i:
            row += "\t|"
        for n in levels:
            timing = result.timing(name, n)
            row += f"\t{timing.elapsed:.4f}" if timing else "\tN/A"
    return row


def print_header(levels: Sequence[int] = CONCURRENCY_LEVELS, out: TextIO | None = None):
    print(format_header(levels), file=out, flush=True)


def print_row(result: PointResult, levels: Sequence[int] = CONCURRENCY_LEVELS, out: TextIO | None = None):
    print(format_row(result, levels), file=out, flush=True)


def save_results(results: list[PointResult], output_path: Path):
    """Save matrix results to JSON."""
    data = {
        "matrix": [
            {
                "file_size": r.point.file_size,
                "file_count": r.point.file_count,
                "error": r.error,
                "timings": [
                    {
                        "strategy": t.strategy,
                        "concurrency": t.concurrency,
                        "elapsed": t.elapsed,
                        "bytes_read": t.bytes_read,
                        "failures": t.failures,
                    }
                    for t in r.timings
                ],
            }
            for r in results
        ]
    }

    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(json.dumps(data, indent=2))
    print(f"Saved results to {output_path}")


def _time_matrix(results: list[PointResult], columns: list[tuple[str, int]]) -> np.ndarray:
    data = np.full((len(columns), len(results)), np.nan)
    for j, r in enumerate(results):
        for i, (name, n) in enumerate(columns):
            timing = r.timing(name, n)
            if timing is not None:
                data[i, j] = timing.elapsed
    return data


def plot_results(
    results: list[PointResult],
    output_dir: Path,
    levels: Sequence[int] = CONCURRENCY_LEVELS,
):
    """Generate a line chart and a heatmap of read times."""
    output_dir.mkdir(parents=True, exist_ok=True)
    columns = _columns(levels)
    data = _time_matrix(results, columns)
    counts = np.array([r.point.file_count for r in results])

    # Time by file count
    fig, ax = plt.subplots(figsize=(12, 6))
    cmap = plt.get_cmap("tab10")
    for i, (name, n) in enumerate(columns):
        style = "-" if name == "stream" else "--"
        color = cmap(list(levels).index(n) % 10)
        ax.plot(counts, data[i], style, marker="o", color=color, label=f"{STRATEGY_LABELS[name]}{n}")

    ax.set_xscale("log", base=2)
    ax.set_xlabel("Number of files (same total bytes)")
    ax.set_ylabel("Time (seconds)")
    ax.set_title("Whole-file read time by strategy and thread count")
    ax.legend(loc="upper left", ncol=2)
    ax.grid(True, which="both", alpha=0.3)
    plt.tight_layout()
    plt.savefig(output_dir / "read_times.png", dpi=150)
    plt.close(fig)

    _plot_heatmap(results, columns, data, output_dir)

    print(f"Saved plots to {output_dir}/")


def _plot_heatmap(results: list[PointResult], columns: list[tuple[str, int]], data: np.ndarray, output_dir: Path):
    fig, ax = plt.subplots(figsize=(10, 6))

    # Columns of failed points are all NaN
    with warnings.catch_warnings(), np.errstate(invalid="ignore", divide="ignore"):
        warnings.simplefilter("ignore", RuntimeWarning)
        normalized = np.nanmin(data, axis=0) / data

    im = ax.imshow(normalized, cmap="RdYlGn", aspect="auto", vmin=0, vmax=1)

    ax.set_xticks(np.arange(len(results)))
    ax.set_yticks(np.arange(len(columns)))
    ax.set_xticklabels([f"{r.point.file_count}\n{r.point.file_size}B" for r in results], fontsize=7)
    ax.set_yticklabels([f"{STRATEGY_LABELS[name]}{n}" for name, n in columns])

    for i in range(len(columns)):
        for j in range(len(results)):
            if not np.isnan(normalized[i, j]):
                color = "white" if normalized[i, j] < 0.5 else "black"
                ax.text(j, i, f"{data[i, j]:.2f}s", ha="center", va="center", color=color, fontsize=7)

    ax.set_title("Read time heatmap (green = faster)")
    plt.colorbar(im, ax=ax, label="Relative Speed (1.0 = fastest)")
    plt.tight_layout()
    plt.savefig(output_dir / "read_heatmap.png", dpi=150)
    plt.close(fig)
