from __future__ import annotations

import subprocess
import sys
from collections.abc import Callable, Iterator, Sequence
from dataclasses import dataclass, field
from functools import partial
from pathlib import Path

from readbench.barrier import PoolManager
from readbench.config import BenchmarkConfig
from readbench.generator import GenerationError, generate_file_set
from readbench.strategies import ALL_STRATEGIES, ReadStrategy


def drop_caches() -> bool:
    """Drop filesystem caches. Requires root on Linux."""
    try:
        subprocess.run(
            ["sh", "-c", "sync; echo 3 > /proc/sys/vm/drop_caches"],
            check=True,
            capture_output=True,
        )
        return True
    except (subprocess.CalledProcessError, PermissionError, FileNotFoundError):
        return False


@dataclass(frozen=True)
class ExperimentPoint:
    file_size: int
    file_count: int


@dataclass(frozen=True)
class TimingResult:
    point: ExperimentPoint
    strategy: str
    concurrency: int
    elapsed: float
    bytes_read: int = 0
    failures: int = 0


@dataclass
class PointResult:
    point: ExperimentPoint
    timings: list[TimingResult] = field(default_factory=list)
    error: str | None = None

    def timing(self, strategy: str, concurrency: int) -> TimingResult | None:
        return next(
            (
                t
                for t in self.timings
                if t.strategy == strategy and t.concurrency == concurrency
            ),
            None,
        )


def experiment_points(
    total_bytes: int, min_files: int, max_files: int
) -> Iterator[ExperimentPoint]:
    """Double the file count from min_files to max_files at a fixed total size."""
    count = min_files
    while count <= max_files:
        yield ExperimentPoint(file_size=-(-total_bytes // count), file_count=count)
        count *= 2


def time_strategy(
    strategy: ReadStrategy,
    files: Sequence[Path],
    pools: PoolManager,
    concurrency: int,
    point: ExperimentPoint,
) -> TimingResult:
    """Read every file once with strategy on the pool of the given size."""
    batch = pools.run_batch(concurrency, [partial(strategy.read, f) for f in files])
    return TimingResult(
        point=point,
        strategy=strategy.name,
        concurrency=concurrency,
        elapsed=batch.elapsed,
        bytes_read=sum(r.value for r in batch.results if r.ok),
        failures=len(batch.failures),
    )


def run_point(
    point: ExperimentPoint,
    pools: PoolManager,
    config: BenchmarkConfig,
    strategies: Sequence[ReadStrategy],
) -> PointResult:
    """Generate, read and clean up the file set for one experiment point."""
    result = PointResult(point=point)

    try:
        file_set = generate_file_set(
            point.file_count,
            point.file_size,
            shard_size=config.shard_size,
            parent=config.tmpdir,
            seed=config.seed,
            progress=config.progress,
        )
    except GenerationError as e:
        print(
            f"Skipping {point.file_count} x {point.file_size} bytes: {e}",
            file=sys.stderr,
        )
        e.file_set.cleanup()
        result.error = str(e)
        return result

    try:
        for strategy in strategies:
            for concurrency in config.concurrency_levels:
                if config.drop_caches and not drop_caches():
                    print("Could not drop caches (needs root)", file=sys.stderr)
                result.timings.append(
                    time_strategy(strategy, file_set.files, pools, concurrency, point)
                )
    finally:
        file_set.cleanup()

    return result


def run_matrix_benchmark(
    config: BenchmarkConfig | None = None,
    on_result: Callable[[PointResult], None] | None = None,
    strategies: Sequence[ReadStrategy] | None = None,
) -> list[PointResult]:
    """Run every experiment point in turn, sharing one set of thread pools."""
    config = config or BenchmarkConfig()
    if strategies is None:
        strategies = [cls(config) for cls in ALL_STRATEGIES]
    unavailable = [s.name for s in strategies if not s.is_available()]
    if unavailable:
        print(f"Skipping unavailable strategies: {', '.join(unavailable)}", file=sys.stderr)
        strategies = [s for s in strategies if s.is_available()]

    all_results: list[PointResult] = []
    with PoolManager(config.concurrency_levels, config.pool_shutdown_timeout) as pools:
        for point in experiment_points(config.total_bytes, config.min_files, config.max_files):
            result = run_point(point, pools, config, strategies)
            all_results.append(result)
            if on_result is not None:
                on_result(result)

    return all_results
