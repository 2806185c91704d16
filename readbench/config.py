from __future__ import annotations

import sys
from dataclasses import dataclass, replace
from pathlib import Path

DEFAULT_RESULTS_DIR = Path("results")

# Total bytes per experiment point. Should be around 2x RAM to defeat the
# page cache (and needs this much free disk space).
TOTAL_BYTES = 102_400_000
FILES_PER_DIR = 1000

MIN_FILES = 100
MAX_FILES = 102_400

CONCURRENCY_LEVELS = (1, 2, 4, 8)
POOL_SHUTDOWN_TIMEOUT = 5.0

# Buffer bounds for the stream reader
DEFAULT_BUFFER_SIZE = 16 * 1024
MAX_INITIAL_BUFFER_SIZE = 16 * 1024 * 1024
MAX_BUFFER_SIZE = sys.maxsize - 8


@dataclass(frozen=True)
class BenchmarkConfig:
    total_bytes: int = TOTAL_BYTES
    shard_size: int = FILES_PER_DIR
    min_files: int = MIN_FILES
    max_files: int = MAX_FILES
    concurrency_levels: tuple[int, ...] = CONCURRENCY_LEVELS
    default_buffer_size: int = DEFAULT_BUFFER_SIZE
    max_initial_buffer_size: int = MAX_INITIAL_BUFFER_SIZE
    max_buffer_size: int = MAX_BUFFER_SIZE
    pool_shutdown_timeout: float = POOL_SHUTDOWN_TIMEOUT
    tmpdir: Path | None = None
    drop_caches: bool = False
    progress: bool = True
    seed: int | None = None

    def __post_init__(self):
        for name in (
            "total_bytes",
            "shard_size",
            "min_files",
            "max_files",
            "default_buffer_size",
            "max_initial_buffer_size",
            "max_buffer_size",
        ):
            if getattr(self, name) < 1:
                raise ValueError(f"{name} must be positive, got {getattr(self, name)}")
        if self.min_files > self.max_files:
            raise ValueError("min_files must not exceed max_files")
        if self.max_initial_buffer_size > self.max_buffer_size:
            raise ValueError("max_initial_buffer_size must not exceed max_buffer_size")
        if not self.concurrency_levels or any(n < 1 for n in self.concurrency_levels):
            raise ValueError("concurrency_levels must be positive thread counts")
        if self.pool_shutdown_timeout < 0:
            raise ValueError("pool_shutdown_timeout must not be negative")

    def with_overrides(self, **overrides) -> BenchmarkConfig:
        """Return a copy with the non-None overrides applied."""
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})

    def reader_options(self) -> dict[str, int]:
        return {
            "default_buffer_size": self.default_buffer_size,
            "max_initial_buffer_size": self.max_initial_buffer_size,
            "max_buffer_size": self.max_buffer_size,
        }
