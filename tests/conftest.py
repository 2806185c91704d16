import os

import pytest

from readbench.config import BenchmarkConfig

os.environ.setdefault("MPLBACKEND", "Agg")


@pytest.fixture
def small_config(tmp_path) -> BenchmarkConfig:
    """Three tiny experiment points (2, 4 and 8 files) under tmp_path."""
    return BenchmarkConfig(
        total_bytes=64 * 1024,
        min_files=2,
        max_files=8,
        shard_size=3,
        tmpdir=tmp_path,
        progress=False,
        pool_shutdown_timeout=1.0,
        seed=1234,
    )
