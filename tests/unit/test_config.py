import pytest

from readbench.config import (
    CONCURRENCY_LEVELS,
    DEFAULT_BUFFER_SIZE,
    FILES_PER_DIR,
    MAX_INITIAL_BUFFER_SIZE,
    TOTAL_BYTES,
    BenchmarkConfig,
)


def test_defaults():
    config = BenchmarkConfig()
    assert config.total_bytes == TOTAL_BYTES == 102_400_000
    assert config.shard_size == FILES_PER_DIR == 1000
    assert config.concurrency_levels == CONCURRENCY_LEVELS == (1, 2, 4, 8)
    assert config.default_buffer_size == DEFAULT_BUFFER_SIZE == 16 * 1024
    assert config.max_initial_buffer_size == MAX_INITIAL_BUFFER_SIZE == 16 * 1024 * 1024
    assert config.min_files == 100
    assert config.max_files == 102_400
    assert not config.drop_caches


def test_with_overrides_skips_none():
    config = BenchmarkConfig().with_overrides(total_bytes=1000, max_files=None)
    assert config.total_bytes == 1000
    assert config.max_files == 102_400


def test_reader_options():
    options = BenchmarkConfig(max_buffer_size=1 << 30).reader_options()
    assert options == {
        "default_buffer_size": DEFAULT_BUFFER_SIZE,
        "max_initial_buffer_size": MAX_INITIAL_BUFFER_SIZE,
        "max_buffer_size": 1 << 30,
    }


@pytest.mark.parametrize(
    "kwargs",
    [
        {"total_bytes": 0},
        {"shard_size": -1},
        {"min_files": 10, "max_files": 5},
        {"max_initial_buffer_size": 100, "max_buffer_size": 50},
        {"concurrency_levels": ()},
        {"concurrency_levels": (1, 0)},
        {"pool_shutdown_timeout": -1},
    ],
)
def test_invalid_values_rejected(kwargs):
    with pytest.raises(ValueError):
        BenchmarkConfig(**kwargs)
