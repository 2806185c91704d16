import random
import threading
import time
from concurrent.futures import ThreadPoolExecutor

import pytest

from readbench.barrier import BatchResult, PoolManager, TaskResult, run_batch


@pytest.fixture
def pool():
    with ThreadPoolExecutor(max_workers=4) as executor:
        yield executor


def test_failing_subset_does_not_cancel_siblings(pool, capsys):
    """Every task is attempted and only the chosen ones fail."""
    n = 40
    failing = set(random.Random(7).sample(range(n), 11))
    attempted = set()
    lock = threading.Lock()

    def make_task(i):
        def task():
            with lock:
                attempted.add(i)
            if i in failing:
                raise OSError(f"boom {i}")
            time.sleep(0.001)
            return i * 10

        return task

    batch = run_batch(pool, [make_task(i) for i in range(n)])

    assert attempted == set(range(n))
    assert batch.attempted == n
    assert {r.index for r in batch.failures} == failing
    assert [r.index for r in batch.results] == list(range(n))
    for r in batch.results:
        if r.ok:
            assert r.value == r.index * 10
        else:
            assert isinstance(r.error, OSError)
    assert "Read task" in capsys.readouterr().err


def test_barrier_waits_for_slow_tasks(pool):
    done = []

    def slow():
        time.sleep(0.05)
        done.append(True)

    batch = run_batch(pool, [slow] * 4)
    assert len(done) == 4
    assert batch.elapsed >= 0.05


def test_tasks_run_in_parallel(pool):
    # Deadlocks (and times out) unless all four run at once
    rendezvous = threading.Barrier(4, timeout=5)
    batch = run_batch(pool, [rendezvous.wait] * 4)
    assert not batch.failures


def test_empty_batch(pool):
    batch = run_batch(pool, [])
    assert batch.results == []
    assert batch.elapsed >= 0


def test_task_result_ok():
    assert TaskResult(index=0, value=3).ok
    assert not TaskResult(index=0, error=OSError("x")).ok
    assert BatchResult(elapsed=0.0, results=[]).failures == []


def test_pool_manager_levels_and_sizes():
    with PoolManager((1, 2, 4, 8)) as pools:
        assert pools.levels == [1, 2, 4, 8]
        assert pools.pool(4)._max_workers == 4
        batch = pools.run_batch(2, [lambda: 1, lambda: 2])
        assert [r.value for r in batch.results] == [1, 2]


def test_pool_manager_close_is_idempotent():
    pools = PoolManager((1,))
    pools.close()
    pools.close()
    with pytest.raises(RuntimeError):
        pools.pool(1)


def test_pool_manager_close_bounded_by_grace_period(capsys):
    pools = PoolManager((1,), shutdown_timeout=0.1)
    started = threading.Event()
    release = threading.Event()

    def blocker():
        started.set()
        release.wait(timeout=10)

    driver = threading.Thread(target=pools.run_batch, args=(1, [blocker]), daemon=True)
    driver.start()
    assert started.wait(timeout=5)

    t0 = time.perf_counter()
    pools.close()
    assert time.perf_counter() - t0 < 5
    assert "Abandoning 1" in capsys.readouterr().err

    release.set()
    driver.join(timeout=5)
    assert not driver.is_alive()
