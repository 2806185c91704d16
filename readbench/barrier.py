from __future__ import annotations

import sys
import threading
import time
from collections.abc import Callable, Iterable, Sequence
from concurrent.futures import Future, ThreadPoolExecutor, wait
from dataclasses import dataclass
from typing import Any

from readbench.config import CONCURRENCY_LEVELS, POOL_SHUTDOWN_TIMEOUT


@dataclass(frozen=True)
class TaskResult:
    index: int
    value: Any = None
    error: BaseException | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class BatchResult:
    elapsed: float
    results: list[TaskResult]

    @property
    def failures(self) -> list[TaskResult]:
        return [r for r in self.results if not r.ok]

    @property
    def attempted(self) -> int:
        return len(self.results)


def _guarded(index: int, task: Callable[[], Any]) -> TaskResult:
    try:
        return TaskResult(index=index, value=task())
    except Exception as e:
        print(f"Read task {index} failed: {e}", file=sys.stderr)
        return TaskResult(index=index, error=e)


def run_batch(pool: ThreadPoolExecutor, tasks: Iterable[Callable[[], Any]]) -> BatchResult:
    """Run every task on pool and block until all of them have finished.

    A failing task is reported and recorded in its TaskResult; it never
    cancels its siblings. Elapsed time covers submission of the first task
    through completion of the last.
    """
    start = time.perf_counter()
    futures = [pool.submit(_guarded, i, task) for i, task in enumerate(tasks)]
    wait(futures)
    elapsed = time.perf_counter() - start
    return BatchResult(elapsed=elapsed, results=[f.result() for f in futures])


class PoolManager:
    """Owns one fixed-size thread pool per concurrency level."""

    def __init__(
        self,
        levels: Sequence[int] = CONCURRENCY_LEVELS,
        shutdown_timeout: float = POOL_SHUTDOWN_TIMEOUT,
    ) -> None:
        self.shutdown_timeout = shutdown_timeout
        self._pools: dict[int, ThreadPoolExecutor] = {
            n: ThreadPoolExecutor(max_workers=n, thread_name_prefix=f"readbench-{n}")
            for n in levels
        }
        self._inflight: set[Future] = set()
        self._lock = threading.Lock()
        self._closed = False

    @property
    def levels(self) -> list[int]:
        return list(self._pools)

    def pool(self, level: int) -> ThreadPoolExecutor:
        if self._closed:
            raise RuntimeError("PoolManager is closed")
        return self._pools[level]

    def run_batch(self, level: int, tasks: Iterable[Callable[[], Any]]) -> BatchResult:
        return run_batch(_TrackingPool(self, self.pool(level)), tasks)

    def _untrack(self, future: Future) -> None:
        with self._lock:
            self._inflight.discard(future)

    def close(self) -> None:
        """Give in-flight work a grace period, then cancel whatever is still queued."""
        if self._closed:
            return
        self._closed = True
        with self._lock:
            pending = set(self._inflight)
        if pending:
            _, not_done = wait(pending, timeout=self.shutdown_timeout)
            if not_done:
                print(
                    f"Abandoning {len(not_done)} read task(s) still running after "
                    f"{self.shutdown_timeout:.1f}s",
                    file=sys.stderr,
                )
        for pool in self._pools.values():
            pool.shutdown(wait=False, cancel_futures=True)

    def __enter__(self) -> PoolManager:
        return self

    def __exit__(self, *_) -> None:
        self.close()


class _TrackingPool:
    def __init__(self, manager: PoolManager, pool: ThreadPoolExecutor) -> None:
        self._manager = manager
        self._pool = pool

    def submit(self, fn, *args, **kwargs) -> Future:
        manager = self._manager
        with manager._lock:
            future = self._pool.submit(fn, *args, **kwargs)
            manager._inflight.add(future)
        future.add_done_callback(manager._untrack)
        return future
