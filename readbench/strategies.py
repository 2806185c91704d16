from __future__ import annotations

import mmap
import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import TYPE_CHECKING

from readbench.config import BenchmarkConfig
from readbench.reader import read_fully

if TYPE_CHECKING:
    from typing import ClassVar


class ReadStrategy(ABC):
    """Base class for whole-file reading techniques."""

    name: ClassVar[str]
    label: ClassVar[str]

    def __init__(self, config: BenchmarkConfig | None = None) -> None:
        self.config = config or BenchmarkConfig()

    @abstractmethod
    def read(self, path: Path) -> int:
        """Read the whole file and return the number of bytes read."""

    def is_available(self) -> bool:
        return True

    def column(self, concurrency: int) -> str:
        return f"{self.label}{concurrency}"


class StreamRead(ReadStrategy):
    name = "stream"
    label = "Stream"

    def read(self, path: Path) -> int:
        with open(path, "rb") as f:
            _, n = read_fully(
                f, os.fstat(f.fileno()).st_size, **self.config.reader_options()
            )
        return n


class MappedRead(ReadStrategy):
    name = "mapped"
    label = "Mapped"

    def read(self, path: Path) -> int:
        with open(path, "rb") as f:
            size = os.fstat(f.fileno()).st_size
            if size == 0:
                # mmap refuses empty mappings
                return 0
            with mmap.mmap(f.fileno(), size, access=mmap.ACCESS_READ) as mm:
                if hasattr(mm, "madvise") and hasattr(mmap, "MADV_WILLNEED"):
                    mm.madvise(mmap.MADV_WILLNEED)
                data = mm[:]
        return len(data)

    def is_available(self) -> bool:
        return hasattr(mmap, "mmap")


ALL_STRATEGIES: list[type[ReadStrategy]] = [StreamRead, MappedRead]
