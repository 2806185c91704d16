from __future__ import annotations

import sys
import tempfile
from dataclasses import dataclass, field
from pathlib import Path

import numpy as np
from tqdm import tqdm

from readbench.config import FILES_PER_DIR


class GenerationError(OSError):
    """Raised when a file set cannot be fully created.

    The partially created set is attached so the caller can still clean it up.
    """

    def __init__(self, message: str, file_set: FileSet) -> None:
        super().__init__(message)
        self.file_set = file_set


def parse_size(size_str: str) -> int:
    """Parse size string like '500M', '2G' into bytes."""
    size_str = size_str.strip().upper()
    multipliers = {"B": 1, "K": 1024, "M": 1024**2, "G": 1024**3}
    if size_str[-1] in multipliers:
        return int(float(size_str[:-1]) * multipliers[size_str[-1]])
    return int(size_str)


@dataclass
class FileSet:
    root: Path
    files: list[Path] = field(default_factory=list)
    # Every directory and file in creation order, root first
    created: list[Path] = field(default_factory=list)

    @property
    def total_bytes(self) -> int:
        return sum(f.stat().st_size for f in self.files)

    def cleanup(self) -> list[tuple[Path, OSError]]:
        """Delete everything created, newest first. Failures are reported, not raised."""
        failures = []
        for path in reversed(self.created):
            try:
                if path.is_dir():
                    path.rmdir()
                else:
                    path.unlink()
            except OSError as e:
                print(f"Could not delete {path}: {e}", file=sys.stderr)
                failures.append((path, e))
        return failures


def generate_file_set(
    file_count: int,
    file_size: int,
    *,
    shard_size: int = FILES_PER_DIR,
    parent: Path | None = None,
    seed: int | None = None,
    progress: bool = True,
) -> FileSet:
    """Create file_count files of file_size random bytes under a fresh temp dir.

    Files are spread across numbered subdirectories holding at most
    shard_size files each.
    """
    if file_count < 1 or file_size < 0 or shard_size < 1:
        raise ValueError(
            f"Invalid file set: count={file_count}, size={file_size}, shard={shard_size}"
        )

    try:
        root = Path(tempfile.mkdtemp(prefix="readbench_", dir=parent))
    except OSError as e:
        raise GenerationError(f"Could not make temp dir: {e}", FileSet(root=Path())) from e

    file_set = FileSet(root=root, created=[root])
    rng = np.random.default_rng(seed)
    shard: Path | None = None

    with tqdm(
        total=file_count * file_size,
        unit="B",
        unit_scale=True,
        unit_divisor=1024,
        desc=f"Generating {file_count} files",
        leave=False,
        disable=not progress,
    ) as pbar:
        for i in range(file_count):
            try:
                if i % shard_size == 0:
                    shard = root / str(i // shard_size)
                    shard.mkdir()
                    file_set.created.append(shard)

                file_path = shard / str(i)
                with open(file_path, "xb") as f:
                    file_set.created.append(file_path)
                    f.write(rng.bytes(file_size))
            except OSError as e:
                raise GenerationError(f"Could not generate file {i}: {e}", file_set) from e

            file_set.files.append(file_path)
            pbar.update(file_size)

    return file_set
