from __future__ import annotations

from typing import BinaryIO

from readbench.config import DEFAULT_BUFFER_SIZE, MAX_BUFFER_SIZE, MAX_INITIAL_BUFFER_SIZE

UNKNOWN_SIZE = -1


class CapacityExceededError(OSError):
    """Raised when a stream needs a buffer larger than the supported maximum."""

    def __init__(self, requested: int, maximum: int) -> None:
        self.requested = requested
        self.maximum = maximum
        super().__init__(
            f"Required buffer size {requested} exceeds maximum of {maximum} bytes"
        )


def initial_buffer_size(
    size_hint: int,
    default_buffer_size: int = DEFAULT_BUFFER_SIZE,
    max_initial_buffer_size: int = MAX_INITIAL_BUFFER_SIZE,
) -> int:
    """Pick the first allocation for a read.

    A missing hint (anything below 1) falls back to the default. A usable hint
    is capped so a bogus size can never force a huge allocation on its own.
    """
    if size_hint < 1:
        return default_buffer_size
    return min(size_hint, max_initial_buffer_size)


def growth_steps(length: int, initial_size: int) -> int:
    """Number of doublings needed before a buffer of initial_size holds length bytes."""
    steps = 0
    size = initial_size
    while size < length:
        size *= 2
        steps += 1
    return steps


def read_fully(
    stream: BinaryIO,
    size_hint: int = UNKNOWN_SIZE,
    *,
    default_buffer_size: int = DEFAULT_BUFFER_SIZE,
    max_initial_buffer_size: int = MAX_INITIAL_BUFFER_SIZE,
    max_buffer_size: int = MAX_BUFFER_SIZE,
) -> tuple[bytes, int]:
    """Read a stream to exhaustion, growing the buffer geometrically.

    Returns the content and its exact length. Raises CapacityExceededError if
    the hint or the data would need more than max_buffer_size bytes; errors
    from the stream itself propagate unchanged.
    """
    if size_hint > max_buffer_size:
        raise CapacityExceededError(size_hint, max_buffer_size)

    size = min(
        initial_buffer_size(size_hint, default_buffer_size, max_initial_buffer_size),
        max_buffer_size,
    )
    buf = bytearray(size)
    pos = 0
    while True:
        while pos < len(buf):
            with memoryview(buf) as view:
                n = stream.readinto(view[pos:])
            if not n:
                del buf[pos:]
                return bytes(buf), pos
            pos += n

        # Buffer is full; with an exact hint the next read hits end of stream.
        extra = stream.read(1)
        if not extra:
            return bytes(buf), pos
        if len(buf) >= max_buffer_size:
            raise CapacityExceededError(len(buf) + 1, max_buffer_size)

        buf.extend(bytes(min(len(buf) * 2, max_buffer_size) - len(buf)))
        buf[pos] = extra[0]
        pos += 1
