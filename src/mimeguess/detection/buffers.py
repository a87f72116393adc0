"""Byte-window reads and pattern helpers used by the signature matcher."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Union

from .models import Pattern

PathLike = Union[str, os.PathLike]


def read_bytes(path: PathLike, offset: int, length: int) -> bytes:
    """Read up to ``length`` bytes starting at ``offset``.

    Args:
        path: File to read.
        offset: Byte position to seek to before reading.
        length: Maximum number of bytes to return.

    Returns:
        bytes: Exactly ``length`` bytes when the file is long enough, fewer otherwise.

    Raises:
        OSError: If the file cannot be opened or read.
        ValueError: If ``offset`` or ``length`` is negative.
    """
    if offset < 0 or length < 0:
        raise ValueError("offset and length must be non-negative")

    with Path(path).open("rb") as fh:
        fh.seek(offset)
        chunks: list[bytes] = []
        remaining = length
        while remaining:
            chunk = fh.read(remaining)
            if not chunk:
                break
            chunks.append(chunk)
            remaining -= len(chunk)
    return b"".join(chunks)


def read_tail(path: PathLike, length: int) -> bytes:
    """Read the last ``length`` bytes of a file, or the whole file when shorter."""
    if length < 0:
        raise ValueError("length must be non-negative")

    with Path(path).open("rb") as fh:
        size = os.fstat(fh.fileno()).st_size
        fh.seek(max(0, size - length))
        return fh.read(length)


def build_pattern(*parts: Union[bytes, int]) -> Pattern:
    """Assemble a pattern from literal byte strings and wildcard gaps.

    Byte strings contribute their bytes; an integer ``n`` contributes ``n``
    wildcard positions.
    """
    pattern: list[int | None] = []
    for part in parts:
        if isinstance(part, int):
            pattern.extend([None] * part)
        else:
            pattern.extend(part)
    return tuple(pattern)


def matches_at(buffer: bytes, pattern: Pattern, offset: int) -> bool:
    """Return True when ``pattern`` matches ``buffer`` starting at ``offset``.

    Positions past the end of ``buffer`` never match, wildcards included.
    """
    if offset + len(pattern) > len(buffer):
        return False
    for index, expected in enumerate(pattern):
        if expected is not None and buffer[offset + index] != expected:
            return False
    return True


def format_pattern(pattern: Pattern) -> str:
    """Render a pattern as space separated hex with ``??`` for wildcards."""
    return " ".join("??" if value is None else f"{value:02X}" for value in pattern)


__all__ = ["read_bytes", "read_tail", "build_pattern", "matches_at", "format_pattern"]
