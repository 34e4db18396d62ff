"""Small numeric, geometric and file helpers used throughout the package."""

from __future__ import annotations

import math
import os
import struct
import time
from collections.abc import Sequence
from pathlib import Path

_XTC_HEADER_SIZE = 92
_XTC_FRAME_SIZE_OFFSET = 88


def file_exists(name: str | os.PathLike) -> bool:
    """Return True if a file or directory exists at ``name``."""
    return os.path.exists(name)


def file_size(filename: str | os.PathLike) -> int:
    """Return the size of a file in bytes, or -1 if it cannot be read."""
    try:
        return os.stat(filename).st_size
    except OSError:
        return -1


def start_timer() -> float:
    """Return the current wall-clock time in seconds."""
    return time.time()


def end_timer(start: float) -> float:
    """Return the number of seconds elapsed since ``start``."""
    return start_timer() - start


def backup_old_file(name: str | os.PathLike) -> Path | None:
    """Move an existing file out of the way so it will not be overwritten.

    The file is renamed to ``#<name>#<n>`` in the same directory, using the
    first free number ``n`` counting from 1.  Returns the backup path, or
    None when there was nothing to back up.
    """
    path = Path(name)
    if not path.exists():
        return None

    prefix = f"#{path.name}#"
    number = 1
    while path.with_name(f"{prefix}{number}").exists():
        number += 1
    target = path.with_name(f"{prefix}{number}")
    try:
        path.rename(target)
    except OSError as exc:
        raise OSError(f"File {path} could not be backed up") from exc
    return target


def split_text_output(name: str, start: float) -> None:
    """Print a section divider, with the time taken if it is noticeable."""
    elapsed = end_timer(start)
    print()
    if elapsed > 0.1:
        print("-" * 20)
        print(f"{elapsed} seconds")
    print("=" * 20)
    print(name)
    print("-" * 20)


def dot(a: Sequence[float], b: Sequence[float]) -> float:
    """Dot product of the first three components of two vectors."""
    return a[0] * b[0] + a[1] * b[1] + a[2] * b[2]


def cross(a: Sequence[float], b: Sequence[float]) -> list[float]:
    """Cross-product style combination of two 3d vectors.

    The middle component is ``a0*b2 - a2*b0``; magnitudes agree with the
    usual cross product.
    """
    return [
        a[1] * b[2] - a[2] * b[1],
        a[0] * b[2] - a[2] * b[0],
        a[0] * b[1] - a[1] * b[0],
    ]


def det(a: Sequence[float], b: Sequence[float], c: Sequence[float]) -> float:
    """Determinant of the 3x3 matrix with rows ``a``, ``b`` and ``c``."""
    return (
        a[0] * b[1] * c[2]
        - a[0] * b[2] * c[1]
        - a[1] * b[0] * c[2]
        + a[1] * b[2] * c[0]
        + a[2] * b[0] * c[1]
        - a[2] * b[1] * c[0]
    )


def nint(value: float) -> int:
    """Round to the nearest integer, halves rounding up."""
    return math.floor(value + 0.5)


def _minimum_image(vec: Sequence[float], pbc: Sequence[float]) -> list[float]:
    return [vec[i] - pbc[i] * nint(vec[i] / pbc[i]) for i in range(3)]


def norm(vec: Sequence[float], pbc: Sequence[float] | None = None) -> float:
    """Length of a 3d vector, optionally after minimum-image wrapping."""
    if pbc is not None:
        vec = _minimum_image(vec, pbc)
    return math.sqrt(vec[0] * vec[0] + vec[1] * vec[1] + vec[2] * vec[2])


def pbc_wrap(vec: Sequence[float], pbc: Sequence[float]) -> list[float]:
    """Return ``vec`` wrapped into the minimum image of box ``pbc``."""
    return _minimum_image(vec, pbc) + list(vec[3:])


def angle(
    a: Sequence[float], b: Sequence[float], c: Sequence[float] | None = None
) -> float:
    """Angle between two vectors, or the signed angle using a third vector."""
    if c is None:
        return math.atan2(norm(cross(a, b)), dot(a, b))
    return math.atan2(det(a, b, c), dot(a, b))


def subtract(a: Sequence[float], b: Sequence[float]) -> list[float]:
    """Element-wise difference ``a - b``."""
    if len(a) != len(b):
        raise ValueError("Vectors must have the same length")
    return [x - y for x, y in zip(a, b)]


def dist_sqr(c1: Sequence[float], c2: Sequence[float]) -> float:
    """Squared distance between two points in 3d."""
    return sum((c1[i] - c2[i]) ** 2 for i in range(3))


def dist_sqr_plane(
    c1: Sequence[float], c2: Sequence[float], pbc: Sequence[float] | None = None
) -> float:
    """Squared distance in the xy plane, optionally with periodic boundaries."""
    if pbc is None:
        return (c1[0] - c2[0]) ** 2 + (c1[1] - c2[1]) ** 2
    diff = pbc_wrap(subtract(c2, c1), pbc)
    return diff[0] * diff[0] + diff[1] * diff[1]


def wrap(value, lower, upper):
    """Wrap ``value`` into the half-open range ``[lower, upper)``."""
    span = upper - lower
    if all(isinstance(v, int) for v in (value, lower, upper)):
        if value < lower:
            value += span * ((lower - value) // span + 1)
        return lower + (value - lower) % span
    if value < lower:
        value += span * math.floor((lower - value) / span + 1)
    return lower + math.fmod(value - lower, span)


def wrap_one_eighty(value: float) -> float:
    """Wrap an angle in degrees into ``[-180, 180)``."""
    return wrap(float(value), -180.0, 180.0)


def wrap_pi(value: float) -> float:
    """Wrap an angle in radians into ``[-pi, pi)``."""
    return wrap(float(value), -math.pi, math.pi)


def xtc_num_frames(path: str | os.PathLike) -> int:
    """Count the frames in an XTC trajectory by skipping from header to header."""
    frames = 0
    with open(path, "rb") as xtc:
        while len(header := xtc.read(_XTC_HEADER_SIZE)) == _XTC_HEADER_SIZE:
            frames += 1
            (frame_size,) = struct.unpack_from(">I", header, _XTC_FRAME_SIZE_OFFSET)
            xtc.seek((frame_size + 3) & ~3, os.SEEK_CUR)
    return frames


def vector_mean(values: Sequence[float]) -> float:
    """Arithmetic mean of a sequence of numbers."""
    if not values:
        raise ValueError("Cannot take the mean of no values")
    return sum(values) / len(values)


def vector_stderr(values: Sequence[float]) -> float:
    """Standard error of the mean of a sequence of numbers."""
    if not values:
        raise ValueError("Cannot take the standard error of no values")
    total = sum(values)
    total_sq = sum(v * v for v in values)
    n = len(values)
    variance = (n * total_sq - total * total) / (n * n)
    return math.sqrt(variance / n)