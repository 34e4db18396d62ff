"""A small two-dimensional array of numbers with grid helpers."""

from __future__ import annotations

import os
from pathlib import Path

import numpy as np

from .small_functions import backup_old_file


class LightArray:
    """A rectangular grid of floats, indexed as ``array[x, y]`` or ``array[x]``."""

    def __init__(self, x: int = 0, y: int = 1, safe: bool = True) -> None:
        self._safe = safe
        self._data = np.zeros((0, 0))
        self.alloc(x, y)

    @property
    def shape(self) -> tuple[int, int]:
        """The grid dimensions ``(x, y)``."""
        return self._data.shape

    def alloc(self, x: int, y: int = 1) -> None:
        """Resize the grid to ``x`` by ``y``; zero it if the array is safe."""
        if x < 0 or y < 0:
            raise ValueError("Array dimensions must not be negative")
        self._data = np.zeros((x, y)) if self._safe else np.empty((x, y))

    def zero(self, init: float = 0) -> None:
        """Set every element to ``init``."""
        self._data.fill(init)

    def _index(self, index) -> tuple[int, int]:
        x, y = index if isinstance(index, tuple) else (index, 0)
        nx, ny = self._data.shape
        if not (0 <= x < nx and 0 <= y < ny):
            raise IndexError(f"Index ({x}, {y}) out of range for shape ({nx}, {ny})")
        return int(x), int(y)

    def __getitem__(self, index) -> float:
        return float(self._data[self._index(index)])

    def __setitem__(self, index, value) -> None:
        self._data[self._index(index)] = value

    def at(self, x: int, y: int = 0) -> float:
        """Read an element, wrapping indices periodically."""
        nx, ny = self._data.shape
        return float(self._data[x % nx, y % ny])

    def sum(self) -> float:
        """Sum of all elements."""
        return float(self._data.sum())

    def mean(self) -> float:
        """Mean of all elements."""
        return self.sum() / self._data.size

    def smooth(self, n_iter: int = 1) -> None:
        """Apply red-black Gauss-Seidel smoothing passes to the grid interior."""
        nx, ny = self._data.shape
        if nx < 3 or ny < 3:
            return
        rows, cols = np.indices((nx - 2, ny - 2)) + 1
        masks = [(rows + cols) % 2 == parity for parity in (0, 1)]
        data = self._data
        for colour in range(2 * n_iter):
            interior = data[1:-1, 1:-1]
            laplacian = (
                data[2:, 1:-1]
                + data[:-2, 1:-1]
                + data[1:-1, 2:]
                + data[1:-1, :-2]
                - 4 * interior
            )
            mask = masks[colour % 2]
            interior[mask] += 0.25 * laplacian[mask]

    def copy(self) -> LightArray:
        """Return an independent copy of this array."""
        other = LightArray(0, 1, self._safe)
        other._data = self._data.copy()
        return other

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, LightArray):
            return NotImplemented
        return self._data.shape == other._data.shape and bool(
            np.array_equal(self._data, other._data)
        )

    __hash__ = None

    def __itruediv__(self, other) -> LightArray:
        if isinstance(other, LightArray):
            if other._data.shape != self._data.shape:
                raise ValueError("Arrays must have the same shape to divide")
            divisor = other._data
        else:
            divisor = other
        with np.errstate(divide="ignore", invalid="ignore"):
            self._data /= divisor
        return self

    def format(self, fmt: str = "%8.3f") -> str:
        """Render the grid as text, one row per line."""
        return _format_rows(self._data, fmt)

    def write_csv(
        self,
        filename: str | os.PathLike,
        suppress_backup: bool = False,
        remove_border: int = 0,
    ) -> Path:
        """Append the grid to ``<filename>.dat``, optionally trimming a border."""
        if remove_border < 0:
            raise ValueError("remove_border must not be negative")
        path = Path(f"{os.fspath(filename)}.dat")
        if not suppress_backup:
            backup_old_file(path)
        r = remove_border
        nx, ny = self._data.shape
        with open(path, "a") as handle:
            handle.write(_format_rows(self._data[r : nx - r, r : ny - r], "%8.3f"))
        return path


def _format_rows(data: np.ndarray, fmt: str) -> str:
    return "".join("".join(fmt % value for value in row) + "\n" for row in data)