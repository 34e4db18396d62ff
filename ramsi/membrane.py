"""Bilayer analysis: leaflet sorting, thickness, curvature and area per lipid."""

from __future__ import annotations

import math
import os
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import TextIO

import numpy as np

from .light_array import LightArray
from .residue import Residue
from .small_functions import backup_old_file, wrap


@dataclass
class Snapshot:
    """Atom coordinates of one trajectory frame in an orthorhombic box.

    ``coords`` has one ``(x, y, z)`` row per atom.  ``box`` holds the three
    box lengths, or a 3x3 box matrix whose diagonal is used.
    """

    coords: np.ndarray
    box: np.ndarray
    time: float = 0.0
    step: int = 0

    def __post_init__(self) -> None:
        coords = np.asarray(self.coords, dtype=float)
        if coords.ndim != 2 or coords.shape[1] != 3:
            raise ValueError("Coordinates must have shape (n_atoms, 3)")
        box = np.asarray(self.box, dtype=float)
        if box.shape == (3, 3):
            box = np.diagonal(box).copy()
        if box.shape != (3,):
            raise ValueError("Box must hold three lengths or a 3x3 matrix")
        self.coords = coords
        self.box = box
        self.time = float(self.time)

    @property
    def num_atoms(self) -> int:
        """Number of atoms in the frame."""
        return self.coords.shape[0]


def _plane_dist2(point: np.ndarray, points: np.ndarray, box: np.ndarray) -> np.ndarray:
    """Squared xy distances from ``point`` to ``points`` using minimum images."""
    diff = points - point
    diff = diff - box * np.floor(diff / box + 0.5)
    return (diff * diff).sum(axis=-1)


def _to_light_array(values: np.ndarray) -> LightArray:
    nx, ny = values.shape
    array = LightArray(nx, ny)
    for (i, j), value in np.ndenumerate(values):
        array[i, j] = float(value)
    return array


def _ratio(numerator: float, denominator: float) -> float:
    with np.errstate(divide="ignore", invalid="ignore"):
        return float(np.float64(numerator) / np.float64(denominator))


class Membrane:
    """Running analysis of a lipid bilayer over the frames of a trajectory.

    On construction the files ``APL.dat`` and ``avg_thickness.dat`` are
    opened in ``directory`` (the working directory by default), backing up
    any files already there.
    """

    def __init__(
        self,
        residues: Sequence[Residue],
        frame: Snapshot,
        resolution: int = 100,
        blocks: int = 4,
        header: bool = True,
        directory: str | os.PathLike | None = None,
    ) -> None:
        self._residues = residues
        self._header = bool(header)
        self._directory = Path(directory) if directory is not None else Path(".")

        self._upper_heads: list[int] = []
        self._lower_heads: list[int] = []
        self._protein_atoms: list[int] = []
        self._protein = False
        self._upper_pair: dict[int, float] = {}
        self._lower_pair: dict[int, float] = {}
        self._num_lipids = 0
        self._num_frames = 0
        self._upper_ppl: dict[str, int] = {}
        self._lower_ppl: dict[str, int] = {}
        self._upper_num_res: dict[str, int] = {}
        self._lower_num_res: dict[str, int] = {}

        self._box = frame.box.copy()
        self._grid = 0
        self._step = np.zeros(2)
        self._thickness = LightArray()
        self._curv_mean = LightArray()
        self._curv_gaussian = LightArray()
        self._closest_upper = np.zeros((0, 0), dtype=int)
        self._closest_lower = np.zeros((0, 0), dtype=int)

        self._apl_file: TextIO | None = None
        self._avg_file: TextIO | None = None

        self.set_resolution(resolution)
        self.sort_bilayer(frame, blocks)
        try:
            self._prep_area_per_lipid()
            self._prep_avg_thickness()
        except BaseException:
            self.close()
            raise

    # ------------------------------------------------------------------
    # Read-only views of the running state

    @property
    def upper_heads(self) -> list[int]:
        """Reference atoms of the upper leaflet."""
        return list(self._upper_heads)

    @property
    def lower_heads(self) -> list[int]:
        """Reference atoms of the lower leaflet."""
        return list(self._lower_heads)

    @property
    def protein_atoms(self) -> list[int]:
        """Protein atoms lying between the leaflets' extremes."""
        return list(self._protein_atoms)

    @property
    def num_lipids(self) -> int:
        """Total number of lipids considered."""
        return self._num_lipids

    @property
    def num_frames(self) -> int:
        """Frames accumulated since the last reset."""
        return self._num_frames

    @property
    def grid(self) -> int:
        """Number of grid points along x and along y."""
        return self._grid

    @property
    def upper_residue_counts(self) -> dict[str, int]:
        """Lipids of each residue type in the upper leaflet."""
        return dict(self._upper_num_res)

    @property
    def lower_residue_counts(self) -> dict[str, int]:
        """Lipids of each residue type in the lower leaflet."""
        return dict(self._lower_num_res)

    @property
    def upper_area_counts(self) -> dict[str, int]:
        """Grid points claimed by each residue type in the upper leaflet."""
        return dict(self._upper_ppl)

    @property
    def lower_area_counts(self) -> dict[str, int]:
        """Grid points claimed by each residue type in the lower leaflet."""
        return dict(self._lower_ppl)

    @property
    def thickness_grid(self) -> LightArray:
        """Copy of the accumulated thickness grid."""
        return self._thickness.copy()

    @property
    def mean_curvature(self) -> LightArray:
        """Copy of the smoothed mean curvature grid."""
        return self._curv_mean.copy()

    @property
    def gaussian_curvature(self) -> LightArray:
        """Copy of the smoothed Gaussian curvature grid."""
        return self._curv_gaussian.copy()

    # ------------------------------------------------------------------

    def _block_of(self, coord: np.ndarray, blocks: int) -> tuple[int, int]:
        x = wrap(int(coord[0] * blocks / self._box[0]), 0, blocks)
        y = wrap(int(coord[1] * blocks / self._box[1]), 0, blocks)
        return x, y

    def sort_bilayer(self, frame: Snapshot, blocks: int = 4) -> None:
        """Assign lipid reference atoms to the upper or lower leaflet.

        The membrane midplane is estimated separately in ``blocks`` x
        ``blocks`` cells to allow for curvature.
        """
        if blocks <= 0:
            raise ValueError("Number of blocks must be positive")

        self._num_lipids = 0
        self._upper_heads.clear()
        self._lower_heads.clear()
        self._protein_atoms.clear()
        self._lower_num_res.clear()
        self._upper_num_res.clear()

        self._box = frame.box.copy()
        coords = frame.coords

        block_avg_z = LightArray(blocks, blocks)
        block_count = LightArray(blocks, blocks)

        lipids: list[tuple[Residue, list[int]]] = []
        for res in self._residues:
            if res.ref_atom < 0:
                continue
            self._num_lipids += res.num_residues
            atoms = [
                res.ref_atom + i * res.num_atoms + res.start
                for i in range(res.num_residues)
            ]
            lipids.append((res, atoms))
            for num in atoms:
                x, y = self._block_of(coords[num], blocks)
                block_avg_z[x, y] += float(coords[num, 2])
                block_count[x, y] += 1

        block_avg_z /= block_count

        minz = block_avg_z.mean()
        maxz = minz

        for res, atoms in lipids:
            lower = upper = 0
            for num in atoms:
                x, y = self._block_of(coords[num], blocks)
                z = float(coords[num, 2])
                minz = min(minz, z)
                maxz = max(maxz, z)
                if z < block_avg_z[x, y]:
                    self._lower_heads.append(num)
                    lower += 1
                    self._lower_num_res[res.resname] = (
                        self._lower_num_res.get(res.resname, 0) + 1
                    )
                else:
                    self._upper_heads.append(num)
                    upper += 1
                    self._upper_num_res[res.resname] = (
                        self._upper_num_res.get(res.resname, 0) + 1
                    )
            print(f"{res.resname:>5}: {lower:4d} lower, {upper:4d} upper")

        for res in self._residues:
            if res.resname != "PROT" or res.ref_atom_name != "ALL":
                continue
            self._protein_atoms.extend(
                i for i in range(res.start, res.end) if minz < coords[i, 2] < maxz
            )
            self._protein = True

    def thickness(self, frame: Snapshot, with_reset: bool = False) -> float:
        """Accumulate the thickness of this frame and return its average."""
        if with_reset:
            self.reset()

        self._box = frame.box.copy()
        self._step = self._box[:2] / self._grid

        self._upper_pair = self._make_pairs(frame, self._upper_heads, self._lower_heads)
        upper = self._closest_lipid(
            frame, self._upper_heads, self._upper_pair, self._upper_ppl,
            self._closest_upper,
        )
        self._lower_pair = self._make_pairs(frame, self._lower_heads, self._upper_heads)
        lower = self._closest_lipid(
            frame, self._lower_heads, self._lower_pair, self._lower_ppl,
            self._closest_lower,
        )

        avg_thickness = (upper + lower) / 2
        self._require_open(self._avg_file).write(
            f"{frame.time:8.3f}{avg_thickness:8.3f}\n"
        )
        self._num_frames += 1
        return avg_thickness

    def _make_pairs(
        self, frame: Snapshot, ref: list[int], other: list[int]
    ) -> dict[int, float]:
        """Vertical distance from each reference lipid to the closest in ``other``."""
        coords = frame.coords
        limit = self._box[0] * self._box[1]
        others = coords[other] if other else np.empty((0, 3))
        pairs: dict[int, float] = {}
        for i in ref:
            r_i = coords[i]
            z_other = 0.0
            if len(others):
                dist2 = _plane_dist2(r_i[:2], others[:, :2], frame.box[:2])
                k = int(np.argmin(dist2))
                if dist2[k] < limit:
                    z_other = float(others[k, 2])
            pairs[i] = abs(float(r_i[2]) - z_other)
        return pairs

    def _closest_lipid(
        self,
        frame: Snapshot,
        ref: list[int],
        pairs: dict[int, float],
        res_ppl: dict[str, int],
        closest: np.ndarray,
    ) -> float:
        """Give every grid point the thickness of its nearest lipid in ``ref``.

        Grid points closer to a protein atom than to any lipid are skipped.
        Returns the average over the grid points used.
        """
        if not ref:
            raise ValueError("Leaflet contains no reference atoms")

        coords = frame.coords
        box2 = frame.box[:2]
        limit = self._box[0] * self._box[1]
        grid = self._grid

        ref_index = np.asarray(ref)
        ref_xy = coords[ref_index, :2]
        pair_values = np.array([pairs[r] for r in ref])
        prot_xy = (
            coords[self._protein_atoms, :2]
            if self._protein and self._protein_atoms
            else None
        )

        hits = np.zeros(len(ref), dtype=int)
        total = 0.0
        n_vals = 0
        ys = (np.arange(grid) + 0.5) * self._step[1]
        columns = np.arange(grid)

        for i in range(grid):
            points = np.column_stack((np.full(grid, (i + 0.5) * self._step[0]), ys))
            dist2 = _plane_dist2(points[:, None, :], ref_xy[None, :, :], box2)
            nearest = np.argmin(dist2, axis=1)
            best = dist2[columns, nearest]
            valid = best < limit
            if prot_xy is not None:
                prot_dist2 = _plane_dist2(points[:, None, :], prot_xy[None, :, :], box2)
                valid &= ~(prot_dist2 < best[:, None]).any(axis=1)

            used = np.flatnonzero(valid)
            chosen = nearest[used]
            closest[i, used] = ref_index[chosen]
            values = pair_values[chosen]
            total += float(values.sum())
            n_vals += used.size
            np.add.at(hits, chosen, 1)
            for j, value in zip(used.tolist(), values.tolist()):
                self._thickness[i, j] += value

        for k in np.flatnonzero(hits):
            atom = ref[k]
            for res in self._residues:
                if res.start <= atom < res.end:
                    res_ppl[res.resname] = res_ppl.get(res.resname, 0) + int(hits[k])

        return total / n_vals if n_vals else math.nan

    def curvature(self, frame: Snapshot) -> None:
        """Estimate mean and Gaussian curvature by second-order finite differences."""
        z = frame.coords[:, 2]
        avg_z = (z[self._closest_upper] + z[self._closest_lower]) / 2.0

        inv_h2_x = 1.0 / (self._step[0] * self._step[0])
        inv_h2_y = 1.0 / (self._step[1] * self._step[1])

        d2x = np.zeros_like(avg_z)
        d2y = np.zeros_like(avg_z)
        centre = avg_z[1:-1, 1:-1]
        d2x[1:-1, 1:-1] = inv_h2_x * (avg_z[2:, 1:-1] + avg_z[:-2, 1:-1] - 2 * centre)
        d2y[1:-1, 1:-1] = inv_h2_y * (avg_z[1:-1, 2:] + avg_z[1:-1, :-2] - 2 * centre)

        self._curv_mean = _to_light_array((d2x + d2y) / 2.0)
        self._curv_gaussian = _to_light_array(d2x * d2y)
        self._curv_mean.smooth(5)
        self._curv_gaussian.smooth(5)

    def _output_path(self, filename: str | os.PathLike) -> Path:
        return self._directory / f"{os.fspath(filename)}.dat"

    def _grid_header(self, handle: TextIO, legend: str) -> None:
        handle.write(f"@legend {legend}\n")
        handle.write("@xlabel X (nm)\n")
        handle.write("@ylabel Y (nm)\n")
        handle.write(f"@xwidth {self._box[0]:f}\n")
        handle.write(f"@ywidth {self._box[1]:f}\n")

    def write_curvature(self, filename: str | os.PathLike) -> Path:
        """Write the mean curvature grid to ``<filename>.dat``."""
        path = self._output_path(filename)
        backup_old_file(path)
        with open(path, "w") as handle:
            if self._header:
                self._grid_header(handle, "Membrane mean curvature")
            handle.write(self._curv_mean.format("%8.3f"))
        return path

    def _prep_area_per_lipid(self) -> None:
        path = self._directory / "APL.dat"
        backup_old_file(path)
        self._apl_file = open(path, "w")
        if self._header:
            self._apl_file.write("@legend Area Per Lipid\n")
            self._apl_file.write("@xlabel Time (ps)\n")
            self._apl_file.write("@ylabel APL (nm^2)\n")
        names = [*sorted(self._upper_ppl), *sorted(self._lower_ppl)]
        self._apl_file.write("".join(f"{name:>5}" for name in names) + "\n")

    def _prep_avg_thickness(self) -> None:
        path = self._directory / "avg_thickness.dat"
        backup_old_file(path)
        self._avg_file = open(path, "w")
        if self._header:
            # The legend for average thickness goes with the area per lipid output.
            apl = self._require_open(self._apl_file)
            apl.write("@legend Average Thickness\n")
            apl.write("@xlabel Time (ps)\n")
            apl.write("@ylabel Thickness (nm)\n")

    def write_area_per_lipid(self, time: float) -> None:
        """Append the area per lipid of every residue type in both leaflets."""
        cell_area = self._step[0] * self._step[1]
        values = [
            _ratio(count * cell_area, self._num_frames * self._upper_num_res[name])
            for name, count in sorted(self._upper_ppl.items())
        ]
        values += [
            _ratio(count * cell_area, self._num_frames * self._lower_num_res[name])
            for name, count in sorted(self._lower_ppl.items())
        ]
        line = f"{time:12.3f}" + "".join(f"{value:12.3f}" for value in values)
        self._require_open(self._apl_file).write(line + "\n")

    def mean(self) -> float:
        """Average of the thickness grid."""
        return self._thickness.mean()

    def normalize(self, smooth_iter: int = 1) -> None:
        """Smooth the thickness grid and divide by the number of leaflet samples."""
        self._thickness.smooth(smooth_iter)
        self._thickness /= 2 * self._num_frames

    def write_thickness(self, filename: str | os.PathLike) -> Path:
        """Write the thickness grid to ``<filename>.dat``."""
        if not self._header:
            return self._thickness.write_csv(self._directory / os.fspath(filename))
        path = self._output_path(filename)
        backup_old_file(path)
        with open(path, "w") as handle:
            self._grid_header(handle, "Membrane thickness")
        return self._thickness.write_csv(
            self._directory / os.fspath(filename), suppress_backup=True
        )

    def set_resolution(self, n: int) -> None:
        """Use an ``n`` by ``n`` grid over the xy plane."""
        if n <= 0:
            raise ValueError("Resolution must be positive")
        self._grid = n
        self._step = self._box[:2] / n
        self._thickness.alloc(n, n)
        self._closest_upper = np.zeros((n, n), dtype=int)
        self._closest_lower = np.zeros((n, n), dtype=int)
        self._curv_mean.alloc(n, n)
        self._curv_gaussian.alloc(n, n)

    def reset(self) -> None:
        """Clear the running thickness and area totals."""
        self._thickness.zero()
        self._upper_ppl = dict.fromkeys(self._upper_ppl, 0)
        self._lower_ppl = dict.fromkeys(self._lower_ppl, 0)
        self._num_frames = 0

    @staticmethod
    def _require_open(handle: TextIO | None) -> TextIO:
        if handle is None or handle.closed:
            raise ValueError("Output file is closed")
        return handle

    def close(self) -> None:
        """Close the area per lipid and average thickness files."""
        for handle in (self._apl_file, self._avg_file):
            if handle is not None:
                handle.close()

    def __enter__(self) -> Membrane:
        return self

    def __exit__(self, *args) -> None:
        self.close()