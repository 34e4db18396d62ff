# ramsi

Tools for analysing lipid bilayers in GROMACS simulations. The package
sorts lipids into leaflets and measures bilayer thickness on a grid. It also
estimates mean and Gaussian curvature and the area per lipid. A small command
reports basic facts about XTC trajectory files.

## Installation

```
pip install .
```

To install the test dependencies as well:

```
pip install ".[test]"
```

## Command line

`xtc-length` reads the frame headers of a GROMACS XTC trajectory. It prints
the number of frames, the time of the last frame in nanoseconds and the
number of atoms:

```
xtc-length md.xtc
```

If no file name is given, or the file cannot be read, it prints an error and
exits with status 1.

## Library overview

### `ramsi.membrane`

`Snapshot` holds one frame. It has an `(n_atoms, 3)` coordinate array and an
orthorhombic box, given either as three lengths or as a 3x3 matrix whose
diagonal is used. It also holds a time and a step.

`Membrane(residues, frame, resolution=100, blocks=4, header=True, directory=None)`
works as follows:

- On construction it sorts the reference atom of every lipid into the upper
  or lower leaflet. The midplane is estimated separately in a
  `blocks` x `blocks` grid of cells. The count for each residue and leaflet is
  printed.
- It opens `APL.dat` and `avg_thickness.dat` in `directory`, which defaults
  to the working directory. Any existing files with those names are backed up
  first.
- `thickness(frame)` adds the frame to an `resolution` x `resolution`
  thickness grid, appends the average to `avg_thickness.dat` and returns it.
  Grid points that are closer to a protein atom than to any lipid are
  skipped. Protein is a residue named `PROT` whose `ref_atom_name` is `ALL`.
- `curvature(frame)` estimates mean and Gaussian curvature by finite
  differences and then smooths them.
- `write_area_per_lipid(time)` appends one line of area per lipid values to
  `APL.dat`.
- `normalize()` and `mean()` finish and summarise the thickness grid.
- `write_thickness(name)` and `write_curvature(name)` write `<name>.dat`
  grids.
- `reset()` clears the running totals.

Use `Membrane` as a context manager so that its output files are closed:

```python
import numpy as np
from ramsi.membrane import Membrane, Snapshot
from ramsi.residue import Residue

lipid = Residue(resname="DPPC", ref_atom=0, num_atoms=1, num_residues=4, start=0)
lipid.calc_total()

coords = np.array([[1.0, 1.0, 2.0], [3.0, 3.0, 2.0],
                   [1.0, 1.0, 6.0], [3.0, 3.0, 6.0]])
frame = Snapshot(coords, box=[4.0, 4.0, 8.0], time=0.0)

with Membrane([lipid], frame, resolution=10, blocks=1, directory="out") as mem:
    print(mem.thickness(frame))
    mem.curvature(frame)
    mem.write_area_per_lipid(frame.time)
    mem.normalize(0)
    mem.write_thickness("thickness_avg")
    mem.write_curvature("curvature_final")
```

### `ramsi.residue`

`Residue` describes one residue type: its name, its reference atom, its
atom and residue counts, and the atom range it occupies. The `set_*` methods
check any value already recorded. When a value conflicts, they raise
`ResidueMismatchError`. `calc_total()` fills in `total_atoms` and `end`, and
`describe()` returns a one-line summary.

### `ramsi.parser`

`Parser` reads GROMACS-style configuration files. These files have
`[ section ]` headers and `;` or `#` comments. It looks up lines and
`key value` pairs within a section. Only the `FileFormat.GROMACS` layout can
be read. The module also defines the `FieldFormat` and `PotentialType`
enumerations.

```python
from ramsi.parser import Parser

with Parser("mem.cfg") as cfg:
    resolution = cfg.get_int_key_from_section("membrane", "resolution", 100)
    blocks = cfg.get_int_key_from_section("membrane", "blocks", 4)
```

### `ramsi.light_array`

`LightArray` is a small 2D grid of floats indexed as `a[x, y]`. It provides:

- periodic read access through `at`;
- `sum` and `mean`;
- a red-black Gauss–Seidel `smooth`;
- in-place division;
- `format` and `write_csv` for output to a `.dat` file.

### `ramsi.small_functions`

- Vector helpers: `dot`, `cross`, `det`, `norm`, `angle`, `subtract`,
  `dist_sqr`, `dist_sqr_plane`, `pbc_wrap`, `nint`, `wrap`, `wrap_pi` and
  `wrap_one_eighty`.
- File helpers: `file_exists` and `file_size`. `backup_old_file` renames an
  existing file to `#name#N`.
- Statistics: `vector_mean` and `vector_stderr`.
- Timing: `start_timer`, `end_timer` and `split_text_output`.
- `xtc_num_frames` counts the frames of an XTC file.

### `ramsi.xtc_length`

`read_xtc_info(path)` returns an `XtcInfo` with the frame count, the atom
count and the time of the last frame. It reads only the frame headers.

## What the package does not do

- It does not decompress XTC coordinates.
- It does not read GRO structure files.
- It does not map atomistic frames to a coarse-grained representation.
- It has no command that runs a whole membrane analysis from a configuration
  file.

To analyse a trajectory, load the coordinates yourself. Then pass each frame
to `Membrane` as a `Snapshot`, with `Residue` objects that describe the system.