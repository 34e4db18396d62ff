import numpy as np
import pytest

from ramsi.membrane import Membrane, Snapshot
from ramsi.residue import Residue

UPPER_Z = 4.0
LOWER_Z = 2.0
BOX = (4.0, 4.0, 6.0)
XY = [(0.5, 0.5), (2.5, 0.5), (0.5, 2.5), (2.5, 2.5)]


def _lipids(count=8):
    res = Residue(resname="LIP", ref_atom=0, num_atoms=1, num_residues=count, start=0)
    res.calc_total()
    return res


def _flat_coords():
    upper = [(x, y, UPPER_Z) for x, y in XY]
    lower = [(x, y, LOWER_Z) for x, y in XY]
    return upper + lower


def _flat(time=0.0):
    return Snapshot(_flat_coords(), BOX, time=time)


def _membrane(tmp_path, resolution=4, header=True, residues=None, frame=None):
    residues = residues if residues is not None else [_lipids()]
    frame = frame if frame is not None else _flat()
    return Membrane(residues, frame, resolution, 1, header, tmp_path)


def _numbers(path):
    return [
        [float(v) for v in line.split()]
        for line in path.read_text().splitlines()
        if line.strip() and not line.startswith("@")
    ]


def test_snapshot_takes_box_diagonal():
    frame = Snapshot(_flat_coords(), np.diag(BOX))
    assert list(frame.box) == list(BOX)
    assert frame.num_atoms == 8


def test_snapshot_rejects_bad_shapes():
    with pytest.raises(ValueError):
        Snapshot([(1.0, 2.0)], BOX)
    with pytest.raises(ValueError):
        Snapshot(_flat_coords(), (1.0, 2.0))


def test_sort_bilayer_splits_leaflets(tmp_path):
    with _membrane(tmp_path) as membrane:
        assert membrane.upper_heads == [0, 1, 2, 3]
        assert membrane.lower_heads == [4, 5, 6, 7]
        assert membrane.num_lipids == 8
        assert membrane.upper_residue_counts == {"LIP": 4}
        assert membrane.lower_residue_counts == {"LIP": 4}


def test_thickness_of_flat_bilayer(tmp_path):
    with _membrane(tmp_path) as membrane:
        result = membrane.thickness(_flat(time=5.0))
        assert result == pytest.approx(UPPER_Z - LOWER_Z)
        assert membrane.num_frames == 1
    rows = _numbers(tmp_path / "avg_thickness.dat")
    assert rows == [[pytest.approx(5.0), pytest.approx(UPPER_Z - LOWER_Z)]]


def test_normalize_gives_mean_thickness(tmp_path):
    with _membrane(tmp_path) as membrane:
        membrane.thickness(_flat())
        membrane.thickness(_flat())
        membrane.normalize(0)
        assert membrane.mean() == pytest.approx(UPPER_Z - LOWER_Z)


def test_reset_and_with_reset(tmp_path):
    with _membrane(tmp_path) as membrane:
        membrane.thickness(_flat())
        membrane.thickness(_flat())
        assert membrane.num_frames == 2
        membrane.thickness(_flat(), with_reset=True)
        assert membrane.num_frames == 1
        membrane.reset()
        assert membrane.num_frames == 0
        assert membrane.mean() == 0.0
        assert set(membrane.upper_area_counts.values()) == {0}


def test_area_per_lipid_covers_box(tmp_path):
    with _membrane(tmp_path) as membrane:
        membrane.thickness(_flat())
        assert sum(membrane.upper_area_counts.values()) == membrane.grid**2
        membrane.write_area_per_lipid(10.0)
    rows = _numbers(tmp_path / "APL.dat")
    time, upper_apl, lower_apl = rows[-1]
    assert time == pytest.approx(10.0)
    assert upper_apl * 4 == pytest.approx(BOX[0] * BOX[1])
    assert lower_apl * 4 == pytest.approx(BOX[0] * BOX[1])


def test_apl_file_header(tmp_path):
    with _membrane(tmp_path):
        pass
    lines = (tmp_path / "APL.dat").read_text().splitlines()
    assert lines[0] == "@legend Area Per Lipid"
    assert "@legend Average Thickness" in lines


def test_no_header_when_disabled(tmp_path):
    with _membrane(tmp_path, header=False) as membrane:
        membrane.thickness(_flat())
        membrane.normalize(0)
        path = membrane.write_thickness("thickness")
    assert not any(line.startswith("@") for line in path.read_text().splitlines())
    assert not (tmp_path / "APL.dat").read_text().startswith("@")


def test_write_thickness_with_header_and_backup(tmp_path):
    with _membrane(tmp_path) as membrane:
        membrane.thickness(_flat())
        membrane.normalize(0)
        path = membrane.write_thickness("thickness")
        membrane.write_thickness("thickness")
    text = path.read_text().splitlines()
    assert text[0] == "@legend Membrane thickness"
    rows = _numbers(path)
    assert len(rows) == 4
    assert all(value == pytest.approx(UPPER_Z - LOWER_Z) for row in rows for value in row)
    assert (tmp_path / "#thickness.dat#1").exists()


def test_existing_output_is_backed_up(tmp_path):
    (tmp_path / "APL.dat").write_text("old\n")
    with _membrane(tmp_path):
        pass
    assert (tmp_path / "#APL.dat#1").read_text() == "old\n"


def test_flat_membrane_has_no_curvature(tmp_path):
    with _membrane(tmp_path, resolution=8) as membrane:
        membrane.thickness(_flat())
        membrane.curvature(_flat())
        assert membrane.mean_curvature.sum() == pytest.approx(0.0)
        assert membrane.gaussian_curvature.sum() == pytest.approx(0.0)
        path = membrane.write_curvature("curvature")
    rows = _numbers(path)
    assert len(rows) == 8
    assert all(value == 0.0 for row in rows for value in row)


def test_protein_blocks_grid_points(tmp_path):
    protein = Residue(
        resname="PROT", ref_atom_name="ALL", num_atoms=1, num_residues=1, start=8
    )
    protein.calc_total()
    coords = _flat_coords() + [(1.5, 1.5, 3.0)]
    frame = Snapshot(coords, BOX)
    with _membrane(tmp_path, residues=[_lipids(), protein], frame=frame) as membrane:
        assert membrane.protein_atoms == [8]
        membrane.thickness(frame)
        covered = sum(membrane.upper_area_counts.values())
        assert 0 < covered < membrane.grid**2


def test_bad_resolution_rejected(tmp_path):
    with pytest.raises(ValueError):
        _membrane(tmp_path, resolution=0)


def test_closed_membrane_rejects_writes(tmp_path):
    membrane = _membrane(tmp_path)
    membrane.close()
    with pytest.raises(ValueError):
        membrane.thickness(_flat())