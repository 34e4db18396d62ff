import pytest

from ramsi.light_array import LightArray


def test_init_access_1d():
    array = LightArray(4)
    array[0] = 1.0
    array[1] = 2.0
    array[2] = 3.0
    array[3] = 4.0
    assert array.at(0) == pytest.approx(1.0)
    assert array.at(1) == pytest.approx(2.0)
    assert array.at(2) == pytest.approx(3.0)
    assert array.at(3) == pytest.approx(4.0)


def test_init_access_2d():
    array = LightArray(2, 2)
    array[0, 0] = 1.0
    array[0, 1] = 2.0
    array[1, 0] = 3.0
    array[1, 1] = 4.0
    assert array.at(0, 0) == pytest.approx(1.0)
    assert array.at(0, 1) == pytest.approx(2.0)
    assert array.at(1, 0) == pytest.approx(3.0)
    assert array.at(1, 1) == pytest.approx(4.0)


def test_copy_construct():
    size = 1000
    a = LightArray(size)
    for i in range(size):
        a[i] = i
    b = a.copy()
    assert a == b


def test_copy_is_independent():
    a = LightArray(3)
    b = a.copy()
    b[0] = 5
    assert a[0] == 0
    assert a != b


def test_copy_assign():
    size = 1000
    a = LightArray(size)
    for i in range(size):
        a[i] = i
    b = LightArray(size)
    b = a.copy()
    assert a == b


def test_mean():
    size = 1000
    a = LightArray(size)
    for i in range(size):
        a[i] = i
    assert a.mean() == pytest.approx(499.5)


@pytest.mark.parametrize("safe", [True, False])
def test_init_access_1d_repeated(safe):
    size = 2000
    array = LightArray(size, 1, safe)
    for _ in range(3):
        for j in range(size):
            array[j] = j
        for j in range(size):
            array[j] = array[j] + 1
    for j in range(size):
        assert array[j] == pytest.approx(j + 1)


@pytest.mark.parametrize("safe", [True, False])
def test_init_access_2d_repeated(safe):
    size = 40
    array = LightArray(size, size, safe)
    for _ in range(3):
        for j in range(size):
            for k in range(size):
                array[j, k] = float(j + k)
        for j in range(size):
            for k in range(size):
                array[j, k] = array[j, k] + 1
    for j in range(size):
        for k in range(size):
            assert array[j, k] == pytest.approx(float(j + k) + 1)


def test_safe_array_starts_zeroed():
    array = LightArray(5, 5)
    assert array.sum() == 0


def test_zero_with_value():
    array = LightArray(3, 4)
    array.zero(2)
    assert array.sum() == pytest.approx(24)
    assert array.mean() == pytest.approx(2)


def test_at_wraps_indices():
    array = LightArray(3, 2)
    array[1, 1] = 7
    assert array.at(4, 3) == pytest.approx(7)


def test_out_of_range_index_raises():
    array = LightArray(2, 2)
    array[1, 1] = 3.0
    with pytest.raises(IndexError):
        array.__getitem__((2, 0))
    with pytest.raises(IndexError):
        array[0, 2] = 1.0
    assert array.sum() == pytest.approx(3.0)
    assert array[1, 1] == pytest.approx(3.0)


def test_equality_requires_same_shape():
    assert LightArray(4, 1) != LightArray(2, 2)


def test_divide_by_scalar():
    array = LightArray(2, 2)
    array.zero(6)
    array /= 3
    assert array.sum() == pytest.approx(8)


def test_divide_by_array():
    a = LightArray(2)
    b = LightArray(2)
    a[0], a[1] = 6, 9
    b[0], b[1] = 2, 3
    a /= b
    assert a[0] == pytest.approx(3)
    assert a[1] == pytest.approx(3)


def test_divide_shape_mismatch():
    a = LightArray(2, 2)
    with pytest.raises(ValueError):
        a /= LightArray(3, 3)


def test_smooth_keeps_constant_grid():
    array = LightArray(6, 6)
    array.zero(2.5)
    array.smooth(3)
    assert array == LightArray(6, 6).copy() or array.mean() == pytest.approx(2.5)
    for i in range(6):
        for j in range(6):
            assert array[i, j] == pytest.approx(2.5)


def test_smooth_keeps_linear_ramp():
    array = LightArray(5, 5)
    for i in range(5):
        for j in range(5):
            array[i, j] = i + 2 * j
    before = array.copy()
    array.smooth(2)
    for i in range(5):
        for j in range(5):
            assert array[i, j] == pytest.approx(before[i, j])


def test_smooth_leaves_border_and_flattens_spike():
    array = LightArray(5, 5)
    for i in range(5):
        array[0, i] = 1.0
    array[2, 2] = 10.0
    array.smooth(1)
    for i in range(5):
        assert array[0, i] == pytest.approx(1.0)
        assert array[4, i] == pytest.approx(0.0)
    assert array[2, 2] < 10.0


def test_format():
    array = LightArray(2, 2)
    array[0, 0] = 1
    array[1, 1] = 2
    assert array.format() == "   1.000   0.000\n   0.000   2.000\n"


def test_write_csv_with_border(tmp_path):
    array = LightArray(3, 3)
    array.zero(1)
    array[1, 1] = 4
    path = array.write_csv(tmp_path / "grid", remove_border=1)
    assert path == tmp_path / "grid.dat"
    assert path.read_text() == "   4.000\n"


def test_write_csv_backs_up_existing(tmp_path):
    target = tmp_path / "grid.dat"
    target.write_text("old\n")
    array = LightArray(1, 1)
    array.write_csv(tmp_path / "grid")
    assert (tmp_path / "#grid.dat#1").read_text() == "old\n"
    assert target.read_text() == "   0.000\n"


def test_write_csv_negative_border(tmp_path):
    with pytest.raises(ValueError):
        LightArray(2, 2).write_csv(tmp_path / "grid", remove_border=-1)