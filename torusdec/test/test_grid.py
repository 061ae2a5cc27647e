import numpy as np
import numpy.testing as npt
import pytest

from torusdec.grid import PeriodicGrid, InvalidArgument, ShapeMismatch, wrap


def test_from_shape():
    grid = PeriodicGrid.from_shape((1, 2, 3), (4, 5, 6))
    assert grid.shape == (4, 5, 6)
    assert grid.size == (1., 2., 3.)
    npt.assert_allclose(grid.spacing, [0.25, 0.4, 0.5])
    assert grid.px.shape == grid.shape
    npt.assert_allclose(grid.px[:, 0, 0], np.arange(4) * 0.25)
    npt.assert_allclose(grid.py[0, :, 0], np.arange(5) * 0.4)
    npt.assert_allclose(grid.pz[0, 0, :], np.arange(6) * 0.5)
    # coordinates are constant along the other axes
    npt.assert_array_equal(grid.px[2], 0.5)


def test_index_tables():
    grid = PeriodicGrid.from_shape((1, 1, 1), (2, 3, 4))
    npt.assert_array_equal(grid.ix, [0, 1])
    npt.assert_array_equal(grid.iz, [0, 1, 2, 3])
    i, j, k = 1, 2, 3
    assert grid.iix[i, j, k] == i
    assert grid.iiy[i, j, k] == j
    assert grid.iiz[i, j, k] == k
    npt.assert_allclose(grid.iiy * grid.dy, grid.py)


def test_cubic():
    grid = PeriodicGrid.cubic((1, 0.5, 0.25), 8)
    assert grid.shape == (8, 4, 2)
    npt.assert_allclose(grid.spacing, 0.125)


def test_cubic_rounds_to_nearest():
    grid = PeriodicGrid.cubic((0.3, 1, 0.55), 10)
    assert grid.shape == (3, 10, 6)


def test_create():
    assert PeriodicGrid.create(1, 2, 3, 4, 5, 6) == PeriodicGrid.from_shape((1, 2, 3), (4, 5, 6))
    assert PeriodicGrid.create(1, 0.5, 0.25, 8) == PeriodicGrid.cubic((1, 0.5, 0.25), 8)


@pytest.mark.parametrize('args', [
    (),
    (1, 1, 1),
    (1, 1, 1, 4, 4),
    (1, 1, 1, 4, 4, 4, 4),
])
def test_create_argument_count(args):
    with pytest.raises(InvalidArgument):
        PeriodicGrid.create(*args)


@pytest.mark.parametrize('size, shape', [
    ((0, 1, 1), (4, 4, 4)),
    ((1, -1, 1), (4, 4, 4)),
    ((1, 1, np.nan), (4, 4, 4)),
    ((1, 1, np.inf), (4, 4, 4)),
    ((1, 1, 1), (0, 4, 4)),
    ((1, 1, 1), (4, -2, 4)),
    ((1, 1, 1), (4, 4, 2.5)),
    ((1, 1, 1), (4, np.nan, 4)),
    ((1, 1, 1), (np.inf, 4, 4)),
    ((1, 1, 1), (10 ** 30, 4, 4)),
    ((1, 1, 1), (4, 1e30, 4)),
    ((10 ** 400, 1, 1), (4, 4, 4)),
    ((1, 1), (4, 4, 4)),
    ((1, 1, 1), (4, 4)),
])
def test_invalid(size, shape):
    with pytest.raises(InvalidArgument):
        PeriodicGrid.from_shape(size, shape)


def test_invalid_cubic():
    with pytest.raises(InvalidArgument):
        PeriodicGrid.cubic((1, 1, 1), 0)
    # short axis rounds to zero vertices
    with pytest.raises(InvalidArgument):
        PeriodicGrid.cubic((1, 0.01, 1), 8)


def test_integral_resolutions_accepted():
    grid = PeriodicGrid.from_shape((1, 1, 1), (np.int64(4), 4.0, 4))
    assert grid.shape == (4, 4, 4)
    assert all(type(r) is int for r in grid.shape)


def test_immutable():
    grid = PeriodicGrid.from_shape((1, 1, 1), (4, 4, 4))
    with pytest.raises(AttributeError):
        grid.dx = 2
    with pytest.raises(AttributeError):
        del grid.shape
    with pytest.raises(ValueError):
        grid.px[0, 0, 0] = 1
    with pytest.raises(ValueError):
        grid.iix[0, 0, 0] = 1


def test_equality():
    a = PeriodicGrid.from_shape((1, 1, 1), (4, 4, 4))
    b = PeriodicGrid.create(1, 1, 1, 4, 4, 4)
    c = PeriodicGrid.from_shape((1, 1, 1), (4, 4, 5))
    assert a == b
    assert hash(a) == hash(b)
    assert a != c
    assert 'shape=(4, 4, 4)' in repr(a)


def test_wrap():
    assert wrap(-1, 4) == 3
    assert wrap(4, 4) == 0
    assert wrap(2, 4) == 2
    i = np.arange(-8, 8)
    w = wrap(i, 4)
    assert w.min() == 0 and w.max() == 3
    # shifting by whole periods changes nothing
    for period in (-2, -1, 1, 3):
        npt.assert_array_equal(wrap(i + period * 4, 4), w)


def test_wrapped():
    grid = PeriodicGrid.from_shape((1, 1, 1), (3, 4, 5))
    npt.assert_array_equal(grid.wrapped(0, +1), [1, 2, 0])
    npt.assert_array_equal(grid.wrapped(1, -1), [3, 0, 1, 2])
    npt.assert_array_equal(grid.wrapped(2, 5), np.arange(5))


def test_shape_checks():
    grid = PeriodicGrid.from_shape((1, 1, 1), (4, 4, 4))
    grid.check_scalar(np.zeros((4, 4, 4)))
    with pytest.raises(ShapeMismatch):
        grid.check_scalar(np.zeros((4, 4, 3)))
    with pytest.raises(ShapeMismatch):
        grid.check_scalar(np.zeros((1, 4, 4, 4)))
    with pytest.raises(ShapeMismatch):
        grid.check_form(np.zeros((4, 4, 4)), np.zeros((4, 4, 4)))
    with pytest.raises(ShapeMismatch):
        grid.check_form(np.zeros((4, 4, 4)), np.zeros((4, 4, 4)), np.zeros((4, 4)))
    assert issubclass(ShapeMismatch, ValueError)


def test_index_tables_built_eagerly():
    grid = PeriodicGrid.from_shape((1, 1, 1), (2, 3, 4))
    attributes = vars(grid)
    for name in ('ix', 'iy', 'iz', 'indices'):
        assert name in attributes
    assert not grid.ix.flags.writeable
    assert all(not i.flags.writeable for i in grid.indices)
    assert grid.iix is grid.indices[0]


def test_form_shape():
    grid = PeriodicGrid.from_shape((1, 1, 1), (2, 3, 4))
    assert [grid.form_shape(n) for n in range(4)] == [(1, 2, 3, 4), (3, 2, 3, 4), (3, 2, 3, 4), (1, 2, 3, 4)]
    for degree in (-1, 4, 1.0, True):
        with pytest.raises(InvalidArgument):
            grid.form_shape(degree)

    grid.check_stacked(np.zeros((3, 2, 3, 4)), 2)
    with pytest.raises(ShapeMismatch):
        grid.check_stacked(np.zeros((1, 2, 3, 4)), 1)
    with pytest.raises(ShapeMismatch):
        grid.check_stacked(np.zeros((2, 3, 4)), 0)
