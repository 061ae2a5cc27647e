"""Periodic rectangular grid; the 3-torus on which all cochains live

All topology of the grid is implicit; other than its size and resolution it carries only
read-only coordinate and index tables. Every index into a field array is taken modulo the
resolution of the corresponding axis, through `wrap`.
"""

import logging
import math
import numbers
from typing import Tuple

import numpy as np


logger = logging.getLogger(__name__)


class InvalidArgument(ValueError):
    """Bad grid construction parameters"""


class ShapeMismatch(ValueError):
    """Field array whose shape does not match the grid resolution"""


def wrap(index, resolution):
    """Map an index onto the torus

    Parameters
    ----------
    index : int or ndarray, int
    resolution : int

    Returns
    -------
    int or ndarray, int
        index modulo resolution, in range [0, resolution)

    Notes
    -----
    This is the only place periodic index arithmetic happens; the sequential operators apply it
    to whole index tables, the per-cell kernels compile it with numba and apply it per index.
    """
    return index % resolution


_MAX_RESOLUTION = np.iinfo(np.intp).max

# number of components of a stacked n-form, n = 0..3
FORM_COMPONENTS = (1, 3, 3, 1)


def _read_only(arr):
    arr.setflags(write=False)
    return arr


def _validate_size(size):
    if len(size) != 3:
        raise InvalidArgument(f'Expected three sizes, got {len(size)}')
    out = []
    for s in size:
        if isinstance(s, bool) or not isinstance(s, numbers.Real):
            raise InvalidArgument(f'Size must be a real number, got {s!r}')
        try:
            s = float(s)
        except OverflowError:
            raise InvalidArgument(f'Size must be finite, got {s!r}') from None
        if not math.isfinite(s) or s <= 0:
            raise InvalidArgument(f'Size must be positive and finite, got {s}')
        out.append(s)
    return tuple(out)


def _validate_shape(shape):
    if len(shape) != 3:
        raise InvalidArgument(f'Expected three resolutions, got {len(shape)}')
    out = []
    for r in shape:
        if isinstance(r, bool) or not isinstance(r, numbers.Real):
            raise InvalidArgument(f'Resolution must be an integer, got {r!r}')
        if not isinstance(r, numbers.Integral) and (not math.isfinite(r) or int(r) != r):
            raise InvalidArgument(f'Resolution must be an integer, got {r!r}')
        r = int(r)
        if r <= 0:
            raise InvalidArgument(f'Resolution must be positive, got {r}')
        if r > _MAX_RESOLUTION:
            raise InvalidArgument(f'Resolution {r} exceeds the addressable index range')
        out.append(r)
    return tuple(out)


class PeriodicGrid(object):
    """Immutable regular grid with periodic boundaries in x, y and z

    Attributes
    ----------
    size : Tuple[float, float, float]
        physical extent of the fundamental domain
    shape : Tuple[int, int, int]
        number of vertices along each axis; vertex `res` is identified with vertex 0
    dx, dy, dz : float
        edge lengths
    px, py, pz : ndarray, [res_x, res_y, res_z], float
        coordinates of each vertex, starting at the origin
    ix, iy, iz : ndarray, [res], int
        vertex indices along each axis
    indices : Tuple[ndarray, ndarray, ndarray], each [res_x, res_y, res_z], int
        ndgrid of the 1d index tables, also exposed as iix, iiy, iiz

    All tables are built at construction and are read-only.
    """

    def __init__(self, size: Tuple[float, float, float], shape: Tuple[int, int, int]):
        size = _validate_size(tuple(size))
        shape = _validate_shape(tuple(shape))
        init = object.__setattr__
        init(self, 'size', size)
        init(self, 'shape', shape)
        init(self, 'dx', size[0] / shape[0])
        init(self, 'dy', size[1] / shape[1])
        init(self, 'dz', size[2] / shape[2])
        px, py, pz = np.meshgrid(
            np.arange(shape[0]) * self.dx,
            np.arange(shape[1]) * self.dy,
            np.arange(shape[2]) * self.dz,
            indexing='ij',
        )
        init(self, 'px', _read_only(px))
        init(self, 'py', _read_only(py))
        init(self, 'pz', _read_only(pz))
        ix, iy, iz = (_read_only(np.arange(r)) for r in shape)
        init(self, 'ix', ix)
        init(self, 'iy', iy)
        init(self, 'iz', iz)
        init(self, 'indices', tuple(_read_only(i) for i in np.meshgrid(ix, iy, iz, indexing='ij')))
        logger.debug('constructed %r', self)

    @classmethod
    def from_shape(cls, size, shape):
        """Grid with an explicit resolution per axis"""
        return cls(size=size, shape=shape)

    @classmethod
    def cubic(cls, size, res):
        """Grid with (nearly) equal edge lengths along all axes

        Parameters
        ----------
        size : Tuple[float, float, float]
        res : int
            number of vertices along the longest axis

        Notes
        -----
        Resolution of the other axes is rounded to the nearest integer, ties to even;
        an axis that rounds to zero vertices is rejected
        """
        size = _validate_size(tuple(size))
        res = _validate_shape((res, 1, 1))[0]
        longest = max(size)
        shape = tuple(int(round(s / longest * res)) for s in size)
        return cls(size=size, shape=shape)

    @classmethod
    def create(cls, *args):
        """Construct from either of the two flat calling forms

        `create(size_x, size_y, size_z, res_x, res_y, res_z)` or
        `create(size_x, size_y, size_z, res)`
        """
        if len(args) == 6:
            return cls.from_shape(args[:3], args[3:])
        if len(args) == 4:
            return cls.cubic(args[:3], args[3])
        raise InvalidArgument(f'Expected 4 or 6 arguments, got {len(args)}')

    def __setattr__(self, key, value):
        raise AttributeError(f'{type(self).__name__} is immutable')

    def __delattr__(self, key):
        raise AttributeError(f'{type(self).__name__} is immutable')

    def __eq__(self, other):
        if not isinstance(other, PeriodicGrid):
            return NotImplemented
        return self.size == other.size and self.shape == other.shape

    def __hash__(self):
        return hash((self.size, self.shape))

    def __repr__(self):
        return f'{type(self).__name__}(size={self.size}, shape={self.shape})'

    @property
    def size_x(self):
        return self.size[0]

    @property
    def size_y(self):
        return self.size[1]

    @property
    def size_z(self):
        return self.size[2]

    @property
    def res_x(self):
        return self.shape[0]

    @property
    def res_y(self):
        return self.shape[1]

    @property
    def res_z(self):
        return self.shape[2]

    @property
    def spacing(self):
        return self.dx, self.dy, self.dz

    @property
    def iix(self):
        return self.indices[0]

    @property
    def iiy(self):
        return self.indices[1]

    @property
    def iiz(self):
        return self.indices[2]

    def wrapped(self, axis: int, offset: int):
        """Index table of the neighbours at `offset` along `axis`

        Returns
        -------
        ndarray, [res_axis], int
            wrap(arange(res) + offset, res)
        """
        res = self.shape[axis]
        return _read_only(wrap(np.arange(res) + offset, res))

    def check_scalar(self, f):
        """Raise ShapeMismatch unless f is an array with the shape of the grid"""
        shape = np.shape(f)
        if shape != self.shape:
            raise ShapeMismatch(f'Expected field of shape {self.shape}, got {shape}')

    def check_form(self, *components):
        """Raise ShapeMismatch unless the components make up a 1-form, 2-form or vector field"""
        if len(components) != 3:
            raise ShapeMismatch(f'Expected three components, got {len(components)}')
        for c in components:
            self.check_scalar(c)

    def form_shape(self, degree: int):
        """Shape of a stacked `degree`-form: components first, then the grid axes"""
        if isinstance(degree, bool) or not isinstance(degree, numbers.Integral) or not 0 <= degree <= 3:
            raise InvalidArgument(f'Form degree must be 0, 1, 2 or 3, got {degree!r}')
        return (FORM_COMPONENTS[degree],) + self.shape

    def check_stacked(self, f, degree: int):
        """Raise ShapeMismatch unless f is a stacked `degree`-form on this grid"""
        expected = self.form_shape(degree)
        shape = np.shape(f)
        if shape != expected:
            raise ShapeMismatch(f'Expected stacked {degree}-form of shape {expected}, got {shape}')
