"""Per-cell kernels; a data parallel executor for the pointwise and nearest neighbour operators

Each kernel is a loop body over a single output cell (i, j, k), compiled with numba and
dispatched over the outer axis with prange. The value of each output cell depends only on a
fixed neighbourhood of input cells; for div the cell itself and its three backward neighbours,
for the others the cell itself. No cell reads anything another cell writes, so no
synchronization between cells is needed, provided the output of div does not alias its input.

The neighbour access pattern is kept identical to the whole-array operators in
`torusdec.cochain` and `torusdec.sharp`, and uses the same `wrap`.

Notes
-----
The loop index produced by prange can be unsigned; it is cast to a signed integer before any
index arithmetic that can go negative.
"""

import numpy as np
from numba import njit, prange

from torusdec import poisson
from torusdec.grid import PeriodicGrid, ShapeMismatch, wrap


wrap_index = njit(wrap)


@njit(parallel=True)
def div_kernel(vx, vy, vz, dx2, dy2, dz2, out):
    res_x, res_y, res_z = out.shape
    for p in prange(res_x):
        i = np.int64(p)
        im = wrap_index(i - 1, res_x)
        for j in range(res_y):
            jm = wrap_index(j - 1, res_y)
            for k in range(res_z):
                km = wrap_index(k - 1, res_z)
                f = (vx[i, j, k] - vx[im, j, k]) / dx2
                f = f + (vy[i, j, k] - vy[i, jm, k]) / dy2
                f = f + (vz[i, j, k] - vz[i, j, km]) / dz2
                out[i, j, k] = f


@njit(parallel=True)
def staggered_sharp_kernel(vx, vy, vz, dx, dy, dz, ux, uy, uz):
    res_x, res_y, res_z = ux.shape
    for i in prange(res_x):
        for j in range(res_y):
            for k in range(res_z):
                ux[i, j, k] = vx[i, j, k] / dx
                uy[i, j, k] = vy[i, j, k] / dy
                uz[i, j, k] = vz[i, j, k] / dz


@njit(parallel=True)
def scale_kernel(spectrum, fac):
    """In-place pointwise scaling; spectrum may be real or complex"""
    res_x, res_y, res_z = spectrum.shape
    for i in prange(res_x):
        for j in range(res_y):
            for k in range(res_z):
                spectrum[i, j, k] = spectrum[i, j, k] * fac[i, j, k]


@njit(parallel=True)
def multiply_kernel(a, b, out):
    res_x, res_y, res_z = out.shape
    for i in prange(res_x):
        for j in range(res_y):
            for k in range(res_z):
                out[i, j, k] = a[i, j, k] * b[i, j, k]


def _float_type(*arrays):
    return np.result_type(*arrays, np.float64)


def _check_out_dtype(dtype, *out):
    """Raise TypeError unless results of `dtype` can be stored in `out` without losing their kind

    Mirrors numpy's 'same_kind' casting rule for ufunc outputs
    """
    for o in out:
        if not np.can_cast(dtype, o.dtype, casting='same_kind'):
            raise TypeError(f'Cannot store {np.dtype(dtype)} results in an output of type {o.dtype}')


def div(grid: PeriodicGrid, vx, vy, vz, out=None):
    """Per-cell evaluation of `torusdec.cochain.div`

    Parameters
    ----------
    grid : PeriodicGrid
    vx, vy, vz : ndarray, [res_x, res_y, res_z]
    out : ndarray, [res_x, res_y, res_z], optional
        must not share memory with any of the inputs

    Returns
    -------
    ndarray, [res_x, res_y, res_z]
    """
    grid.check_form(vx, vy, vz)
    v = [np.asarray(c) for c in (vx, vy, vz)]
    if out is None:
        out = np.empty(grid.shape, dtype=_float_type(*v))
    else:
        grid.check_scalar(out)
        _check_out_dtype(_float_type(*v), out)
        if any(np.shares_memory(out, c) for c in v):
            raise ValueError('div cannot be evaluated in place')
    div_kernel(*v, grid.dx ** 2, grid.dy ** 2, grid.dz ** 2, out)
    return out


def staggered_sharp(grid: PeriodicGrid, vx, vy, vz, out=None):
    """Per-cell evaluation of `torusdec.sharp.staggered_sharp`; out may be (vx, vy, vz)"""
    grid.check_form(vx, vy, vz)
    v = [np.asarray(c) for c in (vx, vy, vz)]
    if out is None:
        dtype = _float_type(*v)
        out = tuple(np.empty(grid.shape, dtype=dtype) for _ in range(3))
    else:
        grid.check_form(*out)
        out = tuple(out)
        _check_out_dtype(_float_type(*v), *out)
    staggered_sharp_kernel(*v, grid.dx, grid.dy, grid.dz, *out)
    return out


def multiply(a, b, out=None):
    """Elementwise product of two real or complex 3d arrays of equal shape"""
    a, b = np.asarray(a), np.asarray(b)
    if a.ndim != 3 or a.shape != b.shape:
        raise ShapeMismatch(f'Expected two 3d arrays of equal shape, got {a.shape} and {b.shape}')
    if out is None:
        out = np.empty(a.shape, dtype=np.result_type(a, b))
    elif out.shape != a.shape:
        raise ShapeMismatch(f'Expected output of shape {a.shape}, got {out.shape}')
    else:
        _check_out_dtype(np.result_type(a, b), out)
    multiply_kernel(a, b, out)
    return out


def scale_spectrum(spectrum, fac):
    """Kernel counterpart of `torusdec.poisson.scale_spectrum`; scales in place"""
    scale_kernel(spectrum, fac)
    return spectrum


def poisson_solve(grid: PeriodicGrid, f, fft=None):
    """`torusdec.poisson.poisson_solve`, with the pointwise scaling done per cell"""
    return poisson.poisson_solve(grid, f, fft=fft, scale=scale_spectrum)
