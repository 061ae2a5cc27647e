"""Spectral solution of the Poisson equation on the 3-torus

The 7-point laplacian div(d0(.)) is diagonalized by the discrete Fourier transform; its
eigenvalue at frequency (i, j, k) is

    -4 * ((sin(pi i / res_x) / dx)^2 + (sin(pi j / res_y) / dy)^2 + (sin(pi k / res_z) / dz)^2)

which vanishes only at the zero frequency. Solving amounts to a forward transform, a pointwise
division, and an inverse transform; the zero frequency, which carries the mean of the field,
is set to zero.
"""

import logging

import numpy as np
import scipy.fft

from torusdec.grid import PeriodicGrid


logger = logging.getLogger(__name__)


def symbol_denominator(grid: PeriodicGrid):
    """Sum of squared scaled sines per frequency

    Returns
    -------
    ndarray, [res_x, res_y, res_z], float
        zero at the zero frequency, strictly positive elsewhere
    """
    iix, iiy, iiz = grid.indices
    sx = np.sin(np.pi * iix / grid.res_x) / grid.dx
    sy = np.sin(np.pi * iiy / grid.res_y) / grid.dy
    sz = np.sin(np.pi * iiz / grid.res_z) / grid.dz
    return sx ** 2 + sy ** 2 + sz ** 2


def laplace_eigenvalues(grid: PeriodicGrid):
    """Spectral symbol of the 7-point periodic laplacian; non-positive"""
    return -4 * symbol_denominator(grid)


def inverse_symbol(grid: PeriodicGrid):
    """Pseudo-inverse of the laplacian symbol

    Returns
    -------
    ndarray, [res_x, res_y, res_z], float
        -0.25 / denominator, and zero at the zero frequency
    """
    denom = symbol_denominator(grid)
    denom[0, 0, 0] = 1
    fac = -0.25 / denom
    fac[0, 0, 0] = 0
    return fac


def _default_fft(fft):
    return scipy.fft if fft is None else fft


def scale_spectrum(spectrum, fac):
    """Reference pointwise scaling of a spectrum by the inverse symbol"""
    return spectrum * fac


def _log_discarded_mean(f):
    if logger.isEnabledFor(logging.DEBUG):
        logger.debug('discarding mean of magnitude %g from poisson right hand side', np.abs(np.mean(f)))


def poisson_solve(grid: PeriodicGrid, f, fft=None, scale=scale_spectrum):
    """Solve div(d0(u)) = f on the torus

    Parameters
    ----------
    grid : PeriodicGrid
    f : ndarray, [res_x, res_y, res_z]
        right hand side; ought to have zero mean
    fft : module-like, optional
        provider of `fftn` and `ifftn`, with ifftn(fftn(x)) == x.
        defaults to scipy.fft; numpy.fft works as well
    scale : callable, optional
        scale(spectrum, fac) -> spectrum; the pointwise multiply, which may act in place.
        allows the multiply to be executed by another executor

    Returns
    -------
    u : ndarray, [res_x, res_y, res_z]
        solution with zero mean; real if f is real

    Notes
    -----
    The mean of f is not checked. A periodic Poisson problem is only solvable for a zero-mean
    right hand side; any mean present is silently projected out, and the returned u solves the
    problem for f - mean(f). Callers requiring strict solvability should check mean(f) first.
    """
    grid.check_scalar(f)
    fft = _default_fft(fft)
    f = np.asarray(f)
    _log_discarded_mean(f)
    spectrum = fft.fftn(f)
    spectrum = scale(spectrum, inverse_symbol(grid))
    u = fft.ifftn(spectrum)
    if np.isrealobj(f):
        # imaginary part is round-off only
        return u.real
    return u
