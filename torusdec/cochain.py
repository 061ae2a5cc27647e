"""Exterior derivatives and codifferential on the periodic grid

Cochains are plain arrays of shape grid.shape; 1-forms and 2-forms are triples of such arrays.
A 1-form component vx[i, j, k] is the integral along the edge (i, j, k) -> (i+1, j, k),
a 2-form component wx[i, j, k] the flux through the face normal to x anchored at (i, j, k).

All operators return freshly allocated arrays and leave their inputs untouched.
Neighbours are addressed through index tables built with `wrap`; no implicit wraparound of
the array library is relied upon.
"""

import numpy as np

from torusdec.grid import PeriodicGrid


def _forward(grid: PeriodicGrid):
    return grid.wrapped(0, +1), grid.wrapped(1, +1), grid.wrapped(2, +1)


def _backward(grid: PeriodicGrid):
    return grid.wrapped(0, -1), grid.wrapped(1, -1), grid.wrapped(2, -1)


def _scalar(grid, f):
    grid.check_scalar(f)
    return np.asarray(f)


def _form(grid, *components):
    grid.check_form(*components)
    return tuple(np.asarray(c) for c in components)


def d0(grid: PeriodicGrid, f):
    """Exterior derivative of a 0-form; the forward difference gradient

    Parameters
    ----------
    grid : PeriodicGrid
    f : ndarray, [res_x, res_y, res_z]
        0-form; one value per vertex

    Returns
    -------
    vx, vy, vz : ndarray, [res_x, res_y, res_z]
        1-form df, integrated along edges; not divided by edge length
    """
    f = _scalar(grid, f)
    ip, jp, kp = _forward(grid)
    vx = f[ip, :, :] - f
    vy = f[:, jp, :] - f
    vz = f[:, :, kp] - f
    return vx, vy, vz


def d1(grid: PeriodicGrid, vx, vy, vz):
    """Exterior derivative of a 1-form; circulation around each face

    Returns
    -------
    wx, wy, wz : ndarray, [res_x, res_y, res_z]
        2-form dv; wx is the circulation around the face normal to x
    """
    vx, vy, vz = _form(grid, vx, vy, vz)
    ip, jp, kp = _forward(grid)
    wx = vy - vy[:, :, kp] + vz[:, jp, :] - vz
    wy = vz - vz[ip, :, :] + vx[:, :, kp] - vx
    wz = vx - vx[:, jp, :] + vy[ip, :, :] - vy
    return wx, wy, wz


def d2(grid: PeriodicGrid, wx, wy, wz):
    """Exterior derivative of a 2-form; net flux out of each cell

    Returns
    -------
    ndarray, [res_x, res_y, res_z]
        3-form dw; volume integrated, not normalized by cell volume
    """
    wx, wy, wz = _form(grid, wx, wy, wz)
    ip, jp, kp = _forward(grid)
    f = wx[ip, :, :] - wx
    f = f + (wy[:, jp, :] - wy)
    f = f + (wz[:, :, kp] - wz)
    return f


def div(grid: PeriodicGrid, vx, vy, vz):
    """Codifferential of a 1-form; backward difference divergence

    Parameters
    ----------
    grid : PeriodicGrid
    vx, vy, vz : ndarray, [res_x, res_y, res_z]
        1-form, integrated along edges

    Returns
    -------
    ndarray, [res_x, res_y, res_z]
        0-form *d*v

    Notes
    -----
    Each component is divided by its squared edge length; once to turn the edge integral into
    an average along the edge, once more for the face area over cell volume.
    div(d0(f)) is the 7-point periodic laplacian of f, negative semidefinite.
    """
    vx, vy, vz = _form(grid, vx, vy, vz)
    im, jm, km = _backward(grid)
    f = (vx - vx[im, :, :]) / grid.dx ** 2
    f = f + (vy - vy[:, jm, :]) / grid.dy ** 2
    f = f + (vz - vz[:, :, km]) / grid.dz ** 2
    return f


def laplace(grid: PeriodicGrid, f):
    """7-point periodic laplacian of a 0-form, as div(d0(f))"""
    return div(grid, *d0(grid, f))


def d0_transpose(grid: PeriodicGrid, vx, vy, vz):
    """Transpose of d0; maps a 1-form to a 0-form

    Notes
    -----
    Unscaled and of opposite sign relative to div
    """
    vx, vy, vz = _form(grid, vx, vy, vz)
    im, jm, km = _backward(grid)
    f = vx[im, :, :] - vx
    f = f + (vy[:, jm, :] - vy)
    f = f + (vz[:, :, km] - vz)
    return f


def d1_transpose(grid: PeriodicGrid, wx, wy, wz):
    """Transpose of d1; maps a 2-form to a 1-form"""
    wx, wy, wz = _form(grid, wx, wy, wz)
    im, jm, km = _backward(grid)
    ux = wy[:, :, km] - wy + wz - wz[:, jm, :]
    uy = wz[im, :, :] - wz + wx - wx[:, :, km]
    uz = wx[:, jm, :] - wx + wy - wy[im, :, :]
    return ux, uy, uz


def d2_transpose(grid: PeriodicGrid, f):
    """Transpose of d2; maps a 3-form to a 2-form"""
    f = _scalar(grid, f)
    im, jm, km = _backward(grid)
    wx = f[im, :, :] - f
    wy = f[:, jm, :] - f
    wz = f[:, :, km] - f
    return wx, wy, wz
