"""Sharp operators; reconstruct vector fields from 1-forms

Both operators divide the edge integrals by edge length to obtain a per-length quantity.
`sharp` averages the two edges incident to each vertex along each axis, yielding a vertex
centered field; `staggered_sharp` leaves each component on its own edge.
"""

import numpy as np

from torusdec.grid import PeriodicGrid


def sharp(grid: PeriodicGrid, vx, vy, vz):
    """Vertex centered vector field of a 1-form

    Parameters
    ----------
    grid : PeriodicGrid
    vx, vy, vz : ndarray, [res_x, res_y, res_z]
        1-form, integrated along edges

    Returns
    -------
    ux, uy, uz : ndarray, [res_x, res_y, res_z]
        vector field sampled at the vertices
    """
    grid.check_form(vx, vy, vz)
    vx, vy, vz = np.asarray(vx), np.asarray(vy), np.asarray(vz)
    im, jm, km = grid.wrapped(0, -1), grid.wrapped(1, -1), grid.wrapped(2, -1)
    ux = 0.5 * (vx[im, :, :] + vx) / grid.dx
    uy = 0.5 * (vy[:, jm, :] + vy) / grid.dy
    uz = 0.5 * (vz[:, :, km] + vz) / grid.dz
    return ux, uy, uz


def sharp_transpose(grid: PeriodicGrid, ux, uy, uz):
    """Transpose of sharp; distributes each vertex value over its two incident edges"""
    grid.check_form(ux, uy, uz)
    ux, uy, uz = np.asarray(ux), np.asarray(uy), np.asarray(uz)
    ip, jp, kp = grid.wrapped(0, +1), grid.wrapped(1, +1), grid.wrapped(2, +1)
    vx = 0.5 * (ux + ux[ip, :, :]) / grid.dx
    vy = 0.5 * (uy + uy[:, jp, :]) / grid.dy
    vz = 0.5 * (uz + uz[:, :, kp]) / grid.dz
    return vx, vy, vz


def staggered_sharp(grid: PeriodicGrid, vx, vy, vz, out=None):
    """Edge centered vector field of a 1-form

    Parameters
    ----------
    grid : PeriodicGrid
    vx, vy, vz : ndarray, [res_x, res_y, res_z]
        1-form, integrated along edges
    out : Tuple[ndarray, ndarray, ndarray], optional
        arrays to write the result to; may be (vx, vy, vz) themselves

    Returns
    -------
    ux, uy, uz : ndarray, [res_x, res_y, res_z]
        vector field; ux lives on the same edge as vx

    Notes
    -----
    Purely pointwise, hence safe to apply in place
    """
    grid.check_form(vx, vy, vz)
    if out is None:
        return (
            np.asarray(vx) / grid.dx,
            np.asarray(vy) / grid.dy,
            np.asarray(vz) / grid.dz,
        )
    grid.check_form(*out)
    for v, u, d in zip((vx, vy, vz), out, grid.spacing):
        np.divide(v, d, out=u)
    return tuple(out)
