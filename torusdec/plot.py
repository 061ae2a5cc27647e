"""Visual inspection of fields on the periodic grid, one axis-aligned slice at a time"""

import numpy as np

from torusdec.grid import PeriodicGrid
from torusdec.sharp import sharp


def plot_0(grid: PeriodicGrid, f, axis=2, index=0):
    """Plot a slice of a 0-form

    Parameters
    ----------
    grid : PeriodicGrid
    f : ndarray, [res_x, res_y, res_z]
    axis : int
        axis normal to the slice
    index : int
        position of the slice along `axis`
    """
    import matplotlib.pyplot as plt
    grid.check_scalar(f)
    f = np.take(np.asarray(f), index, axis=axis)
    w, h = [s for i, s in enumerate(grid.size) if i != axis]
    # enforce periodicity
    f = np.pad(f, [(0, 1)] * 2, mode='wrap')
    plt.figure()
    plt.imshow(f.T, origin='lower', interpolation='bilinear', extent=[0, w, 0, h])
    plt.colorbar()


def plot_1(grid: PeriodicGrid, vx, vy, vz, index=0):
    """Visualize the in-plane part of a 1-form as a streamplot over a z-slice"""
    import matplotlib.pyplot as plt
    ux, uy, _ = sharp(grid, vx, vy, vz)
    x = grid.px[:, 0, 0]
    y = grid.py[0, :, 0]
    plt.figure()
    plt.streamplot(x, y, ux[:, :, index].T, uy[:, :, index].T)
