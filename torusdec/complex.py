import logging

import numpy as np
from cached_property import cached_property
from scipy import ndimage

from torusdec import cochain, kernels, poisson, sharp
from torusdec.grid import InvalidArgument, PeriodicGrid
from torusdec.operator import CochainOperator, DerivativeOperator, DiagonalOperator, SymmetricOperator


logger = logging.getLogger(__name__)


# executors for the operators that have a per-cell variant
BACKENDS = {
    'numpy': {
        'div': cochain.div,
        'staggered_sharp': sharp.staggered_sharp,
        'poisson_solve': poisson.poisson_solve,
    },
    'numba': {
        'div': kernels.div,
        'staggered_sharp': kernels.staggered_sharp,
        'poisson_solve': kernels.poisson_solve,
    },
}


class TorusComplex(object):
    """DEC operators on a periodic grid, as operators acting on stacked forms

    The topology of the complex is entirely implicit; other than the grid it has no
    associated memory requirements. Since the domain is a torus, every form has the exact
    same spatial extent, and every component of every form has the shape of the grid.

    Parameters
    ----------
    grid : PeriodicGrid
    backend : str
        'numpy' for whole-array evaluation, 'numba' for per-cell kernels
    fft : module-like, optional
        provider of fftn and ifftn used by the poisson solver; scipy.fft by default
    """

    def __init__(self, grid: PeriodicGrid, backend: str = 'numpy', fft=None):
        if backend not in BACKENDS:
            raise InvalidArgument(f'Unknown backend {backend!r}; expected one of {sorted(BACKENDS)}')
        self.grid = grid
        self.backend = backend
        self.fft = fft
        self.executor = BACKENDS[backend]
        logger.debug('complex on %r using %s backend', grid, backend)

    @classmethod
    def from_shape(cls, size, shape, **kwargs):
        return cls(PeriodicGrid.from_shape(size, shape), **kwargs)

    @classmethod
    def cubic(cls, size, res, **kwargs):
        return cls(PeriodicGrid.cubic(size, res), **kwargs)

    @property
    def shape(self):
        return self.grid.shape

    @property
    def n_dim(self):
        return 3

    def form(self, n, dtype=np.float64, init='zeros'):
        """Allocate a stacked n-form

        Returns
        -------
        ndarray, [n_components, res_x, res_y, res_z]
        """
        shape = self.grid.form_shape(n)
        if init == 'zeros':
            return np.zeros(shape, dtype=dtype)
        if init == 'empty':
            return np.empty(shape, dtype=dtype)
        if init == 'ones':
            return np.ones(shape, dtype=dtype)
        raise InvalidArgument(f'Unknown init {init!r}')

    @cached_property
    def metric(self):
        """Inverse squared edge length per 1-form component, broadcastable to a stacked 1-form"""
        return 1 / np.array(self.grid.spacing)[:, None, None, None] ** 2

    @cached_property
    def primal(self):
        """Exterior derivatives

        Returns
        -------
        List, [n_dim], DerivativeOperator
            n-th operator maps a primal n-form to a primal n+1-form;
            its transpose is the matching dual derivative
        """
        grid = self.grid
        return [
            DerivativeOperator(
                grid, 0,
                apply=lambda f: np.stack(cochain.d0(grid, f[0])),
                adjoint=lambda v: cochain.d0_transpose(grid, *v)[None],
            ),
            DerivativeOperator(
                grid, 1,
                apply=lambda v: np.stack(cochain.d1(grid, *v)),
                adjoint=lambda w: np.stack(cochain.d1_transpose(grid, *w)),
            ),
            DerivativeOperator(
                grid, 2,
                apply=lambda w: cochain.d2(grid, *w)[None],
                adjoint=lambda f: np.stack(cochain.d2_transpose(grid, f[0])),
            ),
        ]

    @cached_property
    def dual(self):
        """Dual derivatives; a simple transpose suffices in the periodic case"""
        return [d.transpose() for d in self.primal]

    @cached_property
    def div(self):
        """Codifferential, mapping a 1-form to a 0-form

        Notes
        -----
        Equal to -d0^T M, with M the metric; not tagged as a dual derivative,
        since with anisotropic spacing M does not commute with the dual derivatives
        """
        grid = self.grid
        div = self.executor['div']
        return CochainOperator(
            grid, 1, 0,
            apply=lambda v: div(grid, *v)[None],
            adjoint=lambda f: -self.metric * np.stack(cochain.d0(grid, f[0])),
            name='div',
        )

    @cached_property
    def laplacian(self):
        """7-point laplacian on 0-forms; negative semidefinite"""
        return self.div * self.primal[0]

    @cached_property
    def sharp(self):
        """Vertex centered sharp of a 1-form"""
        grid = self.grid
        return CochainOperator(
            grid, 1, 1,
            apply=lambda v: np.stack(sharp.sharp(grid, *v)),
            adjoint=lambda u: np.stack(sharp.sharp_transpose(grid, *u)),
            name='sharp',
        )

    @cached_property
    def staggered_sharp(self):
        """Edge centered sharp of a 1-form; a pointwise scaling evaluated by the backend"""
        grid = self.grid
        staggered = self.executor['staggered_sharp']
        return DiagonalOperator(
            grid, 1,
            diagonal=1 / np.array(grid.spacing)[:, None, None, None],
            name='staggered_sharp',
            apply=lambda v: np.stack(staggered(grid, *v)),
        )

    @cached_property
    def poisson(self):
        """Pseudo-inverse of the laplacian; maps zero-mean 0-forms to zero-mean 0-forms"""
        grid = self.grid
        solve = self.executor['poisson_solve']
        return SymmetricOperator(
            grid, 0,
            apply=lambda f: solve(grid, f[0], fft=self.fft)[None],
            name='poisson',
        )

    def sample_0(self, f0, points, assume_interior=False):
        """Sample a 0-form at the given points, using linear interpolation

        Parameters
        ----------
        f0 : ndarray, [1, res_x, res_y, res_z]
            stacked 0-form
        points : ndarray, [n_points, 3], float
            physical coordinates; wrapped onto the torus
        assume_interior : bool
            if True, it is assumed all points lie inside the grid cells not touching
            the periodic seam, which allows skipping the wrapping logic

        Returns
        -------
        ndarray, [n_points], float
            the 0-form sampled for each row in `points`

        Notes
        -----
        map_coordinates(mode='wrap') does not treat the last vertex as adjacent to the first,
        hence the padding
        """
        self.grid.check_stacked(f0, 0)
        points = np.asarray(points) / np.array(self.grid.spacing)

        f0 = f0[0]
        if not assume_interior:
            f0 = np.pad(f0, [(0, 1)] * self.n_dim, mode='wrap')
            points = np.remainder(points, self.shape)

        return ndimage.map_coordinates(f0, points.T, order=1)
