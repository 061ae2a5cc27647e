"""
Discrete exterior calculus on a periodic rectangular 3d grid

Provides the exterior derivatives, the codifferential and two sharp operators of the lowest
order DEC scheme on a 3-torus, and a spectral solver for the associated Poisson equation.

Every operator exists as a pure function over plain numpy arrays; `div`, `staggered_sharp`
and the pointwise multiply inside the Poisson solver additionally have a per-cell numba
executor in `torusdec.kernels`. `TorusComplex` wraps the lot as composable, transposable
operators on stacked forms.
"""
