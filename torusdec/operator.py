"""Matrix-free linear maps between stacked forms on a periodic grid

Every operator knows the grid it lives on and the degrees of the forms it maps between;
applying an operator checks its argument against `PeriodicGrid.check_stacked`, and composing
two operators checks that the degree produced by the right one is the degree consumed by the
left one.
"""

import numpy as np

from torusdec.grid import PeriodicGrid, ShapeMismatch


class CochainOperator(object):
    """Transposable linear map from stacked `source`-forms to stacked `target`-forms

    Parameters
    ----------
    grid : PeriodicGrid
    source, target : int
        degree of the forms the operator consumes and produces
    apply : callable
        maps a stacked source-form to a stacked target-form
    adjoint : callable
        maps a stacked target-form to a stacked source-form; the exact transpose of `apply`.
        Subclasses that override `transpose` pass None
    name : str
    """

    def __init__(self, grid: PeriodicGrid, source: int, target: int, apply, adjoint, name: str):
        grid.form_shape(source)
        grid.form_shape(target)
        self.grid = grid
        self.source = source
        self.target = target
        self.apply = apply
        self.adjoint = adjoint
        self.name = name

    def transpose(self):
        return CochainOperator(
            self.grid, self.target, self.source,
            apply=self.adjoint, adjoint=self.apply, name=self.name + '^T',
        )

    @property
    def T(self):
        return self.transpose()

    def __call__(self, x):
        self.grid.check_stacked(x, self.source)
        return self.apply(x)

    def __mul__(self, other):
        if isinstance(other, CochainOperator):
            return compose(self, other)
        return self(other)

    def to_dense(self):
        """Dense matrix of the operator, built column by column from unit forms

        Returns
        -------
        ndarray, [n_target_entries, n_source_entries], float
        """
        shape = self.grid.form_shape(self.source)
        n = int(np.prod(shape))
        columns = []
        for i in range(n):
            e = np.zeros(n)
            e[i] = 1
            columns.append(np.ravel(self(e.reshape(shape))))
        return np.stack(columns, axis=1)

    def __repr__(self):
        return self.name


class ZeroOperator(CochainOperator):
    """Result of composing two exterior derivatives"""

    def __init__(self, grid, source, target):
        super(ZeroOperator, self).__init__(
            grid, source, target,
            apply=lambda x: np.zeros(grid.form_shape(target), np.result_type(x, np.float64)),
            adjoint=None,
            name='0',
        )

    def transpose(self):
        return ZeroOperator(self.grid, self.target, self.source)


class DerivativeOperator(CochainOperator):
    """Exterior derivative of `degree`-forms; its transpose is a DualDerivativeOperator"""

    def __init__(self, grid, degree, apply, adjoint):
        super(DerivativeOperator, self).__init__(
            grid, degree, degree + 1, apply=apply, adjoint=adjoint, name=f'd{degree}')

    def transpose(self):
        return DualDerivativeOperator(self.grid, self.source, apply=self.adjoint, adjoint=self.apply)


class DualDerivativeOperator(CochainOperator):
    """Transpose of the exterior derivative of `degree`-forms"""

    def __init__(self, grid, degree, apply, adjoint):
        super(DualDerivativeOperator, self).__init__(
            grid, degree + 1, degree, apply=apply, adjoint=adjoint, name=f'd{degree}^T')

    def transpose(self):
        return DerivativeOperator(self.grid, self.target, apply=self.adjoint, adjoint=self.apply)


class SymmetricOperator(CochainOperator):
    """Operator that is its own transpose"""

    def __init__(self, grid, degree, apply, name):
        super(SymmetricOperator, self).__init__(grid, degree, degree, apply=apply, adjoint=apply, name=name)

    def transpose(self):
        return self


class DiagonalOperator(SymmetricOperator):
    """Pointwise scaling of a stacked form

    Parameters
    ----------
    diagonal : ndarray
        broadcastable to grid.form_shape(degree)
    apply : callable, optional
        evaluates the scaling; defaults to multiplying by `diagonal` with numpy.
        The inverse is always evaluated with numpy.
    """

    def __init__(self, grid, degree, diagonal, name, apply=None):
        self.diagonal = diagonal
        if apply is None:
            apply = lambda x: x * self.diagonal
        super(DiagonalOperator, self).__init__(grid, degree, apply=apply, name=name)

    def inverse(self):
        return DiagonalOperator(self.grid, self.source, 1 / self.diagonal, name=self.name + '^-1')


def _closed(left, right):
    """d d = 0 for primal derivatives, and for their transposes"""
    return (
        (isinstance(left, DerivativeOperator) and isinstance(right, DerivativeOperator)) or
        (isinstance(left, DualDerivativeOperator) and isinstance(right, DualDerivativeOperator))
    )


def compose(*operators):
    """Chain of operators; the rightmost one acts first

    Raises
    ------
    ShapeMismatch
        if adjacent operators live on different grids, or the degrees do not line up

    Returns
    -------
    CochainOperator
        a ZeroOperator if the chain contains two consecutive derivatives of the same kind,
        otherwise a flat ComposedOperator
    """
    chain = []
    for op in operators:
        chain.extend(op.operators if isinstance(op, ComposedOperator) else [op])
    for left, right in zip(chain[:-1], chain[1:]):
        if left.grid != right.grid:
            raise ShapeMismatch(f'Cannot compose operators on {left.grid!r} and {right.grid!r}')
        if left.source != right.target:
            raise ShapeMismatch(
                f'Cannot compose {left!r}, acting on {left.source}-forms, '
                f'with {right!r}, producing {right.target}-forms')
    first, last = chain[0], chain[-1]
    if any(isinstance(op, ZeroOperator) for op in chain) or \
            any(_closed(left, right) for left, right in zip(chain[:-1], chain[1:])):
        return ZeroOperator(first.grid, last.source, first.target)
    if len(chain) == 1:
        return first
    return ComposedOperator(chain)


class ComposedOperator(CochainOperator):
    """Product of operators, each applied with its own executor; use `compose` to build one"""

    def __init__(self, operators):
        self.operators = list(operators)
        super(ComposedOperator, self).__init__(
            self.operators[0].grid, self.operators[-1].source, self.operators[0].target,
            apply=self._apply, adjoint=None,
            name=' * '.join(repr(op) for op in self.operators),
        )

    def _apply(self, x):
        for op in reversed(self.operators):
            x = op(x)
        return x

    def transpose(self):
        return compose(*[op.transpose() for op in reversed(self.operators)])
