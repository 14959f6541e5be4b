"""Adapt user supplied right-hand sides to the calling convention of the solvers.

A right-hand side evaluates one state column ``y`` of shape ``(n,)`` or a
batch of columns ``Y`` of shape ``(n, k)``.  The plain adapter implements
the batched form as a loop over single columns; the vectorised adapter lets
the user function evaluate the whole batch and derives the single-column
form from it.  Both count every evaluated column in :attr:`nfev`.
"""

from typing import Callable

import numpy as np

from kutta.algorithms.utils.exceptions import InvalidArgumentError


class _RHSFunction:
    """Wrap a non-vectorised right-hand side ``fun(t, y) -> dy``.

    Parameters
    ----------
    fun : callable
        User function taking a float and an array of shape ``(n,)``.
    n : int
        State dimension.
    dtype : numpy.dtype
        Working dtype of the integration, ``float64`` or ``complex128``.

    Attributes
    ----------
    nfev : int
        Number of evaluated state columns since construction.
    """

    def __init__(self, fun: Callable, n: int, dtype):
        self._fun = fun
        self.n = n
        self.dtype = np.dtype(dtype)
        self.nfev = 0

    def __call__(self, t: float, y: np.ndarray) -> np.ndarray:
        """Evaluate the derivative at a single state column."""
        self._count()
        return self._coerce(self._fun(t, y), (self.n,))

    def evaluate_columns(self, t: float, Y: np.ndarray) -> np.ndarray:
        """Evaluate the derivative at every column of *Y*.

        Parameters
        ----------
        t : float
            Time shared by all columns.
        Y : numpy.ndarray
            States of shape ``(n, k)``.

        Returns
        -------
        numpy.ndarray
            Derivatives of shape ``(n, k)``.
        """
        Y = np.asarray(Y)
        out = np.empty((self.n, Y.shape[1]), dtype=self.dtype)
        for i in range(Y.shape[1]):
            out[:, i] = self(t, Y[:, i])
        return out

    def _count(self, k: int = 1) -> None:
        self.nfev += k

    def _coerce(self, value, shape) -> np.ndarray:
        value = np.asarray(value)
        if np.iscomplexobj(value) and self.dtype.kind != "c":
            raise InvalidArgumentError(
                "`fun` returned complex values for a real problem; "
                "pass a complex `y0` to integrate in complex arithmetic."
            )
        if value.shape != shape:
            raise InvalidArgumentError(
                f"`fun` returned an array of shape {value.shape}, expected {shape}."
            )
        return value.astype(self.dtype, copy=False)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(n={self.n}, dtype={self.dtype}, nfev={self.nfev})"


class _VectorizedRHSFunction(_RHSFunction):
    """Wrap a vectorised right-hand side ``fun(t, Y) -> dY`` with ``Y`` of shape ``(n, k)``."""

    def __call__(self, t: float, y: np.ndarray) -> np.ndarray:
        return self.evaluate_columns(t, y[:, None])[:, 0]

    def evaluate_columns(self, t: float, Y: np.ndarray) -> np.ndarray:
        Y = np.asarray(Y)
        k = Y.shape[1]
        self._count(k)
        return self._coerce(self._fun(t, Y), (self.n, k))


def _build_rhs_function(fun: Callable, n: int, dtype, vectorized: bool = False) -> _RHSFunction:
    """Return the adapter matching the calling convention of *fun*.

    Parameters
    ----------
    fun : callable
        User right-hand side.
    n : int
        State dimension.
    dtype : numpy.dtype
        Working dtype.
    vectorized : bool, default False
        Whether *fun* evaluates a matrix of state columns in one call.

    Returns
    -------
    :class:`~kutta.algorithms.integrators.rhs._RHSFunction`
        The adapter instance owning the evaluation counter.

    Raises
    ------
    :class:`~kutta.algorithms.utils.exceptions.InvalidArgumentError`
        If *fun* is not callable.
    """
    if not callable(fun):
        raise InvalidArgumentError("`fun` must be callable.")
    if vectorized:
        return _VectorizedRHSFunction(fun, n, dtype)
    return _RHSFunction(fun, n, dtype)
