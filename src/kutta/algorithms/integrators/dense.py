"""Provide local interpolants valid over a single accepted step.

Both variants share the evaluation contract of
:class:`~kutta.algorithms.integrators.dense._DenseOutput`, so callers can
hold either one without knowing which step produced it.
"""

from abc import ABC, abstractmethod
from typing import Union

import numpy as np

from kutta.algorithms.utils.exceptions import InvalidArgumentError


class _DenseOutput(ABC):
    """Define the evaluation contract of a local interpolant.

    Parameters
    ----------
    t_old, t : float
        Endpoints of the step the interpolant is valid on.

    Attributes
    ----------
    t_min, t_max : float
        Ordered endpoints, independent of the integration direction.
    """

    def __init__(self, t_old: float, t: float):
        self.t_old = t_old
        self.t = t
        self.t_min = min(t, t_old)
        self.t_max = max(t, t_old)

    def __call__(self, t: Union[float, np.ndarray]) -> np.ndarray:
        """Evaluate the interpolant.

        Parameters
        ----------
        t : float or array_like, shape (m,)
            Points to evaluate at.

        Returns
        -------
        numpy.ndarray
            Shape ``(n,)`` for a scalar *t*, ``(n, m)`` otherwise.

        Raises
        ------
        :class:`~kutta.algorithms.utils.exceptions.InvalidArgumentError`
            If *t* has more than one dimension.
        """
        t = np.asarray(t)
        if t.ndim > 1:
            raise InvalidArgumentError("`t` must be a float or a 1-D array.")
        return self._call_impl(t)

    @abstractmethod
    def _call_impl(self, t: np.ndarray) -> np.ndarray:
        pass

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(t_old={self.t_old}, t={self.t})"


class _ConstantDenseOutput(_DenseOutput):
    """Interpolant of a step that did not move the state.

    Used when the step had zero length or the problem is zero-dimensional:
    the value is returned unchanged at every query point.
    """

    def __init__(self, t_old: float, t: float, value: np.ndarray):
        super().__init__(t_old, t)
        self.value = np.array(value, copy=True)
        self.value.setflags(write=False)

    def _call_impl(self, t: np.ndarray) -> np.ndarray:
        if t.ndim == 0:
            return self.value.copy()
        ret = np.empty((self.value.shape[0], t.shape[0]), dtype=self.value.dtype)
        ret[:] = self.value[:, None]
        return ret


class _RkDenseOutput(_DenseOutput):
    """Polynomial continuous extension of an explicit Runge-Kutta step.

    The interpolant reads

    .. math::

        y(t_{old} + x h) = y_{old} + h \\sum_{c=0}^{q-1} Q_{:, c} x^{c+1},
        \\qquad x = (t - t_{old}) / h,

    with ``Q = K.T @ P`` built from the stage derivatives of the step.

    Parameters
    ----------
    t_old, t : float
        Endpoints of the step; ``h = t - t_old`` keeps its sign.
    y_old : numpy.ndarray, shape (n,)
        State at *t_old*.
    Q : numpy.ndarray, shape (n, q)
        Polynomial coefficients.
    """

    def __init__(self, t_old: float, t: float, y_old: np.ndarray, Q: np.ndarray):
        super().__init__(t_old, t)
        self.h = t - t_old
        self.Q = np.array(Q, copy=True)
        self.y_old = np.array(y_old, copy=True)
        self.order = self.Q.shape[1] - 1
        self.Q.setflags(write=False)
        self.y_old.setflags(write=False)

    def _call_impl(self, t: np.ndarray) -> np.ndarray:
        x = (t - self.t_old) / self.h
        # Horner: ((Q_q x + Q_{q-1}) x + ...) x
        if t.ndim == 0:
            y = np.zeros_like(self.y_old)
            for c in range(self.order, -1, -1):
                y = (y + self.Q[:, c]) * x
            return self.y_old + self.h * y

        y = np.zeros((self.y_old.shape[0], t.shape[0]), dtype=self.Q.dtype)
        for c in range(self.order, -1, -1):
            y = (y + self.Q[:, c, None]) * x
        return self.y_old[:, None] + self.h * y
