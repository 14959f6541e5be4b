"""Provide embedded explicit Runge-Kutta integrators with adaptive step size.

The module holds the single-step routine, the initial step heuristic and the
adaptive controller shared by every tableau, together with the concrete
Bogacki-Shampine 3(2) and Dormand-Prince 5(4) methods.

References
----------
Hairer, E.; Norsett, S.; Wanner, G. (1993). "Solving Ordinary Differential
Equations I", Sec. II.4 and II.6.

Dormand, J. R.; Prince, P. J. (1980). "A family of embedded Runge-Kutta
formulae".
"""

from typing import Callable, Optional, Tuple

import numpy as np

from kutta.algorithms.integrators.base import _OdeSolver
from kutta.algorithms.integrators.coefficients import rk23, rk45
from kutta.algorithms.integrators.dense import _RkDenseOutput
from kutta.algorithms.integrators.kernels import (_combine_stages, _rms_norm,
                                                  _scaled_error_norm)
from kutta.algorithms.integrators.validation import (validate_first_step,
                                                     validate_max_step,
                                                     validate_tol)
from kutta.algorithms.utils.config import ATOL, RTOL
from kutta.algorithms.utils.exceptions import StepTooSmallError


def rk_step(
    fun: Callable,
    t: float,
    y: np.ndarray,
    f: np.ndarray,
    h: float,
    A: np.ndarray,
    B: np.ndarray,
    C: np.ndarray,
    K: np.ndarray,
) -> Tuple[np.ndarray, np.ndarray]:
    """Perform a single explicit Runge-Kutta step.

    Parameters
    ----------
    fun : callable
        Right-hand side ``fun(t, y)``.
    t : float
        Current time.
    y : numpy.ndarray, shape (n,)
        Current state.
    f : numpy.ndarray, shape (n,)
        ``fun(t, y)``, reused as the first stage.
    h : float
        Signed step.
    A : numpy.ndarray, shape (n_stages, n_stages)
        Strictly lower triangular stage coefficients.
    B : numpy.ndarray, shape (n_stages,)
        Solution weights.
    C : numpy.ndarray, shape (n_stages,)
        Stage nodes in units of *h*.
    K : numpy.ndarray, shape (n_stages + 1, n)
        Scratch storage, overwritten with the stage derivatives; the last row
        receives ``fun(t + h, y_new)``.

    Returns
    -------
    y_new : numpy.ndarray, shape (n,)
        Proposed state at ``t + h``.
    f_new : numpy.ndarray, shape (n,)
        Derivative at ``(t + h, y_new)``, the first stage of the next step.
    """
    n_stages = B.size
    K[0] = f
    for s in range(1, n_stages):
        y_stage = _combine_stages(y, K, A[s], h, s)
        K[s] = fun(t + C[s] * h, y_stage)

    y_new = _combine_stages(y, K, B, h, n_stages)
    f_new = fun(t + h, y_new)
    K[-1] = f_new
    return y_new, f_new


def select_initial_step(
    fun: Callable,
    t0: float,
    y0: np.ndarray,
    f0: np.ndarray,
    direction: float,
    order: int,
    rtol,
    atol,
    max_step: float = np.inf,
) -> float:
    """Estimate a starting step size from the local scale of the solution.

    Parameters
    ----------
    fun : callable
        Right-hand side; evaluated once for the probe step.
    t0 : float
        Initial time.
    y0 : numpy.ndarray, shape (n,)
        Initial state.
    f0 : numpy.ndarray, shape (n,)
        ``fun(t0, y0)``.
    direction : float
        Integration direction, ``+1`` or ``-1``.
    order : int
        Error estimator order; the local error is assumed to behave as
        ``h ** (order + 1)``.
    rtol, atol : float or numpy.ndarray
        Tolerances.
    max_step : float, default np.inf
        Upper bound on the result.

    Returns
    -------
    float
        Absolute initial step, ``np.inf`` for an empty state.

    References
    ----------
    Hairer, Norsett & Wanner (1993), Sec. II.4.
    """
    if y0.size == 0:
        return np.inf

    scale = atol + np.abs(y0) * rtol
    d0 = _rms_norm(y0 / scale)
    d1 = _rms_norm(f0 / scale)
    if d0 < 1e-5 or d1 < 1e-5:
        h0 = 1e-6
    else:
        h0 = 0.01 * d0 / d1

    y1 = y0 + h0 * direction * f0
    f1 = fun(t0 + h0 * direction, y1)
    d2 = _rms_norm((f1 - f0) / scale) / h0

    if d1 <= 1e-15 and d2 <= 1e-15:
        h1 = max(1e-6, h0 * 1e-3)
    else:
        h1 = (0.01 / max(d1, d2)) ** (1 / (order + 1))

    return min(100 * h0, h1, max_step)


class _RungeKutta(_OdeSolver):
    """Implement an embedded explicit Runge-Kutta method with adaptive steps.

    Concrete subclasses supply the Butcher tableau as class attributes.

    Parameters
    ----------
    fun, t0, y0, t_bound, vectorized
        See :class:`~kutta.algorithms.integrators.base._OdeSolver`.
    max_step : float, default np.inf
        Upper bound on the absolute step size.
    rtol, atol : float or array_like, optional
        Relative and absolute tolerances.  Defaults are read from
        :mod:`~kutta.algorithms.utils.config`.
    first_step : float or None, optional
        Initial absolute step; estimated with
        :func:`~kutta.algorithms.integrators.rk.select_initial_step` when None.

    Attributes
    ----------
    SAFETY, MIN_FACTOR, MAX_FACTOR : float
        Constants of the step size controller.
    h_abs : float
        Absolute step size proposed for the next step.
    h_previous : float or None
        Absolute size of the last accepted step.
    K : numpy.ndarray, shape (n_stages + 1, n)
        Stage derivatives of the last accepted step.
    f : numpy.ndarray, shape (n,)
        Derivative at the current ``(t, y)``.

    Raises
    ------
    :class:`~kutta.algorithms.utils.exceptions.InvalidArgumentError`
        If a tolerance or step bound is invalid.
    """

    SAFETY = 0.9
    MIN_FACTOR = 0.2
    MAX_FACTOR = 10.0

    C: np.ndarray = NotImplemented
    A: np.ndarray = NotImplemented
    B: np.ndarray = NotImplemented
    E: np.ndarray = NotImplemented
    P: np.ndarray = NotImplemented
    order: int = NotImplemented
    error_estimator_order: int = NotImplemented
    n_stages: int = NotImplemented

    def __init__(
        self,
        fun: Callable,
        t0: float,
        y0,
        t_bound: float,
        max_step: float = np.inf,
        rtol=RTOL,
        atol=ATOL,
        vectorized: bool = False,
        first_step: Optional[float] = None,
    ):
        super().__init__(fun, t0, y0, t_bound, vectorized)
        self.y_old: Optional[np.ndarray] = None
        self.max_step = validate_max_step(max_step)
        self.rtol, self.atol = validate_tol(rtol, atol, self.n)
        if self.n == 0:
            self.f = np.empty(0, dtype=self.y.dtype)
        else:
            self.f = self.fun(self.t, self.y)

        if first_step is None:
            self.h_abs = select_initial_step(
                self.fun, self.t, self.y, self.f, self.direction,
                self.error_estimator_order, self.rtol, self.atol, self.max_step,
            )
        else:
            self.h_abs = validate_first_step(first_step, t0, t_bound)

        self.K = np.empty((self.n_stages + 1, self.n), dtype=self.y.dtype)
        self.error_exponent = -1 / (self.error_estimator_order + 1)
        self.h_previous: Optional[float] = None

    def _estimate_error_norm(self, K: np.ndarray, h: float, scale: np.ndarray) -> float:
        return _scaled_error_norm(K, self.E, h, scale)

    def step_factor(self, error_norm: float, rejected: bool = False) -> float:
        """Return the multiplier applied to the step size after an error estimate.

        Parameters
        ----------
        error_norm : float
            Scaled RMS norm of the local error estimate.
        rejected : bool, default False
            Whether a trial was already rejected in the current step; growth
            is then capped at 1.

        Returns
        -------
        float
            A factor in ``[MIN_FACTOR, MAX_FACTOR]``.
        """
        if error_norm < 1:
            if error_norm == 0:
                factor = self.MAX_FACTOR
            else:
                factor = min(self.MAX_FACTOR, self.SAFETY * error_norm ** self.error_exponent)
            if rejected:
                factor = min(1.0, factor)
            return factor
        return max(self.MIN_FACTOR, self.SAFETY * error_norm ** self.error_exponent)

    def _step_impl(self) -> None:
        t = self.t
        y = self.y

        max_step = self.max_step
        rtol = self.rtol
        atol = self.atol

        min_step = 10 * np.abs(np.nextafter(t, self.direction * np.inf) - t)

        if self.h_abs > max_step:
            h_abs = max_step
        elif self.h_abs < min_step:
            h_abs = min_step
        else:
            h_abs = self.h_abs

        K = np.empty_like(self.K)
        step_accepted = False
        step_rejected = False

        while not step_accepted:
            if h_abs < min_step:
                raise StepTooSmallError(self.TOO_SMALL_STEP)

            h = h_abs * self.direction
            t_new = t + h

            if self.direction * (t_new - self.t_bound) > 0:
                t_new = self.t_bound

            h = t_new - t
            h_abs = np.abs(h)

            y_new, f_new = rk_step(self.fun, t, y, self.f, h, self.A, self.B, self.C, K)
            scale = atol + np.maximum(np.abs(y), np.abs(y_new)) * rtol
            error_norm = self._estimate_error_norm(K, h, scale)

            if error_norm < 1:
                h_abs *= self.step_factor(error_norm, step_rejected)
                step_accepted = True
            else:
                h_abs *= self.step_factor(error_norm)
                step_rejected = True

        self.h_previous = np.abs(h)
        self.y_old = y
        self.K = K

        self.t = t_new
        self.y = y_new

        self.h_abs = h_abs
        self.f = f_new

    def _dense_output_impl(self) -> _RkDenseOutput:
        Q = self.K.T.dot(self.P)
        return _RkDenseOutput(self.t_old, self.t, self.y_old, Q)


class _RK23(_RungeKutta):
    """Implement the Bogacki-Shampine 3(2) method.

    Third-order solution with a second-order embedded error estimate and a
    cubic Hermite continuous extension.  Four evaluations per step thanks to
    the FSAL property; suited to loose tolerances.
    """
    C = rk23.C
    A = rk23.A
    B = rk23.B
    E = rk23.E
    P = rk23.P
    order = rk23.ORDER
    error_estimator_order = rk23.ERROR_ESTIMATOR_ORDER
    n_stages = rk23.N_STAGES


class _RK45(_RungeKutta):
    """Implement the Dormand-Prince 5(4) method.

    Fifth-order solution advanced with a fourth-order error estimate (local
    extrapolation) and a quartic continuous extension.  A good default for
    non-stiff problems at moderate tolerances.
    """
    C = rk45.C
    A = rk45.A
    B = rk45.B
    E = rk45.E
    P = rk45.P
    order = rk45.ORDER
    error_estimator_order = rk45.ERROR_ESTIMATOR_ORDER
    n_stages = rk45.N_STAGES
