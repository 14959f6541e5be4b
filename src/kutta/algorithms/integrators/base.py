"""Provide the step-by-step integration state machine and the solution container.

References
----------
Hairer, E., Norsett, S. P., & Wanner, G. (1993). "Solving Ordinary
Differential Equations I: Non-stiff Problems".
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, Tuple, Union

import numpy as np

from kutta.algorithms.integrators.dense import (_ConstantDenseOutput,
                                                _DenseOutput)
from kutta.algorithms.integrators.rhs import _build_rhs_function
from kutta.algorithms.integrators.validation import validate_initial_condition
from kutta.algorithms.utils.exceptions import (InvalidStateError,
                                               StepTooSmallError)
from kutta.utils.log_config import logger


class SolverStatus(Enum):
    """Lifecycle of an integration.

    ``RUNNING`` is the only non-terminal state; transitions happen only
    inside :meth:`~kutta.algorithms.integrators.base._OdeSolver.step`::

        RUNNING --accepted step--> RUNNING
        RUNNING --reached t_bound--> FINISHED
        RUNNING --step too small--> FAILED
    """
    RUNNING = "running"
    FINISHED = "finished"
    FAILED = "failed"


class _OdeSolver(ABC):
    """Define the state machine shared by every step-by-step solver.

    The solver owns the problem state ``(t, y)``, the evaluation counters and
    the status.  Concrete methods implement :meth:`_step_impl` and
    :meth:`_dense_output_impl`.

    Parameters
    ----------
    fun : callable
        Right-hand side ``fun(t, y)``; with *vectorized* it takes and returns
        arrays of shape ``(n, k)``.
    t0 : float
        Initial time.
    y0 : array_like, shape (n,)
        Initial state.  Its dtype (real or complex) fixes the working dtype.
    t_bound : float
        Boundary time; the integration never steps past it.
    vectorized : bool, default False
        Calling convention of *fun*.

    Attributes
    ----------
    t_old : float or None
        Time before the last step, None until a step was taken.
    direction : float
        ``+1`` when integrating forward (or ``t_bound == t0``), ``-1`` otherwise.
    status : :class:`~kutta.algorithms.integrators.base.SolverStatus`
        Current status.
    message : str or None
        Reason of the failure once ``status`` is ``FAILED``.

    Raises
    ------
    :class:`~kutta.algorithms.utils.exceptions.InvalidArgumentError`
        If *y0* is not one-dimensional or *fun* is not callable.
    :class:`~kutta.algorithms.utils.exceptions.NonFiniteValueError`
        If *y0* is not finite.
    """

    TOO_SMALL_STEP = "Required step size is less than spacing between numbers."

    def __init__(
        self,
        fun: Callable,
        t0: float,
        y0,
        t_bound: float,
        vectorized: bool = False,
    ):
        self.t_old: Optional[float] = None
        self.t = float(t0)
        self.y = validate_initial_condition(y0)
        self.t_bound = float(t_bound)
        self.vectorized = vectorized
        self.n = self.y.size
        self.fun = _build_rhs_function(fun, self.n, self.y.dtype, vectorized)
        self.direction = np.sign(self.t_bound - self.t) if self.t_bound != self.t else 1.0
        self.status = SolverStatus.RUNNING
        self.message: Optional[str] = None

    @property
    def nfev(self) -> int:
        """Number of evaluated derivative columns."""
        return self.fun.nfev

    @property
    def njev(self) -> int:
        """Number of Jacobian evaluations, always 0 for explicit methods."""
        return 0

    @property
    def nlu(self) -> int:
        """Number of LU decompositions, always 0 for explicit methods."""
        return 0

    @property
    def step_size(self) -> Optional[float]:
        """Absolute size of the last step, None before the first step."""
        if self.t_old is None:
            return None
        return np.abs(self.t - self.t_old)

    def step(self) -> Tuple[bool, Optional[str]]:
        """Advance the integration by one accepted step.

        Returns
        -------
        success : bool
            False when the step size underflowed; the solver is then
            ``FAILED`` and must not be stepped again.
        message : str or None
            Human readable reason of a failure.

        Raises
        ------
        :class:`~kutta.algorithms.utils.exceptions.InvalidStateError`
            If the solver is not ``RUNNING``.
        """
        if self.status is not SolverStatus.RUNNING:
            raise InvalidStateError("Attempt to step on a failed or finished solver.")

        if self.n == 0 or self.t == self.t_bound:
            # Nothing to integrate: jump to the end without evaluating fun.
            self.t_old = self.t
            self.t = self.t_bound
            self.status = SolverStatus.FINISHED
            return True, None

        t = self.t
        try:
            self._step_impl()
        except StepTooSmallError as exc:
            self.status = SolverStatus.FAILED
            self.message = str(exc)
            logger.debug(f"{self.__class__.__name__} failed at t={t}: {self.message}")
            return False, self.message

        self.t_old = t
        if self.direction * (self.t - self.t_bound) >= 0:
            self.status = SolverStatus.FINISHED
        return True, None

    def dense_output(self) -> _DenseOutput:
        """Return the local interpolant of the last step.

        Returns
        -------
        :class:`~kutta.algorithms.integrators.dense._DenseOutput`
            Constant for a zero-length step or an empty state, polynomial
            otherwise.

        Raises
        ------
        :class:`~kutta.algorithms.utils.exceptions.InvalidStateError`
            If no step was taken yet.
        """
        if self.t_old is None:
            raise InvalidStateError("Dense output is available after a successful step was made.")

        if self.n == 0 or self.t == self.t_old:
            return _ConstantDenseOutput(self.t_old, self.t, self.y)
        return self._dense_output_impl()

    @abstractmethod
    def _step_impl(self) -> None:
        """Advance ``(t, y)`` by one accepted step or raise ``StepTooSmallError``."""
        pass

    @abstractmethod
    def _dense_output_impl(self) -> _DenseOutput:
        pass

    def __repr__(self):
        return (
            f"{self.__class__.__name__}(t={self.t}, t_bound={self.t_bound}, "
            f"n={self.n}, status={self.status.value})"
        )


@dataclass
class _Solution:
    """
    Container for integration results.

    Attributes
    ----------
    times : numpy.ndarray
        Array of time points, shape (n_points,)
    states : numpy.ndarray
        Array of state vectors, shape (n_points, n_dim)
    derivatives : numpy.ndarray or None, optional
        Array of time derivatives f(t, y) evaluated at the stored time points,
        shape (n_points, n_dim).  When provided, cubic Hermite interpolation is
        used; otherwise interpolation falls back to linear.
    status : SolverStatus
        Terminal (or, when the step budget ran out, running) status of the solver.
    message : str or None
        Failure reason reported by the solver or the driver.
    nfev, njev, nlu : int
        Evaluation counters of the solver.
    """
    times: np.ndarray
    states: np.ndarray
    derivatives: Optional[np.ndarray] = None
    status: SolverStatus = SolverStatus.FINISHED
    message: Optional[str] = None
    nfev: int = 0
    njev: int = 0
    nlu: int = 0

    def __post_init__(self):
        if len(self.times) != len(self.states):
            raise ValueError(
                f"Times and states must have same length: "
                f"{len(self.times)} != {len(self.states)}"
            )
        if self.derivatives is not None and len(self.derivatives) != len(self.times):
            raise ValueError(
                "If provided, derivatives must have the same length as times "
                f"({len(self.derivatives)} != {len(self.times)})"
            )

    @property
    def success(self) -> bool:
        """True when the integration reached its boundary time."""
        return self.status is SolverStatus.FINISHED

    def interpolate(self, t: Union[np.ndarray, float]) -> np.ndarray:
        """Evaluate the solution at arbitrary time points by interpolation.

        If *derivatives* are available, a cubic Hermite interpolant is used on
        every interval; otherwise linear interpolation is applied.

        Parameters
        ----------
        t : float or array_like
            Time (or array of times) at which to evaluate the solution.  Must
            lie within the recorded interval.

        Returns
        -------
        ndarray
            Interpolated state(s) with shape ``(n_dim,)`` for a scalar *t* or
            ``(n_times, n_dim)`` for an array input.
        """
        if len(self.times) < 2:
            raise ValueError("Interpolation needs at least two recorded time points.")

        t_arr = np.atleast_1d(t).astype(float)

        # Work on increasing times whatever the integration direction.
        if self.times[-1] < self.times[0]:
            times = self.times[::-1]
            states = self.states[::-1]
            derivs = None if self.derivatives is None else self.derivatives[::-1]
        else:
            times, states, derivs = self.times, self.states, self.derivatives

        if np.any(t_arr < times[0]) or np.any(t_arr > times[-1]):
            raise ValueError("Interpolation times must lie within the solution interval.")

        # For each query time, locate the bracketing interval.
        idxs = np.searchsorted(times, t_arr, side="right") - 1
        idxs = np.clip(idxs, 0, len(times) - 2)

        t0 = times[idxs]
        t1 = times[idxs + 1]
        y0 = states[idxs]
        y1 = states[idxs + 1]

        h = (t1 - t0)
        # Normalised position in interval, 0 <= s <= 1; zero-length intervals map to s = 0
        s = np.divide(t_arr - t0, h, out=np.zeros_like(t_arr), where=h != 0)

        if derivs is None:
            y_out = y0 + ((y1 - y0).T * s).T
        else:
            f0 = derivs[idxs]
            f1 = derivs[idxs + 1]

            s2 = s * s
            s3 = s2 * s
            h00 = 2 * s3 - 3 * s2 + 1
            h10 = s3 - 2 * s2 + s
            h01 = -2 * s3 + 3 * s2
            h11 = s3 - s2

            # Broadcast the Hermite basis functions to match state dimensions.
            y_out = (
                (h00[:, None] * y0) +
                (h10[:, None] * (h[:, None] * f0)) +
                (h01[:, None] * y1) +
                (h11[:, None] * (h[:, None] * f1))
            )

        # Return scalar shape if scalar input.
        if np.isscalar(t):
            return y_out[0]
        return y_out
