"""Drive a step-by-step solver over a whole interval and collect its output."""

from typing import Callable, Optional, Sequence

import numpy as np

from kutta.algorithms.integrators.base import SolverStatus, _Solution
from kutta.algorithms.integrators.configs import _IntegrationConfig
from kutta.algorithms.integrators.rk import _RK23, _RK45, _RungeKutta
from kutta.algorithms.utils.exceptions import InvalidArgumentError
from kutta.utils.log_config import logger

_METHODS = {"RK45": _RK45, "RK23": _RK23}


def _build_solver(fun: Callable, t0: float, y0, tf: float, config: _IntegrationConfig) -> _RungeKutta:
    method = _METHODS[config.method]
    return method(
        fun,
        t0,
        y0,
        tf,
        max_step=config.max_step,
        rtol=config.rtol,
        atol=config.atol,
        vectorized=config.vectorized,
        first_step=config.first_step,
    )


def _check_t_eval(t_eval, t0: float, tf: float) -> np.ndarray:
    t_eval = np.asarray(t_eval, dtype=float)
    if t_eval.ndim != 1:
        raise InvalidArgumentError("`t_eval` must be 1-dimensional.")

    t_min, t_max = min(t0, tf), max(t0, tf)
    if np.any(t_eval < t_min) or np.any(t_eval > t_max):
        raise InvalidArgumentError("Values in `t_eval` are not within `t_span`.")

    d = np.diff(t_eval)
    if (tf >= t0 and np.any(d < 0)) or (tf < t0 and np.any(d > 0)):
        raise InvalidArgumentError("Values in `t_eval` are not properly sorted.")
    return t_eval


def integrate(
    fun: Callable,
    t_span: Sequence[float],
    y0,
    t_eval: Optional[Sequence[float]] = None,
    config: Optional[_IntegrationConfig] = None,
    **overrides,
) -> _Solution:
    """Integrate ``dy/dt = fun(t, y)`` over *t_span*.

    Parameters
    ----------
    fun : callable
        Right-hand side ``fun(t, y)``.
    t_span : sequence of two floats
        ``(t0, tf)``; ``tf < t0`` integrates backward.
    y0 : array_like, shape (n,)
        Initial state, real or complex.
    t_eval : array_like or None, optional
        Times at which the solution is reported, sorted along the direction
        of integration.  When None, every accepted step is reported.
    config : :class:`~kutta.algorithms.integrators.configs._IntegrationConfig` or None, optional
        Integration settings; defaults apply when None.
    **overrides
        Fields replacing those of *config*.

    Returns
    -------
    :class:`~kutta.algorithms.integrators.base._Solution`
        Times and states (shape ``(n_points, n)``), with derivatives at the
        accepted steps when *t_eval* is None.

    Raises
    ------
    :class:`~kutta.algorithms.utils.exceptions.InvalidArgumentError`
        If *t_span*, *t_eval* or the configuration is invalid.

    Examples
    --------
    >>> import numpy as np
    >>> sol = integrate(lambda t, y: -y, (0.0, 1.0), [1.0], rtol=1e-8, atol=1e-10)
    >>> bool(abs(sol.states[-1, 0] - np.exp(-1.0)) < 1e-7)
    True
    """
    if config is None:
        config = _IntegrationConfig()
    if overrides:
        config = config.merge(**overrides)

    if len(t_span) != 2:
        raise InvalidArgumentError("`t_span` must contain exactly two values.")
    t0, tf = map(float, t_span)

    solver = _build_solver(fun, t0, y0, tf, config)

    if t_eval is not None:
        t_eval = _check_t_eval(t_eval, t0, tf)
        ts, ys = [], []
        t_eval_i = 0
    else:
        ts, ys, dys = [solver.t], [solver.y.copy()], [solver.f.copy()]

    n_steps = 0
    message = None
    while solver.status is SolverStatus.RUNNING:
        if config.max_steps is not None and n_steps >= config.max_steps:
            message = f"Maximum number of steps ({config.max_steps}) reached."
            break

        success, message = solver.step()
        n_steps += 1
        if not success:
            break

        if t_eval is None:
            ts.append(solver.t)
            ys.append(solver.y.copy())
            dys.append(solver.f.copy())
            continue

        # Sample the points of t_eval swept by this step.
        if solver.direction > 0:
            t_eval_i_new = np.searchsorted(t_eval, solver.t, side="right")
            t_eval_step = t_eval[t_eval_i:t_eval_i_new]
        else:
            t_eval_i_new = np.searchsorted(t_eval[::-1], solver.t, side="left")
            t_eval_i_new = t_eval.size - t_eval_i_new
            t_eval_step = t_eval[t_eval_i:t_eval_i_new]

        if t_eval_step.size > 0:
            ts.extend(t_eval_step)
            ys.extend(solver.dense_output()(t_eval_step).T)
            t_eval_i = t_eval_i_new

    n = solver.n
    times = np.asarray(ts, dtype=float)
    states = np.asarray(ys, dtype=solver.y.dtype).reshape(len(ts), n)
    derivatives = None
    if t_eval is None:
        derivatives = np.asarray(dys, dtype=solver.y.dtype).reshape(len(ts), n)

    if solver.status is SolverStatus.FINISHED:
        logger.info(
            f"{config.method} reached t={solver.t} in {n_steps} steps (nfev={solver.nfev})."
        )
    else:
        logger.warning(f"{config.method} stopped at t={solver.t}: {message}")

    return _Solution(
        times=times,
        states=states,
        derivatives=derivatives,
        status=solver.status,
        message=message,
        nfev=solver.nfev,
        njev=solver.njev,
        nlu=solver.nlu,
    )
