"""Validate user supplied tolerances, step bounds and initial conditions.

Every function either returns its (possibly normalised) input or raises a
subclass of :class:`~kutta.algorithms.utils.exceptions.KuttaError`.  None of
them keeps state.
"""

from typing import Tuple, Union

import numpy as np

from kutta.algorithms.utils.config import EPS
from kutta.algorithms.utils.exceptions import (InvalidArgumentError,
                                               NonFiniteValueError)
from kutta.utils.log_config import logger


def validate_max_step(max_step: float) -> float:
    """Check that *max_step* is strictly positive.

    Parameters
    ----------
    max_step : float
        Upper bound on the step size, ``np.inf`` for no bound.

    Returns
    -------
    float
        *max_step* unchanged.

    Raises
    ------
    :class:`~kutta.algorithms.utils.exceptions.InvalidArgumentError`
        If ``max_step <= 0``.
    """
    if not max_step > 0:
        raise InvalidArgumentError("`max_step` must be positive.")
    return max_step


def validate_first_step(first_step: float, t0: float, t_bound: float) -> float:
    """Check that *first_step* is positive and fits inside ``[t0, t_bound]``.

    Raises
    ------
    :class:`~kutta.algorithms.utils.exceptions.InvalidArgumentError`
        If ``first_step <= 0`` or ``first_step > |t_bound - t0|``.
    """
    if not first_step > 0:
        raise InvalidArgumentError("`first_step` must be positive.")
    if first_step > np.abs(t_bound - t0):
        raise InvalidArgumentError("`first_step` exceeds bounds.")
    return first_step


def validate_tol(
    rtol: Union[float, np.ndarray],
    atol: Union[float, np.ndarray],
    n: int,
) -> Tuple[Union[float, np.ndarray], Union[float, np.ndarray]]:
    """Validate relative and absolute tolerances.

    Components of *rtol* below ``100 * EPS`` cannot be honoured in double
    precision; they are raised to that floor and a warning is logged.

    Parameters
    ----------
    rtol, atol : float or array_like
        Scalars, or arrays of shape ``(n,)`` for per-component tolerances.
    n : int
        State dimension.

    Returns
    -------
    tuple
        ``(rtol, atol)`` as floats or float arrays.

    Raises
    ------
    :class:`~kutta.algorithms.utils.exceptions.InvalidArgumentError`
        If a tolerance array has the wrong shape or *atol* has a negative
        component.
    """
    rtol = np.asarray(rtol, dtype=float)
    if rtol.ndim > 0 and rtol.shape != (n,):
        raise InvalidArgumentError("`rtol` has wrong shape.")
    if np.any(rtol < 100 * EPS):
        logger.warning(
            f"At least one element of `rtol` is too small. "
            f"Setting `rtol = np.maximum(rtol, {100 * EPS})`."
        )
        rtol = np.maximum(rtol, 100 * EPS)

    atol = np.asarray(atol, dtype=float)
    if atol.ndim > 0 and atol.shape != (n,):
        raise InvalidArgumentError("`atol` has wrong shape.")
    if np.any(atol < 0):
        raise InvalidArgumentError("All elements of `atol` must be non-negative.")

    if rtol.ndim == 0:
        rtol = float(rtol)
    if atol.ndim == 0:
        atol = float(atol)
    return rtol, atol


def validate_initial_condition(y0) -> np.ndarray:
    """Convert *y0* to the working array of an integration.

    Real input is stored as ``float64`` and complex input as ``complex128``;
    the problem is never upcast to complex on its own.

    Raises
    ------
    :class:`~kutta.algorithms.utils.exceptions.InvalidArgumentError`
        If *y0* is not one-dimensional.
    :class:`~kutta.algorithms.utils.exceptions.NonFiniteValueError`
        If *y0* contains ``nan`` or ``inf``.
    """
    y0 = np.asarray(y0)
    if np.issubdtype(y0.dtype, np.complexfloating):
        dtype = np.complex128
    else:
        dtype = np.float64
    y0 = np.array(y0, dtype=dtype, copy=True)

    if y0.ndim != 1:
        raise InvalidArgumentError("`y0` must be 1-dimensional.")

    if not np.isfinite(y0).all():
        raise NonFiniteValueError("All components of the initial state `y0` must be finite.")

    return y0
