""" Public API for the :mod:`~kutta.algorithms` package.
"""

from .integrators import (RK23, RK45, IntegrationConfig, Solution,
                          SolverStatus, integrate)
from .utils.exceptions import (InvalidArgumentError, InvalidStateError,
                               KuttaError, NonFiniteValueError,
                               StepTooSmallError)

__all__ = [
    "RK23",
    "RK45",
    "IntegrationConfig",
    "Solution",
    "SolverStatus",
    "integrate",
    "KuttaError",
    "InvalidArgumentError",
    "NonFiniteValueError",
    "InvalidStateError",
    "StepTooSmallError",
]
