"""kutta: adaptive explicit Runge-Kutta integration of ordinary differential equations."""

from .algorithms import (RK23, RK45, IntegrationConfig, InvalidArgumentError,
                         InvalidStateError, KuttaError, NonFiniteValueError,
                         Solution, SolverStatus, StepTooSmallError, integrate)

__version__ = "0.1.0"

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
