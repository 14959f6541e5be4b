"""Adaptive explicit Runge-Kutta integrators.

The step-by-step solvers :class:`RK45` and :class:`RK23` expose
``step()`` and ``dense_output()``; :func:`integrate` drives one of them over
a whole interval.
"""

from .base import SolverStatus
from .base import _OdeSolver as OdeSolver
from .base import _Solution as Solution
from .configs import _IntegrationConfig as IntegrationConfig
from .dense import _ConstantDenseOutput as ConstantDenseOutput
from .dense import _DenseOutput as DenseOutput
from .dense import _RkDenseOutput as RkDenseOutput
from .rk import _RK23 as RK23
from .rk import _RK45 as RK45
from .rk import _RungeKutta as RungeKutta
from .rk import rk_step, select_initial_step
from .solve import integrate

__all__ = [
    "SolverStatus",
    "OdeSolver",
    "Solution",
    "IntegrationConfig",
    "DenseOutput",
    "ConstantDenseOutput",
    "RkDenseOutput",
    "RungeKutta",
    "RK23",
    "RK45",
    "rk_step",
    "select_initial_step",
    "integrate",
]
