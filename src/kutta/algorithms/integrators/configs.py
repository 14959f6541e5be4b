from dataclasses import dataclass, replace
from typing import Literal, Optional, Sequence, Union

import numpy as np

from kutta.algorithms.utils.config import ATOL, RTOL
from kutta.algorithms.utils.exceptions import InvalidArgumentError


@dataclass(frozen=True)
class _IntegrationConfig:
    """Configuration of an adaptive integration driven by :func:`~kutta.algorithms.integrators.solve.integrate`.

    Parameters
    ----------
    method : {'RK45', 'RK23'}, default='RK45'
        Embedded Runge-Kutta pair to use.
    rtol : float or sequence of float, default=1e-3
        Relative tolerance, scalar or per component.
    atol : float or sequence of float, default=1e-6
        Absolute tolerance, scalar or per component.
    max_step : float, default=inf
        Upper bound on the absolute step size.
    first_step : float or None, default=None
        Initial absolute step; estimated when None.
    vectorized : bool, default=False
        Whether the right-hand side evaluates a matrix of state columns.
    max_steps : int or None, default=None
        Maximum number of accepted steps; unlimited when None.

    Notes
    -----
    Tolerances and step bounds are checked by the solver constructor; this
    class only checks the fields the solver does not see.
    """
    method: Literal["RK45", "RK23"] = "RK45"
    rtol: Union[float, Sequence[float]] = RTOL
    atol: Union[float, Sequence[float]] = ATOL
    max_step: float = np.inf
    first_step: Optional[float] = None
    vectorized: bool = False
    max_steps: Optional[int] = None

    def __post_init__(self):
        self._validate()

    def _validate(self) -> None:
        """Validate the configuration."""
        if self.method not in ("RK45", "RK23"):
            raise InvalidArgumentError(
                f"Unknown integration method '{self.method}'; expected 'RK45' or 'RK23'."
            )
        if self.max_steps is not None and self.max_steps <= 0:
            raise InvalidArgumentError("`max_steps` must be a positive integer.")

    def merge(self, **overrides) -> "_IntegrationConfig":
        """Return a copy with *overrides* applied (and validated)."""
        return replace(self, **overrides)
