"""
Custom exceptions for the integrators package.
"""

class KuttaError(Exception):
    """Base exception for kutta errors.
    
    Parameters
    ----------
    message : str
        The error message.
    """

    def __init__(self, message: str):
        super().__init__(message)


class InvalidArgumentError(KuttaError, ValueError):
    """Raised when an argument is outside the accepted domain.

    Covers bad tolerances, step bounds, ranks and call shapes.

    Parameters
    ----------
    message : str
        The error message.
    """

    def __init__(self, message: str):
        super().__init__(message)


class NonFiniteValueError(KuttaError, ValueError):
    """Raised when an initial condition contains ``nan`` or ``inf``.
    
    Parameters
    ----------
    message : str
        The error message.
    """

    def __init__(self, message: str):
        super().__init__(message)


class InvalidStateError(KuttaError, RuntimeError):
    """Raised when a solver operation is called in the wrong state.
    
    Parameters
    ----------
    message : str
        The error message.
    """
    
    def __init__(self, message: str):
        super().__init__(message)


class StepTooSmallError(KuttaError):
    """Raised when the step size underflows the spacing of floating point numbers.

    The solver converts this error into a failed status; it does not reach
    callers of :meth:`~kutta.algorithms.integrators.base._OdeSolver.step`.
    
    Parameters
    ----------
    message : str
        The error message.
    """
    
    def __init__(self, message: str):
        super().__init__(message)
