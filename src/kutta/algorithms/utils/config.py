import numpy as np

# Global flag for Numba's fastmath option
FASTMATH = False

# Machine epsilon of the float64 working precision
EPS = np.finfo(float).eps

# Default tolerances of the adaptive integrators
RTOL = 1e-3
ATOL = 1e-6
