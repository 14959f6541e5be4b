"""Bogacki-Shampine 3(2) tableau.

Bogacki, P.; Shampine, L. F. (1989). "A 3(2) pair of Runge-Kutta formulas".
"""

import numpy as np

N_STAGES = 3
ORDER = 3
ERROR_ESTIMATOR_ORDER = 2

C = np.array([0.0, 1 / 2, 3 / 4], dtype=np.float64)

A = np.array([
    [0.0, 0.0, 0.0],
    [1 / 2, 0.0, 0.0],
    [0.0, 3 / 4, 0.0],
], dtype=np.float64)

B = np.array([2 / 9, 1 / 3, 4 / 9], dtype=np.float64)

# Difference between the embedded 2nd-order and the 3rd-order weights; the
# last entry multiplies the FSAL stage f(t + h, y_new).
E = np.array([5 / 72, -1 / 12, -1 / 9, 1 / 8], dtype=np.float64)

# Continuous extension (cubic Hermite), one row per stage including FSAL.
P = np.array([
    [1.0, -4 / 3, 5 / 9],
    [0.0, 1.0, -2 / 3],
    [0.0, 4 / 3, -8 / 9],
    [0.0, -1.0, 1.0],
], dtype=np.float64)
