"""Numba kernels shared by the explicit Runge-Kutta integrators.

The kernels are specialised on the dtype of their array arguments, so the
same code serves real (``float64``) and complex (``complex128``) problems.
"""

import numba
import numpy as np

from kutta.algorithms.utils.config import FASTMATH


@numba.njit(cache=False, fastmath=FASTMATH)
def _rms_norm(x):
    """Return the root-mean-square norm ``||x||_2 / sqrt(x.size)``.

    An empty vector has norm 0.
    """
    n = x.size
    if n == 0:
        return 0.0
    acc = 0.0
    for i in range(n):
        v = abs(x[i])
        acc += v * v
    return np.sqrt(acc / n)


@numba.njit(cache=False, fastmath=FASTMATH)
def _combine_stages(y, K, w, h, n_terms):
    """Return ``y + h * sum_{j < n_terms} w[j] * K[j]``.

    Zero weights are skipped; a fresh array is returned and neither *y* nor
    *K* is modified.
    """
    out = y.copy()
    for j in range(n_terms):
        wj = w[j]
        if wj != 0.0:
            out += (h * wj) * K[j]
    return out


@numba.njit(cache=False, fastmath=FASTMATH)
def _scaled_error_norm(K, E, h, scale):
    """Return the RMS norm of the embedded error ``h * (K.T @ E) / scale``."""
    err = np.zeros_like(K[0])
    for j in range(K.shape[0]):
        ej = E[j]
        if ej != 0.0:
            err += ej * K[j]
    err *= h
    return _rms_norm(err / scale)
