import logging

import numpy as np
import pytest

from kutta.algorithms.integrators.validation import (
    validate_first_step, validate_initial_condition, validate_max_step,
    validate_tol)
from kutta.algorithms.utils.config import EPS
from kutta.algorithms.utils.exceptions import (InvalidArgumentError,
                                               NonFiniteValueError)


@pytest.mark.parametrize("max_step", [1e-8, 1.0, np.inf])
def test_max_step_accepts_positive(max_step):
    assert validate_max_step(max_step) == max_step


@pytest.mark.parametrize("max_step", [0.0, -1.0, np.nan])
def test_max_step_rejects_non_positive(max_step):
    with pytest.raises(InvalidArgumentError):
        validate_max_step(max_step)


def test_first_step_bounds():
    assert validate_first_step(0.5, 0.0, 1.0) == 0.5
    # The whole interval is allowed, in both directions
    assert validate_first_step(1.0, 1.0, 0.0) == 1.0

    with pytest.raises(InvalidArgumentError):
        validate_first_step(0.0, 0.0, 1.0)
    with pytest.raises(InvalidArgumentError):
        validate_first_step(-0.1, 0.0, 1.0)
    with pytest.raises(InvalidArgumentError):
        validate_first_step(1.5, 0.0, 1.0)


def test_tol_scalars_pass_through():
    rtol, atol = validate_tol(1e-6, 1e-9, 3)
    assert rtol == 1e-6
    assert atol == 1e-9


def test_tol_clamps_small_rtol_with_warning(caplog):
    with caplog.at_level(logging.WARNING, logger="kutta"):
        rtol, _ = validate_tol(1e-20, 1e-9, 2)

    assert rtol == 100 * EPS
    assert any("rtol" in record.getMessage() for record in caplog.records)


def test_tol_clamps_only_small_components(caplog):
    with caplog.at_level(logging.WARNING, logger="kutta"):
        rtol, _ = validate_tol([1e-20, 1e-3], 1e-9, 2)

    np.testing.assert_array_equal(rtol, [100 * EPS, 1e-3])


def test_tol_per_component_atol():
    _, atol = validate_tol(1e-3, [1e-6, 1e-8, 0.0], 3)
    np.testing.assert_array_equal(atol, [1e-6, 1e-8, 0.0])


@pytest.mark.parametrize("atol", [-1e-6, [1e-6, -1e-6]])
def test_tol_rejects_negative_atol(atol):
    with pytest.raises(InvalidArgumentError, match="non-negative"):
        validate_tol(1e-3, atol, 2)


def test_tol_rejects_wrong_shape():
    with pytest.raises(InvalidArgumentError):
        validate_tol(1e-3, [1e-6, 1e-6, 1e-6], 2)
    with pytest.raises(InvalidArgumentError):
        validate_tol([1e-3, 1e-3, 1e-3], 1e-6, 2)


def test_initial_condition_dtype_policy():
    y_real = validate_initial_condition([1, 2, 3])
    assert y_real.dtype == np.float64

    y_complex = validate_initial_condition([1.0 + 2.0j, 0.0])
    assert y_complex.dtype == np.complex128

    # Empty states are valid
    assert validate_initial_condition([]).shape == (0,)


def test_initial_condition_is_copied():
    y0 = np.array([1.0, 2.0])
    y = validate_initial_condition(y0)
    y[0] = 10.0
    assert y0[0] == 1.0


@pytest.mark.parametrize("y0", [1.0, [[1.0, 2.0]], np.zeros((2, 2))])
def test_initial_condition_rank(y0):
    with pytest.raises(InvalidArgumentError):
        validate_initial_condition(y0)


@pytest.mark.parametrize("y0", [[1.0, np.nan], [np.inf], [1.0, complex(0.0, np.nan)]])
def test_initial_condition_non_finite(y0):
    with pytest.raises(NonFiniteValueError):
        validate_initial_condition(y0)
