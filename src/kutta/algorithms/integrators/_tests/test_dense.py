import numpy as np
import pytest

from kutta.algorithms.integrators.dense import (_ConstantDenseOutput,
                                                _DenseOutput, _RkDenseOutput)
from kutta.algorithms.integrators.rk import _RK23, _RK45
from kutta.algorithms.utils.exceptions import InvalidArgumentError


def oscillator(t, y):
    return np.array([y[1], -y[0]])


def exact(t):
    t = np.asarray(t)
    return np.array([np.cos(t), -np.sin(t)])


@pytest.fixture(scope="module", params=[_RK23, _RK45])
def stepped_solver(request):
    """Solver for the harmonic oscillator after one accepted step."""
    solver = request.param(oscillator, 0.0, [1.0, 0.0], 10.0, rtol=1e-9, atol=1e-12, first_step=0.05)
    solver.step()
    return solver


def test_polynomial_interpolant_type(stepped_solver):
    sol = stepped_solver.dense_output()
    assert isinstance(sol, _RkDenseOutput)
    assert isinstance(sol, _DenseOutput)
    assert sol.t_old == stepped_solver.t_old
    assert sol.t == stepped_solver.t
    assert sol.t_min == 0.0
    assert sol.t_max == stepped_solver.t


def test_interpolant_matches_endpoints(stepped_solver):
    sol = stepped_solver.dense_output()
    np.testing.assert_array_equal(sol(stepped_solver.t_old), [1.0, 0.0])
    np.testing.assert_allclose(sol(stepped_solver.t), stepped_solver.y, rtol=1e-12, atol=1e-14)


def test_interpolant_inside_step(stepped_solver):
    sol = stepped_solver.dense_output()
    ts = np.linspace(stepped_solver.t_old, stepped_solver.t, 7)

    values = sol(ts)

    assert values.shape == (2, 7)
    np.testing.assert_allclose(values, exact(ts), atol=1e-7)
    # Scalar and vector evaluations agree
    np.testing.assert_allclose(sol(ts[3]), values[:, 3], rtol=1e-14)


def test_interpolant_rejects_rank_two(stepped_solver):
    sol = stepped_solver.dense_output()
    with pytest.raises(InvalidArgumentError):
        sol(np.zeros((2, 2)))


def test_interpolant_survives_further_steps():
    solver = _RK45(oscillator, 0.0, [1.0, 0.0], 10.0, rtol=1e-9, atol=1e-12)
    solver.step()
    first = solver.dense_output()
    t_mid = 0.5 * (first.t_old + first.t)
    before = first(t_mid)

    solver.step()
    solver.step()

    np.testing.assert_array_equal(first(t_mid), before)
    assert solver.dense_output().t_old > first.t_old


def test_backward_step_interpolant():
    solver = _RK45(oscillator, 0.0, [1.0, 0.0], -10.0, rtol=1e-9, atol=1e-12)
    solver.step()
    sol = solver.dense_output()

    assert sol.h < 0
    assert sol.t_min == solver.t
    assert sol.t_max == 0.0
    t_mid = 0.5 * solver.t
    np.testing.assert_allclose(sol(t_mid), exact(t_mid), atol=1e-7)


def test_complex_interpolant():
    solver = _RK45(lambda t, y: 1j * y, 0.0, [1.0 + 0.0j], 5.0, rtol=1e-9, atol=1e-12)
    solver.step()
    sol = solver.dense_output()
    t_mid = 0.5 * solver.t

    assert sol(t_mid).dtype == np.complex128
    np.testing.assert_allclose(sol(t_mid), [np.exp(1j * t_mid)], atol=1e-7)


def test_constant_interpolant():
    value = np.array([1.5, -2.0])
    sol = _ConstantDenseOutput(3.0, 3.0, value)

    np.testing.assert_array_equal(sol(3.0), value)
    np.testing.assert_array_equal(sol(np.array([3.0, 3.0, 3.0])), np.tile(value[:, None], 3))
    with pytest.raises(InvalidArgumentError):
        sol([[3.0]])

    # Stored value is independent of the caller's array
    value[0] = 0.0
    assert sol(3.0)[0] == 1.5
    # and of previously returned results
    out = sol(3.0)
    out[1] = 7.0
    assert sol(3.0)[1] == -2.0


def test_interpolant_after_failed_step():
    def blows_up(t, y):
        if t > 0.5:
            return np.full_like(y, np.nan)
        return -y

    solver = _RK45(blows_up, 0.0, [1.0], 2.0, first_step=0.1)
    for _ in range(10000):
        if solver.status.value != "running":
            break
        solver.step()

    assert solver.status.value == "failed"
    assert solver.t_old is not None
    sol = solver.dense_output()

    np.testing.assert_allclose(sol(solver.t), solver.y, rtol=1e-12)
    np.testing.assert_array_equal(sol(solver.t_old), solver.y_old)
    assert np.all(np.isfinite(sol(np.linspace(solver.t_old, solver.t, 5))))
