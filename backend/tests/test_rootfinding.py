import math

import pytest

from quantkit.services.errors import (
    DerivativeNearZero,
    MaxIterationsExceeded,
    NumericOverflow,
    PreconditionViolated,
)
from quantkit.services.rootfinding import bisect, newton


def f(x):
    return 3.0 * x - math.exp(x)


def fprime(x):
    return 3.0 - math.exp(x)


def test_bisect_stays_in_bracket_and_hits_tolerance():
    res = bisect(f, 1.0, 2.0, tol=1e-4)
    assert res.method == "bisect"
    assert 1.0 <= res.root <= 2.0
    assert abs(f(res.root)) < 1e-3
    # Half-width 2**-n drops below 1e-4 at n = 14.
    assert res.iterations == 14


def test_newton_beats_bisection_on_smooth_root():
    b = bisect(f, 1.0, 2.0, tol=1e-4)
    n = newton(f, fprime, 1.5, tol=1e-4)
    assert n.iterations < 10
    assert n.iterations < b.iterations
    assert n.root == pytest.approx(b.root, abs=2e-4)


def test_bisect_rejects_bracket_without_sign_change_before_iterating():
    calls = []

    def g(x):
        calls.append(x)
        return x * x + 1.0

    with pytest.raises(PreconditionViolated):
        bisect(g, -1.0, 1.0)
    assert len(calls) == 2


def test_bisect_returns_exact_endpoint_root():
    res = bisect(lambda x: x, 0.0, 1.0)
    assert res.root == 0.0
    assert res.iterations == 0


def test_bisect_midpoint_root_is_immediate_success():
    res = bisect(lambda x: x - 0.5, 0.0, 1.0)
    assert res.root == 0.5
    assert res.iterations == 1


def test_bisect_accepts_swapped_bounds():
    res = bisect(f, 2.0, 1.0, tol=1e-6)
    assert 1.0 <= res.root <= 2.0


def test_bisect_sign_test_survives_tiny_function_values():
    # f(a)·f(b) underflows to 0.0 here; the signs still decide.
    res = bisect(lambda x: (x - 0.25) * 1e-200, 0.0, 1.0, tol=1e-9)
    assert res.root == pytest.approx(0.25, abs=1e-9)

    res = bisect(lambda x: (x - 0.3) * 1e-200, 0.0, 1.0, tol=1e-9)
    assert res.root == pytest.approx(0.3, abs=1e-8)

    with pytest.raises(PreconditionViolated):
        bisect(lambda x: (x + 1.0) * 1e-200, 0.0, 1.0)


def test_bisect_reports_max_iterations_with_last_estimate():
    with pytest.raises(MaxIterationsExceeded) as exc:
        bisect(lambda x: x - 1.0 / 3.0, 0.0, 1.0, tol=1e-12, max_iter=5)
    assert exc.value.iterations == 5
    assert 0.0 <= exc.value.last_estimate <= 1.0


def test_newton_flat_derivative_is_detected():
    with pytest.raises(DerivativeNearZero) as exc:
        newton(lambda x: x * x + 1.0, lambda x: 2.0 * x, 0.0)
    assert exc.value.x == 0.0


def test_newton_without_real_root_runs_out_of_iterations():
    with pytest.raises(MaxIterationsExceeded):
        newton(lambda x: x * x + 1.0, lambda x: 2.0 * x, 0.5, max_iter=50)


def test_newton_non_finite_step_is_numeric_overflow():
    with pytest.raises(NumericOverflow):
        newton(lambda x: 1.0, lambda x: 1e-320, 0.0, deriv_tol=0.0)


def test_invalid_controls_are_preconditions():
    with pytest.raises(PreconditionViolated):
        bisect(f, 1.0, 2.0, tol=0.0)
    with pytest.raises(PreconditionViolated):
        newton(f, fprime, 1.5, max_iter=0)
