"""Scalar root-finding: bisection and Newton-Raphson.

Both solvers return a `RootResult` on success and raise a typed
`quantkit.services.errors` exception on failure. Neither one ever hands back
a non-converged iterate as if it were a root.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Callable

from quantkit.services.errors import (
    DerivativeNearZero,
    MaxIterationsExceeded,
    NumericOverflow,
    PreconditionViolated,
)

logger = logging.getLogger(__name__)

Func = Callable[[float], float]


@dataclass(frozen=True)
class RootResult:
    root: float
    iterations: int
    method: str


def _checked(value: float, x: float, what: str) -> float:
    value = float(value)
    if not math.isfinite(value):
        raise NumericOverflow(f"{what} is not finite at x={x!r}: {value!r}")
    return value


def _opposite_signs(x: float, y: float) -> bool:
    return math.copysign(1.0, x) != math.copysign(1.0, y)


def bisect(func: Func, a: float, b: float, tol: float = 1e-8, max_iter: int = 200) -> RootResult:
    """Bisection on the bracket [a, b].

    f(a) and f(b) must not share a sign. If an endpoint is already an exact
    root it is returned without iterating; after that f(a) is never zero, so the
    "keep [a, c] iff f(a) and f(c) differ in sign" rule cannot drop a root
    sitting on `a`. Signs are compared directly; the product f(a)·f(c) would
    underflow to zero for tiny function values.
    """

    if tol <= 0:
        raise PreconditionViolated("tol must be > 0")
    if max_iter < 1:
        raise PreconditionViolated("max_iter must be >= 1")

    a, b = float(a), float(b)
    if a > b:
        a, b = b, a

    f_a = _checked(func(a), a, "f(a)")
    f_b = _checked(func(b), b, "f(b)")
    if f_a == 0.0:
        return RootResult(a, 0, "bisect")
    if f_b == 0.0:
        return RootResult(b, 0, "bisect")
    if not _opposite_signs(f_a, f_b):
        raise PreconditionViolated(
            f"Bisection requires a sign change on [{a}, {b}] (f(a)={f_a}, f(b)={f_b})"
        )

    c = 0.5 * (a + b)
    for iteration in range(1, max_iter + 1):
        c = 0.5 * (a + b)
        f_c = _checked(func(c), c, "f(c)")
        logger.debug("bisect iter %s: a=%s b=%s c=%s f(c)=%s", iteration, a, b, c, f_c)
        if f_c == 0.0 or 0.5 * (b - a) < tol:
            return RootResult(c, iteration, "bisect")
        if _opposite_signs(f_a, f_c):
            b = c
        else:
            a, f_a = c, f_c

    raise MaxIterationsExceeded(
        f"Bisection did not reach tol={tol} within {max_iter} iterations",
        iterations=max_iter,
        last_estimate=c,
    )


def newton(
    func: Func,
    fprime: Func,
    x0: float,
    tol: float = 1e-10,
    max_iter: int = 100,
    deriv_tol: float = 1e-10,
) -> RootResult:
    """Newton-Raphson iteration x_{k+1} = x_k - f(x_k) / f'(x_k).

    There is no bracketing: the iteration can wander off, or land on a root
    that makes no economic sense (an IRR below -100%, say). Near an extremum
    of f the derivative vanishes; that case raises `DerivativeNearZero`
    instead of taking an unbounded step.
    """

    if tol <= 0:
        raise PreconditionViolated("tol must be > 0")
    if max_iter < 1:
        raise PreconditionViolated("max_iter must be >= 1")

    x = _checked(x0, x0, "x0")
    for iteration in range(1, max_iter + 1):
        value = _checked(func(x), x, "f(x)")
        if value == 0.0:
            return RootResult(x, iteration, "newton")

        deriv = _checked(fprime(x), x, "f'(x)")
        logger.debug("newton iter %s: x=%s f=%s f'=%s", iteration, x, value, deriv)
        if abs(deriv) < deriv_tol:
            raise DerivativeNearZero(
                f"Derivative {deriv!r} below {deriv_tol} at x={x!r} (iteration {iteration})",
                iterations=iteration,
                x=x,
                derivative=deriv,
            )

        x_new = x - value / deriv
        if not math.isfinite(x_new):
            raise NumericOverflow(f"Newton step produced a non-finite iterate from x={x!r}")
        if abs(x_new - x) < tol:
            return RootResult(x_new, iteration, "newton")
        x = x_new

    raise MaxIterationsExceeded(
        f"Newton-Raphson did not converge within {max_iter} iterations",
        iterations=max_iter,
        last_estimate=x,
    )
