from __future__ import annotations


class QuantKitError(Exception):
    """Base class for every numerical failure raised by quantkit."""


class PreconditionViolated(QuantKitError, ValueError):
    """Inputs break a precondition of the algorithm (nothing was iterated)."""


class InvalidModelParameter(PreconditionViolated):
    """A model parameter is outside its domain (e.g. vol <= 0, T <= 0)."""


class UndefinedRiskNeutralProbability(PreconditionViolated):
    """Up and down factors coincide, so q = (R - D) / (U - D) is undefined."""


class ConvergenceError(QuantKitError, ArithmeticError):
    """An iterative or recursive computation did not produce a usable number."""


class MaxIterationsExceeded(ConvergenceError):
    """The iteration budget was spent before the tolerance was met.

    `last_estimate` is the final iterate. It is NOT a converged root; callers
    that want to use it anyway have to read it off the exception explicitly.
    """

    def __init__(self, message: str, *, iterations: int, last_estimate: float) -> None:
        super().__init__(message)
        self.iterations = iterations
        self.last_estimate = last_estimate


class DerivativeNearZero(ConvergenceError):
    """Newton step undefined: |f'(x)| fell below the derivative tolerance."""

    def __init__(self, message: str, *, iterations: int, x: float, derivative: float) -> None:
        super().__init__(message)
        self.iterations = iterations
        self.x = x
        self.derivative = derivative


class NumericOverflow(ConvergenceError):
    """A non-finite intermediate value (inf / nan) appeared."""
