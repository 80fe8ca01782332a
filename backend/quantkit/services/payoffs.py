"""Payoff factories for the lattice engines.

Path-independent payoffs take the node spot; path-dependent ones take the
tuple of every spot visited so far (S0 first).
"""

from __future__ import annotations

from typing import Callable, Literal, Sequence

from quantkit.services.errors import InvalidModelParameter

SpotPayoff = Callable[[float], float]
PathPayoff = Callable[[Sequence[float]], float]


def _check(option_type: str, strike: float) -> None:
    if option_type not in ("call", "put"):
        raise InvalidModelParameter("option_type must be 'call' or 'put'")
    if strike <= 0:
        raise InvalidModelParameter("strike must be > 0")


def vanilla_payoff(option_type: Literal["call", "put"], strike: float) -> SpotPayoff:
    _check(option_type, strike)
    if option_type == "call":
        return lambda s: max(0.0, s - strike)
    return lambda s: max(0.0, strike - s)


def asian_payoff(option_type: Literal["call", "put"], strike: float) -> PathPayoff:
    """Fixed-strike arithmetic-average option on all visited spots."""
    _check(option_type, strike)

    def payoff(path: Sequence[float]) -> float:
        avg = sum(path) / len(path)
        return max(0.0, avg - strike) if option_type == "call" else max(0.0, strike - avg)

    return payoff
