"""Dated cash flows: NPV, its rate derivative, and IRR via Newton-Raphson.

Time is measured in ACT/365 years from the first (earliest) flow date.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Iterable, Tuple, Union

from quantkit.services.errors import (
    InvalidModelParameter,
    MaxIterationsExceeded,
    NumericOverflow,
    PreconditionViolated,
)
from quantkit.services.rootfinding import RootResult, newton

DateLike = Union[date, datetime, str]

DAYS_PER_YEAR = 365.0


def _to_date(value: DateLike) -> date:
    # datetime is a subclass of date, so it has to be checked first.
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        return date.fromisoformat(value.strip())
    raise TypeError(f"Unsupported date-like value: {value!r}")


@dataclass(frozen=True)
class CashFlow:
    date: date
    amount: float


@dataclass(frozen=True)
class CashFlowSeries:
    """Cash flows sorted ascending by date, one entry per date.

    Whatever order the flows arrive in, construction sorts them and sums
    amounts that share a date. `from_pairs` also accepts ISO strings.
    """

    flows: Tuple[CashFlow, ...] = ()

    def __post_init__(self) -> None:
        merged: dict[date, float] = {}
        for cf in self.flows:
            d = _to_date(cf.date)
            merged[d] = merged.get(d, 0.0) + float(cf.amount)
        object.__setattr__(self, "flows", tuple(CashFlow(d, merged[d]) for d in sorted(merged)))

    @classmethod
    def from_pairs(cls, pairs: Iterable[tuple[DateLike, float]]) -> "CashFlowSeries":
        return cls(tuple(CashFlow(_to_date(raw_date), float(amount)) for raw_date, amount in pairs))

    def __len__(self) -> int:
        return len(self.flows)

    def __iter__(self):
        return iter(self.flows)

    @property
    def start(self) -> date | None:
        return self.flows[0].date if self.flows else None

    def year_fractions(self) -> list[float]:
        if not self.flows:
            return []
        d0 = self.flows[0].date
        return [(cf.date - d0).days / DAYS_PER_YEAR for cf in self.flows]

    def has_sign_change(self) -> bool:
        """True when at least one amount is strictly negative and one strictly positive."""
        return any(cf.amount < 0 for cf in self.flows) and any(cf.amount > 0 for cf in self.flows)


def _check_rate(rate: float) -> float:
    rate = float(rate)
    if rate <= -1.0:
        raise InvalidModelParameter("rate must be > -1")
    return rate


def npv(series: CashFlowSeries, rate: float) -> float:
    """Σ CF_t · (1 + rate)^(-τ_t), τ_t = (date_t - date_0) / 365."""

    rate = _check_rate(rate)
    growth = 1.0 + rate
    total = 0.0
    try:
        for cf, tau in zip(series.flows, series.year_fractions()):
            total += cf.amount * growth ** (-tau)
    except OverflowError as e:
        raise NumericOverflow(f"NPV overflowed at rate={rate!r}") from e
    return float(total)


def npv_derivative(series: CashFlowSeries, rate: float) -> float:
    """d NPV / d rate = Σ -τ_t · CF_t · (1 + rate)^(-τ_t - 1)."""

    rate = _check_rate(rate)
    growth = 1.0 + rate
    total = 0.0
    try:
        for cf, tau in zip(series.flows, series.year_fractions()):
            total -= tau * cf.amount * growth ** (-tau - 1.0)
    except OverflowError as e:
        raise NumericOverflow(f"NPV derivative overflowed at rate={rate!r}") from e
    return float(total)


def irr(
    series: CashFlowSeries,
    seed: float = 0.1,
    tol: float = 1e-10,
    max_iter: int = 100,
) -> RootResult:
    """Internal rate of return: Newton-Raphson on `npv(series, ·)`.

    Raises `PreconditionViolated` when the amounts never change sign (the true
    rate is then undefined or infinite) or when `seed` is not above -1. An
    iterate that leaves rate > -1 raises `MaxIterationsExceeded` with that
    iterate as `last_estimate`; otherwise failures are those of `newton`.
    """

    if not series.has_sign_change():
        raise PreconditionViolated(
            "IRR needs at least one strictly negative and one strictly positive cash flow"
        )
    _check_rate(seed)

    iterations = 0

    def objective(r: float) -> float:
        nonlocal iterations
        iterations += 1
        if r <= -1.0:
            raise MaxIterationsExceeded(
                f"IRR iteration left the domain rate > -1 (rate={r!r}, iteration {iterations})",
                iterations=iterations,
                last_estimate=r,
            )
        return npv(series, r)

    return newton(
        objective,
        lambda r: npv_derivative(series, r),
        seed,
        tol=tol,
        max_iter=max_iter,
    )
