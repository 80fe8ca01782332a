"""Fair value for a small set of asset kinds.

Each asset is a plain frozen record; `fair_value` looks at which record it was
handed and routes to the matching formula. There is no shared base class.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from quantkit.services.black_scholes import OptionContract, contract_price
from quantkit.services.errors import InvalidModelParameter


@dataclass(frozen=True)
class Stock:
    """Gordon growth stock: next dividend D1 = dividend·(1+growth)."""

    dividend: float
    required_return: float
    growth: float = 0.0


@dataclass(frozen=True)
class Bond:
    face: float
    coupon_rate: float
    yield_rate: float
    maturity_years: float
    frequency: int = 1


Priceable = Union[Stock, Bond, OptionContract]


def _stock_value(stock: Stock) -> float:
    if stock.required_return <= stock.growth:
        raise InvalidModelParameter("required_return must exceed growth")
    return stock.dividend * (1.0 + stock.growth) / (stock.required_return - stock.growth)


def _bond_value(bond: Bond) -> float:
    if bond.frequency < 1:
        raise InvalidModelParameter("frequency must be >= 1")
    if bond.maturity_years <= 0:
        raise InvalidModelParameter("maturity_years must be > 0")
    per_period = bond.yield_rate / bond.frequency
    if per_period <= -1.0:
        raise InvalidModelParameter("yield_rate is too negative")

    periods = int(round(bond.maturity_years * bond.frequency))
    coupon = bond.face * bond.coupon_rate / bond.frequency
    value = 0.0
    for t in range(1, periods + 1):
        value += coupon / (1.0 + per_period) ** t
    value += bond.face / (1.0 + per_period) ** periods
    return value


def fair_value(asset: Priceable) -> float:
    if isinstance(asset, Stock):
        return float(_stock_value(asset))
    if isinstance(asset, Bond):
        return float(_bond_value(asset))
    if isinstance(asset, OptionContract):
        return float(contract_price(asset))
    raise TypeError(f"no fair value rule for {type(asset).__name__}")
