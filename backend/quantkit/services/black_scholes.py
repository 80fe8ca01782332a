from __future__ import annotations

import logging
import math
from dataclasses import dataclass, replace
from typing import Literal

from quantkit.services.errors import InvalidModelParameter, PreconditionViolated
from quantkit.services.rootfinding import RootResult, bisect, newton
from quantkit.services.stats import norm_cdf, norm_pdf

logger = logging.getLogger(__name__)

OptionType = Literal["call", "put"]


@dataclass(frozen=True)
class OptionContract:
    """European option terms plus the market inputs Black–Scholes needs.

    `vol` may be None when it is the unknown of an implied-volatility solve.
    """

    option_type: OptionType
    spot: float
    strike: float
    rate: float
    time_to_expiry: float
    vol: float | None = None
    dividend_yield: float = 0.0

    def with_vol(self, vol: float) -> "OptionContract":
        return replace(self, vol=vol)


@dataclass(frozen=True)
class BSResult:
    price: float
    delta: float
    gamma: float
    vega: float
    theta: float
    rho: float


def _validate(option_type: str, spot: float, strike: float, vol: float, time_to_expiry: float) -> None:
    if option_type not in ("call", "put"):
        raise InvalidModelParameter("option_type must be 'call' or 'put'")
    if spot <= 0 or strike <= 0:
        raise InvalidModelParameter("spot and strike must be > 0")
    if time_to_expiry <= 0:
        raise InvalidModelParameter("time_to_expiry must be > 0")
    if vol <= 0:
        raise InvalidModelParameter("vol must be > 0")


def price_and_greeks(
    option_type: OptionType,
    spot: float,
    strike: float,
    rate: float,
    dividend_yield: float,
    vol: float,
    time_to_expiry: float,
) -> BSResult:
    """Black–Scholes–Merton price + Greeks.

    Conventions:
      - rate and dividend_yield are continuously-compounded annual rates.
      - vol is annualized (e.g. 0.20 for 20%).
      - time_to_expiry is in years and must be > 0 (it sits in a denominator).

    Greeks are per 1 unit of underlying and per 1.0 absolute change in vol.
    Theta is returned per YEAR (not per day).
    """

    _validate(option_type, spot, strike, vol, time_to_expiry)

    sqrtT = math.sqrt(time_to_expiry)
    d1 = (math.log(spot / strike) + (rate - dividend_yield + 0.5 * vol * vol) * time_to_expiry) / (vol * sqrtT)
    d2 = d1 - vol * sqrtT

    disc_r = math.exp(-rate * time_to_expiry)
    disc_q = math.exp(-dividend_yield * time_to_expiry)

    Nd1 = norm_cdf(d1)
    Nd2 = norm_cdf(d2)
    Nmd1 = norm_cdf(-d1)
    Nmd2 = norm_cdf(-d2)
    pdf_d1 = norm_pdf(d1)

    if option_type == "call":
        price = spot * disc_q * Nd1 - strike * disc_r * Nd2
        delta = disc_q * Nd1
        theta = -(spot * disc_q * pdf_d1 * vol) / (2.0 * sqrtT) - rate * strike * disc_r * Nd2 + dividend_yield * spot * disc_q * Nd1
        rho = strike * time_to_expiry * disc_r * Nd2
    else:
        price = strike * disc_r * Nmd2 - spot * disc_q * Nmd1
        delta = disc_q * (Nd1 - 1.0)
        theta = -(spot * disc_q * pdf_d1 * vol) / (2.0 * sqrtT) + rate * strike * disc_r * Nmd2 - dividend_yield * spot * disc_q * Nmd1
        rho = -strike * time_to_expiry * disc_r * Nmd2

    gamma = (disc_q * pdf_d1) / (spot * vol * sqrtT)
    vega = spot * disc_q * pdf_d1 * sqrtT

    return BSResult(price=price, delta=delta, gamma=gamma, vega=vega, theta=theta, rho=rho)


def bs_price(
    option_type: OptionType,
    *,
    spot: float,
    strike: float,
    rate: float,
    dividend_yield: float = 0.0,
    vol: float,
    time_to_expiry: float,
) -> float:
    return price_and_greeks(option_type, spot, strike, rate, dividend_yield, vol, time_to_expiry).price


def contract_price(contract: OptionContract) -> float:
    if contract.vol is None:
        raise InvalidModelParameter("contract has no volatility; solve for it with implied_volatility")
    return bs_price(
        contract.option_type,
        spot=contract.spot,
        strike=contract.strike,
        rate=contract.rate,
        dividend_yield=contract.dividend_yield,
        vol=contract.vol,
        time_to_expiry=contract.time_to_expiry,
    )


def _zero_vol_price(option_type: OptionType, spot: float, strike: float, rate: float, dividend_yield: float, time_to_expiry: float) -> float:
    """Limit of the BSM price as vol -> 0+: discounted forward intrinsic value."""
    forward_gap = spot * math.exp(-dividend_yield * time_to_expiry) - strike * math.exp(-rate * time_to_expiry)
    return max(0.0, forward_gap) if option_type == "call" else max(0.0, -forward_gap)


def implied_volatility(
    market_price: float,
    option_type: OptionType,
    *,
    spot: float,
    strike: float,
    rate: float,
    dividend_yield: float = 0.0,
    time_to_expiry: float,
    lower: float = 0.0,
    upper: float = 3.0,
    tol: float = 1e-8,
    max_iter: int = 200,
    method: Literal["bisect", "newton"] = "bisect",
    initial_guess: float = 0.2,
) -> RootResult:
    """Volatility that reproduces `market_price` under Black–Scholes.

    Solves f(σ) = bs_price(σ) - market_price. With method="bisect" the bracket
    [lower, upper] must contain a sign change; σ <= 0 is evaluated at its
    zero-vol limit so a bracket may start at 0. With method="newton" vega is
    the derivative and `initial_guess` the seed.
    """

    _validate(option_type, spot, strike, 1.0, time_to_expiry)
    if market_price < 0:
        raise PreconditionViolated("market_price must be >= 0")

    def objective(sigma: float) -> float:
        if sigma <= 0:
            model = _zero_vol_price(option_type, spot, strike, rate, dividend_yield, time_to_expiry)
        else:
            model = bs_price(
                option_type,
                spot=spot,
                strike=strike,
                rate=rate,
                dividend_yield=dividend_yield,
                vol=sigma,
                time_to_expiry=time_to_expiry,
            )
        return model - market_price

    if method == "bisect":
        result = bisect(objective, lower, upper, tol=tol, max_iter=max_iter)
    elif method == "newton":

        def vega(sigma: float) -> float:
            if sigma <= 0:
                return 0.0
            return price_and_greeks(option_type, spot, strike, rate, dividend_yield, sigma, time_to_expiry).vega

        result = newton(objective, vega, initial_guess, tol=tol, max_iter=max_iter)
    else:
        raise PreconditionViolated("method must be 'bisect' or 'newton'")

    logger.debug("implied vol (%s) = %s after %s iterations", method, result.root, result.iterations)
    return result
