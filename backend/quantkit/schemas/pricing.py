from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field, model_validator


class Greeks(BaseModel):
    delta: float
    gamma: float
    vega: float
    theta: float
    rho: float


class MarketInputs(BaseModel):
    option_type: Literal["call", "put"] = Field(description="Option type")
    spot: float = Field(gt=0, description="Spot price")
    strike: float = Field(gt=0, description="Strike price")
    rate: float = Field(description="Continuously-compounded annual risk-free rate (e.g., 0.05)")
    dividend_yield: float = Field(
        default=0.0, description="Continuously-compounded annual dividend yield (e.g., 0.01)"
    )
    time_to_expiry: float = Field(gt=0, description="Time to expiry in years (e.g., 0.5)")


# ----------------------
# Black–Scholes
# ----------------------


class BlackScholesRequest(MarketInputs):
    vol: float = Field(gt=0, description="Annualized volatility (e.g., 0.20)")
    quantity: float = Field(default=1.0, gt=0, description="Number of option units")


class BlackScholesResponse(BaseModel):
    run_id: str
    run_type: str = "pricing.black_scholes"
    price_per_unit: float
    price_total: float
    greeks: Greeks


# ----------------------
# Implied volatility
# ----------------------


class ImpliedVolRequest(MarketInputs):
    market_price: float = Field(ge=0, description="Observed option price")
    method: Literal["bisect", "newton"] = Field(default="bisect")
    lower: float = Field(default=0.0, ge=0, description="Lower vol bracket (bisect)")
    upper: float = Field(default=3.0, gt=0, description="Upper vol bracket (bisect)")
    initial_guess: float = Field(default=0.2, gt=0, description="Newton seed")
    tol: float = Field(default=1e-8, gt=0)
    max_iter: int = Field(default=200, ge=1, le=10_000)

    @model_validator(mode="after")
    def _validate_bracket(self) -> "ImpliedVolRequest":
        if self.upper <= self.lower:
            raise ValueError("upper must be > lower")
        return self


class ImpliedVolResponse(BaseModel):
    run_id: str
    run_type: str = "pricing.implied_vol"
    implied_vol: float
    iterations: int
    method: str
    repriced: float


# ----------------------
# Binomial (vol-parametrized CRR tree)
# ----------------------


class BinomialPricingRequest(BaseModel):
    option_type: Literal["call", "put"]
    spot: float = Field(gt=0)
    strike: float = Field(gt=0)
    rate: float
    vol: float = Field(gt=0)
    time_to_expiry: float = Field(gt=0)
    steps: int = Field(default=200, ge=1, le=5000)
    american: bool = False


class BinomialPricingResponse(BaseModel):
    run_id: str
    run_type: str = "pricing.binomial"
    price: float
    black_scholes_price: float
    early_exercise_premium: float | None = None
