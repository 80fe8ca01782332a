from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field, model_validator


class LatticePricingRequest(BaseModel):
    """Explicit one-period model: spot S0, per-step returns U/D, per-step rate R."""

    spot: float = Field(gt=0, description="Initial spot S0")
    up: float = Field(description="Per-step up return U (e.g. 0.03)")
    down: float = Field(gt=-1, description="Per-step down return D (e.g. -0.02)")
    rate: float = Field(description="Per-step risk-free rate R")
    steps: int = Field(ge=1, le=2000)

    payoff: Literal["vanilla", "asian"] = Field(default="vanilla")
    option_type: Literal["call", "put"] = "call"
    strike: float = Field(gt=0)
    american: bool = False
    method: Literal["lattice", "crr"] = Field(default="lattice")

    @model_validator(mode="after")
    def _validate_method(self) -> "LatticePricingRequest":
        if self.method == "crr" and (self.payoff != "vanilla" or self.american):
            raise ValueError("method 'crr' only prices European path-independent payoffs")
        return self


class LatticePricingResponse(BaseModel):
    run_id: str
    run_type: str = "lattice.price"
    price: float
    method: str
    risk_neutral_probability: float
    node_count: int
