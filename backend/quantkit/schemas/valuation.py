from __future__ import annotations

from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field


class StockAsset(BaseModel):
    kind: Literal["stock"]
    dividend: float = Field(ge=0, description="Last paid dividend D0")
    required_return: float = Field(description="Required return k")
    growth: float = Field(default=0.0, description="Constant dividend growth g")


class BondAsset(BaseModel):
    kind: Literal["bond"]
    face: float = Field(default=100.0, gt=0)
    coupon_rate: float = Field(ge=0)
    yield_rate: float
    maturity_years: float = Field(gt=0)
    frequency: int = Field(default=1, ge=1, le=12)


class OptionAsset(BaseModel):
    kind: Literal["option"]
    option_type: Literal["call", "put"]
    spot: float = Field(gt=0)
    strike: float = Field(gt=0)
    rate: float
    dividend_yield: float = 0.0
    vol: float = Field(gt=0)
    time_to_expiry: float = Field(gt=0)


Asset = Annotated[Union[StockAsset, BondAsset, OptionAsset], Field(discriminator="kind")]


class FairValueRequest(BaseModel):
    asset: Asset


class FairValueResponse(BaseModel):
    run_id: str
    run_type: str = "valuation.fair_value"
    kind: str
    fair_value: float
