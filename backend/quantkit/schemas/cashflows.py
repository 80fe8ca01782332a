from __future__ import annotations

import datetime as dt

from pydantic import BaseModel, Field, model_validator


class CashFlowIn(BaseModel):
    date: dt.date
    amount: float


class CashflowAnalyzeRequest(BaseModel):
    project_name: str = Field(default="Project", max_length=120)
    currency: str = Field(default="USD", max_length=12)

    # Annual effective rate as a decimal (e.g. 0.05 = 5%)
    rate: float = Field(default=0.05, gt=-0.99, le=5.0)
    cashflows: list[CashFlowIn] = Field(min_length=1, max_length=500)
    irr_seed: float = Field(default=0.1, gt=-0.99, le=5.0)

    profile_min_rate: float = Field(default=0.0, gt=-0.99)
    profile_max_rate: float = Field(default=0.30, le=5.0)
    profile_points: int = Field(default=31, ge=2, le=401)

    @model_validator(mode="after")
    def _validate_profile(self) -> "CashflowAnalyzeRequest":
        if self.profile_max_rate <= self.profile_min_rate:
            raise ValueError("profile_max_rate must be > profile_min_rate")
        return self


class CashflowRow(BaseModel):
    date: dt.date
    year_fraction: float
    amount: float
    discounted: float
    cumulative: float
    cumulative_discounted: float


class NpvProfile(BaseModel):
    """NPV profile curve (rate -> NPV)."""

    rates: list[float]
    npvs: list[float]


class CashflowAnalyzeResponse(BaseModel):
    run_id: str
    run_type: str = "cashflows.analyze"

    project_name: str
    currency: str
    rate: float

    npv: float
    npv_derivative: float
    irr: float | None
    irr_iterations: int | None = None
    irr_warning: str | None = None
    sign_changes: int

    table: list[CashflowRow]
    npv_profile: NpvProfile
    notes: list[str] = Field(default_factory=list)
