from __future__ import annotations

import logging
from typing import Iterable, Sequence

import numpy as np

from quantkit.schemas.cashflows import (
    CashflowAnalyzeRequest,
    CashflowAnalyzeResponse,
    CashflowRow,
    NpvProfile,
)
from quantkit.services.cashflows import CashFlowSeries, irr, npv, npv_derivative
from quantkit.services.errors import QuantKitError

logger = logging.getLogger(__name__)


def _cumulative(xs: Iterable[float]) -> list[float]:
    s = 0.0
    out: list[float] = []
    for x in xs:
        s += float(x)
        out.append(float(s))
    return out


def _sign_changes(amounts: Sequence[float]) -> int:
    """Count sign changes ignoring zeros."""

    cleaned = [1 if a > 0 else -1 for a in amounts if abs(a) >= 1e-12]
    return sum(1 for a, b in zip(cleaned, cleaned[1:]) if a != b)


def _build_table(series: CashFlowSeries, rate: float) -> list[CashflowRow]:
    taus = series.year_fractions()
    amounts = [cf.amount for cf in series]
    discounted = [a * (1.0 + rate) ** (-t) for a, t in zip(amounts, taus)]
    cum = _cumulative(amounts)
    cum_disc = _cumulative(discounted)
    return [
        CashflowRow(
            date=cf.date,
            year_fraction=tau,
            amount=cf.amount,
            discounted=disc,
            cumulative=c,
            cumulative_discounted=cd,
        )
        for cf, tau, disc, c, cd in zip(series, taus, discounted, cum, cum_disc)
    ]


def compute_cashflow_report(req: CashflowAnalyzeRequest, *, run_id: str) -> CashflowAnalyzeResponse:
    series = CashFlowSeries.from_pairs((cf.date, cf.amount) for cf in req.cashflows)
    rate = float(req.rate)

    notes: list[str] = []
    if len(series) < len(req.cashflows):
        notes.append("Cash flows sharing a date were summed.")

    npv_val = npv(series, rate)
    deriv_val = npv_derivative(series, rate)

    sc = _sign_changes([cf.amount for cf in series])
    irr_val: float | None = None
    irr_iters: int | None = None
    irr_warnings: list[str] = []

    if sc > 1:
        irr_warnings.append("Non-conventional cash flows (multiple sign changes): IRR may be non-unique.")

    if not series.has_sign_change():
        irr_warnings.append("IRR undefined: cash flows do not change sign.")
    else:
        try:
            res = irr(series, seed=req.irr_seed)
            irr_val, irr_iters = res.root, res.iterations
        except QuantKitError as e:
            # irr stays None; the warning carries the reason.
            logger.warning("IRR solve failed for run %s: %s", run_id, e)
            irr_warnings.append(f"IRR solve failed: {e}")

    notes.extend(irr_warnings)
    irr_warning = " ".join(irr_warnings) or None

    rates = [float(r) for r in np.linspace(req.profile_min_rate, req.profile_max_rate, req.profile_points)]
    profile = NpvProfile(rates=rates, npvs=[npv(series, r) for r in rates])

    return CashflowAnalyzeResponse(
        run_id=run_id,
        project_name=req.project_name,
        currency=req.currency,
        rate=rate,
        npv=npv_val,
        npv_derivative=deriv_val,
        irr=irr_val,
        irr_iterations=irr_iters,
        irr_warning=irr_warning,
        sign_changes=sc,
        table=_build_table(series, rate),
        npv_profile=profile,
        notes=notes,
    )
