from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from quantkit.api.errors import http_error
from quantkit.db.deps import get_db
from quantkit.db.repository import create_run
from quantkit.schemas.cashflows import CashflowAnalyzeRequest, CashflowAnalyzeResponse
from quantkit.services.cashflow_report import compute_cashflow_report
from quantkit.services.errors import QuantKitError

router = APIRouter()


@router.post("/analyze", response_model=CashflowAnalyzeResponse)
def api_cashflows_analyze(req: CashflowAnalyzeRequest, db: Session = Depends(get_db)) -> CashflowAnalyzeResponse:
    run_id = str(uuid.uuid4())
    try:
        resp = compute_cashflow_report(req, run_id=run_id)
    except QuantKitError as e:
        raise http_error(e) from e

    create_run(
        db,
        run_type=resp.run_type,
        input_payload=req.model_dump(mode="json"),
        output_payload=resp.model_dump(mode="json"),
        run_id=run_id,
    )
    return resp
