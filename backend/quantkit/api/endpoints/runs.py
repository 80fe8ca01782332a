from __future__ import annotations

import json

from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy.orm import Session

from quantkit.db.deps import get_db
from quantkit.db.repository import get_run, list_runs
from quantkit.schemas.runs import RunDetailResponse, RunsListResponse, RunSummary
from quantkit.services.reports import build_run_report_pdf

router = APIRouter()


@router.get("", response_model=RunsListResponse)
def api_list_runs(
    limit: int = 20,
    offset: int = 0,
    run_type: str | None = None,
    db: Session = Depends(get_db),
) -> RunsListResponse:
    limit = max(1, min(limit, 200))
    offset = max(0, offset)

    rows = list_runs(db, limit=limit, offset=offset, run_type=run_type)
    items = [RunSummary(run_id=r.run_id, run_type=r.run_type, created_at=r.created_at) for r in rows]
    return RunsListResponse(items=items, limit=limit, offset=offset, run_type=run_type)


@router.get("/{run_id}", response_model=RunDetailResponse)
def api_get_run(run_id: str, db: Session = Depends(get_db)) -> RunDetailResponse:
    rec = get_run(db, run_id)
    if not rec:
        raise HTTPException(status_code=404, detail="Run not found")

    return RunDetailResponse(
        run_id=rec.run_id,
        run_type=rec.run_type,
        created_at=rec.created_at,
        input=json.loads(rec.input_json),
        output=json.loads(rec.output_json),
    )


@router.get("/{run_id}/report.pdf")
def api_get_run_report_pdf(run_id: str, db: Session = Depends(get_db)) -> Response:
    rec = get_run(db, run_id)
    if not rec:
        raise HTTPException(status_code=404, detail="Run not found")

    pdf_bytes = build_run_report_pdf(
        title=f"Calculation report – {rec.run_type}",
        run_meta={
            "run_id": rec.run_id,
            "run_type": rec.run_type,
            "created_at": rec.created_at.isoformat() if rec.created_at else "",
        },
        input_payload=json.loads(rec.input_json),
        output_payload=json.loads(rec.output_json),
    )

    return Response(
        content=pdf_bytes,
        media_type="application/pdf",
        headers={"Content-Disposition": f'inline; filename="run_{run_id}.pdf"'},
    )
