from __future__ import annotations

import json
import math
import uuid
from datetime import date, datetime
from typing import Any

from sqlalchemy.orm import Session

from quantkit.db.models import RunRecord


def _to_jsonable(x: Any) -> Any:  # noqa: ANN401
    if x is None or isinstance(x, (str, int, bool)):
        return x
    if isinstance(x, float):
        # JSON has no inf/nan.
        return x if math.isfinite(x) else None
    if isinstance(x, (date, datetime)):
        return x.isoformat()

    md = getattr(x, "model_dump", None)
    if callable(md):
        return _to_jsonable(md(mode="json"))

    if isinstance(x, dict):
        return {str(k): _to_jsonable(v) for k, v in x.items()}
    if isinstance(x, (list, tuple, set)):
        return [_to_jsonable(v) for v in x]

    item = getattr(x, "item", None)
    if callable(item):
        # numpy scalars
        return _to_jsonable(item())
    return str(x)


def _dumps(payload: Any) -> str:
    return json.dumps(_to_jsonable(payload), ensure_ascii=False, separators=(",", ":"))


def create_run(
    db: Session,
    *,
    run_type: str,
    input_payload: dict[str, Any],
    output_payload: dict[str, Any],
    run_id: str | None = None,
) -> str:
    rid = run_id or str(uuid.uuid4())
    rec = RunRecord(
        run_id=rid,
        run_type=run_type,
        input_json=_dumps(input_payload),
        output_json=_dumps(output_payload),
    )
    db.add(rec)
    db.commit()
    return rid


def list_runs(
    db: Session,
    *,
    limit: int = 20,
    offset: int = 0,
    run_type: str | None = None,
) -> list[RunRecord]:
    q = db.query(RunRecord)
    if run_type:
        q = q.filter(RunRecord.run_type == run_type)
    q = q.order_by(RunRecord.created_at.desc(), RunRecord.id.desc())
    return q.offset(offset).limit(limit).all()


def get_run(db: Session, run_id: str) -> RunRecord | None:
    return db.query(RunRecord).filter(RunRecord.run_id == run_id).first()
