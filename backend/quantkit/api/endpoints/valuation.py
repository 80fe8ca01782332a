from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from quantkit.api.errors import http_error
from quantkit.db.deps import get_db
from quantkit.db.repository import create_run
from quantkit.schemas.valuation import BondAsset, FairValueRequest, FairValueResponse, StockAsset
from quantkit.services.black_scholes import OptionContract
from quantkit.services.errors import QuantKitError
from quantkit.services.valuation import Bond, Priceable, Stock, fair_value

router = APIRouter()


def _to_priceable(asset: object) -> Priceable:
    if isinstance(asset, StockAsset):
        return Stock(dividend=asset.dividend, required_return=asset.required_return, growth=asset.growth)
    if isinstance(asset, BondAsset):
        return Bond(
            face=asset.face,
            coupon_rate=asset.coupon_rate,
            yield_rate=asset.yield_rate,
            maturity_years=asset.maturity_years,
            frequency=asset.frequency,
        )
    data = asset.model_dump(exclude={"kind"})  # type: ignore[attr-defined]
    return OptionContract(**data)


@router.post("/fair-value", response_model=FairValueResponse)
def api_fair_value(req: FairValueRequest, db: Session = Depends(get_db)) -> FairValueResponse:
    try:
        value = fair_value(_to_priceable(req.asset))
    except QuantKitError as e:
        raise http_error(e) from e

    run_id = str(uuid.uuid4())
    response = FairValueResponse(run_id=run_id, kind=req.asset.kind, fair_value=value)
    create_run(
        db,
        run_type=response.run_type,
        input_payload=req.model_dump(),
        output_payload=response.model_dump(),
        run_id=run_id,
    )
    return response
