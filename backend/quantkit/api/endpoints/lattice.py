from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from quantkit.api.errors import http_error
from quantkit.db.deps import get_db
from quantkit.db.repository import create_run
from quantkit.schemas.lattice import LatticePricingRequest, LatticePricingResponse
from quantkit.services.crr import crr_price
from quantkit.services.errors import QuantKitError
from quantkit.services.lattice import BinomialModel, lattice_price, node_count, path_lattice_price
from quantkit.services.payoffs import asian_payoff, vanilla_payoff

router = APIRouter()


@router.post("/price", response_model=LatticePricingResponse)
def price_on_lattice(req: LatticePricingRequest, db: Session = Depends(get_db)) -> LatticePricingResponse:
    """Price a vanilla or arithmetic-Asian payoff on an explicit (S0, U, D, R, N) tree."""
    try:
        model = BinomialModel(spot=req.spot, up=req.up, down=req.down, rate=req.rate, steps=req.steps)
        path_dependent = req.payoff == "asian"
        if req.method == "crr":
            price = crr_price(vanilla_payoff(req.option_type, req.strike), req.spot, req.up, req.down, req.rate, req.steps)
            nodes = req.steps + 1
        elif path_dependent:
            price = path_lattice_price(asian_payoff(req.option_type, req.strike), model, american=req.american)
            nodes = node_count(model, path_dependent=True)
        else:
            price = lattice_price(vanilla_payoff(req.option_type, req.strike), model, american=req.american)
            nodes = node_count(model, path_dependent=False)
    except QuantKitError as e:
        raise http_error(e) from e

    run_id = str(uuid.uuid4())
    response = LatticePricingResponse(
        run_id=run_id,
        price=price,
        method=req.method,
        risk_neutral_probability=model.risk_neutral_probability,
        node_count=nodes,
    )
    create_run(
        db,
        run_type=response.run_type,
        input_payload=req.model_dump(),
        output_payload=response.model_dump(),
        run_id=run_id,
    )
    return response
