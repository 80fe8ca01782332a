from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from quantkit.api.errors import http_error
from quantkit.db.deps import get_db
from quantkit.db.repository import create_run
from quantkit.schemas.pricing import (
    BinomialPricingRequest,
    BinomialPricingResponse,
    BlackScholesRequest,
    BlackScholesResponse,
    Greeks,
    ImpliedVolRequest,
    ImpliedVolResponse,
)
from quantkit.services.black_scholes import bs_price, implied_volatility, price_and_greeks
from quantkit.services.errors import QuantKitError
from quantkit.services.lattice import binomial_option_price

router = APIRouter()


@router.post("/black-scholes", response_model=BlackScholesResponse)
def price_black_scholes(req: BlackScholesRequest, db: Session = Depends(get_db)) -> BlackScholesResponse:
    try:
        res = price_and_greeks(
            option_type=req.option_type,
            spot=req.spot,
            strike=req.strike,
            rate=req.rate,
            dividend_yield=req.dividend_yield,
            vol=req.vol,
            time_to_expiry=req.time_to_expiry,
        )
    except QuantKitError as e:
        raise http_error(e) from e

    run_id = str(uuid.uuid4())
    response = BlackScholesResponse(
        run_id=run_id,
        price_per_unit=res.price,
        price_total=res.price * req.quantity,
        greeks=Greeks(delta=res.delta, gamma=res.gamma, vega=res.vega, theta=res.theta, rho=res.rho),
    )

    create_run(
        db,
        run_type=response.run_type,
        input_payload=req.model_dump(),
        output_payload=response.model_dump(),
        run_id=run_id,
    )
    return response


@router.post("/implied-vol", response_model=ImpliedVolResponse)
def solve_implied_vol(req: ImpliedVolRequest, db: Session = Depends(get_db)) -> ImpliedVolResponse:
    try:
        res = implied_volatility(
            req.market_price,
            req.option_type,
            spot=req.spot,
            strike=req.strike,
            rate=req.rate,
            dividend_yield=req.dividend_yield,
            time_to_expiry=req.time_to_expiry,
            lower=req.lower,
            upper=req.upper,
            tol=req.tol,
            max_iter=req.max_iter,
            method=req.method,
            initial_guess=req.initial_guess,
        )
        repriced = bs_price(
            req.option_type,
            spot=req.spot,
            strike=req.strike,
            rate=req.rate,
            dividend_yield=req.dividend_yield,
            vol=res.root,
            time_to_expiry=req.time_to_expiry,
        )
    except QuantKitError as e:
        raise http_error(e) from e

    run_id = str(uuid.uuid4())
    response = ImpliedVolResponse(
        run_id=run_id,
        implied_vol=res.root,
        iterations=res.iterations,
        method=res.method,
        repriced=repriced,
    )
    create_run(
        db,
        run_type=response.run_type,
        input_payload=req.model_dump(),
        output_payload=response.model_dump(),
        run_id=run_id,
    )
    return response


@router.post("/binomial", response_model=BinomialPricingResponse)
def price_binomial(req: BinomialPricingRequest, db: Session = Depends(get_db)) -> BinomialPricingResponse:
    """CRR tree from an annualized vol; European or American exercise."""
    try:
        price = binomial_option_price(
            req.option_type,
            spot=req.spot,
            strike=req.strike,
            rate=req.rate,
            vol=req.vol,
            time_to_expiry=req.time_to_expiry,
            steps=req.steps,
            american=req.american,
        )
        bs = bs_price(
            req.option_type,
            spot=req.spot,
            strike=req.strike,
            rate=req.rate,
            vol=req.vol,
            time_to_expiry=req.time_to_expiry,
        )
        premium = None
        if req.american:
            european = binomial_option_price(
                req.option_type,
                spot=req.spot,
                strike=req.strike,
                rate=req.rate,
                vol=req.vol,
                time_to_expiry=req.time_to_expiry,
                steps=req.steps,
            )
            premium = price - european
    except QuantKitError as e:
        raise http_error(e) from e

    run_id = str(uuid.uuid4())
    response = BinomialPricingResponse(
        run_id=run_id,
        price=price,
        black_scholes_price=bs,
        early_exercise_premium=premium,
    )
    create_run(
        db,
        run_type=response.run_type,
        input_payload=req.model_dump(),
        output_payload=response.model_dump(),
        run_id=run_id,
    )
    return response
