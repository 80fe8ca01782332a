from fastapi import APIRouter

from quantkit.api.endpoints import cashflows, lattice, pricing, runs, valuation

api_router = APIRouter()

api_router.include_router(pricing.router, prefix="/v1/pricing", tags=["pricing"])
api_router.include_router(lattice.router, prefix="/v1/lattice", tags=["lattice"])
api_router.include_router(cashflows.router, prefix="/v1/cashflows", tags=["cashflows"])
api_router.include_router(valuation.router, prefix="/v1/valuation", tags=["valuation"])
api_router.include_router(runs.router, prefix="/v1/runs", tags=["runs"])
