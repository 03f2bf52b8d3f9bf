"""
Top-level API router.
Combines all sub-routers into a single router.
"""

from fastapi import APIRouter

from medprice.api.health import router as health_router
from medprice.api.reports import router as reports_router
from medprice.api.weights import router as weights_router
from medprice.api.prices import router as prices_router

api_router = APIRouter()

api_router.include_router(health_router)
api_router.include_router(reports_router)
api_router.include_router(weights_router)
api_router.include_router(prices_router)
