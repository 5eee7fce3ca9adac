"""
API routes for the deal analysis service.
"""

from fastapi import APIRouter

from deal_analysis.api import analysis, calculations

router = APIRouter()

# Include sub-routers
router.include_router(analysis.router, prefix="/analysis", tags=["analysis"])
router.include_router(calculations.router, prefix="/calculate", tags=["calculations"])
