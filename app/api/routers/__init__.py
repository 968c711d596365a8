"""
app/api/routers package marker.
"""

from app.api.routers.company_router import router as company_router
from app.api.routers.coupon_ingestion import router as coupon_ingestion_router
from app.api.routers.coupon_router import router as coupon_router

__all__ = [
    "company_router",
    "coupon_ingestion_router",
    "coupon_router",
]
