"""
app/services package marker.
"""

from app.services.coupon_ingestion_service import (
    CouponIngestionService,
    get_coupon_ingestion_service,
    get_pocketbase_client,
)
from app.services.retry import BackoffPolicy
from app.services.upload_strategies import BatchUploadStrategy, IndividualUploadStrategy

__all__ = [
    "BackoffPolicy",
    "BatchUploadStrategy",
    "CouponIngestionService",
    "IndividualUploadStrategy",
    "get_coupon_ingestion_service",
    "get_pocketbase_client",
]
