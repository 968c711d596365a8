"""
app/connectors package marker.
"""

from app.connectors.pocketbase import PocketBaseClient, PocketBaseError, PocketBaseUnavailableError

__all__ = [
    "PocketBaseClient",
    "PocketBaseError",
    "PocketBaseUnavailableError",
]
