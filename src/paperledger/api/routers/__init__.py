"""API routers package."""

from paperledger.api.routers.account import router as account_router
from paperledger.api.routers.orders import router as orders_router
from paperledger.api.routers.watchlist import router as watchlist_router

__all__ = [
    "account_router",
    "orders_router",
    "watchlist_router",
]
