"""Pydantic schemas for API request/response."""

from paperledger.api.schemas.account import (
    AmountRequest,
    HoldingResponse,
    AccountResponse,
    PositionValueResponse,
    AccountSummaryResponse,
    TransactionResponse,
    TransactionListResponse,
    SeedResponse,
)
from paperledger.api.schemas.order import (
    OrderReviewRequest,
    OrderPreviewResponse,
    OrderExecuteRequest,
    OrderConfirmationResponse,
)
from paperledger.api.schemas.watchlist import (
    WatchlistAddRequest,
    WatchlistItemResponse,
    WatchlistResponse,
)

__all__ = [
    "AmountRequest",
    "HoldingResponse",
    "AccountResponse",
    "PositionValueResponse",
    "AccountSummaryResponse",
    "TransactionResponse",
    "TransactionListResponse",
    "SeedResponse",
    "OrderReviewRequest",
    "OrderPreviewResponse",
    "OrderExecuteRequest",
    "OrderConfirmationResponse",
    "WatchlistAddRequest",
    "WatchlistItemResponse",
    "WatchlistResponse",
]
