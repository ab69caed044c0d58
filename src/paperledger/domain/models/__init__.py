"""Domain models package."""

from paperledger.domain.models.enums import AssetType, OrderSide, QuantityMode, TicketState
from paperledger.domain.models.position import Position
from paperledger.domain.models.transaction import Transaction
from paperledger.domain.models.account import (
    Account,
    DEFAULT_STARTING_BALANCE,
    DEFAULT_GOAL_TARGET,
)
from paperledger.domain.models.order import OrderPreview, OrderConfirmation
from paperledger.domain.models.watchlist import WatchlistItem

__all__ = [
    "AssetType",
    "OrderSide",
    "QuantityMode",
    "TicketState",
    "Position",
    "Transaction",
    "Account",
    "DEFAULT_STARTING_BALANCE",
    "DEFAULT_GOAL_TARGET",
    "OrderPreview",
    "OrderConfirmation",
    "WatchlistItem",
]
