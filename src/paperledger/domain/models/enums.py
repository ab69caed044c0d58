"""Enumerations for domain models."""

from enum import Enum


class OrderSide(str, Enum):
    """Direction of a trade."""

    BUY = "buy"
    SELL = "sell"

    @classmethod
    def _missing_(cls, value):
        # Persisted trades use "Buy"/"Sell"
        if isinstance(value, str):
            lowered = value.strip().lower()
            for member in cls:
                if member.value == lowered:
                    return member
        return None

    @property
    def label(self) -> str:
        """Capitalized form used in the persisted transaction log."""
        return self.value.capitalize()


class AssetType(str, Enum):
    """Asset class of a position or trade."""

    STOCK = "stock"
    CRYPTO = "crypto"

    @classmethod
    def _missing_(cls, value):
        if isinstance(value, str):
            lowered = value.strip().lower()
            for member in cls:
                if member.value == lowered:
                    return member
        return None


class QuantityMode(str, Enum):
    """How an order quantity is expressed."""

    SHARES = "shares"
    DOLLARS = "dollars"


class TicketState(str, Enum):
    """Lifecycle of a single order ticket."""

    IDLE = "IDLE"
    REVIEWED = "REVIEWED"
    EXECUTED = "EXECUTED"
    CANCELLED = "CANCELLED"
