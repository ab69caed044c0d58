"""Order preview and confirmation models."""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional

from paperledger.domain.models.enums import AssetType, OrderSide


@dataclass(frozen=True)
class OrderPreview:
    """
    Validated but unexecuted order.

    Produced by review_order; must be confirmed through execute_order
    before anything changes.
    """

    side: OrderSide
    symbol: str
    shares: Decimal
    price: Decimal
    asset_type: AssetType = AssetType.STOCK
    created_at: Optional[datetime] = None

    @property
    def estimated_total(self) -> Decimal:
        """Estimated cost (buy) or proceeds (sell)."""
        return self.shares * self.price


@dataclass(frozen=True)
class OrderConfirmation:
    """Result of an executed order, for transient display."""

    side: OrderSide
    symbol: str
    shares: Decimal
    price: Decimal
    total: Decimal
    transaction_id: str
