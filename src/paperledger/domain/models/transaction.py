"""Transaction domain model."""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Optional

from paperledger.domain.models.enums import AssetType, OrderSide


@dataclass(frozen=True)
class Transaction:
    """
    Executed trade (immutable ledger fact).

    Buy and Sell only; deposits and withdrawals move cash without a
    transaction entry.
    """

    id: str
    symbol: str
    side: OrderSide
    qty: Decimal
    price: Decimal
    asset_type: AssetType = AssetType.STOCK
    timestamp: Optional[datetime] = field(default=None)

    def __post_init__(self) -> None:
        if isinstance(self.side, str):
            object.__setattr__(self, "side", OrderSide(self.side))
        if isinstance(self.asset_type, str):
            object.__setattr__(self, "asset_type", AssetType(self.asset_type))

    @property
    def total(self) -> Decimal:
        """Gross value of the trade."""
        return self.qty * self.price

    @property
    def net_cash_impact(self) -> Decimal:
        """
        Cash effect of this trade.

        Positive = cash added, Negative = cash removed.
        """
        if self.side == OrderSide.BUY:
            return -self.total
        return self.total
