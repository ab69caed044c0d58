"""Position domain model."""

from dataclasses import dataclass, field
from decimal import Decimal

from paperledger.domain.models.enums import AssetType


@dataclass(frozen=True)
class Position:
    """
    Current holding of one symbol.

    shares is kept at 2 decimal places and is always above the dust
    threshold while the position exists; avg_price is the volume-weighted
    cost of the shares currently held.
    """

    shares: Decimal
    avg_price: Decimal = field(default_factory=lambda: Decimal("0"))
    asset_type: AssetType = AssetType.STOCK

    def __post_init__(self) -> None:
        if isinstance(self.asset_type, str):
            object.__setattr__(self, "asset_type", AssetType(self.asset_type))

    @property
    def cost_basis(self) -> Decimal:
        """Total cost of the shares currently held."""
        return self.shares * self.avg_price
