"""View models for portfolio and valuation outputs."""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Optional

from paperledger.domain.models import AssetType, Position


@dataclass
class Quote:
    """Market quote data for a symbol."""

    symbol: str
    last_price: Decimal
    prev_close: Optional[Decimal]
    as_of: datetime
    display_name: Optional[str] = None


@dataclass
class PositionView:
    """View model for a single holding valued at a market price."""

    symbol: str
    shares: Decimal
    avg_price: Decimal
    asset_type: AssetType
    last_price: Optional[Decimal] = None
    market_value: Decimal = field(default_factory=lambda: Decimal("0"))
    cost_basis: Decimal = field(default_factory=lambda: Decimal("0"))
    unrealized_pnl: Decimal = field(default_factory=lambda: Decimal("0"))
    unrealized_pnl_pct: Optional[Decimal] = None

    @property
    def priced(self) -> bool:
        return self.last_price is not None


@dataclass
class AccountSummary:
    """Valuation of an account against current prices."""

    cash_balance: Decimal
    starting_balance: Decimal
    goal_target: Decimal
    positions: list[PositionView] = field(default_factory=list)
    equities_value: Decimal = field(default_factory=lambda: Decimal("0"))
    crypto_value: Decimal = field(default_factory=lambda: Decimal("0"))
    total_value: Decimal = field(default_factory=lambda: Decimal("0"))
    profit: Decimal = field(default_factory=lambda: Decimal("0"))
    goal_progress_pct: Decimal = field(default_factory=lambda: Decimal("0"))


@dataclass
class ReplayResult:
    """Cash and positions derived by replaying a transaction log."""

    cash_balance: Decimal
    positions: dict[str, Position] = field(default_factory=dict)
