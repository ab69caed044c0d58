"""Account domain model."""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional

from paperledger.domain.models.enums import AssetType
from paperledger.domain.models.position import Position
from paperledger.domain.models.transaction import Transaction

DEFAULT_STARTING_BALANCE = Decimal("100000")
DEFAULT_GOAL_TARGET = Decimal("20000")


@dataclass
class Account:
    """
    Paper-trading account (root aggregate, one per profile).

    Ledger operations never mutate an Account in place; they build a new
    one and swap it in only after the write succeeds.
    """

    cash_balance: Decimal = field(default_factory=lambda: DEFAULT_STARTING_BALANCE)
    starting_balance: Decimal = field(default_factory=lambda: DEFAULT_STARTING_BALANCE)
    goal_target: Decimal = field(default_factory=lambda: DEFAULT_GOAL_TARGET)
    positions: dict[str, Position] = field(default_factory=dict)
    transactions: list[Transaction] = field(default_factory=list)
    version: int = 0

    @classmethod
    def default(
        cls,
        starting_balance: Decimal = DEFAULT_STARTING_BALANCE,
        goal_target: Decimal = DEFAULT_GOAL_TARGET,
        version: int = 0,
    ) -> "Account":
        """Fresh account with full starting cash and nothing held."""
        return cls(
            cash_balance=starting_balance,
            starting_balance=starting_balance,
            goal_target=goal_target,
            version=version,
        )

    def position(self, symbol: str) -> Optional[Position]:
        """Return the position for symbol, if held."""
        return self.positions.get(symbol)

    def positions_of(self, asset_type: AssetType) -> dict[str, Position]:
        """Positions of one asset class."""
        return {
            symbol: pos
            for symbol, pos in self.positions.items()
            if pos.asset_type == asset_type
        }

    @property
    def is_pristine(self) -> bool:
        """True when nothing has ever been traded."""
        return not self.positions and not self.transactions
