"""Portfolio engine for deriving holdings and valuations from the ledger."""

from decimal import Decimal
from typing import Iterable, Mapping, Optional

from paperledger.core.numbers import normalize_shares
from paperledger.domain.models import Account, AssetType, OrderSide, Position, Transaction
from paperledger.domain.views import AccountSummary, PositionView, ReplayResult

_HUNDRED = Decimal("100")


def apply_trade(positions: Mapping[str, Position], txn: Transaction) -> dict[str, Position]:
    """
    Return a new position map with one trade applied.

    Buy: weighted-average cost over old and new shares.
    Sell: shares reduced, average cost unchanged; the position is removed
    once it rounds to dust.
    """
    updated = dict(positions)
    existing = positions.get(txn.symbol)
    held = existing.shares if existing else Decimal("0")

    if txn.side == OrderSide.BUY:
        new_shares = normalize_shares(held + txn.qty)
        if new_shares <= 0:
            updated.pop(txn.symbol, None)
            return updated
        old_cost = existing.cost_basis if existing else Decimal("0")
        avg_price = (old_cost + txn.price * txn.qty) / (held + txn.qty)
        updated[txn.symbol] = Position(
            shares=new_shares,
            avg_price=avg_price,
            asset_type=existing.asset_type if existing else txn.asset_type,
        )
        return updated

    new_shares = normalize_shares(held - txn.qty)
    if new_shares <= 0:
        updated.pop(txn.symbol, None)
    else:
        updated[txn.symbol] = Position(
            shares=new_shares,
            avg_price=existing.avg_price,
            asset_type=existing.asset_type,
        )
    return updated


class PortfolioEngine:
    """
    Engine for computing portfolio state from the ledger.

    Replays transaction logs and values accounts against market prices.
    Stateless; the ledger remains the only writer.
    """

    def replay(
        self,
        transactions: Iterable[Transaction],
        opening_cash: Decimal,
    ) -> ReplayResult:
        """
        Rebuild cash and positions by replaying trades oldest first.

        Deposits and withdrawals are not in the log, so opening_cash must
        already include them for the cash figure to match the account.
        """
        positions: dict[str, Position] = {}
        cash = opening_cash
        for txn in transactions:
            positions = apply_trade(positions, txn)
            cash += txn.net_cash_impact
        return ReplayResult(cash_balance=cash, positions=positions)

    def summarize(
        self,
        account: Account,
        prices: Mapping[str, Optional[Decimal]],
    ) -> AccountSummary:
        """
        Value an account at the given prices.

        Positions without a price count as zero market value. Goal progress
        is profit since start as a percentage of the goal, clamped to 0..100.
        """
        views: list[PositionView] = []
        equities = Decimal("0")
        crypto = Decimal("0")

        for symbol in sorted(account.positions):
            view = self._value_position(symbol, account.positions[symbol], prices.get(symbol))
            views.append(view)
            if view.asset_type == AssetType.CRYPTO:
                crypto += view.market_value
            else:
                equities += view.market_value

        total = account.cash_balance + equities + crypto
        profit = total - account.starting_balance
        progress = Decimal("0")
        if account.goal_target > 0:
            progress = min(_HUNDRED, max(Decimal("0"), profit / account.goal_target * _HUNDRED))

        return AccountSummary(
            cash_balance=account.cash_balance,
            starting_balance=account.starting_balance,
            goal_target=account.goal_target,
            positions=views,
            equities_value=equities,
            crypto_value=crypto,
            total_value=total,
            profit=profit,
            goal_progress_pct=progress,
        )

    @staticmethod
    def _value_position(
        symbol: str,
        position: Position,
        last_price: Optional[Decimal],
    ) -> PositionView:
        cost = position.cost_basis
        if last_price is None:
            return PositionView(
                symbol=symbol,
                shares=position.shares,
                avg_price=position.avg_price,
                asset_type=position.asset_type,
                cost_basis=cost,
            )

        value = position.shares * last_price
        pnl = value - cost
        return PositionView(
            symbol=symbol,
            shares=position.shares,
            avg_price=position.avg_price,
            asset_type=position.asset_type,
            last_price=last_price,
            market_value=value,
            cost_basis=cost,
            unrealized_pnl=pnl,
            unrealized_pnl_pct=(pnl / cost * _HUNDRED) if cost else None,
        )
