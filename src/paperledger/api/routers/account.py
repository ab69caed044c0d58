"""Paper account endpoints."""

from fastapi import APIRouter, Depends, Query

from paperledger.api.deps import (
    get_ledger_service,
    get_market_data_service,
    get_portfolio_engine,
)
from paperledger.api.schemas import (
    AmountRequest,
    HoldingResponse,
    AccountResponse,
    PositionValueResponse,
    AccountSummaryResponse,
    TransactionResponse,
    TransactionListResponse,
    SeedResponse,
)
from paperledger.domain.models import Account, Transaction
from paperledger.services import LedgerService, MarketDataService, PortfolioEngine

router = APIRouter(prefix="/account", tags=["account"])


def _account_to_response(account: Account, degraded: bool = False) -> AccountResponse:
    return AccountResponse(
        cash_balance=account.cash_balance,
        starting_balance=account.starting_balance,
        goal_target=account.goal_target,
        positions=[
            HoldingResponse(
                symbol=symbol,
                shares=pos.shares,
                avg_price=pos.avg_price,
                asset_type=pos.asset_type,
            )
            for symbol, pos in sorted(account.positions.items())
        ],
        transaction_count=len(account.transactions),
        version=account.version,
        degraded=degraded,
    )


def _txn_to_response(txn: Transaction) -> TransactionResponse:
    return TransactionResponse(
        id=txn.id,
        symbol=txn.symbol,
        side=txn.side,
        asset_type=txn.asset_type,
        qty=txn.qty,
        price=txn.price,
        total=txn.total,
        timestamp=txn.timestamp,
    )


@router.get("", response_model=AccountResponse)
def get_account(ledger: LedgerService = Depends(get_ledger_service)) -> AccountResponse:
    """Get cash, balances and stored positions."""
    return _account_to_response(ledger.account, ledger.is_degraded)


@router.get("/summary", response_model=AccountSummaryResponse)
def get_summary(
    ledger: LedgerService = Depends(get_ledger_service),
    market: MarketDataService = Depends(get_market_data_service),
    engine: PortfolioEngine = Depends(get_portfolio_engine),
) -> AccountSummaryResponse:
    """Value the account at current market prices."""
    account = ledger.account
    prices = market.get_prices(list(account.positions))
    summary = engine.summarize(account, prices)

    return AccountSummaryResponse(
        cash_balance=summary.cash_balance,
        starting_balance=summary.starting_balance,
        goal_target=summary.goal_target,
        positions=[
            PositionValueResponse(
                symbol=p.symbol,
                shares=p.shares,
                avg_price=p.avg_price,
                asset_type=p.asset_type,
                last_price=p.last_price,
                market_value=p.market_value,
                cost_basis=p.cost_basis,
                unrealized_pnl=p.unrealized_pnl,
                unrealized_pnl_pct=p.unrealized_pnl_pct,
                priced=p.priced,
            )
            for p in summary.positions
        ],
        equities_value=summary.equities_value,
        crypto_value=summary.crypto_value,
        total_value=summary.total_value,
        profit=summary.profit,
        goal_progress_pct=summary.goal_progress_pct,
    )


@router.get("/transactions", response_model=TransactionListResponse)
def list_transactions(
    limit: int = Query(50, ge=1, le=500, description="Page size"),
    offset: int = Query(0, ge=0, description="Rows to skip"),
    ledger: LedgerService = Depends(get_ledger_service),
) -> TransactionListResponse:
    """List trades, newest first."""
    txns = ledger.transactions()
    return TransactionListResponse(
        transactions=[_txn_to_response(t) for t in txns[offset:offset + limit]],
        total=len(txns),
    )


@router.post("/deposit", response_model=AccountResponse)
def deposit(
    data: AmountRequest,
    ledger: LedgerService = Depends(get_ledger_service),
) -> AccountResponse:
    """Add cash to the account."""
    account = ledger.deposit(data.amount)
    return _account_to_response(account, ledger.is_degraded)


@router.post("/withdraw", response_model=AccountResponse)
def withdraw(
    data: AmountRequest,
    ledger: LedgerService = Depends(get_ledger_service),
) -> AccountResponse:
    """Remove cash from the account."""
    account = ledger.withdraw(data.amount)
    return _account_to_response(account, ledger.is_degraded)


@router.put("/goal", response_model=AccountResponse)
def set_goal(
    data: AmountRequest,
    ledger: LedgerService = Depends(get_ledger_service),
) -> AccountResponse:
    """Set the profit goal."""
    account = ledger.set_goal_target(data.amount)
    return _account_to_response(account, ledger.is_degraded)


@router.post("/reset", response_model=AccountResponse)
def reset_account(ledger: LedgerService = Depends(get_ledger_service)) -> AccountResponse:
    """Restore the default account."""
    account = ledger.reset()
    return _account_to_response(account, ledger.is_degraded)


@router.post("/seed", response_model=SeedResponse)
def seed_starter_positions(
    ledger: LedgerService = Depends(get_ledger_service),
    market: MarketDataService = Depends(get_market_data_service),
) -> SeedResponse:
    """Buy the starter positions on a brand-new account (once per profile)."""
    seeded = ledger.seed_starter_positions(price_lookup=market.get_price)
    return SeedResponse(
        seeded=seeded is not None,
        account=_account_to_response(ledger.account, ledger.is_degraded),
    )
