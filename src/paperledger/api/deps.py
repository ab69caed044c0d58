"""Dependency injection for FastAPI."""

from typing import Optional

from fastapi import Depends
from sqlalchemy.orm import Session

from paperledger.config.settings import get_settings
from paperledger.providers import PriceSource, StubPriceSource, YahooPriceSource
from paperledger.repositories.sqlalchemy import SqlAlchemyKeyValueStore, get_db
from paperledger.services import (
    ChangeNotifier,
    LedgerService,
    MarketDataService,
    PortfolioEngine,
    WatchlistService,
)

# Process-wide instances shared by every request
_notifier: Optional[ChangeNotifier] = None
_market_data_service: Optional[MarketDataService] = None


def get_notifier() -> ChangeNotifier:
    """Provide the process-wide ChangeNotifier."""
    global _notifier
    if _notifier is None:
        _notifier = ChangeNotifier()
    return _notifier


def build_price_source() -> PriceSource:
    """Create the price source named by settings (stub or yahoo)."""
    settings = get_settings()
    if settings.price_provider.lower() == "yahoo":
        return YahooPriceSource(fetch_timeout_seconds=settings.quote_fetch_timeout_seconds)
    return StubPriceSource()


def get_market_data_service() -> MarketDataService:
    """Provide the process-wide MarketDataService (its cache outlives requests)."""
    global _market_data_service
    if _market_data_service is None:
        settings = get_settings()
        _market_data_service = MarketDataService(
            provider=build_price_source(),
            cache_ttl_seconds=settings.market_data_cache_ttl_seconds,
        )
    return _market_data_service


def reset_dependencies() -> None:
    """Drop process-wide instances (for reconfiguration and tests)."""
    global _notifier, _market_data_service
    _notifier = None
    _market_data_service = None


def get_kv_store(db: Session = Depends(get_db)) -> SqlAlchemyKeyValueStore:
    """Provide KeyValueStore instance scoped to the configured profile."""
    return SqlAlchemyKeyValueStore(db, profile_id=get_settings().profile_id)


def get_ledger_service(
    store: SqlAlchemyKeyValueStore = Depends(get_kv_store),
    notifier: ChangeNotifier = Depends(get_notifier),
) -> LedgerService:
    """Provide a LedgerService rehydrated from the store."""
    settings = get_settings()
    ledger = LedgerService(
        store=store,
        notifier=notifier,
        profile_id=settings.profile_id,
        preview_ttl_seconds=settings.preview_ttl_seconds,
        starting_balance=settings.default_starting_balance,
        goal_target=settings.default_goal_target,
        starter_tickers=settings.starter_tickers,
    )
    ledger.rehydrate()
    return ledger


def get_watchlist_service(
    store: SqlAlchemyKeyValueStore = Depends(get_kv_store),
    notifier: ChangeNotifier = Depends(get_notifier),
) -> WatchlistService:
    """Provide WatchlistService instance."""
    return WatchlistService(store, notifier, profile_id=get_settings().profile_id)


def get_portfolio_engine() -> PortfolioEngine:
    """Provide PortfolioEngine instance."""
    return PortfolioEngine()
