"""Application context for in-process service management.

Provides a centralized way to access all services without HTTP. One context
stands for one open client (a "tab"): its ledger subscribes to the shared
notifier and re-reads the store whenever any writer commits.
"""

from pathlib import Path
from typing import Optional

from paperledger.config.settings import Settings, set_settings, get_settings
from paperledger.repositories.sqlalchemy.database import (
    init_db_with_path,
    reset_database,
    get_session,
)
from paperledger.repositories.sqlalchemy import SqlAlchemyKeyValueStore
from paperledger.api.deps import build_price_source
from paperledger.domain.models import AssetType, OrderSide, QuantityMode
from paperledger.services import (
    ChangeNotifier,
    LedgerService,
    MarketDataService,
    OrderTicket,
    PortfolioEngine,
    WatchlistService,
)


class AppContext:
    """
    Application context providing in-process access to all services.

    Services are created lazily and share one session, one store and one
    notifier. Pass a notifier shared with other contexts to have them
    resynchronize on each other's writes.
    """

    def __init__(
        self,
        data_dir: Optional[Path] = None,
        notifier: Optional[ChangeNotifier] = None,
    ):
        self._data_dir = data_dir
        self._notifier = notifier or ChangeNotifier()
        self._session = None
        self._initialized = False

        # Service instances (lazy initialized)
        self._ledger_service: Optional[LedgerService] = None
        self._watchlist_service: Optional[WatchlistService] = None
        self._market_data_service: Optional[MarketDataService] = None
        self._portfolio_engine: Optional[PortfolioEngine] = None

    def initialize(self, data_dir: Optional[Path] = None) -> None:
        """
        Initialize or reinitialize the application with a data directory.

        Args:
            data_dir: Data directory path. Uses default if not provided.
        """
        if data_dir:
            self._data_dir = data_dir

        # Update global settings
        settings = Settings(data_dir=self._data_dir)
        set_settings(settings)

        # Reset and reinitialize database
        reset_database()
        db_path = settings.get_data_dir() / "paperledger.db"
        init_db_with_path(db_path)

        self._reset_services()
        self._session = None
        self._initialized = True

    def bootstrap(self) -> LedgerService:
        """Load the account and seed starter positions on first use."""
        ledger = self.ledger
        ledger.rehydrate()
        ledger.seed_starter_positions(price_lookup=self.market_data.get_price)
        return ledger

    @property
    def is_initialized(self) -> bool:
        """Check if context is initialized."""
        return self._initialized

    @property
    def data_dir(self) -> Path:
        """Get the current data directory."""
        return get_settings().get_data_dir()

    @property
    def notifier(self) -> ChangeNotifier:
        return self._notifier

    def _get_session(self):
        """Get or create database session."""
        if self._session is None:
            self._session = get_session()
        return self._session

    def _get_store(self) -> SqlAlchemyKeyValueStore:
        return SqlAlchemyKeyValueStore(self._get_session(), profile_id=get_settings().profile_id)

    def _reset_services(self) -> None:
        if self._ledger_service is not None:
            self._ledger_service.unsubscribe()
        self._ledger_service = None
        self._watchlist_service = None
        self._market_data_service = None

    # Service accessors
    @property
    def ledger(self) -> LedgerService:
        """Get the LedgerService instance, subscribed to the notifier."""
        if self._ledger_service is None:
            settings = get_settings()
            self._ledger_service = LedgerService(
                store=self._get_store(),
                notifier=self._notifier,
                profile_id=settings.profile_id,
                preview_ttl_seconds=settings.preview_ttl_seconds,
                starting_balance=settings.default_starting_balance,
                goal_target=settings.default_goal_target,
                starter_tickers=settings.starter_tickers,
            )
            self._ledger_service.subscribe()
            self._ledger_service.rehydrate()
        return self._ledger_service

    @property
    def watchlist(self) -> WatchlistService:
        """Get the WatchlistService instance."""
        if self._watchlist_service is None:
            self._watchlist_service = WatchlistService(
                self._get_store(),
                self._notifier,
                profile_id=get_settings().profile_id,
            )
        return self._watchlist_service

    @property
    def market_data(self) -> MarketDataService:
        """Get the MarketDataService instance."""
        if self._market_data_service is None:
            settings = get_settings()
            self._market_data_service = MarketDataService(
                provider=build_price_source(),
                cache_ttl_seconds=settings.market_data_cache_ttl_seconds,
            )
        return self._market_data_service

    @property
    def portfolio(self) -> PortfolioEngine:
        """Get the PortfolioEngine instance."""
        if self._portfolio_engine is None:
            self._portfolio_engine = PortfolioEngine()
        return self._portfolio_engine

    def new_ticket(
        self,
        symbol: str = "",
        side: OrderSide = OrderSide.BUY,
        quantity="",
        mode: QuantityMode = QuantityMode.SHARES,
        asset_type: AssetType = AssetType.STOCK,
    ) -> OrderTicket:
        """Open an order ticket against this context's ledger."""
        return OrderTicket(self.ledger, symbol, side, quantity, mode, asset_type)

    def close(self) -> None:
        """Clean up resources."""
        self._reset_services()
        if self._session:
            self._session.close()
            self._session = None


# Global application context (singleton for in-process use)
_app_context: Optional[AppContext] = None


def get_app_context() -> AppContext:
    """Get or create the global application context."""
    global _app_context
    if _app_context is None:
        _app_context = AppContext()
    return _app_context


def set_app_context(context: AppContext) -> None:
    """Set the global application context."""
    global _app_context
    _app_context = context
