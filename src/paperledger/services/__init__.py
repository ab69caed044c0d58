"""Service layer - business logic orchestration."""

from paperledger.services.notifier import ChangeNotifier
from paperledger.services.ledger_service import LedgerService
from paperledger.services.order_ticket import OrderTicket
from paperledger.services.portfolio_engine import PortfolioEngine
from paperledger.services.market_data_service import MarketDataService
from paperledger.services.watchlist_service import WatchlistService

__all__ = [
    "ChangeNotifier",
    "LedgerService",
    "OrderTicket",
    "PortfolioEngine",
    "MarketDataService",
    "WatchlistService",
]
