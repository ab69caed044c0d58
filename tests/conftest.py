"""
Pytest configuration and fixtures for paper-trading ledger tests.

This module provides:
- In-memory SQLite database fixtures
- Key-value store, notifier and ledger fixtures
- A controllable clock in Eastern time
- Deterministic and failing price sources
- FastAPI test client with dependency overrides
"""

import json
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Callable, Iterable, Mapping, Optional

import pytest
from sqlalchemy import StaticPool
from sqlalchemy.orm import sessionmaker, Session
from fastapi.testclient import TestClient

from paperledger.main import app
from paperledger.api.deps import get_market_data_service, reset_dependencies
from paperledger.repositories.sqlalchemy.database import (
    Base,
    build_engine,
    create_tables,
    get_db,
    reset_database,
)
# Import ORM models to register them with Base before creating tables
from paperledger.repositories.sqlalchemy import orm_models  # noqa: F401
from paperledger.repositories.sqlalchemy import SqlAlchemyKeyValueStore
from paperledger.services import (
    ChangeNotifier,
    LedgerService,
    MarketDataService,
    PortfolioEngine,
    WatchlistService,
)
from paperledger.core.exceptions import StorageError
from paperledger.domain.views import Quote
from paperledger.core.timezone import EASTERN_TZ
from paperledger.config.settings import Settings, reset_settings, set_settings


# =============================================================================
# TIMEZONE HELPERS
# =============================================================================


def eastern_datetime(
    year: int,
    month: int,
    day: int,
    hour: int = 10,
    minute: int = 0,
    second: int = 0,
) -> datetime:
    """Create a localized datetime in US/Eastern timezone."""
    return EASTERN_TZ.localize(datetime(year, month, day, hour, minute, second))


class FixedClock:
    """Clock returning a settable 'now'; call advance() to move time."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now = self.now + timedelta(seconds=seconds)


@pytest.fixture
def fixed_now() -> datetime:
    """Fixed 'now' timestamp for deterministic tests."""
    return eastern_datetime(2024, 6, 15, 14, 30, 0)


@pytest.fixture
def clock(fixed_now) -> FixedClock:
    """Provide a controllable clock starting at fixed_now."""
    return FixedClock(fixed_now)


# =============================================================================
# DATABASE FIXTURES
# =============================================================================


@pytest.fixture(scope="function")
def test_engine():
    """Create test database engine with shared in-memory SQLite."""
    # Reset settings for clean state
    reset_settings()

    engine = build_engine("sqlite://", busy_timeout_ms=1000, poolclass=StaticPool)
    create_tables(engine)
    yield engine
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def test_session(test_engine) -> Session:
    """Create test database session."""
    TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)
    session = TestSessionLocal()
    try:
        yield session
    finally:
        session.close()


# =============================================================================
# STORE FIXTURES
# =============================================================================


class FlakyStore:
    """
    KeyValueStore wrapper whose reads or writes can be made to fail.

    Used to exercise degraded mode without a broken database.
    """

    def __init__(self, inner: SqlAlchemyKeyValueStore):
        self._inner = inner
        self.fail_reads = False
        self.fail_writes = False
        self.write_count = 0

    def get(self, key: str) -> Optional[str]:
        return self.get_many([key])[key]

    def get_many(self, keys: Iterable[str]) -> dict[str, Optional[str]]:
        if self.fail_reads:
            raise StorageError("store unavailable")
        return self._inner.get_many(keys)

    def set(self, key: str, value: str) -> None:
        self.write_batch({key: value})

    def delete(self, key: str) -> None:
        self.write_batch({key: None})

    def write_batch(
        self,
        entries: Mapping[str, Optional[str]],
        expect: Optional[tuple[str, Optional[str]]] = None,
    ) -> bool:
        if self.fail_writes:
            raise StorageError("quota exceeded")
        self.write_count += 1
        return self._inner.write_batch(entries, expect=expect)


@pytest.fixture
def kv_store(test_session) -> SqlAlchemyKeyValueStore:
    """Provide test KeyValueStore for the default profile."""
    return SqlAlchemyKeyValueStore(test_session)


@pytest.fixture
def flaky_store(kv_store) -> FlakyStore:
    """Provide a KeyValueStore that can be switched into failure."""
    return FlakyStore(kv_store)


@pytest.fixture
def notifier() -> ChangeNotifier:
    """Provide a fresh change notifier."""
    return ChangeNotifier()


# =============================================================================
# MARKET DATA FIXTURES
# =============================================================================


class DeterministicPriceSource:
    """
    Deterministic price source for testing.

    Provides fixed quotes with no randomness and counts provider calls.
    """

    FIXED_QUOTES = {
        "AAPL": (Decimal("185.50"), Decimal("184.25")),
        "SPY": (Decimal("485.25"), Decimal("484.10")),
        "GLD": (Decimal("187.40"), Decimal("186.95")),
        "MSFT": (Decimal("378.25"), Decimal("376.80")),
        "BTC-USD": (Decimal("64250.00"), Decimal("63810.00")),
    }

    def __init__(self, as_of: Optional[datetime] = None):
        self._as_of = as_of or eastern_datetime(2024, 6, 15, 16, 0, 0)
        self.calls = 0

    def get_quotes(self, symbols: list[str]) -> dict[str, Quote]:
        """Return deterministic quotes for requested symbols."""
        self.calls += 1
        result = {}
        for symbol in symbols:
            upper_symbol = symbol.upper()
            if upper_symbol in self.FIXED_QUOTES:
                last_price, prev_close = self.FIXED_QUOTES[upper_symbol]
                result[upper_symbol] = Quote(
                    symbol=upper_symbol,
                    last_price=last_price,
                    prev_close=prev_close,
                    as_of=self._as_of,
                )
        return result


class FailingPriceSource:
    """Price source that always raises an exception."""

    def get_quotes(self, symbols: list[str]) -> dict[str, Quote]:
        raise ConnectionError("Network unavailable")


@pytest.fixture
def deterministic_source(fixed_now) -> DeterministicPriceSource:
    """Provide deterministic price source."""
    return DeterministicPriceSource(as_of=fixed_now)


@pytest.fixture
def market_data_service(deterministic_source, clock) -> MarketDataService:
    """Provide test MarketDataService with deterministic source."""
    return MarketDataService(
        provider=deterministic_source,
        cache_ttl_seconds=60,
        clock=clock,
    )


# =============================================================================
# SERVICE FIXTURES
# =============================================================================


@pytest.fixture
def ledger_factory(kv_store, notifier, clock) -> Callable[..., LedgerService]:
    """Factory for ledgers over the shared test store (one per simulated tab)."""

    def _create_ledger(
        store=None,
        notifier_override: Optional[ChangeNotifier] = None,
        subscribe: bool = False,
        **kwargs,
    ) -> LedgerService:
        ledger = LedgerService(
            store=store or kv_store,
            notifier=notifier_override or notifier,
            clock=clock,
            **kwargs,
        )
        if subscribe:
            ledger.subscribe()
        ledger.rehydrate()
        return ledger

    return _create_ledger


@pytest.fixture
def ledger_service(ledger_factory) -> LedgerService:
    """Provide a rehydrated LedgerService over an empty store."""
    return ledger_factory()


@pytest.fixture
def portfolio_engine() -> PortfolioEngine:
    """Provide PortfolioEngine."""
    return PortfolioEngine()


@pytest.fixture
def watchlist_service(kv_store, notifier) -> WatchlistService:
    """Provide test WatchlistService."""
    return WatchlistService(kv_store, notifier)


# =============================================================================
# API TEST CLIENT FIXTURE
# =============================================================================


@pytest.fixture
def client(test_engine, deterministic_source) -> TestClient:
    """Provide FastAPI test client with test database and fixed prices."""
    set_settings(Settings(database_url="sqlite://"))
    reset_database()
    reset_dependencies()
    TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)
    market = MarketDataService(provider=deterministic_source, cache_ttl_seconds=60)

    def override_get_db():
        session = TestSessionLocal()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_market_data_service] = lambda: market
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
    reset_dependencies()
    reset_database()
    reset_settings()


# =============================================================================
# HELPER FUNCTIONS (exported for use in tests)
# =============================================================================


def assert_decimal_equal(
    actual: Decimal,
    expected: Decimal,
    tolerance: Decimal = Decimal("0.01"),
) -> None:
    """Assert two Decimals are equal within tolerance."""
    diff = abs(actual - expected)
    assert diff <= tolerance, f"Expected {expected}, got {actual} (diff={diff})"


def write_raw_account(store, **values) -> None:
    """
    Write raw store values by key; dicts and lists are JSON-encoded.

    Lets tests plant legacy or corrupt persisted state.
    """
    entries = {}
    for key, value in values.items():
        if isinstance(value, (dict, list)):
            entries[key] = json.dumps(value)
        else:
            entries[key] = value
    store.write_batch(entries)


def buy(ledger: LedgerService, symbol: str, shares, price):
    """Review and execute a buy in shares mode."""
    preview = ledger.review_order(symbol, "buy", shares, "shares", price)
    return ledger.execute_order(preview)


def sell(ledger: LedgerService, symbol: str, shares, price):
    """Review and execute a sell in shares mode."""
    preview = ledger.review_order(symbol, "sell", shares, "shares", price)
    return ledger.execute_order(preview)
