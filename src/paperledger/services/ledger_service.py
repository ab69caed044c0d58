"""Ledger service: the sole writer of paper-trading state."""

import logging
import threading
import uuid
from dataclasses import replace
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Callable, Iterable, Optional, Type, TypeVar, Union

from paperledger.core.exceptions import (
    AssetTypeMismatchError,
    InsufficientCashError,
    InsufficientSharesError,
    InvalidAmountError,
    InvalidQuantityError,
    InvalidSymbolError,
    PreviewExpiredError,
    PriceUnavailableError,
    StaleStateError,
    StorageError,
    ValidationError,
)
from paperledger.core.numbers import (
    CASH_EPSILON,
    normalize_shares,
    normalize_symbol,
    parse_whole_amount,
    round_cents,
    shares_for_dollars,
    to_decimal,
)
from paperledger.core.timezone import now_eastern
from paperledger.domain.models import (
    Account,
    AssetType,
    OrderConfirmation,
    OrderPreview,
    OrderSide,
    Position,
    QuantityMode,
    Transaction,
    DEFAULT_GOAL_TARGET,
    DEFAULT_STARTING_BALANCE,
)
from paperledger.repositories.protocols import KeyValueStore
from paperledger.services.account_state import (
    ACCOUNT_KEYS,
    RESET_CLEARED_KEYS,
    StorageKeys,
    changed_entries,
    decode_account,
    encode_account,
)
from paperledger.services.notifier import ChangeNotifier
from paperledger.services.portfolio_engine import apply_trade

logger = logging.getLogger(__name__)

E = TypeVar("E", bound=Enum)
Number = Union[Decimal, int, float, str]
PriceLookup = Callable[[str], Optional[Number]]

DEFAULT_STARTER_TICKERS = ("AAPL", "SPY", "GLD")
SEED_FALLBACK_PRICE = Decimal("1")

_profile_locks: dict[str, threading.RLock] = {}
_profile_locks_guard = threading.Lock()


def profile_lock(profile_id: str) -> threading.RLock:
    """Process-wide lock serializing read-modify-write cycles of one profile."""
    with _profile_locks_guard:
        lock = _profile_locks.get(profile_id)
        if lock is None:
            lock = threading.RLock()
            _profile_locks[profile_id] = lock
        return lock


class LedgerService:
    """
    Service owning cash, positions and trade history of one profile.

    Keeps an in-memory Account refreshed by rehydrate(). Every mutation
    builds a new Account, writes it as one conditional batch guarded by
    the stored version counter, swaps it in and broadcasts. Rejected
    operations leave both the store and the in-memory Account untouched.
    """

    def __init__(
        self,
        store: KeyValueStore,
        notifier: ChangeNotifier,
        profile_id: str = "default",
        clock: Callable[[], datetime] = now_eastern,
        preview_ttl_seconds: Optional[float] = 60,
        starting_balance: Decimal = DEFAULT_STARTING_BALANCE,
        goal_target: Decimal = DEFAULT_GOAL_TARGET,
        starter_tickers: Iterable[str] = DEFAULT_STARTER_TICKERS,
    ):
        self._store = store
        self._notifier = notifier
        self._profile_id = profile_id
        self._clock = clock
        self._preview_ttl = preview_ttl_seconds
        self._starting_default = Decimal(starting_balance)
        self._goal_default = Decimal(goal_target)
        self._starter_tickers = tuple(starter_tickers)
        self._lock = profile_lock(profile_id)

        self._account = Account.default(self._starting_default, self._goal_default)
        self._stored_version: Optional[str] = None
        self._degraded = False

    # =========================================================================
    # READ ACCESS
    # =========================================================================

    @property
    def account(self) -> Account:
        """Current account as last read or written by this ledger."""
        return self._account

    @property
    def is_degraded(self) -> bool:
        """True while the latest state exists only in memory."""
        return self._degraded

    def positions(self, asset_type: Optional[AssetType] = None) -> dict[str, Position]:
        """Current positions, optionally of one asset class."""
        if asset_type is None:
            return dict(self._account.positions)
        return self._account.positions_of(AssetType(asset_type))

    def transactions(self, newest_first: bool = True) -> list[Transaction]:
        """Trade history for display."""
        txns = list(self._account.transactions)
        if newest_first:
            txns.reverse()
        return txns

    def subscribe(self) -> None:
        """Re-read persisted state whenever any writer broadcasts."""
        self._notifier.subscribe(self.rehydrate)

    def unsubscribe(self) -> None:
        self._notifier.unsubscribe(self.rehydrate)

    # =========================================================================
    # REHYDRATION
    # =========================================================================

    def rehydrate(self) -> Account:
        """
        Reload the account from the store, repairing it on the way.

        Normalized values that differ from what is stored are written back
        (guarded by the version key, without broadcasting). While degraded
        the in-memory account stays authoritative and nothing is read.
        """
        with self._lock:
            if self._degraded:
                logger.debug(
                    "Profile %s is degraded; keeping in-memory account", self._profile_id
                )
                return self._account
            return self._reload()

    def _reload(self) -> Account:
        try:
            raw = self._store.get_many(ACCOUNT_KEYS)
        except StorageError as exc:
            logger.warning(
                "Could not read account for profile %s, keeping in-memory state: %s",
                self._profile_id,
                exc.message,
            )
            return self._account

        decoded = decode_account(raw, self._starting_default, self._goal_default)
        for anomaly in decoded.anomalies:
            logger.warning("Repairing stored account of profile %s: %s", self._profile_id, anomaly)

        account = decoded.account
        stored_version = raw.get(StorageKeys.VERSION)
        repairs = changed_entries(raw, encode_account(account))
        if repairs:
            if self._write_back(repairs, stored_version):
                stored_version = repairs.get(StorageKeys.VERSION, stored_version)

        self._account = account
        self._stored_version = stored_version
        self._degraded = False
        return account

    def _write_back(self, repairs: dict[str, Optional[str]], stored_version: Optional[str]) -> bool:
        try:
            written = self._store.write_batch(
                repairs,
                expect=(StorageKeys.VERSION, stored_version),
            )
        except StorageError as exc:
            logger.warning("Could not persist repaired account: %s", exc.message)
            return False
        if written:
            logger.info(
                "Normalized stored account of profile %s (keys: %s)",
                self._profile_id,
                ", ".join(sorted(repairs)),
            )
        return written

    # =========================================================================
    # ORDERS
    # =========================================================================

    def review_order(
        self,
        symbol: str,
        side: Union[OrderSide, str],
        quantity_input: Number,
        quantity_mode: Union[QuantityMode, str],
        current_price: Optional[Number],
        asset_type: Union[AssetType, str] = AssetType.STOCK,
    ) -> OrderPreview:
        """
        Validate an order intent and return a preview; nothing is written.

        Checks run in order: price, symbol, quantity, then shares held
        (sell) or cash available (buy).
        """
        order_side = _coerce(OrderSide, side, "side")
        mode = _coerce(QuantityMode, quantity_mode, "quantity mode")
        asset = _coerce(AssetType, asset_type, "asset type")
        clean_symbol = normalize_symbol(symbol)

        price = self._require_price(current_price, clean_symbol)
        if not clean_symbol:
            raise InvalidSymbolError(symbol)

        quantity = to_decimal(quantity_input)
        if quantity is None:
            raise InvalidQuantityError(quantity_input)
        if mode == QuantityMode.DOLLARS:
            shares = shares_for_dollars(quantity, price)
        else:
            shares = normalize_shares(quantity)

        with self._lock:
            self._validate(self._account, clean_symbol, order_side, shares, price, asset)

        return OrderPreview(
            side=order_side,
            symbol=clean_symbol,
            shares=shares,
            price=price,
            asset_type=asset,
            created_at=self._clock(),
        )

    def execute_order(
        self,
        preview: OrderPreview,
        current_price: Optional[Number] = None,
    ) -> OrderConfirmation:
        """
        Execute a reviewed order against the current state.

        All review checks run again, at current_price when given. Cash,
        position and the new transaction are committed as one write.
        """
        with self._lock:
            if preview.created_at is not None and self._preview_ttl is not None:
                age = (self._clock() - preview.created_at).total_seconds()
                if age > self._preview_ttl:
                    raise PreviewExpiredError(age)

            symbol = normalize_symbol(preview.symbol)
            quantity = to_decimal(preview.shares)
            if quantity is None:
                raise InvalidQuantityError(preview.shares)
            shares = normalize_shares(quantity)
            side = _coerce(OrderSide, preview.side, "side")
            asset = _coerce(AssetType, preview.asset_type, "asset type")
            price = self._require_price(
                preview.price if current_price is None else current_price,
                symbol,
            )
            if not symbol:
                raise InvalidSymbolError(preview.symbol)

            account = self._account
            self._validate(account, symbol, side, shares, price, asset)

            held = account.position(symbol)
            txn = Transaction(
                id=str(uuid.uuid4()),
                symbol=symbol,
                side=side,
                qty=shares,
                price=price,
                asset_type=held.asset_type if held else asset,
                timestamp=self._clock(),
            )
            updated = replace(
                account,
                cash_balance=self._clamp_cash(account.cash_balance + txn.net_cash_impact),
                positions=apply_trade(account.positions, txn),
                transactions=[*account.transactions, txn],
                version=account.version + 1,
            )
            self._commit(updated)

        logger.info(
            "Executed %s %s %s @ %s (total %s)",
            txn.side.label,
            txn.qty,
            txn.symbol,
            txn.price,
            txn.total,
        )
        return OrderConfirmation(
            side=txn.side,
            symbol=txn.symbol,
            shares=txn.qty,
            price=txn.price,
            total=txn.total,
            transaction_id=txn.id,
        )

    def _clamp_cash(self, cash: Decimal) -> Decimal:
        """Floor cash at zero; validation only lets CASH_EPSILON through."""
        if cash < 0:
            logger.warning(
                "Cash for profile %s would go to %s; clamped to 0",
                self._profile_id,
                cash,
            )
            return Decimal("0")
        return cash

    def _require_price(self, current_price: Optional[Number], symbol: str) -> Decimal:
        price = to_decimal(current_price)
        if price is None or price <= 0:
            raise PriceUnavailableError(symbol)
        return price

    @staticmethod
    def _validate(
        account: Account,
        symbol: str,
        side: OrderSide,
        shares: Decimal,
        price: Decimal,
        asset_type: AssetType,
    ) -> None:
        if shares <= 0:
            raise InvalidQuantityError(str(shares))

        held = account.position(symbol)
        if side == OrderSide.SELL:
            available = held.shares if held else Decimal("0")
            if available < shares:
                raise InsufficientSharesError(symbol, str(shares), str(available))
            return

        cost = shares * price
        if cost > account.cash_balance + CASH_EPSILON:
            raise InsufficientCashError(str(round_cents(cost)), str(account.cash_balance))
        if held is not None and held.asset_type != asset_type:
            raise AssetTypeMismatchError(symbol, held.asset_type.value, asset_type.value)

    # =========================================================================
    # CASH AND GOAL
    # =========================================================================

    def deposit(self, amount: Number) -> Account:
        """Add cash; the starting balance moves too so it is not profit."""
        value = parse_whole_amount(amount)
        if value is None:
            raise InvalidAmountError(amount)

        with self._lock:
            account = self._account
            updated = replace(
                account,
                cash_balance=account.cash_balance + value,
                starting_balance=account.starting_balance + value,
                version=account.version + 1,
            )
            self._commit(updated)
        logger.info("Deposited %s into profile %s", value, self._profile_id)
        return updated

    def withdraw(self, amount: Number) -> Account:
        """Remove cash; the starting balance drops too, never below 0."""
        value = parse_whole_amount(amount)
        if value is None:
            raise InvalidAmountError(amount)

        with self._lock:
            account = self._account
            if value > account.cash_balance + CASH_EPSILON:
                raise InsufficientCashError(str(value), str(account.cash_balance))
            updated = replace(
                account,
                cash_balance=self._clamp_cash(account.cash_balance - value),
                starting_balance=max(Decimal("0"), account.starting_balance - value),
                version=account.version + 1,
            )
            self._commit(updated)
        logger.info("Withdrew %s from profile %s", value, self._profile_id)
        return updated

    def set_goal_target(self, amount: Number) -> Account:
        """Set the profit goal shown against the account."""
        value = parse_whole_amount(amount)
        if value is None:
            raise InvalidAmountError(amount)

        with self._lock:
            account = self._account
            updated = replace(account, goal_target=value, version=account.version + 1)
            self._commit(updated)
        return updated

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def reset(self) -> Account:
        """
        Restore the default account and clear per-profile extras.

        Unconditional write: reset wins over whatever is stored. The version
        counter still moves forward past the stored one.
        """
        with self._lock:
            try:
                stored_raw = self._store.get(StorageKeys.VERSION)
            except StorageError:
                stored_raw = None
            stored = int(stored_raw) if stored_raw and stored_raw.isdigit() else 0
            fresh = Account.default(
                self._starting_default,
                self._goal_default,
                version=max(self._account.version, stored) + 1,
            )
            self._commit(
                fresh,
                extra={key: None for key in RESET_CLEARED_KEYS},
                guarded=False,
            )
        logger.info("Reset account of profile %s", self._profile_id)
        return fresh

    def seed_starter_positions(
        self,
        tickers: Optional[Iterable[str]] = None,
        price_lookup: Optional[PriceLookup] = None,
    ) -> Optional[Account]:
        """
        Buy one share of each starter ticker on a brand-new account.

        Runs once per profile (persisted flag). Does nothing when the account
        already has positions or history. A failed or unusable price lookup
        falls back to a price of 1; tickers the cash cannot cover are skipped.
        Returns the seeded account, or None when nothing ran.
        """
        symbols = [normalize_symbol(t) for t in (tickers or self._starter_tickers)]
        symbols = [s for s in symbols if s]

        if not self._seed_allowed():
            return None
        prices = {symbol: self._seed_price(symbol, price_lookup) for symbol in symbols}

        with self._lock:
            if not self._seed_allowed():
                return None

            account = self._account
            positions = dict(account.positions)
            transactions = list(account.transactions)
            cash = account.cash_balance
            now = self._clock()

            for symbol in symbols:
                price = prices[symbol]
                if price > cash:
                    logger.info("Skipping starter %s: price %s exceeds cash %s", symbol, price, cash)
                    continue
                txn = Transaction(
                    id=str(uuid.uuid4()),
                    symbol=symbol,
                    side=OrderSide.BUY,
                    qty=Decimal("1"),
                    price=price,
                    asset_type=AssetType.STOCK,
                    timestamp=now,
                )
                positions = apply_trade(positions, txn)
                transactions.append(txn)
                cash += txn.net_cash_impact

            updated = replace(
                account,
                cash_balance=cash,
                positions=positions,
                transactions=transactions,
                version=account.version + 1,
            )
            self._commit(updated, extra={StorageKeys.STARTER_FLAG: "1"})

        logger.info("Seeded starter positions for profile %s: %s", self._profile_id, symbols)
        return updated

    def _seed_allowed(self) -> bool:
        try:
            flag = self._store.get(StorageKeys.STARTER_FLAG)
        except StorageError as exc:
            logger.warning("Could not read starter flag: %s", exc.message)
            return False
        return flag != "1" and self._account.is_pristine

    def _seed_price(self, symbol: str, price_lookup: Optional[PriceLookup]) -> Decimal:
        raw = None
        if price_lookup is not None:
            try:
                raw = price_lookup(symbol)
            except Exception as exc:
                logger.warning("Starter price lookup failed for %s: %s", symbol, exc)
        price = to_decimal(raw)
        if price is None or price <= 0:
            return SEED_FALLBACK_PRICE
        return round_cents(price)

    # =========================================================================
    # PERSISTENCE
    # =========================================================================

    def _commit(
        self,
        updated: Account,
        extra: Optional[dict[str, Optional[str]]] = None,
        guarded: bool = True,
    ) -> None:
        """
        Persist a full account as one batch, then swap it in and broadcast.

        A guarded write only lands if the stored version is still the one
        this ledger last saw; otherwise the ledger reloads and raises
        StaleStateError. A storage failure keeps the new account in memory
        (degraded mode) without broadcasting.
        """
        entries = encode_account(updated)
        if extra:
            entries.update(extra)
        expect = (StorageKeys.VERSION, self._stored_version) if guarded else None

        try:
            written = self._store.write_batch(entries, expect=expect)
        except StorageError as exc:
            logger.warning(
                "Could not persist account of profile %s, continuing in memory: %s",
                self._profile_id,
                exc.message,
            )
            self._account = updated
            self._degraded = True
            return

        if not written:
            logger.warning(
                "Stale write rejected for profile %s (expected version %s)",
                self._profile_id,
                self._stored_version,
            )
            self._reload()
            raise StaleStateError()

        self._account = updated
        self._stored_version = entries[StorageKeys.VERSION]
        self._degraded = False
        self._notifier.notify()


def _coerce(enum_cls: Type[E], value: object, label: str) -> E:
    try:
        return enum_cls(value)
    except ValueError:
        raise ValidationError(f"Invalid {label}: {value!r}")
