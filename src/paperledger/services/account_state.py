"""
Persisted account layout: decoding, normalization and encoding.

The stored layout is informal and unversioned; values may have been
written by older or buggy clients. Decoding never raises: anything
unusable is replaced by a safe default and reported as an anomaly so the
ledger can log it and write the normalized form back.
"""

import json
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any, Mapping, Optional

import pytz

from paperledger.core.numbers import normalize_shares, normalize_symbol, to_decimal
from paperledger.core.timezone import parse_timestamp
from paperledger.domain.models import (
    Account,
    AssetType,
    OrderSide,
    Position,
    Transaction,
    DEFAULT_GOAL_TARGET,
    DEFAULT_STARTING_BALANCE,
)


class StorageKeys:
    """Logical keys of the persisted account, one namespace per profile."""

    CASH = "paperCash"
    STARTING = "paperStartingBalance"
    GOAL = "paperGoalTarget"
    HOLDINGS = "paperHoldings"
    TRANSACTIONS = "paperTransactions"
    VERSION = "paperVersion"
    WATCHLIST = "watchlist"
    CRYPTO_HOLDINGS = "cryptoHoldings"  # older separate crypto map
    STARTER_FLAG = "paperStarterSeeded"
    CHAT_SESSION = "chatMessages"


ACCOUNT_KEYS = (
    StorageKeys.CASH,
    StorageKeys.STARTING,
    StorageKeys.GOAL,
    StorageKeys.HOLDINGS,
    StorageKeys.TRANSACTIONS,
    StorageKeys.VERSION,
    StorageKeys.CRYPTO_HOLDINGS,
)

# Cleared together with the account on reset
RESET_CLEARED_KEYS = (
    StorageKeys.STARTER_FLAG,
    StorageKeys.CRYPTO_HOLDINGS,
    StorageKeys.CHAT_SESSION,
)

_LEGACY_ID_NAMESPACE = uuid.UUID("6b0f8e52-4a8e-4c59-9a55-2f1f3c7d9e10")
_EPOCH = datetime(1970, 1, 1, tzinfo=pytz.utc)


@dataclass
class DecodedAccount:
    """Account decoded from raw store values plus what had to be repaired."""

    account: Account
    anomalies: list[str] = field(default_factory=list)


# =============================================================================
# DECODING
# =============================================================================


def decode_account(
    raw: Mapping[str, Optional[str]],
    default_starting: Decimal = DEFAULT_STARTING_BALANCE,
    default_goal: Decimal = DEFAULT_GOAL_TARGET,
) -> DecodedAccount:
    """Build a normalized Account from raw persisted values."""
    anomalies: list[str] = []

    cash = _read_decimal(raw, StorageKeys.CASH, anomalies)
    if cash is None:
        cash = default_starting
    elif cash < 0:
        anomalies.append(f"{StorageKeys.CASH}: negative balance {cash} clamped to 0")
        cash = Decimal("0")

    starting = _read_decimal(raw, StorageKeys.STARTING, anomalies)
    if starting is None:
        starting = cash if cash > 0 else default_starting
    elif starting < 0:
        anomalies.append(f"{StorageKeys.STARTING}: negative value {starting} clamped to 0")
        starting = Decimal("0")

    goal = _read_decimal(raw, StorageKeys.GOAL, anomalies)
    if goal is None or goal <= 0:
        if goal is not None:
            anomalies.append(f"{StorageKeys.GOAL}: non-positive target {goal} replaced")
        goal = default_goal

    positions = normalize_holdings(
        _read_json(raw, StorageKeys.HOLDINGS, {}, anomalies),
        AssetType.STOCK,
    )
    legacy_crypto = normalize_holdings(
        _read_json(raw, StorageKeys.CRYPTO_HOLDINGS, {}, anomalies),
        AssetType.CRYPTO,
    )
    for symbol, pos in legacy_crypto.items():
        positions[symbol] = merge_positions(positions.get(symbol), pos)

    transactions = normalize_transactions(
        _read_json(raw, StorageKeys.TRANSACTIONS, [], anomalies)
    )

    version = _read_version(raw.get(StorageKeys.VERSION), anomalies)

    account = Account(
        cash_balance=cash,
        starting_balance=starting,
        goal_target=goal,
        positions=positions,
        transactions=transactions,
        version=version,
    )
    return DecodedAccount(account=account, anomalies=anomalies)


def normalize_holdings(raw: Any, asset_type: AssetType = AssetType.STOCK) -> dict[str, Position]:
    """
    Clean a raw {symbol: {shares, avgPrice}} mapping.

    Drops non-object entries and positions that round to zero shares,
    uppercases symbols, merges case-duplicates by weighted average and
    coerces a bad avgPrice to 0. Entries without a valid assetType get
    the given asset_type.
    """
    if not isinstance(raw, dict):
        return {}

    result: dict[str, Position] = {}
    for key, value in raw.items():
        symbol = normalize_symbol(key)
        if not symbol or not isinstance(value, dict):
            continue
        shares = normalize_shares(to_decimal(value.get("shares")))
        if shares <= 0:
            continue
        avg_price = to_decimal(value.get("avgPrice"))
        if avg_price is None or avg_price < 0:
            avg_price = Decimal("0")
        position = Position(
            shares=shares,
            avg_price=avg_price,
            asset_type=_parse_asset_type(value.get("assetType"), asset_type),
        )
        result[symbol] = merge_positions(result.get(symbol), position)
    return result


def merge_positions(existing: Optional[Position], incoming: Position) -> Position:
    """Combine two holdings of one symbol; the first one's asset type wins."""
    if existing is None:
        return incoming
    shares = existing.shares + incoming.shares
    avg_price = (existing.cost_basis + incoming.cost_basis) / shares
    return Position(shares=shares, avg_price=avg_price, asset_type=existing.asset_type)


def normalize_transactions(raw: Any) -> list[Transaction]:
    """
    Clean a raw transaction list.

    Malformed entries are dropped, entries missing an id get a deterministic
    one, duplicates by id keep the first occurrence, and the result is
    stably sorted oldest first (entries without a timestamp lead).
    """
    if not isinstance(raw, list):
        return []

    seen: set[str] = set()
    result: list[Transaction] = []
    for index, item in enumerate(raw):
        txn = _parse_transaction(index, item)
        if txn is None or txn.id in seen:
            continue
        seen.add(txn.id)
        result.append(txn)

    result.sort(key=lambda t: t.timestamp or _EPOCH)
    return result


def _parse_transaction(index: int, item: Any) -> Optional[Transaction]:
    if not isinstance(item, dict):
        return None

    symbol = normalize_symbol(item.get("ticker") or item.get("symbol"))
    try:
        side = OrderSide(item.get("side"))
    except ValueError:
        return None
    qty = to_decimal(item.get("qty"))
    price = to_decimal(item.get("price"))
    if not symbol or qty is None or qty <= 0 or price is None or price < 0:
        return None

    txn_id = item.get("id")
    if not isinstance(txn_id, str) or not txn_id.strip():
        fingerprint = f"{index}|{symbol}|{side.value}|{qty}|{price}|{item.get('ts')}"
        txn_id = str(uuid.uuid5(_LEGACY_ID_NAMESPACE, fingerprint))

    return Transaction(
        id=txn_id.strip(),
        symbol=symbol,
        side=side,
        qty=qty,
        price=price,
        asset_type=_parse_asset_type(item.get("assetType"), AssetType.STOCK),
        timestamp=parse_timestamp(item.get("ts")),
    )


def _parse_asset_type(value: Any, default: AssetType) -> AssetType:
    try:
        return AssetType(value)
    except ValueError:
        return default


def _read_decimal(
    raw: Mapping[str, Optional[str]],
    key: str,
    anomalies: list[str],
) -> Optional[Decimal]:
    value = raw.get(key)
    if value is None:
        return None
    parsed = to_decimal(value)
    if parsed is None:
        anomalies.append(f"{key}: unparseable number {value!r}")
    return parsed


def _read_json(
    raw: Mapping[str, Optional[str]],
    key: str,
    fallback: Any,
    anomalies: list[str],
) -> Any:
    value = raw.get(key)
    if value is None or value == "":
        return fallback
    try:
        return json.loads(value)
    except (TypeError, ValueError) as exc:
        anomalies.append(f"{key}: corrupt JSON ({exc})")
        return fallback


def _read_version(value: Optional[str], anomalies: list[str]) -> int:
    if value is None:
        return 0
    try:
        version = int(value)
    except (TypeError, ValueError):
        anomalies.append(f"{StorageKeys.VERSION}: unparseable version {value!r}")
        return 0
    return max(version, 0)


# =============================================================================
# ENCODING
# =============================================================================


def encode_account(account: Account) -> dict[str, Optional[str]]:
    """
    Serialize an Account to store entries.

    The older crypto holdings key is always mapped to None (delete): its
    contents live in the unified holdings map.
    """
    return {
        StorageKeys.CASH: str(account.cash_balance),
        StorageKeys.STARTING: str(account.starting_balance),
        StorageKeys.GOAL: str(account.goal_target),
        StorageKeys.HOLDINGS: encode_holdings(account.positions),
        StorageKeys.TRANSACTIONS: encode_transactions(account.transactions),
        StorageKeys.VERSION: str(account.version),
        StorageKeys.CRYPTO_HOLDINGS: None,
    }


def encode_holdings(positions: Mapping[str, Position]) -> str:
    return json.dumps(
        {
            symbol: {
                "shares": str(pos.shares),
                "avgPrice": str(pos.avg_price),
                "assetType": pos.asset_type.value,
            }
            for symbol, pos in positions.items()
        }
    )


def encode_transactions(transactions: list[Transaction]) -> str:
    return json.dumps([_encode_transaction(t) for t in transactions])


def _encode_transaction(txn: Transaction) -> dict[str, Any]:
    return {
        "id": txn.id,
        "ticker": txn.symbol,
        "side": txn.side.label,
        "assetType": txn.asset_type.value,
        "qty": str(txn.qty),
        "price": str(txn.price),
        "total": str(txn.total),
        "ts": txn.timestamp.isoformat() if txn.timestamp else None,
    }


def changed_entries(
    raw: Mapping[str, Optional[str]],
    encoded: Mapping[str, Optional[str]],
) -> dict[str, Optional[str]]:
    """Entries of encoded whose value differs from what is stored."""
    return {key: value for key, value in encoded.items() if raw.get(key) != value}
