"""Watchlist service for the per-profile list of tracked symbols."""

from __future__ import annotations

import json
import logging
from typing import Any, Optional

from paperledger.core.exceptions import InvalidSymbolError, NotFoundError, StorageError
from paperledger.core.numbers import normalize_symbol
from paperledger.domain.models import WatchlistItem
from paperledger.repositories.protocols import KeyValueStore
from paperledger.services.account_state import StorageKeys
from paperledger.services.ledger_service import profile_lock
from paperledger.services.notifier import ChangeNotifier

logger = logging.getLogger(__name__)

DEFAULT_WATCHLIST = (
    WatchlistItem(symbol="NVDA", name="NVDA"),
    WatchlistItem(symbol="VOO", name="VOO"),
    WatchlistItem(symbol="GOOGL", name="GOOGL"),
    WatchlistItem(symbol="FIG", name="FIG"),
)


class WatchlistService:
    """
    Service for reading and editing the watchlist.

    A profile without a stored watchlist gets the default list. Stored
    entries may be bare symbols or {symbol, name} objects.
    """

    def __init__(
        self,
        store: KeyValueStore,
        notifier: ChangeNotifier,
        profile_id: str = "default",
    ):
        self._store = store
        self._notifier = notifier
        self._profile_id = profile_id
        self._lock = profile_lock(profile_id)

    def list(self) -> list[WatchlistItem]:
        """Return the normalized watchlist, writing back any repairs."""
        with self._lock:
            return self._load()

    def add_symbol(self, symbol: str, name: Optional[str] = None) -> list[WatchlistItem]:
        """Append a symbol; adding one already present leaves the list unchanged."""
        clean = normalize_symbol(symbol)
        if not clean:
            raise InvalidSymbolError(symbol)

        with self._lock:
            items = self._load()
            if any(item.symbol == clean for item in items):
                return items
            label = name.strip() if isinstance(name, str) and name.strip() else clean
            items.append(WatchlistItem(symbol=clean, name=label))
            self._save(items)
        logger.info("Added %s to watchlist of profile %s", clean, self._profile_id)
        self._notifier.notify()
        return items

    def remove_symbol(self, symbol: str) -> list[WatchlistItem]:
        """Remove a symbol; raises NotFoundError if it is not on the list."""
        clean = normalize_symbol(symbol)
        if not clean:
            raise InvalidSymbolError(symbol)

        with self._lock:
            items = self._load()
            remaining = [item for item in items if item.symbol != clean]
            if len(remaining) == len(items):
                raise NotFoundError("Watchlist symbol", clean)
            self._save(remaining)
        logger.info("Removed %s from watchlist of profile %s", clean, self._profile_id)
        self._notifier.notify()
        return remaining

    @staticmethod
    def normalize(raw: Any) -> list[WatchlistItem]:
        """Uppercase, drop empty entries and dedupe keeping the first."""
        if not isinstance(raw, list):
            return []

        seen: set[str] = set()
        items: list[WatchlistItem] = []
        for entry in raw:
            if isinstance(entry, str):
                symbol, name = normalize_symbol(entry), None
            elif isinstance(entry, dict):
                symbol, name = normalize_symbol(entry.get("symbol")), entry.get("name")
            else:
                continue
            if not symbol or symbol in seen:
                continue
            seen.add(symbol)
            label = name.strip() if isinstance(name, str) and name.strip() else symbol
            items.append(WatchlistItem(symbol=symbol, name=label))
        return items

    def _load(self) -> list[WatchlistItem]:
        stored = self._store.get(StorageKeys.WATCHLIST)
        if stored is None:
            items = list(DEFAULT_WATCHLIST)
            self._try_save(items)
            return items

        try:
            raw = json.loads(stored) if stored else []
        except ValueError as exc:
            logger.warning("Corrupt watchlist for profile %s, clearing it: %s", self._profile_id, exc)
            raw = []

        items = self.normalize(raw)
        if _encode(items) != stored:
            self._try_save(items)
        return items

    def _save(self, items: list[WatchlistItem]) -> None:
        self._store.set(StorageKeys.WATCHLIST, _encode(items))

    def _try_save(self, items: list[WatchlistItem]) -> None:
        try:
            self._save(items)
        except StorageError as exc:
            logger.warning("Could not persist normalized watchlist: %s", exc.message)


def _encode(items: list[WatchlistItem]) -> str:
    return json.dumps([{"symbol": item.symbol, "name": item.name} for item in items])
