"""
Unit tests for WatchlistService.

Tests cover:
- Default list for a new profile
- Normalization of stored entries (strings, objects, duplicates, corrupt JSON)
- Adding and removing symbols
- Change notifications
"""

import json
import typing

import pytest

from paperledger.services import WatchlistService
from paperledger.services.account_state import StorageKeys
from paperledger.domain.models import WatchlistItem
from paperledger.core.exceptions import InvalidSymbolError, NotFoundError


class TestWatchlistList:
    """Tests for loading the watchlist."""

    def test_missing_key_seeds_default(self, watchlist_service: WatchlistService, kv_store):
        """
        GIVEN no stored watchlist
        WHEN I list it
        THEN the default symbols are returned and stored
        """
        items = watchlist_service.list()

        assert [i.symbol for i in items] == ["NVDA", "VOO", "GOOGL", "FIG"]
        stored = json.loads(kv_store.get(StorageKeys.WATCHLIST))
        assert [e["symbol"] for e in stored] == ["NVDA", "VOO", "GOOGL", "FIG"]

    def test_empty_stored_list_stays_empty(self, watchlist_service: WatchlistService, kv_store):
        """
        GIVEN a stored empty list
        WHEN I list it
        THEN it is empty (defaults only apply to a missing key)
        """
        kv_store.set(StorageKeys.WATCHLIST, "[]")

        assert watchlist_service.list() == []

    def test_stored_entries_are_normalized_and_written_back(
        self,
        watchlist_service: WatchlistService,
        kv_store,
    ):
        """
        GIVEN mixed strings, objects, blanks and duplicates
        WHEN I list the watchlist
        THEN entries are uppercased and deduped and the clean form is stored
        """
        kv_store.set(
            StorageKeys.WATCHLIST,
            json.dumps(["aapl", {"symbol": "msft", "name": "Microsoft"}, "", None, {"name": "x"}, "AAPL"]),
        )

        items = watchlist_service.list()

        assert items == [
            WatchlistItem(symbol="AAPL", name="AAPL"),
            WatchlistItem(symbol="MSFT", name="Microsoft"),
        ]
        assert json.loads(kv_store.get(StorageKeys.WATCHLIST)) == [
            {"symbol": "AAPL", "name": "AAPL"},
            {"symbol": "MSFT", "name": "Microsoft"},
        ]

    def test_corrupt_watchlist_is_cleared(self, watchlist_service: WatchlistService, kv_store):
        """
        GIVEN a stored watchlist that is not JSON
        WHEN I list it
        THEN it is treated as empty and rewritten
        """
        kv_store.set(StorageKeys.WATCHLIST, "[oops")

        assert watchlist_service.list() == []
        assert kv_store.get(StorageKeys.WATCHLIST) == "[]"

    def test_normalize_non_list(self):
        """
        GIVEN a non-list value
        WHEN I normalize
        THEN the result is empty
        """
        assert WatchlistService.normalize({"symbol": "AAPL"}) == []


class TestWatchlistEdit:
    """Tests for adding and removing symbols."""

    def test_add_symbol(self, watchlist_service: WatchlistService, notifier):
        """
        GIVEN the default watchlist
        WHEN I add " tsla "
        THEN TSLA is appended and a change is broadcast
        """
        calls = []
        notifier.subscribe(lambda: calls.append(1))

        items = watchlist_service.add_symbol(" tsla ", "Tesla")

        assert items[-1] == WatchlistItem(symbol="TSLA", name="Tesla")
        assert watchlist_service.list()[-1].symbol == "TSLA"
        assert calls == [1]

    def test_add_existing_symbol_is_noop(self, watchlist_service: WatchlistService):
        """
        GIVEN NVDA on the list
        WHEN I add nvda again
        THEN the list is unchanged
        """
        before = watchlist_service.list()

        assert watchlist_service.add_symbol("nvda") == before

    def test_add_empty_symbol(self, watchlist_service: WatchlistService):
        """
        GIVEN any watchlist
        WHEN I add a blank symbol
        THEN InvalidSymbolError is raised
        """
        with pytest.raises(InvalidSymbolError):
            watchlist_service.add_symbol("  ")

    def test_remove_symbol(self, watchlist_service: WatchlistService):
        """
        GIVEN the default watchlist
        WHEN I remove voo
        THEN VOO is gone
        """
        items = watchlist_service.remove_symbol("voo")

        assert [i.symbol for i in items] == ["NVDA", "GOOGL", "FIG"]
        assert [i.symbol for i in watchlist_service.list()] == ["NVDA", "GOOGL", "FIG"]

    def test_remove_unknown_symbol(self, watchlist_service: WatchlistService):
        """
        GIVEN the default watchlist
        WHEN I remove a symbol not on it
        THEN NotFoundError is raised
        """
        with pytest.raises(NotFoundError):
            watchlist_service.remove_symbol("ZZZZ")


def test_annotations_resolve_despite_list_method():
    """
    GIVEN WatchlistService defines a method named list
    WHEN its return annotations are resolved
    THEN they refer to the builtin list type, not the method
    """
    hints = typing.get_type_hints(WatchlistService.add_symbol)

    assert hints["return"] == list[WatchlistItem]
    assert typing.get_type_hints(WatchlistService.list)["return"] == list[WatchlistItem]
