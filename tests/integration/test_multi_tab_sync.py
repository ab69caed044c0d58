"""
Integration tests for several ledgers sharing one persisted profile.

Each ledger stands for one open tab over the same store.

Tests cover:
- Automatic resync through a shared notifier
- Stale writes rejected by the version guard, then retried
- Reset winning over concurrent state
- Profile isolation
- AppContext instances sharing a notifier
"""

from decimal import Decimal

import pytest

from paperledger.app_context import AppContext
from paperledger.config.settings import reset_settings
from paperledger.core.exceptions import StaleStateError
from paperledger.repositories.sqlalchemy import SqlAlchemyKeyValueStore
from paperledger.repositories.sqlalchemy.database import reset_database
from paperledger.services import ChangeNotifier

from tests.conftest import buy, sell


class TestSharedNotifier:
    """Tabs subscribed to one notifier."""

    def test_other_tab_resyncs_after_trade(self, ledger_factory, notifier: ChangeNotifier):
        """
        GIVEN two subscribed tabs
        WHEN tab A buys AAPL
        THEN tab B sees the position and cash without any explicit reload
        """
        tab_a = ledger_factory(subscribe=True)
        tab_b = ledger_factory(subscribe=True)

        buy(tab_a, "AAPL", 10, 150)

        assert tab_b.account.positions["AAPL"].shares == Decimal("10")
        assert tab_b.account.cash_balance == Decimal("98500")
        assert tab_b.account == tab_a.account

    def test_synced_tab_can_trade_on(self, ledger_factory):
        """
        GIVEN tab B synced after tab A's buy
        WHEN tab B sells part of it
        THEN the write lands and tab A follows
        """
        tab_a = ledger_factory(subscribe=True)
        tab_b = ledger_factory(subscribe=True)
        buy(tab_a, "AAPL", 10, 150)

        sell(tab_b, "AAPL", 4, 160)

        assert tab_a.account.positions["AAPL"].shares == Decimal("6")
        assert len(tab_a.account.transactions) == 2

    def test_unsubscribed_tab_is_left_behind(self, ledger_factory):
        """
        GIVEN tab B unsubscribed
        WHEN tab A trades
        THEN tab B keeps its old view until it rehydrates
        """
        tab_a = ledger_factory(subscribe=True)
        tab_b = ledger_factory(subscribe=True)
        tab_b.unsubscribe()

        buy(tab_a, "AAPL", 1, 100)

        assert tab_b.account.positions == {}
        tab_b.rehydrate()
        assert "AAPL" in tab_b.account.positions


class TestStaleWrites:
    """Tabs that do not hear each other (separate notifiers)."""

    def test_stale_trade_is_rejected_then_retried(self, ledger_factory):
        """
        GIVEN tabs A and B with separate notifiers
        WHEN A buys and then B buys from its outdated view
        THEN B's write is rejected, B reloads, and a retry lands on top of A's trade
        """
        tab_a = ledger_factory(notifier_override=ChangeNotifier())
        tab_b = ledger_factory(notifier_override=ChangeNotifier())
        buy(tab_a, "AAPL", 10, 150)

        with pytest.raises(StaleStateError):
            buy(tab_b, "MSFT", 1, 300)

        assert tab_b.account.positions["AAPL"].shares == Decimal("10")
        assert "MSFT" not in tab_b.account.positions

        buy(tab_b, "MSFT", 1, 300)
        tab_a.rehydrate()

        assert set(tab_a.account.positions) == {"AAPL", "MSFT"}
        assert tab_a.account.cash_balance == Decimal("98200")

    def test_stale_deposit_is_rejected(self, ledger_factory):
        """
        GIVEN tab B behind tab A
        WHEN B deposits
        THEN StaleStateError is raised and no money is lost or duplicated
        """
        tab_a = ledger_factory(notifier_override=ChangeNotifier())
        tab_b = ledger_factory(notifier_override=ChangeNotifier())
        tab_a.deposit(1000)

        with pytest.raises(StaleStateError):
            tab_b.deposit(500)

        assert tab_b.account.cash_balance == Decimal("101000")

    def test_reset_wins_over_newer_state(self, ledger_factory):
        """
        GIVEN tab B behind tab A's trades
        WHEN B resets
        THEN the store holds the default account and A's next guarded write is stale
        """
        tab_a = ledger_factory(notifier_override=ChangeNotifier())
        tab_b = ledger_factory(notifier_override=ChangeNotifier())
        buy(tab_a, "AAPL", 10, 150)
        buy(tab_a, "SPY", 1, 400)

        fresh = tab_b.reset()

        assert fresh.positions == {}
        assert fresh.version > tab_a.account.version

        with pytest.raises(StaleStateError):
            tab_a.deposit(100)
        assert tab_a.account.positions == {}
        assert tab_a.account.cash_balance == Decimal("100000")


class TestProfiles:
    """Ledgers of different profiles over one database."""

    def test_profiles_are_isolated(self, ledger_factory, test_session):
        """
        GIVEN ledgers for profiles alice and bob
        WHEN alice trades
        THEN bob's account is untouched
        """
        alice = ledger_factory(
            store=SqlAlchemyKeyValueStore(test_session, profile_id="alice"),
            profile_id="alice",
        )
        bob = ledger_factory(
            store=SqlAlchemyKeyValueStore(test_session, profile_id="bob"),
            profile_id="bob",
        )

        buy(alice, "AAPL", 1, 100)
        bob.rehydrate()

        assert bob.account.positions == {}
        assert bob.account.cash_balance == Decimal("100000")


class TestAppContextSync:
    """AppContext instances over one data directory."""

    @pytest.fixture
    def contexts(self, tmp_path):
        shared = ChangeNotifier()
        first = AppContext(notifier=shared)
        first.initialize(tmp_path)
        second = AppContext(notifier=shared)
        yield first, second
        first.close()
        second.close()
        reset_database()
        reset_settings()

    def test_ticket_in_one_context_updates_the_other(self, contexts):
        """
        GIVEN two contexts sharing a notifier and database
        WHEN an order ticket executes in the first
        THEN the second context's ledger shows the trade
        """
        first, second = contexts
        second_ledger = second.ledger

        ticket = first.new_ticket("AAPL", "buy", 2, "shares")
        ticket.review(100)
        ticket.confirm()

        assert second_ledger.account.positions["AAPL"].shares == Decimal("2")
        assert second_ledger.account.cash_balance == Decimal("99800")

    def test_bootstrap_seeds_once(self, contexts):
        """
        GIVEN a fresh data directory
        WHEN both contexts bootstrap
        THEN starter positions are bought only once
        """
        first, second = contexts

        first.bootstrap()
        second.bootstrap()

        assert len(second.ledger.account.transactions) == 3
        assert set(second.ledger.account.positions) == {"AAPL", "SPY", "GLD"}
