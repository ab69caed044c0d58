"""
API tests for paper account endpoints.

Tests cover:
- Reading the account and its valuation
- Deposit, withdraw and goal updates (success + validation errors)
- Transaction history paging
- Reset and starter seeding
- Error responses (400, 422)
"""

from decimal import Decimal

from fastapi.testclient import TestClient


def _buy(client: TestClient, symbol: str, quantity) -> dict:
    review = client.post("/orders/review", json={
        "symbol": symbol,
        "side": "buy",
        "quantity": str(quantity),
    })
    assert review.status_code == 200
    response = client.post("/orders/execute", json=review.json())
    assert response.status_code == 200
    return response.json()


# =============================================================================
# READ TESTS
# =============================================================================


class TestGetAccountAPI:
    """Tests for GET /account and GET /account/summary."""

    def test_new_account_defaults(self, client: TestClient):
        """
        GIVEN an empty database
        WHEN I GET /account
        THEN the default balances are returned with no positions
        """
        response = client.get("/account")

        assert response.status_code == 200
        data = response.json()
        assert Decimal(data["cash_balance"]) == Decimal("100000")
        assert Decimal(data["starting_balance"]) == Decimal("100000")
        assert Decimal(data["goal_target"]) == Decimal("20000")
        assert data["positions"] == []
        assert data["transaction_count"] == 0
        assert data["degraded"] is False

    def test_money_is_serialized_as_strings(self, client: TestClient):
        """
        GIVEN any account
        WHEN I GET /account
        THEN decimal fields are JSON strings, not floats
        """
        data = client.get("/account").json()

        assert isinstance(data["cash_balance"], str)

    def test_summary_values_positions_at_market(self, client: TestClient):
        """
        GIVEN 10 AAPL bought at the 185.50 quote
        WHEN I GET /account/summary
        THEN market value uses the quote and P&L is flat
        """
        _buy(client, "AAPL", 10)

        response = client.get("/account/summary")

        assert response.status_code == 200
        data = response.json()
        position = data["positions"][0]
        assert position["symbol"] == "AAPL"
        assert position["priced"] is True
        assert Decimal(position["market_value"]) == Decimal("1855")
        assert Decimal(position["unrealized_pnl"]) == Decimal("0")
        assert Decimal(data["equities_value"]) == Decimal("1855")
        assert Decimal(data["total_value"]) == Decimal("100000")
        assert Decimal(data["profit"]) == Decimal("0")


# =============================================================================
# CASH AND GOAL TESTS
# =============================================================================


class TestCashAPI:
    """Tests for deposit, withdraw and goal endpoints."""

    def test_deposit(self, client: TestClient):
        """
        GIVEN the default account
        WHEN I POST /account/deposit 5000
        THEN cash and starting balance both grow by 5000
        """
        response = client.post("/account/deposit", json={"amount": 5000})

        assert response.status_code == 200
        data = response.json()
        assert Decimal(data["cash_balance"]) == Decimal("105000")
        assert Decimal(data["starting_balance"]) == Decimal("105000")

    def test_deposit_fraction_returns_400(self, client: TestClient):
        """
        GIVEN the default account
        WHEN I deposit 1.5
        THEN response is 400 and cash is unchanged
        """
        response = client.post("/account/deposit", json={"amount": "1.5"})

        assert response.status_code == 400
        assert response.json()["error"] == "INVALID_AMOUNT"
        assert Decimal(client.get("/account").json()["cash_balance"]) == Decimal("100000")

    def test_deposit_garbage_returns_422(self, client: TestClient):
        response = client.post("/account/deposit", json={"amount": "lots"})

        assert response.status_code == 422

    def test_huge_amounts_return_400(self, client: TestClient):
        """
        GIVEN the default account
        WHEN I deposit or withdraw 1e30
        THEN both are 400 INVALID_AMOUNT and cash is unchanged
        """
        deposit = client.post("/account/deposit", json={"amount": "1e30"})
        withdraw = client.post("/account/withdraw", json={"amount": "1e30"})

        assert deposit.status_code == 400
        assert deposit.json()["error"] == "INVALID_AMOUNT"
        assert withdraw.status_code == 400
        assert withdraw.json()["error"] == "INVALID_AMOUNT"
        assert Decimal(client.get("/account").json()["cash_balance"]) == Decimal("100000")

    def test_withdraw_more_than_cash_returns_400(self, client: TestClient):
        """
        GIVEN 100000 cash
        WHEN I withdraw 100001
        THEN response is 400 INSUFFICIENT_CASH
        """
        response = client.post("/account/withdraw", json={"amount": 100001})

        assert response.status_code == 400
        assert response.json()["error"] == "INSUFFICIENT_CASH"

    def test_withdraw(self, client: TestClient):
        response = client.post("/account/withdraw", json={"amount": 1000})

        assert response.status_code == 200
        assert Decimal(response.json()["cash_balance"]) == Decimal("99000")

    def test_set_goal(self, client: TestClient):
        """
        GIVEN the default goal
        WHEN I PUT /account/goal 50000
        THEN the goal is stored
        """
        response = client.put("/account/goal", json={"amount": 50000})

        assert response.status_code == 200
        assert Decimal(client.get("/account").json()["goal_target"]) == Decimal("50000")


# =============================================================================
# HISTORY, RESET AND SEED TESTS
# =============================================================================


class TestTransactionsAPI:
    """Tests for GET /account/transactions."""

    def test_newest_first_with_paging(self, client: TestClient):
        """
        GIVEN three trades
        WHEN I list with limit=2
        THEN the two newest come back and total counts all three
        """
        _buy(client, "AAPL", 1)
        _buy(client, "SPY", 1)
        _buy(client, "GLD", 1)

        response = client.get("/account/transactions", params={"limit": 2})

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 3
        assert [t["symbol"] for t in data["transactions"]] == ["GLD", "SPY"]

        page_two = client.get("/account/transactions", params={"limit": 2, "offset": 2}).json()
        assert [t["symbol"] for t in page_two["transactions"]] == ["AAPL"]

    def test_invalid_limit_returns_422(self, client: TestClient):
        response = client.get("/account/transactions", params={"limit": 0})

        assert response.status_code == 422


class TestResetAndSeedAPI:
    """Tests for POST /account/reset and POST /account/seed."""

    def test_reset_restores_defaults(self, client: TestClient):
        """
        GIVEN trades and a deposit
        WHEN I POST /account/reset
        THEN the default account is back and the version moved forward
        """
        _buy(client, "AAPL", 1)
        client.post("/account/deposit", json={"amount": 500})
        version_before = client.get("/account").json()["version"]

        response = client.post("/account/reset")

        assert response.status_code == 200
        data = response.json()
        assert data["positions"] == []
        assert data["transaction_count"] == 0
        assert Decimal(data["cash_balance"]) == Decimal("100000")
        assert data["version"] > version_before

    def test_seed_runs_once(self, client: TestClient):
        """
        GIVEN a brand-new account
        WHEN I POST /account/seed twice
        THEN starter positions are bought once at market prices
        """
        first = client.post("/account/seed").json()
        second = client.post("/account/seed").json()

        assert first["seeded"] is True
        assert [p["symbol"] for p in first["account"]["positions"]] == ["AAPL", "GLD", "SPY"]
        assert Decimal(first["account"]["cash_balance"]) == Decimal("100000") - Decimal("858.15")
        assert second["seeded"] is False
        assert second["account"]["transaction_count"] == 3

    def test_seed_skipped_after_trading(self, client: TestClient):
        _buy(client, "MSFT", 1)

        assert client.post("/account/seed").json()["seeded"] is False


class TestAppEndpoints:
    """Tests for service-level endpoints."""

    def test_health(self, client: TestClient):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "healthy"}

    def test_root(self, client: TestClient):
        data = client.get("/").json()

        assert data["docs"] == "/docs"
        assert "version" in data
