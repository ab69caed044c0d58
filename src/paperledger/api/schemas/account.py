"""Pydantic schemas for account endpoints."""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

from paperledger.domain.models import AssetType, OrderSide


class AmountRequest(BaseModel):
    """Request schema for deposit, withdraw and goal updates."""

    amount: Decimal = Field(..., description="Positive whole number of dollars")


class HoldingResponse(BaseModel):
    """Response schema for a stored position."""

    symbol: str
    shares: Decimal
    avg_price: Decimal
    asset_type: AssetType


class AccountResponse(BaseModel):
    """Response schema for the paper account."""

    cash_balance: Decimal
    starting_balance: Decimal
    goal_target: Decimal
    positions: list[HoldingResponse]
    transaction_count: int
    version: int
    degraded: bool = False


class PositionValueResponse(BaseModel):
    """Response schema for a position valued at the market price."""

    symbol: str
    shares: Decimal
    avg_price: Decimal
    asset_type: AssetType
    last_price: Optional[Decimal] = None
    market_value: Decimal
    cost_basis: Decimal
    unrealized_pnl: Decimal
    unrealized_pnl_pct: Optional[Decimal] = None
    priced: bool


class AccountSummaryResponse(BaseModel):
    """Response schema for the valued account."""

    cash_balance: Decimal
    starting_balance: Decimal
    goal_target: Decimal
    positions: list[PositionValueResponse]
    equities_value: Decimal
    crypto_value: Decimal
    total_value: Decimal
    profit: Decimal
    goal_progress_pct: Decimal


class TransactionResponse(BaseModel):
    """Response schema for a single trade."""

    id: str
    symbol: str
    side: OrderSide
    asset_type: AssetType
    qty: Decimal
    price: Decimal
    total: Decimal
    timestamp: Optional[datetime] = None


class TransactionListResponse(BaseModel):
    """Response schema for the trade history, newest first."""

    transactions: list[TransactionResponse]
    total: int


class SeedResponse(BaseModel):
    """Response schema for starter seeding."""

    seeded: bool
    account: AccountResponse
