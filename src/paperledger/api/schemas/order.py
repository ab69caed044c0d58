"""Pydantic schemas for order endpoints."""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from paperledger.core.timezone import to_eastern
from paperledger.domain.models import AssetType, OrderSide, QuantityMode


class OrderReviewRequest(BaseModel):
    """Request schema for reviewing an order."""

    symbol: str = Field(..., max_length=20, description="Ticker symbol")
    side: OrderSide
    quantity: Decimal = Field(..., description="Shares or dollars, depending on mode")
    mode: QuantityMode = QuantityMode.SHARES
    asset_type: AssetType = AssetType.STOCK

    @field_validator("symbol")
    @classmethod
    def uppercase_symbol(cls, v: str) -> str:
        return v.strip().upper()


class OrderPreviewResponse(BaseModel):
    """Response schema for a reviewed order."""

    side: OrderSide
    symbol: str
    shares: Decimal
    price: Decimal
    estimated_total: Decimal
    asset_type: AssetType
    created_at: Optional[datetime] = None


class OrderExecuteRequest(BaseModel):
    """
    Request schema for executing a reviewed order.

    Any price in the payload is ignored; the order fills at the market price.
    """

    side: OrderSide
    symbol: str = Field(..., max_length=20)
    shares: Decimal
    asset_type: AssetType = AssetType.STOCK
    created_at: datetime = Field(..., description="created_at from the reviewed preview")

    @field_validator("symbol")
    @classmethod
    def uppercase_symbol(cls, v: str) -> str:
        return v.strip().upper()

    @field_validator("created_at")
    @classmethod
    def eastern_created_at(cls, v: datetime) -> datetime:
        return to_eastern(v)


class OrderConfirmationResponse(BaseModel):
    """Response schema for an executed order."""

    side: OrderSide
    symbol: str
    shares: Decimal
    price: Decimal
    total: Decimal
    transaction_id: str
