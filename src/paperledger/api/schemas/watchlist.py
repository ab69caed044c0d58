"""Pydantic schemas for watchlist endpoints."""

from typing import Optional

from pydantic import BaseModel, Field


class WatchlistAddRequest(BaseModel):
    """Request schema for adding a symbol."""

    symbol: str = Field(..., max_length=20)
    name: Optional[str] = Field(default=None, max_length=255)


class WatchlistItemResponse(BaseModel):
    symbol: str
    name: str


class WatchlistResponse(BaseModel):
    """Response schema for the watchlist."""

    items: list[WatchlistItemResponse]
    count: int
