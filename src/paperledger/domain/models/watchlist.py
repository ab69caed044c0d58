"""Watchlist domain model."""

from dataclasses import dataclass


@dataclass(frozen=True)
class WatchlistItem:
    """Tracked symbol with display name."""

    symbol: str
    name: str
