"""Watchlist endpoints."""

from fastapi import APIRouter, Depends

from paperledger.api.deps import get_watchlist_service
from paperledger.api.schemas import (
    WatchlistAddRequest,
    WatchlistItemResponse,
    WatchlistResponse,
)
from paperledger.domain.models import WatchlistItem
from paperledger.services import WatchlistService

router = APIRouter(prefix="/watchlist", tags=["watchlist"])


def _to_response(items: list[WatchlistItem]) -> WatchlistResponse:
    return WatchlistResponse(
        items=[WatchlistItemResponse(symbol=i.symbol, name=i.name) for i in items],
        count=len(items),
    )


@router.get("", response_model=WatchlistResponse)
def get_watchlist(
    watchlist: WatchlistService = Depends(get_watchlist_service),
) -> WatchlistResponse:
    """Get tracked symbols."""
    return _to_response(watchlist.list())


@router.post("", response_model=WatchlistResponse, status_code=201)
def add_to_watchlist(
    data: WatchlistAddRequest,
    watchlist: WatchlistService = Depends(get_watchlist_service),
) -> WatchlistResponse:
    """Track a symbol."""
    return _to_response(watchlist.add_symbol(data.symbol, data.name))


@router.delete("/{symbol}", response_model=WatchlistResponse)
def remove_from_watchlist(
    symbol: str,
    watchlist: WatchlistService = Depends(get_watchlist_service),
) -> WatchlistResponse:
    """Stop tracking a symbol."""
    return _to_response(watchlist.remove_symbol(symbol))
