"""Order review and execution endpoints.

Both endpoints price orders from market data; prices sent by the client
are never trusted.
"""

from decimal import Decimal

from fastapi import APIRouter, Depends

from paperledger.api.deps import get_ledger_service, get_market_data_service
from paperledger.api.schemas import (
    OrderReviewRequest,
    OrderPreviewResponse,
    OrderExecuteRequest,
    OrderConfirmationResponse,
)
from paperledger.core.exceptions import PriceUnavailableError
from paperledger.domain.models import OrderPreview
from paperledger.services import LedgerService, MarketDataService

router = APIRouter(prefix="/orders", tags=["orders"])


def _market_price(market: MarketDataService, symbol: str) -> Decimal:
    price = market.get_price(symbol)
    if price is None:
        raise PriceUnavailableError(symbol)
    return price


@router.post("/review", response_model=OrderPreviewResponse)
def review_order(
    data: OrderReviewRequest,
    ledger: LedgerService = Depends(get_ledger_service),
    market: MarketDataService = Depends(get_market_data_service),
) -> OrderPreviewResponse:
    """Validate an order at the market price without changing anything."""
    preview = ledger.review_order(
        data.symbol,
        data.side,
        data.quantity,
        data.mode,
        _market_price(market, data.symbol),
        asset_type=data.asset_type,
    )
    return OrderPreviewResponse(
        side=preview.side,
        symbol=preview.symbol,
        shares=preview.shares,
        price=preview.price,
        estimated_total=preview.estimated_total,
        asset_type=preview.asset_type,
        created_at=preview.created_at,
    )


@router.post("/execute", response_model=OrderConfirmationResponse)
def execute_order(
    data: OrderExecuteRequest,
    ledger: LedgerService = Depends(get_ledger_service),
    market: MarketDataService = Depends(get_market_data_service),
) -> OrderConfirmationResponse:
    """Execute a previously reviewed order at the current market price."""
    price = _market_price(market, data.symbol)
    preview = OrderPreview(
        side=data.side,
        symbol=data.symbol,
        shares=data.shares,
        price=price,
        asset_type=data.asset_type,
        created_at=data.created_at,
    )
    confirmation = ledger.execute_order(preview, price)
    return OrderConfirmationResponse(
        side=confirmation.side,
        symbol=confirmation.symbol,
        shares=confirmation.shares,
        price=confirmation.price,
        total=confirmation.total,
        transaction_id=confirmation.transaction_id,
    )
