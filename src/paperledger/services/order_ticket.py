"""Order ticket: the review/confirm lifecycle of a single order."""

import logging
from decimal import Decimal
from typing import Optional, Union

from paperledger.core.exceptions import AppError, ValidationError
from paperledger.domain.models import (
    AssetType,
    OrderConfirmation,
    OrderPreview,
    OrderSide,
    QuantityMode,
    TicketState,
)
from paperledger.services.ledger_service import LedgerService

logger = logging.getLogger(__name__)

Number = Union[Decimal, int, float, str]


class OrderTicket:
    """
    One order moving through IDLE -> REVIEWED -> EXECUTED or CANCELLED.

    Editing any field drops the preview and returns the ticket to IDLE, so
    a confirm always executes exactly what was last reviewed. Confirming
    twice is rejected.
    """

    def __init__(
        self,
        ledger: LedgerService,
        symbol: str = "",
        side: Union[OrderSide, str] = OrderSide.BUY,
        quantity: Number = "",
        mode: Union[QuantityMode, str] = QuantityMode.SHARES,
        asset_type: Union[AssetType, str] = AssetType.STOCK,
    ):
        self._ledger = ledger
        self.symbol = symbol
        self.side = side
        self.quantity = quantity
        self.mode = mode
        self.asset_type = asset_type
        self._state = TicketState.IDLE
        self._preview: Optional[OrderPreview] = None
        self._confirmation: Optional[OrderConfirmation] = None

    @property
    def state(self) -> TicketState:
        return self._state

    @property
    def preview(self) -> Optional[OrderPreview]:
        return self._preview

    @property
    def confirmation(self) -> Optional[OrderConfirmation]:
        return self._confirmation

    def update(
        self,
        symbol: Optional[str] = None,
        side: Optional[Union[OrderSide, str]] = None,
        quantity: Optional[Number] = None,
        mode: Optional[Union[QuantityMode, str]] = None,
        asset_type: Optional[Union[AssetType, str]] = None,
    ) -> None:
        """Edit the order; any edit invalidates a pending preview."""
        self._ensure_open()
        if symbol is not None:
            self.symbol = symbol
        if side is not None:
            self.side = side
        if quantity is not None:
            self.quantity = quantity
        if mode is not None:
            self.mode = mode
        if asset_type is not None:
            self.asset_type = asset_type
        self._clear_preview()

    def review(self, current_price: Optional[Number]) -> OrderPreview:
        """Validate the order at current_price; a rejection leaves the ticket IDLE."""
        self._ensure_open()
        self._clear_preview()
        self._preview = self._ledger.review_order(
            self.symbol,
            self.side,
            self.quantity,
            self.mode,
            current_price,
            asset_type=self.asset_type,
        )
        self._state = TicketState.REVIEWED
        return self._preview

    def confirm(self, current_price: Optional[Number] = None) -> OrderConfirmation:
        """Execute the reviewed order."""
        if self._state != TicketState.REVIEWED or self._preview is None:
            raise ValidationError(
                f"Nothing to confirm: ticket is {self._state.value}",
                code="TICKET_STATE",
            )

        try:
            confirmation = self._ledger.execute_order(self._preview, current_price)
        except AppError as exc:
            logger.info("Order for %s rejected at confirm: %s", self._preview.symbol, exc.code)
            self._clear_preview()
            raise

        self._preview = None
        self._confirmation = confirmation
        self._state = TicketState.EXECUTED
        return confirmation

    def cancel(self) -> None:
        """Abandon the order."""
        self._ensure_open()
        self._preview = None
        self._state = TicketState.CANCELLED

    def _clear_preview(self) -> None:
        self._preview = None
        self._state = TicketState.IDLE

    def _ensure_open(self) -> None:
        if self._state in (TicketState.EXECUTED, TicketState.CANCELLED):
            raise ValidationError(
                f"Order ticket is closed ({self._state.value})",
                code="TICKET_STATE",
            )
