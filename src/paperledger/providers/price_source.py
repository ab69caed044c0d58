"""Price source protocol."""

from typing import Protocol

from paperledger.domain.views import Quote


class PriceSource(Protocol):
    """
    Protocol for market price sources.

    Implementations fetch current quotes (last_price, prev_close).
    """

    def get_quotes(self, symbols: list[str]) -> dict[str, Quote]:
        """
        Fetch quotes for multiple symbols.

        Returns dict mapping symbol -> Quote with last_price, prev_close, as_of.
        Symbols without a usable price are omitted from the result.
        """
        ...
