"""Stub price source for offline/testing use."""

import random
from decimal import Decimal

from paperledger.core.timezone import now_eastern
from paperledger.domain.views import Quote


# Deterministic fake prices for common symbols
_STUB_PRICES: dict[str, tuple[Decimal, Decimal]] = {
    "AAPL": (Decimal("185.50"), Decimal("184.25")),
    "SPY": (Decimal("485.25"), Decimal("484.10")),
    "GLD": (Decimal("187.40"), Decimal("186.95")),
    "NVDA": (Decimal("485.25"), Decimal("482.50")),
    "VOO": (Decimal("446.10"), Decimal("445.30")),
    "GOOGL": (Decimal("142.75"), Decimal("141.50")),
    "FIG": (Decimal("33.10"), Decimal("32.85")),
    "MSFT": (Decimal("378.25"), Decimal("376.80")),
    "QQQ": (Decimal("418.75"), Decimal("417.50")),
    "BTC-USD": (Decimal("64250.00"), Decimal("63810.00")),
    "ETH-USD": (Decimal("3120.50"), Decimal("3098.75")),
}


class StubPriceSource:
    """
    Stub source with deterministic fake data for offline operation.

    Uses predefined prices for common symbols; unknown symbols get a
    price derived from a seeded random generator, fixed on first request.
    """

    def __init__(self, seed: int = 42):
        self._rng = random.Random(seed)
        self._generated: dict[str, tuple[Decimal, Decimal]] = {}

    def get_quotes(self, symbols: list[str]) -> dict[str, Quote]:
        """Return stub quotes for requested symbols."""
        as_of = now_eastern()
        result: dict[str, Quote] = {}

        for symbol in symbols:
            upper_symbol = symbol.strip().upper()
            if not upper_symbol:
                continue
            last_price, prev_close = _STUB_PRICES.get(upper_symbol) or self._generate(upper_symbol)
            result[upper_symbol] = Quote(
                symbol=upper_symbol,
                last_price=last_price,
                prev_close=prev_close,
                as_of=as_of,
                display_name=upper_symbol,
            )

        return result

    def _generate(self, symbol: str) -> tuple[Decimal, Decimal]:
        if symbol not in self._generated:
            base_price = Decimal(str(50 + self._rng.random() * 200))
            last_price = base_price.quantize(Decimal("0.01"))
            change_pct = Decimal(str((self._rng.random() - 0.5) * 0.04))
            prev_close = (last_price / (1 + change_pct)).quantize(Decimal("0.01"))
            self._generated[symbol] = (last_price, prev_close)
        return self._generated[symbol]
