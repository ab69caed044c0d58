"""Market data service for quotes and single-symbol price lookups."""

import logging
from datetime import datetime
from decimal import Decimal
from typing import Callable, Optional

from paperledger.core.numbers import normalize_symbol
from paperledger.core.timezone import now_eastern
from paperledger.domain.views import Quote
from paperledger.providers.price_source import PriceSource

logger = logging.getLogger(__name__)


class MarketDataService:
    """
    Service for fetching market quotes.

    Wraps a price source with a per-symbol TTL cache and graceful
    degradation: when the source fails, the last cached quote is served.
    """

    def __init__(
        self,
        provider: PriceSource,
        cache_ttl_seconds: int = 60,
        clock: Callable[[], datetime] = now_eastern,
    ):
        self._provider = provider
        self._cache_ttl = cache_ttl_seconds
        self._clock = clock
        # symbol -> (quote, fetched_at)
        self._quote_cache: dict[str, tuple[Quote, datetime]] = {}

    def get_quotes(self, symbols: list[str]) -> dict[str, Quote]:
        """
        Fetch quotes for symbols with caching.

        Returns dict mapping symbol -> Quote. Fresh cache entries are served
        without calling the provider; stale ones are used only as a fallback.
        """
        keys = list(dict.fromkeys(s for s in (normalize_symbol(x) for x in symbols) if s))
        if not keys:
            return {}

        now = self._clock()
        result: dict[str, Quote] = {}
        missing: list[str] = []
        for symbol in keys:
            cached = self._quote_cache.get(symbol)
            if cached and (now - cached[1]).total_seconds() < self._cache_ttl:
                result[symbol] = cached[0]
            else:
                missing.append(symbol)

        if missing:
            try:
                fetched = self._provider.get_quotes(missing)
            except Exception as exc:
                logger.warning("Price source failed for %s: %s", ", ".join(missing), exc)
                fetched = {}

            for symbol in missing:
                quote = fetched.get(symbol)
                if quote is not None:
                    self._quote_cache[symbol] = (quote, now)
                    result[symbol] = quote
                elif symbol in self._quote_cache:
                    # Graceful degradation: serve the stale quote
                    result[symbol] = self._quote_cache[symbol][0]

        return {s: result[s] for s in keys if s in result}

    def get_price(self, symbol: str) -> Optional[Decimal]:
        """Last price for one symbol, or None when unavailable."""
        key = normalize_symbol(symbol)
        quote = self.get_quotes([key]).get(key) if key else None
        return quote.last_price if quote else None

    def get_prices(self, symbols: list[str]) -> dict[str, Optional[Decimal]]:
        """Last prices keyed by symbol; None for symbols without a quote."""
        quotes = self.get_quotes(symbols)
        return {
            key: (quotes[key].last_price if key in quotes else None)
            for key in (normalize_symbol(s) for s in symbols)
            if key
        }

    def clear_cache(self) -> None:
        self._quote_cache.clear()
