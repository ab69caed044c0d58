"""
Yahoo Finance price source via yfinance.

Fetches run in a worker thread bounded by a timeout; a symbol whose info
cannot be read is left out instead of failing the whole request.
"""

import logging
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FuturesTimeoutError
from decimal import Decimal
from typing import Any, Optional

from paperledger.core.numbers import round_cents, to_decimal
from paperledger.core.timezone import now_eastern
from paperledger.domain.views import Quote

logger = logging.getLogger(__name__)

DEFAULT_FETCH_TIMEOUT_SECONDS = 10


# Lazy import so tests can patch before import
def _get_yf():
    import yfinance as yf
    return yf


def _price_field(info: dict, *keys: str) -> Optional[Decimal]:
    for key in keys:
        value = to_decimal(info.get(key))
        if value is not None and value > 0:
            return round_cents(value)
    return None


def _safe_quote_for_symbol(symbol: str, tickers_obj: Any) -> Optional[Quote]:
    """Build a Quote for one symbol from a yfinance Tickers object, or None."""
    try:
        ticker = tickers_obj.tickers.get(symbol)
        if ticker is None:
            return None
        info = ticker.info
        if not isinstance(info, dict):
            return None
        price = _price_field(info, "currentPrice", "regularMarketPrice")
        if price is None:
            return None
        name = (info.get("longName") or info.get("shortName") or "").strip() or symbol
        return Quote(
            symbol=symbol,
            last_price=price,
            prev_close=_price_field(info, "previousClose", "regularMarketPreviousClose"),
            as_of=now_eastern(),
            display_name=name,
        )
    except Exception as exc:
        logger.debug("Quote lookup failed for %s: %s", symbol, exc)
        return None


def _fetch_quotes_impl(symbols: list[str]) -> dict[str, Quote]:
    """Call yfinance and return quotes for the symbols that have a price."""
    if not symbols:
        return {}
    yf = _get_yf()
    tickers = yf.Tickers(" ".join(symbols))
    result: dict[str, Quote] = {}
    for sym in symbols:
        quote = _safe_quote_for_symbol(sym, tickers)
        if quote is not None:
            result[sym] = quote
    return result


class YahooPriceSource:
    """Fetches quotes from Yahoo Finance; caching is left to MarketDataService."""

    def __init__(self, fetch_timeout_seconds: float = DEFAULT_FETCH_TIMEOUT_SECONDS):
        self._fetch_timeout = fetch_timeout_seconds

    def get_quotes(self, symbols: list[str]) -> dict[str, Quote]:
        """
        Return quotes keyed by uppercase symbol.

        On timeout or a yfinance failure, returns an empty dict; symbols
        without a usable price are omitted.
        """
        keys = [key for key in ((s or "").strip().upper() for s in symbols) if key]
        if not keys:
            return {}

        executor = ThreadPoolExecutor(max_workers=1)
        try:
            future = executor.submit(_fetch_quotes_impl, keys)
            return future.result(timeout=self._fetch_timeout)
        except FuturesTimeoutError:
            logger.warning(
                "Quote fetch timed out after %ss for %s", self._fetch_timeout, ", ".join(keys)
            )
            return {}
        except Exception as exc:
            logger.warning("Quote fetch failed for %s: %s", ", ".join(keys), exc)
            return {}
        finally:
            executor.shutdown(wait=False)
