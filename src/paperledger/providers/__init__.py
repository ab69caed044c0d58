"""Market price sources."""

from paperledger.providers.price_source import PriceSource
from paperledger.providers.stub_provider import StubPriceSource
from paperledger.providers.yahoo_provider import YahooPriceSource

__all__ = [
    "PriceSource",
    "StubPriceSource",
    "YahooPriceSource",
]
