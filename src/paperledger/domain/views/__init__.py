"""View models package."""

from paperledger.domain.views.portfolio import (
    Quote,
    PositionView,
    AccountSummary,
    ReplayResult,
)

__all__ = [
    "Quote",
    "PositionView",
    "AccountSummary",
    "ReplayResult",
]
