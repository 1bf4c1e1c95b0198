from dataclasses import dataclass

from crypto_portfolio_tracker.commons.constants import DEFAULT_HISTORICAL_VIEW_LIMIT


@dataclass(frozen=True, kw_only=True)
class HistoricalDataViewOptions:
    asset: str | None = None
    source: str | None = None
    # XXX: limit <= 0 means no limit at all
    limit: int = DEFAULT_HISTORICAL_VIEW_LIMIT
    reverse: bool = False
