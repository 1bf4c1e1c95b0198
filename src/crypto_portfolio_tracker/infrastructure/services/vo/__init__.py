from crypto_portfolio_tracker.infrastructure.services.vo.coin_balance import CoinBalance
from crypto_portfolio_tracker.infrastructure.services.vo.coin_balance_valuation import CoinBalanceValuation
from crypto_portfolio_tracker.infrastructure.services.vo.historical_data_entry import HistoricalDataEntry
from crypto_portfolio_tracker.infrastructure.services.vo.historical_data_view_options import (
    HistoricalDataViewOptions,
)
from crypto_portfolio_tracker.infrastructure.services.vo.historical_parse_result import (
    HistoricalParseResult,
    HistoricalParseWarning,
)
from crypto_portfolio_tracker.infrastructure.services.vo.historical_total_entry import HistoricalTotalEntry
from crypto_portfolio_tracker.infrastructure.services.vo.portfolio_snapshot import PortfolioSnapshot
from crypto_portfolio_tracker.infrastructure.services.vo.portfolio_total import PortfolioTotal

__all__ = [
    "CoinBalance",
    "CoinBalanceValuation",
    "HistoricalDataEntry",
    "HistoricalDataViewOptions",
    "HistoricalParseResult",
    "HistoricalParseWarning",
    "HistoricalTotalEntry",
    "PortfolioSnapshot",
    "PortfolioTotal",
]
