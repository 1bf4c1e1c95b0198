from dataclasses import dataclass, field
from datetime import datetime

from crypto_portfolio_tracker.infrastructure.services.vo.coin_balance_valuation import CoinBalanceValuation
from crypto_portfolio_tracker.infrastructure.services.vo.portfolio_total import PortfolioTotal


@dataclass(frozen=True, kw_only=True)
class PortfolioSnapshot:
    """
    One polling cycle worth of valued balances plus its aggregate
    """

    valuations: list[CoinBalanceValuation] = field(default_factory=list)
    total: PortfolioTotal

    @property
    def timestamp(self) -> datetime:
        return self.total.timestamp
