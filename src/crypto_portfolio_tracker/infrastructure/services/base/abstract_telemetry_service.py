from abc import ABC, abstractmethod

from crypto_portfolio_tracker.infrastructure.services.vo import CoinBalanceValuation, PortfolioTotal


class AbstractTelemetryService(ABC):
    @abstractmethod
    async def publish(self, valuation: CoinBalanceValuation) -> None:
        """
        Publishes one valued balance
        """

    @abstractmethod
    async def publish_total(self, total: PortfolioTotal) -> None:
        """
        Publishes the aggregate of one snapshot
        """
