from abc import ABC, abstractmethod

from crypto_portfolio_tracker.infrastructure.services.vo import CoinBalance


class AbstractBalanceSourceService(ABC):
    @property
    @abstractmethod
    def name(self) -> str:
        """
        Source tag stamped on every balance this source produces
        """

    @abstractmethod
    async def fetch_balances(self) -> list[CoinBalance]:
        """
        Fetches the current balances, priced in the base currency.
        Any failure is raised as is, retrying is up to the caller.
        """
