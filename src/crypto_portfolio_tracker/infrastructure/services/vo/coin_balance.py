from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal


@dataclass(frozen=True, kw_only=True)
class CoinBalance:
    """
    Balance of one asset captured by a balance source at `timestamp`.
    Prices are expressed in the base currency.
    """

    asset: str
    balance: Decimal
    price: Decimal
    source: str
    timestamp: datetime

    def __post_init__(self) -> None:
        if self.balance < 0:
            raise ValueError(f"Balance of {self.asset} must not be negative, but it was {self.balance}")
        if self.price < 0:
            raise ValueError(f"Price of {self.asset} must not be negative, but it was {self.price}")

    @property
    def value(self) -> Decimal:
        return self.price * self.balance
