from dataclasses import dataclass
from decimal import Decimal

from crypto_portfolio_tracker.infrastructure.services.vo.coin_balance import CoinBalance


@dataclass(frozen=True, kw_only=True)
class CoinBalanceValuation:
    coin_balance: CoinBalance
    fiat_value: Decimal
    reference_unit_value: Decimal
