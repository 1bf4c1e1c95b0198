import logging
from decimal import Decimal

from crypto_portfolio_tracker.infrastructure.services.vo import (
    CoinBalance,
    CoinBalanceValuation,
    PortfolioSnapshot,
    PortfolioTotal,
)

logger = logging.getLogger(__name__)


class ValueCalculationService:
    """
    Converts base-currency values into fiat and reference-unit values.
    Pure and stateless, results keep full Decimal precision. Rounding only
    happens when rendering or exporting.
    """

    def to_fiat(self, value: Decimal, fiat_rate: Decimal) -> Decimal:
        return value * fiat_rate

    def to_reference_unit(self, value: Decimal, reference_unit_price: Decimal) -> Decimal:
        # XXX: A missing (or non-positive) reference price yields 0 instead of failing
        if reference_unit_price <= 0:
            return Decimal(0)
        return value / reference_unit_price

    def value_balance(
        self, coin_balance: CoinBalance, *, fiat_rate: Decimal, reference_unit_price: Decimal
    ) -> CoinBalanceValuation:
        return CoinBalanceValuation(
            coin_balance=coin_balance,
            fiat_value=self.to_fiat(coin_balance.value, fiat_rate),
            reference_unit_value=self.to_reference_unit(coin_balance.value, reference_unit_price),
        )

    def build_snapshot(
        self, balances: list[CoinBalance], *, fiat_rate: Decimal, reference_unit_price: Decimal
    ) -> PortfolioSnapshot:
        """Values every balance and computes the aggregate totals.

        The totals are converted from the summed base value, not by summing
        the per-asset conversions. The snapshot timestamp is the latest
        balance timestamp.

        Args:
            balances (list[CoinBalance]): non-empty list of balances
            fiat_rate (Decimal): base currency to fiat rate
            reference_unit_price (Decimal): price of one reference unit in base currency

        Returns:
            PortfolioSnapshot: valued balances plus total
        """
        if not balances:
            raise ValueError("A snapshot needs at least one balance")
        valuations = [
            self.value_balance(balance, fiat_rate=fiat_rate, reference_unit_price=reference_unit_price)
            for balance in balances
        ]
        total_value = sum((balance.value for balance in balances), Decimal(0))
        total = PortfolioTotal(
            timestamp=max(balance.timestamp for balance in balances),
            total_value=total_value,
            total_fiat_value=self.to_fiat(total_value, fiat_rate),
            total_reference_unit_value=self.to_reference_unit(total_value, reference_unit_price),
        )
        logger.debug(f"Snapshot built for {len(valuations)} balances, total value {total_value}")
        return PortfolioSnapshot(valuations=valuations, total=total)
