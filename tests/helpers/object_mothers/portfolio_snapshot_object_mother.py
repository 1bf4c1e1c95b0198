from decimal import Decimal

from crypto_portfolio_tracker.infrastructure.services.value_calculation_service import ValueCalculationService
from crypto_portfolio_tracker.infrastructure.services.vo import CoinBalance, PortfolioSnapshot
from tests.helpers.constants import BTC_PRICE, FIAT_RATE
from tests.helpers.object_mothers.coin_balance_object_mother import CoinBalanceObjectMother


class PortfolioSnapshotObjectMother:
    _value_calculation_service = ValueCalculationService()

    @classmethod
    def create(
        cls,
        *,
        balances: list[CoinBalance] | None = None,
        fiat_rate: Decimal = FIAT_RATE,
        reference_unit_price: Decimal = BTC_PRICE,
    ) -> PortfolioSnapshot:
        """
        Create a PortfolioSnapshot valuing the given (or random) balances.
        """
        return cls._value_calculation_service.build_snapshot(
            balances or CoinBalanceObjectMother.list(),
            fiat_rate=fiat_rate,
            reference_unit_price=reference_unit_price,
        )
