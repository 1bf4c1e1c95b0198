from datetime import timedelta
from decimal import Decimal

import pytest

from crypto_portfolio_tracker.infrastructure.services.value_calculation_service import ValueCalculationService
from tests.helpers.constants import FIXED_TIMESTAMP
from tests.helpers.object_mothers import CoinBalanceObjectMother


def should_convert_base_values_into_fiat_and_reference_units() -> None:
    value_calculation_service = ValueCalculationService()

    assert value_calculation_service.to_fiat(Decimal("150"), Decimal("10.5")) == Decimal("1575.0")
    assert value_calculation_service.to_reference_unit(Decimal("150"), Decimal("50000")) == Decimal("0.003")


@pytest.mark.parametrize("reference_unit_price", [Decimal(0), Decimal("-1")])
def should_yield_zero_reference_units_when_reference_price_is_not_positive(reference_unit_price: Decimal) -> None:
    value_calculation_service = ValueCalculationService()

    assert value_calculation_service.to_reference_unit(Decimal("150"), reference_unit_price) == Decimal(0)


def should_build_snapshot_with_totals_from_summed_base_value() -> None:
    value_calculation_service = ValueCalculationService()
    balances = [
        CoinBalanceObjectMother.create(asset="BTC", balance="0.5", price="60000", timestamp=FIXED_TIMESTAMP),
        CoinBalanceObjectMother.create(
            asset="ETH", balance="2", price="3000", timestamp=FIXED_TIMESTAMP + timedelta(seconds=2)
        ),
    ]

    snapshot = value_calculation_service.build_snapshot(
        balances, fiat_rate=Decimal("10"), reference_unit_price=Decimal("60000")
    )

    assert [valuation.coin_balance for valuation in snapshot.valuations] == balances
    assert snapshot.valuations[0].fiat_value == Decimal("300000")
    assert snapshot.valuations[0].reference_unit_value == Decimal("0.5")
    assert snapshot.valuations[1].reference_unit_value == Decimal("0.1")
    assert snapshot.total.total_value == Decimal("36000")
    assert snapshot.total.total_fiat_value == Decimal("360000")
    assert snapshot.total.total_reference_unit_value == Decimal("0.6")
    assert snapshot.timestamp == FIXED_TIMESTAMP + timedelta(seconds=2)


def should_fail_building_snapshot_without_balances() -> None:
    value_calculation_service = ValueCalculationService()

    with pytest.raises(ValueError):
        value_calculation_service.build_snapshot([], fiat_rate=Decimal("10"), reference_unit_price=Decimal("1"))


def should_reject_negative_balances_and_prices() -> None:
    with pytest.raises(ValueError):
        CoinBalanceObjectMother.create(balance="-1")
    with pytest.raises(ValueError):
        CoinBalanceObjectMother.create(price="-0.01")
