from collections.abc import Callable
from decimal import Decimal

import typer

from crypto_portfolio_tracker.commons.utils import utcnow
from crypto_portfolio_tracker.config.configuration_properties import ConfigurationProperties
from crypto_portfolio_tracker.infrastructure.services.value_calculation_service import ValueCalculationService
from crypto_portfolio_tracker.infrastructure.services.vo import CoinBalance


class BalanceDisplayService:
    """
    Console table of the balances of every cycle, coloured by the change against the previous one.

    The previous balances are per-instance state, only written by `render`.
    """

    def __init__(
        self,
        configuration_properties: ConfigurationProperties,
        value_calculation_service: ValueCalculationService,
        echo_fn: Callable[..., None] = typer.secho,
    ) -> None:
        self._configuration_properties = configuration_properties
        self._value_calculation_service = value_calculation_service
        self._echo_fn = echo_fn
        self._previous_values: dict[tuple[str, str], Decimal] = {}

    def render(self, balances: list[CoinBalance], fiat_rate: Decimal, reference_unit_price: Decimal) -> None:
        base_currency = self._configuration_properties.base_currency
        fiat_currency = self._configuration_properties.exchange_rate_currency
        self._echo_fn(f"\n{utcnow():%Y-%m-%d %H:%M:%S} UTC")
        self._echo_fn(
            f"{'Coin':<8} | {'Balance':<12} | {'Price':<18} | {f'Value ({base_currency})':<18} | "
            + f"{f'Value ({fiat_currency})':<18} | {'Change':<14} | {'Change %':<8} | Source"
        )
        self._echo_fn("-" * 130)
        for balance in balances:
            previous_value = self._previous_values.get((balance.asset, balance.source))
            fiat_value = self._value_calculation_service.to_fiat(balance.value, fiat_rate)
            if previous_value is None:
                change_display, percent_display, colour = "", "", None
            else:
                value_change = balance.value - previous_value
                percent_change = value_change / previous_value * 100 if previous_value > 0 else Decimal(0)
                change_display = f"{value_change:+,.2f}"
                percent_display = f"{percent_change:+.2f}%"
                colour = typer.colors.GREEN if value_change >= 0 else typer.colors.RED
            self._echo_fn(
                f"{balance.asset:<8} | {balance.balance:<12.3f} | {f'{balance.price:,.3f} {base_currency}':<18} | "
                + f"{f'{balance.value:,.2f} {base_currency}':<18} | {f'{fiat_value:,.2f} {fiat_currency}':<18} | "
                + f"{change_display:<14} | {percent_display:<8} | {balance.source}",
                fg=colour,
            )
        self._render_totals(balances, fiat_rate, reference_unit_price)
        self._previous_values = {(balance.asset, balance.source): balance.value for balance in balances}

    def _render_totals(self, balances: list[CoinBalance], fiat_rate: Decimal, reference_unit_price: Decimal) -> None:
        total_value = sum((balance.value for balance in balances), Decimal(0))
        previous_total = sum(self._previous_values.values(), Decimal(0))
        value_change = total_value - previous_total
        colour = typer.colors.GREEN if value_change >= 0 else typer.colors.RED
        totals = [
            (self._configuration_properties.base_currency, total_value, previous_total, 2),
            (
                self._configuration_properties.exchange_rate_currency,
                self._value_calculation_service.to_fiat(total_value, fiat_rate),
                self._value_calculation_service.to_fiat(previous_total, fiat_rate),
                2,
            ),
            (
                self._configuration_properties.reference_asset,
                self._value_calculation_service.to_reference_unit(total_value, reference_unit_price),
                self._value_calculation_service.to_reference_unit(previous_total, reference_unit_price),
                8,
            ),
        ]
        self._echo_fn("")
        for currency, total, previous, ndigits in totals:
            change = total - previous
            percent_change = change / previous * 100 if previous > 0 else Decimal(0)
            self._echo_fn(
                f"Total {f'{currency}:':<6} {total:,.{ndigits}f} ({change:+,.{ndigits}f} / {percent_change:+.2f}%)",
                fg=colour,
                bold=True,
            )
