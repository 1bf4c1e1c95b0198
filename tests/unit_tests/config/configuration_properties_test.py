from decimal import Decimal

import pytest

from crypto_portfolio_tracker.config.configuration_properties import ConfigurationProperties
from crypto_portfolio_tracker.infrastructure.services.enums import ExportFormatEnum


def should_split_excluded_symbols_and_parse_structured_settings_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("BINANCE_EXCLUDED_SYMBOLS_COMMA_SEPARATED", "bnb, eth,,")
    monkeypatch.setenv("MANUAL_BALANCES", '[{"asset": "ADA", "available": "1000.5"}]')
    monkeypatch.setenv(
        "COINGECKO_ASSETS",
        '[{"asset_name": "TIA", "coingecko_id": "celestia", "total_date": "2024-01-01T00:00:00Z",'
        + ' "initial_total": "100", "tokens_per_day": "0.25"}]',
    )
    monkeypatch.setenv("EXPORT_FORMAT", "xlsx")

    configuration_properties = ConfigurationProperties()

    assert configuration_properties.binance_excluded_symbols_comma_separated == ["BNB", "ETH"]
    assert configuration_properties.manual_balances[0].available == Decimal("1000.5")
    assert configuration_properties.coingecko_assets[0].tokens_per_day == Decimal("0.25")
    assert configuration_properties.export_format == ExportFormatEnum.XLSX


def should_derive_primary_source_and_telemetry_sink_from_modes() -> None:
    assert ConfigurationProperties(demo_mode=False).primary_balance_source == "binance"
    assert ConfigurationProperties(demo_mode=True).primary_balance_source == "demo"
    assert ConfigurationProperties(directus_enabled=True, demo_mode=False).telemetry_sink == "directus"
    assert ConfigurationProperties(directus_enabled=True, demo_mode=True).telemetry_sink == "none"
    assert ConfigurationProperties(directus_enabled=False).telemetry_sink == "none"


def should_reject_invalid_polling_settings() -> None:
    with pytest.raises(ValueError):
        ConfigurationProperties(update_interval_minutes=0)
    with pytest.raises(ValueError):
        ConfigurationProperties(fetch_max_attempts=0)
