from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any

from pydantic import AnyUrl, BaseModel, ConfigDict, Field
from pydantic.fields import FieldInfo
from pydantic_settings import (
    BaseSettings,
    DotEnvSettingsSource,
    EnvSettingsSource,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from crypto_portfolio_tracker.commons.constants import (
    COINGECKO_API_BASE_URL,
    DEFAULT_BASE_CURRENCY,
    DEFAULT_EXCHANGE_RATE_CACHE_TTL_IN_SECONDS,
    DEFAULT_EXPORT_OUTPUT_PATH,
    DEFAULT_EXPORT_TOTALS_FILENAME,
    DEFAULT_EXPORT_VALUES_FILENAME,
    DEFAULT_FETCH_INITIAL_DELAY_SECONDS,
    DEFAULT_FETCH_MAX_ATTEMPTS,
    DEFAULT_FIAT_CURRENCY,
    DEFAULT_REFERENCE_ASSET,
    DEFAULT_UPDATE_INTERVAL_MINUTES,
    EXCHANGE_RATE_API_URL,
)
from crypto_portfolio_tracker.infrastructure.services.enums import ExportFormatEnum


class ManualBalanceConfig(BaseModel):
    model_config = ConfigDict(extra="ignore")

    asset: str
    available: Decimal = Field(ge=0)


class CoinGeckoAssetConfig(BaseModel):
    model_config = ConfigDict(extra="ignore")

    asset_name: str
    coingecko_id: str
    # Date when initial_total was last counted, tokens accrue daily from then on
    total_date: datetime
    initial_total: Decimal = Field(ge=0)
    tokens_per_day: Decimal = Decimal(0)


class _CommaSeparatedListSourceMixin:
    def prepare_field_value(self, field_name: str, field: FieldInfo, value: Any, value_is_complex: bool) -> Any:
        if field_name == "binance_excluded_symbols_comma_separated":
            ret = [str(v).strip().upper() for v in value.split(",") if str(v).strip()] if value else []
        else:
            ret = super().prepare_field_value(field_name, field, value, value_is_complex)
        return ret


class _CustomEnvSettingsSource(_CommaSeparatedListSourceMixin, EnvSettingsSource):
    pass


class _CustomDotEnvSettingsSource(_CommaSeparatedListSourceMixin, DotEnvSettingsSource):
    pass


class ConfigurationProperties(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", validate_default=False, extra="allow")
    # Tracking configuration
    update_interval_minutes: float = Field(default=DEFAULT_UPDATE_INTERVAL_MINUTES, gt=0)
    demo_mode: bool = False
    base_currency: str = DEFAULT_BASE_CURRENCY
    reference_asset: str = DEFAULT_REFERENCE_ASSET
    # Source fetch retry policy
    fetch_max_attempts: int = Field(default=DEFAULT_FETCH_MAX_ATTEMPTS, ge=1)
    fetch_initial_delay_seconds: float = Field(default=DEFAULT_FETCH_INITIAL_DELAY_SECONDS, ge=0)
    # Binance configuration
    binance_api_key: str | None = None
    binance_api_secret: str | None = None
    binance_excluded_symbols_comma_separated: list[str] = Field(default_factory=list)
    # Manual balances, priced as Binance ones
    manual_balances: list[ManualBalanceConfig] = Field(default_factory=list)
    # CoinGecko configuration
    coingecko_api_base_url: AnyUrl = AnyUrl(COINGECKO_API_BASE_URL)
    coingecko_assets: list[CoinGeckoAssetConfig] = Field(default_factory=list)
    # Exchange rate configuration
    exchange_rate_api_url: AnyUrl = AnyUrl(EXCHANGE_RATE_API_URL)
    exchange_rate_currency: str = DEFAULT_FIAT_CURRENCY
    exchange_rate_cache_ttl_seconds: int = DEFAULT_EXCHANGE_RATE_CACHE_TTL_IN_SECONDS
    # Export configuration
    export_enabled: bool = False
    export_format: ExportFormatEnum = ExportFormatEnum.CSV
    export_values_filename: str = DEFAULT_EXPORT_VALUES_FILENAME
    export_totals_filename: str = DEFAULT_EXPORT_TOTALS_FILENAME
    export_output_path: str = DEFAULT_EXPORT_OUTPUT_PATH
    # Directus configuration
    directus_enabled: bool = False
    directus_host: AnyUrl | None = None
    directus_api_key: str | None = None
    directus_coin_values_endpoint: str = "coin_values"
    directus_total_balance_endpoint: str = "total_balance"
    directus_logging_enabled: bool = False
    # Logging configuration
    log_level: str = "INFO"

    @property
    def primary_balance_source(self) -> str:
        return "demo" if self.demo_mode else "binance"

    @property
    def telemetry_enabled(self) -> bool:
        return self.directus_enabled and not self.demo_mode

    @property
    def telemetry_sink(self) -> str:
        return "directus" if self.telemetry_enabled else "none"

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        *_,
        **__,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (init_settings, _CustomEnvSettingsSource(settings_cls), _CustomDotEnvSettingsSource(settings_cls))
