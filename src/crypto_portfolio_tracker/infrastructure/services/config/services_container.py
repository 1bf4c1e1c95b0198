from dependency_injector import containers, providers

from crypto_portfolio_tracker.infrastructure.services.binance_balance_source_service import BinanceBalanceSourceService
from crypto_portfolio_tracker.infrastructure.services.coingecko_balance_source_service import (
    CoinGeckoBalanceSourceService,
)
from crypto_portfolio_tracker.infrastructure.services.csv_to_xlsx_conversion_service import CsvToXlsxConversionService
from crypto_portfolio_tracker.infrastructure.services.demo_balance_source_service import DemoBalanceSourceService
from crypto_portfolio_tracker.infrastructure.services.directus_telemetry_service import DirectusTelemetryService
from crypto_portfolio_tracker.infrastructure.services.exchange_rate_service import ExchangeRateService
from crypto_portfolio_tracker.infrastructure.services.export import (
    CsvExportWriterService,
    ExportService,
    JsonExportWriterService,
    XlsxExportWriterService,
)
from crypto_portfolio_tracker.infrastructure.services.historical_data_service import HistoricalDataService
from crypto_portfolio_tracker.infrastructure.services.manual_balance_source_service import ManualBalanceSourceService


class ServicesContainer(containers.DeclarativeContainer):
    configuration_properties = providers.Dependency()
    value_calculation_service = providers.Dependency()

    ccxt_remote_service = providers.Dependency()
    coingecko_remote_service = providers.Dependency()
    exchange_rate_remote_service = providers.Dependency()
    directus_remote_service = providers.Dependency()

    exchange_rate_service = providers.Singleton(
        ExchangeRateService,
        configuration_properties=configuration_properties,
        exchange_rate_remote_service=exchange_rate_remote_service,
    )

    # Balance sources
    _binance_balance_source_service = providers.Singleton(
        BinanceBalanceSourceService,
        configuration_properties=configuration_properties,
        ccxt_remote_service=ccxt_remote_service,
    )
    _demo_balance_source_service = providers.Singleton(
        DemoBalanceSourceService,
        configuration_properties=configuration_properties,
        ccxt_remote_service=ccxt_remote_service,
    )
    primary_balance_source_service = providers.Selector(
        configuration_properties.provided.primary_balance_source,
        binance=_binance_balance_source_service,
        demo=_demo_balance_source_service,
    )
    manual_balance_source_service = providers.Singleton(
        ManualBalanceSourceService,
        configuration_properties=configuration_properties,
        ccxt_remote_service=ccxt_remote_service,
    )
    coingecko_balance_source_service = providers.Singleton(
        CoinGeckoBalanceSourceService,
        configuration_properties=configuration_properties,
        coingecko_remote_service=coingecko_remote_service,
    )
    secondary_balance_source_services = providers.List(manual_balance_source_service, coingecko_balance_source_service)

    # Export
    _csv_export_writer_service = providers.Singleton(CsvExportWriterService)
    _json_export_writer_service = providers.Singleton(JsonExportWriterService)
    xlsx_export_writer_service = providers.Singleton(XlsxExportWriterService)
    export_writer_service = providers.Selector(
        configuration_properties.provided.export_format.value,
        csv=_csv_export_writer_service,
        json=_json_export_writer_service,
        xlsx=xlsx_export_writer_service,
    )
    export_service = providers.Singleton(
        ExportService,
        configuration_properties=configuration_properties,
        value_calculation_service=value_calculation_service,
        export_writer_service=export_writer_service,
    )

    historical_data_service = providers.Singleton(HistoricalDataService)
    csv_to_xlsx_conversion_service = providers.Singleton(
        CsvToXlsxConversionService,
        configuration_properties=configuration_properties,
        historical_data_service=historical_data_service,
        value_calculation_service=value_calculation_service,
        xlsx_export_writer_service=xlsx_export_writer_service,
    )

    # Telemetry sink is optional, None when it is disabled
    _directus_telemetry_service = providers.Singleton(
        DirectusTelemetryService, directus_remote_service=directus_remote_service
    )
    telemetry_service = providers.Selector(
        configuration_properties.provided.telemetry_sink,
        directus=_directus_telemetry_service,
        none=providers.Object(None),
    )
