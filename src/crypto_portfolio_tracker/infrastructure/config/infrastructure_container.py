from dependency_injector import containers, providers

from crypto_portfolio_tracker.infrastructure.adapters.config.adapters_container import AdaptersContainer
from crypto_portfolio_tracker.infrastructure.services.config.services_container import ServicesContainer
from crypto_portfolio_tracker.infrastructure.tasks.config.tasks_container import TasksContainer


class InfrastructureContainer(containers.DeclarativeContainer):
    configuration_properties = providers.Dependency()
    value_calculation_service = providers.Dependency()
    balance_display_service = providers.Dependency()

    adapters_container = providers.Container(AdaptersContainer, configuration_properties=configuration_properties)
    services_container = providers.Container(
        ServicesContainer,
        configuration_properties=configuration_properties,
        value_calculation_service=value_calculation_service,
        ccxt_remote_service=adapters_container.ccxt_remote_service,
        coingecko_remote_service=adapters_container.coingecko_remote_service,
        exchange_rate_remote_service=adapters_container.exchange_rate_remote_service,
        directus_remote_service=adapters_container.directus_remote_service,
    )
    tasks_container = providers.Container(
        TasksContainer,
        configuration_properties=configuration_properties,
        value_calculation_service=value_calculation_service,
        exchange_rate_service=services_container.exchange_rate_service,
        primary_balance_source_service=services_container.primary_balance_source_service,
        secondary_balance_source_services=services_container.secondary_balance_source_services,
        export_service=services_container.export_service,
        telemetry_service=services_container.telemetry_service,
        balance_display_service=balance_display_service,
    )
