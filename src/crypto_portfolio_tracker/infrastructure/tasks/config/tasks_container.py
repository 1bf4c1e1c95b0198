from apscheduler.schedulers.asyncio import AsyncIOScheduler
from dependency_injector import containers, providers

from crypto_portfolio_tracker.commons.retry_runner import RetryRunner
from crypto_portfolio_tracker.infrastructure.tasks.portfolio_tracking_task_service import (
    PortfolioTrackingTaskService,
)


class TasksContainer(containers.DeclarativeContainer):
    configuration_properties = providers.Dependency()
    value_calculation_service = providers.Dependency()

    exchange_rate_service = providers.Dependency()
    primary_balance_source_service = providers.Dependency()
    secondary_balance_source_services = providers.Dependency()
    export_service = providers.Dependency()
    telemetry_service = providers.Dependency()
    balance_display_service = providers.Dependency()

    scheduler = providers.Singleton(AsyncIOScheduler)

    retry_runner = providers.Singleton(
        RetryRunner,
        max_attempts=configuration_properties.provided.fetch_max_attempts,
        initial_delay_seconds=configuration_properties.provided.fetch_initial_delay_seconds,
    )

    portfolio_tracking_task_service = providers.Singleton(
        PortfolioTrackingTaskService,
        configuration_properties=configuration_properties,
        scheduler=scheduler,
        retry_runner=retry_runner,
        exchange_rate_service=exchange_rate_service,
        value_calculation_service=value_calculation_service,
        primary_balance_source_service=primary_balance_source_service,
        secondary_balance_source_services=secondary_balance_source_services,
        balance_display_service=balance_display_service,
        export_service=export_service,
        telemetry_service=telemetry_service,
    )
