from dependency_injector import containers, providers

from crypto_portfolio_tracker.interfaces.console.balance_display_service import BalanceDisplayService
from crypto_portfolio_tracker.interfaces.console.historical_data_formatter import HistoricalDataFormatter


class InterfacesContainer(containers.DeclarativeContainer):
    configuration_properties = providers.Dependency()
    value_calculation_service = providers.Dependency()

    balance_display_service = providers.Singleton(
        BalanceDisplayService,
        configuration_properties=configuration_properties,
        value_calculation_service=value_calculation_service,
    )
    historical_data_formatter = providers.Singleton(HistoricalDataFormatter)
