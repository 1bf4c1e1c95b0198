from dependency_injector import containers, providers

from crypto_portfolio_tracker.config.configuration_properties import ConfigurationProperties
from crypto_portfolio_tracker.infrastructure.config.infrastructure_container import InfrastructureContainer
from crypto_portfolio_tracker.infrastructure.services.value_calculation_service import ValueCalculationService
from crypto_portfolio_tracker.interfaces.config.interfaces_container import InterfacesContainer


class ApplicationContainer(containers.DeclarativeContainer):
    configuration_properties = providers.Singleton(ConfigurationProperties)

    # Stateless, shared by the console and the infrastructure layers
    value_calculation_service = providers.Singleton(ValueCalculationService)

    interfaces_container = providers.Container(
        InterfacesContainer,
        configuration_properties=configuration_properties,
        value_calculation_service=value_calculation_service,
    )
    infrastructure_container = providers.Container(
        InfrastructureContainer,
        configuration_properties=configuration_properties,
        value_calculation_service=value_calculation_service,
        balance_display_service=interfaces_container.balance_display_service,
    )
