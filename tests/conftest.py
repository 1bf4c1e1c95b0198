from collections.abc import Generator
from os import environ
from pathlib import Path
from uuid import uuid4

import pytest
from faker import Faker
from pytest_httpserver import HTTPServer

from crypto_portfolio_tracker.config.configuration_properties import ConfigurationProperties
from crypto_portfolio_tracker.config.dependencies import reset_application_container


@pytest.fixture(scope="session", autouse=True)
def faker() -> Faker:
    return Faker()


@pytest.fixture(scope="session", autouse=True)
def defaults_env() -> Generator[None]:
    # Tracking configuration
    environ["DEMO_MODE"] = "false"
    environ["BASE_CURRENCY"] = "USDT"
    environ["REFERENCE_ASSET"] = "BTC"
    environ["EXCHANGE_RATE_CURRENCY"] = "NOK"
    # Export and telemetry are disabled unless a test enables them
    environ["EXPORT_ENABLED"] = "false"
    environ["DIRECTUS_ENABLED"] = "false"
    yield


@pytest.fixture(scope="session")
def httpserver_test_env() -> Generator[HTTPServer]:
    with HTTPServer() as httpserver:
        environ["COINGECKO_API_BASE_URL"] = httpserver.url_for(suffix="/coingecko-api")
        environ["EXCHANGE_RATE_API_URL"] = httpserver.url_for(suffix="/exchange-rate-api/v6/latest/USD")
        environ["DIRECTUS_HOST"] = httpserver.url_for(suffix="/directus")
        environ["DIRECTUS_API_KEY"] = str(uuid4())
        yield httpserver
        for env_name in ["COINGECKO_API_BASE_URL", "EXCHANGE_RATE_API_URL", "DIRECTUS_HOST", "DIRECTUS_API_KEY"]:
            environ.pop(env_name, None)


@pytest.fixture
def integration_test_env(httpserver_test_env: HTTPServer) -> Generator[HTTPServer]:
    # Every integration test builds its own application container from the current environment
    reset_application_container()
    httpserver_test_env.clear()
    yield httpserver_test_env
    httpserver_test_env.clear()
    reset_application_container()


@pytest.fixture
def export_output_path(tmp_path: Path) -> Path:
    return tmp_path / "exports"


@pytest.fixture
def configuration_properties(export_output_path: Path) -> ConfigurationProperties:
    return ConfigurationProperties(
        export_enabled=True, export_output_path=str(export_output_path), fetch_initial_delay_seconds=0
    )
