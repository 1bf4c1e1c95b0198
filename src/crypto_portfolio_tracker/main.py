import asyncio
import logging
import signal
import sys

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from crypto_portfolio_tracker.config.configuration_properties import ConfigurationProperties
from crypto_portfolio_tracker.config.dependencies import get_application_container
from crypto_portfolio_tracker.infrastructure.services.enums import TriggerSourceEnum
from crypto_portfolio_tracker.infrastructure.tasks.portfolio_tracking_task_service import (
    PortfolioTrackingTaskService,
)

logging.basicConfig(level=logging.INFO, stream=sys.stdout, format="%(asctime)s - %(levelname)s - %(message)s")

logger = logging.getLogger(__name__)


def configure_logging(configuration_properties: ConfigurationProperties) -> None:
    logging.getLogger().setLevel(configuration_properties.log_level.upper())


async def run_portfolio_tracker() -> None:
    """
    Runs the polling loop until SIGINT / SIGTERM is received. SIGUSR1 requests a refresh right away.
    """
    application_container = get_application_container()
    configuration_properties: ConfigurationProperties = application_container.configuration_properties()
    configure_logging(configuration_properties)
    tasks_container = application_container.infrastructure_container().tasks_container()
    scheduler: AsyncIOScheduler = tasks_container.scheduler()
    portfolio_tracking_task_service: PortfolioTrackingTaskService = tasks_container.portfolio_tracking_task_service()

    shutdown_requested = asyncio.Event()
    loop = asyncio.get_running_loop()
    handled_signals = [signal.SIGINT, signal.SIGTERM]
    for signum in handled_signals:
        loop.add_signal_handler(signum, shutdown_requested.set)
    if hasattr(signal, "SIGUSR1"):
        handled_signals.append(signal.SIGUSR1)
        loop.add_signal_handler(signal.SIGUSR1, portfolio_tracking_task_service.trigger, TriggerSourceEnum.MANUAL)

    scheduler.start()
    await portfolio_tracking_task_service.start()
    logger.info(
        f"Portfolio tracking started in {'demo' if configuration_properties.demo_mode else 'live'} mode, "
        + f"updating every {configuration_properties.update_interval_minutes} minute(s)"
    )
    try:
        await shutdown_requested.wait()
        logger.info("Shutdown requested, waiting for the in-flight polling cycle to finish...")
    finally:
        await portfolio_tracking_task_service.stop()
        scheduler.shutdown(wait=False)
        for signum in handled_signals:
            loop.remove_signal_handler(signum)
