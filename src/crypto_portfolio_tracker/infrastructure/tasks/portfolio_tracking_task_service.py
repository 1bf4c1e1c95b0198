import asyncio
import logging
from collections.abc import Awaitable, Callable
from contextlib import suppress
from decimal import Decimal
from typing import Any, override

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from crypto_portfolio_tracker.commons.retry_runner import RetryRunner
from crypto_portfolio_tracker.config.configuration_properties import ConfigurationProperties
from crypto_portfolio_tracker.infrastructure.services.base.abstract_balance_source_service import (
    AbstractBalanceSourceService,
)
from crypto_portfolio_tracker.infrastructure.services.base.abstract_telemetry_service import AbstractTelemetryService
from crypto_portfolio_tracker.infrastructure.services.enums import (
    CycleOutcomeEnum,
    PollingStateEnum,
    TriggerSourceEnum,
)
from crypto_portfolio_tracker.infrastructure.services.exchange_rate_service import ExchangeRateService
from crypto_portfolio_tracker.infrastructure.services.export.export_service import ExportService
from crypto_portfolio_tracker.infrastructure.services.value_calculation_service import ValueCalculationService
from crypto_portfolio_tracker.infrastructure.services.vo import CoinBalance
from crypto_portfolio_tracker.infrastructure.tasks.base import AbstractTaskService
from crypto_portfolio_tracker.interfaces.console.balance_display_service import BalanceDisplayService

logger = logging.getLogger(__name__)


class PortfolioTrackingTaskService(AbstractTaskService):
    """
    Polls every balance source, values the merged balances and dispatches them
    to the console, the export targets and the telemetry sink.

    Timer fires and manual triggers feed one single consumer through a queue of depth 1,
    so at most one cycle runs at a time. A trigger received while a cycle is running is dropped.
    The primary source is load-bearing (its failure aborts the cycle), secondary ones are best-effort.
    """

    def __init__(
        self,
        configuration_properties: ConfigurationProperties,
        scheduler: AsyncIOScheduler,
        retry_runner: RetryRunner,
        exchange_rate_service: ExchangeRateService,
        value_calculation_service: ValueCalculationService,
        primary_balance_source_service: AbstractBalanceSourceService,
        secondary_balance_source_services: list[AbstractBalanceSourceService],
        balance_display_service: BalanceDisplayService,
        export_service: ExportService,
        telemetry_service: AbstractTelemetryService | None = None,
    ) -> None:
        super().__init__(scheduler)
        self._configuration_properties = configuration_properties
        self._retry_runner = retry_runner
        self._exchange_rate_service = exchange_rate_service
        self._value_calculation_service = value_calculation_service
        self._primary_balance_source_service = primary_balance_source_service
        self._secondary_balance_source_services = secondary_balance_source_services
        self._balance_display_service = balance_display_service
        self._export_service = export_service
        self._telemetry_service = telemetry_service
        self._state = PollingStateEnum.IDLE
        self._trigger_queue: asyncio.Queue[TriggerSourceEnum] | None = None
        self._consumer_task: asyncio.Task | None = None
        self._stopping = False
        self._current_trigger_source: TriggerSourceEnum | None = None
        self._last_outcome: CycleOutcomeEnum | None = None

    @property
    def state(self) -> PollingStateEnum:
        return self._state

    @property
    def last_outcome(self) -> CycleOutcomeEnum | None:
        return self._last_outcome

    @override
    async def start(self) -> None:
        """
        Starts consuming triggers and schedules the timer, whose first fire is immediate
        """
        self._stopping = False
        self._state = PollingStateEnum.IDLE
        self._trigger_queue = asyncio.Queue(maxsize=1)
        self._consumer_task = asyncio.create_task(self._consume_triggers(), name="portfolio-tracking-consumer")
        await super().start()
        self.trigger(TriggerSourceEnum.TIMER)

    @override
    async def stop(self) -> None:
        """
        Stops the timer, drops pending triggers and waits for the in-flight cycle, if any, to finish
        """
        self._stopping = True
        await super().stop()
        if self._trigger_queue is not None:
            while not self._trigger_queue.empty():
                self._trigger_queue.get_nowait()
                self._trigger_queue.task_done()
            await self._trigger_queue.join()
        if self._consumer_task is not None:
            self._consumer_task.cancel()
            with suppress(asyncio.CancelledError):
                await self._consumer_task
            self._consumer_task = None
        self._state = PollingStateEnum.STOPPED
        logger.info("Portfolio tracking stopped")

    def trigger(self, source: TriggerSourceEnum = TriggerSourceEnum.MANUAL) -> bool:
        """Requests a new polling cycle.

        Args:
            source (TriggerSourceEnum, optional): who requested the cycle. Defaults to MANUAL.

        Returns:
            bool: False when the request was dropped (not started, stopping or a cycle already in progress)
        """
        if self._trigger_queue is None or self._stopping:
            logger.debug(f"Portfolio tracking is not running, {source.value} trigger dropped")
            return False
        if self._state != PollingStateEnum.IDLE:
            logger.info(f"A polling cycle is already {self._state.value}, {source.value} trigger dropped")
            return False
        try:
            self._trigger_queue.put_nowait(source)
        except asyncio.QueueFull:
            logger.info(f"A polling cycle is already pending, {source.value} trigger dropped")
            return False
        return True

    async def run_cycle(self, source: TriggerSourceEnum = TriggerSourceEnum.MANUAL) -> CycleOutcomeEnum:
        """
        Runs one polling cycle right away and returns its outcome, it never raises
        """
        self._current_trigger_source = source
        self._state = PollingStateEnum.FETCHING
        try:
            outcome = await self.run()
            self._last_outcome = outcome or CycleOutcomeEnum.FAILED
        finally:
            self._current_trigger_source = None
            self._state = PollingStateEnum.IDLE
        return self._last_outcome

    @override
    async def _run(self) -> CycleOutcomeEnum:
        source = self._current_trigger_source or TriggerSourceEnum.MANUAL
        logger.info(f"Polling cycle triggered by {source.value}")
        fiat_rate = await self._exchange_rate_service.current_rate()
        balances = await self._fetch_all_balances()
        if balances is None:
            return CycleOutcomeEnum.ABORTED
        if not balances:
            logger.warning("No balances fetched from any source, polling cycle skipped")
            return CycleOutcomeEnum.SKIPPED_EMPTY

        self._state = PollingStateEnum.AGGREGATING
        reference_unit_price = self._find_reference_unit_price(balances)

        self._state = PollingStateEnum.DISPATCHING
        self._balance_display_service.render(balances, fiat_rate, reference_unit_price)
        await asyncio.gather(
            self._dispatch_export(balances, fiat_rate, reference_unit_price),
            self._dispatch_telemetry(balances, fiat_rate, reference_unit_price),
        )
        logger.info(f"Polling cycle completed with {len(balances)} balances")
        return CycleOutcomeEnum.COMPLETED

    @override
    def _get_job_trigger(self) -> IntervalTrigger:
        return IntervalTrigger(minutes=self._configuration_properties.update_interval_minutes)

    @override
    def _get_job_func(self) -> Callable[[], Awaitable[Any]]:
        return self._on_timer_fired

    async def _on_timer_fired(self) -> None:
        self.trigger(TriggerSourceEnum.TIMER)

    async def _consume_triggers(self) -> None:
        while True:
            source = await self._trigger_queue.get()
            try:
                await self.run_cycle(source)
            finally:
                self._trigger_queue.task_done()

    async def _fetch_all_balances(self) -> list[CoinBalance] | None:
        """
        Fetches every source concurrently. Returns None when the primary source gave up,
        otherwise the primary balances followed by those of every secondary source that succeeded.
        """
        primary_result, *secondary_results = await asyncio.gather(
            self._fetch_with_retries(self._primary_balance_source_service),
            *[self._fetch_with_retries(source) for source in self._secondary_balance_source_services],
            return_exceptions=True,
        )
        if isinstance(primary_result, BaseException):
            if not isinstance(primary_result, Exception):
                raise primary_result
            logger.error(
                f"Primary source {self._primary_balance_source_service.name} failed, polling cycle aborted: "
                + f"{str(primary_result)} (caused by {primary_result.__cause__!r})"
            )
            return None
        ret = list(primary_result)
        for secondary_source, secondary_result in zip(
            self._secondary_balance_source_services, secondary_results, strict=True
        ):
            if isinstance(secondary_result, BaseException):
                if not isinstance(secondary_result, Exception):
                    raise secondary_result
                logger.warning(
                    f"Secondary source {secondary_source.name} failed, its balances are omitted from this cycle: "
                    + f"{str(secondary_result)} (caused by {secondary_result.__cause__!r})"
                )
            else:
                ret.extend(secondary_result)
        return ret

    async def _fetch_with_retries(self, source: AbstractBalanceSourceService) -> list[CoinBalance]:
        return await self._retry_runner.run(source.fetch_balances, operation_name=f"Fetch {source.name} balances")

    def _find_reference_unit_price(self, balances: list[CoinBalance]) -> Decimal:
        reference_asset = self._configuration_properties.reference_asset.upper()
        reference_balance = next((balance for balance in balances if balance.asset.upper() == reference_asset), None)
        if reference_balance is None:
            logger.warning(f"{reference_asset} is not among the fetched balances, reference unit values will be 0")
            return Decimal(0)
        return reference_balance.price

    async def _dispatch_export(
        self, balances: list[CoinBalance], fiat_rate: Decimal, reference_unit_price: Decimal
    ) -> None:
        try:
            await self._export_service.export_snapshot(balances, fiat_rate, reference_unit_price)
        except Exception as e:
            logger.error(f"Export failed, snapshot was not fully exported: {str(e)}", exc_info=True)

    async def _dispatch_telemetry(
        self, balances: list[CoinBalance], fiat_rate: Decimal, reference_unit_price: Decimal
    ) -> None:
        """
        Publishes every valuation and the total concurrently, a failed publish does not prevent the others
        """
        if self._telemetry_service is None:
            return
        try:
            snapshot = self._value_calculation_service.build_snapshot(
                balances, fiat_rate=fiat_rate, reference_unit_price=reference_unit_price
            )
        except Exception as e:
            logger.error(f"Telemetry publishing failed: {str(e)}", exc_info=True)
            return
        descriptions = [
            f"{valuation.coin_balance.asset} ({valuation.coin_balance.source}) coin value"
            for valuation in snapshot.valuations
        ] + ["total balance"]
        results = await asyncio.gather(
            *[self._telemetry_service.publish(valuation) for valuation in snapshot.valuations],
            self._telemetry_service.publish_total(snapshot.total),
            return_exceptions=True,
        )
        for description, result in zip(descriptions, results, strict=True):
            if isinstance(result, BaseException):
                if not isinstance(result, Exception):
                    raise result
                logger.error(f"Telemetry publishing of {description} failed: {str(result)}")
