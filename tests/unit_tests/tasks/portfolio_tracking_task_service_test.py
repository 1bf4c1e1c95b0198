import asyncio
from decimal import Decimal
from typing import override
from unittest.mock import AsyncMock, MagicMock

import pytest
from apscheduler.schedulers.asyncio import AsyncIOScheduler

from crypto_portfolio_tracker.commons.exceptions import ExportError
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
from crypto_portfolio_tracker.infrastructure.services.export import ExportService
from crypto_portfolio_tracker.infrastructure.services.value_calculation_service import ValueCalculationService
from crypto_portfolio_tracker.infrastructure.services.vo import CoinBalance
from crypto_portfolio_tracker.infrastructure.tasks.portfolio_tracking_task_service import (
    PortfolioTrackingTaskService,
)
from crypto_portfolio_tracker.interfaces.console.balance_display_service import BalanceDisplayService
from tests.helpers.object_mothers import CoinBalanceObjectMother

FIAT_RATE = Decimal("10.5")


class _FakeBalanceSourceService(AbstractBalanceSourceService):
    def __init__(
        self,
        name: str,
        balances: list[CoinBalance] | None = None,
        error: Exception | None = None,
        release_event: asyncio.Event | None = None,
    ) -> None:
        self._name = name
        self._balances = balances or []
        self._error = error
        self._release_event = release_event
        self.fetch_count = 0

    @property
    @override
    def name(self) -> str:
        return self._name

    @override
    async def fetch_balances(self) -> list[CoinBalance]:
        self.fetch_count += 1
        if self._release_event is not None:
            await self._release_event.wait()
        if self._error is not None:
            raise self._error
        return self._balances


def _create_task_service(
    *,
    primary_balance_source_service: AbstractBalanceSourceService,
    secondary_balance_source_services: list[AbstractBalanceSourceService] | None = None,
    scheduler: AsyncIOScheduler | None = None,
    with_telemetry: bool = True,
) -> tuple[PortfolioTrackingTaskService, MagicMock, MagicMock, MagicMock | None]:
    exchange_rate_service = MagicMock(spec=ExchangeRateService)
    exchange_rate_service.current_rate = AsyncMock(return_value=FIAT_RATE)
    balance_display_service = MagicMock(spec=BalanceDisplayService)
    export_service = MagicMock(spec=ExportService)
    export_service.export_snapshot = AsyncMock(return_value=None)
    telemetry_service = None
    if with_telemetry:
        telemetry_service = MagicMock(spec=AbstractTelemetryService)
        telemetry_service.publish = AsyncMock()
        telemetry_service.publish_total = AsyncMock()
    task_service = PortfolioTrackingTaskService(
        configuration_properties=ConfigurationProperties(reference_asset="BTC", update_interval_minutes=60),
        scheduler=scheduler or AsyncIOScheduler(),
        retry_runner=RetryRunner(max_attempts=3, initial_delay_seconds=0),
        exchange_rate_service=exchange_rate_service,
        value_calculation_service=ValueCalculationService(),
        primary_balance_source_service=primary_balance_source_service,
        secondary_balance_source_services=secondary_balance_source_services or [],
        balance_display_service=balance_display_service,
        export_service=export_service,
        telemetry_service=telemetry_service,
    )
    return task_service, balance_display_service, export_service, telemetry_service


@pytest.mark.asyncio
async def should_abort_cycle_without_dispatching_when_primary_source_exhausts_its_retries() -> None:
    primary_balance_source_service = _FakeBalanceSourceService("Binance", error=ValueError("Binance is down"))
    secondary_balance_source_service = _FakeBalanceSourceService(
        "Manual", balances=[CoinBalanceObjectMother.create(source="Manual")]
    )
    task_service, balance_display_service, export_service, telemetry_service = _create_task_service(
        primary_balance_source_service=primary_balance_source_service,
        secondary_balance_source_services=[secondary_balance_source_service],
    )

    outcome = await task_service.run_cycle(TriggerSourceEnum.MANUAL)

    assert outcome == CycleOutcomeEnum.ABORTED
    assert primary_balance_source_service.fetch_count == 3
    balance_display_service.render.assert_not_called()
    export_service.export_snapshot.assert_not_awaited()
    telemetry_service.publish.assert_not_awaited()
    telemetry_service.publish_total.assert_not_awaited()
    assert task_service.state == PollingStateEnum.IDLE
    assert task_service.last_outcome == CycleOutcomeEnum.ABORTED


@pytest.mark.asyncio
async def should_omit_failed_secondary_source_and_dispatch_the_rest_exactly_once() -> None:
    btc_balance = CoinBalanceObjectMother.create(asset="BTC", price="60000", source="Binance")
    eth_balance = CoinBalanceObjectMother.create(asset="ETH", price="3000", source="Binance")
    tia_balance = CoinBalanceObjectMother.create(asset="TIA", price="8", source="CoinGecko")
    failing_secondary_balance_source_service = _FakeBalanceSourceService("Manual", error=RuntimeError("boom"))
    task_service, balance_display_service, export_service, telemetry_service = _create_task_service(
        primary_balance_source_service=_FakeBalanceSourceService("Binance", balances=[btc_balance, eth_balance]),
        secondary_balance_source_services=[
            failing_secondary_balance_source_service,
            _FakeBalanceSourceService("CoinGecko", balances=[tia_balance]),
        ],
    )

    outcome = await task_service.run_cycle()

    assert outcome == CycleOutcomeEnum.COMPLETED
    assert failing_secondary_balance_source_service.fetch_count == 3
    balance_display_service.render.assert_called_once_with(
        [btc_balance, eth_balance, tia_balance], FIAT_RATE, Decimal("60000")
    )
    export_service.export_snapshot.assert_awaited_once_with(
        [btc_balance, eth_balance, tia_balance], FIAT_RATE, Decimal("60000")
    )
    assert telemetry_service.publish.await_count == 3
    telemetry_service.publish_total.assert_awaited_once()


@pytest.mark.asyncio
async def should_skip_cycle_when_every_source_is_empty() -> None:
    task_service, balance_display_service, export_service, _ = _create_task_service(
        primary_balance_source_service=_FakeBalanceSourceService("Binance"),
        secondary_balance_source_services=[_FakeBalanceSourceService("Manual")],
    )

    outcome = await task_service.run_cycle()

    assert outcome == CycleOutcomeEnum.SKIPPED_EMPTY
    balance_display_service.render.assert_not_called()
    export_service.export_snapshot.assert_not_awaited()


@pytest.mark.asyncio
async def should_use_zero_reference_price_when_reference_asset_is_not_held() -> None:
    eth_balance = CoinBalanceObjectMother.create(asset="ETH", source="Binance")
    task_service, balance_display_service, _, _ = _create_task_service(
        primary_balance_source_service=_FakeBalanceSourceService("Binance", balances=[eth_balance]),
        with_telemetry=False,
    )

    outcome = await task_service.run_cycle()

    assert outcome == CycleOutcomeEnum.COMPLETED
    balance_display_service.render.assert_called_once_with([eth_balance], FIAT_RATE, Decimal(0))


@pytest.mark.asyncio
async def should_complete_cycle_even_when_export_and_telemetry_fail() -> None:
    task_service, balance_display_service, export_service, telemetry_service = _create_task_service(
        primary_balance_source_service=_FakeBalanceSourceService(
            "Binance", balances=[CoinBalanceObjectMother.create(asset="BTC")]
        ),
    )
    export_service.export_snapshot.side_effect = ExportError("exports/values.csv")
    telemetry_service.publish.side_effect = ValueError("Directus API error")

    outcome = await task_service.run_cycle()

    assert outcome == CycleOutcomeEnum.COMPLETED
    balance_display_service.render.assert_called_once()
    export_service.export_snapshot.assert_awaited_once()
    telemetry_service.publish.assert_awaited_once()
    telemetry_service.publish_total.assert_awaited_once()


@pytest.mark.asyncio
async def should_publish_every_valuation_and_total_even_when_one_publish_fails() -> None:
    btc_balance = CoinBalanceObjectMother.create(asset="BTC", price="60000", source="Binance")
    eth_balance = CoinBalanceObjectMother.create(asset="ETH", price="3000", source="Binance")
    task_service, _, _, telemetry_service = _create_task_service(
        primary_balance_source_service=_FakeBalanceSourceService("Binance", balances=[btc_balance, eth_balance]),
    )
    telemetry_service.publish.side_effect = [RuntimeError("Directus API error"), None]

    outcome = await task_service.run_cycle()

    assert outcome == CycleOutcomeEnum.COMPLETED
    assert telemetry_service.publish.await_count == 2
    published_assets = {call.args[0].coin_balance.asset for call in telemetry_service.publish.await_args_list}
    assert published_assets == {"BTC", "ETH"}
    telemetry_service.publish_total.assert_awaited_once()


@pytest.mark.asyncio
async def should_report_failed_cycle_and_return_to_idle_on_unexpected_error() -> None:
    task_service, balance_display_service, export_service, _ = _create_task_service(
        primary_balance_source_service=_FakeBalanceSourceService(
            "Binance", balances=[CoinBalanceObjectMother.create(asset="BTC")]
        ),
    )
    balance_display_service.render.side_effect = RuntimeError("terminal is gone")

    outcome = await task_service.run_cycle()

    assert outcome == CycleOutcomeEnum.FAILED
    assert task_service.state == PollingStateEnum.IDLE
    export_service.export_snapshot.assert_not_awaited()


@pytest.mark.asyncio
async def should_drop_triggers_when_not_started() -> None:
    task_service, *_ = _create_task_service(primary_balance_source_service=_FakeBalanceSourceService("Binance"))

    assert task_service.trigger(TriggerSourceEnum.MANUAL) is False


@pytest.mark.asyncio
async def should_run_single_cycle_at_a_time_and_drop_triggers_while_busy() -> None:
    release_event = asyncio.Event()
    primary_balance_source_service = _FakeBalanceSourceService(
        "Binance", balances=[CoinBalanceObjectMother.create(asset="BTC")], release_event=release_event
    )
    scheduler = AsyncIOScheduler()
    scheduler.start()
    task_service, balance_display_service, _, _ = _create_task_service(
        primary_balance_source_service=primary_balance_source_service, scheduler=scheduler
    )
    try:
        await task_service.start()
        assert scheduler.get_job(PortfolioTrackingTaskService.__name__) is not None
        await _wait_until(lambda: task_service.state != PollingStateEnum.IDLE)

        assert task_service.trigger(TriggerSourceEnum.MANUAL) is False
        assert task_service.trigger(TriggerSourceEnum.TIMER) is False

        release_event.set()
        await _wait_until(lambda: task_service.last_outcome is not None)
        await _wait_until(lambda: task_service.state == PollingStateEnum.IDLE)
        assert task_service.last_outcome == CycleOutcomeEnum.COMPLETED
        assert primary_balance_source_service.fetch_count == 1
        balance_display_service.render.assert_called_once()
    finally:
        await task_service.stop()
        scheduler.shutdown(wait=False)

    assert task_service.state == PollingStateEnum.STOPPED
    assert scheduler.get_job(PortfolioTrackingTaskService.__name__) is None
    assert task_service.trigger(TriggerSourceEnum.MANUAL) is False


@pytest.mark.asyncio
async def should_run_manual_trigger_once_idle_again() -> None:
    primary_balance_source_service = _FakeBalanceSourceService(
        "Binance", balances=[CoinBalanceObjectMother.create(asset="BTC")]
    )
    scheduler = AsyncIOScheduler()
    scheduler.start()
    task_service, balance_display_service, _, _ = _create_task_service(
        primary_balance_source_service=primary_balance_source_service, scheduler=scheduler
    )
    try:
        await task_service.start()
        await _wait_until(lambda: primary_balance_source_service.fetch_count == 1)
        await _wait_until(lambda: task_service.state == PollingStateEnum.IDLE and task_service.last_outcome)

        assert task_service.trigger(TriggerSourceEnum.MANUAL) is True
        await _wait_until(lambda: balance_display_service.render.call_count == 2)
    finally:
        await task_service.stop()
        scheduler.shutdown(wait=False)

    assert primary_balance_source_service.fetch_count == 2


@pytest.mark.asyncio
async def should_let_in_flight_cycle_finish_before_stopping() -> None:
    release_event = asyncio.Event()
    primary_balance_source_service = _FakeBalanceSourceService(
        "Binance", balances=[CoinBalanceObjectMother.create(asset="BTC")], release_event=release_event
    )
    scheduler = AsyncIOScheduler()
    scheduler.start()
    task_service, balance_display_service, export_service, _ = _create_task_service(
        primary_balance_source_service=primary_balance_source_service, scheduler=scheduler
    )
    try:
        await task_service.start()
        await _wait_until(lambda: task_service.state == PollingStateEnum.FETCHING)

        stop_task = asyncio.create_task(task_service.stop())
        await asyncio.sleep(0.05)
        assert not stop_task.done()
        assert task_service.trigger(TriggerSourceEnum.MANUAL) is False

        release_event.set()
        async with asyncio.timeout(5.0):
            await stop_task
    finally:
        scheduler.shutdown(wait=False)

    assert task_service.last_outcome == CycleOutcomeEnum.COMPLETED
    balance_display_service.render.assert_called_once()
    export_service.export_snapshot.assert_awaited_once()
    assert primary_balance_source_service.fetch_count == 1
    assert task_service.state == PollingStateEnum.STOPPED


async def _wait_until(predicate, *, timeout: float = 5.0) -> None:
    async with asyncio.timeout(timeout):
        while not predicate():
            await asyncio.sleep(0.01)
