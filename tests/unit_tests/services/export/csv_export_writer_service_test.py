from decimal import Decimal
from pathlib import Path
from unittest.mock import patch

import pytest

from crypto_portfolio_tracker.commons.constants import TOTALS_COLUMNS, VALUES_COLUMNS
from crypto_portfolio_tracker.commons.exceptions import ExportError
from crypto_portfolio_tracker.infrastructure.services.export import CsvExportWriterService
from tests.helpers.constants import FIXED_TIMESTAMP
from tests.helpers.object_mothers import CoinBalanceObjectMother, PortfolioSnapshotObjectMother


def _create_snapshot():
    return PortfolioSnapshotObjectMother.create(
        balances=[
            CoinBalanceObjectMother.create(
                asset="BTC", balance="0.5", price="60000", source="Binance", timestamp=FIXED_TIMESTAMP
            ),
            CoinBalanceObjectMother.create(
                asset="ADA", balance="1000", price="0.5", source="Manual", timestamp=FIXED_TIMESTAMP
            ),
        ],
        fiat_rate=Decimal("10.5"),
        reference_unit_price=Decimal("60000"),
    )


@pytest.mark.asyncio
async def should_write_header_once_and_fixed_point_rows(tmp_path: Path) -> None:
    csv_export_writer_service = CsvExportWriterService()
    target_path = tmp_path / "values.csv"

    await csv_export_writer_service.append_values(target_path, [_create_snapshot()])
    await csv_export_writer_service.append_values(target_path, [_create_snapshot()])

    lines = target_path.read_text(encoding="utf-8").splitlines()
    assert lines[0] == ",".join(VALUES_COLUMNS)
    assert len(lines) == 5
    assert lines.count(lines[0]) == 1
    assert lines[1] == "2024-05-01 10:00:00,BTC,0.500,60000.000,30000.00,315000.00,0.50000000,Binance"
    assert lines[2] == "2024-05-01 10:00:00,ADA,1000.000,0.500,500.00,5250.00,0.00833333,Manual"
    assert lines[3:] == lines[1:3]


@pytest.mark.asyncio
async def should_append_totals_row_per_snapshot(tmp_path: Path) -> None:
    csv_export_writer_service = CsvExportWriterService()
    target_path = tmp_path / "totals.csv"

    await csv_export_writer_service.append_totals(target_path, [_create_snapshot(), _create_snapshot()])

    lines = target_path.read_text(encoding="utf-8").splitlines()
    assert lines == [
        ",".join(TOTALS_COLUMNS),
        "2024-05-01 10:00:00,30500.00,320250.00,0.50833333",
        "2024-05-01 10:00:00,30500.00,320250.00,0.50833333",
    ]


@pytest.mark.asyncio
async def should_preserve_existing_content_byte_for_byte(tmp_path: Path) -> None:
    csv_export_writer_service = CsvExportWriterService()
    target_path = tmp_path / "values.csv"
    await csv_export_writer_service.append_values(target_path, [_create_snapshot()])
    previous_content = target_path.read_bytes()

    await csv_export_writer_service.append_values(target_path, [_create_snapshot()])

    current_content = target_path.read_bytes()
    assert current_content.startswith(previous_content)
    assert len(current_content) > len(previous_content)


@pytest.mark.asyncio
async def should_write_header_on_existing_but_empty_file(tmp_path: Path) -> None:
    csv_export_writer_service = CsvExportWriterService()
    target_path = tmp_path / "totals.csv"
    target_path.touch()

    await csv_export_writer_service.append_totals(target_path, [_create_snapshot()])

    assert target_path.read_text(encoding="utf-8").splitlines()[0] == ",".join(TOTALS_COLUMNS)


@pytest.mark.asyncio
async def should_raise_export_error_when_target_cannot_be_written(tmp_path: Path) -> None:
    csv_export_writer_service = CsvExportWriterService()
    target_path = tmp_path / "values.csv"

    with patch("pandas.DataFrame.to_csv", side_effect=OSError("disk full")):
        with pytest.raises(ExportError) as exc_info:
            await csv_export_writer_service.append_values(target_path, [_create_snapshot()])

    assert exc_info.value.target_path == str(target_path)
    assert isinstance(exc_info.value.__cause__, OSError)
