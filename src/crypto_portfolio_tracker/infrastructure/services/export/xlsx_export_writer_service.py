import logging
from collections.abc import Callable
from datetime import datetime
from pathlib import Path
from typing import Any, override

import pandas as pd
from openpyxl import Workbook, load_workbook
from openpyxl.chart import LineChart, Reference, Series
from openpyxl.chart.data_source import AxDataSource, NumDataSource, NumRef
from openpyxl.styles import Font, PatternFill
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.table import Table, TableStyleInfo
from openpyxl.worksheet.worksheet import Worksheet

from crypto_portfolio_tracker.commons.constants import (
    TOTALS_COLUMNS,
    VALUES_COLUMNS,
    XLSX_TIMESTAMP_NUMBER_FORMAT,
    XLSX_TOTALS_CHART_TITLE,
    XLSX_TOTALS_SHEET_NAME,
    XLSX_TOTALS_TABLE_NAME,
    XLSX_VALUES_CHART_DATA_SHEET_NAME,
    XLSX_VALUES_CHART_TITLE,
    XLSX_VALUES_SHEET_NAME,
    XLSX_VALUES_TABLE_NAME,
)
from crypto_portfolio_tracker.commons.utils import as_utc
from crypto_portfolio_tracker.infrastructure.services.enums import ExportFormatEnum
from crypto_portfolio_tracker.infrastructure.services.export.abstract_export_writer_service import (
    AbstractExportWriterService,
)
from crypto_portfolio_tracker.infrastructure.services.vo import PortfolioSnapshot

logger = logging.getLogger(__name__)

_QUANTITY_NUMBER_FORMAT = "0.000"
_VALUE_NUMBER_FORMAT = "0.00"
_REFERENCE_UNIT_NUMBER_FORMAT = "0.00000000"
_VALUES_NUMBER_FORMATS = [
    XLSX_TIMESTAMP_NUMBER_FORMAT,
    None,
    _QUANTITY_NUMBER_FORMAT,
    _QUANTITY_NUMBER_FORMAT,
    _VALUE_NUMBER_FORMAT,
    _VALUE_NUMBER_FORMAT,
    _REFERENCE_UNIT_NUMBER_FORMAT,
    None,
]
_TOTALS_NUMBER_FORMATS = [
    XLSX_TIMESTAMP_NUMBER_FORMAT,
    _VALUE_NUMBER_FORMAT,
    _VALUE_NUMBER_FORMAT,
    _REFERENCE_UNIT_NUMBER_FORMAT,
]
_HEADER_FONT = Font(bold=True, color="FFFFFF")
_HEADER_FILL = PatternFill(fill_type="solid", fgColor="305496")
_TABLE_STYLE_NAME = "TableStyleMedium2"


class XlsxExportWriterService(AbstractExportWriterService):
    """
    Spreadsheet targets, one workbook per target holding a structured table plus a line chart.

    The workbook is fully rebuilt in memory and saved into a scratch file that is swapped into place,
    so a half-written workbook is never left behind at the target path.
    """

    @property
    @override
    def export_format(self) -> ExportFormatEnum:
        return ExportFormatEnum.XLSX

    @override
    def _append_values(self, target_path: Path, snapshots: list[PortfolioSnapshot]) -> None:
        rows = [
            [
                self._to_excel_datetime(valuation.coin_balance.timestamp),
                valuation.coin_balance.asset,
                float(valuation.coin_balance.balance),
                float(valuation.coin_balance.price),
                float(valuation.coin_balance.value),
                float(valuation.fiat_value),
                float(valuation.reference_unit_value),
                valuation.coin_balance.source,
            ]
            for snapshot in snapshots
            for valuation in snapshot.valuations
        ]
        self._update_workbook(target_path, lambda workbook: self._update_values_workbook(workbook, rows))
        logger.info(f"Appended {len(rows)} row(s) to {target_path}")

    @override
    def _append_totals(self, target_path: Path, snapshots: list[PortfolioSnapshot]) -> None:
        rows = [
            [
                self._to_excel_datetime(snapshot.total.timestamp),
                float(snapshot.total.total_value),
                float(snapshot.total.total_fiat_value),
                float(snapshot.total.total_reference_unit_value),
            ]
            for snapshot in snapshots
        ]
        self._update_workbook(target_path, lambda workbook: self._update_totals_workbook(workbook, rows))
        logger.info(f"Appended {len(rows)} row(s) to {target_path}")

    def _update_workbook(self, target_path: Path, update_fn: Callable[[Workbook], None]) -> None:
        if target_path.exists():
            workbook = load_workbook(target_path)
        else:
            workbook = Workbook()
            workbook.remove(workbook.active)
        update_fn(workbook)
        self._replace_atomically(target_path, workbook.save)

    def _update_values_workbook(self, workbook: Workbook, rows: list[list[Any]]) -> None:
        worksheet = self._get_or_create_worksheet(workbook, XLSX_VALUES_SHEET_NAME)
        last_row = self._append_rows(worksheet, VALUES_COLUMNS, _VALUES_NUMBER_FORMATS, rows)
        self._ensure_table(worksheet, XLSX_VALUES_TABLE_NAME, len(VALUES_COLUMNS), last_row)
        chart_data_worksheet, assets, data_last_row = self._rebuild_values_chart_data(workbook, worksheet)
        categories = Reference(chart_data_worksheet, min_col=1, min_row=2, max_row=data_last_row)
        series_refs = {
            asset: Reference(chart_data_worksheet, min_col=column_idx, min_row=2, max_row=data_last_row)
            for column_idx, asset in enumerate(assets, start=2)
        }
        self._upsert_chart(
            worksheet,
            title=XLSX_VALUES_CHART_TITLE,
            anchor_column=len(VALUES_COLUMNS) + 2,
            categories=categories,
            series_refs=series_refs,
        )
        workbook.active = workbook.sheetnames.index(XLSX_VALUES_SHEET_NAME)

    def _update_totals_workbook(self, workbook: Workbook, rows: list[list[Any]]) -> None:
        worksheet = self._get_or_create_worksheet(workbook, XLSX_TOTALS_SHEET_NAME)
        last_row = self._append_rows(worksheet, TOTALS_COLUMNS, _TOTALS_NUMBER_FORMATS, rows)
        self._ensure_table(worksheet, XLSX_TOTALS_TABLE_NAME, len(TOTALS_COLUMNS), last_row)
        total_value_column_idx = TOTALS_COLUMNS.index("TotalValue") + 1
        self._upsert_chart(
            worksheet,
            title=XLSX_TOTALS_CHART_TITLE,
            anchor_column=len(TOTALS_COLUMNS) + 2,
            categories=Reference(worksheet, min_col=1, min_row=2, max_row=last_row),
            series_refs={
                "TotalValue": Reference(worksheet, min_col=total_value_column_idx, min_row=2, max_row=last_row)
            },
        )
        workbook.active = workbook.sheetnames.index(XLSX_TOTALS_SHEET_NAME)

    def _get_or_create_worksheet(self, workbook: Workbook, sheet_name: str) -> Worksheet:
        if sheet_name in workbook.sheetnames:
            ret = workbook[sheet_name]
        else:
            ret = workbook.create_sheet(sheet_name)
        return ret

    def _append_rows(
        self, worksheet: Worksheet, headers: list[str], number_formats: list[str | None], rows: list[list[Any]]
    ) -> int:
        """
        Writes the styled headers only on an empty sheet, then the rows at the first unused row.
        Returns the last used row number.
        """
        is_empty = worksheet.max_row == 1 and worksheet.cell(row=1, column=1).value is None
        if is_empty:
            for column_idx, header in enumerate(headers, start=1):
                cell = worksheet.cell(row=1, column=column_idx, value=header)
                cell.font = _HEADER_FONT
                cell.fill = _HEADER_FILL
                worksheet.column_dimensions[get_column_letter(column_idx)].width = max(len(header) + 4, 14)
            next_row = 2
        else:
            next_row = worksheet.max_row + 1
        for row in rows:
            for column_idx, (value, number_format) in enumerate(zip(row, number_formats, strict=True), start=1):
                cell = worksheet.cell(row=next_row, column=column_idx, value=value)
                if number_format:
                    cell.number_format = number_format
            next_row += 1
        return next_row - 1

    def _ensure_table(self, worksheet: Worksheet, table_name: str, column_count: int, last_row: int) -> None:
        ref = f"A1:{get_column_letter(column_count)}{max(last_row, 2)}"
        if table_name in worksheet.tables:
            table = worksheet.tables[table_name]
            table.ref = ref
            if table.autoFilter is not None:
                table.autoFilter.ref = ref
        else:
            table = Table(displayName=table_name, ref=ref)
            table.tableStyleInfo = TableStyleInfo(name=_TABLE_STYLE_NAME, showRowStripes=True)
            worksheet.add_table(table)

    def _rebuild_values_chart_data(
        self, workbook: Workbook, values_worksheet: Worksheet
    ) -> tuple[Worksheet, list[str], int]:
        """
        Rebuilds the hidden timestamp x asset pivot of the Value column the values chart plots.
        Assets keep the order in which they first showed up.
        """
        records = list(values_worksheet.iter_rows(min_row=2, max_col=len(VALUES_COLUMNS), values_only=True))
        values_df = pd.DataFrame.from_records(records, columns=VALUES_COLUMNS)
        assets = list(dict.fromkeys(values_df["Asset"].dropna().astype(str)))
        pivot_df = values_df.pivot_table(index="Timestamp", columns="Asset", values="Value", aggfunc="sum").reindex(
            columns=assets
        )
        if XLSX_VALUES_CHART_DATA_SHEET_NAME in workbook.sheetnames:
            del workbook[XLSX_VALUES_CHART_DATA_SHEET_NAME]
        chart_data_worksheet = workbook.create_sheet(XLSX_VALUES_CHART_DATA_SHEET_NAME)
        chart_data_worksheet.sheet_state = "hidden"
        chart_data_worksheet.append(["Timestamp", *assets])
        for timestamp, asset_values in pivot_df.iterrows():
            timestamp_cell_value = timestamp.to_pydatetime() if isinstance(timestamp, pd.Timestamp) else timestamp
            chart_data_worksheet.append(
                [timestamp_cell_value, *[None if pd.isna(value) else float(value) for value in asset_values]]
            )
        for (timestamp_cell,) in chart_data_worksheet.iter_rows(min_row=2, max_col=1):
            timestamp_cell.number_format = XLSX_TIMESTAMP_NUMBER_FORMAT
        return chart_data_worksheet, assets, max(len(pivot_df.index) + 1, 2)

    def _upsert_chart(
        self,
        worksheet: Worksheet,
        *,
        title: str,
        anchor_column: int,
        categories: Reference,
        series_refs: dict[str, Reference],
    ) -> None:
        chart = next((chart for chart in worksheet._charts if self._get_chart_title(chart) == title), None)
        if chart is None:
            chart = LineChart()
            chart.title = title
            chart.x_axis.title = "Timestamp"
            chart.x_axis.number_format = XLSX_TIMESTAMP_NUMBER_FORMAT
            chart.y_axis.title = "Value"
            chart.x_axis.delete = False
            chart.y_axis.delete = False
            chart.width = 24
            chart.height = 12
            # XXX: The values chart plots a hidden sheet
            chart.visible_cells_only = False
            for series_title, series_ref in series_refs.items():
                chart.series.append(Series(series_ref, title=series_title))
            chart.set_categories(categories)
            worksheet.add_chart(chart, f"{get_column_letter(anchor_column)}2")
        else:
            # XXX: Existing chart is kept as is, only its series are re-pointed to the new extent
            existing_series = {self._get_series_title(series): series for series in chart.series}
            for series_title, series_ref in series_refs.items():
                series = existing_series.get(series_title)
                if series is None:
                    chart.series.append(Series(series_ref, title=series_title))
                else:
                    series.val = NumDataSource(numRef=NumRef(f=str(series_ref)))
            for series in chart.series:
                series.cat = AxDataSource(numRef=NumRef(f=str(categories)))

    @staticmethod
    def _get_chart_title(chart: Any) -> str | None:
        title = getattr(chart, "title", None)
        if title is None or isinstance(title, str):
            return title
        rich = title.tx.rich if title.tx is not None else None
        if rich is None:
            return None
        return "".join(run.t for paragraph in rich.p for run in (paragraph.r or []))

    @staticmethod
    def _get_series_title(series: Any) -> str | None:
        series_label = series.tx
        if series_label is None:
            return None
        return series_label.v

    @staticmethod
    def _to_excel_datetime(timestamp: datetime) -> datetime:
        # Excel has no time zones, UTC instants are written as naive datetimes
        return as_utc(timestamp).replace(tzinfo=None)
