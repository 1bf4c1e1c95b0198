import csv
import logging
from collections.abc import Callable
from datetime import datetime
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import TypeVar

import pydash

from crypto_portfolio_tracker.commons.constants import TOTALS_COLUMNS, VALUES_COLUMNS
from crypto_portfolio_tracker.commons.exceptions import HistoricalDataUnreadableError
from crypto_portfolio_tracker.commons.utils import parse_timestamp
from crypto_portfolio_tracker.infrastructure.services.vo import (
    HistoricalDataEntry,
    HistoricalDataViewOptions,
    HistoricalParseResult,
    HistoricalParseWarning,
    HistoricalTotalEntry,
)

logger = logging.getLogger(__name__)

E = TypeVar("E")


class HistoricalDataService:
    """
    Read-only access to the delimited-text files written by the CSV exporter.

    Malformed lines are skipped and reported as warnings, the rest of the file is still parsed.
    A file that cannot be read at all raises HistoricalDataUnreadableError, never a partial result.
    """

    def read_values(self, file_path: Path | str) -> HistoricalParseResult[HistoricalDataEntry]:
        return self._parse_file(Path(file_path), VALUES_COLUMNS, self._parse_values_fields)

    def read_totals(self, file_path: Path | str) -> HistoricalParseResult[HistoricalTotalEntry]:
        return self._parse_file(Path(file_path), TOTALS_COLUMNS, self._parse_totals_fields)

    def query_values(
        self, entries: list[HistoricalDataEntry], options: HistoricalDataViewOptions | None = None
    ) -> list[HistoricalDataEntry]:
        """
        Filters by asset and/or source (case-insensitive exact match), sorts by timestamp
        and finally truncates to options.limit entries (no limit when <= 0)
        """
        options = options or HistoricalDataViewOptions()
        filtered = [
            entry
            for entry in entries
            if self._matches(entry.asset, options.asset) and self._matches(entry.source, options.source)
        ]
        return self._sort_and_limit(filtered, limit=options.limit, reverse=options.reverse)

    def query_totals(
        self, entries: list[HistoricalTotalEntry], *, limit: int = 0, reverse: bool = False
    ) -> list[HistoricalTotalEntry]:
        return self._sort_and_limit(entries, limit=limit, reverse=reverse)

    def list_unique_assets(self, entries: list[HistoricalDataEntry]) -> list[tuple[str, str]]:
        unique_entries = pydash.uniq_by(entries, lambda entry: (entry.asset, entry.source))
        return sorted((entry.asset, entry.source) for entry in unique_entries)

    def _parse_file(
        self, file_path: Path, expected_columns: list[str], parse_fields_fn: Callable[[list[str]], E]
    ) -> HistoricalParseResult[E]:
        lines = self._read_lines(file_path)
        try:
            header = [column.lower() for column in self._split_fields(lines[0])]
        except ValueError as e:
            raise HistoricalDataUnreadableError(file_path, f"unreadable header: {str(e)}") from e
        if header != [column.lower() for column in expected_columns]:
            raise HistoricalDataUnreadableError(
                file_path, f"unexpected header '{lines[0].strip()}', expected '{','.join(expected_columns)}'"
            )
        entries: list[E] = []
        warnings: list[HistoricalParseWarning] = []
        for line_number, line in enumerate(lines[1:], start=2):
            if not line.strip():
                continue
            try:
                fields = self._split_fields(line)
                if len(fields) != len(expected_columns):
                    raise ValueError(f"expected {len(expected_columns)} fields but got {len(fields)}")
                entries.append(parse_fields_fn(fields))
            except ValueError as e:
                warning = HistoricalParseWarning(line_number=line_number, line=line, reason=str(e))
                logger.warning(f"{file_path}:{line_number} skipped, {warning.reason}: '{line}'")
                warnings.append(warning)
        logger.info(f"Parsed {len(entries)} entries from {file_path}, {len(warnings)} line(s) skipped")
        return HistoricalParseResult(entries=entries, warnings=warnings)

    def _read_lines(self, file_path: Path) -> list[str]:
        if not file_path.is_file():
            raise HistoricalDataUnreadableError(file_path, "file does not exist")
        try:
            lines = file_path.read_text(encoding="utf-8-sig").splitlines()
        except (OSError, UnicodeDecodeError) as e:
            raise HistoricalDataUnreadableError(file_path, str(e)) from e
        if not lines or not lines[0].strip():
            raise HistoricalDataUnreadableError(file_path, "file is empty or has no header")
        return lines

    def _parse_values_fields(self, fields: list[str]) -> HistoricalDataEntry:
        timestamp, asset, balance, price, value, fiat_value, reference_unit_value, source = fields
        return HistoricalDataEntry(
            timestamp=self._parse_timestamp(timestamp),
            asset=asset,
            balance=self._parse_decimal(balance),
            price=self._parse_decimal(price),
            value=self._parse_decimal(value),
            fiat_value=self._parse_decimal(fiat_value),
            reference_unit_value=self._parse_decimal(reference_unit_value),
            source=source,
        )

    def _parse_totals_fields(self, fields: list[str]) -> HistoricalTotalEntry:
        timestamp, total_value, total_fiat_value, total_reference_unit_value = fields
        return HistoricalTotalEntry(
            timestamp=self._parse_timestamp(timestamp),
            total_value=self._parse_decimal(total_value),
            total_fiat_value=self._parse_decimal(total_fiat_value),
            total_reference_unit_value=self._parse_decimal(total_reference_unit_value),
        )

    def _sort_and_limit(self, entries: list[E], *, limit: int, reverse: bool) -> list[E]:
        ret = sorted(entries, key=lambda entry: entry.timestamp, reverse=reverse)
        if limit > 0:
            ret = ret[:limit]
        return ret

    @staticmethod
    def _split_fields(line: str) -> list[str]:
        """
        Splits one delimited-text line, honouring the quoting applied by the CSV exporter
        """
        try:
            fields = next(csv.reader([line], strict=True), [])
        except csv.Error as e:
            raise ValueError(f"malformed line, {str(e)}") from e
        return [field.strip() for field in fields]

    @staticmethod
    def _matches(value: str, expected: str | None) -> bool:
        return not expected or value.lower() == expected.lower()

    @staticmethod
    def _parse_timestamp(raw_value: str) -> datetime:
        try:
            return parse_timestamp(raw_value)
        except ValueError as e:
            raise ValueError(f"invalid timestamp '{raw_value}'") from e

    @staticmethod
    def _parse_decimal(raw_value: str) -> Decimal:
        try:
            ret = Decimal(raw_value)
        except InvalidOperation as e:
            raise ValueError(f"invalid decimal '{raw_value}'") from e
        if not ret.is_finite():
            raise ValueError(f"invalid decimal '{raw_value}'")
        return ret
