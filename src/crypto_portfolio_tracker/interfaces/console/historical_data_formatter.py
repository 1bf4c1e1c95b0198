from crypto_portfolio_tracker.commons.constants import (
    QUANTITY_DECIMAL_PLACES,
    REFERENCE_UNIT_DECIMAL_PLACES,
    VALUE_DECIMAL_PLACES,
)
from crypto_portfolio_tracker.commons.utils import format_csv_timestamp
from crypto_portfolio_tracker.infrastructure.services.vo import HistoricalDataEntry, HistoricalTotalEntry


class HistoricalDataFormatter:
    def format_values(self, entries: list[HistoricalDataEntry]) -> list[str]:
        ret = [
            f"{'Timestamp':<19} | {'Asset':<8} | {'Balance':>14} | {'Price':>14} | {'Value':>14} | "
            + f"{'Fiat value':>14} | {'Ref. unit value':>16} | Source",
            "-" * 130,
        ]
        ret.extend(
            f"{format_csv_timestamp(entry.timestamp):<19} | {entry.asset:<8} | "
            + f"{entry.balance:>14,.{QUANTITY_DECIMAL_PLACES}f} | {entry.price:>14,.{QUANTITY_DECIMAL_PLACES}f} | "
            + f"{entry.value:>14,.{VALUE_DECIMAL_PLACES}f} | {entry.fiat_value:>14,.{VALUE_DECIMAL_PLACES}f} | "
            + f"{entry.reference_unit_value:>16.{REFERENCE_UNIT_DECIMAL_PLACES}f} | {entry.source}"
            for entry in entries
        )
        return ret

    def format_totals(self, entries: list[HistoricalTotalEntry]) -> list[str]:
        ret = [
            f"{'Timestamp':<19} | {'Total value':>16} | {'Total fiat value':>16} | {'Total ref. unit value':>21}",
            "-" * 82,
        ]
        ret.extend(
            f"{format_csv_timestamp(entry.timestamp):<19} | {entry.total_value:>16,.{VALUE_DECIMAL_PLACES}f} | "
            + f"{entry.total_fiat_value:>16,.{VALUE_DECIMAL_PLACES}f} | "
            + f"{entry.total_reference_unit_value:>21.{REFERENCE_UNIT_DECIMAL_PLACES}f}"
            for entry in entries
        )
        return ret

    def format_assets(self, asset_source_pairs: list[tuple[str, str]]) -> list[str]:
        ret = [f"{'Asset':<8} | Source", "-" * 24]
        ret.extend(f"{asset:<8} | {source}" for asset, source in asset_source_pairs)
        return ret
