import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, override

from pydantic import BaseModel, RootModel, ValidationError

from crypto_portfolio_tracker.infrastructure.services.enums import ExportFormatEnum
from crypto_portfolio_tracker.infrastructure.services.export.abstract_export_writer_service import (
    AbstractExportWriterService,
)
from crypto_portfolio_tracker.infrastructure.services.vo import CoinBalanceValuation, PortfolioSnapshot

logger = logging.getLogger(__name__)


class _BalanceDocument(BaseModel):
    asset: str
    balance: float
    price: float
    value: float
    fiat_value: float
    reference_unit_value: float
    source: str

    @classmethod
    def from_valuation(cls, valuation: CoinBalanceValuation) -> "_BalanceDocument":
        return cls(
            asset=valuation.coin_balance.asset,
            balance=float(valuation.coin_balance.balance),
            price=float(valuation.coin_balance.price),
            value=float(valuation.coin_balance.value),
            fiat_value=float(valuation.fiat_value),
            reference_unit_value=float(valuation.reference_unit_value),
            source=valuation.coin_balance.source,
        )


class _ValuesDocument(BaseModel):
    timestamp: datetime
    balances: list[_BalanceDocument]


class _TotalsDocument(BaseModel):
    timestamp: datetime
    total_value: float
    total_fiat_value: float
    total_reference_unit_value: float


class JsonExportWriterService(AbstractExportWriterService):
    """
    Each target is a JSON array of snapshots, rewritten as a whole on every call
    """

    @property
    @override
    def export_format(self) -> ExportFormatEnum:
        return ExportFormatEnum.JSON

    @override
    def _append_values(self, target_path: Path, snapshots: list[PortfolioSnapshot]) -> None:
        documents = [
            _ValuesDocument(
                timestamp=snapshot.timestamp,
                balances=[_BalanceDocument.from_valuation(valuation) for valuation in snapshot.valuations],
            )
            for snapshot in snapshots
        ]
        self._append_documents(target_path, documents)

    @override
    def _append_totals(self, target_path: Path, snapshots: list[PortfolioSnapshot]) -> None:
        documents = [
            _TotalsDocument(
                timestamp=snapshot.total.timestamp,
                total_value=float(snapshot.total.total_value),
                total_fiat_value=float(snapshot.total.total_fiat_value),
                total_reference_unit_value=float(snapshot.total.total_reference_unit_value),
            )
            for snapshot in snapshots
        ]
        self._append_documents(target_path, documents)

    def _append_documents(self, target_path: Path, documents: list[BaseModel]) -> None:
        entries = self._read_existing_entries(target_path)
        entries.extend(document.model_dump(mode="json") for document in documents)
        self._replace_atomically(
            target_path, lambda scratch_path: scratch_path.write_text(json.dumps(entries, indent=2), encoding="utf-8")
        )
        logger.info(f"Appended {len(documents)} snapshot(s) to {target_path}, {len(entries)} in total")

    def _read_existing_entries(self, target_path: Path) -> list[Any]:
        if not target_path.exists():
            return []
        try:
            ret = RootModel[list[Any]].model_validate_json(target_path.read_bytes()).root
        except ValidationError as e:
            logger.warning(f"{target_path} does not hold a JSON array, a new one will be started: {str(e)}")
            ret = []
        return ret
