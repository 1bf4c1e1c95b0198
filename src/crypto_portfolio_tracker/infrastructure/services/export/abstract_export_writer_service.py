import asyncio
import logging
import os
from abc import ABC, abstractmethod
from collections.abc import Callable
from pathlib import Path
from uuid import uuid4

from crypto_portfolio_tracker.commons.exceptions import ExportError
from crypto_portfolio_tracker.infrastructure.services.enums import ExportFormatEnum
from crypto_portfolio_tracker.infrastructure.services.vo import PortfolioSnapshot

logger = logging.getLogger(__name__)


class AbstractExportWriterService(ABC):
    """
    Appends snapshots to a values target and to a totals target of one single format.

    Both targets are append-only and independent, nothing is rolled back on one of them
    when writing the other one fails. Calls are not meant to run concurrently for the same target.
    """

    @property
    @abstractmethod
    def export_format(self) -> ExportFormatEnum:
        """
        Format handled by this writer, also used as file extension
        """

    async def append_values(self, target_path: Path, snapshots: list[PortfolioSnapshot]) -> None:
        await self._run_export_step(self._append_values, target_path, snapshots)

    async def append_totals(self, target_path: Path, snapshots: list[PortfolioSnapshot]) -> None:
        await self._run_export_step(self._append_totals, target_path, snapshots)

    @abstractmethod
    def _append_values(self, target_path: Path, snapshots: list[PortfolioSnapshot]) -> None:
        """
        Appends one row per valued balance of every snapshot
        """

    @abstractmethod
    def _append_totals(self, target_path: Path, snapshots: list[PortfolioSnapshot]) -> None:
        """
        Appends one aggregate row per snapshot
        """

    async def _run_export_step(
        self,
        export_step: Callable[[Path, list[PortfolioSnapshot]], None],
        target_path: Path,
        snapshots: list[PortfolioSnapshot],
    ) -> None:
        try:
            # XXX: Blocking file I/O, kept out of the event loop
            await asyncio.to_thread(export_step, target_path, snapshots)
        except Exception as e:
            logger.error(f"Error exporting {len(snapshots)} snapshot(s) to {target_path}: {str(e)}")
            raise ExportError(target_path) from e

    def _replace_atomically(self, target_path: Path, write_scratch_fn: Callable[[Path], None]) -> None:
        """
        Writes a scratch file next to the target and swaps it into place.
        The scratch file is never promoted when writing it fails.
        """
        scratch_path = target_path.with_name(f".{target_path.stem}.{uuid4().hex}.tmp{target_path.suffix}")
        try:
            write_scratch_fn(scratch_path)
            os.replace(scratch_path, target_path)
        finally:
            if scratch_path.exists():
                scratch_path.unlink()
