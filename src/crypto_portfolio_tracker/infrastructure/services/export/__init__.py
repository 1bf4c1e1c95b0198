from crypto_portfolio_tracker.infrastructure.services.export.abstract_export_writer_service import (
    AbstractExportWriterService,
)
from crypto_portfolio_tracker.infrastructure.services.export.csv_export_writer_service import CsvExportWriterService
from crypto_portfolio_tracker.infrastructure.services.export.export_service import ExportService
from crypto_portfolio_tracker.infrastructure.services.export.json_export_writer_service import JsonExportWriterService
from crypto_portfolio_tracker.infrastructure.services.export.xlsx_export_writer_service import XlsxExportWriterService

__all__ = [
    "AbstractExportWriterService",
    "CsvExportWriterService",
    "ExportService",
    "JsonExportWriterService",
    "XlsxExportWriterService",
]
