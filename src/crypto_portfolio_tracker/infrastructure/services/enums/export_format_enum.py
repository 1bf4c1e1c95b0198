from enum import Enum


class ExportFormatEnum(str, Enum):
    CSV = "csv"
    JSON = "json"
    XLSX = "xlsx"
