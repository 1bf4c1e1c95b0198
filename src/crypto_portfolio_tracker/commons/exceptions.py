from pathlib import Path


class ExhaustedRetriesError(Exception):
    """
    Raised once a retried operation has failed on every allowed attempt.
    The last underlying error is chained as __cause__.
    """

    def __init__(self, operation_name: str, attempts: int) -> None:
        super().__init__(f"Operation '{operation_name}' failed after {attempts} attempt(s)")
        self.operation_name = operation_name
        self.attempts = attempts


class ExportError(Exception):
    def __init__(self, target_path: Path | str) -> None:
        super().__init__(f"Failed to export snapshot to {target_path}")
        self.target_path = str(target_path)


class HistoricalDataUnreadableError(Exception):
    def __init__(self, file_path: Path | str, reason: str) -> None:
        super().__init__(f"Historical data file {file_path} is unreadable: {reason}")
        self.file_path = str(file_path)
        self.reason = reason
