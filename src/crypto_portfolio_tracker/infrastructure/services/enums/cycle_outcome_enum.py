from enum import Enum


class CycleOutcomeEnum(str, Enum):
    COMPLETED = "completed"
    # Primary source exhausted its retries
    ABORTED = "aborted"
    # Nothing to display nor export
    SKIPPED_EMPTY = "skipped_empty"
    FAILED = "failed"
