import logging
from collections.abc import Callable
from datetime import UTC, datetime
from decimal import Decimal
from typing import Any

from crypto_portfolio_tracker.commons.constants import CSV_TIMESTAMP_FORMAT

logger = logging.getLogger(__name__)


def prepare_backoff_on_backoff_handler_fn(operation_name: str) -> Callable[[dict[str, Any]], None]:
    def __backoff_on_backoff_handler(details: dict[str, Any]) -> None:
        logger.warning(
            f"[{operation_name}] [Attempt {details['tries']}] Failed due to {details['exception']!r}. "
            + f"Waiting {details['wait']:.2f}s before retrying..."
        )

    return __backoff_on_backoff_handler


def prepare_backoff_on_giveup_handler_fn(operation_name: str) -> Callable[[dict[str, Any]], None]:
    def __backoff_on_giveup_handler(details: dict[str, Any]) -> None:
        logger.error(
            f"[{operation_name}] [Attempt {details['tries']}] Failed due to {details['exception']!r}. "
            + f"Giving up after {details['elapsed']:.2f}s!"
        )

    return __backoff_on_giveup_handler


def to_decimal(value: Any) -> Decimal:
    if isinstance(value, Decimal):
        return value
    # XXX: str() first so floats keep their shortest repr instead of binary noise
    return Decimal(str(value)) if value is not None else Decimal(0)


def format_decimal(value: Decimal | float | int, *, ndigits: int) -> str:
    """
    Fixed-point, culture-invariant representation ('.' separator, no grouping)
    """
    return f"{to_decimal(value):.{ndigits}f}"


def utcnow() -> datetime:
    return datetime.now(UTC)


def as_utc(timestamp: datetime) -> datetime:
    if timestamp.tzinfo is None:
        return timestamp.replace(tzinfo=UTC)
    return timestamp.astimezone(UTC)


def format_csv_timestamp(timestamp: datetime) -> str:
    return as_utc(timestamp).strftime(CSV_TIMESTAMP_FORMAT)


def parse_timestamp(raw_value: str) -> datetime:
    return as_utc(datetime.fromisoformat(raw_value.strip()))
