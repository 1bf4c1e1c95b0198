import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

import backoff

from crypto_portfolio_tracker.commons.constants import (
    DEFAULT_FETCH_INITIAL_DELAY_SECONDS,
    DEFAULT_FETCH_MAX_ATTEMPTS,
)
from crypto_portfolio_tracker.commons.exceptions import ExhaustedRetriesError
from crypto_portfolio_tracker.commons.utils import (
    prepare_backoff_on_backoff_handler_fn,
    prepare_backoff_on_giveup_handler_fn,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RetryRunner:
    """
    Retries a fallible asynchronous operation with exponential backoff.

    The wait before attempt k + 1 is `initial_delay_seconds * 2 ** (k - 1)`,
    without jitter and without any cap. The instance holds no state between
    calls, so a single one can be shared by every balance source.
    """

    def __init__(
        self,
        max_attempts: int = DEFAULT_FETCH_MAX_ATTEMPTS,
        initial_delay_seconds: float = DEFAULT_FETCH_INITIAL_DELAY_SECONDS,
    ) -> None:
        if max_attempts < 1:
            raise ValueError(f"max_attempts must be greater than 0, but it was {max_attempts}")
        if initial_delay_seconds < 0:
            raise ValueError(f"initial_delay_seconds must not be negative, but it was {initial_delay_seconds}")
        self._max_attempts = max_attempts
        self._initial_delay_seconds = initial_delay_seconds

    @property
    def max_attempts(self) -> int:
        return self._max_attempts

    @property
    def initial_delay_seconds(self) -> float:
        return self._initial_delay_seconds

    async def run(self, operation: Callable[[], Awaitable[T]], *, operation_name: str | None = None) -> T:
        """Invokes the operation until it succeeds or the attempts are exhausted.

        Args:
            operation (Callable[[], Awaitable[T]]): zero-argument coroutine function
            operation_name (str | None, optional): name used when reporting failures. Defaults to None.

        Raises:
            ExhaustedRetriesError: when every attempt failed, chained from the last error

        Returns:
            T: result of the first successful attempt
        """
        operation_name = operation_name or getattr(operation, "__qualname__", repr(operation))

        @backoff.on_exception(
            backoff.expo,
            exception=Exception,
            max_tries=self._max_attempts,
            jitter=None,
            base=2,
            factor=self._initial_delay_seconds,
            on_backoff=prepare_backoff_on_backoff_handler_fn(operation_name),
            on_giveup=prepare_backoff_on_giveup_handler_fn(operation_name),
        )
        async def _attempt() -> T:
            return await operation()

        try:
            return await _attempt()
        except Exception as e:
            raise ExhaustedRetriesError(operation_name, self._max_attempts) from e
