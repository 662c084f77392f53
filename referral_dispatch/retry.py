import logging
import time
from collections.abc import Callable
from typing import TypeVar


logger = logging.getLogger(__name__)
T = TypeVar("T")


class RetryExhaustedError(RuntimeError):
    pass


def call_with_retries(
    fn: Callable[[], T],
    *,
    max_retries: int,
    backoff_seconds: float,
    should_retry: Callable[[Exception], bool],
    operation: str = "operation",
) -> T:
    """Call ``fn`` until it succeeds, retrying only errors ``should_retry`` accepts.

    Other exceptions propagate untouched on the first failure.
    """
    last_error: Exception | None = None

    for attempt in range(1, max_retries + 2):
        try:
            return fn()
        except Exception as exc:
            if not should_retry(exc):
                raise
            last_error = exc
            logger.warning(
                "%s failed",
                operation,
                extra={"attempt": attempt, "max_retries": max_retries, "error": str(exc)},
            )
            if attempt > max_retries:
                break
            time.sleep(backoff_seconds * attempt)

    raise RetryExhaustedError(f"{operation} failed after {max_retries + 1} attempts: {last_error}") from last_error
