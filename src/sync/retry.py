"""Bounded retry for remote calls.

Callers mark a failure as worth another attempt by raising ``Transient``
around the error they want surfaced. After the last attempt that inner error
is raised, so retry bookkeeping never leaks to the engine.
"""

import structlog
from tenacity import Retrying, retry_if_exception_type, stop_after_attempt, wait_exponential

logger = structlog.get_logger().bind(source="retry")


class Transient(Exception):
    """Wraps an error that may succeed on a later attempt."""

    def __init__(self, error: Exception):
        super().__init__(str(error))
        self.error = error


def _log_retry(retry_state):
    error = retry_state.outcome.exception()
    logger.warning(
        "remote.retrying",
        attempt=retry_state.attempt_number,
        wait=round(retry_state.next_action.sleep, 2),
        error=str(error),
    )


class RetryPolicy:
    """Exponential backoff between ``min_wait`` and ``max_wait`` seconds."""

    def __init__(self, max_attempts: int = 2, min_wait: float = 0.5, max_wait: float = 2.0):
        self.max_attempts = max_attempts
        self.min_wait = min_wait
        self.max_wait = max_wait

    def call(self, fn, *args, **kwargs):
        """Run ``fn``, retrying on ``Transient``; re-raise the wrapped error when exhausted."""
        retrying = Retrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential(multiplier=1, min=self.min_wait, max=self.max_wait),
            retry=retry_if_exception_type(Transient),
            before_sleep=_log_retry,
            reraise=True,
        )
        try:
            return retrying(fn, *args, **kwargs)
        except Transient as e:
            raise e.error from e.__cause__
