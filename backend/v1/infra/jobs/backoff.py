"""
Retry delay policy for failed jobs.
"""

from datetime import timedelta

FIRST_RETRY_DELAY = timedelta(seconds=5)
MAX_RETRY_DELAY = timedelta(minutes=10)
MAX_EXPONENT = 8
MAX_ERROR_LENGTH = 2000


def compute_backoff(attempts: int) -> timedelta:
    """Delay before a job that failed on its ``attempts``-th claim is retried.

    ``attempts`` has already been incremented by the claim, so the first
    failure arrives here as 1 and gets the fixed first-retry delay. Later
    failures grow as 2**attempts seconds, never below the first-retry delay
    and never above the cap.
    """
    if attempts <= 1:
        return FIRST_RETRY_DELAY

    delay = timedelta(seconds=2 ** min(attempts, MAX_EXPONENT))
    return min(max(delay, FIRST_RETRY_DELAY), MAX_RETRY_DELAY)


def truncate_error(error: BaseException | str | None, limit: int = MAX_ERROR_LENGTH) -> str:
    """Render an error for the last_error column."""
    if error is None:
        return ""
    text = error if isinstance(error, str) else str(error) or error.__class__.__name__
    return text[:limit]
