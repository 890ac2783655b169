"""Retry wrapper for upstream transcription calls.

Each attempt gets its own timeout. Only per-attempt timeouts and
TranscriptionServiceError with ``retryable`` set are tried again; any other
error fails at once. Cancellation is never retried or converted.
"""

import asyncio
import logging
from typing import Awaitable, Callable, TypeVar

from domain.errors import SegmentTimeoutError, SegmentTranscriptionError, TranscriptionServiceError
from domain.models import RetryPolicy

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _is_retryable(exc: Exception) -> bool:
    """Only upstream service errors flagged retryable are tried again."""
    return isinstance(exc, TranscriptionServiceError) and exc.retryable


async def call_with_retry(
    func: Callable[[], Awaitable[T]],
    policy: RetryPolicy,
    description: str = "transcription",
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> T:
    """Await ``func()`` up to ``policy.max_attempts`` times.

    Raises:
        SegmentTimeoutError: every attempt timed out, or the last one did.
        SegmentTranscriptionError: attempts exhausted, or a non-retryable error.
    """
    last_exc: Exception | None = None

    for attempt in range(1, policy.max_attempts + 1):
        try:
            if policy.timeout_seconds:
                return await asyncio.wait_for(func(), timeout=policy.timeout_seconds)
            return await func()
        except asyncio.TimeoutError as exc:
            last_exc = exc
            logger.warning(
                f"{description} attempt {attempt}/{policy.max_attempts} "
                f"timed out after {policy.timeout_seconds}s"
            )
        except Exception as exc:
            last_exc = exc
            if not _is_retryable(exc):
                logger.warning(f"{description} failed with non-retryable error: {exc}")
                raise SegmentTranscriptionError(str(exc) or type(exc).__name__) from exc
            logger.warning(f"{description} attempt {attempt}/{policy.max_attempts} failed: {exc}")

        if attempt < policy.max_attempts:
            delay = policy.delay_for(attempt)
            if delay > 0:
                logger.info(f"Waiting {delay:.1f}s before retry...")
                await sleep(delay)

    logger.error(f"{description} failed after {policy.max_attempts} attempts: {last_exc}")
    if isinstance(last_exc, asyncio.TimeoutError):
        raise SegmentTimeoutError(
            f"Timed out after {policy.max_attempts} attempts of {policy.timeout_seconds}s"
        ) from last_exc
    raise SegmentTranscriptionError(str(last_exc) or type(last_exc).__name__) from last_exc
