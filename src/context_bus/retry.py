"""
Retry helper for event handlers.

The dispatcher never retries a handler. A handler whose work talks to a flaky
collaborator can use ``retry_with_backoff`` to give one transient failure a
second chance before reporting it.

Failure reasons fall into three groups:

- retryable (default ``database_connection_error``): wait, then try once more
- idempotent (default ``duplicate_resource``): the work is already done, success
- anything else: permanent, returned immediately
"""

import secrets
import time
from typing import Any, Callable, FrozenSet, Iterable

from context_bus.handlers.results import OK, HandlerFailure
from context_bus.observability import logger

DEFAULT_BACKOFF_MS = 100
RETRYABLE_REASONS: FrozenSet[str] = frozenset({'database_connection_error'})
IDEMPOTENT_REASONS: FrozenSet[str] = frozenset({'duplicate_resource'})


def generate_error_id() -> str:
    return secrets.token_hex(8).upper()


def retry_with_backoff(
    operation: Callable[[], Any],
    operation_name: str,
    aggregate_id: Any,
    backoff_ms: int = DEFAULT_BACKOFF_MS,
    retryable: Iterable[str] = RETRYABLE_REASONS,
    idempotent: Iterable[str] = IDEMPOTENT_REASONS,
) -> Any:
    """
    Run an operation, retrying a transient failure once.

    Args:
        operation: Zero-argument callable returning OK or a HandlerFailure; other
            values are handed back unchanged
        operation_name: Human readable name used in logs
        aggregate_id: Identifier of the aggregate being worked on, used in logs
        backoff_ms: Milliseconds to wait before the retry
        retryable: Failure reasons worth retrying
        idempotent: Failure reasons that mean the work is already done

    Returns:
        The operation's result, OK for idempotent failures, or the original
        failure when the retry did not succeed
    """
    retryable = frozenset(retryable)
    idempotent = frozenset(idempotent)

    result = operation()
    if not isinstance(result, HandlerFailure):
        return result

    if result.reason in idempotent:
        logger.debug(f"{operation_name} for aggregate {aggregate_id}: {result.reason} (treated as success)")
        return OK

    if result.reason not in retryable:
        logger.error(
            f"[{generate_error_id()}] Permanent error during {operation_name} "
            f"for aggregate {aggregate_id}: {result.reason} (no retry)"
        )
        return result

    logger.warning(
        f"[{generate_error_id()}] Retrying {operation_name} for aggregate {aggregate_id} "
        f"after transient error: {result.reason}"
    )
    time.sleep(backoff_ms / 1000)

    retried = operation()
    if not isinstance(retried, HandlerFailure):
        logger.info(f"Successfully completed {operation_name} for aggregate {aggregate_id} on retry")
        return retried

    if retried.reason in idempotent:
        logger.debug(f"{operation_name} for aggregate {aggregate_id}: {retried.reason} (treated as success)")
        return OK

    logger.error(f"[{generate_error_id()}] Failed to {operation_name} for aggregate {aggregate_id} after retry")
    return result
