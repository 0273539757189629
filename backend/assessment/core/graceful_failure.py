"""
Graceful failure utilities.

Reusable context manager for non-critical operations that
should not block the main scoring or assembly flow:
1. Attempt the operation
2. Log any exception with context
3. Continue execution without raising

Used around post-scoring enrichment (confidence intervals, consistency
analysis) and progress-listener delivery. Core scoring and selection errors
are NOT wrapped; they propagate.

Usage:
    from assessment.core.graceful_failure import graceful_failure

    with graceful_failure("enrich confidence intervals", logger):
        calculator.enrich(result.competency_scores)

    with graceful_failure("notify progress listener", logger, log_level=logging.ERROR):
        listener(event)
"""

import logging
from contextlib import contextmanager
from typing import Any, Generator, Optional


@contextmanager
def graceful_failure(
    operation_name: str,
    logger: logging.Logger,
    *,
    log_level: int = logging.WARNING,
    exc_info: bool = False,
    context: Optional[dict[str, Any]] = None,
) -> Generator[None, None, None]:
    """Context manager for non-critical operations that should not block execution.

    Args:
        operation_name: Human-readable name of the operation for logging
            (e.g., "enrich confidence intervals").
        logger: The logger instance to use for logging errors.
        log_level: Logging level for error messages. Defaults to WARNING.
        exc_info: Whether to include exception traceback in log.
        context: Optional dictionary of additional context to include in the
            log message (e.g., {"session_id": ...}).
    """
    try:
        yield
    except Exception as e:
        if context:
            context_str = ", ".join(f"{k}={v}" for k, v in context.items())
            message = f"Failed to {operation_name} ({context_str}): {e}"
        else:
            message = f"Failed to {operation_name}: {e}"

        logger.log(log_level, message, exc_info=exc_info)
