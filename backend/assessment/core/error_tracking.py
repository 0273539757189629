"""
Sentry error tracking.

Sentry is optional at runtime: with an empty ``SENTRY_DSN`` nothing is
initialized and ``capture_error`` is a no-op.
"""
import logging
from typing import Any, Dict, Optional

import sentry_sdk
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.logging import LoggingIntegration
from sentry_sdk.integrations.starlette import StarletteIntegration

from assessment.core.config import settings

logger = logging.getLogger(__name__)

_initialized = False


def init_sentry() -> bool:
    """
    Initialize the Sentry SDK with FastAPI/Starlette integrations.

    Returns:
        True if Sentry was initialized, False if it was skipped (no DSN) or
        initialization failed. Never raises.
    """
    global _initialized
    if not settings.SENTRY_DSN:
        logger.debug("Sentry initialization skipped (DSN not configured)")
        return False

    try:
        sentry_sdk.init(
            dsn=settings.SENTRY_DSN,
            environment=settings.ENV,
            release=f"{settings.APP_NAME}@{settings.APP_VERSION}",
            traces_sample_rate=settings.SENTRY_TRACES_SAMPLE_RATE,
            integrations=[
                LoggingIntegration(level=None, event_level=None),
                FastApiIntegration(transaction_style="endpoint"),
                StarletteIntegration(transaction_style="endpoint"),
            ],
            send_default_pii=False,
        )
    except Exception as e:
        logger.error(f"Failed to initialize Sentry: {e}", exc_info=True)
        return False

    _initialized = True
    logger.info(
        f"Sentry initialized for environment '{settings.ENV}' "
        f"with {settings.SENTRY_TRACES_SAMPLE_RATE * 100:.0f}% trace sampling"
    )
    return True


def capture_error(
    exception: BaseException, context: Optional[Dict[str, Any]] = None
) -> Optional[str]:
    """
    Send an exception to Sentry with request context attached.

    Returns:
        The Sentry event id, or None when Sentry is not initialized.
    """
    if not _initialized:
        return None
    with sentry_sdk.push_scope() as scope:
        if context:
            scope.set_context("request", {k: str(v) for k, v in context.items()})
        scope.set_tag("error_type", type(exception).__name__)
        return sentry_sdk.capture_exception(exception)


def flush(timeout: float = 2.0) -> None:
    if _initialized:
        sentry_sdk.flush(timeout=timeout)
