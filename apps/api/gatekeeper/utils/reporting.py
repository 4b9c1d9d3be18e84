"""
Error tracking helpers.

Failures that must not break the primary operation (audit writes after an
Allow) are reported here instead of being raised.
"""

from typing import Any

import sentry_sdk
import structlog

from gatekeeper.core.config import Settings

logger = structlog.get_logger()


def init_error_tracking(settings: Settings) -> bool:
    """Initialise Sentry if a DSN is configured. Returns True when enabled."""
    if not settings.sentry_dsn:
        return False

    sentry_sdk.init(
        dsn=settings.sentry_dsn,
        environment=settings.environment,
        release=settings.app_version,
        send_default_pii=False,
    )
    return True


def report_exception(exc: BaseException, message: str, **context: Any) -> None:
    """
    Log an exception and forward it to the error tracker.

    Context keys become Sentry tags, so keep them small and non-sensitive
    (ids, enum values).
    """
    logger.error(message, error=str(exc), error_type=type(exc).__name__, **context)

    with sentry_sdk.new_scope() as scope:
        for key, value in context.items():
            if value is not None:
                scope.set_tag(key, str(value))
        sentry_sdk.capture_exception(exc)
