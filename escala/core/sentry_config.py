# escala/core/sentry_config.py
"""
Optional Sentry error tracking, enabled in production when SENTRY_DSN is set.
"""

import logging
import os

from escala.core.config import APP_VERSION, IS_PRODUCTION

logger = logging.getLogger(__name__)

SENSITIVE_HEADERS = ("cookie", "authorization", "x-api-key", "x-goog-api-key")
SENSITIVE_QUERY_WORDS = ("password", "token", "key")


def init_sentry(production: bool = IS_PRODUCTION) -> bool:
    """
    Initialize Sentry error tracking.

    Returns:
        True if Sentry was initialized, False otherwise.
    """
    sentry_dsn = os.getenv("SENTRY_DSN", "").strip()

    if not production:
        logger.info("Sentry disabled in development mode")
        return False

    if not sentry_dsn:
        logger.warning("SENTRY_DSN not set. Error tracking disabled.")
        return False

    environment = os.getenv("SENTRY_ENVIRONMENT", "production")
    try:
        import sentry_sdk
        from sentry_sdk.integrations.fastapi import FastApiIntegration
        from sentry_sdk.integrations.logging import LoggingIntegration
        from sentry_sdk.integrations.starlette import StarletteIntegration

        sentry_sdk.init(
            dsn=sentry_dsn,
            integrations=[
                FastApiIntegration(),
                StarletteIntegration(),
                LoggingIntegration(level=logging.INFO, event_level=logging.ERROR),
            ],
            traces_sample_rate=0.1,
            sample_rate=1.0,
            release=os.getenv("RELEASE_VERSION", f"escala@{APP_VERSION}"),
            environment=environment,
            send_default_pii=False,
            attach_stacktrace=True,
            before_send=before_send_hook,
        )
    except ImportError:
        logger.warning("Sentry SDK not installed. Install with: pip install sentry-sdk[fastapi]")
        return False
    except Exception:
        logger.error("Failed to initialize Sentry", exc_info=True)
        return False

    logger.info("Sentry initialized (environment: %s)", environment)
    return True


def before_send_hook(event, hint):
    """Strip credentials from request data before the event leaves the process."""
    request = event.get("request")
    if not request:
        return event

    headers = request.get("headers")
    if headers:
        for header in list(headers):
            if header.lower() in SENSITIVE_HEADERS:
                headers[header] = "[Filtered]"

    query = request.get("query_string")
    if query and any(word in query.lower() for word in SENSITIVE_QUERY_WORDS):
        request["query_string"] = "[Filtered]"

    return event


def capture_exception(error: Exception, context: dict | None = None) -> None:
    """Report a handled exception with optional named context blocks."""
    try:
        import sentry_sdk
    except ImportError:
        logger.error("Error occurred: %s", error, exc_info=error)
        return

    with sentry_sdk.new_scope() as scope:
        for key, value in (context or {}).items():
            scope.set_context(key, value)
        sentry_sdk.capture_exception(error)


def set_user_context(user_id: int, username: str | None = None, email: str | None = None) -> None:
    try:
        import sentry_sdk
    except ImportError:
        return
    sentry_sdk.set_user({"id": user_id, "username": username, "email": email})


def clear_user_context() -> None:
    """Clear user context (e.g., after logout)."""
    try:
        import sentry_sdk
    except ImportError:
        return
    sentry_sdk.set_user(None)


def add_breadcrumb(message: str, category: str = "default", level: str = "info", data: dict | None = None) -> None:
    """
    Add a breadcrumb, a trail of events recorded before an error.

    Args:
        message: Breadcrumb message
        category: store, auth, ai, ...
        level: Severity level
        data: Additional data
    """
    try:
        import sentry_sdk
    except ImportError:
        return
    sentry_sdk.add_breadcrumb(message=message, category=category, level=level, data=data or {})
