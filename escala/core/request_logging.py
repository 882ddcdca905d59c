# escala/core/request_logging.py
"""
Request logging middleware and helpers for auth/security events.
"""

import time
import uuid
from collections.abc import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from escala.core.logging_config import get_logger

logger = get_logger(__name__)

# Paths logged at DEBUG on success
QUIET_PATHS = frozenset({"/health"})


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Logs every HTTP request with timing and status code.

    Each request gets an id (an incoming X-Request-ID is reused) that is
    echoed back in the response headers.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = request_id

        start_time = time.perf_counter()
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
        except Exception:
            duration_ms = (time.perf_counter() - start_time) * 1000
            logger.error(
                "%s %s - unhandled error (%.2fms)",
                request.method,
                request.url.path,
                duration_ms,
                extra={"extra_fields": self._log_data(request, request_id, status_code, duration_ms)},
                exc_info=True,
            )
            raise

        duration_ms = (time.perf_counter() - start_time) * 1000
        extra = {"extra_fields": self._log_data(request, request_id, status_code, duration_ms)}
        message = "%s %s - %s (%.2fms)"
        args = (request.method, request.url.path, status_code, duration_ms)

        if status_code >= 500:
            logger.error(message, *args, extra=extra)
        elif status_code >= 400:
            logger.warning(message, *args, extra=extra)
        elif request.url.path in QUIET_PATHS:
            logger.debug(message, *args, extra=extra)
        else:
            logger.info(message, *args, extra=extra)

        response.headers["X-Request-ID"] = request_id
        return response

    @staticmethod
    def _log_data(request: Request, request_id: str, status_code: int, duration_ms: float) -> dict:
        log_data = {
            "request_id": request_id,
            "method": request.method,
            "path": request.url.path,
            "status_code": status_code,
            "duration_ms": round(duration_ms, 2),
        }
        user = getattr(request.state, "user", None)
        if user is not None:
            log_data["user_id"] = user.id
            log_data["username"] = user.username
        return log_data


def log_auth_event(
    event_type: str,
    username: str,
    user_id: int | None = None,
    success: bool = True,
    details: dict | None = None,
) -> None:
    """
    Log authentication-related events.

    Args:
        event_type: login, logout, register, ...
        username: Username involved
        user_id: User ID if known
        success: Whether the event was successful
        details: Additional details to log
    """
    log_data = {"event_type": event_type, "username": username, "success": success}
    if user_id:
        log_data["user_id"] = user_id
    if details:
        log_data.update(details)

    extra = {"extra_fields": log_data}
    if success:
        logger.info("Auth event: %s - %s - SUCCESS", event_type, username, extra=extra)
    else:
        logger.warning("Auth event: %s - %s - FAILED", event_type, username, extra=extra)


def log_security_event(event_type: str, details: dict, level: str = "warning") -> None:
    """
    Log security-related events such as permission denials.

    Args:
        event_type: Type of security event
        details: Event details
        level: info, warning or error
    """
    extra = {"extra_fields": {"event_type": event_type, **details}}
    log = {"error": logger.error, "warning": logger.warning}.get(level, logger.info)
    log("Security event: %s", event_type, extra=extra)
