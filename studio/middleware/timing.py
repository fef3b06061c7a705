"""
Request timing middleware.

Tags every response with X-Request-ID (echoed from the request or generated)
and X-Request-Duration-Ms.  Requests slower than SLOW_REQUEST_MS are logged
as warnings, 5xx responses as errors, the rest at debug level.
"""

import logging
import time
import uuid

from flask import Flask, g, request

logger = logging.getLogger(__name__)

_UNLOGGED_PATHS = frozenset({"/api/v1/health"})


def init_request_timing(app: Flask):
    slow_ms = app.config.get("SLOW_REQUEST_MS", 1000)

    @app.before_request
    def _start_timer():
        g.request_start = time.perf_counter()
        g.request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex[:12]

    @app.after_request
    def _log_request(response):
        start = getattr(g, "request_start", None)
        if start is None:
            return response

        duration_ms = (time.perf_counter() - start) * 1000
        response.headers["X-Request-ID"] = g.request_id
        response.headers["X-Request-Duration-Ms"] = f"{duration_ms:.1f}"
        if request.path in _UNLOGGED_PATHS:
            return response

        if duration_ms > slow_ms:
            level, label = logging.WARNING, "Slow request"
        elif response.status_code >= 500:
            level, label = logging.ERROR, "Server error"
        else:
            level, label = logging.DEBUG, "Request"
        logger.log(
            level, "%s: %s %s %d (%.0fms)",
            label, request.method, request.path, response.status_code, duration_ms,
            extra={
                "method": request.method,
                "path": request.path,
                "status": response.status_code,
                "duration_ms": duration_ms,
                "remote_addr": request.remote_addr,
                "request_id": g.request_id,
                "actor_id": getattr(g, "current_user_id", None),
            },
        )
        return response
