"""
Per-blueprint rate limits.

The Limiter in studio/__init__.py carries no default limit.  Blueprints that
mutate studio data get WRITE_RATE_LIMIT, the freelancer directory (polled by
the crew dialogs for pre-fill) gets READ_RATE_LIMIT.  /api/v1/health is
registered on the app itself and stays unlimited.

Usage:
    from studio.middleware.rate_limiter import init_rate_limits
    init_rate_limits(app, limiter)
"""

import logging

logger = logging.getLogger(__name__)

WRITE_BLUEPRINTS = ("shooting", "event", "task", "meeting", "user")
READ_BLUEPRINTS = ("freelancer",)


def init_rate_limits(app, limiter):
    """Attach the configured limits to registered blueprints; no-op when TESTING."""
    if app.config.get("TESTING"):
        return

    write_limit = app.config["WRITE_RATE_LIMIT"]
    read_limit = app.config["READ_RATE_LIMIT"]
    for names, limit in ((WRITE_BLUEPRINTS, write_limit), (READ_BLUEPRINTS, read_limit)):
        for name in names:
            bp = app.blueprints.get(name)
            if bp is not None:
                limiter.limit(limit)(bp)

    logger.info("Rate limits: write=%s read=%s", write_limit, read_limit)
