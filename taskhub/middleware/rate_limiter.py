"""
Rate limiting configuration.

The Limiter instance is created in taskhub/__init__.py with no default
limits; this module applies the per-route limits:

    - Bulk endpoints:  BULK_RATE_LIMIT (default 30/minute per remote IP)
    - Health probes:   exempt

Rate limiting is disabled in testing mode.

Usage:
    from taskhub.middleware.rate_limiter import init_rate_limits
    init_rate_limits(app, limiter)
"""

import logging

logger = logging.getLogger(__name__)

BULK_ENDPOINTS = (
    "tasks.bulk_archive",
    "tasks.bulk_status",
    "tasks.bulk_approve",
)


def init_rate_limits(app, limiter):
    """Apply rate limits to the bulk task endpoints."""
    if app.config.get("TESTING") or not app.config.get("RATELIMIT_ENABLED", True):
        app.logger.info("Rate limiter disabled")
        return

    bulk_limit = app.config.get("BULK_RATE_LIMIT", "30/minute")
    for endpoint in BULK_ENDPOINTS:
        view = app.view_functions.get(endpoint)
        if view is not None:
            app.view_functions[endpoint] = limiter.limit(bulk_limit)(view)

    bp = app.blueprints.get("health")
    if bp:
        limiter.exempt(bp)

    app.logger.info("Rate limiter configured: bulk=%s", bulk_limit)
