"""
Rate limiting configuration.

Applies per-blueprint rate limits using Flask-Limiter. The Limiter instance
is created in app/__init__.py with no default limits; this module applies
granular limits per route category.

Usage:
    from app.middleware.rate_limiter import init_rate_limits
    init_rate_limits(app, limiter)
"""

import logging

logger = logging.getLogger(__name__)

# Admin mutations that touch every proposal at once
PHASE_LIMIT = "20/minute"
# Reviewer / student writes
WRITE_LIMIT = "60/minute"
# Dashboards and read-heavy endpoints
READ_LIMIT = "200/minute"


def init_rate_limits(app, limiter):
    """
    Apply rate limits to API blueprints.

    Limits (per remote IP):
        - Phase toggles:    20/minute  (each flip cascades over all proposals)
        - Write endpoints:  60/minute
        - Read endpoints:   200/minute
        - Health check:     exempt

    Rate limiting is disabled in testing mode.
    """

    if app.config.get("TESTING"):
        app.logger.info("Rate limiter disabled (TESTING=True)")
        return

    bp = app.blueprints.get("system_config")
    if bp:
        limiter.limit(PHASE_LIMIT)(bp)

    for bp_name in ("assignment", "review", "annotation", "proposal", "team", "kriteria"):
        bp = app.blueprints.get(bp_name)
        if bp:
            limiter.limit(WRITE_LIMIT)(bp)

    bp = app.blueprints.get("dashboard")
    if bp:
        limiter.limit(READ_LIMIT)(bp)

    bp = app.blueprints.get("health")
    if bp:
        limiter.exempt(bp)

    app.logger.info(
        "Rate limiter configured: phase: %s, write: %s, read: %s",
        PHASE_LIMIT, WRITE_LIMIT, READ_LIMIT,
    )
