"""
JWT Auth Middleware: Parses JWT from Authorization header, sets g.jwt_*.

    Authorization: Bearer <token>  →  g.jwt_user_id, g.jwt_role

Missing, expired or invalid tokens leave both values None; the
``require_role`` decorator turns that into 401 on protected endpoints.
"""

import logging

import jwt as pyjwt
from flask import g, request

from app.services.helpers.review_access import ROLES
from app.services.jwt_service import decode_access_token

logger = logging.getLogger(__name__)

# Paths that skip JWT auth entirely
JWT_SKIP_PREFIXES = (
    "/api/v1/health",
)


def init_jwt_middleware(app):
    """Register JWT middleware as a before_request hook."""

    @app.before_request
    def _jwt_auth():
        g.jwt_user_id = None
        g.jwt_role = None

        path = request.path
        if not path.startswith("/api/v1/"):
            return
        for prefix in JWT_SKIP_PREFIXES:
            if path.startswith(prefix):
                return

        auth_header = request.headers.get("Authorization", "")
        if not auth_header.startswith("Bearer "):
            return

        token = auth_header[7:]  # Strip "Bearer "

        try:
            payload = decode_access_token(token)
        except pyjwt.ExpiredSignatureError:
            logger.debug("Expired token on %s", path)
            return
        except pyjwt.InvalidTokenError:
            logger.debug("Invalid token on %s", path)
            return

        role = payload.get("role")
        if role not in ROLES:
            logger.warning("Token with unknown role=%s rejected", role)
            return
        g.jwt_user_id = payload.get("sub")
        g.jwt_role = role
