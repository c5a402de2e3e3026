"""
Role Decorators: JWT-aware role checks for route protection.

Usage:
    @bp.route("/system-config/toggles/<key>", methods=["PUT"])
    @require_role("admin")
    def set_toggle(key):
        ...

    @bp.route("/reviews/<int:assignment_id>/administrasi", methods=["GET"])
    @require_role("admin", "reviewer")
    def get_administrasi(assignment_id):
        viewer = current_viewer()
        ...

Without a valid token the request is rejected with 401; a role outside the
allowed set gets 403. Finer visibility (ownership, blind review) is decided
in the services from ``current_viewer()``.
"""

import functools
import logging

from flask import g

from app.services.helpers.review_access import ROLES, Viewer
from app.utils.errors import E, api_error

logger = logging.getLogger(__name__)


def current_viewer() -> Viewer:
    """Caller identity resolved by the JWT middleware."""
    return Viewer(
        user_id=getattr(g, "jwt_user_id", None),
        role=getattr(g, "jwt_role", None),
    )


def require_role(*roles: str):
    """
    Decorator: require an authenticated caller whose role is in ``roles``.

    With no roles given any authenticated caller passes.
    """
    allowed = frozenset(roles) if roles else ROLES

    def decorator(f):
        @functools.wraps(f)
        def decorated(*args, **kwargs):
            user_id = getattr(g, "jwt_user_id", None)
            if user_id is None:
                return api_error(E.UNAUTHORIZED, "Authentication required")

            role = getattr(g, "jwt_role", None)
            if role not in allowed:
                logger.warning(
                    "User %s denied: role '%s' not in %s on %s",
                    user_id, role, sorted(allowed), f.__name__,
                )
                return api_error(
                    E.FORBIDDEN, "Akses ditolak",
                    details={"required_roles": sorted(allowed)},
                )

            return f(*args, **kwargs)
        return decorated
    return decorator
