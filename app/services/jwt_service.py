"""
JWT Service: verification of the identity provider's bearer tokens.

Tokens are issued outside this service. ``generate_access_token`` mints an
equivalent token for tests and local tooling only.

Claims:
    sub   user id of the caller (string)
    role  admin | reviewer | mahasiswa
    type  "access"
    iat, exp, jti

Algorithm: HS256, secret JWT_SECRET_KEY (falls back to SECRET_KEY).
"""

import uuid
from datetime import datetime, timedelta, timezone

import jwt
from flask import current_app

ALGORITHM = "HS256"
TOKEN_TYPE = "access"
REQUIRED_CLAIMS = ("sub", "role", "exp")


def _secret() -> str:
    return current_app.config.get("JWT_SECRET_KEY") or current_app.config["SECRET_KEY"]


def generate_access_token(user_id: str, role: str, expires_in: int | None = None) -> str:
    """Sign a token for ``user_id`` acting as ``role``."""
    lifetime = expires_in if expires_in is not None else current_app.config.get("JWT_ACCESS_EXPIRES", 900)
    issued = datetime.now(timezone.utc)
    claims = {
        "sub": str(user_id),
        "role": role,
        "type": TOKEN_TYPE,
        "iat": issued,
        "exp": issued + timedelta(seconds=lifetime),
        "jti": uuid.uuid4().hex,
    }
    return jwt.encode(claims, _secret(), algorithm=ALGORITHM)


def decode_access_token(token: str) -> dict:
    """
    Verify signature, expiry and required claims.

    Raises:
        jwt.ExpiredSignatureError: token past ``exp``.
        jwt.InvalidTokenError:     bad signature, missing claim, or not an
                                   access token.
    """
    claims = jwt.decode(
        token, _secret(), algorithms=[ALGORITHM],
        options={"require": list(REQUIRED_CLAIMS)},
    )
    if claims.get("type") != TOKEN_TYPE:
        raise jwt.InvalidTokenError(f"Expected {TOKEN_TYPE} token, got {claims.get('type')}")
    return claims
