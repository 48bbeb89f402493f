"""
Signed bearer tokens carrying a role claim.

Every failure mode (empty, malformed, expired, wrong role, unknown user)
produces the same error map so callers cannot tell them apart.
"""
import logging
from datetime import datetime, timedelta, timezone
from functools import wraps

import jwt
from flask import current_app, g, jsonify, request

from clinic.models import Admin, Doctor, Patient

logger = logging.getLogger("clinic.auth")

ROLES = ("admin", "doctor", "patient")
INVALID_TOKEN = {"error": "Invalid or expired token"}


def generate_token(identifier: str, role: str) -> str:
    """Issue a token for an admin username or a doctor/patient email."""
    if role not in ROLES:
        raise ValueError(f"unknown role: {role}")
    now = datetime.now(timezone.utc)
    payload = {
        "sub": identifier,
        "role": role,
        "iat": now,
        "exp": now + timedelta(days=current_app.config["TOKEN_TTL_DAYS"]),
    }
    return jwt.encode(
        payload,
        current_app.config["JWT_SECRET"],
        algorithm=current_app.config["JWT_ALGORITHM"],
    )


def _decode(token: str):
    try:
        return jwt.decode(
            token,
            current_app.config["JWT_SECRET"],
            algorithms=[current_app.config["JWT_ALGORITHM"]],
            options={"require": ["sub", "role", "exp"]},
        )
    except jwt.PyJWTError as e:
        logger.info(f"[decode] rejected token: {e.__class__.__name__}")
        return None


def _lookup(identifier: str, role: str):
    if role == "admin":
        return Admin.query.filter_by(username=identifier).first()
    if role == "doctor":
        return Doctor.query.filter_by(email=identifier).first()
    if role == "patient":
        return Patient.query.filter_by(email=identifier).first()
    return None


def identify(token: str | None):
    """Return (user, role) for a valid token, else (None, None)."""
    if not token or not token.strip():
        return None, None
    claims = _decode(token.strip())
    if not claims:
        return None, None
    role = claims.get("role")
    user = _lookup(claims.get("sub"), role)
    if user is None:
        return None, None
    return user, role


def validate_token(token: str | None, role: str) -> dict:
    """Empty dict when the token is valid for `role`, otherwise the generic error map."""
    user, token_role = identify(token)
    if user is None or token_role != role:
        return dict(INVALID_TOKEN)
    return {}


def extract_token() -> str:
    # Header
    hdr = request.headers.get("Authorization", "")
    if hdr.startswith("Bearer "):
        return hdr[7:].strip()
    # Cookie
    c = request.cookies.get("Authorization", "")
    if c.startswith("Bearer "):
        return c[7:].strip()
    # Query param
    q = request.args.get("token", "")
    if q:
        return q.strip()
    return ""


def require_role(*roles):
    """Reject the request with 401 unless the bearer token holds one of `roles`."""
    def decorator(f):
        @wraps(f)
        def wrapper(*args, **kwargs):
            user, role = identify(extract_token())
            if user is None or role not in roles:
                return jsonify(INVALID_TOKEN), 401
            g.current_user = user
            g.current_role = role
            return f(*args, **kwargs)
        return wrapper
    return decorator
