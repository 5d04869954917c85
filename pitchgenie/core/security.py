"""
Password hashing and signed tokens.

Sessions are stateless HS256 JWTs signed with AUTH_SECRET. Magic-link
tokens use the same key with a distinct `purpose` claim so one can never
be replayed as the other.
"""
import os
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import bcrypt
import jwt

from pitchgenie.core.config import settings
from pitchgenie.core.errors import UnauthorizedError, ValidationError

BCRYPT_ROUNDS = 12
# bcrypt only reads the first 72 bytes; newer releases refuse longer input
MAX_PASSWORD_BYTES = 72
ALGORITHM = "HS256"

SESSION_PURPOSE = "session"
MAGIC_LINK_PURPOSE = "magic-link"


def hash_password(password: str) -> str:
    encoded = password.encode("utf-8")
    if len(encoded) > MAX_PASSWORD_BYTES:
        raise ValidationError("Password is too long")
    return bcrypt.hashpw(encoded, bcrypt.gensalt(rounds=BCRYPT_ROUNDS)).decode("utf-8")


def verify_password(password: str, password_hash: Optional[str]) -> bool:
    if not password or not password_hash:
        return False
    if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # Malformed hash in storage
        return False


def _secret() -> str:
    secret = os.getenv("AUTH_SECRET") or settings.AUTH_SECRET
    if not secret:
        raise RuntimeError("AUTH_SECRET is not configured")
    return secret


def _encode(claims: Dict[str, Any], max_age_seconds: int, now: Optional[datetime] = None) -> tuple[str, datetime]:
    issued = now or datetime.now(timezone.utc)
    expires = issued + timedelta(seconds=max_age_seconds)
    payload = {**claims, "iat": int(issued.timestamp()), "exp": int(expires.timestamp())}
    return jwt.encode(payload, _secret(), algorithm=ALGORITHM), expires


def _decode(token: str, purpose: str) -> Dict[str, Any]:
    try:
        payload = jwt.decode(token, _secret(), algorithms=[ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise UnauthorizedError("Token expired", code="token_expired")
    except jwt.InvalidTokenError:
        raise UnauthorizedError("Invalid token", code="invalid_token")
    if payload.get("purpose") != purpose or not payload.get("sub"):
        raise UnauthorizedError("Invalid token", code="invalid_token")
    return payload


def create_session_token(user: Dict[str, Any], now: Optional[datetime] = None) -> tuple[str, datetime]:
    """Issue a session token for an authorized user. Returns (token, expires_at)."""
    claims = {
        "sub": user["id"],
        "email": user.get("email"),
        "name": user.get("name"),
        "image": user.get("image"),
        "purpose": SESSION_PURPOSE,
    }
    return _encode(claims, settings.SESSION_MAX_AGE_SECONDS, now)


def decode_session_token(token: str) -> Dict[str, Any]:
    return _decode(token, SESSION_PURPOSE)


def create_magic_link_token(email: str, now: Optional[datetime] = None) -> tuple[str, datetime]:
    return _encode({"sub": email.lower(), "purpose": MAGIC_LINK_PURPOSE}, settings.MAGIC_LINK_MAX_AGE_SECONDS, now)


def decode_magic_link_token(token: str) -> str:
    """Return the email address a magic-link token was issued for."""
    return _decode(token, MAGIC_LINK_PURPOSE)["sub"]
