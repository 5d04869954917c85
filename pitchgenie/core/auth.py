"""
Request authentication.

Resolves the session user from an `Authorization: Bearer <token>` header,
falling back to the session cookie set by /api/auth/signin.
"""
from typing import Any, Dict, Optional

from fastapi import Request

from pitchgenie.core.config import settings
from pitchgenie.core.errors import UnauthorizedError
from pitchgenie.core.security import decode_session_token


def _extract_token(request: Request) -> Optional[str]:
    header = request.headers.get("authorization")
    if header:
        scheme, _, token = header.partition(" ")
        if scheme.lower() == "bearer" and token.strip():
            return token.strip()
    return request.cookies.get(settings.SESSION_COOKIE_NAME)


def get_optional_session(request: Request) -> Optional[Dict[str, Any]]:
    """Decoded session claims, or None when the request carries no valid session."""
    token = _extract_token(request)
    if not token:
        return None
    try:
        return decode_session_token(token)
    except UnauthorizedError:
        return None


def get_current_session(request: Request) -> Dict[str, Any]:
    session = get_optional_session(request)
    if session is None:
        raise UnauthorizedError("Unauthorized")
    request.state.user_id = session["sub"]
    return session


def get_current_user_id(request: Request) -> str:
    """FastAPI dependency: the authenticated user's id, or 401."""
    return get_current_session(request)["sub"]
