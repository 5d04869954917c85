"""Auth API: registration, credential sign-in, sessions and email magic links."""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi import APIRouter, Query, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from pitchgenie.core.auth import get_optional_session
from pitchgenie.core.config import settings
from pitchgenie.core.errors import AppError, UnauthorizedError, ValidationError
from pitchgenie.core.logging import get_request_id, log_event
from pitchgenie.core.security import create_session_token, decode_magic_link_token
from pitchgenie.features.auth.magic_link import send_magic_link
from pitchgenie.features.users.service import authorize, create_user, get_or_create_user_by_email

logger = logging.getLogger("pitchgenie")

router = APIRouter(prefix="/api/auth", tags=["auth"])


class RegisterRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None
    name: Optional[str] = None


class SignInRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


class MagicLinkRequest(BaseModel):
    email: Optional[str] = None


def _rid(request: Request) -> Optional[str]:
    return getattr(request.state, "request_id", None) or get_request_id()


def _session_user(claims: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "id": claims["sub"],
        "email": claims.get("email"),
        "name": claims.get("name"),
        "image": claims.get("image"),
    }


def _session_response(user: Dict[str, Any], *, status_code: int = 200, **extra: Any) -> JSONResponse:
    token, expires = create_session_token(user)
    response = JSONResponse(
        status_code=status_code,
        content={"user": user, "expires": expires.isoformat(), "token": token, **extra},
    )
    response.set_cookie(
        settings.SESSION_COOKIE_NAME,
        token,
        max_age=settings.SESSION_MAX_AGE_SECONDS,
        httponly=True,
        samesite="lax",
        secure=settings.ENV.lower() == "production",
    )
    return response


@router.post("/register", status_code=201)
async def register(body: RegisterRequest, request: Request):
    rid = _rid(request)
    if not body.email or not body.password:
        raise ValidationError("Email and password are required", request_id=rid)

    try:
        user = create_user(body.email, body.password, body.name)
    except AppError:
        raise
    except Exception as exc:
        logger.error("auth.register_failed", exc_info=True, extra={"request_id": rid})
        raise AppError("Internal server error", code="internal_error", status_code=500, request_id=rid) from exc

    log_event("info", "auth.registered", request_id=rid, user_id=user.id, event_type="auth.register")
    return JSONResponse(
        status_code=201,
        content={"message": "User created successfully", "user": user.model_dump(mode="json")},
    )


@router.post("/signin")
async def sign_in(body: SignInRequest, request: Request):
    rid = _rid(request)
    user = authorize(body.email, body.password)
    if user is None:
        log_event("warning", "auth.signin_failed", request_id=rid, event_type="auth.signin")
        raise UnauthorizedError("Invalid email or password", request_id=rid)

    log_event("info", "auth.signin", request_id=rid, user_id=user["id"], event_type="auth.signin")
    return _session_response(user)


@router.post("/signout")
async def sign_out():
    response = JSONResponse(content={"message": "Signed out"})
    response.delete_cookie(settings.SESSION_COOKIE_NAME)
    return response


@router.get("/session")
async def get_session(request: Request):
    claims = get_optional_session(request)
    if claims is None:
        raise UnauthorizedError("No session", request_id=_rid(request))
    expires = datetime.fromtimestamp(claims["exp"], timezone.utc)
    return {"user": _session_user(claims), "expires": expires.isoformat()}


@router.post("/session")
async def refresh_session(request: Request):
    claims = get_optional_session(request)
    if claims is None:
        raise UnauthorizedError("No session", request_id=_rid(request))
    return _session_response(_session_user(claims), refreshed=True)


@router.post("/email")
async def request_magic_link(body: MagicLinkRequest, request: Request):
    rid = _rid(request)
    email = (body.email or "").strip()
    if not email or "@" not in email:
        raise ValidationError("A valid email is required", request_id=rid)

    try:
        send_magic_link(email, request_id=rid)
    except Exception as exc:
        logger.error("auth.magic_link_failed", exc_info=True, extra={"request_id": rid})
        raise AppError("Failed to send sign-in email", code="email_failed", status_code=500, request_id=rid) from exc

    return {"message": "Check your email for a sign-in link"}


@router.get("/email/verify")
async def verify_magic_link(request: Request, token: str = Query(...)):
    rid = _rid(request)
    email = decode_magic_link_token(token)
    user = get_or_create_user_by_email(email)
    log_event("info", "auth.magic_link_verified", request_id=rid, user_id=user.id, event_type="auth.magic_link")
    return _session_response(user.session_view())
