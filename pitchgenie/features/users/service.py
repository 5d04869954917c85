"""
User domain service.
- create_user(email, password, name)
- get_user_by_email / get_user
- authorize(email, password)  credentials check used by sign-in
- get_or_create_user_by_email(email)  magic-link sign-in
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional
from uuid import uuid4
from sqlalchemy import select, insert, update
from sqlalchemy.exc import IntegrityError

from pitchgenie.core.database import get_db_session, users
from pitchgenie.core.errors import ValidationError, ConflictError
from pitchgenie.core.security import hash_password, verify_password
from pitchgenie.models.user import User


def _normalize_email(email: Optional[str]) -> str:
    return (email or "").strip().lower()


def _get_row(clause) -> Optional[Dict[str, Any]]:
    with get_db_session() as session:
        row = session.execute(select(users).where(clause)).mappings().first()
        return dict(row) if row else None


def get_user(user_id: str) -> Optional[User]:
    row = _get_row(users.c.id == user_id)
    return User.from_row(row) if row else None


def get_user_by_email(email: str) -> Optional[User]:
    row = _get_row(users.c.email == _normalize_email(email))
    return User.from_row(row) if row else None


def create_user(email: str, password: Optional[str], name: Optional[str] = None, *, email_verified: Optional[datetime] = None) -> User:
    """Create a user; the password (if any) is stored as a bcrypt hash.

    Raises:
        ValidationError: email missing
        ConflictError: email already registered
    """
    normalized = _normalize_email(email)
    if not normalized:
        raise ValidationError("Email is required")

    if _get_row(users.c.email == normalized):
        raise ConflictError("User with this email already exists", status_code=400)

    now = datetime.now(timezone.utc)
    values = {
        "id": uuid4().hex,
        "email": normalized,
        "name": name or None,
        "password": hash_password(password) if password else None,
        "image": None,
        "email_verified": email_verified,
        "created_at": now,
        "updated_at": now,
    }
    try:
        with get_db_session() as session:
            session.execute(insert(users).values(**values))
    except IntegrityError:
        # Concurrent registration for the same email won the unique index
        raise ConflictError("User with this email already exists", status_code=400)

    values.pop("password")
    return User(**values)


def authorize(email: Optional[str], password: Optional[str]) -> Optional[Dict[str, Any]]:
    """Credentials check. Returns the session view of the user, or None.

    None covers every failure (missing input, unknown email, user without a
    password hash, wrong password) so callers cannot tell which one happened.
    """
    if not email or not password:
        return None

    row = _get_row(users.c.email == _normalize_email(email))
    if not row or not row.get("password"):
        return None

    if not verify_password(password, row["password"]):
        return None

    return User.from_row(row).session_view()


def get_or_create_user_by_email(email: str) -> User:
    """Resolve the user for a verified magic-link sign-in, creating it on first use."""
    normalized = _normalize_email(email)
    now = datetime.now(timezone.utc)
    existing = get_user_by_email(normalized)
    if existing is None:
        try:
            return create_user(normalized, None, email_verified=now)
        except ConflictError:
            existing = get_user_by_email(normalized)
            if existing is None:
                raise

    if existing.email_verified is None:
        with get_db_session() as session:
            session.execute(
                update(users)
                .where(users.c.id == existing.id)
                .values(email_verified=now, updated_at=now)
            )
        return existing.model_copy(update={"email_verified": now, "updated_at": now})
    return existing
