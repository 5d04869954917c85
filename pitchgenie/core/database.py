"""
Storage for PitchGenie: one SQLAlchemy engine per process and the
Core table definitions.

PostgreSQL in deployments; tests point TEST_DATABASE_URL at a SQLite file.
All writes go through get_db_session(), which commits on success and rolls
back on any exception.
"""
import logging
import os
from contextlib import contextmanager
from typing import Any, Dict, Iterator, Optional

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Index,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    UniqueConstraint,
    create_engine,
    event,
    text,
)
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import QueuePool
from sqlalchemy.sql import func

from pitchgenie.core.config import settings

logger = logging.getLogger("pitchgenie")

metadata = MetaData()

POOL_SIZE = 10
MAX_OVERFLOW = 20
POOL_TIMEOUT = 30
POOL_RECYCLE = 3600

_engine: Optional[Engine] = None
_session_factory: Optional[sessionmaker] = None


def _database_url() -> str:
    url = os.getenv("TEST_DATABASE_URL") or settings.DATABASE_URL
    if not url:
        raise RuntimeError("DATABASE_URL is not configured")
    return url


def _engine_options(url: str) -> Dict[str, Any]:
    if url.startswith("sqlite"):
        # TestClient serves requests from a worker thread
        return {"connect_args": {"check_same_thread": False}}
    return {
        "poolclass": QueuePool,
        "pool_size": POOL_SIZE,
        "max_overflow": MAX_OVERFLOW,
        "pool_timeout": POOL_TIMEOUT,
        "pool_recycle": POOL_RECYCLE,
        "pool_pre_ping": True,
    }


def get_engine() -> Engine:
    global _engine, _session_factory
    if _engine is None:
        url = _database_url()
        _engine = create_engine(url, **_engine_options(url))
        if url.startswith("sqlite"):
            event.listen(_engine, "connect", _sqlite_on_connect)
        _session_factory = sessionmaker(bind=_engine, autoflush=False)
        logger.info("database.engine_created", extra={"dialect": _engine.dialect.name})
    return _engine


def _sqlite_on_connect(dbapi_connection, _record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.close()


def get_session_factory() -> sessionmaker:
    get_engine()
    return _session_factory


@contextmanager
def get_db_session() -> Iterator[Session]:
    """Unit of work: commit when the block exits cleanly, roll back otherwise."""
    session = get_session_factory()()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def create_all_tables() -> None:
    metadata.create_all(bind=get_engine())


def drop_all_tables() -> None:
    metadata.drop_all(bind=get_engine())


def reset_database() -> None:
    """Empty schema rebuilt from scratch; used between tests."""
    drop_all_tables()
    create_all_tables()


def check_connection() -> bool:
    try:
        with get_engine().connect() as conn:
            conn.execute(text("SELECT 1"))
    except Exception as exc:
        logger.warning("database.check_failed", extra={"error_message": str(exc)})
        return False
    return True


users = Table(
    'users',
    metadata,
    Column('id', String(64), primary_key=True),
    Column('email', String(320), nullable=False, unique=True),
    Column('name', Text, nullable=True),
    Column('password', String(255), nullable=True),  # bcrypt hash; NULL for magic-link users
    Column('image', Text, nullable=True),
    Column('email_verified', DateTime(timezone=True), nullable=True),
    Column('created_at', DateTime(timezone=True), server_default=func.now(), nullable=False),
    Column('updated_at', DateTime(timezone=True), server_default=func.now(), nullable=False),
)

documents = Table(
    'documents',
    metadata,
    Column('id', String(64), primary_key=True),
    Column('user_id', String(64), nullable=False, index=True),
    Column('type', String(20), nullable=False),  # proposal | pitch-deck
    Column('client_name', Text, nullable=False),
    Column('client_company', Text, nullable=True),
    Column('project_title', Text, nullable=True),
    Column('content', Text, nullable=False),
    Column('metadata', Text, nullable=True),  # serialized JSON
    Column('created_at', DateTime(timezone=True), server_default=func.now(), nullable=False),
    Column('updated_at', DateTime(timezone=True), server_default=func.now(), nullable=False),
    Index('idx_documents_user_created', 'user_id', 'created_at'),
)

user_subscriptions = Table(
    'user_subscriptions',
    metadata,
    Column('id', Integer, primary_key=True, autoincrement=True),
    Column('user_id', String(64), nullable=False, unique=True),
    Column('plan', String(20), nullable=False, server_default='FREE'),
    Column('status', String(20), nullable=False, server_default='active'),
    Column('stripe_customer_id', String(255), nullable=True, index=True),
    Column('stripe_subscription_id', String(255), nullable=True, unique=True),
    Column('stripe_price_id', String(255), nullable=True),
    Column('current_period_start', DateTime(timezone=True), nullable=True),
    Column('current_period_end', DateTime(timezone=True), nullable=True),
    Column('cancel_at_period_end', Boolean, nullable=False, server_default=text('false')),
    Column('created_at', DateTime(timezone=True), server_default=func.now(), nullable=False),
    Column('updated_at', DateTime(timezone=True), server_default=func.now(), nullable=False),
)

usage = Table(
    'usage',
    metadata,
    Column('id', Integer, primary_key=True, autoincrement=True),
    Column('user_id', String(64), nullable=False),
    Column('month', String(7), nullable=False),  # YYYY-MM (UTC)
    Column('proposals', Integer, nullable=False, server_default=text('0')),
    Column('pitch_decks', Integer, nullable=False, server_default=text('0')),
    Column('created_at', DateTime(timezone=True), server_default=func.now(), nullable=False),
    Column('updated_at', DateTime(timezone=True), server_default=func.now(), nullable=False),
    UniqueConstraint('user_id', 'month', name='uq_usage_user_month'),
)

billing_events = Table(
    'billing_events',
    metadata,
    Column('id', Integer, primary_key=True, autoincrement=True),
    Column('stripe_event_id', String(255), nullable=False, unique=True),
    Column('event_type', String(100), nullable=False),
    Column('payload_hash', String(64), nullable=False),
    Column('processed', Boolean, nullable=False, server_default=text('false')),
    Column('processed_at', DateTime(timezone=True), nullable=True),
    Column('error', Text, nullable=True),
    Column('created_at', DateTime(timezone=True), server_default=func.now(), nullable=False),
)
