"""
Generated document storage.

Documents are always read through the owner's user_id; a document that
belongs to someone else is reported exactly like a missing one.
"""

import json
import secrets
import string
import time
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from sqlalchemy import select, insert

from pitchgenie.core.database import get_db_session, documents
from pitchgenie.models.document import Document, DocumentType

_BASE36 = string.digits + string.ascii_lowercase

ID_PREFIXES = {"proposal": "prop", "pitch-deck": "deck"}


def generate_document_id(doc_type: DocumentType, now_ms: Optional[int] = None) -> str:
    """`prop_<epoch ms>_<9 base36 chars>` or `deck_...`."""
    prefix = ID_PREFIXES[doc_type]
    stamp = now_ms if now_ms is not None else int(time.time() * 1000)
    suffix = "".join(secrets.choice(_BASE36) for _ in range(9))
    return f"{prefix}_{stamp}_{suffix}"


def create_document(
    *,
    user_id: str,
    doc_type: DocumentType,
    client_name: str,
    content: str,
    client_company: Optional[str] = None,
    project_title: Optional[str] = None,
    metadata: Optional[Dict[str, Any]] = None,
) -> Document:
    now = datetime.now(timezone.utc)
    values = {
        "id": generate_document_id(doc_type),
        "user_id": user_id,
        "type": doc_type,
        "client_name": client_name,
        "client_company": client_company,
        "project_title": project_title,
        "content": content,
        "metadata": json.dumps(metadata or {}, default=str),
        "created_at": now,
        "updated_at": now,
    }
    with get_db_session() as session:
        session.execute(insert(documents).values(**values))
    return Document.from_row(values)


def get_document(document_id: str, user_id: str, doc_type: Optional[DocumentType] = None) -> Optional[Document]:
    stmt = select(documents).where(documents.c.id == document_id, documents.c.user_id == user_id)
    if doc_type:
        stmt = stmt.where(documents.c.type == doc_type)
    with get_db_session() as session:
        row = session.execute(stmt).mappings().first()
        return Document.from_row(dict(row)) if row else None


def list_user_documents(user_id: str, doc_type: Optional[DocumentType] = None, limit: int = 100) -> List[Document]:
    stmt = (
        select(documents)
        .where(documents.c.user_id == user_id)
        .order_by(documents.c.created_at.desc(), documents.c.id.desc())
        .limit(limit)
    )
    if doc_type:
        stmt = stmt.where(documents.c.type == doc_type)
    with get_db_session() as session:
        rows = session.execute(stmt).mappings().all()
        return [Document.from_row(dict(row)) for row in rows]
