"""
Stored generated documents (proposals and pitch decks).
"""

import json
from datetime import datetime
from typing import Any, Dict, Literal, Optional
from pydantic import BaseModel, ConfigDict

DocumentType = Literal["proposal", "pitch-deck"]


class Document(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    user_id: str
    type: DocumentType
    client_name: str
    client_company: Optional[str] = None
    project_title: Optional[str] = None
    content: str
    metadata: Dict[str, Any] = {}
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Document":
        data = dict(row)
        raw = data.get("metadata")
        if isinstance(raw, str):
            try:
                data["metadata"] = json.loads(raw)
            except ValueError:
                data["metadata"] = {}
        elif raw is None:
            data["metadata"] = {}
        return cls(**data)

    def summary(self) -> Dict[str, Any]:
        """List view without the (large) content body."""
        return self.model_dump(exclude={"content"}, mode="json")
