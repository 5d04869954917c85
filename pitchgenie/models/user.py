from datetime import datetime
from typing import Any, Dict, Optional
from pydantic import BaseModel, ConfigDict


class User(BaseModel):
    """Public view of a user row. The password hash never leaves the service layer."""
    model_config = ConfigDict(frozen=True)

    id: str
    email: str
    name: Optional[str] = None
    image: Optional[str] = None
    email_verified: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "User":
        return cls(**{k: v for k, v in row.items() if k in cls.model_fields})

    def session_view(self) -> Dict[str, Any]:
        return {"id": self.id, "email": self.email, "name": self.name, "image": self.image}
