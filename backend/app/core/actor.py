"""
Authenticated caller passed explicitly into every domain operation.

Domain services never look at request or session state; the API layer
builds an Actor from the verified token and hands it over.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional
from backend.app.models.enums import UserRole


@dataclass(frozen=True)
class Actor:
    id: str
    role: UserRole
    admin_id: Optional[str] = None
    name: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    @property
    def is_driver(self) -> bool:
        return self.role == UserRole.DRIVER

    @property
    def owner_id(self) -> str:
        """The admin whose data this actor works on."""
        return self.id if self.is_admin else self.admin_id

    @classmethod
    def from_token_payload(cls, payload: Dict[str, Any]) -> "Actor":
        return cls(
            id=payload["user_id"],
            role=UserRole(payload["role"]),
            admin_id=payload.get("admin_id"),
            name=payload.get("sub"),
        )
