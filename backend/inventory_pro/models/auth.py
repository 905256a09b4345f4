from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

ROLE_ADMINISTRATOR = "Administrator"
ROLE_MANAGER = "Manager"
ROLE_CASHIER = "Cashier"
ROLE_STOCKER = "Stocker"
ROLE_SYSTEM = "system"

ROLES = (ROLE_ADMINISTRATOR, ROLE_MANAGER, ROLE_CASHIER, ROLE_STOCKER)

USER_STATUS_ACTIVE = "Active"
USER_STATUS_INACTIVE = "Inactive"


@dataclass
class User:
    """
    Store user. `pin` holds the bcrypt hash of the 4-digit PIN and is
    never part of to_public_dict().
    """
    id: int
    username: str
    name: str
    role: str
    status: str = USER_STATUS_ACTIVE
    pin: str = ""
    last_active: Optional[str] = None
    session_valid_until: Optional[str] = None

    def __repr__(self) -> str:
        return f"<User id={self.id} username={self.username!r} role={self.role!r}>"

    @property
    def is_active(self) -> bool:
        return self.status == USER_STATUS_ACTIVE

    @classmethod
    def from_dict(cls, data: dict) -> "User":
        return cls(
            id=data["id"],
            username=data.get("username", ""),
            name=data.get("name", ""),
            role=data.get("role", ROLE_CASHIER),
            status=data.get("status", USER_STATUS_ACTIVE),
            pin=data.get("pin", ""),
            last_active=data.get("lastActive"),
            session_valid_until=data.get("sessionValidUntil"),
        )

    def to_public_dict(self) -> dict:
        out = {
            "id": self.id,
            "username": self.username,
            "name": self.name,
            "role": self.role,
            "status": self.status,
        }
        if self.last_active is not None:
            out["lastActive"] = self.last_active
        if self.session_valid_until is not None:
            out["sessionValidUntil"] = self.session_valid_until
        return out

    def to_dict(self) -> dict:
        return {**self.to_public_dict(), "pin": self.pin}


@dataclass(frozen=True)
class Actor:
    """Who is performing an operation (supplied by the caller's session)."""
    id: int
    username: str
    role: str

    @classmethod
    def system(cls) -> "Actor":
        return cls(id=0, username="system", role=ROLE_SYSTEM)

    @classmethod
    def from_user(cls, user: User) -> "Actor":
        return cls(id=user.id, username=user.username, role=user.role)
