from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ActivityLogEntry:
    """Append-only audit record. Never mutated or deleted."""
    id: int
    user_id: int
    username: str
    action: str
    category: str
    details: str
    timestamp: str

    @classmethod
    def from_dict(cls, data: dict) -> "ActivityLogEntry":
        return cls(
            id=data["id"],
            user_id=data.get("userId", 0),
            username=data.get("username", ""),
            action=data.get("action", ""),
            category=data.get("category", ""),
            details=data.get("details") or "",
            timestamp=str(data.get("timestamp", "")),
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "userId": self.user_id,
            "username": self.username,
            "action": self.action,
            "category": self.category,
            "details": self.details,
            "timestamp": self.timestamp,
        }
