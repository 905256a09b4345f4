# Overview: Append-only activity log; in-memory repository mirrored to activity_logs.json.

from __future__ import annotations

import logging
import threading

from ..models import ActivityLogEntry, Actor
from ..storage import ACTIVITY_LOGS, FileStorage, next_id
from ..time_utils import utcnow, to_utc_z, parse_iso_datetime

logger = logging.getLogger(__name__)

"""
Activity Log Invariants (authoritative)

- Entries are append-only: no update, no delete.
- The repository loads the file once at construction and rewrites the whole
  file after every append (flush-on-write).
- A failure to record an entry is logged and never fails the business
  operation being recorded.
"""


LOG_CATEGORIES = {
    "USER": "user",
    "INVENTORY": "inventory",
    "SALES": "sales",
    "LOSSES": "losses",
    "SETTINGS": "settings",
    "AUTHENTICATION": "authentication",
    "SYSTEM": "system",
}

LOG_ACTIONS = {
    "USER": {
        "CREATE": "User Created",
        "UPDATE": "User Updated",
        "DELETE": "User Deleted",
        "STATUS_CHANGE": "User Status Changed",
    },
    "INVENTORY": {
        "CREATE": "Inventory Item Created",
        "UPDATE": "Inventory Item Updated",
        "DELETE": "Inventory Item Deleted",
        "BULK_IMPORT": "Bulk Inventory Import",
    },
    "SALES": {
        "CREATE": "Sale Recorded",
        "REPRINT": "Receipt Reprinted",
        "REFUND": "Sale Refunded",
    },
    "LOSSES": {
        "CREATE": "Loss Recorded",
        "UPDATE": "Loss Updated",
    },
    "SETTINGS": {
        "UPDATE": "Settings Updated",
    },
    "AUTHENTICATION": {
        "LOGIN": "User Login",
        "LOGOUT": "User Logout",
        "FAILED_LOGIN": "Failed Login Attempt",
    },
    "SYSTEM": {
        "ERROR": "System Error",
        "STARTUP": "System Startup",
    },
}

# Hidden from the administrator log view
_HIDDEN_CATEGORIES = {LOG_CATEGORIES["AUTHENTICATION"], LOG_CATEGORIES["SYSTEM"]}


def _newest_first(entries):
    # Unparseable timestamps sort last
    def key(entry: ActivityLogEntry):
        try:
            parsed = parse_iso_datetime(entry.timestamp)
        except ValueError:
            parsed = None
        if parsed is None:
            return (0, 0.0, entry.id)
        return (1, parsed.timestamp(), entry.id)
    return sorted(entries, key=key, reverse=True)


class ActivityLogRepository:
    """
    Activity log bound to one FileStorage.

    Created once per application (create_app stores it in app.extensions);
    pass it to the engines that record activity.
    """

    def __init__(self, storage: FileStorage):
        self.storage = storage
        self._lock = threading.RLock()
        self._entries: dict[int, ActivityLogEntry] = {}
        self._next_id = 1
        self.reload()

    def reload(self) -> None:
        """(Re)load the cache from disk. A corrupt file yields an empty log."""
        with self._lock:
            self._entries.clear()
            records = self.storage.read(ACTIVITY_LOGS)
            for record in records:
                try:
                    entry = ActivityLogEntry.from_dict(record)
                except (KeyError, TypeError):
                    logger.warning("Skipping malformed activity log record: %r", record)
                    continue
                self._entries[entry.id] = entry
            self._next_id = next_id([e.to_dict() for e in self._entries.values()])

    def _flush(self) -> bool:
        return self.storage.write(ACTIVITY_LOGS, [e.to_dict() for e in self._entries.values()])

    def create(
        self,
        user_id: int,
        username: str,
        category: str,
        action: str,
        details: str | None = None,
    ) -> ActivityLogEntry:
        with self._lock:
            entry = ActivityLogEntry(
                id=self._next_id,
                user_id=user_id,
                username=username,
                action=action,
                category=category,
                details=details or "",
                timestamp=to_utc_z(utcnow()),
            )
            self._entries[entry.id] = entry
            self._next_id += 1
            if not self._flush():
                logger.error("Activity log entry %s kept in memory only", entry.id)
            return entry

    def list(self) -> list[ActivityLogEntry]:
        with self._lock:
            return _newest_first(self._entries.values())

    def list_by_category(self, category: str) -> list[ActivityLogEntry]:
        return [e for e in self.list() if e.category == category]

    def list_by_user(self, user_id: int) -> list[ActivityLogEntry]:
        return [e for e in self.list() if e.user_id == user_id]

    def get(self, entry_id: int) -> ActivityLogEntry | None:
        with self._lock:
            return self._entries.get(entry_id)

    def list_visible(
        self,
        *,
        category: str | None = None,
        user_id: int | None = None,
    ) -> list[ActivityLogEntry]:
        """
        Administrator log view: optional category or user filter (category
        wins), minus authentication/system entries and startup noise.
        """
        if category:
            entries = self.list_by_category(category)
        elif user_id:
            entries = self.list_by_user(user_id)
        else:
            entries = self.list()

        visible = []
        for entry in entries:
            if entry.username == "system" and "System startup" in entry.details:
                continue
            if entry.category in _HIDDEN_CATEGORIES:
                continue
            visible.append(entry)
        return visible

    @staticmethod
    def visible_categories() -> list[str]:
        return [c for c in LOG_CATEGORIES.values() if c not in _HIDDEN_CATEGORIES]


def log_activity(
    activity_log: ActivityLogRepository | None,
    actor: Actor | None,
    category: str,
    action: str,
    details: str | None = None,
) -> ActivityLogEntry | None:
    """
    Record an activity entry on behalf of `actor` (system when None).

    Never raises: audit failures are logged and swallowed so the business
    operation that triggered them still succeeds.
    """
    if activity_log is None:
        return None
    actor = actor or Actor.system()
    try:
        return activity_log.create(actor.id, actor.username, category, action, details)
    except Exception:
        logger.exception("Failed to log activity: %s / %s", category, action)
        return None


def log_system_activity(activity_log: ActivityLogRepository | None, action: str, details: str | None = None):
    return log_activity(activity_log, Actor.system(), LOG_CATEGORIES["SYSTEM"], action, details)
