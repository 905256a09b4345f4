# Overview: Store users over users.json with bcrypt-hashed PINs.

"""
User Service

SECURITY NOTES:
- PINs are exactly 4 digits and stored only as bcrypt hashes
- The cost factor comes from PIN_HASH_ROUNDS (default 12)
- to_public_dict() never exposes the hash
"""

from __future__ import annotations

import logging
from datetime import timedelta

import bcrypt

from ..models import Actor, User
from ..models.auth import ROLE_ADMINISTRATOR, USER_STATUS_ACTIVE
from ..storage import USERS, FileStorage, next_id
from ..time_utils import to_utc_z, utcnow
from ..validation import (
    USER_POLICY,
    ConflictError,
    enforce_rules_user,
    validate_payload,
)
from .activity_log_service import LOG_ACTIONS, LOG_CATEGORIES, log_activity

logger = logging.getLogger(__name__)

DEFAULT_PIN_HASH_ROUNDS = 12
DEFAULT_SESSION_MAX_AGE = 7200

DEFAULT_ADMIN = {
    "username": "admin",
    "name": "Admin User",
    "role": ROLE_ADMINISTRATOR,
    "pin": "1234",
}


class UserError(Exception):
    """Raised for user operation errors."""
    pass


def hash_pin(pin: str, rounds: int = DEFAULT_PIN_HASH_ROUNDS) -> str:
    salt = bcrypt.gensalt(rounds=rounds)
    hashed = bcrypt.hashpw(pin.encode("utf-8"), salt)
    return hashed.decode("utf-8")


def verify_pin(user: User, pin: str) -> bool:
    """False for a wrong PIN, an inactive user, or a stored value that is not a bcrypt hash."""
    if not user or not user.pin or not pin:
        return False
    if not user.is_active:
        return False
    try:
        return bcrypt.checkpw(pin.encode("utf-8"), user.pin.encode("utf-8"))
    except ValueError:
        logger.warning("User %s has an invalid PIN hash", user.id)
        return False


def _load_users(storage: FileStorage) -> list[User]:
    return [User.from_dict(r) for r in storage.read(USERS) if "id" in r]


def _save_users(storage: FileStorage, users: list[User]) -> None:
    if not storage.write(USERS, [u.to_dict() for u in users]):
        raise UserError("Failed to save users")


def list_users(storage: FileStorage) -> list[User]:
    return _load_users(storage)


def get_user(storage: FileStorage, user_id: int) -> User | None:
    for user in _load_users(storage):
        if user.id == user_id:
            return user
    return None


def get_user_by_username(storage: FileStorage, username: str) -> User | None:
    for user in _load_users(storage):
        if user.username == username:
            return user
    return None


def create_user(
    storage: FileStorage,
    payload: dict,
    *,
    actor: Actor | None = None,
    activity_log=None,
    rounds: int = DEFAULT_PIN_HASH_ROUNDS,
    session_max_age: int = DEFAULT_SESSION_MAX_AGE,
) -> User:
    """
    Create a user. lastActive is now; sessionValidUntil is now + session_max_age.

    Raises:
        ValidationError: missing fields, bad role/status, PIN not 4 digits
        ConflictError: username already taken
    """
    patch = validate_payload(payload=payload, policy=USER_POLICY, partial=False)
    enforce_rules_user(patch)

    with storage.locked(USERS):
        users = _load_users(storage)
        if any(u.username == patch["username"] for u in users):
            raise ConflictError(f"Username already exists: {patch['username']}")

        now = utcnow()
        user = User(
            id=next_id([u.to_dict() for u in users]),
            username=patch["username"],
            name=patch["name"],
            role=patch["role"],
            status=patch.get("status") or USER_STATUS_ACTIVE,
            pin=hash_pin(patch["pin"], rounds),
            last_active=to_utc_z(now),
            session_valid_until=to_utc_z(now + timedelta(seconds=session_max_age)),
        )
        users.append(user)
        _save_users(storage, users)

    logger.info("Created user %s (%s)", user.id, user.username)
    log_activity(
        activity_log,
        actor,
        LOG_CATEGORIES["USER"],
        LOG_ACTIONS["USER"]["CREATE"],
        f"Created new user: {user.username} (ID: {user.id}, Role: {user.role})",
    )
    return user


def update_user(
    storage: FileStorage,
    user_id: int,
    payload: dict,
    *,
    actor: Actor | None = None,
    activity_log=None,
    rounds: int = DEFAULT_PIN_HASH_ROUNDS,
) -> User | None:
    """None when the user does not exist. An empty PIN leaves the PIN unchanged."""
    payload = dict(payload or {})
    if "pin" in payload and not str(payload["pin"] or "").strip():
        payload.pop("pin")

    patch = validate_payload(payload=payload, policy=USER_POLICY, partial=True)
    enforce_rules_user(patch)

    with storage.locked(USERS):
        users = _load_users(storage)
        user = next((u for u in users if u.id == user_id), None)
        if user is None:
            return None

        if "username" in patch and any(u.username == patch["username"] and u.id != user_id for u in users):
            raise ConflictError(f"Username already exists: {patch['username']}")

        details = f"Updated user: {user.username} (ID: {user.id})"
        if "pin" in patch:
            details += ", PIN was changed"
            user.pin = hash_pin(patch["pin"], rounds)
        if "role" in patch and patch["role"] != user.role:
            details += f", Role changed from {user.role} to {patch['role']}"
        if "status" in patch and patch["status"] != user.status:
            details += f", Status changed from {user.status} to {patch['status']}"

        for key, attr in (("username", "username"), ("name", "name"), ("role", "role"), ("status", "status")):
            if key in patch:
                setattr(user, attr, patch[key])
        _save_users(storage, users)

    log_activity(
        activity_log,
        actor,
        LOG_CATEGORIES["USER"],
        LOG_ACTIONS["USER"]["UPDATE"],
        details,
    )
    return user


def delete_user(
    storage: FileStorage,
    user_id: int,
    *,
    actor: Actor | None = None,
    activity_log=None,
) -> bool:
    with storage.locked(USERS):
        users = _load_users(storage)
        user = next((u for u in users if u.id == user_id), None)
        if user is None:
            return False
        users = [u for u in users if u.id != user_id]
        if not storage.write(USERS, [u.to_dict() for u in users]):
            return False

    logger.info("Deleted user %s (%s)", user.id, user.username)
    log_activity(
        activity_log,
        actor,
        LOG_CATEGORIES["USER"],
        LOG_ACTIONS["USER"]["DELETE"],
        f"Deleted user: {user.username} (ID: {user.id}, Role: {user.role})",
    )
    return True


def seed_default_admin(storage: FileStorage, *, rounds: int = DEFAULT_PIN_HASH_ROUNDS) -> User | None:
    """Create the default administrator when users.json is empty. Idempotent."""
    with storage.locked(USERS):
        if _load_users(storage):
            return None
        user = create_user(storage, dict(DEFAULT_ADMIN), rounds=rounds)
    logger.warning("Seeded default administrator '%s'; change its PIN", user.username)
    return user
