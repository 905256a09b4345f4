# Overview: Role-based permission checks; denied attempts are written to the activity log.

"""
Permission Checking with Activity Log Audit Trail

WHY: Inventory edits are role-gated (stockers cannot touch prices or delete
items; only administrators and managers change profit settings). The rules
live as data in the permissions package; this module evaluates them.

DESIGN PRINCIPLES:
- Fail closed: unknown roles have no permissions
- Log denials only: granted checks are not logged
- Callers without an actor skip the checks entirely (operational/system use)
"""

from __future__ import annotations

import logging

from ..models import Actor
from ..permissions import get_permission_definition, get_role_permissions, validate_permission_code
from .activity_log_service import LOG_ACTIONS, LOG_CATEGORIES, log_activity

logger = logging.getLogger(__name__)

# Inventory patch fields guarded by a permission
PRICE_FIELDS = frozenset({"price"})
PROFIT_FIELDS = frozenset({"costPrice", "profitMargin", "profitType"})


class PermissionDeniedError(Exception):
    """Raised when the acting user lacks a required permission."""
    def __init__(self, message: str, permission_code: str | None = None):
        super().__init__(message)
        self.permission_code = permission_code


def user_has_permission(role: str, permission_code: str) -> bool:
    if not validate_permission_code(permission_code):
        raise ValueError(f"Permission '{permission_code}' not found")
    return permission_code in get_role_permissions(role)


def require_permission(
    actor: Actor | None,
    permission_code: str,
    *,
    activity_log=None,
    category: str = LOG_CATEGORIES["INVENTORY"],
    action: str | None = None,
    details: str | None = None,
    message: str | None = None,
) -> None:
    """
    Raise PermissionDeniedError unless `actor` holds `permission_code`.

    A denial is recorded in the activity log under `category`/`action`
    with `details` before raising. `actor=None` always passes.
    """
    if actor is None:
        return
    if user_has_permission(actor.role, permission_code):
        return

    definition = get_permission_definition(permission_code)
    logger.warning(
        "Permission %s denied for %s (id=%s, role=%s)",
        permission_code, actor.username, actor.id, actor.role,
    )
    log_activity(
        activity_log,
        actor,
        category,
        action or f"Permission Denied: {permission_code}",
        details or f"Missing permission: {definition['name']}",
    )
    raise PermissionDeniedError(message or f"Permission denied: {permission_code}", permission_code)


def check_inventory_update(actor: Actor | None, item_id: int, patch: dict, *, activity_log=None) -> None:
    """Profit-setting changes are checked before price changes."""
    if actor is None:
        return
    if patch.keys() & PROFIT_FIELDS:
        require_permission(
            actor,
            "EDIT_PROFIT_SETTINGS",
            activity_log=activity_log,
            action=LOG_ACTIONS["INVENTORY"]["UPDATE"],
            details=f"Unauthorized profit update attempt for item ID: {item_id}",
            message="Access denied: You don't have permission to update profit settings",
        )
    if patch.keys() & PRICE_FIELDS:
        require_permission(
            actor,
            "EDIT_PRICES",
            activity_log=activity_log,
            action=LOG_ACTIONS["INVENTORY"]["UPDATE"],
            details=f"Unauthorized price update attempt for item ID: {item_id}",
            message="Access denied: Your account cannot modify prices",
        )


def check_inventory_delete(actor: Actor | None, item_id: int, *, activity_log=None) -> None:
    require_permission(
        actor,
        "DELETE_INVENTORY",
        activity_log=activity_log,
        action=LOG_ACTIONS["INVENTORY"]["DELETE"],
        details=f"Unauthorized deletion attempt for item ID: {item_id}",
        message="Access denied: You don't have permission to delete inventory items",
    )


def check_view_activity_logs(actor: Actor | None, *, activity_log=None) -> None:
    require_permission(
        actor,
        "VIEW_ACTIVITY_LOGS",
        activity_log=activity_log,
        category=LOG_CATEGORIES["SYSTEM"],
        action="Unauthorized Log Access",
        details="Attempted to view activity logs",
        message="Access denied: Administrator privileges required",
    )
