# Overview: Default role -> permission mapping.
#
# Stocker accounts may not delete items or change prices; only
# Administrator and Manager may touch profit settings. The "system" role is
# the operational identity used when no user is attached to a request.

from ..models.auth import (
    ROLE_ADMINISTRATOR,
    ROLE_MANAGER,
    ROLE_CASHIER,
    ROLE_STOCKER,
    ROLE_SYSTEM,
)
from .definitions import PERMISSION_DEFINITIONS


DEFAULT_ROLE_PERMISSIONS = {
    ROLE_ADMINISTRATOR: {perm[0] for perm in PERMISSION_DEFINITIONS},
    ROLE_MANAGER: {
        "EDIT_PRICES",
        "EDIT_PROFIT_SETTINGS",
        "DELETE_INVENTORY",
    },
    ROLE_CASHIER: {
        "EDIT_PRICES",
        "DELETE_INVENTORY",
    },
    ROLE_STOCKER: set(),
    ROLE_SYSTEM: {
        "EDIT_PRICES",
        "DELETE_INVENTORY",
    },
}
