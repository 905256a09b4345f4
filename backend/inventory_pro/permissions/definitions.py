# Overview: All permission definitions organized by category.
# Each permission is defined as: (code, name, description, category)

from .categories import PermissionCategory


# -- INVENTORY --

INVENTORY_PERMISSIONS = [
    (
        "EDIT_PRICES",
        "Edit Prices",
        "Change the selling price of inventory items",
        PermissionCategory.INVENTORY,
    ),
    (
        "EDIT_PROFIT_SETTINGS",
        "Edit Profit Settings",
        "Change cost price, profit margin and profit type",
        PermissionCategory.INVENTORY,
    ),
    (
        "DELETE_INVENTORY",
        "Delete Inventory",
        "Remove items from the inventory catalog",
        PermissionCategory.INVENTORY,
    ),
]


# -- SYSTEM --

SYSTEM_PERMISSIONS = [
    (
        "VIEW_ACTIVITY_LOGS",
        "View Activity Logs",
        "Read the activity log (administrators only)",
        PermissionCategory.SYSTEM,
    ),
]


# Combined list of all permissions, in declaration order
PERMISSION_DEFINITIONS = (
    INVENTORY_PERMISSIONS
    + SYSTEM_PERMISSIONS
)
