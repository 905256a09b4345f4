from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any

from .models.auth import ROLES, USER_STATUS_ACTIVE, USER_STATUS_INACTIVE
from .models.inventory import PROFIT_TYPES


# Maximum unit price: 9,999,999.99
# Keeps totals inside the range the dashboards format sensibly
MAX_PRICE = 9_999_999.99

PIN_PATTERN = re.compile(r"^\d{4}$")

# Field kinds understood by _coerce_value
INT = "int"
NUMBER = "number"
STRING = "string"
LIST = "list"


class ValidationError(ValueError):
    """400-level input problem."""


class ConflictError(ValueError):
    """409-level business rule conflict (e.g., duplicate SKU)."""


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Central policy layer:
    - field_types: JSON field name -> kind (int, number, string, list)
    - writable_fields: what clients are allowed to set (security boundary)
    - required_on_create: fields required on create
    - nullable_fields: fields that may be explicitly set to null
    """
    field_types: dict[str, str]
    writable_fields: frozenset[str]
    required_on_create: frozenset[str] = frozenset()
    nullable_fields: frozenset[str] = frozenset()


def _coerce_value(key: str, kind: str, value: Any):
    # bool is a subclass of int; never a valid quantity or price
    if isinstance(value, bool) and kind in (INT, NUMBER):
        raise ValidationError(f"{key} must be a number")

    if kind == INT:
        if isinstance(value, int):
            return value
        if isinstance(value, float) and value.is_integer():
            return int(value)
        if isinstance(value, str):
            stripped = value.strip()
            if re.fullmatch(r"-?\d+", stripped):
                return int(stripped)
        raise ValidationError(f"{key} must be an integer")

    if kind == NUMBER:
        if isinstance(value, (int, float)):
            return value
        if isinstance(value, str):
            stripped = value.strip()
            # Reject scientific notation (e.g., "1e15")
            if not stripped or "e" in stripped.lower():
                raise ValidationError(f"{key} must be a number")
            try:
                number = float(stripped)
            except ValueError:
                raise ValidationError(f"{key} must be a number")
            return int(number) if number.is_integer() else number
        raise ValidationError(f"{key} must be a number")

    if kind == LIST:
        if not isinstance(value, list):
            raise ValidationError(f"{key} must be a list")
        return value

    # Strings
    return str(value).strip()


def validate_payload(
    *,
    payload: dict,
    policy: ModelValidationPolicy,
    partial: bool,
) -> dict:
    """
    Validates + normalizes an incoming JSON object against a policy.
    Returns a cleaned patch dict with only writable fields.

    partial=False: create semantics (enforce required_on_create)
    partial=True: patch semantics (validate only provided keys)
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    if not partial:
        missing = sorted(
            f for f in policy.required_on_create
            if payload.get(f) is None or (isinstance(payload.get(f), str) and not payload[f].strip())
        )
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    # Reject unknown / non-writable fields
    for k in payload.keys():
        if k not in policy.writable_fields:
            raise ValidationError(f"Field not allowed: {k}")

    patch: dict = {}
    for k, raw in payload.items():
        if raw is None:
            if k not in policy.nullable_fields:
                raise ValidationError(f"{k} cannot be null")
            patch[k] = None
            continue

        val = _coerce_value(k, policy.field_types.get(k, STRING), raw)

        if isinstance(val, str) and val == "" and k in policy.required_on_create:
            raise ValidationError(f"{k} cannot be blank")

        patch[k] = val

    return patch


# =============================================================================
# POLICIES
# =============================================================================

INVENTORY_ITEM_POLICY = ModelValidationPolicy(
    field_types={
        "name": STRING,
        "sku": STRING,
        "barcode": STRING,
        "category": STRING,
        "unit": STRING,
        "price": NUMBER,
        "priceUnit": STRING,
        "costPrice": NUMBER,
        "profitMargin": NUMBER,
        "profitType": STRING,
        "stock": NUMBER,
        "threshold": NUMBER,
        "image": STRING,
    },
    writable_fields=frozenset({
        "name", "sku", "barcode", "category", "unit", "price", "priceUnit",
        "costPrice", "profitMargin", "profitType", "stock", "threshold", "image",
    }),
    required_on_create=frozenset({
        "name", "sku", "category", "stock", "unit", "price", "priceUnit", "threshold",
    }),
    nullable_fields=frozenset({"barcode", "costPrice", "profitMargin", "profitType", "image"}),
)

SALE_POLICY = ModelValidationPolicy(
    field_types={"cashier": STRING, "amount": NUMBER, "items": LIST},
    writable_fields=frozenset({"cashier", "amount", "items"}),
    required_on_create=frozenset({"cashier", "amount", "items"}),
)

SALE_LINE_POLICY = ModelValidationPolicy(
    field_types={
        "productId": INT,
        "name": STRING,
        "quantity": NUMBER,
        "price": NUMBER,
        "unit": STRING,
        "subtotal": NUMBER,
    },
    writable_fields=frozenset({"productId", "name", "quantity", "price", "unit", "subtotal"}),
    required_on_create=frozenset({"productId", "quantity"}),
)

LOSS_POLICY = ModelValidationPolicy(
    field_types={
        "inventoryItemId": INT,
        "itemName": STRING,
        "quantity": NUMBER,
        "reason": STRING,
        "recordedBy": STRING,
        "value": NUMBER,
    },
    writable_fields=frozenset({"inventoryItemId", "itemName", "quantity", "reason", "recordedBy", "value"}),
    required_on_create=frozenset({"inventoryItemId", "itemName", "quantity", "reason", "recordedBy", "value"}),
)

LOSS_UPDATE_POLICY = ModelValidationPolicy(
    field_types=LOSS_POLICY.field_types,
    writable_fields=frozenset({"itemName", "quantity", "reason", "recordedBy", "value"}),
)

USER_POLICY = ModelValidationPolicy(
    field_types={"username": STRING, "name": STRING, "role": STRING, "pin": STRING, "status": STRING},
    writable_fields=frozenset({"username", "name", "role", "pin", "status"}),
    required_on_create=frozenset({"username", "name", "role", "pin"}),
)

SETTINGS_POLICY = ModelValidationPolicy(
    field_types={
        "storeName": STRING,
        "storeAddress": STRING,
        "storePhone": STRING,
        "thankYouMessage": STRING,
        "storeLogo": STRING,
    },
    writable_fields=frozenset({"storeName", "storeAddress", "storePhone", "thankYouMessage", "storeLogo"}),
    required_on_create=frozenset({"storeName", "storeAddress", "storePhone", "thankYouMessage"}),
    nullable_fields=frozenset({"storeLogo"}),
)


# =============================================================================
# BUSINESS RULES
# =============================================================================

def _non_negative(patch: dict, key: str) -> None:
    if patch.get(key) is not None and patch[key] < 0:
        raise ValidationError(f"{key} must be >= 0")


def enforce_rules_inventory_item(patch: dict) -> None:
    """
    Business rules that field types alone do not capture.
    Keep these small and centralized.
    """
    for key in ("price", "costPrice", "stock", "threshold"):
        _non_negative(patch, key)
    if patch.get("price") is not None and patch["price"] > MAX_PRICE:
        raise ValidationError(f"price cannot exceed {MAX_PRICE:,.2f}")
    if patch.get("profitType") is not None and patch["profitType"] not in PROFIT_TYPES:
        raise ValidationError(f"profitType must be one of: {', '.join(PROFIT_TYPES)}")


def enforce_rules_sale(patch: dict) -> list[dict]:
    """Validate the sale header and every line; returns the cleaned lines."""
    if patch["amount"] <= 0:
        raise ValidationError("amount must be > 0")
    if not patch["items"]:
        raise ValidationError("items must contain at least one line")

    lines = []
    for index, raw in enumerate(patch["items"], start=1):
        if not isinstance(raw, dict):
            raise ValidationError(f"items[{index}] must be an object")
        try:
            line = validate_payload(payload=raw, policy=SALE_LINE_POLICY, partial=False)
        except ValidationError as e:
            raise ValidationError(f"items[{index}]: {e}")
        if line["quantity"] <= 0:
            raise ValidationError(f"items[{index}]: quantity must be > 0")
        _non_negative(line, "price")
        lines.append(line)
    return lines


def enforce_rules_loss(patch: dict) -> None:
    if patch.get("quantity") is not None and patch["quantity"] <= 0:
        raise ValidationError("quantity must be > 0")
    _non_negative(patch, "value")


def enforce_rules_user(patch: dict) -> None:
    if "role" in patch and patch["role"] not in ROLES:
        raise ValidationError(f"role must be one of: {', '.join(ROLES)}")
    if "status" in patch and patch["status"] not in (USER_STATUS_ACTIVE, USER_STATUS_INACTIVE):
        raise ValidationError("status must be Active or Inactive")
    if "pin" in patch and not PIN_PATTERN.match(patch["pin"]):
        raise ValidationError("PIN must be 4 digits")
