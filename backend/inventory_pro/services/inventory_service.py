# Overview: Inventory ledger; catalog CRUD, stock adjustments and bulk import over inventory.json.

"""
Inventory Ledger

WHY: Every stock movement (sale, refund, loss, manual edit) goes through this
module so the status invariant holds no matter who changed the number.

INVARIANTS:
- status == "Low Stock" iff stock < threshold, re-derived on every stock or
  threshold change
- stock never goes below zero through adjust_stock
- ids are max(existing) + 1 and never reused while the max item exists
"""

from __future__ import annotations

import logging

from ..models import InventoryItem, StockChange, Actor
from ..storage import INVENTORY, POPULARITY, FileStorage, next_id
from ..validation import (
    INVENTORY_ITEM_POLICY,
    ConflictError,
    ValidationError,
    enforce_rules_inventory_item,
    validate_payload,
)
from .activity_log_service import LOG_ACTIONS, LOG_CATEGORIES, log_activity
from .permission_service import check_inventory_delete, check_inventory_update

logger = logging.getLogger(__name__)

# camelCase payload key -> InventoryItem attribute
_PATCH_ATTRS = {
    "name": "name",
    "sku": "sku",
    "barcode": "barcode",
    "category": "category",
    "unit": "unit",
    "price": "price",
    "priceUnit": "price_unit",
    "costPrice": "cost_price",
    "profitMargin": "profit_margin",
    "profitType": "profit_type",
    "stock": "stock",
    "threshold": "threshold",
    "image": "image",
}

BULK_REQUIRED_FIELDS = ("sku", "name", "category", "stock", "unit", "price", "priceunit", "threshold")


class InventoryNotFoundError(Exception):
    """Raised when a mutation targets an inventory item that does not exist."""
    def __init__(self, item_id):
        super().__init__(f"Inventory item {item_id} not found")
        self.item_id = item_id


def _load_items(storage: FileStorage) -> list[InventoryItem]:
    return [InventoryItem.from_dict(r) for r in storage.read(INVENTORY) if "id" in r]


def _save_items(storage: FileStorage, items: list[InventoryItem]) -> bool:
    ok = storage.write(INVENTORY, [i.to_dict() for i in items])
    if not ok:
        logger.error("Failed to persist inventory (%d items)", len(items))
    return ok


def _index_of(items: list[InventoryItem], item_id: int) -> int | None:
    for index, item in enumerate(items):
        if item.id == item_id:
            return index
    return None


def apply_item_patch(item: InventoryItem, patch: dict) -> None:
    for key, value in patch.items():
        attr = _PATCH_ATTRS.get(key)
        if attr is None:
            continue
        setattr(item, attr, value)
    if "stock" in patch or "threshold" in patch:
        item.refresh_status()


# =============================================================================
# READS
# =============================================================================

def list_items(storage: FileStorage) -> list[InventoryItem]:
    return _load_items(storage)


def get_item(storage: FileStorage, item_id: int) -> InventoryItem | None:
    for item in _load_items(storage):
        if item.id == item_id:
            return item
    return None


def find_by_sku(storage: FileStorage, sku: str) -> InventoryItem | None:
    for item in _load_items(storage):
        if item.sku == sku:
            return item
    return None


def find_by_barcode(storage: FileStorage, barcode: str) -> InventoryItem | None:
    if not barcode:
        return None
    for item in _load_items(storage):
        if item.barcode == barcode:
            return item
    return None


def list_low_stock_items(storage: FileStorage) -> list[InventoryItem]:
    """Items whose stock is strictly below their reorder threshold."""
    return [item for item in _load_items(storage) if item.is_low_stock]


def list_items_by_popularity(storage: FileStorage) -> list[InventoryItem]:
    """Most units sold first; ties (including never sold) alphabetically by name."""
    popularity: dict[int, float] = {}
    for record in storage.read(POPULARITY):
        product_id = record.get("productId")
        if product_id is not None:
            popularity[product_id] = record.get("salesCount") or 0

    items = _load_items(storage)
    items.sort(key=lambda i: (-popularity.get(i.id, 0), (i.name or "").lower()))
    return items


# =============================================================================
# CRUD
# =============================================================================

def create_item(
    storage: FileStorage,
    payload: dict,
    *,
    actor: Actor | None = None,
    activity_log=None,
) -> InventoryItem:
    """
    Create an item from a client payload.

    Raises:
        ValidationError: missing/invalid fields
        ConflictError: SKU already used by another item
    """
    patch = validate_payload(payload=payload, policy=INVENTORY_ITEM_POLICY, partial=False)
    enforce_rules_inventory_item(patch)

    with storage.locked(INVENTORY):
        items = _load_items(storage)
        if any(i.sku == patch["sku"] for i in items):
            raise ConflictError(f"SKU already exists: {patch['sku']}")

        item = InventoryItem(id=next_id([i.to_dict() for i in items]), name=patch["name"])
        apply_item_patch(item, patch)
        item.refresh_status()
        items.append(item)
        _save_items(storage, items)

    logger.info("Created inventory item %s (%s)", item.id, item.sku)
    log_activity(
        activity_log,
        actor,
        LOG_CATEGORIES["INVENTORY"],
        LOG_ACTIONS["INVENTORY"]["CREATE"],
        f"Added item: {item.name} (SKU: {item.sku}), Quantity: {item.stock} {item.unit}",
    )
    return item


def _describe_update(original: InventoryItem, patch: dict) -> str:
    details = f"Updated item: {original.name} (ID: {original.id})"
    if "stock" in patch and original.stock != patch["stock"]:
        details += f", Stock changed from {original.stock} to {patch['stock']}"
    if "price" in patch and original.price != patch["price"]:
        details += f", Price changed from {original.price} to {patch['price']}"
    if "threshold" in patch and original.threshold != patch["threshold"]:
        details += f", Threshold changed from {original.threshold} to {patch['threshold']}"
    if "costPrice" in patch:
        old = original.cost_price if original.cost_price is not None else "not set"
        details += f", Cost price changed from {old} to {patch['costPrice']}"
    if "profitMargin" in patch:
        old = original.profit_margin if original.profit_margin is not None else "not set"
        details += f", Profit margin changed from {old} to {patch['profitMargin']}"
    if "profitType" in patch and original.profit_type != patch["profitType"]:
        details += f", Profit type changed from {original.profit_type or 'not set'} to {patch['profitType']}"
    return details


def update_item(
    storage: FileStorage,
    item_id: int,
    payload: dict,
    *,
    actor: Actor | None = None,
    activity_log=None,
) -> InventoryItem:
    """
    Merge `payload` into an existing item.

    Raises:
        InventoryNotFoundError: no item with `item_id`
        ValidationError: invalid field values
        PermissionDeniedError: actor may not change price / profit fields
        ConflictError: new SKU collides with another item
    """
    patch = validate_payload(payload=payload, policy=INVENTORY_ITEM_POLICY, partial=True)
    enforce_rules_inventory_item(patch)

    with storage.locked(INVENTORY):
        items = _load_items(storage)
        index = _index_of(items, item_id)
        if index is None:
            raise InventoryNotFoundError(item_id)

        check_inventory_update(actor, item_id, patch, activity_log=activity_log)

        if "sku" in patch and any(i.sku == patch["sku"] and i.id != item_id for i in items):
            raise ConflictError(f"SKU already exists: {patch['sku']}")

        item = items[index]
        details = _describe_update(item, patch)
        apply_item_patch(item, patch)
        _save_items(storage, items)

    log_activity(
        activity_log,
        actor,
        LOG_CATEGORIES["INVENTORY"],
        LOG_ACTIONS["INVENTORY"]["UPDATE"],
        details,
    )
    return item


def delete_item(
    storage: FileStorage,
    item_id: int,
    *,
    actor: Actor | None = None,
    activity_log=None,
) -> bool:
    """False when the item does not exist. Raises PermissionDeniedError for denied actors."""
    check_inventory_delete(actor, item_id, activity_log=activity_log)

    with storage.locked(INVENTORY):
        items = _load_items(storage)
        index = _index_of(items, item_id)
        if index is None:
            return False
        item = items.pop(index)
        if not _save_items(storage, items):
            return False

    logger.info("Deleted inventory item %s (%s)", item.id, item.sku)
    log_activity(
        activity_log,
        actor,
        LOG_CATEGORIES["INVENTORY"],
        LOG_ACTIONS["INVENTORY"]["DELETE"],
        f"Deleted item: {item.name} (ID: {item.id}, SKU: {item.sku}, Stock: {item.stock})",
    )
    return True


# =============================================================================
# STOCK MOVEMENTS
# =============================================================================

def adjust_stock(storage: FileStorage, item_id: int, delta: float) -> StockChange | None:
    """
    Apply a signed stock delta to one item, floored at zero.

    Returns None (and logs a warning) when the item does not exist; engines
    skip unknown products rather than failing the whole operation.
    """
    with storage.locked(INVENTORY):
        items = _load_items(storage)
        index = _index_of(items, item_id)
        if index is None:
            logger.warning("Stock adjustment skipped: inventory item %s not found", item_id)
            return None

        item = items[index]
        previous = item.stock or 0
        item.stock = max(0, previous + delta)
        item.refresh_status()
        _save_items(storage, items)

    change = StockChange(
        item_id=item.id,
        previous_stock=previous,
        new_stock=item.stock,
        threshold=item.threshold,
    )
    if change.crossed_below:
        logger.info("Item %s (%s) is now at or below its threshold (%s <= %s)",
                    item.id, item.name, item.stock, item.threshold)
    elif change.crossed_above:
        logger.info("Item %s (%s) is back above its threshold (%s > %s)",
                    item.id, item.name, item.stock, item.threshold)
    return change


# =============================================================================
# BULK IMPORT
# =============================================================================

def _normalize_row(row: dict) -> dict:
    """Lowercase keys; drop empty values."""
    return {
        str(key).lower(): value
        for key, value in row.items()
        if value is not None and value != ""
    }


def _parse_number(key: str, value) -> float:
    if isinstance(value, bool):
        raise ValidationError(f"{key} must be a number")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{key} must be a number")
    return int(number) if number.is_integer() else number


def bulk_import(
    storage: FileStorage,
    rows: list[dict],
    *,
    actor: Actor | None = None,
    activity_log=None,
) -> dict:
    """
    Upsert rows (e.g. parsed CSV) by SKU.

    Keys are matched case-insensitively. A bad row is counted in `failed`
    with a message in `errors`; it never aborts the rest of the import.
    """
    if not isinstance(rows, list) or not rows:
        raise ValidationError("Invalid or empty items array")

    results = {"created": 0, "updated": 0, "failed": 0, "errors": []}

    with storage.locked(INVENTORY):
        items = _load_items(storage)
        by_sku = {i.sku: i for i in items}

        for row in rows:
            if not isinstance(row, dict):
                results["failed"] += 1
                results["errors"].append("Item with SKU unknown: Row is not an object")
                continue

            normalized = _normalize_row(row)
            sku = str(normalized.get("sku", "unknown"))

            missing = [f for f in BULK_REQUIRED_FIELDS if f not in normalized]
            if missing:
                results["failed"] += 1
                results["errors"].append(f"Item with SKU {sku}: Missing required fields: {', '.join(missing)}")
                continue

            try:
                patch = {
                    "sku": sku,
                    "name": str(normalized["name"]),
                    "category": str(normalized["category"]),
                    "stock": _parse_number("stock", normalized["stock"]),
                    "unit": str(normalized["unit"]),
                    "price": _parse_number("price", normalized["price"]),
                    "priceUnit": str(normalized["priceunit"]),
                    "threshold": _parse_number("threshold", normalized["threshold"]),
                }
                if normalized.get("barcode"):
                    patch["barcode"] = str(normalized["barcode"])
                enforce_rules_inventory_item(patch)
            except ValidationError as e:
                results["failed"] += 1
                results["errors"].append(f"Error processing item with SKU {sku}: {e}")
                continue

            existing = by_sku.get(sku)
            if existing is not None:
                apply_item_patch(existing, patch)
                existing.refresh_status()
                results["updated"] += 1
            else:
                item = InventoryItem(id=next_id([i.to_dict() for i in items]), name=patch["name"])
                apply_item_patch(item, patch)
                item.refresh_status()
                items.append(item)
                by_sku[sku] = item
                results["created"] += 1

        if (results["created"] or results["updated"]) and not _save_items(storage, items):
            results["errors"].append("Failed to save inventory")
            results["failed"] += results["created"] + results["updated"]
            results["created"] = results["updated"] = 0

    details = (
        f"Bulk import: {results['created']} created, "
        f"{results['updated']} updated, {results['failed']} failed"
    )
    logger.info(details)
    log_activity(
        activity_log,
        actor,
        LOG_CATEGORIES["INVENTORY"],
        LOG_ACTIONS["INVENTORY"]["BULK_IMPORT"],
        details,
    )
    return results
