# Overview: Loss engine; records and corrects inventory shrinkage (damage, theft, expiry).

"""
Loss Engine

WHY: Shrinkage must reduce stock exactly like a sale does, but without
touching sales counters. Corrections only move stock by the difference
between the old and the new quantity.

ID FORMAT: LOSS-<YYYY-MM-DD>-<NNN>, where NNN is the total number of loss
records plus one (a running count, not a per-day sequence).
"""

from __future__ import annotations

import logging

from ..models import Actor, Loss
from ..models.losses import LOSS_PREFIX
from ..storage import INVENTORY, LOSSES, FileStorage
from ..time_utils import local_now, to_utc_z
from ..validation import (
    LOSS_POLICY,
    LOSS_UPDATE_POLICY,
    enforce_rules_loss,
    validate_payload,
)
from .activity_log_service import LOG_ACTIONS, LOG_CATEGORIES, log_activity
from .inventory_service import InventoryNotFoundError, adjust_stock, get_item

logger = logging.getLogger(__name__)


class LossError(Exception):
    """Raised for loss operation errors."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


def _load_losses(storage: FileStorage) -> list[Loss]:
    return [Loss.from_dict(r) for r in storage.read(LOSSES) if "id" in r]


def list_losses(storage: FileStorage) -> list[Loss]:
    return _load_losses(storage)


def get_loss(storage: FileStorage, loss_id: str) -> Loss | None:
    for loss in _load_losses(storage):
        if loss.id == loss_id:
            return loss
    return None


def loss_summary(storage: FileStorage) -> dict:
    """Per-reason totals: {reason: {"count", "quantity", "value"}}."""
    summary: dict[str, dict] = {}
    for loss in _load_losses(storage):
        bucket = summary.setdefault(loss.reason or "Unspecified", {"count": 0, "quantity": 0, "value": 0})
        bucket["count"] += 1
        bucket["quantity"] += loss.quantity or 0
        bucket["value"] = round(bucket["value"] + (loss.value or 0), 2)
    return summary


def record_loss(
    storage: FileStorage,
    inventory_item_id: int,
    item_name: str,
    quantity: float,
    reason: str,
    recorded_by: str,
    value: float,
    actor: Actor | None = None,
    *,
    activity_log=None,
) -> Loss:
    """
    Record a loss and take the quantity out of stock (floored at zero).

    Raises:
        ValidationError: missing or invalid fields
        InventoryNotFoundError: the item does not exist
    """
    patch = validate_payload(
        payload={
            "inventoryItemId": inventory_item_id,
            "itemName": item_name,
            "quantity": quantity,
            "reason": reason,
            "recordedBy": recorded_by,
            "value": value,
        },
        policy=LOSS_POLICY,
        partial=False,
    )
    enforce_rules_loss(patch)

    with storage.locked(LOSSES, INVENTORY):
        if get_item(storage, patch["inventoryItemId"]) is None:
            raise InventoryNotFoundError(patch["inventoryItemId"])

        records = storage.read(LOSSES)
        now = local_now()
        loss = Loss(
            id=f"{LOSS_PREFIX}-{now.strftime('%Y-%m-%d')}-{len(records) + 1:03d}",
            inventory_item_id=patch["inventoryItemId"],
            item_name=patch["itemName"],
            quantity=patch["quantity"],
            reason=patch["reason"],
            recorded_by=patch["recordedBy"],
            value=patch["value"],
            date=to_utc_z(now),
        )

        adjust_stock(storage, loss.inventory_item_id, -loss.quantity)

        records.append(loss.to_dict())
        if not storage.write(LOSSES, records):
            raise LossError("Failed to persist loss", details={"id": loss.id})

    logger.info("Recorded loss %s (item=%s, quantity=%s)", loss.id, loss.inventory_item_id, loss.quantity)
    log_activity(
        activity_log,
        actor,
        LOG_CATEGORIES["LOSSES"],
        LOG_ACTIONS["LOSSES"]["CREATE"],
        f'Recorded loss of {loss.quantity} {loss.item_name} | Reason: "{loss.reason}" | Value: ${loss.value:.2f}',
    )
    return loss


def update_loss(
    storage: FileStorage,
    loss_id: str,
    updates: dict,
    actor: Actor | None = None,
    *,
    activity_log=None,
) -> Loss | None:
    """
    Correct a loss record. None when `loss_id` does not exist.

    A quantity change moves stock by the difference only (more loss takes
    more stock, less loss gives stock back). Unless `value` is supplied it
    is recomputed at the item's current price.
    """
    patch = validate_payload(payload=updates, policy=LOSS_UPDATE_POLICY, partial=True)
    enforce_rules_loss(patch)

    with storage.locked(LOSSES, INVENTORY):
        records = storage.read(LOSSES)
        index = next((i for i, r in enumerate(records) if r.get("id") == loss_id), None)
        if index is None:
            return None

        original = Loss.from_dict(records[index])
        loss = Loss.from_dict({**original.to_dict(), **patch})

        details = f"Updated loss record with ID: {loss_id}"
        if "quantity" in patch and patch["quantity"] != original.quantity:
            details += f" | Changed quantity from {original.quantity} to {patch['quantity']}"
            item = get_item(storage, original.inventory_item_id)
            if item is not None:
                adjust_stock(storage, item.id, -(patch["quantity"] - original.quantity))
                if "value" not in patch:
                    loss.value = round(patch["quantity"] * (item.price or 0), 2)
            else:
                logger.warning("Loss %s refers to missing item %s; stock not adjusted",
                               loss_id, original.inventory_item_id)
        if "reason" in patch:
            details += f' | Updated reason: "{patch["reason"]}"'
        details += f" | Item: {original.item_name}"

        records[index] = {**records[index], **loss.to_dict()}
        if not storage.write(LOSSES, records):
            raise LossError("Failed to persist loss update", details={"id": loss_id})

    logger.info("Updated loss %s", loss_id)
    log_activity(
        activity_log,
        actor,
        LOG_CATEGORIES["LOSSES"],
        LOG_ACTIONS["LOSSES"]["UPDATE"],
        details,
    )
    return loss
