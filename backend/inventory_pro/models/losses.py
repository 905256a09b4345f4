from __future__ import annotations

from dataclasses import dataclass

LOSS_PREFIX = "LOSS"


@dataclass
class Loss:
    """
    Inventory shrinkage record (damage, theft, expiry, ...).

    id format: LOSS-<YYYY-MM-DD>-<count+1 padded to 3>. The counter is the
    total number of loss records, not a per-day sequence.
    """
    id: str
    inventory_item_id: int
    item_name: str
    quantity: float
    reason: str
    recorded_by: str
    value: float
    date: str

    def __repr__(self) -> str:
        return f"<Loss id={self.id!r} item={self.inventory_item_id} quantity={self.quantity}>"

    @classmethod
    def from_dict(cls, data: dict) -> "Loss":
        return cls(
            id=data["id"],
            inventory_item_id=data.get("inventoryItemId"),
            item_name=data.get("itemName", ""),
            quantity=data.get("quantity", 0),
            reason=data.get("reason", ""),
            recorded_by=data.get("recordedBy", ""),
            value=data.get("value", 0),
            date=data.get("date", ""),
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "inventoryItemId": self.inventory_item_id,
            "itemName": self.item_name,
            "quantity": self.quantity,
            "reason": self.reason,
            "recordedBy": self.recorded_by,
            "value": self.value,
            "date": self.date,
        }
