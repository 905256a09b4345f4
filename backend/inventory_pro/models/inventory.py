from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

STATUS_IN_STOCK = "In Stock"
STATUS_LOW_STOCK = "Low Stock"
# UI-level refinement; preserved on read, never produced by the ledger.
STATUS_WARNING = "Warning"

PROFIT_TYPES = ("percentage", "fixed")

# camelCase JSON key -> dataclass attribute
_FIELD_MAP = {
    "id": "id",
    "sku": "sku",
    "barcode": "barcode",
    "name": "name",
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
    "status": "status",
}
_OPTIONAL_KEYS = {"barcode", "costPrice", "profitMargin", "profitType", "image"}


def derive_status(stock: float, threshold: float) -> str:
    """Low Stock iff stock is strictly below the reorder threshold."""
    return STATUS_LOW_STOCK if stock < threshold else STATUS_IN_STOCK


@dataclass
class InventoryItem:
    """
    Inventory item as stored in inventory.json.

    `status` is derived from stock/threshold; call refresh_status() after
    changing either. Unknown JSON keys are carried in `extra` so a rewrite
    never drops fields added by other clients.
    """
    id: int
    name: str
    sku: str = ""
    category: str = ""
    unit: str = ""
    price: float = 0
    price_unit: str = ""
    stock: float = 0
    threshold: float = 0
    barcode: Optional[str] = None
    cost_price: Optional[float] = None
    profit_margin: Optional[float] = None
    profit_type: Optional[str] = None
    image: Optional[str] = None
    status: str = STATUS_IN_STOCK
    extra: dict[str, Any] = field(default_factory=dict)

    def __repr__(self) -> str:
        return f"<InventoryItem id={self.id} sku={self.sku!r} stock={self.stock} threshold={self.threshold}>"

    @property
    def is_low_stock(self) -> bool:
        return self.stock < self.threshold

    @property
    def at_or_below_threshold(self) -> bool:
        return self.stock <= self.threshold

    @property
    def stock_value(self) -> float:
        return (self.price or 0) * (self.stock or 0)

    def refresh_status(self) -> str:
        self.status = derive_status(self.stock, self.threshold)
        return self.status

    @classmethod
    def from_dict(cls, data: dict) -> "InventoryItem":
        kwargs: dict[str, Any] = {}
        extra: dict[str, Any] = {}
        for key, value in data.items():
            attr = _FIELD_MAP.get(key)
            if attr is None:
                extra[key] = value
            else:
                kwargs[attr] = value
        kwargs.setdefault("name", "")
        item = cls(**kwargs, extra=extra)
        if "status" not in data:
            item.refresh_status()
        return item

    def to_dict(self) -> dict:
        out: dict[str, Any] = dict(self.extra)
        for key, attr in _FIELD_MAP.items():
            value = getattr(self, attr)
            if value is None and key in _OPTIONAL_KEYS:
                continue
            out[key] = value
        return out


@dataclass(frozen=True)
class StockChange:
    """Result of applying a stock delta to one item."""
    item_id: int
    previous_stock: float
    new_stock: float
    threshold: float

    @property
    def crossed_below(self) -> bool:
        """Went from above the threshold to at-or-below it."""
        return self.previous_stock > self.threshold and self.new_stock <= self.threshold

    @property
    def crossed_above(self) -> bool:
        """Went from at-or-below the threshold back above it."""
        return self.previous_stock <= self.threshold and self.new_stock > self.threshold

    @property
    def low_stock_delta(self) -> int:
        if self.crossed_below:
            return 1
        if self.crossed_above:
            return -1
        return 0
