from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

SALE_STATUS_COMPLETED = "Completed"
SALE_STATUS_REFUNDED = "Refunded"

TRANSACTION_PREFIX = "TRX"


@dataclass(frozen=True)
class SaleLine:
    """Line items are immutable once the sale exists."""
    product_id: int
    name: str
    quantity: float
    price: float
    unit: str = ""
    subtotal: float = 0

    @classmethod
    def from_dict(cls, data: dict) -> "SaleLine":
        quantity = data.get("quantity", 0)
        price = data.get("price", 0)
        subtotal = data.get("subtotal")
        if subtotal is None:
            subtotal = round(quantity * price, 2)
        return cls(
            product_id=data.get("productId"),
            name=data.get("name", ""),
            quantity=quantity,
            price=price,
            unit=data.get("unit", ""),
            subtotal=subtotal,
        )

    def to_dict(self) -> dict:
        return {
            "productId": self.product_id,
            "name": self.name,
            "quantity": self.quantity,
            "price": self.price,
            "unit": self.unit,
            "subtotal": self.subtotal,
        }


@dataclass
class Sale:
    """
    Sale document.

    id format: TRX-<YYYYMMDD>-<n>, n restarting at 1 each business day.
    Only status / refunded_by / refund_date change after creation, and only
    once (Completed -> Refunded).
    """
    id: str
    cashier: str
    date: str
    amount: float
    items: list[SaleLine] = field(default_factory=list)
    status: str = SALE_STATUS_COMPLETED
    refunded_by: Optional[str] = None
    refund_date: Optional[str] = None

    def __repr__(self) -> str:
        return f"<Sale id={self.id!r} amount={self.amount} status={self.status!r}>"

    @property
    def is_refunded(self) -> bool:
        return self.status == SALE_STATUS_REFUNDED

    @property
    def total_quantity(self) -> float:
        return sum(line.quantity for line in self.items)

    @classmethod
    def from_dict(cls, data: dict) -> "Sale":
        return cls(
            id=data["id"],
            cashier=data.get("cashier", ""),
            date=data.get("date", ""),
            amount=data.get("amount", 0),
            items=[SaleLine.from_dict(line) for line in data.get("items") or []],
            status=data.get("status", SALE_STATUS_COMPLETED),
            refunded_by=data.get("refundedBy"),
            refund_date=data.get("refundDate"),
        )

    def to_dict(self) -> dict:
        out: dict[str, Any] = {
            "id": self.id,
            "cashier": self.cashier,
            "date": self.date,
            "amount": self.amount,
            "status": self.status,
            "items": [line.to_dict() for line in self.items],
        }
        if self.refunded_by is not None:
            out["refundedBy"] = self.refunded_by
        if self.refund_date is not None:
            out["refundDate"] = self.refund_date
        return out


@dataclass
class ProductPopularity:
    product_id: int
    sales_count: float
    last_updated: str

    @classmethod
    def from_dict(cls, data: dict) -> "ProductPopularity":
        return cls(
            product_id=data.get("productId"),
            sales_count=data.get("salesCount", 0),
            last_updated=data.get("lastUpdated", ""),
        )

    def to_dict(self) -> dict:
        return {
            "productId": self.product_id,
            "salesCount": self.sales_count,
            "lastUpdated": self.last_updated,
        }
