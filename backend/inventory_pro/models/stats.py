from __future__ import annotations

import logging
from dataclasses import dataclass

logger = logging.getLogger(__name__)

# Keys that are computed on read and must never be written to stats.json.
DERIVED_KEYS = frozenset({
    "totalInventoryItems",
    "totalInventoryValue",
    "lowStockItems",
    "activeUsers",
    "netSales",
})


def compute_net_sales(today_sales: float, today_refunds: float) -> float:
    return max(0, round((today_sales or 0) - (today_refunds or 0), 2))


def _counter(data: dict, key: str) -> float:
    value = data.get(key)
    if value is None:
        return 0
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        logger.warning("Ignoring non-numeric stats counter %s=%r", key, value)
        return 0
    return value


@dataclass
class PersistedCounters:
    """The only stats that live on disk; they accumulate by explicit increments."""
    today_sales: float = 0
    today_refunds: float = 0

    @classmethod
    def from_dict(cls, data: dict) -> "PersistedCounters":
        return cls(
            today_sales=_counter(data, "todaySales"),
            today_refunds=_counter(data, "todayRefunds"),
        )

    def to_dict(self) -> dict:
        return {
            "todaySales": self.today_sales,
            "todayRefunds": self.today_refunds,
        }


@dataclass(frozen=True)
class DerivedMetrics:
    """Recomputed from inventory and users on every read."""
    total_inventory_items: int = 0
    total_inventory_value: float = 0
    low_stock_items: int = 0
    active_users: int = 0


@dataclass(frozen=True)
class StatsSnapshot:
    counters: PersistedCounters
    derived: DerivedMetrics
    net_sales: float

    @property
    def today_sales(self) -> float:
        return self.counters.today_sales

    @property
    def today_refunds(self) -> float:
        return self.counters.today_refunds

    @property
    def low_stock_items(self) -> int:
        return self.derived.low_stock_items

    def to_dict(self) -> dict:
        return {
            **self.counters.to_dict(),
            "totalInventoryItems": self.derived.total_inventory_items,
            "totalInventoryValue": self.derived.total_inventory_value,
            "lowStockItems": self.derived.low_stock_items,
            "activeUsers": self.derived.active_users,
            "netSales": self.net_sales,
        }
