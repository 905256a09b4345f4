# Overview: Dashboard statistics; persisted daily counters plus metrics derived on every read.

"""
Stats Aggregator

Only todaySales and todayRefunds live in stats.json. Everything else
(inventory totals, low-stock count, active users, net sales) is recomputed
from inventory.json and users.json on each read, so it cannot drift from the
ledger.
"""

from __future__ import annotations

import logging

from ..models import DerivedMetrics, InventoryItem, PersistedCounters, StatsSnapshot
from ..models.auth import USER_STATUS_ACTIVE
from ..models.stats import DERIVED_KEYS, compute_net_sales
from ..storage import INVENTORY, STATS, USERS, FileStorage

logger = logging.getLogger(__name__)


def _number(value) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0
    return value


def compute_derived_metrics(storage: FileStorage) -> DerivedMetrics:
    items = [InventoryItem.from_dict(r) for r in storage.read(INVENTORY) if "id" in r]
    users = storage.read(USERS)

    return DerivedMetrics(
        total_inventory_items=len(items),
        total_inventory_value=round(sum(i.stock_value for i in items), 2),
        # at-or-below, unlike the strict "Low Stock" status
        low_stock_items=sum(1 for i in items if i.at_or_below_threshold),
        active_users=sum(1 for u in users if u.get("status") == USER_STATUS_ACTIVE),
    )


def _read_counters(storage: FileStorage) -> PersistedCounters:
    return PersistedCounters.from_dict(storage.read_object(STATS))


def get_stats(storage: FileStorage) -> StatsSnapshot:
    counters = _read_counters(storage)
    return StatsSnapshot(
        counters=counters,
        derived=compute_derived_metrics(storage),
        net_sales=compute_net_sales(counters.today_sales, counters.today_refunds),
    )


def update_stats(storage: FileStorage, updates: dict) -> StatsSnapshot | None:
    """
    Merge `updates` into the persisted counters.

    Derived keys are accepted but never written. netSales is recomputed when
    a counter changed, unless the caller supplied it. Returns None when the
    write fails.
    """
    ignored = sorted(k for k in updates if k in DERIVED_KEYS and k != "netSales")
    if ignored:
        logger.debug("Ignoring derived stats fields on update: %s", ", ".join(ignored))

    with storage.locked(STATS):
        counters = _read_counters(storage)
        if "todaySales" in updates:
            counters.today_sales = _number(updates["todaySales"])
        if "todayRefunds" in updates:
            counters.today_refunds = _number(updates["todayRefunds"])

        if not storage.write_object(STATS, counters.to_dict()):
            logger.error("Failed to persist stats counters")
            return None

    # A supplied netSales is echoed back only; reads always recompute it
    if updates.get("netSales") is not None:
        net_sales = _number(updates["netSales"])
    else:
        net_sales = compute_net_sales(counters.today_sales, counters.today_refunds)

    return StatsSnapshot(
        counters=counters,
        derived=compute_derived_metrics(storage),
        net_sales=net_sales,
    )


def record_sale_amount(storage: FileStorage, amount: float) -> StatsSnapshot | None:
    with storage.locked(STATS):
        counters = _read_counters(storage)
        return update_stats(storage, {"todaySales": round(counters.today_sales + amount, 2)})


def record_refund_amount(storage: FileStorage, amount: float) -> StatsSnapshot | None:
    with storage.locked(STATS):
        counters = _read_counters(storage)
        return update_stats(storage, {"todayRefunds": round(counters.today_refunds + amount, 2)})


def reset_daily_counters(storage: FileStorage) -> StatsSnapshot | None:
    logger.info("Resetting daily sales/refund counters")
    return update_stats(storage, {"todaySales": 0, "todayRefunds": 0})
