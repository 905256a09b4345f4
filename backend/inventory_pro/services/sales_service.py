# Overview: Sales engine; records sales, generates day-scoped transaction ids, moves stock.

"""
Sales Engine

WHY: A completed sale touches four documents (sales, popularity, inventory,
stats). Recording it in one place keeps them consistent.

FLOW (record_sale):
1. Validate the payload (nothing is mutated on ValidationError)
2. Generate TRX-<YYYYMMDD>-<n> from the local business date
3. Persist the sale (status Completed)
4. Add line quantities to product popularity (best effort)
5. Decrement stock per line, floored at zero; unknown products are skipped
6. Add the amount to todaySales
7. Write the activity log entry

There is no rollback: a failure after step 3 leaves the earlier steps in
place. All steps run under the collection locks, so concurrent sales in the
same process cannot interleave.
"""

from __future__ import annotations

import logging

from ..models import Actor, ProductPopularity, Sale, SaleLine
from ..models.sales import SALE_STATUS_COMPLETED, TRANSACTION_PREFIX
from ..storage import INVENTORY, POPULARITY, SALES, STATS, FileStorage
from ..time_utils import local_now, to_utc_z
from ..validation import SALE_POLICY, enforce_rules_sale, validate_payload
from .activity_log_service import LOG_ACTIONS, LOG_CATEGORIES, log_activity
from .inventory_service import adjust_stock, get_item
from .stats_service import record_sale_amount

logger = logging.getLogger(__name__)


class SaleError(Exception):
    """Raised for sale operation errors."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


# =============================================================================
# READS
# =============================================================================

def _load_sales(storage: FileStorage) -> list[Sale]:
    return [Sale.from_dict(r) for r in storage.read(SALES) if "id" in r]


def list_sales(storage: FileStorage) -> list[Sale]:
    return _load_sales(storage)


def get_sale(storage: FileStorage, sale_id: str) -> Sale | None:
    for sale in _load_sales(storage):
        if sale.id == sale_id:
            return sale
    return None


# =============================================================================
# TRANSACTION IDS
# =============================================================================

def next_transaction_id(existing_ids, day_key: str) -> str:
    """
    TRX-<day_key>-<n>: n is one more than the highest same-day suffix.
    Ids with a non-numeric suffix are ignored.
    """
    prefix = f"{TRANSACTION_PREFIX}-{day_key}-"
    highest = 0
    for sale_id in existing_ids:
        if not isinstance(sale_id, str) or not sale_id.startswith(prefix):
            continue
        parts = sale_id.split("-")
        if len(parts) != 3 or not parts[2].isdigit():
            logger.warning("Ignoring malformed transaction id %r", sale_id)
            continue
        highest = max(highest, int(parts[2]))
    return f"{prefix}{highest + 1}"


# =============================================================================
# POPULARITY
# =============================================================================

def update_product_popularity(storage: FileStorage, lines: list[SaleLine], timestamp: str) -> None:
    """Add sold quantities per product; kept sorted by salesCount descending."""
    with storage.locked(POPULARITY):
        entries = {}
        for record in storage.read(POPULARITY):
            entry = ProductPopularity.from_dict(record)
            if entry.product_id is not None:
                entries[entry.product_id] = entry

        for line in lines:
            entry = entries.get(line.product_id)
            if entry is None:
                entries[line.product_id] = ProductPopularity(line.product_id, line.quantity, timestamp)
            else:
                entry.sales_count += line.quantity
                entry.last_updated = timestamp

        ordered = sorted(entries.values(), key=lambda e: e.sales_count, reverse=True)
        if not storage.write(POPULARITY, [e.to_dict() for e in ordered]):
            logger.warning("Failed to persist product popularity")


# =============================================================================
# RECORD SALE
# =============================================================================

def _build_line(storage: FileStorage, raw: dict) -> SaleLine:
    # Name/price/unit fall back to the catalog when the client omitted them
    if not all(k in raw for k in ("name", "price", "unit")):
        item = get_item(storage, raw["productId"])
        if item is not None:
            raw = {"name": item.name, "price": item.price, "unit": item.unit, **raw}
    return SaleLine.from_dict(raw)


def record_sale(
    storage: FileStorage,
    cashier: str,
    items: list,
    amount: float,
    actor: Actor | None = None,
    *,
    activity_log=None,
) -> Sale:
    """
    Record a completed sale.

    Raises:
        ValidationError: missing cashier, non-positive amount, empty or
            invalid line items
    """
    patch = validate_payload(
        payload={"cashier": cashier, "amount": amount, "items": items},
        policy=SALE_POLICY,
        partial=False,
    )
    raw_lines = enforce_rules_sale(patch)

    with storage.locked(SALES, POPULARITY, INVENTORY, STATS):
        lines = [_build_line(storage, raw) for raw in raw_lines]

        now = local_now()
        records = storage.read(SALES)
        sale = Sale(
            id=next_transaction_id((r.get("id") for r in records), now.strftime("%Y%m%d")),
            cashier=patch["cashier"],
            date=to_utc_z(now),
            amount=patch["amount"],
            items=lines,
            status=SALE_STATUS_COMPLETED,
        )
        records.append(sale.to_dict())
        if not storage.write(SALES, records):
            raise SaleError("Failed to persist sale", details={"id": sale.id})

        try:
            update_product_popularity(storage, lines, sale.date)
        except Exception:
            logger.exception("Popularity update failed for sale %s", sale.id)

        for line in lines:
            adjust_stock(storage, line.product_id, -line.quantity)

        if record_sale_amount(storage, sale.amount) is None:
            logger.error("Sale %s recorded but todaySales was not updated", sale.id)

    logger.info("Recorded sale %s (amount=%s, lines=%d)", sale.id, sale.amount, len(lines))
    log_activity(
        activity_log,
        actor,
        LOG_CATEGORIES["SALES"],
        LOG_ACTIONS["SALES"]["CREATE"],
        f"Sale completed: ID {sale.id}, Total: ${sale.amount:.2f}, Items: {sale.total_quantity:g}",
    )
    return sale
