# Overview: Refund engine; reverses a completed sale exactly once.

"""
Refund Engine

LIFECYCLE: Completed -> Refunded. There is no way back and no partial
refund; a second refund of the same sale is a no-op returning None.

Stock is restored for every line. todayRefunds only grows when the sale
happened on the current local business day; refunds of older sales do not
touch today's counters.
"""

from __future__ import annotations

import logging

from ..models import Actor, Sale
from ..models.sales import SALE_STATUS_REFUNDED
from ..storage import INVENTORY, SALES, STATS, FileStorage
from ..time_utils import business_date, local_now, to_utc_z
from .activity_log_service import LOG_ACTIONS, LOG_CATEGORIES, log_activity
from .inventory_service import adjust_stock
from .stats_service import record_refund_amount

logger = logging.getLogger(__name__)


def refund_sale(
    storage: FileStorage,
    sale_id: str,
    refunded_by: str,
    actor: Actor | None = None,
    *,
    activity_log=None,
) -> Sale | None:
    """None when the sale does not exist or was already refunded."""
    with storage.locked(SALES, INVENTORY, STATS):
        records = storage.read(SALES)
        index = next((i for i, r in enumerate(records) if r.get("id") == sale_id), None)
        if index is None:
            logger.info("Refund requested for unknown sale %s", sale_id)
            return None

        sale = Sale.from_dict(records[index])
        if sale.is_refunded:
            logger.info("Sale %s already refunded", sale_id)
            return None

        for line in sale.items:
            adjust_stock(storage, line.product_id, line.quantity)

        now = local_now()
        if business_date(sale.date) == now.date():
            if record_refund_amount(storage, sale.amount) is None:
                logger.error("Refund of %s not added to todayRefunds", sale_id)

        sale.status = SALE_STATUS_REFUNDED
        sale.refunded_by = refunded_by
        sale.refund_date = to_utc_z(now)
        # Keep any unknown keys of the stored record
        records[index] = {**records[index], **sale.to_dict()}
        if not storage.write(SALES, records):
            logger.error("Failed to persist refund of sale %s", sale_id)

    logger.info("Refunded sale %s (amount=%s) by %s", sale.id, sale.amount, refunded_by)
    log_activity(
        activity_log,
        actor,
        LOG_CATEGORIES["SALES"],
        LOG_ACTIONS["SALES"]["REFUND"],
        f"Refunded transaction: ID {sale.id}, Total: ${sale.amount:.2f}, Items returned to inventory",
    )
    return sale
