from datetime import datetime

from inventory_pro.services import inventory_service, refund_service, sales_service, stats_service


def _sell(storage, item, quantity):
    line = {"productId": item.id, "name": item.name, "quantity": quantity, "price": item.price, "unit": item.unit}
    return sales_service.record_sale(storage, "cashier1", [line], round(quantity * item.price, 2))


def test_refund_restores_stock_and_counters(storage, widget, fixed_now, activity_log):
    fixed_now(datetime(2026, 3, 14, 10, 0))
    sale = _sell(storage, widget, 6)

    fixed_now(datetime(2026, 3, 14, 16, 30))
    refunded = refund_service.refund_sale(storage, sale.id, "manager1", activity_log=activity_log)

    assert refunded.status == "Refunded"
    assert refunded.refunded_by == "manager1"
    assert refunded.refund_date.endswith("Z")
    assert inventory_service.get_item(storage, widget.id).stock == 10

    stats = stats_service.get_stats(storage)
    assert stats.today_sales == 15.0
    assert stats.today_refunds == 15.0
    assert stats.net_sales == 0

    stored = sales_service.get_sale(storage, sale.id)
    assert stored.status == "Refunded"
    assert stored.items == sale.items

    entry = activity_log.list()[0]
    assert entry.action == "Sale Refunded"
    assert "Total: $15.00" in entry.details


def test_second_refund_is_a_no_op(storage, widget):
    sale = _sell(storage, widget, 2)
    assert refund_service.refund_sale(storage, sale.id, "m") is not None
    before = stats_service.get_stats(storage).to_dict()

    assert refund_service.refund_sale(storage, sale.id, "m") is None

    assert inventory_service.get_item(storage, widget.id).stock == 10
    assert stats_service.get_stats(storage).to_dict() == before


def test_unknown_sale_returns_none(storage):
    assert refund_service.refund_sale(storage, "TRX-20260314-9", "m") is None


def test_refund_of_older_sale_leaves_today_counters(storage, widget, fixed_now):
    fixed_now(datetime(2026, 3, 13, 12, 0))
    sale = _sell(storage, widget, 4)
    stats_service.reset_daily_counters(storage)

    fixed_now(datetime(2026, 3, 14, 12, 0))
    refunded = refund_service.refund_sale(storage, sale.id, "m")

    assert refunded is not None
    assert inventory_service.get_item(storage, widget.id).stock == 10
    stats = stats_service.get_stats(storage)
    assert stats.today_refunds == 0
    assert stats.today_sales == 0


def test_refund_reports_recovery_above_threshold(storage, widget, caplog):
    sale = _sell(storage, widget, 6)
    with caplog.at_level("INFO", logger="inventory_pro"):
        refund_service.refund_sale(storage, sale.id, "m")
    assert any("back above its threshold" in r.getMessage() for r in caplog.records)
