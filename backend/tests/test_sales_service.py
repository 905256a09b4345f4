from datetime import datetime

import pytest

from inventory_pro.services import inventory_service, sales_service, stats_service
from inventory_pro.services.sales_service import next_transaction_id
from inventory_pro.storage import POPULARITY, SALES
from inventory_pro.validation import ValidationError


def _line(item, quantity, price=None):
    return {
        "productId": item.id,
        "name": item.name,
        "quantity": quantity,
        "price": item.price if price is None else price,
        "unit": item.unit,
    }


def test_record_sale_persists_and_moves_stock(storage, widget, fixed_now, activity_log):
    fixed_now(datetime(2026, 3, 14, 12, 0))

    sale = sales_service.record_sale(
        storage, "cashier1", [_line(widget, 6)], 15.0, activity_log=activity_log,
    )

    assert sale.id == "TRX-20260314-1"
    assert sale.status == "Completed"
    assert sale.date.endswith("Z")
    assert sale.items[0].subtotal == 15.0
    assert storage.read(SALES)[0]["id"] == sale.id

    item = inventory_service.get_item(storage, widget.id)
    assert item.stock == 4
    assert item.status == "Low Stock"

    stats = stats_service.get_stats(storage)
    assert stats.today_sales == 15.0
    assert stats.net_sales == 15.0

    entry = activity_log.list()[0]
    assert entry.category == "sales"
    assert entry.action == "Sale Recorded"
    assert entry.details == "Sale completed: ID TRX-20260314-1, Total: $15.00, Items: 6"


def test_transaction_ids_are_sequential_within_a_day(storage, widget, fixed_now):
    fixed_now(datetime(2026, 3, 14, 9, 0))
    ids = [
        sales_service.record_sale(storage, "c", [_line(widget, 1)], 2.5).id
        for _ in range(3)
    ]
    assert ids == ["TRX-20260314-1", "TRX-20260314-2", "TRX-20260314-3"]

    fixed_now(datetime(2026, 3, 15, 9, 0))
    assert sales_service.record_sale(storage, "c", [_line(widget, 1)], 2.5).id == "TRX-20260315-1"


def test_next_transaction_id_uses_max_suffix_and_ignores_malformed():
    existing = ["TRX-20260314-2", "TRX-20260314-7", "TRX-20260314-abc", "TRX-20260313-99", None]
    assert next_transaction_id(existing, "20260314") == "TRX-20260314-8"
    assert next_transaction_id([], "20260314") == "TRX-20260314-1"


def test_stock_floors_at_zero(storage, widget):
    sales_service.record_sale(storage, "c", [_line(widget, 25)], 62.5)
    assert inventory_service.get_item(storage, widget.id).stock == 0


def test_unknown_product_is_skipped(storage, widget):
    lines = [{"productId": 999, "name": "Ghost", "quantity": 1, "price": 1, "unit": "pcs"}, _line(widget, 2)]
    sale = sales_service.record_sale(storage, "c", lines, 6.0)
    assert len(sale.items) == 2
    assert inventory_service.get_item(storage, widget.id).stock == 8


def test_missing_line_fields_fall_back_to_catalog(storage, widget):
    sale = sales_service.record_sale(storage, "c", [{"productId": widget.id, "quantity": 2}], 5.0)
    line = sale.items[0]
    assert line.name == "Widget"
    assert line.price == 2.5
    assert line.subtotal == 5.0


@pytest.mark.parametrize("cashier, items, amount, message", [
    ("", [{"productId": 1, "quantity": 1}], 5, "Missing required fields: cashier"),
    ("c", [], 5, "items must contain at least one line"),
    ("c", [{"productId": 1, "quantity": 1}], 0, "amount must be > 0"),
    ("c", [{"productId": 1, "quantity": 1}], None, "Missing required fields: amount"),
    ("c", [{"productId": 1, "quantity": 0}], 5, "quantity must be > 0"),
    ("c", [{"quantity": 1}], 5, "productId"),
    ("c", [{"productId": "--5", "quantity": 1}], 5, "items[1]: productId must be an integer"),
    ("c", [{"productId": " 1 ", "quantity": 1}, {"productId": "-", "quantity": 1}], 5,
     "items[2]: productId must be an integer"),
    ("c", "not-a-list", 5, "items must be a list"),
])
def test_invalid_sales_mutate_nothing(storage, widget, cashier, items, amount, message):
    with pytest.raises(ValidationError) as exc:
        sales_service.record_sale(storage, cashier, items, amount)
    assert message in str(exc.value)

    assert storage.read(SALES) == []
    assert inventory_service.get_item(storage, widget.id).stock == 10
    assert stats_service.get_stats(storage).today_sales == 0


def test_popularity_accumulates_and_sorts(storage, item_factory):
    a = item_factory(name="A")
    b = item_factory(name="B")
    sales_service.record_sale(storage, "c", [_line(a, 1), _line(b, 2)], 7.5)
    sales_service.record_sale(storage, "c", [_line(a, 3)], 7.5)

    records = storage.read(POPULARITY)
    assert [(r["productId"], r["salesCount"]) for r in records] == [(a.id, 4), (b.id, 2)]


def test_popularity_failure_does_not_fail_sale(storage, widget, monkeypatch):
    def boom(*args, **kwargs):
        raise RuntimeError("disk on fire")

    monkeypatch.setattr(sales_service, "update_product_popularity", boom)
    sale = sales_service.record_sale(storage, "c", [_line(widget, 1)], 2.5)
    assert sales_service.get_sale(storage, sale.id) is not None
    assert inventory_service.get_item(storage, widget.id).stock == 9


def test_list_and_get_sales(storage, widget):
    sale = sales_service.record_sale(storage, "c", [_line(widget, 1)], 2.5)
    assert [s.id for s in sales_service.list_sales(storage)] == [sale.id]
    assert sales_service.get_sale(storage, sale.id).amount == 2.5
    assert sales_service.get_sale(storage, "TRX-00000000-1") is None
