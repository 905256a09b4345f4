import json

import pytest

from inventory_pro.models.stats import PersistedCounters, compute_net_sales
from inventory_pro.services import stats_service, user_service
from inventory_pro.storage import STATS


def test_fresh_stats_are_zero(storage):
    stats = stats_service.get_stats(storage).to_dict()
    assert stats == {
        "todaySales": 0,
        "todayRefunds": 0,
        "totalInventoryItems": 0,
        "totalInventoryValue": 0,
        "lowStockItems": 0,
        "activeUsers": 0,
        "netSales": 0,
    }


def test_derived_metrics_follow_inventory_and_users(storage, item_factory):
    item_factory(price=2.5, stock=10, threshold=5)
    item_factory(price=1.0, stock=5, threshold=5)   # at threshold counts as low
    item_factory(price=4.0, stock=0, threshold=1)
    user_service.create_user(storage, {"username": "a", "name": "A", "role": "Cashier", "pin": "1111"}, rounds=4)
    user_service.create_user(
        storage, {"username": "b", "name": "B", "role": "Cashier", "pin": "2222", "status": "Inactive"}, rounds=4,
    )

    stats = stats_service.get_stats(storage)
    assert stats.derived.total_inventory_items == 3
    assert stats.derived.total_inventory_value == 30.0
    assert stats.low_stock_items == 2
    assert stats.derived.active_users == 1


def test_update_stats_never_persists_derived_fields(storage):
    snapshot = stats_service.update_stats(storage, {
        "todaySales": 100,
        "lowStockItems": 42,
        "totalInventoryValue": 9999,
    })

    assert snapshot.today_sales == 100
    assert snapshot.net_sales == 100
    assert snapshot.low_stock_items == 0

    with open(storage.path_for(STATS), encoding="utf-8") as fh:
        assert json.load(fh) == {"stats": {"todaySales": 100, "todayRefunds": 0}}


def test_net_sales_recomputed_when_counters_change(storage):
    stats_service.update_stats(storage, {"todaySales": 50})
    snapshot = stats_service.update_stats(storage, {"todayRefunds": 20})
    assert snapshot.net_sales == 30
    assert stats_service.get_stats(storage).net_sales == 30


def test_supplied_net_sales_is_echoed(storage):
    snapshot = stats_service.update_stats(storage, {"todaySales": 50, "netSales": 7})
    assert snapshot.net_sales == 7
    assert stats_service.get_stats(storage).net_sales == 50


def test_net_sales_never_negative(storage):
    stats_service.record_refund_amount(storage, 12.5)
    assert stats_service.get_stats(storage).net_sales == 0


def test_record_and_reset_helpers(storage):
    stats_service.record_sale_amount(storage, 10.1)
    stats_service.record_sale_amount(storage, 0.2)
    stats_service.record_refund_amount(storage, 0.3)
    stats = stats_service.get_stats(storage)
    assert stats.today_sales == 10.3
    assert stats.net_sales == 10.0

    stats_service.reset_daily_counters(storage)
    assert stats_service.get_stats(storage).today_sales == 0


def test_update_stats_write_failure_returns_none(storage, monkeypatch):
    monkeypatch.setattr(storage, "write_object", lambda *a, **k: False)
    assert stats_service.update_stats(storage, {"todaySales": 1}) is None


def test_legacy_flat_stats_file_is_read(storage):
    with open(storage.path_for(STATS), "w", encoding="utf-8") as fh:
        json.dump({"todaySales": 8, "lowStockItems": 3, "netSales": 8}, fh)
    stats = stats_service.get_stats(storage)
    assert stats.today_sales == 8
    assert stats.today_refunds == 0
    assert stats.low_stock_items == 0


@pytest.mark.parametrize("sales, refunds, expected", [
    (100, 40, 60),
    (10, 25, 0),
    (0, 0, 0),
    (None, 5, 0),
])
def test_compute_net_sales(sales, refunds, expected):
    assert compute_net_sales(sales, refunds) == expected


def test_persisted_counters_tolerate_missing_keys():
    assert PersistedCounters.from_dict({}).to_dict() == {"todaySales": 0, "todayRefunds": 0}


def test_malformed_counters_read_as_zero(storage, caplog):
    with open(storage.path_for(STATS), "w", encoding="utf-8") as fh:
        json.dump({"stats": {"todaySales": "12.5", "todayRefunds": True}}, fh)

    with caplog.at_level("WARNING", logger="inventory_pro.models.stats"):
        stats = stats_service.get_stats(storage)
    assert (stats.today_sales, stats.today_refunds, stats.net_sales) == (0, 0, 0)
    assert "todaySales" in caplog.text

    assert stats_service.record_sale_amount(storage, 4.5).today_sales == 4.5
    assert stats_service.get_stats(storage).today_sales == 4.5
