from datetime import datetime

import pytest

from inventory_pro.services import inventory_service, loss_service, stats_service
from inventory_pro.services.inventory_service import InventoryNotFoundError
from inventory_pro.storage import LOSSES
from inventory_pro.validation import ValidationError


def _record(storage, item, quantity, reason="Damaged", value=None, **kwargs):
    return loss_service.record_loss(
        storage,
        item.id,
        item.name,
        quantity,
        reason,
        "stocker1",
        round(quantity * item.price, 2) if value is None else value,
        **kwargs,
    )


def test_record_loss_decrements_stock_once(storage, widget, fixed_now, activity_log):
    fixed_now(datetime(2026, 3, 14, 12, 0))
    loss = _record(storage, widget, 3, activity_log=activity_log)

    assert loss.id == "LOSS-2026-03-14-001"
    assert loss.date.endswith("Z")
    assert inventory_service.get_item(storage, widget.id).stock == 7
    assert storage.read(LOSSES)[0]["id"] == loss.id

    entry = activity_log.list()[0]
    assert entry.category == "losses"
    assert entry.action == "Loss Recorded"
    assert entry.details == 'Recorded loss of 3 Widget | Reason: "Damaged" | Value: $7.50'


def test_loss_ids_use_running_count(storage, widget, fixed_now):
    fixed_now(datetime(2026, 3, 14, 12, 0))
    _record(storage, widget, 1)
    fixed_now(datetime(2026, 3, 15, 12, 0))
    assert _record(storage, widget, 1).id == "LOSS-2026-03-15-002"


def test_loss_floors_stock_at_zero(storage, widget):
    _record(storage, widget, 50)
    item = inventory_service.get_item(storage, widget.id)
    assert item.stock == 0
    assert item.status == "Low Stock"


def test_loss_for_missing_item_raises(storage):
    with pytest.raises(InventoryNotFoundError):
        loss_service.record_loss(storage, 77, "Ghost", 1, "Theft", "s", 1.0)
    assert storage.read(LOSSES) == []


def test_loss_requires_all_fields(storage, widget):
    with pytest.raises(ValidationError):
        loss_service.record_loss(storage, widget.id, widget.name, 1, "", "s", 1.0)
    with pytest.raises(ValidationError):
        loss_service.record_loss(storage, widget.id, widget.name, 0, "Theft", "s", 1.0)
    assert inventory_service.get_item(storage, widget.id).stock == 10


def test_loss_does_not_touch_sales_counters(storage, widget):
    _record(storage, widget, 2)
    stats = stats_service.get_stats(storage)
    assert stats.today_sales == 0
    assert stats.today_refunds == 0


class TestUpdateLoss:
    def test_increase_takes_difference_from_stock(self, storage, widget, activity_log):
        loss = _record(storage, widget, 2)
        updated = loss_service.update_loss(storage, loss.id, {"quantity": 5}, activity_log=activity_log)

        assert updated.quantity == 5
        assert updated.value == 12.5
        assert inventory_service.get_item(storage, widget.id).stock == 5

        entry = activity_log.list()[0]
        assert entry.action == "Loss Updated"
        assert "Changed quantity from 2 to 5" in entry.details

    def test_decrease_gives_stock_back(self, storage, widget):
        loss = _record(storage, widget, 6)
        assert inventory_service.get_item(storage, widget.id).stock == 4

        loss_service.update_loss(storage, loss.id, {"quantity": 1})
        item = inventory_service.get_item(storage, widget.id)
        assert item.stock == 9
        assert item.status == "In Stock"

    def test_supplied_value_is_kept(self, storage, widget):
        loss = _record(storage, widget, 2)
        updated = loss_service.update_loss(storage, loss.id, {"quantity": 4, "value": 1.0})
        assert updated.value == 1.0

    def test_reason_only_keeps_stock(self, storage, widget):
        loss = _record(storage, widget, 2)
        updated = loss_service.update_loss(storage, loss.id, {"reason": "Expired"})
        assert updated.reason == "Expired"
        assert inventory_service.get_item(storage, widget.id).stock == 8
        assert loss_service.get_loss(storage, loss.id).reason == "Expired"

    def test_unknown_loss_returns_none(self, storage):
        assert loss_service.update_loss(storage, "LOSS-2026-01-01-001", {"quantity": 1}) is None

    def test_cannot_retarget_item(self, storage, widget):
        loss = _record(storage, widget, 1)
        with pytest.raises(ValidationError):
            loss_service.update_loss(storage, loss.id, {"inventoryItemId": 2})


def test_loss_summary_groups_by_reason(storage, widget):
    _record(storage, widget, 1, reason="Damaged")
    _record(storage, widget, 2, reason="Damaged")
    _record(storage, widget, 1, reason="Theft")

    summary = loss_service.loss_summary(storage)
    assert summary["Damaged"] == {"count": 2, "quantity": 3, "value": 7.5}
    assert summary["Theft"]["count"] == 1
    assert [l.id for l in loss_service.list_losses(storage)][-1].endswith("-003")
