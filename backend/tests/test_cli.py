import json

import pytest

from inventory_pro.services import inventory_service, sales_service, user_service


@pytest.fixture
def runner(app):
    return app.test_cli_runner()


def test_system_init_seeds_admin_and_demo_items(runner, storage):
    result = runner.invoke(args=["system", "init", "--demo"])

    assert result.exit_code == 0, result.output
    assert "PASS Created default administrator: admin" in result.output
    assert "PASS Added 3 demo inventory items" in result.output
    assert user_service.get_user_by_username(storage, "admin").role == "Administrator"
    assert len(inventory_service.list_items(storage)) == 3

    again = runner.invoke(args=["system", "init", "--demo"])
    assert "PASS Users already exist" in again.output
    assert "PASS Added 0 demo inventory items" in again.output


def test_reset_data_requires_confirmation(runner, storage, widget):
    result = runner.invoke(args=["system", "reset-data"])
    assert "FAIL Refusing to reset without --yes" in result.output
    assert inventory_service.list_items(storage)

    result = runner.invoke(args=["system", "reset-data", "--yes"])
    assert result.exit_code == 0
    assert inventory_service.list_items(storage) == []


def test_users_create_and_list(runner, storage):
    result = runner.invoke(args=[
        "users", "create", "--username", "jane", "--name", "Jane Doe",
        "--role", "Cashier", "--pin", "4321",
    ])
    assert result.exit_code == 0, result.output
    assert "PASS Created user: jane" in result.output
    assert user_service.verify_pin(user_service.get_user_by_username(storage, "jane"), "4321")

    listing = runner.invoke(args=["users", "list"])
    assert "jane" in listing.output
    assert "Total: 1 users" in listing.output


def test_users_create_reports_bad_pin(runner, storage):
    result = runner.invoke(args=[
        "users", "create", "--username", "joe", "--name", "Joe",
        "--role", "Stocker", "--pin", "12",
    ])
    assert "FAIL PIN must be 4 digits" in result.output
    assert user_service.list_users(storage) == []


def test_inventory_commands(runner, storage, item_factory):
    item_factory(name="Plenty", stock=50, threshold=5)
    low = item_factory(name="Scarce", stock=1, threshold=5)
    sales_service.record_sale(
        storage, "c", [{"productId": low.id, "name": low.name, "quantity": 1, "price": 2.5, "unit": "pcs"}], 2.5,
    )

    popular = runner.invoke(args=["inventory", "list", "--popular"])
    assert popular.exit_code == 0, popular.output
    lines = [line for line in popular.output.splitlines() if "Scarce" in line or "Plenty" in line]
    assert "Scarce" in lines[0]

    low_stock = runner.invoke(args=["inventory", "low-stock"])
    assert "Scarce" in low_stock.output
    assert "Plenty" not in low_stock.output


def test_stats_show_and_reset(runner, storage, widget):
    sales_service.record_sale(
        storage, "c", [{"productId": widget.id, "name": widget.name, "quantity": 2, "price": 2.5, "unit": "pcs"}], 5.0,
    )

    shown = runner.invoke(args=["stats", "show", "--json"])
    assert shown.exit_code == 0, shown.output
    stats = json.loads(shown.stdout)
    assert stats["todaySales"] == 5.0
    assert stats["totalInventoryItems"] == 1

    assert "FAIL" in runner.invoke(args=["stats", "reset"]).output
    assert "PASS Daily counters reset" in runner.invoke(args=["stats", "reset", "--yes"]).output
    assert json.loads(runner.invoke(args=["stats", "show", "--json"]).stdout)["todaySales"] == 0


def test_logs_list_filters(runner, activity_log):
    activity_log.create(1, "admin", "sales", "Sale Recorded", "Sale completed: ID TRX-20260314-1")
    activity_log.create(1, "admin", "losses", "Loss Recorded", "Recorded loss of 1 Widget")
    activity_log.create(1, "admin", "authentication", "User Login")

    everything = runner.invoke(args=["logs", "list"])
    assert "Sale Recorded" in everything.output
    assert "Loss Recorded" in everything.output
    assert "User Login" not in everything.output

    only_sales = runner.invoke(args=["logs", "list", "--category", "sales"])
    assert "Sale Recorded" in only_sales.output
    assert "Loss Recorded" not in only_sales.output


def test_perms_list_for_role(runner):
    result = runner.invoke(args=["perms", "list", "--role", "Stocker"])
    assert result.exit_code == 0, result.output
    assert "Total: 0 permissions" in result.output

    result = runner.invoke(args=["perms", "list", "--role", "Manager"])
    assert "EDIT_PROFIT_SETTINGS" in result.output
    assert "VIEW_ACTIVITY_LOGS" not in result.output
