"""
Pytest fixtures for Inventory Pro backend tests.

Every test gets its own data directory under tmp_path, so tests never share
JSON files.
"""

from datetime import datetime

import pytest

from inventory_pro import create_app
from inventory_pro.extensions import get_storage, get_activity_log
from inventory_pro.models import Actor
from inventory_pro.models.auth import ROLE_ADMINISTRATOR, ROLE_MANAGER, ROLE_CASHIER, ROLE_STOCKER
from inventory_pro.services import inventory_service


@pytest.fixture(scope='function')
def app(tmp_path):
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'DATA_DIR': str(tmp_path / 'data'),
        'SEED_DEFAULT_DATA': False,
        'PIN_HASH_ROUNDS': 4,
    })
    with app.app_context():
        yield app


@pytest.fixture(scope='function')
def storage(app):
    return get_storage()


@pytest.fixture(scope='function')
def activity_log(app):
    return get_activity_log()


@pytest.fixture
def fixed_now(monkeypatch):
    """
    Pin the local business clock used by the engines.

    Returns a setter: fixed_now(datetime(...)) freezes local_now() in every
    engine module. Naive datetimes are read as server-local wall time.
    """
    from inventory_pro.services import sales_service, refund_service, loss_service

    def _set(dt: datetime):
        if dt.tzinfo is None:
            dt = dt.astimezone()
        for module in (sales_service, refund_service, loss_service):
            monkeypatch.setattr(module, "local_now", lambda: dt)
        return dt

    return _set


@pytest.fixture
def item_factory(storage):
    """Create inventory items with sensible defaults."""
    counter = {"n": 0}

    def _create(**overrides):
        counter["n"] += 1
        payload = {
            "name": f"Item {counter['n']}",
            "sku": f"SKU-{counter['n']:03d}",
            "category": "General",
            "unit": "pcs",
            "price": 2.5,
            "priceUnit": "each",
            "stock": 10,
            "threshold": 5,
        }
        payload.update(overrides)
        return inventory_service.create_item(storage, payload)

    return _create


@pytest.fixture
def widget(item_factory):
    """Stock 10, threshold 5, price 2.50."""
    return item_factory(name="Widget", sku="WID-001")


@pytest.fixture
def admin_actor():
    return Actor(id=1, username="admin", role=ROLE_ADMINISTRATOR)


@pytest.fixture
def manager_actor():
    return Actor(id=2, username="manager", role=ROLE_MANAGER)


@pytest.fixture
def cashier_actor():
    return Actor(id=3, username="cashier", role=ROLE_CASHIER)


@pytest.fixture
def stocker_actor():
    return Actor(id=4, username="stocker", role=ROLE_STOCKER)
