# Overview: Application-scoped storage and activity log instances.

from flask import current_app

from .storage import FileStorage
from .services.activity_log_service import ActivityLogRepository

STORAGE_KEY = "inventory_pro.storage"
ACTIVITY_LOG_KEY = "inventory_pro.activity_log"


def init_storage(app) -> FileStorage:
    """Build the document store and activity log for `app` and register them."""
    storage = FileStorage(app.config["DATA_DIR"])
    storage.ensure_data_files()
    app.extensions[STORAGE_KEY] = storage
    app.extensions[ACTIVITY_LOG_KEY] = ActivityLogRepository(storage)
    return storage


def get_storage() -> FileStorage:
    return current_app.extensions[STORAGE_KEY]


def get_activity_log() -> ActivityLogRepository:
    return current_app.extensions[ACTIVITY_LOG_KEY]
