from __future__ import annotations

import logging

from ..models import Actor, StoreSettings
from ..storage import SETTINGS, FileStorage
from ..validation import SETTINGS_POLICY, ValidationError, validate_payload
from .activity_log_service import LOG_ACTIONS, LOG_CATEGORIES, log_activity

logger = logging.getLogger(__name__)

REQUIRED_KEYS = ("storeName", "storeAddress", "storePhone", "thankYouMessage")


class SettingsError(ValueError):
    pass


def get_store_settings(storage: FileStorage) -> StoreSettings:
    """Stored settings, or the defaults when settings.json is empty or missing."""
    return StoreSettings.from_dict(storage.read_object(SETTINGS))


def update_store_settings(
    storage: FileStorage,
    payload: dict,
    *,
    actor: Actor | None = None,
    activity_log=None,
) -> StoreSettings:
    """
    Merge `payload` into the stored settings.

    The four receipt fields may be changed but never emptied.
    """
    patch = validate_payload(payload=payload, policy=SETTINGS_POLICY, partial=True)
    for key in REQUIRED_KEYS:
        if key in patch and not patch[key]:
            raise ValidationError(f"{key} cannot be blank")

    with storage.locked(SETTINGS):
        current = storage.read_object(SETTINGS)
        merged = StoreSettings.from_dict({**StoreSettings.from_dict(current).to_dict(), **patch})
        if not storage.write_object(SETTINGS, merged.to_dict()):
            raise SettingsError("Failed to save store settings")

    changed = ", ".join(sorted(patch)) or "nothing"
    log_activity(
        activity_log,
        actor,
        LOG_CATEGORIES["SETTINGS"],
        LOG_ACTIONS["SETTINGS"]["UPDATE"],
        f"Updated store settings: {changed}",
    )
    return merged


def get_next_transaction_id(storage: FileStorage) -> int:
    """
    Return the legacy settings counter and advance it.

    Sale ids do not use this counter; see sales_service.next_transaction_id.
    """
    with storage.locked(SETTINGS):
        settings = get_store_settings(storage)
        current = settings.next_transaction_id
        settings.next_transaction_id = current + 1
        if not storage.write_object(SETTINGS, settings.to_dict()):
            raise SettingsError("Failed to advance transaction counter")
    return current
