# backend/inventory_pro/config.py
from __future__ import annotations
import os


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "inventory-pro-secret-key-change-me")

    # JSON collections live in backend/data by default
    DATA_DIR = os.environ.get(
        "INVENTORY_DATA_DIR",  # optional alternative location
        os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "data"),
    )

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    # Seconds a freshly created user's session window stays valid
    SESSION_MAX_AGE = int(os.environ.get("SESSION_MAX_AGE", "7200"))

    # bcrypt cost factor for PIN hashes
    PIN_HASH_ROUNDS = int(os.environ.get("PIN_HASH_ROUNDS", "12"))

    SEED_DEFAULT_DATA = os.environ.get("SEED_DEFAULT_DATA", "true").lower() == "true"
