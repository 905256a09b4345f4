# backend/inventory_pro/__init__.py
from flask import Flask

from .config import Config
from .extensions import init_storage


def create_app(overrides: dict | None = None) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(Config)
    if overrides:
        app.config.update(overrides)

    # Module loggers (inventory_pro.*) are children of app.logger
    app.logger.setLevel(app.config["LOG_LEVEL"])

    # Document store + activity log
    storage = init_storage(app)
    app.logger.info("Using data directory: %s", storage.data_dir)

    if app.config["SEED_DEFAULT_DATA"]:
        from .services.user_service import seed_default_admin
        seed_default_admin(storage, rounds=app.config["PIN_HASH_ROUNDS"])

    # Register CLI commands
    from .cli import register_commands
    register_commands(app)

    return app
