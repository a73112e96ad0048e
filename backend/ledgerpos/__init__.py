# backend/ledgerpos/__init__.py
from flask import Flask

from .config import Config
from .extensions import db, migrate, record_cache


def create_app(test_config: dict | None = None) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(Config)

    # Overrides must land before db.init_app: the engine is built there
    if test_config:
        app.config.update(test_config)

    app.logger.setLevel(app.config["LOG_LEVEL"])

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)
    record_cache.init_app(app)

    # Import models so Alembic can discover metadata reliably
    from . import models  # noqa: F401
    from .models.immutability import register_immutability_listeners
    register_immutability_listeners()

    # Shift totals follow committed sales
    from .services.shift_service import connect_signals
    connect_signals(app)

    # Register blueprints
    from .routes.system import system_bp
    from .routes.sales import sales_bp
    from .routes.inventory import inventory_bp
    from .routes.customers import customers_bp
    from .routes.shifts import shifts_bp

    app.register_blueprint(system_bp)
    app.register_blueprint(sales_bp)
    app.register_blueprint(inventory_bp)
    app.register_blueprint(customers_bp)
    app.register_blueprint(shifts_bp)

    # Register CLI commands
    from .cli import register_commands
    register_commands(app)

    return app
