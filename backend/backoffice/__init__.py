# backend/backoffice/__init__.py
from flask import Flask

from .config import Config
from .extensions import db, migrate


def create_app(test_config: dict | None = None, auth_provider=None) -> Flask:
    """
    Application factory.

    auth_provider replaces the configured single-operator credential check
    (any AuthProvider implementation).
    """
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(Config)
    if test_config:
        app.config.update(test_config)

    # app.logger is the "backoffice" logger; service module loggers propagate to it
    app.logger.setLevel(app.config["LOG_LEVEL"])

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)

    # Import models so Alembic can discover metadata reliably
    from . import models  # noqa: F401

    from .services.auth_service import ConfiguredCredentialProvider, SessionRegistry
    from .services.cache_service import EntityCache
    from .services.entity_store import build_entity_store
    from .services.sales_service import DraftBook

    app.extensions["entity_store"] = build_entity_store(app.config["STORE_BACKEND"])
    app.extensions["entity_cache"] = EntityCache()
    app.extensions["sale_drafts"] = DraftBook()
    app.extensions["auth_provider"] = auth_provider or ConfiguredCredentialProvider(
        app.config["ADMIN_EMAIL"], app.config["ADMIN_PASSWORD_HASH"]
    )
    app.extensions["auth_sessions"] = SessionRegistry()

    # Register blueprints
    from .routes.system import system_bp
    from .routes.auth import auth_bp
    from .routes.customers import customers_bp
    from .routes.products import products_bp
    from .routes.sales import sales_bp
    from .routes.reports import reports_bp

    app.register_blueprint(system_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(customers_bp)
    app.register_blueprint(products_bp)
    app.register_blueprint(sales_bp)
    app.register_blueprint(reports_bp)

    # Register CLI commands
    from .cli import register_commands
    register_commands(app)

    return app
