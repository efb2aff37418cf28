"""Receipts Flask application factory."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import click
from flask import Flask, current_app, g

from .config import AppConfig, load_config
from .database import create_db_engine, init_schema
from .repositories import ReceiptsRepository


def create_app(config: AppConfig | None = None) -> Flask:
    """Build and configure the Receipts Flask application instance.

    Args:
        config: Optional :class:`AppConfig` override. When ``None`` the helper
            loads configuration via :func:`load_config`, which honours
            ``RECEIPTS_*`` environment variables and a local ``.env`` file.

    Returns:
        Flask: Application exposing the dashboard, login, upload and review
        endpoints. The SQLAlchemy engine is stored on
        ``app.config['DB_ENGINE']`` for downstream repositories.

    External Dependencies:
        * Calls :func:`load_config` to resolve runtime settings.
        * Uses :func:`create_db_engine` and :func:`init_schema` so a fresh
          development database carries the default ``Receipts`` and ``Users``
          tables.
    """

    app = Flask(__name__, instance_relative_config=True)
    app_config = config or load_config()
    Path(app.instance_path).mkdir(parents=True, exist_ok=True)
    app.config.update(
        SECRET_KEY=app_config.secret_key,
        UPLOAD_FOLDER=str(app_config.uploads_dir),
        MAX_CONTENT_LENGTH=app_config.max_content_length,
        REVIEW_WEBHOOK_URL=app_config.review_webhook_url,
        REVIEW_TIMEOUT=app_config.review_timeout,
    )
    engine = create_db_engine(app_config.database_url)
    init_schema(engine)
    app.config["DB_ENGINE"] = engine

    from .blueprints.auth import auth_bp
    from .blueprints.dashboard import dashboard_bp
    from .blueprints.receipts import receipts_bp

    app.register_blueprint(auth_bp)
    app.register_blueprint(dashboard_bp)
    app.register_blueprint(receipts_bp)

    @app.teardown_appcontext
    def teardown(_: Any) -> None:
        g.pop("receipts_repo", None)

    @app.cli.command("init-db")
    def init_db_command() -> None:
        """Create the default receipts and users tables."""

        init_schema(engine)
        click.echo("Database initialized.")

    return app


def get_repository() -> ReceiptsRepository:
    """Return a repository bound to the active Flask request.

    Returns:
        ReceiptsRepository: Lazily constructed instance stored on
        :mod:`flask.g` so a request reflects each table at most once.

    External Dependencies:
        * Reads ``current_app.config['DB_ENGINE']`` set during
          :func:`create_app`.
    """

    if not hasattr(g, "receipts_repo"):
        engine = current_app.config["DB_ENGINE"]
        g.receipts_repo = ReceiptsRepository(engine)
    return g.receipts_repo


__all__ = ["create_app", "AppConfig", "get_repository"]
