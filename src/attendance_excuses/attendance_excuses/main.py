from __future__ import annotations

import importlib
import logging
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from flask import Flask, jsonify

from config import get_settings_module

from .common.identity import MissingIdentityError
from .common.logging_setup import configure_logging
from .core.exceptions import AuthorizationError, NotFoundError, ValidationError
from .database.bootstrap import apply_schema, apply_seed_sql, list_tables

from .container import Container, build_container
from .attendance.controller import register as register_attendance
from .audit.controller import register as register_audit
from .children.controller import register as register_children
from .excuses.controller import register as register_excuses
from .school_days.controller import register as register_school_days

logger = logging.getLogger(__name__)

DATABASE_DIR = Path(__file__).resolve().parents[3] / "database"


def _register_error_handlers(app: Flask) -> None:
    # MissingIdentityError is an AuthorizationError; Flask picks the most specific handler.
    @app.errorhandler(MissingIdentityError)
    def _unauthenticated(exc: MissingIdentityError):
        return jsonify({"error": str(exc)}), 401

    @app.errorhandler(AuthorizationError)
    def _forbidden(exc: AuthorizationError):
        return jsonify({"error": str(exc)}), 403

    @app.errorhandler(NotFoundError)
    def _not_found(exc: NotFoundError):
        return jsonify({"error": str(exc)}), 404

    @app.errorhandler(ValidationError)
    def _bad_request(exc: ValidationError):
        return jsonify({"error": str(exc)}), 400


def create_app(container: Optional[Container] = None) -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    app.secret_key = getattr(settings, "SECRET_KEY")
    db_config = getattr(settings, "DB_CONFIG")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))

    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))
    logger.info(
        "settings=%s db=%s@%s:%s/%s",
        settings_module,
        db_config.get("user"),
        db_config.get("host"),
        db_config.get("port", 3306),
        db_config.get("database"),
    )

    if container is None:
        if getattr(settings, "AUTO_INIT_DB", False):
            apply_schema(db_config, schema_path=DATABASE_DIR / "schema.sql")
            logger.info("schema ready (tables=%d)", len(list_tables(db_config)))
        if getattr(settings, "AUTO_SEED_DB", False):
            apply_seed_sql(db_config, seed_path=DATABASE_DIR / "seed.sql")
            logger.info("demo seed ready")

        container = build_container(
            db_config=db_config,
            slack_webhook_url=getattr(settings, "SLACK_WEBHOOK_URL", None),
        )

    _register_error_handlers(app)

    register_children(app, container)
    register_attendance(app, container)
    register_excuses(app, container)
    register_school_days(app, container)
    register_audit(app, container)

    return app
