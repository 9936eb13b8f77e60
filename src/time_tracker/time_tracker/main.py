from __future__ import annotations

import importlib
import logging
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from flask import Flask

from config import get_settings_module

from .common.http_errors import register_error_handlers
from .common.logging import configure_logging
from .container import Container, build_container
from .database.bootstrap import apply_schema, apply_sql_file, ensure_demo_users, list_tables
from .time_entries.controller import register as register_time_entries
from .users.controller import register as register_users

logger = logging.getLogger(__name__)

REPO_ROOT = Path(__file__).resolve().parents[3]


def create_app(container: Optional[Container] = None, *, settings_module: Optional[str] = None) -> Flask:
    """App factory. Pass a prebuilt ``container`` to run on non-MySQL repositories."""

    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = settings_module or get_settings_module()
    settings = importlib.import_module(settings_module)
    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))

    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))

    if container is None:
        db_config = getattr(settings, "DB_CONFIG")
        logger.info(
            "startup settings=%s db=%s@%s:%s/%s",
            settings_module,
            db_config.get("user"),
            db_config.get("host"),
            db_config.get("port", 3306),
            db_config.get("database"),
        )

        if bool(getattr(settings, "AUTO_INIT_DB", False)):
            apply_schema(db_config, schema_path=REPO_ROOT / "database" / "schema.sql")
            logger.info("schema ready tables=%s", len(list_tables(db_config)))
        if bool(getattr(settings, "AUTO_SEED_DB", False)):
            apply_sql_file(db_config, sql_path=REPO_ROOT / "database" / "seed.sql")
            ensure_demo_users(db_config)
            logger.info("demo seed ready")

        container = build_container(db_config=db_config, settings=settings)

    app.extensions["time_tracker.container"] = container

    register_error_handlers(app)
    register_users(app, container)
    register_time_entries(app, container)

    return app
