from __future__ import annotations

import importlib
import logging
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from flask import Flask

from config import get_settings_module

from .commits.controller import register as register_commits
from .container import Container, build_container
from .core.constants import DEFAULT_TENANT_ID
from .database.bootstrap import apply_schema, apply_seed_sql, list_tables
from .logging_config import setup_logging

logger = logging.getLogger(__name__)


def create_app(container: Optional[Container] = None) -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    setup_logging(getattr(settings, "LOG_LEVEL", "INFO"), bool(getattr(settings, "LOG_JSON", False)))

    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))
    app.config["DEFAULT_TENANT_ID"] = getattr(settings, "DEFAULT_TENANT_ID", DEFAULT_TENANT_ID)

    if container is None:
        db_config = getattr(settings, "DB_CONFIG")
        logger.info(
            "settings=%s db=%s@%s:%s/%s",
            settings_module,
            db_config.get("user"),
            db_config.get("host"),
            db_config.get("port", 3306),
            db_config.get("database"),
        )

        database_dir = Path(__file__).resolve().parents[3] / "database"
        if bool(getattr(settings, "AUTO_INIT_DB", False)):
            apply_schema(db_config, schema_path=database_dir / "schema.sql")
            logger.info("schema ready (tables=%d)", len(list_tables(db_config)))
        if bool(getattr(settings, "AUTO_SEED_DB", False)):
            apply_seed_sql(db_config, seed_path=database_dir / "seed.sql")
            logger.info("seed data ready")

        container = build_container(
            db_config=db_config,
            overtime_policy=getattr(settings, "OVERTIME_POLICY", None),
            overtime_overrides=getattr(settings, "EMPLOYEE_OVERTIME_OVERRIDES", None),
            lock_source=getattr(settings, "LOCK_SOURCE", "none"),
        )

    register_commits(app, container)
    return app
