from __future__ import annotations

import importlib
import logging
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from flask import Flask

from config import get_settings_module

from .attendance.controller import register as register_attendance
from .common.logging_config import setup_logging
from .common.web import register_error_handlers
from .container import Container, build_container
from .core.constants import DEFAULT_EMBEDDING_DIMENSION, DEFAULT_MATCH_THRESHOLD
from .database.bootstrap import apply_schema, list_tables
from .database.connection import DBConfig
from .embeddings.controller import register as register_embeddings

logger = logging.getLogger(__name__)

SCHEMA_PATH = Path(__file__).resolve().parents[3] / "database" / "schema.sql"


def create_app(*, container: Optional[Container] = None, settings_module: Optional[str] = None) -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = settings_module or get_settings_module()
    settings = importlib.import_module(settings_module)
    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))
    app.config["MATCH_THRESHOLD"] = float(getattr(settings, "MATCH_THRESHOLD", DEFAULT_MATCH_THRESHOLD))
    app.config["EMBEDDING_DIMENSION"] = int(getattr(settings, "EMBEDDING_DIMENSION", DEFAULT_EMBEDDING_DIMENSION))

    setup_logging(
        app,
        log_level=getattr(settings, "LOG_LEVEL", "INFO"),
        log_dir=getattr(settings, "LOG_DIR", "logs"),
    )

    if container is None:
        db_config = getattr(settings, "DB_CONFIG")
        logger.info("settings=%s db=%s", settings_module, DBConfig.from_mapping(db_config).describe())

        if bool(getattr(settings, "AUTO_INIT_DB", False)):
            apply_schema(db_config, schema_path=SCHEMA_PATH)
            logger.info("schema ready (tables=%d)", len(list_tables(db_config)))

        container = build_container(
            db_config=db_config,
            match_threshold=app.config["MATCH_THRESHOLD"],
            embedding_dimension=app.config["EMBEDDING_DIMENSION"],
        )

    if bool(getattr(settings, "LOAD_EXTRACTOR", False)):
        container.extractor.load()

    app.extensions["face_attendance"] = container

    register_error_handlers(app)
    register_attendance(app, container)
    register_embeddings(app, container)

    return app
