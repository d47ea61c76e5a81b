from __future__ import annotations

import importlib
import logging
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from flask import Flask, jsonify

from config import get_settings_module

from .common.logging_utils import setup_logging
from .container import Container, ServiceOptions, build_container
from .core.exceptions import (
    ConfirmationRequired,
    DomainError,
    InvalidTransition,
    MalformedInput,
    NotFound,
    ValidationError,
)
from .database.bootstrap import apply_schema, list_tables
from .kpi.controller import register as register_kpi
from .punch_clock.controller import register as register_punch_clock
from .timesheets.controller import register as register_timesheets

logger = logging.getLogger(__name__)

# Most specific first; the first isinstance match wins.
_STATUS_BY_ERROR: tuple[tuple[type[DomainError], int], ...] = (
    (MalformedInput, 400),
    (InvalidTransition, 409),
    (ValidationError, 422),
    (NotFound, 404),
    (ConfirmationRequired, 428),
)


def status_for(error: DomainError) -> int:
    for error_type, status in _STATUS_BY_ERROR:
        if isinstance(error, error_type):
            return status
    return 400


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(DomainError)
    def handle_domain_error(error: DomainError):
        status = status_for(error)
        logger.info("Request rejected", extra={"code": error.code, "status": status})
        return jsonify({"error": error.to_dict()}), status


def create_app(container: Optional[Container] = None) -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))
    setup_logging(getattr(settings, "LOG_LEVEL", "INFO"))

    if container is None:
        db_config = getattr(settings, "DB_CONFIG")
        if bool(getattr(settings, "AUTO_INIT_DB", False)):
            schema_path = Path(__file__).resolve().parents[3] / "database" / "schema.sql"
            apply_schema(db_config, schema_path=schema_path)
            logger.info("Schema ready", extra={"tables": len(list_tables(db_config))})
        container = build_container(db_config=db_config, options=ServiceOptions.from_settings(settings))

    logger.info("App configured", extra={"settings": settings_module})

    register_error_handlers(app)
    register_punch_clock(app, container)
    register_kpi(app, container)
    register_timesheets(app, container)

    return app
