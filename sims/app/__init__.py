"""
app/__init__.py - Flask application factory.

Pattern: create_app(config_name) creates and returns a configured Flask app.
         Nothing is initialised at import time - this enables:
           - Multiple isolated test app instances
           - Clean separation between app creation and app startup
           - Alembic to import the metadata without starting the server

Responsibilities:
  1. Load configuration from config_by_name[config_name]
  2. Configure logging
  3. Initialise extensions (SQLAlchemy, Marshmallow) via init_app()
  4. Register all route blueprints under /api/v1
  5. Register global error handlers (AppError → JSON, Exception → 500)
  6. Log one line per request (outside testing)
"""

from __future__ import annotations

import logging
import logging.config
import time
import traceback

from flask import Flask, g, jsonify, request
from marshmallow import ValidationError
from werkzeug.exceptions import HTTPException

from sims.config import config_by_name, validate_production_config


# ── Application factory ────────────────────────────────────────────────────

def create_app(config_name: str = "development") -> Flask:
    """
    Creates and returns a configured Flask application instance.

    Args:
        config_name: One of "development", "testing", "production".
                     Defaults to "development".
    """
    app = Flask(__name__)

    # ── Configuration ──────────────────────────────────────────────────────
    config_class = config_by_name.get(config_name, config_by_name["development"])
    app.config.from_object(config_class)

    if config_name == "production":
        validate_production_config(app)  # raises ValueError if misconfigured

    _configure_logging(app)

    # ── Extensions ─────────────────────────────────────────────────────────
    # Import here (not at module top) to avoid circular imports.
    from sims.app.extensions import db, ma
    db.init_app(app)
    ma.init_app(app)

    # ── Model registration ─────────────────────────────────────────────────
    # Import all models so that SQLAlchemy's MetaData is populated.
    with app.app_context():
        from sims.app.models import (  # noqa: F401
            school,
            student,
            token,
            user,
        )

    _register_blueprints(app)
    _register_error_handlers(app)
    _register_request_logging(app)
    _register_cors(app)

    return app


def _configure_logging(app: Flask) -> None:
    """Console logging for the whole process; level from LOG_LEVEL."""
    logging.config.dictConfig({
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {
                "format": "%(asctime)s %(levelname)s %(name)s: %(message)s",
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "default",
            },
        },
        "root": {
            "level": app.config.get("LOG_LEVEL", "INFO"),
            "handlers": ["console"],
        },
    })


def _register_blueprints(app: Flask) -> None:
    """
    Registers all route blueprints under the /api/v1 prefix.

    The url_prefix is set here so individual route files only specify
    the path relative to their resource (e.g. "/" and "/<int:id>").
    """
    from sims.app.routes.auth import auth_bp
    from sims.app.routes.schools import schools_bp
    from sims.app.routes.students import students_bp
    from sims.app.routes.users import users_bp

    app.register_blueprint(auth_bp,     url_prefix="/api/v1/auth")
    app.register_blueprint(users_bp,    url_prefix="/api/v1/users")
    app.register_blueprint(schools_bp,  url_prefix="/api/v1/schools")
    app.register_blueprint(students_bp, url_prefix="/api/v1/students")


def _register_error_handlers(app: Flask) -> None:
    """
    Registers global error handlers.

    Handlers:
      AppError        → structured JSON error envelope with the correct HTTP status
      ValidationError → marshmallow schema errors formatted as MISSING_FIELD /
                        INVALID_FIELD responses (400)
      HTTPException   → werkzeug errors (unknown route, bad method) in the
                        same envelope
      Exception       → generic INTERNAL_ERROR (500); full traceback logged

    Stack traces never leave the server.
    """
    from sims.app.errors import HTTP_STATUS_CODES, AppError, ErrorCode

    @app.errorhandler(AppError)
    def handle_app_error(error: AppError):
        """
        Converts an AppError raised anywhere in the request lifecycle
        (middleware, service, route) into the standard error envelope.
        """
        g.error_message = error.message
        return jsonify(error.to_dict()), error.http_status

    @app.errorhandler(ValidationError)
    def handle_validation_error(error: ValidationError):
        """
        Converts marshmallow ValidationError into the standard error envelope.

        Marshmallow raises ValidationError with a messages dict keyed by field
        name. Only the FIRST error is returned.
        """
        messages = error.normalized_messages()  # e.g. {"email": ["Not a valid email address."]}

        field = None
        raw_message = "Invalid input."
        code = ErrorCode.INVALID_FIELD

        if isinstance(messages, dict):
            for field_name, field_errors in messages.items():
                field = field_name if field_name != "_schema" else None

                if isinstance(field_errors, list):
                    raw_message = field_errors[0] if field_errors else "Invalid value."
                else:
                    raw_message = str(field_errors)
                break
        elif isinstance(messages, list):
            raw_message = messages[0] if messages else "Invalid input."

        if str(raw_message).startswith("Missing data for required field"):
            code = ErrorCode.MISSING_FIELD

        response_body = {
            "error": {
                "code": code,
                "message": raw_message,
            }
        }
        if field is not None:
            response_body["error"]["field"] = field

        g.error_message = raw_message
        return jsonify(response_body), 400

    @app.errorhandler(HTTPException)
    def handle_http_exception(error: HTTPException):
        message = "Not found" if error.code == 404 else error.description
        g.error_message = message
        return jsonify({
            "error": {
                "code": HTTP_STATUS_CODES.get(error.code, ErrorCode.INTERNAL_ERROR),
                "message": message,
            }
        }), error.code

    @app.errorhandler(Exception)
    def handle_unexpected_error(error: Exception):
        """
        Catches all unhandled exceptions and returns a generic 500 response.
        The full traceback is logged to the application logger.
        """
        app.logger.error(
            "Unhandled exception: %s\n%s",
            str(error),
            traceback.format_exc(),
        )
        g.error_message = str(error)
        return jsonify({
            "error": {
                "code": ErrorCode.INTERNAL_ERROR,
                "message": "An unexpected error occurred. Please try again later.",
            }
        }), 500


def _register_request_logging(app: Flask) -> None:
    """
    One line per request: "METHOD path status - N ms", INFO below 400 and
    ERROR at 400 and above with the error message appended.
    Disabled when LOG_REQUESTS is false (testing).
    """
    if not app.config.get("LOG_REQUESTS", True):
        return

    request_logger = logging.getLogger("sims.request")

    @app.before_request
    def start_timer():
        g.request_started = time.perf_counter()

    @app.after_request
    def log_request(response):
        started = g.get("request_started", time.perf_counter())
        elapsed_ms = (time.perf_counter() - started) * 1000

        if response.status_code >= 400:
            request_logger.error(
                "%s %s %s - %.1f ms - message: %s",
                request.method,
                request.path,
                response.status_code,
                elapsed_ms,
                g.get("error_message", ""),
            )
        else:
            request_logger.info(
                "%s %s %s - %.1f ms",
                request.method,
                request.path,
                response.status_code,
                elapsed_ms,
            )
        return response


def _register_cors(app: Flask) -> None:
    """
    Adds CORS headers for browser-based local development.

    Enabled when DEBUG or TESTING is true so a frontend served from another
    local port can call the API with Authorization headers.
    """

    @app.after_request
    def add_cors_headers(response):
        origin = request.headers.get("Origin")
        allow_all = bool(app.config.get("DEBUG") or app.config.get("TESTING"))

        if allow_all:
            response.headers["Access-Control-Allow-Origin"] = origin if origin else "*"
            response.headers["Vary"] = "Origin"
            response.headers["Access-Control-Allow-Methods"] = "GET, POST, PATCH, DELETE, OPTIONS"
            response.headers["Access-Control-Allow-Headers"] = "Authorization, Content-Type"

        return response
