import os

from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException

from sistema_nfe.config import Config
from sistema_nfe.db import POOL_EXTENSION_KEY, DatabasePool, close_db, get_db, init_db
from sistema_nfe.db_migrations import register_db_cli
from sistema_nfe.observability import (
    configure_json_logging,
    ensure_request_id,
    mark_request_start,
    observe_response,
)


def create_app(config_class=Config, database: DatabasePool | None = None):
    app = Flask(__name__)
    # instantiating validates the database settings before anything else runs
    app.config.from_object(config_class())
    configure_json_logging(app)

    app.extensions[POOL_EXTENSION_KEY] = database or DatabasePool.from_config(app.config)

    _register_error_handlers(app)
    _register_blueprints(app)
    _register_health(app)
    register_db_cli(app)
    app.teardown_appcontext(close_db)
    _maybe_init_schema(app)
    return app


def _maybe_init_schema(app: Flask) -> None:
    auto_init = bool(app.config.get("DB_AUTO_INIT", False))
    if app.testing:
        auto_init = True
    if not auto_init:
        return

    flask_env = (os.environ.get("FLASK_ENV", "development") or "development").strip().lower()
    if not app.testing and flask_env != "development":
        app.logger.warning("DB_AUTO_INIT ignorado fora de development.")
        return

    with app.app_context():
        init_db()


def _register_blueprints(app: Flask) -> None:
    from sistema_nfe.routes.cadastro_routes import cadastro_bp
    from sistema_nfe.routes.financeiro_routes import financeiro_bp

    app.register_blueprint(cadastro_bp)
    app.register_blueprint(financeiro_bp)


def _register_error_handlers(app: Flask) -> None:
    from sistema_nfe.errors import AppError, StoreError

    @app.before_request
    def _ensure_request_id() -> None:
        ensure_request_id()
        mark_request_start()

    @app.after_request
    def _append_request_id(response):
        response.headers["X-Request-Id"] = ensure_request_id()
        return observe_response(response)

    def _log_error(error: AppError) -> None:
        log_method = app.logger.error if error.critical else app.logger.warning
        log_method(
            "application_error",
            extra={
                "error_code": error.code,
                "http_status": error.http_status,
                "message_key": error.message_key,
                "details": error.details,
            },
            exc_info=error.critical,
        )

    @app.errorhandler(AppError)
    def _handle_app_error(exc: AppError):
        _log_error(exc)
        return jsonify(exc.to_response_payload()), exc.http_status

    @app.errorhandler(Exception)
    def _handle_unexpected(exc: Exception):
        if isinstance(exc, HTTPException):
            return exc

        mapped = StoreError(details=str(exc))
        app.logger.exception("unexpected_exception", extra={"error_code": mapped.code})
        return jsonify(mapped.to_response_payload()), mapped.http_status


def _register_health(app: Flask) -> None:
    @app.route("/health")
    def health():
        pool = app.extensions[POOL_EXTENSION_KEY]
        payload = {"status": "ok", "db": pool.backend}
        try:
            get_db().execute("SELECT 1").fetchone()
        except Exception:
            app.logger.warning("health_check_db_unavailable", exc_info=True)
            payload["status"] = "degraded"
        return payload, 200
