"""
Centralized Flask error handlers.
Every failure leaves the API as JSON: {"message": ..., "errors": {...}}.
"""
from flask import Flask, jsonify, Response
from werkzeug.exceptions import HTTPException

from plantshop.utils.logging import get_logger
from plantshop.utils.exceptions import PlantShopError, ValidationError

log = get_logger(__name__)


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(ValidationError)
    def handle_validation_error(error: ValidationError) -> tuple[Response, int]:
        log.warning("Validation failed: %s | errors=%s", error.message, error.errors)
        body = {"message": error.message}
        if error.errors:
            body["errors"] = error.errors
        return jsonify(body), error.status_code

    @app.errorhandler(PlantShopError)
    def handle_plantshop_error(error: PlantShopError) -> tuple[Response, int]:
        log.warning("%s: %s | payload=%s", type(error).__name__, error.message, error.payload)
        body = {"message": error.message}
        body.update(error.payload)
        return jsonify(body), error.status_code

    @app.errorhandler(HTTPException)
    def handle_http_error(error: HTTPException) -> tuple[Response, int]:
        return jsonify(message=error.description), error.code or 500

    @app.errorhandler(Exception)
    def internal_error(error: Exception) -> tuple[Response, int]:
        log.exception("Unhandled exception")
        return jsonify(message="Internal server error"), 500

    log.info("Error handlers registered")
