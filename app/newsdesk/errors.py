from __future__ import annotations

from flask import Flask, g, jsonify
from werkzeug.exceptions import HTTPException


class AppError(Exception):
    """Base for errors that map directly onto an HTTP status."""

    status_code = 500
    default_message = "Internal Server Error"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.default_message)
        self.message = message or self.default_message


class ValidationError(AppError):
    status_code = 400
    default_message = "Invalid request"

    def __init__(self, errors: list[str] | str | None = None) -> None:
        if isinstance(errors, list):
            self.errors = errors
            message = "; ".join(errors) if errors else None
        else:
            self.errors = [errors] if errors else []
            message = errors
        super().__init__(message)


class Unauthorized(AppError):
    status_code = 401
    default_message = "Unauthorized"


class Forbidden(AppError):
    status_code = 403
    default_message = "Forbidden"


class NotFound(AppError):
    status_code = 404
    default_message = "Not found"


class Conflict(AppError):
    # Duplicate unique keys are reported as a bad request to clients.
    status_code = 400
    default_message = "Already exists"


def _error_response(message: str, status: int):
    return jsonify({"message": message}), status


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(AppError)
    def _app_error(e: AppError):  # type: ignore[no-redef]
        return _error_response(e.message, e.status_code)

    @app.errorhandler(HTTPException)
    def _http_error(e: HTTPException):  # type: ignore[no-redef]
        return _error_response(e.description or e.name, e.code or 500)

    @app.errorhandler(Exception)
    def _unhandled(e: Exception):  # type: ignore[no-redef]
        app.logger.exception("Unhandled 500 (request_id=%s)", getattr(g, "request_id", None))
        return _error_response("Internal Server Error", 500)
