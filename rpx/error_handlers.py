from flask import Blueprint, current_app, jsonify
from flask_wtf.csrf import CSRFError
from google.api_core.exceptions import GoogleAPICallError

from .errors import AppError, NotFoundError, ValidationError

error_handlers_bp = Blueprint("error_handlers", __name__)


def error_response(message, status_code, code=None):
    """Build the JSON body shared by every error response."""
    body = {"status": "error", "error": message}
    if code:
        body["code"] = code
    return jsonify(body), status_code


@error_handlers_bp.app_errorhandler(ValidationError)
def handle_validation_error(error):
    """Handles validation errors raised by forms and business rules."""
    current_app.logger.warning(f"Validation Error: {error.message}")
    return error_response(error.message, error.status_code, type(error).__name__)


@error_handlers_bp.app_errorhandler(NotFoundError)
def handle_not_found_error(error):
    """Handles not found errors."""
    current_app.logger.warning(f"Not Found Error: {error.message}")
    return error_response(error.message, error.status_code, type(error).__name__)


@error_handlers_bp.app_errorhandler(AppError)
def handle_app_error(error):
    """Handles generic application errors."""
    if error.status_code >= 500:
        current_app.logger.error(f"Application Error: {error.message}")
    else:
        current_app.logger.warning(f"Application Error: {error.message}")
    return error_response(error.message, error.status_code, type(error).__name__)


@error_handlers_bp.app_errorhandler(404)
def handle_404(e):
    """Handles generic 404 errors for routes that don't exist."""
    return error_response("Not found.", 404)


@error_handlers_bp.app_errorhandler(405)
def handle_405(e):
    return error_response("Method not allowed.", 405)


@error_handlers_bp.app_errorhandler(500)
def handle_500(e):
    """Handles unexpected server errors."""
    current_app.logger.error(f"Internal Server Error: {e}")
    return error_response("Error processing request.", 500)


@error_handlers_bp.app_errorhandler(GoogleAPICallError)
def handle_db_error(e):
    """Handles Firestore errors."""
    current_app.logger.error(f"Database Error: {e}")
    # Avoid exposing raw database error details to the user
    return error_response("A database error occurred. Please try again later.", 500)


@error_handlers_bp.app_errorhandler(CSRFError)
def handle_csrf_error(e):
    """
    Handles CSRF errors, which usually indicate a session timeout or a client
    that did not send the X-CSRFToken header.
    """
    current_app.logger.warning(f"CSRF Error: {e.description}")
    return error_response(e.description, 400, "CSRFError")
