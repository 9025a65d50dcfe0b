"""JSON error responses for the API."""

from flask import Blueprint, current_app, jsonify
from google.api_core import exceptions as google_exceptions

from .core.types import ErrorResponse
from .errors import (
    AppError,
    NotFoundError,
    ProviderUnavailableError,
    StoreConflictError,
    ValidationError,
)

error_handlers_bp = Blueprint("error_handlers", __name__)

RETRY_AFTER_SECONDS = 1


def _error_response(message, status_code, retryable=False):
    response = jsonify(ErrorResponse(error=message, retryable=retryable))
    response.status_code = status_code
    return response


@error_handlers_bp.app_errorhandler(ValidationError)
def handle_validation_error(error):
    """Handles validation and capacity errors."""
    current_app.logger.warning(f"Validation Error: {error.message}")
    return _error_response(error.message, error.status_code)


@error_handlers_bp.app_errorhandler(NotFoundError)
def handle_not_found_error(error):
    """Handles not found errors."""
    current_app.logger.warning(f"Not Found Error: {error.message}")
    return _error_response(error.message, error.status_code)


@error_handlers_bp.app_errorhandler(ProviderUnavailableError)
def handle_provider_unavailable(error):
    """Tell the caller to retry once the messaging provider recovers."""
    current_app.logger.warning(f"Provider Unavailable: {error.message}")
    response = _error_response(error.message, error.status_code, retryable=True)
    response.headers["Retry-After"] = str(RETRY_AFTER_SECONDS)
    return response


@error_handlers_bp.app_errorhandler(StoreConflictError)
def handle_store_conflict(error):
    """Handles transactions that kept conflicting."""
    current_app.logger.warning(f"Store Conflict: {error.message}")
    return _error_response(error.message, error.status_code, retryable=True)


@error_handlers_bp.app_errorhandler(AppError)
def handle_app_error(error):
    """Handles generic application errors."""
    current_app.logger.error(f"Application Error: {error.message}")
    return _error_response(error.message, error.status_code, error.retryable)


@error_handlers_bp.app_errorhandler(google_exceptions.GoogleAPICallError)
def handle_store_error(e):
    """Handles Firestore errors raised outside a service."""
    current_app.logger.error(f"Database Error: {e}")
    # Avoid exposing raw database error details to the caller
    return _error_response("A database error occurred. Please try again later.", 500)


@error_handlers_bp.app_errorhandler(404)
def handle_404(e):
    """Handles generic 404 errors for routes that don't exist."""
    return _error_response("Not found.", 404)


@error_handlers_bp.app_errorhandler(405)
def handle_405(e):
    """Handles requests with an unsupported method."""
    return _error_response("Method not allowed.", 405)


@error_handlers_bp.app_errorhandler(500)
def handle_500(e):
    """Handles unexpected server errors."""
    current_app.logger.error(f"Internal Server Error: {e}")
    return _error_response("Internal server error.", 500)
