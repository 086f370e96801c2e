"""API error taxonomy and the Flask handlers that render it as JSON."""
import logging
from flask import jsonify
from werkzeug.exceptions import HTTPException, RequestEntityTooLarge
from shared.validation import ValidationError as InputValidationError

logger = logging.getLogger(__name__)


class APIError(Exception):
    status_code = 500
    error = "Internal server error"

    def __init__(self, message="", *, status_code=None):
        super().__init__(message)
        if status_code is not None:
            self.status_code = status_code
        self.message = message or self.error

    def to_response(self):
        return jsonify({'error': self.message}), self.status_code


class ValidationError(APIError):
    """Malformed or missing input."""
    status_code = 400
    error = "Invalid input"


class AuthError(APIError):
    """Bad credentials or token."""
    status_code = 401
    error = "Authentication required"


class NotFoundError(APIError):
    """Missing resource, or one the caller does not own."""
    status_code = 404
    error = "Not found"


class ConflictError(APIError):
    # Duplicate registration is reported as a plain 400
    status_code = 400
    error = "Already exists"


class InternalError(APIError):
    status_code = 500
    error = "Internal server error"


def api_error(message, status_code=400, log_level='warning'):
    """Standardized API error response with consistent logging."""
    log_func = getattr(logger, log_level, logger.warning)
    log_func(f"API Error ({status_code}): {message}")
    return jsonify({'error': message}), status_code


def register_error_handlers(app):
    from .models import db

    @app.errorhandler(APIError)
    def _api_error(err):
        if err.status_code >= 500:
            logger.error(f"API Error ({err.status_code}): {err.message}")
        else:
            logger.info(f"API Error ({err.status_code}): {err.message}")
        return err.to_response()

    @app.errorhandler(InputValidationError)
    def _input_error(err):
        return api_error(str(err), 400)

    @app.errorhandler(RequestEntityTooLarge)
    def _too_large(err):
        return api_error('File too large', 400)

    @app.errorhandler(HTTPException)
    def _http_error(err):
        return api_error(err.description or err.name, err.code, 'info')

    @app.errorhandler(Exception)
    def _unexpected(err):
        db.session.rollback()
        logger.error(f"Unhandled exception: {err}", exc_info=True)
        return jsonify({'error': 'Internal server error'}), 500
