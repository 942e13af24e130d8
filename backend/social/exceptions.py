"""
Error taxonomy for the social graph store, plus the DRF exception handler.

Every service operation raises one of these instead of silently no-op'ing.
Only TransientError is safe to retry automatically; the others need the
actor to do something (fix input, sign in again, accept the thing is gone).
"""
import functools
import logging

from django.db import IntegrityError, OperationalError
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class SocialGraphError(Exception):
    """Base class for all store errors."""
    code = 'error'
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str = ''):
        super().__init__(message or self.__class__.__doc__)
        self.message = message or self.__class__.__doc__


class ValidationError(SocialGraphError):
    """Malformed or empty input."""
    code = 'validation'
    status_code = status.HTTP_400_BAD_REQUEST


class PermissionDeniedError(SocialGraphError):
    """Actor lacks ownership or admin rights."""
    code = 'permission'
    status_code = status.HTTP_403_FORBIDDEN


class NotFoundError(SocialGraphError):
    """Target entity is missing."""
    code = 'not_found'
    status_code = status.HTTP_404_NOT_FOUND


class TransientError(SocialGraphError):
    """Backend failure, safe to retry."""
    code = 'transient'
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE


class ConflictError(SocialGraphError):
    """Write conflicts with concurrent state."""
    code = 'conflict'
    status_code = status.HTTP_409_CONFLICT


def translate_db_errors(func):
    """
    Re-raise database connectivity failures as TransientError.

    OperationalError covers dropped connections, lock timeouts and
    SQLite's "database is locked"; all of them are worth a retry.
    """
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except OperationalError as exc:
            logger.warning(f"{func.__name__} hit a database failure: {exc}")
            raise TransientError(f"Database unavailable: {exc}") from exc
    return wrapper


def custom_exception_handler(exc, context):
    """
    Custom exception handler that:
    1. Maps store errors to their HTTP status
    2. Lets DRF handle its own exceptions, in a consistent format
    3. Logs anything unexpected
    """
    if isinstance(exc, SocialGraphError):
        if isinstance(exc, TransientError):
            logger.warning(f"Transient failure: {exc}")
        return Response(
            {'error': exc.message, 'code': exc.code},
            status=exc.status_code
        )

    response = exception_handler(exc, context)

    if response is not None:
        if not isinstance(response.data, dict) or 'error' not in response.data:
            response.data = {
                'error': str(exc),
                'details': response.data
            }
        return response

    if isinstance(exc, IntegrityError):
        logger.warning(f"IntegrityError: {exc}")
        return Response(
            {'error': 'Data integrity error. This may be a duplicate entry.', 'code': 'conflict'},
            status=status.HTTP_409_CONFLICT
        )

    logger.exception(f"Unhandled exception: {exc}")

    return Response(
        {'error': 'An unexpected error occurred.'},
        status=status.HTTP_500_INTERNAL_SERVER_ERROR
    )
