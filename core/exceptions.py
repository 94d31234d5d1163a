"""
Error taxonomy for the API and the handler that renders it.

Services raise these (or the stock DRF exceptions) and let them travel up to
the request boundary, where `api_exception_handler` turns them into a JSON
envelope. Views never catch them.
"""
import logging

from django.core.exceptions import PermissionDenied as DjangoPermissionDenied
from django.http import Http404
from rest_framework import status
from rest_framework.exceptions import APIException, NotFound, PermissionDenied, ValidationError
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class StateConflict(APIException):
    """The operation is not valid for the entity's current status."""
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Operation not allowed in the current state.'
    default_code = 'state_conflict'


class InsufficientBalance(StateConflict):
    default_detail = 'Insufficient balance'
    default_code = 'insufficient_balance'


def flatten_errors(detail, prefix=''):
    """Turn DRF's nested error detail into a flat list of field errors."""
    errors = []
    if isinstance(detail, dict):
        for key, value in detail.items():
            field = f"{prefix}.{key}" if prefix else str(key)
            errors.extend(flatten_errors(value, field))
    elif isinstance(detail, list):
        for item in detail:
            errors.extend(flatten_errors(item, prefix))
    else:
        errors.append({'field': prefix or 'non_field_errors', 'message': str(detail)})
    return errors


def api_exception_handler(exc, context):
    if isinstance(exc, Http404):
        exc = NotFound(*exc.args)
    elif isinstance(exc, DjangoPermissionDenied):
        exc = PermissionDenied(*exc.args)

    response = exception_handler(exc, context)

    if response is None:
        view = context.get('view')
        logger.exception(f"Unhandled error in {view.__class__.__name__ if view else 'unknown view'}: {exc}")
        return Response(
            {'success': False, 'error': 'Server error'},
            status=status.HTTP_500_INTERNAL_SERVER_ERROR
        )

    if isinstance(exc, ValidationError):
        response.data = {
            'success': False,
            'error': 'Invalid input',
            'code': 'invalid',
            'errors': flatten_errors(exc.detail),
        }
        return response

    detail = getattr(exc, 'detail', None)
    codes = exc.get_codes() if isinstance(exc, APIException) else None
    response.data = {
        'success': False,
        'error': str(detail) if detail is not None else str(exc),
        'code': codes if isinstance(codes, str) else 'error',
    }
    return response
