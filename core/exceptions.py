# core/exceptions.py
import logging

from django.utils.translation import gettext_lazy as _
from rest_framework import status
from rest_framework.exceptions import APIException, ValidationError
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class ConflictError(APIException):
    status_code = status.HTTP_409_CONFLICT
    default_detail = _('The request conflicts with the current state of the resource.')
    default_code = 'conflict'


class InvalidTransition(ConflictError):
    default_detail = _('Status transition is not allowed.')
    default_code = 'invalid_transition'


class PreconditionFailed(APIException):
    status_code = status.HTTP_412_PRECONDITION_FAILED
    default_detail = _('Precondition failed.')
    default_code = 'precondition_failed'


def _first_message(detail):
    """Pull a human readable message out of a DRF error detail structure"""
    if isinstance(detail, dict):
        if 'detail' in detail:
            return _first_message(detail['detail'])
        for key, value in detail.items():
            message = _first_message(value)
            if key == 'non_field_errors':
                return message
            return f"{key}: {message}"
        return ''
    if isinstance(detail, (list, tuple)):
        return _first_message(detail[0]) if detail else ''
    return str(detail)


def api_exception_handler(exc, context):
    """
    Normalize every error body to {"success": false, "message": ..., "errors": ...}.

    Exceptions DRF does not know about are logged and answered with a bare 500.
    """
    response = exception_handler(exc, context)

    if response is None:
        view = context.get('view')
        logger.exception(
            f"Unhandled error in {view.__class__.__name__ if view else 'unknown view'}: {exc}"
        )
        return Response(
            {'success': False, 'message': 'Internal Server Error'},
            status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    body = {
        'success': False,
        'message': _first_message(response.data),
    }
    if isinstance(exc, ValidationError):
        body['errors'] = response.data
    response.data = body
    return response
