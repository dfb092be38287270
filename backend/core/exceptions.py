"""
API error types and the exception handler that renders them.

Every error leaves the API as ``{"success": false, "message": ...}``.
Field validation failures also carry the serializer's ``errors`` mapping.
"""
import logging

from rest_framework import status
from rest_framework.exceptions import APIException, ValidationError
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class ItemNotFound(APIException):
    """Item does not exist or belongs to another user"""
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = 'Inventory item not found or you do not have permission to access it'
    default_code = 'not_found'


class InvalidInput(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Invalid input'
    default_code = 'invalid_input'


class InsufficientStock(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Insufficient stock'
    default_code = 'insufficient_stock'


class Conflict(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Operation conflicts with existing records'
    default_code = 'conflict'


def _first_message(detail):
    """Pull the first human-readable message out of a DRF error detail"""
    if isinstance(detail, dict):
        for key, value in detail.items():
            message = _first_message(value)
            if message:
                if key in ('non_field_errors', 'detail'):
                    return message
                return f"{key}: {message}"
        return None
    if isinstance(detail, (list, tuple)):
        for value in detail:
            message = _first_message(value)
            if message:
                return message
        return None
    return str(detail) if detail is not None else None


def api_exception_handler(exc, context):
    """REST framework EXCEPTION_HANDLER producing the {success, message} envelope"""
    response = exception_handler(exc, context)

    if response is None:
        view = context.get('view')
        logger.exception(f"Unhandled error in {view.__class__.__name__ if view else 'view'}: {exc}")
        return Response(
            {'success': False, 'message': 'Internal server error'},
            status=status.HTTP_500_INTERNAL_SERVER_ERROR
        )

    body = {
        'success': False,
        'message': _first_message(response.data) or 'Request failed',
    }
    if isinstance(exc, ValidationError) and isinstance(response.data, dict):
        body['errors'] = response.data
    response.data = body
    return response
