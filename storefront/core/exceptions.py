"""
Domain errors and the REST framework exception handler.

Services raise StorefrontError subclasses; views let them propagate and the
handler renders them as {'error': <message>, 'code': <CODE>}.
"""
import logging

from rest_framework import status
from rest_framework.exceptions import APIException
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class StorefrontError(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Request could not be processed.'
    default_code = 'STOREFRONT_ERROR'

    def __init__(self, message=None, code=None):
        super().__init__(detail=message or self.default_detail, code=code or self.default_code)
        self.error_code = code or self.default_code


class InvalidRequest(StorefrontError):
    default_detail = 'Invalid request.'
    default_code = 'INVALID_REQUEST'


class InsufficientStock(StorefrontError):
    default_detail = 'Insufficient stock.'
    default_code = 'INSUFFICIENT_STOCK'


class InvalidTransition(StorefrontError):
    default_detail = 'This status change is not allowed.'
    default_code = 'INVALID_STATUS'


class RefundNotAllowed(StorefrontError):
    default_detail = 'Refund request could not be processed.'
    default_code = 'REFUND_REQUEST_FAILED'


class InvalidSelection(StorefrontError):
    default_detail = 'Invalid embroidery option selection.'
    default_code = 'INVALID_SELECTION'


class ProductNotFound(StorefrontError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = 'Product not found or inactive.'
    default_code = 'PRODUCT_NOT_FOUND'


def storefront_exception_handler(exc, context):
    """Render domain errors with an error code, defer everything else to DRF"""
    if isinstance(exc, StorefrontError):
        request = context.get('request')
        logger.warning(f"{exc.error_code} on {getattr(request, 'path', '?')}: {exc.detail}")
        response = exception_handler(exc, context)
        if response is not None:
            response.data = {'error': str(exc.detail), 'code': exc.error_code}
        return response

    response = exception_handler(exc, context)
    if response is None:
        logger.exception(f"Unhandled error: {exc}")
    return response
