"""
Project-level API exceptions and the DRF exception handler.

Services raise DRF exceptions (NotFound, PermissionDenied, ValidationError)
or the subclasses below; the handler gives every error body a stable
``code`` field.
"""
import logging

from rest_framework import status
from rest_framework.exceptions import APIException
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class BusinessRuleViolation(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'The request violates a business rule.'
    default_code = 'bad_request'

    def __init__(self, detail=None, code=None):
        super().__init__(detail, code)
        self.code = code or self.default_code


class AlreadyExists(BusinessRuleViolation):
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'Resource already exists.'
    default_code = 'already_exists'


class InvitationExpired(BusinessRuleViolation):
    status_code = status.HTTP_410_GONE
    default_detail = 'Invitation has expired.'
    default_code = 'expired'


class ExchangeRateUnavailable(BusinessRuleViolation):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_detail = 'Exchange rate is currently unavailable.'
    default_code = 'exchange_rate_unavailable'


class WholesaleValidationFailed(BusinessRuleViolation):
    """Carries the full wholesale validation result so clients can show every problem"""
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    default_code = 'wholesale_validation_failed'

    def __init__(self, validation):
        self.validation = validation
        super().__init__(
            f"Wholesale order validation failed: {'; '.join(validation['errors'])}",
            self.default_code,
        )


def api_exception_handler(exc, context):
    response = exception_handler(exc, context)

    if response is None:
        view = context.get('view')
        logger.error(f"Unhandled error in {view.__class__.__name__ if view else 'unknown view'}: {exc}", exc_info=exc)
        return None

    if isinstance(response.data, dict):
        if 'code' not in response.data:
            response.data['code'] = getattr(exc, 'code', None) or getattr(exc, 'default_code', 'error')
        if isinstance(exc, WholesaleValidationFailed):
            response.data['validation'] = exc.validation
    else:
        response.data = {
            'detail': response.data,
            'code': getattr(exc, 'default_code', 'error'),
        }
    return response
