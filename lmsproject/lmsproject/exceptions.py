"""
DRF exception handler translating domain errors into HTTP responses
"""
import logging

from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

from courses.exceptions import AssessmentError

logger = logging.getLogger(__name__)

STATUS_BY_KIND = {
    'not_found': status.HTTP_404_NOT_FOUND,
    'validation_failed': status.HTTP_400_BAD_REQUEST,
    'forbidden': status.HTTP_403_FORBIDDEN,
    'attempt_limit_exceeded': status.HTTP_409_CONFLICT,
    'transaction_failure': status.HTTP_503_SERVICE_UNAVAILABLE,
}


def api_exception_handler(exc, context):
    if not isinstance(exc, AssessmentError):
        return exception_handler(exc, context)

    status_code = STATUS_BY_KIND.get(exc.kind, status.HTTP_500_INTERNAL_SERVER_ERROR)
    body = {
        'success': False,
        'error': exc.kind,
        'message': exc.message,
    }
    if exc.field:
        body['field'] = exc.field
    if exc.kind == 'attempt_limit_exceeded':
        body['attempts_used'] = exc.attempts_used
        body['attempts_allowed'] = exc.attempts_allowed

    view = context.get('view')
    logger.warning(f'{view.__class__.__name__ if view else "api"}: {exc.kind} - {exc.message}')
    return Response(body, status=status_code)
