"""
Request logging middleware
"""
import logging
import time
import uuid

logger = logging.getLogger(__name__)


class RequestTimingMiddleware:
    """
    Tag every request with a request id and log method, path, status and
    duration once the response is ready.
    """
    header = 'HTTP_X_REQUEST_ID'

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        request.request_id = request.META.get(self.header) or uuid.uuid4().hex
        started = time.monotonic()

        response = self.get_response(request)

        elapsed_ms = (time.monotonic() - started) * 1000
        response['X-Request-ID'] = request.request_id
        logger.info(
            f'{request.method} {request.path} -> {response.status_code} '
            f'({elapsed_ms:.1f} ms) [{request.request_id}]'
        )
        return response
