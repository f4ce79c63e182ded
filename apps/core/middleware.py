"""
Request ID Middleware for Newsdesk.

Every request gets an id (taken from a valid incoming X-Request-ID header
or freshly generated). The id is echoed in the response, attached to
every log record through RequestIDFilter, embedded in error payloads and
forwarded to Celery tasks through task headers.

Access the id in views with get_request_id() or request.request_id.
"""

import logging
import threading
import uuid

from django.utils.deprecation import MiddlewareMixin

logger = logging.getLogger(__name__)

# Thread-local storage for request context
_request_context = threading.local()


def get_request_id():
    """Current request id, or None outside a request or task."""
    return getattr(_request_context, 'request_id', None)


def set_request_context(request_id, path=None):
    _request_context.request_id = request_id
    _request_context.path = path


def clear_request_context():
    _request_context.request_id = None
    _request_context.path = None


class RequestIDMiddleware(MiddlewareMixin):
    """Attach a request id to the request, the thread and the response."""

    REQUEST_ID_HEADER = 'HTTP_X_REQUEST_ID'
    RESPONSE_HEADER = 'X-Request-ID'

    def process_request(self, request):
        request_id = request.META.get(self.REQUEST_ID_HEADER)
        try:
            request_id = str(uuid.UUID(request_id))
        except (ValueError, TypeError, AttributeError):
            request_id = str(uuid.uuid4())

        set_request_context(request_id, path=request.path)
        request.request_id = request_id
        return None

    def process_response(self, request, response):
        request_id = getattr(request, 'request_id', None)
        if request_id:
            response[self.RESPONSE_HEADER] = request_id

        clear_request_context()
        return response


class RequestIDFilter(logging.Filter):
    """Logging filter that adds request_id to log records."""

    def filter(self, record):
        record.request_id = get_request_id() or '-'
        return True


def celery_request_id_headers():
    """
    Headers that carry the current request id into a Celery task.

    Usage:
        notify_submission.apply_async(args=[...], headers=celery_request_id_headers())
    """
    request_id = get_request_id()
    if request_id:
        return {'request_id': request_id}
    return {}


def setup_celery_request_context(headers):
    """Restore the request id inside a task (fresh id if none was sent)."""
    request_id = headers.get('request_id') or str(uuid.uuid4())
    set_request_context(request_id)
