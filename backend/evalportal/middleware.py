import logging
import time
from typing import Callable

from django.conf import settings
from django.http import HttpRequest, HttpResponse

logger = logging.getLogger('evalportal.requests')


def _view_name(request: HttpRequest) -> str:
    match = getattr(request, 'resolver_match', None)
    if match is None:
        return '-'
    view_class = getattr(match.func, 'view_class', None)
    return view_class.__name__ if view_class is not None else (match.view_name or '-')


def _actor(request: HttpRequest) -> str:
    user = getattr(request, 'user', None)
    if user is None or not user.is_authenticated:
        return 'anonymous'
    role = 'ADMIN' if user.is_superuser else getattr(user, 'role', None)
    return f'{user.username}/{role}/dept={getattr(user, "department_id", None)}'


class WorkflowRequestLoggingMiddleware:
    """One line per API call: workflow view, actor role and department, status, duration.

    Failed and slow calls are logged at WARNING, the rest at INFO.
    """

    def __init__(self, get_response: Callable[[HttpRequest], HttpResponse]):
        self.get_response = get_response

    def __call__(self, request: HttpRequest):
        if not request.path.startswith('/api/') or not getattr(settings, 'WORKFLOW_REQUEST_LOG_ENABLED', True):
            return self.get_response(request)

        threshold_ms = int(getattr(settings, 'SLOW_REQUEST_LOG_MS', 1200))
        started = time.perf_counter()
        response = self.get_response(request)
        elapsed_ms = (time.perf_counter() - started) * 1000.0

        status = getattr(response, 'status_code', 0)
        slow = elapsed_ms >= threshold_ms
        level = logging.WARNING if slow or status >= 400 else logging.INFO
        logger.log(
            level,
            '%s %s view=%s actor=%s status=%s duration_ms=%.1f%s',
            request.method,
            request.path,
            _view_name(request),
            _actor(request),
            status,
            elapsed_ms,
            ' SLOW' if slow else '',
        )
        return response
