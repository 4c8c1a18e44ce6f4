import logging

from django.core.exceptions import PermissionDenied
from django.http import Http404
from rest_framework import exceptions as drf_exceptions
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

from common.errors import WorkflowError

logger = logging.getLogger(__name__)


def _operation(context) -> str:
    view = context.get('view') if context else None
    request = context.get('request') if context else None
    name = view.__class__.__name__ if view is not None else 'unknown'
    method = getattr(request, 'method', '?')
    return f'{method} {name}'


def workflow_exception_handler(exc, context):
    """Render every failure as ``{"error", "code", "details"}``.

    WorkflowError kinds carry their own status. DRF exceptions keep the status
    DRF assigns. Anything else is logged and reported as a generic 500.
    """
    if isinstance(exc, WorkflowError):
        if exc.status_code >= 500:
            logger.error('Internal workflow error during %s: %s', _operation(context), exc.message)
            return Response({'error': 'Internal server error', 'code': 'Internal'}, status=exc.status_code)
        logger.info('Workflow rejected %s: %s %s', _operation(context), exc.kind, exc.code)
        return Response(exc.as_dict(), status=exc.status_code)

    response = exception_handler(exc, context)

    if response is not None:
        if isinstance(exc, drf_exceptions.ValidationError):
            response.data = {'error': 'Invalid input', 'code': 'InvalidInput', 'details': response.data}
        elif isinstance(exc, (drf_exceptions.NotAuthenticated, drf_exceptions.AuthenticationFailed)):
            response.data = {'error': str(exc.detail), 'code': 'Unauthenticated'}
        elif isinstance(exc, (drf_exceptions.PermissionDenied, PermissionDenied)):
            response.data = {'error': 'You are not allowed to perform this action', 'code': 'Unauthorized'}
        elif isinstance(exc, (drf_exceptions.NotFound, Http404)):
            response.data = {'error': 'Not found', 'code': 'NotFound'}
        else:
            detail = getattr(exc, 'detail', None)
            response.data = {'error': str(detail if detail is not None else exc), 'code': exc.__class__.__name__}
        return response

    logger.exception('Unhandled error during %s', _operation(context))
    return Response({'error': 'Internal server error', 'code': 'Internal'}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)
