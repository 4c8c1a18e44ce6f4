"""Workflow error taxonomy.

Services raise these; ``common.exception_handler`` renders them as
``{"error", "code", "details"}`` with the status attached to each kind.
"""
from typing import Any, Dict, Optional


class WorkflowError(Exception):
    kind = 'Internal'
    status_code = 500
    default_code = 'Internal'
    default_message = 'Internal server error'

    def __init__(self, code: Optional[str] = None, message: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        self.code = code or self.default_code
        self.message = message or self.default_message
        self.details = details or {}
        super().__init__(self.message)

    def as_dict(self) -> Dict[str, Any]:
        payload = {'error': self.message, 'code': self.code}
        if self.details:
            payload['details'] = self.details
        return payload


class Unauthorized(WorkflowError):
    kind = 'Unauthorized'
    status_code = 403
    default_code = 'Unauthorized'
    default_message = 'You are not allowed to perform this action'


class NotFound(WorkflowError):
    kind = 'NotFound'
    status_code = 404
    default_code = 'NotFound'
    default_message = 'Not found'


class InvalidInput(WorkflowError):
    kind = 'InvalidInput'
    status_code = 400
    default_code = 'InvalidInput'
    default_message = 'Invalid input'


class PreconditionFailed(WorkflowError):
    kind = 'PreconditionFailed'
    status_code = 400
    default_code = 'PreconditionFailed'
    default_message = 'Precondition failed'


class Conflict(WorkflowError):
    kind = 'Conflict'
    status_code = 409
    default_code = 'Conflict'
    default_message = 'The record was modified concurrently, reload and retry'


class Internal(WorkflowError):
    pass
