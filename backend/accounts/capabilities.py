"""Central role/capability table for the evaluation workflow.

Every authorization decision in the services goes through ``can`` (or
``require``, which raises). A capability lists the roles allowed to perform an
action and whether the actor must belong to the department that owns the
resource.
"""
from dataclasses import dataclass
from enum import Enum
from typing import FrozenSet, Optional

from accounts.models import Role
from common.errors import Unauthorized


class Action(str, Enum):
    MANAGE_TERMS = 'manage_terms'
    RESET_VISIBILITY = 'reset_visibility'
    COMPLETE_VISIBILITY = 'complete_visibility'
    AUTHOR_QUESTIONS = 'author_questions'
    PUBLISH_QUESTIONS = 'publish_questions'
    SUBMIT_EVALUATION = 'submit_evaluation'
    HOD_REVIEW = 'hod_review'
    ASST_DEAN_REVIEW = 'asst_dean_review'
    DEAN_FINAL_REVIEW = 'dean_final_review'
    ASST_DEAN_HOD_REVIEW = 'asst_dean_hod_review'
    DEAN_HOD_REVIEW = 'dean_hod_review'
    VIEW_REPORTS = 'view_reports'
    VIEW_PIPELINE = 'view_pipeline'


@dataclass(frozen=True)
class Capability:
    roles: FrozenSet[str]
    # roles in this set must belong to the resource's department
    department_scoped: FrozenSet[str] = frozenset()


CAPABILITIES = {
    Action.MANAGE_TERMS: Capability(frozenset({Role.ADMIN})),
    Action.RESET_VISIBILITY: Capability(frozenset({Role.ADMIN})),
    Action.COMPLETE_VISIBILITY: Capability(frozenset({Role.ADMIN, Role.HOD}), frozenset({Role.HOD})),
    Action.AUTHOR_QUESTIONS: Capability(frozenset({Role.HOD}), frozenset({Role.HOD})),
    Action.PUBLISH_QUESTIONS: Capability(frozenset({Role.HOD}), frozenset({Role.HOD})),
    Action.SUBMIT_EVALUATION: Capability(frozenset({Role.TEACHER})),
    Action.HOD_REVIEW: Capability(frozenset({Role.HOD}), frozenset({Role.HOD})),
    Action.ASST_DEAN_REVIEW: Capability(frozenset({Role.ASST_DEAN})),
    Action.DEAN_FINAL_REVIEW: Capability(frozenset({Role.DEAN})),
    Action.ASST_DEAN_HOD_REVIEW: Capability(frozenset({Role.ASST_DEAN})),
    Action.DEAN_HOD_REVIEW: Capability(frozenset({Role.DEAN})),
    Action.VIEW_REPORTS: Capability(frozenset({Role.ADMIN, Role.DEAN, Role.ASST_DEAN})),
    Action.VIEW_PIPELINE: Capability(
        frozenset({Role.ADMIN, Role.HOD, Role.ASST_DEAN, Role.DEAN}),
        frozenset({Role.HOD}),
    ),
}


def effective_role(user) -> Optional[str]:
    if user is None or not getattr(user, 'is_authenticated', False) or not getattr(user, 'is_active', True):
        return None
    if getattr(user, 'is_superuser', False):
        return Role.ADMIN
    return getattr(user, 'role', None)


def can(user, action: Action, department=None) -> bool:
    """Return True if ``user`` may perform ``action`` on a resource owned by ``department``.

    ``department`` may be a Department instance, a primary key or None when the
    resource is not department-owned.
    """
    role = effective_role(user)
    if role is None:
        return False

    capability = CAPABILITIES[action]
    if role not in capability.roles:
        return False

    if role in capability.department_scoped:
        user_dept_id = getattr(user, 'department_id', None)
        if user_dept_id is None:
            return False
        if department is not None:
            dept_id = getattr(department, 'pk', department)
            if dept_id != user_dept_id:
                return False
    return True


def require(user, action: Action, department=None, message: Optional[str] = None) -> None:
    if not can(user, action, department):
        raise Unauthorized(message=message or f'Not allowed to {action.value.replace("_", " ")}')
