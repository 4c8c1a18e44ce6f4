"""Term activation and visibility transitions.

A department's ``TermState`` for a year says which term (START or END) is
active and how far each term has progressed (DRAFT -> PUBLISHED -> COMPLETE).
Teachers may only answer questions of the active term while its flag is
PUBLISHED.
"""
import logging
from typing import Iterable, Optional

from django.db import IntegrityError, transaction
from django.utils import timezone

from academics.models import Department
from accounts.capabilities import Action, require
from common.cache import invalidate_year
from common.errors import Conflict, InvalidInput, NotFound, PreconditionFailed
from terms.models import Term, TermState, TermStatus, Visibility

logger = logging.getLogger(__name__)

DRAFT_FLAGS = {
    'visibility': Visibility.DRAFT,
    'start_term_visibility': Visibility.DRAFT,
    'end_term_visibility': Visibility.DRAFT,
}


def current_year() -> int:
    return timezone.localdate().year


def validate_term(term: str) -> str:
    value = str(term or '').strip().upper()
    if value not in TermStatus.values:
        raise InvalidInput('InvalidTerm', f'Unknown term {term!r}; expected START or END')
    return value


def _department_ids(departments: Iterable) -> list:
    ids = []
    for dept in departments:
        dept_id = getattr(dept, 'pk', dept)
        try:
            ids.append(int(dept_id))
        except (TypeError, ValueError):
            raise InvalidInput('InvalidDepartment', f'Invalid department id {dept_id!r}')
    return sorted(set(ids))


def _resolve_term(term) -> Term:
    if isinstance(term, Term):
        return term
    found = Term.objects.filter(pk=term).first()
    if found is None:
        raise NotFound('TermNotFound', 'Term not found')
    return found


def create_term(actor, *, name: str, year: int, start_date, end_date, status: str, departments: Iterable = ()) -> Term:
    require(actor, Action.MANAGE_TERMS)

    status = validate_term(status)
    if not name or not str(name).strip():
        raise InvalidInput('InvalidName', 'Term name is required')
    if year is None or int(year) < 1:
        raise InvalidInput('InvalidYear', 'Year must be a positive integer')
    if start_date >= end_date:
        raise InvalidInput('InvalidDates', 'start_date must be before end_date')

    dept_ids = _department_ids(departments)
    found = set(Department.objects.filter(pk__in=dept_ids).values_list('pk', flat=True))
    missing = [d for d in dept_ids if d not in found]
    if missing:
        raise NotFound('DepartmentNotFound', 'Unknown department(s)', {'departments': missing})

    with transaction.atomic():
        clash = (
            Term.objects
            .filter(status=status, year=year, departments__in=dept_ids)
            .values_list('departments', flat=True)
        )
        clashing = sorted(set(d for d in clash if d in dept_ids))
        if clashing:
            raise PreconditionFailed(
                'TermAlreadyExists',
                f'A {status} term for {year} already exists for these departments',
                {'departments': clashing},
            )

        term = Term.objects.create(
            name=str(name).strip(), year=int(year), start_date=start_date, end_date=end_date, status=status,
        )
        term.departments.set(dept_ids)

    logger.info('Term %s created by %s (%s %s, departments=%s)', term.pk, actor.username, status, year, dept_ids)
    return term


def activate_term(actor, term, departments: Optional[Iterable] = None) -> dict:
    """Make ``term`` the active term for each target department.

    Targets default to every department linked to the term. All departments
    are validated before anything is written; a single failure leaves every
    TermState untouched.
    """
    require(actor, Action.MANAGE_TERMS)
    term = _resolve_term(term)

    with transaction.atomic():
        linked = set(term.departments.values_list('pk', flat=True))
        targets = _department_ids(departments) if departments else sorted(linked)
        if not targets:
            raise PreconditionFailed('NoDepartments', 'The term is not linked to any department')

        unlinked = [d for d in targets if d not in linked]
        if unlinked:
            raise PreconditionFailed(
                'DepartmentNotLinked', 'Department is not linked to this term', {'departments': unlinked},
            )

        existing = {
            s.department_id: s
            for s in TermState.objects.select_for_update().filter(department_id__in=targets, year=term.year)
        }
        already = [d for d, s in existing.items() if s.active_term == term.status]
        if already:
            raise PreconditionFailed(
                'AlreadyActive',
                f'{term.status} term is already active for {term.year}',
                {'departments': sorted(already)},
            )

        for dept_id in targets:
            state = existing.get(dept_id)
            if state is None:
                try:
                    with transaction.atomic():
                        TermState.objects.create(
                            department_id=dept_id, year=term.year, active_term=term.status, **DRAFT_FLAGS,
                        )
                except IntegrityError:
                    logger.warning('Concurrent activation of department %s for %s', dept_id, term.year)
                    raise Conflict(
                        'ConcurrentActivation', 'The term state was created concurrently, reload and retry',
                        {'departments': [dept_id]},
                    )
                continue
            state.active_term = term.status
            for field, value in DRAFT_FLAGS.items():
                setattr(state, field, value)
            state.save(update_fields=['active_term', *DRAFT_FLAGS.keys(), 'updated_at'])

    invalidate_year(term.year)
    logger.info('Term %s (%s %s) activated by %s for departments %s', term.pk, term.status, term.year, actor.username, targets)
    return {'activeTerm': term.status, 'year': term.year, 'departments': targets}


def publish_questions(actor, term: str, year: Optional[int] = None) -> int:
    """Publish every active, unpublished question of the HOD's department for ``term``."""
    from evaluations.models import Question
    from evaluations.services.submission_ledger import ensure_question_set_open

    department_id = getattr(actor, 'department_id', None)
    require(actor, Action.PUBLISH_QUESTIONS, department_id)
    term = validate_term(term)
    year = year or current_year()

    with transaction.atomic():
        state = TermState.objects.select_for_update().filter(department_id=department_id, year=year).first()
        if state is None:
            raise PreconditionFailed('TermStateMissing', 'No term has been activated for this department')
        if state.active_term != term:
            raise PreconditionFailed('TermNotActive', f'{term} term is not the active term')
        ensure_question_set_open(department_id, term, year)

        published = (
            Question.objects
            .filter(department_id=department_id, term=term, year=year, is_active=True, is_published=False)
            .update(is_published=True)
        )
        if not published:
            logger.warning('Publish requested by %s but no unpublished questions for %s/%s/%s',
                           actor.username, department_id, term, year)
            raise PreconditionFailed('NoUnpublishedQuestions', 'There are no unpublished questions to publish')

        setattr(state, TermState.flag_field(term), Visibility.PUBLISHED)
        state.visibility = Visibility.PUBLISHED
        state.save(update_fields=[TermState.flag_field(term), 'visibility', 'updated_at'])

    invalidate_year(year)
    logger.info('%s question(s) published for department %s (%s %s) by %s', published, department_id, term, year, actor.username)
    return published


def complete_visibility(actor, department, term: str, year: Optional[int] = None) -> TermState:
    department_id = getattr(department, 'pk', department)
    require(actor, Action.COMPLETE_VISIBILITY, department_id)
    term = validate_term(term)
    year = year or current_year()

    with transaction.atomic():
        state = TermState.objects.select_for_update().filter(department_id=department_id, year=year).first()
        if state is None:
            raise PreconditionFailed('TermStateMissing', 'No term has been activated for this department')
        setattr(state, TermState.flag_field(term), Visibility.COMPLETE)
        fields = [TermState.flag_field(term), 'updated_at']
        if state.active_term == term:
            state.visibility = Visibility.COMPLETE
            fields.append('visibility')
        state.save(update_fields=fields)

    invalidate_year(year)
    logger.info('%s term marked complete for department %s (%s) by %s', term, department_id, year, actor.username)
    return state


def reset_visibility(year: int, actor=None) -> int:
    """Set every visibility flag of ``year`` back to DRAFT; ``active_term`` is kept."""
    if actor is not None:
        require(actor, Action.RESET_VISIBILITY)
    count = TermState.objects.filter(year=year).update(updated_at=timezone.now(), **DRAFT_FLAGS)
    invalidate_year(year)
    logger.info('Visibility reset to DRAFT for %s term state(s) in %s', count, year)
    return count


def get_term_state(department, year: Optional[int] = None) -> Optional[TermState]:
    department_id = getattr(department, 'pk', department)
    return TermState.objects.filter(department_id=department_id, year=year or current_year()).first()


def term_visibility(state: Optional[TermState], term: str) -> str:
    if state is None:
        return Visibility.DRAFT
    return state.visibility_for(term)


def is_term_open_for_answers(department, term: str, year: Optional[int] = None) -> bool:
    state = get_term_state(department, year)
    return state is not None and state.active_term == term and state.visibility_for(term) == Visibility.PUBLISHED


def term_deadline(department, term: str, year: Optional[int] = None):
    """Submission deadline: ``end_date`` of the department's Term for (term, year)."""
    department_id = getattr(department, 'pk', department)
    found = (
        Term.objects.filter(status=term, year=year or current_year(), departments__pk=department_id)
        .order_by('-end_date')
        .first()
    )
    return found.end_date if found else None
