"""Standard faculty rubric, inserted as 1-5 MCQ questions for the active term."""
import logging
from typing import Optional

from django.db import IntegrityError, transaction

from accounts.capabilities import Action, require
from common.errors import Conflict, PreconditionFailed
from evaluations.models import Question
from evaluations.services.question_catalog import next_order
from evaluations.services.submission_ledger import ensure_question_set_open
from terms.services import term_manager

logger = logging.getLogger(__name__)

RUBRIC_ITEMS = (
    ('Professionalism', 'Compliance'),
    ('Professionalism', 'Punctuality/Attendance'),
    ('Professionalism', 'Ability to deal with students'),
    ('Professionalism', 'Competence and Performance'),
    ('Responsibilities', 'Attending Non-Teaching Activities'),
    ('Responsibilities', 'Department Related Duties'),
    ('Responsibilities', 'Collegial Relationship'),
    ('Responsibilities', 'Ability to Deal with Supervisors'),
    ('Responsibilities', 'Participation in College Committees'),
    ('Development', 'In-Service Training'),
    ('Development', 'Research and Publications'),
    ('Development', 'National and International Conferences'),
    ('Engagement', 'Student Advising'),
    ('Engagement', 'Student Engagement'),
    ('Engagement', 'Community Engagement'),
)

SCALE_OPTIONS = ['1', '2', '3', '4', '5']
SCALE_SCORES = [1, 2, 3, 4, 5]


def rubric_texts():
    return [f'[{category}] {item}' for category, item in RUBRIC_ITEMS]


def insert_rubric_template(actor, year: Optional[int] = None) -> int:
    """Create the missing rubric questions for the department's active term.

    Items whose text already exists for (department, term, year) are skipped,
    so calling this twice creates nothing the second time.
    """
    require(actor, Action.AUTHOR_QUESTIONS, getattr(actor, 'department_id', None))
    department_id = actor.department_id
    year = year or term_manager.current_year()

    state = term_manager.get_term_state(department_id, year)
    if state is None:
        raise PreconditionFailed('TermStateMissing', 'No term has been activated for this department')
    term = state.active_term
    ensure_question_set_open(department_id, term, year)

    with transaction.atomic():
        existing = set(
            Question.objects.filter(department_id=department_id, term=term, year=year).values_list('question', flat=True)
        )
        order = next_order(department_id, term, year)
        to_create = []
        for text in rubric_texts():
            if text in existing:
                continue
            to_create.append(Question(
                department_id=department_id,
                term=term,
                year=year,
                question=text,
                type=Question.QuestionType.MCQ,
                options=list(SCALE_OPTIONS),
                option_scores=list(SCALE_SCORES),
                order=order,
                created_by=actor,
            ))
            order += 1
        try:
            Question.objects.bulk_create(to_create)
        except IntegrityError:
            logger.warning('Rubric template for department %s (%s %s) collided with a concurrent question write',
                           department_id, term, year)
            raise Conflict('OrderTaken', 'Questions were added concurrently, reload and retry')

    logger.info('Rubric template inserted for department %s (%s %s): %s created', department_id, term, year, len(to_create))
    return len(to_create)
