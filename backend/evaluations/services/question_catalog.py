import logging
from typing import Iterable, List, Optional, Tuple

from django.db import IntegrityError, transaction
from django.db.models import Max

from accounts.capabilities import Action, require
from common.errors import Conflict, InvalidInput, NotFound, PreconditionFailed
from evaluations.models import Question, TeacherAnswer
from evaluations.services.submission_ledger import ensure_question_set_open
from terms.services import term_manager

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = ('question', 'type', 'options', 'option_scores', 'order', 'is_active')


def require_active_term(department_id, term: str, year: int):
    state = term_manager.get_term_state(department_id, year)
    if state is None:
        raise PreconditionFailed('TermStateMissing', 'No term has been activated for this department')
    if state.active_term != term:
        raise PreconditionFailed('TermNotActive', f'{term} term is not the active term for {year}')
    return state


def normalize_choices(qtype: str, options: Optional[Iterable], option_scores: Optional[Iterable]) -> Tuple[List[str], List[float]]:
    """Validate options/scores for ``qtype`` and return them as clean lists.

    Choice questions need non-empty, equally long, index-aligned lists; free
    text questions carry neither.
    """
    if qtype not in Question.QuestionType.values:
        raise InvalidInput('InvalidQuestionType', f'Unknown question type {qtype!r}')

    options = list(options or [])
    option_scores = list(option_scores or [])

    if qtype not in Question.CHOICE_TYPES:
        if options or option_scores:
            raise InvalidInput('UnexpectedOptions', f'{qtype} questions do not take options')
        return [], []

    if not options:
        raise InvalidInput('OptionsRequired', f'{qtype} questions need at least one option')
    if len(options) != len(option_scores):
        raise InvalidInput(
            'OptionScoreMismatch',
            'options and optionScores must have the same length',
            {'options': len(options), 'optionScores': len(option_scores)},
        )

    cleaned_options = [str(o).strip() for o in options]
    if any(not o for o in cleaned_options):
        raise InvalidInput('InvalidOption', 'Options must be non-empty strings')
    if len(set(cleaned_options)) != len(cleaned_options):
        raise InvalidInput('DuplicateOption', 'Options must be unique')

    cleaned_scores = []
    for score in option_scores:
        if isinstance(score, bool) or not isinstance(score, (int, float)):
            raise InvalidInput('InvalidOptionScore', 'Option scores must be numbers')
        cleaned_scores.append(score)
    return cleaned_options, cleaned_scores


def next_order(department_id, term: str, year: int) -> int:
    current = Question.objects.filter(department_id=department_id, term=term, year=year).aggregate(m=Max('order'))['m']
    return (current or 0) + 1


def _save(question: Question, **kwargs) -> Question:
    try:
        with transaction.atomic():
            question.save(**kwargs)
    except IntegrityError:
        raise Conflict('OrderTaken', f'Order {question.order} is already used for this term', {'order': question.order})
    return question


def _load_for_author(actor, question_id) -> Question:
    question = Question.objects.filter(pk=question_id).first()
    if question is None:
        raise NotFound('QuestionNotFound', 'Question not found')
    require(actor, Action.AUTHOR_QUESTIONS, question.department_id,
            message='Questions of another department cannot be changed')
    return question


def _ensure_unanswered(question: Question) -> None:
    if TeacherAnswer.objects.filter(question=question).exists():
        raise PreconditionFailed('QuestionAnswered', 'This question already has answers and can no longer be changed')


def create_question(actor, *, question: str, type: str, term: str, options=None, option_scores=None,
                    order: Optional[int] = None, year: Optional[int] = None) -> Question:
    require(actor, Action.AUTHOR_QUESTIONS, getattr(actor, 'department_id', None))
    department_id = actor.department_id
    term = term_manager.validate_term(term)
    year = year or term_manager.current_year()

    text = str(question or '').strip()
    if not text:
        raise InvalidInput('QuestionRequired', 'Question text is required')
    options, option_scores = normalize_choices(type, options, option_scores)

    require_active_term(department_id, term, year)
    ensure_question_set_open(department_id, term, year)

    if order is None:
        order = next_order(department_id, term, year)
    elif int(order) < 1:
        raise InvalidInput('InvalidOrder', 'order must be a positive integer')

    created = _save(Question(
        department_id=department_id,
        term=term,
        year=year,
        question=text,
        type=type,
        options=options,
        option_scores=option_scores,
        order=int(order),
        created_by=actor,
    ))
    logger.info('Question %s created by %s for department %s (%s %s)', created.pk, actor.username, department_id, term, year)
    return created


def update_question(actor, question_id, **fields) -> Question:
    question = _load_for_author(actor, question_id)
    _ensure_unanswered(question)

    unknown = set(fields) - set(EDITABLE_FIELDS)
    if unknown:
        raise InvalidInput('UnknownField', 'Unsupported field(s)', {'fields': sorted(unknown)})

    if 'question' in fields:
        text = str(fields['question'] or '').strip()
        if not text:
            raise InvalidInput('QuestionRequired', 'Question text is required')
        question.question = text
    if 'order' in fields:
        if fields['order'] is None or int(fields['order']) < 1:
            raise InvalidInput('InvalidOrder', 'order must be a positive integer')
        question.order = int(fields['order'])
    if 'is_active' in fields:
        if fields['is_active'] and not question.is_active and question.is_published:
            ensure_question_set_open(question.department_id, question.term, question.year)
        question.is_active = bool(fields['is_active'])

    qtype = fields.get('type', question.type)
    options = fields['options'] if 'options' in fields else question.options
    option_scores = fields['option_scores'] if 'option_scores' in fields else question.option_scores
    if 'type' in fields and qtype not in Question.CHOICE_TYPES and 'options' not in fields:
        options, option_scores = [], []
    question.options, question.option_scores = normalize_choices(qtype, options, option_scores)
    question.type = qtype

    _save(question)
    logger.info('Question %s updated by %s', question.pk, actor.username)
    return question


def delete_question(actor, question_id) -> None:
    question = _load_for_author(actor, question_id)
    _ensure_unanswered(question)
    question.delete()
    logger.info('Question %s deleted by %s', question_id, actor.username)


def list_questions(actor, term: Optional[str] = None, year: Optional[int] = None):
    require(actor, Action.AUTHOR_QUESTIONS, getattr(actor, 'department_id', None))
    qs = Question.objects.filter(department_id=actor.department_id, year=year or term_manager.current_year())
    if term:
        qs = qs.filter(term=term_manager.validate_term(term))
    return qs.order_by('term', 'order')
