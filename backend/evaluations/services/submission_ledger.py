"""Teacher self-evaluation answers and the submission lock.

A teacher's evaluation for (term, year) counts as submitted once every
question of the department's published set is answered and a self comment
exists. From then on the key is locked: drafts and re-submissions fail.
The first self comment of a department also freezes its question set for
(term, year), so a submitted evaluation cannot fall back to incomplete.
"""
import logging
from typing import Any, Dict, Iterable, Optional, Set, Tuple

from django.db import IntegrityError, transaction
from django.db.models import Count, F
from django.utils import timezone

from accounts.capabilities import Action, require
from common.cache import invalidate_year
from common.errors import Conflict, InvalidInput, PreconditionFailed
from evaluations.models import Question, SelfComment, TeacherAnswer
from terms.models import TermStatus
from terms.services import term_manager

logger = logging.getLogger(__name__)


def question_set(department_id, term: str, year: int):
    return Question.objects.filter(department_id=department_id, term=term, year=year, is_active=True, is_published=True)


def is_complete(questions_count: int, answers_count: int, has_self_comment: bool) -> bool:
    return has_self_comment and answers_count == questions_count


def counts(teacher, term: str, year: int) -> Dict[str, Any]:
    questions = question_set(teacher.department_id, term, year)
    questions_count = questions.count()
    answers_count = TeacherAnswer.objects.filter(
        teacher=teacher, term=term, year=year, question__in=questions,
    ).count()
    has_comment = SelfComment.objects.filter(teacher=teacher, term=term, year=year).exists()
    return {'questionsCount': questions_count, 'answersCount': answers_count, 'hasSelfComment': has_comment}


def is_submitted(teacher, term: str, year: int) -> bool:
    c = counts(teacher, term, year)
    return is_complete(c['questionsCount'], c['answersCount'], c['hasSelfComment'])


def submitted_keys(teachers: Iterable, year: int, terms: Iterable[str] = TermStatus.values) -> Set[Tuple[int, str]]:
    """``(teacher_id, term)`` pairs that are submitted, in three queries for any number of teachers."""
    teachers = list(teachers)
    terms = list(terms)
    if not teachers:
        return set()

    questions = {
        (row['department_id'], row['term']): row['n']
        for row in Question.objects
        .filter(department_id__in={t.department_id for t in teachers}, term__in=terms, year=year,
                is_active=True, is_published=True)
        .values('department_id', 'term')
        .annotate(n=Count('id'))
    }
    answers = {
        (row['teacher_id'], row['term']): row['n']
        for row in TeacherAnswer.objects
        .filter(teacher__in=teachers, term__in=terms, year=year,
                question__is_active=True, question__is_published=True,
                question__term=F('term'), question__year=F('year'),
                question__department_id=F('teacher__department_id'))
        .values('teacher_id', 'term')
        .annotate(n=Count('id'))
    }
    commented = set(
        SelfComment.objects.filter(teacher__in=teachers, term__in=terms, year=year).values_list('teacher_id', 'term')
    )

    result = set()
    for teacher in teachers:
        for term in terms:
            key = (teacher.pk, term)
            if is_complete(questions.get((teacher.department_id, term), 0), answers.get(key, 0), key in commented):
                result.add(key)
    return result


def question_set_frozen(department_id, term: str, year: int) -> bool:
    return SelfComment.objects.filter(teacher__department_id=department_id, term=term, year=year).exists()


def ensure_question_set_open(department_id, term: str, year: int) -> None:
    if question_set_frozen(department_id, term, year):
        raise PreconditionFailed(
            'QuestionSetFrozen', f'Evaluations for {term} {year} have already been submitted; the question set is final',
        )


def _teacher_department(teacher):
    require(teacher, Action.SUBMIT_EVALUATION)
    if getattr(teacher, 'department_id', None) is None:
        raise PreconditionFailed('NoDepartment', 'Teacher is not assigned to a department')
    return teacher.department_id


def _ensure_open(department_id, term: str, year: int) -> None:
    if not term_manager.is_term_open_for_answers(department_id, term, year):
        raise PreconditionFailed('TermNotOpen', f'{term} evaluation is not open for answers')


def normalize_answers(answers) -> Dict[int, Any]:
    """Accept ``[{"questionId": id, "answer": value}, ...]`` or ``{id: value}``."""
    if isinstance(answers, dict):
        items = list(answers.items())
    elif isinstance(answers, (list, tuple)):
        items = []
        for entry in answers:
            if not isinstance(entry, dict):
                raise InvalidInput('InvalidAnswers', 'Each answer must be an object')
            qid = entry.get('questionId', entry.get('question_id'))
            items.append((qid, entry.get('answer')))
    else:
        raise InvalidInput('InvalidAnswers', 'answers must be a list or a mapping')

    result = {}
    for qid, value in items:
        try:
            qid = int(qid)
        except (TypeError, ValueError):
            raise InvalidInput('InvalidAnswers', f'Invalid question id {qid!r}')
        if qid in result:
            raise InvalidInput('DuplicateAnswer', f'Question {qid} answered more than once')
        result[qid] = value
    return result


def validate_answer(question: Question, value):
    qtype = question.type
    if qtype == Question.QuestionType.CHECKBOX:
        if not isinstance(value, (list, tuple)) or not value:
            raise InvalidInput('InvalidAnswer', 'Select at least one option', {'questionId': question.pk})
        picked = [str(v) for v in value]
        bad = [v for v in picked if v not in question.options]
        if bad or len(set(picked)) != len(picked):
            raise InvalidInput('InvalidAnswer', 'Answer contains unknown or repeated options', {'questionId': question.pk})
        return picked

    if not isinstance(value, (str, int, float)) or isinstance(value, bool):
        raise InvalidInput('InvalidAnswer', 'Answer must be a string', {'questionId': question.pk})
    text = str(value).strip()
    if not text:
        raise InvalidInput('InvalidAnswer', 'Answer must not be empty', {'questionId': question.pk})
    if qtype == Question.QuestionType.MCQ and text not in question.options:
        raise InvalidInput('InvalidAnswer', 'Answer is not one of the options', {'questionId': question.pk})
    return text


def _upsert(teacher, question: Question, term: str, year: int, value) -> TeacherAnswer:
    answer, _ = TeacherAnswer.objects.update_or_create(
        teacher=teacher, question=question, term=term, year=year, defaults={'answer': value},
    )
    return answer


def submit_evaluation(teacher, term: str, answers, self_comment: str, year: Optional[int] = None) -> Dict[str, Any]:
    department_id = _teacher_department(teacher)
    term = term_manager.validate_term(term)
    year = year or term_manager.current_year()

    _ensure_open(department_id, term, year)
    if is_submitted(teacher, term, year):
        raise PreconditionFailed('AlreadySubmitted', 'This evaluation has already been submitted')

    provided = normalize_answers(answers)
    comment = str(self_comment or '').strip()
    if not comment:
        raise InvalidInput('SelfCommentRequired', 'A self comment is required to submit')

    questions = {q.pk: q for q in question_set(department_id, term, year)}
    if not questions:
        raise PreconditionFailed('NoQuestions', 'There are no published questions for this term')

    if set(provided) != set(questions):
        raise InvalidInput('IncompleteAnswers', 'Every published question must be answered exactly once', {
            'missing': sorted(set(questions) - set(provided)),
            'unknown': sorted(set(provided) - set(questions)),
        })

    cleaned = {qid: validate_answer(questions[qid], value) for qid, value in provided.items()}
    # left behind by a question set that changed after an earlier submission
    stale = SelfComment.objects.filter(teacher=teacher, term=term, year=year).first()

    try:
        with transaction.atomic():
            saved = [_upsert(teacher, questions[qid], term, year, value) for qid, value in cleaned.items()]
            if stale is not None:
                stale.comment = comment
                stale.save(update_fields=['comment'])
                note = stale
            else:
                note = SelfComment.objects.create(teacher=teacher, term=term, year=year, comment=comment)
    except IntegrityError:
        logger.warning('Concurrent submission detected for teacher %s (%s %s)', teacher.pk, term, year)
        raise Conflict('SubmissionConflict', 'The evaluation was submitted concurrently')

    invalidate_year(year)
    logger.info('Evaluation submitted by teacher %s (%s %s, %s answers)', teacher.pk, term, year, len(saved))
    return {
        'answers': [serialize_answer(a) for a in saved],
        'selfComment': {'comment': note.comment, 'createdAt': note.created_at},
    }


def save_draft_answers(teacher, term: str, answers, year: Optional[int] = None) -> int:
    department_id = _teacher_department(teacher)
    term = term_manager.validate_term(term)
    year = year or term_manager.current_year()

    _ensure_open(department_id, term, year)
    if is_submitted(teacher, term, year):
        raise PreconditionFailed('Locked', 'This evaluation has been submitted and can no longer be edited')

    provided = normalize_answers(answers)

    questions = {q.pk: q for q in question_set(department_id, term, year).filter(pk__in=list(provided))}
    unknown = sorted(set(provided) - set(questions))
    if unknown:
        raise InvalidInput('UnknownQuestion', 'Answers reference questions outside this evaluation', {'unknown': unknown})

    cleaned = {qid: validate_answer(questions[qid], value) for qid, value in provided.items()}
    with transaction.atomic():
        for qid, value in cleaned.items():
            _upsert(teacher, questions[qid], term, year, value)

    logger.info('Draft answers saved by teacher %s (%s %s, %s answers)', teacher.pk, term, year, len(cleaned))
    return len(cleaned)


def serialize_answer(answer: TeacherAnswer) -> Dict[str, Any]:
    return {
        'questionId': answer.question_id,
        'answer': answer.answer,
        'term': answer.term,
        'year': answer.year,
        'updatedAt': answer.updated_at,
    }


def term_status(teacher, term: str, year: int, now=None) -> Dict[str, Any]:
    c = counts(teacher, term, year)
    if c['questionsCount'] == 0:
        status = 'NOT_AVAILABLE'
    elif c['answersCount'] == 0:
        status = 'NOT_STARTED'
    elif is_complete(c['questionsCount'], c['answersCount'], c['hasSelfComment']):
        status = 'SUBMITTED'
    else:
        status = 'IN_PROGRESS'

    deadline = term_manager.term_deadline(teacher.department_id, term, year)
    now = now or timezone.now()
    is_published = c['questionsCount'] > 0
    can_submit = is_published and status != 'SUBMITTED' and deadline is not None and now <= deadline
    return {
        'status': status,
        'questionsCount': c['questionsCount'],
        'answersCount': c['answersCount'],
        'hasSelfComment': c['hasSelfComment'],
        'isPublished': is_published,
        'deadline': deadline,
        'canSubmit': can_submit,
    }


def evaluation_status(teacher, year: Optional[int] = None, now=None) -> Dict[str, Any]:
    _teacher_department(teacher)
    year = year or term_manager.current_year()
    state = term_manager.get_term_state(teacher.department_id, year)
    return {
        'year': year,
        'activeTerm': state.active_term if state else None,
        'start': term_status(teacher, TermStatus.START, year, now),
        'end': term_status(teacher, TermStatus.END, year, now),
    }


def questions_for_teacher(teacher, term: str, year: Optional[int] = None) -> Dict[str, Any]:
    department_id = _teacher_department(teacher)
    term = term_manager.validate_term(term)
    year = year or term_manager.current_year()

    is_open = term_manager.is_term_open_for_answers(department_id, term, year)
    questions = list(question_set(department_id, term, year).order_by('order')) if is_open else []
    return {
        'term': term,
        'year': year,
        'isOpen': is_open,
        'submitted': is_submitted(teacher, term, year),
        'questions': questions,
        'answers': answers_for_teacher(teacher, term, year)['answers'] if is_open else [],
    }


def answers_for_teacher(teacher, term: str, year: Optional[int] = None) -> Dict[str, Any]:
    term = term_manager.validate_term(term)
    year = year or term_manager.current_year()
    answers = TeacherAnswer.objects.filter(teacher=teacher, term=term, year=year).order_by('question__order')
    note = SelfComment.objects.filter(teacher=teacher, term=term, year=year).first()
    return {
        'answers': [serialize_answer(a) for a in answers],
        'selfComment': {'comment': note.comment, 'createdAt': note.created_at} if note else None,
    }
