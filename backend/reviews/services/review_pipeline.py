"""Teacher review pipeline: HOD -> Assistant Dean -> Dean.

Each stage writes one review row per (teacher, term, year). A stage accepts
writes only once the previous stage is submitted, and nothing but the Dean's
own draft may change after the Dean has finalized.
"""
import logging
from typing import Any, Dict, Optional

from django.contrib.auth import get_user_model

from accounts.capabilities import Action, require
from accounts.models import Role
from common.cache import invalidate_year
from common.errors import InvalidInput, NotFound, PreconditionFailed
from evaluations.models import SelfComment, TeacherAnswer
from evaluations.services.submission_ledger import question_set
from reviews.models import AsstReview, FinalReview, HodReview, ReviewStatus
from reviews.services import score_aggregator
from reviews.services.pipeline_state import PipelineState, pipeline_state, pipeline_states
from reviews.services.versioning import versioned_upsert
from terms.services import term_manager

logger = logging.getLogger(__name__)


def get_teacher(teacher_id):
    teacher = get_user_model().objects.filter(pk=teacher_id, role=Role.TEACHER).first()
    if teacher is None:
        raise NotFound('TeacherNotFound', 'Teacher not found')
    return teacher


def _key(teacher, term, year) -> Dict[str, Any]:
    return {'teacher': teacher, 'term': term, 'year': year}


def _comments(comments, submitted: bool) -> str:
    text = str(comments or '').strip()
    if submitted and not text:
        raise InvalidInput('CommentsRequired', 'Comments are required to submit a review')
    return text


def _ensure_not_finalized(teacher, term, year) -> None:
    if FinalReview.objects.filter(submitted=True, **_key(teacher, term, year)).exists():
        raise PreconditionFailed('AlreadyFinalized', 'The Dean has already finalized this evaluation')


def _review_values(reviewer, comments, scores, score, submitted) -> Dict[str, Any]:
    return {
        'reviewer': reviewer,
        'comments': _comments(comments, submitted),
        'scores': score_aggregator.build_scores_payload(scores or {}, total_override=score),
        'submitted': bool(submitted),
    }


def submit_hod_review(reviewer, teacher_id, term: str, comments: str, scores=None, score=None,
                      submitted: bool = True, expected_version: Optional[int] = None, year: Optional[int] = None) -> HodReview:
    teacher = get_teacher(teacher_id)
    require(reviewer, Action.HOD_REVIEW, teacher.department_id,
            message='Only the HOD of the teacher\'s department can review this teacher')
    term = term_manager.validate_term(term)
    year = year or term_manager.current_year()

    state = pipeline_state(teacher, term, year)
    if state == PipelineState.DEAN_FINALIZED:
        raise PreconditionFailed('AlreadyFinalized', 'The Dean has already finalized this evaluation')
    if state < PipelineState.SELF_SUBMITTED:
        raise PreconditionFailed('PrecursorMissing', 'The teacher has not submitted the self evaluation')

    values = _review_values(reviewer, comments, scores, score, submitted)

    def keep_submitted(current):
        if current is not None:
            values['submitted'] = values['submitted'] or current.submitted

    review = versioned_upsert(HodReview, _key(teacher, term, year), values, expected_version, keep_submitted)
    invalidate_year(year)
    logger.info('HOD review for teacher %s (%s %s) saved by %s (submitted=%s, version=%s)',
                teacher.pk, term, year, reviewer.username, review.submitted, review.version)
    return review


def submit_asst_review(reviewer, teacher_id, term: str, comments: str, scores=None, score=None,
                       submitted: bool = True, expected_version: Optional[int] = None, year: Optional[int] = None) -> AsstReview:
    require(reviewer, Action.ASST_DEAN_REVIEW)
    teacher = get_teacher(teacher_id)
    term = term_manager.validate_term(term)
    year = year or term_manager.current_year()

    _ensure_not_finalized(teacher, term, year)
    if not HodReview.objects.filter(submitted=True, **_key(teacher, term, year)).exists():
        raise PreconditionFailed('HodReviewIncomplete', 'The HOD review has not been submitted yet')

    values = _review_values(reviewer, comments, scores, score, submitted)

    def keep_submitted(current):
        if current is not None:
            values['submitted'] = values['submitted'] or current.submitted

    review = versioned_upsert(AsstReview, _key(teacher, term, year), values, expected_version, keep_submitted)
    invalidate_year(year)
    logger.info('Assistant Dean review for teacher %s (%s %s) saved by %s (submitted=%s, version=%s)',
                teacher.pk, term, year, reviewer.username, review.submitted, review.version)
    return review


def submit_final_review(reviewer, teacher_id, term: str, final_comment: str, final_score=None, status: Optional[str] = None,
                        submitted: bool = True, expected_version: Optional[int] = None, year: Optional[int] = None) -> FinalReview:
    require(reviewer, Action.DEAN_FINAL_REVIEW)
    teacher = get_teacher(teacher_id)
    term = term_manager.validate_term(term)
    year = year or term_manager.current_year()
    key = _key(teacher, term, year)

    _ensure_not_finalized(teacher, term, year)
    if not HodReview.objects.filter(submitted=True, **key).exists():
        raise PreconditionFailed('HodReviewIncomplete', 'The HOD review has not been submitted yet')
    if not AsstReview.objects.filter(submitted=True, **key).exists():
        raise PreconditionFailed('AsstReviewIncomplete', 'The Assistant Dean review has not been submitted yet')

    if status is not None and status not in ReviewStatus.values:
        raise InvalidInput('InvalidStatus', f'Unknown status {status!r}')
    if submitted and status is None:
        raise InvalidInput('StatusRequired', 'A final status is required to finalize')
    if final_score is not None:
        if isinstance(final_score, bool) or not isinstance(final_score, (int, float)) or not (0 <= final_score <= 100):
            raise InvalidInput('ScoreOutOfRange', 'finalScore must be a number between 0 and 100')

    values = {
        'reviewer': reviewer,
        'final_comment': str(final_comment or '').strip(),
        'final_score': final_score,
        'status': status,
        'submitted': bool(submitted),
    }

    def guard(current):
        if current is not None and current.submitted:
            raise PreconditionFailed('AlreadyFinalized', 'The Dean has already finalized this evaluation')

    review = versioned_upsert(FinalReview, key, values, expected_version, guard)
    invalidate_year(year)
    logger.info('Final review for teacher %s (%s %s) saved by %s (status=%s, submitted=%s)',
                teacher.pk, term, year, reviewer.username, review.status, review.submitted)
    return review


def serialize_review(review) -> Optional[Dict[str, Any]]:
    if review is None:
        return None
    data = {
        'id': review.pk,
        'term': review.term,
        'year': review.year,
        'reviewerId': review.reviewer_id,
        'submitted': review.submitted,
        'version': review.version,
        'updatedAt': review.updated_at,
    }
    if isinstance(review, FinalReview):
        data.update({
            'teacherId': review.teacher_id,
            'status': review.status,
            'finalScore': review.final_score,
            'finalComment': review.final_comment,
            'promoted': review.status == ReviewStatus.PROMOTED,
            'displayScore': score_aggregator.display_score(review.final_score, review.status),
        })
    else:
        data.update({
            'teacherId': review.teacher_id,
            'comments': review.comments,
            'scores': review.scores,
            'totalScore': score_aggregator.resolve_total_score(review.scores),
        })
    return data


def _teacher_summary(teacher) -> Dict[str, Any]:
    dept = teacher.department
    return {
        'id': teacher.pk,
        'name': teacher.display_name,
        'email': teacher.email,
        'department': {'id': dept.pk, 'code': dept.code, 'name': dept.name} if dept else None,
    }


def _rows(model, teachers, term, year) -> Dict[int, Any]:
    return {r.teacher_id: r for r in model.objects.filter(teacher__in=teachers, term=term, year=year)}


def review_queue(reviewer, term: str, year: Optional[int] = None):
    """Teachers waiting on ``reviewer``'s stage, with every review written so far.

    HODs see submitted teachers of their department, Assistant Deans see
    teachers with a submitted HOD review, Deans those with a submitted
    Assistant Dean review.
    """
    term = term_manager.validate_term(term)
    year = year or term_manager.current_year()
    User = get_user_model()
    teachers = User.objects.filter(role=Role.TEACHER, is_active=True).select_related('department').order_by('username')

    role = getattr(reviewer, 'role', None)
    if role == Role.HOD:
        require(reviewer, Action.HOD_REVIEW, reviewer.department_id)
        teachers = teachers.filter(department_id=reviewer.department_id)
        minimum = PipelineState.SELF_SUBMITTED
    elif role == Role.ASST_DEAN:
        require(reviewer, Action.ASST_DEAN_REVIEW)
        minimum = PipelineState.HOD_REVIEWED
    else:
        require(reviewer, Action.DEAN_FINAL_REVIEW)
        minimum = PipelineState.ASST_REVIEWED

    teachers = list(teachers)
    hod_rows = _rows(HodReview, teachers, term, year)
    asst_rows = _rows(AsstReview, teachers, term, year)
    final_rows = _rows(FinalReview, teachers, term, year)
    states = pipeline_states(teachers, term, year, hod_rows, asst_rows, final_rows)

    queue = []
    for teacher in teachers:
        state = states[teacher.pk]
        if state < minimum:
            continue
        queue.append({
            'teacher': _teacher_summary(teacher),
            'state': state.name,
            'hodReview': serialize_review(hod_rows.get(teacher.pk)),
            'asstReview': serialize_review(asst_rows.get(teacher.pk)),
            'finalReview': serialize_review(final_rows.get(teacher.pk)),
        })
    return queue


def _stage_for(reviewer, teacher):
    """Minimum pipeline state and visible review stages for ``reviewer``'s role."""
    role = getattr(reviewer, 'role', None)
    if role == Role.HOD:
        require(reviewer, Action.HOD_REVIEW, teacher.department_id,
                message='Only the HOD of the teacher\'s department can read this evaluation')
        return PipelineState.NO_SUBMISSION, ('hodReview',)
    if role == Role.ASST_DEAN:
        require(reviewer, Action.ASST_DEAN_REVIEW)
        return PipelineState.HOD_REVIEWED, ('hodReview', 'asstReview')
    require(reviewer, Action.DEAN_FINAL_REVIEW)
    return PipelineState.ASST_REVIEWED, ('hodReview', 'asstReview', 'finalReview')


def evaluation_detail(teacher, term: str, year: int, stages=('hodReview', 'asstReview', 'finalReview'),
                      state: Optional[PipelineState] = None) -> Dict[str, Any]:
    """Published questions with the teacher's answers, the self comment and the requested review rows."""
    key = _key(teacher, term, year)
    answers = {a.question_id: a for a in TeacherAnswer.objects.filter(**key)}
    note = SelfComment.objects.filter(**key).first()

    questions = []
    for q in question_set(teacher.department_id, term, year).order_by('order'):
        answer = answers.get(q.pk)
        questions.append({
            'id': q.pk,
            'question': q.question,
            'type': q.type,
            'options': q.options,
            'optionScores': q.option_scores,
            'order': q.order,
            'answer': answer.answer if answer else None,
        })

    reviews = {
        'hodReview': HodReview.objects.filter(**key).first(),
        'asstReview': AsstReview.objects.filter(**key).first(),
        'finalReview': FinalReview.objects.filter(**key).first(),
    }
    data = {
        'teacher': _teacher_summary(teacher),
        'term': term,
        'year': year,
        'state': (state if state is not None else pipeline_state(teacher, term, year)).name,
        'questions': questions,
        'selfComment': {'comment': note.comment, 'createdAt': note.created_at} if note else None,
    }
    for stage in stages:
        data[stage] = serialize_review(reviews[stage])
    return data


def teacher_evaluation_detail(reviewer, teacher_id, term: str, year: Optional[int] = None) -> Dict[str, Any]:
    """What ``reviewer`` needs to write their stage: the teacher's answers and earlier reviews.

    HODs read teachers of their own department; Assistant Deans once the HOD
    review is submitted; Deans once the Assistant Dean review is submitted.
    """
    teacher = get_teacher(teacher_id)
    term = term_manager.validate_term(term)
    year = year or term_manager.current_year()

    minimum, stages = _stage_for(reviewer, teacher)
    state = pipeline_state(teacher, term, year)
    if state < minimum:
        code = 'HodReviewIncomplete' if minimum == PipelineState.HOD_REVIEWED else 'AsstReviewIncomplete'
        raise PreconditionFailed(code, 'This evaluation has not reached your review stage yet')
    return evaluation_detail(teacher, term, year, stages, state)
