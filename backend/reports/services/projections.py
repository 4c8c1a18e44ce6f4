"""Read-only projections over the evaluation workflow.

Results are cached per year through ``common.cache.QueryCache``; every
workflow write invalidates the year it touched. The activity feed spans all
years and is retired by any workflow write; new users and departments show
up once its TTL runs out.
"""
import logging
from typing import Any, Dict, List, Optional

from django.contrib.auth import get_user_model
from django.utils import timezone

from academics.models import Department
from accounts.capabilities import Action, effective_role, require
from accounts.models import Role
from common.cache import QueryCache, get_query_cache, report_key
from common.errors import NotFound
from evaluations.models import SelfComment, TeacherAnswer
from evaluations.services.submission_ledger import submitted_keys
from reviews.models import AsstReview, FinalReview, HodPerformanceReview, HodReview, ReviewStatus
from reviews.services.review_pipeline import evaluation_detail, get_teacher
from reviews.services.score_aggregator import display_score, resolve_total_score
from terms.models import TermState, TermStatus
from terms.services import term_manager

logger = logging.getLogger(__name__)

BANDS = ((90, 'Excellent'), (80, 'Very Good'), (70, 'Good'), (50, 'Average'))


def performance_band(score) -> Optional[str]:
    if score is None:
        return None
    for floor, label in BANDS:
        if score >= floor:
            return label
    return 'Weak'


def _cache(cache: Optional[QueryCache]) -> QueryCache:
    return cache if cache is not None else get_query_cache()


def _department(user) -> Optional[Dict[str, Any]]:
    dept = user.department
    return {'id': dept.pk, 'code': dept.code, 'name': dept.name} if dept else None


def compute_admin_stats(year: int) -> Dict[str, Any]:
    User = get_user_model()
    users = User.objects.filter(is_active=True)
    teachers = users.filter(role=Role.TEACHER).count()
    hods = users.filter(role=Role.HOD).count()

    hod_reviews = HodReview.objects.filter(year=year, submitted=True).count()
    asst_reviews = AsstReview.objects.filter(year=year, submitted=True).count()
    finals = FinalReview.objects.filter(year=year, submitted=True).count()
    dean_hod_reviews = HodPerformanceReview.objects.filter(
        year=year, submitted=True, reviewer_role=HodPerformanceReview.ReviewerRole.DEAN,
    ).count()

    completed = finals + dean_hod_reviews
    active = hod_reviews + asst_reviews - completed
    pending = max(0, teachers + hods - completed - active)
    logger.debug('Admin stats for %s: %s completed, %s active, %s pending', year, completed, active, pending)

    return {
        'year': year,
        'totalUsers': users.exclude(role=Role.ADMIN).count(),
        'totalTeachers': teachers,
        'totalHods': hods,
        'totalDepartments': users.filter(role=Role.HOD).exclude(department=None).values('department').distinct().count(),
        'selfEvaluationsSubmitted': len(submitted_keys(users.filter(role=Role.TEACHER), year)),
        'activeEvaluations': active,
        'completedEvaluations': completed,
        'pendingEvaluations': pending,
    }


def admin_stats(actor, year: Optional[int] = None, cache: Optional[QueryCache] = None) -> Dict[str, Any]:
    require(actor, Action.VIEW_REPORTS)
    year = year or term_manager.current_year()
    return _cache(cache).get_or_set(report_key('stats', year), lambda: compute_admin_stats(year))


def compute_completed_evaluations(year: int) -> List[Dict[str, Any]]:
    rows = []
    finals = (
        FinalReview.objects.filter(year=year, submitted=True)
        .select_related('teacher__department', 'reviewer')
        .order_by('-updated_at')
    )
    for review in finals:
        rows.append({
            'id': review.pk,
            'type': 'teacher',
            'userId': review.teacher_id,
            'name': review.teacher.display_name,
            'role': review.teacher.role,
            'department': _department(review.teacher),
            'term': review.term,
            'status': review.status,
            'finalScore': display_score(review.final_score, review.status),
            'promoted': review.status == ReviewStatus.PROMOTED,
            'finalizedAt': review.updated_at,
            'reviewer': review.reviewer.display_name if review.reviewer else None,
        })

    hod_rows = (
        HodPerformanceReview.objects
        .filter(year=year, submitted=True, reviewer_role=HodPerformanceReview.ReviewerRole.DEAN)
        .select_related('hod__department', 'reviewer')
        .order_by('-updated_at')
    )
    for review in hod_rows:
        status = review.status or ReviewStatus.ON_HOLD
        rows.append({
            'id': review.pk,
            'type': 'hod',
            'userId': review.hod_id,
            'name': review.hod.display_name,
            'role': review.hod.role,
            'department': _department(review.hod),
            'term': review.term,
            'status': status,
            'finalScore': display_score(review.total_score or 0, status),
            'promoted': status == ReviewStatus.PROMOTED,
            'finalizedAt': review.updated_at,
            'reviewer': review.reviewer.display_name if review.reviewer else None,
        })
    return rows


def completed_evaluations(actor, year: Optional[int] = None, cache: Optional[QueryCache] = None):
    require(actor, Action.VIEW_REPORTS)
    year = year or term_manager.current_year()
    return _cache(cache).get_or_set(report_key('completed', year), lambda: compute_completed_evaluations(year))


def _term_result(teacher_id, term, submitted, answers, comments, hod_rows, asst_rows, final_rows) -> Dict[str, Any]:
    hod = hod_rows.get((teacher_id, term))
    asst = asst_rows.get((teacher_id, term))
    final = final_rows.get((teacher_id, term))
    note = comments.get((teacher_id, term))
    answered = answers.get((teacher_id, term), 0)

    finalized = final is not None and final.submitted
    score = display_score(final.final_score, final.status) if finalized else None
    return {
        'hasSubmitted': (teacher_id, term) in submitted,
        'questionsAnswered': answered,
        'hodScore': resolve_total_score(hod.scores) if hod else None,
        'asstScore': resolve_total_score(asst.scores) if asst else None,
        'finalScore': final.final_score if finalized else None,
        'displayScore': score,
        'status': final.status if finalized else 'PENDING',
        'promoted': finalized and final.status == ReviewStatus.PROMOTED,
        'band': performance_band(score),
        'submittedAt': note.created_at if note else None,
        'hodReviewedAt': hod.updated_at if hod else None,
        'asstReviewedAt': asst.updated_at if asst else None,
        'finalizedAt': final.updated_at if finalized else None,
    }


def compute_teacher_results(year: int, department_id: Optional[int] = None) -> Dict[str, Any]:
    User = get_user_model()
    teachers = User.objects.filter(role=Role.TEACHER, is_active=True).select_related('department').order_by('username')
    if department_id:
        teachers = teachers.filter(department_id=department_id)
    teachers = list(teachers)

    answers = {}
    for answer in TeacherAnswer.objects.filter(teacher__in=teachers, year=year).values('teacher_id', 'term'):
        key = (answer['teacher_id'], answer['term'])
        answers[key] = answers.get(key, 0) + 1
    comments = {(c.teacher_id, c.term): c for c in SelfComment.objects.filter(teacher__in=teachers, year=year)}
    hod_rows = {(r.teacher_id, r.term): r for r in HodReview.objects.filter(teacher__in=teachers, year=year, submitted=True)}
    asst_rows = {(r.teacher_id, r.term): r for r in AsstReview.objects.filter(teacher__in=teachers, year=year, submitted=True)}
    final_rows = {(r.teacher_id, r.term): r for r in FinalReview.objects.filter(teacher__in=teachers, year=year)}
    submitted = submitted_keys(teachers, year)

    results = []
    for teacher in teachers:
        results.append({
            'id': teacher.pk,
            'name': teacher.display_name,
            'email': teacher.email,
            'department': _department(teacher),
            'year': year,
            'terms': {
                term: _term_result(teacher.pk, term, submitted, answers, comments, hod_rows, asst_rows, final_rows)
                for term in TermStatus.values
            },
        })

    departments = sorted({r['department']['name'] for r in results if r['department']})
    return {
        'results': results,
        'summary': {
            'totalTeachers': len(results),
            'departmentsIncluded': departments,
            'termsIncluded': list(TermStatus.values),
            'generatedAt': timezone.now(),
        },
    }


def teacher_results(actor, year: Optional[int] = None, department_id: Optional[int] = None,
                    cache: Optional[QueryCache] = None) -> Dict[str, Any]:
    """Per-teacher results for both terms. HODs only ever see their own department."""
    if effective_role(actor) == Role.HOD:
        require(actor, Action.VIEW_PIPELINE, actor.department_id)
        department_id = actor.department_id
    else:
        require(actor, Action.VIEW_REPORTS)
    year = year or term_manager.current_year()
    key = report_key('results', year, f'dept-{department_id}' if department_id else 'all')
    return _cache(cache).get_or_set(key, lambda: compute_teacher_results(year, department_id))


def compute_hod_evaluation(hod, term: str, year: int) -> Dict[str, Any]:
    rows = {
        r.reviewer_role: r
        for r in HodPerformanceReview.objects.filter(hod=hod, term=term, year=year).select_related('reviewer')
    }
    asst = rows.get(HodPerformanceReview.ReviewerRole.ASST_DEAN)
    dean = rows.get(HodPerformanceReview.ReviewerRole.DEAN)

    asst_score = None
    if asst is not None:
        asst_score = asst.total_score if asst.total_score is not None else resolve_total_score(asst.scores)

    dean_score = None
    if dean is not None:
        dean_score = display_score(dean.total_score, dean.status)

    return {
        'hodId': hod.pk,
        'name': hod.display_name,
        'department': _department(hod),
        'term': term,
        'year': year,
        'asstDeanComment': asst.comments if asst else None,
        'asstDeanScore': asst_score,
        'asstDeanName': asst.reviewer.display_name if asst and asst.reviewer else None,
        'asstDeanSubmitted': bool(asst and asst.submitted),
        'deanComment': dean.comments if dean else None,
        'deanScore': dean_score,
        'deanName': dean.reviewer.display_name if dean and dean.reviewer else None,
        'deanStatus': dean.status if dean else None,
        'deanSubmitted': bool(dean and dean.submitted),
        'promoted': bool(dean and dean.status == ReviewStatus.PROMOTED),
    }


def hod_evaluation_report(actor, hod_id, term: str, year: Optional[int] = None,
                          cache: Optional[QueryCache] = None) -> Dict[str, Any]:
    """Both reviews of one HOD. Visible to report viewers and to the HOD themselves."""
    hod = get_user_model().objects.filter(pk=hod_id, role=Role.HOD).select_related('department').first()
    if hod is None:
        raise NotFound('HodNotFound', 'HOD not found')
    if getattr(actor, 'pk', None) != hod.pk:
        require(actor, Action.VIEW_REPORTS)
    term = term_manager.validate_term(term)
    year = year or term_manager.current_year()
    key = report_key('hod-evaluation', year, hod.pk, term)
    return _cache(cache).get_or_set(key, lambda: compute_hod_evaluation(hod, term, year))


ACTIVITY_PER_SOURCE = 12


def compute_recent_activity(limit: int) -> List[Dict[str, Any]]:
    User = get_user_model()
    take = ACTIVITY_PER_SOURCE
    items = []

    for note in SelfComment.objects.select_related('teacher__department').order_by('-created_at')[:take]:
        items.append({
            'id': f'self-{note.pk}',
            'type': 'SELF_SUBMITTED',
            'message': f'{note.teacher.display_name} submitted {note.term} self-evaluation',
            'department': note.teacher.department.name if note.teacher.department else None,
            'timestamp': note.created_at,
        })

    hod_reviews = HodReview.objects.filter(submitted=True).select_related('teacher__department').order_by('-updated_at')
    for review in hod_reviews[:take]:
        items.append({
            'id': f'hod-{review.pk}',
            'type': 'HOD_REVIEW',
            'message': f'HOD review completed for {review.teacher.display_name}',
            'department': review.teacher.department.name if review.teacher.department else None,
            'timestamp': review.updated_at,
        })

    for state in TermState.objects.select_related('department').order_by('-updated_at')[:take]:
        items.append({
            'id': f'term-{state.pk}-{int(state.updated_at.timestamp())}',
            'type': 'TERM_UPDATE',
            'message': f'{state.active_term} term of {state.year} is {state.visibility}',
            'department': state.department.name,
            'timestamp': state.updated_at,
        })

    for user in User.objects.order_by('-date_joined')[:take]:
        items.append({
            'id': f'user-{user.pk}',
            'type': 'USER_CREATED',
            'message': f'New user created: {user.display_name} ({user.role})',
            'department': None,
            'timestamp': user.date_joined,
        })

    for dept in Department.objects.order_by('-created_at')[:take]:
        items.append({
            'id': f'dept-{dept.pk}',
            'type': 'DEPARTMENT_CREATED',
            'message': f'Department created: {dept.name}',
            'department': dept.name,
            'timestamp': dept.created_at,
        })

    items.sort(key=lambda item: item['timestamp'], reverse=True)
    return items[:limit]


def recent_activity(actor, limit: int = 8, cache: Optional[QueryCache] = None) -> List[Dict[str, Any]]:
    """Latest workflow events across every year, newest first."""
    require(actor, Action.VIEW_REPORTS)
    limit = max(1, min(int(limit), 50))
    return _cache(cache).get_or_set(f'activity:latest:{limit}', lambda: compute_recent_activity(limit))


def compute_teacher_evaluation(teacher, term: str, year: int) -> Dict[str, Any]:
    detail = evaluation_detail(teacher, term, year)
    hod = detail['hodReview']
    asst = detail['asstReview']
    final = detail['finalReview']
    finalized = bool(final and final['submitted'])
    detail.update({
        'hodComment': hod['comments'] if hod else None,
        'hodTotalScore': hod['totalScore'] if hod else None,
        'asstDeanComment': asst['comments'] if asst else None,
        'asstDeanScore': asst['totalScore'] if asst else None,
        'deanComment': final['finalComment'] if final else None,
        'finalScore': final['finalScore'] if finalized else None,
        'displayScore': final['displayScore'] if finalized else None,
        'status': final['status'] if finalized else 'PENDING',
        'promoted': finalized and final['promoted'],
        'band': performance_band(final['displayScore']) if finalized else None,
    })
    return detail


def teacher_evaluation_report(actor, teacher_id, term: str, year: Optional[int] = None,
                              cache: Optional[QueryCache] = None) -> Dict[str, Any]:
    """One teacher's submission with the HOD, Assistant Dean and Dean reviews of a term."""
    require(actor, Action.VIEW_REPORTS)
    teacher = get_teacher(teacher_id)
    term = term_manager.validate_term(term)
    year = year or term_manager.current_year()
    key = report_key('teacher-evaluation', year, teacher.pk, term)
    return _cache(cache).get_or_set(key, lambda: compute_teacher_evaluation(teacher, term, year))
