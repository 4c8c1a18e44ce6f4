"""HOD performance reviews: Assistant Dean first, then the Dean.

Both reviews share one table; the row stores which role wrote it. Only Dean
rows count as a completed HOD evaluation.
"""
import logging
from typing import Any, Dict, Optional

from django.contrib.auth import get_user_model

from accounts.capabilities import Action, require
from accounts.models import Role
from common.cache import invalidate_year
from common.errors import InvalidInput, NotFound, PreconditionFailed
from reviews.models import HodPerformanceReview, ReviewStatus
from reviews.services import score_aggregator
from reviews.services.versioning import versioned_upsert
from terms.services import term_manager

logger = logging.getLogger(__name__)

ReviewerRole = HodPerformanceReview.ReviewerRole

DEFAULT_HOD_RUBRIC = {
    '[Professionalism] Compliance': 3,
    '[Professionalism] Punctuality/Attendance': 3,
    '[Professionalism] Competence and Performance': 3,
    '[Leadership] Planning & Organization': 3,
    '[Leadership] Department Duties': 3,
    '[Leadership] Collegial Relationship & Work Delegation': 3,
    '[Leadership] College Committees': 3,
    '[Development] In-Service Training': 3,
    '[Development] Research and Publications': 3,
    '[Development] National and International Conferences': 3,
    "[Service] Students' Engagement": 3,
    '[Service] Community Engagement': 3,
}


def get_hod(hod_id):
    hod = get_user_model().objects.filter(pk=hod_id, role=Role.HOD).first()
    if hod is None:
        raise NotFound('HodNotFound', 'HOD not found')
    return hod


def _key(hod, term, year, role) -> Dict[str, Any]:
    return {'hod': hod, 'term': term, 'year': year, 'reviewer_role': role}


def _values(reviewer, comments, scores, total_score, submitted) -> Dict[str, Any]:
    text = str(comments or '').strip()
    if submitted and not text:
        raise InvalidInput('CommentsRequired', 'Comments are required to submit a review')
    payload = score_aggregator.build_scores_payload(scores or {}, total_override=total_score)
    return {
        'reviewer': reviewer,
        'comments': text,
        'scores': payload,
        'total_score': payload['totalScore'],
        'submitted': bool(submitted),
    }


def submit_asst_dean_hod_review(reviewer, hod_id, term: str, comments: str, scores=None, total_score=None,
                                submitted: bool = True, expected_version: Optional[int] = None,
                                year: Optional[int] = None) -> HodPerformanceReview:
    require(reviewer, Action.ASST_DEAN_HOD_REVIEW)
    hod = get_hod(hod_id)
    term = term_manager.validate_term(term)
    year = year or term_manager.current_year()

    values = _values(reviewer, comments, scores, total_score, submitted)

    def guard(current):
        if current is not None and current.submitted:
            raise PreconditionFailed('AlreadySubmitted', 'This HOD review has already been submitted')

    review = versioned_upsert(
        HodPerformanceReview, _key(hod, term, year, ReviewerRole.ASST_DEAN), values, expected_version, guard,
    )
    invalidate_year(year)
    logger.info('Assistant Dean HOD review for %s (%s %s) saved by %s (submitted=%s)',
                hod.pk, term, year, reviewer.username, review.submitted)
    return review


def submit_dean_hod_review(reviewer, hod_id, term: str, comments: str, scores=None, total_score=None,
                           status: Optional[str] = None, submitted: bool = True,
                           expected_version: Optional[int] = None, year: Optional[int] = None) -> HodPerformanceReview:
    require(reviewer, Action.DEAN_HOD_REVIEW)
    hod = get_hod(hod_id)
    term = term_manager.validate_term(term)
    year = year or term_manager.current_year()

    if HodPerformanceReview.objects.filter(submitted=True, **_key(hod, term, year, ReviewerRole.DEAN)).exists():
        raise PreconditionFailed('AlreadyFinalized', 'The Dean has already finalized this HOD review')
    if not HodPerformanceReview.objects.filter(submitted=True, **_key(hod, term, year, ReviewerRole.ASST_DEAN)).exists():
        raise PreconditionFailed('AsstDeanReviewIncomplete', 'The Assistant Dean review of this HOD is not submitted')

    if status is not None and status not in ReviewStatus.values:
        raise InvalidInput('InvalidStatus', f'Unknown status {status!r}')

    values = _values(reviewer, comments, scores, total_score, submitted)
    values['status'] = status

    def guard(current):
        if current is not None and current.submitted:
            raise PreconditionFailed('AlreadyFinalized', 'The Dean has already finalized this HOD review')

    review = versioned_upsert(
        HodPerformanceReview, _key(hod, term, year, ReviewerRole.DEAN), values, expected_version, guard,
    )
    invalidate_year(year)
    logger.info('Dean HOD review for %s (%s %s) saved by %s (status=%s, submitted=%s)',
                hod.pk, term, year, reviewer.username, review.status, review.submitted)
    return review


def serialize_hod_review(review: Optional[HodPerformanceReview]) -> Optional[Dict[str, Any]]:
    if review is None:
        return None
    total = review.total_score if review.total_score is not None else score_aggregator.resolve_total_score(review.scores)
    return {
        'id': review.pk,
        'hodId': review.hod_id,
        'term': review.term,
        'year': review.year,
        'reviewerRole': review.reviewer_role,
        'reviewerId': review.reviewer_id,
        'comments': review.comments,
        'scores': review.scores,
        'totalScore': total,
        'status': review.status,
        'submitted': review.submitted,
        'version': review.version,
        'updatedAt': review.updated_at,
    }


def hod_review_list(reviewer, term: str, year: Optional[int] = None):
    """Every HOD with the reviews written so far, for the reviewer's stage."""
    role = getattr(reviewer, 'role', None)
    if role == Role.DEAN:
        require(reviewer, Action.DEAN_HOD_REVIEW)
    else:
        require(reviewer, Action.ASST_DEAN_HOD_REVIEW)
    term = term_manager.validate_term(term)
    year = year or term_manager.current_year()

    hods = list(
        get_user_model().objects.filter(role=Role.HOD, is_active=True).select_related('department').order_by('username')
    )
    rows = HodPerformanceReview.objects.filter(hod__in=hods, term=term, year=year)
    by_key = {(r.hod_id, r.reviewer_role): r for r in rows}

    result = []
    for hod in hods:
        asst = by_key.get((hod.pk, ReviewerRole.ASST_DEAN))
        dean = by_key.get((hod.pk, ReviewerRole.DEAN))
        own = dean if role == Role.DEAN else asst
        if role == Role.DEAN and not (asst and asst.submitted):
            continue
        dept = hod.department
        result.append({
            'hod': {
                'id': hod.pk,
                'name': hod.display_name,
                'email': hod.email,
                'department': {'id': dept.pk, 'code': dept.code, 'name': dept.name} if dept else None,
            },
            'rubric': (own.scores.get('rubric') if own and own.scores else None) or dict(DEFAULT_HOD_RUBRIC),
            'asstDeanReview': serialize_hod_review(asst),
            'deanReview': serialize_hod_review(dean),
        })
    return result
