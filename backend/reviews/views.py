from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from accounts.capabilities import Action, require
from accounts.models import Role
from accounts.permissions_api import HasRole
from common.errors import InvalidInput
from reviews.serializers import (
    DeanHodPerformanceSerializer,
    FinalReviewSerializer,
    HodPerformanceSerializer,
    TeacherReviewSerializer,
)
from reviews.services import hod_performance, review_pipeline
from reviews.services.pipeline_state import pipeline_state
from terms.services import term_manager


def _query_term_year(request):
    term = request.query_params.get('term') or 'START'
    year = request.query_params.get('year')
    try:
        year = int(year) if year else None
    except (TypeError, ValueError):
        raise InvalidInput('InvalidYear', 'year must be an integer')
    return term, year


class ReviewQueueView(APIView):
    permission_classes = (IsAuthenticated, HasRole)

    def get(self, request, *args, **kwargs):
        term, year = _query_term_year(request)
        return Response({'teachers': review_pipeline.review_queue(request.user, term, year)})


class HodReviewView(ReviewQueueView):
    allowed_roles = (Role.HOD,)

    def post(self, request, *args, **kwargs):
        serializer = TeacherReviewSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        review = review_pipeline.submit_hod_review(
            request.user, data['teacherId'], data['term'], data['comments'],
            scores=data['scores'], score=data.get('score'), submitted=data['submitted'],
            expected_version=data.get('version'), year=data.get('year'),
        )
        return Response(review_pipeline.serialize_review(review))


class AsstDeanReviewView(ReviewQueueView):
    allowed_roles = (Role.ASST_DEAN,)

    def post(self, request, *args, **kwargs):
        serializer = TeacherReviewSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        review = review_pipeline.submit_asst_review(
            request.user, data['teacherId'], data['term'], data['comments'],
            scores=data['scores'], score=data.get('score'), submitted=data['submitted'],
            expected_version=data.get('version'), year=data.get('year'),
        )
        return Response(review_pipeline.serialize_review(review))


class DeanReviewView(ReviewQueueView):
    allowed_roles = (Role.DEAN,)

    def post(self, request, *args, **kwargs):
        serializer = FinalReviewSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        review = review_pipeline.submit_final_review(
            request.user, data['teacherId'], data['term'], data['finalComment'],
            final_score=data.get('finalScore'), status=data.get('status'), submitted=data['submitted'],
            expected_version=data.get('version'), year=data.get('year'),
        )
        return Response(review_pipeline.serialize_review(review))


class HodPerformanceListView(APIView):
    permission_classes = (IsAuthenticated, HasRole)

    def get(self, request, *args, **kwargs):
        term, year = _query_term_year(request)
        return Response({'hods': hod_performance.hod_review_list(request.user, term, year)})


class AsstDeanHodReviewView(HodPerformanceListView):
    allowed_roles = (Role.ASST_DEAN,)

    def post(self, request, *args, **kwargs):
        serializer = HodPerformanceSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        review = hod_performance.submit_asst_dean_hod_review(
            request.user, data['hodId'], data['term'], data['comments'],
            scores=data['scores'], total_score=data.get('totalScore'), submitted=data['submitted'],
            expected_version=data.get('version'), year=data.get('year'),
        )
        return Response(hod_performance.serialize_hod_review(review))


class DeanHodReviewView(HodPerformanceListView):
    allowed_roles = (Role.DEAN,)

    def post(self, request, *args, **kwargs):
        serializer = DeanHodPerformanceSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        review = hod_performance.submit_dean_hod_review(
            request.user, data['hodId'], data['term'], data['comments'],
            scores=data['scores'], total_score=data.get('totalScore'), status=data.get('status'),
            submitted=data['submitted'], expected_version=data.get('version'), year=data.get('year'),
        )
        return Response(hod_performance.serialize_hod_review(review))


class PipelineStateView(APIView):
    permission_classes = (IsAuthenticated,)

    def get(self, request, teacher_id: int, term: str, *args, **kwargs):
        teacher = review_pipeline.get_teacher(teacher_id)
        if request.user.pk != teacher.pk:
            require(request.user, Action.VIEW_PIPELINE, teacher.department_id)
        term = term_manager.validate_term(term)
        _, year = _query_term_year(request)
        year = year or term_manager.current_year()
        state = pipeline_state(teacher, term, year)
        return Response({'teacherId': teacher.pk, 'term': term, 'year': year, 'state': state.name})


class TeacherEvaluationDetailView(APIView):
    """Answers, self comment and earlier reviews of one teacher, for the stage named by ``allowed_roles``."""
    permission_classes = (IsAuthenticated, HasRole)
    allowed_roles = (Role.HOD, Role.ASST_DEAN, Role.DEAN)

    def get(self, request, teacher_id: int, *args, **kwargs):
        term, year = _query_term_year(request)
        return Response(review_pipeline.teacher_evaluation_detail(request.user, teacher_id, term, year))
