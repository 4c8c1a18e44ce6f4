from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from accounts.models import Role
from accounts.permissions_api import HasRole
from common.errors import InvalidInput
from evaluations.serializers import (
    DraftSerializer,
    QuestionSerializer,
    QuestionUpdateSerializer,
    QuestionWriteSerializer,
    SubmissionSerializer,
    TeacherQuestionSerializer,
    TermYearSerializer,
)
from evaluations.services import question_catalog, rubric_template, submission_ledger
from terms.services import term_manager


def _query_term_year(request, term_required=True):
    term = request.query_params.get('term')
    if term_required and not term:
        raise InvalidInput('TermRequired', 'term query parameter is required')
    year = request.query_params.get('year')
    try:
        year = int(year) if year else None
    except (TypeError, ValueError):
        raise InvalidInput('InvalidYear', 'year must be an integer')
    return term, year


class QuestionListCreateView(APIView):
    permission_classes = (IsAuthenticated, HasRole)
    allowed_roles = (Role.HOD,)

    def get(self, request, *args, **kwargs):
        term, year = _query_term_year(request, term_required=False)
        qs = question_catalog.list_questions(request.user, term=term, year=year)
        return Response(QuestionSerializer(qs, many=True).data)

    def post(self, request, *args, **kwargs):
        serializer = QuestionWriteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        question = question_catalog.create_question(
            request.user,
            question=data['question'],
            type=data['type'],
            term=data['term'],
            options=data.get('options'),
            option_scores=data.get('optionScores'),
            order=data.get('order'),
            year=data.get('year'),
        )
        return Response(QuestionSerializer(question).data, status=status.HTTP_201_CREATED)


class QuestionDetailView(APIView):
    permission_classes = (IsAuthenticated, HasRole)
    allowed_roles = (Role.HOD,)

    def put(self, request, id: int, *args, **kwargs):
        serializer = QuestionUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        question = question_catalog.update_question(request.user, id, **serializer.to_service_fields())
        return Response(QuestionSerializer(question).data)

    patch = put

    def delete(self, request, id: int, *args, **kwargs):
        question_catalog.delete_question(request.user, id)
        return Response(status=status.HTTP_204_NO_CONTENT)


class QuestionPublishView(APIView):
    permission_classes = (IsAuthenticated, HasRole)
    allowed_roles = (Role.HOD,)

    def post(self, request, *args, **kwargs):
        serializer = TermYearSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        published = term_manager.publish_questions(
            request.user, serializer.validated_data['term'], serializer.validated_data.get('year'),
        )
        return Response({'publishedCount': published})


class RubricTemplateView(APIView):
    permission_classes = (IsAuthenticated, HasRole)
    allowed_roles = (Role.HOD,)

    def post(self, request, *args, **kwargs):
        created = rubric_template.insert_rubric_template(request.user, request.data.get('year'))
        return Response({'created': created}, status=status.HTTP_201_CREATED if created else status.HTTP_200_OK)


class TeacherQuestionsView(APIView):
    permission_classes = (IsAuthenticated, HasRole)
    allowed_roles = (Role.TEACHER,)

    def get(self, request, *args, **kwargs):
        term, year = _query_term_year(request)
        payload = submission_ledger.questions_for_teacher(request.user, term, year)
        payload['questions'] = TeacherQuestionSerializer(payload['questions'], many=True).data
        return Response(payload)


class TeacherSubmissionView(APIView):
    permission_classes = (IsAuthenticated, HasRole)
    allowed_roles = (Role.TEACHER,)

    def get(self, request, *args, **kwargs):
        term, year = _query_term_year(request)
        return Response(submission_ledger.answers_for_teacher(request.user, term, year))

    def post(self, request, *args, **kwargs):
        serializer = SubmissionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        result = submission_ledger.submit_evaluation(
            request.user, data['term'], data['answers'], data['selfComment'], data.get('year'),
        )
        return Response(result, status=status.HTTP_201_CREATED)

    def patch(self, request, *args, **kwargs):
        serializer = DraftSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        saved = submission_ledger.save_draft_answers(request.user, data['term'], data['answers'], data.get('year'))
        return Response({'saved': saved})


class TeacherStatusView(APIView):
    permission_classes = (IsAuthenticated, HasRole)
    allowed_roles = (Role.TEACHER,)

    def get(self, request, *args, **kwargs):
        _, year = _query_term_year(request, term_required=False)
        return Response(submission_ledger.evaluation_status(request.user, year))
