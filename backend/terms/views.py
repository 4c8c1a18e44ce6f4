from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from accounts.capabilities import effective_role
from accounts.models import Role
from accounts.permissions_api import HasRole
from common.errors import InvalidInput, NotFound, Unauthorized
from terms.models import Term
from terms.serializers import (
    TermActivateSerializer,
    TermCreateSerializer,
    TermSerializer,
    TermStateSerializer,
    VisibilityCompleteSerializer,
    VisibilityResetSerializer,
)
from terms.services import term_manager


def _year_param(request):
    raw = request.query_params.get('year')
    if raw in (None, ''):
        return term_manager.current_year()
    try:
        return int(raw)
    except (TypeError, ValueError):
        raise InvalidInput('InvalidYear', 'year must be an integer')


class TermListCreateView(APIView):
    permission_classes = (IsAuthenticated,)

    def get(self, request, *args, **kwargs):
        qs = Term.objects.prefetch_related('departments')
        if effective_role(request.user) in (Role.TEACHER, Role.HOD):
            qs = qs.filter(departments__pk=request.user.department_id)
        if request.query_params.get('year'):
            qs = qs.filter(year=_year_param(request))
        return Response(TermSerializer(qs, many=True).data)

    def post(self, request, *args, **kwargs):
        serializer = TermCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        term = term_manager.create_term(request.user, **serializer.validated_data)
        return Response(TermSerializer(term).data, status=status.HTTP_201_CREATED)


class TermActivateView(APIView):
    permission_classes = (IsAuthenticated, HasRole)
    allowed_roles = (Role.ADMIN,)

    def post(self, request, id: int, *args, **kwargs):
        serializer = TermActivateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        result = term_manager.activate_term(request.user, id, serializer.validated_data.get('departments'))
        return Response(result)


class TermStateView(APIView):
    permission_classes = (IsAuthenticated,)

    def get(self, request, department_id: int, *args, **kwargs):
        if effective_role(request.user) in (Role.TEACHER, Role.HOD) and request.user.department_id != department_id:
            raise Unauthorized(message='You can only view the term state of your own department')
        state = term_manager.get_term_state(department_id, _year_param(request))
        if state is None:
            raise NotFound('TermStateMissing', 'No term has been activated for this department')
        return Response(TermStateSerializer(state).data)


class VisibilityResetView(APIView):
    permission_classes = (IsAuthenticated, HasRole)
    allowed_roles = (Role.ADMIN,)

    def post(self, request, *args, **kwargs):
        serializer = VisibilityResetSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        year = serializer.validated_data['year']
        count = term_manager.reset_visibility(year, actor=request.user)
        return Response({'resetCount': count, 'year': year})


class VisibilityCompleteView(APIView):
    permission_classes = (IsAuthenticated, HasRole)
    allowed_roles = (Role.ADMIN, Role.HOD)

    def post(self, request, *args, **kwargs):
        serializer = VisibilityCompleteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        department_id = data.get('department_id') or request.user.department_id
        if department_id is None:
            raise InvalidInput('DepartmentRequired', 'department_id is required')
        state = term_manager.complete_visibility(request.user, department_id, data['term'], data.get('year'))
        return Response(TermStateSerializer(state).data)
