from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from accounts.models import Role
from accounts.permissions_api import HasRole
from common.errors import InvalidInput
from reports.services import projections


def _int_param(request, name):
    value = request.query_params.get(name)
    if not value:
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        raise InvalidInput('InvalidInput', f'{name} must be an integer', {'field': name})


class ReportView(APIView):
    permission_classes = (IsAuthenticated, HasRole)
    allowed_roles = (Role.ADMIN, Role.DEAN, Role.ASST_DEAN)


class AdminStatsView(ReportView):
    def get(self, request, *args, **kwargs):
        return Response(projections.admin_stats(request.user, _int_param(request, 'year')))


class CompletedEvaluationsView(ReportView):
    def get(self, request, *args, **kwargs):
        rows = projections.completed_evaluations(request.user, _int_param(request, 'year'))
        return Response({'evaluations': rows, 'count': len(rows)})


class TeacherResultsView(ReportView):
    allowed_roles = (Role.ADMIN, Role.DEAN, Role.ASST_DEAN, Role.HOD)

    def get(self, request, *args, **kwargs):
        return Response(projections.teacher_results(
            request.user, _int_param(request, 'year'), _int_param(request, 'department'),
        ))


class HodEvaluationReportView(APIView):
    """Open to any signed-in user; the projection restricts it to report viewers and the HOD."""
    permission_classes = (IsAuthenticated,)

    def get(self, request, hod_id, *args, **kwargs):
        term = request.query_params.get('term') or 'START'
        return Response(projections.hod_evaluation_report(request.user, hod_id, term, _int_param(request, 'year')))


class RecentActivityView(ReportView):
    allowed_roles = (Role.ADMIN,)

    def get(self, request, *args, **kwargs):
        limit = _int_param(request, 'limit') or 8
        return Response({'activities': projections.recent_activity(request.user, limit)})


class TeacherEvaluationReportView(ReportView):
    def get(self, request, teacher_id, *args, **kwargs):
        term = request.query_params.get('term') or 'START'
        return Response(projections.teacher_evaluation_report(
            request.user, teacher_id, term, _int_param(request, 'year'),
        ))
