from django.urls import path

from reports import views

urlpatterns = [
    path('stats/', views.AdminStatsView.as_view(), name='report-stats'),
    path('completed/', views.CompletedEvaluationsView.as_view(), name='report-completed'),
    path('results/', views.TeacherResultsView.as_view(), name='report-results'),
    path('activity/', views.RecentActivityView.as_view(), name='report-activity'),
    path('teacher-evaluation/<int:teacher_id>/', views.TeacherEvaluationReportView.as_view(), name='report-teacher-evaluation'),
    path('hod-evaluation/<int:hod_id>/', views.HodEvaluationReportView.as_view(), name='report-hod-evaluation'),
]
