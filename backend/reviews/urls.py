from django.urls import path

from accounts.models import Role

from .views import (
    AsstDeanHodReviewView,
    AsstDeanReviewView,
    DeanHodReviewView,
    DeanReviewView,
    HodReviewView,
    PipelineStateView,
    TeacherEvaluationDetailView,
)

urlpatterns = [
    path('hod/', HodReviewView.as_view(), name='hod_reviews'),
    path('hod/teacher/<int:teacher_id>/', TeacherEvaluationDetailView.as_view(allowed_roles=(Role.HOD,)), name='hod_teacher_detail'),
    path('asst-dean/', AsstDeanReviewView.as_view(), name='asst_dean_reviews'),
    path('asst-dean/teacher/<int:teacher_id>/', TeacherEvaluationDetailView.as_view(allowed_roles=(Role.ASST_DEAN,)),
         name='asst_dean_teacher_detail'),
    path('asst-dean/hod/', AsstDeanHodReviewView.as_view(), name='asst_dean_hod_reviews'),
    path('dean/', DeanReviewView.as_view(), name='dean_reviews'),
    path('dean/teacher/<int:teacher_id>/', TeacherEvaluationDetailView.as_view(allowed_roles=(Role.DEAN,)), name='dean_teacher_detail'),
    path('dean/hod/', DeanHodReviewView.as_view(), name='dean_hod_reviews'),
    path('pipeline/<int:teacher_id>/<str:term>/', PipelineStateView.as_view(), name='pipeline_state'),
]
