from django.urls import path

from .views import (
    QuestionDetailView,
    QuestionListCreateView,
    QuestionPublishView,
    RubricTemplateView,
    TeacherQuestionsView,
    TeacherStatusView,
    TeacherSubmissionView,
)

urlpatterns = [
    path('questions/', QuestionListCreateView.as_view(), name='questions'),
    path('questions/publish/', QuestionPublishView.as_view(), name='questions_publish'),
    path('questions/rubric-template/', RubricTemplateView.as_view(), name='questions_rubric_template'),
    path('questions/<int:id>/', QuestionDetailView.as_view(), name='question_detail'),
    path('teacher/questions/', TeacherQuestionsView.as_view(), name='teacher_questions'),
    path('teacher/submission/', TeacherSubmissionView.as_view(), name='teacher_submission'),
    path('teacher/status/', TeacherStatusView.as_view(), name='teacher_status'),
]
