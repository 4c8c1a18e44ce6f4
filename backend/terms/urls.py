from django.urls import path

from .views import (
    TermActivateView,
    TermListCreateView,
    TermStateView,
    VisibilityCompleteView,
    VisibilityResetView,
)

urlpatterns = [
    path('', TermListCreateView.as_view(), name='terms'),
    path('<int:id>/activate/', TermActivateView.as_view(), name='term_activate'),
    path('state/<int:department_id>/', TermStateView.as_view(), name='term_state'),
    path('visibility/reset/', VisibilityResetView.as_view(), name='visibility_reset'),
    path('visibility/complete/', VisibilityCompleteView.as_view(), name='visibility_complete'),
]
