# services/assessment-service/src/apps/core/api/urls.py
"""
Assessment Service API URLs

URL routing configuration for REST API endpoints.
"""

from django.urls import path, include, re_path
from rest_framework.routers import DefaultRouter

from .views import TokenViewSet, AttemptViewSet, QuizViewSet, AssignmentViewSet

router = DefaultRouter()
router.register(r'tokens', TokenViewSet, basename='token')
router.register(r'attempts', AttemptViewSet, basename='attempt')
router.register(r'quizzes', QuizViewSet, basename='quiz')

POOL = r'(?P<pool>examiner|trainer)'
REQUEST = r'(?P<pk>[^/.]+)'

urlpatterns = [
    path('', include(router.urls)),
    re_path(
        rf'^assignments/{POOL}/auto-assign/$',
        AssignmentViewSet.as_view({'post': 'auto_assign'}),
        name='assignment-auto-assign',
    ),
    re_path(
        rf'^assignments/{POOL}/{REQUEST}/pickup/$',
        AssignmentViewSet.as_view({'post': 'pickup'}),
        name='assignment-pickup',
    ),
    re_path(
        rf'^assignments/{POOL}/{REQUEST}/reassign/$',
        AssignmentViewSet.as_view({'post': 'reassign'}),
        name='assignment-reassign',
    ),
    re_path(
        rf'^assignments/{POOL}/{REQUEST}/status/$',
        AssignmentViewSet.as_view({'post': 'update_status'}),
        name='assignment-status',
    ),
]

# API URL Patterns Summary:
#
# Tokens:
#   POST        /api/v1/assessment/tokens/
#   POST        /api/v1/assessment/tokens/redeem/
#   POST        /api/v1/assessment/tokens/{id}/assign/
#   POST        /api/v1/assessment/tokens/{id}/cancel/
#
# Attempts:
#   POST        /api/v1/assessment/attempts/
#   GET         /api/v1/assessment/attempts/{id}/
#   POST        /api/v1/assessment/attempts/{id}/answers/
#   POST        /api/v1/assessment/attempts/{id}/submit/
#   POST        /api/v1/assessment/attempts/{id}/abandon/
#   POST        /api/v1/assessment/attempts/{id}/grade/
#
# Quizzes:
#   GET         /api/v1/assessment/quizzes/{id}/results/
#
# Assignments (pool is examiner or trainer):
#   POST        /api/v1/assessment/assignments/{pool}/auto-assign/
#   POST        /api/v1/assessment/assignments/{pool}/{request_id}/pickup/
#   POST        /api/v1/assessment/assignments/{pool}/{request_id}/reassign/
#   POST        /api/v1/assessment/assignments/{pool}/{request_id}/status/
