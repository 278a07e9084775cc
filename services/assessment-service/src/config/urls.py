from django.urls import path, include
from django.http import JsonResponse


def health_check(request):
    return JsonResponse({'status': 'ok', 'service': 'assessment-service'})


urlpatterns = [
    path('health/', health_check),
    path('api/v1/assessment/', include('apps.core.api.urls')),
]
