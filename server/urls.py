"""Main URL mapping configuration file.

Every route is mounted under ``/api/``. Auth endpoints live in the
accounts app, file and folder endpoints in the files app.
"""

from django.urls import include, path

from server.apps.api.views import HealthView

urlpatterns = [
    path('api/health', HealthView.as_view(), name='health'),
    path('api/auth/', include('server.apps.accounts.urls')),
    path('api/', include('server.apps.files.urls')),
]
