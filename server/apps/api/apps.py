"""Django app configuration for api app."""

from django.apps import AppConfig


class ApiConfig(AppConfig):
    """Configuration for api app."""

    name = 'server.apps.api'
    verbose_name = 'API'
