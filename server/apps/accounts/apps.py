"""Django app configuration for accounts app."""

from django.apps import AppConfig


class AccountsConfig(AppConfig):
    """Configuration for accounts app."""

    name = 'server.apps.accounts'
    verbose_name = 'Accounts'
