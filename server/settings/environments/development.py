"""This file contains all the settings that defines the development server.

SECURITY WARNING: don't run with debug turned on in production!
"""

from server.settings.components.common import ALLOWED_HOSTS

# Setting the development status:

DEBUG = True

ALLOWED_HOSTS = [
    *ALLOWED_HOSTS,
    '0.0.0.0',  # noqa: S104
]
