"""This file contains all the settings used in production.

This file is required and if development.py is present these
values are overridden.
"""

from server.settings.components import config

# Production flags:

DEBUG = False

# Secret key must come from the environment here:
SECRET_KEY = config('DJANGO_SECRET_KEY')

# Security
# https://docs.djangoproject.com/en/5.1/topics/security/

SECURE_PROXY_SSL_HEADER = ('HTTP_X_FORWARDED_PROTO', 'https')
SECURE_CONTENT_TYPE_NOSNIFF = True
