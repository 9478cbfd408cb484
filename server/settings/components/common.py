"""Django settings for the drive server.

For the full list of settings and their config, see
https://docs.djangoproject.com/en/5.1/ref/settings/
"""

from decouple import Csv

from server.settings.components import BASE_DIR, config

SECRET_KEY = config('DJANGO_SECRET_KEY', default='insecure-development-key')

DEBUG = config('DJANGO_DEBUG', cast=bool, default=False)

ALLOWED_HOSTS = config(
    'DJANGO_ALLOWED_HOSTS',
    cast=Csv(),
    default='localhost,127.0.0.1',
)

INSTALLED_APPS: tuple[str, ...] = (
    'django.contrib.contenttypes',

    # Our apps:
    'server.apps.api',
    'server.apps.accounts',
    'server.apps.files',
)

MIDDLEWARE: tuple[str, ...] = (
    'django.middleware.security.SecurityMiddleware',
    'django.middleware.common.CommonMiddleware',
)

ROOT_URLCONF = 'server.urls'

WSGI_APPLICATION = 'server.wsgi.application'

# Metadata store
# https://docs.djangoproject.com/en/5.1/ref/settings/#databases

DATABASES = {
    'default': {
        'ENGINE': config(
            'DJANGO_DATABASE_ENGINE',
            default='django.db.backends.sqlite3',
        ),
        'NAME': config(
            'DJANGO_DATABASE_NAME',
            default=str(BASE_DIR.joinpath('db.sqlite3')),
        ),
        'USER': config('DJANGO_DATABASE_USER', default=''),
        'PASSWORD': config('DJANGO_DATABASE_PASSWORD', default=''),
        'HOST': config('DJANGO_DATABASE_HOST', default=''),
        'PORT': config('DJANGO_DATABASE_PORT', default=''),
        'CONN_MAX_AGE': config('DJANGO_CONN_MAX_AGE', cast=int, default=60),
    },
}

DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'

# Internationalization
# https://docs.djangoproject.com/en/5.1/topics/i18n/

LANGUAGE_CODE = 'en-us'

USE_I18N = False

TIME_ZONE = 'UTC'

USE_TZ = True

# Listen address used by `run_api_server`
API_HOST = config('API_HOST', default='0.0.0.0')  # noqa: S104
API_PORT = config('PORT', cast=int, default=5000)
