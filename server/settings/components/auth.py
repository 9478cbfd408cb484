"""External authentication provider settings."""

from typing import Any, Final

from server.settings.components import config

AUTH_PROVIDER: Final[dict[str, Any]] = {
    'BACKEND': 'server.apps.accounts.providers.GoTrueAuthProvider',
    'OPTIONS': {
        'base_url': config(
            'AUTH_PROVIDER_URL',
            default='http://localhost:9999',
        ),
        'api_key': config('AUTH_PROVIDER_API_KEY', default=''),
        'timeout': config('AUTH_PROVIDER_TIMEOUT', cast=float, default=10.0),
    },
}
