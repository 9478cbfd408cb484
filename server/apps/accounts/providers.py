"""Clients for the external authentication provider."""

import functools
import logging
from dataclasses import dataclass, field
from typing import Any, Final, Protocol, final

import httpx
from django.conf import settings
from django.utils.module_loading import import_string

from server.apps.api.exceptions import (
    AuthenticationError,
    UpstreamStoreError,
    ValidationError,
)

logger = logging.getLogger(__name__)

_AUTH_PREFIX: Final = '/auth/v1'
_CLIENT_ERROR_FLOOR: Final = 400
_SERVER_ERROR_FLOOR: Final = 500
_INVALID_REPLY: Final = 'Invalid response from authentication provider'


@final
@dataclass(frozen=True, slots=True)
class Identity:
    """Verified caller identity.

    Attributes:
        id: Provider user id, used as the owner id everywhere.
        email: Email address known to the provider, if any.
        raw: Full user object as returned by the provider.
    """

    id: str
    email: str | None = None
    raw: dict[str, Any] = field(default_factory=dict, compare=False)


class AuthProvider(Protocol):
    """Operations the service needs from an authentication provider."""

    def sign_up(self, email: str, password: str) -> dict[str, Any]:
        """Register a new account and return the provider's user object."""

    def sign_in(self, email: str, password: str) -> dict[str, Any]:
        """Exchange credentials for a session object."""

    def get_user(self, access_token: str) -> Identity:
        """Resolve a bearer token into a verified identity."""


def _json_object(response: httpx.Response) -> dict[str, Any]:
    """Decode a successful provider reply that must be a JSON object.

    Raises:
        UpstreamStoreError: If the body is not a JSON object.
    """
    try:
        payload = response.json()
    except ValueError as error:
        logger.error('Auth provider sent a non-JSON reply: %s', response.url)
        raise UpstreamStoreError(_INVALID_REPLY) from error
    if not isinstance(payload, dict):
        logger.error('Auth provider sent a non-object reply: %s', response.url)
        raise UpstreamStoreError(_INVALID_REPLY)
    return payload


def _error_message(response: httpx.Response) -> str:
    """Pull a human readable message out of a provider error response."""
    try:
        payload = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    if not isinstance(payload, dict):
        return response.reason_phrase
    for key in ('msg', 'error_description', 'message', 'error'):
        message = payload.get(key)
        if isinstance(message, str) and message:
            return message
    return response.reason_phrase


@final
class GoTrueAuthProvider:
    """Auth provider speaking the GoTrue (Supabase Auth) REST dialect.

    Every call is a single HTTP request; nothing is cached between calls.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str = '',
        timeout: float = 10.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """Initialize the provider client.

        Args:
            base_url: Provider root URL (without ``/auth/v1``).
            api_key: Project API key sent as the ``apikey`` header.
            timeout: Per-request timeout in seconds.
            transport: Optional httpx transport (used by tests).
        """
        headers = {'apikey': api_key} if api_key else {}
        self._client = httpx.Client(
            base_url=base_url.rstrip('/') + _AUTH_PREFIX,
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    def sign_up(self, email: str, password: str) -> dict[str, Any]:
        """Register a new account.

        Args:
            email: Account email.
            password: Account password.

        Returns:
            The provider's user object.

        Raises:
            ValidationError: If the provider rejects the registration.
            UpstreamStoreError: If the provider cannot be reached.
        """
        payload = self._post('/signup', {'email': email, 'password': password})
        # Depending on email confirmation settings the user is either the
        # payload itself or nested next to a session.
        user = payload.get('user') or payload
        if not isinstance(user, dict):
            raise UpstreamStoreError(_INVALID_REPLY)
        logger.info('Signed up user: %s', user.get('id'))
        return user

    def sign_in(self, email: str, password: str) -> dict[str, Any]:
        """Sign in with email and password.

        Args:
            email: Account email.
            password: Account password.

        Returns:
            Session object with access and refresh tokens.

        Raises:
            ValidationError: If the credentials are rejected.
            UpstreamStoreError: If the provider cannot be reached.
        """
        session = self._post(
            '/token',
            {'email': email, 'password': password},
            params={'grant_type': 'password'},
        )
        user = session.get('user')
        logger.info(
            'Signed in user: %s',
            user.get('id') if isinstance(user, dict) else None,
        )
        return session

    def get_user(self, access_token: str) -> Identity:
        """Resolve an access token into an identity.

        Args:
            access_token: Bearer token issued by the provider.

        Returns:
            Verified identity.

        Raises:
            AuthenticationError: If the provider rejects the token.
            UpstreamStoreError: If the provider cannot be reached.
        """
        try:
            response = self._client.get(
                '/user',
                headers={'Authorization': f'Bearer {access_token}'},
            )
        except httpx.HTTPError as error:
            logger.exception('Auth provider unreachable while verifying token')
            raise UpstreamStoreError('Authentication provider unavailable') from error

        if response.status_code >= _SERVER_ERROR_FLOOR:
            logger.error(
                'Auth provider failed verifying token: %d',
                response.status_code,
            )
            raise UpstreamStoreError('Authentication provider unavailable')
        if response.status_code >= _CLIENT_ERROR_FLOOR:
            raise AuthenticationError('Invalid token')

        user = _json_object(response)
        user_id = user.get('id')
        if not user_id:
            raise AuthenticationError('Invalid token')
        return Identity(id=str(user_id), email=user.get('email'), raw=user)

    def _post(
        self,
        path: str,
        body: dict[str, Any],
        params: dict[str, str] | None = None,
    ) -> dict[str, Any]:
        try:
            response = self._client.post(path, json=body, params=params)
        except httpx.HTTPError as error:
            logger.exception('Auth provider unreachable: %s', path)
            raise UpstreamStoreError('Authentication provider unavailable') from error

        if response.status_code >= _SERVER_ERROR_FLOOR:
            logger.error(
                'Auth provider failed on %s: %d',
                path,
                response.status_code,
            )
            raise UpstreamStoreError(_error_message(response))
        if response.status_code >= _CLIENT_ERROR_FLOOR:
            raise ValidationError(_error_message(response))
        return _json_object(response)


@functools.cache
def get_auth_provider() -> AuthProvider:
    """Build the provider configured in ``settings.AUTH_PROVIDER``.

    Returns:
        Provider instance, created once per process.
    """
    provider_class = import_string(settings.AUTH_PROVIDER['BACKEND'])
    return provider_class(**settings.AUTH_PROVIDER.get('OPTIONS', {}))
