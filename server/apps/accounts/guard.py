"""Access control guard: resolves the bearer credential of a request."""

import logging
from typing import Final

from django.http import HttpRequest

from server.apps.accounts import providers
from server.apps.api.exceptions import AuthenticationError

logger = logging.getLogger(__name__)

_BEARER_PREFIX: Final = 'Bearer '


def extract_bearer_token(request: HttpRequest) -> str:
    """Read the bearer token from the Authorization header.

    Args:
        request: Incoming request.

    Returns:
        The raw token.

    Raises:
        AuthenticationError: If the header is missing or malformed.
    """
    header = request.headers.get('Authorization', '')
    if not header:
        raise AuthenticationError('No token provided')
    if not header.startswith(_BEARER_PREFIX):
        raise AuthenticationError('Invalid token')
    token = header.removeprefix(_BEARER_PREFIX).strip()
    if not token:
        raise AuthenticationError('No token provided')
    return token


def authenticate_request(request: HttpRequest) -> providers.Identity:
    """Resolve the caller's identity through the auth provider.

    Sessions, token issuance and refresh are the provider's business;
    this only verifies the credential on the current request.

    Args:
        request: Incoming request.

    Returns:
        Verified identity of the caller.

    Raises:
        AuthenticationError: If the credential is absent or rejected.
    """
    token = extract_bearer_token(request)
    identity = providers.get_auth_provider().get_user(token)
    logger.debug('Authenticated request as %s', identity.id)
    return identity
