"""Shared fixtures for all tests."""

from typing import Any

import boto3
import pytest
from django.conf import settings
from moto import mock_aws

from server.apps.accounts import providers
from server.apps.accounts.providers import Identity
from server.apps.api.exceptions import AuthenticationError, ValidationError

OWNER_TOKEN = 'owner-token'
OTHER_TOKEN = 'other-token'


class FakeAuthProvider:
    """In-memory stand-in for the external authentication provider."""

    def __init__(self) -> None:
        self.tokens: dict[str, Identity] = {}
        self.passwords: dict[str, str] = {}

    def register(self, token: str, user_id: str, email: str) -> Identity:
        identity = Identity(
            id=user_id,
            email=email,
            raw={'id': user_id, 'email': email},
        )
        self.tokens[token] = identity
        return identity

    def sign_up(self, email: str, password: str) -> dict[str, Any]:
        if email in self.passwords:
            raise ValidationError('User already registered')
        self.passwords[email] = password
        return {'id': f'id-{email}', 'email': email}

    def sign_in(self, email: str, password: str) -> dict[str, Any]:
        if self.passwords.get(email) != password:
            raise ValidationError('Invalid login credentials')
        token = f'token-{email}'
        self.register(token, f'id-{email}', email)
        return {
            'access_token': token,
            'token_type': 'bearer',
            'user': {'id': f'id-{email}', 'email': email},
        }

    def get_user(self, access_token: str) -> Identity:
        identity = self.tokens.get(access_token)
        if identity is None:
            raise AuthenticationError('Invalid token')
        return identity


@pytest.fixture
def owner_id():
    """Owner id of the main test user.

    Returns:
        Provider user id.
    """
    return 'user-1'


@pytest.fixture
def other_owner_id():
    """Owner id of a second user for isolation tests.

    Returns:
        Provider user id.
    """
    return 'user-2'


@pytest.fixture
def auth_provider(monkeypatch, owner_id, other_owner_id):
    """Replace the configured auth provider with an in-memory fake.

    Returns:
        FakeAuthProvider knowing OWNER_TOKEN and OTHER_TOKEN.
    """
    fake = FakeAuthProvider()
    fake.register(OWNER_TOKEN, owner_id, 'owner@example.com')
    fake.register(OTHER_TOKEN, other_owner_id, 'other@example.com')
    monkeypatch.setattr(providers, 'get_auth_provider', lambda: fake)
    return fake


@pytest.fixture
def bucket_name():
    """Name of the bucket used by the default storage.

    Returns:
        Bucket name from settings.
    """
    return settings.STORAGES['default']['OPTIONS']['bucket_name']


@pytest.fixture
def mock_s3(bucket_name):
    """Mock S3 service with the drive bucket.

    Yields:
        boto3 S3 resource with the bucket created.
    """
    with mock_aws():
        # Create S3 resource
        conn = boto3.resource('s3', region_name='us-east-1')

        # Create bucket
        conn.create_bucket(Bucket=bucket_name)

        yield conn


@pytest.fixture
def bucket_keys(mock_s3, bucket_name):
    """Callable listing every key currently in the bucket.

    Returns:
        Function returning a sorted list of keys.
    """
    def _keys() -> list[str]:
        return sorted(
            summary.key
            for summary in mock_s3.Bucket(bucket_name).objects.all()
        )
    return _keys


@pytest.fixture
def auth_headers(auth_provider):
    """Authorization header of the main test user.

    Returns:
        Headers dict for the Django test client.
    """
    return {'Authorization': f'Bearer {OWNER_TOKEN}'}


@pytest.fixture
def other_auth_headers(auth_provider):
    """Authorization header of the second test user.

    Returns:
        Headers dict for the Django test client.
    """
    return {'Authorization': f'Bearer {OTHER_TOKEN}'}
