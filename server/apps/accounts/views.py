"""Auth endpoints delegating to the external provider."""

from typing import final

from django.http import HttpRequest, JsonResponse

from server.apps.accounts import providers
from server.apps.api.exceptions import ValidationError
from server.apps.api.views import ApiView, parse_json_body


def _credentials(request: HttpRequest) -> tuple[str, str]:
    body = parse_json_body(request)
    email = body.get('email')
    password = body.get('password')
    if not isinstance(email, str) or not email.strip():
        raise ValidationError('Email is required')
    if not isinstance(password, str) or not password:
        raise ValidationError('Password is required')
    return email.strip(), password


@final
class SignupView(ApiView):
    """``POST /auth/signup``."""

    auth_required = False

    def post(self, request: HttpRequest) -> JsonResponse:
        email, password = _credentials(request)
        user = providers.get_auth_provider().sign_up(email, password)
        return JsonResponse({
            'message': 'Signup successful! Please verify your email.',
            'user': user,
        })


@final
class LoginView(ApiView):
    """``POST /auth/login``."""

    auth_required = False

    def post(self, request: HttpRequest) -> JsonResponse:
        email, password = _credentials(request)
        session = providers.get_auth_provider().sign_in(email, password)
        return JsonResponse({'message': 'Login successful', 'session': session})


@final
class MeView(ApiView):
    """``GET /auth/me``: the provider's view of the caller."""

    def get(
        self,
        request: HttpRequest,
        identity: providers.Identity,
    ) -> JsonResponse:
        user = identity.raw or {'id': identity.id, 'email': identity.email}
        return JsonResponse({'user': user})
