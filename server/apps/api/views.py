"""Base view for JSON endpoints."""

import json
import logging
from http import HTTPStatus
from typing import TYPE_CHECKING, Any, ClassVar, final, override

from django.http import HttpRequest, HttpResponse, JsonResponse
from django.utils.decorators import method_decorator
from django.views import View
from django.views.decorators.csrf import csrf_exempt

from server.apps.accounts import guard
from server.apps.api.exceptions import (
    DriveError,
    UnexpectedError,
    ValidationError,
)

if TYPE_CHECKING:
    from server.apps.accounts.providers import Identity

logger = logging.getLogger(__name__)


def error_response(error: DriveError) -> JsonResponse:
    """Render a DriveError as the API error payload.

    Args:
        error: Error to render.

    Returns:
        JsonResponse with ``{"error": message}`` and the error's status.
    """
    return JsonResponse({'error': error.message}, status=error.status_code)


def parse_json_body(request: HttpRequest) -> dict[str, Any]:
    """Decode a JSON object request body.

    An empty body decodes to an empty dict.

    Args:
        request: Incoming request.

    Returns:
        Decoded body.

    Raises:
        ValidationError: If the body is not a JSON object.
    """
    if not request.body:
        return {}
    try:
        payload = json.loads(request.body)
    except (UnicodeDecodeError, json.JSONDecodeError) as error:
        raise ValidationError('Request body must be valid JSON') from error
    if not isinstance(payload, dict):
        raise ValidationError('Request body must be a JSON object')
    return payload


@method_decorator(csrf_exempt, name='dispatch')
class ApiView(View):
    """Class-based view that forms the API error boundary.

    When ``auth_required`` is set, the bearer credential is resolved
    before the handler runs and the identity is passed explicitly as the
    ``identity`` keyword argument. Every ``DriveError`` becomes an
    ``{"error": ...}`` response; anything else is logged and reported as
    an unexpected error.
    """

    auth_required: ClassVar[bool] = True

    @override
    def dispatch(
        self,
        request: HttpRequest,
        *args: Any,
        **kwargs: Any,
    ) -> HttpResponse:
        """Authenticate, run the handler and map failures."""
        method = request.method.lower() if request.method else ''
        if method not in self.http_method_names or not hasattr(self, method):
            return self.http_method_not_allowed(request, *args, **kwargs)

        try:
            if self.auth_required:
                identity: Identity = guard.authenticate_request(request)
                kwargs['identity'] = identity
            return super().dispatch(request, *args, **kwargs)
        except DriveError as error:
            logger.info(
                '%s %s failed: %s',
                request.method,
                request.path,
                error.message,
            )
            return error_response(error)
        except Exception:
            logger.exception(
                'Unexpected error on %s %s',
                request.method,
                request.path,
            )
            return error_response(UnexpectedError())

    @override
    def http_method_not_allowed(
        self,
        request: HttpRequest,
        *args: Any,
        **kwargs: Any,
    ) -> HttpResponse:
        """Answer unsupported methods with a JSON 405."""
        response = JsonResponse(
            {'error': 'Method not allowed'},
            status=HTTPStatus.METHOD_NOT_ALLOWED,
        )
        response['Allow'] = ', '.join(self._allowed_methods())
        return response


@final
class HealthView(ApiView):
    """Liveness probe."""

    auth_required = False

    def get(self, request: HttpRequest) -> JsonResponse:
        """Report that the service is running."""
        return JsonResponse({'message': 'Backend is running'})
