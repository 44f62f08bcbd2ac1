"""
Core middleware.
"""

import uuid
from collections.abc import Callable

from django.http import HttpRequest, HttpResponse

from apps.accounts.tokens import verify_access_token
from apps.core.auth import RequestContext, resolve_request_context
from apps.core.exceptions import Unauthenticated
from apps.core.logging import bind_contextvars, clear_contextvars, get_logger

logger = get_logger(__name__)

# Paths that never carry a user token
PUBLIC_PATH_PREFIXES = (
    "/api/v1/health",
    "/api/v1/docs",
    "/api/v1/openapi.json",
    "/webhooks/",
    "/admin/",
)


class WorkOSAuthMiddleware:
    """
    Verifies the bearer access token and attaches `request.auth`.

    Every request gets a RequestContext. Without a token (or on a public path)
    it is empty; with an invalid token `failed` is set. Endpoints decide what
    they require via BearerAuth and the RequestContext.require_* helpers.
    """

    def __init__(self, get_response: Callable[[HttpRequest], HttpResponse]) -> None:
        self.get_response = get_response

    def __call__(self, request: HttpRequest) -> HttpResponse:
        clear_contextvars()
        bind_contextvars(trace_id=request.headers.get("X-Request-ID") or str(uuid.uuid4()))

        request.auth = RequestContext()  # type: ignore[attr-defined]

        if not self._is_public_path(request.path):
            auth_header = request.headers.get("Authorization", "")
            if auth_header.startswith("Bearer "):
                token = auth_header[len("Bearer ") :].strip()
                if token:
                    self._authenticate_jwt(request, token)

        try:
            return self.get_response(request)
        finally:
            clear_contextvars()

    def _is_public_path(self, path: str) -> bool:
        return path.startswith(PUBLIC_PATH_PREFIXES)

    def _authenticate_jwt(self, request: HttpRequest, token: str) -> None:
        try:
            identity = verify_access_token(token)
        except Unauthenticated:
            request.auth = RequestContext(failed=True)  # type: ignore[attr-defined]
            return

        context = resolve_request_context(identity)
        request.auth = context  # type: ignore[attr-defined]

        log_context = {"usr.workos_id": identity.subject}
        if context.user is not None:
            log_context["usr.id"] = str(context.user.id)
            if context.organization is not None:
                log_context["organization.id"] = str(context.organization.id)
            if context.effective_user is not None and context.effective_user.pk != context.user.pk:
                log_context["usr.effective_id"] = str(context.effective_user.id)
        bind_contextvars(**log_context)
