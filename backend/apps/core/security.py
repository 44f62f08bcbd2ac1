"""
Core security - authentication classes for API.
"""

from django.http import HttpRequest
from ninja.security import HttpBearer

from apps.core.auth import RequestContext


class BearerAuth(HttpBearer):
    """
    Bearer token authentication for API endpoints.

    Token verification is performed by WorkOSAuthMiddleware; this class
    exposes the OpenAPI security scheme and rejects requests whose token did
    not verify.
    """

    def authenticate(self, request: HttpRequest, token: str) -> RequestContext | None:
        """
        Return the middleware's RequestContext when the token verified.

        Returning None makes ninja respond 401.
        """
        context = getattr(request, "auth", None)
        if not isinstance(context, RequestContext) or context.identity is None:
            return None
        return context
