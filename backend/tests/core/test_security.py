"""
Tests for BearerAuth.
"""

from django.test import RequestFactory

from apps.core.auth import IdentityClaims, RequestContext
from apps.core.security import BearerAuth


class TestBearerAuth:
    """BearerAuth trusts the context attached by the middleware."""

    def test_returns_context_with_identity(self, request_factory: RequestFactory) -> None:
        request = request_factory.get("/api/v1/auth/me")
        context = RequestContext(identity=IdentityClaims(subject="user_1"))
        request.auth = context  # type: ignore[attr-defined]

        assert BearerAuth().authenticate(request, "token") is context

    def test_rejects_failed_context(self, request_factory: RequestFactory) -> None:
        request = request_factory.get("/api/v1/auth/me")
        request.auth = RequestContext(failed=True)  # type: ignore[attr-defined]

        assert BearerAuth().authenticate(request, "token") is None

    def test_rejects_missing_context(self, request_factory: RequestFactory) -> None:
        request = request_factory.get("/api/v1/auth/me")

        assert BearerAuth().authenticate(request, "token") is None
