"""
Shared pytest fixtures for all tests.

This module provides common fixtures used across multiple test modules.
Individual test modules can override these fixtures if needed.

Factories
---------
Import factories directly from their modules:

    from tests.accounts.factories import OrganizationFactory, UserFactory
    from tests.customers.factories import CustomerFactory, StaffCustomerAssignmentFactory
    from tests.invitations.factories import PendingInvitationFactory

Example usage:

    @pytest.mark.django_db
    def test_something():
        org = OrganizationFactory.create()
        admin = UserFactory.create(organization=org, role="admin")
        ctx = make_context(admin)
"""

from typing import Any
from unittest.mock import MagicMock

import pytest
from django.test import Client, RequestFactory

from apps.accounts.workos_client import IdentityProvider
from apps.core.auth import IdentityClaims, RequestContext, resolve_request_context


def make_identity(user: Any, **overrides: Any) -> IdentityClaims:
    """Token claims for an existing local user."""
    values = {
        "subject": user.workos_user_id,
        "email": user.email,
        "first_name": user.first_name,
        "last_name": user.last_name,
        "organization_id": user.organization.workos_org_id if user.organization else None,
    }
    values.update(overrides)
    return IdentityClaims(**values)


def make_context(user: Any, **claims: Any) -> RequestContext:
    """
    RequestContext for a user, resolved the same way the middleware does it.

    Example:
        admin = UserFactory.create(role="admin")
        admin.impersonating = staff
        admin.save()
        ctx = make_context(admin)
        assert ctx.effective_user == staff
    """
    return resolve_request_context(make_identity(user, **claims))


def make_provider() -> MagicMock:
    """IdentityProvider double; configure return values per test."""
    return MagicMock(spec=IdentityProvider)


@pytest.fixture
def request_factory() -> RequestFactory:
    """
    Django request factory for unit testing views.

    Use this when you need to test view functions directly without going through
    the full HTTP stack.
    """
    return RequestFactory()


@pytest.fixture
def api_client() -> Client:
    """
    Django test client for full HTTP request/response cycle tests.

    Use this when you need to test the complete HTTP flow including middleware,
    routing, and response handling.

    Example:
        def test_api_returns_200(api_client):
            response = api_client.get("/api/v1/health")
            assert response.status_code == 200
    """
    return Client()


@pytest.fixture
def provider() -> MagicMock:
    return make_provider()


@pytest.fixture
def authenticated_client(api_client: Client):
    """
    Factory fixture: a test client whose requests authenticate as `user`.

    Token verification is patched so the middleware resolves the user's
    claims without a JWKS round trip.

    Example:
        def test_me(authenticated_client):
            client = authenticated_client(admin)
            response = client.get("/api/v1/auth/me")
    """
    from unittest.mock import patch

    patchers = []

    def _make(user: Any, **claims: Any) -> Client:
        patcher = patch(
            "apps.core.middleware.verify_access_token",
            return_value=make_identity(user, **claims),
        )
        patcher.start()
        patchers.append(patcher)
        api_client.defaults["HTTP_AUTHORIZATION"] = "Bearer test-token"
        return api_client

    yield _make

    for patcher in patchers:
        patcher.stop()
