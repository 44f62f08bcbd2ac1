"""
Tests for the JSON API: auth, users, impersonation, organization,
invitations and customers endpoints.

Token verification is patched through the `authenticated_client` fixture and
WorkOS calls go to an IdentityProvider double.
"""

from unittest.mock import patch

import pytest

from apps.accounts.models import User
from apps.accounts.workos_client import ProviderInvitation, ProviderMembership
from apps.core.auth import IdentityClaims
from apps.invitations.models import PendingInvitation
from tests.accounts.factories import AdminFactory, UserFactory
from tests.conftest import make_provider
from tests.customers.factories import CustomerFactory


@pytest.fixture
def provider():
    """Double returned wherever services fall back to the default provider."""
    double = make_provider()
    with (
        patch("apps.accounts.services.default_provider", return_value=double),
        patch("apps.invitations.services.default_provider", return_value=double),
        patch("apps.organizations.services.default_provider", return_value=double),
    ):
        yield double


@pytest.mark.django_db
class TestHealth:
    def test_health_is_public(self, api_client) -> None:
        response = api_client.get("/api/v1/health")

        assert response.status_code == 200
        assert response.json() == {"status": "ok"}


@pytest.mark.django_db
class TestAuthEndpoints:
    """Tests for /auth endpoints."""

    def test_me_requires_token(self, api_client) -> None:
        assert api_client.get("/api/v1/auth/me").status_code == 401

    def test_me_returns_literal_and_effective_user(self, authenticated_client) -> None:
        admin = AdminFactory.create()
        staff = UserFactory.create(organization=admin.organization)
        admin.impersonating = staff
        admin.save()

        response = authenticated_client(admin).get("/api/v1/auth/me")

        assert response.status_code == 200
        body = response.json()
        assert body["user"]["id"] == admin.id
        assert body["effective_user"]["id"] == staff.id
        assert body["is_impersonating"] is True
        assert body["organization"]["workos_org_id"] == admin.organization.workos_org_id

    def test_me_for_unknown_user_is_401(self, api_client) -> None:
        with patch(
            "apps.core.middleware.verify_access_token",
            return_value=IdentityClaims(subject="user_unknown"),
        ):
            response = api_client.get("/api/v1/auth/me", HTTP_AUTHORIZATION="Bearer t")

        assert response.status_code == 401
        assert response.json() == {"detail": "User record not found"}

    def test_sync_creates_user(self, api_client, provider) -> None:
        provider.list_memberships.return_value = []

        with patch(
            "apps.core.middleware.verify_access_token",
            return_value=IdentityClaims(subject="user_new", email="new@example.com"),
        ):
            response = api_client.post("/api/v1/auth/sync", HTTP_AUTHORIZATION="Bearer t")

        assert response.status_code == 200
        assert response.json()["has_org"] is False
        assert User.objects.filter(workos_user_id="user_new").exists()

    def test_sync_links_provider_membership(self, authenticated_client, provider) -> None:
        user = UserFactory.create(organization=None, role=None)
        org = AdminFactory.create().organization
        provider.list_memberships.return_value = [
            ProviderMembership("om_1", user.workos_user_id, org.workos_org_id, "active", "member")
        ]

        response = authenticated_client(user).post("/api/v1/auth/sync")

        assert response.status_code == 200
        assert response.json()["organization_id"] == org.id
        assert response.json()["role"] == "staff"


@pytest.mark.django_db
class TestUserEndpoints:
    """Tests for /users endpoints."""

    def test_staff_cannot_list_users(self, authenticated_client) -> None:
        response = authenticated_client(UserFactory.create()).get("/api/v1/users/")

        assert response.status_code == 403
        assert response.json() == {"detail": "Admin access required"}

    def test_admin_lists_users(self, authenticated_client) -> None:
        admin = AdminFactory.create()
        removed = UserFactory.create(organization=admin.organization)
        removed.soft_delete()

        response = authenticated_client(admin).get("/api/v1/users/")

        assert response.status_code == 200
        statuses = {row["id"]: row["status"] for row in response.json()}
        assert statuses == {admin.id: "active", removed.id: "removed"}

    def test_change_client_role_is_422(self, authenticated_client) -> None:
        admin = AdminFactory.create()
        client = UserFactory.create(
            organization=admin.organization,
            role="client",
            customer=CustomerFactory.create(organization=admin.organization),
        )

        response = authenticated_client(admin).patch(
            f"/api/v1/users/{client.id}/role", data={"role": "staff"}, content_type="application/json"
        )

        assert response.status_code == 422
        assert response.json() == {"detail": "Client roles cannot be changed"}

    def test_remove_and_restore(self, authenticated_client, provider) -> None:
        admin = AdminFactory.create()
        staff = UserFactory.create(organization=admin.organization)
        client = authenticated_client(admin)

        assert client.delete(f"/api/v1/users/{staff.id}").status_code == 200
        assert client.post(f"/api/v1/users/{staff.id}/restore").status_code == 200
        provider.delete_user.assert_called_once_with(staff.workos_user_id)

    def test_impersonation_flow(self, authenticated_client) -> None:
        admin = AdminFactory.create()
        staff = UserFactory.create(organization=admin.organization)
        client = authenticated_client(admin)

        start = client.post(
            "/api/v1/users/impersonation", data={"target_user_id": staff.id}, content_type="application/json"
        )
        status = client.get("/api/v1/users/impersonation")
        stop = client.delete("/api/v1/users/impersonation")

        assert start.status_code == 200
        assert status.json()["target"]["id"] == staff.id
        assert stop.status_code == 200
        admin.refresh_from_db()
        assert admin.impersonating_id is None


@pytest.mark.django_db
class TestOrganizationEndpoints:
    def test_update_blocked_while_impersonating(self, authenticated_client, provider) -> None:
        admin = AdminFactory.create()
        admin.impersonating = UserFactory.create(organization=admin.organization)
        admin.save()

        response = authenticated_client(admin).patch(
            "/api/v1/organization/", data={"name": "Renamed"}, content_type="application/json"
        )

        assert response.status_code == 403
        provider.update_organization.assert_not_called()

    def test_member_counts_only_for_admins(self, authenticated_client) -> None:
        admin = AdminFactory.create()
        staff = UserFactory.create(organization=admin.organization)

        admin_view = authenticated_client(admin).get("/api/v1/organization/")
        staff_view = authenticated_client(staff).get("/api/v1/organization/")

        assert admin_view.json()["members"]["staff_count"] == 1
        assert staff_view.json()["members"] is None

    def test_usage_visible_to_staff(self, authenticated_client) -> None:
        response = authenticated_client(UserFactory.create()).get("/api/v1/organization/usage")

        assert response.status_code == 200
        assert response.json()["staff"] == {"count": 1, "max": 2}

    def test_create_organization(self, authenticated_client, provider) -> None:
        from apps.accounts.workos_client import ProviderOrganization

        user = UserFactory.create(organization=None, role=None)
        provider.create_organization.return_value = ProviderOrganization(id="org_created", name="Acme")

        response = authenticated_client(user).post(
            "/api/v1/auth/organizations",
            data={"name": "Acme", "billing_email": "billing@acme.com"},
            content_type="application/json",
        )

        assert response.status_code == 201
        user.refresh_from_db()
        assert user.role == "admin"


@pytest.mark.django_db
class TestInvitationEndpoints:
    def test_send_invitation(self, authenticated_client, provider) -> None:
        admin = AdminFactory.create()
        provider.send_invitation.return_value = ProviderInvitation(id="invitation_api", email="bob@x.com", state="pending")

        response = authenticated_client(admin).post(
            "/api/v1/invitations/", data={"email": "bob@x.com", "role": "staff"}, content_type="application/json"
        )

        assert response.status_code == 201
        assert response.json()["email"] == "bob@x.com"
        assert PendingInvitation.objects.filter(workos_invitation_id="invitation_api").exists()

    def test_provider_outage_is_502(self, authenticated_client, provider) -> None:
        from apps.core.exceptions import ExternalProviderError

        admin = AdminFactory.create()
        provider.send_invitation.side_effect = ExternalProviderError("WorkOS unreachable", status=None)

        response = authenticated_client(admin).post(
            "/api/v1/invitations/", data={"email": "bob@x.com", "role": "staff"}, content_type="application/json"
        )

        assert response.status_code == 502


@pytest.mark.django_db
class TestCustomerEndpoints:
    def test_create_and_list(self, authenticated_client) -> None:
        staff = UserFactory.create()
        client = authenticated_client(staff)

        created = client.post("/api/v1/customers/", data={"name": "Globex"}, content_type="application/json")
        listed = client.get("/api/v1/customers/")

        assert created.status_code == 201
        assert [c["name"] for c in listed.json()] == ["Globex"]
