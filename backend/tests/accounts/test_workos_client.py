"""
Tests for the WorkOS IdentityProvider facade.

The SDK client is a MagicMock; these tests cover result mapping and error
conversion, not the SDK itself.
"""

from datetime import UTC, datetime
from types import SimpleNamespace
from unittest.mock import MagicMock

import httpx
import pytest

from apps.accounts.workos_client import IdentityProvider, provider_error_status
from apps.core.exceptions import ExternalProviderError


@pytest.fixture
def sdk() -> MagicMock:
    return MagicMock()


@pytest.fixture
def facade(sdk: MagicMock) -> IdentityProvider:
    return IdentityProvider(client=sdk)


class TestProviderErrorStatus:
    def test_reads_status_attribute(self) -> None:
        assert provider_error_status(SimpleNamespace(status=409)) == 409

    def test_reads_response_status_code(self) -> None:
        exc = SimpleNamespace(response=SimpleNamespace(status_code=404))
        assert provider_error_status(exc) == 404

    def test_numeric_string(self) -> None:
        assert provider_error_status(SimpleNamespace(status="422")) == 422

    def test_unknown(self) -> None:
        assert provider_error_status(ValueError("boom")) is None


class TestInvitations:
    def test_send_invitation_maps_result(self, facade: IdentityProvider, sdk: MagicMock) -> None:
        sdk.user_management.send_invitation.return_value = SimpleNamespace(
            id="invitation_1",
            email="bob@x.com",
            state="pending",
            organization_id="org_1",
            expires_at="2026-01-08T00:00:00Z",
        )

        sent = facade.send_invitation(email="bob@x.com", organization_id="org_1", inviter_user_id="user_admin")

        assert sent.id == "invitation_1"
        assert sent.is_pending
        assert sent.expires_at == datetime(2026, 1, 8, tzinfo=UTC)
        sdk.user_management.send_invitation.assert_called_once_with(
            email="bob@x.com",
            organization_id="org_1",
            expires_in_days=7,
            inviter_user_id="user_admin",
        )

    def test_unparseable_expiry_is_none(self, facade: IdentityProvider, sdk: MagicMock) -> None:
        sdk.user_management.get_invitation.return_value = SimpleNamespace(
            id="invitation_1", email="bob@x.com", state="accepted", expires_at="soon"
        )

        invitation = facade.get_invitation("invitation_1")

        assert invitation.expires_at is None
        assert not invitation.is_pending

    def test_transport_failure_is_wrapped(self, facade: IdentityProvider, sdk: MagicMock) -> None:
        sdk.user_management.revoke_invitation.side_effect = httpx.ConnectError("connection refused")

        with pytest.raises(ExternalProviderError) as exc_info:
            facade.revoke_invitation("invitation_1")

        assert exc_info.value.status is None
        assert not exc_info.value.is_terminal
        assert "WorkOS unreachable" in exc_info.value.message


class TestMemberships:
    def test_list_memberships(self, facade: IdentityProvider, sdk: MagicMock) -> None:
        sdk.user_management.list_organization_memberships.return_value = SimpleNamespace(
            data=[
                SimpleNamespace(
                    id="om_1", user_id="user_1", organization_id="org_1", status="active", role={"slug": "admin"}
                )
            ]
        )

        memberships = facade.list_memberships("user_1")

        assert [m.organization_id for m in memberships] == ["org_1"]
        assert memberships[0].role == {"slug": "admin"}
        kwargs = sdk.user_management.list_organization_memberships.call_args.kwargs
        assert kwargs["statuses"] == ["active", "pending"]

    def test_delete_membership(self, facade: IdentityProvider, sdk: MagicMock) -> None:
        facade.delete_membership("om_1")

        sdk.user_management.delete_organization_membership.assert_called_once_with("om_1")


class TestOrganizations:
    def test_create_organization_stores_billing_email_in_metadata(
        self, facade: IdentityProvider, sdk: MagicMock
    ) -> None:
        sdk.organizations.create_organization.return_value = SimpleNamespace(id="org_1", name="Acme")

        created = facade.create_organization(name="Acme", billing_email="billing@acme.com")

        assert created.id == "org_1"
        sdk.organizations.create_organization.assert_called_once_with(
            name="Acme", metadata={"billing_email": "billing@acme.com"}
        )

    def test_update_organization_sends_only_changed_fields(self, facade: IdentityProvider, sdk: MagicMock) -> None:
        sdk.organizations.update_organization.return_value = SimpleNamespace(id="org_1", name="Acme")

        facade.update_organization("org_1", name="Acme")

        sdk.organizations.update_organization.assert_called_once_with(organization_id="org_1", name="Acme")
