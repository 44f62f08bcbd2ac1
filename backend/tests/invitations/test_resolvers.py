"""
Tests for the invitation resolution chains.
"""

from datetime import timedelta
from unittest.mock import patch

import pytest
from django.db.models import QuerySet
from django.utils import timezone

from apps.accounts.workos_client import ProviderMembership
from apps.core.exceptions import ExternalProviderError
from apps.invitations.resolvers import (
    AcceptedInvitationEvent,
    LoginIdentity,
    find_global_pending_for_email,
    find_pending_for_org_email,
    normalize_email,
    resolve_accepted_invitation,
    resolve_from_global_invitation,
    resolve_from_provider_memberships,
    resolve_login_membership,
)
from tests.accounts.factories import OrganizationFactory, UserFactory
from tests.conftest import make_provider
from tests.customers.factories import CustomerFactory
from tests.invitations.factories import PendingInvitationFactory


class TestAcceptedInvitationEvent:
    """Tests for payload parsing."""

    def test_snake_case_payload(self) -> None:
        event = AcceptedInvitationEvent.from_payload(
            {"id": "inv_1", "organization_id": "org_1", "accepted_user_id": "user_1", "email": "a@b.c"}
        )

        assert event == AcceptedInvitationEvent("inv_1", "org_1", "user_1", email="a@b.c")

    def test_camel_case_payload(self) -> None:
        event = AcceptedInvitationEvent.from_payload(
            {"id": "inv_1", "organizationId": "org_1", "acceptedUserId": "user_1", "firstName": "Bo"}
        )

        assert event is not None
        assert event.accepted_user_id == "user_1"
        assert event.first_name == "Bo"

    def test_user_id_alias(self) -> None:
        event = AcceptedInvitationEvent.from_payload({"id": "inv_1", "organization_id": "org_1", "user_id": "user_1"})

        assert event is not None
        assert event.accepted_user_id == "user_1"

    @pytest.mark.parametrize(
        "data",
        [
            None,
            "not a dict",
            {"organization_id": "org_1", "accepted_user_id": "user_1"},
            {"id": "inv_1", "accepted_user_id": "user_1"},
            {"id": "inv_1", "organization_id": "org_1"},
        ],
    )
    def test_incomplete_payload_is_none(self, data) -> None:
        assert AcceptedInvitationEvent.from_payload(data) is None


@pytest.mark.django_db
class TestFinders:
    def test_normalize_email(self) -> None:
        assert normalize_email("  Bob@X.com ") == "bob@x.com"
        assert normalize_email(None) == ""

    def test_org_email_returns_newest_even_if_expired(self) -> None:
        org = OrganizationFactory.create()
        PendingInvitationFactory.create(organization=org, email="bob@x.com")
        newest = PendingInvitationFactory.create(organization=org, email="bob@x.com", expired=True)
        newest.created_at = timezone.now() + timedelta(minutes=1)
        newest.save()

        assert find_pending_for_org_email(org, "BOB@x.com") == newest

    def test_global_skips_expired(self) -> None:
        PendingInvitationFactory.create(email="bob@x.com", expired=True)

        assert find_global_pending_for_email("bob@x.com") is None

    def test_global_returns_newest_unexpired(self) -> None:
        PendingInvitationFactory.create(email="bob@x.com")
        newest = PendingInvitationFactory.create(email="bob@x.com")
        newest.created_at = timezone.now() + timedelta(minutes=1)
        newest.save()

        assert find_global_pending_for_email("bob@x.com") == newest

    def test_blank_email_finds_nothing(self) -> None:
        PendingInvitationFactory.create()

        assert find_global_pending_for_email("  ") is None


@pytest.mark.django_db
class TestEventChain:
    """Tests for resolve_accepted_invitation."""

    def test_matches_by_invitation_id(self) -> None:
        invitation = PendingInvitationFactory.create()
        event = AcceptedInvitationEvent(invitation.workos_invitation_id, invitation.organization.workos_org_id, "user_1")

        match = resolve_accepted_invitation(event, invitation.organization)

        assert match is not None
        assert match.invitation == invitation
        assert match.source == "invitation_id"

    def test_stale_id_falls_back_to_org_email(self) -> None:
        invitation = PendingInvitationFactory.create(email="bob@x.com")
        event = AcceptedInvitationEvent(
            "inv_stale", invitation.organization.workos_org_id, "user_1", email="Bob@X.com"
        )

        match = resolve_accepted_invitation(event, invitation.organization)

        assert match is not None
        assert match.invitation == invitation
        assert match.source == "org_email"

    def test_id_from_other_org_does_not_match(self) -> None:
        invitation = PendingInvitationFactory.create()
        other_org = OrganizationFactory.create()
        event = AcceptedInvitationEvent(invitation.workos_invitation_id, other_org.workos_org_id, "user_1")

        assert resolve_accepted_invitation(event, other_org) is None

    def test_no_email_and_unknown_id_is_none(self) -> None:
        invitation = PendingInvitationFactory.create()
        event = AcceptedInvitationEvent("inv_unknown", invitation.organization.workos_org_id, "user_1")

        assert resolve_accepted_invitation(event, invitation.organization) is None

    @pytest.mark.parametrize("email", [None, "bob@x.com"])
    def test_matched_invitation_is_locked(self, email) -> None:
        invitation = PendingInvitationFactory.create(email="bob@x.com")
        workos_id = invitation.workos_invitation_id if email is None else "inv_stale"
        event = AcceptedInvitationEvent(workos_id, invitation.organization.workos_org_id, "user_1", email=email)

        with patch.object(
            QuerySet, "select_for_update", autospec=True, side_effect=QuerySet.select_for_update
        ) as select_for_update:
            match = resolve_accepted_invitation(event, invitation.organization)

        assert match is not None
        assert match.invitation == invitation
        select_for_update.assert_called()
        assert select_for_update.call_args.kwargs == {"of": ("self",)}

    def test_login_lookup_does_not_lock(self) -> None:
        invitation = PendingInvitationFactory.create(email="bob@x.com")

        with patch.object(
            QuerySet, "select_for_update", autospec=True, side_effect=QuerySet.select_for_update
        ) as select_for_update:
            assert find_pending_for_org_email(invitation.organization, "bob@x.com") == invitation

        select_for_update.assert_not_called()


@pytest.mark.django_db
class TestLoginChain:
    """Tests for the login resolvers."""

    def test_existing_org_consumes_reinvite(self) -> None:
        org = OrganizationFactory.create()
        customer = CustomerFactory.create(organization=org)
        user = UserFactory.create(organization=org, role="staff", email="c@x.com")
        invitation = PendingInvitationFactory.create(organization=org, email="c@x.com", role="client", customer=customer)

        resolution = resolve_login_membership(LoginIdentity(user.workos_user_id, "c@x.com", user), None)

        assert resolution is not None
        assert resolution.invitation == invitation
        assert resolution.role == "client"
        assert resolution.customer == customer

    def test_provider_membership_with_invitation_wins(self) -> None:
        first = OrganizationFactory.create()
        second = OrganizationFactory.create()
        invitation = PendingInvitationFactory.create(organization=second, email="d@x.com", role="staff")
        provider = make_provider()
        provider.list_memberships.return_value = [
            ProviderMembership("om_1", "user_d", first.workos_org_id, "active", "admin"),
            ProviderMembership("om_2", "user_d", second.workos_org_id, "active", "member"),
        ]

        resolution = resolve_from_provider_memberships(LoginIdentity("user_d", "d@x.com"), provider)

        assert resolution is not None
        assert resolution.organization == second
        assert resolution.invitation == invitation

    def test_provider_membership_skips_inactive_and_unsynced(self) -> None:
        org = OrganizationFactory.create()
        provider = make_provider()
        provider.list_memberships.return_value = [
            ProviderMembership("om_1", "user_e", "org_unsynced", "active", "admin"),
            ProviderMembership("om_2", "user_e", org.workos_org_id, "inactive", "admin"),
        ]

        assert resolve_from_provider_memberships(LoginIdentity("user_e", "e@x.com"), provider) is None

    def test_provider_failure_ends_step(self) -> None:
        provider = make_provider()
        provider.list_memberships.side_effect = ExternalProviderError("down", status=503)

        assert resolve_from_provider_memberships(LoginIdentity("user_f", "f@x.com"), provider) is None

    def test_unknown_provider_role_defaults_to_staff(self) -> None:
        org = OrganizationFactory.create()
        provider = make_provider()
        provider.list_memberships.return_value = [
            ProviderMembership("om_1", "user_g", org.workos_org_id, "active", "owner"),
        ]

        resolution = resolve_login_membership(LoginIdentity("user_g", "g@x.com"), provider)

        assert resolution is not None
        assert resolution.role == "staff"

    def test_global_invitation_terminal_membership_error_is_tolerated(self) -> None:
        invitation = PendingInvitationFactory.create(email="h@x.com")
        provider = make_provider()
        provider.create_membership.side_effect = ExternalProviderError("already a member", status=409)

        resolution = resolve_from_global_invitation(LoginIdentity("user_h", "h@x.com"), provider)

        assert resolution is not None
        assert resolution.invitation == invitation

    def test_no_match_anywhere_is_none(self) -> None:
        provider = make_provider()
        provider.list_memberships.return_value = []

        assert resolve_login_membership(LoginIdentity("user_i", "i@x.com"), provider) is None
