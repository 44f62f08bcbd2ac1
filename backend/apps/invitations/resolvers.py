"""
Invitation resolution.

WorkOS and the local store can disagree: an invitation id goes stale after a
resend, a webhook is never delivered, a user signs in before the event lands.
Two ordered chains of resolver functions reconcile this. Each resolver either
returns a result (stopping the chain) or None (try the next one).

Event chain (verified `invitation.accepted` webhook):
    1. exact WorkOS invitation id
    2. organization + email

Login chain (user signs in):
    1. user's current organization (+ any pending invitation there)
    2. WorkOS memberships for the user
    3. newest unexpired invitation for the email in any organization
"""

from collections.abc import Callable
from dataclasses import dataclass, replace
from typing import Any

from django.utils import timezone

from apps.accounts.models import User
from apps.accounts.roles import PROVIDER_MEMBER_SLUG, normalize_provider_role
from apps.accounts.workos_client import IdentityProvider
from apps.core.exceptions import ExternalProviderError
from apps.core.logging import get_logger
from apps.customers.models import Customer
from apps.invitations.models import PendingInvitation
from apps.organizations.models import Organization

logger = get_logger(__name__)


def normalize_email(email: str | None) -> str:
    """Trim and lowercase. The only equality key used for emails."""
    return (email or "").strip().lower()


def find_pending_for_org_email(
    organization: Organization, email: str, for_update: bool = False
) -> PendingInvitation | None:
    """
    Newest pending invitation for an organization and email, expired or not.

    `for_update` locks the row; callers must be inside a transaction.
    """
    normalized = normalize_email(email)
    if not normalized:
        return None
    invitations = PendingInvitation.objects.select_related("customer")
    if for_update:
        invitations = invitations.select_for_update(of=("self",))
    return invitations.filter(organization=organization, email=normalized).order_by("-created_at").first()


def find_global_pending_for_email(email: str) -> PendingInvitation | None:
    """Newest unexpired pending invitation for an email across all organizations."""
    normalized = normalize_email(email)
    if not normalized:
        return None
    return (
        PendingInvitation.objects.select_related("organization", "customer")
        .filter(email=normalized, expires_at__gt=timezone.now())
        .order_by("-created_at")
        .first()
    )


# --- Event chain ---


@dataclass(frozen=True)
class AcceptedInvitationEvent:
    """Payload of a WorkOS `invitation.accepted` event."""

    invitation_id: str
    organization_id: str
    accepted_user_id: str
    email: str | None = None
    first_name: str | None = None
    last_name: str | None = None

    @classmethod
    def from_payload(cls, data: Any) -> "AcceptedInvitationEvent | None":
        """
        Parse the event's `data` object. Accepts snake_case and camelCase keys.

        Returns None when the invitation id, organization id or accepted user
        id is missing.
        """
        if not isinstance(data, dict):
            return None

        def _text(*keys: str) -> str | None:
            for key in keys:
                value = data.get(key)
                if isinstance(value, str) and value:
                    return value
            return None

        invitation_id = _text("id")
        organization_id = _text("organization_id", "organizationId")
        accepted_user_id = _text("accepted_user_id", "acceptedUserId", "user_id")
        if not (invitation_id and organization_id and accepted_user_id):
            return None

        return cls(
            invitation_id=invitation_id,
            organization_id=organization_id,
            accepted_user_id=accepted_user_id,
            email=_text("email"),
            first_name=_text("first_name", "firstName"),
            last_name=_text("last_name", "lastName"),
        )


@dataclass(frozen=True)
class InvitationMatch:
    invitation: PendingInvitation
    source: str


def match_by_invitation_id(
    event: AcceptedInvitationEvent, organization: Organization
) -> InvitationMatch | None:
    invitation = (
        PendingInvitation.objects.select_related("customer")
        .select_for_update(of=("self",))
        .filter(workos_invitation_id=event.invitation_id, organization=organization)
        .first()
    )
    return InvitationMatch(invitation, "invitation_id") if invitation else None


def match_by_org_email(
    event: AcceptedInvitationEvent, organization: Organization
) -> InvitationMatch | None:
    # Resent invitations get a new WorkOS id; the email still matches
    if not event.email:
        return None
    invitation = find_pending_for_org_email(organization, event.email, for_update=True)
    return InvitationMatch(invitation, "org_email") if invitation else None


EventResolver = Callable[[AcceptedInvitationEvent, Organization], InvitationMatch | None]

EVENT_RESOLVERS: tuple[EventResolver, ...] = (match_by_invitation_id, match_by_org_email)


def resolve_accepted_invitation(
    event: AcceptedInvitationEvent, organization: Organization
) -> InvitationMatch | None:
    """
    Run the event chain. None means no pending invitation matches the event.

    The matched row is locked, so must run inside a transaction. A concurrent
    delivery of the same event waits for the first to commit, then finds the
    invitation gone.
    """
    for resolver in EVENT_RESOLVERS:
        match = resolver(event, organization)
        if match is not None:
            logger.info(
                "invitation_resolved",
                source=match.source,
                workos_invitation_id=event.invitation_id,
                pending_invitation_id=match.invitation.id,
            )
            return match
    return None


# --- Login chain ---


@dataclass(frozen=True)
class LoginIdentity:
    """Who is signing in: WorkOS id, email from the token, and the local row if any."""

    workos_user_id: str
    email: str
    existing: User | None = None


@dataclass(frozen=True)
class MembershipResolution:
    """
    Organization and role the login resolved to.

    `invitation` is the pending invitation consumed by this login, if any.
    `customer` is only meaningful when `invitation` is set.
    """

    organization: Organization
    role: str | None
    source: str
    invitation: PendingInvitation | None = None
    customer: Customer | None = None


def _from_invitation(invitation: PendingInvitation, organization: Organization, source: str) -> MembershipResolution:
    return MembershipResolution(
        organization=organization,
        role=invitation.role,
        source=source,
        invitation=invitation,
        customer=invitation.customer,
    )


def resolve_from_existing_org(
    login: LoginIdentity, provider: IdentityProvider | None
) -> MembershipResolution | None:
    """Already linked: keep the organization, but consume a re-invite if one is waiting."""
    existing = login.existing
    if existing is None or existing.organization is None:
        return None

    organization = existing.organization
    invitation = find_pending_for_org_email(organization, login.email) if login.email else None
    if invitation is not None:
        return _from_invitation(invitation, organization, "existing_org_invitation")
    return MembershipResolution(organization=organization, role=existing.role, source="existing_org")


def resolve_from_provider_memberships(
    login: LoginIdentity, provider: IdentityProvider | None
) -> MembershipResolution | None:
    """
    Walk the user's WorkOS memberships.

    The first membership whose organization has a pending invitation for the
    email wins. Otherwise the first synced organization is used with the role
    WorkOS reports. WorkOS failures end this step without failing the login.
    """
    if provider is None:
        return None

    try:
        memberships = provider.list_memberships(login.workos_user_id)
    except ExternalProviderError as e:
        logger.warning("login_sync_membership_lookup_failed", error=e.message, status=e.status)
        return None

    logger.info(
        "login_sync_membership_lookup",
        workos_user_id=login.workos_user_id,
        membership_count=len(memberships),
    )

    fallback: MembershipResolution | None = None
    for membership in memberships:
        if membership.status == "inactive":
            continue

        organization = Organization.objects.filter(workos_org_id=membership.organization_id).first()
        if organization is None:
            logger.info("login_sync_org_not_synced", workos_org_id=membership.organization_id)
            continue

        invitation = find_pending_for_org_email(organization, login.email) if login.email else None
        if invitation is not None:
            return _from_invitation(invitation, organization, "provider_membership_invitation")

        if fallback is None:
            fallback = MembershipResolution(
                organization=organization,
                role=normalize_provider_role(membership.role),
                source="provider_membership_role",
            )

    return fallback


def resolve_from_global_invitation(
    login: LoginIdentity, provider: IdentityProvider | None
) -> MembershipResolution | None:
    """
    Last resort: the newest unexpired invitation for this email anywhere.

    Also creates the WorkOS membership the accepted invitation would have
    created. Failures there are logged; the local link still happens.
    """
    if not login.email:
        return None

    invitation = find_global_pending_for_email(login.email)
    if invitation is None:
        logger.info("login_sync_no_global_invitation", email=normalize_email(login.email))
        return None

    organization = invitation.organization

    if provider is not None:
        try:
            provider.create_membership(
                user_id=login.workos_user_id,
                organization_id=organization.workos_org_id,
                role_slug=PROVIDER_MEMBER_SLUG,
            )
        except ExternalProviderError as e:
            if e.is_terminal:
                logger.info("login_sync_membership_exists", workos_org_id=organization.workos_org_id)
            else:
                logger.warning(
                    "login_sync_membership_create_failed",
                    workos_org_id=organization.workos_org_id,
                    error=e.message,
                    status=e.status,
                )

    return _from_invitation(invitation, organization, "global_invitation")


LoginResolver = Callable[[LoginIdentity, IdentityProvider | None], MembershipResolution | None]

LOGIN_RESOLVERS: tuple[LoginResolver, ...] = (
    resolve_from_existing_org,
    resolve_from_provider_memberships,
    resolve_from_global_invitation,
)


def resolve_login_membership(
    login: LoginIdentity, provider: IdentityProvider | None
) -> MembershipResolution | None:
    """
    Run the login chain.

    Returns None when the user belongs to no organization yet. A resolved
    organization without a role defaults to staff.
    """
    for resolver in LOGIN_RESOLVERS:
        resolution = resolver(login, provider)
        if resolution is not None:
            if resolution.role is None:
                resolution = replace(resolution, role=User.Role.STAFF)
            logger.info(
                "login_membership_resolved",
                source=resolution.source,
                organization_id=resolution.organization.id,
                role=resolution.role,
            )
            return resolution
    return None
