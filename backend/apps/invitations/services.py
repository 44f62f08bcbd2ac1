"""
Invitation services - send, revoke, resend and list.

WorkOS delivers the invitation email and owns the invitation's state; the
local PendingInvitation carries the role and customer the acceptance should
apply. Provider calls always come first, then the local write.
"""

from dataclasses import dataclass
from datetime import timedelta

from django.conf import settings
from django.db import transaction
from django.db.models import Count, Q, QuerySet
from django.utils import timezone

from apps.accounts.models import User
from apps.accounts.services import UNSET, default_provider
from apps.accounts.workos_client import IdentityProvider
from apps.billing.plans import PlanLimits
from apps.core.auth import RequestContext
from apps.core.exceptions import (
    ConflictError,
    ExternalProviderError,
    NotFoundError,
    ValidationError,
)
from apps.core.logging import get_logger
from apps.customers.models import Customer
from apps.invitations.models import PendingInvitation
from apps.invitations.resolvers import find_pending_for_org_email, normalize_email
from apps.organizations.models import Organization

logger = get_logger(__name__)


@dataclass(frozen=True)
class OrgUserCounts:
    """Active members and pending invitations per role."""

    staff_count: int = 0
    client_count: int = 0
    pending_staff_count: int = 0
    pending_client_count: int = 0

    @property
    def pending_count(self) -> int:
        return self.pending_staff_count + self.pending_client_count


@dataclass(frozen=True)
class RevokeResult:
    cleaned_up: bool


@dataclass(frozen=True)
class ResendResult:
    resent: bool
    cleaned_up: bool
    invitation: PendingInvitation | None = None


def get_org_user_counts(organization: Organization) -> OrgUserCounts:
    users = User.objects.filter(organization=organization).aggregate(
        staff=Count("id", filter=Q(role=User.Role.STAFF)),
        client=Count("id", filter=Q(role=User.Role.CLIENT)),
    )
    pending = PendingInvitation.objects.filter(organization=organization).aggregate(
        staff=Count("id", filter=Q(role=PendingInvitation.Role.STAFF)),
        client=Count("id", filter=Q(role=PendingInvitation.Role.CLIENT)),
    )
    return OrgUserCounts(
        staff_count=users["staff"],
        client_count=users["client"],
        pending_staff_count=pending["staff"],
        pending_client_count=pending["client"],
    )


def is_org_member_by_email(organization: Organization, email: str) -> bool:
    """True if an active user of the organization has this email (case-insensitive)."""
    return User.objects.filter(organization=organization, email__iexact=normalize_email(email)).exists()


def check_invitation_limits(
    organization: Organization, role: str, replacing: int = 0
) -> PlanLimits:
    """
    Raise ValidationError when inviting one more `role` would exceed the plan.

    `replacing` is the number of existing pending invitations the new one
    replaces (1 on resend).
    """
    limits = organization.limits
    counts = get_org_user_counts(organization)
    if role == PendingInvitation.Role.STAFF:
        if counts.staff_count + counts.pending_staff_count - replacing >= limits.max_staff:
            raise ValidationError(
                f"Staff limit reached ({limits.max_staff}). Upgrade your plan to invite more staff members."
            )
    elif counts.client_count + counts.pending_client_count - replacing >= limits.max_clients:
        raise ValidationError(
            f"Client limit reached ({limits.max_clients}). Upgrade your plan to invite more clients."
        )
    return limits


def _expiry() -> timezone.datetime:
    return timezone.now() + timedelta(days=settings.INVITATION_EXPIRY_DAYS)


def _provider_or_default(provider: IdentityProvider | None) -> IdentityProvider:
    resolved = default_provider() if provider is UNSET or provider is None else provider
    if resolved is None:
        raise ExternalProviderError("WorkOS is not configured")
    return resolved


def list_invitations(ctx: RequestContext) -> QuerySet[PendingInvitation]:
    _, org = ctx.require_admin()
    return (
        PendingInvitation.objects.select_related("customer", "inviter")
        .filter(organization=org)
        .order_by("-created_at")
    )


def send_invitation(
    ctx: RequestContext,
    email: str,
    role: str,
    customer_id: int | None = None,
    provider: IdentityProvider | None = UNSET,
) -> PendingInvitation:
    """
    Invite someone to the admin's organization as staff or client.

    Rejects existing members and unexpired duplicates, replaces an expired
    duplicate, enforces plan limits, then sends through WorkOS and stores the
    local row. If the local write fails the WorkOS invitation is revoked.
    """
    admin, org = ctx.require_admin()

    if role == User.Role.ADMIN:
        raise ValidationError("Admins cannot be invited; invite as staff and change the role")
    if role not in PendingInvitation.Role.values:
        raise ValidationError("Role must be staff or client")
    if role == PendingInvitation.Role.CLIENT and not customer_id:
        raise ValidationError("Customer ID required for client invitations")

    normalized = normalize_email(email)
    if not normalized:
        raise ValidationError("Email is required")

    if is_org_member_by_email(org, normalized):
        raise ConflictError("User already a member of this organization")

    existing = find_pending_for_org_email(org, normalized)
    if existing is not None:
        if not existing.is_expired:
            raise ConflictError("An invitation is already pending for this email")
        existing.delete()
        logger.info("expired_invitation_replaced", pending_invitation_id=existing.pk)

    check_invitation_limits(org, role)

    customer = None
    if role == PendingInvitation.Role.CLIENT:
        customer = Customer.objects.filter(pk=customer_id, organization=org).first()
        if customer is None:
            raise NotFoundError("Customer not found or does not belong to your organization")

    provider = _provider_or_default(provider)
    try:
        sent = provider.send_invitation(
            email=normalized,
            organization_id=org.workos_org_id,
            inviter_user_id=admin.workos_user_id,
            expires_in_days=settings.INVITATION_EXPIRY_DAYS,
        )
    except ExternalProviderError as e:
        if e.is_already_member:
            raise ConflictError("User already a member of this organization") from e
        raise

    try:
        with transaction.atomic():
            invitation = PendingInvitation.objects.create(
                workos_invitation_id=sent.id,
                email=normalized,
                organization=org,
                role=role,
                customer=customer,
                inviter=admin,
                expires_at=sent.expires_at or _expiry(),
            )
    except Exception:
        logger.exception("invitation_store_failed", workos_invitation_id=sent.id)
        try:
            provider.revoke_invitation(sent.id)
        except ExternalProviderError as cleanup_error:
            logger.warning("invitation_cleanup_failed", workos_invitation_id=sent.id, error=cleanup_error.message)
        raise

    logger.info("invitation_sent", pending_invitation_id=invitation.id, role=role)
    return invitation


def _get_org_invitation(ctx: RequestContext, invitation_id: int) -> PendingInvitation:
    invitation = PendingInvitation.objects.filter(pk=invitation_id).first()
    return ctx.ensure_same_org(invitation, "Invitation not found")


def _revoke_if_pending(provider: IdentityProvider, workos_invitation_id: str) -> None:
    """Revoke in WorkOS when still pending. Terminal states need only local cleanup."""
    try:
        requires_revoke = provider.get_invitation(workos_invitation_id).is_pending
    except ExternalProviderError as e:
        if not e.is_terminal:
            raise
        requires_revoke = False

    if not requires_revoke:
        return
    try:
        provider.revoke_invitation(workos_invitation_id)
    except ExternalProviderError as e:
        if not e.is_terminal:
            raise
        logger.info("invitation_revoke_terminal", workos_invitation_id=workos_invitation_id, status=e.status)


def revoke_invitation(
    ctx: RequestContext, invitation_id: int, provider: IdentityProvider | None = UNSET
) -> RevokeResult:
    _, org = ctx.require_admin()
    invitation = _get_org_invitation(ctx, invitation_id)

    if is_org_member_by_email(org, invitation.email):
        invitation.delete()
        logger.info("invitation_cleaned_up", pending_invitation_id=invitation_id, reason="already_member")
        return RevokeResult(cleaned_up=True)

    _revoke_if_pending(_provider_or_default(provider), invitation.workos_invitation_id)
    invitation.delete()
    logger.info("invitation_revoked", pending_invitation_id=invitation_id)
    return RevokeResult(cleaned_up=False)


def resend_invitation(
    ctx: RequestContext, invitation_id: int, provider: IdentityProvider | None = UNSET
) -> ResendResult:
    """
    Revoke the old WorkOS invitation and send a fresh one.

    The local row keeps its role and customer; only the WorkOS id and expiry
    change. If WorkOS refuses because the person already joined, the local
    row is stale and is removed instead.
    """
    admin, org = ctx.require_admin()
    invitation = _get_org_invitation(ctx, invitation_id)

    if is_org_member_by_email(org, invitation.email):
        invitation.delete()
        logger.info("invitation_cleaned_up", pending_invitation_id=invitation_id, reason="already_member")
        return ResendResult(resent=False, cleaned_up=True)

    check_invitation_limits(org, invitation.role, replacing=1)

    provider = _provider_or_default(provider)
    _revoke_if_pending(provider, invitation.workos_invitation_id)

    try:
        sent = provider.send_invitation(
            email=invitation.email,
            organization_id=org.workos_org_id,
            inviter_user_id=admin.workos_user_id,
            expires_in_days=settings.INVITATION_EXPIRY_DAYS,
        )
    except ExternalProviderError as e:
        if e.status == 422 or e.is_already_member:
            invitation.delete()
            logger.info("invitation_cleaned_up", pending_invitation_id=invitation_id, reason="provider_rejected")
            return ResendResult(resent=False, cleaned_up=True)
        raise

    invitation.workos_invitation_id = sent.id
    invitation.expires_at = sent.expires_at or _expiry()
    invitation.save(update_fields=["workos_invitation_id", "expires_at"])
    logger.info("invitation_resent", pending_invitation_id=invitation.id)
    return ResendResult(resent=True, cleaned_up=False, invitation=invitation)
