"""
Organization services - creation, settings and usage.

WorkOS owns the organization; every change is made there first and then
mirrored locally.
"""

from dataclasses import dataclass

from django.db import transaction

from apps.accounts.models import User
from apps.accounts.services import UNSET, default_provider, upsert_user_from_auth
from apps.accounts.workos_client import IdentityProvider
from apps.billing.plans import FREE_TIER_LIMITS, PlanLimits, get_plan_name
from apps.core.auth import RequestContext
from apps.core.exceptions import ConflictError, ExternalProviderError, ValidationError
from apps.core.logging import get_logger
from apps.customers.models import Customer
from apps.invitations.services import get_org_user_counts
from apps.organizations.models import Organization

logger = get_logger(__name__)


def _require_provider(provider: IdentityProvider | None) -> IdentityProvider:
    resolved = default_provider() if provider is UNSET or provider is None else provider
    if resolved is None:
        raise ExternalProviderError("WorkOS is not configured")
    return resolved


def get_organization_by_workos_id(workos_org_id: str) -> Organization | None:
    return Organization.objects.filter(workos_org_id=workos_org_id).first()


def create_organization(
    ctx: RequestContext,
    name: str,
    billing_email: str,
    provider: IdentityProvider | None = UNSET,
) -> Organization:
    """
    Create an organization and make the caller its admin.

    Creates the WorkOS organization and an admin membership for the caller,
    then stores the organization with free tier caps and links the caller.
    A caller who already belongs to an organization gets a conflict.
    """
    identity = ctx.require_identity()
    name = (name or "").strip()
    if not name:
        raise ValidationError("Organization name is required")

    if ctx.user is not None and ctx.user.organization_id is not None:
        raise ConflictError("User already belongs to an organization")

    provider = _require_provider(provider)
    created = provider.create_organization(name=name, billing_email=billing_email or None)
    provider.create_membership(
        user_id=identity.subject,
        organization_id=created.id,
        role_slug=User.Role.ADMIN,
    )

    with transaction.atomic():
        organization, org_created = Organization.objects.get_or_create(
            workos_org_id=created.id,
            defaults={
                "name": name,
                "billing_email": billing_email or "",
                "max_customers": FREE_TIER_LIMITS.max_customers,
                "max_staff": FREE_TIER_LIMITS.max_staff,
                "max_clients": FREE_TIER_LIMITS.max_clients,
            },
        )
        if not org_created:
            raise ConflictError("Organization already exists")

        upsert_user_from_auth(
            workos_user_id=identity.subject,
            email=identity.email or (ctx.user.email if ctx.user else "") or billing_email,
            first_name=identity.first_name,
            last_name=identity.last_name,
            organization=organization,
            role=User.Role.ADMIN,
            customer=None,
            reactivate_if_deleted=True,
        )

    logger.info("organization_created", organization_id=organization.id, workos_org_id=created.id)
    return organization


def update_organization(
    ctx: RequestContext,
    name: str | None = None,
    billing_email: str | None = None,
    provider: IdentityProvider | None = UNSET,
) -> Organization:
    """Update name and/or billing email. Admin only, never while impersonating."""
    _, org = ctx.require_admin()
    ctx.block_during_impersonation("update organization settings")

    if name is not None:
        name = name.strip()
        if not name:
            raise ValidationError("Organization name cannot be empty")

    update_fields = ["updated_at"]
    if name is not None and name != org.name:
        org.name = name
        update_fields.append("name")
    if billing_email is not None and billing_email != org.billing_email:
        org.billing_email = billing_email
        update_fields.append("billing_email")
    if len(update_fields) == 1:
        return org

    _require_provider(provider).update_organization(
        org.workos_org_id,
        name=name,
        billing_email=billing_email,
    )
    org.save(update_fields=update_fields)
    logger.info("organization_updated", organization_id=org.id, fields=update_fields[1:])
    return org


def update_billing_email(
    ctx: RequestContext,
    billing_email: str,
    provider: IdentityProvider | None = UNSET,
) -> Organization:
    return update_organization(ctx, billing_email=billing_email, provider=provider)


@dataclass(frozen=True)
class UsageItem:
    count: int
    max: int


@dataclass(frozen=True)
class UsageStats:
    plan_name: str
    plan_id: str
    status: str
    customers: UsageItem
    staff: UsageItem
    clients: UsageItem


def get_usage(ctx: RequestContext) -> UsageStats:
    """Customers, staff and clients against plan limits. Pending invitations count."""
    _, org = ctx.require_member()
    limits: PlanLimits = org.limits
    counts = get_org_user_counts(org)
    return UsageStats(
        plan_name=get_plan_name(org.plan_id),
        plan_id=org.plan_id,
        status=org.subscription_status,
        customers=UsageItem(
            count=Customer.objects.filter(organization=org).count(),
            max=limits.max_customers,
        ),
        staff=UsageItem(
            count=counts.staff_count + counts.pending_staff_count,
            max=limits.max_staff,
        ),
        clients=UsageItem(
            count=counts.client_count + counts.pending_client_count,
            max=limits.max_clients,
        ),
    )
