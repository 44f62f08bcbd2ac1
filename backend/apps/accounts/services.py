"""
Account services - sync engine, user management and impersonation.

Sync paths write role/org state learned from WorkOS (invitation webhooks and
login-time reconciliation). Admin paths write interactive changes. Every write
happens inside transaction.atomic(); WorkOS calls happen before it, never
inside it.
"""

from dataclasses import dataclass
from typing import Any

from django.conf import settings
from django.db import IntegrityError, transaction
from django.db.models import F, QuerySet

from apps.accounts.models import User
from apps.accounts.workos_client import IdentityProvider, get_identity_provider
from apps.core.auth import IdentityClaims, RequestContext
from apps.core.exceptions import (
    AuthorizationError,
    ConflictError,
    ExternalProviderError,
    NotFoundError,
    ValidationError,
)
from apps.core.logging import get_logger
from apps.customers.models import Customer, StaffCustomerAssignment
from apps.invitations.models import PendingInvitation
from apps.invitations.resolvers import LoginIdentity, resolve_login_membership
from apps.organizations.models import Organization

logger = get_logger(__name__)

# Distinguishes "leave customer alone" from "clear customer"
UNSET: Any = object()

# WorkOS statuses that still let a local removal go ahead
NON_FATAL_DELETE_USER_STATUSES = frozenset({404, 409})


def default_provider() -> IdentityProvider | None:
    """WorkOS facade, or None when no API key is configured."""
    if not settings.WORKOS_API_KEY:
        return None
    return get_identity_provider()


def get_user_by_workos_id(workos_user_id: str, include_deleted: bool = False) -> User | None:
    manager = User.all_objects if include_deleted else User.objects
    return manager.select_related("organization", "customer").filter(workos_user_id=workos_user_id).first()


# --- Sync engine ---


def _lock_or_create_user(workos_user_id: str, defaults: dict[str, Any]) -> tuple[User, bool]:
    """
    Fetch the user row locked for update, creating it if missing.

    Must run inside a transaction. Returns (user, created).
    """
    user = User.all_objects.select_for_update().filter(workos_user_id=workos_user_id).first()
    if user is not None:
        return user, False
    try:
        with transaction.atomic():
            return User.all_objects.create(workos_user_id=workos_user_id, **defaults), True
    except IntegrityError:
        # Concurrent insert won the race, lock the winner
        return User.all_objects.select_for_update().get(workos_user_id=workos_user_id), False


def upsert_user_from_auth(
    workos_user_id: str,
    email: str,
    first_name: str | None = None,
    last_name: str | None = None,
    organization: Organization | None = None,
    role: str | None = None,
    customer: Customer | None = UNSET,
    reactivate_if_deleted: bool = False,
    profile_picture_url: str | None = None,
) -> User:
    """
    Idempotent upsert keyed by WorkOS user id.

    Existing users always get their email and names refreshed. Organization,
    role and picture are written only when supplied, customer only when
    passed explicitly (None clears it). A soft-deleted user stays deleted unless
    `reactivate_if_deleted` is set.
    """
    with transaction.atomic():
        user, created = _lock_or_create_user(
            workos_user_id,
            {
                "email": email,
                "first_name": first_name or "",
                "last_name": last_name or "",
                "organization": organization,
                "role": role,
                "customer": None if customer is UNSET else customer,
                "profile_picture_url": profile_picture_url or "",
            },
        )
        if created:
            logger.info("user_created", workos_user_id=workos_user_id, role=role)
            return user

        user.email = email
        user.first_name = first_name or ""
        user.last_name = last_name or ""
        update_fields = ["email", "first_name", "last_name", "updated_at"]

        if profile_picture_url:
            user.profile_picture_url = profile_picture_url
            update_fields.append("profile_picture_url")

        if organization is not None:
            user.organization = organization
            update_fields.append("organization")
        if role is not None:
            user.role = role
            update_fields.append("role")
        if customer is not UNSET:
            user.customer = customer
            update_fields.append("customer")
        if reactivate_if_deleted and user.is_deleted:
            user.deleted_at = None
            update_fields.append("deleted_at")
            logger.info("user_reactivated", workos_user_id=workos_user_id)

        user.save(update_fields=update_fields)
        return user


def sync_from_invitation(
    workos_user_id: str,
    email: str,
    first_name: str | None,
    last_name: str | None,
    organization: Organization,
    role: str,
    customer: Customer | None,
) -> User:
    """
    Apply an accepted invitation to the user record.

    Only reachable from a verified `invitation.accepted` event. Always writes
    organization, role and customer, and always reactivates: accepting a new
    invitation is how a removed user comes back.
    """
    return upsert_user_from_auth(
        workos_user_id=workos_user_id,
        email=email,
        first_name=first_name,
        last_name=last_name,
        organization=organization,
        role=role,
        customer=customer if role == User.Role.CLIENT else None,
        reactivate_if_deleted=True,
    )


def delete_pending_invitation(invitation_id: int) -> bool:
    """Delete a consumed invitation. A missing row is not an error."""
    deleted, _ = PendingInvitation.objects.filter(pk=invitation_id).delete()
    return deleted > 0


def soft_delete_user(user: User) -> None:
    """
    Soft-delete a user and cascade, all in one transaction.

    Removes the user's staff-to-customer assignments and clears any admin's
    impersonation pointer at them.
    """
    with transaction.atomic():
        user.soft_delete()
        removed, _ = StaffCustomerAssignment.objects.filter(staff_user=user).delete()
        User.all_objects.filter(impersonating=user).update(impersonating=None)
        if user.impersonating_id is not None:
            User.all_objects.filter(pk=user.pk).update(impersonating=None)
            user.impersonating = None

    logger.info("user_soft_deleted", user_id=user.id, assignments_removed=removed)


def restore_user_record(user: User) -> None:
    user.restore()
    logger.info("user_restored", user_id=user.id)


@dataclass(frozen=True)
class SyncResult:
    """Outcome of a login-time sync."""

    user: User
    synced: bool
    has_org: bool
    organization_id: int | None = None
    role: str | None = None


def sync_current_user(identity: IdentityClaims, provider: IdentityProvider | None = UNSET) -> SyncResult:
    """
    Reconcile the signed-in user with WorkOS and pending invitations.

    Runs the login resolution chain, upserts the user, and consumes the
    invitation the chain matched. A removed user is reactivated only when a
    pending invitation was found for them.
    """
    if provider is UNSET:
        provider = default_provider()

    existing = get_user_by_workos_id(identity.subject, include_deleted=True)

    email = identity.email
    first_name = identity.first_name
    last_name = identity.last_name
    picture = None
    if not email and provider is not None:
        try:
            profile = provider.get_user(identity.subject)
        except ExternalProviderError as e:
            logger.warning("login_sync_profile_lookup_failed", error=e.message, status=e.status)
        else:
            email = profile.email
            first_name = first_name or profile.first_name
            last_name = last_name or profile.last_name
            picture = profile.profile_picture_url
    if not email and existing is not None:
        email = existing.email

    resolution = resolve_login_membership(
        LoginIdentity(workos_user_id=identity.subject, email=email or "", existing=existing),
        provider,
    )
    invitation = resolution.invitation if resolution else None

    with transaction.atomic():
        user = upsert_user_from_auth(
            workos_user_id=identity.subject,
            email=email or "",
            first_name=first_name,
            last_name=last_name,
            organization=resolution.organization if resolution else None,
            role=resolution.role if resolution else None,
            customer=resolution.customer if invitation is not None else UNSET,
            reactivate_if_deleted=bool(existing is not None and existing.is_deleted and invitation is not None),
            profile_picture_url=picture,
        )
        if invitation is not None:
            delete_pending_invitation(invitation.id)

    logger.info(
        "login_sync_completed",
        workos_user_id=identity.subject,
        source=resolution.source if resolution else None,
        has_org=user.organization_id is not None,
        role=user.role,
    )

    return SyncResult(
        user=user,
        synced=True,
        has_org=user.organization_id is not None,
        organization_id=user.organization_id,
        role=user.role,
    )


# --- User management (admin) ---


def _get_org_user(ctx: RequestContext, user_id: int, include_deleted: bool = False) -> User:
    manager = User.all_objects if include_deleted else User.objects
    target = manager.filter(pk=user_id).first()
    return ctx.ensure_same_org(target, "User not found")


def list_members(ctx: RequestContext) -> QuerySet[User]:
    """All users in the organization, active first, removed last."""
    _, org = ctx.require_admin()
    return User.all_objects.filter(organization=org).order_by(
        F("deleted_at").asc(nulls_first=True), "-created_at"
    )


def remove_user(ctx: RequestContext, user_id: int, provider: IdentityProvider | None = UNSET) -> User:
    """
    Remove a member: delete the WorkOS user, then soft-delete locally.

    A WorkOS 404/409 means the user is already gone there and does not stop
    the local removal.
    """
    ctx.require_admin()
    target = _get_org_user(ctx, user_id, include_deleted=True)
    ctx.ensure_not_self(target, "remove")
    if target.is_deleted:
        raise ConflictError("User is already removed")

    if provider is UNSET:
        provider = default_provider()
    if provider is not None:
        try:
            provider.delete_user(target.workos_user_id)
        except ExternalProviderError as e:
            if e.status not in NON_FATAL_DELETE_USER_STATUSES:
                raise
            logger.info("remove_user_provider_already_gone", user_id=target.id, status=e.status)

    soft_delete_user(target)
    return target


def restore_user(ctx: RequestContext, user_id: int) -> User:
    ctx.require_admin()
    target = _get_org_user(ctx, user_id, include_deleted=True)
    if not target.is_deleted:
        raise ConflictError("User is not removed")
    restore_user_record(target)
    return target


def change_user_role(
    ctx: RequestContext,
    user_id: int,
    new_role: str,
    expected_role: str | None = None,
) -> User:
    """
    Switch a member between staff and admin.

    Client roles are tied to a customer and cannot be changed here.
    `expected_role` guards against acting on a stale view of the member.
    """
    ctx.require_admin()
    ctx.block_during_impersonation("change roles")
    target = _get_org_user(ctx, user_id)
    ctx.ensure_not_self(target, "change the role of")

    if target.role == User.Role.CLIENT:
        raise ValidationError("Client roles cannot be changed")
    if new_role not in (User.Role.ADMIN, User.Role.STAFF):
        raise ValidationError("Role must be admin or staff")

    with transaction.atomic():
        locked = User.objects.select_for_update().get(pk=target.pk)
        if expected_role is not None and locked.role != expected_role:
            raise ConflictError("Role has changed since it was loaded")
        if locked.role == new_role:
            return locked

        old_role = locked.role
        locked.role = new_role
        update_fields = ["role", "updated_at"]
        if new_role != User.Role.ADMIN and locked.impersonating_id is not None:
            locked.impersonating = None
            update_fields.append("impersonating")
        locked.save(update_fields=update_fields)

    logger.info("user_role_changed", user_id=locked.id, old_role=old_role, new_role=new_role)
    return locked


# --- Impersonation ---


def start_impersonating(ctx: RequestContext, target_user_id: int) -> User:
    """Make the literal admin act as another active member of the same organization."""
    admin, org = ctx.require_admin()
    target = User.objects.filter(pk=target_user_id).first()
    if target is None:
        raise NotFoundError("Target user not found")
    if target.organization_id != org.id:
        raise AuthorizationError("Cannot impersonate a user from a different organization")
    ctx.ensure_not_self(target, "impersonate")

    admin.impersonating = target
    admin.save(update_fields=["impersonating", "updated_at"])
    logger.info("impersonation_started", target_user_id=target.id)
    return target


def stop_impersonating(ctx: RequestContext) -> None:
    user = ctx.require_user()
    if user.impersonating_id is None:
        return
    user.impersonating = None
    user.save(update_fields=["impersonating", "updated_at"])
    logger.info("impersonation_stopped")


def get_impersonation_status(ctx: RequestContext) -> User | None:
    """The member the literal user is acting as, or None."""
    ctx.require_user()
    if ctx.effective_user is None or ctx.effective_user.pk == ctx.user.pk:
        return None
    return ctx.effective_user
