"""
Auth and user management API endpoints.

- Login-time sync and current user context
- Organization creation during onboarding
- Admin member management (list, remove, restore, role change)
- Admin impersonation
"""

from django.http import HttpRequest
from ninja import Router

from apps.accounts.schemas import (
    ChangeRoleRequest,
    CreateOrganizationRequest,
    ImpersonationStatusResponse,
    MemberResponse,
    MeResponse,
    OrganizationInfo,
    StartImpersonationRequest,
    SyncResponse,
    UserInfo,
)
from apps.accounts.services import (
    change_user_role,
    get_impersonation_status,
    list_members,
    remove_user,
    restore_user,
    start_impersonating,
    stop_impersonating,
    sync_current_user,
)
from apps.core.auth import RequestContext
from apps.core.schemas import ErrorResponse, MessageResponse
from apps.core.security import BearerAuth
from apps.organizations.services import create_organization

router = Router(tags=["auth"])
users_router = Router(tags=["users"])
bearer_auth = BearerAuth()


def _context(request: HttpRequest) -> RequestContext:
    return request.auth  # type: ignore[attr-defined]


def _organization_info(org) -> OrganizationInfo | None:
    if org is None:
        return None
    return OrganizationInfo(id=org.id, workos_org_id=org.workos_org_id, name=org.name)


# =============================================================================
# Auth
# =============================================================================


@router.post(
    "/sync",
    response={200: SyncResponse, 401: ErrorResponse},
    auth=bearer_auth,
    operation_id="syncCurrentUser",
    summary="Reconcile the signed-in user",
)
def sync(request: HttpRequest) -> SyncResponse:
    """
    Reconcile the signed-in user with WorkOS memberships and pending invitations.

    Called by the frontend after every sign-in. Safe to repeat.
    """
    ctx = _context(request)
    result = sync_current_user(ctx.require_identity())
    return SyncResponse(
        synced=result.synced,
        has_org=result.has_org,
        organization_id=result.organization_id,
        role=result.role,
        user=UserInfo.from_user(result.user),
    )


@router.get(
    "/me",
    response={200: MeResponse, 401: ErrorResponse},
    auth=bearer_auth,
    operation_id="getCurrentUser",
    summary="Get current user info",
)
def me(request: HttpRequest) -> MeResponse:
    """Literal user, effective user and organization for the current token."""
    ctx = _context(request)
    user = ctx.require_user()
    return MeResponse(
        user=UserInfo.from_user(user),
        effective_user=UserInfo.from_user(ctx.effective_user or user),
        organization=_organization_info(ctx.organization),
        is_impersonating=ctx.is_impersonating,
    )


@router.post(
    "/organizations",
    response={201: OrganizationInfo, 401: ErrorResponse, 409: ErrorResponse, 422: ErrorResponse, 502: ErrorResponse},
    auth=bearer_auth,
    operation_id="createOrganization",
    summary="Create organization",
)
def create_org(request: HttpRequest, payload: CreateOrganizationRequest):
    """Create an organization in WorkOS and locally; the caller becomes its admin."""
    org = create_organization(_context(request), name=payload.name, billing_email=payload.billing_email)
    return 201, _organization_info(org)


# =============================================================================
# Users
# =============================================================================


@users_router.get(
    "/",
    response={200: list[MemberResponse], 403: ErrorResponse},
    auth=bearer_auth,
    operation_id="listUsers",
    summary="List organization members",
)
def list_users(request: HttpRequest) -> list[MemberResponse]:
    """Active members first, then removed ones."""
    return [MemberResponse.from_user(u) for u in list_members(_context(request))]


@users_router.get(
    "/impersonation",
    response={200: ImpersonationStatusResponse, 401: ErrorResponse},
    auth=bearer_auth,
    operation_id="getImpersonation",
    summary="Get impersonation status",
)
def impersonation_status(request: HttpRequest) -> ImpersonationStatusResponse:
    target = get_impersonation_status(_context(request))
    return ImpersonationStatusResponse(
        is_impersonating=target is not None,
        target=UserInfo.from_user(target) if target else None,
    )


@users_router.post(
    "/impersonation",
    response={200: ImpersonationStatusResponse, 403: ErrorResponse, 404: ErrorResponse},
    auth=bearer_auth,
    operation_id="startImpersonation",
    summary="Start impersonating a member",
)
def impersonation_start(request: HttpRequest, payload: StartImpersonationRequest) -> ImpersonationStatusResponse:
    target = start_impersonating(_context(request), payload.target_user_id)
    return ImpersonationStatusResponse(is_impersonating=True, target=UserInfo.from_user(target))


@users_router.delete(
    "/impersonation",
    response={200: MessageResponse, 401: ErrorResponse},
    auth=bearer_auth,
    operation_id="stopImpersonation",
    summary="Stop impersonating",
)
def impersonation_stop(request: HttpRequest) -> MessageResponse:
    stop_impersonating(_context(request))
    return MessageResponse(message="Impersonation stopped")


@users_router.delete(
    "/{user_id}",
    response={200: MemberResponse, 403: ErrorResponse, 404: ErrorResponse, 409: ErrorResponse, 502: ErrorResponse},
    auth=bearer_auth,
    operation_id="removeUser",
    summary="Remove a member",
)
def delete_user(request: HttpRequest, user_id: int) -> MemberResponse:
    """Delete the member in WorkOS and soft-delete locally."""
    return MemberResponse.from_user(remove_user(_context(request), user_id))


@users_router.post(
    "/{user_id}/restore",
    response={200: MemberResponse, 403: ErrorResponse, 404: ErrorResponse, 409: ErrorResponse},
    auth=bearer_auth,
    operation_id="restoreUser",
    summary="Restore a removed member",
)
def restore(request: HttpRequest, user_id: int) -> MemberResponse:
    return MemberResponse.from_user(restore_user(_context(request), user_id))


@users_router.patch(
    "/{user_id}/role",
    response={200: MemberResponse, 403: ErrorResponse, 404: ErrorResponse, 409: ErrorResponse, 422: ErrorResponse},
    auth=bearer_auth,
    operation_id="changeUserRole",
    summary="Change a member's role",
)
def change_role(request: HttpRequest, user_id: int, payload: ChangeRoleRequest) -> MemberResponse:
    user = change_user_role(
        _context(request),
        user_id,
        new_role=payload.role,
        expected_role=payload.expected_role,
    )
    return MemberResponse.from_user(user)
