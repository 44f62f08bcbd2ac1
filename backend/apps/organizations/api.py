"""
Organization API endpoints.

Settings are admin-only and blocked while impersonating; usage is visible to
every member.
"""

from django.http import HttpRequest
from ninja import Router

from apps.accounts.models import User
from apps.core.auth import RequestContext
from apps.core.schemas import ErrorResponse
from apps.core.security import BearerAuth
from apps.invitations.services import get_org_user_counts
from apps.organizations.models import Organization
from apps.organizations.schemas import (
    MemberCounts,
    OrganizationDetailResponse,
    PlanInfo,
    UpdateBillingEmailRequest,
    UpdateOrganizationRequest,
    UsageItemSchema,
    UsageResponse,
)
from apps.organizations.services import get_usage, update_billing_email, update_organization

router = Router(tags=["organization"])
bearer_auth = BearerAuth()


def _to_response(org: Organization, include_members: bool) -> OrganizationDetailResponse:
    limits = org.limits
    members = None
    if include_members:
        counts = get_org_user_counts(org)
        members = MemberCounts(
            staff_count=counts.staff_count,
            client_count=counts.client_count,
            pending_count=counts.pending_count,
            total_active=User.objects.filter(organization=org).count(),
        )
    return OrganizationDetailResponse(
        id=org.id,
        workos_org_id=org.workos_org_id,
        name=org.name,
        billing_email=org.billing_email,
        subscription_status=org.subscription_status,
        plan_id=org.plan_id,
        max_customers=limits.max_customers,
        max_staff=limits.max_staff,
        max_clients=limits.max_clients,
        members=members,
    )


@router.get(
    "/",
    response={200: OrganizationDetailResponse, 401: ErrorResponse, 403: ErrorResponse},
    auth=bearer_auth,
    operation_id="getOrganization",
    summary="Get current organization",
)
def get_organization(request: HttpRequest) -> OrganizationDetailResponse:
    ctx: RequestContext = request.auth  # type: ignore[attr-defined]
    user, org = ctx.require_member()
    return _to_response(org, include_members=user.is_admin)


@router.patch(
    "/",
    response={200: OrganizationDetailResponse, 403: ErrorResponse, 422: ErrorResponse, 502: ErrorResponse},
    auth=bearer_auth,
    operation_id="updateOrganization",
    summary="Update organization settings",
)
def patch_organization(request: HttpRequest, payload: UpdateOrganizationRequest) -> OrganizationDetailResponse:
    """Updates WorkOS first, then the local record."""
    org = update_organization(
        request.auth,  # type: ignore[attr-defined]
        name=payload.name,
        billing_email=payload.billing_email,
    )
    return _to_response(org, include_members=True)


@router.patch(
    "/billing",
    response={200: OrganizationDetailResponse, 403: ErrorResponse, 422: ErrorResponse, 502: ErrorResponse},
    auth=bearer_auth,
    operation_id="updateBillingEmail",
    summary="Update billing email",
)
def patch_billing(request: HttpRequest, payload: UpdateBillingEmailRequest) -> OrganizationDetailResponse:
    org = update_billing_email(request.auth, payload.billing_email)  # type: ignore[attr-defined]
    return _to_response(org, include_members=True)


@router.get(
    "/usage",
    response={200: UsageResponse, 401: ErrorResponse, 403: ErrorResponse},
    auth=bearer_auth,
    operation_id="getUsage",
    summary="Usage against plan limits",
)
def usage(request: HttpRequest) -> UsageResponse:
    stats = get_usage(request.auth)  # type: ignore[attr-defined]
    return UsageResponse(
        plan=PlanInfo(name=stats.plan_name, status=stats.status, plan_id=stats.plan_id),
        customers=UsageItemSchema(count=stats.customers.count, max=stats.customers.max),
        staff=UsageItemSchema(count=stats.staff.count, max=stats.staff.max),
        clients=UsageItemSchema(count=stats.clients.count, max=stats.clients.max),
    )
