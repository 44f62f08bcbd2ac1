"""
Auth and user management API schemas - Pydantic models for request/response.
"""

from datetime import datetime

from pydantic import BaseModel, EmailStr, Field

from apps.accounts.models import User

# --- Request Schemas ---


class CreateOrganizationRequest(BaseModel):
    """Request to create an organization during onboarding."""

    name: str = Field(
        ...,
        min_length=1,
        max_length=255,
        description="Display name for the new organization",
        examples=["Acme Corp"],
    )
    billing_email: EmailStr = Field(
        ...,
        description="Email address for billing notices",
        examples=["billing@acme.com"],
    )


class ChangeRoleRequest(BaseModel):
    """Request to switch a member between staff and admin."""

    role: str = Field(..., description="New role: 'admin' or 'staff'", examples=["admin"])
    expected_role: str | None = Field(
        default=None,
        description="Role the caller believes the member has; mismatch returns 409",
        examples=["staff"],
    )


class StartImpersonationRequest(BaseModel):
    target_user_id: int = Field(..., description="Local id of the member to act as")


# --- Response Schemas ---


class OrganizationInfo(BaseModel):
    id: int = Field(..., description="Local organization ID")
    workos_org_id: str = Field(..., description="WorkOS organization ID")
    name: str = Field(..., description="Organization display name")


class UserInfo(BaseModel):
    """A workspace user."""

    id: int = Field(..., description="Local user ID")
    workos_user_id: str = Field(..., description="WorkOS user ID")
    email: str = Field(..., description="Email address")
    first_name: str = Field(default="")
    last_name: str = Field(default="")
    display_name: str = Field(..., description="Full name, or email when no name is known")
    role: str | None = Field(default=None, description="'admin', 'staff' or 'client'")
    customer_id: int | None = Field(default=None, description="Customer for client users")

    @classmethod
    def from_user(cls, user: User) -> "UserInfo":
        return cls(
            id=user.id,
            workos_user_id=user.workos_user_id,
            email=user.email,
            first_name=user.first_name,
            last_name=user.last_name,
            display_name=user.display_name,
            role=user.role,
            customer_id=user.customer_id,
        )


class SyncResponse(BaseModel):
    """Result of login-time reconciliation."""

    synced: bool = Field(..., description="True once the local user is up to date")
    has_org: bool = Field(..., description="False means the user should create an organization")
    organization_id: int | None = Field(default=None)
    role: str | None = Field(default=None)
    user: UserInfo


class MeResponse(BaseModel):
    """Response for /auth/me with literal and effective identity."""

    user: UserInfo = Field(..., description="The authenticated user")
    effective_user: UserInfo = Field(..., description="Who requests act as (differs while impersonating)")
    organization: OrganizationInfo | None = Field(default=None)
    is_impersonating: bool = Field(default=False)

    model_config = {
        "json_schema_extra": {
            "example": {
                "user": {
                    "id": 1,
                    "workos_user_id": "user_01H...",
                    "email": "admin@acme.com",
                    "display_name": "Ada Admin",
                    "role": "admin",
                },
                "effective_user": {
                    "id": 1,
                    "workos_user_id": "user_01H...",
                    "email": "admin@acme.com",
                    "display_name": "Ada Admin",
                    "role": "admin",
                },
                "organization": {"id": 1, "workos_org_id": "org_01H...", "name": "Acme Corp"},
                "is_impersonating": False,
            }
        }
    }


class MemberResponse(UserInfo):
    """A member row in the admin's user list."""

    status: str = Field(..., description="'active' or 'removed'")
    deleted_at: datetime | None = Field(default=None)
    created_at: datetime

    @classmethod
    def from_user(cls, user: User) -> "MemberResponse":
        return cls(
            **UserInfo.from_user(user).model_dump(),
            status="removed" if user.is_deleted else "active",
            deleted_at=user.deleted_at,
            created_at=user.created_at,
        )


class ImpersonationStatusResponse(BaseModel):
    is_impersonating: bool
    target: UserInfo | None = Field(default=None, description="The member being impersonated")
