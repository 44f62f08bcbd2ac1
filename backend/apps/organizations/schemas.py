"""
Organization API schemas.
"""

from pydantic import BaseModel, EmailStr, Field


class UpdateOrganizationRequest(BaseModel):
    """Partial update of organization settings."""

    name: str | None = Field(default=None, max_length=255, examples=["Acme Corp"])
    billing_email: EmailStr | None = Field(default=None, examples=["billing@acme.com"])


class UpdateBillingEmailRequest(BaseModel):
    billing_email: EmailStr = Field(..., examples=["billing@acme.com"])


class MemberCounts(BaseModel):
    staff_count: int
    client_count: int
    pending_count: int
    total_active: int


class OrganizationDetailResponse(BaseModel):
    """Organization settings and subscription state."""

    id: int
    workos_org_id: str
    name: str
    billing_email: str
    subscription_status: str
    plan_id: str
    max_customers: int = Field(..., description="Effective customer cap from the subscription")
    max_staff: int
    max_clients: int
    members: MemberCounts | None = Field(default=None, description="Only returned to admins")


class UsageItemSchema(BaseModel):
    count: int
    max: int


class PlanInfo(BaseModel):
    name: str
    status: str
    plan_id: str


class UsageResponse(BaseModel):
    """Counts against plan limits. Pending invitations count towards staff and clients."""

    plan: PlanInfo
    customers: UsageItemSchema
    staff: UsageItemSchema
    clients: UsageItemSchema
