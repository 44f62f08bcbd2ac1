"""
Invitation API schemas.
"""

from datetime import datetime

from pydantic import BaseModel, EmailStr, Field

from apps.invitations.models import PendingInvitation


class SendInvitationRequest(BaseModel):
    """Invite someone as staff or client."""

    email: EmailStr = Field(..., examples=["bob@example.com"])
    role: str = Field(..., description="'staff' or 'client'", examples=["staff"])
    customer_id: int | None = Field(default=None, description="Required for client invitations")


class InvitationResponse(BaseModel):
    id: int
    email: str
    role: str
    customer_id: int | None = None
    customer_name: str | None = None
    inviter_email: str | None = None
    created_at: datetime
    expires_at: datetime
    is_expired: bool

    @classmethod
    def from_invitation(cls, invitation: PendingInvitation) -> "InvitationResponse":
        return cls(
            id=invitation.id,
            email=invitation.email,
            role=invitation.role,
            customer_id=invitation.customer_id,
            customer_name=invitation.customer.name if invitation.customer else None,
            inviter_email=invitation.inviter.email if invitation.inviter else None,
            created_at=invitation.created_at,
            expires_at=invitation.expires_at,
            is_expired=invitation.is_expired,
        )


class RevokeInvitationResponse(BaseModel):
    revoked: bool = True
    cleaned_up: bool = Field(..., description="True when the invitee had already joined")


class ResendInvitationResponse(BaseModel):
    resent: bool
    cleaned_up: bool = Field(..., description="True when the stale invitation was removed instead")
    invitation: InvitationResponse | None = None
