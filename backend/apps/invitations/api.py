"""
Invitation API endpoints. Admin only.
"""

from django.http import HttpRequest
from ninja import Router

from apps.core.schemas import ErrorResponse
from apps.core.security import BearerAuth
from apps.invitations.schemas import (
    InvitationResponse,
    ResendInvitationResponse,
    RevokeInvitationResponse,
    SendInvitationRequest,
)
from apps.invitations.services import (
    list_invitations,
    resend_invitation,
    revoke_invitation,
    send_invitation,
)

router = Router(tags=["invitations"])
bearer_auth = BearerAuth()


@router.get(
    "/",
    response={200: list[InvitationResponse], 403: ErrorResponse},
    auth=bearer_auth,
    operation_id="listInvitations",
    summary="List pending invitations",
)
def list_pending(request: HttpRequest) -> list[InvitationResponse]:
    return [InvitationResponse.from_invitation(i) for i in list_invitations(request.auth)]  # type: ignore[attr-defined]


@router.post(
    "/",
    response={
        201: InvitationResponse,
        403: ErrorResponse,
        404: ErrorResponse,
        409: ErrorResponse,
        422: ErrorResponse,
        502: ErrorResponse,
    },
    auth=bearer_auth,
    operation_id="sendInvitation",
    summary="Send an invitation",
)
def send(request: HttpRequest, payload: SendInvitationRequest):
    """Send through WorkOS and record the role and customer locally."""
    invitation = send_invitation(
        request.auth,  # type: ignore[attr-defined]
        email=payload.email,
        role=payload.role,
        customer_id=payload.customer_id,
    )
    return 201, InvitationResponse.from_invitation(invitation)


@router.delete(
    "/{invitation_id}",
    response={200: RevokeInvitationResponse, 403: ErrorResponse, 404: ErrorResponse, 502: ErrorResponse},
    auth=bearer_auth,
    operation_id="revokeInvitation",
    summary="Revoke an invitation",
)
def revoke(request: HttpRequest, invitation_id: int) -> RevokeInvitationResponse:
    result = revoke_invitation(request.auth, invitation_id)  # type: ignore[attr-defined]
    return RevokeInvitationResponse(cleaned_up=result.cleaned_up)


@router.post(
    "/{invitation_id}/resend",
    response={
        200: ResendInvitationResponse,
        403: ErrorResponse,
        404: ErrorResponse,
        422: ErrorResponse,
        502: ErrorResponse,
    },
    auth=bearer_auth,
    operation_id="resendInvitation",
    summary="Resend an invitation",
)
def resend(request: HttpRequest, invitation_id: int) -> ResendInvitationResponse:
    result = resend_invitation(request.auth, invitation_id)  # type: ignore[attr-defined]
    return ResendInvitationResponse(
        resent=result.resent,
        cleaned_up=result.cleaned_up,
        invitation=InvitationResponse.from_invitation(result.invitation) if result.invitation else None,
    )
