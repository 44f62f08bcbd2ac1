"""
WorkOS webhook handler.

Handles `invitation.accepted` events. The signature is verified over the raw
body before anything is parsed; every other event type is acknowledged and
ignored.

Status codes drive WorkOS redelivery: 2xx stops it, 5xx retries. An event for
an organization that is not synced locally yet returns 500 so it is retried;
an event that matches no pending invitation returns 409.
"""

import json

from django.db import transaction
from django.http import HttpRequest, HttpResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_POST

from apps.accounts.models import User
from apps.accounts.services import delete_pending_invitation, sync_from_invitation
from apps.core.exceptions import ConflictError, NotFoundError, ValidationError
from apps.core.logging import get_logger
from apps.core.signing import verify_signature
from apps.invitations.resolvers import AcceptedInvitationEvent, resolve_accepted_invitation
from apps.organizations.services import get_organization_by_workos_id
from config.settings.base import settings

logger = get_logger(__name__)

SIGNATURE_HEADER = "WorkOS-Signature"
INVITATION_ACCEPTED = "invitation.accepted"


def handle_invitation_accepted(data: dict) -> User:
    """
    Apply an accepted invitation.

    Resolves the local pending invitation (by WorkOS id, then by organization
    and email), writes the user's organization, role and customer, and deletes
    the invitation, all in one transaction.

    Raises:
        ValidationError: payload lacks invitation, organization or user id
        NotFoundError: organization not synced locally
        ConflictError: no pending invitation matches
    """
    event = AcceptedInvitationEvent.from_payload(data)
    if event is None:
        raise ValidationError("Invalid invitation payload")

    org = get_organization_by_workos_id(event.organization_id)
    if org is None:
        raise NotFoundError("Organization not found")

    with transaction.atomic():
        match = resolve_accepted_invitation(event, org)
        if match is None:
            raise ConflictError("No pending invitation found")

        invitation = match.invitation
        user = sync_from_invitation(
            workos_user_id=event.accepted_user_id,
            email=event.email or invitation.email,
            first_name=event.first_name,
            last_name=event.last_name,
            organization=org,
            role=invitation.role,
            customer=invitation.customer,
        )
        delete_pending_invitation(invitation.id)

    logger.info(
        "workos_webhook_invitation_accepted",
        workos_invitation_id=event.invitation_id,
        source=match.source,
        user_id=user.id,
        role=user.role,
    )
    return user


def _event_ids(event: dict) -> dict:
    data = event.get("data") if isinstance(event.get("data"), dict) else {}
    return {
        "event_id": event.get("id"),
        "workos_invitation_id": data.get("id"),
        "organization_id": data.get("organization_id") or data.get("organizationId"),
    }


@csrf_exempt
@require_POST
def workos_webhook(request: HttpRequest) -> HttpResponse:
    """
    Handle WorkOS webhook events.

    Verifies the `WorkOS-Signature` header (HMAC-SHA256 over
    "<timestamp>.<raw body>") and dispatches `invitation.accepted`.
    """
    payload = request.body
    signature = request.headers.get(SIGNATURE_HEADER)

    if not signature:
        logger.warning("workos_webhook_missing_signature")
        return HttpResponse(status=400)

    if not settings.WORKOS_WEBHOOK_SECRET:
        logger.error("workos_webhook_secret_not_configured")
        return HttpResponse(status=500)

    if not verify_signature(
        payload,
        signature,
        settings.WORKOS_WEBHOOK_SECRET,
        tolerance=settings.WORKOS_WEBHOOK_TOLERANCE_SECONDS,
    ):
        logger.warning("workos_webhook_invalid_signature")
        return HttpResponse(status=400)

    try:
        event = json.loads(payload)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        logger.warning("workos_webhook_invalid_json", error=str(e))
        return HttpResponse(status=400)
    if not isinstance(event, dict):
        logger.warning("workos_webhook_invalid_json", error="body is not an object")
        return HttpResponse(status=400)

    event_type = event.get("event", "")
    logger.info("workos_webhook_received", event_type=event_type, event_id=event.get("id"))

    if event_type != INVITATION_ACCEPTED:
        logger.debug("workos_webhook_unhandled_event", event_type=event_type)
        return HttpResponse(status=200)

    try:
        handle_invitation_accepted(event.get("data"))
    except ValidationError as e:
        logger.warning("workos_webhook_invalid_payload", error=e.message)
        return HttpResponse(status=400)
    except NotFoundError:
        # Organization sync may lag the event; 500 makes WorkOS redeliver
        logger.warning("workos_webhook_org_not_found", **_event_ids(event))
        return HttpResponse(status=500)
    except ConflictError:
        logger.warning("workos_webhook_no_pending_invitation", **_event_ids(event))
        return HttpResponse(status=409)
    except Exception:
        logger.exception("workos_webhook_handler_error")
        return HttpResponse(status=500)

    return HttpResponse(status=200)
