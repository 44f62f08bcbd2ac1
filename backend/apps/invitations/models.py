"""
Invitations models - local record of invitations sent through WorkOS.
"""

from django.db import models
from django.utils import timezone


class PendingInvitation(models.Model):
    """
    An invitation WorkOS has sent and nobody has accepted yet.

    Carries what WorkOS does not know about: the local role and, for clients,
    the customer. Deleted when accepted, revoked, or found stale; a resend
    swaps the WorkOS id and expiry in place.
    """

    class Role(models.TextChoices):
        STAFF = "staff", "Staff"
        CLIENT = "client", "Client"

    workos_invitation_id = models.CharField(max_length=255, unique=True, db_index=True)
    # Stored normalized (trimmed, lowercase)
    email = models.EmailField()
    organization = models.ForeignKey(
        "organizations.Organization",
        on_delete=models.CASCADE,
        related_name="pending_invitations",
    )
    role = models.CharField(max_length=20, choices=Role.choices)
    customer = models.ForeignKey(
        "customers.Customer",
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="pending_invitations",
    )
    inviter = models.ForeignKey(
        "accounts.User",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="sent_invitations",
    )
    created_at = models.DateTimeField(default=timezone.now)
    expires_at = models.DateTimeField()

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["organization", "email"], name="invitation_org_email_idx"),
            models.Index(fields=["email"], name="invitation_email_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.email} ({self.role})"

    @property
    def is_expired(self) -> bool:
        return self.expires_at <= timezone.now()
