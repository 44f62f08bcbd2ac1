"""
Accounts models - workspace users.
"""

from django.db import models

from apps.core.models import SoftDeleteMixin, TimestampedModel


class User(SoftDeleteMixin, TimestampedModel):
    """
    Local user profile keyed by the WorkOS user id.

    WorkOS handles authentication; this record holds the user's organization,
    role and (for clients) customer. Users are soft-deleted only, and a later
    invitation acceptance for the same WorkOS id reactivates the row.
    """

    class Role(models.TextChoices):
        ADMIN = "admin", "Admin"
        STAFF = "staff", "Staff"
        CLIENT = "client", "Client"

    workos_user_id = models.CharField(
        max_length=255,
        unique=True,
        db_index=True,
        help_text="WorkOS user id, e.g. 'user_01H...'",
    )

    organization = models.ForeignKey(
        "organizations.Organization",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="users",
    )
    role = models.CharField(max_length=20, choices=Role.choices, null=True, blank=True)
    customer = models.ForeignKey(
        "customers.Customer",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="client_users",
        help_text="Only set for client users",
    )
    impersonating = models.ForeignKey(
        "self",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="impersonated_by",
        help_text="Admin only: the member this admin is currently acting as",
    )

    # Profile (synced from WorkOS)
    email = models.EmailField(db_index=True)
    first_name = models.CharField(max_length=255, blank=True)
    last_name = models.CharField(max_length=255, blank=True)
    profile_picture_url = models.URLField(max_length=2048, blank=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [models.Index(fields=["organization", "role"], name="user_org_role_idx")]

    def __str__(self) -> str:
        return self.email

    @property
    def display_name(self) -> str:
        if self.first_name and self.last_name:
            return f"{self.first_name} {self.last_name}"
        return self.email

    @property
    def is_admin(self) -> bool:
        return self.role == self.Role.ADMIN
