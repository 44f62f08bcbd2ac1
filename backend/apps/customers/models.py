"""
Customers models - client companies managed by an organization.
"""

from django.db import models

from apps.core.models import TenantScopedModel


class Customer(TenantScopedModel):
    """A client company. Client-role users belong to exactly one."""

    name = models.CharField(max_length=255)
    email = models.EmailField(blank=True)
    notes = models.TextField(blank=True)

    class Meta:
        ordering = ["name"]
        indexes = [models.Index(fields=["organization", "name"], name="customer_org_name_idx")]

    def __str__(self) -> str:
        return self.name


class StaffCustomerAssignment(TenantScopedModel):
    """Grants a staff user access to one customer."""

    staff_user = models.ForeignKey(
        "accounts.User",
        on_delete=models.CASCADE,
        related_name="customer_assignments",
    )
    customer = models.ForeignKey(
        Customer,
        on_delete=models.CASCADE,
        related_name="staff_assignments",
    )

    class Meta:
        ordering = ["-created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["staff_user", "customer"],
                name="unique_staff_customer_assignment",
            )
        ]

    def __str__(self) -> str:
        return f"{self.staff_user_id} -> {self.customer_id}"
