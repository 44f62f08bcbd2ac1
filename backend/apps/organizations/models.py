"""
Organizations models - multi-tenancy foundation.
"""

from django.db import models

from apps.billing.plans import FREE_TIER_LIMITS, get_limits_for_subscription
from apps.core.models import TimestampedModel


class Organization(TimestampedModel):
    """
    Local replica of a WorkOS organization.

    WorkOS is the source of truth for the organization itself; this model
    holds the tenant's subscription state and usage caps.
    """

    class SubscriptionStatus(models.TextChoices):
        INACTIVE = "inactive", "Inactive"
        ACTIVE = "active", "Active"
        TRIALING = "trialing", "Trialing"
        CANCELLED = "cancelled", "Cancelled"
        PAST_DUE = "past_due", "Past Due"
        UNPAID = "unpaid", "Unpaid"
        PAUSED = "paused", "Paused"

    workos_org_id = models.CharField(
        max_length=255,
        unique=True,
        db_index=True,
        help_text="WorkOS organization id, e.g. 'org_01H...'",
    )
    name = models.CharField(max_length=255)
    billing_email = models.EmailField(blank=True)

    # Subscription (written by the billing integration)
    subscription_id = models.CharField(max_length=255, blank=True, db_index=True)
    subscription_status = models.CharField(
        max_length=20,
        choices=SubscriptionStatus.choices,
        default=SubscriptionStatus.INACTIVE,
    )
    plan_id = models.CharField(max_length=100, default="free")
    trial_ends_at = models.DateTimeField(null=True, blank=True)
    ends_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="Set when cancelled; access continues until this time",
    )

    # Usage caps
    max_customers = models.PositiveIntegerField(default=FREE_TIER_LIMITS.max_customers)
    max_staff = models.PositiveIntegerField(default=FREE_TIER_LIMITS.max_staff)
    max_clients = models.PositiveIntegerField(default=FREE_TIER_LIMITS.max_clients)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return self.name

    @property
    def limits(self):
        """Effective plan limits from the current subscription."""
        return get_limits_for_subscription(self.subscription_status, self.plan_id)
