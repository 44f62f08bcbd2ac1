"""
Plan tiers and usage limits.

Paid limits apply only while the subscription is active or trialing; every
other status (and unknown product keys) falls back to the free tier.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class PlanLimits:
    """Usage caps for an organization."""

    max_customers: int
    max_staff: int
    max_clients: int


@dataclass(frozen=True)
class PlanTier:
    name: str
    limits: PlanLimits


FREE_PLAN_NAME = "Free"
FREE_TIER_LIMITS = PlanLimits(max_customers=3, max_staff=2, max_clients=10)

_PRO = PlanTier(name="Pro", limits=PlanLimits(max_customers=25, max_staff=10, max_clients=100))
_BUSINESS = PlanTier(
    name="Business", limits=PlanLimits(max_customers=100, max_staff=50, max_clients=500)
)

PLAN_TIERS: dict[str, PlanTier] = {
    "proMonthly": _PRO,
    "proYearly": _PRO,
    "businessMonthly": _BUSINESS,
    "businessYearly": _BUSINESS,
}

PAID_STATUSES = frozenset({"active", "trialing"})


def get_limits_for_product_key(product_key: str | None) -> PlanLimits:
    if not product_key or product_key not in PLAN_TIERS:
        return FREE_TIER_LIMITS
    return PLAN_TIERS[product_key].limits


def get_limits_for_subscription(status: str | None, product_key: str | None) -> PlanLimits:
    """Limits for a subscription; free tier unless the subscription is paid."""
    if status not in PAID_STATUSES:
        return FREE_TIER_LIMITS
    return get_limits_for_product_key(product_key)


def get_plan_name(product_key: str | None) -> str:
    tier = PLAN_TIERS.get(product_key or "")
    return tier.name if tier else FREE_PLAN_NAME
