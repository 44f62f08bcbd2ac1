"""
Customer services - role-scoped access and staff assignments.

Reads are scoped by the effective user so an impersonating admin sees what
the impersonated member sees. Writes are gated on the literal user's role.
"""

from django.db import IntegrityError, transaction
from django.db.models import QuerySet

from apps.accounts.models import User
from apps.core.auth import RequestContext
from apps.core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from apps.core.logging import get_logger
from apps.customers.models import Customer, StaffCustomerAssignment

logger = get_logger(__name__)


def list_customers(ctx: RequestContext) -> QuerySet[Customer]:
    """Admins see every customer, staff their assigned ones, clients their own."""
    _, org = ctx.require_member()
    acting = ctx.acting_user()
    customers = Customer.objects.filter(organization=org)

    if acting.is_admin:
        return customers
    if acting.role == User.Role.STAFF:
        return customers.filter(staff_assignments__staff_user=acting).distinct()
    if acting.customer_id is None:
        return customers.none()
    return customers.filter(pk=acting.customer_id)


def can_access_customer(user: User, customer: Customer) -> bool:
    if user.organization_id != customer.organization_id:
        return False
    if user.is_admin:
        return True
    if user.role == User.Role.STAFF:
        return StaffCustomerAssignment.objects.filter(staff_user=user, customer=customer).exists()
    return user.customer_id == customer.pk


def get_customer(ctx: RequestContext, customer_id: int) -> Customer:
    customer = ctx.ensure_same_org(
        Customer.objects.filter(pk=customer_id).first(),
        "Customer not found",
    )
    if not can_access_customer(ctx.acting_user(), customer):
        raise AuthorizationError("Access denied")
    return customer


def create_customer(ctx: RequestContext, name: str, email: str = "", notes: str = "") -> Customer:
    """
    Create a customer, enforcing the plan's customer cap.

    Staff creators are assigned to the new customer so they can see it.
    """
    user, org = ctx.require_writer()
    name = (name or "").strip()
    if not name:
        raise ValidationError("Customer name is required")

    limits = org.limits
    with transaction.atomic():
        if Customer.objects.filter(organization=org).count() >= limits.max_customers:
            raise ValidationError(
                f"Customer limit reached. Maximum {limits.max_customers} customers "
                "allowed on your plan. Upgrade to add more."
            )
        customer = Customer.objects.create(organization=org, name=name, email=email or "", notes=notes or "")

        acting = ctx.acting_user()
        if acting.role == User.Role.STAFF:
            StaffCustomerAssignment.objects.create(organization=org, staff_user=acting, customer=customer)

    logger.info("customer_created", customer_id=customer.id, created_by=user.id)
    return customer


def _get_assignment_targets(ctx: RequestContext, customer_id: int, user_id: int) -> tuple[Customer, User]:
    customer = ctx.ensure_same_org(Customer.objects.filter(pk=customer_id).first(), "Customer not found")
    staff_user = ctx.ensure_same_org(User.objects.filter(pk=user_id).first(), "User not found")
    return customer, staff_user


def assign_staff(ctx: RequestContext, customer_id: int, user_id: int) -> StaffCustomerAssignment:
    _, org = ctx.require_admin()
    customer, staff_user = _get_assignment_targets(ctx, customer_id, user_id)
    if staff_user.role != User.Role.STAFF:
        raise ValidationError("Only staff users can be assigned to customers")

    try:
        with transaction.atomic():
            assignment = StaffCustomerAssignment.objects.create(
                organization=org,
                staff_user=staff_user,
                customer=customer,
            )
    except IntegrityError as e:
        raise ConflictError("Staff already assigned to this customer") from e

    logger.info("staff_assigned", customer_id=customer.id, staff_user_id=staff_user.id)
    return assignment


def unassign_staff(ctx: RequestContext, customer_id: int, user_id: int) -> None:
    _, org = ctx.require_admin()
    assignment = StaffCustomerAssignment.objects.filter(
        customer_id=customer_id,
        staff_user_id=user_id,
    ).first()
    if assignment is None:
        raise NotFoundError("Assignment not found")
    if assignment.organization_id != org.id:
        raise AuthorizationError("Access denied")

    assignment.delete()
    logger.info("staff_unassigned", customer_id=customer_id, staff_user_id=user_id)


def list_assigned_staff(ctx: RequestContext, customer_id: int) -> QuerySet[User]:
    customer = get_customer(ctx, customer_id)
    return User.objects.filter(customer_assignments__customer=customer).order_by("email")
