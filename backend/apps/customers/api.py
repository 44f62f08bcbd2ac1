"""
Customer API endpoints.

Listing and reads are scoped by the effective user; creation needs a
non-client role; assignments are admin only.
"""

from django.http import HttpRequest
from ninja import Router

from apps.core.schemas import ErrorResponse, MessageResponse
from apps.core.security import BearerAuth
from apps.customers.schemas import AssignmentResponse, CreateCustomerRequest, CustomerResponse
from apps.customers.services import (
    assign_staff,
    create_customer,
    get_customer,
    list_customers,
    unassign_staff,
)

router = Router(tags=["customers"])
bearer_auth = BearerAuth()


@router.get(
    "/",
    response={200: list[CustomerResponse], 403: ErrorResponse},
    auth=bearer_auth,
    operation_id="listCustomers",
    summary="List visible customers",
)
def list_visible(request: HttpRequest) -> list[CustomerResponse]:
    return [CustomerResponse.from_customer(c) for c in list_customers(request.auth)]  # type: ignore[attr-defined]


@router.post(
    "/",
    response={201: CustomerResponse, 403: ErrorResponse, 422: ErrorResponse},
    auth=bearer_auth,
    operation_id="createCustomer",
    summary="Create a customer",
)
def create(request: HttpRequest, payload: CreateCustomerRequest):
    customer = create_customer(
        request.auth,  # type: ignore[attr-defined]
        name=payload.name,
        email=payload.email,
        notes=payload.notes,
    )
    return 201, CustomerResponse.from_customer(customer)


@router.get(
    "/{customer_id}",
    response={200: CustomerResponse, 403: ErrorResponse, 404: ErrorResponse},
    auth=bearer_auth,
    operation_id="getCustomer",
    summary="Get a customer",
)
def retrieve(request: HttpRequest, customer_id: int) -> CustomerResponse:
    return CustomerResponse.from_customer(get_customer(request.auth, customer_id))  # type: ignore[attr-defined]


@router.post(
    "/{customer_id}/assignments/{user_id}",
    response={201: AssignmentResponse, 403: ErrorResponse, 404: ErrorResponse, 409: ErrorResponse, 422: ErrorResponse},
    auth=bearer_auth,
    operation_id="assignStaff",
    summary="Assign a staff member to a customer",
)
def assign(request: HttpRequest, customer_id: int, user_id: int):
    assignment = assign_staff(request.auth, customer_id, user_id)  # type: ignore[attr-defined]
    return 201, AssignmentResponse(
        id=assignment.id,
        customer_id=assignment.customer_id,
        staff_user_id=assignment.staff_user_id,
        created_at=assignment.created_at,
    )


@router.delete(
    "/{customer_id}/assignments/{user_id}",
    response={200: MessageResponse, 403: ErrorResponse, 404: ErrorResponse},
    auth=bearer_auth,
    operation_id="unassignStaff",
    summary="Remove a staff member from a customer",
)
def unassign(request: HttpRequest, customer_id: int, user_id: int) -> MessageResponse:
    unassign_staff(request.auth, customer_id, user_id)  # type: ignore[attr-defined]
    return MessageResponse(message="Staff unassigned")
