"""
Customer API schemas.
"""

from datetime import datetime

from pydantic import BaseModel, Field

from apps.customers.models import Customer


class CreateCustomerRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=255, examples=["Globex"])
    email: str = Field(default="", examples=["contact@globex.com"])
    notes: str = Field(default="")


class CustomerResponse(BaseModel):
    id: int
    name: str
    email: str
    notes: str
    created_at: datetime

    @classmethod
    def from_customer(cls, customer: Customer) -> "CustomerResponse":
        return cls(
            id=customer.id,
            name=customer.name,
            email=customer.email,
            notes=customer.notes,
            created_at=customer.created_at,
        )


class AssignmentResponse(BaseModel):
    id: int
    customer_id: int
    staff_user_id: int
    created_at: datetime
