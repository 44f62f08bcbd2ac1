"""
Django Ninja API configuration.
"""

from django.http import HttpRequest, HttpResponse
from ninja import NinjaAPI

from apps.accounts.api import router as auth_router
from apps.accounts.api import users_router
from apps.core.exceptions import IdentityError
from apps.core.logging import get_logger
from apps.customers.api import router as customers_router
from apps.invitations.api import router as invitations_router
from apps.organizations.api import router as organization_router

logger = get_logger(__name__)

api = NinjaAPI(
    title="Workspace API",
    version="1.0.0",
    description="Multi-tenant workspace API with WorkOS authentication, role-based access and invitations.",
    openapi_extra={
        "info": {
            "contact": {"name": "API Support"},
        },
        "tags": [
            {"name": "auth", "description": "Login-time sync, current user, onboarding"},
            {"name": "organization", "description": "Organization settings and usage"},
            {"name": "users", "description": "Member management and impersonation (admin)"},
            {"name": "invitations", "description": "Staff and client invitations (admin)"},
            {"name": "customers", "description": "Customers and staff assignments"},
            {"name": "health", "description": "Service health and readiness checks"},
        ],
        "components": {
            "securitySchemes": {
                "bearerAuth": {
                    "type": "http",
                    "scheme": "bearer",
                    "bearerFormat": "JWT",
                    "description": "WorkOS access token. Include as: Authorization: Bearer <access_token>",
                }
            }
        },
    },
)


@api.exception_handler(IdentityError)
def identity_error_handler(request: HttpRequest, exc: IdentityError) -> HttpResponse:
    if exc.status_code >= 500:
        logger.warning("api_provider_error", path=request.path, error=exc.message)
    return api.create_response(request, {"detail": exc.message}, status=exc.status_code)


# Register routers
api.add_router("/auth", auth_router)
api.add_router("/organization", organization_router)
api.add_router("/users", users_router)
api.add_router("/invitations", invitations_router)
api.add_router("/customers", customers_router)


@api.get("/health", tags=["health"], operation_id="healthCheck", summary="Health check")
def health_check(request: HttpRequest) -> dict:
    """Health check endpoint for load balancer."""
    return {"status": "ok"}
