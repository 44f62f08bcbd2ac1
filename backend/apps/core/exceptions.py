"""
Error taxonomy shared by the identity and authorization services.

Services raise these; the API layer maps them to `{"detail": ...}` responses
using `status_code`. Provider SDK errors never cross a service boundary
unwrapped - the identity provider facade converts them to ExternalProviderError.
"""

# Provider statuses that mean "this object is already in its final state".
TERMINAL_PROVIDER_STATUSES = frozenset({400, 404, 409, 422})

TERMINAL_PROVIDER_MESSAGES = ("accepted", "revoked", "expired", "not found", "not pending")


class IdentityError(Exception):
    """Base exception for identity and authorization errors."""

    status_code = 400

    def __init__(self, message: str = "") -> None:
        super().__init__(message)
        self.message = message


class Unauthenticated(IdentityError):
    """No verified identity, or the identity has no active local user."""

    status_code = 401


class AuthorizationError(IdentityError):
    """Authenticated, but not allowed to perform the action."""

    status_code = 403


class NotFoundError(IdentityError):
    """Referenced record does not exist."""

    status_code = 404


class ConflictError(IdentityError):
    """State conflict: duplicates, stale expectations, unresolved invitations."""

    status_code = 409


class ValidationError(IdentityError):
    """Request is well formed but violates a business rule."""

    status_code = 422


class ExternalProviderError(IdentityError):
    """
    Identity provider call failed.

    `status` is the provider's HTTP status when one was returned.
    """

    status_code = 502

    def __init__(self, message: str = "", status: int | None = None) -> None:
        super().__init__(message)
        self.status = status

    @property
    def is_terminal(self) -> bool:
        """True when retrying cannot change the outcome (already gone, already done)."""
        if self.status in TERMINAL_PROVIDER_STATUSES:
            return True
        lowered = self.message.lower()
        return any(marker in lowered for marker in TERMINAL_PROVIDER_MESSAGES)

    @property
    def is_already_member(self) -> bool:
        return self.status == 409 or "already a member" in self.message.lower()
