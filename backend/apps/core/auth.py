"""
Authentication and authorization context for the request lifecycle.

WorkOSAuthMiddleware verifies the access token and builds a RequestContext;
endpoints and services consume it. The context carries two identities:

- `user`: the literal authenticated user. Permission checks use its role.
- `effective_user`: who the request acts as. Data scoping uses it. Differs
  from `user` only while an admin is impersonating another member.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from apps.core.exceptions import AuthorizationError, NotFoundError, Unauthenticated

if TYPE_CHECKING:
    from apps.accounts.models import User
    from apps.organizations.models import Organization


@dataclass(frozen=True)
class IdentityClaims:
    """Verified access token claims."""

    subject: str
    email: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    organization_id: str | None = None
    # `act.sub` - set by the provider when its own impersonation is active
    act_subject: str | None = None

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "IdentityClaims":
        act = payload.get("act")
        return cls(
            subject=payload["sub"],
            email=payload.get("email"),
            first_name=payload.get("first_name"),
            last_name=payload.get("last_name"),
            organization_id=payload.get("org_id"),
            act_subject=act.get("sub") if isinstance(act, dict) else None,
        )


@dataclass
class RequestContext:
    """
    Authentication context attached to requests as `request.auth`.

    Attributes:
        identity: Verified token claims, or None when no valid token was sent
        user: Literal authenticated local user (never soft-deleted)
        effective_user: Impersonation target, or `user`
        organization: The literal user's organization
        failed: True if a token was sent but could not be verified
    """

    identity: IdentityClaims | None = None
    user: "User | None" = None
    effective_user: "User | None" = None
    organization: "Organization | None" = None
    failed: bool = False

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None

    @property
    def is_impersonating(self) -> bool:
        """True if either the local impersonation pointer or the token `act` claim is set."""
        if self.identity is not None and self.identity.act_subject:
            return True
        return self.user is not None and self.user.impersonating_id is not None

    def require_identity(self) -> IdentityClaims:
        if self.identity is None:
            raise Unauthenticated("Not authenticated")
        return self.identity

    def require_user(self) -> "User":
        """Literal user, or 401."""
        self.require_identity()
        if self.user is None:
            raise Unauthenticated("User record not found")
        return self.user

    def require_member(self) -> tuple["User", "Organization"]:
        """Literal user with an organization and role, or 401/403."""
        user = self.require_user()
        if self.organization is None or user.role is None:
            raise AuthorizationError("User not in organization")
        return user, self.organization

    def require_admin(self) -> tuple["User", "Organization"]:
        """Literal user must be an admin. Impersonation does not grant or remove it."""
        user, org = self.require_member()
        if user.role != "admin":
            raise AuthorizationError("Admin access required")
        return user, org

    def require_writer(self) -> tuple["User", "Organization"]:
        """Clients are read-only."""
        user, org = self.require_member()
        if user.role == "client":
            raise AuthorizationError("Clients have read-only access")
        return user, org

    def block_during_impersonation(self, action: str) -> None:
        if self.is_impersonating:
            raise AuthorizationError(f"Cannot {action} while impersonating")

    def acting_user(self) -> "User":
        """Effective user for data scoping; requires membership."""
        user, _ = self.require_member()
        return self.effective_user or user

    def ensure_same_org(self, entity: Any, not_found_message: str = "Not found") -> Any:
        """
        Organization isolation check.

        Missing entities are 404, entities from another organization are 403.
        """
        _, org = self.require_member()
        if entity is None:
            raise NotFoundError(not_found_message)
        if entity.organization_id != org.id:
            raise AuthorizationError("Access denied")
        return entity

    def ensure_not_self(self, target: "User", action: str) -> None:
        user = self.require_user()
        if target.pk == user.pk:
            raise AuthorizationError(f"Cannot {action} yourself")


def resolve_request_context(identity: IdentityClaims) -> RequestContext:
    """
    Build a RequestContext from verified claims.

    Soft-deleted users do not resolve: the token is valid but the local user is
    gone, so the context has an identity and no user.
    """
    from apps.accounts.models import User

    user = (
        User.objects.select_related("organization", "impersonating")
        .filter(workos_user_id=identity.subject)
        .first()
    )
    if user is None:
        return RequestContext(identity=identity)

    effective_user = user
    target = user.impersonating
    if (
        user.role == "admin"
        and target is not None
        and not target.is_deleted
        and target.organization_id == user.organization_id
    ):
        effective_user = target

    return RequestContext(
        identity=identity,
        user=user,
        effective_user=effective_user,
        organization=user.organization,
    )
