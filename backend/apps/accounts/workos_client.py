"""
WorkOS client wrapper.

Provides a singleton SDK client configured from Django settings, and the
IdentityProvider facade the services talk to. The facade returns plain
dataclasses and converts every SDK or transport failure into
ExternalProviderError, so nothing above it depends on SDK types.
"""

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from functools import lru_cache
from typing import Any, TypeVar

import httpx
from django.conf import settings
from workos import WorkOSClient
from workos.exceptions import BaseRequestException

from apps.core.exceptions import ExternalProviderError
from apps.core.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

MEMBERSHIP_LOOKUP_LIMIT = 25


@lru_cache(maxsize=1)
def get_workos_client() -> WorkOSClient:
    """
    Get configured WorkOS client (singleton).

    Uses lru_cache to ensure only one client instance is created.
    """
    return WorkOSClient(
        api_key=settings.WORKOS_API_KEY,
        client_id=settings.WORKOS_CLIENT_ID,
    )


@dataclass(frozen=True)
class ProviderInvitation:
    id: str
    email: str
    state: str
    organization_id: str | None = None
    expires_at: datetime | None = None

    @property
    def is_pending(self) -> bool:
        return self.state == "pending"


@dataclass(frozen=True)
class ProviderMembership:
    id: str
    user_id: str
    organization_id: str
    status: str
    role: Any = None


@dataclass(frozen=True)
class ProviderUser:
    id: str
    email: str
    first_name: str | None = None
    last_name: str | None = None
    profile_picture_url: str | None = None


@dataclass(frozen=True)
class ProviderOrganization:
    id: str
    name: str


def provider_error_status(exc: BaseException) -> int | None:
    """Best-effort HTTP status of a provider failure."""
    for candidate in (
        getattr(exc, "status", None),
        getattr(exc, "status_code", None),
        getattr(getattr(exc, "response", None), "status_code", None),
    ):
        if isinstance(candidate, int):
            return candidate
        if isinstance(candidate, str) and candidate.isdigit() and len(candidate) == 3:
            return int(candidate)
    return None


def _parse_datetime(value: Any) -> datetime | None:
    if value is None or isinstance(value, datetime):
        return value
    try:
        return datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return None


class IdentityProvider:
    """Facade over the WorkOS user management and organizations APIs."""

    def __init__(self, client: WorkOSClient | None = None) -> None:
        self._client = client

    @property
    def client(self) -> WorkOSClient:
        if self._client is None:
            self._client = get_workos_client()
        return self._client

    def _call(self, operation: str, fn: Callable[[], T]) -> T:
        try:
            return fn()
        except BaseRequestException as e:
            status = provider_error_status(e)
            message = getattr(e, "message", None) or str(e)
            logger.warning("workos_request_failed", operation=operation, status=status, error=message)
            raise ExternalProviderError(message, status=status) from e
        except httpx.HTTPError as e:
            logger.warning("workos_transport_failed", operation=operation, error=str(e))
            raise ExternalProviderError(f"WorkOS unreachable: {e}") from e

    # --- Invitations ---

    def get_invitation(self, invitation_id: str) -> ProviderInvitation:
        inv = self._call(
            "get_invitation",
            lambda: self.client.user_management.get_invitation(invitation_id),
        )
        return self._to_invitation(inv)

    def send_invitation(
        self,
        email: str,
        organization_id: str,
        inviter_user_id: str | None = None,
        expires_in_days: int = 7,
    ) -> ProviderInvitation:
        inv = self._call(
            "send_invitation",
            lambda: self.client.user_management.send_invitation(
                email=email,
                organization_id=organization_id,
                expires_in_days=expires_in_days,
                inviter_user_id=inviter_user_id,
            ),
        )
        return self._to_invitation(inv)

    def revoke_invitation(self, invitation_id: str) -> None:
        self._call(
            "revoke_invitation",
            lambda: self.client.user_management.revoke_invitation(invitation_id),
        )

    # --- Memberships ---

    def list_memberships(
        self,
        user_id: str,
        statuses: tuple[str, ...] = ("active", "pending"),
        limit: int = MEMBERSHIP_LOOKUP_LIMIT,
    ) -> list[ProviderMembership]:
        page = self._call(
            "list_organization_memberships",
            lambda: self.client.user_management.list_organization_memberships(
                user_id=user_id,
                statuses=list(statuses),
                limit=limit,
            ),
        )
        return [
            ProviderMembership(
                id=m.id,
                user_id=m.user_id,
                organization_id=m.organization_id,
                status=m.status,
                role=getattr(m, "role", None),
            )
            for m in page.data
        ]

    def create_membership(self, user_id: str, organization_id: str, role_slug: str) -> ProviderMembership:
        m = self._call(
            "create_organization_membership",
            lambda: self.client.user_management.create_organization_membership(
                user_id=user_id,
                organization_id=organization_id,
                role_slug=role_slug,
            ),
        )
        return ProviderMembership(
            id=m.id,
            user_id=m.user_id,
            organization_id=m.organization_id,
            status=m.status,
            role=getattr(m, "role", None),
        )

    def delete_membership(self, membership_id: str) -> None:
        self._call(
            "delete_organization_membership",
            lambda: self.client.user_management.delete_organization_membership(membership_id),
        )

    # --- Users ---

    def get_user(self, user_id: str) -> ProviderUser:
        u = self._call("get_user", lambda: self.client.user_management.get_user(user_id))
        return ProviderUser(
            id=u.id,
            email=u.email,
            first_name=u.first_name,
            last_name=u.last_name,
            profile_picture_url=u.profile_picture_url,
        )

    def delete_user(self, user_id: str) -> None:
        self._call("delete_user", lambda: self.client.user_management.delete_user(user_id))

    # --- Organizations ---

    def create_organization(self, name: str, billing_email: str | None = None) -> ProviderOrganization:
        metadata = {"billing_email": billing_email} if billing_email else None
        org = self._call(
            "create_organization",
            lambda: self.client.organizations.create_organization(name=name, metadata=metadata),
        )
        return ProviderOrganization(id=org.id, name=org.name)

    def update_organization(
        self,
        organization_id: str,
        name: str | None = None,
        billing_email: str | None = None,
    ) -> ProviderOrganization:
        kwargs: dict[str, Any] = {"organization_id": organization_id}
        if name:
            kwargs["name"] = name
        if billing_email is not None:
            kwargs["metadata"] = {"billing_email": billing_email}
        org = self._call(
            "update_organization",
            lambda: self.client.organizations.update_organization(**kwargs),
        )
        return ProviderOrganization(id=org.id, name=org.name)

    @staticmethod
    def _to_invitation(inv: Any) -> ProviderInvitation:
        return ProviderInvitation(
            id=inv.id,
            email=inv.email,
            state=inv.state,
            organization_id=getattr(inv, "organization_id", None),
            expires_at=_parse_datetime(getattr(inv, "expires_at", None)),
        )


def get_identity_provider() -> IdentityProvider:
    """Provider facade bound to the singleton WorkOS client."""
    return IdentityProvider()
