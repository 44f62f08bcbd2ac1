"""
Role labels from WorkOS memberships.

WorkOS reports a membership's role either as a bare slug ("admin") or as an
object ({"slug": "admin", "name": "Admin"}). Both shapes are parsed into a
tagged union before normalizing to a local role.
"""

from dataclasses import dataclass
from typing import Any

from apps.accounts.models import User

Role = User.Role

# WorkOS default role slug; locally it means staff
PROVIDER_MEMBER_SLUG = "member"


@dataclass(frozen=True)
class RoleSlug:
    slug: str


@dataclass(frozen=True)
class RoleObject:
    slug: str | None = None
    name: str | None = None


RoleLabel = RoleSlug | RoleObject


def parse_role_label(raw: Any) -> RoleLabel | None:
    """Parse a raw role value (string, dict or SDK object) into a RoleLabel."""
    if raw is None:
        return None
    if isinstance(raw, str):
        return RoleSlug(raw)
    if isinstance(raw, dict):
        return RoleObject(slug=raw.get("slug"), name=raw.get("name"))
    slug = getattr(raw, "slug", None)
    name = getattr(raw, "name", None)
    if slug is None and name is None:
        return None
    return RoleObject(slug=slug, name=name)


def _normalize_token(value: str | None) -> Role | None:
    if not value:
        return None
    token = value.strip().lower()
    if token == PROVIDER_MEMBER_SLUG:
        return Role.STAFF
    if token in Role.values:
        return Role(token)
    return None


def normalize_provider_role(raw: Any) -> Role | None:
    """
    Map a WorkOS role label to a local role.

    "member" maps to staff; "admin", "staff" and "client" map to themselves.
    For object labels the slug is used when present, otherwise the display
    name. Anything else is None and the caller picks its own default.
    """
    label = parse_role_label(raw)
    if isinstance(label, RoleSlug):
        return _normalize_token(label.slug)
    if isinstance(label, RoleObject):
        return _normalize_token(label.slug if label.slug is not None else label.name)
    return None
