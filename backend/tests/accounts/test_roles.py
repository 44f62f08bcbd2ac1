"""
Tests for WorkOS role label parsing and normalization.
"""

from types import SimpleNamespace

import pytest

from apps.accounts.models import User
from apps.accounts.roles import RoleObject, RoleSlug, normalize_provider_role, parse_role_label


class TestParseRoleLabel:
    def test_string_is_slug(self) -> None:
        assert parse_role_label("admin") == RoleSlug("admin")

    def test_dict_is_object(self) -> None:
        assert parse_role_label({"slug": "admin", "name": "Admin"}) == RoleObject(slug="admin", name="Admin")

    def test_sdk_object_is_object(self) -> None:
        assert parse_role_label(SimpleNamespace(slug="member")) == RoleObject(slug="member", name=None)

    def test_none_and_empty_object(self) -> None:
        assert parse_role_label(None) is None
        assert parse_role_label(object()) is None


class TestNormalizeProviderRole:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("member", User.Role.STAFF),
            ("admin", User.Role.ADMIN),
            ("staff", User.Role.STAFF),
            ("client", User.Role.CLIENT),
            (" Admin ", User.Role.ADMIN),
            ({"slug": "member"}, User.Role.STAFF),
            ({"name": "Client"}, User.Role.CLIENT),
            (SimpleNamespace(slug="admin", name="Owner"), User.Role.ADMIN),
        ],
    )
    def test_known_labels(self, raw, expected) -> None:
        assert normalize_provider_role(raw) == expected

    @pytest.mark.parametrize("raw", [None, "owner", "", {"slug": "billing"}, {}])
    def test_unknown_labels_are_none(self, raw) -> None:
        assert normalize_provider_role(raw) is None

    def test_slug_wins_over_name(self) -> None:
        assert normalize_provider_role({"slug": "owner", "name": "Admin"}) is None
