"""
Tests for soft delete infrastructure.

Tests cover:
- SoftDeleteMixin behavior (soft_delete, restore, hard_delete)
- SoftDeleteManager filtering
- SoftDeleteAllManager access to all records
- SoftDeleteQuerySet bulk operations
"""

import time

import pytest

from apps.accounts.models import User
from tests.accounts.factories import UserFactory


@pytest.mark.django_db
class TestSoftDeleteMixin:
    """Tests for SoftDeleteMixin methods and properties."""

    def test_is_deleted_false_by_default(self) -> None:
        user = UserFactory.create()

        assert user.is_deleted is False
        assert user.deleted_at is None

    def test_soft_delete_sets_timestamp(self) -> None:
        user = UserFactory.create()

        user.soft_delete()

        user.refresh_from_db()
        assert user.is_deleted is True
        assert user.deleted_at is not None

    def test_soft_delete_updates_updated_at(self) -> None:
        user = UserFactory.create()
        original_updated_at = user.updated_at
        time.sleep(0.01)  # Ensure time difference

        user.soft_delete()

        user.refresh_from_db()
        assert user.updated_at > original_updated_at

    def test_soft_delete_skip_timestamp_update(self) -> None:
        user = UserFactory.create()
        original_updated_at = user.updated_at

        user.soft_delete(update_timestamp=False)

        user.refresh_from_db()
        assert user.updated_at == original_updated_at

    def test_restore_clears_deleted_at(self) -> None:
        user = UserFactory.create()
        user.soft_delete()

        user.restore()

        user.refresh_from_db()
        assert user.is_deleted is False

    def test_hard_delete_removes_row(self) -> None:
        user = UserFactory.create()
        pk = user.pk

        user.hard_delete()

        assert not User.all_objects.filter(pk=pk).exists()


@pytest.mark.django_db
class TestSoftDeleteManagers:
    """Tests for the default and all-rows managers."""

    def test_objects_excludes_deleted(self) -> None:
        alive = UserFactory.create()
        dead = UserFactory.create()
        dead.soft_delete()

        assert list(User.objects.all()) == [alive]

    def test_all_objects_includes_deleted(self) -> None:
        UserFactory.create()
        UserFactory.create().soft_delete()

        assert User.all_objects.count() == 2
        assert User.all_objects.dead().count() == 1

    def test_queryset_delete_is_soft(self) -> None:
        UserFactory.create_batch(2)

        count, detail = User.objects.all().delete()

        assert count == 2
        assert detail == {"accounts.User": 2}
        assert User.objects.count() == 0
        assert User.all_objects.count() == 2

    def test_queryset_hard_delete(self) -> None:
        UserFactory.create_batch(2)

        User.all_objects.all().hard_delete()

        assert User.all_objects.count() == 0
