"""
Factories for invitations models.
"""

from datetime import timedelta

import factory
from django.utils import timezone
from factory.django import DjangoModelFactory

from apps.invitations.models import PendingInvitation
from tests.accounts.factories import OrganizationFactory


class PendingInvitationFactory(DjangoModelFactory):
    """Unexpired staff invitation by default."""

    class Meta:
        model = PendingInvitation

    workos_invitation_id = factory.Sequence(lambda n: f"invitation_test_{n}")
    email = factory.Sequence(lambda n: f"invitee{n}@example.com")
    organization = factory.SubFactory(OrganizationFactory)
    role = PendingInvitation.Role.STAFF
    customer = None
    inviter = None
    expires_at = factory.LazyFunction(lambda: timezone.now() + timedelta(days=7))

    class Params:
        expired = factory.Trait(expires_at=factory.LazyFunction(lambda: timezone.now() - timedelta(days=1)))
