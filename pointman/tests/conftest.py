"""Pytest fixtures for Pointman tests."""

import pytest
from django.contrib.auth import get_user_model

from pointman.models import Member, Reward, Store


@pytest.fixture
def member(db):
    """Linked member with a starting balance of 120."""
    return Member.objects.create(
        name="Aisha Rahman",
        email="aisha@example.com",
        phone_number="+971501234567",
        pos_customer_id="LINGA-CUST-001",
        points_balance=120,
    )


@pytest.fixture
def unlinked_member(db):
    """Member without a POS customer id."""
    return Member.objects.create(name="Omar Haddad", email="omar@example.com")


@pytest.fixture
def reward(db):
    return Reward.objects.create(
        name="Free Coffee",
        description="Any size, any blend",
        points_cost=50,
    )


@pytest.fixture
def expensive_reward(db):
    return Reward.objects.create(name="Dinner for Two", points_cost=500)


@pytest.fixture
def inactive_reward(db):
    return Reward.objects.create(name="Retired Mug", points_cost=10, is_active=False)


@pytest.fixture
def store(db):
    return Store.objects.create(name="Dubai Mall", pos_store_id="STORE-DXB-01")


@pytest.fixture
def user(db):
    return get_user_model().objects.create_user(username="aisha", password="s3cret-pass")


@pytest.fixture
def member_with_user(member, user):
    member.user = user
    member.save()
    return member


@pytest.fixture
def sale_payload():
    """Factory for Linga-style sale payloads."""

    def make(order_id="X1", customer="LINGA-CUST-001", paid=1000, **extra):
        payload = {
            "saleUniqueId": order_id,
            "paidAmount": paid,
            "customer": customer,
            "store": "STORE-DXB-01",
            "dateCreated": "2025-03-01T10:00:00Z",
        }
        payload.update(extra)
        return payload

    return make
