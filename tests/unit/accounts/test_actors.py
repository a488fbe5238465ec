"""Unit tests for building actors from authenticated users."""

from __future__ import annotations

import pytest

from django.contrib.auth import get_user_model

from modules.accounts.actors import Actor
from modules.accounts.constants import Role

pytestmark = pytest.mark.unit

User = get_user_model()


def test_role_comes_from_profile(make_user):
    user = make_user("ops", Role.OPERATOR)
    actor = Actor.from_user(user)
    assert actor == Actor(id=user.pk, role=Role.OPERATOR, username="ops")
    assert actor.is_scoped is False


def test_superuser_without_profile_is_admin():
    user = User.objects.create_superuser(username="root", password="x", email="")
    actor = Actor.from_user(user)
    assert actor.role == Role.ADMIN
    assert actor.is_admin


def test_user_without_profile_falls_back_to_seller():
    user = User.objects.create_user(username="plain", password="x")
    actor = Actor.from_user(user)
    assert actor.role == Role.SELLER
    assert actor.is_scoped


def test_actor_is_immutable(seller):
    actor = Actor.from_user(seller)
    with pytest.raises(AttributeError):
        actor.role = Role.ADMIN
