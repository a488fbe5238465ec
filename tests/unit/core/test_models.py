"""Unit tests for the shared abstract models, exercised through real tables."""

from __future__ import annotations

import uuid

import pytest
from freezegun import freeze_time

from django.utils import timezone

from modules.catalog.models import PaymentMethod
from modules.core.models import SoftDeleteQuerySet
from modules.orders.models import Order

pytestmark = pytest.mark.unit


class TestBaseModel:
    def test_id_is_uuid_version_7(self):
        obj = PaymentMethod.objects.create(name="Boleto")
        assert isinstance(obj.id, uuid.UUID)
        assert obj.id.version == 7

    def test_ids_are_time_ordered(self):
        first = PaymentMethod.objects.create(name="first")
        second = PaymentMethod.objects.create(name="second")
        assert str(first.id) < str(second.id)

    def test_id_is_not_editable(self):
        assert PaymentMethod._meta.get_field("id").editable is False

    def test_save_with_update_fields_refreshes_updated_at(self):
        with freeze_time("2026-03-01 10:00:00"):
            obj = PaymentMethod.objects.create(name="original")
        with freeze_time("2026-03-01 11:00:00"):
            obj.name = "renamed"
            obj.save(update_fields=["name"])
        obj.refresh_from_db()
        assert obj.updated_at > obj.created_at


class TestSoftDeleteModel:
    def test_new_order_is_alive(self, make_order):
        order = make_order()
        assert order.is_deleted is False
        assert Order.objects.alive().filter(pk=order.pk).exists()

    @freeze_time("2026-06-15 12:00:00")
    def test_delete_stamps_deleted_at(self, make_order):
        order = make_order()
        assert order.delete() == (1, {"orders.Order": 1})
        order.refresh_from_db()
        assert order.deleted_at == timezone.now()

    def test_second_delete_is_noop(self, make_order):
        order = make_order()
        order.delete()
        assert order.delete() == (0, {})

    def test_deleted_row_stays_in_table(self, make_order):
        order = make_order()
        order.delete()
        assert Order.objects.filter(pk=order.pk).exists()
        assert not Order.objects.alive().filter(pk=order.pk).exists()


class TestSoftDeleteQuerySet:
    def test_objects_returns_soft_delete_queryset(self):
        assert isinstance(Order.objects.all(), SoftDeleteQuerySet)

    def test_bulk_delete_skips_already_deleted(self, make_order):
        first, second = make_order(), make_order()
        first.delete()
        count, _ = Order.objects.filter(pk__in=[first.pk, second.pk]).delete()
        assert count == 1
        assert Order.objects.alive().count() == 0

    def test_purge_removes_every_row(self, make_order):
        first, second = make_order(), make_order()
        first.delete()
        _, per_model = Order.objects.purge()
        assert per_model["orders.Order"] == 2
        assert not Order.objects.exists()
