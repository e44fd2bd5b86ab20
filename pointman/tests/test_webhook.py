"""
Tests for POS webhook ingestion:
- Points conversion policy
- Payload field mapping and fallbacks
- Idempotent crediting per order id
- Failures acknowledged, logged and rolled back
"""

import threading
from datetime import datetime, timezone as dt_timezone
from decimal import Decimal
from unittest.mock import patch

import pytest
from django.db import OperationalError, connection, connections
from django.test import override_settings
from django.utils import timezone

from pointman.models import EarnEvent, InsertOutcome, Member
from pointman.services.webhook import (
    IngestStatus,
    PosSale,
    WebhookService,
    calculate_points,
)
from pointman.signals import points_earned


pytestmark = pytest.mark.django_db


# ═══════════════════════════════════════════════════════════════════
# Points conversion
# ═══════════════════════════════════════════════════════════════════


class TestCalculatePoints:
    def test_one_point_per_ten_major_units(self):
        assert calculate_points(Decimal("10.00")) == 1

    def test_floor_rounding(self):
        assert calculate_points(Decimal("25.50")) == 2
        assert calculate_points(Decimal("9.99")) == 0

    def test_missing_or_non_positive_amount(self):
        assert calculate_points(None) == 0
        assert calculate_points(Decimal("0")) == 0
        assert calculate_points(Decimal("-40")) == 0

    def test_custom_divisor(self):
        assert calculate_points(Decimal("100"), divisor=5) == 20

    @override_settings(POINTMAN={"EARN_RATE_DIVISOR": 1})
    def test_divisor_from_settings(self):
        assert calculate_points(Decimal("7.80")) == 7


# ═══════════════════════════════════════════════════════════════════
# Payload mapping
# ═══════════════════════════════════════════════════════════════════


class TestPosSaleFromPayload:
    def test_full_payload(self, sale_payload):
        sale = PosSale.from_payload(sale_payload(paid=2550))

        assert sale.order_id == "X1"
        assert sale.customer_id == "LINGA-CUST-001"
        assert sale.store_id == "STORE-DXB-01"
        assert sale.amount == Decimal("25.50")
        assert sale.occurred_at == datetime(2025, 3, 1, 10, 0, tzinfo=dt_timezone.utc)

    def test_order_id_falls_back_to_id(self):
        sale = PosSale.from_payload({"id": 981, "customer": "C1"})
        assert sale.order_id == "981"

    def test_sale_unique_id_preferred_over_id(self):
        sale = PosSale.from_payload({"saleUniqueId": "S-1", "id": "I-1"})
        assert sale.order_id == "S-1"

    def test_amount_falls_back_to_net_sales(self):
        sale = PosSale.from_payload({"netSales": 5000})
        assert sale.amount == Decimal("50")

    def test_paid_amount_wins_even_when_zero(self):
        sale = PosSale.from_payload({"paidAmount": 0, "netSales": 5000})
        assert sale.amount == Decimal("0")

    def test_numeric_string_amount(self):
        sale = PosSale.from_payload({"paidAmount": "1234"})
        assert sale.amount == Decimal("12.34")

    @pytest.mark.parametrize(
        "value", ["abc", "NaN", "Infinity", True, "", "1e40", 10**25, "1e999999999"]
    )
    def test_unusable_amount_is_none(self, value):
        sale = PosSale.from_payload({"paidAmount": value})
        assert sale.amount is None

    def test_missing_date_uses_receipt_time(self):
        before = timezone.now()
        sale = PosSale.from_payload({})
        assert sale.occurred_at >= before

    def test_unparseable_date_uses_receipt_time(self, caplog):
        before = timezone.now()
        sale = PosSale.from_payload({"dateCreated": "yesterday-ish"})
        assert sale.occurred_at >= before
        assert "unparseable dateCreated" in caplog.text

    def test_naive_date_made_aware(self):
        sale = PosSale.from_payload({"dateCreated": "2025-03-01T14:00:00"})
        assert timezone.is_aware(sale.occurred_at)


# ═══════════════════════════════════════════════════════════════════
# Ingestion
# ═══════════════════════════════════════════════════════════════════


class TestWebhookIngest:
    def test_credits_linked_member(self, member, sale_payload):
        result = WebhookService.ingest(sale_payload(order_id="X1", paid=25000))

        assert result.status is IngestStatus.CREDITED
        assert result.points == 25
        assert result.members_credited == 1

        member.refresh_from_db()
        assert member.points_balance == 145

        event = EarnEvent.objects.get(pos_order_id="X1")
        assert event.points_earned == 25
        assert event.total_amount == Decimal("250.00")
        assert event.pos_store_id == "STORE-DXB-01"
        assert event.raw_payload["saleUniqueId"] == "X1"

    def test_duplicate_delivery_is_noop(self, member, sale_payload):
        payload = sale_payload(order_id="X1", paid=25000)

        first = WebhookService.ingest(payload)
        second = WebhookService.ingest(payload)

        assert first.status is IngestStatus.CREDITED
        assert second.status is IngestStatus.DUPLICATE
        assert EarnEvent.objects.filter(pos_order_id="X1").count() == 1
        member.refresh_from_db()
        assert member.points_balance == 145

    def test_duplicate_with_different_amount_still_noop(self, member, sale_payload):
        WebhookService.ingest(sale_payload(order_id="X1", paid=25000))
        result = WebhookService.ingest(sale_payload(order_id="X1", paid=99000))

        assert result.status is IngestStatus.DUPLICATE
        member.refresh_from_db()
        assert member.points_balance == 145

    def test_missing_customer_ignored(self, member, sale_payload):
        result = WebhookService.ingest(sale_payload(customer=None))

        assert result.status is IngestStatus.IGNORED
        assert not EarnEvent.objects.exists()

    def test_missing_order_id_ignored(self, member):
        result = WebhookService.ingest({"customer": "LINGA-CUST-001", "paidAmount": 5000})

        assert result.status is IngestStatus.IGNORED
        assert not EarnEvent.objects.exists()

    def test_non_object_payload_ignored(self, db):
        assert WebhookService.ingest(["not", "a", "sale"]).status is IngestStatus.IGNORED

    def test_zero_points_not_recorded(self, member, sale_payload):
        result = WebhookService.ingest(sale_payload(paid=999))

        assert result.status is IngestStatus.NO_POINTS
        assert not EarnEvent.objects.exists()
        member.refresh_from_db()
        assert member.points_balance == 120

    def test_missing_amount_not_recorded(self, member, sale_payload):
        result = WebhookService.ingest(sale_payload(paid=None))
        assert result.status is IngestStatus.NO_POINTS

    @pytest.mark.parametrize("paid", ["1e40", 10**25])
    def test_out_of_range_amount_acknowledged(self, member, sale_payload, paid):
        result = WebhookService.ingest(sale_payload(order_id="BIG", paid=paid))

        assert result.status is IngestStatus.NO_POINTS
        assert not EarnEvent.objects.exists()
        member.refresh_from_db()
        assert member.points_balance == 120

    @override_settings(POINTMAN={"EARN_RATE_DIVISOR": 1})
    def test_points_beyond_column_range_acknowledged(self, member, sale_payload, caplog):
        # 9,999,999,999.99 fits the amount column; the points do not fit 32 bits
        result = WebhookService.ingest(sale_payload(order_id="BIG", paid=999_999_999_999))

        assert result.status is IngestStatus.NO_POINTS
        assert "out of range" in caplog.text
        assert not EarnEvent.objects.exists()

    def test_arithmetic_failure_acknowledged(self, member, sale_payload, caplog):
        with patch.object(Member.objects, "using", side_effect=OverflowError("too large")):
            result = WebhookService.ingest(sale_payload(order_id="X9", paid=5000))

        assert result.status is IngestStatus.FAILED
        assert "failed to record order X9" in caplog.text
        assert not EarnEvent.objects.filter(pos_order_id="X9").exists()

    def test_unlinked_customer_recorded_without_credit(self, member, sale_payload):
        result = WebhookService.ingest(sale_payload(customer="WALK-IN-77", paid=5000))

        assert result.status is IngestStatus.CREDITED
        assert result.members_credited == 0
        assert EarnEvent.objects.filter(pos_customer_id="WALK-IN-77").exists()
        member.refresh_from_db()
        assert member.points_balance == 120

    def test_store_failure_acknowledged_and_rolled_back(self, member, sale_payload, caplog):
        with patch.object(Member.objects, "using", side_effect=OperationalError("store down")):
            result = WebhookService.ingest(sale_payload(order_id="X9", paid=5000))

        assert result.status is IngestStatus.FAILED
        assert "failed to record order X9" in caplog.text
        # Earn event rolled back with the failed credit
        assert not EarnEvent.objects.filter(pos_order_id="X9").exists()

        # A later redelivery goes through
        retry = WebhookService.ingest(sale_payload(order_id="X9", paid=5000))
        assert retry.status is IngestStatus.CREDITED

    def test_signal_sent_only_when_credited(
        self, member, sale_payload, django_capture_on_commit_callbacks
    ):
        received = []

        def handler(sender, event, members_credited, **kwargs):
            received.append((event.pos_order_id, members_credited))

        points_earned.connect(handler)
        try:
            with django_capture_on_commit_callbacks(execute=True):
                WebhookService.ingest(sale_payload(order_id="X1"))
                WebhookService.ingest(sale_payload(order_id="X1"))
        finally:
            points_earned.disconnect(handler)

        assert received == [("X1", 1)]

    def test_signal_deferred_until_commit(
        self, member, sale_payload, django_capture_on_commit_callbacks
    ):
        received = []

        def handler(sender, event, **kwargs):
            received.append(event.pos_order_id)

        points_earned.connect(handler)
        try:
            with django_capture_on_commit_callbacks() as callbacks:
                WebhookService.ingest(sale_payload(order_id="X1"))
                assert received == []

            assert len(callbacks) == 1
            callbacks[0]()
        finally:
            points_earned.disconnect(handler)

        assert received == ["X1"]

    def test_result_messages(self, db):
        result = WebhookService.ingest({})
        assert result.message == "Webhook received, but missing order or customer ID. Ignored."


class TestInsertOrIgnore:
    def _fields(self):
        return {
            "pos_customer_id": "C1",
            "points_earned": 3,
            "transaction_time": timezone.now(),
        }

    def test_first_insert_then_conflict(self, db):
        event, outcome = EarnEvent.objects.insert_or_ignore("ORD-1", **self._fields())
        assert outcome is InsertOutcome.INSERTED
        assert event.pk is not None

        again, outcome = EarnEvent.objects.insert_or_ignore("ORD-1", **self._fields())
        assert outcome is InsertOutcome.CONFLICT
        assert again is None

    def test_conflict_keeps_transaction_usable(self, db):
        EarnEvent.objects.insert_or_ignore("ORD-1", **self._fields())
        EarnEvent.objects.insert_or_ignore("ORD-1", **self._fields())

        # Further queries in the same transaction still work
        assert EarnEvent.objects.count() == 1


@pytest.mark.skipif(
    connection.vendor != "postgresql",
    reason="concurrent deliveries need a backend with parallel writers",
)
@pytest.mark.django_db(transaction=True)
class TestConcurrentDelivery:
    def test_only_one_of_two_simultaneous_deliveries_credits(self, sale_payload):
        member = Member.objects.create(name="Race", pos_customer_id="LINGA-CUST-001")
        barrier = threading.Barrier(2)
        results = []

        def worker():
            try:
                barrier.wait()
                results.append(WebhookService.ingest(sale_payload(order_id="X1", paid=5000)))
            finally:
                connections.close_all()

        threads = [threading.Thread(target=worker) for _ in range(2)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert sorted(r.status for r in results) == [
            IngestStatus.CREDITED,
            IngestStatus.DUPLICATE,
        ]
        assert EarnEvent.objects.filter(pos_order_id="X1").count() == 1
        member.refresh_from_db()
        assert member.points_balance == 5
