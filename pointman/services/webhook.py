"""Webhook ingestion - POS sale -> earn event + balance credit.

The POS sends each sale once and retries on anything but success, and
there is no dead-letter queue behind it. So every outcome, including
store failures, comes back to the caller as an IngestResult; failures
are logged here for ops follow-up instead of being raised.

Payload fields (Linga POS):
    saleUniqueId / id      order identifier (first present wins)
    paidAmount / netSales  amount in minor units (first present wins)
    customer               POS customer identifier
    store                  POS store identifier
    dateCreated            ISO-8601 sale time (receipt time if absent)
"""

import logging
from functools import partial
from dataclasses import dataclass, field
from datetime import datetime
from decimal import ROUND_FLOOR, Decimal
from enum import Enum

from django.db import DEFAULT_DB_ALIAS, DatabaseError, transaction
from django.db.models import F
from django.utils import timezone
from django.utils.dateparse import parse_datetime

from pointman.conf import pointman_settings
from pointman.db import atomic_unit, lock_pos_customer
from pointman.models import EarnEvent, InsertOutcome, Member
from pointman.signals import points_earned

logger = logging.getLogger(__name__)

_CENT = Decimal("0.01")

# Column bounds: EarnEvent.total_amount (12 digits, 2 places), 32-bit points
MAX_AMOUNT = Decimal("9999999999.99")
MAX_POINTS = 2_147_483_647


class IngestStatus(str, Enum):
    CREDITED = "credited"
    DUPLICATE = "duplicate"
    IGNORED = "ignored"
    NO_POINTS = "no_points"
    FAILED = "failed"


_MESSAGES = {
    IngestStatus.CREDITED: "Webhook received and data processed.",
    IngestStatus.DUPLICATE: "Webhook received, order already processed.",
    IngestStatus.IGNORED: "Webhook received, but missing order or customer ID. Ignored.",
    IngestStatus.NO_POINTS: "Webhook received, but no points earned.",
    IngestStatus.FAILED: "Webhook received, but an internal database error occurred.",
}


@dataclass(frozen=True)
class IngestResult:
    """Outcome of one webhook delivery. Always acknowledged upstream."""

    status: IngestStatus
    order_id: str | None = None
    points: int = 0
    members_credited: int = 0

    @property
    def message(self) -> str:
        return _MESSAGES[self.status]


@dataclass(frozen=True)
class PosSale:
    """Normalized view of a POS webhook payload."""

    order_id: str | None
    customer_id: str | None
    store_id: str | None
    amount: Decimal | None  # major units
    occurred_at: datetime
    raw: dict = field(repr=False, default_factory=dict)

    @classmethod
    def from_payload(cls, payload: dict) -> "PosSale":
        order_id = payload.get("saleUniqueId") or payload.get("id")
        customer = payload.get("customer")
        store = payload.get("store")

        # First present amount field wins, even when it is zero
        raw_amount = payload.get("paidAmount")
        if raw_amount is None:
            raw_amount = payload.get("netSales")

        return cls(
            order_id=str(order_id) if order_id else None,
            customer_id=str(customer) if customer else None,
            store_id=str(store) if store else None,
            amount=_to_major_units(raw_amount),
            occurred_at=_parse_sale_time(payload.get("dateCreated")),
            raw=payload,
        )


def calculate_points(amount: Decimal | None, divisor: int | None = None) -> int:
    """
    Points for a sale amount in major units: floor(amount / divisor).

    Missing or non-positive amounts earn nothing.
    """
    if amount is None or amount <= 0:
        return 0
    if divisor is None:
        divisor = pointman_settings.EARN_RATE_DIVISOR
    return int((amount / Decimal(divisor)).to_integral_value(rounding=ROUND_FLOOR))


def _to_major_units(value) -> Decimal | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        minor = Decimal(str(value).strip())
        if not minor.is_finite():
            return None
        major = minor / Decimal(pointman_settings.MINOR_UNITS_PER_MAJOR)
    except ArithmeticError:
        return None
    if abs(major) > MAX_AMOUNT:
        logger.warning("POS webhook: amount %r out of range, ignored", value)
        return None
    return major


def _parse_sale_time(value) -> datetime:
    if not value:
        return timezone.now()
    try:
        parsed = parse_datetime(str(value))
    except ValueError:
        parsed = None
    if parsed is None:
        logger.warning("POS webhook: unparseable dateCreated %r, using receipt time", value)
        return timezone.now()
    if timezone.is_naive(parsed):
        parsed = timezone.make_aware(parsed)
    return parsed


class WebhookService:
    """
    Service for POS webhook ingestion.

    Uses @classmethod for extensibility (consistent with other services).
    """

    @classmethod
    def ingest(cls, payload: dict, using: str = DEFAULT_DB_ALIAS) -> IngestResult:
        """
        Record a POS sale and credit the linked member.

        At most one EarnEvent and one balance increment per order id,
        however many times the POS delivers it.

        Args:
            payload: Decoded webhook body
            using: Database alias of the points store

        Returns:
            IngestResult (never raises on store failures)
        """
        if not isinstance(payload, dict):
            logger.debug("POS webhook: non-object payload ignored")
            return IngestResult(IngestStatus.IGNORED)

        sale = PosSale.from_payload(payload)
        if not sale.order_id or not sale.customer_id:
            logger.debug("POS webhook: missing order or customer id, ignored")
            return IngestResult(IngestStatus.IGNORED, order_id=sale.order_id)

        points = calculate_points(sale.amount)
        if points <= 0:
            return IngestResult(IngestStatus.NO_POINTS, order_id=sale.order_id)
        if points > MAX_POINTS:
            logger.warning(
                "POS webhook: order %s earns %d points, out of range, ignored",
                sale.order_id,
                points,
            )
            return IngestResult(IngestStatus.NO_POINTS, order_id=sale.order_id)

        try:
            event, members_credited = cls._record(sale, points, using)
        except (DatabaseError, ArithmeticError):
            logger.exception("POS webhook: failed to record order %s", sale.order_id)
            return IngestResult(IngestStatus.FAILED, order_id=sale.order_id, points=points)

        if event is None:
            logger.debug("POS webhook: duplicate delivery for order %s", sale.order_id)
            return IngestResult(IngestStatus.DUPLICATE, order_id=sale.order_id)

        logger.info(
            "POS webhook: order %s credited %d points to %d member(s)",
            sale.order_id,
            points,
            members_credited,
        )
        transaction.on_commit(
            partial(
                points_earned.send,
                sender=EarnEvent,
                event=event,
                members_credited=members_credited,
            ),
            using=using,
        )
        return IngestResult(
            IngestStatus.CREDITED,
            order_id=sale.order_id,
            points=points,
            members_credited=members_credited,
        )

    @classmethod
    def _record(cls, sale: PosSale, points: int, using: str) -> tuple[EarnEvent | None, int]:
        """Insert the earn event and credit the balance as one unit."""
        with atomic_unit(using):
            lock_pos_customer(sale.customer_id, using)
            event, outcome = EarnEvent.objects.db_manager(using).insert_or_ignore(
                sale.order_id,
                pos_customer_id=sale.customer_id,
                pos_store_id=sale.store_id,
                total_amount=sale.amount.quantize(_CENT) if sale.amount is not None else None,
                points_earned=points,
                transaction_time=sale.occurred_at,
                raw_payload=sale.raw,
            )
            if outcome is InsertOutcome.CONFLICT:
                return None, 0

            credited = (
                Member.objects.using(using)
                .filter(pos_customer_id=sale.customer_id)
                .update(
                    points_balance=F("points_balance") + points,
                    updated_at=timezone.now(),
                )
            )
        return event, credited
