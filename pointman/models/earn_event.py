"""EarnEvent model - append-only ledger of points earned from POS sales."""

from enum import Enum

from django.db import IntegrityError, models, router, transaction
from django.utils.translation import gettext_lazy as _


class InsertOutcome(str, Enum):
    """Result of an insert-or-ignore on the earn ledger."""

    INSERTED = "inserted"
    CONFLICT = "conflict"


class EarnEventManager(models.Manager):
    def insert_or_ignore(self, pos_order_id: str, **fields) -> tuple["EarnEvent | None", InsertOutcome]:
        """
        Insert a row unless `pos_order_id` is already in the ledger.

        The unique constraint decides: concurrent deliveries of the same
        order race on the INSERT and exactly one gets INSERTED. Runs in a
        savepoint so a CONFLICT leaves the caller's transaction usable.

        Returns:
            (EarnEvent, INSERTED) or (None, CONFLICT)

        Raises:
            IntegrityError: If the insert failed for another reason
        """
        using = self._db or router.db_for_write(self.model)
        try:
            with transaction.atomic(using=using):
                event = self.create(pos_order_id=pos_order_id, **fields)
        except IntegrityError:
            # Discriminate the unique violation from any other integrity failure
            if self.filter(pos_order_id=pos_order_id).exists():
                return None, InsertOutcome.CONFLICT
            raise
        return event, InsertOutcome.INSERTED


class EarnEvent(models.Model):
    """
    Points credited for one POS sale.

    Created exactly once per POS order id; never updated or deleted.
    """

    pos_order_id = models.CharField(_("POS order ID"), max_length=100, unique=True)
    pos_customer_id = models.CharField(_("POS customer ID"), max_length=100, db_index=True)
    pos_store_id = models.CharField(_("POS store ID"), max_length=100, blank=True, null=True)

    total_amount = models.DecimalField(
        _("total amount"),
        max_digits=12,
        decimal_places=2,
        null=True,
        blank=True,
        help_text=_("Sale amount in major currency units"),
    )
    points_earned = models.PositiveIntegerField(_("points earned"))

    transaction_time = models.DateTimeField(_("transaction time"), db_index=True)
    raw_payload = models.JSONField(_("raw payload"), default=dict, blank=True)

    created_at = models.DateTimeField(_("created at"), auto_now_add=True)

    objects = EarnEventManager()

    class Meta:
        db_table = "pointman_earn_event"
        verbose_name = _("earn event")
        verbose_name_plural = _("earn events")
        ordering = ["-transaction_time", "-id"]
        indexes = [
            models.Index(
                fields=["pos_customer_id", "-transaction_time"],
                name="pm_earn_customer_time_idx",
            ),
        ]

    def __str__(self):
        return f"+{self.points_earned}pts - order {self.pos_order_id}"
