"""Member model - the loyalty side of an authenticated user.

Data architecture:
    Member.points_balance
        Cached balance. Source of truth is the two ledgers:
        sum(EarnEvent.points_earned for pos_customer_id)
        - sum(Redemption.points_spent for member).
        Written only by WebhookService, RedemptionService and
        LedgerService.link_pos_customer / reconcile, always inside an
        atomic unit together with the ledger row that justifies it.

    Member.pos_customer_id
        The POS registry's identity for this member. Null until linked.
"""

from django.conf import settings
from django.db import models
from django.utils.translation import gettext_lazy as _


class Member(models.Model):
    """Loyalty program member."""

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="loyalty_member",
        null=True,
        blank=True,
        verbose_name=_("user"),
    )

    name = models.CharField(_("name"), max_length=200)
    email = models.EmailField(_("email"), blank=True)
    phone_number = models.CharField(_("phone number"), max_length=30, blank=True)

    pos_customer_id = models.CharField(
        _("POS customer ID"),
        max_length=100,
        unique=True,
        null=True,
        blank=True,
        help_text=_("Customer identifier in the POS registry"),
    )

    points_balance = models.PositiveIntegerField(
        _("points balance"),
        default=0,
        help_text=_("Points available for redemption"),
    )

    created_at = models.DateTimeField(_("created at"), auto_now_add=True)
    updated_at = models.DateTimeField(_("updated at"), auto_now=True)

    class Meta:
        db_table = "pointman_member"
        verbose_name = _("member")
        verbose_name_plural = _("members")
        ordering = ["name"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(points_balance__gte=0),
                name="pointman_member_balance_non_negative",
            ),
        ]

    def __str__(self):
        return f"{self.name}: {self.points_balance}pts"

    @property
    def is_linked(self) -> bool:
        return bool(self.pos_customer_id)
