"""Redemption model - append-only ledger of points spent on rewards."""

from django.db import models
from django.utils.translation import gettext_lazy as _


class RedemptionStatus(models.TextChoices):
    REDEEMED = "REDEEMED", _("Redeemed")


class Redemption(models.Model):
    """
    Immutable record of a reward redemption.

    `points_spent` is the reward's cost at redemption time and stays
    fixed even if the reward is repriced later.
    """

    member = models.ForeignKey(
        "pointman.Member",
        on_delete=models.CASCADE,
        related_name="redemptions",
        verbose_name=_("member"),
    )
    reward = models.ForeignKey(
        "pointman.Reward",
        on_delete=models.PROTECT,
        related_name="redemptions",
        verbose_name=_("reward"),
    )

    points_spent = models.PositiveIntegerField(_("points spent"))
    status = models.CharField(
        _("status"),
        max_length=20,
        choices=RedemptionStatus.choices,
        default=RedemptionStatus.REDEEMED,
    )
    redeemed_at = models.DateTimeField(_("redeemed at"), auto_now_add=True, db_index=True)

    class Meta:
        db_table = "pointman_redemption"
        verbose_name = _("redemption")
        verbose_name_plural = _("redemptions")
        ordering = ["-redeemed_at", "-id"]
        indexes = [
            models.Index(
                fields=["member", "-redeemed_at"],
                name="pm_redemption_member_time_idx",
            ),
        ]

    def __str__(self):
        return f"-{self.points_spent}pts - {self.reward_id}"
