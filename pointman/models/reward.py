"""Reward model - catalogue entry members spend points on."""

from django.db import models
from django.utils.translation import gettext_lazy as _


class Reward(models.Model):
    """
    Redeemable reward.

    Managed by staff; the ledger only reads it. Redemptions copy
    `points_cost` at redemption time, so later price changes never
    rewrite history.
    """

    name = models.CharField(_("name"), max_length=200)
    description = models.TextField(_("description"), blank=True)
    points_cost = models.PositiveIntegerField(_("points cost"))
    image_url = models.URLField(_("image URL"), blank=True)
    is_active = models.BooleanField(_("active"), default=True, db_index=True)

    created_at = models.DateTimeField(_("created at"), auto_now_add=True)
    updated_at = models.DateTimeField(_("updated at"), auto_now=True)

    class Meta:
        db_table = "pointman_reward"
        verbose_name = _("reward")
        verbose_name_plural = _("rewards")
        ordering = ["points_cost", "name"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(points_cost__gt=0),
                name="pointman_reward_cost_positive",
            ),
        ]

    def __str__(self):
        return f"{self.name} ({self.points_cost}pts)"
