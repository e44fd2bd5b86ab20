"""Store model."""

from django.db import models
from django.utils.translation import gettext_lazy as _


class Store(models.Model):
    """Physical store known to the POS, used to label earn events."""

    name = models.CharField(_("name"), max_length=200)
    pos_store_id = models.CharField(_("POS store ID"), max_length=100, unique=True)
    is_default_for_new_users = models.BooleanField(
        _("default for new users"),
        default=False,
        help_text=_("Store new members are registered against in the POS"),
    )

    created_at = models.DateTimeField(_("created at"), auto_now_add=True)
    updated_at = models.DateTimeField(_("updated at"), auto_now=True)

    class Meta:
        db_table = "pointman_store"
        verbose_name = _("store")
        verbose_name_plural = _("stores")
        ordering = ["name"]

    def __str__(self):
        return f"{self.name} ({self.pos_store_id})"
