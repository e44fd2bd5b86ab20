"""Catalogue reads - rewards and stores.

The catalogue is managed by staff; the ledger only reads it.
"""

from django.db import DEFAULT_DB_ALIAS

from pointman.conf import pointman_settings
from pointman.models import Reward, Store


def active_rewards(using: str = DEFAULT_DB_ALIAS) -> list[Reward]:
    """List active rewards, cheapest first."""
    return list(
        Reward.objects.using(using).filter(is_active=True).order_by("points_cost", "name")
    )


def get_reward(reward_id: int, using: str = DEFAULT_DB_ALIAS) -> Reward | None:
    """Get an active reward by id."""
    try:
        return Reward.objects.using(using).get(pk=reward_id, is_active=True)
    except Reward.DoesNotExist:
        return None


def stores(using: str = DEFAULT_DB_ALIAS) -> list[Store]:
    """List all stores by name."""
    return list(Store.objects.using(using).order_by("name"))


def store_label(pos_store_id: str | None, using: str = DEFAULT_DB_ALIAS) -> str:
    """Display label for a POS store id: store name, else the raw id."""
    if not pos_store_id:
        return pointman_settings.UNKNOWN_STORE_LABEL
    name = (
        Store.objects.using(using)
        .filter(pos_store_id=pos_store_id)
        .values_list("name", flat=True)
        .first()
    )
    return name or pos_store_id
