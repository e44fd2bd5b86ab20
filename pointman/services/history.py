"""History composer - one chronological view over both ledgers."""

import heapq
from collections.abc import Iterator
from dataclasses import asdict, dataclass
from datetime import datetime
from itertools import islice
from operator import attrgetter

from django.db import DEFAULT_DB_ALIAS
from django.db.models import CharField, OuterRef, Subquery, Value
from django.db.models.functions import Coalesce

from pointman.conf import pointman_settings
from pointman.models import EarnEvent, Redemption, Store

EARNED = "earned"
REDEEMED = "redeemed"


@dataclass(frozen=True)
class HistoryEntry:
    """Uniform history row for earn and spend events."""

    event_id: str
    type: str  # "earned" | "redeemed"
    points: int
    date: datetime
    source: str
    description: str

    def as_dict(self) -> dict:
        data = asdict(self)
        data["date"] = self.date.isoformat()
        return data


class HistoryService:
    """
    Service for member points history.

    Uses @classmethod for extensibility (consistent with other services).
    """

    @classmethod
    def get_history(
        cls,
        member_id: int,
        pos_customer_id: str | None = None,
        limit: int | None = None,
        using: str = DEFAULT_DB_ALIAS,
    ) -> Iterator[HistoryEntry]:
        """
        Merge earn and spend events, most recent first.

        Nothing is queried until the first item is requested, and every
        call reads fresh state. Equal timestamps keep earned before
        redeemed, each side in descending id order.

        Args:
            member_id: Member whose redemptions are listed
            pos_customer_id: POS identifier whose earn events are listed
                (no earn events when None)
            limit: Max entries to return (None = all)
            using: Database alias of the points store

        Returns:
            Single-use iterator of HistoryEntry
        """
        if limit is not None and limit < 0:
            raise ValueError("limit must be >= 0")
        return cls._compose(member_id, pos_customer_id, limit, using)

    @classmethod
    def _compose(cls, member_id, pos_customer_id, limit, using) -> Iterator[HistoryEntry]:
        earned = cls._earned(pos_customer_id, using) if pos_customer_id else iter(())
        redeemed = cls._redeemed(member_id, using)
        merged = heapq.merge(earned, redeemed, key=attrgetter("date"), reverse=True)
        yield from islice(merged, limit)

    @classmethod
    def _earned(cls, pos_customer_id: str, using: str) -> Iterator[HistoryEntry]:
        store_name = Store.objects.using(using).filter(
            pos_store_id=OuterRef("pos_store_id")
        ).values("name")[:1]
        rows = (
            EarnEvent.objects.using(using)
            .filter(pos_customer_id=pos_customer_id, points_earned__gt=0)
            .annotate(
                source=Coalesce(
                    Subquery(store_name),
                    "pos_store_id",
                    Value(pointman_settings.UNKNOWN_STORE_LABEL),
                    output_field=CharField(),
                )
            )
            .order_by("-transaction_time", "-id")
            .values_list("id", "points_earned", "transaction_time", "source")
        )
        for pk, points, when, source in rows:
            yield HistoryEntry(
                event_id=f"transaction_{pk}",
                type=EARNED,
                points=points,
                date=when,
                source=source,
                description=f"Points from purchase at {source}",
            )

    @classmethod
    def _redeemed(cls, member_id: int, using: str) -> Iterator[HistoryEntry]:
        rows = (
            Redemption.objects.using(using)
            .filter(member_id=member_id)
            .order_by("-redeemed_at", "-id")
            .values_list("id", "points_spent", "redeemed_at", "reward__name")
        )
        for pk, points, when, reward_name in rows:
            yield HistoryEntry(
                event_id=f"redemption_{pk}",
                type=REDEEMED,
                points=points,
                date=when,
                source=reward_name,
                description=f"Redeemed: {reward_name}",
            )
