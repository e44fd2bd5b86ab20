"""Ledger service - balance reads, POS linking and reconciliation.

The cached Member.points_balance must always equal
earned(pos_customer_id) - spent(member). This module reads that
invariant back from the ledgers and repairs drift.
"""

import logging
from functools import partial
from dataclasses import dataclass

from django.db import DEFAULT_DB_ALIAS, IntegrityError, transaction
from django.db.models import Sum, Value
from django.db.models.functions import Coalesce

from pointman.db import atomic_unit, lock_pos_customer
from pointman.exceptions import PointmanError
from pointman.models import EarnEvent, Member, Redemption
from pointman.signals import pos_customer_linked

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BalanceAudit:
    """Cached balance vs. balance recomputed from the ledgers."""

    member_id: int
    cached: int
    earned: int
    spent: int

    @property
    def ledger(self) -> int:
        return self.earned - self.spent

    @property
    def drift(self) -> int:
        return self.cached - self.ledger

    @property
    def consistent(self) -> bool:
        return self.drift == 0


class LedgerService:
    """
    Service for balance reads and ledger maintenance.

    Uses @classmethod for extensibility (consistent with other services).
    """

    @classmethod
    def get_member(cls, member_id: int, using: str = DEFAULT_DB_ALIAS) -> Member | None:
        """Get member with a fresh balance, or None."""
        try:
            return Member.objects.using(using).get(pk=member_id)
        except Member.DoesNotExist:
            return None

    @classmethod
    def get_balance(cls, member_id: int, using: str = DEFAULT_DB_ALIAS) -> int:
        """Get current points balance. Returns 0 if member not found."""
        member = cls.get_member(member_id, using=using)
        return member.points_balance if member else 0

    @classmethod
    def earned_points(cls, pos_customer_id: str | None, using: str = DEFAULT_DB_ALIAS) -> int:
        """Sum of earn ledger points for a POS customer."""
        if not pos_customer_id:
            return 0
        return EarnEvent.objects.using(using).filter(
            pos_customer_id=pos_customer_id
        ).aggregate(total=Coalesce(Sum("points_earned"), Value(0)))["total"]

    @classmethod
    def spent_points(cls, member_id: int, using: str = DEFAULT_DB_ALIAS) -> int:
        """Sum of spend ledger points for a member."""
        return Redemption.objects.using(using).filter(
            member_id=member_id
        ).aggregate(total=Coalesce(Sum("points_spent"), Value(0)))["total"]

    @classmethod
    def audit(cls, member: Member, using: str = DEFAULT_DB_ALIAS) -> BalanceAudit:
        """Compare the cached balance of `member` with its ledgers."""
        return BalanceAudit(
            member_id=member.pk,
            cached=member.points_balance,
            earned=cls.earned_points(member.pos_customer_id, using=using),
            spent=cls.spent_points(member.pk, using=using),
        )

    @classmethod
    def reconcile(cls, member_id: int, using: str = DEFAULT_DB_ALIAS) -> BalanceAudit:
        """
        Rewrite the cached balance from the ledgers.

        Locks the member row so no redemption interleaves with the fix.
        A negative ledger balance is reported but never written.

        Returns:
            BalanceAudit taken before the fix

        Raises:
            PointmanError: MEMBER_NOT_FOUND
        """
        with atomic_unit(using):
            member = cls._get_member_for_update(member_id, using)
            audit = cls.audit(member, using=using)
            if audit.consistent:
                return audit
            if audit.ledger < 0:
                logger.error(
                    "Member %s ledger balance is negative (%d), not rewriting cache",
                    member_id,
                    audit.ledger,
                )
                return audit
            logger.warning(
                "Member %s balance drift %+d (cached %d, ledger %d), fixed",
                member_id,
                audit.drift,
                audit.cached,
                audit.ledger,
            )
            member.points_balance = audit.ledger
            member.save(update_fields=["points_balance", "updated_at"])
        return audit

    @classmethod
    def link_pos_customer(
        cls,
        member_id: int,
        pos_customer_id: str,
        using: str = DEFAULT_DB_ALIAS,
    ) -> int:
        """
        Link a member to its POS customer identifier.

        Earn events already recorded for that identifier are credited in
        the same unit, so the balance matches the ledgers once linked.
        Serialized against webhook ingestion for the same identifier.
        Linking to the identifier the member already holds is a no-op.

        Returns:
            Points credited by the link

        Raises:
            PointmanError: MEMBER_NOT_FOUND, MEMBER_ALREADY_LINKED or
                POS_CUSTOMER_ALREADY_LINKED
        """
        pos_customer_id = str(pos_customer_id).strip()
        if not pos_customer_id:
            raise PointmanError("INVALID_POS_CUSTOMER_ID", member_id=member_id)

        try:
            with atomic_unit(using):
                # Same lock as webhook ingestion, taken before the member row
                lock_pos_customer(pos_customer_id, using)
                member = cls._get_member_for_update(member_id, using)
                if member.pos_customer_id == pos_customer_id:
                    return 0
                if member.pos_customer_id:
                    raise PointmanError(
                        "MEMBER_ALREADY_LINKED",
                        member_id=member_id,
                        pos_customer_id=member.pos_customer_id,
                    )
                if Member.objects.using(using).filter(pos_customer_id=pos_customer_id).exists():
                    raise PointmanError(
                        "POS_CUSTOMER_ALREADY_LINKED", pos_customer_id=pos_customer_id
                    )

                credited = cls.earned_points(pos_customer_id, using=using)
                member.pos_customer_id = pos_customer_id
                member.points_balance += credited
                member.save(update_fields=["pos_customer_id", "points_balance", "updated_at"])
        except IntegrityError:
            # Lost the race against another member linking the same id
            raise PointmanError("POS_CUSTOMER_ALREADY_LINKED", pos_customer_id=pos_customer_id)

        logger.info(
            "Member %s linked to POS customer %s (%d points credited)",
            member_id,
            pos_customer_id,
            credited,
        )
        transaction.on_commit(
            partial(
                pos_customer_linked.send,
                sender=Member,
                member=member,
                points_credited=credited,
            ),
            using=using,
        )
        return credited

    @classmethod
    def _get_member_for_update(cls, member_id: int, using: str) -> Member:
        """MUST be called inside atomic_unit()."""
        try:
            return Member.objects.using(using).select_for_update().get(pk=member_id)
        except Member.DoesNotExist:
            raise PointmanError("MEMBER_NOT_FOUND", member_id=member_id)
