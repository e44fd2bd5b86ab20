"""Redemption engine - spend points on a reward.

One atomic unit per request: lock reward, lock member, check balance,
debit, append to the spend ledger. Any failure rolls the whole unit back.
"""

import logging
from functools import partial
from dataclasses import dataclass
from datetime import datetime

from django.db import DEFAULT_DB_ALIAS, DatabaseError, transaction

from pointman.db import atomic_unit
from pointman.exceptions import ErrorKind, PointmanError
from pointman.gates import GateError, Gates
from pointman.models import Member, Redemption, RedemptionStatus, Reward
from pointman.signals import reward_redeemed

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RedemptionResult:
    """Redemption outcome. Callers branch on `ok` and `kind`."""

    ok: bool
    reward_id: int | None = None
    reward_name: str | None = None
    points_spent: int | None = None
    new_balance: int | None = None
    redemption_id: int | None = None
    redeemed_at: datetime | None = None
    kind: ErrorKind | None = None
    error_code: str | None = None
    message: str | None = None

    @classmethod
    def from_error(cls, error: PointmanError) -> "RedemptionResult":
        return cls(
            ok=False,
            reward_id=error.data.get("reward_id"),
            kind=error.kind,
            error_code=error.code,
            message=error.message,
        )


class RedemptionService:
    """
    Service for reward redemption.

    Uses @classmethod for extensibility (consistent with other services).
    """

    @classmethod
    def redeem(cls, member_id: int, reward_id, using: str = DEFAULT_DB_ALIAS) -> RedemptionResult:
        """
        Redeem a reward, returning a tagged result instead of raising.

        Args:
            member_id: Authenticated member
            reward_id: Reward identifier (int or numeric string)
            using: Database alias of the points store

        Returns:
            RedemptionResult (ok=False with kind/error_code on failure)
        """
        try:
            return cls.redeem_or_raise(member_id, reward_id, using=using)
        except PointmanError as exc:
            return RedemptionResult.from_error(exc)

    @classmethod
    def redeem_or_raise(cls, member_id: int, reward_id, using: str = DEFAULT_DB_ALIAS) -> RedemptionResult:
        """
        Redeem a reward.

        Raises:
            PointmanError: INVALID_REWARD_ID, REWARD_NOT_FOUND, MEMBER_NOT_FOUND,
                INSUFFICIENT_POINTS or STORE_UNAVAILABLE. Nothing is written
                in any of these cases.
        """
        try:
            parsed_id = Gates.reward_reference(reward_id).value
        except GateError as exc:
            raise PointmanError("INVALID_REWARD_ID", reward_id=None, detail=exc.message)

        try:
            with atomic_unit(using):
                # Lock order: reward, then member
                reward = cls._get_active_reward_for_update(parsed_id, using)
                member = cls._get_member_for_update(member_id, using)

                if member.points_balance < reward.points_cost:
                    raise PointmanError(
                        "INSUFFICIENT_POINTS",
                        reward_id=parsed_id,
                        available=member.points_balance,
                        requested=reward.points_cost,
                    )

                member.points_balance -= reward.points_cost
                member.save(update_fields=["points_balance", "updated_at"])

                redemption = Redemption.objects.using(using).create(
                    member=member,
                    reward=reward,
                    points_spent=reward.points_cost,
                    status=RedemptionStatus.REDEEMED,
                )
        except DatabaseError as exc:
            logger.exception(
                "Redemption failed in store: member=%s reward=%s", member_id, parsed_id
            )
            raise PointmanError(
                "STORE_UNAVAILABLE", reward_id=parsed_id, member_id=member_id
            ) from exc

        logger.info(
            "Member %s redeemed reward %s for %d points (balance %d)",
            member_id,
            reward.pk,
            redemption.points_spent,
            member.points_balance,
        )
        transaction.on_commit(
            partial(
                reward_redeemed.send,
                sender=Redemption,
                redemption=redemption,
                new_balance=member.points_balance,
            ),
            using=using,
        )

        return RedemptionResult(
            ok=True,
            reward_id=reward.pk,
            reward_name=reward.name,
            points_spent=redemption.points_spent,
            new_balance=member.points_balance,
            redemption_id=redemption.pk,
            redeemed_at=redemption.redeemed_at,
            message=f'Reward "{reward.name}" redeemed successfully!',
        )

    @classmethod
    def _get_active_reward_for_update(cls, reward_id: int, using: str) -> Reward:
        """
        Get active reward with row-level lock.

        MUST be called inside atomic_unit().
        """
        try:
            return (
                Reward.objects.using(using)
                .select_for_update()
                .get(pk=reward_id, is_active=True)
            )
        except Reward.DoesNotExist:
            raise PointmanError("REWARD_NOT_FOUND", reward_id=reward_id)

    @classmethod
    def _get_member_for_update(cls, member_id: int, using: str) -> Member:
        """
        Get member with row-level lock on the balance.

        MUST be called inside atomic_unit().
        Serializes concurrent redemptions by the same member.
        """
        try:
            return Member.objects.using(using).select_for_update().get(pk=member_id)
        except Member.DoesNotExist:
            raise PointmanError("MEMBER_NOT_FOUND", member_id=member_id)
