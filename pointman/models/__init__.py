"""Pointman models.

Catalogue (read-only to the ledger): Reward, Store
Balance cache: Member
Ledgers (append-only): EarnEvent, Redemption
"""

from pointman.models.member import Member
from pointman.models.reward import Reward
from pointman.models.store import Store
from pointman.models.earn_event import EarnEvent, InsertOutcome
from pointman.models.redemption import Redemption, RedemptionStatus

__all__ = [
    "Member",
    "Reward",
    "Store",
    # Earn ledger
    "EarnEvent",
    "InsertOutcome",
    # Spend ledger
    "Redemption",
    "RedemptionStatus",
]
