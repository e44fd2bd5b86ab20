"""
Pointman signals - public event API.

Emitted signals (on commit of the enclosing transaction, via transaction.on_commit):
- points_earned: Emitted by WebhookService.ingest() when an earn event is credited
- reward_redeemed: Emitted by RedemptionService.redeem() on success
- pos_customer_linked: Emitted by LedgerService.link_pos_customer()
"""

from django.dispatch import Signal

points_earned = Signal()  # sender=EarnEvent, event=EarnEvent, members_credited=int
reward_redeemed = Signal()  # sender=Redemption, redemption=Redemption, new_balance=int
pos_customer_linked = Signal()  # sender=Member, member=Member, points_credited=int
