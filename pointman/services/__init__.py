"""Pointman services.

- webhook: WebhookService (POS sale -> earn ledger + balance)
- redemption: RedemptionService (reward -> spend ledger + balance)
- history: HistoryService (merged earn/spend history)
- ledger: LedgerService (balance reads, POS linking, reconciliation)
- catalog: reward and store reads
"""

from pointman.services import catalog

__all__ = ["catalog"]
