"""
Django Pointman - Loyalty points ledger.

Usage:
    from pointman import WebhookService, RedemptionService, HistoryService

    WebhookService.ingest(payload)                    # POS sale -> points
    result = RedemptionService.redeem(member_id, "7")  # points -> reward
    if not result.ok:
        handle(result.kind, result.message)
    for entry in HistoryService.get_history(member_id, pos_customer_id, limit=20):
        ...
"""

_EXPORTS = {
    "WebhookService": "pointman.services.webhook",
    "RedemptionService": "pointman.services.redemption",
    "HistoryService": "pointman.services.history",
    "LedgerService": "pointman.services.ledger",
}


def __getattr__(name):
    if name in _EXPORTS:
        from importlib import import_module

        return getattr(import_module(_EXPORTS[name]), name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = ["WebhookService", "RedemptionService", "HistoryService", "LedgerService"]
__version__ = "0.1.0"
