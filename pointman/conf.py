"""
Pointman configuration.

Usage in settings.py:
    POINTMAN = {
        "EARN_RATE_DIVISOR": 10,
        "WEBHOOK_SECRET": env("POS_WEBHOOK_SECRET"),
    }
"""

from dataclasses import dataclass
from typing import Any

from django.conf import settings


@dataclass
class PointmanSettings:
    """Pointman configuration settings."""

    # 1 point per N major currency units spent
    EARN_RATE_DIVISOR: int = 10

    # POS amounts arrive in minor units (fils, cents)
    MINOR_UNITS_PER_MAJOR: int = 100

    # POS webhook signature (empty = unsigned webhooks accepted)
    WEBHOOK_SECRET: str = ""
    WEBHOOK_MAX_AGE_SECONDS: int = 300

    # Upper bound for any statement inside an atomic unit
    STATEMENT_TIMEOUT_MS: int = 5000

    # History source label when a store is not registered
    UNKNOWN_STORE_LABEL: str = "Unknown Store"

    # Dotted path to a PrincipalResolver (see protocols/principal.py)
    PRINCIPAL_RESOLVER: str = "pointman.adapters.django_auth.DjangoAuthPrincipalResolver"


def get_pointman_settings() -> PointmanSettings:
    """Load settings from Django settings."""
    user_settings: dict[str, Any] = getattr(settings, "POINTMAN", {})
    return PointmanSettings(**user_settings)


class _LazySettings:
    """Lazy proxy that re-reads settings on every attribute access."""

    def __getattr__(self, name):
        return getattr(get_pointman_settings(), name)


pointman_settings = _LazySettings()
