"""Principal protocol - what the identity subsystem hands to the ledger."""

from dataclasses import dataclass
from typing import Protocol, runtime_checkable


@dataclass(frozen=True)
class Principal:
    """Authenticated member as seen by the ledger."""

    member_id: int
    pos_customer_id: str | None = None


@runtime_checkable
class PrincipalResolver(Protocol):
    """
    Protocol for resolving the authenticated member of a request.

    Implemented by adapters/django_auth.py.

    Configuration in settings.py:
        POINTMAN = {
            "PRINCIPAL_RESOLVER": "pointman.adapters.django_auth.DjangoAuthPrincipalResolver",
        }
    """

    def resolve(self, request) -> Principal | None:
        """Return the principal for `request`, or None when anonymous."""
        ...
