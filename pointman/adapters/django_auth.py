"""Principal resolver backed by django.contrib.auth."""

from __future__ import annotations

from pointman.models import Member
from pointman.protocols.principal import Principal


class DjangoAuthPrincipalResolver:
    """Adapter: request.user -> Member -> Principal."""

    def resolve(self, request) -> Principal | None:
        user = getattr(request, "user", None)
        if user is None or not user.is_authenticated:
            return None
        member = (
            Member.objects.filter(user=user)
            .only("id", "pos_customer_id")
            .first()
        )
        return self._to_principal(member) if member else None

    @staticmethod
    def _to_principal(member: Member) -> Principal:
        return Principal(
            member_id=member.pk,
            pos_customer_id=member.pos_customer_id or None,
        )
