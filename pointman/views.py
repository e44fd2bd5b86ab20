"""
Pointman HTTP endpoints (JSON).

POS webhook flow:
    1. Validates HMAC signature (G1) when a secret is configured
    2. Parses the body
    3. Calls WebhookService.ingest()
    4. Returns 200 OK whatever happened downstream

Member endpoints resolve the authenticated member through the configured
PrincipalResolver and answer 401 for anonymous requests.
"""

from __future__ import annotations

import json
import logging

from django.http import JsonResponse
from django.utils.decorators import method_decorator
from django.utils.module_loading import import_string
from django.views import View
from django.views.decorators.csrf import csrf_exempt

from pointman.conf import pointman_settings
from pointman.gates import GateError, Gates
from pointman.services import catalog
from pointman.services.history import HistoryService
from pointman.services.ledger import LedgerService
from pointman.services.redemption import RedemptionService
from pointman.services.webhook import IngestStatus, WebhookService

logger = logging.getLogger("pointman.webhook")


@method_decorator(csrf_exempt, name="dispatch")
class PosWebhookView(View):
    """
    POST endpoint for POS sale webhooks.

    Expects:
        - X-Pos-Signature header with HMAC (only when POINTMAN["WEBHOOK_SECRET"] is set)
        - X-Pos-Timestamp header (optional, signed as "<timestamp>.<body>")
        - JSON body with the sale

    Always answers 200 to a signed request: the POS retries anything
    else and the retries would never succeed.
    """

    def post(self, request):
        body = request.body
        signature = request.headers.get("X-Pos-Signature", "")

        # G1: Authenticity
        try:
            Gates.webhook_authenticity(
                body,
                signature,
                pointman_settings.WEBHOOK_SECRET,
                timestamp=_int_or_none(request.headers.get("X-Pos-Timestamp")),
                max_age_seconds=pointman_settings.WEBHOOK_MAX_AGE_SECONDS,
            )
        except GateError as exc:
            logger.warning("POS webhook: G1 failed - %s", exc.message)
            return JsonResponse({"error": exc.message}, status=401)

        try:
            payload = json.loads(body)
        except (json.JSONDecodeError, ValueError):
            logger.warning("POS webhook: body is not valid JSON, ignored")
            return _ack(IngestStatus.IGNORED.value, "Webhook received, but body is not JSON. Ignored.")

        try:
            result = WebhookService.ingest(payload)
        except Exception:
            logger.exception("POS webhook: ingestion failed")
            return _ack(IngestStatus.FAILED.value, "Webhook received, but an internal error occurred.")

        return _ack(result.status.value, result.message)


class MemberView(View):
    """Base view for endpoints acting on the authenticated member."""

    def dispatch(self, request, *args, **kwargs):
        resolver = import_string(pointman_settings.PRINCIPAL_RESOLVER)()
        self.principal = resolver.resolve(request)
        if self.principal is None:
            return JsonResponse({"message": "Authentication required."}, status=401)
        return super().dispatch(request, *args, **kwargs)


class RewardListView(View):
    """GET active rewards, cheapest first."""

    def get(self, request):
        rewards = [
            {
                "id": r.pk,
                "name": r.name,
                "description": r.description,
                "points_cost": r.points_cost,
                "image_url": r.image_url,
                "is_active": r.is_active,
            }
            for r in catalog.active_rewards()
        ]
        return JsonResponse(rewards, safe=False)


class MemberProfileView(MemberView):
    """GET the member profile with its current balance."""

    def get(self, request):
        member = LedgerService.get_member(self.principal.member_id)
        if member is None:
            return JsonResponse({"message": "User not found."}, status=404)
        return JsonResponse(
            {
                "id": member.pk,
                "name": member.name,
                "phone_number": member.phone_number,
                "email": member.email,
                "pos_customer_id": member.pos_customer_id,
                "points_balance": member.points_balance,
                "created_at": member.created_at.isoformat(),
                "updated_at": member.updated_at.isoformat(),
            }
        )


class PointHistoryView(MemberView):
    """GET merged points history, most recent first (?limit=N)."""

    def get(self, request):
        raw_limit = request.GET.get("limit")
        limit = None
        if raw_limit:
            limit = _int_or_none(raw_limit)
            if limit is None or limit < 0:
                return JsonResponse({"message": "limit must be a non-negative integer."}, status=400)

        entries = HistoryService.get_history(
            self.principal.member_id,
            self.principal.pos_customer_id,
            limit=limit,
        )
        return JsonResponse([entry.as_dict() for entry in entries], safe=False)


class RedeemRewardView(MemberView):
    """POST redeem a reward for the authenticated member."""

    def post(self, request, reward_id):
        result = RedemptionService.redeem(self.principal.member_id, reward_id)
        if not result.ok:
            return JsonResponse(
                {"message": result.message, "code": result.error_code},
                status=result.kind.http_status,
            )
        return JsonResponse(
            {
                "message": result.message,
                "newTotalPoints": result.new_balance,
                "redemptionDetails": {
                    "id": result.redemption_id,
                    "redeemed_at": result.redeemed_at.isoformat(),
                    "points_spent": result.points_spent,
                },
            }
        )


def _ack(status: str, message: str) -> JsonResponse:
    return JsonResponse({"status": status, "message": message}, status=200)


def _int_or_none(value) -> int | None:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None
