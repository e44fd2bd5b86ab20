"""
Pointman Gates - Validation rules.

G1: WebhookAuthenticity - POS webhook is authentic (HMAC over timestamp + body)
G2: RewardReference - Reward identifier parses as a positive integer
"""

import hashlib
import hmac
import logging
import time
from dataclasses import dataclass

logger = logging.getLogger(__name__)


class GateError(Exception):
    """Gate validation error."""

    def __init__(self, gate_name: str, message: str, details: dict | None = None):
        self.gate_name = gate_name
        self.message = message
        self.details = details or {}
        super().__init__(f"[{gate_name}] {message}")


@dataclass
class GateResult:
    """Result of a gate check."""

    passed: bool
    gate_name: str
    message: str = ""
    value: object = None


class Gates:
    """Pointman validation gates."""

    # =========================================================================
    # G1: Webhook Authenticity (HMAC validation for POS webhooks)
    # =========================================================================

    @classmethod
    def webhook_authenticity(
        cls,
        body: bytes,
        signature: str,
        secret: str,
        timestamp: int | None = None,
        max_age_seconds: int = 300,
    ) -> GateResult:
        """
        G1: Webhook is authentic (HMAC + timestamp validation).

        The signature is HMAC-SHA256 over the raw body, or over
        "<timestamp>.<body>" when the sender includes a timestamp, so a
        timestamp cannot be stripped or rewritten without breaking it.

        Args:
            body: Raw request body (bytes)
            signature: Signature from header (with or without 'sha256=' prefix)
            secret: Webhook secret
            timestamp: Unix timestamp from header (optional)
            max_age_seconds: Maximum age of request (default 5 minutes)

        Raises:
            GateError: If signature is invalid or timestamp is too old
        """
        if not secret:
            logger.warning(
                "G1_WebhookAuthenticity: webhook secret is empty, "
                "POS payloads are accepted without signature validation."
            )
            return GateResult(True, "G1_WebhookAuthenticity", "No secret configured (skipped)")

        if not signature:
            raise GateError("G1_WebhookAuthenticity", "Missing signature header.")

        if signature.startswith("sha256="):
            signature = signature[7:]

        expected = cls.sign(body, secret, timestamp)

        if not hmac.compare_digest(signature.lower(), expected):
            raise GateError("G1_WebhookAuthenticity", "Invalid signature.")

        if timestamp is not None:
            age = abs(int(time.time()) - timestamp)
            if age > max_age_seconds:
                raise GateError(
                    "G1_WebhookAuthenticity",
                    f"Timestamp too old ({age}s > {max_age_seconds}s).",
                    {"age_seconds": age},
                )

        return GateResult(True, "G1_WebhookAuthenticity")

    @staticmethod
    def sign(body: bytes, secret: str, timestamp: int | None = None) -> str:
        """Hex HMAC-SHA256 a POS sender attaches as X-Pos-Signature."""
        message = body if timestamp is None else f"{timestamp}.".encode() + body
        return hmac.new(secret.encode(), message, hashlib.sha256).hexdigest()

    # =========================================================================
    # G2: Reward Reference
    # =========================================================================

    @classmethod
    def reward_reference(cls, reward_id) -> GateResult:
        """
        G2: Reward identifier must be a positive integer (or its string form).

        Returns:
            GateResult with `value` set to the parsed int

        Raises:
            GateError: If the identifier is missing or not numeric
        """
        if isinstance(reward_id, bool):
            raise GateError("G2_RewardReference", "Reward ID must be numeric.")

        if isinstance(reward_id, int):
            parsed = reward_id
        else:
            text = str(reward_id or "").strip()
            if not (text.isascii() and text.isdigit()):
                raise GateError(
                    "G2_RewardReference",
                    "Reward ID must be numeric.",
                    {"reward_id": reward_id},
                )
            parsed = int(text)

        if parsed <= 0:
            raise GateError(
                "G2_RewardReference",
                "Reward ID must be positive.",
                {"reward_id": reward_id},
            )

        return GateResult(True, "G2_RewardReference", value=parsed)
