"""Pointman exceptions."""

from enum import Enum


class BaseError(Exception):
    """
    Structured exception carrying a stable code plus free-form data.

    Subclasses declare `_default_messages` keyed by code.
    """

    _default_messages: dict[str, str] = {}

    def __init__(self, code: str, message: str | None = None, **data):
        self.code = code
        self.message = message or self._default_messages.get(code, code)
        self.data = data
        super().__init__(f"[{code}] {self.message}")

    def as_dict(self) -> dict:
        return {"code": self.code, "message": self.message, "data": self.data}


class ErrorKind(str, Enum):
    """Error classes a caller can branch on."""

    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    INSUFFICIENT_BALANCE = "insufficient_balance"
    STORE_UNAVAILABLE = "store_unavailable"
    CONFLICT = "conflict"

    @property
    def http_status(self) -> int:
        return _HTTP_STATUS[self]


_HTTP_STATUS = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.INSUFFICIENT_BALANCE: 400,
    ErrorKind.STORE_UNAVAILABLE: 503,
    ErrorKind.CONFLICT: 409,
}


class PointmanError(BaseError):
    """
    Structured exception for ledger operations.

    Usage:
        try:
            RedemptionService.redeem_or_raise(member_id, "7")
        except PointmanError as e:
            if e.kind is ErrorKind.INSUFFICIENT_BALANCE:
                handle_insufficient()
    """

    _default_messages = {
        "INVALID_REWARD_ID": "Valid Reward ID is required.",
        "REWARD_NOT_FOUND": "Reward not found or is not active.",
        "MEMBER_NOT_FOUND": "Member not found.",
        "INSUFFICIENT_POINTS": "Insufficient points.",
        "STORE_UNAVAILABLE": "Points store unavailable.",
        "INVALID_POS_CUSTOMER_ID": "POS customer ID is required.",
        "POS_CUSTOMER_ALREADY_LINKED": "POS customer is already linked to another member.",
        "MEMBER_ALREADY_LINKED": "Member is already linked to a different POS customer.",
    }

    _kinds = {
        "INVALID_REWARD_ID": ErrorKind.VALIDATION,
        "INVALID_POS_CUSTOMER_ID": ErrorKind.VALIDATION,
        "REWARD_NOT_FOUND": ErrorKind.NOT_FOUND,
        "MEMBER_NOT_FOUND": ErrorKind.NOT_FOUND,
        "INSUFFICIENT_POINTS": ErrorKind.INSUFFICIENT_BALANCE,
        "STORE_UNAVAILABLE": ErrorKind.STORE_UNAVAILABLE,
        "POS_CUSTOMER_ALREADY_LINKED": ErrorKind.CONFLICT,
        "MEMBER_ALREADY_LINKED": ErrorKind.CONFLICT,
    }

    @property
    def kind(self) -> ErrorKind:
        return self._kinds.get(self.code, ErrorKind.VALIDATION)
