"""Global enums — must match DB CHECK constraints exactly.

See alembic/versions/003_create_red_envelopes.py and 005_create_orders.py.
"""

from enum import Enum


class EnvelopeType(str, Enum):
    FIXED = "FIXED"
    RANDOM = "RANDOM"


class EnvelopeStatus(str, Enum):
    """ACTIVE is the only non-terminal state: ACTIVE → FINISHED | EXPIRED."""
    ACTIVE = "ACTIVE"
    FINISHED = "FINISHED"
    EXPIRED = "EXPIRED"


class EnvelopeBox(str, Enum):
    """Which side of the envelope the listing user is on."""
    SENT = "sent"
    RECEIVED = "received"


class OrderType(str, Enum):
    ENVELOPE_SEND = "ENVELOPE_SEND"
    ENVELOPE_RECEIVE = "ENVELOPE_RECEIVE"
    ENVELOPE_REFUND = "ENVELOPE_REFUND"


class OrderStatus(str, Enum):
    SUCCESS = "SUCCESS"


class BalanceOperation(str, Enum):
    ADD = "ADD"
    DEDUCT = "DEDUCT"
    # Credit available balance and roll back the matching lifetime counter
    REFUND = "REFUND"


class BalanceTotalField(str, Enum):
    TOTAL_PAYMENT = "total_payment"
    TOTAL_RECEIVE = "total_receive"


class ErrorKind(str, Enum):
    """Closed set of error kinds surfaced by the core."""
    NOT_FOUND = "NOT_FOUND"
    EXPIRED = "EXPIRED"
    FINISHED = "FINISHED"
    ALREADY_CLAIMED = "ALREADY_CLAIMED"
    LOCK_CONTENTION = "LOCK_CONTENTION"
    INSUFFICIENT_BALANCE = "INSUFFICIENT_BALANCE"
    INVALID_AMOUNT = "INVALID_AMOUNT"
    INVALID_COUNT = "INVALID_COUNT"
    DAILY_LIMIT_EXCEEDED = "DAILY_LIMIT_EXCEEDED"
    SELF_CLAIM_FORBIDDEN = "SELF_CLAIM_FORBIDDEN"
    FEATURE_DISABLED = "FEATURE_DISABLED"
    ACCOUNT_NOT_FOUND = "ACCOUNT_NOT_FOUND"
    UNAUTHORIZED = "UNAUTHORIZED"
    INTERNAL = "INTERNAL"
