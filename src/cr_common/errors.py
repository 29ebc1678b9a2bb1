"""Unified error codes and custom exceptions.

Error code ranges:
  1xxx: Auth
  2xxx: Account
  6xxx: Red envelope
  9xxx: System

Every error carries an ErrorKind so callers branch on structure, never on
message text.
"""

from src.cr_common.enums import ErrorKind


class AppError(Exception):
    """Base application error."""

    def __init__(
        self,
        code: int,
        message: str,
        http_status: int = 500,
        kind: ErrorKind = ErrorKind.INTERNAL,
        retryable: bool = False,
    ) -> None:
        self.code = code
        self.message = message
        self.http_status = http_status
        self.kind = kind
        self.retryable = retryable
        super().__init__(message)


# --- 1xxx: Auth ---

class InvalidCredentialsError(AppError):
    def __init__(self) -> None:
        super().__init__(1003, "Invalid or expired token", 401, ErrorKind.UNAUTHORIZED)


# --- 2xxx: Account ---

class InsufficientBalanceError(AppError):
    def __init__(self, required: int, available: int) -> None:
        super().__init__(
            2001,
            f"Insufficient balance: required {required} cents, available {available} cents",
            422,
            ErrorKind.INSUFFICIENT_BALANCE,
        )


class AccountNotFoundError(AppError):
    def __init__(self, user_id: str) -> None:
        super().__init__(
            2002, f"Account not found for user {user_id}", 404, ErrorKind.ACCOUNT_NOT_FOUND
        )


# --- 6xxx: Red envelope ---

class EnvelopeNotFoundError(AppError):
    def __init__(self, envelope_id: int) -> None:
        super().__init__(6001, f"Red envelope not found: {envelope_id}", 404, ErrorKind.NOT_FOUND)


class EnvelopeExpiredError(AppError):
    def __init__(self, envelope_id: int) -> None:
        super().__init__(6002, f"Red envelope has expired: {envelope_id}", 422, ErrorKind.EXPIRED)


class EnvelopeFinishedError(AppError):
    def __init__(self, envelope_id: int) -> None:
        super().__init__(
            6003, f"Red envelope has been fully claimed: {envelope_id}", 422, ErrorKind.FINISHED
        )


class AlreadyClaimedError(AppError):
    def __init__(self, envelope_id: int) -> None:
        super().__init__(
            6004,
            f"You have already claimed red envelope {envelope_id}",
            409,
            ErrorKind.ALREADY_CLAIMED,
        )


class CannotClaimOwnEnvelopeError(AppError):
    def __init__(self) -> None:
        super().__init__(
            6005, "Cannot claim your own red envelope", 422, ErrorKind.SELF_CLAIM_FORBIDDEN
        )


class LockContentionError(AppError):
    def __init__(self, envelope_id: int) -> None:
        super().__init__(
            6006,
            f"Red envelope {envelope_id} is too popular right now, please try again",
            429,
            ErrorKind.LOCK_CONTENTION,
            retryable=True,
        )


class InvalidAmountError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(6007, f"Invalid amount: {detail}", 422, ErrorKind.INVALID_AMOUNT)


class InvalidCountError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(6008, f"Invalid count: {detail}", 422, ErrorKind.INVALID_COUNT)


class DailyLimitExceededError(AppError):
    def __init__(self, limit: int) -> None:
        super().__init__(
            6009,
            f"Daily red envelope limit reached: {limit} per day",
            422,
            ErrorKind.DAILY_LIMIT_EXCEEDED,
        )


class EnvelopesDisabledError(AppError):
    def __init__(self) -> None:
        super().__init__(6010, "Red envelopes are disabled", 403, ErrorKind.FEATURE_DISABLED)


# --- 9xxx: System ---

class InternalError(AppError):
    def __init__(self, detail: str = "Internal server error") -> None:
        super().__init__(9002, detail, 500, ErrorKind.INTERNAL)
