"""Tests for cr_common.errors and cr_common.response."""

import pytest

from src.cr_common.enums import ErrorKind
from src.cr_common.errors import (
    AccountNotFoundError,
    AlreadyClaimedError,
    AppError,
    CannotClaimOwnEnvelopeError,
    DailyLimitExceededError,
    EnvelopeExpiredError,
    EnvelopeFinishedError,
    EnvelopeNotFoundError,
    EnvelopesDisabledError,
    InsufficientBalanceError,
    InternalError,
    InvalidAmountError,
    InvalidCountError,
    LockContentionError,
)
from src.cr_common.response import ApiResponse, error_response, success_response


class TestAppError:
    def test_base_error(self) -> None:
        err = AppError(code=9002, message="Internal error")
        assert err.code == 9002
        assert err.message == "Internal error"
        assert err.http_status == 500
        assert err.kind == ErrorKind.INTERNAL
        assert err.retryable is False

    def test_is_exception(self) -> None:
        assert isinstance(AppError(code=1, message="test"), Exception)


class TestSpecificErrors:
    def test_insufficient_balance(self) -> None:
        err = InsufficientBalanceError(required=6500, available=3000)
        assert err.code == 2001
        assert err.http_status == 422
        assert err.kind == ErrorKind.INSUFFICIENT_BALANCE
        assert "6500" in err.message
        assert "3000" in err.message

    @pytest.mark.parametrize(
        ("err", "code", "status", "kind"),
        [
            (AccountNotFoundError("u1"), 2002, 404, ErrorKind.ACCOUNT_NOT_FOUND),
            (EnvelopeNotFoundError(7), 6001, 404, ErrorKind.NOT_FOUND),
            (EnvelopeExpiredError(7), 6002, 422, ErrorKind.EXPIRED),
            (EnvelopeFinishedError(7), 6003, 422, ErrorKind.FINISHED),
            (AlreadyClaimedError(7), 6004, 409, ErrorKind.ALREADY_CLAIMED),
            (CannotClaimOwnEnvelopeError(), 6005, 422, ErrorKind.SELF_CLAIM_FORBIDDEN),
            (LockContentionError(7), 6006, 429, ErrorKind.LOCK_CONTENTION),
            (InvalidAmountError("x"), 6007, 422, ErrorKind.INVALID_AMOUNT),
            (InvalidCountError("x"), 6008, 422, ErrorKind.INVALID_COUNT),
            (DailyLimitExceededError(10), 6009, 422, ErrorKind.DAILY_LIMIT_EXCEEDED),
            (EnvelopesDisabledError(), 6010, 403, ErrorKind.FEATURE_DISABLED),
            (InternalError(), 9002, 500, ErrorKind.INTERNAL),
        ],
    )
    def test_code_status_kind(self, err: AppError, code: int, status: int, kind: ErrorKind) -> None:
        assert err.code == code
        assert err.http_status == status
        assert err.kind == kind

    def test_only_lock_contention_is_retryable(self) -> None:
        assert LockContentionError(1).retryable is True
        assert AlreadyClaimedError(1).retryable is False
        assert EnvelopeExpiredError(1).retryable is False

    def test_envelope_id_in_message(self) -> None:
        assert "123456" in EnvelopeNotFoundError(123456).message


class TestApiResponse:
    def test_success_response(self) -> None:
        resp = success_response({"id": "1"})
        assert resp.code == 0
        assert resp.message == "success"
        assert resp.error_kind is None
        assert resp.data == {"id": "1"}

    def test_error_response_carries_kind(self) -> None:
        resp = error_response(AlreadyClaimedError(5))
        assert resp.code == 6004
        assert resp.error_kind == "ALREADY_CLAIMED"
        assert resp.data is None

    def test_request_id_generated(self) -> None:
        resp = ApiResponse()
        assert resp.request_id.startswith("req_")
        assert resp.timestamp
