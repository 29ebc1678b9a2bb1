"""Tests for cr_common.enums — all enum values must match DB CHECK constraints."""

from src.cr_common.enums import (
    BalanceOperation,
    BalanceTotalField,
    EnvelopeBox,
    EnvelopeStatus,
    EnvelopeType,
    ErrorKind,
    OrderStatus,
    OrderType,
)


class TestAllEnumsAreStr:
    """All enums inherit from (str, Enum) for JSON serialization."""

    def test_envelope_type_is_str(self) -> None:
        assert isinstance(EnvelopeType.RANDOM, str)
        assert EnvelopeType.RANDOM == "RANDOM"

    def test_order_type_is_str(self) -> None:
        assert isinstance(OrderType.ENVELOPE_REFUND, str)
        assert OrderType.ENVELOPE_REFUND == "ENVELOPE_REFUND"


class TestEnvelopeEnums:
    def test_types(self) -> None:
        assert {t.value for t in EnvelopeType} == {"FIXED", "RANDOM"}

    def test_statuses(self) -> None:
        assert {s.value for s in EnvelopeStatus} == {"ACTIVE", "FINISHED", "EXPIRED"}

    def test_boxes_are_lowercase_wire_values(self) -> None:
        assert EnvelopeBox("sent") is EnvelopeBox.SENT
        assert EnvelopeBox("received") is EnvelopeBox.RECEIVED


class TestLedgerEnums:
    def test_order_types(self) -> None:
        expected = {"ENVELOPE_SEND", "ENVELOPE_RECEIVE", "ENVELOPE_REFUND"}
        assert {t.value for t in OrderType} == expected

    def test_order_status(self) -> None:
        assert {s.value for s in OrderStatus} == {"SUCCESS"}


class TestBalanceEnums:
    def test_operations(self) -> None:
        assert {o.value for o in BalanceOperation} == {"ADD", "DEDUCT", "REFUND"}

    def test_total_fields_are_column_names(self) -> None:
        assert BalanceTotalField.TOTAL_PAYMENT.value == "total_payment"
        assert BalanceTotalField.TOTAL_RECEIVE.value == "total_receive"


class TestErrorKind:
    def test_closed_set(self) -> None:
        assert len(ErrorKind) == 14
        assert ErrorKind("LOCK_CONTENTION") is ErrorKind.LOCK_CONTENTION
