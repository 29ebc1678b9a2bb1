"""Pure balance-delta rules shared by the SQL repository and test fakes."""

from dataclasses import dataclass

from src.cr_common.enums import BalanceOperation, BalanceTotalField


@dataclass(frozen=True)
class BalanceDelta:
    available: int
    total_payment: int
    total_receive: int


def compute_delta(
    amount: int, operation: BalanceOperation, total_field: BalanceTotalField
) -> BalanceDelta:
    """Signed column deltas for one balance mutation.

    ADD     available +amount, counter +amount
    DEDUCT  available -amount, counter +amount
    REFUND  available +amount, counter -amount
    """
    if amount <= 0:
        raise ValueError(f"Balance mutation amount must be positive, got {amount}")

    if operation == BalanceOperation.ADD:
        available, counter = amount, amount
    elif operation == BalanceOperation.DEDUCT:
        available, counter = -amount, amount
    elif operation == BalanceOperation.REFUND:
        available, counter = amount, -amount
    else:
        raise ValueError(f"Unknown balance operation: {operation}")

    if total_field == BalanceTotalField.TOTAL_PAYMENT:
        return BalanceDelta(available=available, total_payment=counter, total_receive=0)
    return BalanceDelta(available=available, total_payment=0, total_receive=counter)
