"""
채무 잔액 계산

상환이 남은 금액(amount_remaining)과 상태를 바꾸는 규칙.
- 0 <= 남은 금액 <= 총액
- 상환액은 0보다 크고 남은 금액 이하
- 남은 금액이 0이 되면 CLOSED, 그 외 OPEN
- CLOSED 채무에는 상환을 추가할 수 없음
"""

from dataclasses import dataclass
from decimal import Decimal

from core.errors import ValidationError
from core.types import DebtStatus
from core.utils.money import ZERO


def status_for(remaining: Decimal) -> DebtStatus:
    """남은 금액 기준 상태"""
    return DebtStatus.CLOSED if remaining <= ZERO else DebtStatus.OPEN


def validate_amounts(total: Decimal, remaining: Decimal) -> None:
    """총액/남은 금액 검증

    Raises:
        ValidationError: 총액 <= 0, 남은 금액 < 0, 남은 금액 > 총액
    """
    if total <= ZERO:
        raise ValidationError("amountTotal must be greater than 0")
    if remaining < ZERO:
        raise ValidationError("amountRemaining must not be negative")
    if remaining > total:
        raise ValidationError("Remaining amount cannot exceed total amount")


@dataclass(frozen=True)
class PaymentResult:
    """상환 반영 결과"""

    remaining: Decimal
    status: DebtStatus


def apply_payment(remaining: Decimal, status: str, amount: Decimal) -> PaymentResult:
    """상환 1건 반영

    Args:
        remaining: 현재 남은 금액
        status: 현재 상태
        amount: 상환액

    Returns:
        PaymentResult (새 남은 금액, 새 상태)

    Raises:
        ValidationError: 종료된 채무, 0 이하 상환액, 남은 금액 초과 상환
    """
    if status == DebtStatus.CLOSED.value:
        raise ValidationError("Cannot add payment to closed debt")
    if amount <= ZERO:
        raise ValidationError("amountPaid must be greater than 0")
    if amount > remaining:
        raise ValidationError(
            f"Payment amount cannot exceed remaining amount. "
            f"Remaining: {remaining}, Requested: {amount}"
        )

    new_remaining = remaining - amount
    return PaymentResult(remaining=new_remaining, status=status_for(new_remaining))
