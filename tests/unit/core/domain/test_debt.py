"""
채무 잔액 계산 테스트
"""

from decimal import Decimal

import pytest

from core.domain.debt import apply_payment, status_for, validate_amounts
from core.errors import ValidationError
from core.types import DebtStatus


class TestApplyPayment:
    """상환 반영 테스트"""

    def test_partial_payment_stays_open(self) -> None:
        result = apply_payment(Decimal("1000"), "OPEN", Decimal("300"))

        assert result.remaining == Decimal("700")
        assert result.status == DebtStatus.OPEN

    def test_full_payment_closes(self) -> None:
        """남은 금액과 같은 상환 → 0, CLOSED"""
        result = apply_payment(Decimal("700.50"), "OPEN", Decimal("700.50"))

        assert result.remaining == Decimal("0")
        assert result.status == DebtStatus.CLOSED

    def test_overpayment_rejected(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            apply_payment(Decimal("100"), "OPEN", Decimal("100.01"))

        assert exc_info.value.message == (
            "Payment amount cannot exceed remaining amount. Remaining: 100, Requested: 100.01"
        )

    @pytest.mark.parametrize("amount", ["0", "-5"])
    def test_non_positive_rejected(self, amount: str) -> None:
        with pytest.raises(ValidationError, match="greater than 0"):
            apply_payment(Decimal("100"), "OPEN", Decimal(amount))

    def test_closed_debt_rejected(self) -> None:
        with pytest.raises(ValidationError, match="closed debt"):
            apply_payment(Decimal("100"), "CLOSED", Decimal("1"))


class TestValidateAmounts:
    """총액/남은 금액 검증 테스트"""

    def test_remaining_above_total_rejected(self) -> None:
        with pytest.raises(ValidationError, match="cannot exceed total"):
            validate_amounts(Decimal("100"), Decimal("101"))

    def test_zero_total_rejected(self) -> None:
        with pytest.raises(ValidationError, match="amountTotal"):
            validate_amounts(Decimal("0"), Decimal("0"))

    def test_negative_remaining_rejected(self) -> None:
        with pytest.raises(ValidationError, match="amountRemaining"):
            validate_amounts(Decimal("100"), Decimal("-1"))

    def test_status_for(self) -> None:
        assert status_for(Decimal("0")) == DebtStatus.CLOSED
        assert status_for(Decimal("0.01")) == DebtStatus.OPEN
