"""
투자 거래 금액 계산 테스트
"""

from decimal import Decimal

import pytest

from core.domain.investment import build_amounts, calculate_net_amount, cash_delta
from core.errors import ValidationError


class TestCalculateNetAmount:
    """net_amount 산출 테스트"""

    def test_gross_minus_fee_and_tax(self) -> None:
        """gross 90000 - fee 300 - tax 200 = 89500"""
        net = calculate_net_amount(
            "SELL",
            units=Decimal("10"),
            price_per_unit=Decimal("9000"),
            gross_amount=Decimal("90000"),
            fee_amount=Decimal("300"),
            tax_amount=Decimal("200"),
        )

        assert net == Decimal("89500")

    def test_gross_defaults_to_units_times_price(self) -> None:
        """gross 생략 시 units × price"""
        net = calculate_net_amount("BUY", units=Decimal("3"), price_per_unit=Decimal("1000"))

        assert net == Decimal("3000")

    def test_explicit_net_amount(self) -> None:
        """net_amount 지정 시 그대로 사용"""
        net = calculate_net_amount("DIVIDEND", net_amount=Decimal("1234"))

        assert net == Decimal("1234")

    def test_non_trade_requires_net(self) -> None:
        """DIVIDEND 등은 net_amount 필수"""
        with pytest.raises(ValidationError):
            calculate_net_amount("DIVIDEND")

    def test_buy_requires_units_and_price(self) -> None:
        """BUY는 units/price 필수"""
        with pytest.raises(ValidationError):
            calculate_net_amount("BUY", units=Decimal("1"))

    def test_non_positive_result_rejected(self) -> None:
        """수수료가 총액보다 크면 거부"""
        with pytest.raises(ValidationError):
            calculate_net_amount(
                "SELL",
                units=Decimal("1"),
                price_per_unit=Decimal("100"),
                fee_amount=Decimal("100"),
            )


class TestBuildAmounts:
    """저장 필드 정규화 테스트"""

    def test_trade_fields(self) -> None:
        """BUY는 gross 채움, fee/tax 기본 0"""
        amounts = build_amounts("BUY", units=Decimal("10"), price_per_unit=Decimal("9000"))

        assert amounts.gross_amount == Decimal("90000")
        assert amounts.fee_amount == Decimal("0")
        assert amounts.tax_amount == Decimal("0")
        assert amounts.net_amount == Decimal("90000")

    def test_non_trade_drops_units(self) -> None:
        """DIVIDEND는 units/price/gross 없음"""
        amounts = build_amounts(
            "DIVIDEND",
            units=Decimal("10"),
            price_per_unit=Decimal("1"),
            net_amount=Decimal("500"),
        )

        assert amounts.units is None
        assert amounts.price_per_unit is None
        assert amounts.gross_amount is None
        assert amounts.net_amount == Decimal("500")


class TestCashDelta:
    """현금 잔액 방향 테스트"""

    @pytest.mark.parametrize(
        "tx_type,expected",
        [
            ("BUY", Decimal("-100")),
            ("DEPOSIT", Decimal("-100")),
            ("FEE", Decimal("-100")),
            ("WITHDRAW", Decimal("-100")),
            ("SELL", Decimal("100")),
            ("DIVIDEND", Decimal("100")),
        ],
    )
    def test_direction(self, tx_type: str, expected: Decimal) -> None:
        assert cash_delta(tx_type, Decimal("100")) == expected
