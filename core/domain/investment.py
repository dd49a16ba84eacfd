"""
투자 거래 금액 계산

net_amount 산출과 현금 계좌 잔액 변동 방향 결정.
"""

from dataclasses import dataclass
from decimal import Decimal

from core.errors import ValidationError
from core.types import HOLDING_TYPES, InvestmentTransactionType
from core.utils.money import ZERO

# 현금 계좌에서 돈이 나가는 유형 (잔액 감소)
CASH_OUT_TYPES: frozenset[str] = frozenset({
    InvestmentTransactionType.BUY.value,
    InvestmentTransactionType.DEPOSIT.value,
    InvestmentTransactionType.FEE.value,
    InvestmentTransactionType.WITHDRAW.value,
})

# 현금 계좌로 돈이 들어오는 유형 (잔액 증가)
CASH_IN_TYPES: frozenset[str] = frozenset({
    InvestmentTransactionType.SELL.value,
    InvestmentTransactionType.DIVIDEND.value,
})


@dataclass(frozen=True)
class InvestmentAmounts:
    """저장할 금액 필드 묶음"""

    units: Decimal | None
    price_per_unit: Decimal | None
    gross_amount: Decimal | None
    fee_amount: Decimal
    tax_amount: Decimal
    net_amount: Decimal


def calculate_net_amount(
    tx_type: str,
    units: Decimal | None = None,
    price_per_unit: Decimal | None = None,
    gross_amount: Decimal | None = None,
    fee_amount: Decimal | None = None,
    tax_amount: Decimal | None = None,
    net_amount: Decimal | None = None,
) -> Decimal:
    """net_amount 산출

    - net_amount가 주어지면 그대로 사용 (0보다 커야 함)
    - BUY/SELL: gross(기본 units × price) - fee - tax
    - 그 외 유형: net_amount 필수

    Raises:
        ValidationError: 필수값 누락 또는 결과가 0 이하
    """
    if net_amount is not None:
        if net_amount <= ZERO:
            raise ValidationError("netAmount must be greater than 0")
        return net_amount

    if tx_type in HOLDING_TYPES:
        if not units or not price_per_unit:
            raise ValidationError("units and pricePerUnit are required for BUY/SELL")

        gross = gross_amount if gross_amount else units * price_per_unit
        net = gross - (fee_amount or ZERO) - (tax_amount or ZERO)

        if net <= ZERO:
            raise ValidationError("netAmount must be greater than 0")

        return net

    raise ValidationError("netAmount is required for this transaction type")


def build_amounts(
    tx_type: str,
    units: Decimal | None = None,
    price_per_unit: Decimal | None = None,
    gross_amount: Decimal | None = None,
    fee_amount: Decimal | None = None,
    tax_amount: Decimal | None = None,
    net_amount: Decimal | None = None,
) -> InvestmentAmounts:
    """유형에 맞게 정규화된 금액 필드 생성

    BUY/SELL이 아니면 units/price/gross는 None, fee/tax는 0으로 저장.
    """
    net = calculate_net_amount(
        tx_type,
        units=units,
        price_per_unit=price_per_unit,
        gross_amount=gross_amount,
        fee_amount=fee_amount,
        tax_amount=tax_amount,
        net_amount=net_amount,
    )

    if tx_type in HOLDING_TYPES:
        if not units or not price_per_unit:
            raise ValidationError("units and pricePerUnit are required for BUY/SELL")
        if units <= ZERO or price_per_unit <= ZERO:
            raise ValidationError("units and pricePerUnit must be greater than 0")
        return InvestmentAmounts(
            units=units,
            price_per_unit=price_per_unit,
            gross_amount=gross_amount if gross_amount else units * price_per_unit,
            fee_amount=fee_amount or ZERO,
            tax_amount=tax_amount or ZERO,
            net_amount=net,
        )

    return InvestmentAmounts(
        units=None,
        price_per_unit=None,
        gross_amount=None,
        fee_amount=ZERO,
        tax_amount=ZERO,
        net_amount=net,
    )


def cash_delta(tx_type: str, net_amount: Decimal) -> Decimal:
    """현금 계좌 잔액 변동값 (부호 포함)

    BUY/DEPOSIT/FEE/WITHDRAW는 차감, SELL/DIVIDEND는 가산.
    """
    if tx_type in CASH_OUT_TYPES:
        return -net_amount
    if tx_type in CASH_IN_TYPES:
        return net_amount
    return ZERO
