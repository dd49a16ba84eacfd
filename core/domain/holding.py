"""
Holding State Machine

자산별 보유 현황의 가중평균 원가 상태 전이.
저장소와 분리된 순수 함수로 구성되어 단독으로 검증 가능.

상태:
- ABSENT: 보유 행 없음
- HELD(units, avg_price): units > 0

전이 규칙:
- apply_buy:    ABSENT → HELD(n, p)
                HELD(u, a) → HELD(u+n, (u·a + n·p)/(u+n))
- apply_sell:   HELD(u, a), u >= n → u == n 이면 ABSENT, 아니면 HELD(u-n, a)
                그 외 → InsufficientHoldingError
- reverse_buy:  apply_buy의 역산. HELD(u, a) → HELD(u-n, (u·a - n·p)/(u-n))
                u-n <= 0 이면 ABSENT
- reverse_sell: apply_sell의 역산. apply_buy와 같은 가중평균 공식

reverse_* 결과는 나눗셈 반올림 때문에 원래 상태와 자릿수까지 같다는 보장이 없다.
저장되는 보유 현황은 replay_holdings로 이력을 다시 재생해서 만든다.
"""

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any, Iterable

from core.constants import HoldingPolicy
from core.errors import InsufficientHoldingError, ValidationError
from core.types import InvestmentTransactionType

logger = logging.getLogger(__name__)


class HoldingStatus(str, Enum):
    """보유 상태"""

    ABSENT = "ABSENT"
    HELD = "HELD"


@dataclass(frozen=True)
class HoldingState:
    """보유 상태 값 (불변)

    ABSENT는 units=0, avg_price=0으로 표현한다.
    HoldingState.absent() / HoldingState.held()로 생성.
    """

    status: HoldingStatus
    units: Decimal = Decimal("0")
    avg_price: Decimal = Decimal("0")

    @classmethod
    def absent(cls) -> "HoldingState":
        return cls(status=HoldingStatus.ABSENT)

    @classmethod
    def held(cls, units: Decimal, avg_price: Decimal) -> "HoldingState":
        if units <= 0:
            raise ValueError(f"HELD requires units > 0: {units}")
        return cls(status=HoldingStatus.HELD, units=units, avg_price=avg_price)

    @property
    def is_held(self) -> bool:
        return self.status == HoldingStatus.HELD

    @property
    def cost_basis(self) -> Decimal:
        """보유 원가 총액 (units × avg_price)"""
        return self.units * self.avg_price


ABSENT = HoldingState.absent()


def _check_trade(units: Decimal, price: Decimal) -> None:
    if units <= 0:
        raise ValidationError("units must be greater than 0")
    if price <= 0:
        raise ValidationError("pricePerUnit must be greater than 0")


def apply_buy(state: HoldingState, units: Decimal, price: Decimal) -> HoldingState:
    """매수 반영 (가중평균 재계산)"""
    _check_trade(units, price)

    if not state.is_held:
        return HoldingState.held(units, price)

    total_units = state.units + units
    new_avg = (state.cost_basis + units * price) / total_units
    return HoldingState.held(total_units, new_avg)


def apply_sell(state: HoldingState, units: Decimal, price: Decimal) -> HoldingState:
    """매도 반영 (평균단가 유지, 수량만 감소)

    Raises:
        InsufficientHoldingError: 보유가 없거나 보유 수량보다 많이 매도하는 경우
    """
    _check_trade(units, price)

    if not state.is_held:
        raise InsufficientHoldingError("Cannot SELL: No holding found for this asset")

    if state.units < units:
        raise InsufficientHoldingError(
            f"Cannot SELL: Insufficient units. Available: {state.units}, Requested: {units}"
        )

    remaining = state.units - units
    if remaining == 0:
        return ABSENT

    return HoldingState.held(remaining, state.avg_price)


def reverse_buy(state: HoldingState, units: Decimal, price: Decimal) -> HoldingState:
    """매수 취소 (apply_buy의 역산)

    이 매수가 기여한 원가(units × price)를 빼서 매수 이전 평균단가를 복원.
    재계산된 평균단가가 HoldingPolicy.AVG_PRICE_FLOOR 이하이면
    (반올림 누적 오차) 현재 평균단가를 유지한다.

    Raises:
        InsufficientHoldingError: 되돌릴 보유가 없는 경우
    """
    _check_trade(units, price)

    if not state.is_held:
        raise InsufficientHoldingError("Cannot reverse BUY: Holding not found")

    remaining = state.units - units
    if remaining <= 0:
        return ABSENT

    new_avg = (state.cost_basis - units * price) / remaining
    if new_avg <= HoldingPolicy.AVG_PRICE_FLOOR:
        logger.warning(
            f"매수 역산 평균단가 비정상, 기존 평균단가 유지: {new_avg}",
            extra={"units": str(units), "price": str(price), "avg_price": str(state.avg_price)},
        )
        new_avg = state.avg_price

    return HoldingState.held(remaining, new_avg)


def reverse_sell(state: HoldingState, units: Decimal, price: Decimal) -> HoldingState:
    """매도 취소 (apply_sell의 역산)

    매도는 평균단가를 바꾸지 않으므로, 매도 시점의 평균단가로
    같은 수량을 되사는 것과 같다. 공식은 apply_buy와 동일.
    """
    return apply_buy(state, units, price)


def apply_trade(
    state: HoldingState,
    tx_type: str,
    units: Decimal,
    price: Decimal,
) -> HoldingState:
    """BUY/SELL 유형에 맞는 전이 적용"""
    if tx_type == InvestmentTransactionType.BUY.value:
        return apply_buy(state, units, price)
    if tx_type == InvestmentTransactionType.SELL.value:
        return apply_sell(state, units, price)
    raise ValueError(f"Not a holding transaction type: {tx_type}")


def reverse_trade(
    state: HoldingState,
    tx_type: str,
    units: Decimal,
    price: Decimal,
) -> HoldingState:
    """BUY/SELL 유형에 맞는 역전이 적용"""
    if tx_type == InvestmentTransactionType.BUY.value:
        return reverse_buy(state, units, price)
    if tx_type == InvestmentTransactionType.SELL.value:
        return reverse_sell(state, units, price)
    raise ValueError(f"Not a holding transaction type: {tx_type}")


@dataclass(frozen=True)
class ReplayResult:
    """전체 재계산 결과"""

    holdings: dict[str, HoldingState]
    processed: int
    skipped_ids: list[str]
    # 매도 id → 매도 시점 평균단가
    sell_cost_basis: dict[str, Decimal]
    # 건너뛴 매도 id → 사유 메시지
    skip_reasons: dict[str, str] = field(default_factory=dict)


def replay_holdings(transactions: Iterable[dict[str, Any]]) -> ReplayResult:
    """BUY/SELL 이력을 처음부터 재생하여 자산별 보유 현황 계산

    transactions는 occurred_at 오름차순이어야 한다. 각 항목은
    id, asset_id, type, units, price_per_unit 키를 가진 dict.
    보유 수량을 음수로 만드는 SELL은 데이터 불일치로 보고 건너뛴다.

    Args:
        transactions: 정렬된 투자 거래 목록

    Returns:
        ReplayResult (HELD 상태만 포함)
    """
    states: dict[str, HoldingState] = {}
    processed = 0
    skipped: list[str] = []
    sell_cost_basis: dict[str, Decimal] = {}
    skip_reasons: dict[str, str] = {}

    for tx in transactions:
        processed += 1
        units = tx.get("units")
        price = tx.get("price_per_unit")
        if not units or not price:
            continue

        asset_id = tx["asset_id"]
        state = states.get(asset_id, ABSENT)

        try:
            if tx["type"] == InvestmentTransactionType.SELL.value:
                avg_at_sale = state.avg_price
                new_state = apply_sell(state, units, price)
                sell_cost_basis[tx["id"]] = avg_at_sale
            else:
                new_state = apply_trade(state, tx["type"], units, price)
        except InsufficientHoldingError as e:
            logger.warning(
                f"재계산 중 보유 수량 초과 매도 건너뜀: {tx['id']}",
                extra={"asset_id": asset_id, "units": str(units)},
            )
            skipped.append(tx["id"])
            skip_reasons[tx["id"]] = e.message
            continue

        states[asset_id] = new_state

    holdings = {
        asset_id: state
        for asset_id, state in states.items()
        if state.is_held
    }

    return ReplayResult(
        holdings=holdings,
        processed=processed,
        skipped_ids=skipped,
        sell_cost_basis=sell_cost_basis,
        skip_reasons=skip_reasons,
    )
