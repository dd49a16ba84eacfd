"""
요청 스키마 (Pydantic)

Web API 요청 데이터 검증
금액/수량/단가는 Decimal로 받는다 (JSON 숫자 또는 문자열 모두 허용).
"""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from core.constants import Defaults


# =========================================================================
# 계좌 / 카탈로그
# =========================================================================


class AccountCreateRequest(BaseModel):
    """계좌 생성 요청"""

    name: str = Field(..., min_length=1, description="계좌 이름")
    account_type: str = Field(..., description="계좌 유형 (CASH/BANK/CARD/INVESTMENT/OTHER)")
    currency: str = Field(default=Defaults.CURRENCY, description="통화 코드")
    starting_balance: Decimal = Field(default=Decimal("0"), description="시작 잔액")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "name": "월급 통장",
                    "account_type": "BANK",
                    "currency": "KRW",
                    "starting_balance": "1000000",
                },
            ]
        }
    }


class AccountUpdateRequest(BaseModel):
    """계좌 수정 요청 (잔액은 수정 불가)"""

    name: str | None = Field(default=None, description="계좌 이름")
    is_archived: bool | None = Field(default=None, description="보관 여부")


class CategoryCreateRequest(BaseModel):
    """카테고리 생성 요청"""

    name: str = Field(..., min_length=1, description="카테고리 이름")
    category_type: str = Field(..., description="카테고리 유형 (INCOME/EXPENSE)")


class TagCreateRequest(BaseModel):
    """태그 생성 요청"""

    name: str = Field(..., min_length=1, description="태그 이름")


class AssetCreateRequest(BaseModel):
    """투자 자산 생성 요청"""

    symbol: str = Field(..., min_length=1, description="심볼 (예: 005930, AAPL)")
    name: str = Field(..., min_length=1, description="자산 이름")
    asset_type: str = Field(..., description="자산 유형 (STOCK/ETF/FUND/CRYPTO/BOND/OTHER)")
    currency: str = Field(default=Defaults.CURRENCY, description="통화 코드")


# =========================================================================
# 일반 거래
# =========================================================================


class TransactionCreateRequest(BaseModel):
    """거래 생성 요청

    INCOME/EXPENSE: account_id 필수, category_id 선택
    TRANSFER: from_account_id, to_account_id 필수 (서로 달라야 함)
    """

    type: str = Field(..., description="거래 유형 (INCOME/EXPENSE/TRANSFER)")
    amount: Decimal = Field(..., description="금액 (0보다 커야 함)")
    currency: str | None = Field(default=None, description="통화 (없으면 계좌 통화)")
    occurred_at: datetime = Field(..., description="거래 일시")
    account_id: str | None = Field(default=None, description="계좌 ID (INCOME/EXPENSE)")
    category_id: str | None = Field(default=None, description="카테고리 ID")
    from_account_id: str | None = Field(default=None, description="출금 계좌 ID (TRANSFER)")
    to_account_id: str | None = Field(default=None, description="입금 계좌 ID (TRANSFER)")
    note: str | None = Field(default=None, description="메모")
    tag_ids: list[str] = Field(default_factory=list, description="태그 ID 목록")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "type": "EXPENSE",
                    "amount": "12000",
                    "occurred_at": "2026-03-01T12:30:00+09:00",
                    "account_id": "a1b2c3",
                    "category_id": "food",
                    "note": "점심",
                },
                {
                    "type": "TRANSFER",
                    "amount": "500000",
                    "occurred_at": "2026-03-01T09:00:00+09:00",
                    "from_account_id": "a1b2c3",
                    "to_account_id": "d4e5f6",
                },
            ]
        }
    }


class TransactionUpdateRequest(BaseModel):
    """거래 수정 요청 (보낸 필드만 반영)"""

    type: str | None = Field(default=None, description="거래 유형")
    amount: Decimal | None = Field(default=None, description="금액")
    currency: str | None = Field(default=None, description="통화")
    occurred_at: datetime | None = Field(default=None, description="거래 일시")
    account_id: str | None = Field(default=None, description="계좌 ID")
    category_id: str | None = Field(default=None, description="카테고리 ID")
    from_account_id: str | None = Field(default=None, description="출금 계좌 ID")
    to_account_id: str | None = Field(default=None, description="입금 계좌 ID")
    note: str | None = Field(default=None, description="메모")
    tag_ids: list[str] | None = Field(default=None, description="태그 ID 목록 (통째로 교체)")


# =========================================================================
# 투자 거래
# =========================================================================


class InvestmentTransactionCreateRequest(BaseModel):
    """투자 거래 생성 요청

    BUY/SELL: units, price_per_unit 필수. net_amount 생략 시
    (gross_amount 또는 units × price_per_unit) - fee_amount - tax_amount.
    그 외 유형: net_amount 필수.
    """

    asset_id: str = Field(..., description="투자 자산 ID")
    type: str = Field(..., description="유형 (BUY/SELL/DIVIDEND/FEE/DEPOSIT/WITHDRAW)")
    units: Decimal | None = Field(default=None, description="수량")
    price_per_unit: Decimal | None = Field(default=None, description="단가")
    gross_amount: Decimal | None = Field(default=None, description="총액")
    fee_amount: Decimal | None = Field(default=None, description="수수료")
    tax_amount: Decimal | None = Field(default=None, description="세금")
    net_amount: Decimal | None = Field(default=None, description="순액")
    occurred_at: datetime = Field(..., description="거래 일시")
    note: str | None = Field(default=None, description="메모")
    cash_account_id: str | None = Field(default=None, description="연결 현금 계좌 ID")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "asset_id": "asset-1",
                    "type": "BUY",
                    "units": "10",
                    "price_per_unit": "9000",
                    "fee_amount": "500",
                    "occurred_at": "2026-03-02T10:00:00+09:00",
                    "cash_account_id": "a1b2c3",
                },
            ]
        }
    }


class InvestmentTransactionUpdateRequest(BaseModel):
    """투자 거래 수정 요청 (보낸 필드만 반영)"""

    asset_id: str | None = Field(default=None, description="투자 자산 ID")
    type: str | None = Field(default=None, description="유형")
    units: Decimal | None = Field(default=None, description="수량")
    price_per_unit: Decimal | None = Field(default=None, description="단가")
    gross_amount: Decimal | None = Field(default=None, description="총액")
    fee_amount: Decimal | None = Field(default=None, description="수수료")
    tax_amount: Decimal | None = Field(default=None, description="세금")
    net_amount: Decimal | None = Field(default=None, description="순액")
    occurred_at: datetime | None = Field(default=None, description="거래 일시")
    note: str | None = Field(default=None, description="메모")
    cash_account_id: str | None = Field(default=None, description="연결 현금 계좌 ID")


# =========================================================================
# 반복 규칙
# =========================================================================


class RecurringRuleCreateRequest(BaseModel):
    """반복 규칙 생성 요청

    schedule_value 형식:
    - DAILY: 무시
    - WEEKLY: SUN ~ SAT
    - MONTHLY: 1 ~ 31 (짧은 달은 말일로 보정)
    - YEARLY: "MM-DD" 또는 "DD"
    """

    name: str = Field(..., min_length=1, description="규칙 이름")
    type: str = Field(..., description="거래 유형 (INCOME/EXPENSE)")
    amount: Decimal = Field(..., description="금액")
    currency: str | None = Field(default=None, description="통화 (없으면 계좌 통화)")
    category_id: str = Field(..., description="카테고리 ID")
    account_id: str = Field(..., description="계좌 ID")
    schedule_type: str = Field(..., description="주기 (DAILY/WEEKLY/MONTHLY/YEARLY)")
    schedule_value: str = Field(default="", description="주기 값")
    next_run_at: datetime = Field(..., description="첫 실행 예정 시각")
    is_active: bool = Field(default=True, description="활성 여부")


class RecurringRuleUpdateRequest(BaseModel):
    """반복 규칙 수정 요청 (보낸 필드만 반영)"""

    name: str | None = Field(default=None, description="규칙 이름")
    type: str | None = Field(default=None, description="거래 유형")
    amount: Decimal | None = Field(default=None, description="금액")
    currency: str | None = Field(default=None, description="통화")
    category_id: str | None = Field(default=None, description="카테고리 ID")
    account_id: str | None = Field(default=None, description="계좌 ID")
    schedule_type: str | None = Field(default=None, description="주기")
    schedule_value: str | None = Field(default=None, description="주기 값")
    next_run_at: datetime | None = Field(default=None, description="다음 실행 예정 시각")
    is_active: bool | None = Field(default=None, description="활성 여부")


# =========================================================================
# 채무 / 예산
# =========================================================================


class DebtCreateRequest(BaseModel):
    """채무 생성 요청 (amount_remaining 생략 시 총액과 같음)"""

    type: str = Field(..., description="채무 유형 (DEBT/RECEIVABLE)")
    person_name: str = Field(..., min_length=1, description="상대방 이름")
    amount_total: Decimal = Field(..., description="총액")
    amount_remaining: Decimal | None = Field(default=None, description="남은 금액")
    due_date: datetime | None = Field(default=None, description="만기일")
    interest_rate: Decimal | None = Field(default=None, description="이자율 (%)")
    minimum_payment: Decimal | None = Field(default=None, description="최소 상환액")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "type": "DEBT",
                    "person_name": "홍길동",
                    "amount_total": "1000000",
                    "due_date": "2026-12-31T00:00:00+09:00",
                },
            ]
        }
    }


class DebtUpdateRequest(BaseModel):
    """채무 수정 요청 (보낸 필드만 반영, 상태는 남은 금액으로 재계산)"""

    type: str | None = Field(default=None, description="채무 유형")
    person_name: str | None = Field(default=None, description="상대방 이름")
    amount_total: Decimal | None = Field(default=None, description="총액")
    amount_remaining: Decimal | None = Field(default=None, description="남은 금액")
    due_date: datetime | None = Field(default=None, description="만기일")
    interest_rate: Decimal | None = Field(default=None, description="이자율 (%)")
    minimum_payment: Decimal | None = Field(default=None, description="최소 상환액")


class DebtPaymentRequest(BaseModel):
    """상환 기록 요청"""

    amount_paid: Decimal = Field(..., description="상환액 (남은 금액 이하)")
    paid_at: datetime | None = Field(default=None, description="상환 일시 (없으면 현재)")
    transaction_id: str | None = Field(default=None, description="연결할 거래 ID")


class BudgetItemRequest(BaseModel):
    """카테고리별 예산 한도"""

    category_id: str = Field(..., description="EXPENSE 카테고리 ID")
    limit_amount: Decimal = Field(..., description="한도")


class BudgetUpsertRequest(BaseModel):
    """월 예산 저장 요청 (해당 월 예산이 있으면 항목 전체 교체)"""

    year: int = Field(..., description="연도 (2000~3000)")
    month: int = Field(..., description="월 (1~12)")
    total_limit: Decimal | None = Field(default=None, description="전체 한도")
    items: list[BudgetItemRequest] = Field(default_factory=list, description="카테고리별 한도")
