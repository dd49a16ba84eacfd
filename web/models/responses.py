"""
응답 스키마 (Pydantic)

Web API 응답 데이터 직렬화
금액/수량/단가는 정밀도 보존을 위해 문자열로 반환.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """헬스 체크 응답"""

    status: str = Field(default="ok", description="서비스 상태")
    mode: str = Field(..., description="실행 모드 (development/production)")
    version: str = Field(..., description="API 버전")
    timestamp: datetime = Field(..., description="응답 시간 (UTC)")


class ErrorResponse(BaseModel):
    """오류 응답"""

    success: bool = Field(default=False, description="항상 false")
    message: str = Field(..., description="오류 메시지")
    code: str = Field(..., description="오류 코드")


class PaginationResponse(BaseModel):
    """페이지네이션 정보"""

    page: int = Field(..., description="현재 페이지 (1부터)")
    limit: int = Field(..., description="페이지 크기")
    total: int = Field(..., description="전체 건수")
    total_pages: int = Field(..., description="전체 페이지 수")


# =========================================================================
# 계좌 / 카탈로그
# =========================================================================


class AccountResponse(BaseModel):
    """계좌 응답"""

    id: str = Field(..., description="계좌 ID")
    name: str = Field(..., description="계좌 이름")
    account_type: str = Field(..., description="계좌 유형")
    currency: str = Field(..., description="통화")
    starting_balance: str = Field(..., description="시작 잔액")
    current_balance: str = Field(..., description="현재 잔액")
    is_archived: bool = Field(..., description="보관 여부")
    created_at: str = Field(..., description="생성 시간")
    updated_at: str = Field(..., description="수정 시간")


class BalanceDriftResponse(BaseModel):
    """잔액 불일치 항목"""

    account_id: str = Field(..., description="계좌 ID")
    name: str = Field(..., description="계좌 이름")
    expected: str = Field(..., description="거래 이력으로 계산한 잔액")
    actual: str = Field(..., description="저장된 잔액")
    difference: str = Field(..., description="actual - expected")


class ReconcileResponse(BaseModel):
    """잔액 정합성 점검 결과"""

    is_consistent: bool = Field(..., description="불일치 없음 여부")
    drifts: list[BalanceDriftResponse] = Field(default_factory=list, description="불일치 목록")


class CategoryResponse(BaseModel):
    """카테고리 응답"""

    id: str = Field(..., description="카테고리 ID")
    name: str = Field(..., description="이름")
    category_type: str = Field(..., description="유형 (INCOME/EXPENSE)")


class TagResponse(BaseModel):
    """태그 응답"""

    id: str = Field(..., description="태그 ID")
    name: str = Field(..., description="이름")


class AssetResponse(BaseModel):
    """투자 자산 응답"""

    id: str = Field(..., description="자산 ID")
    symbol: str = Field(..., description="심볼")
    name: str = Field(..., description="이름")
    asset_type: str = Field(..., description="자산 유형")
    currency: str = Field(..., description="통화")


# =========================================================================
# 거래
# =========================================================================


class TransactionResponse(BaseModel):
    """일반 거래 응답"""

    id: str = Field(..., description="거래 ID")
    type: str = Field(..., description="거래 유형")
    amount: str = Field(..., description="금액")
    currency: str = Field(..., description="통화")
    occurred_at: str = Field(..., description="거래 일시 (UTC)")
    account_id: str | None = Field(default=None, description="계좌 ID")
    category_id: str | None = Field(default=None, description="카테고리 ID")
    from_account_id: str | None = Field(default=None, description="출금 계좌 ID")
    to_account_id: str | None = Field(default=None, description="입금 계좌 ID")
    note: str | None = Field(default=None, description="메모")
    tag_ids: list[str] = Field(default_factory=list, description="태그 ID 목록")
    created_at: str = Field(..., description="생성 시간")
    updated_at: str = Field(..., description="수정 시간")


class TransactionListResponse(BaseModel):
    """일반 거래 목록 응답"""

    transactions: list[TransactionResponse] = Field(default_factory=list, description="거래 목록")
    pagination: PaginationResponse = Field(..., description="페이지네이션")


class InvestmentTransactionResponse(BaseModel):
    """투자 거래 응답"""

    id: str = Field(..., description="거래 ID")
    asset_id: str = Field(..., description="자산 ID")
    type: str = Field(..., description="유형")
    units: str | None = Field(default=None, description="수량")
    price_per_unit: str | None = Field(default=None, description="단가")
    gross_amount: str | None = Field(default=None, description="총액")
    fee_amount: str = Field(..., description="수수료")
    tax_amount: str = Field(..., description="세금")
    net_amount: str = Field(..., description="순액")
    cost_basis_per_unit: str | None = Field(
        default=None,
        description="매도 시점 평균단가 (SELL만)",
    )
    occurred_at: str = Field(..., description="거래 일시 (UTC)")
    note: str | None = Field(default=None, description="메모")
    cash_account_id: str | None = Field(default=None, description="연결 현금 계좌 ID")
    created_at: str = Field(..., description="생성 시간")
    updated_at: str = Field(..., description="수정 시간")


class InvestmentTransactionListResponse(BaseModel):
    """투자 거래 목록 응답"""

    transactions: list[InvestmentTransactionResponse] = Field(
        default_factory=list,
        description="투자 거래 목록",
    )
    pagination: PaginationResponse = Field(..., description="페이지네이션")


# =========================================================================
# 반복 규칙
# =========================================================================


class RecurringRunResponse(BaseModel):
    """반복 실행 기록"""

    id: str = Field(..., description="실행 기록 ID")
    transaction_id: str = Field(..., description="생성된 거래 ID")
    executed_at: str = Field(..., description="실행 시각")


class RecurringRuleResponse(BaseModel):
    """반복 규칙 응답"""

    id: str = Field(..., description="규칙 ID")
    name: str = Field(..., description="규칙 이름")
    type: str = Field(..., description="거래 유형")
    amount: str = Field(..., description="금액")
    currency: str = Field(..., description="통화")
    category_id: str = Field(..., description="카테고리 ID")
    account_id: str = Field(..., description="계좌 ID")
    schedule_type: str = Field(..., description="주기")
    schedule_value: str = Field(..., description="주기 값")
    next_run_at: str = Field(..., description="다음 실행 예정 시각 (UTC)")
    is_active: bool = Field(..., description="활성 여부")
    runs: list[RecurringRunResponse] = Field(default_factory=list, description="최근 실행 기록")
    created_at: str = Field(..., description="생성 시간")
    updated_at: str = Field(..., description="수정 시간")


# =========================================================================
# 포트폴리오
# =========================================================================


class HoldingResponse(BaseModel):
    """보유 현황 응답"""

    id: str = Field(..., description="보유 ID")
    asset_id: str = Field(..., description="자산 ID")
    symbol: str = Field(..., description="심볼")
    name: str = Field(..., description="자산 이름")
    asset_type: str = Field(..., description="자산 유형")
    currency: str = Field(..., description="통화")
    units_total: str = Field(..., description="보유 수량")
    avg_buy_price: str = Field(..., description="평균 매수 단가")
    cost_basis: str = Field(..., description="보유 원가 (units × avg)")
    updated_at: str = Field(..., description="수정 시간")


class HoldingDetailResponse(HoldingResponse):
    """자산별 보유 현황 + 최근 투자 거래"""

    transactions: list[InvestmentTransactionResponse] = Field(
        default_factory=list,
        description="최근 투자 거래",
    )


class AllocationResponse(BaseModel):
    """자산 유형별 비중"""

    asset_type: str = Field(..., description="자산 유형")
    value: str = Field(..., description="원가 합계")
    ratio: str = Field(..., description="비중 (0~1)")


class PortfolioSummaryResponse(BaseModel):
    """포트폴리오 요약"""

    total_cost_basis: str = Field(..., description="보유 원가 합계")
    realized_pl: str = Field(..., description="실현 손익 (SELL 기준 단순 계산)")
    holdings_count: int = Field(..., description="보유 자산 수")
    allocation: list[AllocationResponse] = Field(default_factory=list, description="유형별 비중")


class RebuildResponse(BaseModel):
    """보유 현황 재계산 결과"""

    holdings_created: int = Field(..., description="생성된 보유 행 수")
    transactions_processed: int = Field(..., description="처리한 BUY/SELL 거래 수")


# =========================================================================
# 채무 / 예산
# =========================================================================


class DebtPaymentResponse(BaseModel):
    """상환 기록"""

    id: str = Field(..., description="상환 기록 ID")
    amount_paid: str = Field(..., description="상환액")
    paid_at: str = Field(..., description="상환 일시 (UTC)")
    transaction_id: str | None = Field(default=None, description="연결된 거래 ID")
    created_at: str = Field(..., description="생성 시간")


class DebtResponse(BaseModel):
    """채무 응답"""

    id: str = Field(..., description="채무 ID")
    type: str = Field(..., description="채무 유형")
    person_name: str = Field(..., description="상대방 이름")
    amount_total: str = Field(..., description="총액")
    amount_remaining: str = Field(..., description="남은 금액")
    due_date: str | None = Field(default=None, description="만기일 (UTC)")
    interest_rate: str | None = Field(default=None, description="이자율 (%)")
    minimum_payment: str | None = Field(default=None, description="최소 상환액")
    status: str = Field(..., description="상태 (OPEN/CLOSED)")
    payments: list[DebtPaymentResponse] = Field(default_factory=list, description="상환 기록")
    created_at: str = Field(..., description="생성 시간")
    updated_at: str = Field(..., description="수정 시간")


class BudgetItemResponse(BaseModel):
    """카테고리별 예산 한도와 지출"""

    category_id: str = Field(..., description="카테고리 ID")
    category_name: str = Field(..., description="카테고리 이름")
    limit_amount: str = Field(..., description="한도")
    spent: str = Field(..., description="해당 월 지출")


class BudgetResponse(BaseModel):
    """월 예산 응답 (예산이 없으면 id=None, 빈 항목)"""

    id: str | None = Field(default=None, description="예산 ID")
    year: int = Field(..., description="연도")
    month: int = Field(..., description="월")
    total_limit: str | None = Field(default=None, description="전체 한도")
    items: list[BudgetItemResponse] = Field(default_factory=list, description="카테고리별 한도")
    created_at: str | None = Field(default=None, description="생성 시간")
    updated_at: str | None = Field(default=None, description="수정 시간")


# =========================================================================
# 리포트
# =========================================================================


class CategoryTotalResponse(BaseModel):
    """카테고리별 지출 합계"""

    category_id: str = Field(..., description="카테고리 ID (미분류는 uncategorized)")
    category_name: str = Field(..., description="카테고리 이름")
    total: str = Field(..., description="합계")


class MonthlySummaryResponse(BaseModel):
    """월간 수입/지출 요약"""

    year: int = Field(..., description="연도")
    month: int = Field(..., description="월")
    income: str = Field(..., description="수입 합계")
    expense: str = Field(..., description="지출 합계")
    cashflow: str = Field(..., description="수입 - 지출")
    by_category: list[CategoryTotalResponse] = Field(
        default_factory=list,
        description="카테고리별 지출 (큰 순)",
    )


class BudgetUsageItemResponse(BaseModel):
    """카테고리별 예산 사용률"""

    category_id: str = Field(..., description="카테고리 ID")
    category_name: str = Field(..., description="카테고리 이름")
    budgeted: str = Field(..., description="한도")
    spent: str = Field(..., description="지출")
    remaining: str = Field(..., description="한도 - 지출")
    percentage: str = Field(..., description="사용률 (%, 소수 2자리)")
    is_over_budget: bool = Field(..., description="한도 초과 여부")


class BudgetUsageResponse(BaseModel):
    """예산 사용률 리포트"""

    budget: dict[str, Any] | None = Field(default=None, description="예산 (id, year, month)")
    usage: list[BudgetUsageItemResponse] = Field(default_factory=list, description="항목별 사용률")
    total_budgeted: str = Field(..., description="한도 합계")
    total_spent: str = Field(..., description="그 달 지출 전체")
    total_remaining: str = Field(..., description="한도 합계 - 지출 전체")


class NetWorthPointResponse(BaseModel):
    """구간별 순자산"""

    period: str = Field(..., description="구간 (YYYY-MM 또는 YYYY-MM-DD)")
    account_balances: str = Field(..., description="계좌 잔액 합계")
    investment_value: str = Field(..., description="투자 원가 합계")
    net_worth: str = Field(..., description="순자산")


class NetWorthCurrentResponse(BaseModel):
    """현재 순자산"""

    account_balances: str = Field(..., description="계좌 잔액 합계")
    investment_value: str = Field(..., description="투자 원가 합계")
    net_worth: str = Field(..., description="순자산")


class NetWorthResponse(BaseModel):
    """순자산 추이"""

    from_: str = Field(..., alias="from", description="시작일")
    to: str = Field(..., description="종료일")
    interval: str = Field(..., description="구간 단위 (day/month)")
    timeline: list[NetWorthPointResponse] = Field(default_factory=list, description="추이")
    current: NetWorthCurrentResponse = Field(..., description="현재 값")

    model_config = {"populate_by_name": True}


class PerformanceAssetResponse(BaseModel):
    """자산별 투자 원가"""

    asset_id: str = Field(..., description="자산 ID")
    symbol: str = Field(..., description="심볼")
    asset_name: str = Field(..., description="자산 이름")
    asset_type: str = Field(..., description="자산 유형")
    invested: str = Field(..., description="보유 원가")


class PerformanceTypeResponse(BaseModel):
    """자산 유형별 투자 원가"""

    asset_type: str = Field(..., description="자산 유형")
    invested: str = Field(..., description="보유 원가")
    percentage: str = Field(..., description="비중 (%, 소수 2자리)")


class PerformanceSummaryResponse(BaseModel):
    """투자 성과 요약 (원가 기준)"""

    total_invested: str = Field(..., description="보유 원가 합계")
    current_value: str = Field(..., description="평가금액 (시세 없음, 원가와 같음)")
    unrealized_pl: str = Field(..., description="평가 손익 (시세 없음, 0)")
    realized_pl: str = Field(..., description="기간 내 실현 손익")
    total_return: str = Field(..., description="총 손익")
    roi: str = Field(..., description="수익률 (%, 소수 2자리)")


class InvestmentPerformanceResponse(BaseModel):
    """투자 성과 리포트"""

    period: dict[str, str] = Field(..., description="기간 (from, to)")
    summary: PerformanceSummaryResponse = Field(..., description="요약")
    by_asset: list[PerformanceAssetResponse] = Field(default_factory=list, description="자산별")
    by_type: list[PerformanceTypeResponse] = Field(default_factory=list, description="유형별")
