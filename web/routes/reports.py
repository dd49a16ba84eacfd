"""
리포트 라우트

월간 요약, 예산 사용률, 순자산 추이, 투자 성과 API
"""

from datetime import date

from fastapi import APIRouter, Depends, Query

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.types import ReportInterval
from web.dependencies import get_current_user_id, get_db
from web.models.responses import (
    BudgetUsageResponse,
    InvestmentPerformanceResponse,
    MonthlySummaryResponse,
    NetWorthResponse,
)
from web.services.report_service import ReportService

router = APIRouter(prefix="/api/reports", tags=["Reports"])


@router.get("/finance/monthly", response_model=MonthlySummaryResponse)
async def monthly_summary(
    year: int = Query(..., description="연도"),
    month: int = Query(..., description="월 (1~12)"),
    user_id: str = Depends(get_current_user_id),
    db: SQLiteAdapter = Depends(get_db),
) -> MonthlySummaryResponse:
    """월간 수입/지출/현금흐름과 카테고리별 지출"""
    summary = await ReportService(db).monthly_summary(user_id, year, month)
    return MonthlySummaryResponse(**summary)


@router.get("/budget/usage", response_model=BudgetUsageResponse)
async def budget_usage(
    year: int = Query(..., description="연도"),
    month: int = Query(..., description="월 (1~12)"),
    user_id: str = Depends(get_current_user_id),
    db: SQLiteAdapter = Depends(get_db),
) -> BudgetUsageResponse:
    """예산 항목별 사용률"""
    usage = await ReportService(db).budget_usage(user_id, year, month)
    return BudgetUsageResponse(**usage)


@router.get("/networth", response_model=NetWorthResponse)
async def net_worth(
    from_: date = Query(..., alias="from", description="시작일 (YYYY-MM-DD)"),
    to: date = Query(..., description="종료일 (YYYY-MM-DD)"),
    interval: str = Query(default=ReportInterval.MONTH.value, description="day 또는 month"),
    user_id: str = Depends(get_current_user_id),
    db: SQLiteAdapter = Depends(get_db),
) -> NetWorthResponse:
    """순자산 추이 (각 구간 끝 시점 기준)"""
    report = await ReportService(db).net_worth(user_id, from_, to, interval=interval)
    return NetWorthResponse(**report)


@router.get("/invest/performance", response_model=InvestmentPerformanceResponse)
async def investment_performance(
    from_: date = Query(..., alias="from", description="시작일 (YYYY-MM-DD)"),
    to: date = Query(..., description="종료일 (YYYY-MM-DD)"),
    user_id: str = Depends(get_current_user_id),
    db: SQLiteAdapter = Depends(get_db),
) -> InvestmentPerformanceResponse:
    """투자 성과 (원가 기준)"""
    report = await ReportService(db).investment_performance(user_id, from_, to)
    return InvestmentPerformanceResponse(**report)
