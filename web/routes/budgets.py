"""
예산 라우트

월 예산 조회/저장/삭제 API
"""

from datetime import datetime
from typing import Callable

from fastapi import APIRouter, Depends, Path, Query, Response

from adapters.db.sqlite_adapter import SQLiteAdapter
from web.dependencies import get_clock, get_current_user_id, get_db
from web.models.requests import BudgetUpsertRequest
from web.models.responses import BudgetResponse
from web.services.budget_service import BudgetService

router = APIRouter(prefix="/api", tags=["Budgets"])


@router.get("/budgets/current", response_model=BudgetResponse)
async def get_budget_by_month(
    year: int | None = Query(default=None, description="연도 (없으면 이번 해)"),
    month: int | None = Query(default=None, description="월 (없으면 이번 달)"),
    user_id: str = Depends(get_current_user_id),
    db: SQLiteAdapter = Depends(get_db),
    clock: Callable[[], datetime] = Depends(get_clock),
) -> BudgetResponse:
    """월 예산 조회 (항목별 지출 포함, 없으면 빈 예산)"""
    budget = await BudgetService(db, clock=clock).get_budget_by_month(
        user_id, year=year, month=month
    )
    return BudgetResponse(**budget)


@router.post("/budgets", response_model=BudgetResponse)
async def upsert_budget(
    request: BudgetUpsertRequest,
    user_id: str = Depends(get_current_user_id),
    db: SQLiteAdapter = Depends(get_db),
) -> BudgetResponse:
    """월 예산 저장 (같은 달 예산이 있으면 항목 전체 교체)"""
    budget = await BudgetService(db).upsert_budget(user_id, request.model_dump())
    return BudgetResponse(**budget)


@router.get("/budgets/{budget_id}", response_model=BudgetResponse)
async def get_budget(
    budget_id: str = Path(..., description="예산 ID"),
    user_id: str = Depends(get_current_user_id),
    db: SQLiteAdapter = Depends(get_db),
) -> BudgetResponse:
    """예산 조회"""
    budget = await BudgetService(db).get_budget(budget_id, user_id)
    return BudgetResponse(**budget)


@router.delete("/budgets/{budget_id}", status_code=204)
async def delete_budget(
    budget_id: str = Path(..., description="예산 ID"),
    user_id: str = Depends(get_current_user_id),
    db: SQLiteAdapter = Depends(get_db),
) -> Response:
    """예산 삭제"""
    await BudgetService(db).delete_budget(budget_id, user_id)
    return Response(status_code=204)
