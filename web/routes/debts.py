"""
채무 라우트

채무/채권 CRUD, 상환 기록, 종료 API
"""

from datetime import datetime
from typing import Callable

from fastapi import APIRouter, Depends, Path, Query, Response

from adapters.db.sqlite_adapter import SQLiteAdapter
from web.dependencies import get_clock, get_current_user_id, get_db
from web.models.requests import DebtCreateRequest, DebtPaymentRequest, DebtUpdateRequest
from web.models.responses import DebtResponse
from web.services.debt_service import DebtService

router = APIRouter(prefix="/api", tags=["Debts"])


@router.post("/debts", response_model=DebtResponse, status_code=201)
async def create_debt(
    request: DebtCreateRequest,
    user_id: str = Depends(get_current_user_id),
    db: SQLiteAdapter = Depends(get_db),
) -> DebtResponse:
    """채무 생성 (남은 금액이 0이면 CLOSED)"""
    debt = await DebtService(db).create_debt(user_id, request.model_dump(exclude_none=True))
    return DebtResponse(**debt)


@router.get("/debts", response_model=list[DebtResponse])
async def list_debts(
    type: str | None = Query(default=None, description="채무 유형 필터 (DEBT/RECEIVABLE)"),
    status: str | None = Query(default=None, description="상태 필터 (OPEN/CLOSED)"),
    user_id: str = Depends(get_current_user_id),
    db: SQLiteAdapter = Depends(get_db),
) -> list[DebtResponse]:
    """채무 목록 (만기일 순)"""
    debts = await DebtService(db).list_debts(user_id, debt_type=type, status=status)
    return [DebtResponse(**d) for d in debts]


@router.get("/debts/{debt_id}", response_model=DebtResponse)
async def get_debt(
    debt_id: str = Path(..., description="채무 ID"),
    user_id: str = Depends(get_current_user_id),
    db: SQLiteAdapter = Depends(get_db),
) -> DebtResponse:
    """채무 조회 (상환 기록 포함)"""
    debt = await DebtService(db).get_debt(debt_id, user_id)
    return DebtResponse(**debt)


@router.put("/debts/{debt_id}", response_model=DebtResponse)
async def update_debt(
    request: DebtUpdateRequest,
    debt_id: str = Path(..., description="채무 ID"),
    user_id: str = Depends(get_current_user_id),
    db: SQLiteAdapter = Depends(get_db),
) -> DebtResponse:
    """채무 수정 (보낸 필드만 반영)"""
    debt = await DebtService(db).update_debt(
        debt_id,
        user_id,
        request.model_dump(exclude_unset=True),
    )
    return DebtResponse(**debt)


@router.delete("/debts/{debt_id}", status_code=204)
async def delete_debt(
    debt_id: str = Path(..., description="채무 ID"),
    user_id: str = Depends(get_current_user_id),
    db: SQLiteAdapter = Depends(get_db),
) -> Response:
    """채무 삭제 (상환 기록 포함)"""
    await DebtService(db).delete_debt(debt_id, user_id)
    return Response(status_code=204)


@router.post("/debts/{debt_id}/payments", response_model=DebtResponse, status_code=201)
async def add_payment(
    request: DebtPaymentRequest,
    debt_id: str = Path(..., description="채무 ID"),
    user_id: str = Depends(get_current_user_id),
    db: SQLiteAdapter = Depends(get_db),
    clock: Callable[[], datetime] = Depends(get_clock),
) -> DebtResponse:
    """상환 기록 추가

    남은 금액을 넘는 상환이나 종료된 채무에 대한 상환은 400.
    남은 금액이 0이 되면 CLOSED.
    """
    debt = await DebtService(db, clock=clock).add_payment(
        debt_id,
        user_id,
        request.model_dump(exclude_none=True),
    )
    return DebtResponse(**debt)


@router.patch("/debts/{debt_id}/close", response_model=DebtResponse)
async def close_debt(
    debt_id: str = Path(..., description="채무 ID"),
    user_id: str = Depends(get_current_user_id),
    db: SQLiteAdapter = Depends(get_db),
) -> DebtResponse:
    """채무 수동 종료"""
    debt = await DebtService(db).close_debt(debt_id, user_id)
    return DebtResponse(**debt)
