"""
투자 거래 라우트

투자 거래 CRUD API (보유 현황과 현금 계좌 잔액을 함께 갱신)
"""

from datetime import datetime

from fastapi import APIRouter, Depends, Path, Query, Response

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.constants import Defaults
from core.ledger.investments import InvestmentTransactionOrchestrator
from web.dependencies import get_current_user_id, get_db
from web.models.requests import (
    InvestmentTransactionCreateRequest,
    InvestmentTransactionUpdateRequest,
)
from web.models.responses import (
    InvestmentTransactionListResponse,
    InvestmentTransactionResponse,
)

router = APIRouter(prefix="/api", tags=["Investment Transactions"])


@router.post(
    "/investment-transactions",
    response_model=InvestmentTransactionResponse,
    status_code=201,
)
async def create_investment_transaction(
    request: InvestmentTransactionCreateRequest,
    user_id: str = Depends(get_current_user_id),
    db: SQLiteAdapter = Depends(get_db),
) -> InvestmentTransactionResponse:
    """투자 거래 생성

    BUY/SELL은 보유 현황을, cash_account_id가 있으면 현금 잔액을 함께 갱신.
    보유 수량보다 많이 매도하면 400 (INSUFFICIENT_HOLDING).
    """
    orchestrator = InvestmentTransactionOrchestrator(db)

    tx = await orchestrator.create(user_id, request.model_dump())
    return InvestmentTransactionResponse(**tx)


@router.get("/investment-transactions", response_model=InvestmentTransactionListResponse)
async def list_investment_transactions(
    asset_id: str | None = Query(default=None, description="자산 필터"),
    type: str | None = Query(default=None, description="유형 필터"),
    start: datetime | None = Query(default=None, description="시작 일시"),
    end: datetime | None = Query(default=None, description="종료 일시"),
    page: int = Query(default=1, ge=1, description="페이지"),
    limit: int = Query(
        default=Defaults.PAGE_SIZE,
        ge=1,
        le=Defaults.MAX_PAGE_SIZE,
        description="페이지 크기",
    ),
    user_id: str = Depends(get_current_user_id),
    db: SQLiteAdapter = Depends(get_db),
) -> InvestmentTransactionListResponse:
    """투자 거래 목록"""
    orchestrator = InvestmentTransactionOrchestrator(db)

    result = await orchestrator.list(
        user_id,
        asset_id=asset_id,
        tx_type=type,
        start=start,
        end=end,
        page=page,
        limit=limit,
    )
    return InvestmentTransactionListResponse(**result)


@router.get(
    "/investment-transactions/{transaction_id}",
    response_model=InvestmentTransactionResponse,
)
async def get_investment_transaction(
    transaction_id: str = Path(..., description="투자 거래 ID"),
    user_id: str = Depends(get_current_user_id),
    db: SQLiteAdapter = Depends(get_db),
) -> InvestmentTransactionResponse:
    """투자 거래 조회"""
    tx = await InvestmentTransactionOrchestrator(db).get(transaction_id, user_id)
    return InvestmentTransactionResponse(**tx)


@router.patch(
    "/investment-transactions/{transaction_id}",
    response_model=InvestmentTransactionResponse,
)
async def update_investment_transaction(
    request: InvestmentTransactionUpdateRequest,
    transaction_id: str = Path(..., description="투자 거래 ID"),
    user_id: str = Depends(get_current_user_id),
    db: SQLiteAdapter = Depends(get_db),
) -> InvestmentTransactionResponse:
    """투자 거래 수정 (보낸 필드만 반영)"""
    orchestrator = InvestmentTransactionOrchestrator(db)

    tx = await orchestrator.update(
        transaction_id,
        user_id,
        request.model_dump(exclude_unset=True),
    )
    return InvestmentTransactionResponse(**tx)


@router.delete("/investment-transactions/{transaction_id}", status_code=204)
async def delete_investment_transaction(
    transaction_id: str = Path(..., description="투자 거래 ID"),
    user_id: str = Depends(get_current_user_id),
    db: SQLiteAdapter = Depends(get_db),
) -> Response:
    """투자 거래 삭제 (보유/현금 효과 역산 후 삭제)"""
    await InvestmentTransactionOrchestrator(db).delete(transaction_id, user_id)
    return Response(status_code=204)
