"""
거래 라우트

일반 거래(INCOME / EXPENSE / TRANSFER) CRUD API
"""

from datetime import datetime

from fastapi import APIRouter, Depends, Path, Query, Response

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.constants import Defaults
from core.ledger.transactions import TransactionOrchestrator
from web.dependencies import get_current_user_id, get_db
from web.models.requests import TransactionCreateRequest, TransactionUpdateRequest
from web.models.responses import TransactionListResponse, TransactionResponse

router = APIRouter(prefix="/api", tags=["Transactions"])


@router.post("/transactions", response_model=TransactionResponse, status_code=201)
async def create_transaction(
    request: TransactionCreateRequest,
    user_id: str = Depends(get_current_user_id),
    db: SQLiteAdapter = Depends(get_db),
) -> TransactionResponse:
    """거래 생성

    거래 저장과 계좌 잔액 반영이 하나의 트랜잭션으로 처리된다.
    """
    orchestrator = TransactionOrchestrator(db)

    tx = await orchestrator.create(user_id, request.model_dump())
    return TransactionResponse(**tx)


@router.get("/transactions", response_model=TransactionListResponse)
async def list_transactions(
    type: str | None = Query(default=None, description="유형 필터"),
    account_id: str | None = Query(default=None, description="계좌 필터 (이체 양쪽 포함)"),
    category_id: str | None = Query(default=None, description="카테고리 필터"),
    tag_id: str | None = Query(default=None, description="태그 필터"),
    start: datetime | None = Query(default=None, description="시작 일시"),
    end: datetime | None = Query(default=None, description="종료 일시"),
    search: str | None = Query(default=None, description="메모 검색"),
    sort: str = Query(default="occurred_at:desc", description="정렬 (필드:asc|desc)"),
    page: int = Query(default=1, ge=1, description="페이지"),
    limit: int = Query(
        default=Defaults.PAGE_SIZE,
        ge=1,
        le=Defaults.MAX_PAGE_SIZE,
        description="페이지 크기",
    ),
    user_id: str = Depends(get_current_user_id),
    db: SQLiteAdapter = Depends(get_db),
) -> TransactionListResponse:
    """거래 목록 조회 (삭제된 거래 제외)"""
    orchestrator = TransactionOrchestrator(db)

    result = await orchestrator.list(
        user_id,
        tx_type=type,
        account_id=account_id,
        category_id=category_id,
        tag_id=tag_id,
        start=start,
        end=end,
        search=search,
        sort=sort,
        page=page,
        limit=limit,
    )
    return TransactionListResponse(**result)


@router.get("/transactions/{transaction_id}", response_model=TransactionResponse)
async def get_transaction(
    transaction_id: str = Path(..., description="거래 ID"),
    user_id: str = Depends(get_current_user_id),
    db: SQLiteAdapter = Depends(get_db),
) -> TransactionResponse:
    """거래 조회"""
    tx = await TransactionOrchestrator(db).get(transaction_id, user_id)
    return TransactionResponse(**tx)


@router.patch("/transactions/{transaction_id}", response_model=TransactionResponse)
async def update_transaction(
    request: TransactionUpdateRequest,
    transaction_id: str = Path(..., description="거래 ID"),
    user_id: str = Depends(get_current_user_id),
    db: SQLiteAdapter = Depends(get_db),
) -> TransactionResponse:
    """거래 수정

    보낸 필드만 반영. 기존 잔액 효과 역산 후 새 효과 적용.
    """
    orchestrator = TransactionOrchestrator(db)

    tx = await orchestrator.update(
        transaction_id,
        user_id,
        request.model_dump(exclude_unset=True),
    )
    return TransactionResponse(**tx)


@router.delete("/transactions/{transaction_id}", status_code=204)
async def delete_transaction(
    transaction_id: str = Path(..., description="거래 ID"),
    user_id: str = Depends(get_current_user_id),
    db: SQLiteAdapter = Depends(get_db),
) -> Response:
    """거래 삭제 (soft delete, 잔액 효과 역산)"""
    await TransactionOrchestrator(db).delete(transaction_id, user_id)
    return Response(status_code=204)
