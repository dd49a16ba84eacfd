"""
계좌 라우트

계좌 생성/조회/수정 및 잔액 정합성 점검 API
"""

from fastapi import APIRouter, Depends, Path, Query

from adapters.db.sqlite_adapter import SQLiteAdapter
from web.dependencies import get_current_user_id, get_db
from web.models.requests import AccountCreateRequest, AccountUpdateRequest
from web.models.responses import AccountResponse, ReconcileResponse
from web.services.account_service import AccountService

router = APIRouter(prefix="/api", tags=["Accounts"])


@router.post("/accounts", response_model=AccountResponse, status_code=201)
async def create_account(
    request: AccountCreateRequest,
    user_id: str = Depends(get_current_user_id),
    db: SQLiteAdapter = Depends(get_db),
) -> AccountResponse:
    """계좌 생성 (current_balance = starting_balance)"""
    service = AccountService(db)

    account = await service.create_account(
        user_id=user_id,
        name=request.name,
        account_type=request.account_type,
        currency=request.currency,
        starting_balance=request.starting_balance,
    )
    return AccountResponse(**account)


@router.get("/accounts", response_model=list[AccountResponse])
async def list_accounts(
    include_archived: bool = Query(default=False, description="보관된 계좌 포함"),
    user_id: str = Depends(get_current_user_id),
    db: SQLiteAdapter = Depends(get_db),
) -> list[AccountResponse]:
    """계좌 목록"""
    service = AccountService(db)

    accounts = await service.list_accounts(user_id, include_archived=include_archived)
    return [AccountResponse(**a) for a in accounts]


@router.get("/accounts/reconcile", response_model=ReconcileResponse)
async def reconcile_accounts(
    user_id: str = Depends(get_current_user_id),
    db: SQLiteAdapter = Depends(get_db),
) -> ReconcileResponse:
    """잔액 정합성 점검

    starting_balance + 거래 효과 합계와 current_balance를 비교.
    불일치를 보고만 하고 수정하지 않는다.
    """
    service = AccountService(db)

    result = await service.reconcile(user_id)
    return ReconcileResponse(**result)


@router.get("/accounts/{account_id}", response_model=AccountResponse)
async def get_account(
    account_id: str = Path(..., description="계좌 ID"),
    user_id: str = Depends(get_current_user_id),
    db: SQLiteAdapter = Depends(get_db),
) -> AccountResponse:
    """계좌 조회"""
    service = AccountService(db)

    account = await service.get_account(account_id, user_id)
    return AccountResponse(**account)


@router.patch("/accounts/{account_id}", response_model=AccountResponse)
async def update_account(
    request: AccountUpdateRequest,
    account_id: str = Path(..., description="계좌 ID"),
    user_id: str = Depends(get_current_user_id),
    db: SQLiteAdapter = Depends(get_db),
) -> AccountResponse:
    """계좌 이름 변경 / 보관 처리"""
    service = AccountService(db)

    account = await service.update_account(
        account_id,
        user_id,
        name=request.name,
        is_archived=request.is_archived,
    )
    return AccountResponse(**account)
