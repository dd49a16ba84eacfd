"""
반복 규칙 라우트

반복 규칙 CRUD, 활성 전환, 수동 실행 API
"""

from datetime import datetime
from typing import Callable

from fastapi import APIRouter, Depends, Path, Query, Response

from adapters.db.sqlite_adapter import SQLiteAdapter
from web.dependencies import get_clock, get_current_user_id, get_db
from web.models.requests import RecurringRuleCreateRequest, RecurringRuleUpdateRequest
from web.models.responses import RecurringRuleResponse
from web.services.recurring_service import RecurringService

router = APIRouter(prefix="/api", tags=["Recurring"])


@router.post("/recurring", response_model=RecurringRuleResponse, status_code=201)
async def create_rule(
    request: RecurringRuleCreateRequest,
    user_id: str = Depends(get_current_user_id),
    db: SQLiteAdapter = Depends(get_db),
) -> RecurringRuleResponse:
    """반복 규칙 생성"""
    rule = await RecurringService(db).create_rule(user_id, request.model_dump())
    return RecurringRuleResponse(**rule)


@router.get("/recurring", response_model=list[RecurringRuleResponse])
async def list_rules(
    is_active: bool | None = Query(default=None, description="활성 여부 필터"),
    user_id: str = Depends(get_current_user_id),
    db: SQLiteAdapter = Depends(get_db),
) -> list[RecurringRuleResponse]:
    """반복 규칙 목록 (다음 실행 시각 순)"""
    rules = await RecurringService(db).list_rules(user_id, is_active=is_active)
    return [RecurringRuleResponse(**r) for r in rules]


@router.get("/recurring/{rule_id}", response_model=RecurringRuleResponse)
async def get_rule(
    rule_id: str = Path(..., description="규칙 ID"),
    user_id: str = Depends(get_current_user_id),
    db: SQLiteAdapter = Depends(get_db),
) -> RecurringRuleResponse:
    """반복 규칙 조회 (최근 실행 기록 포함)"""
    rule = await RecurringService(db).get_rule(rule_id, user_id)
    return RecurringRuleResponse(**rule)


@router.patch("/recurring/{rule_id}", response_model=RecurringRuleResponse)
async def update_rule(
    request: RecurringRuleUpdateRequest,
    rule_id: str = Path(..., description="규칙 ID"),
    user_id: str = Depends(get_current_user_id),
    db: SQLiteAdapter = Depends(get_db),
) -> RecurringRuleResponse:
    """반복 규칙 수정 (보낸 필드만 반영)"""
    rule = await RecurringService(db).update_rule(
        rule_id,
        user_id,
        request.model_dump(exclude_unset=True),
    )
    return RecurringRuleResponse(**rule)


@router.post("/recurring/{rule_id}/toggle", response_model=RecurringRuleResponse)
async def toggle_rule(
    rule_id: str = Path(..., description="규칙 ID"),
    user_id: str = Depends(get_current_user_id),
    db: SQLiteAdapter = Depends(get_db),
) -> RecurringRuleResponse:
    """활성/비활성 전환"""
    rule = await RecurringService(db).toggle_rule(rule_id, user_id)
    return RecurringRuleResponse(**rule)


@router.post("/recurring/{rule_id}/run", response_model=RecurringRuleResponse)
async def run_rule(
    rule_id: str = Path(..., description="규칙 ID"),
    user_id: str = Depends(get_current_user_id),
    db: SQLiteAdapter = Depends(get_db),
    clock: Callable[[], datetime] = Depends(get_clock),
) -> RecurringRuleResponse:
    """반복 규칙 1회 실행

    next_run_at 일시로 거래를 생성하고 다음 실행 시각을 갱신.
    비활성 규칙이거나 아직 실행 시각이 아니면 400.
    """
    rule = await RecurringService(db, clock=clock).run_rule(rule_id, user_id)
    return RecurringRuleResponse(**rule)


@router.delete("/recurring/{rule_id}", status_code=204)
async def delete_rule(
    rule_id: str = Path(..., description="규칙 ID"),
    user_id: str = Depends(get_current_user_id),
    db: SQLiteAdapter = Depends(get_db),
) -> Response:
    """반복 규칙 삭제 (이미 생성된 거래는 유지)"""
    await RecurringService(db).delete_rule(rule_id, user_id)
    return Response(status_code=204)
