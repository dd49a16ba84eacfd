"""
포트폴리오 라우트

보유 현황 요약/목록/단건 조회 및 재계산 API
"""

from fastapi import APIRouter, Depends, Path, Query

from adapters.db.sqlite_adapter import SQLiteAdapter
from web.dependencies import get_current_user_id, get_db
from web.models.responses import (
    HoldingDetailResponse,
    HoldingResponse,
    PortfolioSummaryResponse,
    RebuildResponse,
)
from web.services.portfolio_service import PortfolioService

router = APIRouter(prefix="/api/portfolio", tags=["Portfolio"])


@router.get("/summary", response_model=PortfolioSummaryResponse)
async def get_summary(
    user_id: str = Depends(get_current_user_id),
    db: SQLiteAdapter = Depends(get_db),
) -> PortfolioSummaryResponse:
    """포트폴리오 요약 (원가 기준, 시세 미반영)"""
    summary = await PortfolioService(db).get_summary(user_id)
    return PortfolioSummaryResponse(**summary)


@router.get("/holdings", response_model=list[HoldingResponse])
async def list_holdings(
    asset_type: str | None = Query(default=None, description="자산 유형 필터"),
    user_id: str = Depends(get_current_user_id),
    db: SQLiteAdapter = Depends(get_db),
) -> list[HoldingResponse]:
    """보유 현황 목록"""
    holdings = await PortfolioService(db).list_holdings(user_id, asset_type=asset_type)
    return [HoldingResponse(**h) for h in holdings]


@router.get("/holdings/{asset_id}", response_model=HoldingDetailResponse)
async def get_holding(
    asset_id: str = Path(..., description="자산 ID"),
    user_id: str = Depends(get_current_user_id),
    db: SQLiteAdapter = Depends(get_db),
) -> HoldingDetailResponse:
    """자산별 보유 현황 + 최근 투자 거래"""
    holding = await PortfolioService(db).get_holding(asset_id, user_id)
    return HoldingDetailResponse(**holding)


@router.post("/rebuild", response_model=RebuildResponse)
async def rebuild_holdings(
    user_id: str = Depends(get_current_user_id),
    db: SQLiteAdapter = Depends(get_db),
) -> RebuildResponse:
    """BUY/SELL 이력으로 보유 현황 전체 재계산"""
    result = await PortfolioService(db).rebuild(user_id)
    return RebuildResponse(**result)
