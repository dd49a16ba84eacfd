"""
투자 자산 라우트
"""

from fastapi import APIRouter, Depends

from adapters.db.sqlite_adapter import SQLiteAdapter
from web.dependencies import get_current_user_id, get_db
from web.models.requests import AssetCreateRequest
from web.models.responses import AssetResponse
from web.services.catalog_service import CatalogService

router = APIRouter(prefix="/api", tags=["Investment Assets"])


@router.post("/investment-assets", response_model=AssetResponse, status_code=201)
async def create_asset(
    request: AssetCreateRequest,
    user_id: str = Depends(get_current_user_id),
    db: SQLiteAdapter = Depends(get_db),
) -> AssetResponse:
    """투자 자산 생성 (같은 심볼 중복 시 409)"""
    asset = await CatalogService(db).create_asset(
        user_id,
        symbol=request.symbol,
        name=request.name,
        asset_type=request.asset_type,
        currency=request.currency,
    )
    return AssetResponse(**asset)


@router.get("/investment-assets", response_model=list[AssetResponse])
async def list_assets(
    user_id: str = Depends(get_current_user_id),
    db: SQLiteAdapter = Depends(get_db),
) -> list[AssetResponse]:
    """투자 자산 목록"""
    assets = await CatalogService(db).list_assets(user_id)
    return [AssetResponse(**a) for a in assets]
