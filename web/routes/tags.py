"""
태그 라우트
"""

from fastapi import APIRouter, Depends

from adapters.db.sqlite_adapter import SQLiteAdapter
from web.dependencies import get_current_user_id, get_db
from web.models.requests import TagCreateRequest
from web.models.responses import TagResponse
from web.services.catalog_service import CatalogService

router = APIRouter(prefix="/api", tags=["Tags"])


@router.post("/tags", response_model=TagResponse, status_code=201)
async def create_tag(
    request: TagCreateRequest,
    user_id: str = Depends(get_current_user_id),
    db: SQLiteAdapter = Depends(get_db),
) -> TagResponse:
    """태그 생성 (같은 이름 중복 시 409)"""
    tag = await CatalogService(db).create_tag(user_id, request.name)
    return TagResponse(**tag)


@router.get("/tags", response_model=list[TagResponse])
async def list_tags(
    user_id: str = Depends(get_current_user_id),
    db: SQLiteAdapter = Depends(get_db),
) -> list[TagResponse]:
    """태그 목록"""
    tags = await CatalogService(db).list_tags(user_id)
    return [TagResponse(**t) for t in tags]
