"""
카테고리 라우트
"""

from fastapi import APIRouter, Depends, Query

from adapters.db.sqlite_adapter import SQLiteAdapter
from web.dependencies import get_current_user_id, get_db
from web.models.requests import CategoryCreateRequest
from web.models.responses import CategoryResponse
from web.services.catalog_service import CatalogService

router = APIRouter(prefix="/api", tags=["Categories"])


@router.post("/categories", response_model=CategoryResponse, status_code=201)
async def create_category(
    request: CategoryCreateRequest,
    user_id: str = Depends(get_current_user_id),
    db: SQLiteAdapter = Depends(get_db),
) -> CategoryResponse:
    """카테고리 생성 (같은 이름/유형 중복 시 409)"""
    category = await CatalogService(db).create_category(
        user_id,
        request.name,
        request.category_type,
    )
    return CategoryResponse(**category)


@router.get("/categories", response_model=list[CategoryResponse])
async def list_categories(
    category_type: str | None = Query(default=None, description="유형 필터 (INCOME/EXPENSE)"),
    user_id: str = Depends(get_current_user_id),
    db: SQLiteAdapter = Depends(get_db),
) -> list[CategoryResponse]:
    """카테고리 목록"""
    categories = await CatalogService(db).list_categories(user_id, category_type)
    return [CategoryResponse(**c) for c in categories]
