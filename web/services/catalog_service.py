"""
카탈로그 서비스

카테고리 / 태그 / 투자 자산 생성 및 목록 조회
"""

import logging
import sqlite3
from typing import Any

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.errors import ConflictError, ValidationError
from core.types import AssetType, CategoryType
from core.utils.ids import new_id

logger = logging.getLogger(__name__)


def _require_name(value: str | None, field: str = "name") -> str:
    if not value or not value.strip():
        raise ValidationError(f"{field} is required")
    return value.strip()


class CatalogService:
    """카테고리/태그/자산 서비스

    (user_id, 이름) 유니크 제약 위반은 ConflictError로 변환.

    Args:
        db: SQLite 어댑터
    """

    def __init__(self, db: SQLiteAdapter):
        self.db = db

    async def _insert(self, sql: str, params: tuple[Any, ...], label: str) -> None:
        try:
            async with self.db.transaction():
                await self.db.execute(sql, params)
        except sqlite3.IntegrityError as e:
            raise ConflictError(f"{label} already exists") from e

    # -------------------------------------------------------------------------
    # 카테고리
    # -------------------------------------------------------------------------

    async def create_category(
        self,
        user_id: str,
        name: str,
        category_type: str,
    ) -> dict[str, Any]:
        """카테고리 생성"""
        name = _require_name(name)
        try:
            category_type = CategoryType(category_type).value
        except ValueError:
            raise ValidationError(f"Invalid category type: {category_type}") from None

        category_id = new_id()
        await self._insert(
            "INSERT INTO categories (id, user_id, name, category_type) VALUES (?, ?, ?, ?)",
            (category_id, user_id, name, category_type),
            "Category",
        )
        logger.info(f"카테고리 생성: {name} ({category_type})", extra={"user_id": user_id})

        return {"id": category_id, "name": name, "category_type": category_type}

    async def list_categories(
        self,
        user_id: str,
        category_type: str | None = None,
    ) -> list[dict[str, Any]]:
        sql = "SELECT id, name, category_type FROM categories WHERE user_id = ?"
        params: list[Any] = [user_id]
        if category_type:
            sql += " AND category_type = ?"
            params.append(category_type)
        sql += " ORDER BY category_type, name"

        rows = await self.db.fetchall(sql, tuple(params))
        return [
            {"id": row[0], "name": row[1], "category_type": row[2]}
            for row in rows
        ]

    # -------------------------------------------------------------------------
    # 태그
    # -------------------------------------------------------------------------

    async def create_tag(self, user_id: str, name: str) -> dict[str, Any]:
        """태그 생성"""
        name = _require_name(name)
        tag_id = new_id()
        await self._insert(
            "INSERT INTO tags (id, user_id, name) VALUES (?, ?, ?)",
            (tag_id, user_id, name),
            "Tag",
        )
        logger.info(f"태그 생성: {name}", extra={"user_id": user_id})

        return {"id": tag_id, "name": name}

    async def list_tags(self, user_id: str) -> list[dict[str, Any]]:
        rows = await self.db.fetchall(
            "SELECT id, name FROM tags WHERE user_id = ? ORDER BY name",
            (user_id,),
        )
        return [{"id": row[0], "name": row[1]} for row in rows]

    # -------------------------------------------------------------------------
    # 투자 자산
    # -------------------------------------------------------------------------

    async def create_asset(
        self,
        user_id: str,
        symbol: str,
        name: str,
        asset_type: str,
        currency: str,
    ) -> dict[str, Any]:
        """투자 자산 생성 (심볼은 대문자로 저장)"""
        symbol = _require_name(symbol, "symbol").upper()
        name = _require_name(name)
        try:
            asset_type = AssetType(asset_type).value
        except ValueError:
            raise ValidationError(f"Invalid asset type: {asset_type}") from None

        asset_id = new_id()
        await self._insert(
            """
            INSERT INTO investment_assets (id, user_id, symbol, name, asset_type, currency)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (asset_id, user_id, symbol, name, asset_type, currency.upper()),
            "Investment asset",
        )
        logger.info(f"투자 자산 생성: {symbol} ({asset_type})", extra={"user_id": user_id})

        return {
            "id": asset_id,
            "symbol": symbol,
            "name": name,
            "asset_type": asset_type,
            "currency": currency.upper(),
        }

    async def list_assets(self, user_id: str) -> list[dict[str, Any]]:
        rows = await self.db.fetchall(
            """
            SELECT id, symbol, name, asset_type, currency
            FROM investment_assets WHERE user_id = ?
            ORDER BY symbol
            """,
            (user_id,),
        )
        return [
            {
                "id": row[0],
                "symbol": row[1],
                "name": row[2],
                "asset_type": row[3],
                "currency": row[4],
            }
            for row in rows
        ]
