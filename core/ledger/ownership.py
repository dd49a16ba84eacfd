"""
소유권 검증

카테고리/계좌/태그/자산 참조를 사용하기 전에 요청 사용자의 것인지 확인.
- 없음 → NotFoundError
- 다른 사용자 소유 → ForbiddenError
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Iterable

from core.errors import ForbiddenError, NotFoundError, ValidationError

if TYPE_CHECKING:
    from adapters.db.sqlite_adapter import SQLiteAdapter


class OwnershipGuard:
    """참조 엔티티 소유권 검증기

    Args:
        db: SQLite 어댑터
    """

    def __init__(self, db: SQLiteAdapter):
        self.db = db

    async def _require(
        self,
        sql: str,
        entity_id: str,
        user_id: str,
        label: str,
    ) -> tuple[Any, ...]:
        row = await self.db.fetchone(sql, (entity_id,))

        if row is None:
            raise NotFoundError(f"{label} not found")

        # 모든 조회 쿼리는 user_id를 첫 컬럼으로 반환
        if row[0] != user_id:
            raise ForbiddenError(f"You don't have access to this {label.lower()}")

        return row

    async def require_account(
        self,
        user_id: str,
        account_id: str,
        label: str = "Account",
    ) -> dict[str, Any]:
        """계좌 소유권 확인

        Returns:
            id, currency, is_archived
        """
        row = await self._require(
            "SELECT user_id, id, currency, is_archived FROM accounts WHERE id = ?",
            account_id,
            user_id,
            label,
        )
        return {"id": row[1], "currency": row[2], "is_archived": bool(row[3])}

    async def require_category(
        self,
        user_id: str,
        category_id: str,
    ) -> dict[str, Any]:
        """카테고리 소유권 확인

        Returns:
            id, category_type
        """
        row = await self._require(
            "SELECT user_id, id, category_type FROM categories WHERE id = ?",
            category_id,
            user_id,
            "Category",
        )
        return {"id": row[1], "category_type": row[2]}

    async def require_asset(
        self,
        user_id: str,
        asset_id: str,
    ) -> dict[str, Any]:
        """투자 자산 소유권 확인

        Returns:
            id, symbol, asset_type
        """
        row = await self._require(
            "SELECT user_id, id, symbol, asset_type FROM investment_assets WHERE id = ?",
            asset_id,
            user_id,
            "Investment asset",
        )
        return {"id": row[1], "symbol": row[2], "asset_type": row[3]}

    async def require_tags(self, user_id: str, tag_ids: Iterable[str]) -> list[str]:
        """태그 묶음 소유권 확인

        하나라도 없거나 다른 사용자 것이면 전체를 거부한다.

        Returns:
            중복 제거된 태그 ID 목록 (입력 순서 유지)
        """
        unique_ids = list(dict.fromkeys(tag_ids))
        if not unique_ids:
            return []

        placeholders = ", ".join("?" for _ in unique_ids)
        rows = await self.db.fetchall(
            f"SELECT id FROM tags WHERE user_id = ? AND id IN ({placeholders})",
            (user_id, *unique_ids),
        )

        if len(rows) != len(unique_ids):
            raise ValidationError("One or more tags not found or not accessible")

        return unique_ids

    async def require_transaction(
        self,
        user_id: str,
        transaction_id: str,
    ) -> dict[str, Any]:
        """일반 거래 소유권 확인 (삭제된 거래는 없는 것으로 취급)

        Returns:
            id, type, amount
        """
        row = await self._require(
            """
            SELECT user_id, id, type, amount FROM transactions
            WHERE id = ? AND is_deleted = 0
            """,
            transaction_id,
            user_id,
            "Transaction",
        )
        return {"id": row[1], "type": row[2], "amount": row[3]}
