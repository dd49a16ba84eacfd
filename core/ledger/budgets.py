"""
Budget Ledger

월 예산(budgets)과 카테고리별 한도(budget_items)를 저장하고,
같은 달의 EXPENSE 거래 합계(지출)를 계산한다.

- 예산은 (user_id, year, month)당 1개. 다시 저장하면 한도 목록 전체를 교체한다.
- 월 범위는 UTC 기준 [해당 월 1일 00:00, 다음 달 1일 00:00).
- 금액은 TEXT로 저장되므로 합계는 SQL SUM이 아니라 Decimal로 더한다.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import TYPE_CHECKING, Any

from core.errors import ForbiddenError, NotFoundError, ValidationError
from core.types import CategoryType, TransactionType
from core.utils.ids import new_id
from core.utils.money import ZERO, require_non_negative, to_optional_decimal
from core.utils.timezone import to_db_ts

if TYPE_CHECKING:
    from adapters.db.sqlite_adapter import SQLiteAdapter

logger = logging.getLogger(__name__)

MIN_YEAR = 2000
MAX_YEAR = 3000


def validate_period(year: Any, month: Any) -> tuple[int, int]:
    """예산 연/월 검증

    Raises:
        ValidationError: month가 1~12, year가 2000~3000 범위 밖
    """
    if isinstance(year, bool) or not isinstance(year, int):
        raise ValidationError("year must be an integer")
    if isinstance(month, bool) or not isinstance(month, int):
        raise ValidationError("month must be an integer")
    if not 1 <= month <= 12:
        raise ValidationError("month must be between 1 and 12")
    if not MIN_YEAR <= year <= MAX_YEAR:
        raise ValidationError(f"year must be between {MIN_YEAR} and {MAX_YEAR}")
    return year, month


def month_range(year: int, month: int) -> tuple[datetime, datetime]:
    """UTC 월 범위 [start, end)"""
    start = datetime(year, month, 1, tzinfo=timezone.utc)
    if month == 12:
        end = datetime(year + 1, 1, 1, tzinfo=timezone.utc)
    else:
        end = datetime(year, month + 1, 1, tzinfo=timezone.utc)
    return start, end


class BudgetLedger:
    """예산 저장/지출 집계

    Args:
        db: SQLite 어댑터
    """

    def __init__(self, db: SQLiteAdapter):
        self.db = db

    async def load_budget(self, budget_id: str, user_id: str) -> dict[str, Any]:
        """예산 행 조회

        Raises:
            NotFoundError: 예산 없음
            ForbiddenError: 다른 사용자의 예산
        """
        row = await self.db.fetchone(
            """
            SELECT id, user_id, year, month, total_limit, created_at, updated_at
            FROM budgets WHERE id = ?
            """,
            (budget_id,),
        )
        if row is None:
            raise NotFoundError("Budget not found")
        if row[1] != user_id:
            raise ForbiddenError("You don't have access to this budget")
        return {
            "id": row[0],
            "user_id": row[1],
            "year": row[2],
            "month": row[3],
            "total_limit": row[4],
            "created_at": row[5],
            "updated_at": row[6],
        }

    async def find_budget_id(self, user_id: str, year: int, month: int) -> str | None:
        row = await self.db.fetchone(
            "SELECT id FROM budgets WHERE user_id = ? AND year = ? AND month = ?",
            (user_id, year, month),
        )
        return row[0] if row else None

    async def list_items(self, budget_id: str) -> list[dict[str, Any]]:
        """한도 항목 (카테고리 이름순)"""
        rows = await self.db.fetchall(
            """
            SELECT bi.category_id, c.name, bi.limit_amount
            FROM budget_items bi
            JOIN categories c ON c.id = bi.category_id
            WHERE bi.budget_id = ?
            ORDER BY c.name
            """,
            (budget_id,),
        )
        return [
            {"category_id": row[0], "category_name": row[1], "limit_amount": row[2]}
            for row in rows
        ]

    async def _require_expense_categories(
        self,
        user_id: str,
        category_ids: list[str],
    ) -> None:
        if not category_ids:
            return
        placeholders = ", ".join("?" for _ in category_ids)
        row = await self.db.fetchone(
            f"""
            SELECT COUNT(*) FROM categories
            WHERE user_id = ? AND category_type = ? AND id IN ({placeholders})
            """,
            (user_id, CategoryType.EXPENSE.value, *category_ids),
        )
        if row[0] != len(category_ids):
            raise ValidationError("One or more categories not found or not expense type")

    async def upsert_budget(self, user_id: str, data: dict[str, Any]) -> str:
        """월 예산 저장 (있으면 한도 목록 전체 교체)

        Args:
            user_id: 요청 사용자
            data: year, month, total_limit (선택), items [{category_id, limit_amount}]

        Returns:
            예산 ID

        Raises:
            ValidationError: 기간 범위, 음수 한도, 중복 카테고리,
                사용자 소유 EXPENSE 카테고리가 아닌 항목
        """
        year, month = validate_period(data.get("year"), data.get("month"))

        total_limit = to_optional_decimal(data.get("total_limit"), "totalLimit")
        if total_limit is not None and total_limit < ZERO:
            raise ValidationError("totalLimit must not be negative")

        items = []
        for item in data.get("items") or []:
            if not item.get("category_id"):
                raise ValidationError("categoryId is required")
            if item.get("limit_amount") is None:
                raise ValidationError("limitAmount is required")
            items.append(
                (item["category_id"], require_non_negative(item["limit_amount"], "limitAmount"))
            )

        category_ids = [category_id for category_id, _ in items]
        if len(set(category_ids)) != len(category_ids):
            raise ValidationError("Duplicate categoryId in items")

        async with self.db.transaction():
            await self._require_expense_categories(user_id, category_ids)

            budget_id = await self.find_budget_id(user_id, year, month)
            total_text = str(total_limit) if total_limit is not None else None
            if budget_id is None:
                budget_id = new_id()
                await self.db.execute(
                    """
                    INSERT INTO budgets (id, user_id, year, month, total_limit)
                    VALUES (?, ?, ?, ?, ?)
                    """,
                    (budget_id, user_id, year, month, total_text),
                )
            else:
                await self.db.execute(
                    """
                    UPDATE budgets SET total_limit = ?, updated_at = datetime('now')
                    WHERE id = ?
                    """,
                    (total_text, budget_id),
                )

            await self.db.execute("DELETE FROM budget_items WHERE budget_id = ?", (budget_id,))
            for category_id, limit_amount in items:
                await self.db.execute(
                    """
                    INSERT INTO budget_items (budget_id, category_id, limit_amount)
                    VALUES (?, ?, ?)
                    """,
                    (budget_id, category_id, str(limit_amount)),
                )

        logger.info(
            f"예산 저장: {year}-{month:02d} (항목 {len(items)}개)",
            extra={"budget_id": budget_id, "user_id": user_id},
        )
        return budget_id

    async def delete_budget(self, budget_id: str, user_id: str) -> None:
        """예산 삭제 (한도 항목 포함)"""
        budget = await self.load_budget(budget_id, user_id)

        async with self.db.transaction():
            await self.db.execute("DELETE FROM budget_items WHERE budget_id = ?", (budget_id,))
            await self.db.execute("DELETE FROM budgets WHERE id = ?", (budget_id,))

        logger.info(
            f"예산 삭제: {budget['year']}-{budget['month']:02d}",
            extra={"budget_id": budget_id, "user_id": user_id},
        )

    async def spent_by_category(
        self,
        user_id: str,
        year: int,
        month: int,
    ) -> dict[str | None, Decimal]:
        """해당 월 지출 합계 (카테고리별, 미분류는 None 키)

        삭제되지 않은 EXPENSE 거래만 포함한다.
        """
        start, end = month_range(year, month)
        rows = await self.db.fetchall(
            """
            SELECT category_id, amount FROM transactions
            WHERE user_id = ? AND type = ? AND is_deleted = 0
              AND occurred_at >= ? AND occurred_at < ?
            """,
            (user_id, TransactionType.EXPENSE.value, to_db_ts(start), to_db_ts(end)),
        )

        spent: dict[str | None, Decimal] = {}
        for category_id, amount in rows:
            spent[category_id] = spent.get(category_id, ZERO) + Decimal(amount)
        return spent
