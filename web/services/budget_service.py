"""
예산 서비스

월 예산 조회/저장/삭제. 조회 결과의 각 항목에 해당 월 지출(spent)을 붙인다.
"""

import logging
from datetime import datetime
from typing import Any, Callable

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.ledger.budgets import BudgetLedger, validate_period
from core.utils.money import ZERO
from core.utils.timezone import now_utc

logger = logging.getLogger(__name__)


class BudgetService:
    """예산 서비스

    Args:
        db: SQLite 어댑터
        clock: 현재 시각 함수 (기간 생략 시 이번 달)
    """

    def __init__(
        self,
        db: SQLiteAdapter,
        clock: Callable[[], datetime] = now_utc,
    ):
        self.db = db
        self.clock = clock
        self.ledger = BudgetLedger(db)

    def current_period(self, year: int | None, month: int | None) -> tuple[int, int]:
        """생략된 연/월은 현재 UTC 기준으로 채운다"""
        now = self.clock()
        return validate_period(
            year if year is not None else now.year,
            month if month is not None else now.month,
        )

    async def _with_spending(self, budget: dict[str, Any]) -> dict[str, Any]:
        spent = await self.ledger.spent_by_category(
            budget["user_id"], budget["year"], budget["month"]
        )
        items = await self.ledger.list_items(budget["id"])
        for item in items:
            item["spent"] = str(spent.get(item["category_id"], ZERO))
        budget["items"] = items
        return budget

    async def get_budget_by_month(
        self,
        user_id: str,
        year: int | None = None,
        month: int | None = None,
    ) -> dict[str, Any]:
        """월 예산 조회

        예산이 없으면 id=None, 빈 항목의 구조를 반환한다.
        """
        year, month = self.current_period(year, month)
        budget_id = await self.ledger.find_budget_id(user_id, year, month)
        if budget_id is None:
            return {
                "id": None,
                "user_id": user_id,
                "year": year,
                "month": month,
                "total_limit": None,
                "items": [],
                "created_at": None,
                "updated_at": None,
            }
        return await self.get_budget(budget_id, user_id)

    async def get_budget(self, budget_id: str, user_id: str) -> dict[str, Any]:
        budget = await self.ledger.load_budget(budget_id, user_id)
        return await self._with_spending(budget)

    async def upsert_budget(self, user_id: str, data: dict[str, Any]) -> dict[str, Any]:
        budget_id = await self.ledger.upsert_budget(user_id, data)
        return await self.get_budget(budget_id, user_id)

    async def delete_budget(self, budget_id: str, user_id: str) -> None:
        await self.ledger.delete_budget(budget_id, user_id)
