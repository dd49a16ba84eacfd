"""BudgetLedger / BudgetService 통합 테스트

월 예산 저장(항목 교체), EXPENSE 카테고리 검증, 항목별 지출 집계
"""

from datetime import datetime, timezone

import pytest

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.errors import ForbiddenError, NotFoundError, ValidationError
from core.ledger.budgets import month_range
from core.ledger.transactions import TransactionOrchestrator
from web.services.budget_service import BudgetService

USER_ID = "user-1"
OTHER_USER_ID = "user-2"
UTC = timezone.utc


@pytest.fixture
def service(db: SQLiteAdapter) -> BudgetService:
    """2026-03 기준 BudgetService"""
    return BudgetService(db, clock=lambda: datetime(2026, 3, 15, tzinfo=UTC))


async def _expense(db, account: str, category: str | None, amount: str, occurred_at: str) -> dict:
    return await TransactionOrchestrator(db).create(USER_ID, {
        "type": "EXPENSE",
        "amount": amount,
        "occurred_at": occurred_at,
        "account_id": account,
        "category_id": category,
    })


class TestMonthRange:
    """월 범위 테스트"""

    def test_december_rolls_over(self) -> None:
        start, end = month_range(2026, 12)

        assert start == datetime(2026, 12, 1, tzinfo=UTC)
        assert end == datetime(2027, 1, 1, tzinfo=UTC)


class TestUpsert:
    """예산 저장 테스트"""

    @pytest.mark.asyncio
    async def test_create_then_replace_items(self, service, seed) -> None:
        """같은 달 다시 저장 → 같은 예산, 항목 전체 교체"""
        food = await seed.category("식비", "EXPENSE")
        rent = await seed.category("월세", "EXPENSE")

        first = await service.upsert_budget(USER_ID, {
            "year": 2026,
            "month": 3,
            "total_limit": "1000000",
            "items": [
                {"category_id": food, "limit_amount": "300000"},
                {"category_id": rent, "limit_amount": "500000"},
            ],
        })
        second = await service.upsert_budget(USER_ID, {
            "year": 2026,
            "month": 3,
            "items": [{"category_id": food, "limit_amount": "400000"}],
        })

        assert second["id"] == first["id"]
        assert second["total_limit"] is None
        assert [(i["category_id"], i["limit_amount"]) for i in second["items"]] == [
            (food, "400000"),
        ]

    @pytest.mark.asyncio
    async def test_income_category_rejected(self, service, seed) -> None:
        salary = await seed.category("급여", "INCOME")

        with pytest.raises(ValidationError, match="not found or not expense type"):
            await service.upsert_budget(USER_ID, {
                "year": 2026,
                "month": 3,
                "items": [{"category_id": salary, "limit_amount": "1"}],
            })

    @pytest.mark.asyncio
    async def test_foreign_category_rejected(self, service, seed) -> None:
        foreign = await seed.category("식비", "EXPENSE", user_id=OTHER_USER_ID)

        with pytest.raises(ValidationError, match="not found or not expense type"):
            await service.upsert_budget(USER_ID, {
                "year": 2026,
                "month": 3,
                "items": [{"category_id": foreign, "limit_amount": "1"}],
            })

    @pytest.mark.asyncio
    async def test_duplicate_category_rejected(self, service, seed) -> None:
        food = await seed.category("식비", "EXPENSE")

        with pytest.raises(ValidationError, match="Duplicate categoryId"):
            await service.upsert_budget(USER_ID, {
                "year": 2026,
                "month": 3,
                "items": [
                    {"category_id": food, "limit_amount": "1"},
                    {"category_id": food, "limit_amount": "2"},
                ],
            })

    @pytest.mark.asyncio
    @pytest.mark.parametrize("year,month", [(2026, 0), (2026, 13), (1999, 1), (3001, 1)])
    async def test_period_out_of_range(self, service, year: int, month: int) -> None:
        with pytest.raises(ValidationError):
            await service.upsert_budget(USER_ID, {"year": year, "month": month, "items": []})


class TestGet:
    """예산 조회 테스트"""

    @pytest.mark.asyncio
    async def test_missing_month_returns_empty_structure(self, service) -> None:
        """기간 생략 → 이번 달, 예산 없으면 빈 구조"""
        budget = await service.get_budget_by_month(USER_ID)

        assert budget["id"] is None
        assert (budget["year"], budget["month"]) == (2026, 3)
        assert budget["items"] == []

    @pytest.mark.asyncio
    async def test_spent_counts_only_month_and_active_expenses(self, db, service, seed) -> None:
        """그 달의 삭제되지 않은 지출만 항목 spent에 포함"""
        account = await seed.account(balance="1000000")
        food = await seed.category("식비", "EXPENSE")
        await service.upsert_budget(USER_ID, {
            "year": 2026,
            "month": 3,
            "items": [{"category_id": food, "limit_amount": "300000"}],
        })

        await _expense(db, account, food, "12000", "2026-03-01T00:00:00+00:00")
        await _expense(db, account, food, "8000.5", "2026-03-31T23:59:59+00:00")
        await _expense(db, account, food, "99999", "2026-04-01T00:00:00+00:00")
        deleted = await _expense(db, account, food, "50000", "2026-03-10T00:00:00+00:00")
        await TransactionOrchestrator(db).delete(deleted["id"], USER_ID)

        budget = await service.get_budget_by_month(USER_ID, 2026, 3)

        assert budget["items"][0]["spent"] == "20000.5"

    @pytest.mark.asyncio
    async def test_foreign_budget_forbidden(self, service, seed) -> None:
        food = await seed.category("식비", "EXPENSE")
        budget = await service.upsert_budget(USER_ID, {
            "year": 2026,
            "month": 3,
            "items": [{"category_id": food, "limit_amount": "1"}],
        })

        with pytest.raises(ForbiddenError):
            await service.get_budget(budget["id"], OTHER_USER_ID)

    @pytest.mark.asyncio
    async def test_delete(self, db, service, seed) -> None:
        food = await seed.category("식비", "EXPENSE")
        budget = await service.upsert_budget(USER_ID, {
            "year": 2026,
            "month": 3,
            "items": [{"category_id": food, "limit_amount": "1"}],
        })

        await service.delete_budget(budget["id"], USER_ID)

        with pytest.raises(NotFoundError):
            await service.get_budget(budget["id"], USER_ID)
        row = await db.fetchone("SELECT COUNT(*) FROM budget_items")
        assert row[0] == 0
