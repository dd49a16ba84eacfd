"""
반복 규칙 서비스

규칙 생성/수정/활성 전환/삭제/조회 및 수동 실행
"""

import logging
from datetime import datetime
from typing import Any, Callable

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.domain.schedule import validate_schedule_value
from core.errors import ValidationError
from core.ledger.models import RECURRING_RULE_COLUMNS, RecurringRuleSnapshot
from core.ledger.ownership import OwnershipGuard
from core.ledger.recurring import RecurringExecutor
from core.ledger.transactions import parse_datetime
from core.types import ScheduleType, TransactionType
from core.utils.ids import new_id
from core.utils.money import require_positive
from core.utils.timezone import now_utc, to_db_ts

logger = logging.getLogger(__name__)

RULE_FIELDS = frozenset({
    "name",
    "type",
    "amount",
    "currency",
    "category_id",
    "account_id",
    "schedule_type",
    "schedule_value",
    "next_run_at",
    "is_active",
})

# 반복 규칙은 INCOME/EXPENSE만 허용 (이체 반복은 지원하지 않음)
RULE_TYPES = frozenset({TransactionType.INCOME.value, TransactionType.EXPENSE.value})


class RecurringService:
    """반복 규칙 서비스

    Args:
        db: SQLite 어댑터
        clock: 현재 시각 함수
    """

    def __init__(
        self,
        db: SQLiteAdapter,
        clock: Callable[[], datetime] = now_utc,
    ):
        self.db = db
        self.guard = OwnershipGuard(db)
        self.executor = RecurringExecutor(db, clock=clock)

    async def _validate(self, user_id: str, values: dict[str, Any]) -> dict[str, Any]:
        """규칙 값 검증 후 저장용 값 반환"""
        if not values.get("name") or not str(values["name"]).strip():
            raise ValidationError("name is required")

        tx_type = values.get("type")
        if tx_type not in RULE_TYPES:
            raise ValidationError(f"Invalid recurring transaction type: {tx_type}")

        if values.get("amount") is None:
            raise ValidationError("amount is required")
        amount = require_positive(values["amount"], "amount")

        try:
            schedule_type = ScheduleType(values.get("schedule_type")).value
        except ValueError:
            raise ValidationError(
                f"Invalid schedule type: {values.get('schedule_type')}"
            ) from None

        schedule_value = values.get("schedule_value") or ""
        if not validate_schedule_value(schedule_type, schedule_value):
            raise ValidationError(
                f"Invalid schedule value for {schedule_type}: {schedule_value}"
            )
        if schedule_type == ScheduleType.WEEKLY.value:
            schedule_value = schedule_value.upper()

        if not values.get("account_id"):
            raise ValidationError("accountId is required")
        if not values.get("category_id"):
            raise ValidationError("categoryId is required")

        account = await self.guard.require_account(user_id, values["account_id"])
        category = await self.guard.require_category(user_id, values["category_id"])
        if category["category_type"] != tx_type:
            raise ValidationError("Category type must match transaction type")

        return {
            "name": str(values["name"]).strip(),
            "type": tx_type,
            "amount": str(amount),
            "currency": values.get("currency") or account["currency"],
            "category_id": values["category_id"],
            "account_id": values["account_id"],
            "schedule_type": schedule_type,
            "schedule_value": schedule_value,
            "next_run_at": to_db_ts(parse_datetime(values.get("next_run_at"), "nextRunAt")),
            "is_active": 1 if values.get("is_active", True) else 0,
        }

    async def _load(self, rule_id: str, user_id: str) -> RecurringRuleSnapshot:
        return await self.executor.load_rule(rule_id, user_id)

    async def create_rule(self, user_id: str, data: dict[str, Any]) -> dict[str, Any]:
        """반복 규칙 생성

        next_run_at은 첫 실행 예정 시각 (사용자가 지정).
        """
        unknown = sorted(set(data) - RULE_FIELDS)
        if unknown:
            raise ValidationError(f"Unknown field(s): {', '.join(unknown)}")

        values = await self._validate(user_id, data)
        rule_id = new_id()

        async with self.db.transaction():
            await self.db.execute(
                """
                INSERT INTO recurring_rules (
                    id, user_id, name, type, amount, currency, category_id, account_id,
                    schedule_type, schedule_value, next_run_at, is_active
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    rule_id,
                    user_id,
                    values["name"],
                    values["type"],
                    values["amount"],
                    values["currency"],
                    values["category_id"],
                    values["account_id"],
                    values["schedule_type"],
                    values["schedule_value"],
                    values["next_run_at"],
                    values["is_active"],
                ),
            )

        logger.info(
            f"반복 규칙 생성: {values['name']} ({values['schedule_type']} {values['schedule_value']})",
            extra={"rule_id": rule_id, "user_id": user_id},
        )
        return await self.get_rule(rule_id, user_id)

    async def update_rule(
        self,
        rule_id: str,
        user_id: str,
        patch: dict[str, Any],
    ) -> dict[str, Any]:
        """반복 규칙 수정 (패치에 없는 값은 유지, 전체를 다시 검증)"""
        unknown = sorted(set(patch) - RULE_FIELDS)
        if unknown:
            raise ValidationError(f"Unknown field(s): {', '.join(unknown)}")

        old = await self._load(rule_id, user_id)
        merged = {
            "name": old.name,
            "type": old.type,
            "amount": old.amount,
            "currency": old.currency,
            "category_id": old.category_id,
            "account_id": old.account_id,
            "schedule_type": old.schedule_type,
            "schedule_value": old.schedule_value,
            "next_run_at": old.next_run_at,
            "is_active": old.is_active,
        }
        merged.update(patch)
        values = await self._validate(user_id, merged)

        async with self.db.transaction():
            await self.db.execute(
                """
                UPDATE recurring_rules SET
                    name = ?, type = ?, amount = ?, currency = ?,
                    category_id = ?, account_id = ?,
                    schedule_type = ?, schedule_value = ?, next_run_at = ?, is_active = ?,
                    updated_at = datetime('now')
                WHERE id = ?
                """,
                (
                    values["name"],
                    values["type"],
                    values["amount"],
                    values["currency"],
                    values["category_id"],
                    values["account_id"],
                    values["schedule_type"],
                    values["schedule_value"],
                    values["next_run_at"],
                    values["is_active"],
                    rule_id,
                ),
            )

        logger.info(f"반복 규칙 수정: {values['name']}", extra={"rule_id": rule_id})
        return await self.get_rule(rule_id, user_id)

    async def toggle_rule(self, rule_id: str, user_id: str) -> dict[str, Any]:
        """활성/비활성 전환"""
        old = await self._load(rule_id, user_id)

        async with self.db.transaction():
            await self.db.execute(
                """
                UPDATE recurring_rules
                SET is_active = ?, updated_at = datetime('now')
                WHERE id = ?
                """,
                (0 if old.is_active else 1, rule_id),
            )

        logger.info(
            f"반복 규칙 {'비활성화' if old.is_active else '활성화'}: {old.name}",
            extra={"rule_id": rule_id},
        )
        return await self.get_rule(rule_id, user_id)

    async def delete_rule(self, rule_id: str, user_id: str) -> None:
        """반복 규칙 삭제 (실행 기록 포함, 생성된 거래는 유지)"""
        old = await self._load(rule_id, user_id)

        async with self.db.transaction():
            await self.db.execute("DELETE FROM recurring_runs WHERE rule_id = ?", (rule_id,))
            await self.db.execute("DELETE FROM recurring_rules WHERE id = ?", (rule_id,))

        logger.info(f"반복 규칙 삭제: {old.name}", extra={"rule_id": rule_id})

    async def get_rule(self, rule_id: str, user_id: str) -> dict[str, Any]:
        return await self.executor.get_rule(rule_id, user_id)

    async def list_rules(
        self,
        user_id: str,
        is_active: bool | None = None,
    ) -> list[dict[str, Any]]:
        """규칙 목록 (next_run_at 오름차순)"""
        sql = f"SELECT {RECURRING_RULE_COLUMNS} FROM recurring_rules WHERE user_id = ?"
        params: list[Any] = [user_id]
        if is_active is not None:
            sql += " AND is_active = ?"
            params.append(1 if is_active else 0)
        sql += " ORDER BY next_run_at, name"

        rows = await self.db.fetchall(sql, tuple(params))
        return [RecurringRuleSnapshot.from_row(row).to_dict() for row in rows]

    async def run_rule(self, rule_id: str, user_id: str) -> dict[str, Any]:
        """규칙 수동 실행"""
        return await self.executor.run(rule_id, user_id)
