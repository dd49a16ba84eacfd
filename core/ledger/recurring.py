"""
Recurring Executor

반복 규칙 1회 실행: 거래 생성 + 실행 기록 + next_run_at 갱신을 하나의 트랜잭션으로 수행.
스케줄러 루프는 외부(scripts/run_recurring.py)에서 run_due()를 호출한다.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Any, Callable

from core.domain.schedule import calculate_next_run_at
from core.errors import AppError, ForbiddenError, NotFoundError, ValidationError
from core.ledger.models import RECURRING_RULE_COLUMNS, RecurringRuleSnapshot
from core.ledger.transactions import TransactionOrchestrator
from core.utils.ids import new_id
from core.utils.timezone import now_utc, to_db_ts, to_utc

if TYPE_CHECKING:
    from adapters.db.sqlite_adapter import SQLiteAdapter

logger = logging.getLogger(__name__)


@dataclass
class RecurringBatchResult:
    """run_due 실행 결과"""

    executed: list[str] = field(default_factory=list)
    # rule_id → 오류 메시지
    failed: dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {"executed": self.executed, "failed": self.failed}


class RecurringExecutor:
    """반복 규칙 실행기

    Args:
        db: SQLite 어댑터
        clock: 현재 시각 함수 (테스트에서 고정 시각 주입)
    """

    def __init__(
        self,
        db: SQLiteAdapter,
        clock: Callable[[], datetime] = now_utc,
    ):
        self.db = db
        self.clock = clock
        self.transactions = TransactionOrchestrator(db)

    async def load_rule(self, rule_id: str, user_id: str) -> RecurringRuleSnapshot:
        row = await self.db.fetchone(
            f"SELECT {RECURRING_RULE_COLUMNS} FROM recurring_rules WHERE id = ?",
            (rule_id,),
        )
        if row is None:
            raise NotFoundError("Recurring rule not found")

        rule = RecurringRuleSnapshot.from_row(row)
        if rule.user_id != user_id:
            raise ForbiddenError("You don't have access to this recurring rule")
        return rule

    async def get_rule(
        self,
        rule_id: str,
        user_id: str,
        runs_limit: int | None = 10,
    ) -> dict[str, Any]:
        """규칙 조회 (최근 실행 기록 포함)

        Args:
            runs_limit: 포함할 실행 기록 수 (None이면 전체)
        """
        rule = await self.load_rule(rule_id, user_id)

        sql = """
            SELECT id, transaction_id, executed_at FROM recurring_runs
            WHERE rule_id = ?
            ORDER BY executed_at DESC
        """
        params: tuple[Any, ...] = (rule_id,)
        if runs_limit is not None:
            sql += " LIMIT ?"
            params = (rule_id, runs_limit)

        rows = await self.db.fetchall(sql, params)
        runs = [
            {"id": row[0], "transaction_id": row[1], "executed_at": row[2]}
            for row in rows
        ]
        return rule.to_dict(runs)

    async def run(
        self,
        rule_id: str,
        user_id: str,
        now: datetime | None = None,
    ) -> dict[str, Any]:
        """규칙 1회 실행

        규칙의 next_run_at 일시로 거래를 만들고, 다음 실행 시각은
        직전 next_run_at을 기준으로 계산한다 (실행이 늦어도 일정이 밀리지 않음).

        Args:
            rule_id: 규칙 ID
            user_id: 요청 사용자
            now: 실행 기준 시각 (None이면 clock())

        Returns:
            갱신된 규칙 (최근 실행 기록 포함)

        Raises:
            NotFoundError / ForbiddenError: 규칙 참조 오류
            ValidationError: 비활성 규칙 또는 아직 실행 시각이 아님
        """
        now = to_utc(now or self.clock())

        async with self.db.transaction():
            rule = await self.load_rule(rule_id, user_id)

            if not rule.is_active:
                raise ValidationError("Recurring rule is not active")

            if rule.next_run_at > now:
                raise ValidationError(
                    f"Recurring rule is scheduled to run at {rule.next_run_at.isoformat()}"
                )

            draft = await self.transactions.validate(user_id, {
                "type": rule.type,
                "amount": rule.amount,
                "currency": rule.currency,
                "occurred_at": rule.next_run_at,
                "account_id": rule.account_id,
                "category_id": rule.category_id,
                "note": f"Recurring: {rule.name}",
            })
            transaction_id = await self.transactions.insert_in_unit(user_id, draft)

            await self.db.execute(
                """
                INSERT INTO recurring_runs (id, rule_id, transaction_id, executed_at)
                VALUES (?, ?, ?, ?)
                """,
                (new_id(), rule.id, transaction_id, to_db_ts(now)),
            )

            next_run_at = calculate_next_run_at(
                rule.schedule_type,
                rule.schedule_value,
                rule.next_run_at,
            )
            await self.db.execute(
                """
                UPDATE recurring_rules
                SET next_run_at = ?, updated_at = datetime('now')
                WHERE id = ?
                """,
                (to_db_ts(next_run_at), rule.id),
            )

        logger.info(
            f"반복 규칙 실행: {rule.name} → 다음 실행 {next_run_at.isoformat()}",
            extra={"rule_id": rule.id, "transaction_id": transaction_id, "user_id": user_id},
        )
        return await self.get_rule(rule_id, user_id)

    async def run_due(self, now: datetime | None = None) -> RecurringBatchResult:
        """실행 시각이 지난 활성 규칙을 각각 1회 실행

        규칙마다 독립된 트랜잭션이므로 한 규칙의 실패가 다른 규칙에 영향을 주지 않는다.
        due 판정과 각 규칙 실행 모두 같은 기준 시각(cutoff)을 쓴다.

        Args:
            now: 기준 시각 (None이면 clock())
        """
        cutoff = to_utc(now or self.clock())
        rows = await self.db.fetchall(
            """
            SELECT id, user_id FROM recurring_rules
            WHERE is_active = 1 AND next_run_at <= ?
            ORDER BY next_run_at, id
            """,
            (to_db_ts(cutoff),),
        )

        result = RecurringBatchResult()
        for rule_id, user_id in rows:
            try:
                await self.run(rule_id, user_id, now=cutoff)
            except AppError as e:
                logger.warning(
                    f"반복 규칙 실행 실패: {rule_id} - {e.message}",
                    extra={"rule_id": rule_id, "user_id": user_id, "code": e.code},
                )
                result.failed[rule_id] = e.message
                continue
            except Exception as e:
                logger.exception(
                    f"반복 규칙 실행 중 예외: {rule_id}",
                    extra={"rule_id": rule_id, "user_id": user_id},
                )
                result.failed[rule_id] = str(e)
                continue
            result.executed.append(rule_id)

        logger.info(
            f"반복 규칙 일괄 실행: 성공 {len(result.executed)}건, 실패 {len(result.failed)}건",
        )
        return result
