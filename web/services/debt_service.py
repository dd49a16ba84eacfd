"""
채무 서비스

채무/채권 생성/수정/삭제/조회. 상환과 종료는 core.ledger.debts.DebtLedger가 담당.
"""

import logging
from datetime import datetime
from typing import Any, Callable

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.domain.debt import status_for, validate_amounts
from core.errors import ValidationError
from core.ledger.debts import DebtLedger
from core.ledger.models import DEBT_COLUMNS, DebtSnapshot
from core.ledger.transactions import parse_datetime
from core.types import DebtStatus, DebtType
from core.utils.ids import new_id
from core.utils.money import to_decimal, to_optional_decimal
from core.utils.timezone import now_utc, to_db_ts

logger = logging.getLogger(__name__)

DEBT_FIELDS = frozenset({
    "type",
    "person_name",
    "amount_total",
    "amount_remaining",
    "due_date",
    "interest_rate",
    "minimum_payment",
})


def _optional_str(value: Any, field: str) -> str | None:
    decimal = to_optional_decimal(value, field)
    return str(decimal) if decimal is not None else None


class DebtService:
    """채무 서비스

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
        self.ledger = DebtLedger(db, clock=clock)

    def _validate(self, values: dict[str, Any]) -> dict[str, Any]:
        """채무 값 검증 후 저장용 값 반환

        amount_remaining 생략 시 총액과 같다.
        """
        try:
            debt_type = DebtType(values.get("type")).value
        except ValueError:
            raise ValidationError(f"Invalid debt type: {values.get('type')}") from None

        if not values.get("person_name") or not str(values["person_name"]).strip():
            raise ValidationError("personName is required")

        if values.get("amount_total") is None:
            raise ValidationError("amountTotal is required")
        total = to_decimal(values["amount_total"], "amountTotal")
        remaining = (
            to_decimal(values["amount_remaining"], "amountRemaining")
            if values.get("amount_remaining") is not None
            else total
        )
        validate_amounts(total, remaining)

        due_date = values.get("due_date")
        return {
            "type": debt_type,
            "person_name": str(values["person_name"]).strip(),
            "amount_total": str(total),
            "amount_remaining": str(remaining),
            "due_date": (
                to_db_ts(parse_datetime(due_date, "dueDate")) if due_date is not None else None
            ),
            "interest_rate": _optional_str(values.get("interest_rate"), "interestRate"),
            "minimum_payment": _optional_str(values.get("minimum_payment"), "minimumPayment"),
            "status": status_for(remaining).value,
        }

    async def create_debt(self, user_id: str, data: dict[str, Any]) -> dict[str, Any]:
        """채무 생성 (남은 금액이 0이면 바로 CLOSED)"""
        unknown = sorted(set(data) - DEBT_FIELDS)
        if unknown:
            raise ValidationError(f"Unknown field(s): {', '.join(unknown)}")

        values = self._validate(data)
        debt_id = new_id()

        async with self.db.transaction():
            await self.db.execute(
                """
                INSERT INTO debts (
                    id, user_id, type, person_name, amount_total, amount_remaining,
                    due_date, interest_rate, minimum_payment, status
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    debt_id,
                    user_id,
                    values["type"],
                    values["person_name"],
                    values["amount_total"],
                    values["amount_remaining"],
                    values["due_date"],
                    values["interest_rate"],
                    values["minimum_payment"],
                    values["status"],
                ),
            )

        logger.info(
            f"채무 생성: {values['type']} {values['person_name']} {values['amount_total']}",
            extra={"debt_id": debt_id, "user_id": user_id},
        )
        return await self.get_debt(debt_id, user_id)

    async def update_debt(
        self,
        debt_id: str,
        user_id: str,
        patch: dict[str, Any],
    ) -> dict[str, Any]:
        """채무 수정 (총액/남은 금액은 합친 값으로 다시 검증, 상태는 재계산)"""
        unknown = sorted(set(patch) - DEBT_FIELDS)
        if unknown:
            raise ValidationError(f"Unknown field(s): {', '.join(unknown)}")

        old = await self.ledger.load_debt(debt_id, user_id)
        merged: dict[str, Any] = {
            "type": old.type,
            "person_name": old.person_name,
            "amount_total": old.amount_total,
            "amount_remaining": old.amount_remaining,
            "due_date": old.due_date,
            "interest_rate": old.interest_rate,
            "minimum_payment": old.minimum_payment,
        }
        merged.update(patch)
        values = self._validate(merged)

        async with self.db.transaction():
            await self.db.execute(
                """
                UPDATE debts SET
                    type = ?, person_name = ?, amount_total = ?, amount_remaining = ?,
                    due_date = ?, interest_rate = ?, minimum_payment = ?, status = ?,
                    updated_at = datetime('now')
                WHERE id = ?
                """,
                (
                    values["type"],
                    values["person_name"],
                    values["amount_total"],
                    values["amount_remaining"],
                    values["due_date"],
                    values["interest_rate"],
                    values["minimum_payment"],
                    values["status"],
                    debt_id,
                ),
            )

        logger.info(f"채무 수정: {values['person_name']}", extra={"debt_id": debt_id})
        return await self.get_debt(debt_id, user_id)

    async def delete_debt(self, debt_id: str, user_id: str) -> None:
        """채무 삭제 (상환 기록 포함, 연결된 거래는 유지)"""
        old = await self.ledger.load_debt(debt_id, user_id)

        async with self.db.transaction():
            await self.db.execute("DELETE FROM debt_payments WHERE debt_id = ?", (debt_id,))
            await self.db.execute("DELETE FROM debts WHERE id = ?", (debt_id,))

        logger.info(f"채무 삭제: {old.person_name}", extra={"debt_id": debt_id})

    async def get_debt(self, debt_id: str, user_id: str) -> dict[str, Any]:
        return await self.ledger.get_debt(debt_id, user_id)

    async def list_debts(
        self,
        user_id: str,
        debt_type: str | None = None,
        status: str | None = None,
    ) -> list[dict[str, Any]]:
        """채무 목록 (만기일 오름차순, 만기 없는 채무는 뒤로)"""
        sql = f"SELECT {DEBT_COLUMNS} FROM debts WHERE user_id = ?"
        params: list[Any] = [user_id]
        if debt_type is not None:
            try:
                params.append(DebtType(debt_type).value)
            except ValueError:
                raise ValidationError(f"Invalid debt type: {debt_type}") from None
            sql += " AND type = ?"
        if status is not None:
            try:
                params.append(DebtStatus(status).value)
            except ValueError:
                raise ValidationError(f"Invalid debt status: {status}") from None
            sql += " AND status = ?"
        sql += " ORDER BY due_date IS NULL, due_date, created_at"

        rows = await self.db.fetchall(sql, tuple(params))
        debts = []
        for row in rows:
            debt = DebtSnapshot.from_row(row)
            debts.append(debt.to_dict(await self.ledger.list_payments(debt.id)))
        return debts

    async def add_payment(
        self,
        debt_id: str,
        user_id: str,
        data: dict[str, Any],
    ) -> dict[str, Any]:
        return await self.ledger.add_payment(debt_id, user_id, data)

    async def close_debt(self, debt_id: str, user_id: str) -> dict[str, Any]:
        return await self.ledger.close(debt_id, user_id)
