"""
Debt Ledger

채무/채권의 상환 기록과 남은 금액을 함께 변경한다.
상환 1건 = debt_payments 행 추가 + debts.amount_remaining 차감 (+ 0이면 CLOSED),
하나의 트랜잭션 안에서 처리된다.

상환은 계좌 잔액을 직접 움직이지 않는다. 실제 입출금은 일반 거래로 기록하고
상환에 transaction_id로 연결한다.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import TYPE_CHECKING, Any, Callable

from core.domain.debt import apply_payment
from core.errors import ForbiddenError, NotFoundError, ValidationError
from core.ledger.models import DEBT_COLUMNS, DebtSnapshot
from core.ledger.ownership import OwnershipGuard
from core.ledger.transactions import parse_datetime
from core.types import DebtStatus
from core.utils.ids import new_id
from core.utils.money import to_decimal
from core.utils.timezone import now_utc, to_db_ts

if TYPE_CHECKING:
    from adapters.db.sqlite_adapter import SQLiteAdapter

logger = logging.getLogger(__name__)

PAYMENT_FIELDS = frozenset({"amount_paid", "paid_at", "transaction_id"})


class DebtLedger:
    """채무 상환 기록기

    Args:
        db: SQLite 어댑터
        clock: 현재 시각 함수 (paid_at 생략 시 사용)
    """

    def __init__(
        self,
        db: SQLiteAdapter,
        clock: Callable[[], datetime] = now_utc,
    ):
        self.db = db
        self.clock = clock
        self.guard = OwnershipGuard(db)

    async def load_debt(self, debt_id: str, user_id: str) -> DebtSnapshot:
        """채무 스냅샷 조회

        Raises:
            NotFoundError: 채무 없음
            ForbiddenError: 다른 사용자의 채무
        """
        row = await self.db.fetchone(
            f"SELECT {DEBT_COLUMNS} FROM debts WHERE id = ?",
            (debt_id,),
        )
        if row is None:
            raise NotFoundError("Debt not found")

        debt = DebtSnapshot.from_row(row)
        if debt.user_id != user_id:
            raise ForbiddenError("You don't have access to this debt")
        return debt

    async def list_payments(self, debt_id: str) -> list[dict[str, Any]]:
        """상환 기록 (paid_at 내림차순)"""
        rows = await self.db.fetchall(
            """
            SELECT id, amount_paid, paid_at, transaction_id, created_at
            FROM debt_payments
            WHERE debt_id = ?
            ORDER BY paid_at DESC, created_at DESC
            """,
            (debt_id,),
        )
        return [
            {
                "id": row[0],
                "amount_paid": row[1],
                "paid_at": row[2],
                "transaction_id": row[3],
                "created_at": row[4],
            }
            for row in rows
        ]

    async def get_debt(self, debt_id: str, user_id: str) -> dict[str, Any]:
        """채무 조회 (상환 기록 포함)"""
        debt = await self.load_debt(debt_id, user_id)
        return debt.to_dict(await self.list_payments(debt_id))

    async def add_payment(
        self,
        debt_id: str,
        user_id: str,
        data: dict[str, Any],
    ) -> dict[str, Any]:
        """상환 기록 추가

        Args:
            debt_id: 채무 ID
            user_id: 요청 사용자
            data: amount_paid (필수), paid_at, transaction_id

        Returns:
            갱신된 채무 (상환 기록 포함)

        Raises:
            ValidationError: 종료된 채무, 0 이하 상환액, 남은 금액 초과
            NotFoundError / ForbiddenError: 채무 또는 연결 거래 참조 오류
        """
        unknown = sorted(set(data) - PAYMENT_FIELDS)
        if unknown:
            raise ValidationError(f"Unknown field(s): {', '.join(unknown)}")

        if data.get("amount_paid") is None:
            raise ValidationError("amountPaid is required")
        amount = to_decimal(data["amount_paid"], "amountPaid")

        paid_at = (
            parse_datetime(data["paid_at"], "paidAt")
            if data.get("paid_at") is not None
            else self.clock()
        )
        transaction_id = data.get("transaction_id") or None

        async with self.db.transaction():
            # BEGIN IMMEDIATE 이후에 읽으므로 동시 상환이 같은 잔액을 보지 않는다
            debt = await self.load_debt(debt_id, user_id)
            result = apply_payment(debt.amount_remaining, debt.status, amount)

            if transaction_id:
                await self.guard.require_transaction(user_id, transaction_id)

            await self.db.execute(
                """
                INSERT INTO debt_payments (id, debt_id, amount_paid, paid_at, transaction_id)
                VALUES (?, ?, ?, ?, ?)
                """,
                (new_id(), debt_id, str(amount), to_db_ts(paid_at), transaction_id),
            )
            await self.db.execute(
                """
                UPDATE debts
                SET amount_remaining = ?, status = ?, updated_at = datetime('now')
                WHERE id = ?
                """,
                (str(result.remaining), result.status.value, debt_id),
            )

        logger.info(
            f"채무 상환: {amount} (남은 금액 {debt.amount_remaining} → {result.remaining}, "
            f"{result.status.value})",
            extra={"debt_id": debt_id, "user_id": user_id},
        )
        return await self.get_debt(debt_id, user_id)

    async def close(self, debt_id: str, user_id: str) -> dict[str, Any]:
        """채무 수동 종료 (남은 금액은 그대로)"""
        async with self.db.transaction():
            await self.load_debt(debt_id, user_id)
            await self.db.execute(
                """
                UPDATE debts SET status = ?, updated_at = datetime('now')
                WHERE id = ?
                """,
                (DebtStatus.CLOSED.value, debt_id),
            )

        logger.info("채무 종료", extra={"debt_id": debt_id, "user_id": user_id})
        return await self.get_debt(debt_id, user_id)
