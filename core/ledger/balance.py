"""
Balance Mutator

계좌 current_balance 변경의 단일 경로.
모든 호출자는 apply_delta를 통해서만 잔액을 바꾼다.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import TYPE_CHECKING

from core.errors import NotFoundError

if TYPE_CHECKING:
    from adapters.db.sqlite_adapter import SQLiteAdapter

logger = logging.getLogger(__name__)


class BalanceMutator:
    """계좌 잔액 변경기

    잔액 음수 허용 (마이너스 통장/카드 사용액 추적).
    정확히 한 번 호출하는 책임은 호출자(Orchestrator)에게 있다.

    Args:
        db: SQLite 어댑터
    """

    def __init__(self, db: SQLiteAdapter):
        self.db = db

    async def apply_delta(self, account_id: str, signed_amount: Decimal) -> Decimal:
        """잔액에 부호 있는 변동값 반영

        호출자의 트랜잭션(BEGIN IMMEDIATE) 안에서만 실행된다.
        쓰기 잠금이 트랜잭션 시작 시점에 잡혀 있으므로
        조회-가산-저장 사이에 다른 쓰기가 끼어들 수 없다.

        Args:
            account_id: 계좌 ID
            signed_amount: 양수 = 입금, 음수 = 출금

        Returns:
            변경 후 잔액

        Raises:
            RuntimeError: 트랜잭션 밖에서 호출한 경우
            NotFoundError: 계좌가 없는 경우
        """
        if not self.db.in_transaction:
            raise RuntimeError("apply_delta must run inside a transaction")

        row = await self.db.fetchone(
            "SELECT current_balance FROM accounts WHERE id = ?",
            (account_id,),
        )
        if row is None:
            raise NotFoundError("Account not found")

        new_balance = Decimal(row[0]) + signed_amount

        await self.db.execute(
            """
            UPDATE accounts
            SET current_balance = ?, updated_at = datetime('now')
            WHERE id = ?
            """,
            (str(new_balance), account_id),
        )

        logger.debug(
            f"잔액 변경: {account_id} {signed_amount:+} → {new_balance}",
        )

        return new_balance

    async def get_balance(self, account_id: str) -> Decimal:
        """현재 잔액 조회

        Raises:
            NotFoundError: 계좌가 없는 경우
        """
        row = await self.db.fetchone(
            "SELECT current_balance FROM accounts WHERE id = ?",
            (account_id,),
        )
        if row is None:
            raise NotFoundError("Account not found")
        return Decimal(row[0])
