"""
Balance Reconciler

거래 이력으로 계산한 잔액과 저장된 current_balance를 비교하여 불일치 감지.
감지만 하며 잔액을 고치지 않는다.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Any

from core.constants import BalancePolicy
from core.domain.investment import cash_delta
from core.types import TransactionType
from core.utils.money import ZERO
from core.utils.timezone import to_db_ts

if TYPE_CHECKING:
    from adapters.db.sqlite_adapter import SQLiteAdapter

logger = logging.getLogger(__name__)


@dataclass
class BalanceDrift:
    """잔액 불일치 정보"""

    account_id: str
    name: str
    expected: Decimal
    actual: Decimal

    @property
    def difference(self) -> Decimal:
        return self.actual - self.expected

    def to_dict(self) -> dict[str, Any]:
        return {
            "account_id": self.account_id,
            "name": self.name,
            "expected": str(self.expected),
            "actual": str(self.actual),
            "difference": str(self.difference),
        }


class BalanceReconciler:
    """잔액 정합성 점검기

    expected = starting_balance
             + Σ 삭제되지 않은 일반 거래의 효과
             + Σ 현금 계좌가 연결된 투자 거래의 효과

    Args:
        db: SQLite 어댑터
    """

    def __init__(self, db: SQLiteAdapter):
        self.db = db

    async def expected_balances(
        self,
        user_id: str,
        until: datetime | None = None,
    ) -> dict[str, Decimal]:
        """거래 이력으로 계산한 계좌별 잔액

        Args:
            user_id: 사용자 ID
            until: 이 시각 이전(미만)에 발생한 거래만 반영 (None이면 전체)
        """
        accounts = await self.db.fetchall(
            "SELECT id, starting_balance FROM accounts WHERE user_id = ?",
            (user_id,),
        )
        expected = {row[0]: Decimal(row[1]) for row in accounts}

        period_sql = " AND occurred_at < ?" if until is not None else ""
        period_params = (to_db_ts(until),) if until is not None else ()

        rows = await self.db.fetchall(
            f"""
            SELECT type, amount, account_id, from_account_id, to_account_id
            FROM transactions
            WHERE user_id = ? AND is_deleted = 0{period_sql}
            """,
            (user_id, *period_params),
        )
        for tx_type, amount, account_id, from_id, to_id in rows:
            value = Decimal(amount)
            if tx_type == TransactionType.INCOME.value and account_id in expected:
                expected[account_id] += value
            elif tx_type == TransactionType.EXPENSE.value and account_id in expected:
                expected[account_id] -= value
            elif tx_type == TransactionType.TRANSFER.value:
                if from_id in expected:
                    expected[from_id] -= value
                if to_id in expected:
                    expected[to_id] += value

        rows = await self.db.fetchall(
            f"""
            SELECT type, net_amount, cash_account_id
            FROM investment_transactions
            WHERE user_id = ? AND cash_account_id IS NOT NULL{period_sql}
            """,
            (user_id, *period_params),
        )
        for tx_type, net_amount, cash_account_id in rows:
            if cash_account_id in expected:
                expected[cash_account_id] += cash_delta(tx_type, Decimal(net_amount))

        return expected

    async def reconcile_balances(self, user_id: str) -> list[BalanceDrift]:
        """사용자 계좌 전체 잔액 점검

        Returns:
            불일치 목록 (일치하면 빈 리스트)
        """
        expected = await self.expected_balances(user_id)

        rows = await self.db.fetchall(
            "SELECT id, name, current_balance FROM accounts WHERE user_id = ? ORDER BY name",
            (user_id,),
        )

        drifts: list[BalanceDrift] = []
        for account_id, name, current in rows:
            actual = Decimal(current)
            calc = expected.get(account_id, ZERO)
            if abs(actual - calc) > BalancePolicy.DRIFT_TOLERANCE:
                drifts.append(BalanceDrift(
                    account_id=account_id,
                    name=name,
                    expected=calc,
                    actual=actual,
                ))

        if drifts:
            logger.warning(
                f"잔액 불일치 감지: {len(drifts)}건",
                extra={"user_id": user_id, "accounts": [d.account_id for d in drifts]},
            )
        else:
            logger.info(f"잔액 점검 완료: 불일치 없음 (user={user_id})")

        return drifts
