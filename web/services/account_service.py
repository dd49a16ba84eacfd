"""
계좌 서비스

계좌 생성/조회/수정 및 잔액 정합성 점검
"""

import logging
import sqlite3
from typing import Any

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.errors import ConflictError, ForbiddenError, NotFoundError, ValidationError
from core.ledger.reconcile import BalanceReconciler
from core.types import AccountType
from core.utils.ids import new_id
from core.utils.money import to_decimal

logger = logging.getLogger(__name__)

ACCOUNT_COLUMNS = """
    id, user_id, name, account_type, currency,
    starting_balance, current_balance, is_archived, created_at, updated_at
"""


def _row_to_account(row: tuple[Any, ...]) -> dict[str, Any]:
    return {
        "id": row[0],
        "user_id": row[1],
        "name": row[2],
        "account_type": row[3],
        "currency": row[4],
        "starting_balance": row[5],
        "current_balance": row[6],
        "is_archived": bool(row[7]),
        "created_at": row[8],
        "updated_at": row[9],
    }


class AccountService:
    """계좌 서비스

    current_balance는 생성 시 starting_balance로 초기화되고,
    이후에는 거래 오케스트레이터(BalanceMutator)만 변경한다.

    Args:
        db: SQLite 어댑터
    """

    def __init__(self, db: SQLiteAdapter):
        self.db = db

    async def create_account(
        self,
        user_id: str,
        name: str,
        account_type: str,
        currency: str,
        starting_balance: Any = "0",
    ) -> dict[str, Any]:
        """계좌 생성"""
        try:
            account_type = AccountType(account_type).value
        except ValueError:
            raise ValidationError(f"Invalid account type: {account_type}") from None

        if not name or not name.strip():
            raise ValidationError("name is required")

        balance = to_decimal(starting_balance, "startingBalance")
        account_id = new_id()

        try:
            async with self.db.transaction():
                await self.db.execute(
                    """
                    INSERT INTO accounts (
                        id, user_id, name, account_type, currency,
                        starting_balance, current_balance
                    ) VALUES (?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        account_id,
                        user_id,
                        name.strip(),
                        account_type,
                        currency.upper(),
                        str(balance),
                        str(balance),
                    ),
                )
        except sqlite3.IntegrityError as e:
            raise ConflictError("Account already exists") from e

        logger.info(
            f"계좌 생성: {name} ({account_type}, {currency})",
            extra={"account_id": account_id, "user_id": user_id},
        )
        return await self.get_account(account_id, user_id)

    async def get_account(self, account_id: str, user_id: str) -> dict[str, Any]:
        """계좌 조회

        Raises:
            NotFoundError: 계좌 없음
            ForbiddenError: 다른 사용자의 계좌
        """
        row = await self.db.fetchone(
            f"SELECT {ACCOUNT_COLUMNS} FROM accounts WHERE id = ?",
            (account_id,),
        )
        if row is None:
            raise NotFoundError("Account not found")
        if row[1] != user_id:
            raise ForbiddenError("You don't have access to this account")
        return _row_to_account(row)

    async def list_accounts(
        self,
        user_id: str,
        include_archived: bool = False,
    ) -> list[dict[str, Any]]:
        """계좌 목록"""
        sql = f"SELECT {ACCOUNT_COLUMNS} FROM accounts WHERE user_id = ?"
        if not include_archived:
            sql += " AND is_archived = 0"
        sql += " ORDER BY created_at, name"

        rows = await self.db.fetchall(sql, (user_id,))
        return [_row_to_account(row) for row in rows]

    async def update_account(
        self,
        account_id: str,
        user_id: str,
        name: str | None = None,
        is_archived: bool | None = None,
    ) -> dict[str, Any]:
        """계좌 이름 변경 / 보관 처리

        잔액 필드는 여기서 바꿀 수 없다.
        """
        await self.get_account(account_id, user_id)

        sets: list[str] = []
        params: list[Any] = []
        if name is not None:
            if not name.strip():
                raise ValidationError("name must not be empty")
            sets.append("name = ?")
            params.append(name.strip())
        if is_archived is not None:
            sets.append("is_archived = ?")
            params.append(1 if is_archived else 0)

        if sets:
            async with self.db.transaction():
                await self.db.execute(
                    f"""
                    UPDATE accounts SET {', '.join(sets)}, updated_at = datetime('now')
                    WHERE id = ?
                    """,
                    (*params, account_id),
                )
            logger.info(
                f"계좌 수정: {account_id}",
                extra={"user_id": user_id, "fields": sets},
            )

        return await self.get_account(account_id, user_id)

    async def reconcile(self, user_id: str) -> dict[str, Any]:
        """잔액 정합성 점검 (쓰기 없음)"""
        drifts = await BalanceReconciler(self.db).reconcile_balances(user_id)
        return {
            "is_consistent": not drifts,
            "drifts": [d.to_dict() for d in drifts],
        }
