"""
Transaction Orchestrator

일반 거래(INCOME / EXPENSE / TRANSFER)의 생성/수정/삭제.
각 작업은 하나의 트랜잭션 안에서 행 변경과 잔액 변경을 함께 수행한다.

잔액 효과:
- INCOME:   account_id += amount
- EXPENSE:  account_id -= amount
- TRANSFER: from_account_id -= amount, to_account_id += amount
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Any

from core.constants import Defaults
from core.errors import ForbiddenError, NotFoundError, ValidationError
from core.ledger.balance import BalanceMutator
from core.ledger.models import TRANSACTION_COLUMNS, TransactionSnapshot
from core.ledger.ownership import OwnershipGuard
from core.types import TransactionType
from core.utils.ids import new_id
from core.utils.money import require_positive
from core.utils.timezone import to_db_ts, to_utc

if TYPE_CHECKING:
    from adapters.db.sqlite_adapter import SQLiteAdapter

logger = logging.getLogger(__name__)

TRANSACTION_FIELDS = frozenset({
    "type",
    "amount",
    "currency",
    "occurred_at",
    "account_id",
    "category_id",
    "from_account_id",
    "to_account_id",
    "note",
    "tag_ids",
})

# 정렬 허용 컬럼 (amount는 TEXT 저장이므로 숫자로 변환하여 정렬)
SORT_COLUMNS: dict[str, str] = {
    "occurred_at": "occurred_at",
    "created_at": "created_at",
    "amount": "CAST(amount AS REAL)",
}


@dataclass(frozen=True)
class TransactionDraft:
    """검증을 마친 거래 값"""

    type: str
    amount: Decimal
    currency: str
    occurred_at: datetime
    account_id: str | None = None
    category_id: str | None = None
    from_account_id: str | None = None
    to_account_id: str | None = None
    note: str | None = None
    tag_ids: list[str] = field(default_factory=list)


def balance_effects(
    tx_type: str,
    amount: Decimal,
    account_id: str | None = None,
    from_account_id: str | None = None,
    to_account_id: str | None = None,
) -> list[tuple[str, Decimal]]:
    """거래 유형별 잔액 효과 목록

    Returns:
        (account_id, 부호 있는 변동값) 리스트
    """
    if tx_type == TransactionType.INCOME.value:
        return [(account_id, amount)]
    if tx_type == TransactionType.EXPENSE.value:
        return [(account_id, -amount)]
    if tx_type == TransactionType.TRANSFER.value:
        return [(from_account_id, -amount), (to_account_id, amount)]
    raise ValueError(f"Unknown transaction type: {tx_type}")


def parse_datetime(value: Any, field_name: str) -> datetime:
    """datetime 또는 ISO 문자열을 UTC datetime으로 변환"""
    if isinstance(value, datetime):
        return to_utc(value)
    if isinstance(value, str):
        try:
            return to_utc(datetime.fromisoformat(value))
        except ValueError:
            raise ValidationError(f"{field_name} must be an ISO-8601 datetime") from None
    raise ValidationError(f"{field_name} is required")


def _check_fields(data: dict[str, Any], allowed: frozenset[str]) -> None:
    unknown = sorted(set(data) - allowed)
    if unknown:
        raise ValidationError(f"Unknown field(s): {', '.join(unknown)}")


class TransactionOrchestrator:
    """일반 거래 오케스트레이터

    Args:
        db: SQLite 어댑터
    """

    def __init__(self, db: SQLiteAdapter):
        self.db = db
        self.guard = OwnershipGuard(db)
        self.balances = BalanceMutator(db)

    # -------------------------------------------------------------------------
    # 검증
    # -------------------------------------------------------------------------

    async def validate(self, user_id: str, data: dict[str, Any]) -> TransactionDraft:
        """입력값 검증 및 참조 소유권 확인

        Args:
            user_id: 요청 사용자
            data: 거래 필드 (TRANSACTION_FIELDS)

        Returns:
            검증된 TransactionDraft

        Raises:
            ValidationError: 형식 오류, 같은 계좌로의 이체, 카테고리 유형 불일치
            NotFoundError: 참조 엔티티 없음
            ForbiddenError: 다른 사용자의 엔티티
        """
        _check_fields(data, TRANSACTION_FIELDS)

        try:
            tx_type = TransactionType(data.get("type"))
        except ValueError:
            raise ValidationError(f"Invalid transaction type: {data.get('type')}") from None

        if data.get("amount") is None:
            raise ValidationError("amount is required")
        amount = require_positive(data["amount"], "amount")
        occurred_at = parse_datetime(data.get("occurred_at"), "occurredAt")

        account_id = data.get("account_id")
        category_id = data.get("category_id")
        from_account_id = data.get("from_account_id")
        to_account_id = data.get("to_account_id")
        currency = data.get("currency")

        if tx_type == TransactionType.TRANSFER:
            if not from_account_id or not to_account_id:
                raise ValidationError("fromAccountId and toAccountId are required for TRANSFER")
            if from_account_id == to_account_id:
                raise ValidationError("fromAccountId and toAccountId cannot be the same")

            source = await self.guard.require_account(user_id, from_account_id, "Source account")
            await self.guard.require_account(user_id, to_account_id, "Destination account")
            account_id = None
            category_id = None
        else:
            if not account_id:
                raise ValidationError("accountId is required for INCOME/EXPENSE")

            source = await self.guard.require_account(user_id, account_id)
            if category_id:
                category = await self.guard.require_category(user_id, category_id)
                if category["category_type"] != tx_type.value:
                    raise ValidationError("Category type must match transaction type")
            from_account_id = None
            to_account_id = None

        tag_ids = await self.guard.require_tags(user_id, data.get("tag_ids") or [])

        return TransactionDraft(
            type=tx_type.value,
            amount=amount,
            currency=currency or source["currency"] or Defaults.CURRENCY,
            occurred_at=occurred_at,
            account_id=account_id,
            category_id=category_id or None,
            from_account_id=from_account_id,
            to_account_id=to_account_id,
            note=data.get("note"),
            tag_ids=tag_ids,
        )

    # -------------------------------------------------------------------------
    # 조회
    # -------------------------------------------------------------------------

    async def _load_active(self, tx_id: str, user_id: str) -> TransactionSnapshot:
        """삭제되지 않은 거래만 조회 (역산 대상은 항상 이 경로로 읽는다)"""
        row = await self.db.fetchone(
            f"SELECT {TRANSACTION_COLUMNS} FROM transactions WHERE id = ? AND is_deleted = 0",
            (tx_id,),
        )
        if row is None:
            raise NotFoundError("Transaction not found")

        snapshot = TransactionSnapshot.from_row(row)
        if snapshot.user_id != user_id:
            raise ForbiddenError("You don't have access to this transaction")
        return snapshot

    async def _tag_ids(self, tx_id: str) -> list[str]:
        rows = await self.db.fetchall(
            "SELECT tag_id FROM transaction_tags WHERE transaction_id = ? ORDER BY tag_id",
            (tx_id,),
        )
        return [row[0] for row in rows]

    async def get(self, tx_id: str, user_id: str) -> dict[str, Any]:
        """거래 단건 조회 (삭제된 거래는 NotFoundError)"""
        snapshot = await self._load_active(tx_id, user_id)
        return snapshot.to_dict(await self._tag_ids(tx_id))

    async def list(
        self,
        user_id: str,
        tx_type: str | None = None,
        account_id: str | None = None,
        category_id: str | None = None,
        tag_id: str | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
        search: str | None = None,
        sort: str = "occurred_at:desc",
        page: int = 1,
        limit: int = Defaults.PAGE_SIZE,
    ) -> dict[str, Any]:
        """거래 목록 조회 (필터 + 정렬 + 페이지네이션)

        account_id 필터는 account_id/from/to 어느 쪽이든 일치하면 포함.

        Args:
            sort: "필드:방향" (예: "amount:asc")

        Returns:
            {"transactions": [...], "pagination": {...}}
        """
        column, _, direction = sort.partition(":")
        if column not in SORT_COLUMNS:
            raise ValidationError(f"Invalid sort field: {column}")
        direction = (direction or "desc").lower()
        if direction not in ("asc", "desc"):
            raise ValidationError(f"Invalid sort direction: {direction}")
        if page < 1 or limit < 1:
            raise ValidationError("page and limit must be greater than 0")
        limit = min(limit, Defaults.MAX_PAGE_SIZE)

        where = ["user_id = ?", "is_deleted = 0"]
        params: list[Any] = [user_id]

        if tx_type:
            where.append("type = ?")
            params.append(tx_type)
        if account_id:
            where.append("(account_id = ? OR from_account_id = ? OR to_account_id = ?)")
            params.extend([account_id, account_id, account_id])
        if category_id:
            where.append("category_id = ?")
            params.append(category_id)
        if tag_id:
            where.append(
                "id IN (SELECT transaction_id FROM transaction_tags WHERE tag_id = ?)"
            )
            params.append(tag_id)
        if start:
            where.append("occurred_at >= ?")
            params.append(to_db_ts(start))
        if end:
            where.append("occurred_at <= ?")
            params.append(to_db_ts(end))
        if search:
            where.append("note LIKE ?")
            params.append(f"%{search}%")

        where_sql = " AND ".join(where)

        count_row = await self.db.fetchone(
            f"SELECT COUNT(*) FROM transactions WHERE {where_sql}",
            tuple(params),
        )
        total = count_row[0] if count_row else 0

        rows = await self.db.fetchall(
            f"""
            SELECT {TRANSACTION_COLUMNS} FROM transactions
            WHERE {where_sql}
            ORDER BY {SORT_COLUMNS[column]} {direction.upper()}, id
            LIMIT ? OFFSET ?
            """,
            (*params, limit, (page - 1) * limit),
        )

        transactions = []
        for row in rows:
            snapshot = TransactionSnapshot.from_row(row)
            transactions.append(snapshot.to_dict(await self._tag_ids(snapshot.id)))

        return {
            "transactions": transactions,
            "pagination": {
                "page": page,
                "limit": limit,
                "total": total,
                "total_pages": (total + limit - 1) // limit,
            },
        }

    # -------------------------------------------------------------------------
    # 변경
    # -------------------------------------------------------------------------

    async def _apply_effects(self, draft: TransactionDraft | TransactionSnapshot, sign: int) -> None:
        for account_id, delta in balance_effects(
            draft.type,
            draft.amount,
            draft.account_id,
            draft.from_account_id,
            draft.to_account_id,
        ):
            await self.balances.apply_delta(account_id, delta if sign > 0 else -delta)

    async def _replace_tags(self, tx_id: str, tag_ids: list[str]) -> None:
        await self.db.execute(
            "DELETE FROM transaction_tags WHERE transaction_id = ?",
            (tx_id,),
        )
        if tag_ids:
            await self.db.executemany(
                "INSERT INTO transaction_tags (transaction_id, tag_id) VALUES (?, ?)",
                [(tx_id, tag_id) for tag_id in tag_ids],
            )

    async def insert_in_unit(self, user_id: str, draft: TransactionDraft) -> str:
        """이미 열린 트랜잭션 안에서 거래 저장 + 잔액 반영 + 태그 연결

        반복 실행처럼 다른 변경과 함께 커밋되어야 하는 호출자가 사용.

        Returns:
            생성된 거래 ID
        """
        if not self.db.in_transaction:
            raise RuntimeError("insert_in_unit must run inside a transaction")

        tx_id = new_id()
        await self.db.execute(
            """
            INSERT INTO transactions (
                id, user_id, type, amount, currency, occurred_at,
                account_id, category_id, from_account_id, to_account_id, note
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                tx_id,
                user_id,
                draft.type,
                str(draft.amount),
                draft.currency,
                to_db_ts(draft.occurred_at),
                draft.account_id,
                draft.category_id,
                draft.from_account_id,
                draft.to_account_id,
                draft.note,
            ),
        )

        await self._apply_effects(draft, sign=1)
        await self._replace_tags(tx_id, draft.tag_ids)

        return tx_id

    async def create(self, user_id: str, data: dict[str, Any]) -> dict[str, Any]:
        """거래 생성

        Returns:
            생성된 거래 (tag_ids 포함)
        """
        draft = await self.validate(user_id, data)

        async with self.db.transaction():
            tx_id = await self.insert_in_unit(user_id, draft)

        logger.info(
            f"거래 생성: {draft.type} {draft.amount} {draft.currency}",
            extra={"transaction_id": tx_id, "user_id": user_id},
        )
        return await self.get(tx_id, user_id)

    async def update(self, tx_id: str, user_id: str, patch: dict[str, Any]) -> dict[str, Any]:
        """거래 수정

        패치에 있는 키만 덮어쓰고 나머지는 기존 값 유지.
        기존 효과 역산 → 새 효과 적용이 하나의 트랜잭션에서 수행된다.
        tag_ids 키가 있으면 태그를 통째로 교체.

        Raises:
            NotFoundError: 없거나 이미 삭제된 거래
        """
        _check_fields(patch, TRANSACTION_FIELDS)

        async with self.db.transaction():
            old = await self._load_active(tx_id, user_id)

            merged: dict[str, Any] = {
                "type": old.type,
                "amount": old.amount,
                "currency": old.currency,
                "occurred_at": old.occurred_at,
                "account_id": old.account_id,
                "category_id": old.category_id,
                "from_account_id": old.from_account_id,
                "to_account_id": old.to_account_id,
                "note": old.note,
            }
            merged.update({k: v for k, v in patch.items() if k != "tag_ids"})
            merged["tag_ids"] = patch.get("tag_ids") or []

            draft = await self.validate(user_id, merged)

            await self._apply_effects(old, sign=-1)
            await self._apply_effects(draft, sign=1)

            if "tag_ids" in patch:
                await self._replace_tags(tx_id, draft.tag_ids)

            await self.db.execute(
                """
                UPDATE transactions SET
                    type = ?, amount = ?, currency = ?, occurred_at = ?,
                    account_id = ?, category_id = ?,
                    from_account_id = ?, to_account_id = ?,
                    note = ?, updated_at = datetime('now')
                WHERE id = ?
                """,
                (
                    draft.type,
                    str(draft.amount),
                    draft.currency,
                    to_db_ts(draft.occurred_at),
                    draft.account_id,
                    draft.category_id,
                    draft.from_account_id,
                    draft.to_account_id,
                    draft.note,
                    tx_id,
                ),
            )

        logger.info(
            f"거래 수정: {old.type} {old.amount} → {draft.type} {draft.amount}",
            extra={"transaction_id": tx_id, "user_id": user_id},
        )
        return await self.get(tx_id, user_id)

    async def delete(self, tx_id: str, user_id: str) -> None:
        """거래 삭제 (soft delete)

        잔액 효과를 역산한 뒤 is_deleted = 1.
        이미 삭제된 거래는 조회 단계에서 NotFoundError가 되므로 두 번 역산되지 않는다.
        """
        async with self.db.transaction():
            old = await self._load_active(tx_id, user_id)
            await self._apply_effects(old, sign=-1)
            await self.db.execute(
                """
                UPDATE transactions
                SET is_deleted = 1, updated_at = datetime('now')
                WHERE id = ?
                """,
                (tx_id,),
            )

        logger.info(
            f"거래 삭제: {old.type} {old.amount}",
            extra={"transaction_id": tx_id, "user_id": user_id},
        )
