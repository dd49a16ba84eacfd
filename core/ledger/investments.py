"""
Investment Transaction Orchestrator

투자 거래의 생성/수정/삭제.
하나의 트랜잭션 안에서 거래 행, 보유 현황(BUY/SELL), 현금 계좌 잔액을 함께 변경한다.

현금 효과는 "역산 → 재적용" 순서:
1. 기존 행 스냅샷으로 현금 효과를 역산
2. 새 값으로 현금 효과 적용

보유 효과는 거래 행을 쓴 뒤 해당 자산의 BUY/SELL 이력을 occurred_at 순으로
재생하여 다시 만든다 (HoldingAccumulator.resync). 과거 시점 거래를 넣거나 고쳐도
전체 재계산(HoldingsRebuilder)과 같은 보유 현황이 된다.
중간에 실패하면 전체 롤백되어 변경 전 상태가 유지된다.
"""

from __future__ import annotations

import logging
from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Any

from core.constants import Defaults
from core.domain.investment import InvestmentAmounts, build_amounts, cash_delta
from core.errors import (
    ForbiddenError,
    InsufficientHoldingError,
    NotFoundError,
    ValidationError,
)
from core.ledger.balance import BalanceMutator
from core.ledger.holdings import HoldingAccumulator
from core.ledger.models import (
    INVESTMENT_TRANSACTION_COLUMNS,
    InvestmentTransactionSnapshot,
)
from core.ledger.ownership import OwnershipGuard
from core.ledger.transactions import parse_datetime
from core.types import HOLDING_TYPES, InvestmentTransactionType
from core.utils.ids import new_id
from core.utils.money import require_non_negative, to_optional_decimal
from core.utils.timezone import to_db_ts

if TYPE_CHECKING:
    from adapters.db.sqlite_adapter import SQLiteAdapter

logger = logging.getLogger(__name__)

INVESTMENT_FIELDS = frozenset({
    "asset_id",
    "type",
    "units",
    "price_per_unit",
    "gross_amount",
    "fee_amount",
    "tax_amount",
    "net_amount",
    "occurred_at",
    "note",
    "cash_account_id",
})

# 변경되면 net_amount를 다시 계산해야 하는 필드
PRICING_FIELDS = frozenset({
    "type",
    "units",
    "price_per_unit",
    "gross_amount",
    "fee_amount",
    "tax_amount",
})


def _parse_type(value: Any) -> str:
    try:
        return InvestmentTransactionType(value).value
    except ValueError:
        raise ValidationError(f"Invalid investment transaction type: {value}") from None


def _amounts_from(tx_type: str, values: dict[str, Any]) -> InvestmentAmounts:
    """입력 dict에서 Decimal 변환 후 금액 필드 생성"""
    fee = values.get("fee_amount")
    tax = values.get("tax_amount")
    return build_amounts(
        tx_type,
        units=to_optional_decimal(values.get("units"), "units"),
        price_per_unit=to_optional_decimal(values.get("price_per_unit"), "pricePerUnit"),
        gross_amount=to_optional_decimal(values.get("gross_amount"), "grossAmount"),
        fee_amount=require_non_negative(fee, "feeAmount") if fee is not None else None,
        tax_amount=require_non_negative(tax, "taxAmount") if tax is not None else None,
        net_amount=to_optional_decimal(values.get("net_amount"), "netAmount"),
    )


class InvestmentTransactionOrchestrator:
    """투자 거래 오케스트레이터

    Args:
        db: SQLite 어댑터
    """

    def __init__(self, db: SQLiteAdapter):
        self.db = db
        self.guard = OwnershipGuard(db)
        self.balances = BalanceMutator(db)
        self.holdings = HoldingAccumulator(db)

    # -------------------------------------------------------------------------
    # 조회
    # -------------------------------------------------------------------------

    async def _load(self, tx_id: str, user_id: str) -> InvestmentTransactionSnapshot:
        row = await self.db.fetchone(
            f"SELECT {INVESTMENT_TRANSACTION_COLUMNS} FROM investment_transactions WHERE id = ?",
            (tx_id,),
        )
        if row is None:
            raise NotFoundError("Investment transaction not found")

        snapshot = InvestmentTransactionSnapshot.from_row(row)
        if snapshot.user_id != user_id:
            raise ForbiddenError("You don't have access to this investment transaction")
        return snapshot

    async def get(self, tx_id: str, user_id: str) -> dict[str, Any]:
        """투자 거래 단건 조회"""
        snapshot = await self._load(tx_id, user_id)
        return snapshot.to_dict()

    async def list(
        self,
        user_id: str,
        asset_id: str | None = None,
        tx_type: str | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
        page: int = 1,
        limit: int = Defaults.PAGE_SIZE,
    ) -> dict[str, Any]:
        """투자 거래 목록 (occurred_at 내림차순)

        Returns:
            {"transactions": [...], "pagination": {...}}
        """
        if page < 1 or limit < 1:
            raise ValidationError("page and limit must be greater than 0")
        limit = min(limit, Defaults.MAX_PAGE_SIZE)

        where = ["user_id = ?"]
        params: list[Any] = [user_id]

        if asset_id:
            where.append("asset_id = ?")
            params.append(asset_id)
        if tx_type:
            where.append("type = ?")
            params.append(tx_type)
        if start:
            where.append("occurred_at >= ?")
            params.append(to_db_ts(start))
        if end:
            where.append("occurred_at <= ?")
            params.append(to_db_ts(end))

        where_sql = " AND ".join(where)

        count_row = await self.db.fetchone(
            f"SELECT COUNT(*) FROM investment_transactions WHERE {where_sql}",
            tuple(params),
        )
        total = count_row[0] if count_row else 0

        rows = await self.db.fetchall(
            f"""
            SELECT {INVESTMENT_TRANSACTION_COLUMNS} FROM investment_transactions
            WHERE {where_sql}
            ORDER BY occurred_at DESC, created_at DESC, id
            LIMIT ? OFFSET ?
            """,
            (*params, limit, (page - 1) * limit),
        )

        return {
            "transactions": [
                InvestmentTransactionSnapshot.from_row(row).to_dict() for row in rows
            ],
            "pagination": {
                "page": page,
                "limit": limit,
                "total": total,
                "total_pages": (total + limit - 1) // limit,
            },
        }

    # -------------------------------------------------------------------------
    # 효과 적용 / 역산
    # -------------------------------------------------------------------------

    async def _sync_holdings(
        self,
        user_id: str,
        asset_ids: set[str],
        previously_skipped: set[str],
        written_id: str | None = None,
        strict: bool = True,
    ) -> None:
        """변경된 거래 행 기준으로 자산 보유 현황 재생

        재생 결과 보유 수량을 넘는 SELL이 새로 생기면(변경 전부터 건너뛰던 매도 제외)
        strict일 때 InsufficientHoldingError로 전체 롤백.

        Args:
            user_id: 사용자 ID
            asset_ids: 재생할 자산 (변경 전/후 자산)
            previously_skipped: 변경 전 cost_basis_per_unit이 NULL이던 SELL id
            written_id: 이번에 쓴 거래 id (이전 상태와 무관하게 검사)
            strict: False면 경고만 남김 (삭제)
        """
        result = await self.holdings.resync(user_id, asset_ids)

        newly_skipped = [
            tx_id
            for tx_id in result.skipped_ids
            if tx_id == written_id or tx_id not in previously_skipped
        ]
        if not newly_skipped:
            return

        if strict:
            raise InsufficientHoldingError(result.skip_reasons[newly_skipped[0]])

        logger.warning(
            f"보유 수량 부족으로 재생에서 제외된 매도: {len(newly_skipped)}건",
            extra={"user_id": user_id, "skipped_ids": newly_skipped},
        )

    async def _reverse_cash(self, old: InvestmentTransactionSnapshot) -> None:
        """기존 행의 현금 효과 역산"""
        if old.cash_account_id:
            await self.balances.apply_delta(
                old.cash_account_id,
                -cash_delta(old.type, old.net_amount),
            )

    # -------------------------------------------------------------------------
    # 변경
    # -------------------------------------------------------------------------

    async def create(self, user_id: str, data: dict[str, Any]) -> dict[str, Any]:
        """투자 거래 생성

        Args:
            user_id: 요청 사용자
            data: INVESTMENT_FIELDS 키를 가진 dict

        Returns:
            생성된 투자 거래

        Raises:
            ValidationError: 금액 계산 불가, 필수값 누락
            InsufficientHoldingError: 보유 수량 초과 매도
            NotFoundError / ForbiddenError: 자산 또는 현금 계좌 참조 오류
        """
        unknown = sorted(set(data) - INVESTMENT_FIELDS)
        if unknown:
            raise ValidationError(f"Unknown field(s): {', '.join(unknown)}")

        tx_type = _parse_type(data.get("type"))
        asset_id = data.get("asset_id")
        if not asset_id:
            raise ValidationError("assetId is required")

        await self.guard.require_asset(user_id, asset_id)
        cash_account_id = data.get("cash_account_id")
        if cash_account_id:
            await self.guard.require_account(user_id, cash_account_id, "Cash account")

        amounts = _amounts_from(tx_type, data)
        occurred_at = parse_datetime(data.get("occurred_at"), "occurredAt")
        tx_id = new_id()

        async with self.db.transaction():
            moves_holding = tx_type in HOLDING_TYPES
            previously_skipped: set[str] = set()
            if moves_holding:
                previously_skipped = await self.holdings.skipped_sell_ids(user_id, {asset_id})

            await self.db.execute(
                """
                INSERT INTO investment_transactions (
                    id, user_id, asset_id, type,
                    units, price_per_unit, gross_amount, fee_amount, tax_amount, net_amount,
                    cost_basis_per_unit, occurred_at, note, cash_account_id
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    tx_id,
                    user_id,
                    asset_id,
                    tx_type,
                    *self._amount_params(amounts),
                    None,
                    to_db_ts(occurred_at),
                    data.get("note"),
                    cash_account_id or None,
                ),
            )

            if moves_holding:
                await self._sync_holdings(
                    user_id, {asset_id}, previously_skipped, written_id=tx_id
                )

            if cash_account_id:
                await self.balances.apply_delta(
                    cash_account_id,
                    cash_delta(tx_type, amounts.net_amount),
                )

        logger.info(
            f"투자 거래 생성: {tx_type} net={amounts.net_amount}",
            extra={"transaction_id": tx_id, "asset_id": asset_id, "user_id": user_id},
        )
        return await self.get(tx_id, user_id)

    @staticmethod
    def _amount_params(amounts: InvestmentAmounts) -> tuple[str | None, ...]:
        def text(value: Decimal | None) -> str | None:
            return str(value) if value is not None else None

        return (
            text(amounts.units),
            text(amounts.price_per_unit),
            text(amounts.gross_amount),
            str(amounts.fee_amount),
            str(amounts.tax_amount),
            str(amounts.net_amount),
        )

    def _merge_amounts(
        self,
        old: InvestmentTransactionSnapshot,
        new_type: str,
        patch: dict[str, Any],
    ) -> InvestmentAmounts:
        """패치와 기존 값을 합쳐 새 금액 필드 계산

        - 패치에 있는 키는 패치 값을 사용
        - units/price가 바뀌고 gross가 주어지지 않으면 gross 재계산
        - 가격 관련 필드나 유형이 바뀌지 않았으면 기존 net 유지
        """
        values: dict[str, Any] = {
            "units": patch["units"] if "units" in patch else old.units,
            "price_per_unit": (
                patch["price_per_unit"] if "price_per_unit" in patch else old.price_per_unit
            ),
            "fee_amount": patch["fee_amount"] if "fee_amount" in patch else old.fee_amount,
            "tax_amount": patch["tax_amount"] if "tax_amount" in patch else old.tax_amount,
        }

        if "gross_amount" in patch:
            values["gross_amount"] = patch["gross_amount"]
        elif "units" in patch or "price_per_unit" in patch:
            values["gross_amount"] = None
        else:
            values["gross_amount"] = old.gross_amount

        if patch.get("net_amount") is not None:
            values["net_amount"] = patch["net_amount"]
        elif new_type in HOLDING_TYPES and PRICING_FIELDS & set(patch):
            values["net_amount"] = None
        else:
            values["net_amount"] = old.net_amount

        return _amounts_from(new_type, values)

    async def update(self, tx_id: str, user_id: str, patch: dict[str, Any]) -> dict[str, Any]:
        """투자 거래 수정

        빈 패치는 보유/잔액을 바꾸지 않는다 (현금은 역산 후 같은 값으로 재적용).
        메모만 바뀌는 등 보유에 영향 없는 수정은 보유 현황을 다시 계산하지 않는다.

        Raises:
            NotFoundError / ForbiddenError: 거래, 자산, 현금 계좌 참조 오류
            InsufficientHoldingError: 수정 후 이력에서 보유 수량을 넘는 매도가 생김
        """
        unknown = sorted(set(patch) - INVESTMENT_FIELDS)
        if unknown:
            raise ValidationError(f"Unknown field(s): {', '.join(unknown)}")

        async with self.db.transaction():
            old = await self._load(tx_id, user_id)

            new_type = _parse_type(patch["type"]) if "type" in patch else old.type

            asset_id = old.asset_id
            if "asset_id" in patch and patch["asset_id"] != old.asset_id:
                if not patch["asset_id"]:
                    raise ValidationError("assetId is required")
                await self.guard.require_asset(user_id, patch["asset_id"])
                asset_id = patch["asset_id"]

            cash_account_id = old.cash_account_id
            if "cash_account_id" in patch:
                cash_account_id = patch["cash_account_id"] or None
                if cash_account_id and cash_account_id != old.cash_account_id:
                    await self.guard.require_account(user_id, cash_account_id, "Cash account")

            occurred_at = (
                parse_datetime(patch["occurred_at"], "occurredAt")
                if "occurred_at" in patch
                else old.occurred_at
            )
            note = patch["note"] if "note" in patch else old.note

            amounts = self._merge_amounts(old, new_type, patch)

            # 자산/유형/수량/단가/시점이 같으면 보유 현황과 매도 원가는 그대로
            holding_changed = (
                bool(HOLDING_TYPES & {old.type, new_type})
                and (old.asset_id, old.type, old.units, old.price_per_unit, old.occurred_at)
                != (asset_id, new_type, amounts.units, amounts.price_per_unit, occurred_at)
            )
            previously_skipped: set[str] = set()
            if holding_changed:
                previously_skipped = await self.holdings.skipped_sell_ids(
                    user_id, {old.asset_id, asset_id}
                )

            await self._reverse_cash(old)
            if cash_account_id:
                await self.balances.apply_delta(
                    cash_account_id,
                    cash_delta(new_type, amounts.net_amount),
                )

            await self.db.execute(
                """
                UPDATE investment_transactions SET
                    asset_id = ?, type = ?,
                    units = ?, price_per_unit = ?, gross_amount = ?,
                    fee_amount = ?, tax_amount = ?, net_amount = ?,
                    cost_basis_per_unit = ?, occurred_at = ?, note = ?, cash_account_id = ?,
                    updated_at = datetime('now')
                WHERE id = ?
                """,
                (
                    asset_id,
                    new_type,
                    *self._amount_params(amounts),
                    (
                        str(old.cost_basis_per_unit)
                        if not holding_changed and old.cost_basis_per_unit is not None
                        else None
                    ),
                    to_db_ts(occurred_at),
                    note,
                    cash_account_id,
                    tx_id,
                ),
            )

            if holding_changed:
                await self._sync_holdings(
                    user_id, {old.asset_id, asset_id}, previously_skipped, written_id=tx_id
                )

        logger.info(
            f"투자 거래 수정: {old.type} → {new_type} net={amounts.net_amount}",
            extra={"transaction_id": tx_id, "asset_id": asset_id, "user_id": user_id},
        )
        return await self.get(tx_id, user_id)

    async def delete(self, tx_id: str, user_id: str) -> None:
        """투자 거래 삭제 (hard delete)

        현금 효과를 역산하고 행을 삭제한 뒤 자산 보유 현황을 재생.
        남은 이력에서 보유 수량이 모자라게 된 SELL은 재계산과 같이 건너뛴다.
        """
        async with self.db.transaction():
            old = await self._load(tx_id, user_id)
            moves_holding = old.type in HOLDING_TYPES
            previously_skipped: set[str] = set()
            if moves_holding:
                previously_skipped = await self.holdings.skipped_sell_ids(
                    user_id, {old.asset_id}
                )

            await self._reverse_cash(old)
            await self.db.execute(
                "DELETE FROM investment_transactions WHERE id = ?",
                (tx_id,),
            )

            if moves_holding:
                await self._sync_holdings(
                    user_id, {old.asset_id}, previously_skipped, strict=False
                )

        logger.info(
            f"투자 거래 삭제: {old.type} net={old.net_amount}",
            extra={"transaction_id": tx_id, "asset_id": old.asset_id, "user_id": user_id},
        )
