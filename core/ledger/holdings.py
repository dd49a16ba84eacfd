"""
Holding Accumulator

(user, asset) 보유 행의 조회와 저장.
보유 상태는 해당 자산의 BUY/SELL 이력을 core.domain.holding.replay_holdings로
재생하여 만든다 (매도 시점 평균단가 기록 포함).
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Iterable

from core.domain.holding import ABSENT, HoldingState, ReplayResult, replay_holdings
from core.types import HOLDING_TYPES, InvestmentTransactionType
from core.utils.ids import new_id
from core.utils.money import db_decimal
from core.utils.timezone import from_db_ts

if TYPE_CHECKING:
    from adapters.db.sqlite_adapter import SQLiteAdapter

logger = logging.getLogger(__name__)


class HoldingAccumulator:
    """보유 현황 누적기

    Args:
        db: SQLite 어댑터
    """

    def __init__(self, db: SQLiteAdapter):
        self.db = db

    async def save_state(self, user_id: str, asset_id: str, state: HoldingState) -> None:
        """보유 상태 저장

        ABSENT면 행 삭제 (수량 0인 보유는 남기지 않음).
        """
        if not state.is_held:
            await self.db.execute(
                "DELETE FROM holdings WHERE user_id = ? AND asset_id = ?",
                (user_id, asset_id),
            )
            return

        await self.db.execute(
            """
            INSERT INTO holdings (id, user_id, asset_id, units_total, avg_buy_price)
            VALUES (?, ?, ?, ?, ?)
            ON CONFLICT(user_id, asset_id) DO UPDATE SET
                units_total = excluded.units_total,
                avg_buy_price = excluded.avg_buy_price,
                updated_at = datetime('now')
            """,
            (new_id(), user_id, asset_id, str(state.units), str(state.avg_price)),
        )

    async def load_trades(
        self,
        user_id: str,
        asset_ids: Iterable[str] | None = None,
    ) -> list[dict[str, Any]]:
        """BUY/SELL 이력 조회 (재생 순서: occurred_at, 같은 시각이면 입력 순)

        Args:
            user_id: 사용자 ID
            asset_ids: 대상 자산 (None이면 전체)
        """
        types = sorted(HOLDING_TYPES)
        sql = f"""
            SELECT id, asset_id, type, units, price_per_unit, occurred_at
            FROM investment_transactions
            WHERE user_id = ? AND type IN ({", ".join("?" for _ in types)})
        """
        params: list[Any] = [user_id, *types]
        if asset_ids is not None:
            asset_ids = sorted(set(asset_ids))
            sql += f" AND asset_id IN ({', '.join('?' for _ in asset_ids)})"
            params.extend(asset_ids)
        sql += " ORDER BY occurred_at, rowid"

        rows = await self.db.fetchall(sql, tuple(params))
        return [
            {
                "id": row[0],
                "asset_id": row[1],
                "type": row[2],
                "units": db_decimal(row[3]),
                "price_per_unit": db_decimal(row[4]),
                "occurred_at": from_db_ts(row[5]),
            }
            for row in rows
        ]

    async def skipped_sell_ids(self, user_id: str, asset_ids: Iterable[str]) -> set[str]:
        """재생에서 제외된 SELL (cost_basis_per_unit이 NULL인 행)"""
        asset_ids = sorted(set(asset_ids))
        rows = await self.db.fetchall(
            f"""
            SELECT id FROM investment_transactions
            WHERE user_id = ? AND type = ? AND cost_basis_per_unit IS NULL
              AND asset_id IN ({", ".join("?" for _ in asset_ids)})
            """,
            (user_id, InvestmentTransactionType.SELL.value, *asset_ids),
        )
        return {row[0] for row in rows}

    async def write_sell_cost_basis(
        self,
        trades: Iterable[dict[str, Any]],
        result: ReplayResult,
    ) -> None:
        """재생 결과의 매도 시점 평균단가를 SELL 행에 기록 (건너뛴 매도는 NULL)"""
        for trade in trades:
            if trade["type"] != InvestmentTransactionType.SELL.value:
                continue
            cost_basis = result.sell_cost_basis.get(trade["id"])
            await self.db.execute(
                "UPDATE investment_transactions SET cost_basis_per_unit = ? WHERE id = ?",
                (str(cost_basis) if cost_basis is not None else None, trade["id"]),
            )

    async def resync(self, user_id: str, asset_ids: Iterable[str]) -> ReplayResult:
        """자산별 보유 현황을 이력 재생으로 다시 계산하여 저장

        과거 시점 거래가 추가/수정/삭제되어도 전체 재계산과 같은 결과가 된다.
        호출자의 트랜잭션 안에서 실행해야 한다.

        Args:
            user_id: 사용자 ID
            asset_ids: 다시 계산할 자산

        Returns:
            해당 자산들의 ReplayResult
        """
        asset_ids = sorted(set(asset_ids))
        if not asset_ids:
            return replay_holdings([])

        trades = await self.load_trades(user_id, asset_ids)
        result = replay_holdings(trades)

        for asset_id in asset_ids:
            await self.save_state(user_id, asset_id, result.holdings.get(asset_id, ABSENT))
        await self.write_sell_cost_basis(trades, result)

        logger.debug(
            f"보유 재생: 자산 {len(asset_ids)}개, 거래 {result.processed}건",
            extra={"user_id": user_id, "asset_ids": asset_ids},
        )
        return result

    async def replace_all(self, user_id: str, holdings: dict[str, HoldingState]) -> int:
        """사용자의 보유 현황 전체 교체

        Returns:
            생성된 보유 행 수
        """
        await self.db.execute("DELETE FROM holdings WHERE user_id = ?", (user_id,))

        rows = [
            (new_id(), user_id, asset_id, str(state.units), str(state.avg_price))
            for asset_id, state in holdings.items()
            if state.is_held
        ]
        if rows:
            await self.db.executemany(
                """
                INSERT INTO holdings (id, user_id, asset_id, units_total, avg_buy_price)
                VALUES (?, ?, ?, ?, ?)
                """,
                rows,
            )
        return len(rows)

    async def list_holdings(
        self,
        user_id: str,
        asset_type: str | None = None,
        asset_id: str | None = None,
    ) -> list[dict[str, Any]]:
        """보유 현황 목록 (자산 정보 포함)"""
        sql = """
            SELECT
                h.id, h.asset_id, h.units_total, h.avg_buy_price, h.updated_at,
                a.symbol, a.name, a.asset_type, a.currency
            FROM holdings h
            JOIN investment_assets a ON a.id = h.asset_id
            WHERE h.user_id = ?
        """
        params: list[Any] = [user_id]
        if asset_type:
            sql += " AND a.asset_type = ?"
            params.append(asset_type)
        if asset_id:
            sql += " AND h.asset_id = ?"
            params.append(asset_id)
        sql += " ORDER BY h.updated_at DESC, a.symbol"

        rows = await self.db.fetchall(sql, tuple(params))

        return [
            {
                "id": row[0],
                "asset_id": row[1],
                "units_total": row[2],
                "avg_buy_price": row[3],
                "cost_basis": str(Decimal(row[2]) * Decimal(row[3])),
                "updated_at": row[4],
                "symbol": row[5],
                "name": row[6],
                "asset_type": row[7],
                "currency": row[8],
            }
            for row in rows
        ]
