"""
Holdings Rebuilder

BUY/SELL 이력 전체를 재생하여 보유 현황을 다시 만든다.
거래 변경 시 자산 단위로 하는 재생(HoldingAccumulator.resync)의 사용자 전체 버전.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from core.domain.holding import replay_holdings
from core.ledger.holdings import HoldingAccumulator

if TYPE_CHECKING:
    from adapters.db.sqlite_adapter import SQLiteAdapter

logger = logging.getLogger(__name__)


class HoldingsRebuilder:
    """보유 현황 재계산기

    Args:
        db: SQLite 어댑터
    """

    def __init__(self, db: SQLiteAdapter):
        self.db = db
        self.holdings = HoldingAccumulator(db)

    async def rebuild_holdings(self, user_id: str) -> dict[str, int]:
        """사용자 보유 현황 전체 재계산

        보유 수량을 음수로 만드는 SELL은 건너뛰고, 그 행의 cost_basis_per_unit은 NULL.

        Returns:
            {"holdings_created": n, "transactions_processed": m}
        """
        async with self.db.transaction():
            trades = await self.holdings.load_trades(user_id)
            result = replay_holdings(trades)

            created = await self.holdings.replace_all(user_id, result.holdings)
            await self.holdings.write_sell_cost_basis(trades, result)

        if result.skipped_ids:
            logger.warning(
                f"보유 재계산 중 건너뛴 매도: {len(result.skipped_ids)}건",
                extra={"user_id": user_id, "skipped_ids": result.skipped_ids},
            )

        logger.info(
            f"보유 재계산 완료: 보유 {created}건, 거래 {result.processed}건 처리",
            extra={"user_id": user_id},
        )

        return {
            "holdings_created": created,
            "transactions_processed": result.processed,
        }
