"""
포트폴리오 서비스

보유 현황 요약/목록/단건 조회 및 재계산
"""

import logging
from decimal import Decimal
from typing import Any

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.errors import NotFoundError
from core.ledger.holdings import HoldingAccumulator
from core.ledger.investments import InvestmentTransactionOrchestrator
from core.ledger.ownership import OwnershipGuard
from core.ledger.rebuild import HoldingsRebuilder
from core.types import InvestmentTransactionType
from core.utils.money import ZERO

logger = logging.getLogger(__name__)

# 단건 조회 시 함께 반환하는 최근 투자 거래 수
RECENT_TRANSACTIONS_LIMIT = 50


class PortfolioService:
    """포트폴리오 서비스

    시세 연동이 없으므로 평가금액 대신 원가(units × avg_buy_price)를 사용.

    Args:
        db: SQLite 어댑터
    """

    def __init__(self, db: SQLiteAdapter):
        self.db = db
        self.holdings = HoldingAccumulator(db)

    async def get_summary(self, user_id: str) -> dict[str, Any]:
        """포트폴리오 요약

        realized_pl은 Σ(net_amount - units × price_per_unit) (SELL 기준 단순 계산).

        Returns:
            total_cost_basis, realized_pl, allocation, holdings_count
        """
        holdings = await self.holdings.list_holdings(user_id)

        total_cost_basis = ZERO
        allocation: dict[str, Decimal] = {}
        for holding in holdings:
            cost_basis = Decimal(holding["cost_basis"])
            total_cost_basis += cost_basis
            asset_type = holding["asset_type"]
            allocation[asset_type] = allocation.get(asset_type, ZERO) + cost_basis

        rows = await self.db.fetchall(
            """
            SELECT units, price_per_unit, net_amount
            FROM investment_transactions
            WHERE user_id = ? AND type = ?
            """,
            (user_id, InvestmentTransactionType.SELL.value),
        )

        realized_pl = ZERO
        for units, price, net_amount in rows:
            if units and price:
                realized_pl += Decimal(net_amount) - Decimal(units) * Decimal(price)

        return {
            "total_cost_basis": str(total_cost_basis),
            "realized_pl": str(realized_pl),
            "holdings_count": len(holdings),
            "allocation": [
                {
                    "asset_type": asset_type,
                    "value": str(value),
                    "ratio": (
                        str((value / total_cost_basis).quantize(Decimal("0.0001")))
                        if total_cost_basis
                        else "0"
                    ),
                }
                for asset_type, value in sorted(allocation.items())
            ],
        }

    async def list_holdings(
        self,
        user_id: str,
        asset_type: str | None = None,
    ) -> list[dict[str, Any]]:
        return await self.holdings.list_holdings(user_id, asset_type=asset_type)

    async def get_holding(self, asset_id: str, user_id: str) -> dict[str, Any]:
        """자산별 보유 현황 + 최근 투자 거래

        Raises:
            NotFoundError: 자산이 없거나 보유하지 않은 경우
            ForbiddenError: 다른 사용자의 자산
        """
        await OwnershipGuard(self.db).require_asset(user_id, asset_id)

        holdings = await self.holdings.list_holdings(user_id, asset_id=asset_id)
        if not holdings:
            raise NotFoundError("Holding not found for this asset")

        history = await InvestmentTransactionOrchestrator(self.db).list(
            user_id,
            asset_id=asset_id,
            limit=RECENT_TRANSACTIONS_LIMIT,
        )

        return {
            **holdings[0],
            "transactions": history["transactions"],
        }

    async def rebuild(self, user_id: str) -> dict[str, int]:
        """거래 이력으로 보유 현황 재계산"""
        return await HoldingsRebuilder(self.db).rebuild_holdings(user_id)
