"""HoldingsRebuilder / BalanceReconciler 통합 테스트

거래 변경 시 유지된 보유/잔액이 이력 재계산 결과와 일치하는지 확인
"""

from decimal import Decimal

import pytest

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.ledger.holdings import HoldingAccumulator
from core.ledger.investments import InvestmentTransactionOrchestrator
from core.ledger.rebuild import HoldingsRebuilder
from core.ledger.reconcile import BalanceReconciler
from core.ledger.transactions import TransactionOrchestrator

USER_ID = "user-1"


async def _holdings_snapshot(db: SQLiteAdapter) -> dict[str, tuple[Decimal, Decimal]]:
    rows = await HoldingAccumulator(db).list_holdings(USER_ID)
    return {
        row["asset_id"]: (Decimal(row["units_total"]), Decimal(row["avg_buy_price"]))
        for row in rows
    }


class TestRebuildHoldings:
    """보유 재계산 테스트"""

    @pytest.mark.asyncio
    async def test_matches_incremental_state(self, db, seed) -> None:
        """생성, 과거 매수 단가 수정, 매도 수정, 매수 삭제 후 재계산 결과 == 증분 결과"""
        orchestrator = InvestmentTransactionOrchestrator(db)
        stock = await seed.asset("005930")
        etf = await seed.asset("069500", asset_type="ETF")

        first = await orchestrator.create(USER_ID, {
            "asset_id": stock, "type": "BUY", "units": "10", "price_per_unit": "9000",
            "occurred_at": "2026-03-01T00:00:00+00:00",
        })
        await orchestrator.create(USER_ID, {
            "asset_id": stock, "type": "BUY", "units": "10", "price_per_unit": "11000",
            "occurred_at": "2026-03-02T00:00:00+00:00",
        })
        sell = await orchestrator.create(USER_ID, {
            "asset_id": stock, "type": "SELL", "units": "5", "price_per_unit": "12000",
            "occurred_at": "2026-03-03T00:00:00+00:00",
        })
        await orchestrator.create(USER_ID, {
            "asset_id": etf, "type": "BUY", "units": "4", "price_per_unit": "30000",
            "occurred_at": "2026-03-04T00:00:00+00:00",
        })
        latest = await orchestrator.create(USER_ID, {
            "asset_id": etf, "type": "BUY", "units": "2", "price_per_unit": "36000",
            "occurred_at": "2026-03-05T00:00:00+00:00",
        })
        await orchestrator.update(first["id"], USER_ID, {"price_per_unit": "8000"})
        await orchestrator.update(sell["id"], USER_ID, {"units": "8"})
        await orchestrator.delete(latest["id"], USER_ID)

        incremental = await _holdings_snapshot(db)
        result = await HoldingsRebuilder(db).rebuild_holdings(USER_ID)
        rebuilt = await _holdings_snapshot(db)

        assert result == {"holdings_created": 2, "transactions_processed": 4}
        assert rebuilt == incremental
        assert rebuilt[stock] == (Decimal("12"), Decimal("9500"))
        assert rebuilt[etf] == (Decimal("4"), Decimal("30000"))

    @pytest.mark.asyncio
    async def test_rebuild_from_corrupted_state(self, db, seed) -> None:
        """보유 행이 손상돼도 이력으로 복구"""
        orchestrator = InvestmentTransactionOrchestrator(db)
        asset = await seed.asset()
        await orchestrator.create(USER_ID, {
            "asset_id": asset, "type": "BUY", "units": "3", "price_per_unit": "100",
            "occurred_at": "2026-03-01T00:00:00+00:00",
        })
        await db.execute(
            "UPDATE holdings SET units_total = '999' WHERE asset_id = ?",
            (asset,),
        )

        await HoldingsRebuilder(db).rebuild_holdings(USER_ID)

        assert await seed.holding(asset) == {"units": Decimal("3"), "avg_price": Decimal("100")}

    @pytest.mark.asyncio
    async def test_skipped_sell_clears_cost_basis(self, db, seed) -> None:
        """재계산 시 초과 매도는 건너뛰고 cost_basis_per_unit = NULL"""
        orchestrator = InvestmentTransactionOrchestrator(db)
        asset = await seed.asset()
        await orchestrator.create(USER_ID, {
            "asset_id": asset, "type": "BUY", "units": "2", "price_per_unit": "100",
            "occurred_at": "2026-03-02T00:00:00+00:00",
        })
        sell = await orchestrator.create(USER_ID, {
            "asset_id": asset, "type": "SELL", "units": "2", "price_per_unit": "150",
            "occurred_at": "2026-03-03T00:00:00+00:00",
        })
        # 매도를 매수보다 앞선 시각으로 옮긴 이력 (직접 수정)
        await db.execute(
            "UPDATE investment_transactions SET occurred_at = ? WHERE id = ?",
            ("2026-03-01T00:00:00+00:00", sell["id"]),
        )

        await HoldingsRebuilder(db).rebuild_holdings(USER_ID)

        assert await seed.holding(asset) == {"units": Decimal("2"), "avg_price": Decimal("100")}
        assert (await orchestrator.get(sell["id"], USER_ID))["cost_basis_per_unit"] is None

    @pytest.mark.asyncio
    async def test_empty_history(self, db, seed) -> None:
        """이력이 없으면 보유 없음"""
        result = await HoldingsRebuilder(db).rebuild_holdings(USER_ID)

        assert result == {"holdings_created": 0, "transactions_processed": 0}


class TestReconcileBalances:
    """잔액 정합성 점검 테스트"""

    @pytest.mark.asyncio
    async def test_consistent_after_mixed_activity(self, db, seed) -> None:
        """일반/투자 거래 생성·수정·삭제 후 불일치 없음"""
        transactions = TransactionOrchestrator(db)
        investments = InvestmentTransactionOrchestrator(db)
        bank = await seed.account("은행", balance="1000000")
        broker = await seed.account("증권", balance="0", account_type="INVESTMENT")
        asset = await seed.asset()

        transfer = await transactions.create(USER_ID, {
            "type": "TRANSFER", "amount": "500000",
            "occurred_at": "2026-03-01T00:00:00+00:00",
            "from_account_id": bank, "to_account_id": broker,
        })
        expense = await transactions.create(USER_ID, {
            "type": "EXPENSE", "amount": "12000",
            "occurred_at": "2026-03-01T00:00:00+00:00",
            "account_id": bank,
        })
        await investments.create(USER_ID, {
            "asset_id": asset, "type": "BUY", "units": "10", "price_per_unit": "9000",
            "fee_amount": "500", "cash_account_id": broker,
            "occurred_at": "2026-03-02T00:00:00+00:00",
        })
        await transactions.update(transfer["id"], USER_ID, {"amount": "400000"})
        await transactions.delete(expense["id"], USER_ID)

        drifts = await BalanceReconciler(db).reconcile_balances(USER_ID)

        assert drifts == []
        assert await seed.balance(bank) == Decimal("600000")
        assert await seed.balance(broker) == Decimal("310500")

    @pytest.mark.asyncio
    async def test_detects_drift(self, db, seed) -> None:
        """직접 변경된 잔액 감지 (수정하지 않음)"""
        account = await seed.account("현금", balance="1000")
        await db.execute(
            "UPDATE accounts SET current_balance = '1500' WHERE id = ?",
            (account,),
        )

        drifts = await BalanceReconciler(db).reconcile_balances(USER_ID)

        assert len(drifts) == 1
        assert drifts[0].to_dict() == {
            "account_id": account,
            "name": "현금",
            "expected": "1000",
            "actual": "1500",
            "difference": "500",
        }
        assert await seed.balance(account) == Decimal("1500")
