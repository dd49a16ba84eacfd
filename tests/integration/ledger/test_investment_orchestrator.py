"""InvestmentTransactionOrchestrator 통합 테스트

보유 가중평균, 매도 수량 검증, 현금 계좌 연동, 과거 시점 거래 재생
"""

from decimal import Decimal

import pytest

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.errors import ForbiddenError, InsufficientHoldingError, NotFoundError, ValidationError
from core.ledger.investments import InvestmentTransactionOrchestrator
from core.ledger.rebuild import HoldingsRebuilder
from core.ledger.reconcile import BalanceReconciler

USER_ID = "user-1"
OTHER_USER_ID = "user-2"

DAY_1 = "2026-03-01T01:00:00+00:00"
DAY_2 = "2026-03-02T01:00:00+00:00"
DAY_3 = "2026-03-03T01:00:00+00:00"
DAY_4 = "2026-03-04T01:00:00+00:00"


@pytest.fixture
def orchestrator(db: SQLiteAdapter) -> InvestmentTransactionOrchestrator:
    """InvestmentTransactionOrchestrator 인스턴스"""
    return InvestmentTransactionOrchestrator(db)


def _trade(asset_id: str, tx_type: str, units: str, price: str, **extra) -> dict:
    data = {
        "asset_id": asset_id,
        "type": tx_type,
        "units": units,
        "price_per_unit": price,
        "occurred_at": extra.pop("occurred_at", "2026-03-02T01:00:00+00:00"),
    }
    data.update(extra)
    return data


async def _raw_holding(db: SQLiteAdapter, asset_id: str) -> tuple[str, str] | None:
    """저장된 보유 행 원문 (units_total, avg_buy_price)"""
    row = await db.fetchone(
        "SELECT units_total, avg_buy_price FROM holdings WHERE user_id = ? AND asset_id = ?",
        (USER_ID, asset_id),
    )
    return (row[0], row[1]) if row else None


class TestCreate:
    """투자 거래 생성 테스트"""

    @pytest.mark.asyncio
    async def test_weighted_average(self, orchestrator, seed) -> None:
        """10@9000 + 10@11000 → 20@10000"""
        asset = await seed.asset()

        await orchestrator.create(USER_ID, _trade(asset, "BUY", "10", "9000"))
        await orchestrator.create(USER_ID, _trade(asset, "BUY", "10", "11000"))

        assert await seed.holding(asset) == {"units": Decimal("20"), "avg_price": Decimal("10000")}

    @pytest.mark.asyncio
    async def test_sell_keeps_average_and_records_cost_basis(self, orchestrator, seed) -> None:
        """매도 후 평균단가 유지, cost_basis_per_unit 기록"""
        asset = await seed.asset()
        await orchestrator.create(USER_ID, _trade(asset, "BUY", "10", "9000"))
        await orchestrator.create(USER_ID, _trade(asset, "BUY", "10", "11000"))

        sell = await orchestrator.create(USER_ID, _trade(asset, "SELL", "5", "12000"))

        assert sell["cost_basis_per_unit"] == "10000"
        assert await seed.holding(asset) == {"units": Decimal("15"), "avg_price": Decimal("10000")}

    @pytest.mark.asyncio
    async def test_oversell_rejected(self, orchestrator, seed) -> None:
        """10@9050 보유 중 15 매도 → 거부, 보유/현금/행 불변"""
        asset = await seed.asset()
        cash = await seed.account("증권 계좌", balance="1000000", account_type="INVESTMENT")
        await orchestrator.create(USER_ID, _trade(asset, "BUY", "10", "9050", cash_account_id=cash))

        with pytest.raises(InsufficientHoldingError) as exc_info:
            await orchestrator.create(
                USER_ID,
                _trade(asset, "SELL", "15", "9500", cash_account_id=cash),
            )

        assert exc_info.value.code == "INSUFFICIENT_HOLDING"
        assert await seed.holding(asset) == {"units": Decimal("10"), "avg_price": Decimal("9050")}
        assert await seed.balance(cash) == Decimal("909500")
        result = await orchestrator.list(USER_ID, asset_id=asset)
        assert result["pagination"]["total"] == 1

    @pytest.mark.asyncio
    async def test_sell_without_holding(self, orchestrator, seed) -> None:
        """보유 없는 매도 → 거부"""
        asset = await seed.asset()

        with pytest.raises(InsufficientHoldingError):
            await orchestrator.create(USER_ID, _trade(asset, "SELL", "1", "100"))

    @pytest.mark.asyncio
    async def test_net_amount_and_cash(self, orchestrator, seed) -> None:
        """gross 90000 - fee 300 - tax 200 = 89500 입금"""
        asset = await seed.asset()
        cash = await seed.account("증권 계좌", balance="0", account_type="INVESTMENT")
        await orchestrator.create(USER_ID, _trade(asset, "BUY", "10", "8000"))

        sell = await orchestrator.create(USER_ID, _trade(
            asset, "SELL", "10", "9000",
            gross_amount="90000",
            fee_amount="300",
            tax_amount="200",
            cash_account_id=cash,
        ))

        assert sell["net_amount"] == "89500"
        assert await seed.balance(cash) == Decimal("89500")
        assert await seed.holding(asset) is None

    @pytest.mark.asyncio
    async def test_buy_debits_cash(self, orchestrator, seed) -> None:
        """매수 → 현금에서 net_amount 차감"""
        asset = await seed.asset()
        cash = await seed.account(balance="100000")

        buy = await orchestrator.create(USER_ID, _trade(
            asset, "BUY", "10", "9000",
            fee_amount="500",
            cash_account_id=cash,
        ))

        assert buy["gross_amount"] == "90000"
        assert buy["net_amount"] == "89500"
        assert await seed.balance(cash) == Decimal("10500")

    @pytest.mark.asyncio
    async def test_dividend_credits_cash_without_holding(self, orchestrator, seed) -> None:
        """배당 → 현금 입금, 보유 불변"""
        asset = await seed.asset()
        cash = await seed.account(balance="0")

        dividend = await orchestrator.create(USER_ID, {
            "asset_id": asset,
            "type": "DIVIDEND",
            "net_amount": "1500",
            "occurred_at": "2026-04-01T00:00:00+00:00",
            "cash_account_id": cash,
        })

        assert dividend["units"] is None
        assert await seed.balance(cash) == Decimal("1500")
        assert await seed.holding(asset) is None

    @pytest.mark.asyncio
    async def test_dividend_requires_net(self, orchestrator, seed) -> None:
        """배당은 net_amount 필수"""
        asset = await seed.asset()

        with pytest.raises(ValidationError):
            await orchestrator.create(USER_ID, {
                "asset_id": asset,
                "type": "DIVIDEND",
                "occurred_at": "2026-04-01T00:00:00+00:00",
            })

    @pytest.mark.asyncio
    async def test_foreign_asset_forbidden(self, orchestrator, seed) -> None:
        """다른 사용자 자산 → 403"""
        asset = await seed.asset(user_id=OTHER_USER_ID)

        with pytest.raises(ForbiddenError):
            await orchestrator.create(USER_ID, _trade(asset, "BUY", "1", "100"))

    @pytest.mark.asyncio
    async def test_foreign_cash_account_forbidden(self, orchestrator, seed) -> None:
        """다른 사용자 현금 계좌 → 403, 보유 불변"""
        asset = await seed.asset()
        foreign = await seed.account(user_id=OTHER_USER_ID)

        with pytest.raises(ForbiddenError):
            await orchestrator.create(USER_ID, _trade(asset, "BUY", "1", "100", cash_account_id=foreign))

        assert await seed.holding(asset) is None

    @pytest.mark.asyncio
    async def test_backdated_buy_replays_history(self, orchestrator, seed, db) -> None:
        """과거 시점 매수 추가 → 이후 매도의 원가와 보유가 재계산 결과와 같음"""
        asset = await seed.asset()
        await orchestrator.create(USER_ID, _trade(asset, "BUY", "10", "100", occurred_at=DAY_3))
        sell = await orchestrator.create(USER_ID, _trade(asset, "SELL", "5", "150", occurred_at=DAY_4))

        await orchestrator.create(USER_ID, _trade(asset, "BUY", "10", "400", occurred_at=DAY_1))

        # 10@400 → +10@100 = 20@250 → -5 = 15@250
        assert await seed.holding(asset) == {"units": Decimal("15"), "avg_price": Decimal("250")}
        assert (await orchestrator.get(sell["id"], USER_ID))["cost_basis_per_unit"] == "250"

        incremental = await _raw_holding(db, asset)
        await HoldingsRebuilder(db).rebuild_holdings(USER_ID)
        assert await _raw_holding(db, asset) == incremental

    @pytest.mark.asyncio
    async def test_backdated_sell_breaking_later_sell_rejected(self, orchestrator, seed) -> None:
        """과거 시점 매도로 이후 매도가 보유 초과가 되면 거부"""
        asset = await seed.asset()
        await orchestrator.create(USER_ID, _trade(asset, "BUY", "10", "100", occurred_at=DAY_1))
        await orchestrator.create(USER_ID, _trade(asset, "SELL", "8", "120", occurred_at=DAY_3))

        with pytest.raises(InsufficientHoldingError):
            await orchestrator.create(USER_ID, _trade(asset, "SELL", "5", "110", occurred_at=DAY_2))

        assert await seed.holding(asset) == {"units": Decimal("2"), "avg_price": Decimal("100")}
        result = await orchestrator.list(USER_ID, asset_id=asset)
        assert result["pagination"]["total"] == 2


class TestUpdate:
    """투자 거래 수정 테스트"""

    @pytest.mark.asyncio
    async def test_empty_patch_is_noop(self, orchestrator, seed) -> None:
        """빈 패치 → 보유/현금/금액 불변"""
        asset = await seed.asset()
        cash = await seed.account(balance="200000")
        await orchestrator.create(USER_ID, _trade(asset, "BUY", "10", "9000", cash_account_id=cash))
        sell = await orchestrator.create(USER_ID, _trade(
            asset, "SELL", "4", "9500",
            fee_amount="100",
            net_amount="37000",
            cash_account_id=cash,
        ))

        updated = await orchestrator.update(sell["id"], USER_ID, {})

        assert updated["net_amount"] == "37000"
        assert updated["cost_basis_per_unit"] == "9000"
        assert await seed.holding(asset) == {"units": Decimal("6"), "avg_price": Decimal("9000")}
        assert await seed.balance(cash) == Decimal("147000")

    @pytest.mark.asyncio
    async def test_units_change_recomputes(self, orchestrator, seed) -> None:
        """수량 변경 → gross/net 재계산, 보유/현금 재반영"""
        asset = await seed.asset()
        cash = await seed.account(balance="100000")
        buy = await orchestrator.create(USER_ID, _trade(asset, "BUY", "10", "1000", cash_account_id=cash))

        updated = await orchestrator.update(buy["id"], USER_ID, {"units": "20"})

        assert updated["gross_amount"] == "20000"
        assert updated["net_amount"] == "20000"
        assert await seed.holding(asset) == {"units": Decimal("20"), "avg_price": Decimal("1000")}
        assert await seed.balance(cash) == Decimal("80000")

    @pytest.mark.asyncio
    async def test_update_to_oversell_rolls_back(self, orchestrator, seed) -> None:
        """매수를 보유 없는 매도로 바꾸면 전체 롤백"""
        asset = await seed.asset()
        buy = await orchestrator.create(USER_ID, _trade(asset, "BUY", "10", "1000"))

        with pytest.raises(InsufficientHoldingError):
            await orchestrator.update(buy["id"], USER_ID, {"type": "SELL"})

        assert await seed.holding(asset) == {"units": Decimal("10"), "avg_price": Decimal("1000")}
        assert (await orchestrator.get(buy["id"], USER_ID))["type"] == "BUY"

    @pytest.mark.asyncio
    async def test_move_cash_account(self, orchestrator, seed) -> None:
        """현금 계좌 변경 → 이전 계좌 복원"""
        asset = await seed.asset()
        first = await seed.account("A", balance="10000")
        second = await seed.account("B", balance="10000")
        buy = await orchestrator.create(USER_ID, _trade(asset, "BUY", "1", "1000", cash_account_id=first))

        await orchestrator.update(buy["id"], USER_ID, {"cash_account_id": second})

        assert await seed.balance(first) == Decimal("10000")
        assert await seed.balance(second) == Decimal("9000")

    @pytest.mark.asyncio
    async def test_note_edit_on_earlier_sell_keeps_holding(self, orchestrator, seed, db) -> None:
        """최신이 아닌 매도의 메모만 수정 → 보유/원가 불변"""
        asset = await seed.asset()
        await orchestrator.create(USER_ID, _trade(asset, "BUY", "10", "100", occurred_at=DAY_1))
        sell = await orchestrator.create(USER_ID, _trade(asset, "SELL", "5", "120", occurred_at=DAY_2))
        await orchestrator.create(USER_ID, _trade(asset, "BUY", "5", "200", occurred_at=DAY_3))
        before = await _raw_holding(db, asset)

        updated = await orchestrator.update(sell["id"], USER_ID, {"note": "memo"})

        assert updated["note"] == "memo"
        assert updated["cost_basis_per_unit"] == "100"
        assert await seed.holding(asset) == {"units": Decimal("10"), "avg_price": Decimal("150")}
        assert await _raw_holding(db, asset) == before

    @pytest.mark.asyncio
    async def test_empty_patch_on_earlier_buy_keeps_holding(self, orchestrator, seed) -> None:
        """최신이 아닌 매수에 빈 패치 → 보유 불변"""
        asset = await seed.asset()
        first = await orchestrator.create(USER_ID, _trade(asset, "BUY", "10", "100", occurred_at=DAY_1))
        await orchestrator.create(USER_ID, _trade(asset, "BUY", "10", "200", occurred_at=DAY_2))
        await orchestrator.create(USER_ID, _trade(asset, "SELL", "10", "180", occurred_at=DAY_3))

        await orchestrator.update(first["id"], USER_ID, {})

        assert await seed.holding(asset) == {"units": Decimal("10"), "avg_price": Decimal("150")}

    @pytest.mark.asyncio
    async def test_price_change_on_earlier_buy_refreshes_sell_cost_basis(
        self, orchestrator, seed, db
    ) -> None:
        """과거 매수 단가 수정 → 이후 매도의 원가도 갱신, 재계산 결과와 같음"""
        asset = await seed.asset()
        first = await orchestrator.create(USER_ID, _trade(asset, "BUY", "10", "100", occurred_at=DAY_1))
        await orchestrator.create(USER_ID, _trade(asset, "BUY", "10", "200", occurred_at=DAY_2))
        sell = await orchestrator.create(USER_ID, _trade(asset, "SELL", "10", "180", occurred_at=DAY_3))

        await orchestrator.update(first["id"], USER_ID, {"price_per_unit": "300"})

        assert await seed.holding(asset) == {"units": Decimal("10"), "avg_price": Decimal("250")}
        assert (await orchestrator.get(sell["id"], USER_ID))["cost_basis_per_unit"] == "250"

        incremental = await _raw_holding(db, asset)
        await HoldingsRebuilder(db).rebuild_holdings(USER_ID)
        assert await _raw_holding(db, asset) == incremental

    @pytest.mark.asyncio
    async def test_shrinking_buy_under_later_sell_rejected(self, orchestrator, seed) -> None:
        """이후 매도보다 적게 매수 수량을 줄이면 거부, 전체 롤백"""
        asset = await seed.asset()
        buy = await orchestrator.create(USER_ID, _trade(asset, "BUY", "10", "100", occurred_at=DAY_1))
        await orchestrator.create(USER_ID, _trade(asset, "SELL", "8", "120", occurred_at=DAY_2))

        with pytest.raises(InsufficientHoldingError):
            await orchestrator.update(buy["id"], USER_ID, {"units": "5"})

        assert await seed.holding(asset) == {"units": Decimal("2"), "avg_price": Decimal("100")}
        assert (await orchestrator.get(buy["id"], USER_ID))["units"] == "10"

    @pytest.mark.asyncio
    async def test_move_to_other_asset(self, orchestrator, seed) -> None:
        """자산 변경 → 이전 자산/새 자산 모두 재계산"""
        stock = await seed.asset("005930")
        etf = await seed.asset("069500", asset_type="ETF")
        await orchestrator.create(USER_ID, _trade(stock, "BUY", "3", "100", occurred_at=DAY_1))
        moved = await orchestrator.create(USER_ID, _trade(stock, "BUY", "1", "500", occurred_at=DAY_2))

        await orchestrator.update(moved["id"], USER_ID, {"asset_id": etf})

        assert await seed.holding(stock) == {"units": Decimal("3"), "avg_price": Decimal("100")}
        assert await seed.holding(etf) == {"units": Decimal("1"), "avg_price": Decimal("500")}


class TestDelete:
    """투자 거래 삭제 테스트"""

    @pytest.mark.asyncio
    async def test_round_trip(self, orchestrator, seed, db) -> None:
        """매수 2건 + 매도 후 매도/매수 삭제 → 원래 상태"""
        asset = await seed.asset()
        cash = await seed.account(balance="500000")
        first = await orchestrator.create(USER_ID, _trade(asset, "BUY", "10", "9000", cash_account_id=cash))
        second = await orchestrator.create(USER_ID, _trade(asset, "BUY", "10", "11000", cash_account_id=cash))
        sell = await orchestrator.create(USER_ID, _trade(asset, "SELL", "5", "12000", cash_account_id=cash))

        await orchestrator.delete(sell["id"], USER_ID)
        assert await seed.holding(asset) == {"units": Decimal("20"), "avg_price": Decimal("10000")}

        await orchestrator.delete(second["id"], USER_ID)
        assert await seed.holding(asset) == {"units": Decimal("10"), "avg_price": Decimal("9000")}

        await orchestrator.delete(first["id"], USER_ID)
        assert await seed.holding(asset) is None
        assert await seed.balance(cash) == Decimal("500000")
        assert await BalanceReconciler(db).reconcile_balances(USER_ID) == []

    @pytest.mark.asyncio
    async def test_delete_twice_not_found(self, orchestrator, seed) -> None:
        """hard delete 후 재삭제 → 404"""
        asset = await seed.asset()
        buy = await orchestrator.create(USER_ID, _trade(asset, "BUY", "1", "100"))

        await orchestrator.delete(buy["id"], USER_ID)

        with pytest.raises(NotFoundError):
            await orchestrator.delete(buy["id"], USER_ID)

    @pytest.mark.asyncio
    async def test_other_user_forbidden(self, orchestrator, seed) -> None:
        """다른 사용자 거래 삭제 → 403, 보유 불변"""
        asset = await seed.asset()
        buy = await orchestrator.create(USER_ID, _trade(asset, "BUY", "1", "100"))

        with pytest.raises(ForbiddenError):
            await orchestrator.delete(buy["id"], OTHER_USER_ID)

        assert await seed.holding(asset) == {"units": Decimal("1"), "avg_price": Decimal("100")}

    @pytest.mark.asyncio
    async def test_create_then_delete_restores_inexact_average(self, orchestrator, seed, db) -> None:
        """나누어떨어지지 않는 평균단가도 생성 후 삭제하면 저장값까지 그대로"""
        asset = await seed.asset()
        await orchestrator.create(USER_ID, _trade(asset, "BUY", "1", "100", occurred_at=DAY_1))
        await orchestrator.create(USER_ID, _trade(asset, "BUY", "2", "101", occurred_at=DAY_2))
        before = await _raw_holding(db, asset)

        extra = await orchestrator.create(USER_ID, _trade(asset, "BUY", "7", "11.3", occurred_at=DAY_3))
        await orchestrator.delete(extra["id"], USER_ID)

        assert await _raw_holding(db, asset) == before

    @pytest.mark.asyncio
    async def test_delete_buy_under_sell_skips_sell(self, orchestrator, seed, db) -> None:
        """매도의 근거가 된 매수 삭제 → 매도는 재계산처럼 건너뛰고 원가 NULL"""
        asset = await seed.asset()
        buy = await orchestrator.create(USER_ID, _trade(asset, "BUY", "10", "100", occurred_at=DAY_1))
        sell = await orchestrator.create(USER_ID, _trade(asset, "SELL", "4", "120", occurred_at=DAY_2))

        await orchestrator.delete(buy["id"], USER_ID)

        assert await seed.holding(asset) is None
        assert (await orchestrator.get(sell["id"], USER_ID))["cost_basis_per_unit"] is None

        await HoldingsRebuilder(db).rebuild_holdings(USER_ID)
        assert await seed.holding(asset) is None
