"""동시 쓰기 통합 테스트

같은 DB 파일에 요청마다 별도 연결로 동시에 쓰기 작업을 수행해도
잔액 갱신이 유실되거나 두 번 역산되지 않는지 확인
"""

import asyncio
from decimal import Decimal
from pathlib import Path

import pytest

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.errors import NotFoundError
from core.ledger.balance import BalanceMutator
from core.ledger.transactions import TransactionOrchestrator

USER_ID = "user-1"


class TestConcurrentWrites:
    """연결별 BEGIN IMMEDIATE 직렬화 테스트"""

    @pytest.mark.asyncio
    async def test_concurrent_transfers(self, db_path: Path, seed) -> None:
        """연결 20개에서 이체 동시 실행 → 합계 보존, 유실 없음"""
        a = await seed.account("A", balance="1000")
        b = await seed.account("B", balance="0")

        async def transfer_once() -> None:
            async with SQLiteAdapter(db_path) as conn:
                await TransactionOrchestrator(conn).create(USER_ID, {
                    "type": "TRANSFER",
                    "amount": "10",
                    "occurred_at": "2026-03-01T00:00:00+00:00",
                    "from_account_id": a,
                    "to_account_id": b,
                })

        await asyncio.gather(*(transfer_once() for _ in range(20)))

        assert await seed.balance(a) == Decimal("800")
        assert await seed.balance(b) == Decimal("200")

    @pytest.mark.asyncio
    async def test_concurrent_deletes_reverse_once(self, db_path: Path, seed) -> None:
        """같은 거래를 두 연결에서 동시에 삭제 → 한 번만 역산"""
        account = await seed.account(balance="1000")
        tx = await TransactionOrchestrator(seed.db).create(USER_ID, {
            "type": "EXPENSE",
            "amount": "300",
            "occurred_at": "2026-03-01T00:00:00+00:00",
            "account_id": account,
        })

        async with SQLiteAdapter(db_path) as first, SQLiteAdapter(db_path) as second:
            results = await asyncio.gather(
                TransactionOrchestrator(first).delete(tx["id"], USER_ID),
                TransactionOrchestrator(second).delete(tx["id"], USER_ID),
                return_exceptions=True,
            )

        errors = [r for r in results if isinstance(r, Exception)]
        assert len(errors) == 1
        assert isinstance(errors[0], NotFoundError)
        assert await seed.balance(account) == Decimal("1000")

    @pytest.mark.asyncio
    async def test_apply_delta_requires_transaction(self, db, seed) -> None:
        """트랜잭션 밖 잔액 변경 금지"""
        account = await seed.account()

        with pytest.raises(RuntimeError):
            await BalanceMutator(db).apply_delta(account, Decimal("1"))
