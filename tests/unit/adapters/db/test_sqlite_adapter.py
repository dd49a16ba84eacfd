"""
SQLite 어댑터 테스트

연결 설정, 트랜잭션(BEGIN IMMEDIATE) 커밋/롤백/중첩, 스키마 초기화
"""

from pathlib import Path

import pytest

from adapters.db.sqlite_adapter import (
    SQLiteAdapter,
    create_connection,
    init_schema,
)


class TestCreateConnection:
    """create_connection 테스트"""

    @pytest.mark.asyncio
    async def test_wal_and_foreign_keys(self, tmp_path: Path) -> None:
        """WAL 모드 + 외래 키 활성화"""
        conn = await create_connection(tmp_path / "sub" / "test.db")

        cursor = await conn.execute("PRAGMA journal_mode")
        assert (await cursor.fetchone())[0].upper() == "WAL"

        cursor = await conn.execute("PRAGMA foreign_keys")
        assert (await cursor.fetchone())[0] == 1

        assert (tmp_path / "sub").exists()
        await conn.close()


class TestTransaction:
    """트랜잭션 컨텍스트 매니저 테스트"""

    @pytest.mark.asyncio
    async def test_commit(self, tmp_path: Path) -> None:
        """성공 시 커밋 (다른 연결에서 보임)"""
        path = tmp_path / "tx.db"
        async with SQLiteAdapter(path) as db:
            await db.execute("CREATE TABLE t (v TEXT)")
            async with db.transaction():
                assert db.in_transaction
                await db.execute("INSERT INTO t VALUES ('a')")
            assert not db.in_transaction

        async with SQLiteAdapter(path) as other:
            rows = await other.fetchall("SELECT v FROM t")
            assert rows == [("a",)]

    @pytest.mark.asyncio
    async def test_rollback_on_error(self, tmp_path: Path) -> None:
        """예외 시 롤백"""
        async with SQLiteAdapter(tmp_path / "tx.db") as db:
            await db.execute("CREATE TABLE t (v TEXT)")

            with pytest.raises(RuntimeError):
                async with db.transaction():
                    await db.execute("INSERT INTO t VALUES ('a')")
                    raise RuntimeError("boom")

            rows = await db.fetchall("SELECT v FROM t")
            assert rows == []
            assert not db.in_transaction

    @pytest.mark.asyncio
    async def test_nested_joins_outer(self, tmp_path: Path) -> None:
        """중첩 호출은 바깥 트랜잭션에 합류 (안쪽 실패 → 전체 롤백)"""
        async with SQLiteAdapter(tmp_path / "tx.db") as db:
            await db.execute("CREATE TABLE t (v TEXT)")

            with pytest.raises(ValueError):
                async with db.transaction():
                    await db.execute("INSERT INTO t VALUES ('outer')")
                    async with db.transaction():
                        await db.execute("INSERT INTO t VALUES ('inner')")
                    assert db.in_transaction
                    raise ValueError("fail after inner")

            rows = await db.fetchall("SELECT v FROM t")
            assert rows == []

    @pytest.mark.asyncio
    async def test_requires_connection(self, tmp_path: Path) -> None:
        """연결 전 사용 불가"""
        db = SQLiteAdapter(tmp_path / "tx.db")

        with pytest.raises(RuntimeError):
            await db.execute("SELECT 1")


class TestInitSchema:
    """스키마 초기화 테스트"""

    @pytest.mark.asyncio
    async def test_creates_tables(self, tmp_path: Path) -> None:
        """모든 테이블 생성 + 재실행 안전"""
        async with SQLiteAdapter(tmp_path / "schema.db") as db:
            await init_schema(db)
            await init_schema(db)

            for table in (
                "accounts",
                "categories",
                "tags",
                "transactions",
                "transaction_tags",
                "investment_assets",
                "investment_transactions",
                "holdings",
                "recurring_rules",
                "recurring_runs",
                "debts",
                "debt_payments",
                "budgets",
                "budget_items",
            ):
                row = await db.fetchone(
                    "SELECT name FROM sqlite_master WHERE type = 'table' AND name = ?",
                    (table,),
                )
                assert row is not None, table

    @pytest.mark.asyncio
    async def test_amounts_are_text(self, tmp_path: Path) -> None:
        """금액 컬럼은 TEXT (Decimal 정밀도 보존)"""
        async with SQLiteAdapter(tmp_path / "schema.db") as db:
            await init_schema(db)

            columns = {row[1]: row[2] for row in await db.fetchall("PRAGMA table_info(accounts)")}
            assert columns["current_balance"] == "TEXT"
