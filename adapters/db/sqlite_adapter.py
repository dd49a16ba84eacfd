"""
SQLite 어댑터

WAL 모드로 SQLite 연결 관리.
Web과 Scheduler가 동시에 접근 가능하도록 설정.

주의: 금액/수량은 Decimal 정밀도 보존을 위해 TEXT로 저장.
"""

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncIterator

import aiosqlite

logger = logging.getLogger(__name__)


async def create_connection(db_path: Path | str) -> aiosqlite.Connection:
    """SQLite 연결 생성 (WAL 모드)

    트랜잭션은 SQLiteAdapter.transaction()에서 명시적으로 시작하므로
    autocommit(isolation_level=None) 연결을 사용한다.

    Args:
        db_path: DB 파일 경로

    Returns:
        aiosqlite 연결 객체
    """
    db_path_str = str(db_path)

    # 디렉토리가 없으면 생성
    db_dir = Path(db_path).parent
    db_dir.mkdir(parents=True, exist_ok=True)

    conn = await aiosqlite.connect(db_path_str, isolation_level=None)

    # WAL 모드 설정
    await conn.execute("PRAGMA journal_mode=WAL")

    # 동시 접근 설정
    await conn.execute("PRAGMA busy_timeout=30000")  # 30초 대기

    # 외래 키 제약 활성화
    await conn.execute("PRAGMA foreign_keys=ON")

    logger.info(
        "SQLite 연결 생성",
        extra={"db_path": db_path_str},
    )

    return conn


class SQLiteAdapter:
    """SQLite 어댑터

    WAL 모드로 SQLite 연결 관리.
    트랜잭션 컨텍스트 매니저 제공.

    Args:
        db_path: DB 파일 경로

    사용 예시:
    ```python
    adapter = SQLiteAdapter(db_path)
    await adapter.connect()

    async with adapter.transaction():
        await adapter.execute("UPDATE accounts SET ...")
        await adapter.execute("INSERT INTO transactions ...")

    await adapter.close()
    ```
    """

    def __init__(self, db_path: Path | str):
        self.db_path = Path(db_path)
        self._conn: aiosqlite.Connection | None = None
        self._tx_depth = 0

    @property
    def in_transaction(self) -> bool:
        """트랜잭션 진행 중 여부"""
        return self._tx_depth > 0

    async def connect(self) -> None:
        """연결 생성"""
        if self._conn is not None:
            return

        self._conn = await create_connection(self.db_path)

    async def close(self) -> None:
        """연결 종료"""
        if self._conn is not None:
            await self._conn.close()
            self._conn = None
            self._tx_depth = 0
            logger.info("SQLite 연결 종료")

    async def execute(
        self,
        sql: str,
        parameters: tuple[Any, ...] | None = None,
    ) -> aiosqlite.Cursor:
        """SQL 실행"""
        if self._conn is None:
            raise RuntimeError("Not connected to database")

        if parameters:
            return await self._conn.execute(sql, parameters)
        return await self._conn.execute(sql)

    async def executemany(
        self,
        sql: str,
        parameters: list[tuple[Any, ...]],
    ) -> aiosqlite.Cursor:
        """SQL 다중 실행"""
        if self._conn is None:
            raise RuntimeError("Not connected to database")

        return await self._conn.executemany(sql, parameters)

    async def fetchone(
        self,
        sql: str,
        parameters: tuple[Any, ...] | None = None,
    ) -> tuple[Any, ...] | None:
        """단일 행 조회"""
        cursor = await self.execute(sql, parameters)
        return await cursor.fetchone()

    async def fetchall(
        self,
        sql: str,
        parameters: tuple[Any, ...] | None = None,
    ) -> list[tuple[Any, ...]]:
        """전체 행 조회"""
        cursor = await self.execute(sql, parameters)
        return list(await cursor.fetchall())

    async def commit(self) -> None:
        """커밋"""
        if self._conn is not None:
            await self._conn.commit()

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[aiosqlite.Connection]:
        """트랜잭션 컨텍스트 매니저 (BEGIN IMMEDIATE)

        시작 시점에 쓰기 잠금을 잡으므로 같은 DB에 대한 쓰기 작업은
        연결이 달라도 직렬화된다. 성공 시 자동 커밋, 예외 시 자동 롤백.

        이미 트랜잭션 안에서 호출되면 바깥 트랜잭션에 합류한다
        (커밋/롤백은 가장 바깥 블록이 담당).

        사용 예시:
        ```python
        async with adapter.transaction():
            await adapter.execute("INSERT INTO ...")
            # 성공 시 자동 커밋
        ```
        """
        if self._conn is None:
            raise RuntimeError("Not connected to database")

        if self._tx_depth > 0:
            self._tx_depth += 1
            try:
                yield self._conn
            finally:
                self._tx_depth -= 1
            return

        await self._conn.execute("BEGIN IMMEDIATE")
        self._tx_depth = 1
        try:
            yield self._conn
            await self._conn.commit()
        except BaseException:
            await self._conn.rollback()
            raise
        finally:
            self._tx_depth = 0

    # -------------------------------------------------------------------------
    # 컨텍스트 매니저
    # -------------------------------------------------------------------------

    async def __aenter__(self) -> "SQLiteAdapter":
        await self.connect()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()


async def init_schema(adapter: SQLiteAdapter) -> None:
    """스키마 초기화 (테이블 생성)

    Args:
        adapter: 연결된 SQLiteAdapter
    """
    # accounts (현금 잔액 보유 계좌)
    await adapter.execute("""
        CREATE TABLE IF NOT EXISTS accounts (
            id                TEXT PRIMARY KEY,
            user_id           TEXT NOT NULL,
            name              TEXT NOT NULL,
            account_type      TEXT NOT NULL,
            currency          TEXT NOT NULL,

            starting_balance  TEXT NOT NULL DEFAULT '0',
            current_balance   TEXT NOT NULL DEFAULT '0',
            is_archived       INTEGER NOT NULL DEFAULT 0,

            created_at        TEXT NOT NULL DEFAULT (datetime('now')),
            updated_at        TEXT NOT NULL DEFAULT (datetime('now'))
        )
    """)

    # categories
    await adapter.execute("""
        CREATE TABLE IF NOT EXISTS categories (
            id                TEXT PRIMARY KEY,
            user_id           TEXT NOT NULL,
            name              TEXT NOT NULL,
            category_type     TEXT NOT NULL,
            created_at        TEXT NOT NULL DEFAULT (datetime('now')),

            UNIQUE(user_id, name, category_type)
        )
    """)

    # tags
    await adapter.execute("""
        CREATE TABLE IF NOT EXISTS tags (
            id                TEXT PRIMARY KEY,
            user_id           TEXT NOT NULL,
            name              TEXT NOT NULL,
            created_at        TEXT NOT NULL DEFAULT (datetime('now')),

            UNIQUE(user_id, name)
        )
    """)

    # transactions (INCOME / EXPENSE / TRANSFER, soft delete)
    await adapter.execute("""
        CREATE TABLE IF NOT EXISTS transactions (
            id                TEXT PRIMARY KEY,
            user_id           TEXT NOT NULL,
            type              TEXT NOT NULL,
            amount            TEXT NOT NULL,
            currency          TEXT NOT NULL,
            occurred_at       TEXT NOT NULL,

            account_id        TEXT REFERENCES accounts(id),
            category_id       TEXT REFERENCES categories(id),
            from_account_id   TEXT REFERENCES accounts(id),
            to_account_id     TEXT REFERENCES accounts(id),

            note              TEXT,
            is_deleted        INTEGER NOT NULL DEFAULT 0,

            created_at        TEXT NOT NULL DEFAULT (datetime('now')),
            updated_at        TEXT NOT NULL DEFAULT (datetime('now'))
        )
    """)

    # transaction_tags
    await adapter.execute("""
        CREATE TABLE IF NOT EXISTS transaction_tags (
            transaction_id    TEXT NOT NULL REFERENCES transactions(id),
            tag_id            TEXT NOT NULL REFERENCES tags(id),

            PRIMARY KEY (transaction_id, tag_id)
        )
    """)

    # investment_assets
    await adapter.execute("""
        CREATE TABLE IF NOT EXISTS investment_assets (
            id                TEXT PRIMARY KEY,
            user_id           TEXT NOT NULL,
            symbol            TEXT NOT NULL,
            name              TEXT NOT NULL,
            asset_type        TEXT NOT NULL,
            currency          TEXT NOT NULL,
            created_at        TEXT NOT NULL DEFAULT (datetime('now')),

            UNIQUE(user_id, symbol)
        )
    """)

    # investment_transactions (hard delete)
    await adapter.execute("""
        CREATE TABLE IF NOT EXISTS investment_transactions (
            id                   TEXT PRIMARY KEY,
            user_id              TEXT NOT NULL,
            asset_id             TEXT NOT NULL REFERENCES investment_assets(id),
            type                 TEXT NOT NULL,

            units                TEXT,
            price_per_unit       TEXT,
            gross_amount         TEXT,
            fee_amount           TEXT NOT NULL DEFAULT '0',
            tax_amount           TEXT NOT NULL DEFAULT '0',
            net_amount           TEXT NOT NULL,
            cost_basis_per_unit  TEXT,

            occurred_at          TEXT NOT NULL,
            note                 TEXT,
            cash_account_id      TEXT REFERENCES accounts(id),

            created_at           TEXT NOT NULL DEFAULT (datetime('now')),
            updated_at           TEXT NOT NULL DEFAULT (datetime('now'))
        )
    """)

    # holdings (가중평균 원가 보유 현황)
    await adapter.execute("""
        CREATE TABLE IF NOT EXISTS holdings (
            id                TEXT PRIMARY KEY,
            user_id           TEXT NOT NULL,
            asset_id          TEXT NOT NULL REFERENCES investment_assets(id),
            units_total       TEXT NOT NULL,
            avg_buy_price     TEXT NOT NULL,

            created_at        TEXT NOT NULL DEFAULT (datetime('now')),
            updated_at        TEXT NOT NULL DEFAULT (datetime('now')),

            UNIQUE(user_id, asset_id)
        )
    """)

    # recurring_rules
    await adapter.execute("""
        CREATE TABLE IF NOT EXISTS recurring_rules (
            id                TEXT PRIMARY KEY,
            user_id           TEXT NOT NULL,
            name              TEXT NOT NULL,
            type              TEXT NOT NULL,
            amount            TEXT NOT NULL,
            currency          TEXT NOT NULL,
            category_id       TEXT NOT NULL REFERENCES categories(id),
            account_id        TEXT NOT NULL REFERENCES accounts(id),

            schedule_type     TEXT NOT NULL,
            schedule_value    TEXT NOT NULL,
            next_run_at       TEXT NOT NULL,
            is_active         INTEGER NOT NULL DEFAULT 1,

            created_at        TEXT NOT NULL DEFAULT (datetime('now')),
            updated_at        TEXT NOT NULL DEFAULT (datetime('now'))
        )
    """)

    # recurring_runs (실행 감사 기록)
    await adapter.execute("""
        CREATE TABLE IF NOT EXISTS recurring_runs (
            id                TEXT PRIMARY KEY,
            rule_id           TEXT NOT NULL REFERENCES recurring_rules(id),
            transaction_id    TEXT NOT NULL REFERENCES transactions(id),
            executed_at       TEXT NOT NULL
        )
    """)

    # debts (DEBT: 갚을 돈 / RECEIVABLE: 받을 돈)
    await adapter.execute("""
        CREATE TABLE IF NOT EXISTS debts (
            id                TEXT PRIMARY KEY,
            user_id           TEXT NOT NULL,
            type              TEXT NOT NULL,
            person_name       TEXT NOT NULL,
            amount_total      TEXT NOT NULL,
            amount_remaining  TEXT NOT NULL,
            due_date          TEXT,
            interest_rate     TEXT,
            minimum_payment   TEXT,
            status            TEXT NOT NULL DEFAULT 'OPEN',

            created_at        TEXT NOT NULL DEFAULT (datetime('now')),
            updated_at        TEXT NOT NULL DEFAULT (datetime('now'))
        )
    """)

    # debt_payments (상환 기록, 채무 삭제 시 함께 삭제)
    await adapter.execute("""
        CREATE TABLE IF NOT EXISTS debt_payments (
            id                TEXT PRIMARY KEY,
            debt_id           TEXT NOT NULL REFERENCES debts(id) ON DELETE CASCADE,
            amount_paid       TEXT NOT NULL,
            paid_at           TEXT NOT NULL,
            transaction_id    TEXT REFERENCES transactions(id),
            created_at        TEXT NOT NULL DEFAULT (datetime('now'))
        )
    """)

    # budgets (사용자별 월 예산)
    await adapter.execute("""
        CREATE TABLE IF NOT EXISTS budgets (
            id                TEXT PRIMARY KEY,
            user_id           TEXT NOT NULL,
            year              INTEGER NOT NULL,
            month             INTEGER NOT NULL,
            total_limit       TEXT,

            created_at        TEXT NOT NULL DEFAULT (datetime('now')),
            updated_at        TEXT NOT NULL DEFAULT (datetime('now')),

            UNIQUE(user_id, year, month)
        )
    """)

    # budget_items (카테고리별 한도)
    await adapter.execute("""
        CREATE TABLE IF NOT EXISTS budget_items (
            budget_id         TEXT NOT NULL REFERENCES budgets(id) ON DELETE CASCADE,
            category_id       TEXT NOT NULL REFERENCES categories(id),
            limit_amount      TEXT NOT NULL,

            PRIMARY KEY (budget_id, category_id)
        )
    """)

    # 인덱스 생성
    await adapter.execute("""
        CREATE INDEX IF NOT EXISTS ix_transactions_user_occurred
        ON transactions(user_id, is_deleted, occurred_at)
    """)

    await adapter.execute("""
        CREATE INDEX IF NOT EXISTS ix_investment_transactions_user_occurred
        ON investment_transactions(user_id, occurred_at)
    """)

    await adapter.execute("""
        CREATE INDEX IF NOT EXISTS ix_investment_transactions_asset
        ON investment_transactions(asset_id)
    """)

    await adapter.execute("""
        CREATE INDEX IF NOT EXISTS ix_recurring_rules_due
        ON recurring_rules(is_active, next_run_at)
    """)

    await adapter.execute("""
        CREATE INDEX IF NOT EXISTS ix_recurring_runs_rule
        ON recurring_runs(rule_id, executed_at)
    """)

    await adapter.execute("""
        CREATE INDEX IF NOT EXISTS ix_debts_user_status
        ON debts(user_id, status)
    """)

    await adapter.execute("""
        CREATE INDEX IF NOT EXISTS ix_debt_payments_debt
        ON debt_payments(debt_id, paid_at)
    """)

    await adapter.commit()

    logger.info("스키마 초기화 완료")
