"""
pytest 공통 fixture 정의

임시 DB(스키마 포함)와 테스트 데이터 생성 헬퍼
"""

from decimal import Decimal
from pathlib import Path
from typing import Any

import pytest
import pytest_asyncio

from adapters.db.sqlite_adapter import SQLiteAdapter, init_schema
from web.services.account_service import AccountService
from web.services.catalog_service import CatalogService

USER_ID = "user-1"
OTHER_USER_ID = "user-2"


class Seeder:
    """테스트 데이터 생성 헬퍼

    서비스 계층을 그대로 사용하므로 저장 형식이 실제 API와 같다.
    """

    def __init__(self, db: SQLiteAdapter):
        self.db = db
        self.accounts = AccountService(db)
        self.catalog = CatalogService(db)

    async def account(
        self,
        name: str = "월급 통장",
        balance: str = "0",
        user_id: str = USER_ID,
        account_type: str = "BANK",
        currency: str = "KRW",
    ) -> str:
        account = await self.accounts.create_account(
            user_id=user_id,
            name=name,
            account_type=account_type,
            currency=currency,
            starting_balance=balance,
        )
        return account["id"]

    async def category(
        self,
        name: str = "식비",
        category_type: str = "EXPENSE",
        user_id: str = USER_ID,
    ) -> str:
        category = await self.catalog.create_category(user_id, name, category_type)
        return category["id"]

    async def tag(self, name: str = "여행", user_id: str = USER_ID) -> str:
        tag = await self.catalog.create_tag(user_id, name)
        return tag["id"]

    async def asset(
        self,
        symbol: str = "005930",
        asset_type: str = "STOCK",
        user_id: str = USER_ID,
        name: str | None = None,
    ) -> str:
        asset = await self.catalog.create_asset(
            user_id,
            symbol,
            name or symbol,
            asset_type,
            "KRW",
        )
        return asset["id"]

    async def balance(self, account_id: str) -> Decimal:
        row = await self.db.fetchone(
            "SELECT current_balance FROM accounts WHERE id = ?",
            (account_id,),
        )
        return Decimal(row[0])

    async def holding(self, asset_id: str, user_id: str = USER_ID) -> dict[str, Any] | None:
        row = await self.db.fetchone(
            "SELECT units_total, avg_buy_price FROM holdings WHERE user_id = ? AND asset_id = ?",
            (user_id, asset_id),
        )
        if row is None:
            return None
        return {"units": Decimal(row[0]), "avg_price": Decimal(row[1])}


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    """테스트용 DB 파일 경로"""
    return tmp_path / "moneybook_test.db"


@pytest_asyncio.fixture
async def db(db_path: Path) -> SQLiteAdapter:
    """스키마가 준비된 임시 DB"""
    adapter = SQLiteAdapter(db_path)
    await adapter.connect()
    await init_schema(adapter)

    yield adapter

    await adapter.close()


@pytest.fixture
def seed(db: SQLiteAdapter) -> Seeder:
    """테스트 데이터 생성 헬퍼"""
    return Seeder(db)
