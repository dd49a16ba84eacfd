"""
의존성 주입

FastAPI의 Depends를 사용한 의존성 관리.
"""

from datetime import datetime
from typing import AsyncGenerator, Callable

from fastapi import Header

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.config.loader import Settings, get_settings
from core.constants import Defaults
from core.errors import UnauthorizedError
from core.utils.timezone import now_utc


def get_app_settings() -> Settings:
    """애플리케이션 설정 반환"""
    return get_settings()


async def get_db() -> AsyncGenerator[SQLiteAdapter, None]:
    """DB 세션 반환 (요청마다 새 연결)

    쓰기 직렬화는 SQLiteAdapter.transaction()의 BEGIN IMMEDIATE가 담당.
    """
    settings = get_settings()
    async with SQLiteAdapter(settings.db_path) as db:
        yield db


async def get_current_user_id(
    x_user_id: str | None = Header(default=None, alias=Defaults.USER_ID_HEADER),
) -> str:
    """요청 사용자 ID

    인증 게이트웨이가 검증 후 전달한 헤더를 그대로 신뢰한다.

    Raises:
        UnauthorizedError: 헤더가 없거나 비어 있는 경우
    """
    if not x_user_id or not x_user_id.strip():
        raise UnauthorizedError("Missing user identity")
    return x_user_id.strip()


def get_clock() -> Callable[[], datetime]:
    """현재 시각 함수 (테스트에서 고정 시각으로 교체)"""
    return now_utc
