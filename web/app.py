"""
FastAPI 애플리케이션

라우터 등록, 예외 변환 및 앱 설정.
"""

import logging
import sqlite3
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from adapters.db.sqlite_adapter import SQLiteAdapter, init_schema
from core.config.loader import get_settings
from core.errors import AppError, ConflictError
from core.logging import setup_logging
from web.routes import (
    accounts,
    assets,
    budgets,
    categories,
    debts,
    health,
    investment_transactions,
    portfolio,
    recurring,
    reports,
    tags,
    transactions,
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """앱 생명주기 관리"""
    settings = get_settings()
    setup_logging("web", level=settings.log_level)

    # 시작 시 - DB 스키마 자동 초기화
    async with SQLiteAdapter(settings.db_path) as db:
        await init_schema(db)

    logger.info(
        f"Web 시작: mode={settings.mode.value}, db={settings.db_path}",
        extra={"mode": settings.mode.value},
    )

    yield

    logger.info("Web 종료")


app = FastAPI(
    title="Moneybook API",
    description="개인 가계부 / 투자 기록 API",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

# CORS 설정 (개발용)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# =========================================================================
# 예외 → 응답 변환
# =========================================================================


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """도메인 예외를 {success, message, code} 본문으로 변환"""
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} 실패: {exc.message}")
    else:
        logger.info(
            f"{request.method} {request.url.path} 거부: {exc.code} {exc.message}",
            extra={"code": exc.code},
        )
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(sqlite3.IntegrityError)
async def integrity_error_handler(request: Request, exc: sqlite3.IntegrityError) -> JSONResponse:
    """서비스에서 변환되지 않은 유니크 제약 위반"""
    logger.warning(f"{request.method} {request.url.path} 제약 위반: {exc}")
    error = ConflictError()
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


# =========================================================================
# API 라우터 등록
# =========================================================================

app.include_router(health.router)
app.include_router(accounts.router)
app.include_router(categories.router)
app.include_router(tags.router)
app.include_router(assets.router)
app.include_router(transactions.router)
app.include_router(investment_transactions.router)
app.include_router(recurring.router)
app.include_router(portfolio.router)
app.include_router(debts.router)
app.include_router(budgets.router)
app.include_router(reports.router)
