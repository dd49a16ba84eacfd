"""
반복 규칙 실행기

실행 시각이 지난 활성 반복 규칙을 찾아 각각 1회 실행한다.
cron 등 외부 스케줄러에서 주기적으로 호출하거나 --interval로 상주 실행.

사용법:
    python -m scripts.run_recurring
    python -m scripts.run_recurring --interval 300
    python -m scripts.run_recurring --settings config/settings.yaml
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

# 프로젝트 루트를 Python 경로에 추가
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from adapters.db.sqlite_adapter import SQLiteAdapter, init_schema
from core.config.loader import get_settings
from core.ledger.recurring import RecurringBatchResult, RecurringExecutor
from core.logging import setup_logging

logger = logging.getLogger(__name__)


async def run_once(db_path: Path) -> RecurringBatchResult:
    """실행 시각이 지난 규칙 일괄 실행 (1회)"""
    async with SQLiteAdapter(db_path) as db:
        await init_schema(db)
        executor = RecurringExecutor(db)
        return await executor.run_due()


async def main(args: argparse.Namespace) -> int:
    settings = get_settings(args.settings)
    setup_logging("scheduler", level=settings.log_level)
    logger.info(f"반복 규칙 실행기 시작: db={settings.db_path}")

    if args.interval <= 0:
        result = await run_once(settings.db_path)
        return 1 if result.failed else 0

    while True:
        try:
            await run_once(settings.db_path)
        except Exception:
            # DB 잠금/파일 오류 등으로 한 주기가 실패해도 다음 주기에 재시도
            logger.exception("반복 규칙 일괄 실행 실패")
        await asyncio.sleep(args.interval)


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="반복 규칙 실행기")
    parser.add_argument(
        "--settings",
        type=Path,
        default=None,
        help="settings.yaml 경로 (기본: config/settings.yaml)",
    )
    parser.add_argument(
        "--interval",
        type=int,
        default=0,
        help="반복 실행 간격(초). 0이면 1회 실행 후 종료",
    )
    args = parser.parse_args()

    try:
        sys.exit(asyncio.run(main(args)))
    except KeyboardInterrupt:
        logger.info("반복 규칙 실행기 종료 (KeyboardInterrupt)")
