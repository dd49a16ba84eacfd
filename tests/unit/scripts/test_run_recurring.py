"""
반복 규칙 실행기 스크립트 테스트

--interval 상주 루프: 한 주기 실패 후에도 다음 주기 계속
"""

import argparse
import sqlite3
from pathlib import Path
from types import SimpleNamespace

import pytest

from core.ledger.recurring import RecurringBatchResult
from scripts import run_recurring


class _StopLoop(Exception):
    """상주 루프 종료용"""


@pytest.fixture
def settings(monkeypatch, tmp_path: Path) -> SimpleNamespace:
    """설정 로드/로깅 설정 대체"""
    fake = SimpleNamespace(db_path=tmp_path / "scheduler.db", log_level="INFO")
    monkeypatch.setattr(run_recurring, "get_settings", lambda path: fake)
    monkeypatch.setattr(run_recurring, "setup_logging", lambda *args, **kwargs: None)
    return fake


class TestMain:
    """main 테스트"""

    @pytest.mark.asyncio
    async def test_interval_loop_survives_failed_batch(self, monkeypatch, settings) -> None:
        """첫 주기 예외 → 로그 후 다음 주기 실행"""
        batches: list[Path] = []
        sleeps: list[int] = []

        async def flaky_run_once(db_path: Path) -> RecurringBatchResult:
            batches.append(db_path)
            if len(batches) == 1:
                raise sqlite3.OperationalError("database is locked")
            return RecurringBatchResult()

        async def counting_sleep(seconds: int) -> None:
            sleeps.append(seconds)
            if len(sleeps) == 2:
                raise _StopLoop

        monkeypatch.setattr(run_recurring, "run_once", flaky_run_once)
        monkeypatch.setattr(run_recurring.asyncio, "sleep", counting_sleep)

        with pytest.raises(_StopLoop):
            await run_recurring.main(argparse.Namespace(settings=None, interval=5))

        assert batches == [settings.db_path, settings.db_path]
        assert sleeps == [5, 5]

    @pytest.mark.asyncio
    async def test_single_run_exit_code(self, monkeypatch, settings) -> None:
        """--interval 0 → 1회 실행, 실패 규칙이 있으면 1"""

        async def failing_run_once(db_path: Path) -> RecurringBatchResult:
            return RecurringBatchResult(failed={"rule-1": "Rule is not active"})

        monkeypatch.setattr(run_recurring, "run_once", failing_run_once)

        assert await run_recurring.main(argparse.Namespace(settings=None, interval=0)) == 1
