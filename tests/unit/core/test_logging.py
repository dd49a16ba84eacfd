"""
로깅 설정 테스트
"""

import logging
from pathlib import Path

from core.logging import LedgerFormatter, setup_logging


def _record(**extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="core.ledger.transactions",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg="거래 생성: EXPENSE 12000 KRW",
        args=None,
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestLedgerFormatter:
    """LedgerFormatter 테스트"""

    def test_appends_extra_sorted(self) -> None:
        formatter = LedgerFormatter("%(message)s")

        line = formatter.format(_record(user_id="u1", transaction_id="t1"))

        assert line == "거래 생성: EXPENSE 12000 KRW | transaction_id=t1 user_id=u1"

    def test_without_extra(self) -> None:
        formatter = LedgerFormatter("%(levelname)s %(message)s")

        assert formatter.format(_record()) == "INFO 거래 생성: EXPENSE 12000 KRW"


class TestSetupLogging:
    """setup_logging 테스트"""

    def test_handlers_and_level(self, tmp_path: Path) -> None:
        root = logging.getLogger()
        saved_handlers = list(root.handlers)
        saved_level = root.level
        try:
            setup_logging("scheduler", level="warning", log_dir=tmp_path)

            assert len(root.handlers) == 2
            console, file_handler = root.handlers
            assert console.level == logging.WARNING
            assert file_handler.level == logging.INFO
            assert (tmp_path / "scheduler.log").exists()
        finally:
            for handler in list(root.handlers):
                root.removeHandler(handler)
                handler.close()
            for handler in saved_handlers:
                root.addHandler(handler)
            root.setLevel(saved_level)
