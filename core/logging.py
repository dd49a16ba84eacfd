"""
로깅 설정 유틸리티

Web과 반복 거래 실행기(scheduler)가 함께 쓰는 로깅 설정.
- 콘솔: settings.yaml logging.level (기본 INFO)
- 파일: INFO 레벨, 자정마다 롤링

extra=로 넘긴 맥락(user_id, transaction_id 등)은 메시지 뒤에
key=value 형태로 붙여 출력한다.

사용법:
    from core.logging import setup_logging
    setup_logging("web", level=settings.log_level)
    setup_logging("scheduler")
"""

import logging
import sys
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path

from core.constants import Paths


LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
LOG_FILE_BACKUP_COUNT = 7  # 일 단위 보관 개수

# 레벨을 WARNING으로 올릴 로거
NOISY_LOGGERS = [
    "aiosqlite",       # 쿼리마다 executing/completed
    "httpcore",
    "httpx",
    "asyncio",
    "uvicorn.access",  # 요청마다 access 로그
]

# LogRecord 기본 속성 (extra 판별용)
_RECORD_ATTRS = frozenset(
    logging.LogRecord("", logging.INFO, "", 0, "", None, None).__dict__
) | {"message", "asctime", "taskName"}


class LedgerFormatter(logging.Formatter):
    """extra 필드를 메시지 뒤에 붙이는 포맷터

    예: ... | 거래 생성: EXPENSE 12000 KRW | user_id=u1 transaction_id=t1
    """

    def format(self, record: logging.LogRecord) -> str:
        base = super().format(record)
        context = {
            key: value
            for key, value in record.__dict__.items()
            if key not in _RECORD_ATTRS and not key.startswith("_")
        }
        if not context:
            return base
        pairs = " ".join(f"{key}={value}" for key, value in sorted(context.items()))
        return f"{base} | {pairs}"


def get_log_dir(process_name: str) -> Path:
    """프로세스별 로그 디렉토리"""
    if process_name == "web":
        return Paths.WEB_LOGS_DIR
    if process_name == "scheduler":
        return Paths.SCHEDULER_LOGS_DIR
    return Paths.LOGS_DIR


def _resolve_level(level: int | str) -> int:
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(level.upper())
    return resolved if isinstance(resolved, int) else logging.INFO


def setup_logging(
    process_name: str,
    level: int | str = logging.INFO,
    file_level: int = logging.INFO,
    log_dir: Path | None = None,
) -> logging.Logger:
    """루트 로거 초기화

    다시 호출하면 기존 핸들러를 닫고 새로 구성한다.

    Args:
        process_name: "web" 또는 "scheduler" (로그 파일 이름)
        level: 콘솔 로그 레벨 (int 또는 "DEBUG"/"INFO" 등)
        file_level: 파일 로그 레벨
        log_dir: 로그 디렉토리 (None이면 프로세스별 기본 경로)

    Returns:
        루트 Logger
    """
    console_level = _resolve_level(level)
    log_dir = log_dir or get_log_dir(process_name)
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / f"{process_name}.log"

    root_logger = logging.getLogger()
    root_logger.setLevel(min(console_level, file_level))

    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        handler.close()

    formatter = LedgerFormatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(console_level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    file_handler = TimedRotatingFileHandler(
        filename=log_file,
        when="midnight",
        interval=1,
        backupCount=LOG_FILE_BACKUP_COUNT,
        encoding="utf-8",
    )
    file_handler.suffix = "%Y-%m-%d"  # scheduler.log.2026-02-21
    file_handler.setLevel(file_level)
    file_handler.setFormatter(formatter)
    root_logger.addHandler(file_handler)

    for logger_name in NOISY_LOGGERS:
        logging.getLogger(logger_name).setLevel(logging.WARNING)

    root_logger.info(
        f"로깅 초기화 완료: {process_name} "
        f"(콘솔 {logging.getLevelName(console_level)}, 파일 {log_file})"
    )
    return root_logger
