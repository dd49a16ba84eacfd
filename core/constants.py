"""
하드코딩 상수 - 변경될 일이 거의 없는 고정값

중요: 경로는 반드시 pathlib.Path 사용 (Windows/Linux 크로스 플랫폼)
"""

from decimal import Decimal
from pathlib import Path


# 프로젝트 루트 (이 파일 기준 2단계 상위: core/constants.py → moneybook/)
PROJECT_ROOT: Path = Path(__file__).resolve().parent.parent


class Defaults:
    """기본값 상수"""

    CURRENCY: str = "KRW"

    WEB_HOST: str = "127.0.0.1"
    WEB_PORT: int = 8000

    LOG_LEVEL: str = "INFO"

    PAGE_SIZE: int = 20
    MAX_PAGE_SIZE: int = 200

    # 인증 게이트웨이가 검증 후 전달하는 사용자 식별 헤더
    USER_ID_HEADER: str = "X-User-Id"


class Paths:
    """프로젝트 경로 상수 (pathlib 사용 - OS 독립적)"""

    # 디렉토리
    CONFIG_DIR: Path = PROJECT_ROOT / "config"
    DATA_DIR: Path = PROJECT_ROOT / "data"
    LOGS_DIR: Path = PROJECT_ROOT / "logs"
    WEB_LOGS_DIR: Path = LOGS_DIR / "web"
    SCHEDULER_LOGS_DIR: Path = LOGS_DIR / "scheduler"

    # 설정 파일
    SETTINGS_FILE: Path = CONFIG_DIR / "settings.yaml"

    # DB 파일
    PROD_DB: Path = DATA_DIR / "moneybook_prod.db"
    DEV_DB: Path = DATA_DIR / "moneybook_dev.db"


class HoldingPolicy:
    """보유 수량/평균단가 계산 정책"""

    # 매수 역산 시 평균단가가 이 값 이하로 떨어지면 기존 평균단가 유지
    # (누적 반올림 오차로 음수/0 단가가 생기는 것을 막음)
    AVG_PRICE_FLOOR: Decimal = Decimal("0")


class BalancePolicy:
    """잔액 정합성 점검 정책"""

    # 계산 잔액과 저장 잔액 비교 시 허용 오차
    DRIFT_TOLERANCE: Decimal = Decimal("0")


class ReportPolicy:
    """리포트 집계 정책"""

    # 순자산 추이 최대 구간 수 (day 간격으로 긴 기간을 요청하는 경우 제한)
    MAX_NETWORTH_PERIODS: int = 400

    # 비율(%) 표시 자릿수
    PERCENT_QUANT: Decimal = Decimal("0.01")
