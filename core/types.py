"""
타입 정의 모듈

Enum 등 핵심 타입 정의
모든 Enum은 str을 상속하여 문자열 직렬화 가능
"""

from enum import Enum


class AppMode(str, Enum):
    """실행 모드 (운영 / 개발)"""

    PRODUCTION = "production"
    DEVELOPMENT = "development"


class AccountType(str, Enum):
    """계좌 유형"""

    CASH = "CASH"
    BANK = "BANK"
    CARD = "CARD"
    INVESTMENT = "INVESTMENT"
    OTHER = "OTHER"


class CategoryType(str, Enum):
    """카테고리 유형 (거래 유형과 일치해야 함)"""

    INCOME = "INCOME"
    EXPENSE = "EXPENSE"


class TransactionType(str, Enum):
    """일반 거래 유형

    - INCOME: account_id 잔액 증가
    - EXPENSE: account_id 잔액 감소
    - TRANSFER: from_account_id 감소, to_account_id 증가
    """

    INCOME = "INCOME"
    EXPENSE = "EXPENSE"
    TRANSFER = "TRANSFER"


class InvestmentTransactionType(str, Enum):
    """투자 거래 유형

    BUY/SELL만 보유(Holding) 상태를 변경한다.
    """

    BUY = "BUY"
    SELL = "SELL"
    DIVIDEND = "DIVIDEND"
    FEE = "FEE"
    DEPOSIT = "DEPOSIT"
    WITHDRAW = "WITHDRAW"


# 보유 수량을 움직이는 투자 거래 유형
HOLDING_TYPES: frozenset[str] = frozenset({
    InvestmentTransactionType.BUY.value,
    InvestmentTransactionType.SELL.value,
})


class AssetType(str, Enum):
    """투자 자산 유형"""

    STOCK = "STOCK"
    ETF = "ETF"
    FUND = "FUND"
    CRYPTO = "CRYPTO"
    BOND = "BOND"
    OTHER = "OTHER"


class ScheduleType(str, Enum):
    """반복 규칙 주기

    schedule_value 형식:
    - DAILY: 무시
    - WEEKLY: 요일 (SUN, MON, ..., SAT)
    - MONTHLY: 일자 (1~31)
    - YEARLY: "MM-DD" 또는 "DD" (실행 월 기준)
    """

    DAILY = "DAILY"
    WEEKLY = "WEEKLY"
    MONTHLY = "MONTHLY"
    YEARLY = "YEARLY"


class DebtType(str, Enum):
    """채무 유형

    - DEBT: 내가 갚을 돈
    - RECEIVABLE: 내가 받을 돈
    """

    DEBT = "DEBT"
    RECEIVABLE = "RECEIVABLE"


class DebtStatus(str, Enum):
    """채무 상태 (남은 금액이 0이 되면 CLOSED)"""

    OPEN = "OPEN"
    CLOSED = "CLOSED"


class ReportInterval(str, Enum):
    """순자산 추이 집계 단위"""

    DAY = "day"
    MONTH = "month"
