"""
Web 서비스 패키지

비즈니스 로직 처리 (거래 쓰기 경로는 core.ledger 오케스트레이터가 담당)
"""

from web.services.account_service import AccountService
from web.services.budget_service import BudgetService
from web.services.catalog_service import CatalogService
from web.services.debt_service import DebtService
from web.services.portfolio_service import PortfolioService
from web.services.recurring_service import RecurringService
from web.services.report_service import ReportService

__all__ = [
    "AccountService",
    "BudgetService",
    "CatalogService",
    "DebtService",
    "PortfolioService",
    "RecurringService",
    "ReportService",
]
