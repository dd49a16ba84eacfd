"""
Web 모델 패키지

Pydantic 스키마 정의
"""

from web.models.requests import (
    AccountCreateRequest,
    AccountUpdateRequest,
    AssetCreateRequest,
    BudgetItemRequest,
    BudgetUpsertRequest,
    CategoryCreateRequest,
    DebtCreateRequest,
    DebtPaymentRequest,
    DebtUpdateRequest,
    InvestmentTransactionCreateRequest,
    InvestmentTransactionUpdateRequest,
    RecurringRuleCreateRequest,
    RecurringRuleUpdateRequest,
    TagCreateRequest,
    TransactionCreateRequest,
    TransactionUpdateRequest,
)
from web.models.responses import (
    AccountResponse,
    AssetResponse,
    BudgetResponse,
    BudgetUsageResponse,
    CategoryResponse,
    DebtResponse,
    ErrorResponse,
    HealthResponse,
    HoldingDetailResponse,
    HoldingResponse,
    InvestmentPerformanceResponse,
    InvestmentTransactionListResponse,
    InvestmentTransactionResponse,
    MonthlySummaryResponse,
    NetWorthResponse,
    PortfolioSummaryResponse,
    RebuildResponse,
    ReconcileResponse,
    RecurringRuleResponse,
    TagResponse,
    TransactionListResponse,
    TransactionResponse,
)

__all__ = [
    # Requests
    "AccountCreateRequest",
    "AccountUpdateRequest",
    "AssetCreateRequest",
    "BudgetItemRequest",
    "BudgetUpsertRequest",
    "CategoryCreateRequest",
    "DebtCreateRequest",
    "DebtPaymentRequest",
    "DebtUpdateRequest",
    "InvestmentTransactionCreateRequest",
    "InvestmentTransactionUpdateRequest",
    "RecurringRuleCreateRequest",
    "RecurringRuleUpdateRequest",
    "TagCreateRequest",
    "TransactionCreateRequest",
    "TransactionUpdateRequest",
    # Responses
    "AccountResponse",
    "AssetResponse",
    "BudgetResponse",
    "BudgetUsageResponse",
    "CategoryResponse",
    "DebtResponse",
    "ErrorResponse",
    "HealthResponse",
    "HoldingDetailResponse",
    "HoldingResponse",
    "InvestmentPerformanceResponse",
    "InvestmentTransactionListResponse",
    "InvestmentTransactionResponse",
    "MonthlySummaryResponse",
    "NetWorthResponse",
    "PortfolioSummaryResponse",
    "RebuildResponse",
    "ReconcileResponse",
    "RecurringRuleResponse",
    "TagResponse",
    "TransactionListResponse",
    "TransactionResponse",
]
