"""
가계부 Ledger 코어

계좌 잔액과 투자 보유 현황을 거래 이력과 항상 일치하도록 유지하는 쓰기 경로.
모든 변경은 SQLiteAdapter.transaction() 하나 안에서 원자적으로 수행된다.

사용 예시:
```python
from core.ledger import TransactionOrchestrator, InvestmentTransactionOrchestrator

transactions = TransactionOrchestrator(db)
tx = await transactions.create(user_id, {
    "type": "EXPENSE",
    "amount": "12000",
    "currency": "KRW",
    "occurred_at": now_utc(),
    "account_id": account_id,
})

investments = InvestmentTransactionOrchestrator(db)
await investments.create(user_id, {
    "asset_id": asset_id,
    "type": "BUY",
    "units": "10",
    "price_per_unit": "9000",
    "occurred_at": now_utc(),
    "cash_account_id": account_id,
})
```
"""

from core.ledger.balance import BalanceMutator
from core.ledger.holdings import HoldingAccumulator
from core.ledger.investments import InvestmentTransactionOrchestrator
from core.ledger.ownership import OwnershipGuard
from core.ledger.rebuild import HoldingsRebuilder
from core.ledger.reconcile import BalanceDrift, BalanceReconciler
from core.ledger.recurring import RecurringBatchResult, RecurringExecutor
from core.ledger.transactions import TransactionOrchestrator, balance_effects

__all__ = [
    # 쓰기 경로
    "BalanceMutator",
    "HoldingAccumulator",
    "TransactionOrchestrator",
    "InvestmentTransactionOrchestrator",
    "RecurringExecutor",
    "HoldingsRebuilder",
    # 점검
    "BalanceReconciler",
    "BalanceDrift",
    "OwnershipGuard",
    # 결과
    "RecurringBatchResult",
    "balance_effects",
]
