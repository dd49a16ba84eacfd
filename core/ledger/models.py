"""
Ledger 스냅샷 모델

변경 직전에 읽어 둔 행의 불변 스냅샷.
역산(reversal)은 항상 이 스냅샷의 "이전 값"으로 수행한다.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any

from core.utils.money import db_decimal
from core.utils.timezone import from_db_ts

TRANSACTION_COLUMNS = """
    id, user_id, type, amount, currency, occurred_at,
    account_id, category_id, from_account_id, to_account_id,
    note, is_deleted, created_at, updated_at
"""

INVESTMENT_TRANSACTION_COLUMNS = """
    id, user_id, asset_id, type,
    units, price_per_unit, gross_amount, fee_amount, tax_amount, net_amount,
    cost_basis_per_unit, occurred_at, note, cash_account_id,
    created_at, updated_at
"""

RECURRING_RULE_COLUMNS = """
    id, user_id, name, type, amount, currency, category_id, account_id,
    schedule_type, schedule_value, next_run_at, is_active,
    created_at, updated_at
"""

DEBT_COLUMNS = """
    id, user_id, type, person_name, amount_total, amount_remaining,
    due_date, interest_rate, minimum_payment, status,
    created_at, updated_at
"""


def _str_or_none(value: Decimal | None) -> str | None:
    return str(value) if value is not None else None


@dataclass(frozen=True)
class TransactionSnapshot:
    """일반 거래 스냅샷"""

    id: str
    user_id: str
    type: str
    amount: Decimal
    currency: str
    occurred_at: datetime
    account_id: str | None
    category_id: str | None
    from_account_id: str | None
    to_account_id: str | None
    note: str | None
    is_deleted: bool
    created_at: str
    updated_at: str

    @classmethod
    def from_row(cls, row: tuple[Any, ...]) -> "TransactionSnapshot":
        """TRANSACTION_COLUMNS 순서의 행에서 생성"""
        return cls(
            id=row[0],
            user_id=row[1],
            type=row[2],
            amount=Decimal(row[3]),
            currency=row[4],
            occurred_at=from_db_ts(row[5]),
            account_id=row[6],
            category_id=row[7],
            from_account_id=row[8],
            to_account_id=row[9],
            note=row[10],
            is_deleted=bool(row[11]),
            created_at=row[12],
            updated_at=row[13],
        )

    def to_dict(self, tag_ids: list[str] | None = None) -> dict[str, Any]:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "type": self.type,
            "amount": str(self.amount),
            "currency": self.currency,
            "occurred_at": self.occurred_at.isoformat(),
            "account_id": self.account_id,
            "category_id": self.category_id,
            "from_account_id": self.from_account_id,
            "to_account_id": self.to_account_id,
            "note": self.note,
            "is_deleted": self.is_deleted,
            "tag_ids": tag_ids or [],
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }


@dataclass(frozen=True)
class InvestmentTransactionSnapshot:
    """투자 거래 스냅샷"""

    id: str
    user_id: str
    asset_id: str
    type: str
    units: Decimal | None
    price_per_unit: Decimal | None
    gross_amount: Decimal | None
    fee_amount: Decimal
    tax_amount: Decimal
    net_amount: Decimal
    cost_basis_per_unit: Decimal | None
    occurred_at: datetime
    note: str | None
    cash_account_id: str | None
    created_at: str
    updated_at: str

    @classmethod
    def from_row(cls, row: tuple[Any, ...]) -> "InvestmentTransactionSnapshot":
        """INVESTMENT_TRANSACTION_COLUMNS 순서의 행에서 생성"""
        return cls(
            id=row[0],
            user_id=row[1],
            asset_id=row[2],
            type=row[3],
            units=db_decimal(row[4]),
            price_per_unit=db_decimal(row[5]),
            gross_amount=db_decimal(row[6]),
            fee_amount=Decimal(row[7]),
            tax_amount=Decimal(row[8]),
            net_amount=Decimal(row[9]),
            cost_basis_per_unit=db_decimal(row[10]),
            occurred_at=from_db_ts(row[11]),
            note=row[12],
            cash_account_id=row[13],
            created_at=row[14],
            updated_at=row[15],
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "asset_id": self.asset_id,
            "type": self.type,
            "units": _str_or_none(self.units),
            "price_per_unit": _str_or_none(self.price_per_unit),
            "gross_amount": _str_or_none(self.gross_amount),
            "fee_amount": str(self.fee_amount),
            "tax_amount": str(self.tax_amount),
            "net_amount": str(self.net_amount),
            "cost_basis_per_unit": _str_or_none(self.cost_basis_per_unit),
            "occurred_at": self.occurred_at.isoformat(),
            "note": self.note,
            "cash_account_id": self.cash_account_id,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }


@dataclass(frozen=True)
class RecurringRuleSnapshot:
    """반복 규칙 스냅샷"""

    id: str
    user_id: str
    name: str
    type: str
    amount: Decimal
    currency: str
    category_id: str
    account_id: str
    schedule_type: str
    schedule_value: str
    next_run_at: datetime
    is_active: bool
    created_at: str
    updated_at: str

    @classmethod
    def from_row(cls, row: tuple[Any, ...]) -> "RecurringRuleSnapshot":
        """RECURRING_RULE_COLUMNS 순서의 행에서 생성"""
        return cls(
            id=row[0],
            user_id=row[1],
            name=row[2],
            type=row[3],
            amount=Decimal(row[4]),
            currency=row[5],
            category_id=row[6],
            account_id=row[7],
            schedule_type=row[8],
            schedule_value=row[9],
            next_run_at=from_db_ts(row[10]),
            is_active=bool(row[11]),
            created_at=row[12],
            updated_at=row[13],
        )

    def to_dict(self, runs: list[dict[str, Any]] | None = None) -> dict[str, Any]:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "name": self.name,
            "type": self.type,
            "amount": str(self.amount),
            "currency": self.currency,
            "category_id": self.category_id,
            "account_id": self.account_id,
            "schedule_type": self.schedule_type,
            "schedule_value": self.schedule_value,
            "next_run_at": self.next_run_at.isoformat(),
            "is_active": self.is_active,
            "runs": runs or [],
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }


@dataclass(frozen=True)
class DebtSnapshot:
    """채무/채권 스냅샷"""

    id: str
    user_id: str
    type: str
    person_name: str
    amount_total: Decimal
    amount_remaining: Decimal
    due_date: datetime | None
    interest_rate: Decimal | None
    minimum_payment: Decimal | None
    status: str
    created_at: str
    updated_at: str

    @classmethod
    def from_row(cls, row: tuple[Any, ...]) -> "DebtSnapshot":
        """DEBT_COLUMNS 순서의 행에서 생성"""
        return cls(
            id=row[0],
            user_id=row[1],
            type=row[2],
            person_name=row[3],
            amount_total=Decimal(row[4]),
            amount_remaining=Decimal(row[5]),
            due_date=from_db_ts(row[6]),
            interest_rate=db_decimal(row[7]),
            minimum_payment=db_decimal(row[8]),
            status=row[9],
            created_at=row[10],
            updated_at=row[11],
        )

    def to_dict(self, payments: list[dict[str, Any]] | None = None) -> dict[str, Any]:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "type": self.type,
            "person_name": self.person_name,
            "amount_total": str(self.amount_total),
            "amount_remaining": str(self.amount_remaining),
            "due_date": self.due_date.isoformat() if self.due_date else None,
            "interest_rate": _str_or_none(self.interest_rate),
            "minimum_payment": _str_or_none(self.minimum_payment),
            "status": self.status,
            "payments": payments or [],
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }
