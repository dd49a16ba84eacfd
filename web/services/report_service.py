"""
리포트 서비스

- 월간 수입/지출 요약 (카테고리별 지출)
- 예산 사용률
- 순자산 추이 (계좌 잔액 + 투자 원가, 구간 끝 시점 기준으로 이력에서 재계산)
- 투자 성과 (원가 기준, 시세 연동 없음)

기간 경계는 모두 UTC. 날짜 범위 [from, to]는 [from 00:00, to 다음 날 00:00)로 다룬다.
"""

import logging
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal
from typing import Any

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.constants import ReportPolicy
from core.domain.holding import replay_holdings
from core.errors import ValidationError
from core.ledger.budgets import BudgetLedger, month_range, validate_period
from core.ledger.holdings import HoldingAccumulator
from core.ledger.reconcile import BalanceReconciler
from core.types import InvestmentTransactionType, ReportInterval, TransactionType
from core.utils.money import ZERO
from core.utils.timezone import to_db_ts

logger = logging.getLogger(__name__)

UNCATEGORIZED = "uncategorized"


def _percent(part: Decimal, whole: Decimal) -> str:
    if whole <= ZERO:
        return "0.00"
    return str((part / whole * 100).quantize(ReportPolicy.PERCENT_QUANT))


def _day_start(day: date) -> datetime:
    return datetime.combine(day, time.min, tzinfo=timezone.utc)


def _date_range(start: date, end: date) -> tuple[datetime, datetime]:
    """[start 00:00, end 다음 날 00:00)

    Raises:
        ValidationError: start가 end보다 늦은 경우
    """
    if start > end:
        raise ValidationError("from must not be after to")
    return _day_start(start), _day_start(end + timedelta(days=1))


def _periods(start: date, end: date, interval: str) -> list[tuple[str, datetime]]:
    """(라벨, 구간 끝 시각) 목록

    구간 끝은 다음 구간 시작이며 to 다음 날 00:00을 넘지 않는다.
    """
    _, limit = _date_range(start, end)
    periods: list[tuple[str, datetime]] = []

    if interval == ReportInterval.DAY.value:
        day = start
        while day <= end:
            periods.append((day.isoformat(), _day_start(day + timedelta(days=1))))
            day += timedelta(days=1)
    else:
        year, month = start.year, start.month
        while (year, month) <= (end.year, end.month):
            _, next_start = month_range(year, month)
            periods.append((f"{year}-{month:02d}", min(next_start, limit)))
            year, month = next_start.year, next_start.month

    if len(periods) > ReportPolicy.MAX_NETWORTH_PERIODS:
        raise ValidationError(
            f"Too many periods: {len(periods)} (max {ReportPolicy.MAX_NETWORTH_PERIODS})"
        )
    return periods


class ReportService:
    """리포트 서비스

    Args:
        db: SQLite 어댑터
    """

    def __init__(self, db: SQLiteAdapter):
        self.db = db
        self.budgets = BudgetLedger(db)
        self.holdings = HoldingAccumulator(db)
        self.reconciler = BalanceReconciler(db)

    async def monthly_summary(self, user_id: str, year: int, month: int) -> dict[str, Any]:
        """월간 수입/지출 요약

        Returns:
            income, expense, cashflow, by_category (지출 큰 순)
        """
        year, month = validate_period(year, month)
        start, end = month_range(year, month)

        rows = await self.db.fetchall(
            """
            SELECT t.type, t.amount, t.category_id, c.name
            FROM transactions t
            LEFT JOIN categories c ON c.id = t.category_id
            WHERE t.user_id = ? AND t.is_deleted = 0
              AND t.occurred_at >= ? AND t.occurred_at < ?
            """,
            (user_id, to_db_ts(start), to_db_ts(end)),
        )

        income = ZERO
        expense = ZERO
        by_category: dict[str, dict[str, Any]] = {}
        for tx_type, amount, category_id, category_name in rows:
            value = Decimal(amount)
            if tx_type == TransactionType.INCOME.value:
                income += value
            elif tx_type == TransactionType.EXPENSE.value:
                expense += value
                key = category_id or UNCATEGORIZED
                entry = by_category.setdefault(key, {
                    "category_id": key,
                    "category_name": category_name or "Uncategorized",
                    "total": ZERO,
                })
                entry["total"] += value

        categories = sorted(by_category.values(), key=lambda c: (-c["total"], c["category_name"]))
        return {
            "year": year,
            "month": month,
            "income": str(income),
            "expense": str(expense),
            "cashflow": str(income - expense),
            "by_category": [{**c, "total": str(c["total"])} for c in categories],
        }

    async def budget_usage(self, user_id: str, year: int, month: int) -> dict[str, Any]:
        """예산 사용률

        total_spent는 예산 항목에 없는 카테고리를 포함한 그 달 지출 전체.
        """
        year, month = validate_period(year, month)
        budget_id = await self.budgets.find_budget_id(user_id, year, month)
        if budget_id is None:
            return {
                "budget": None,
                "usage": [],
                "total_budgeted": "0",
                "total_spent": "0",
                "total_remaining": "0",
            }

        spent = await self.budgets.spent_by_category(user_id, year, month)
        items = await self.budgets.list_items(budget_id)

        usage = []
        total_budgeted = ZERO
        for item in items:
            limit = Decimal(item["limit_amount"])
            item_spent = spent.get(item["category_id"], ZERO)
            total_budgeted += limit
            usage.append({
                "category_id": item["category_id"],
                "category_name": item["category_name"],
                "budgeted": str(limit),
                "spent": str(item_spent),
                "remaining": str(limit - item_spent),
                "percentage": _percent(item_spent, limit),
                "is_over_budget": item_spent > limit,
            })

        total_spent = sum(spent.values(), ZERO)
        return {
            "budget": {"id": budget_id, "year": year, "month": month},
            "usage": usage,
            "total_budgeted": str(total_budgeted),
            "total_spent": str(total_spent),
            "total_remaining": str(total_budgeted - total_spent),
        }

    async def _active_account_ids(self, user_id: str) -> set[str]:
        rows = await self.db.fetchall(
            "SELECT id FROM accounts WHERE user_id = ? AND is_archived = 0",
            (user_id,),
        )
        return {row[0] for row in rows}

    async def net_worth(
        self,
        user_id: str,
        start: date,
        end: date,
        interval: str = ReportInterval.MONTH.value,
    ) -> dict[str, Any]:
        """순자산 추이

        각 구간 끝 시점의 값 = 보관되지 않은 계좌의 이력 잔액 합
        + 그 시점까지의 BUY/SELL을 재생한 보유 원가 합.

        Raises:
            ValidationError: 잘못된 interval, from > to, 구간 수 초과
        """
        try:
            interval = ReportInterval(interval).value
        except ValueError:
            raise ValidationError(f"Invalid interval: {interval}") from None

        periods = _periods(start, end, interval)
        account_ids = await self._active_account_ids(user_id)
        trades = await self.holdings.load_trades(user_id)

        timeline = []
        for label, until in periods:
            balances = await self.reconciler.expected_balances(user_id, until=until)
            account_total = sum(
                (value for account_id, value in balances.items() if account_id in account_ids),
                ZERO,
            )
            replay = replay_holdings(t for t in trades if t["occurred_at"] < until)
            investment_total = sum(
                (state.cost_basis for state in replay.holdings.values()),
                ZERO,
            )
            timeline.append({
                "period": label,
                "account_balances": str(account_total),
                "investment_value": str(investment_total),
                "net_worth": str(account_total + investment_total),
            })

        current = await self._current_net_worth(user_id)
        logger.debug(
            f"순자산 추이 계산: {len(timeline)}개 구간 ({interval})",
            extra={"user_id": user_id},
        )
        return {
            "from": start.isoformat(),
            "to": end.isoformat(),
            "interval": interval,
            "timeline": timeline,
            "current": current,
        }

    async def _current_net_worth(self, user_id: str) -> dict[str, str]:
        rows = await self.db.fetchall(
            "SELECT current_balance FROM accounts WHERE user_id = ? AND is_archived = 0",
            (user_id,),
        )
        account_total = sum((Decimal(row[0]) for row in rows), ZERO)
        holdings = await self.holdings.list_holdings(user_id)
        investment_total = sum((Decimal(h["cost_basis"]) for h in holdings), ZERO)
        return {
            "account_balances": str(account_total),
            "investment_value": str(investment_total),
            "net_worth": str(account_total + investment_total),
        }

    async def investment_performance(
        self,
        user_id: str,
        start: date,
        end: date,
    ) -> dict[str, Any]:
        """투자 성과 (원가 기준)

        - total_invested: 현재 보유 원가 합
        - realized_pl: 기간 내 SELL의 Σ(net_amount - units × price_per_unit)
        - roi: realized_pl / total_invested × 100
        시세가 없으므로 current_value = total_invested, unrealized_pl = 0.
        """
        range_start, range_end = _date_range(start, end)
        holdings = await self.holdings.list_holdings(user_id)

        total_invested = ZERO
        by_asset = []
        by_type: dict[str, Decimal] = {}
        for holding in holdings:
            cost_basis = Decimal(holding["cost_basis"])
            total_invested += cost_basis
            by_type[holding["asset_type"]] = by_type.get(holding["asset_type"], ZERO) + cost_basis
            by_asset.append({
                "asset_id": holding["asset_id"],
                "symbol": holding["symbol"],
                "asset_name": holding["name"],
                "asset_type": holding["asset_type"],
                "invested": str(cost_basis),
            })

        rows = await self.db.fetchall(
            """
            SELECT units, price_per_unit, net_amount
            FROM investment_transactions
            WHERE user_id = ? AND type = ?
              AND occurred_at >= ? AND occurred_at < ?
            """,
            (
                user_id,
                InvestmentTransactionType.SELL.value,
                to_db_ts(range_start),
                to_db_ts(range_end),
            ),
        )
        realized_pl = ZERO
        for units, price, net_amount in rows:
            if units and price:
                realized_pl += Decimal(net_amount) - Decimal(units) * Decimal(price)

        return {
            "period": {"from": start.isoformat(), "to": end.isoformat()},
            "summary": {
                "total_invested": str(total_invested),
                "current_value": str(total_invested),
                "unrealized_pl": "0",
                "realized_pl": str(realized_pl),
                "total_return": str(realized_pl),
                "roi": _percent(realized_pl, total_invested),
            },
            "by_asset": sorted(by_asset, key=lambda a: a["symbol"]),
            "by_type": [
                {
                    "asset_type": asset_type,
                    "invested": str(invested),
                    "percentage": _percent(invested, total_invested),
                }
                for asset_type, invested in sorted(by_type.items())
            ],
        }
