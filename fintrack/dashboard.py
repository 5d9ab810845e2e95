"""Cross-source dashboard metrics: health score, net worth, cash flow and reports."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Callable, Dict, Iterable, List, Optional

from fintrack.analytics import (
    MonthlyCashflow,
    expenses_by_category,
    income_by_source,
    monthly_income_expense_trend,
)
from fintrack.formatting import round_half_up
from fintrack.records import ZERO, Debt, Expense, Income, Investment, coerce_amount

logger = logging.getLogger(__name__)

HUNDRED = Decimal("100")
COMPONENT_MAX = Decimal("25")
NEUTRAL_HEALTH_SCORE = 40
MIN_INVESTMENT_BENCHMARK = Decimal("1000")

REPORT_RANGES = {"thisMonth", "last3Months", "thisYear", "allTime"}


@dataclass(frozen=True)
class FinancialSnapshot:
    total_income: Decimal = ZERO
    total_expenses: Decimal = ZERO
    total_debt: Decimal = ZERO
    total_investment_value: Decimal = ZERO
    monthly_income: Decimal = ZERO
    monthly_expenses: Decimal = ZERO
    monthly_debt_payments: Decimal = ZERO


@dataclass(frozen=True)
class HealthScore:
    score: int
    has_health_data: bool
    emergency_fund: Decimal = ZERO
    debt_ratio: Decimal = ZERO
    savings_rate: Decimal = ZERO
    investments: Decimal = ZERO


@dataclass(frozen=True)
class DashboardOverview:
    snapshot: FinancialSnapshot
    health: HealthScore
    net_worth: Decimal
    cash_flow: Decimal
    savings_rate: Decimal


@dataclass(frozen=True)
class ReportSummary:
    date_range: str
    total_income: Decimal
    total_expenses: Decimal
    net_cash_flow: Decimal
    total_debt: Decimal
    total_investments: Decimal
    expenses_by_category: Dict[str, Decimal]
    income_by_source: Dict[str, Decimal]
    monthly_trend: List[MonthlyCashflow]


def build_financial_snapshot(
    expenses: Iterable[Expense] = (),
    incomes: Iterable[Income] = (),
    debts: Iterable[Debt] = (),
    investments: Iterable[Investment] = (),
    today: Optional[date] = None,
) -> FinancialSnapshot:
    """Collapse raw records into all-time totals and current-month figures.

    Monthly debt payments are the minimum payments of active debts.
    """
    today = today or date.today()
    expenses = list(expenses)
    incomes = list(incomes)
    debts = list(debts)

    def in_current_month(value: date) -> bool:
        return value.year == today.year and value.month == today.month

    return FinancialSnapshot(
        total_income=sum((income.amount for income in incomes), ZERO),
        total_expenses=sum((expense.amount for expense in expenses), ZERO),
        total_debt=sum((debt.current_balance for debt in debts), ZERO),
        total_investment_value=sum((inv.current_value for inv in investments), ZERO),
        monthly_income=sum(
            (income.amount for income in incomes if in_current_month(income.date)), ZERO
        ),
        monthly_expenses=sum(
            (expense.amount for expense in expenses if in_current_month(expense.date)), ZERO
        ),
        monthly_debt_payments=sum(
            (debt.minimum_payment for debt in debts if debt.status == "active"), ZERO
        ),
    )


def calculate_financial_health_score(snapshot: FinancialSnapshot) -> HealthScore:
    """Score financial health from 0 to 100 as four components worth 25 each.

    The score is only computed when there is both income and spending this
    month. Otherwise it is a neutral 40 if any income or investments exist,
    and 0 when there is nothing to go on.
    """
    income = snapshot.monthly_income
    expenses = snapshot.monthly_expenses
    debt_payments = snapshot.monthly_debt_payments

    if income <= ZERO or expenses <= ZERO:
        has_some_data = snapshot.total_income > ZERO or snapshot.total_investment_value > ZERO
        return HealthScore(score=NEUTRAL_HEALTH_SCORE if has_some_data else 0, has_health_data=False)

    surplus = income - expenses - debt_payments
    emergency_fund = min(max(surplus / expenses / 3, ZERO) * COMPONENT_MAX, COMPONENT_MAX)
    debt_ratio = max(COMPONENT_MAX - (debt_payments / income) * HUNDRED, ZERO)
    savings = min(max((surplus / income) * HUNDRED / 2, ZERO), COMPONENT_MAX)
    benchmark = max(income * 12, MIN_INVESTMENT_BENCHMARK)
    investments = min(snapshot.total_investment_value / benchmark * HUNDRED, COMPONENT_MAX)

    total = round_half_up(emergency_fund + debt_ratio + savings + investments)
    return HealthScore(
        score=min(int(total), 100),
        has_health_data=True,
        emergency_fund=emergency_fund,
        debt_ratio=debt_ratio,
        savings_rate=savings,
        investments=investments,
    )


def calculate_net_worth(snapshot: FinancialSnapshot) -> Decimal:
    return (
        snapshot.total_income
        + snapshot.total_investment_value
        - snapshot.total_expenses
        - snapshot.total_debt
    )


def calculate_cash_flow(snapshot: FinancialSnapshot) -> Decimal:
    return snapshot.monthly_income - snapshot.monthly_expenses - snapshot.monthly_debt_payments


def calculate_savings_rate(
    net_monthly_savings: Decimal | int | float, monthly_income: Decimal | int | float
) -> Decimal:
    """Fraction of monthly income kept (0.25 means a quarter)."""
    monthly_income = coerce_amount(monthly_income)
    if monthly_income == ZERO:
        return ZERO
    return coerce_amount(net_monthly_savings) / monthly_income


def build_dashboard_overview(
    expenses: Iterable[Expense] = (),
    incomes: Iterable[Income] = (),
    debts: Iterable[Debt] = (),
    investments: Iterable[Investment] = (),
    today: Optional[date] = None,
) -> DashboardOverview:
    snapshot = build_financial_snapshot(expenses, incomes, debts, investments, today)
    cash_flow = calculate_cash_flow(snapshot)
    health = calculate_financial_health_score(snapshot)
    logger.debug(
        "Dashboard overview computed",
        extra={"health_score": health.score, "has_health_data": health.has_health_data},
    )
    return DashboardOverview(
        snapshot=snapshot,
        health=health,
        net_worth=calculate_net_worth(snapshot),
        cash_flow=cash_flow,
        savings_rate=calculate_savings_rate(cash_flow, snapshot.monthly_income),
    )


def date_range_filter(date_range: str, today: Optional[date] = None) -> Callable[[date], bool]:
    """Predicate for the report presets; unknown names include everything."""
    today = today or date.today()
    if date_range == "thisMonth":
        return lambda value: value.year == today.year and value.month == today.month
    if date_range == "last3Months":
        month_index = today.year * 12 + today.month - 1 - 3
        cutoff = date(month_index // 12, month_index % 12 + 1, 1)
        return lambda value: value >= cutoff
    if date_range == "thisYear":
        return lambda value: value.year == today.year
    return lambda value: True


def summarize_report(
    expenses: Iterable[Expense] = (),
    incomes: Iterable[Income] = (),
    debts: Iterable[Debt] = (),
    investments: Iterable[Investment] = (),
    date_range: str = "allTime",
    today: Optional[date] = None,
) -> ReportSummary:
    """Totals for the selected range; the monthly trend always spans six months."""
    today = today or date.today()
    expenses = list(expenses)
    incomes = list(incomes)
    keep = date_range_filter(date_range, today)
    filtered_expenses = [expense for expense in expenses if keep(expense.date)]
    filtered_incomes = [income for income in incomes if keep(income.date)]

    total_income = sum((income.amount for income in filtered_incomes), ZERO)
    total_expenses = sum((expense.amount for expense in filtered_expenses), ZERO)
    return ReportSummary(
        date_range=date_range if date_range in REPORT_RANGES else "allTime",
        total_income=total_income,
        total_expenses=total_expenses,
        net_cash_flow=total_income - total_expenses,
        total_debt=sum((debt.current_balance for debt in debts), ZERO),
        total_investments=sum((inv.current_value for inv in investments), ZERO),
        expenses_by_category=expenses_by_category(filtered_expenses),
        income_by_source=income_by_source(filtered_incomes),
        monthly_trend=monthly_income_expense_trend(expenses, incomes, months=6, today=today),
    )
