"""Expense and income aggregations behind the analytics and dashboard views.

Every function takes plain record lists and returns chart-ready rows. Empty
input always yields empty or zero-valued output so a view can render while
one of its data sources is unavailable.

Two need/want rules coexist on purpose: the analytics view trusts the
``need_or_want`` flag stored on each expense (:func:`classify_by_field`),
while the dashboard infers the bucket from the category name
(:func:`classify_by_category_keyword`). They can disagree for the same data.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Tuple

from fintrack.formatting import day_key, month_key, month_label, round_half_up
from fintrack.records import ZERO, Expense, Income

logger = logging.getLogger(__name__)

HUNDRED = Decimal("100")

CATEGORY_ICONS = {
    "Food": "🍽️",
    "Transport": "🚗",
    "Entertainment": "🎬",
    "Shopping": "🛍️",
    "Bills": "📄",
    "Health": "🏥",
    "Education": "📚",
    "Travel": "✈️",
    "Uncategorized": "💰",
}
DEFAULT_CATEGORY_ICON = CATEGORY_ICONS["Uncategorized"]

NEED_WANT_STYLES = {
    "need": ("Need", "✅", "#10B981"),
    "want": ("Want", "✨", "#8B5CF6"),
    "unsure": ("Unsure", "🤷", "#F59E0B"),
}

NEED_KEYWORDS = ("food", "groceries", "healthcare", "utilities", "transport", "rent", "housing")
WANT_KEYWORDS = ("entertainment", "shopping", "dining", "travel", "hobbies", "games")

# Days until the next payment for recurring income without a stored date.
FREQUENCY_DAYS = {
    "Daily": 1,
    "Weekly": 7,
    "Monthly": 30,
    "Quarterly": 90,
    "Yearly": 365,
}


@dataclass(frozen=True)
class CategoryShare:
    category: str
    amount: Decimal
    percentage: Decimal
    icon: str


@dataclass(frozen=True)
class CategoryInsight:
    category: str
    amount: Decimal
    percentage: Decimal
    icon: str
    count: int
    average_amount: Decimal
    frequency: Decimal


@dataclass(frozen=True)
class DailyTotal:
    date: str
    amount: Decimal


@dataclass(frozen=True)
class MonthlyTotal:
    month: str
    amount: Decimal


@dataclass(frozen=True)
class MonthlyCashflow:
    month: str
    income: Decimal
    expenses: Decimal
    net: Decimal


@dataclass(frozen=True)
class NeedWantBucket:
    type: str
    amount: Decimal
    count: int
    percentage: Decimal
    count_percentage: Decimal
    icon: str
    color: str


@dataclass(frozen=True)
class DashboardStats:
    total_expenses: int
    total_amount: Decimal
    categories_count: int
    monthly_total: Decimal


@dataclass(frozen=True)
class NextIncome:
    title: Optional[str]
    amount: Decimal
    date: date
    source: str
    frequency: str


@dataclass(frozen=True)
class IncomeSummary:
    total_income: Decimal
    monthly_income: Decimal
    income_sources_count: int
    average_income_per_source: Decimal
    recurring_income_count: int
    next_expected_income: Optional[NextIncome]
    category_breakdown: Dict[str, Tuple[Decimal, int]]
    recent_incomes: List[Income]
    total_entries: int


def get_category_icon(category: str) -> str:
    return CATEGORY_ICONS.get(category, DEFAULT_CATEGORY_ICON)


def category_distribution(expenses: Iterable[Expense]) -> List[CategoryShare]:
    totals: Dict[str, Decimal] = {}
    for expense in expenses:
        category = expense.category or "Other"
        totals[category] = totals.get(category, ZERO) + expense.amount

    grand_total = sum(totals.values(), ZERO)
    shares = [
        CategoryShare(
            category=category,
            amount=amount,
            percentage=_percentage(amount, grand_total),
            icon=get_category_icon(category),
        )
        for category, amount in totals.items()
    ]
    return sorted(shares, key=lambda share: share.amount, reverse=True)


def category_insights(expenses: Iterable[Expense]) -> List[CategoryInsight]:
    expenses = list(expenses)
    counts: Dict[str, int] = {}
    for expense in expenses:
        category = expense.category or "Other"
        counts[category] = counts.get(category, 0) + 1

    insights = []
    for share in category_distribution(expenses):
        count = counts.get(share.category, 0)
        insights.append(
            CategoryInsight(
                category=share.category,
                amount=share.amount,
                percentage=share.percentage,
                icon=share.icon,
                count=count,
                average_amount=share.amount / count if count else ZERO,
                frequency=_percentage(Decimal(count), Decimal(len(expenses))),
            )
        )
    return insights


def daily_trend(
    expenses: Iterable[Expense], days: int = 30, today: Optional[date] = None
) -> List[DailyTotal]:
    """Daily totals for the ``days`` days ending today, zero-filled, oldest first."""
    today = today or date.today()
    start = today - timedelta(days=days - 1)
    totals: Dict[str, Decimal] = {
        day_key(start + timedelta(days=offset)): ZERO for offset in range(max(days, 0))
    }
    for expense in expenses:
        key = day_key(expense.date)
        if key in totals:
            totals[key] += expense.amount
    return [DailyTotal(date=key, amount=amount) for key, amount in sorted(totals.items())]


def monthly_spending(expenses: Iterable[Expense]) -> List[MonthlyTotal]:
    totals: Dict[str, Decimal] = {}
    labels: Dict[str, str] = {}
    for expense in expenses:
        key = month_key(expense.date)
        totals[key] = totals.get(key, ZERO) + expense.amount
        labels.setdefault(key, month_label(expense.date))
    return [MonthlyTotal(month=labels[key], amount=totals[key]) for key in sorted(totals)]


def classify_by_field(expenses: Iterable[Expense]) -> List[NeedWantBucket]:
    """Split spending by each expense's own need/want flag (default: need).

    Buckets with no spending are left out.
    """
    buckets = _bucket_expenses(expenses, lambda expense: expense.need_or_want or "need")
    return [bucket for bucket in buckets if bucket.amount > ZERO]


def classify_by_category_keyword(expenses: Iterable[Expense]) -> List[NeedWantBucket]:
    """Split spending by keywords found in the lower-cased category name.

    Need keywords win over want keywords; anything unmatched is Unsure. All
    three buckets are always returned.
    """
    return _bucket_expenses(expenses, lambda expense: keyword_bucket(expense.category))


def keyword_bucket(category: Optional[str]) -> str:
    """Map a category name to need/want/unsure by keyword.

    Keywords match as substrings rather than whole names, so compound
    categories such as "Food & Dining" or "Monthly Rent" are bucketed by
    the words they contain. Need keywords are checked first, which makes
    "Food & Dining" a need even though "dining" is a want keyword.
    """
    lowered = (category or "").lower()
    if any(keyword in lowered for keyword in NEED_KEYWORDS):
        return "need"
    if any(keyword in lowered for keyword in WANT_KEYWORDS):
        return "want"
    return "unsure"


def monthly_income_expense_trend(
    expenses: Iterable[Expense],
    incomes: Iterable[Income],
    months: int = 6,
    today: Optional[date] = None,
) -> List[MonthlyCashflow]:
    """Income and expense totals for the trailing calendar months, oldest first."""
    today = today or date.today()
    expense_totals = _totals_by_month(expenses)
    income_totals = _totals_by_month(incomes)

    trend = []
    for offset in range(months - 1, -1, -1):
        month_start = _shift_month(today.replace(day=1), -offset)
        key = month_key(month_start)
        income = income_totals.get(key, ZERO)
        spent = expense_totals.get(key, ZERO)
        trend.append(
            MonthlyCashflow(
                month=month_label(month_start),
                income=income,
                expenses=spent,
                net=income - spent,
            )
        )
    return trend


def calculate_dashboard_stats(expenses: Iterable[Expense], today: Optional[date] = None) -> DashboardStats:
    today = today or date.today()
    expenses = list(expenses)
    monthly = [
        expense
        for expense in expenses
        if (expense.created_at or expense.date).year == today.year
        and (expense.created_at or expense.date).month == today.month
    ]
    return DashboardStats(
        total_expenses=len(expenses),
        total_amount=sum((expense.amount for expense in expenses), ZERO),
        categories_count=len({expense.category for expense in expenses if expense.category}),
        monthly_total=sum((expense.amount for expense in monthly), ZERO),
    )


def top_categories(expenses: Iterable[Expense], limit: int = 5) -> List[Tuple[str, Decimal]]:
    return [(share.category, share.amount) for share in category_distribution(expenses)[:limit]]


def recent_expenses(expenses: Iterable[Expense], limit: int = 5) -> List[Expense]:
    ordered = sorted(expenses, key=lambda expense: expense.created_at or expense.date, reverse=True)
    return ordered[:limit]


def income_by_source(incomes: Iterable[Income]) -> Dict[str, Decimal]:
    totals: Dict[str, Decimal] = {}
    for income in incomes:
        source = income.source or "Other"
        totals[source] = totals.get(source, ZERO) + income.amount
    return totals


def expenses_by_category(expenses: Iterable[Expense]) -> Dict[str, Decimal]:
    return {share.category: share.amount for share in category_distribution(expenses)}


def summarize_income(incomes: Iterable[Income], today: Optional[date] = None) -> IncomeSummary:
    today = today or date.today()
    incomes = list(incomes)
    total_income = sum((income.amount for income in incomes), ZERO)
    monthly_income = sum(
        (
            income.amount
            for income in incomes
            if income.date.year == today.year and income.date.month == today.month
        ),
        ZERO,
    )
    sources = {income.source for income in incomes}
    average_per_source = round_half_up(total_income / len(sources), 2) if sources else ZERO

    breakdown: Dict[str, Tuple[Decimal, int]] = {}
    for income in incomes:
        amount, count = breakdown.get(income.category, (ZERO, 0))
        breakdown[income.category] = (amount + income.amount, count + 1)

    recurring = [income for income in incomes if income.is_recurring]
    newest_first = sorted(incomes, key=lambda income: income.date, reverse=True)
    return IncomeSummary(
        total_income=total_income,
        monthly_income=monthly_income,
        income_sources_count=len(sources),
        average_income_per_source=average_per_source,
        recurring_income_count=len(recurring),
        next_expected_income=_next_expected_income(recurring, today),
        category_breakdown=breakdown,
        recent_incomes=newest_first[:5],
        total_entries=len(incomes),
    )


def _next_expected_income(recurring: List[Income], today: date) -> Optional[NextIncome]:
    upcoming = []
    for income in recurring:
        next_date = income.next_occurrence
        if next_date is None and income.frequency in FREQUENCY_DAYS:
            next_date = today + timedelta(days=FREQUENCY_DAYS[income.frequency])
        if next_date is not None and next_date > today:
            upcoming.append((next_date, income))
    if not upcoming:
        return None
    next_date, income = min(upcoming, key=lambda item: item[0])
    return NextIncome(
        title=income.title,
        amount=income.amount,
        date=next_date,
        source=income.source,
        frequency=income.frequency,
    )


def _bucket_expenses(expenses: Iterable[Expense], classify) -> List[NeedWantBucket]:
    totals = {key: ZERO for key in NEED_WANT_STYLES}
    counts = {key: 0 for key in NEED_WANT_STYLES}
    for expense in expenses:
        key = classify(expense)
        if key not in totals:
            logger.debug("Unknown need/want value, counting as unsure", extra={"value": key})
            key = "unsure"
        totals[key] += expense.amount
        counts[key] += 1

    total_amount = sum(totals.values(), ZERO)
    total_count = Decimal(sum(counts.values()))
    buckets = []
    for key, (label, icon, color) in NEED_WANT_STYLES.items():
        buckets.append(
            NeedWantBucket(
                type=label,
                amount=totals[key],
                count=counts[key],
                percentage=_percentage(totals[key], total_amount),
                count_percentage=_percentage(Decimal(counts[key]), total_count),
                icon=icon,
                color=color,
            )
        )
    return buckets


def _totals_by_month(records: Iterable[Expense | Income]) -> Dict[str, Decimal]:
    totals: Dict[str, Decimal] = {}
    for record in records:
        key = month_key(record.date)
        totals[key] = totals.get(key, ZERO) + record.amount
    return totals


def _percentage(part: Decimal, whole: Decimal) -> Decimal:
    if whole <= ZERO:
        return ZERO
    return round_half_up(part / whole * HUNDRED, 1)


def _shift_month(value: date, months: int) -> date:
    month_index = (value.year * 12 + value.month - 1) + months
    return date(month_index // 12, month_index % 12 + 1, 1)
