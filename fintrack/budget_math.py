from __future__ import annotations

import logging
from calendar import monthrange
from dataclasses import dataclass, replace
from datetime import date
from decimal import Decimal
from typing import Any, Iterable, List, Mapping, Optional, Tuple

from fintrack.formatting import round_half_up
from fintrack.records import ZERO, Budget, Expense, coerce_amount, coerce_date

logger = logging.getLogger(__name__)

HUNDRED = Decimal("100")

BUDGET_CATEGORIES = {
    "food": "Food & Dining",
    "transport": "Transportation",
    "entertainment": "Entertainment",
    "shopping": "Shopping",
    "bills": "Bills & Utilities",
    "health": "Health & Medical",
    "education": "Education",
    "travel": "Travel",
    "others": "Others",
}

PRIORITY_LEVELS = {
    "essential": "Essential",
    "flexible": "Flexible",
    "luxury": "Luxury",
}

DEFAULT_ALERT_THRESHOLDS = {
    "alert50": True,
    "alert75": True,
    "alert100": True,
    "alert_exceeded": True,
}

ALERT_THRESHOLDS: Tuple[Tuple[int, str, str], ...] = (
    (50, "alert50", "50% of budget used"),
    (75, "alert75", "75% of budget used"),
    (100, "alert100", "Budget fully used"),
)

# Expense categories that count towards a budget of the given (lower-cased) category.
CATEGORY_ALIASES = {
    "food": {"food", "food & dining", "fooddining"},
    "food & dining": {"food", "food & dining", "fooddining"},
    "transport": {"transport", "transportation"},
    "transportation": {"transport", "transportation"},
}


@dataclass(frozen=True)
class BudgetAlert:
    type: str
    message: str
    percentage: Optional[int] = None


@dataclass(frozen=True)
class BudgetsSummary:
    total_budget: Decimal
    total_spent: Decimal
    total_remaining: Decimal
    categories_count: int
    over_budget_count: int
    average_progress: Decimal


@dataclass(frozen=True)
class ValidationIssue:
    field: str
    message: str


@dataclass(frozen=True)
class ValidationResult:
    is_valid: bool
    errors: Tuple[ValidationIssue, ...]

    def messages_for(self, field: str) -> List[str]:
        return [issue.message for issue in self.errors if issue.field == field]


def calculate_remaining(
    amount: Decimal | int | float,
    spent: Decimal | int | float,
    rollover_amount: Decimal | int | float = 0,
) -> Decimal:
    remaining = coerce_amount(amount) - coerce_amount(spent) + coerce_amount(rollover_amount)
    return max(ZERO, remaining)


def is_budget_exceeded(amount: Decimal | int | float, spent: Decimal | int | float) -> bool:
    return coerce_amount(spent) > coerce_amount(amount)


def calculate_progress(amount: Decimal | int | float, spent: Decimal | int | float) -> Decimal:
    """Percentage of the budget used. Over-budget values exceed 100."""
    amount = coerce_amount(amount)
    if amount == ZERO:
        return ZERO
    return coerce_amount(spent) / amount * HUNDRED


def get_first_and_last_day_of_month(value: date) -> Tuple[date, date]:
    last_day = monthrange(value.year, value.month)[1]
    return date(value.year, value.month, 1), date(value.year, value.month, last_day)


def get_next_month_range(value: date) -> Tuple[date, date]:
    if value.month == 12:
        return get_first_and_last_day_of_month(date(value.year + 1, 1, 1))
    return get_first_and_last_day_of_month(date(value.year, value.month + 1, 1))


def create_recurring_budget(previous: Budget) -> Budget:
    start_date, end_date = get_next_month_range(previous.end_date)
    remaining = previous.remaining
    rollover_amount = remaining if previous.rollover_enabled and remaining > ZERO else ZERO
    return replace(
        previous,
        start_date=start_date,
        end_date=end_date,
        spent=ZERO,
        rollover_amount=rollover_amount,
    )


def get_budget_progress_color(progress: Decimal | int | float, is_over_budget: bool = False) -> str:
    progress = coerce_amount(progress)
    if is_over_budget or progress >= 75:
        return "red"
    if progress >= 50:
        return "orange"
    return "green"


def get_budget_status(progress: Decimal | int | float, is_over_budget: bool = False) -> str:
    progress = coerce_amount(progress)
    if is_over_budget:
        return "Over Budget"
    if progress >= 90:
        return "Near Limit"
    if progress >= 75:
        return "On Track"
    return "Under Budget"


def get_triggered_alerts(
    previous_percentage: Decimal | int | float,
    current_percentage: Decimal | int | float,
    alert_settings: Budget | Mapping[str, Any],
) -> List[BudgetAlert]:
    """Return the thresholds crossed when progress moves from previous to current.

    A threshold fires only on the evaluation that crosses it, so repeated
    checks above a threshold stay silent.
    """
    previous = coerce_amount(previous_percentage)
    current = coerce_amount(current_percentage)
    alerts: List[BudgetAlert] = []
    for threshold, flag, message in ALERT_THRESHOLDS:
        if not _alert_enabled(alert_settings, flag):
            continue
        if previous < threshold <= current:
            alerts.append(BudgetAlert(type=str(threshold), message=message, percentage=threshold))
    return alerts


def get_alert_status(budget: Budget) -> List[BudgetAlert]:
    """Return the single most severe alert that currently applies to a budget."""
    progress = min(HUNDRED, calculate_progress(budget.amount, budget.spent))
    if is_budget_exceeded(budget.amount, budget.spent) and budget.alert_exceeded:
        return [BudgetAlert(type="exceeded", message="Budget exceeded!")]
    for threshold, flag, _ in reversed(ALERT_THRESHOLDS):
        if progress >= threshold and getattr(budget, flag):
            return [
                BudgetAlert(
                    type=str(threshold),
                    message=f"{threshold}% budget used",
                    percentage=threshold,
                )
            ]
    return []


def is_expense_in_budget_period(expense_date: date, budget_start: date, budget_end: date) -> bool:
    return budget_start <= expense_date <= budget_end


def calculate_budgets_summary(budgets: Iterable[Budget]) -> BudgetsSummary:
    budgets = list(budgets)
    if not budgets:
        return BudgetsSummary(
            total_budget=ZERO,
            total_spent=ZERO,
            total_remaining=ZERO,
            categories_count=0,
            over_budget_count=0,
            average_progress=ZERO,
        )

    total_budget = sum((budget.amount for budget in budgets), ZERO)
    total_spent = sum((budget.spent for budget in budgets), ZERO)
    total_remaining = sum(
        (
            calculate_remaining(budget.amount, budget.spent, budget.rollover_amount)
            for budget in budgets
        ),
        ZERO,
    )
    over_budget_count = sum(
        1 for budget in budgets if is_budget_exceeded(budget.amount, budget.spent)
    )
    total_progress = sum(
        (calculate_progress(budget.amount, budget.spent) for budget in budgets), ZERO
    )
    return BudgetsSummary(
        total_budget=total_budget,
        total_spent=total_spent,
        total_remaining=total_remaining,
        categories_count=len({budget.category for budget in budgets}),
        over_budget_count=over_budget_count,
        average_progress=round_half_up(total_progress / len(budgets), 2),
    )


def find_budgets_needing_renewal(
    budgets: Iterable[Budget], today: Optional[date] = None
) -> List[Budget]:
    today = today or date.today()
    return [budget for budget in budgets if budget.is_recurring and budget.end_date < today]


def sync_budget_spending(budgets: Iterable[Budget], expenses: Iterable[Expense]) -> List[Budget]:
    """Recompute each budget's ``spent`` from the expenses that fall inside it.

    Category matching ignores case and folds the common food and transport
    spellings together. Budgets with no matching expenses end up at zero.
    """
    expenses = list(expenses)
    synced: List[Budget] = []
    for budget in budgets:
        accepted = _matching_categories(budget.category)
        matching = [
            expense
            for expense in expenses
            if expense.category.strip().lower() in accepted
            and is_expense_in_budget_period(expense.date, budget.start_date, budget.end_date)
        ]
        spent = sum((expense.amount for expense in matching), ZERO)
        logger.debug(
            "Synced budget spending",
            extra={"category": budget.category, "expense_count": len(matching)},
        )
        synced.append(replace(budget, spent=spent))
    return synced


def apply_expense_to_budget(budget: Budget, expense: Expense) -> Tuple[Budget, List[BudgetAlert]]:
    """Add one expense to a budget and report the alert thresholds it crossed.

    The expense must share the budget's category (aliases allowed) and fall
    inside the budget period. Alerts are measured on progress capped at 100.
    """
    if expense.amount <= ZERO:
        raise ValueError("Valid expense amount is required")
    if expense.category.strip().lower() not in _matching_categories(budget.category):
        raise ValueError(
            f"Expense category '{expense.category}' does not match budget category "
            f"'{budget.category}'"
        )
    if not is_expense_in_budget_period(expense.date, budget.start_date, budget.end_date):
        raise ValueError("Expense date is outside budget period")

    previous = min(HUNDRED, calculate_progress(budget.amount, budget.spent))
    updated = replace(budget, spent=budget.spent + expense.amount)
    current = min(HUNDRED, calculate_progress(updated.amount, updated.spent))
    alerts = get_triggered_alerts(previous, current, updated)
    logger.debug(
        "Applied expense to budget",
        extra={"category": budget.category, "alert_count": len(alerts)},
    )
    return updated, alerts


def validate_budget_data(data: Mapping[str, Any]) -> ValidationResult:
    errors: List[ValidationIssue] = []

    name = data.get("name")
    if not name or not str(name).strip():
        errors.append(ValidationIssue("name", "Budget name is required"))

    if not data.get("category"):
        errors.append(ValidationIssue("category", "Category is required"))

    amount = _parse_amount(data.get("amount"))
    if amount is None or amount <= ZERO:
        errors.append(ValidationIssue("amount", "Budget amount must be positive"))

    start_date = _parse_date(data, "start_date", "startDate")
    end_date = _parse_date(data, "end_date", "endDate")
    if start_date is None:
        errors.append(ValidationIssue("start_date", "Start date is required"))
    if end_date is None:
        errors.append(ValidationIssue("end_date", "End date is required"))
    if start_date is not None and end_date is not None and start_date >= end_date:
        errors.append(ValidationIssue("end_date", "End date must be after start date"))

    return ValidationResult(is_valid=not errors, errors=tuple(errors))


def _alert_enabled(settings: Budget | Mapping[str, Any], flag: str) -> bool:
    if isinstance(settings, Mapping):
        return bool(settings.get(flag))
    return bool(getattr(settings, flag, False))


def _matching_categories(category: str) -> set[str]:
    normalized = category.strip().lower()
    return CATEGORY_ALIASES.get(normalized, {normalized})


def _parse_amount(value: Any) -> Optional[Decimal]:
    if value is None or value == "":
        return None
    try:
        return coerce_amount(value)
    except (TypeError, ValueError):
        return None


def _parse_date(data: Mapping[str, Any], *keys: str) -> Optional[date]:
    for key in keys:
        value = data.get(key)
        if value:
            try:
                return coerce_date(value)
            except ValueError:
                return None
    return None
