from __future__ import annotations

import math
from calendar import monthrange
from dataclasses import dataclass, replace
from datetime import date
from decimal import Decimal
from typing import Iterable, Optional

from fintrack.formatting import round_half_up
from fintrack.records import ZERO, Debt, coerce_amount

HUNDRED = Decimal("100")

PAYMENTS_PER_MONTH = {
    "weekly": 52 / 12,
    "bi-weekly": 26 / 12,
    "monthly": 1.0,
}


@dataclass(frozen=True)
class DebtSummary:
    total_original: Decimal
    total_balance: Decimal
    total_paid: Decimal
    monthly_minimum_payments: Decimal
    active_count: int
    progress_percentage: int


def debt_total_paid(debt: Debt) -> Decimal:
    return debt.original_amount - debt.current_balance


def debt_progress_percentage(debt: Debt) -> int:
    if debt.original_amount <= ZERO:
        return 0
    return int(round_half_up(debt_total_paid(debt) / debt.original_amount * HUNDRED))


def calculate_payoff_date(debt: Debt, today: Optional[date] = None) -> Optional[date]:
    """Project when the balance reaches zero paying the minimum each period.

    Returns ``None`` when there is nothing to pay off or the payment never
    outgrows the interest.
    """
    if debt.current_balance <= ZERO or debt.minimum_payment <= ZERO:
        return None
    today = today or date.today()

    balance = float(debt.current_balance)
    monthly_rate = float(debt.interest_rate) / 100 / 12
    payment = float(debt.minimum_payment) * PAYMENTS_PER_MONTH.get(debt.repayment_frequency, 1.0)

    if monthly_rate == 0:
        months = balance / payment
    else:
        coverage = 1 - (balance * monthly_rate) / payment
        if coverage <= 0:
            return None
        months = -math.log(coverage) / math.log(1 + monthly_rate)

    if not math.isfinite(months) or months <= 0:
        return None
    return _add_months(today, math.ceil(months))


def apply_payment(debt: Debt, amount: Decimal | int | float) -> Debt:
    """Return the debt after a payment; overpayments are capped at the balance."""
    amount = coerce_amount(amount)
    if amount <= ZERO:
        raise ValueError("Payment amount must be positive")
    if debt.status != "active":
        raise ValueError("Cannot add payment to inactive debt")
    balance = max(ZERO, debt.current_balance - min(amount, debt.current_balance))
    status = "closed" if balance == ZERO else debt.status
    return replace(debt, current_balance=balance, status=status)


def calculate_debt_summary(debts: Iterable[Debt]) -> DebtSummary:
    debts = list(debts)
    total_original = sum((debt.original_amount for debt in debts), ZERO)
    total_balance = sum((debt.current_balance for debt in debts), ZERO)
    active = [debt for debt in debts if debt.status == "active"]
    progress = 0
    if total_original > ZERO:
        progress = int(round_half_up((total_original - total_balance) / total_original * HUNDRED))
    return DebtSummary(
        total_original=total_original,
        total_balance=total_balance,
        total_paid=total_original - total_balance,
        monthly_minimum_payments=sum((debt.minimum_payment for debt in active), ZERO),
        active_count=len(active),
        progress_percentage=progress,
    )


def _add_months(start_date: date, months: int) -> date:
    total_month = start_date.month - 1 + months
    year = start_date.year + total_month // 12
    month = total_month % 12 + 1
    day = min(start_date.day, monthrange(year, month)[1])
    return date(year, month, day)
