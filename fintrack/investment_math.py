from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date
from decimal import Decimal
from typing import Callable, Dict, Iterable, List, Optional

from fintrack.formatting import format_currency, format_percent
from fintrack.records import ZERO, Investment, SIPTransaction, coerce_amount, coerce_date

HUNDRED = Decimal("100")
DAYS_PER_YEAR = Decimal("365.25")

INVESTMENT_TYPE_NAMES = {
    "stocks": "Stocks",
    "mutual-fund": "Mutual Funds",
    "crypto": "Cryptocurrency",
    "bonds": "Bonds",
    "real-estate": "Real Estate",
    "etf": "ETF",
    "gold": "Gold",
    "ppf": "PPF",
    "nps": "NPS",
    "custom": "Custom",
}

RISK_LEVEL_COLORS = {
    "low": "bg-green-100 text-green-800",
    "moderate": "bg-yellow-100 text-yellow-800",
    "high": "bg-red-100 text-red-800",
}
DEFAULT_RISK_COLOR = "bg-gray-100 text-gray-800"


@dataclass(frozen=True)
class PnL:
    amount: Decimal
    percent: Decimal


@dataclass(frozen=True)
class AllocationEntry:
    type: str
    total_invested: Decimal
    current_value: Decimal
    count: int
    pnl: Decimal
    percentage: Decimal
    pnl_percent: Decimal


@dataclass(frozen=True)
class PortfolioSummary:
    total_invested: Decimal
    current_value: Decimal
    count: int
    sip_count: int
    total_sip_invested: Decimal
    total_pnl: Decimal
    pnl_percent: Decimal


@dataclass(frozen=True)
class InvestmentFilters:
    type: Optional[str] = None
    risk_level: Optional[str] = None
    category: Optional[str] = None
    search: Optional[str] = None


@dataclass(frozen=True)
class SIPMetrics:
    total_transactions: int
    total_invested: Decimal
    total_units: Decimal
    average_nav: Decimal
    current_value: Decimal
    pnl: Decimal
    pnl_percent: Decimal


@dataclass(frozen=True)
class SIPHistorySummary:
    total_transactions: int
    total_invested: Decimal
    total_units: Decimal
    average_nav: Decimal
    first_transaction: Optional[date]
    last_transaction: Optional[date]


def get_years_difference(start_date: date, end_date: Optional[date] = None) -> Decimal:
    """Years between two dates, never less than one day's worth."""
    end_date = end_date or date.today()
    days = abs((coerce_date(end_date) - coerce_date(start_date)).days)
    return Decimal(max(days, 1)) / DAYS_PER_YEAR


def days_held(investment: Investment, today: Optional[date] = None) -> int:
    if investment.purchase_date is None:
        return 0
    today = today or date.today()
    return abs((today - investment.purchase_date).days)


def calculate_cagr(
    initial_value: Decimal | int | float,
    final_value: Decimal | int | float,
    start_date: Optional[date],
    end_date: Optional[date] = None,
) -> Decimal:
    initial_value = coerce_amount(initial_value)
    final_value = coerce_amount(final_value)
    if initial_value <= ZERO or final_value <= ZERO or start_date is None:
        return ZERO
    years = get_years_difference(start_date, end_date)
    if years <= ZERO:
        return ZERO
    growth = (final_value / initial_value) ** (Decimal(1) / years)
    return (growth - 1) * HUNDRED


def calculate_pnl(current_value: Decimal | int | float, invested_amount: Decimal | int | float) -> PnL:
    current_value = coerce_amount(current_value)
    invested_amount = coerce_amount(invested_amount)
    amount = current_value - invested_amount
    percent = amount / invested_amount * HUNDRED if invested_amount > ZERO else ZERO
    return PnL(amount=amount, percent=percent)


def evaluate_investment(investment: Investment, today: Optional[date] = None) -> Investment:
    """Return a copy with ``pnl``, ``pnl_percent`` and ``cagr`` recomputed."""
    pnl = calculate_pnl(investment.current_value, investment.invested_amount)
    cagr = calculate_cagr(
        investment.invested_amount,
        investment.current_value,
        investment.purchase_date,
        today,
    )
    return replace(investment, pnl=pnl.amount, pnl_percent=pnl.percent, cagr=cagr)


def calculate_asset_allocation(investments: Iterable[Investment]) -> List[AllocationEntry]:
    groups: Dict[str, Dict[str, Decimal | int]] = {}
    for investment in investments:
        group = groups.setdefault(
            investment.type,
            {"total_invested": ZERO, "current_value": ZERO, "count": 0, "pnl": ZERO},
        )
        group["total_invested"] += investment.invested_amount
        group["current_value"] += investment.current_value
        group["count"] += 1
        group["pnl"] += investment.current_value - investment.invested_amount

    total_value = sum((group["current_value"] for group in groups.values()), ZERO)
    allocation = [
        AllocationEntry(
            type=investment_type,
            total_invested=group["total_invested"],
            current_value=group["current_value"],
            count=group["count"],
            pnl=group["pnl"],
            percentage=(
                group["current_value"] / total_value * HUNDRED if total_value > ZERO else ZERO
            ),
            pnl_percent=(
                group["pnl"] / group["total_invested"] * HUNDRED
                if group["total_invested"] > ZERO
                else ZERO
            ),
        )
        for investment_type, group in groups.items()
    ]
    return sorted(allocation, key=lambda entry: entry.current_value, reverse=True)


def calculate_portfolio_summary(investments: Iterable[Investment]) -> PortfolioSummary:
    total_invested = ZERO
    current_value = ZERO
    count = 0
    sip_count = 0
    total_sip_invested = ZERO
    for investment in investments:
        total_invested += investment.invested_amount
        current_value += investment.current_value
        count += 1
        if investment.is_sip:
            sip_count += 1
            total_sip_invested += investment.invested_amount

    pnl = calculate_pnl(current_value, total_invested)
    return PortfolioSummary(
        total_invested=total_invested,
        current_value=current_value,
        count=count,
        sip_count=sip_count,
        total_sip_invested=total_sip_invested,
        total_pnl=pnl.amount,
        pnl_percent=pnl.percent,
    )


def filter_investments(
    investments: Iterable[Investment], filters: Optional[InvestmentFilters] = None
) -> List[Investment]:
    filters = filters or InvestmentFilters()
    return [investment for investment in investments if _matches(investment, filters)]


SORT_KEYS: Dict[str, Callable[[Investment], object]] = {
    "name": lambda inv: (inv.name or "").lower(),
    "investedAmount": lambda inv: inv.invested_amount,
    "currentValue": lambda inv: inv.current_value,
    "pnl": lambda inv: inv.pnl,
    "pnlPercent": lambda inv: inv.pnl_percent,
    "cagr": lambda inv: inv.cagr,
    "purchaseDate": lambda inv: inv.purchase_date or date.min,
    "createdAt": lambda inv: inv.created_at or date.min,
}
SORT_KEY_ALIASES = {
    "invested_amount": "investedAmount",
    "current_value": "currentValue",
    "pnl_percent": "pnlPercent",
    "purchase_date": "purchaseDate",
    "created_at": "createdAt",
}


def sort_investments(
    investments: Iterable[Investment],
    sort_by: str = "createdAt",
    order: str = "desc",
) -> List[Investment]:
    """Stable sort by one of ``SORT_KEYS``; unknown keys sort by creation date."""
    sort_by = SORT_KEY_ALIASES.get(sort_by, sort_by)
    key = SORT_KEYS.get(sort_by, SORT_KEYS["createdAt"])
    return sorted(investments, key=key, reverse=order.strip().lower() != "asc")


def calculate_sip_metrics(
    transactions: Iterable[SIPTransaction], current_value: Decimal | int | float
) -> SIPMetrics:
    transactions = list(transactions)
    if not transactions:
        return SIPMetrics(
            total_transactions=0,
            total_invested=ZERO,
            total_units=ZERO,
            average_nav=ZERO,
            current_value=ZERO,
            pnl=ZERO,
            pnl_percent=ZERO,
        )

    current_value = coerce_amount(current_value)
    total_invested = sum((txn.amount for txn in transactions), ZERO)
    total_units = sum((txn.units for txn in transactions), ZERO)
    average_nav = (
        total_invested / total_units if total_invested > ZERO and total_units > ZERO else ZERO
    )
    pnl = calculate_pnl(current_value, total_invested)
    return SIPMetrics(
        total_transactions=len(transactions),
        total_invested=total_invested,
        total_units=total_units,
        average_nav=average_nav,
        current_value=current_value,
        pnl=pnl.amount,
        pnl_percent=pnl.percent,
    )


def add_sip_transaction(
    investment: Investment,
    amount: Decimal | int | float,
    nav: Decimal | int | float,
    units: Optional[Decimal | int | float] = None,
    on: Optional[date] = None,
) -> Investment:
    """Record one SIP instalment and add it to the invested amount.

    Units default to ``amount / nav`` when not given.
    """
    if not investment.is_sip:
        raise ValueError("This is not a SIP investment")
    amount = coerce_amount(amount)
    nav = coerce_amount(nav)
    if amount <= ZERO or nav <= ZERO:
        raise ValueError("Amount and NAV are required for SIP transaction")
    transaction = SIPTransaction(
        amount=amount,
        units=coerce_amount(units) if units is not None else ZERO,
        nav=nav,
        date=on or date.today(),
    )
    return replace(
        investment,
        invested_amount=investment.invested_amount + amount,
        sip_transactions=investment.sip_transactions + (transaction,),
    )


def summarize_sip_history(transactions: Iterable[SIPTransaction]) -> SIPHistorySummary:
    """Summarise a SIP ledger; ``average_nav`` is the plain mean of recorded NAVs."""
    transactions = list(transactions)
    dates = sorted(txn.date for txn in transactions if txn.date is not None)
    return SIPHistorySummary(
        total_transactions=len(transactions),
        total_invested=sum((txn.amount for txn in transactions), ZERO),
        total_units=sum((txn.units for txn in transactions), ZERO),
        average_nav=(
            sum((txn.nav for txn in transactions), ZERO) / len(transactions)
            if transactions
            else ZERO
        ),
        first_transaction=dates[0] if dates else None,
        last_transaction=dates[-1] if dates else None,
    )


def get_investment_type_display_name(investment_type: str) -> str:
    if investment_type in INVESTMENT_TYPE_NAMES:
        return INVESTMENT_TYPE_NAMES[investment_type]
    return investment_type[:1].upper() + investment_type[1:]


def get_risk_level_color(risk_level: Optional[str]) -> str:
    return RISK_LEVEL_COLORS.get(risk_level or "", DEFAULT_RISK_COLOR)


def get_pnl_color(pnl: Decimal | int | float) -> str:
    pnl = coerce_amount(pnl)
    if pnl > ZERO:
        return "text-green-600"
    if pnl < ZERO:
        return "text-red-600"
    return "text-gray-600"


def investment_display_row(investment: Investment) -> Dict[str, str]:
    return {
        "name": investment.name,
        "type": get_investment_type_display_name(investment.type),
        "invested": format_currency(investment.invested_amount),
        "current_value": format_currency(investment.current_value),
        "pnl": format_currency(investment.pnl),
        "pnl_percent": format_percent(investment.pnl_percent),
        "pnl_color": get_pnl_color(investment.pnl),
        "risk_color": get_risk_level_color(investment.risk_level),
    }


def _matches(investment: Investment, filters: InvestmentFilters) -> bool:
    if filters.type and filters.type != "all" and investment.type != filters.type:
        return False
    if filters.risk_level and investment.risk_level != filters.risk_level:
        return False
    if filters.category:
        if not investment.category or filters.category.lower() not in investment.category.lower():
            return False
    if filters.search:
        term = filters.search.lower()
        fields = [
            value
            for value in (
                investment.name,
                investment.ticker_symbol,
                investment.sector,
                investment.category,
            )
            if value
        ]
        if not any(term in value.lower() for value in fields):
            return False
    return True
