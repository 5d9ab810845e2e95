import datetime
import logging
from dataclasses import asdict
from decimal import Decimal
from typing import Any, ClassVar

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from fintrack import analytics
from fintrack.budget_math import (
    apply_expense_to_budget,
    calculate_budgets_summary,
    calculate_progress,
    calculate_remaining,
    create_recurring_budget,
    find_budgets_needing_renewal,
    get_alert_status,
    get_budget_progress_color,
    get_budget_status,
    get_triggered_alerts,
    is_budget_exceeded,
    sync_budget_spending,
    validate_budget_data,
)
from fintrack.config import DAILY_TREND_DAYS, DEFAULT_CURRENCY, FRONTEND_ORIGIN, LOG_LEVEL
from fintrack.dashboard import REPORT_RANGES, build_dashboard_overview, summarize_report
from fintrack.debt_math import (
    apply_payment,
    calculate_debt_summary,
    calculate_payoff_date,
    debt_progress_percentage,
    debt_total_paid,
)
from fintrack.formatting import format_currency, get_currency_symbol
from fintrack.investment_math import (
    InvestmentFilters,
    add_sip_transaction,
    calculate_asset_allocation,
    calculate_portfolio_summary,
    calculate_sip_metrics,
    days_held,
    evaluate_investment,
    filter_investments,
    investment_display_row,
    sort_investments,
    summarize_sip_history,
)
from fintrack.logging_config import setup_logging
from fintrack.profile import describe_profile_completion
from fintrack.records import (
    Budget,
    Debt,
    Expense,
    Income,
    Investment,
    SIPTransaction,
    UserProfile,
)

setup_logging(LOG_LEVEL)
logger = logging.getLogger(__name__)

app = FastAPI(title="fintrack", description="Personal finance metrics service")

app.add_middleware(
    CORSMiddleware,
    allow_origins=[FRONTEND_ORIGIN],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

CURRENCY_SYMBOL = get_currency_symbol(DEFAULT_CURRENCY)


class RecordPayload(BaseModel):
    """Request body for one record; ``to_record`` applies the record's own parsing rules."""

    record_type: ClassVar[type]

    def to_record(self) -> Any:
        return self.record_type.from_mapping(self.model_dump())


class ExpensePayload(RecordPayload):
    record_type: ClassVar[type] = Expense

    amount: Decimal = Field(ge=0)
    date: datetime.date
    category: str = "Other"
    need_or_want: str = "need"
    title: str | None = None
    description: str | None = None
    created_at: datetime.date | None = None


class IncomePayload(RecordPayload):
    record_type: ClassVar[type] = Income

    amount: Decimal = Field(ge=0)
    date: datetime.date
    source: str = "Other"
    category: str = "Other"
    frequency: str = "One-time"
    title: str | None = None
    is_recurring: bool = False
    next_occurrence: datetime.date | None = None


class DebtPayload(RecordPayload):
    record_type: ClassVar[type] = Debt

    original_amount: Decimal = Field(ge=0)
    current_balance: Decimal = Field(ge=0)
    interest_rate: Decimal = Field(default=Decimal("0"), ge=0, le=100)
    minimum_payment: Decimal = Field(default=Decimal("0"), ge=0)
    name: str | None = None
    type: str = "other"
    status: str = "active"
    repayment_frequency: str = "monthly"


class SIPTransactionPayload(RecordPayload):
    record_type: ClassVar[type] = SIPTransaction

    amount: Decimal = Field(ge=0)
    units: Decimal = Field(default=Decimal("0"), ge=0)
    nav: Decimal = Field(default=Decimal("0"), ge=0)
    date: datetime.date | None = None


class InvestmentPayload(RecordPayload):
    record_type: ClassVar[type] = Investment

    invested_amount: Decimal = Field(ge=0)
    current_value: Decimal = Field(ge=0)
    type: str
    purchase_date: datetime.date | None = None
    name: str = ""
    ticker_symbol: str | None = None
    sector: str | None = None
    category: str | None = None
    risk_level: str = "moderate"
    is_sip: bool = False
    sip_amount: Decimal | None = None
    sip_start_date: datetime.date | None = None
    sip_frequency: str | None = None
    sip_transactions: list[SIPTransactionPayload] = []
    created_at: datetime.date | None = None


class BudgetPayload(RecordPayload):
    record_type: ClassVar[type] = Budget

    name: str
    category: str
    amount: Decimal = Field(ge=0)
    start_date: datetime.date
    end_date: datetime.date
    spent: Decimal = Field(default=Decimal("0"), ge=0)
    is_recurring: bool = False
    rollover_enabled: bool = False
    rollover_amount: Decimal = Field(default=Decimal("0"), ge=0)
    alert50: bool = True
    alert75: bool = True
    alert100: bool = True
    alert_exceeded: bool = True
    priority: str = "flexible"
    notes: str | None = None
    user_id: str | None = None


class AddressPayload(BaseModel):
    street: str | None = None
    city: str | None = None
    state: str | None = None
    zip_code: str | None = None


class ProfilePayload(RecordPayload):
    record_type: ClassVar[type] = UserProfile

    name: str | None = None
    email: str | None = None
    phone: str | None = None
    address: AddressPayload | None = None
    monthly_income: Decimal | None = None
    occupation: str | None = None
    date_of_birth: datetime.date | None = None
    profile_image: str | None = None


class BudgetsRequest(BaseModel):
    budgets: list[BudgetPayload] = []
    today: datetime.date | None = None


class BudgetSyncRequest(BaseModel):
    budgets: list[BudgetPayload] = []
    expenses: list[ExpensePayload] = []


class ApplyExpenseRequest(BaseModel):
    budget: BudgetPayload
    expense: ExpensePayload


class AlertCheckPayload(BaseModel):
    previous_percentage: Decimal
    current_percentage: Decimal
    alert50: bool = True
    alert75: bool = True
    alert100: bool = True


class AlertResponse(BaseModel):
    type: str
    message: str
    percentage: int | None = None


class ValidationIssueResponse(BaseModel):
    field: str
    message: str


class BudgetValidationResponse(BaseModel):
    is_valid: bool
    errors: list[ValidationIssueResponse]


class PortfolioRequest(BaseModel):
    investments: list[InvestmentPayload] = []
    today: datetime.date | None = None


class InvestmentQueryRequest(BaseModel):
    investments: list[InvestmentPayload] = []
    type: str | None = None
    risk_level: str | None = None
    category: str | None = None
    search: str | None = None
    sort_by: str = "createdAt"
    order: str = "desc"
    today: datetime.date | None = None


class SIPMetricsRequest(BaseModel):
    transactions: list[SIPTransactionPayload] = []
    current_value: Decimal = Decimal("0")


class SIPContributionRequest(BaseModel):
    investment: InvestmentPayload
    amount: Decimal = Field(gt=0)
    nav: Decimal = Field(gt=0)
    units: Decimal | None = Field(default=None, gt=0)
    today: datetime.date | None = None


class ExpenseAnalyticsRequest(BaseModel):
    expenses: list[ExpensePayload] = []
    days: int = Field(default=DAILY_TREND_DAYS, ge=1, le=366)
    today: datetime.date | None = None


class FinancialDataRequest(BaseModel):
    expenses: list[ExpensePayload] = []
    incomes: list[IncomePayload] = []
    debts: list[DebtPayload] = []
    investments: list[InvestmentPayload] = []
    today: datetime.date | None = None


class ReportRequest(FinancialDataRequest):
    date_range: str = "allTime"


class IncomeSummaryRequest(BaseModel):
    incomes: list[IncomePayload] = []
    today: datetime.date | None = None


class DebtsRequest(BaseModel):
    debts: list[DebtPayload] = []
    today: datetime.date | None = None


class DebtPaymentRequest(BaseModel):
    debt: DebtPayload
    amount: Decimal = Field(gt=0)
    today: datetime.date | None = None


class ProfileCompletionResponse(BaseModel):
    percentage: int
    completed_fields: list[str]
    missing_fields: list[str]
    basic_info: bool
    contact_details: bool
    financial_info: bool


def resolve_today(value: datetime.date | None) -> datetime.date:
    return value or datetime.date.today()


def to_records(payloads: list[RecordPayload]) -> list[Any]:
    try:
        return [payload.to_record() for payload in payloads]
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


def budget_row(budget: Budget) -> dict:
    progress = calculate_progress(budget.amount, budget.spent)
    exceeded = is_budget_exceeded(budget.amount, budget.spent)
    return {
        **asdict(budget),
        "remaining": calculate_remaining(budget.amount, budget.spent, budget.rollover_amount),
        "progress_percentage": progress,
        "is_over_budget": exceeded,
        "status": get_budget_status(progress, exceeded),
        "progress_color": get_budget_progress_color(progress, exceeded),
        "alerts": [asdict(alert) for alert in get_alert_status(budget)],
    }


def debt_row(debt: Debt, today: datetime.date) -> dict:
    return {
        **asdict(debt),
        "total_paid": debt_total_paid(debt),
        "progress_percentage": debt_progress_percentage(debt),
        "expected_payoff_date": calculate_payoff_date(debt, today),
    }


@app.get("/health")
def health() -> dict:
    return {"status": "ok", "currency": DEFAULT_CURRENCY}


@app.post("/budgets/summary")
def budgets_summary(payload: BudgetsRequest) -> dict:
    budgets = to_records(payload.budgets)
    summary = calculate_budgets_summary(budgets)
    logger.info("Budget summary computed", extra={"budget_count": len(budgets)})
    return {
        "summary": asdict(summary),
        "total_remaining_display": format_currency(summary.total_remaining, CURRENCY_SYMBOL),
        "budgets": [budget_row(budget) for budget in budgets],
    }


@app.post("/budgets/validate", response_model=BudgetValidationResponse)
def validate_budget(payload: dict[str, Any]) -> BudgetValidationResponse:
    result = validate_budget_data(payload)
    return BudgetValidationResponse(
        is_valid=result.is_valid,
        errors=[ValidationIssueResponse(**asdict(issue)) for issue in result.errors],
    )


@app.post("/budgets/alerts", response_model=list[AlertResponse])
def budget_alerts(payload: AlertCheckPayload) -> list[AlertResponse]:
    alerts = get_triggered_alerts(
        payload.previous_percentage,
        payload.current_percentage,
        payload.model_dump(include={"alert50", "alert75", "alert100"}),
    )
    return [AlertResponse(**asdict(alert)) for alert in alerts]


@app.post("/budgets/apply-expense")
def budget_apply_expense(payload: ApplyExpenseRequest) -> dict:
    budget, expense = to_records([payload.budget, payload.expense])
    try:
        updated, alerts = apply_expense_to_budget(budget, expense)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    logger.info(
        "Expense applied to budget",
        extra={"category": updated.category, "alert_count": len(alerts)},
    )
    return {"budget": budget_row(updated), "alerts": [asdict(alert) for alert in alerts]}


@app.post("/budgets/renewals")
def budget_renewals(payload: BudgetsRequest) -> list[dict]:
    budgets = to_records(payload.budgets)
    due = find_budgets_needing_renewal(budgets, resolve_today(payload.today))
    logger.info("Recurring budgets renewed", extra={"renewed_count": len(due)})
    return [budget_row(create_recurring_budget(budget)) for budget in due]


@app.post("/budgets/sync")
def budget_sync(payload: BudgetSyncRequest) -> list[dict]:
    budgets = to_records(payload.budgets)
    expenses = to_records(payload.expenses)
    return [budget_row(budget) for budget in sync_budget_spending(budgets, expenses)]


@app.post("/investments/portfolio")
def investment_portfolio(payload: PortfolioRequest) -> dict:
    today = resolve_today(payload.today)
    investments = [evaluate_investment(inv, today) for inv in to_records(payload.investments)]
    logger.info("Portfolio computed", extra={"investment_count": len(investments)})
    return {
        "summary": asdict(calculate_portfolio_summary(investments)),
        "allocation": [asdict(entry) for entry in calculate_asset_allocation(investments)],
        "investments": [
            {**investment_display_row(inv), "days_held": days_held(inv, today)}
            for inv in investments
        ],
    }


@app.post("/investments/query")
def investment_query(payload: InvestmentQueryRequest) -> list[dict]:
    today = resolve_today(payload.today)
    investments = [evaluate_investment(inv, today) for inv in to_records(payload.investments)]
    filters = InvestmentFilters(
        type=payload.type,
        risk_level=payload.risk_level,
        category=payload.category,
        search=payload.search,
    )
    selected = sort_investments(
        filter_investments(investments, filters), payload.sort_by, payload.order
    )
    return [asdict(inv) for inv in selected]


@app.post("/investments/sip-metrics")
def sip_metrics(payload: SIPMetricsRequest) -> dict:
    transactions = to_records(payload.transactions)
    return {
        "metrics": asdict(calculate_sip_metrics(transactions, payload.current_value)),
        "history": asdict(summarize_sip_history(transactions)),
    }


@app.post("/investments/sip-transactions")
def sip_contribution(payload: SIPContributionRequest) -> dict:
    investment = to_records([payload.investment])[0]
    today = resolve_today(payload.today)
    try:
        updated = add_sip_transaction(
            investment, payload.amount, payload.nav, payload.units, on=today
        )
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    updated = evaluate_investment(updated, today)
    logger.info(
        "SIP transaction added",
        extra={"transaction_count": len(updated.sip_transactions)},
    )
    return {
        "investment": asdict(updated),
        "metrics": asdict(calculate_sip_metrics(updated.sip_transactions, updated.current_value)),
    }


@app.post("/analytics/expenses")
def expense_analytics(payload: ExpenseAnalyticsRequest) -> dict:
    expenses = to_records(payload.expenses)
    today = resolve_today(payload.today)
    logger.info("Expense analytics computed", extra={"expense_count": len(expenses)})
    return {
        "category_distribution": [
            asdict(row) for row in analytics.category_distribution(expenses)
        ],
        "category_insights": [asdict(row) for row in analytics.category_insights(expenses)],
        "daily_trend": [
            asdict(row) for row in analytics.daily_trend(expenses, payload.days, today)
        ],
        "monthly_spending": [asdict(row) for row in analytics.monthly_spending(expenses)],
        "need_want": [asdict(row) for row in analytics.classify_by_field(expenses)],
    }


@app.post("/dashboard/overview")
def dashboard_overview(payload: FinancialDataRequest) -> dict:
    expenses = to_records(payload.expenses)
    incomes = to_records(payload.incomes)
    debts = to_records(payload.debts)
    investments = to_records(payload.investments)
    today = resolve_today(payload.today)
    overview = build_dashboard_overview(expenses, incomes, debts, investments, today)
    logger.info(
        "Dashboard overview computed",
        extra={
            "health_score": overview.health.score,
            "has_health_data": overview.health.has_health_data,
        },
    )
    return {
        **asdict(overview),
        "stats": asdict(analytics.calculate_dashboard_stats(expenses, today)),
        "top_categories": [
            {"category": category, "amount": amount, "icon": analytics.get_category_icon(category)}
            for category, amount in analytics.top_categories(expenses)
        ],
        "recent_expenses": [asdict(expense) for expense in analytics.recent_expenses(expenses)],
        "need_want": [asdict(row) for row in analytics.classify_by_category_keyword(expenses)],
        "monthly_trend": [
            asdict(row)
            for row in analytics.monthly_income_expense_trend(expenses, incomes, today=today)
        ],
    }


@app.post("/reports/summary")
def report_summary(payload: ReportRequest) -> dict:
    if payload.date_range not in REPORT_RANGES:
        raise HTTPException(status_code=400, detail="Invalid date range.")
    report = summarize_report(
        to_records(payload.expenses),
        to_records(payload.incomes),
        to_records(payload.debts),
        to_records(payload.investments),
        date_range=payload.date_range,
        today=resolve_today(payload.today),
    )
    return asdict(report)


@app.post("/income/summary")
def income_summary(payload: IncomeSummaryRequest) -> dict:
    summary = analytics.summarize_income(
        to_records(payload.incomes), resolve_today(payload.today)
    )
    result = asdict(summary)
    result["category_breakdown"] = {
        category: {"amount": amount, "count": count}
        for category, (amount, count) in summary.category_breakdown.items()
    }
    return result


@app.post("/debts/summary")
def debts_summary(payload: DebtsRequest) -> dict:
    debts = to_records(payload.debts)
    today = resolve_today(payload.today)
    return {
        "summary": asdict(calculate_debt_summary(debts)),
        "debts": [debt_row(debt, today) for debt in debts],
    }


@app.post("/debts/payment")
def debt_payment(payload: DebtPaymentRequest) -> dict:
    debt = to_records([payload.debt])[0]
    try:
        paid = apply_payment(debt, payload.amount)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    logger.info("Debt payment applied", extra={"status": paid.status})
    return debt_row(paid, resolve_today(payload.today))


@app.post("/profile/completion", response_model=ProfileCompletionResponse)
def profile_completion(payload: ProfilePayload) -> ProfileCompletionResponse:
    completion = describe_profile_completion(to_records([payload])[0])
    return ProfileCompletionResponse(
        percentage=completion.percentage,
        completed_fields=list(completion.completed_fields),
        missing_fields=list(completion.missing_fields),
        basic_info=completion.sections.basic_info,
        contact_details=completion.sections.contact_details,
        financial_info=completion.sections.financial_info,
    )
