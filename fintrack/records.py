from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Mapping, Optional, Tuple

ZERO = Decimal("0")

NEED_OR_WANT_VALUES = {"need", "want", "unsure"}
INVESTMENT_TYPES = {
    "stocks",
    "mutual-fund",
    "crypto",
    "bonds",
    "real-estate",
    "etf",
    "gold",
    "ppf",
    "nps",
    "custom",
}
RISK_LEVELS = {"low", "moderate", "high"}
DEBT_STATUSES = {"active", "closed", "defaulted"}
REPAYMENT_FREQUENCIES = {"weekly", "bi-weekly", "monthly"}
BUDGET_PRIORITIES = {"essential", "flexible", "luxury"}
FALSE_STRINGS = {"", "0", "false", "no", "off"}


@dataclass(frozen=True)
class Expense:
    amount: Decimal
    date: date
    category: str = "Other"
    need_or_want: str = "need"
    title: Optional[str] = None
    description: Optional[str] = None
    created_at: Optional[date] = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "Expense":
        need_or_want = _choice(
            data, "need", NEED_OR_WANT_VALUES, "needOrWant value", "need_or_want", "needOrWant"
        )
        return cls(
            amount=_required_amount(data, "amount"),
            date=_required_date(data, "date"),
            category=_pick(data, "category") or "Other",
            need_or_want=need_or_want,
            title=_pick(data, "title"),
            description=_pick(data, "description"),
            created_at=coerce_date(_pick(data, "created_at", "createdAt")),
        )


@dataclass(frozen=True)
class Income:
    amount: Decimal
    date: date
    source: str = "Other"
    category: str = "Other"
    frequency: str = "One-time"
    title: Optional[str] = None
    is_recurring: bool = False
    next_occurrence: Optional[date] = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "Income":
        return cls(
            amount=_required_amount(data, "amount"),
            date=_required_date(data, "date"),
            source=_pick(data, "source") or "Other",
            category=_pick(data, "category") or "Other",
            frequency=_pick(data, "frequency") or "One-time",
            title=_pick(data, "title"),
            is_recurring=_flag(data, False, "is_recurring", "isRecurring"),
            next_occurrence=coerce_date(_pick(data, "next_occurrence", "nextOccurrence")),
        )


@dataclass(frozen=True)
class Debt:
    original_amount: Decimal
    current_balance: Decimal
    interest_rate: Decimal = ZERO
    minimum_payment: Decimal = ZERO
    name: Optional[str] = None
    type: str = "other"
    status: str = "active"
    repayment_frequency: str = "monthly"

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "Debt":
        status = _choice(data, "active", DEBT_STATUSES, "debt status", "status")
        frequency = _choice(
            data,
            "monthly",
            REPAYMENT_FREQUENCIES,
            "repayment frequency",
            "repayment_frequency",
            "repaymentFrequency",
        )
        return cls(
            original_amount=_required_amount(data, "original_amount", "originalAmount"),
            current_balance=_required_amount(data, "current_balance", "currentBalance"),
            interest_rate=_optional_amount(data, "interest_rate", "interestRate"),
            minimum_payment=_optional_amount(data, "minimum_payment", "minimumPayment"),
            name=_pick(data, "name"),
            type=_pick(data, "type") or "other",
            status=status,
            repayment_frequency=frequency,
        )


@dataclass(frozen=True)
class SIPTransaction:
    amount: Decimal
    units: Decimal = ZERO
    nav: Decimal = ZERO
    date: Optional[date] = None

    def __post_init__(self) -> None:
        # Entries recorded with only amount and NAV get their units derived.
        if not self.units and self.nav > ZERO:
            object.__setattr__(self, "units", self.amount / self.nav)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "SIPTransaction":
        return cls(
            amount=_optional_amount(data, "amount"),
            units=_optional_amount(data, "units"),
            nav=_optional_amount(data, "nav"),
            date=coerce_date(_pick(data, "date")),
        )


@dataclass(frozen=True)
class Investment:
    invested_amount: Decimal
    current_value: Decimal
    type: str
    purchase_date: Optional[date] = None
    name: str = ""
    ticker_symbol: Optional[str] = None
    sector: Optional[str] = None
    category: Optional[str] = None
    risk_level: str = "moderate"
    is_sip: bool = False
    sip_amount: Optional[Decimal] = None
    sip_start_date: Optional[date] = None
    sip_frequency: Optional[str] = None
    sip_transactions: Tuple[SIPTransaction, ...] = field(default_factory=tuple)
    pnl: Decimal = ZERO
    pnl_percent: Decimal = ZERO
    cagr: Decimal = ZERO
    created_at: Optional[date] = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "Investment":
        investment_type = _choice(data, "", INVESTMENT_TYPES, "investment type", "type")
        risk_level = _choice(
            data, "moderate", RISK_LEVELS, "risk level", "risk_level", "riskLevel"
        )
        sip_amount = _pick(data, "sip_amount", "sipAmount")
        return cls(
            invested_amount=_required_amount(data, "invested_amount", "investedAmount"),
            current_value=_required_amount(data, "current_value", "currentValue"),
            type=investment_type,
            purchase_date=coerce_date(_pick(data, "purchase_date", "purchaseDate")),
            name=_pick(data, "name") or "",
            ticker_symbol=_pick(data, "ticker_symbol", "tickerSymbol"),
            sector=_pick(data, "sector"),
            category=_pick(data, "category"),
            risk_level=risk_level,
            is_sip=_flag(data, False, "is_sip", "isSIP"),
            sip_amount=coerce_amount(sip_amount) if sip_amount is not None else None,
            sip_start_date=coerce_date(_pick(data, "sip_start_date", "sipStartDate")),
            sip_frequency=_pick(data, "sip_frequency", "sipFrequency"),
            sip_transactions=tuple(
                SIPTransaction.from_mapping(item)
                for item in (_pick(data, "sip_transactions", "sipTransactions") or [])
            ),
            pnl=_optional_amount(data, "pnl"),
            pnl_percent=_optional_amount(data, "pnl_percent", "pnlPercent"),
            cagr=_optional_amount(data, "cagr"),
            created_at=coerce_date(_pick(data, "created_at", "createdAt")),
        )


@dataclass(frozen=True)
class Budget:
    name: str
    category: str
    amount: Decimal
    start_date: date
    end_date: date
    spent: Decimal = ZERO
    is_recurring: bool = False
    rollover_enabled: bool = False
    rollover_amount: Decimal = ZERO
    alert50: bool = True
    alert75: bool = True
    alert100: bool = True
    alert_exceeded: bool = True
    priority: str = "flexible"
    notes: Optional[str] = None
    user_id: Optional[str] = None

    @property
    def remaining(self) -> Decimal:
        return self.amount - self.spent + self.rollover_amount

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "Budget":
        priority = _choice(data, "flexible", BUDGET_PRIORITIES, "budget priority", "priority")
        return cls(
            name=_pick(data, "name") or "",
            category=_pick(data, "category") or "Other",
            amount=_required_amount(data, "amount"),
            start_date=_required_date(data, "start_date", "startDate"),
            end_date=_required_date(data, "end_date", "endDate"),
            spent=_optional_amount(data, "spent"),
            is_recurring=_flag(data, False, "is_recurring", "isRecurring"),
            rollover_enabled=_flag(data, False, "rollover_enabled", "rolloverEnabled"),
            rollover_amount=_optional_amount(data, "rollover_amount", "rolloverAmount"),
            alert50=_flag(data, True, "alert50"),
            alert75=_flag(data, True, "alert75"),
            alert100=_flag(data, True, "alert100"),
            alert_exceeded=_flag(data, True, "alert_exceeded", "alertExceeded"),
            priority=priority,
            notes=_pick(data, "notes"),
            user_id=_pick(data, "user_id", "userId"),
        )


@dataclass(frozen=True)
class Address:
    street: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None


@dataclass(frozen=True)
class UserProfile:
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[Address] = None
    monthly_income: Optional[Decimal] = None
    occupation: Optional[str] = None
    date_of_birth: Optional[date] = None
    profile_image: Optional[str] = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "UserProfile":
        raw_address = _pick(data, "address")
        address = None
        if isinstance(raw_address, Mapping):
            address = Address(
                street=_pick(raw_address, "street"),
                city=_pick(raw_address, "city"),
                state=_pick(raw_address, "state"),
                zip_code=_pick(raw_address, "zip_code", "zipCode"),
            )
        monthly_income = _pick(data, "monthly_income", "monthlyIncome")
        return cls(
            name=_pick(data, "name"),
            email=_pick(data, "email"),
            phone=_pick(data, "phone"),
            address=address,
            monthly_income=coerce_amount(monthly_income) if monthly_income is not None else None,
            occupation=_pick(data, "occupation"),
            date_of_birth=coerce_date(_pick(data, "date_of_birth", "dateOfBirth")),
            profile_image=_pick(data, "profile_image", "profileImage"),
        )


def coerce_amount(amount: Decimal | int | float | str) -> Decimal:
    if isinstance(amount, Decimal):
        value = amount
    else:
        try:
            value = Decimal(str(amount))
        except InvalidOperation as exc:
            raise ValueError(f"Invalid amount: {amount!r}") from exc
    if not value.is_finite():
        raise ValueError(f"Invalid amount: {amount!r}")
    return value


def coerce_date(value: date | datetime | str | None) -> Optional[date]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
    except ValueError as exc:
        raise ValueError(f"Invalid date: {value!r}. Use ISO 8601.") from exc


def _pick(data: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    return None


def _choice(
    data: Mapping[str, Any], default: str, allowed: set[str], label: str, *keys: str
) -> str:
    value = _pick(data, *keys)
    if value is None:
        value = default
    if not isinstance(value, str):
        raise ValueError(f"Invalid {label}: {value!r}")
    normalized = value.strip().lower()
    if normalized not in allowed:
        raise ValueError(f"Invalid {label}: {normalized or '<missing>'}")
    return normalized


def _required_amount(data: Mapping[str, Any], *keys: str) -> Decimal:
    value = _pick(data, *keys)
    if value is None:
        raise ValueError(f"{keys[-1]} is required.")
    amount = coerce_amount(value)
    if amount < ZERO:
        raise ValueError(f"{keys[-1]} must not be negative.")
    return amount


def _optional_amount(data: Mapping[str, Any], *keys: str) -> Decimal:
    value = _pick(data, *keys)
    return ZERO if value is None else coerce_amount(value)


def _required_date(data: Mapping[str, Any], *keys: str) -> date:
    value = coerce_date(_pick(data, *keys))
    if value is None:
        raise ValueError(f"{keys[-1]} is required.")
    return value


def _flag(data: Mapping[str, Any], default: bool, *keys: str) -> bool:
    value = _pick(data, *keys)
    if value is None:
        return default
    if isinstance(value, str):
        return value.strip().lower() not in FALSE_STRINGS
    return bool(value)
