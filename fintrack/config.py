import os

from fintrack.formatting import CURRENCY_SYMBOLS


def normalize_currency(value: str) -> str:
    normalized = value.strip().upper()
    if len(normalized) != 3 or not normalized.isalpha():
        raise ValueError("Currency must be a 3-letter ISO 4217 code.")
    return normalized


def get_default_currency() -> str:
    raw = os.getenv("DEFAULT_CURRENCY", "INR")
    try:
        normalized = normalize_currency(raw)
    except ValueError:
        return "INR"
    return normalized if normalized in CURRENCY_SYMBOLS else "INR"


def get_daily_trend_days() -> int:
    raw = os.getenv("DAILY_TREND_DAYS", "30")
    try:
        days = int(raw)
    except ValueError:
        return 30
    return days if days > 0 else 30


FRONTEND_ORIGIN = os.getenv("FRONTEND_ORIGIN", "http://localhost:3000")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
DEFAULT_CURRENCY = get_default_currency()
DAILY_TREND_DAYS = get_daily_trend_days()
SERVICE_NAME = "fintrack"
