from datetime import datetime

from quitcheck.core.models import (
    InvalidSettings,
    InvalidStartDate,
    TrackerSettings,
    to_decimal,
)
from quitcheck.utils.datetime_utils import ensure_aware


def validate_start_date(start_date: datetime, now: datetime) -> datetime:
    start_date = ensure_aware(start_date, now.tzinfo)
    if start_date > now:
        raise InvalidStartDate(
            f"Quit date {start_date.isoformat()} is in the future (now {now.isoformat()})"
        )
    return start_date


def validate_count(value, field_name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidSettings(f"{field_name} must be an integer")
    if value < 1:
        raise InvalidSettings(f"{field_name} must be at least 1, got {value}")
    return value


def validate_price(value, field_name: str = "price_per_pack"):
    price = to_decimal(value, field_name)
    if price <= 0:
        raise InvalidSettings(f"{field_name} must be positive, got {price}")
    return price


def validate_text(text, max_length: int, field_name: str, min_length: int = 0) -> str:
    if not isinstance(text, str):
        raise InvalidSettings(f"{field_name} must be a string")
    text = text.strip()
    if not min_length <= len(text) <= max_length:
        raise InvalidSettings(
            f"{field_name} must be {min_length}-{max_length} characters long"
        )
    return text


def validate_settings(settings: TrackerSettings, now: datetime) -> TrackerSettings:
    """Return a normalized copy or raise; the start date is checked first"""
    return TrackerSettings(
        start_date=validate_start_date(settings.start_date, now),
        cigarettes_per_day=validate_count(settings.cigarettes_per_day, "cigarettes_per_day"),
        price_per_pack=validate_price(settings.price_per_pack),
        cigarettes_per_pack=validate_count(settings.cigarettes_per_pack, "cigarettes_per_pack"),
        currency=validate_text(settings.currency, 10, "currency", min_length=1),
        goal=validate_text(settings.goal, 500, "goal")
    )
