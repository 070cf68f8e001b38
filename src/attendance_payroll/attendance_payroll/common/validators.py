from __future__ import annotations

from decimal import Decimal

from ..core.exceptions import ValidationError


def require_non_empty(value: str, field_name: str) -> str:
    if not value or not value.strip():
        raise ValidationError(f"{field_name} is required")
    return value.strip()


def require_non_negative(value, field_name: str):
    if value is None or Decimal(str(value)) < 0:
        raise ValidationError(f"{field_name} must be non-negative")
    return value


def require_positive_amount(value, field_name: str) -> Decimal:
    amount = Decimal(str(value)) if value is not None else Decimal("0")
    if amount <= 0:
        raise ValidationError(f"{field_name} must be greater than zero")
    return amount


def require_period(month: int, year: int) -> tuple[int, int]:
    if not 1 <= int(month) <= 12:
        raise ValidationError("month must be between 1 and 12")
    if int(year) < 2000:
        raise ValidationError("year is out of range")
    return int(month), int(year)
