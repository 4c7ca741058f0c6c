"""Shared validation utilities"""

import enum
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Optional, TypeVar

E = TypeVar("E", bound=enum.Enum)

CENT = Decimal("0.01")


def to_local_naive(value: Optional[datetime]) -> Optional[datetime]:
    """
    Normalize a datetime to naive clinic-local time.

    Timestamps are stored without timezone. Aware values are converted to the
    server's local zone first so they compare correctly with stored ones.

    Args:
        value: Naive or timezone-aware datetime

    Returns:
        Naive datetime in local time, or None
    """
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone().replace(tzinfo=None)


def parse_enum(enum_cls: type[E], value, field_name: str = "status") -> E:
    """
    Coerce a raw value into a member of a closed enumeration.

    Raises:
        ValueError: If the value is not one of the enumeration's values
    """
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(str(value).strip().upper())
    except ValueError:
        allowed = ", ".join(m.value for m in enum_cls)
        raise ValueError(f"Invalid {field_name} '{value}'. Allowed values: {allowed}")


def validate_money(value, field_name: str = "amount") -> Decimal:
    """
    Validate a positive monetary amount with at most two decimal places.

    Returns:
        Decimal quantized to cents

    Raises:
        ValueError: If the amount is not a positive number of cents
    """
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValueError(f"{field_name} must be a number")

    if not amount.is_finite() or amount <= 0:
        raise ValueError(f"{field_name} must be positive")

    quantized = amount.quantize(CENT, rounding=ROUND_HALF_UP)
    if quantized != amount:
        raise ValueError(f"{field_name} cannot have more than 2 decimal places")
    return quantized
