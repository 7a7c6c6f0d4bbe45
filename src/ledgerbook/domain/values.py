"""Coercion and validation of raw transaction field values."""

import math
from datetime import date, datetime, time, UTC
from decimal import Decimal, InvalidOperation, ROUND_DOWN
from typing import Any

from ledgerbook.domain.entities import (
    MAX_MINOR_UNITS,
    MONEY_PLACES,
    TransactionStatus,
    TransactionType,
)
from ledgerbook.domain.errors import (
    InvalidAmount,
    InvalidDate,
    InvalidStatus,
    InvalidTransactionType,
)


def to_money(value: Any, field: str = "amount") -> Decimal:
    """Convert a raw value to an exact two-place Decimal.

    Accepts Decimal, int, str and float (converted through its repr, never
    through binary arithmetic). Values that need rounding are rejected.

    Raises:
        InvalidAmount: If the value is not a finite decimal with at most two places
            or is too large to store
    """
    if isinstance(value, bool) or value is None:
        raise InvalidAmount(f"Invalid {field}: {value!r}")
    if isinstance(value, float):
        if not math.isfinite(value):
            raise InvalidAmount(f"Invalid {field}: {value!r} is not finite")
        value = repr(value)
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except (InvalidOperation, TypeError, ValueError):
        raise InvalidAmount(f"Invalid {field}: could not parse {value!r}")
    if not amount.is_finite():
        raise InvalidAmount(f"Invalid {field}: {value!r} is not finite")
    try:
        exact = amount == amount.quantize(Decimal(1).scaleb(-MONEY_PLACES), rounding=ROUND_DOWN)
    except InvalidOperation:
        raise InvalidAmount(f"Invalid {field}: {value!r} is out of range")
    if not exact:
        raise InvalidAmount(
            f"Invalid {field}: {value!r} has more than {MONEY_PLACES} decimal places"
        )
    if not is_storable(amount):
        raise InvalidAmount(f"Invalid {field}: {value!r} is out of range")
    return amount


def is_storable(amount: Decimal) -> bool:
    """Return True if the amount fits the minor-unit storage column."""
    return abs(amount).scaleb(MONEY_PLACES) <= MAX_MINOR_UNITS


def require_amount(value: Any) -> Decimal:
    """Return a strictly positive transaction amount."""
    amount = to_money(value)
    if amount <= 0:
        raise InvalidAmount(f"Invalid amount: {value!r} must be greater than zero")
    return amount


def require_type(value: Any) -> TransactionType:
    """Return the TransactionType for an enum member or its string value."""
    if isinstance(value, TransactionType):
        return value
    if isinstance(value, str):
        try:
            return TransactionType(value.strip().lower())
        except ValueError:
            pass
    raise InvalidTransactionType(
        f"Invalid transaction type {value!r}: expected 'receivable' or 'payable'"
    )


def require_status(value: Any) -> TransactionStatus:
    """Return the TransactionStatus for an enum member or its string value."""
    if isinstance(value, TransactionStatus):
        return value
    if isinstance(value, str):
        try:
            return TransactionStatus(value.strip().lower())
        except ValueError:
            pass
    raise InvalidStatus(f"Invalid status {value!r}: expected 'pending' or 'completed'")


def require_datetime(value: Any) -> datetime:
    """Return a naive datetime for a date or datetime input.

    A plain date means midnight. Aware datetimes are converted to naive UTC.
    """
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            return value.astimezone(UTC).replace(tzinfo=None)
        return value
    if isinstance(value, date):
        return datetime.combine(value, time.min)
    raise InvalidDate(f"Invalid date {value!r}: expected a date or datetime")


def to_calendar_date(value: Any, field: str = "date") -> date:
    """Reduce a date or datetime bound to its calendar date."""
    if isinstance(value, datetime):
        return require_datetime(value).date()
    if isinstance(value, date):
        return value
    raise InvalidDate(f"Invalid {field} {value!r}: expected a date or datetime")
