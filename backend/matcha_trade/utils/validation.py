"""Reusable validation helpers for request payloads.

Each helper returns the coerced value (to enable inline usage) or aborts with a 400
carrying a short field-specific message.
"""
from __future__ import annotations
import re
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, Optional
from flask import abort

from matcha_trade.utils.dates import parse_datetime

MONTH_RE = re.compile(r'^\d{4}-(0[1-9]|1[0-2])$')


def validate_status(new_status: str, allowed: Iterable[str], field_name: str = 'status') -> str:
    """Validate that new_status is inside allowed."""
    if new_status not in allowed:
        abort(400, description=f"{field_name} invalid")
    return new_status


def require_fields(data: dict, *names: str):
    missing = [n for n in names if data.get(n) in (None, '')]
    if missing:
        abort(400, description=f"{', '.join(missing)} required")


def coerce_decimal(value: Any, field_name: str, *, positive: bool = False, non_negative: bool = False,
                   maximum: Optional[Decimal] = None) -> Decimal:
    if value is None or isinstance(value, bool):
        abort(400, description=f'{field_name} must be a number')
    try:
        dec = Decimal(str(value))
    except (InvalidOperation, ValueError):
        abort(400, description=f'{field_name} must be a number')
    if not dec.is_finite():
        abort(400, description=f'{field_name} must be a number')
    if positive and dec <= 0:
        abort(400, description=f'{field_name} must be positive')
    if non_negative and dec < 0:
        abort(400, description=f'{field_name} must not be negative')
    if maximum is not None and dec > maximum:
        abort(400, description=f'{field_name} must not exceed {maximum}')
    return dec


def coerce_int(value: Any, field_name: str, *, minimum: Optional[int] = None, maximum: Optional[int] = None) -> int:
    if isinstance(value, bool):
        abort(400, description=f'{field_name} must be int')
    try:
        num = int(value)
    except (TypeError, ValueError):
        abort(400, description=f'{field_name} must be int')
    if minimum is not None and num < minimum:
        abort(400, description=f'{field_name} must be >= {minimum}')
    if maximum is not None and num > maximum:
        abort(400, description=f'{field_name} must be <= {maximum}')
    return num


def coerce_datetime(value: Any, field_name: str):
    if value is None:
        return None
    try:
        return parse_datetime(value)
    except (TypeError, ValueError):
        abort(400, description=f'{field_name} must be ISO 8601 datetime')


def coerce_bool(value: Any, field_name: str) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.lower() in ('true', '1', 'yes'):
        return True
    if isinstance(value, str) and value.lower() in ('false', '0', 'no'):
        return False
    abort(400, description=f'{field_name} must be boolean')


def validate_month(value: Any, field_name: str = 'forecast_month') -> str:
    if not isinstance(value, str) or not MONTH_RE.match(value):
        abort(400, description=f'{field_name} must be YYYY-MM')
    return value


def to_float(value) -> Optional[float]:
    """JSON-friendly numeric output for Decimal columns."""
    return float(value) if value is not None else None

__all__ = [
    'validate_status', 'require_fields', 'coerce_decimal', 'coerce_int', 'coerce_datetime',
    'coerce_bool', 'validate_month', 'to_float',
]
