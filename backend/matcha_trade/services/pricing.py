"""Landed cost, margin and per-client relation economics.

All arithmetic is Decimal. Money is rounded to cents with ROUND_HALF_UP at the
points where the figures are stored or reported.
"""
from __future__ import annotations
import logging
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from matcha_trade.config.business import (
    PRICE_CHANGE_WARNING_PCT, PRICE_CHANGE_CRITICAL_PCT, LOW_MARGIN_WARNING_PCT,
)
from matcha_trade.models.notification import Notification

logger = logging.getLogger(__name__)

CENT = Decimal('0.01')
HUNDRED = Decimal('100')


def money(value: Decimal) -> Decimal:
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def landed_cost(cost_price_jpy: Decimal, exchange_rate: Decimal, shipping_fee_per_kg: Decimal,
                import_tax_rate: Decimal) -> Decimal:
    """SGD per kg: (JPY cost / JPY-per-SGD rate + shipping) grossed up by import tax."""
    if exchange_rate <= 0:
        raise ValueError('exchange_rate must be positive')
    return money((cost_price_jpy / exchange_rate + shipping_fee_per_kg) * (1 + import_tax_rate))


def profit_per_kg(selling_price: Decimal, landed: Decimal) -> Decimal:
    return money(selling_price - landed)


def margin_percent(selling_price: Decimal, landed: Decimal) -> Decimal:
    if not selling_price:
        return Decimal('0.00')
    return money((selling_price - landed) / selling_price * HUNDRED)


def price_change_percent(previous: Optional[Decimal], current: Decimal) -> Optional[Decimal]:
    if previous is None or previous == 0:
        return None
    return money((current - previous) / previous * HUNDRED)


def price_change_severity(change_pct: Optional[Decimal]) -> Optional[str]:
    """Notification severity for a landed cost move, or None when below the alert threshold."""
    if change_pct is None:
        return None
    magnitude = abs(change_pct)
    if magnitude >= PRICE_CHANGE_CRITICAL_PCT:
        return Notification.SEVERITY_CRITICAL
    if magnitude >= PRICE_CHANGE_WARNING_PCT:
        return Notification.SEVERITY_WARNING
    return None


def relation_economics(cost_price_jpy: Decimal, exchange_rate: Decimal, shipping_fee_per_kg: Decimal,
                       import_tax_rate: Decimal, selling_price_per_kg: Decimal, discount_percent: Decimal,
                       monthly_volume_kg: Decimal) -> dict:
    """Per-client figures; exchange_rate here is SGD per 1 JPY."""
    cost_sgd = cost_price_jpy * exchange_rate
    tax = (cost_sgd + shipping_fee_per_kg) * import_tax_rate
    landed = cost_sgd + shipping_fee_per_kg + tax
    effective_sell = selling_price_per_kg * (1 - discount_percent / HUNDRED)
    profit = effective_sell - landed
    margin = profit / effective_sell * HUNDRED if effective_sell else Decimal('0')
    monthly = profit * monthly_volume_kg
    warnings = []
    if profit < 0:
        warnings.append('negative_profit')
    elif margin < LOW_MARGIN_WARNING_PCT:
        warnings.append('low_margin')
    return {
        'cost_sgd': money(cost_sgd),
        'tax': money(tax),
        'landed_cost': money(landed),
        'effective_selling_price': money(effective_sell),
        'profit_per_kg': money(profit),
        'margin_percent': money(margin),
        'monthly_profit': money(monthly),
        'annual_profit': money(monthly * 12),
        'warnings': warnings,
    }

__all__ = [
    'money', 'landed_cost', 'profit_per_kg', 'margin_percent', 'price_change_percent',
    'price_change_severity', 'relation_economics',
]
