from __future__ import annotations
import logging
from typing import Optional

from matcha_trade import get_db
from matcha_trade.models.notification import Notification
from matcha_trade.models.sku import MatchaSku

logger = logging.getLogger(__name__)


def notify(type_: str, title: str, message: str, *, severity: str = Notification.SEVERITY_INFO,
           user_id: Optional[int] = None, entity_type: Optional[str] = None,
           entity_id: Optional[int] = None) -> Notification:
    """Queue a notification in the current session. user_id None broadcasts to every user."""
    n = Notification(
        user_id=user_id,
        type=type_,
        title=title,
        message=message,
        severity=severity,
        entity_type=entity_type,
        entity_id=entity_id,
    )
    get_db().add(n)
    return n


def notify_low_stock(inv, severity: str) -> Notification:
    sku = get_db().get(MatchaSku, inv.sku_id)
    name = sku.name if sku else f'SKU {inv.sku_id}'
    logger.info('low stock on sku %s (%s)', inv.sku_id, severity)
    return notify(
        Notification.TYPE_LOW_STOCK,
        f'Low stock: {name}',
        f'{name} has {inv.available_stock_kg} kg available (threshold {inv.low_stock_threshold_kg} kg).',
        severity=severity,
        entity_type='inventory',
        entity_id=inv.id,
    )


def notify_price_change(sku_id: int, change_pct, severity: str) -> Notification:
    """Broadcast a landed-cost move. The text carries the percentage only, never cost figures."""
    sku = get_db().get(MatchaSku, sku_id)
    name = sku.name if sku else f'SKU {sku_id}'
    logger.info('landed cost of sku %s moved %s%% (%s)', sku_id, change_pct, severity)
    return notify(
        Notification.TYPE_PRICE_CHANGE,
        f'Price change: {name}',
        f'Landed cost of {name} moved by {change_pct}%.',
        severity=severity,
        entity_type='sku',
        entity_id=sku_id,
    )

__all__ = ['notify', 'notify_low_stock', 'notify_price_change']
