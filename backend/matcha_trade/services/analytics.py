"""Profitability roll-ups over delivered client orders."""
from __future__ import annotations
from collections import defaultdict
from decimal import Decimal
from typing import Optional
from sqlalchemy import func

from matcha_trade import get_db
from matcha_trade.models.client import Client
from matcha_trade.models.client_order import ClientOrder
from matcha_trade.models.sku import MatchaSku
from matcha_trade.services.pricing import money, HUNDRED
from matcha_trade.utils.dates import month_key
from matcha_trade.utils.validation import to_float

ZERO = Decimal('0')


def _dec(value) -> Decimal:
    return Decimal(str(value)) if value is not None else ZERO


def _margin(revenue: Decimal, profit: Decimal) -> Decimal:
    return money(profit / revenue * HUNDRED) if revenue else Decimal('0.00')


def monthly_profit(months: int = 12, client_id: Optional[int] = None) -> list:
    session = get_db()
    q = session.query(ClientOrder).filter(ClientOrder.status == ClientOrder.STATUS_DELIVERED)
    if client_id is not None:
        q = q.filter(ClientOrder.client_id == client_id)
    buckets = defaultdict(lambda: {'revenue': ZERO, 'profit': ZERO, 'quantity': ZERO, 'orders': 0})
    for o in q.all():
        b = buckets[month_key(o.order_date)]
        b['revenue'] += _dec(o.total_price_sgd)
        b['profit'] += _dec(o.profit_sgd)
        b['quantity'] += _dec(o.quantity_kg)
        b['orders'] += 1
    rows = []
    for month in sorted(buckets, reverse=True)[:months]:
        b = buckets[month]
        rows.append({
            'month': month,
            'total_revenue': to_float(money(b['revenue'])),
            'total_profit': to_float(money(b['profit'])),
            'margin_percent': to_float(_margin(b['revenue'], b['profit'])),
            'total_quantity_kg': to_float(b['quantity']),
            'order_count': b['orders'],
        })
    return rows


def _grouped(key_col, name_model, name_key_col):
    session = get_db()
    q = (
        session.query(
            key_col,
            name_model.name,
            func.count(ClientOrder.id),
            func.coalesce(func.sum(ClientOrder.total_price_sgd), 0),
            func.coalesce(func.sum(ClientOrder.profit_sgd), 0),
            func.coalesce(func.sum(ClientOrder.quantity_kg), 0),
        )
        .join(name_model, name_key_col == key_col)
        .filter(ClientOrder.status == ClientOrder.STATUS_DELIVERED)
        .group_by(key_col, name_model.name)
    )
    rows = []
    for key, name, count, revenue, profit, quantity in q.all():
        revenue, profit = _dec(revenue), _dec(profit)
        rows.append({
            'id': key,
            'name': name,
            'order_count': int(count),
            'total_revenue': to_float(money(revenue)),
            'total_profit': to_float(money(profit)),
            'margin_percent': to_float(_margin(revenue, profit)),
            'total_quantity_kg': to_float(_dec(quantity)),
        })
    rows.sort(key=lambda r: (-r['total_profit'], r['id']))
    return rows


def client_profitability() -> list:
    rows = _grouped(ClientOrder.client_id, Client, Client.id)
    for r in rows:
        r['client_id'] = r['id']
    return rows


def sku_profitability() -> list:
    rows = _grouped(ClientOrder.sku_id, MatchaSku, MatchaSku.id)
    for r in rows:
        r['sku_id'] = r['id']
    return rows


def account_summary(client_id: int) -> dict:
    """Order volume and spend for one client (cancelled orders excluded)."""
    session = get_db()
    orders = (
        session.query(ClientOrder)
        .filter(ClientOrder.client_id == client_id, ClientOrder.status != ClientOrder.STATUS_CANCELLED)
        .all()
    )
    by_status = defaultdict(int)
    spend = ZERO
    volume = ZERO
    for o in orders:
        by_status[o.status] += 1
        spend += _dec(o.total_price_sgd)
        volume += _dec(o.quantity_kg)
    return {
        'client_id': client_id,
        'order_count': len(orders),
        'orders_by_status': dict(by_status),
        'total_quantity_kg': to_float(volume),
        'total_spend_sgd': to_float(money(spend)),
        'monthly_volume': [
            {'month': m['month'], 'total_quantity_kg': m['total_quantity_kg'], 'order_count': m['order_count']}
            for m in monthly_profit(12, client_id)
        ],
    }

__all__ = ['monthly_profit', 'client_profitability', 'sku_profitability', 'account_summary']
