from __future__ import annotations
from flask import Blueprint, request, abort
from matcha_trade.constants.permissions import ROLE_BUSINESS_CLIENT
from matcha_trade.decorators.auth import require_permissions
from matcha_trade.models.client import Client
from matcha_trade.models.client_order import ClientOrder
from matcha_trade.models.inventory import Inventory
from matcha_trade.models.pricing import Pricing
from matcha_trade.models.sku import MatchaSku
from matcha_trade.models.supplier import Supplier
from matcha_trade.services import analytics
from matcha_trade.services.inventory import low_stock_query
from matcha_trade.services.policy import current_user, linked_client_scope
from matcha_trade.utils.validation import coerce_int
from matcha_trade.routes.catalog import _supplier_json, _client_json, _sku_json
from matcha_trade.routes.pricing import _pricing_json
from matcha_trade.routes.inventory import _inventory_json
from matcha_trade.routes.orders import _client_order_json
from matcha_trade import get_db

analytics_bp = Blueprint('analytics', __name__)

RECENT_ORDERS = 20


@analytics_bp.get('/monthly-profit')
@require_permissions('analytics:financial')
def monthly_profit():
    months = coerce_int(request.args.get('months', 12), 'months', minimum=1, maximum=120)
    return {'data': analytics.monthly_profit(months)}


@analytics_bp.get('/client-profitability')
@require_permissions('analytics:financial')
def client_profitability():
    return {'data': analytics.client_profitability()}


@analytics_bp.get('/sku-profitability')
@require_permissions('analytics:financial')
def sku_profitability():
    return {'data': analytics.sku_profitability()}


@analytics_bp.get('/business-context')
@require_permissions('analytics:financial')
def business_context():
    """Snapshot of the trading book; sensitive fields are masked on the way out."""
    session = get_db()
    recent = (
        session.query(ClientOrder)
        .order_by(ClientOrder.order_date.desc(), ClientOrder.id.desc())
        .limit(RECENT_ORDERS)
        .all()
    )
    return {
        'suppliers': [_supplier_json(s) for s in session.query(Supplier).filter(Supplier.is_active.is_(True))],
        'clients': [_client_json(c) for c in session.query(Client).filter(Client.is_active.is_(True))],
        'skus': [_sku_json(k) for k in session.query(MatchaSku).filter(MatchaSku.is_active.is_(True))],
        'pricing': [_pricing_json(p) for p in session.query(Pricing).filter(Pricing.is_current_price.is_(True))],
        'inventory': [_inventory_json(i) for i in session.query(Inventory).order_by(Inventory.sku_id)],
        'recent_orders': [_client_order_json(o) for o in recent],
        'low_stock_alerts': [_inventory_json(i) for i in low_stock_query().order_by(Inventory.sku_id)],
    }


@analytics_bp.get('/my-account')
@require_permissions('analytics:view')
def my_account():
    session = get_db()
    user = current_user()
    if user.role == ROLE_BUSINESS_CLIENT:
        client_id = linked_client_scope()
    else:
        raw = request.args.get('client_id')
        if raw is None:
            abort(400, description='client_id required')
        client_id = coerce_int(raw, 'client_id')
    client = session.get(Client, client_id)
    if client is None:
        abort(404, description='client not found')
    summary = analytics.account_summary(client_id)
    summary['client_name'] = client.name
    return summary
