from __future__ import annotations
from decimal import Decimal
from flask import Blueprint, request, abort
from sqlalchemy import select
from matcha_trade.decorators.auth import require_permissions
from matcha_trade.decorators.audit import audit_log
from matcha_trade.utils.listing import respond_list, respond_single
from matcha_trade.utils.filters import apply_filters, eq
from matcha_trade.utils.validation import (
    require_fields, coerce_int, coerce_decimal, coerce_datetime, validate_status, to_float,
)
from matcha_trade.utils.fsm import TransitionValidator
from matcha_trade.utils.dates import iso, utcnow
from matcha_trade.models.client_order import ClientOrder
from matcha_trade.models.supplier_order import SupplierOrder, SupplierOrderItem
from matcha_trade.models.pricing import Pricing
from matcha_trade.models.client import Client
from matcha_trade.models.supplier import Supplier
from matcha_trade.models.sku import MatchaSku
from matcha_trade.services.pricing import money
from matcha_trade.services.policy import current_user_id
from matcha_trade import get_db

orders_bp = Blueprint('orders', __name__)

CLIENT_ORDER_FSM = TransitionValidator({
    ClientOrder.STATUS_PENDING: {ClientOrder.STATUS_CONFIRMED, ClientOrder.STATUS_CANCELLED},
    ClientOrder.STATUS_CONFIRMED: {ClientOrder.STATUS_DELIVERED, ClientOrder.STATUS_CANCELLED},
    ClientOrder.STATUS_DELIVERED: set(),
    ClientOrder.STATUS_CANCELLED: set(),
})

SUPPLIER_ORDER_FSM = TransitionValidator({
    SupplierOrder.STATUS_DRAFT: {SupplierOrder.STATUS_SUBMITTED, SupplierOrder.STATUS_CANCELLED},
    SupplierOrder.STATUS_SUBMITTED: {SupplierOrder.STATUS_CONFIRMED, SupplierOrder.STATUS_CANCELLED},
    SupplierOrder.STATUS_CONFIRMED: {SupplierOrder.STATUS_SHIPPED, SupplierOrder.STATUS_CANCELLED},
    SupplierOrder.STATUS_SHIPPED: {SupplierOrder.STATUS_ARRIVED, SupplierOrder.STATUS_CANCELLED},
    SupplierOrder.STATUS_ARRIVED: set(),
    SupplierOrder.STATUS_CANCELLED: set(),
})

DELETABLE_CLIENT_STATUSES = (ClientOrder.STATUS_PENDING, ClientOrder.STATUS_CANCELLED)


# --- Client orders ---

def _client_order_json(o: ClientOrder):
    return {
        'id': o.id,
        'client_id': o.client_id,
        'sku_id': o.sku_id,
        'quantity_kg': to_float(o.quantity_kg),
        'unit_price_sgd': to_float(o.unit_price_sgd),
        'total_price_sgd': to_float(o.total_price_sgd),
        'profit_sgd': to_float(o.profit_sgd),
        'order_date': iso(o.order_date),
        'delivery_date': iso(o.delivery_date),
        'status': o.status,
        'notes': o.notes,
        'created_by': o.created_by,
        'updated_at': iso(o.updated_at),
    }


def _prefetch_client_order(order_id: int):
    o = get_db().get(ClientOrder, order_id)
    return _client_order_json(o) if o else None


def _current_landed_cost(sku_id: int) -> Decimal:
    landed = get_db().execute(
        select(Pricing.landed_cost_sgd).where(Pricing.sku_id == sku_id, Pricing.is_current_price.is_(True))
    ).scalar()
    return Decimal(landed) if landed is not None else Decimal('0')


@orders_bp.get('/client')
@require_permissions('orders:view')
def list_client_orders():
    session = get_db()
    q = session.query(ClientOrder)
    q = apply_filters(q, {
        'client_id': {'op': eq(ClientOrder.client_id), 'coerce': int},
        'sku_id': {'op': eq(ClientOrder.sku_id), 'coerce': int},
        'status': {'op': eq(ClientOrder.status), 'validate': lambda v: v in ClientOrder.ALL_STATUSES},
    }, request.args)
    q = q.order_by(ClientOrder.order_date.desc(), ClientOrder.id.desc())
    return respond_list(q, _client_order_json, default_limit=100)


@orders_bp.get('/client/<int:order_id>')
@require_permissions('orders:view')
def get_client_order(order_id: int):
    o = get_db().get(ClientOrder, order_id)
    if not o:
        abort(404)
    return respond_single(o, _client_order_json(o))


@orders_bp.post('/client')
@require_permissions('orders:create')
@audit_log('CREATE', entity='client_order', entity_id_key='id', meta_keys=['client_id', 'sku_id', 'status'])
def create_client_order():
    session = get_db()
    data = request.json or {}
    require_fields(data, 'client_id', 'sku_id', 'quantity_kg', 'unit_price_sgd')
    client_id = coerce_int(data['client_id'], 'client_id')
    sku_id = coerce_int(data['sku_id'], 'sku_id')
    if session.get(Client, client_id) is None:
        abort(400, description='client not found')
    if session.get(MatchaSku, sku_id) is None:
        abort(400, description='sku not found')
    quantity = coerce_decimal(data['quantity_kg'], 'quantity_kg', positive=True)
    unit_price = coerce_decimal(data['unit_price_sgd'], 'unit_price_sgd', positive=True)
    total = money(quantity * unit_price)
    profit = money(total - quantity * _current_landed_cost(sku_id))
    o = ClientOrder(
        client_id=client_id,
        sku_id=sku_id,
        quantity_kg=quantity,
        unit_price_sgd=unit_price,
        total_price_sgd=total,
        profit_sgd=profit,
        order_date=coerce_datetime(data.get('order_date'), 'order_date') or utcnow(),
        delivery_date=coerce_datetime(data.get('delivery_date'), 'delivery_date'),
        status=ClientOrder.STATUS_PENDING,
        notes=data.get('notes'),
        created_by=current_user_id(),
    )
    session.add(o)
    session.commit()
    return _client_order_json(o), 201


@orders_bp.put('/client/<int:order_id>')
@require_permissions('orders:update')
@audit_log('UPDATE', entity='client_order', entity_id_key='id', diff_keys=['status', 'delivery_date', 'notes'],
           pre_fetch=lambda a, kw: _prefetch_client_order(kw.get('order_id')))
def update_client_order(order_id: int):
    session = get_db()
    o = session.get(ClientOrder, order_id)
    if not o:
        abort(404)
    data = request.json or {}
    if 'status' in data:
        target = validate_status(data['status'], ClientOrder.ALL_STATUSES)
        CLIENT_ORDER_FSM.assert_can_transition(o.status, target)
        o.status = target
    if 'delivery_date' in data:
        o.delivery_date = coerce_datetime(data['delivery_date'], 'delivery_date')
    if 'notes' in data:
        o.notes = data['notes']
    session.commit()
    return _client_order_json(o)


@orders_bp.delete('/client/<int:order_id>')
@require_permissions('orders:delete')
@audit_log('DELETE', entity='client_order', entity_id_arg='order_id', record_new_data=False,
           pre_fetch=lambda a, kw: _prefetch_client_order(kw.get('order_id')))
def delete_client_order(order_id: int):
    session = get_db()
    o = session.get(ClientOrder, order_id)
    if not o:
        abort(404)
    if o.status not in DELETABLE_CLIENT_STATUSES:
        abort(400, description=f'Cannot delete a {o.status} order')
    session.delete(o)
    session.commit()
    return {'deleted': True, 'id': order_id}


# --- Supplier orders ---

def _item_json(i: SupplierOrderItem):
    return {
        'id': i.id,
        'supplier_order_id': i.supplier_order_id,
        'sku_id': i.sku_id,
        'quantity_kg': to_float(i.quantity_kg),
        'unit_price_jpy': to_float(i.unit_price_jpy),
        'total_price_jpy': to_float(i.total_price_jpy),
    }


def _supplier_order_json(o: SupplierOrder, with_items: bool = False):
    body = {
        'id': o.id,
        'supplier_id': o.supplier_id,
        'order_date': iso(o.order_date),
        'expected_arrival_date': iso(o.expected_arrival_date),
        'actual_arrival_date': iso(o.actual_arrival_date),
        'total_cost_jpy': to_float(o.total_cost_jpy),
        'total_cost_sgd': to_float(o.total_cost_sgd),
        'exchange_rate_used': to_float(o.exchange_rate_used),
        'status': o.status,
        'notes': o.notes,
        'created_by': o.created_by,
        'updated_at': iso(o.updated_at),
    }
    if with_items:
        body['items'] = [_item_json(i) for i in o.items]
    return body


def _prefetch_supplier_order(order_id: int):
    o = get_db().get(SupplierOrder, order_id)
    return _supplier_order_json(o) if o else None


def _recompute_totals(o: SupplierOrder):
    total_jpy = sum((Decimal(i.total_price_jpy) for i in o.items), Decimal('0'))
    o.total_cost_jpy = money(total_jpy)
    if o.exchange_rate_used:
        o.total_cost_sgd = money(total_jpy / Decimal(o.exchange_rate_used))


@orders_bp.get('/supplier')
@require_permissions('orders:view')
def list_supplier_orders():
    session = get_db()
    q = session.query(SupplierOrder)
    q = apply_filters(q, {
        'supplier_id': {'op': eq(SupplierOrder.supplier_id), 'coerce': int},
        'status': {'op': eq(SupplierOrder.status), 'validate': lambda v: v in SupplierOrder.ALL_STATUSES},
    }, request.args)
    q = q.order_by(SupplierOrder.order_date.desc(), SupplierOrder.id.desc())
    return respond_list(q, _supplier_order_json, default_limit=100)


@orders_bp.get('/supplier/<int:order_id>')
@require_permissions('orders:view')
def get_supplier_order(order_id: int):
    o = get_db().get(SupplierOrder, order_id)
    if not o:
        abort(404)
    return respond_single(o, _supplier_order_json(o, with_items=True))


@orders_bp.post('/supplier')
@require_permissions('orders:create')
@audit_log('CREATE', entity='supplier_order', entity_id_key='id', meta_keys=['supplier_id', 'status'])
def create_supplier_order():
    session = get_db()
    data = request.json or {}
    require_fields(data, 'supplier_id')
    supplier_id = coerce_int(data['supplier_id'], 'supplier_id')
    if session.get(Supplier, supplier_id) is None:
        abort(400, description='supplier not found')
    rate = data.get('exchange_rate_used')
    o = SupplierOrder(
        supplier_id=supplier_id,
        order_date=utcnow(),
        expected_arrival_date=coerce_datetime(data.get('expected_arrival_date'), 'expected_arrival_date'),
        exchange_rate_used=coerce_decimal(rate, 'exchange_rate_used', positive=True) if rate is not None else None,
        status=SupplierOrder.STATUS_DRAFT,
        notes=data.get('notes'),
        created_by=current_user_id(),
    )
    session.add(o)
    session.commit()
    return _supplier_order_json(o), 201


@orders_bp.put('/supplier/<int:order_id>')
@require_permissions('orders:update')
@audit_log('UPDATE', entity='supplier_order', entity_id_key='id',
           diff_keys=['status', 'expected_arrival_date', 'actual_arrival_date', 'exchange_rate_used', 'notes'],
           pre_fetch=lambda a, kw: _prefetch_supplier_order(kw.get('order_id')))
def update_supplier_order(order_id: int):
    session = get_db()
    o = session.get(SupplierOrder, order_id)
    if not o:
        abort(404)
    data = request.json or {}
    if 'status' in data:
        target = validate_status(data['status'], SupplierOrder.ALL_STATUSES)
        SUPPLIER_ORDER_FSM.assert_can_transition(o.status, target)
        o.status = target
        if target == SupplierOrder.STATUS_ARRIVED and o.actual_arrival_date is None and 'actual_arrival_date' not in data:
            o.actual_arrival_date = utcnow()
    for field in ('expected_arrival_date', 'actual_arrival_date'):
        if field in data:
            setattr(o, field, coerce_datetime(data[field], field))
    if 'exchange_rate_used' in data:
        o.exchange_rate_used = coerce_decimal(data['exchange_rate_used'], 'exchange_rate_used', positive=True)
        _recompute_totals(o)
    if 'notes' in data:
        o.notes = data['notes']
    session.commit()
    return _supplier_order_json(o)


@orders_bp.get('/supplier/<int:order_id>/items')
@require_permissions('orders:view')
def list_supplier_order_items(order_id: int):
    o = get_db().get(SupplierOrder, order_id)
    if not o:
        abort(404)
    return {'data': [_item_json(i) for i in o.items]}


@orders_bp.post('/supplier/<int:order_id>/items')
@require_permissions('orders:update')
@audit_log('CREATE', entity='supplier_order_item', entity_id_key='id', meta_keys=['supplier_order_id', 'sku_id'])
def add_supplier_order_item(order_id: int):
    session = get_db()
    o = session.get(SupplierOrder, order_id)
    if not o:
        abort(404)
    if SUPPLIER_ORDER_FSM.is_terminal(o.status):
        abort(400, description=f'Cannot add items to a {o.status} order')
    data = request.json or {}
    require_fields(data, 'sku_id', 'quantity_kg', 'unit_price_jpy')
    sku_id = coerce_int(data['sku_id'], 'sku_id')
    if session.get(MatchaSku, sku_id) is None:
        abort(400, description='sku not found')
    quantity = coerce_decimal(data['quantity_kg'], 'quantity_kg', positive=True)
    unit_price = coerce_decimal(data['unit_price_jpy'], 'unit_price_jpy', positive=True)
    item = SupplierOrderItem(
        sku_id=sku_id,
        quantity_kg=quantity,
        unit_price_jpy=unit_price,
        total_price_jpy=money(quantity * unit_price),
    )
    o.items.append(item)
    _recompute_totals(o)
    session.commit()
    body = _item_json(item)
    body['order'] = _supplier_order_json(o)
    return body, 201
