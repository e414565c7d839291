from __future__ import annotations
from decimal import Decimal
from flask import Blueprint, request, abort
from matcha_trade.decorators.auth import require_permissions
from matcha_trade.decorators.audit import audit_log
from matcha_trade.utils.listing import respond_list, respond_single
from matcha_trade.utils.filters import apply_filters, eq
from matcha_trade.utils.validation import require_fields, coerce_int, coerce_decimal, coerce_datetime, to_float
from matcha_trade.utils.dates import iso
from matcha_trade.models.inventory import Inventory, InventoryTransaction
from matcha_trade.models.sku import MatchaSku
from matcha_trade.services.inventory import (
    apply_transaction, assert_stock_invariant, low_stock_severity, low_stock_query,
)
from matcha_trade.services.notifications import notify_low_stock
from matcha_trade.services.policy import current_user_id
from matcha_trade.services.security import commit_or_simulate
from matcha_trade import get_db

inv_bp = Blueprint('inventory', __name__)


def _inventory_json(i: Inventory):
    return {
        'id': i.id,
        'sku_id': i.sku_id,
        'total_stock_kg': to_float(i.total_stock_kg),
        'allocated_stock_kg': to_float(i.allocated_stock_kg),
        'available_stock_kg': to_float(i.available_stock_kg),
        'low_stock_threshold_kg': to_float(i.low_stock_threshold_kg),
        'is_low_stock': low_stock_severity(i) is not None,
        'last_order_date': iso(i.last_order_date),
        'last_arrival_date': iso(i.last_arrival_date),
        'next_expected_arrival': iso(i.next_expected_arrival),
        'updated_at': iso(i.updated_at),
    }


def _txn_json(t: InventoryTransaction):
    return {
        'id': t.id,
        'inventory_id': t.inventory_id,
        'sku_id': t.sku_id,
        'transaction_type': t.transaction_type,
        'quantity_kg': to_float(t.quantity_kg),
        'reference_type': t.reference_type,
        'reference_id': t.reference_id,
        'notes': t.notes,
        'created_by': t.created_by,
        'created_at': iso(t.created_at),
    }


def _inventory_for_sku(sku_id: int) -> Inventory:
    inv = get_db().query(Inventory).filter(Inventory.sku_id == sku_id).one_or_none()
    if not inv:
        abort(404, description='No inventory for SKU')
    return inv


def _prefetch_inventory(sku_id: int):
    inv = get_db().query(Inventory).filter(Inventory.sku_id == sku_id).one_or_none()
    return _inventory_json(inv) if inv else None


@inv_bp.get('')
@require_permissions('inventory:view')
def list_inventory():
    session = get_db()
    q = session.query(Inventory)
    q = apply_filters(q, {'sku_id': {'op': eq(Inventory.sku_id), 'coerce': int}}, request.args)
    return respond_list(q.order_by(Inventory.sku_id.asc()), _inventory_json)


@inv_bp.get('/low-stock')
@require_permissions('inventory:view')
def list_low_stock():
    q = low_stock_query().order_by(Inventory.sku_id.asc())
    return respond_list(q, _inventory_json)


@inv_bp.get('/sku/<int:sku_id>')
@require_permissions('inventory:view')
def get_inventory(sku_id: int):
    inv = _inventory_for_sku(sku_id)
    return respond_single(inv, _inventory_json(inv))


@inv_bp.put('/sku/<int:sku_id>')
@require_permissions('inventory:update')
@audit_log('UPDATE', entity='inventory', entity_id_key='id',
           diff_keys=['total_stock_kg', 'allocated_stock_kg', 'low_stock_threshold_kg',
                      'last_order_date', 'last_arrival_date', 'next_expected_arrival'],
           pre_fetch=lambda a, kw: _prefetch_inventory(kw.get('sku_id')))
def update_inventory(sku_id: int):
    session = get_db()
    inv = _inventory_for_sku(sku_id)
    data = request.json or {}
    for field in ('total_stock_kg', 'allocated_stock_kg', 'low_stock_threshold_kg'):
        if field in data:
            setattr(inv, field, coerce_decimal(data[field], field, non_negative=True))
    for field in ('last_order_date', 'last_arrival_date', 'next_expected_arrival'):
        if field in data:
            setattr(inv, field, coerce_datetime(data[field], field))
    assert_stock_invariant(Decimal(inv.total_stock_kg), Decimal(inv.allocated_stock_kg))
    inv.updated_by = current_user_id()
    session.flush()
    payload = _inventory_json(inv)
    payload['simulated'] = commit_or_simulate(session)
    return payload


@inv_bp.get('/transactions')
@require_permissions('inventory:view')
def list_transactions():
    session = get_db()
    q = session.query(InventoryTransaction)
    q = apply_filters(q, {
        'sku_id': {'op': eq(InventoryTransaction.sku_id), 'coerce': int},
        'transaction_type': {'op': eq(InventoryTransaction.transaction_type),
                             'validate': lambda v: v in InventoryTransaction.ALL_TYPES},
    }, request.args)
    q = q.order_by(InventoryTransaction.created_at.desc(), InventoryTransaction.id.desc())
    return respond_list(q, _txn_json, ts_attr='created_at')


@inv_bp.post('/transactions')
@require_permissions('inventory:update')
@audit_log('CREATE', entity='inventory_transaction', entity_id_key='id',
           meta_keys=['sku_id', 'transaction_type', 'quantity_kg'])
def create_transaction():
    session = get_db()
    data = request.json or {}
    require_fields(data, 'sku_id', 'transaction_type', 'quantity_kg')
    sku_id = coerce_int(data['sku_id'], 'sku_id')
    if session.get(MatchaSku, sku_id) is None:
        abort(404, description='SKU not found')
    inv, txn = apply_transaction(
        sku_id,
        data['transaction_type'],
        coerce_decimal(data['quantity_kg'], 'quantity_kg'),
        reference_type=data.get('reference_type'),
        reference_id=coerce_int(data['reference_id'], 'reference_id') if data.get('reference_id') is not None else None,
        notes=data.get('notes'),
        user_id=current_user_id(),
    )
    severity = low_stock_severity(inv)
    if severity:
        notify_low_stock(inv, severity)
    payload = _txn_json(txn)
    payload['inventory'] = _inventory_json(inv)
    payload['low_stock_alert'] = severity
    payload['simulated'] = commit_or_simulate(session)
    return payload, 201
