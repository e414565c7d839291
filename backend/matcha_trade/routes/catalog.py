from __future__ import annotations
from decimal import Decimal
from flask import Blueprint, request, abort
from matcha_trade.decorators.auth import require_permissions
from matcha_trade.decorators.audit import audit_log
from matcha_trade.utils.listing import respond_list, respond_single
from matcha_trade.utils.filters import apply_filters, eq, contains, parse_bool_param
from matcha_trade.utils.sorting import apply_multi_sort
from matcha_trade.utils.validation import require_fields, coerce_int, coerce_decimal, coerce_bool, to_float
from matcha_trade.utils.dates import iso
from matcha_trade.models.supplier import Supplier
from matcha_trade.models.client import Client
from matcha_trade.models.sku import MatchaSku
from matcha_trade.services.policy import current_user, current_user_id
from matcha_trade.services.versioning import create_version, snapshot
from matcha_trade.services.inventory import get_or_create_inventory
from matcha_trade import get_db

catalog_bp = Blueprint('catalog', __name__)


def _text(value, field):
    if value is None:
        return None
    if not isinstance(value, str):
        abort(400, description=f'{field} must be string')
    return value.strip()


def _required_text(value, field):
    value = _text(value, field)
    if not value:
        abort(400, description=f'{field} required')
    return value


def _assign(obj, data: dict, coercers: dict):
    for field, coerce in coercers.items():
        if field in data:
            setattr(obj, field, coerce(data[field], field))


def _active_only(q, model):
    raw = request.args.get('active_only', 'true')
    try:
        active_only = parse_bool_param(raw)
    except ValueError:
        abort(400, description='active_only invalid')
    return q.filter(model.is_active.is_(True)) if active_only else q


def _sorted(q, model):
    allowed = {
        'name': model.name,
        'created_at': model.created_at,
        'updated_at': model.updated_at,
        'id': model.id,
    }
    return apply_multi_sort(q, request.args.get('sort'), allowed, model.id, default=model.name.asc())


def _get_or_404(model, obj_id: int):
    obj = get_db().get(model, obj_id)
    if obj is None:
        abort(404)
    return obj


# --- Suppliers ---

SUPPLIER_FIELDS = {
    'name': _required_text,
    'country': _text,
    'region': _text,
    'contact_name': _text,
    'contact_email': _text,
    'contact_phone': _text,
    'lead_time_days': lambda v, f: coerce_int(v, f, minimum=0),
    'order_cadence_days': lambda v, f: coerce_int(v, f, minimum=0),
    'notes': _text,
    'is_active': coerce_bool,
}


def _supplier_json(s: Supplier):
    return {
        'id': s.id,
        'name': s.name,
        'country': s.country,
        'region': s.region,
        'contact_name': s.contact_name,
        'contact_email': s.contact_email,
        'contact_phone': s.contact_phone,
        'lead_time_days': s.lead_time_days,
        'order_cadence_days': s.order_cadence_days,
        'notes': s.notes,
        'is_active': s.is_active,
        'created_at': iso(s.created_at),
        'updated_at': iso(s.updated_at),
    }


def _prefetch_supplier(supplier_id: int):
    s = get_db().get(Supplier, supplier_id)
    return _supplier_json(s) if s else None


@catalog_bp.get('/suppliers')
@require_permissions('suppliers:view')
def list_suppliers():
    session = get_db()
    q = _active_only(session.query(Supplier), Supplier)
    q = apply_filters(q, {
        'name': {'op': contains(Supplier.name)},
        'country': {'op': eq(Supplier.country)},
    }, request.args)
    return respond_list(_sorted(q, Supplier), _supplier_json)


@catalog_bp.get('/suppliers/<int:supplier_id>')
@require_permissions('suppliers:view')
def get_supplier(supplier_id: int):
    s = _get_or_404(Supplier, supplier_id)
    return respond_single(s, _supplier_json(s))


@catalog_bp.get('/suppliers/<int:supplier_id>/skus')
@require_permissions('products:view')
def list_supplier_skus(supplier_id: int):
    session = get_db()
    _get_or_404(Supplier, supplier_id)
    q = _active_only(session.query(MatchaSku).filter(MatchaSku.supplier_id == supplier_id), MatchaSku)
    return respond_list(_sorted(q, MatchaSku), _sku_json)


@catalog_bp.post('/suppliers')
@require_permissions('suppliers:create')
@audit_log('CREATE', entity='supplier', entity_id_key='id')
def create_supplier():
    session = get_db()
    data = request.json or {}
    require_fields(data, 'name')
    s = Supplier(created_by=current_user_id(), updated_by=current_user_id())
    _assign(s, data, SUPPLIER_FIELDS)
    session.add(s)
    session.flush()
    create_version('supplier', s, 'Initial creation', current_user())
    session.commit()
    return _supplier_json(s), 201


@catalog_bp.put('/suppliers/<int:supplier_id>')
@require_permissions('suppliers:update')
@audit_log('UPDATE', entity='supplier', entity_id_key='id', diff_keys=Supplier.VERSIONED_FIELDS,
           pre_fetch=lambda a, kw: _prefetch_supplier(kw.get('supplier_id')))
def update_supplier(supplier_id: int):
    session = get_db()
    s = _get_or_404(Supplier, supplier_id)
    _assign(s, request.json or {}, SUPPLIER_FIELDS)
    s.updated_by = current_user_id()
    session.flush()
    create_version('supplier', s, 'Updated supplier details', current_user())
    session.commit()
    return _supplier_json(s)


@catalog_bp.delete('/suppliers/<int:supplier_id>')
@require_permissions('suppliers:delete')
@audit_log('DELETE', entity='supplier', entity_id_key='id', diff_keys=['is_active'],
           pre_fetch=lambda a, kw: _prefetch_supplier(kw.get('supplier_id')))
def delete_supplier(supplier_id: int):
    session = get_db()
    s = _get_or_404(Supplier, supplier_id)
    s.is_active = False
    s.updated_by = current_user_id()
    session.commit()
    return _supplier_json(s)


# --- Clients ---

CLIENT_FIELDS = {
    'name': _required_text,
    'business_type': _text,
    'contact_name': _text,
    'contact_email': _text,
    'contact_phone': _text,
    'address': _text,
    'special_discount': lambda v, f: coerce_decimal(v, f, non_negative=True, maximum=Decimal('100')),
    'payment_terms': _text,
    'notes': _text,
    'is_active': coerce_bool,
}


def _client_json(c: Client):
    return {
        'id': c.id,
        'name': c.name,
        'business_type': c.business_type,
        'contact_name': c.contact_name,
        'contact_email': c.contact_email,
        'contact_phone': c.contact_phone,
        'address': c.address,
        'special_discount': to_float(c.special_discount),
        'payment_terms': c.payment_terms,
        'notes': c.notes,
        'is_active': c.is_active,
        'created_at': iso(c.created_at),
        'updated_at': iso(c.updated_at),
    }


def _prefetch_client(client_id: int):
    c = get_db().get(Client, client_id)
    return _client_json(c) if c else None


@catalog_bp.get('/clients')
@require_permissions('clients:view')
def list_clients():
    session = get_db()
    q = _active_only(session.query(Client), Client)
    q = apply_filters(q, {
        'name': {'op': contains(Client.name)},
        'business_type': {'op': eq(Client.business_type)},
    }, request.args)
    return respond_list(_sorted(q, Client), _client_json)


@catalog_bp.get('/clients/<int:client_id>')
@require_permissions('clients:view')
def get_client(client_id: int):
    c = _get_or_404(Client, client_id)
    return respond_single(c, _client_json(c))


@catalog_bp.post('/clients')
@require_permissions('clients:create')
@audit_log('CREATE', entity='client', entity_id_key='id')
def create_client():
    session = get_db()
    data = request.json or {}
    require_fields(data, 'name')
    c = Client(special_discount=Decimal('0'), created_by=current_user_id(), updated_by=current_user_id())
    _assign(c, data, CLIENT_FIELDS)
    session.add(c)
    session.flush()
    create_version('client', c, 'Initial creation', current_user())
    session.commit()
    return _client_json(c), 201


@catalog_bp.put('/clients/<int:client_id>')
@require_permissions('clients:update')
@audit_log('UPDATE', entity='client', entity_id_key='id', diff_keys=Client.VERSIONED_FIELDS,
           pre_fetch=lambda a, kw: _prefetch_client(kw.get('client_id')))
def update_client(client_id: int):
    session = get_db()
    c = _get_or_404(Client, client_id)
    _assign(c, request.json or {}, CLIENT_FIELDS)
    c.updated_by = current_user_id()
    session.flush()
    create_version('client', c, 'Updated client details', current_user())
    session.commit()
    return _client_json(c)


@catalog_bp.delete('/clients/<int:client_id>')
@require_permissions('clients:delete')
@audit_log('DELETE', entity='client', entity_id_key='id', diff_keys=['is_active'],
           pre_fetch=lambda a, kw: _prefetch_client(kw.get('client_id')))
def delete_client(client_id: int):
    session = get_db()
    c = _get_or_404(Client, client_id)
    c.is_active = False
    c.updated_by = current_user_id()
    session.commit()
    return _client_json(c)


# --- SKUs ---

def _grade(value, field):
    if value not in MatchaSku.ALL_GRADES:
        abort(400, description=f'{field} invalid')
    return value


def _supplier_ref(value, field):
    supplier_id = coerce_int(value, field)
    if get_db().get(Supplier, supplier_id) is None:
        abort(400, description='supplier not found')
    return supplier_id


SKU_FIELDS = {
    'supplier_id': _supplier_ref,
    'name': _required_text,
    'grade': _grade,
    'quality_tier': lambda v, f: coerce_int(v, f, minimum=1, maximum=5),
    'is_seasonal': coerce_bool,
    'harvest_season': _text,
    'description': _text,
    'is_active': coerce_bool,
}


def _sku_json(k: MatchaSku):
    return {
        'id': k.id,
        'supplier_id': k.supplier_id,
        'name': k.name,
        'grade': k.grade,
        'quality_tier': k.quality_tier,
        'is_seasonal': k.is_seasonal,
        'harvest_season': k.harvest_season,
        'description': k.description,
        'is_active': k.is_active,
        'created_at': iso(k.created_at),
        'updated_at': iso(k.updated_at),
    }


def _prefetch_sku(sku_id: int):
    k = get_db().get(MatchaSku, sku_id)
    return _sku_json(k) if k else None


@catalog_bp.get('/skus')
@require_permissions('products:view')
def list_skus():
    session = get_db()
    q = _active_only(session.query(MatchaSku), MatchaSku)
    q = apply_filters(q, {
        'name': {'op': contains(MatchaSku.name)},
        'grade': {'op': eq(MatchaSku.grade), 'validate': lambda v: v in MatchaSku.ALL_GRADES},
        'supplier_id': {'op': eq(MatchaSku.supplier_id), 'coerce': int},
    }, request.args)
    return respond_list(_sorted(q, MatchaSku), _sku_json)


@catalog_bp.get('/skus/<int:sku_id>')
@require_permissions('products:view')
def get_sku(sku_id: int):
    k = _get_or_404(MatchaSku, sku_id)
    return respond_single(k, _sku_json(k))


@catalog_bp.post('/skus')
@require_permissions('products:create')
@audit_log('CREATE', entity='sku', entity_id_key='id')
def create_sku():
    session = get_db()
    data = request.json or {}
    require_fields(data, 'supplier_id', 'name', 'grade')
    k = MatchaSku(created_by=current_user_id(), updated_by=current_user_id())
    _assign(k, data, SKU_FIELDS)
    session.add(k)
    session.flush()
    get_or_create_inventory(k.id)
    create_version('sku', k, 'Initial creation', current_user())
    session.commit()
    return _sku_json(k), 201


@catalog_bp.put('/skus/<int:sku_id>')
@require_permissions('products:update')
@audit_log('UPDATE', entity='sku', entity_id_key='id', diff_keys=MatchaSku.VERSIONED_FIELDS,
           pre_fetch=lambda a, kw: _prefetch_sku(kw.get('sku_id')))
def update_sku(sku_id: int):
    session = get_db()
    k = _get_or_404(MatchaSku, sku_id)
    _assign(k, request.json or {}, SKU_FIELDS)
    k.updated_by = current_user_id()
    session.flush()
    create_version('sku', k, 'Updated sku details', current_user())
    session.commit()
    return _sku_json(k)


@catalog_bp.delete('/skus/<int:sku_id>')
@require_permissions('products:delete')
@audit_log('DELETE', entity='sku', entity_id_key='id', diff_keys=['is_active'],
           pre_fetch=lambda a, kw: _prefetch_sku(kw.get('sku_id')))
def delete_sku(sku_id: int):
    session = get_db()
    k = _get_or_404(MatchaSku, sku_id)
    k.is_active = False
    k.updated_by = current_user_id()
    session.commit()
    return _sku_json(k)


__all__ = ['catalog_bp', '_supplier_json', '_client_json', '_sku_json']
