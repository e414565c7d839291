from __future__ import annotations
from decimal import Decimal
from flask import Blueprint, request, abort
from sqlalchemy import select
from matcha_trade.decorators.auth import require_permissions
from matcha_trade.decorators.audit import audit_log
from matcha_trade.utils.listing import respond_list, respond_single
from matcha_trade.utils.filters import apply_filters, eq, parse_bool_param
from matcha_trade.utils.validation import require_fields, coerce_int, coerce_decimal, to_float
from matcha_trade.utils.dates import iso, utcnow
from matcha_trade.config.business import DEFAULT_SHIPPING_FEE_PER_KG, DEFAULT_IMPORT_TAX_RATE
from matcha_trade.models.pricing import Pricing, ExchangeRate
from matcha_trade.models.relation import ClientProductRelation
from matcha_trade.models.sku import MatchaSku
from matcha_trade.models.client import Client
from matcha_trade.services import pricing as calc
from matcha_trade.services.notifications import notify_price_change
from matcha_trade.services.policy import current_user_id
from matcha_trade.services.security import commit_or_simulate
from matcha_trade import get_db

pricing_bp = Blueprint('pricing', __name__)

RATE_MAX = Decimal('100000')


def _pricing_json(p: Pricing):
    selling = Decimal(p.selling_price_per_kg)
    landed = Decimal(p.landed_cost_sgd)
    return {
        'id': p.id,
        'sku_id': p.sku_id,
        'cost_price_jpy': to_float(p.cost_price_jpy),
        'exchange_rate': to_float(p.exchange_rate),
        'shipping_fee_per_kg': to_float(p.shipping_fee_per_kg),
        'import_tax_rate': to_float(p.import_tax_rate),
        'landed_cost_sgd': to_float(landed),
        'selling_price_per_kg': to_float(selling),
        'profit_per_kg': to_float(calc.profit_per_kg(selling, landed)),
        'margin_percent': to_float(calc.margin_percent(selling, landed)),
        'effective_from': iso(p.effective_from),
        'effective_to': iso(p.effective_to),
        'is_current_price': p.is_current_price,
        'updated_at': iso(p.updated_at),
    }


def _current_price(sku_id: int):
    return get_db().execute(
        select(Pricing).where(Pricing.sku_id == sku_id, Pricing.is_current_price.is_(True))
    ).scalar_one_or_none()


def _landed(cost, rate, shipping, tax):
    try:
        return calc.landed_cost(cost, rate, shipping, tax)
    except ValueError as e:
        abort(400, description=str(e))


def _pricing_inputs(data: dict, base: Pricing | None = None) -> dict:
    def pick(field, default, **rules):
        if field in data:
            return coerce_decimal(data[field], field, **rules)
        return Decimal(default) if default is not None else None
    return {
        'cost_price_jpy': pick('cost_price_jpy', base.cost_price_jpy if base else None, positive=True),
        'exchange_rate': pick('exchange_rate', base.exchange_rate if base else None, positive=True, maximum=RATE_MAX),
        'shipping_fee_per_kg': pick('shipping_fee_per_kg',
                                    base.shipping_fee_per_kg if base else DEFAULT_SHIPPING_FEE_PER_KG,
                                    non_negative=True),
        'import_tax_rate': pick('import_tax_rate', base.import_tax_rate if base else DEFAULT_IMPORT_TAX_RATE,
                                non_negative=True, maximum=Decimal('1')),
        'selling_price_per_kg': pick('selling_price_per_kg', base.selling_price_per_kg if base else None,
                                     positive=True),
    }


def _prefetch_pricing(pricing_id: int):
    p = get_db().get(Pricing, pricing_id)
    return _pricing_json(p) if p else None


@pricing_bp.get('')
@require_permissions('pricing:view')
def list_pricing():
    session = get_db()
    q = session.query(Pricing)
    try:
        current_only = parse_bool_param(request.args.get('current_only', 'true'))
    except ValueError:
        abort(400, description='current_only invalid')
    if current_only:
        q = q.filter(Pricing.is_current_price.is_(True))
    q = apply_filters(q, {'sku_id': {'op': eq(Pricing.sku_id), 'coerce': int}}, request.args)
    return respond_list(q.order_by(Pricing.sku_id.asc(), Pricing.id.desc()), _pricing_json)


@pricing_bp.get('/<int:pricing_id>')
@require_permissions('pricing:view')
def get_pricing(pricing_id: int):
    p = get_db().get(Pricing, pricing_id)
    if not p:
        abort(404)
    return respond_single(p, _pricing_json(p))


@pricing_bp.get('/sku/<int:sku_id>')
@require_permissions('pricing:view')
def get_current_pricing(sku_id: int):
    p = _current_price(sku_id)
    if not p:
        abort(404, description='No current price for SKU')
    return respond_single(p, _pricing_json(p))


@pricing_bp.get('/sku/<int:sku_id>/history')
@require_permissions('pricing:view')
def pricing_history(sku_id: int):
    session = get_db()
    q = session.query(Pricing).filter(Pricing.sku_id == sku_id)
    q = q.order_by(Pricing.effective_from.desc(), Pricing.id.desc())
    return respond_list(q, _pricing_json)


@pricing_bp.post('')
@require_permissions('pricing:update')
@audit_log('CREATE', entity='pricing', entity_id_key='id', meta_keys=['sku_id', 'price_change_percent'])
def create_pricing():
    session = get_db()
    data = request.json or {}
    require_fields(data, 'sku_id', 'cost_price_jpy', 'exchange_rate', 'selling_price_per_kg')
    sku_id = coerce_int(data['sku_id'], 'sku_id')
    if session.get(MatchaSku, sku_id) is None:
        abort(400, description='sku not found')
    inputs = _pricing_inputs(data)
    landed = _landed(inputs['cost_price_jpy'], inputs['exchange_rate'],
                     inputs['shipping_fee_per_kg'], inputs['import_tax_rate'])
    now = utcnow()
    previous = _current_price(sku_id)
    previous_landed = Decimal(previous.landed_cost_sgd) if previous else None
    if previous:
        previous.is_current_price = False
        previous.effective_to = now
        previous.updated_by = current_user_id()
        # the partial unique index sees the old row closed before the new one lands
        session.flush()
    p = Pricing(
        sku_id=sku_id,
        landed_cost_sgd=landed,
        effective_from=now,
        is_current_price=True,
        created_by=current_user_id(),
        updated_by=current_user_id(),
        **inputs,
    )
    session.add(p)
    session.flush()
    change_pct = calc.price_change_percent(previous_landed, landed)
    severity = calc.price_change_severity(change_pct)
    if severity:
        notify_price_change(sku_id, change_pct, severity)
    payload = _pricing_json(p)
    payload['previous_pricing_id'] = previous.id if previous else None
    payload['price_change_percent'] = to_float(change_pct)
    payload['simulated'] = commit_or_simulate(session)
    return payload, 201


@pricing_bp.put('/<int:pricing_id>')
@require_permissions('pricing:update')
@audit_log('UPDATE', entity='pricing', entity_id_key='id',
           diff_keys=['cost_price_jpy', 'exchange_rate', 'shipping_fee_per_kg', 'import_tax_rate',
                      'landed_cost_sgd', 'selling_price_per_kg'],
           pre_fetch=lambda a, kw: _prefetch_pricing(kw.get('pricing_id')))
def update_pricing(pricing_id: int):
    session = get_db()
    p = session.get(Pricing, pricing_id)
    if not p:
        abort(404)
    inputs = _pricing_inputs(request.json or {}, p)
    for field, value in inputs.items():
        setattr(p, field, value)
    p.landed_cost_sgd = _landed(inputs['cost_price_jpy'], inputs['exchange_rate'],
                                inputs['shipping_fee_per_kg'], inputs['import_tax_rate'])
    p.updated_by = current_user_id()
    session.flush()
    payload = _pricing_json(p)
    payload['simulated'] = commit_or_simulate(session)
    return payload


# --- Exchange rates ---

def _rate_json(r: ExchangeRate):
    return {
        'id': r.id,
        'from_currency': r.from_currency,
        'to_currency': r.to_currency,
        'rate': to_float(r.rate),
        'source': r.source,
        'recorded_at': iso(r.recorded_at),
    }


@pricing_bp.get('/exchange-rates')
@require_permissions('pricing:view')
def list_exchange_rates():
    session = get_db()
    q = session.query(ExchangeRate).order_by(ExchangeRate.recorded_at.desc(), ExchangeRate.id.desc())
    return respond_list(q, _rate_json, ts_attr='recorded_at')


@pricing_bp.get('/exchange-rates/latest')
@require_permissions('pricing:view')
def latest_exchange_rate():
    session = get_db()
    r = session.execute(
        select(ExchangeRate).order_by(ExchangeRate.recorded_at.desc(), ExchangeRate.id.desc()).limit(1)
    ).scalar_one_or_none()
    if not r:
        abort(404, description='No exchange rate recorded')
    return respond_single(r, _rate_json(r), ts_attr='recorded_at')


@pricing_bp.post('/exchange-rates')
@require_permissions('pricing:update')
@audit_log('CREATE', entity='exchange_rate', entity_id_key='id')
def create_exchange_rate():
    session = get_db()
    data = request.json or {}
    require_fields(data, 'rate')
    r = ExchangeRate(
        from_currency=(data.get('from_currency') or 'JPY').upper(),
        to_currency=(data.get('to_currency') or 'SGD').upper(),
        rate=coerce_decimal(data['rate'], 'rate', positive=True, maximum=RATE_MAX),
        source=data.get('source'),
        recorded_at=utcnow(),
        created_by=current_user_id(),
    )
    if len(r.from_currency) != 3 or len(r.to_currency) != 3:
        abort(400, description='currency codes must have 3 letters')
    session.add(r)
    session.flush()
    payload = _rate_json(r)
    payload['simulated'] = commit_or_simulate(session)
    return payload, 201


# --- Client-product relations ---

RELATION_DECIMALS = {
    'cost_price_jpy': {'positive': True},
    'exchange_rate': {'positive': True},
    'shipping_fee_per_kg': {'non_negative': True},
    'import_tax_rate': {'non_negative': True, 'maximum': Decimal('1')},
    'selling_price_per_kg': {'positive': True},
    'discount_percent': {'non_negative': True, 'maximum': Decimal('100')},
    'monthly_volume_kg': {'non_negative': True},
}


def _relation_json(r: ClientProductRelation):
    economics = calc.relation_economics(
        Decimal(r.cost_price_jpy), Decimal(r.exchange_rate), Decimal(r.shipping_fee_per_kg),
        Decimal(r.import_tax_rate), Decimal(r.selling_price_per_kg), Decimal(r.discount_percent),
        Decimal(r.monthly_volume_kg),
    )
    return {
        'id': r.id,
        'client_id': r.client_id,
        'sku_id': r.sku_id,
        'cost_price_jpy': to_float(r.cost_price_jpy),
        'exchange_rate': to_float(r.exchange_rate),
        'shipping_fee_per_kg': to_float(r.shipping_fee_per_kg),
        'import_tax_rate': to_float(r.import_tax_rate),
        'selling_price_per_kg': to_float(r.selling_price_per_kg),
        'discount_percent': to_float(r.discount_percent),
        'monthly_volume_kg': to_float(r.monthly_volume_kg),
        'notes': r.notes,
        'is_active': r.is_active,
        **{k: (to_float(v) if k != 'warnings' else v) for k, v in economics.items()},
        'updated_at': iso(r.updated_at),
    }


def _prefetch_relation(relation_id: int):
    r = get_db().get(ClientProductRelation, relation_id)
    return _relation_json(r) if r else None


def _assign_relation(r: ClientProductRelation, data: dict):
    for field, rules in RELATION_DECIMALS.items():
        if field in data:
            setattr(r, field, coerce_decimal(data[field], field, **rules))
    if 'notes' in data:
        r.notes = data['notes']
    if 'is_active' in data:
        r.is_active = bool(data['is_active'])


def _assert_unique_active_pair(client_id: int, sku_id: int, exclude_id: int | None = None):
    q = get_db().query(ClientProductRelation.id).filter(
        ClientProductRelation.client_id == client_id,
        ClientProductRelation.sku_id == sku_id,
        ClientProductRelation.is_active.is_(True),
    )
    if exclude_id is not None:
        q = q.filter(ClientProductRelation.id != exclude_id)
    if q.first() is not None:
        abort(409, description='An active relation already exists for this client and SKU')


@pricing_bp.get('/relations')
@require_permissions('pricing:view')
def list_relations():
    session = get_db()
    q = session.query(ClientProductRelation)
    q = apply_filters(q, {
        'client_id': {'op': eq(ClientProductRelation.client_id), 'coerce': int},
        'sku_id': {'op': eq(ClientProductRelation.sku_id), 'coerce': int},
        'is_active': {'op': eq(ClientProductRelation.is_active), 'coerce': parse_bool_param},
    }, request.args)
    return respond_list(q.order_by(ClientProductRelation.id.asc()), _relation_json)


@pricing_bp.get('/relations/<int:relation_id>')
@require_permissions('pricing:view')
def get_relation(relation_id: int):
    r = get_db().get(ClientProductRelation, relation_id)
    if not r:
        abort(404)
    return respond_single(r, _relation_json(r))


@pricing_bp.post('/relations')
@require_permissions('pricing:update')
@audit_log('CREATE', entity='client_product_relation', entity_id_key='id')
def create_relation():
    session = get_db()
    data = request.json or {}
    require_fields(data, 'client_id', 'sku_id', 'cost_price_jpy', 'exchange_rate', 'selling_price_per_kg')
    client_id = coerce_int(data['client_id'], 'client_id')
    sku_id = coerce_int(data['sku_id'], 'sku_id')
    if session.get(Client, client_id) is None:
        abort(400, description='client not found')
    if session.get(MatchaSku, sku_id) is None:
        abort(400, description='sku not found')
    r = ClientProductRelation(
        client_id=client_id,
        sku_id=sku_id,
        shipping_fee_per_kg=DEFAULT_SHIPPING_FEE_PER_KG,
        import_tax_rate=DEFAULT_IMPORT_TAX_RATE,
        discount_percent=Decimal('0'),
        monthly_volume_kg=Decimal('0'),
        is_active=True,
        created_by=current_user_id(),
    )
    _assign_relation(r, data)
    if r.is_active:
        _assert_unique_active_pair(client_id, sku_id)
    session.add(r)
    session.flush()
    payload = _relation_json(r)
    payload['simulated'] = commit_or_simulate(session)
    return payload, 201


@pricing_bp.put('/relations/<int:relation_id>')
@require_permissions('pricing:update')
@audit_log('UPDATE', entity='client_product_relation', entity_id_key='id',
           diff_keys=list(RELATION_DECIMALS) + ['notes', 'is_active'],
           pre_fetch=lambda a, kw: _prefetch_relation(kw.get('relation_id')))
def update_relation(relation_id: int):
    session = get_db()
    r = session.get(ClientProductRelation, relation_id)
    if not r:
        abort(404)
    _assign_relation(r, request.json or {})
    if r.is_active:
        _assert_unique_active_pair(r.client_id, r.sku_id, exclude_id=r.id)
    session.flush()
    payload = _relation_json(r)
    payload['simulated'] = commit_or_simulate(session)
    return payload


@pricing_bp.delete('/relations/<int:relation_id>')
@require_permissions('pricing:update')
@audit_log('DELETE', entity='client_product_relation', entity_id_arg='relation_id', record_new_data=False,
           pre_fetch=lambda a, kw: _prefetch_relation(kw.get('relation_id')))
def delete_relation(relation_id: int):
    session = get_db()
    r = session.get(ClientProductRelation, relation_id)
    if not r:
        abort(404)
    session.delete(r)
    session.flush()
    simulated = commit_or_simulate(session)
    return {'deleted': True, 'id': relation_id, 'simulated': simulated}
