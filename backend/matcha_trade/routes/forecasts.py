from __future__ import annotations
from decimal import Decimal
from flask import Blueprint, request, abort
from matcha_trade.decorators.auth import require_permissions, require_any_permission
from matcha_trade.decorators.audit import audit_log
from matcha_trade.utils.listing import respond_list
from matcha_trade.utils.filters import apply_filters, eq
from matcha_trade.utils.validation import (
    require_fields, coerce_int, coerce_decimal, coerce_bool, validate_month, to_float,
)
from matcha_trade.utils.dates import iso
from matcha_trade.models.forecast import DemandForecast
from matcha_trade.models.client import Client
from matcha_trade.models.sku import MatchaSku
from matcha_trade.services.pricing import money, HUNDRED
from matcha_trade.services.policy import linked_client_scope
from matcha_trade import get_db

forecasts_bp = Blueprint('forecasts', __name__)


def _forecast_json(f: DemandForecast):
    return {
        'id': f.id,
        'client_id': f.client_id,
        'sku_id': f.sku_id,
        'forecast_month': f.forecast_month,
        'projected_demand_kg': to_float(f.projected_demand_kg),
        'actual_demand_kg': to_float(f.actual_demand_kg),
        'confidence_level': to_float(f.confidence_level),
        'ai_generated': f.ai_generated,
        'notes': f.notes,
        'updated_at': iso(f.updated_at),
    }


def accuracy_percent(projected, actual):
    """100 minus the absolute miss as a share of the projection, floored at zero."""
    if actual is None or not projected:
        return None
    projected, actual = Decimal(projected), Decimal(actual)
    miss = abs(actual - projected) / projected * HUNDRED
    return money(max(Decimal('0'), HUNDRED - miss))


def _prediction_json(f: DemandForecast, sku_names: dict):
    body = _forecast_json(f)
    body['sku_name'] = sku_names.get(f.sku_id)
    body['accuracy_percent'] = to_float(accuracy_percent(f.projected_demand_kg, f.actual_demand_kg))
    return body


def _filtered(q):
    return apply_filters(q, {
        'client_id': {'op': eq(DemandForecast.client_id), 'coerce': int},
        'sku_id': {'op': eq(DemandForecast.sku_id), 'coerce': int},
        'month': {'op': eq(DemandForecast.forecast_month), 'validate': lambda v: bool(validate_month(v, 'month'))},
    }, request.args)


def _prefetch_forecast(forecast_id: int):
    f = get_db().get(DemandForecast, forecast_id)
    return _forecast_json(f) if f else None


@forecasts_bp.get('')
@require_any_permission('orders:view', 'analytics:view')
def list_forecasts():
    session = get_db()
    q = _filtered(session.query(DemandForecast))
    scope = linked_client_scope()
    if scope is not None:
        q = q.filter(DemandForecast.client_id == scope)
    q = q.order_by(DemandForecast.forecast_month.desc(), DemandForecast.id.asc())
    return respond_list(q, _forecast_json)


@forecasts_bp.get('/predictions')
@require_permissions('ai:predictions')
def list_predictions():
    session = get_db()
    q = _filtered(session.query(DemandForecast))
    scope = linked_client_scope()
    if scope is not None:
        q = q.filter(DemandForecast.client_id == scope)
    q = q.order_by(DemandForecast.forecast_month.desc(), DemandForecast.id.asc())
    sku_names = dict(session.query(MatchaSku.id, MatchaSku.name).all())
    return respond_list(q, lambda f: _prediction_json(f, sku_names))


@forecasts_bp.post('')
@require_permissions('orders:update')
@audit_log('CREATE', entity='forecast', entity_id_key='id', meta_keys=['client_id', 'sku_id', 'forecast_month'])
def create_forecast():
    session = get_db()
    data = request.json or {}
    require_fields(data, 'forecast_month', 'projected_demand_kg')
    client_id = coerce_int(data['client_id'], 'client_id') if data.get('client_id') is not None else None
    sku_id = coerce_int(data['sku_id'], 'sku_id') if data.get('sku_id') is not None else None
    if client_id is not None and session.get(Client, client_id) is None:
        abort(400, description='client not found')
    if sku_id is not None and session.get(MatchaSku, sku_id) is None:
        abort(400, description='sku not found')
    confidence = data.get('confidence_level')
    f = DemandForecast(
        client_id=client_id,
        sku_id=sku_id,
        forecast_month=validate_month(data['forecast_month']),
        projected_demand_kg=coerce_decimal(data['projected_demand_kg'], 'projected_demand_kg', non_negative=True),
        confidence_level=(coerce_decimal(confidence, 'confidence_level', non_negative=True, maximum=HUNDRED)
                          if confidence is not None else None),
        ai_generated=coerce_bool(data.get('ai_generated', False), 'ai_generated'),
        notes=data.get('notes'),
    )
    session.add(f)
    session.commit()
    return _forecast_json(f), 201


@forecasts_bp.put('/<int:forecast_id>')
@require_permissions('orders:update')
@audit_log('UPDATE', entity='forecast', entity_id_key='id', diff_keys=['actual_demand_kg', 'notes'],
           pre_fetch=lambda a, kw: _prefetch_forecast(kw.get('forecast_id')))
def update_forecast(forecast_id: int):
    session = get_db()
    f = session.get(DemandForecast, forecast_id)
    if not f:
        abort(404)
    data = request.json or {}
    if 'actual_demand_kg' in data:
        value = data['actual_demand_kg']
        f.actual_demand_kg = (coerce_decimal(value, 'actual_demand_kg', non_negative=True)
                              if value is not None else None)
    if 'notes' in data:
        f.notes = data['notes']
    session.commit()
    return _forecast_json(f)
