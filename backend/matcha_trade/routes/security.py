from __future__ import annotations
import csv
import io
import logging
from flask import Blueprint, Response, request, abort, g
from matcha_trade.decorators.auth import require_permissions
from matcha_trade.models.client import Client
from matcha_trade.models.client_order import ClientOrder
from matcha_trade.models.inventory import Inventory
from matcha_trade.models.pricing import Pricing
from matcha_trade.models.sku import MatchaSku
from matcha_trade.models.supplier import Supplier
from matcha_trade.services import security
from matcha_trade.services.audit import add_audit
from matcha_trade.services.policy import current_user, has_permission
from matcha_trade.services.visibility import redact
from matcha_trade.utils.dates import utcnow
from matcha_trade.utils.validation import coerce_bool
from matcha_trade.routes.catalog import _supplier_json, _client_json, _sku_json
from matcha_trade.routes.pricing import _pricing_json
from matcha_trade.routes.inventory import _inventory_json
from matcha_trade.routes.orders import _client_order_json
from matcha_trade import get_db

logger = logging.getLogger(__name__)

security_bp = Blueprint('security', __name__)
exports_bp = Blueprint('exports', __name__)

CONFIRMATION_HEADER = 'X-Export-Confirmation'

# dataset -> (permission needed to read it, query factory, serializer)
EXPORTS = {
    'suppliers': ('suppliers:view', lambda s: s.query(Supplier).order_by(Supplier.id), _supplier_json),
    'clients': ('clients:view', lambda s: s.query(Client).order_by(Client.id), _client_json),
    'skus': ('products:view', lambda s: s.query(MatchaSku).order_by(MatchaSku.id), _sku_json),
    'inventory': ('inventory:view', lambda s: s.query(Inventory).order_by(Inventory.sku_id), _inventory_json),
    'client-orders': ('orders:view', lambda s: s.query(ClientOrder).order_by(ClientOrder.order_date.desc(),
                                                                             ClientOrder.id.desc()),
                      _client_order_json),
    'pricing': ('pricing:view', lambda s: s.query(Pricing).filter(Pricing.is_current_price.is_(True))
                .order_by(Pricing.sku_id), _pricing_json),
}


def _state_payload():
    user = current_user()
    state = security.get_state(user.id)
    return security.state_json(state, user, g.capabilities)


@security_bp.get('/state')
@require_permissions(allow_locked=True)
def get_state():
    return _state_payload()


@security_bp.post('/panic')
@require_permissions(allow_locked=True)
def panic():
    security.activate_panic(current_user())
    get_db().commit()
    g.panic = True
    return _state_payload()


@security_bp.post('/unlock')
@require_permissions(allow_locked=True)
def unlock():
    data = request.json or {}
    security.unlock(current_user(), data.get('confirm'))
    add_audit('UNLOCK', 'user', current_user().id)
    get_db().commit()
    g.panic = False
    return _state_payload()


@security_bp.post('/simulation')
@require_permissions(allow_locked=True)
def simulation():
    data = request.json or {}
    if 'enabled' not in data:
        abort(400, description='enabled required')
    enabled = coerce_bool(data['enabled'], 'enabled')
    security.set_simulation(current_user(), enabled)
    add_audit('SIMULATION.SET', 'user', current_user().id, meta={'enabled': enabled})
    get_db().commit()
    return _state_payload()


def _assert_can_export(dataset: str):
    if dataset not in EXPORTS:
        abort(404, description='Unknown export dataset')
    if not g.capabilities.get('can_export_data'):
        abort(403, description='Export not permitted')
    if not has_permission(current_user().role, EXPORTS[dataset][0]):
        abort(403, description='Missing permission')


@security_bp.post('/export-confirmations')
@require_permissions()
def confirm_export():
    data = request.json or {}
    dataset = data.get('dataset')
    _assert_can_export(dataset)
    if data.get('acknowledged') is not True:
        abort(400, description='Export must be acknowledged')
    token, expires_in = security.issue_export_token(current_user(), dataset)
    return {
        'dataset': dataset,
        'confirmation_token': token,
        'expires_in': expires_in,
        'watermark': security.watermark_text(current_user()),
    }, 201


@exports_bp.get('/<dataset>')
@require_permissions()
def export_dataset(dataset: str):
    _assert_can_export(dataset)
    if g.panic:
        abort(423, description='Session locked')
    user = current_user()
    security.verify_export_token(request.headers.get(CONFIRMATION_HEADER), user, dataset)
    session = get_db()
    _, query_factory, serialize = EXPORTS[dataset]
    rows = redact([serialize(r) for r in query_factory(session).all()], g.capabilities, g.panic)
    watermark = security.watermark_text(user)
    buf = io.StringIO()
    buf.write(f'# {watermark}\n')
    if rows:
        writer = csv.DictWriter(buf, fieldnames=list(rows[0].keys()), extrasaction='ignore')
        writer.writeheader()
        for row in rows:
            writer.writerow(row)
    add_audit('EXPORT', dataset, None, meta={'dataset': dataset, 'rows': len(rows)})
    session.commit()
    logger.info('user %s exported %s (%d rows)', user.id, dataset, len(rows))
    filename = f'{dataset}-{utcnow().date().isoformat()}.csv'
    return Response(
        buf.getvalue(),
        mimetype='text/csv',
        headers={
            'Content-Disposition': f'attachment; filename={filename}',
            'X-Watermark': watermark,
        },
    )
