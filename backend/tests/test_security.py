from datetime import timedelta
from sqlalchemy import select
from matcha_trade import get_db
from matcha_trade.models.security import SecurityState
from matcha_trade.config.business import MASK
from matcha_trade.utils.dates import utcnow
from tests.test_utils_seed import ensure_sku, ensure_pricing, ensure_client, ensure_supplier
from tests.test_lifecycle_helpers import seed_user_headers


def test_panic_locks_mutations_and_masks_reads(app_context):
    client = app_context.test_client()
    user, mgr = seed_user_headers('sec_panic@example.com', 'manager')
    sku = ensure_sku('Security Panic SKU')
    ensure_pricing(sku)
    assert client.get(f'/pricing/sku/{sku.id}', headers=mgr).get_json()['landed_cost_sgd'] == 179.85

    r = client.post('/security/panic', headers=mgr)
    assert r.status_code == 200
    assert r.get_json()['panic_mode'] is True

    price = client.get(f'/pricing/sku/{sku.id}', headers=mgr).get_json()
    assert price['landed_cost_sgd'] == MASK
    assert price['margin_percent'] == MASK
    assert price['selling_price_per_kg'] == 260.0

    locked = client.post('/catalog/suppliers', json={'name': 'Locked Supplier'}, headers=mgr)
    assert locked.status_code == 423
    assert locked.get_json()['error']['status'] == 423
    assert client.get('/security/state', headers=mgr).get_json()['panic_mode'] is True

    assert client.post('/security/unlock', json={'confirm': 'please'}, headers=mgr).status_code == 400
    r = client.post('/security/unlock', json={'confirm': 'SEC_PANIC'}, headers=mgr)
    assert r.status_code == 200
    assert r.get_json()['panic_mode'] is False
    assert client.post('/catalog/suppliers', json={'name': 'Unlocked Supplier'}, headers=mgr).status_code == 201

    client.post('/security/panic', headers=mgr)
    assert client.post('/security/unlock', json={'confirm': ' Unlock '}, headers=mgr).status_code == 200

    actions = [row['action'] for row in
               client.get(f'/iam/audit/logs?user_id={user.id}&entity_type=user', headers=mgr).get_json()['data']]
    assert actions[:4] == ['UNLOCK', 'PANIC', 'UNLOCK', 'PANIC']


def test_idle_session_locks_itself(app_context):
    client = app_context.test_client()
    user, emp = seed_user_headers('sec_idle@example.com', 'employee')
    assert client.get('/security/state', headers=emp).get_json()['session_expired'] is False

    session = get_db()
    state = session.execute(select(SecurityState).where(SecurityState.user_id == user.id)).scalar_one()
    state.last_activity_at = utcnow() - timedelta(minutes=20)
    session.commit()

    body = client.get('/security/state', headers=emp).get_json()
    assert body['panic_mode'] is True
    assert body['session_expired'] is True
    assert client.post('/orders/client', json={}, headers=emp).status_code == 423

    client.post('/security/unlock', json={'confirm': 'unlock'}, headers=emp)
    assert client.get('/security/state', headers=emp).get_json()['session_expired'] is False


def test_simulation_discards_changes(app_context):
    client = app_context.test_client()
    user, mgr = seed_user_headers('sec_sim@example.com', 'manager')
    sku = ensure_sku('Security Simulation SKU')
    assert client.post('/security/simulation', json={}, headers=mgr).status_code == 400
    r = client.post('/security/simulation', json={'enabled': True}, headers=mgr)
    assert r.get_json()['simulation_mode'] is True

    r = client.post('/pricing', json={
        'sku_id': sku.id, 'cost_price_jpy': 16500, 'exchange_rate': 110, 'selling_price_per_kg': 260,
    }, headers=mgr)
    assert r.status_code == 201
    assert r.get_json()['simulated'] is True
    assert r.get_json()['landed_cost_sgd'] == 179.85
    assert r.headers['X-Simulation-Mode'] == '1'

    assert client.get(f'/pricing/sku/{sku.id}', headers=mgr).status_code == 404
    logs = client.get(f'/iam/audit/logs?user_id={user.id}&entity_type=pricing', headers=mgr).get_json()
    assert logs['data'] == []

    client.post('/security/simulation', json={'enabled': False}, headers=mgr)
    r = client.post('/pricing', json={
        'sku_id': sku.id, 'cost_price_jpy': 16500, 'exchange_rate': 110, 'selling_price_per_kg': 260,
    }, headers=mgr)
    assert r.get_json()['simulated'] is False
    assert 'X-Simulation-Mode' not in r.headers
    assert client.get(f'/pricing/sku/{sku.id}', headers=mgr).status_code == 200


def _confirm(client, headers, dataset, acknowledged=True):
    return client.post('/security/export-confirmations',
                       json={'dataset': dataset, 'acknowledged': acknowledged}, headers=headers)


def test_confirmed_export_is_watermarked(app_context):
    client = app_context.test_client()
    user, mgr = seed_user_headers('sec_export@example.com', 'manager')
    ensure_supplier('Export Supplier')
    r = _confirm(client, mgr, 'suppliers')
    assert r.status_code == 201
    body = r.get_json()
    assert body['expires_in'] == 300
    assert body['watermark'].startswith('sec_export | ')
    assert body['watermark'].endswith(' | CONFIDENTIAL')

    token = body['confirmation_token']
    r = client.get('/exports/suppliers', headers={**mgr, 'X-Export-Confirmation': token})
    assert r.status_code == 200
    assert r.mimetype == 'text/csv'
    lines = r.get_data(as_text=True).splitlines()
    assert lines[0] == f"# {body['watermark']}"
    assert lines[1].startswith('id,')
    assert any('Export Supplier' in line for line in lines[2:])
    assert r.headers['X-Watermark'] == body['watermark']
    assert 'attachment; filename=suppliers-' in r.headers['Content-Disposition']

    logs = client.get(f'/iam/audit/logs?user_id={user.id}&action=EXPORT', headers=mgr).get_json()['data']
    assert logs[0]['meta']['dataset'] == 'suppliers'

    # wrong dataset, missing token and token-as-bearer are all refused
    assert client.get('/exports/clients', headers={**mgr, 'X-Export-Confirmation': token}).status_code == 403
    assert client.get('/exports/suppliers', headers=mgr).status_code == 403
    assert client.get('/security/state', headers={'Authorization': f'Bearer {token}'}).status_code == 403


def test_export_confirmation_rules(app_context):
    client = app_context.test_client()
    acct = ensure_client('Export Buyer Cafe')
    _, mgr = seed_user_headers('sec_export2@example.com', 'manager')
    _, emp = seed_user_headers('sec_export_emp@example.com', 'employee')
    _, buyer = seed_user_headers('sec_export_buyer@example.com', 'business_client', linked_client_id=acct.id)
    assert _confirm(client, mgr, 'suppliers', acknowledged=False).status_code == 400
    assert _confirm(client, mgr, 'suppliers', acknowledged='yes').status_code == 400
    assert _confirm(client, mgr, 'payroll').status_code == 404
    assert _confirm(client, buyer, 'suppliers').status_code == 403
    # employees may export operational data but not pricing
    assert _confirm(client, emp, 'inventory').status_code == 201
    assert _confirm(client, emp, 'pricing').status_code == 403


def test_export_blocked_while_locked(app_context):
    client = app_context.test_client()
    _, mgr = seed_user_headers('sec_export3@example.com', 'manager')
    token = _confirm(client, mgr, 'skus').get_json()['confirmation_token']
    client.post('/security/panic', headers=mgr)
    assert client.get('/exports/skus', headers={**mgr, 'X-Export-Confirmation': token}).status_code == 423
    client.post('/security/unlock', json={'confirm': 'unlock'}, headers=mgr)
    assert client.get('/exports/skus', headers={**mgr, 'X-Export-Confirmation': token}).status_code == 200


def test_login_clears_lock(app_context):
    from tests.test_lifecycle_helpers import login_headers
    client = app_context.test_client()
    _, emp = seed_user_headers('sec_login@example.com', 'employee')
    client.post('/security/panic', headers=emp)
    fresh = login_headers(client, 'sec_login@example.com')
    state = client.get('/security/state', headers=fresh).get_json()
    assert state['panic_mode'] is False
    assert state['session_expired'] is False
