from tests.test_utils_seed import ensure_sku
from tests.test_lifecycle_helpers import seed_user_headers


def _send(client, headers, **payload):
    body = {'title': 'Heads up', 'message': 'Check the shipment'}
    body.update(payload)
    return client.post('/notifications', json=body, headers=headers)


def test_user_sees_own_and_broadcast_notifications(app_context):
    client = app_context.test_client()
    _, admin = seed_user_headers('notif_admin@example.com', 'super_admin')
    alice, alice_h = seed_user_headers('notif_alice@example.com', 'employee')
    bob, bob_h = seed_user_headers('notif_bob@example.com', 'employee')
    to_alice = _send(client, admin, user_id=alice.id, title='For Alice').get_json()
    to_bob = _send(client, admin, user_id=bob.id, title='For Bob').get_json()
    broadcast = _send(client, admin, title='For everyone', severity='warning', type='order_reminder').get_json()

    ids = {n['id'] for n in client.get('/notifications?limit=200', headers=alice_h).get_json()['data']}
    assert to_alice['id'] in ids
    assert broadcast['id'] in ids
    assert to_bob['id'] not in ids

    assert client.put(f"/notifications/{to_bob['id']}/read", headers=alice_h).status_code == 403
    r = client.put(f"/notifications/{to_alice['id']}/read", headers=alice_h)
    assert r.get_json()['is_read'] is True
    assert client.put('/notifications/999999/read', headers=alice_h).status_code == 404


def test_read_all_marks_every_visible_notification(app_context):
    client = app_context.test_client()
    _, admin = seed_user_headers('notif_admin2@example.com', 'super_admin')
    carol, carol_h = seed_user_headers('notif_carol@example.com', 'employee')
    _send(client, admin, user_id=carol.id)
    _send(client, admin, user_id=carol.id)
    r = client.post('/notifications/read-all', headers=carol_h)
    assert r.status_code == 200
    assert r.get_json()['updated'] >= 2
    unread = client.get('/notifications?unread_only=true', headers=carol_h).get_json()
    assert unread['data'] == []
    assert client.post('/notifications/read-all', headers=carol_h).get_json() == {'updated': 0}
    assert client.get('/notifications?unread_only=maybe', headers=carol_h).status_code == 400


def test_sending_requires_manage_permission_and_valid_fields(app_context):
    client = app_context.test_client()
    _, admin = seed_user_headers('notif_admin3@example.com', 'super_admin')
    _, mgr = seed_user_headers('notif_mgr@example.com', 'manager')
    assert _send(client, mgr).status_code == 403
    assert _send(client, admin, type='gossip').status_code == 400
    assert _send(client, admin, severity='urgent').status_code == 400
    assert _send(client, admin, user_id=999999).status_code == 400
    assert client.post('/notifications', json={'title': 'No message'}, headers=admin).status_code == 400
    created = _send(client, admin)
    assert created.status_code == 201
    assert created.get_json()['severity'] == 'info'
    assert created.get_json()['type'] == 'system'


def test_price_alert_carries_no_cost_figures(app_context):
    client = app_context.test_client()
    _, mgr = seed_user_headers('notif_price_mgr@example.com', 'manager')
    _, emp = seed_user_headers('notif_price_emp@example.com', 'employee')
    sku = ensure_sku('Notification Price SKU')
    for cost in ('16500', '22000'):  # landed 179.85 then 234.35
        r = client.post('/pricing', json={
            'sku_id': sku.id, 'cost_price_jpy': cost, 'exchange_rate': '110', 'selling_price_per_kg': '300',
        }, headers=mgr)
        assert r.status_code == 201
    rows = [n for n in client.get('/notifications?limit=200', headers=emp).get_json()['data']
            if n['type'] == 'price_change' and n['entity_id'] == sku.id]
    assert len(rows) == 1
    text = rows[0]['title'] + ' ' + rows[0]['message']
    assert '30.30%' in text
    for figure in ('179.85', '234.35', 'SGD'):
        assert figure not in text
