from tests.test_lifecycle_helpers import seed_user_headers


def test_upsert_setting_and_audit(app_context):
    client = app_context.test_client()
    _, admin = seed_user_headers('set_admin@example.com', 'super_admin')
    r = client.put('/settings/default_shipping_fee', json={'value': 15, 'description': 'SGD per kg'}, headers=admin)
    assert r.status_code == 200
    assert r.get_json()['value'] == '15'
    r = client.put('/settings/default_shipping_fee', json={'value': '18'}, headers=admin)
    body = r.get_json()
    assert body['value'] == '18'
    assert body['description'] == 'SGD per kg'

    logs = client.get('/iam/audit/logs?action=SETTING.SET', headers=admin).get_json()['data']
    latest = logs[0]
    assert latest['entity_id'] == 'default_shipping_fee'
    assert latest['meta']['changes']['value'] == {'before': '15', 'after': '18'}


def test_setting_read_rules(app_context):
    client = app_context.test_client()
    _, admin = seed_user_headers('set_admin2@example.com', 'super_admin')
    _, emp = seed_user_headers('set_emp@example.com', 'employee')
    _, mgr = seed_user_headers('set_mgr@example.com', 'manager')
    client.put('/settings/low_margin_threshold', json={'value': '15'}, headers=admin)
    assert client.get('/settings/low_margin_threshold', headers=emp).get_json()['value'] == '15'
    assert client.get('/settings/nope_missing', headers=emp).status_code == 404
    assert client.get('/settings', headers=emp).status_code == 403
    assert client.put('/settings/low_margin_threshold', json={'value': '20'}, headers=mgr).status_code == 403
    assert client.put('/settings/low_margin_threshold', json={}, headers=admin).status_code == 400
    keys = [s['key'] for s in client.get('/settings?limit=200', headers=admin).get_json()['data']]
    assert keys == sorted(keys)
