from decimal import Decimal
from matcha_trade import get_db
from matcha_trade.models.inventory import Inventory
from tests.test_utils_seed import ensure_supplier
from tests.test_lifecycle_helpers import seed_user_headers, create_resource_and_assert


def test_supplier_crud_and_soft_delete(app_context):
    client = app_context.test_client()
    _, mgr = seed_user_headers('cat_mgr@example.com', 'manager')
    _, admin = seed_user_headers('cat_admin@example.com', 'super_admin')
    body = create_resource_and_assert(client, '/catalog/suppliers', {
        'name': 'Marukyu Test', 'region': 'Uji', 'lead_time_days': 21,
    }, mgr)
    assert body['country'] == 'Japan'
    assert body['order_cadence_days'] == 45
    sid = body['id']

    r = client.put(f'/catalog/suppliers/{sid}', json={'region': 'Kyoto', 'lead_time_days': 28}, headers=mgr)
    assert r.status_code == 200
    assert r.get_json()['region'] == 'Kyoto'

    d = client.delete(f'/catalog/suppliers/{sid}', headers=admin)
    assert d.status_code == 200
    assert d.get_json()['is_active'] is False
    # row survives the delete
    assert client.get(f'/catalog/suppliers/{sid}', headers=mgr).status_code == 200

    active = client.get('/catalog/suppliers?name=Marukyu Test', headers=mgr).get_json()
    assert active['pagination']['returned'] == 0
    everything = client.get('/catalog/suppliers?name=Marukyu Test&active_only=false', headers=mgr).get_json()
    assert everything['pagination']['returned'] == 1


def test_supplier_validation(app_context):
    client = app_context.test_client()
    _, mgr = seed_user_headers('cat_mgr_val@example.com', 'manager')
    assert client.post('/catalog/suppliers', json={}, headers=mgr).status_code == 400
    assert client.post('/catalog/suppliers', json={'name': '   '}, headers=mgr).status_code == 400
    r = client.post('/catalog/suppliers', json={'name': 'Bad Lead', 'lead_time_days': -2}, headers=mgr)
    assert r.status_code == 400
    assert client.get('/catalog/suppliers/999999', headers=mgr).status_code == 404
    assert client.get('/catalog/suppliers?active_only=maybe', headers=mgr).status_code == 400


def test_client_create_and_terms(app_context):
    client = app_context.test_client()
    _, mgr = seed_user_headers('cat_mgr_cli@example.com', 'manager')
    body = create_resource_and_assert(client, '/catalog/clients', {
        'name': 'Cafe Catalog', 'business_type': 'cafe', 'special_discount': '7.5', 'payment_terms': 'NET30',
    }, mgr)
    assert body['special_discount'] == 7.5
    assert body['payment_terms'] == 'NET30'
    over = client.post('/catalog/clients', json={'name': 'Too Generous', 'special_discount': 150}, headers=mgr)
    assert over.status_code == 400


def test_sku_create_provisions_inventory(app_context):
    client = app_context.test_client()
    _, mgr = seed_user_headers('cat_mgr_sku@example.com', 'manager')
    supplier = ensure_supplier('Catalog SKU Supplier')
    body = create_resource_and_assert(client, '/catalog/skus', {
        'supplier_id': supplier.id, 'name': 'Okumidori Catalog', 'grade': 'ceremonial', 'quality_tier': 5,
    }, mgr)
    inv = get_db().query(Inventory).filter_by(sku_id=body['id']).one()
    assert inv.total_stock_kg == Decimal('0')
    assert inv.low_stock_threshold_kg == Decimal('5')

    listed = client.get(f'/catalog/suppliers/{supplier.id}/skus', headers=mgr).get_json()
    assert [k['name'] for k in listed['data']] == ['Okumidori Catalog']
    by_grade = client.get('/catalog/skus?grade=ceremonial&name=Okumidori Catalog', headers=mgr).get_json()
    assert by_grade['pagination']['returned'] == 1


def test_sku_validation(app_context):
    client = app_context.test_client()
    _, mgr = seed_user_headers('cat_mgr_sku2@example.com', 'manager')
    supplier = ensure_supplier('Catalog SKU Supplier 2')
    base = {'supplier_id': supplier.id, 'name': 'Invalid SKU', 'grade': 'premium'}
    assert client.post('/catalog/skus', json={**base, 'grade': 'gold'}, headers=mgr).status_code == 400
    assert client.post('/catalog/skus', json={**base, 'quality_tier': 6}, headers=mgr).status_code == 400
    r = client.post('/catalog/skus', json={**base, 'supplier_id': 999999}, headers=mgr)
    assert r.status_code == 400
    assert r.get_json()['error']['detail'] == 'supplier not found'
    assert client.get('/catalog/skus?grade=gold', headers=mgr).status_code == 400


def test_catalog_mutations_are_audited(app_context):
    client = app_context.test_client()
    _, admin = seed_user_headers('cat_audit@example.com', 'super_admin')
    body = create_resource_and_assert(client, '/catalog/suppliers', {'name': 'Audited Supplier'}, admin)
    client.put(f"/catalog/suppliers/{body['id']}", json={'notes': 'changed'}, headers=admin)
    logs = client.get(f"/iam/audit/logs?entity_type=supplier&entity_id={body['id']}", headers=admin).get_json()
    actions = [row['action'] for row in logs['data']]
    assert actions == ['UPDATE', 'CREATE']
    update = logs['data'][0]
    assert update['meta']['changes']['notes'] == {'before': None, 'after': 'changed'}
    assert update['user_name'] == 'cat_audit'
