from tests.test_utils_seed import ensure_client, ensure_sku, ensure_pricing
from tests.test_lifecycle_helpers import seed_user_headers, create_resource_and_assert, assert_transition


def _order(client, headers, client_id, sku_id, qty, unit, order_date, deliver=True):
    body = create_resource_and_assert(client, '/orders/client', {
        'client_id': client_id, 'sku_id': sku_id, 'quantity_kg': qty, 'unit_price_sgd': unit,
        'order_date': order_date,
    }, headers)
    url = f"/orders/client/{body['id']}"
    if deliver:
        assert_transition(client, url, headers, 'confirmed')
        assert_transition(client, url, headers, 'delivered')
    return body


def test_profitability_counts_delivered_orders_only(app_context):
    client = app_context.test_client()
    _, mgr = seed_user_headers('an_mgr@example.com', 'manager')
    acct = ensure_client('Analytics Cafe')
    sku = ensure_sku('Analytics SKU')
    ensure_pricing(sku)  # landed 179.85
    _order(client, mgr, acct.id, sku.id, 2, 260, '2001-03-05T00:00:00Z')   # profit 160.30
    _order(client, mgr, acct.id, sku.id, 1, 200, '2001-03-20T00:00:00Z')   # profit 20.15
    _order(client, mgr, acct.id, sku.id, 5, 300, '2001-03-21T00:00:00Z', deliver=False)

    months = client.get('/analytics/monthly-profit?months=120', headers=mgr).get_json()['data']
    march = next(m for m in months if m['month'] == '2001-03')
    assert march['order_count'] == 2
    assert march['total_revenue'] == 720.0
    assert march['total_profit'] == 180.45
    assert march['margin_percent'] == 25.06
    assert march['total_quantity_kg'] == 3.0
    assert [m['month'] for m in months] == sorted((m['month'] for m in months), reverse=True)

    by_client = client.get('/analytics/client-profitability', headers=mgr).get_json()['data']
    row = next(r for r in by_client if r['client_id'] == acct.id)
    assert row['name'] == 'Analytics Cafe'
    assert row['order_count'] == 2
    assert row['total_profit'] == 180.45

    by_sku = client.get('/analytics/sku-profitability', headers=mgr).get_json()['data']
    row = next(r for r in by_sku if r['sku_id'] == sku.id)
    assert row['total_revenue'] == 720.0

    assert client.get('/analytics/monthly-profit?months=0', headers=mgr).status_code == 400
    assert client.get('/analytics/monthly-profit?months=121', headers=mgr).status_code == 400


def test_my_account_scoping(app_context):
    client = app_context.test_client()
    _, mgr = seed_user_headers('an_mgr2@example.com', 'manager')
    acct = ensure_client('Analytics Account Cafe')
    other = ensure_client('Analytics Other Cafe')
    sku = ensure_sku('Analytics Account SKU')
    _order(client, mgr, acct.id, sku.id, 4, 100, '2026-02-10T00:00:00Z')
    cancelled = _order(client, mgr, acct.id, sku.id, 9, 100, '2026-02-11T00:00:00Z', deliver=False)
    assert_transition(client, f"/orders/client/{cancelled['id']}", mgr, 'cancelled')

    _, buyer = seed_user_headers('an_buyer@example.com', 'business_client', linked_client_id=acct.id)
    mine = client.get(f'/analytics/my-account?client_id={other.id}', headers=buyer).get_json()
    assert mine['client_id'] == acct.id
    assert mine['client_name'] == 'Analytics Account Cafe'
    assert mine['order_count'] == 1
    assert mine['orders_by_status'] == {'delivered': 1}
    assert mine['total_spend_sgd'] == 400.0
    assert mine['monthly_volume'][0] == {'month': '2026-02', 'total_quantity_kg': 4.0, 'order_count': 1}

    assert client.get('/analytics/my-account', headers=mgr).status_code == 400
    assert client.get('/analytics/my-account?client_id=999999', headers=mgr).status_code == 404
    assert client.get(f'/analytics/my-account?client_id={other.id}', headers=mgr).get_json()['order_count'] == 0


def test_financial_analytics_need_financial_permission(app_context):
    client = app_context.test_client()
    acct = ensure_client('Analytics Denied Cafe')
    _, emp = seed_user_headers('an_emp@example.com', 'employee')
    _, buyer = seed_user_headers('an_buyer2@example.com', 'business_client', linked_client_id=acct.id)
    for path in ('/analytics/monthly-profit', '/analytics/client-profitability', '/analytics/business-context'):
        assert client.get(path, headers=emp).status_code == 403
        assert client.get(path, headers=buyer).status_code == 403
    assert client.get('/analytics/my-account', headers=emp).status_code == 403


def test_business_context_snapshot(app_context):
    client = app_context.test_client()
    _, mgr = seed_user_headers('an_mgr3@example.com', 'manager')
    sku = ensure_sku('Analytics Context SKU')
    ensure_pricing(sku)
    body = client.get('/analytics/business-context', headers=mgr).get_json()
    for key in ('suppliers', 'clients', 'skus', 'pricing', 'inventory', 'recent_orders', 'low_stock_alerts'):
        assert key in body
    assert any(p['sku_id'] == sku.id for p in body['pricing'])
    assert len(body['recent_orders']) <= 20
