from matcha_trade.config.business import MASK
from matcha_trade.services.policy import capabilities_for
from matcha_trade.services.visibility import redact, hidden_fields
from tests.test_utils_seed import ensure_client, ensure_sku, ensure_pricing
from tests.test_lifecycle_helpers import seed_user_headers

ORDER = {'id': 1, 'total_price_sgd': 520.0, 'profit_sgd': 160.3, 'landed_cost': None}


def test_admin_sees_everything():
    assert hidden_fields(capabilities_for('super_admin')) == frozenset()
    assert redact(ORDER, capabilities_for('super_admin')) == ORDER


def test_employee_margins_and_costs_are_masked():
    caps = capabilities_for('employee')
    out = redact({'data': [ORDER, {'items': [{'unit_price_jpy': 100, 'quantity_kg': 2}]}]}, caps)
    assert out['data'][0]['profit_sgd'] == MASK
    assert out['data'][0]['total_price_sgd'] == 520.0
    # absent values stay absent rather than masked
    assert out['data'][0]['landed_cost'] is None
    assert out['data'][1]['items'][0] == {'unit_price_jpy': MASK, 'quantity_kg': 2}


def test_panic_masks_all_sensitive_fields():
    caps = capabilities_for('super_admin')
    out = redact({'payment_terms': 'Net 30', 'margin_percent': 30.8, 'name': 'Cafe'}, caps, panic=True)
    assert out == {'payment_terms': MASK, 'margin_percent': MASK, 'name': 'Cafe'}


def test_manager_sees_financials(app_context):
    caps = capabilities_for('manager')
    assert redact(ORDER, caps) == ORDER


def test_employee_order_response_hides_profit(app_context):
    client = app_context.test_client()
    _, emp = seed_user_headers('vis_emp@example.com', 'employee')
    _, mgr = seed_user_headers('vis_mgr@example.com', 'manager')
    acct = ensure_client('Visibility Cafe', payment_terms='Net 45')
    sku = ensure_sku('Visibility SKU')
    ensure_pricing(sku)
    r = client.post('/orders/client', json={'client_id': acct.id, 'sku_id': sku.id, 'quantity_kg': 1,
                                            'unit_price_sgd': 200}, headers=emp)
    assert r.status_code == 201
    assert r.get_json()['profit_sgd'] == MASK
    assert r.get_json()['unit_price_sgd'] == 200.0

    seen_by_manager = client.get(f"/orders/client/{r.get_json()['id']}", headers=mgr).get_json()
    assert seen_by_manager['profit_sgd'] == 20.15

    terms = client.get(f'/catalog/clients/{acct.id}', headers=emp).get_json()
    assert terms['payment_terms'] == MASK
    assert client.get(f'/catalog/clients/{acct.id}', headers=mgr).get_json()['payment_terms'] == 'Net 45'


def test_relation_tax_is_a_cost_field():
    economics = {'cost_sgd': 150.0, 'tax': 14.85, 'landed_cost': 179.85, 'effective_selling_price': 260.0}
    out = redact(economics, capabilities_for('employee'))
    assert out['tax'] == MASK
    assert out['effective_selling_price'] == 260.0
    assert 'tax' in hidden_fields(capabilities_for('super_admin'), panic=True)
