import pytest
from werkzeug.exceptions import BadRequest
from matcha_trade.utils.fsm import TransitionValidator
from matcha_trade.routes.orders import CLIENT_ORDER_FSM, SUPPLIER_ORDER_FSM


def test_transition_validator_allows_valid():
    fsm = TransitionValidator({'pending': {'confirmed'}, 'confirmed': set()})
    assert fsm.assert_can_transition('pending', 'confirmed') is True


def test_transition_validator_blocks_invalid():
    fsm = TransitionValidator({'pending': {'confirmed'}, 'confirmed': set()})
    with pytest.raises(BadRequest) as exc:
        fsm.assert_can_transition('pending', 'delivered')
    assert 'pending -> delivered' in exc.value.description


def test_same_status_is_a_noop():
    fsm = TransitionValidator({'delivered': set()})
    assert fsm.assert_can_transition('delivered', 'delivered') is True


def test_terminal_states():
    assert CLIENT_ORDER_FSM.is_terminal('delivered')
    assert CLIENT_ORDER_FSM.is_terminal('cancelled')
    assert not CLIENT_ORDER_FSM.is_terminal('pending')
    assert SUPPLIER_ORDER_FSM.is_terminal('arrived')
    assert not SUPPLIER_ORDER_FSM.is_terminal('shipped')
    # every non-terminal supplier state can still be cancelled
    for status, targets in SUPPLIER_ORDER_FSM.graph.items():
        if targets:
            assert 'cancelled' in targets, status


def test_openapi_documents_order_lifecycles(client):
    schemas = client.get('/openapi.json').get_json()['components']['schemas']
    assert 'pending' in schemas['ClientOrder']['x-transitions']
    assert 'arrived' in schemas['SupplierOrder']['x-transitions']
