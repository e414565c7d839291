import pytest
from matcha_trade import get_db
from matcha_trade.models.audit import AuditLog, AppendOnlyViolation
from matcha_trade.services.audit import add_audit
from tests.test_utils_seed import ensure_user
from tests.test_lifecycle_helpers import seed_user_headers


def _entry(user):
    log = add_audit('CREATE', 'supplier', 42, new_data={'name': 'x'}, meta={'k': 'v'}, user=user)
    get_db().commit()
    return log


def test_add_audit_snapshots_actor(app_context):
    user = ensure_user('audit_actor@example.com', 'manager')
    log = _entry(user)
    assert log.user_id == user.id
    assert log.user_name == 'audit_actor'
    assert log.role_snapshot == 'manager'
    assert log.entity_id == '42'


def test_audit_entries_cannot_be_updated(app_context):
    log = _entry(ensure_user('audit_upd@example.com'))
    session = get_db()
    log.action = 'TAMPERED'
    with pytest.raises(AppendOnlyViolation):
        session.commit()
    session.rollback()
    assert session.get(AuditLog, log.id).action == 'CREATE'


def test_audit_entries_cannot_be_deleted(app_context):
    log = _entry(ensure_user('audit_del@example.com'))
    session = get_db()
    session.delete(log)
    with pytest.raises(AppendOnlyViolation):
        session.commit()
    session.rollback()
    assert session.get(AuditLog, log.id) is not None


def test_audit_listing_is_newest_first(app_context):
    client = app_context.test_client()
    user, mgr = seed_user_headers('audit_list@example.com', 'manager')
    for name in ('Audit Order One', 'Audit Order Two'):
        client.post('/catalog/suppliers', json={'name': name}, headers=mgr)
    rows = client.get(f'/iam/audit/logs?user_id={user.id}&entity_type=supplier', headers=mgr).get_json()['data']
    assert [r['new_data']['name'] for r in rows[:2]] == ['Audit Order Two', 'Audit Order One']
    assert client.get('/iam/audit/logs?user_id=me', headers=mgr).status_code == 400
