from __future__ import annotations
from flask import Blueprint, request, abort
from sqlalchemy import select
from matcha_trade.decorators.auth import require_permissions
from matcha_trade.decorators.audit import audit_log
from matcha_trade.models.setting import SystemSetting
from matcha_trade.services.policy import current_user_id
from matcha_trade.utils.listing import respond_list, respond_single
from matcha_trade.utils.dates import iso
from matcha_trade import get_db

settings_bp = Blueprint('settings', __name__)


def _setting_json(s: SystemSetting):
    return {
        'id': s.id,
        'key': s.key,
        'value': s.value,
        'description': s.description,
        'updated_by': s.updated_by,
        'updated_at': iso(s.updated_at),
    }


def _by_key(key: str):
    return get_db().execute(select(SystemSetting).where(SystemSetting.key == key)).scalar_one_or_none()


def _prefetch_setting(key: str):
    s = _by_key(key)
    return _setting_json(s) if s else None


@settings_bp.get('')
@require_permissions('settings:view')
def list_settings():
    session = get_db()
    return respond_list(session.query(SystemSetting).order_by(SystemSetting.key.asc()), _setting_json)


@settings_bp.get('/<key>')
@require_permissions()
def get_setting(key: str):
    s = _by_key(key)
    if not s:
        abort(404)
    return respond_single(s, _setting_json(s))


@settings_bp.put('/<key>')
@require_permissions('settings:update')
@audit_log('SETTING.SET', entity='setting', entity_id_key='key', diff_keys=['value', 'description'],
           pre_fetch=lambda a, kw: _prefetch_setting(kw.get('key')))
def put_setting(key: str):
    session = get_db()
    data = request.json or {}
    value = data.get('value')
    if value is None:
        abort(400, description='value required')
    if not isinstance(value, str):
        value = str(value)
    s = _by_key(key)
    if s is None:
        s = SystemSetting(key=key)
        session.add(s)
    s.value = value
    if 'description' in data:
        s.description = data['description']
    s.updated_by = current_user_id()
    session.commit()
    return _setting_json(s)
