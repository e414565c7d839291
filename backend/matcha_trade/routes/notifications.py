from __future__ import annotations
from flask import Blueprint, request, abort
from sqlalchemy import or_, update
from matcha_trade.decorators.auth import require_permissions
from matcha_trade.decorators.audit import audit_log
from matcha_trade.models.notification import Notification
from matcha_trade.models.authz import User
from matcha_trade.services.notifications import notify
from matcha_trade.services.policy import current_user_id
from matcha_trade.utils.filters import parse_bool_param
from matcha_trade.utils.listing import respond_list
from matcha_trade.utils.validation import require_fields, coerce_int, validate_status
from matcha_trade.utils.dates import iso
from matcha_trade import get_db

notifications_bp = Blueprint('notifications', __name__)


def _notification_json(n: Notification):
    return {
        'id': n.id,
        'user_id': n.user_id,
        'type': n.type,
        'title': n.title,
        'message': n.message,
        'severity': n.severity,
        'is_read': n.is_read,
        'entity_type': n.entity_type,
        'entity_id': n.entity_id,
        'created_at': iso(n.created_at),
    }


def _visible_to_me():
    return or_(Notification.user_id == current_user_id(), Notification.user_id.is_(None))


@notifications_bp.get('')
@require_permissions('notifications:view')
def list_notifications():
    session = get_db()
    q = session.query(Notification).filter(_visible_to_me())
    try:
        unread_only = parse_bool_param(request.args.get('unread_only', 'false'))
    except ValueError:
        abort(400, description='unread_only invalid')
    if unread_only:
        q = q.filter(Notification.is_read.is_(False))
    q = q.order_by(Notification.created_at.desc(), Notification.id.desc())
    return respond_list(q, _notification_json, ts_attr='created_at')


@notifications_bp.put('/<int:notification_id>/read')
@require_permissions('notifications:view')
def mark_read(notification_id: int):
    session = get_db()
    n = session.get(Notification, notification_id)
    if not n:
        abort(404)
    if n.user_id is not None and n.user_id != current_user_id():
        abort(403, description='Not your notification')
    n.is_read = True
    session.commit()
    return _notification_json(n)


@notifications_bp.post('/read-all')
@require_permissions('notifications:view')
def mark_all_read():
    session = get_db()
    result = session.execute(
        update(Notification)
        .where(_visible_to_me(), Notification.is_read.is_(False))
        .values(is_read=True)
    )
    session.commit()
    return {'updated': result.rowcount}


@notifications_bp.post('')
@require_permissions('notifications:manage')
@audit_log('CREATE', entity='notification', entity_id_key='id', meta_keys=['type', 'severity', 'user_id'])
def create_notification():
    session = get_db()
    data = request.json or {}
    require_fields(data, 'title', 'message')
    user_id = data.get('user_id')
    if user_id is not None:
        user_id = coerce_int(user_id, 'user_id')
        if session.get(User, user_id) is None:
            abort(400, description='user not found')
    n = notify(
        validate_status(data.get('type', Notification.TYPE_SYSTEM), Notification.ALL_TYPES, 'type'),
        data['title'],
        data['message'],
        severity=validate_status(data.get('severity', Notification.SEVERITY_INFO), Notification.ALL_SEVERITIES,
                                 'severity'),
        user_id=user_id,
        entity_type=data.get('entity_type'),
        entity_id=data.get('entity_id'),
    )
    session.commit()
    return _notification_json(n), 201
