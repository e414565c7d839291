import logging
from flask import Blueprint, request, abort
from flask_jwt_extended import create_access_token, get_jwt
from sqlalchemy import select, func
from matcha_trade.models.authz import User, RevokedToken
from matcha_trade.models.audit import AuditLog
from matcha_trade.models.client import Client
from matcha_trade import get_db
from matcha_trade.constants.permissions import ALL_ROLES, ROLE_SUPER_ADMIN, ROLE_BUSINESS_CLIENT
from matcha_trade.services.policy import (
    get_role_permissions, capabilities_for, get_visible_nav_items, can_access_route, role_metadata,
    current_user,
)
from matcha_trade.services.security import get_state
from matcha_trade.services.audit import add_audit
from matcha_trade.decorators.audit import audit_log
from matcha_trade.decorators.auth import require_permissions
from matcha_trade.utils.dates import iso, utcnow
from matcha_trade.utils.filters import apply_filters, eq
from matcha_trade.utils.listing import respond_list
from matcha_trade.utils.validation import coerce_int

logger = logging.getLogger(__name__)

iam_bp = Blueprint('iam', __name__)


def _user_json(u: User):
    return {
        'id': u.id,
        'name': u.name,
        'email': u.email,
        'role': u.role,
        'role_display_name': role_metadata(u.role)['display_name'],
        'linked_client_id': u.linked_client_id,
        'is_active': u.is_active,
        'last_signed_in_at': iso(u.last_signed_in_at),
    }


def _audit_json(r: AuditLog):
    return {
        'id': r.id,
        'user_id': r.user_id,
        'user_name': r.user_name,
        'action': r.action,
        'entity_type': r.entity_type,
        'entity_id': r.entity_id,
        'previous_data': r.previous_data,
        'new_data': r.new_data,
        'meta': r.meta or {},
        'role_snapshot': r.role_snapshot,
        'ip_address': r.ip_address,
        'created_at': iso(r.created_at),
    }


@iam_bp.post('/auth/login')
def login():
    data = request.json or {}
    email = data.get('email'); password = data.get('password')
    if not email or not password:
        abort(400, description='email & password required')
    session = get_db()
    user = session.execute(select(User).where(User.email == email)).scalar_one_or_none()
    if not user or not user.verify_password(password):
        abort(401, description='invalid credentials')
    if not user.is_active:
        abort(401, description='account disabled')
    claims = {
        'role': user.role,
        'perms': get_role_permissions(user.role),
        'linked_client_id': user.linked_client_id,
    }
    # JWT identity must be a string (flask-jwt-extended v4 requirement)
    token = create_access_token(identity=str(user.id), additional_claims=claims)
    user.last_signed_in_at = utcnow()
    # a password login starts a fresh session
    state = get_state(user.id)
    state.panic_mode = False
    state.session_expired = False
    state.last_activity_at = utcnow()
    add_audit('LOGIN', 'user', user.id, user=user)
    session.commit()
    logger.info('user %s signed in', user.id)
    return {'access_token': token, 'user': _user_json(user)}


@iam_bp.post('/auth/logout')
@require_permissions(allow_locked=True)
def logout():
    session = get_db()
    user = current_user()
    session.add(RevokedToken(jti=get_jwt()['jti'], user_id=user.id))
    add_audit('LOGOUT', 'user', user.id)
    session.commit()
    logger.info('user %s signed out', user.id)
    return {'revoked': True}


@iam_bp.get('/auth/me')
@require_permissions()
def me():
    user = current_user()
    return {
        **_user_json(user),
        **role_metadata(user.role),
        'permissions': get_role_permissions(user.role),
        'capabilities': capabilities_for(user.role),
    }


@iam_bp.get('/auth/navigation')
@require_permissions()
def navigation():
    return {'data': get_visible_nav_items(current_user().role)}


@iam_bp.get('/auth/can-access')
@require_permissions()
def can_access():
    path = request.args.get('path')
    if not path:
        abort(400, description='path required')
    return {'path': path, 'allowed': can_access_route(current_user().role, path)}


@iam_bp.get('/roles')
@require_permissions()
def list_roles():
    return {'data': [
        {**role_metadata(r), 'permissions': get_role_permissions(r)} for r in ALL_ROLES
    ]}


@iam_bp.get('/users')
@require_permissions('users:view')
def list_users():
    session = get_db()
    q = session.query(User)
    q = apply_filters(q, {
        'role': {'op': eq(User.role), 'validate': lambda v: v in ALL_ROLES},
    }, request.args)
    return respond_list(q.order_by(User.id.asc()), _user_json)


def _prefetch_user(user_id: int):
    user = get_db().get(User, user_id)
    return _user_json(user) if user else None


@iam_bp.put('/users/<int:user_id>/role')
@require_permissions('users:manage_roles')
@audit_log('USER.ROLE.SET', entity='user', entity_id_key='id', diff_keys=['role', 'linked_client_id'],
           pre_fetch=lambda a, kw: _prefetch_user(kw.get('user_id')))
def set_user_role(user_id: int):
    session = get_db()
    user = session.get(User, user_id)
    if not user:
        abort(404)
    data = request.json or {}
    role = data.get('role')
    if role not in ALL_ROLES:
        abort(400, description='role invalid')
    linked_client_id = data.get('linked_client_id', user.linked_client_id)
    if linked_client_id is not None:
        linked_client_id = coerce_int(linked_client_id, 'linked_client_id')
        if session.get(Client, linked_client_id) is None:
            abort(400, description='linked client not found')
    if role == ROLE_BUSINESS_CLIENT and linked_client_id is None:
        abort(400, description='business_client requires linked_client_id')
    # an inactive super_admin is not among the active ones the guard counts
    if user.role == ROLE_SUPER_ADMIN and user.is_active and role != ROLE_SUPER_ADMIN:
        admins = session.execute(
            select(func.count(User.id)).where(User.role == ROLE_SUPER_ADMIN, User.is_active.is_(True))
        ).scalar()
        if admins <= 1:
            abort(400, description='Cannot demote the last super_admin')
    user.role = role
    user.linked_client_id = linked_client_id if role == ROLE_BUSINESS_CLIENT else None
    session.commit()
    return _user_json(user)


@iam_bp.get('/audit/logs')
@require_permissions('audit:view')
def list_audit_logs():
    session = get_db()
    q = session.query(AuditLog)
    q = apply_filters(q, {
        'entity_type': {'op': eq(AuditLog.entity_type)},
        'entity_id': {'op': eq(AuditLog.entity_id)},
        'user_id': {'op': eq(AuditLog.user_id), 'coerce': int},
        'action': {'op': eq(AuditLog.action)},
    }, request.args)
    q = q.order_by(AuditLog.created_at.desc(), AuditLog.id.desc())
    return respond_list(q, _audit_json, ts_attr='created_at', default_limit=100)
