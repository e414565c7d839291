"""Session security: panic lock, inactivity expiry, simulation mode, watermark and
export confirmation tokens.

State lives in one SecurityState row per user so it survives across tokens and
processes. Guards call touch_activity() on every request.
"""
from __future__ import annotations
import logging
from datetime import date, timedelta
from typing import Optional
from flask import abort, current_app, g
from flask_jwt_extended import create_access_token, decode_token
from flask_jwt_extended.exceptions import JWTExtendedException
from jwt.exceptions import PyJWTError
from sqlalchemy import select

from matcha_trade import get_db
from matcha_trade.models.security import SecurityState
from matcha_trade.services.audit import add_audit
from matcha_trade.utils.dates import utcnow, as_utc

logger = logging.getLogger(__name__)

UNLOCK_WORD = 'unlock'
EXPORT_SCOPE = 'export'
EXPORT_DATASETS = ('suppliers', 'clients', 'skus', 'inventory', 'client-orders', 'pricing')


def get_state(user_id: int) -> SecurityState:
    session = get_db()
    state = session.execute(select(SecurityState).where(SecurityState.user_id == user_id)).scalar_one_or_none()
    if state is None:
        state = SecurityState(user_id=user_id, panic_mode=False, session_expired=False, simulation_mode=False)
        session.add(state)
        session.flush()
    return state


def touch_activity(user) -> SecurityState:
    """Record activity; lock the session if it sat idle past SESSION_TIMEOUT_MINUTES."""
    state = get_state(user.id)
    now = utcnow()
    timeout = timedelta(minutes=current_app.config['SESSION_TIMEOUT_MINUTES'])
    last = as_utc(state.last_activity_at)
    if not state.panic_mode and last is not None and now - last > timeout:
        state.panic_mode = True
        state.session_expired = True
        add_audit('PANIC', 'user', user.id, meta={'reason': 'session_timeout'}, user=user)
        logger.info('session of user %s expired after inactivity', user.id)
    state.last_activity_at = now
    get_db().commit()
    return state


def activate_panic(user) -> SecurityState:
    state = get_state(user.id)
    state.panic_mode = True
    add_audit('PANIC', 'user', user.id, meta={'reason': 'manual'}, user=user)
    logger.info('panic mode activated by user %s', user.id)
    return state


def unlock(user, confirm) -> SecurityState:
    accepted = {UNLOCK_WORD}
    if user.name:
        accepted.add(user.name.strip().lower())
    if not isinstance(confirm, str) or confirm.strip().lower() not in accepted:
        abort(400, description="Type 'unlock' or your name to continue")
    state = get_state(user.id)
    state.panic_mode = False
    state.session_expired = False
    state.last_activity_at = utcnow()
    return state


def set_simulation(user, enabled: bool) -> SecurityState:
    state = get_state(user.id)
    state.simulation_mode = enabled
    return state


def commit_or_simulate(session) -> bool:
    """Commit the unit of work, or roll it back when the caller is in simulation mode.

    Returns True when the work was simulated. Build response payloads before calling:
    a rollback expires every loaded instance.
    """
    if g.get('simulation'):
        session.rollback()
        g.simulated = True
        logger.info('simulated mutation by user %s discarded', getattr(g.get('current_user'), 'id', None))
        return True
    session.commit()
    return False


def watermark_text(user, today: Optional[date] = None) -> str:
    if user is None:
        return 'UNAUTHORIZED'
    today = today or utcnow().date()
    return f"{user.name or user.email} | {today.isoformat()} | CONFIDENTIAL"


def state_json(state: SecurityState, user, capabilities: dict) -> dict:
    return {
        'panic_mode': state.panic_mode,
        'session_expired': state.session_expired,
        'simulation_mode': state.simulation_mode,
        'capabilities': capabilities,
        'watermark': watermark_text(user),
    }


def issue_export_token(user, dataset: str) -> tuple[str, int]:
    minutes = current_app.config['EXPORT_CONFIRMATION_MINUTES']
    token = create_access_token(
        identity=str(user.id),
        expires_delta=timedelta(minutes=minutes),
        additional_claims={'scope': EXPORT_SCOPE, 'export_dataset': dataset},
    )
    return token, minutes * 60


def verify_export_token(token: Optional[str], user, dataset: str):
    if not token:
        abort(403, description='Export confirmation required')
    try:
        claims = decode_token(token)
    except (JWTExtendedException, PyJWTError):
        abort(403, description='Export confirmation invalid or expired')
    if (claims.get('scope') != EXPORT_SCOPE or claims.get('export_dataset') != dataset
            or claims.get('sub') != str(user.id)):
        abort(403, description='Export confirmation does not match this export')
    return claims

__all__ = [
    'EXPORT_DATASETS', 'EXPORT_SCOPE', 'get_state', 'touch_activity', 'activate_panic', 'unlock',
    'set_simulation', 'commit_or_simulate', 'watermark_text', 'state_json', 'issue_export_token',
    'verify_export_token',
]
