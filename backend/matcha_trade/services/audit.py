from __future__ import annotations
from typing import Any, Dict, Optional
from flask import g, request, has_request_context
from matcha_trade import get_db
from matcha_trade.models.audit import AuditLog


def add_audit(action: str, entity_type: Optional[str] = None, entity_id: Optional[Any] = None,
              previous_data: Optional[Dict[str, Any]] = None, new_data: Optional[Dict[str, Any]] = None,
              meta: Optional[Dict[str, Any]] = None, user=None):
    """Persist an audit log entry within the current DB session.

    Parameters:
      action: action code e.g. CREATE, UPDATE, ROLLBACK, USER.ROLE.SET
      entity_type: optional entity name (supplier, client, sku, ...)
      entity_id: optional primary key (stored as string)
      previous_data / new_data: JSON-safe snapshots around the change
      meta: additional JSON-safe dictionary (shallow copied)
      user: actor; defaults to the user resolved by the request guard
    """
    session = get_db()
    actor = user if user is not None else (g.get('current_user') if has_request_context() else None)
    ip_address = None
    user_agent = None
    if has_request_context():
        ip_address = request.remote_addr
        user_agent = request.headers.get('User-Agent')
    log = AuditLog(
        user_id=actor.id if actor is not None else 0,
        user_name=(actor.name or actor.email) if actor is not None else None,
        action=action,
        entity_type=entity_type,
        entity_id=str(entity_id) if entity_id is not None else None,
        previous_data=previous_data,
        new_data=new_data,
        meta=dict(meta or {}),
        role_snapshot=actor.role if actor is not None else None,
        ip_address=ip_address,
        user_agent=user_agent,
    )
    session.add(log)
    # No commit here; caller's transaction boundary controls durability.
    return log
